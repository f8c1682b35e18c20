"""
Tests for wagering, odds snapshots and vote casting in the prediction market.
"""

import threading

import pytest

from services import error_codes
from tests.conftest import TEST_DEBATE_ID


class TestOddsQueries:
    def test_empty_debate_quotes_defaults(self, market_service, debate):
        odds = market_service.get_current_odds(TEST_DEBATE_ID)
        assert (odds.pro, odds.con, odds.tie) == (2.0, 2.0, 3.0)

    def test_pool_reflects_wagers(self, market_service, debate):
        market_service.place_bet(TEST_DEBATE_ID, "a", "pro", 100)
        market_service.place_bet(TEST_DEBATE_ID, "b", "con", 50)

        pool = market_service.get_bet_pool(TEST_DEBATE_ID)
        assert pool.to_dict() == {"proTotal": 100, "conTotal": 50, "tieTotal": 0, "totalPool": 150}

        odds = market_service.get_current_odds(TEST_DEBATE_ID)
        assert (odds.pro, odds.con, odds.tie) == (1.43, 2.85, 15.0)

    def test_unknown_debate_has_empty_pool(self, market_service):
        assert market_service.get_bet_pool("ghost").total_pool == 0


class TestPlaceBet:
    def test_successful_bet(self, market_service, profile_repository, debate):
        result = market_service.place_bet(TEST_DEBATE_ID, "sess-1", "pro", 100)

        assert result.success
        assert result.new_balance == 900
        assert result.odds_at_bet == 2.0
        assert result.payout == 0
        assert result.vote_id is not None
        assert result.message == "Bet placed: 100 DebatePoints on pro at 2.0x odds"
        assert profile_repository.get_by_session("sess-1").debate_points == 900

    def test_odds_snapshot_taken_before_bet(self, market_service, vote_repository, debate):
        market_service.place_bet(TEST_DEBATE_ID, "a", "pro", 100)
        second = market_service.place_bet(TEST_DEBATE_ID, "b", "con", 50)
        third = market_service.place_bet(TEST_DEBATE_ID, "c", "pro", 100)

        # con had no backers when b bet, pro/con pool was 100/50 when c bet
        assert second.odds_at_bet == 10.0
        assert third.odds_at_bet == 1.43
        assert vote_repository.get_vote(TEST_DEBATE_ID, "c").odds_at_bet == 1.43

    def test_first_bet_creates_profile(self, market_service, profile_repository, debate):
        market_service.place_bet(TEST_DEBATE_ID, "fresh", "tie", 10, user_id="user-9")
        profile = profile_repository.get_by_session("fresh")
        assert profile.user_id == "user-9"
        assert profile.debate_points == 990

    def test_linked_profile_debited_from_new_session(self, market_service, profile_repository, debate):
        profile_repository.create("laptop", "user-1", 1000)
        result = market_service.place_bet(TEST_DEBATE_ID, "phone", "pro", 100, user_id="user-1")

        assert result.success
        assert result.new_balance == 900
        assert profile_repository.get_by_user_id("user-1").debate_points == 900


class TestPlaceBetValidation:
    """Checks run in a fixed order and failures never change state."""

    def test_invalid_vote_checked_first(self, market_service, profile_repository, debate):
        result = market_service.place_bet(TEST_DEBATE_ID, "sess-1", "maybe", 5)
        assert not result.success
        assert result.error_code == error_codes.INVALID_OUTCOME
        assert result.new_balance == 0
        assert profile_repository.get_by_session("sess-1") is None

    @pytest.mark.parametrize("amount", [0, 9, 501, 10.5, -20])
    def test_wager_out_of_range(self, market_service, profile_repository, debate, amount):
        result = market_service.place_bet(TEST_DEBATE_ID, "sess-1", "pro", amount)
        assert not result.success
        assert result.error_code == error_codes.VALIDATION_ERROR
        assert result.message == "Wager must be between 10 and 500 DebatePoints"
        assert result.new_balance == 0
        assert profile_repository.get_by_session("sess-1") is None

    @pytest.mark.parametrize("amount", [10, 500])
    def test_wager_bounds_inclusive(self, market_service, debate, amount):
        assert market_service.place_bet(TEST_DEBATE_ID, "sess-1", "con", amount).success

    def test_missing_debate(self, market_service, profile_repository):
        result = market_service.place_bet("ghost", "sess-1", "pro", 100)
        assert result.error_code == error_codes.DEBATE_NOT_FOUND
        assert profile_repository.get_by_session("sess-1") is None

    def test_closed_debate(self, market_service, debate_repository, debate):
        debate_repository.complete(TEST_DEBATE_ID, "pro", None, None)
        result = market_service.place_bet(TEST_DEBATE_ID, "sess-1", "pro", 100)
        assert result.error_code == error_codes.STATE_ERROR

    def test_failed_debate(self, market_service, debate_repository, debate):
        debate_repository.update_status(TEST_DEBATE_ID, ("in_progress",), "failed")
        result = market_service.place_bet(TEST_DEBATE_ID, "sess-1", "pro", 100)
        assert result.error_code == error_codes.STATE_ERROR

    def test_insufficient_funds(self, market_service, profile_repository, debate):
        profile_repository.create("poor", None, 40)
        result = market_service.place_bet(TEST_DEBATE_ID, "poor", "pro", 100)

        assert not result.success
        assert result.error_code == error_codes.INSUFFICIENT_FUNDS
        assert result.new_balance == 40
        assert result.message == "Insufficient DebatePoints. You have 40, need 60 more."
        assert profile_repository.get_by_session("poor").debate_points == 40

    def test_second_bet_on_same_debate_rejected(self, market_service, profile_repository, debate):
        market_service.place_bet(TEST_DEBATE_ID, "sess-1", "pro", 100)
        result = market_service.place_bet(TEST_DEBATE_ID, "sess-1", "con", 100)

        assert result.error_code == error_codes.ALREADY_VOTED
        assert result.new_balance == 900
        assert profile_repository.get_by_session("sess-1").debate_points == 900

    def test_failed_bet_leaves_pool_unchanged(self, market_service, profile_repository, debate):
        market_service.place_bet(TEST_DEBATE_ID, "a", "pro", 100)
        profile_repository.create("poor", None, 20)
        market_service.place_bet(TEST_DEBATE_ID, "poor", "con", 50)
        market_service.place_bet(TEST_DEBATE_ID, "a", "con", 50)

        assert market_service.get_bet_pool(TEST_DEBATE_ID).total_pool == 100


class TestBalanceInvariants:
    def test_balance_tracks_wagers(self, market_service, profile_repository, make_debate):
        for i, amount in enumerate((100, 250, 10)):
            make_debate(f"d{i}")
            market_service.place_bet(f"d{i}", "sess-1", "pro", amount)

        profile = profile_repository.get_by_session("sess-1")
        assert profile.total_points_wagered == 360
        assert profile.total_bets_placed == 3
        assert profile.debate_points == 1000 - profile.total_points_wagered + profile.total_points_won

    def test_concurrent_bets_never_overdraw(self, market_service, profile_repository, make_debate):
        """Ten 200-point wagers against a 1000-point balance: exactly five succeed."""
        profile_repository.create("sess-1", None, 1000)
        debate_ids = [make_debate(f"race-{i}").debate_id for i in range(10)]
        results = []
        lock = threading.Lock()

        def bet(debate_id):
            result = market_service.place_bet(debate_id, "sess-1", "pro", 200)
            with lock:
                results.append(result)

        threads = [threading.Thread(target=bet, args=(d,)) for d in debate_ids]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        succeeded = [r for r in results if r.success]
        assert len(results) == 10
        assert len(succeeded) == 5
        assert all(r.error_code == error_codes.INSUFFICIENT_FUNDS for r in results if not r.success)

        profile = profile_repository.get_by_session("sess-1")
        assert profile.debate_points == 0
        assert profile.total_bets_placed == 5

    def test_concurrent_duplicate_bets_single_debit(self, market_service, profile_repository, debate):
        profile_repository.create("sess-1", None, 1000)
        results = []
        lock = threading.Lock()

        def bet():
            result = market_service.place_bet(TEST_DEBATE_ID, "sess-1", "pro", 100)
            with lock:
                results.append(result)

        threads = [threading.Thread(target=bet) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for r in results if r.success) == 1
        assert all(r.error_code == error_codes.ALREADY_VOTED for r in results if not r.success)
        assert profile_repository.get_by_session("sess-1").debate_points == 900


class TestCastVote:
    def test_plain_vote(self, market_service, profile_repository, debate_repository, debate):
        result = market_service.cast_vote(TEST_DEBATE_ID, "sess-1", "con")

        assert result.success
        assert result.value["vote"] == "con"
        assert result.value["bet"] is None
        assert result.value["crowd_votes"] == {"pro": 0, "con": 1, "tie": 0}
        assert result.value["crowd_winner"] is None

        profile = profile_repository.get_by_session("sess-1")
        assert profile.total_votes == 1
        assert profile.total_bets_placed == 0
        assert profile.debate_points == 1000

    def test_vote_with_wager(self, market_service, profile_repository, debate):
        result = market_service.cast_vote(TEST_DEBATE_ID, "sess-1", "pro", wager_amount=50)

        assert result.success
        assert result.value["bet"].success
        assert result.value["vote_id"] == result.value["bet"].vote_id
        profile = profile_repository.get_by_session("sess-1")
        assert profile.total_votes == 1
        assert profile.debate_points == 950

    def test_rejected_wager_is_not_counted(self, market_service, debate_repository, debate):
        result = market_service.cast_vote(TEST_DEBATE_ID, "sess-1", "pro", wager_amount=5)
        assert not result.success
        assert result.error_code == error_codes.VALIDATION_ERROR
        assert debate_repository.get_by_id(TEST_DEBATE_ID).total_crowd_votes == 0

    def test_duplicate_vote(self, market_service, debate_repository, debate):
        market_service.cast_vote(TEST_DEBATE_ID, "sess-1", "pro")
        result = market_service.cast_vote(TEST_DEBATE_ID, "sess-1", "con")
        assert result.error_code == error_codes.ALREADY_VOTED
        assert debate_repository.get_by_id(TEST_DEBATE_ID).total_crowd_votes == 1

    def test_invalid_and_negative(self, market_service, debate):
        assert market_service.cast_vote(TEST_DEBATE_ID, "s", "yes").error_code == error_codes.INVALID_OUTCOME
        assert (
            market_service.cast_vote(TEST_DEBATE_ID, "s", "pro", wager_amount=-1).error_code
            == error_codes.VALIDATION_ERROR
        )

    def test_vote_on_closed_debate(self, market_service, debate_repository, debate):
        debate_repository.complete(TEST_DEBATE_ID, "pro", None, None)
        assert market_service.cast_vote(TEST_DEBATE_ID, "s", "pro").error_code == error_codes.STATE_ERROR

    def test_crowd_winner_after_threshold(self, market_service, debate_repository, debate):
        votes = ["pro"] * 6 + ["con"] * 3
        for i, vote in enumerate(votes):
            result = market_service.cast_vote(TEST_DEBATE_ID, f"voter-{i}", vote)
        assert result.value["crowd_winner"] is None

        result = market_service.cast_vote(TEST_DEBATE_ID, "voter-last", "con")
        assert result.value["crowd_votes"] == {"pro": 6, "con": 4, "tie": 0}
        assert result.value["crowd_winner"] == "pro"
        assert debate_repository.get_by_id(TEST_DEBATE_ID).crowd_winner == "pro"
