"""
Tests for settling wagers once a debate is resolved.
"""

import logging
from unittest.mock import patch

import pytest

from services import error_codes
from tests.conftest import TEST_DEBATE_ID


@pytest.fixture
def seeded_bets(market_service, debate):
    """Four wagers and one plain vote on the test debate."""
    bets = {
        "a": market_service.place_bet(TEST_DEBATE_ID, "a", "pro", 100),  # 2.0
        "b": market_service.place_bet(TEST_DEBATE_ID, "b", "con", 50),  # 10.0
        "c": market_service.place_bet(TEST_DEBATE_ID, "c", "pro", 100),  # 1.43
        "d": market_service.place_bet(TEST_DEBATE_ID, "d", "tie", 20),  # 15.0
    }
    market_service.cast_vote(TEST_DEBATE_ID, "voter", "pro")
    return bets


class TestDistributePayout:
    def test_odds_snapshots(self, seeded_bets):
        assert [seeded_bets[s].odds_at_bet for s in "abcd"] == [2.0, 10.0, 1.43, 15.0]

    def test_winners_paid_at_snapshot_odds(self, market_service, profile_repository, seeded_bets):
        result = market_service.distribute_payout(TEST_DEBATE_ID, "pro")

        assert result.success
        summary = result.value
        assert summary["settled"] == 4
        assert summary["winners"] == 2
        assert summary["total_paid"] == 343
        assert summary["failed_vote_ids"] == []

        balances = {s: profile_repository.get_by_session(s).debate_points for s in "abcd"}
        assert balances == {"a": 1100, "b": 950, "c": 1043, "d": 980}

    def test_votes_marked(self, market_service, vote_repository, seeded_bets):
        market_service.distribute_payout(TEST_DEBATE_ID, "pro")

        a = vote_repository.get_vote(TEST_DEBATE_ID, "a")
        b = vote_repository.get_vote(TEST_DEBATE_ID, "b")
        assert (a.was_correct, a.payout_amount, a.profit) == (True, 200, 100)
        assert (b.was_correct, b.payout_amount, b.profit) == (False, 0, -50)
        # Plain votes are not part of the market
        assert vote_repository.get_vote(TEST_DEBATE_ID, "voter").was_correct is None

    def test_tie_outcome_pays_tie_bettors(self, market_service, profile_repository, seeded_bets):
        result = market_service.distribute_payout(TEST_DEBATE_ID, "tie")
        assert result.value["winners"] == 1
        assert result.value["total_paid"] == 300
        assert profile_repository.get_by_session("d").debate_points == 1280
        assert profile_repository.get_by_session("a").debate_points == 900

    def test_second_run_pays_nothing(self, market_service, profile_repository, seeded_bets):
        market_service.distribute_payout(TEST_DEBATE_ID, "pro")
        again = market_service.distribute_payout(TEST_DEBATE_ID, "pro")

        assert again.success
        assert again.value["settled"] == 0
        assert again.value["skipped"] == 4
        assert again.value["total_paid"] == 0
        assert profile_repository.get_by_session("a").debate_points == 1100

    def test_profile_counters_updated(self, market_service, profile_repository, seeded_bets):
        market_service.distribute_payout(TEST_DEBATE_ID, "pro")
        a = profile_repository.get_by_session("a")
        b = profile_repository.get_by_session("b")
        assert (a.total_bets_won, a.correct_predictions, a.total_points_won) == (1, 1, 200)
        assert (b.total_bets_won, b.correct_predictions, b.total_points_won) == (0, 0, 0)

    def test_no_wagers(self, market_service, debate):
        result = market_service.distribute_payout(TEST_DEBATE_ID, "con")
        assert result.success
        assert result.value["settled"] == 0

    def test_invalid_winner(self, market_service, seeded_bets):
        result = market_service.distribute_payout(TEST_DEBATE_ID, "draw")
        assert result.error_code == error_codes.INVALID_OUTCOME


class TestPartialFailure:
    def test_failed_vote_reported_and_retry_finishes(
        self, market_service, vote_repository, profile_repository, seeded_bets
    ):
        failing_vote_id = seeded_bets["c"].vote_id
        original = vote_repository.resolve_vote_atomic

        def flaky(vote_id, *args, **kwargs):
            if vote_id == failing_vote_id:
                raise RuntimeError("disk I/O error")
            return original(vote_id, *args, **kwargs)

        with patch.object(vote_repository, "resolve_vote_atomic", side_effect=flaky):
            result = market_service.distribute_payout(TEST_DEBATE_ID, "pro")

        assert not result.success
        assert result.error_code == error_codes.RESOLUTION_FAILED
        assert result.value["failed_vote_ids"] == [failing_vote_id]
        assert result.value["settled"] == 3
        assert profile_repository.get_by_session("a").debate_points == 1100
        assert profile_repository.get_by_session("c").debate_points == 900

        retry = market_service.distribute_payout(TEST_DEBATE_ID, "pro")
        assert retry.success
        assert retry.value["settled"] == 1
        assert retry.value["skipped"] == 3
        assert profile_repository.get_by_session("a").debate_points == 1100
        assert profile_repository.get_by_session("c").debate_points == 1043

    def test_failed_vote_logged_with_traceback(self, market_service, vote_repository, seeded_bets, caplog):
        with patch.object(vote_repository, "resolve_vote_atomic", side_effect=RuntimeError("disk I/O error")):
            with caplog.at_level(logging.ERROR, logger="arena"):
                market_service.distribute_payout(TEST_DEBATE_ID, "pro")

        failures = [r for r in caplog.records if r.getMessage().startswith("Payout failed")]
        assert failures
        assert all(r.exc_info is not None for r in failures)
        assert "disk I/O error" in caplog.text


class TestSuperforecaster:
    def _bet_on_debates(self, market_service, make_debate, session, count, prefix):
        ids = []
        for i in range(count):
            debate_id = f"{prefix}-{i}"
            make_debate(debate_id)
            assert market_service.place_bet(debate_id, session, "pro", 10).success
            ids.append(debate_id)
        return ids

    def _settle(self, market_service, debate_ids, correct):
        awarded = []
        for i, debate_id in enumerate(debate_ids):
            winner = "pro" if i >= len(debate_ids) - correct else "con"
            result = market_service.distribute_payout(debate_id, winner)
            awarded.extend(result.value["new_superforecasters"])
        return awarded

    def test_eight_of_ten_earns_badge(self, market_service, profile_repository, make_debate):
        ids = self._bet_on_debates(market_service, make_debate, "sharp", 10, "sf")
        awarded = self._settle(market_service, ids, correct=8)

        profile = profile_repository.get_by_session("sharp")
        assert profile.is_superforecaster
        assert awarded == [profile.user_id]

    def test_seven_of_ten_does_not(self, market_service, profile_repository, make_debate):
        ids = self._bet_on_debates(market_service, make_debate, "close", 10, "sf")
        awarded = self._settle(market_service, ids, correct=7)

        assert not profile_repository.get_by_session("close").is_superforecaster
        assert awarded == []

    def test_too_few_bets(self, market_service, profile_repository, make_debate):
        ids = self._bet_on_debates(market_service, make_debate, "new", 9, "sf")
        self._settle(market_service, ids, correct=9)
        assert not profile_repository.get_by_session("new").is_superforecaster

    def test_badge_never_revoked(self, market_service, profile_repository, make_debate):
        ids = self._bet_on_debates(market_service, make_debate, "sharp", 10, "sf")
        self._settle(market_service, ids, correct=10)
        assert profile_repository.get_by_session("sharp").is_superforecaster

        later = self._bet_on_debates(market_service, make_debate, "sharp", 5, "later")
        self._settle(market_service, later, correct=0)

        profile = profile_repository.get_by_session("sharp")
        assert profile.accuracy < 80
        assert profile.is_superforecaster
