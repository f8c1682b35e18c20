"""
Tests for the Glicko-2 rating system used for debating models.
"""

import math

import pytest

from config import CALIBRATION_RD_THRESHOLD, MAX_RD, RD_DECAY_CONSTANT, RD_DECAY_GRACE_PERIOD_WEEKS
from domain.models.debater_model import RatingSnapshot
from rating_system import ArenaRatingSystem


NEW_MODEL = RatingSnapshot(1500.0, 350.0, 0.06)


class TestScoreForSide:
    @pytest.mark.parametrize(
        "side,winner,expected",
        [
            ("pro", "pro", 1.0),
            ("con", "pro", 0.0),
            ("pro", "con", 0.0),
            ("con", "con", 1.0),
            ("pro", "tie", 0.5),
            ("con", "tie", 0.5),
        ],
    )
    def test_scores(self, side, winner, expected):
        assert ArenaRatingSystem.score_for_side(side, winner) == expected

    def test_invalid_winner_raises(self):
        with pytest.raises(ValueError):
            ArenaRatingSystem.score_for_side("pro", "draw")

    def test_invalid_side_raises(self):
        with pytest.raises(ValueError):
            ArenaRatingSystem.score_for_side("tie", "pro")


class TestDebateUpdates:
    """Both sides are updated from pre-debate snapshots."""

    def test_initial_snapshot(self, rating_system):
        assert rating_system.initial_snapshot() == NEW_MODEL

    def test_winner_gains_loser_drops(self, rating_system):
        new_pro, new_con = rating_system.update_ratings_after_debate(NEW_MODEL, NEW_MODEL, "pro")
        assert new_pro.rating > 1500
        assert new_con.rating < 1500

    def test_equal_models_move_symmetrically(self, rating_system):
        new_pro, new_con = rating_system.update_ratings_after_debate(NEW_MODEL, NEW_MODEL, "con")
        assert (new_con.rating - 1500) == pytest.approx(1500 - new_pro.rating)
        assert new_pro.rd == pytest.approx(new_con.rd)

    def test_rd_never_increases_after_debate(self, rating_system):
        pro = RatingSnapshot(1600.0, 80.0, 0.06)
        con = RatingSnapshot(1400.0, 300.0, 0.06)
        for winner in ("pro", "con", "tie"):
            new_pro, new_con = rating_system.update_ratings_after_debate(pro, con, winner)
            assert new_pro.rd <= pro.rd
            assert new_con.rd <= con.rd

    def test_new_models_lose_uncertainty(self, rating_system):
        new_pro, new_con = rating_system.update_ratings_after_debate(NEW_MODEL, NEW_MODEL, "tie")
        assert new_pro.rd < 350
        assert new_con.rd < 350

    def test_tie_between_equals_keeps_ratings(self, rating_system):
        new_pro, new_con = rating_system.update_ratings_after_debate(NEW_MODEL, NEW_MODEL, "tie")
        assert new_pro.rating == pytest.approx(1500.0)
        assert new_con.rating == pytest.approx(1500.0)

    def test_tie_favors_underdog(self, rating_system):
        strong = RatingSnapshot(1700.0, 100.0, 0.06)
        weak = RatingSnapshot(1400.0, 100.0, 0.06)
        new_strong, new_weak = rating_system.update_ratings_after_debate(strong, weak, "tie")
        assert new_strong.rating < strong.rating
        assert new_weak.rating > weak.rating

    def test_upset_moves_more_than_expected_win(self, rating_system):
        strong = RatingSnapshot(1700.0, 100.0, 0.06)
        weak = RatingSnapshot(1400.0, 100.0, 0.06)
        expected_win, _ = rating_system.update_ratings_after_debate(strong, weak, "pro")
        _, upset_win = rating_system.update_ratings_after_debate(strong, weak, "con")
        assert (upset_win.rating - weak.rating) > (expected_win.rating - strong.rating)

    def test_side_order_does_not_matter(self, rating_system):
        a = RatingSnapshot(1620.0, 120.0, 0.06)
        b = RatingSnapshot(1480.0, 200.0, 0.07)
        new_a, new_b = rating_system.update_ratings_after_debate(a, b, "pro")
        swapped_b, swapped_a = rating_system.update_ratings_after_debate(b, a, "con")
        assert new_a == swapped_a
        assert new_b == swapped_b

    def test_invalid_winner_rejected(self, rating_system):
        with pytest.raises(ValueError):
            rating_system.update_ratings_after_debate(NEW_MODEL, NEW_MODEL, "nobody")

    def test_inputs_not_mutated(self, rating_system):
        pro = RatingSnapshot(1500.0, 200.0, 0.06)
        rating_system.update_ratings_after_debate(pro, NEW_MODEL, "pro")
        assert pro == RatingSnapshot(1500.0, 200.0, 0.06)


class TestWinProbability:
    def test_equal_ratings_even(self, rating_system):
        assert rating_system.win_probability(NEW_MODEL, NEW_MODEL) == pytest.approx(0.5)

    def test_higher_rating_favored(self, rating_system):
        strong = RatingSnapshot(1700.0, 100.0, 0.06)
        weak = RatingSnapshot(1500.0, 100.0, 0.06)
        p = rating_system.win_probability(strong, weak)
        assert 0.5 < p < 1.0
        assert p + rating_system.win_probability(weak, strong) == pytest.approx(1.0)

    def test_opponent_uncertainty_pulls_toward_even(self, rating_system):
        strong = RatingSnapshot(1700.0, 100.0, 0.06)
        certain = RatingSnapshot(1500.0, 50.0, 0.06)
        uncertain = RatingSnapshot(1500.0, 350.0, 0.06)
        assert rating_system.win_probability(strong, certain) > rating_system.win_probability(
            strong, uncertain
        )


class TestRdDecay:
    """Idle models become more uncertain over time."""

    def test_rd_decay_grace_and_floor_weeks(self):
        rd_start = 80.0
        grace_days = RD_DECAY_GRACE_PERIOD_WEEKS * 7
        assert ArenaRatingSystem.apply_rd_decay(rd_start, grace_days - 1) == rd_start

        weeks = grace_days // 7
        expected = min(MAX_RD, math.sqrt(rd_start**2 + (RD_DECAY_CONSTANT**2) * weeks))
        assert ArenaRatingSystem.apply_rd_decay(rd_start, grace_days) == pytest.approx(expected)

        # Partial weeks are floored
        assert ArenaRatingSystem.apply_rd_decay(rd_start, grace_days + 6) == pytest.approx(expected)

    def test_rd_decay_cap_and_already_max(self):
        assert ArenaRatingSystem.apply_rd_decay(MAX_RD, 365) == MAX_RD
        assert ArenaRatingSystem.apply_rd_decay(340.0, 70) == MAX_RD

    def test_no_idle_time_no_decay(self):
        assert ArenaRatingSystem.apply_rd_decay(120.0, 0) == 120.0


class TestDisplayHelpers:
    def test_calibration_threshold(self):
        assert ArenaRatingSystem.is_calibrated(CALIBRATION_RD_THRESHOLD)
        assert not ArenaRatingSystem.is_calibrated(CALIBRATION_RD_THRESHOLD + 0.1)

    def test_uncertainty_percentage(self, rating_system):
        assert rating_system.get_rating_uncertainty_percentage(MAX_RD) == 100.0
        assert rating_system.get_rating_uncertainty_percentage(MAX_RD / 2) == 50.0

    def test_rating_to_display(self, rating_system):
        assert rating_system.rating_to_display(1612.6) == 1613
