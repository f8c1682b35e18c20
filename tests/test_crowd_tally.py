"""
Tests for deriving the crowd verdict from a vote tally.
"""

import pytest

from domain.services.crowd_tally_service import determine_crowd_winner


class TestCrowdWinner:
    def test_below_threshold_has_no_winner(self):
        assert determine_crowd_winner(9, 0, 0) is None

    def test_threshold_is_inclusive(self):
        assert determine_crowd_winner(10, 0, 0) == "pro"

    @pytest.mark.parametrize(
        "pro,con,tie,expected",
        [
            (6, 4, 0, "pro"),
            (3, 7, 0, "con"),
            (5, 5, 0, "tie"),  # tie for first
            (2, 2, 6, "tie"),  # tie votes lead
            (4, 2, 4, "tie"),  # pro level with tie
            (4, 5, 1, "con"),
        ],
    )
    def test_strict_plurality(self, pro, con, tie, expected):
        assert determine_crowd_winner(pro, con, tie) == expected

    def test_custom_threshold(self):
        assert determine_crowd_winner(2, 1, 0, min_votes=3) == "pro"
        assert determine_crowd_winner(2, 0, 0, min_votes=3) is None
