"""
Quorum thresholds: exact integer comparison, inclusive at the boundary.
"""

import pytest

from diamond_dao.governance import (
    LowMajorityTreasury,
    QuorumTier,
    VotingResult,
    high_majority_quorum,
    low_majority_quorum,
    quorum_reached,
)

from helpers import ETHER


def result(stake_yes, stake_no, count_yes=1, count_no=1):
    return VotingResult(count_yes=count_yes, count_no=count_no, stake_yes=stake_yes, stake_no=stake_no)


class TestLowMajorityQuorum:
    """Yes - No >= total / 3"""

    def test_exact_third_is_reached(self):
        assert low_majority_quorum(result(666, 333), 999)

    def test_just_below_third_fails(self):
        assert not low_majority_quorum(result(666, 334), 1000)

    def test_no_votes_with_stake_fails(self):
        assert not low_majority_quorum(result(0, 0, 0, 0), 1000)

    def test_vote_counts_do_not_matter(self):
        assert low_majority_quorum(result(700, 0, count_yes=1, count_no=50), 1000)

    def test_large_amounts_exact(self):
        assert low_majority_quorum(result(1000 * ETHER, 500 * ETHER), 1500 * ETHER)
        assert not low_majority_quorum(result(100 * ETHER, 1900 * ETHER), 2000 * ETHER)


class TestHighMajorityQuorum:
    """Yes - No >= total / 2"""

    def test_exact_half_is_reached(self):
        assert high_majority_quorum(result(750, 250), 1000)

    def test_below_half_fails(self):
        assert not high_majority_quorum(result(700, 300), 1000)

    def test_low_passing_margin_fails_high(self):
        assert low_majority_quorum(result(666, 333), 999)
        assert not high_majority_quorum(result(666, 333), 999)


class TestQuorumDispatch:

    @pytest.mark.parametrize("tier,expected", [(QuorumTier.LOW, True), (QuorumTier.HIGH, False)])
    def test_tier_selects_threshold(self, tier, expected):
        assert quorum_reached(tier, result(700, 300), 1000) is expected

    def test_low_majority_pot_view(self):
        assert LowMajorityTreasury.quorum_reached(result(1000 * ETHER, 500 * ETHER), 1500 * ETHER)
        assert not LowMajorityTreasury.quorum_reached(result(100 * ETHER, 1900 * ETHER), 2000 * ETHER)
