"""
Quorum Calculator

Pure threshold checks on a stake tally. The Yes-minus-No stake margin must
reach a fraction of the total stake:

  - Low majority:  stake_yes - stake_no >= total / 3
  - High majority: stake_yes - stake_no >= total / 2

Both sides are scaled by 6 so the comparison is exact integer arithmetic and
boundary-inclusive.
"""

from enum import IntEnum

from ..constants import HIGH_MAJORITY_NUMERATOR, LOW_MAJORITY_NUMERATOR, QUORUM_SCALE


class QuorumTier(IntEnum):
    """Required majority of a proposal."""
    LOW = 0
    HIGH = 1


def _margin_reached(stake_yes: int, stake_no: int, total_staked: int, numerator: int) -> bool:
    return QUORUM_SCALE * stake_yes >= QUORUM_SCALE * stake_no + numerator * total_staked


def low_majority_quorum(result, total_staked: int) -> bool:
    """True when Yes exceeds No by at least a third of *total_staked*."""
    return _margin_reached(result.stake_yes, result.stake_no, total_staked, LOW_MAJORITY_NUMERATOR)


def high_majority_quorum(result, total_staked: int) -> bool:
    """True when Yes exceeds No by at least half of *total_staked*."""
    return _margin_reached(result.stake_yes, result.stake_no, total_staked, HIGH_MAJORITY_NUMERATOR)


def quorum_reached(tier: QuorumTier, result, total_staked: int) -> bool:
    if tier == QuorumTier.HIGH:
        return high_majority_quorum(result, total_staked)
    return low_majority_quorum(result, total_staked)
