"""
Diamond DAO Governance

Provides:
  - QuorumTier / low_majority_quorum / high_majority_quorum   (quorum.py)
  - PhaseKind / Phase / PhaseScheduler                         (phases.py)
  - ProposalState / ProposalType / Proposal / ProposalRegistry (proposals.py)
  - ChangeableParameter / ProposalClassifier                   (classifier.py)
  - Vote / VoteRecord / VotingResult / VotingLedger            (voting.py)
  - Statistics / Treasury                                      (treasury.py)
  - ReentrancyGuard / ExecutionRouter                          (execution.py)
  - LowMajorityTreasury                                        (low_majority.py)
  - GovernanceState                                            (state.py)
  - DiamondDao                                                 (dao.py)
"""

from .quorum import (
    QuorumTier,
    high_majority_quorum,
    low_majority_quorum,
    quorum_reached,
)
from .phases import (
    Phase,
    PhaseKind,
    PhaseScheduler,
    UnavailableInCurrentPhase,
)
from .proposals import (
    NewProposalsLimitExceeded,
    OnlyProposer,
    OpenProposalMajority,
    Proposal,
    ProposalAlreadyExist,
    ProposalNotFound,
    ProposalRegistry,
    ProposalState,
    ProposalType,
    UnexpectedProposalState,
    UnfinalizedProposalsExist,
    hash_proposal,
)
from .classifier import (
    ChangeableParameter,
    Classification,
    NewValueOutOfRange,
    ProposalClassifier,
    classify,
)
from .voting import (
    AlreadyVoted,
    NoVoteFound,
    OnlyValidators,
    SameVote,
    Vote,
    VoteRecord,
    VotingLedger,
    VotingResult,
)
from .treasury import Statistics, Treasury
from .execution import (
    ExecutionRouter,
    FailedInnerCall,
    OutsideExecutionWindow,
    ReentrancyGuard,
    ReentrancyGuardReentrantCall,
)
from .low_majority import LowMajorityTreasury, OnlyOwner
from .state import GovernanceState
from .dao import DiamondDao

__all__ = [
    # Quorum
    "QuorumTier",
    "high_majority_quorum",
    "low_majority_quorum",
    "quorum_reached",
    # Phases
    "Phase",
    "PhaseKind",
    "PhaseScheduler",
    "UnavailableInCurrentPhase",
    # Proposals
    "NewProposalsLimitExceeded",
    "OnlyProposer",
    "OpenProposalMajority",
    "Proposal",
    "ProposalAlreadyExist",
    "ProposalNotFound",
    "ProposalRegistry",
    "ProposalState",
    "ProposalType",
    "UnexpectedProposalState",
    "UnfinalizedProposalsExist",
    "hash_proposal",
    # Classifier
    "ChangeableParameter",
    "Classification",
    "NewValueOutOfRange",
    "ProposalClassifier",
    "classify",
    # Voting
    "AlreadyVoted",
    "NoVoteFound",
    "OnlyValidators",
    "SameVote",
    "Vote",
    "VoteRecord",
    "VotingLedger",
    "VotingResult",
    # Treasury
    "Statistics",
    "Treasury",
    # Execution
    "ExecutionRouter",
    "FailedInnerCall",
    "OutsideExecutionWindow",
    "ReentrancyGuard",
    "ReentrancyGuardReentrantCall",
    # Low-majority pot
    "LowMajorityTreasury",
    "OnlyOwner",
    # Facade
    "GovernanceState",
    "DiamondDao",
]
