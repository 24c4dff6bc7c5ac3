"""
Governance Events

Event names emitted by the DAO and the low-majority pot, and the emitter
that writes them to the ledger log.
"""

from typing import Any

from ..chain.base import Ledger, LogEntry
from ..logger import get_logger

logger = get_logger(__name__)


PROPOSAL_CREATED = "ProposalCreated"
PROPOSAL_CANCELED = "ProposalCanceled"
PROPOSAL_EXECUTED = "ProposalExecuted"
SUBMIT_VOTE = "SubmitVote"
SUBMIT_VOTE_WITH_REASON = "SubmitVoteWithReason"
CHANGE_VOTE = "ChangeVote"
VOTING_FINALIZED = "VotingFinalized"
SWITCH_DAO_PHASE = "SwitchDaoPhase"
SET_CREATE_PROPOSAL_FEE = "SetCreateProposalFee"
SET_IS_CORE_CONTRACT = "SetIsCoreContract"
SET_CHANGEABLE_PARAMETERS = "SetChangeAbleParameters"
LOW_MAJORITY_PROPOSAL_EXECUTED = "LowMajorityProposalExecuted"
SET_MAIN_DAO = "SetMainDao"


class EventEmitter:
    """Writes events on behalf of one contract address."""

    def __init__(self, ledger: Ledger, emitter: str):
        self.ledger = ledger
        self.emitter = emitter

    def emit(self, name: str, **args: Any) -> LogEntry:
        entry = self.ledger.emit(self.emitter, name, **args)
        logger.debug(f"Event {name} {args}")
        return entry
