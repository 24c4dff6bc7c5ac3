"""
Stake-Weighted Voting Ledger

Implements:
  - One vote per validator per proposal record (Yes / No / Abstain)
  - Vote changes while the proposal is Active
  - Live tally from current stake while Active; abstain is excluded
  - Tally freeze (with the total staked amount) when voting ends
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional

from ..chain.base import Clock, StakingProvider, ValidatorRoster
from ..exceptions import DaoException, InvalidArgument
from ..logger import get_logger
from .events import (
    CHANGE_VOTE,
    SUBMIT_VOTE,
    SUBMIT_VOTE_WITH_REASON,
    EventEmitter,
)
from .phases import PhaseKind, PhaseScheduler, UnavailableInCurrentPhase
from .proposals import Proposal, ProposalState, UnexpectedProposalState

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class OnlyValidators(DaoException):
    def __init__(self, caller: str):
        self.caller = caller
        super().__init__(f"{caller} is not an active validator")


class AlreadyVoted(DaoException):
    def __init__(self, voter: str, proposal_id: int):
        self.voter = voter
        self.proposal_id = proposal_id
        super().__init__(f"{voter} already voted on #{proposal_id:x}")


class NoVoteFound(DaoException):
    def __init__(self, voter: str, proposal_id: int):
        self.voter = voter
        self.proposal_id = proposal_id
        super().__init__(f"{voter} has not voted on #{proposal_id:x}")


class SameVote(DaoException):
    def __init__(self, voter: str, proposal_id: int, choice: "Vote"):
        self.voter = voter
        self.proposal_id = proposal_id
        self.choice = choice
        super().__init__(f"{voter} already voted {choice.name} on #{proposal_id:x}")


# ══════════════════════════════════════════════════════════════════════
#  VOTE DATA
# ══════════════════════════════════════════════════════════════════════

class Vote(IntEnum):
    ABSTAIN = 0
    NO = 1
    YES = 2


@dataclass
class VoteRecord:
    """A validator's vote on one proposal record."""
    voter: str
    choice: Vote
    timestamp: int
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "voter": self.voter,
            "vote": self.choice.name,
            "timestamp": self.timestamp,
            "reason": self.reason,
        }


@dataclass
class VotingResult:
    """Vote counts and stake behind Yes / No."""
    count_yes: int = 0
    count_no: int = 0
    stake_yes: int = 0
    stake_no: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "countYes": self.count_yes,
            "countNo": self.count_no,
            "stakeYes": self.stake_yes,
            "stakeNo": self.stake_no,
        }


def _as_vote(choice) -> Vote:
    try:
        return Vote(choice)
    except ValueError as e:
        raise InvalidArgument(f"Unknown vote {choice}") from e


# ══════════════════════════════════════════════════════════════════════
#  VOTING LEDGER
# ══════════════════════════════════════════════════════════════════════

class VotingLedger:
    """
    Vote bookkeeping keyed by proposal arena handle.

    Stake and validator status are read from the collaborators on every call;
    nothing is cached between calls.
    """

    def __init__(
        self,
        state,
        events: EventEmitter,
        scheduler: PhaseScheduler,
        staking: StakingProvider,
        validators: ValidatorRoster,
        clock: Clock,
    ):
        self.state = state
        self.events = events
        self.scheduler = scheduler
        self.staking = staking
        self.validators = validators
        self.clock = clock

    def _votable(self, proposal_id: int) -> Proposal:
        proposal = self.state.proposal(proposal_id)
        self.scheduler.require_phase(PhaseKind.VOTING)
        # Canceled, or voting on it already ended
        if proposal.state != ProposalState.ACTIVE:
            raise UnavailableInCurrentPhase(self.scheduler.phase.kind)
        return proposal

    def _require_validator(self, account: str) -> None:
        if not self.validators.is_active_validator(account) or self.validators.is_banned(account):
            raise OnlyValidators(account)

    # ── Casting ───────────────────────────────────────────────────────

    def vote(self, sender: str, proposal_id: int, choice, reason: Optional[str] = None) -> None:
        self._votable(proposal_id)
        self._require_validator(sender)
        choice = _as_vote(choice)

        handle = self.state.handle_of(proposal_id)
        records = self.state.votes.setdefault(handle, {})
        if sender in records:
            raise AlreadyVoted(sender, proposal_id)

        records[sender] = VoteRecord(
            voter=sender,
            choice=choice,
            timestamp=self.clock.now(),
            reason=reason or "",
        )
        self.state.voters.setdefault(handle, []).append(sender)

        logger.debug(f"{sender} voted {choice.name} on Proposal #{proposal_id:x}")
        if reason is None:
            self.events.emit(SUBMIT_VOTE, voter=sender, proposalId=proposal_id, vote=int(choice))
        else:
            self.events.emit(
                SUBMIT_VOTE_WITH_REASON, voter=sender, proposalId=proposal_id, vote=int(choice), reason=reason,
            )

    def vote_with_reason(self, sender: str, proposal_id: int, choice, reason: str) -> None:
        self.vote(sender, proposal_id, choice, reason=reason)

    def change_vote(self, sender: str, proposal_id: int, choice, reason: str) -> None:
        self._votable(proposal_id)
        self._require_validator(sender)
        choice = _as_vote(choice)

        handle = self.state.handle_of(proposal_id)
        record = self.state.votes.get(handle, {}).get(sender)
        if record is None:
            raise NoVoteFound(sender, proposal_id)
        if record.choice == choice:
            raise SameVote(sender, proposal_id, choice)

        record.choice = choice
        record.reason = reason
        record.timestamp = self.clock.now()

        logger.debug(f"{sender} changed vote to {choice.name} on Proposal #{proposal_id:x}")
        self.events.emit(CHANGE_VOTE, voter=sender, proposalId=proposal_id, vote=int(choice), reason=reason)

    # ── Tallies ───────────────────────────────────────────────────────

    def tally(self, handle: int) -> VotingResult:
        """Recompute a result from current stake."""
        result = VotingResult()
        records = self.state.votes.get(handle, {})
        for voter in self.state.voters.get(handle, []):
            record = records[voter]
            if record.choice == Vote.YES:
                result.count_yes += 1
                result.stake_yes += self.staking.stake_of(voter)
            elif record.choice == Vote.NO:
                result.count_no += 1
                result.stake_no += self.staking.stake_of(voter)
        return result

    def count_votes(self, proposal_id: int) -> VotingResult:
        """
        Live tally while Active, the frozen result afterwards.

        Raises UnexpectedProposalState for Created and Canceled proposals.
        """
        proposal = self.state.proposal(proposal_id)
        if proposal.state in (ProposalState.CREATED, ProposalState.CANCELED):
            raise UnexpectedProposalState(proposal_id, proposal.state)

        handle = self.state.handle_of(proposal_id)
        if proposal.state == ProposalState.ACTIVE:
            return self.tally(handle)
        frozen = self.state.results[handle]
        return VotingResult(**vars(frozen))

    def freeze(self, proposal: Proposal) -> VotingResult:
        """Store the final tally and the total staked amount for *proposal*."""
        handle = self.state.handle_of(proposal.id)
        result = self.tally(handle)
        self.state.results[handle] = result
        self.state.total_staked_snapshots[handle] = self.staking.total_staked()
        logger.info(
            f"Proposal #{proposal.id:x} tally frozen: yes {result.count_yes} ({result.stake_yes}), "
            f"no {result.count_no} ({result.stake_no})"
        )
        return result

    def voters(self, proposal_id: int) -> List[str]:
        return list(self.state.voters.get(self.state.handle_of(proposal_id), []))

    def get_vote(self, proposal_id: int, voter: str) -> Optional[VoteRecord]:
        return self.state.votes.get(self.state.handle_of(proposal_id), {}).get(voter)
