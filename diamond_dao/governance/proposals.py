"""
Governance Proposals

Proposal types, lifecycle states and the registry that creates, cancels,
activates and finalizes proposals.

Lifecycle:

    CREATED ──► ACTIVE ──► VOTING_FINISHED ──► ACCEPTED ──► EXECUTED
       │                          │
       └──► CANCELED              └──► DECLINED

Records are append-only. A proposal id may be proposed again once its latest
record is resolved (Canceled, Declined or Executed); the new record gets a new
arena handle and its own votes.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional, Sequence

from eth_abi import encode
from eth_utils import keccak

from ..abi import normalize_address
from ..exceptions import DaoException, InsufficientFunds, InvalidArgument
from ..logger import get_logger
from .events import (
    PROPOSAL_CANCELED,
    PROPOSAL_CREATED,
    VOTING_FINALIZED,
    EventEmitter,
)
from .phases import PhaseKind, PhaseScheduler
from .quorum import QuorumTier, quorum_reached

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class UnexpectedProposalState(DaoException):
    """Operation is not allowed in the proposal's current state."""

    def __init__(self, proposal_id: int, state: "ProposalState"):
        self.proposal_id = proposal_id
        self.state = ProposalState(state)
        super().__init__(f"Proposal #{proposal_id:x} is {self.state.name}")


class ProposalAlreadyExist(DaoException):
    def __init__(self, proposal_id: int):
        self.proposal_id = proposal_id
        super().__init__(f"Proposal #{proposal_id:x} already exists")


class ProposalNotFound(DaoException):
    def __init__(self, proposal_id: int):
        self.proposal_id = proposal_id
        super().__init__(f"Proposal #{proposal_id:x} not found")


class OnlyProposer(DaoException):
    def __init__(self, caller: str, proposal_id: int):
        self.caller = caller
        self.proposal_id = proposal_id
        super().__init__(f"{caller} is not the proposer of #{proposal_id:x}")


class UnfinalizedProposalsExist(DaoException):
    """Proposals of an earlier cycle still wait for finalize()."""

    def __init__(self, pending: Sequence[int]):
        self.pending = list(pending)
        super().__init__(f"{len(self.pending)} proposal(s) awaiting finalization")


class NewProposalsLimitExceeded(DaoException):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"At most {limit} new proposals per phase")


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class ProposalState(IntEnum):
    CREATED = 0
    CANCELED = 1
    ACTIVE = 2
    VOTING_FINISHED = 3
    ACCEPTED = 4
    DECLINED = 5
    EXECUTED = 6


class ProposalType(IntEnum):
    OPEN_LOW = 0                    # Arbitrary calls, paid from the low-majority pot
    CONTRACT_UPGRADE = 1            # Touches a core contract
    ECOSYSTEM_PARAMETER_CHANGE = 2  # Steps a registered parameter
    OPEN_HIGH = 3                   # Arbitrary calls, paid from the governance pot


class OpenProposalMajority(IntEnum):
    LOW = 0
    HIGH = 1


_VALID_TRANSITIONS: Dict[ProposalState, set] = {
    ProposalState.CREATED:         {ProposalState.CANCELED, ProposalState.ACTIVE},
    ProposalState.ACTIVE:          {ProposalState.VOTING_FINISHED},
    ProposalState.VOTING_FINISHED: {ProposalState.ACCEPTED, ProposalState.DECLINED},
    ProposalState.ACCEPTED:        {ProposalState.EXECUTED},
    # Terminal states
    ProposalState.CANCELED:        set(),
    ProposalState.DECLINED:        set(),
    ProposalState.EXECUTED:        set(),
}

RESOLVED_STATES = frozenset({
    ProposalState.CANCELED,
    ProposalState.DECLINED,
    ProposalState.EXECUTED,
})

_HIGH_TIER_TYPES = frozenset({
    ProposalType.CONTRACT_UPGRADE,
    ProposalType.ECOSYSTEM_PARAMETER_CHANGE,
    ProposalType.OPEN_HIGH,
})


def hash_proposal(
    targets: Sequence[str],
    values: Sequence[int],
    payloads: Sequence[bytes],
    description: str,
) -> int:
    """
    Proposal id: keccak256(abi.encode(targets, values, payloads, keccak256(description))).
    """
    description_hash = keccak(text=description)
    encoded = encode(
        ['address[]', 'uint256[]', 'bytes[]', 'bytes32'],
        [list(targets), list(values), [bytes(p) for p in payloads], description_hash],
    )
    return int.from_bytes(keccak(encoded), 'big')


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class Proposal:
    """
    A governance proposal.

    Fields:
        id:                 keccak-derived identifier (see hash_proposal)
        proposer:           Account that paid the creation fee
        targets/values/payloads: Calls dispatched on execution
        created_at_phase:   Phase ordinal of creation
        fee_paid:           Creation fee, refunded when accepted
        proposal_type:      Classification made at creation
        requested_majority: Majority asked for by the proposer
        finalized_at_phase: Phase ordinal of finalize(), opens the execution window
    """
    id: int
    proposer: str
    targets: List[str]
    values: List[int]
    payloads: List[bytes]
    title: str
    description: str
    url: str
    created_at_phase: int
    fee_paid: int
    proposal_type: ProposalType
    requested_majority: OpenProposalMajority
    state: ProposalState = ProposalState.CREATED
    finalized_at_phase: Optional[int] = None
    _history: List[Dict[str, Any]] = field(default_factory=list, repr=False)

    def __post_init__(self):
        self._record_transition(ProposalState.CREATED, "created", self.created_at_phase)

    @property
    def quorum_tier(self) -> QuorumTier:
        if self.proposal_type in _HIGH_TIER_TYPES:
            return QuorumTier.HIGH
        return QuorumTier.LOW

    @property
    def is_resolved(self) -> bool:
        return self.state in RESOLVED_STATES

    @property
    def history(self) -> List[Dict[str, Any]]:
        return list(self._history)

    def _record_transition(self, new_state: ProposalState, reason: str, phase: Optional[int]):
        self._history.append({
            "from": self.state.name if self._history else "INIT",
            "to": new_state.name,
            "reason": reason,
            "phase": phase,
        })

    def require_state(self, expected: ProposalState) -> None:
        if self.state != expected:
            raise UnexpectedProposalState(self.id, self.state)

    def transition_to(self, new_state: ProposalState, reason: str = "", phase: Optional[int] = None):
        """
        Advance proposal to *new_state*.

        Raises UnexpectedProposalState on invalid transitions.
        """
        if new_state not in _VALID_TRANSITIONS.get(self.state, set()):
            raise UnexpectedProposalState(self.id, self.state)
        old = self.state
        self._record_transition(new_state, reason, phase)
        self.state = new_state
        logger.info(f"Proposal #{self.id:x} ({self.title}): {old.name} → {new_state.name} | {reason}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "proposer": self.proposer,
            "state": self.state.name,
            "targets": list(self.targets),
            "values": list(self.values),
            "payloads": ['0x' + p.hex() for p in self.payloads],
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "createdAtPhase": self.created_at_phase,
            "feePaid": self.fee_paid,
            "proposalType": self.proposal_type.name,
            "requestedMajority": self.requested_majority.name,
            "finalizedAtPhase": self.finalized_at_phase,
        }

    def __repr__(self) -> str:
        return (
            f"<Proposal #{self.id:x} '{self.title}' "
            f"type={self.proposal_type.name} state={self.state.name}>"
        )


# ══════════════════════════════════════════════════════════════════════
#  REGISTRY
# ══════════════════════════════════════════════════════════════════════

class ProposalRegistry:
    """
    Creates proposals and drives them through the state machine.

    Collaborators:
        scheduler:  phase checks and phase ordinal
        classifier: proposal type at creation
        treasury:   creation fee in, refund / forward out
        voting:     tally freeze at the end of a Voting phase
    """

    def __init__(self, state, events: EventEmitter, scheduler: PhaseScheduler, classifier, treasury, voting):
        self.state = state
        self.events = events
        self.scheduler = scheduler
        self.classifier = classifier
        self.treasury = treasury
        self.voting = voting

        scheduler.on_voting_started.append(self.activate_created)
        scheduler.on_voting_finished.append(self.finish_voting)

    # ── Creation ──────────────────────────────────────────────────────

    def propose(
        self,
        sender: str,
        targets: Sequence[str],
        values: Sequence[int],
        payloads: Sequence[bytes],
        title: str,
        description: str,
        url: str,
        majority: OpenProposalMajority,
        value: int,
    ) -> int:
        self.scheduler.require_phase(PhaseKind.PROPOSAL)

        if not targets or not (len(targets) == len(values) == len(payloads)):
            raise InvalidArgument("Targets, values and payloads must be non-empty and of equal length")
        targets = [normalize_address(target) for target in targets]
        if any(v < 0 for v in values):
            raise InvalidArgument("Call values cannot be negative")
        payloads = [bytes(p) for p in payloads]
        try:
            majority = OpenProposalMajority(majority)
        except ValueError as e:
            raise InvalidArgument(f"Unknown majority {majority}") from e

        fee = self.state.create_proposal_fee
        if value < fee:
            raise InsufficientFunds(fee, value)

        proposal_id = hash_proposal(targets, values, payloads, description)
        existing = self.state.find_proposal(proposal_id)
        if existing is not None and not existing.is_resolved:
            raise ProposalAlreadyExist(proposal_id)

        if self.state.unfinalized_proposals:
            raise UnfinalizedProposalsExist(self.state.unfinalized_proposals)

        # Counts records, so cancel-and-repropose of one id uses two slots
        if self.state.created_this_phase >= self.state.max_new_proposals:
            raise NewProposalsLimitExceeded(self.state.max_new_proposals)

        classification = self.classifier.classify(targets, payloads, majority)
        self.treasury.collect_fee(sender, value)

        proposal = Proposal(
            id=proposal_id,
            proposer=sender,
            targets=targets,
            values=[int(v) for v in values],
            payloads=payloads,
            title=title,
            description=description,
            url=url,
            created_at_phase=self.state.phase.ordinal,
            fee_paid=fee,
            proposal_type=classification.proposal_type,
            requested_majority=majority,
        )
        self.state.store_proposal(proposal)
        if proposal_id not in self.state.current_phase_proposals:
            self.state.current_phase_proposals.append(proposal_id)
        self.state.created_this_phase += 1
        self.state.statistics.total += 1

        logger.info(
            f"Proposal #{proposal_id:x} created by {sender}: '{title}' "
            f"({classification.proposal_type.name}, {len(targets)} call(s))"
        )
        self.events.emit(
            PROPOSAL_CREATED,
            proposer=sender,
            proposalId=proposal_id,
            targets=list(targets),
            values=list(proposal.values),
            payloads=list(payloads),
            title=title,
            description=description,
            url=url,
            createProposalFee=fee,
        )
        return proposal_id

    def cancel(self, sender: str, proposal_id: int, reason: str) -> None:
        proposal = self.state.proposal(proposal_id)
        if sender != proposal.proposer:
            raise OnlyProposer(sender, proposal_id)
        proposal.require_state(ProposalState.CREATED)

        proposal.transition_to(ProposalState.CANCELED, reason or "canceled by proposer", self.state.phase.ordinal)
        self.state.statistics.canceled += 1
        self.events.emit(PROPOSAL_CANCELED, proposer=sender, proposalId=proposal_id, reason=reason)

    # ── Phase hooks ───────────────────────────────────────────────────

    def activate_created(self) -> None:
        """Proposal -> Voting: every Created proposal of the ending phase becomes Active."""
        for proposal_id in self.state.current_phase_proposals:
            proposal = self.state.proposal(proposal_id)
            if proposal.state == ProposalState.CREATED:
                proposal.transition_to(ProposalState.ACTIVE, "voting started", self.state.phase.ordinal + 1)

    def finish_voting(self) -> None:
        """Voting -> Proposal: freeze tallies and queue proposals for finalize()."""
        for proposal_id in self.state.current_phase_proposals:
            proposal = self.state.proposal(proposal_id)
            if proposal.state != ProposalState.ACTIVE:
                continue
            self.voting.freeze(proposal)
            proposal.transition_to(ProposalState.VOTING_FINISHED, "voting finished", self.state.phase.ordinal)
            self.state.unfinalized_proposals.append(proposal_id)
        self.state.current_phase_proposals.clear()
        self.state.created_this_phase = 0

    # ── Finalization ──────────────────────────────────────────────────

    def finalize(self, sender: str, proposal_id: int) -> bool:
        """
        Decide a VotingFinished proposal on its frozen tally.

        Returns:
            True when accepted
        """
        proposal = self.state.proposal(proposal_id)
        proposal.require_state(ProposalState.VOTING_FINISHED)

        handle = self.state.handle_of(proposal_id)
        result = self.state.results[handle]
        total_staked = self.state.total_staked_snapshots[handle]
        accepted = quorum_reached(proposal.quorum_tier, result, total_staked)

        phase = self.state.phase.ordinal
        if accepted:
            proposal.transition_to(ProposalState.ACCEPTED, "quorum reached", phase)
            self.treasury.refund_fee(proposal)
            self.state.statistics.accepted += 1
        else:
            proposal.transition_to(ProposalState.DECLINED, "quorum not reached", phase)
            self.treasury.forward_to_reinsert(proposal.fee_paid)
            self.state.statistics.declined += 1

        proposal.finalized_at_phase = phase
        self.state.unfinalized_proposals.remove(proposal_id)
        self.events.emit(VOTING_FINALIZED, caller=sender, proposalId=proposal_id, accepted=accepted)
        return accepted
