"""
DAO Phase Scheduler

The DAO alternates between a Proposal phase (new proposals accepted) and a
Voting phase (validators vote on the proposals of the previous Proposal
phase). Phases are time boxed; `switch_phase` is permissionless and only acts
once the current phase has ended.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, List

from ..chain.base import Clock
from ..exceptions import DaoException
from ..logger import get_logger
from .events import SWITCH_DAO_PHASE, EventEmitter

logger = get_logger(__name__)


class PhaseKind(IntEnum):
    PROPOSAL = 0
    VOTING = 1

    def flipped(self) -> "PhaseKind":
        return PhaseKind.VOTING if self == PhaseKind.PROPOSAL else PhaseKind.PROPOSAL


class UnavailableInCurrentPhase(DaoException):
    """Operation is not allowed in the current DAO phase."""

    def __init__(self, kind: PhaseKind):
        self.kind = PhaseKind(kind)
        super().__init__(f"Unavailable in {self.kind.name} phase")


@dataclass
class Phase:
    """A time box of the DAO schedule. `ordinal` starts at 1."""
    ordinal: int
    kind: PhaseKind
    start: int
    end: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phaseCount": self.ordinal,
            "phase": self.kind.name,
            "start": self.start,
            "end": self.end,
        }


def first_phase(start_timestamp: int, proposal_duration: int) -> Phase:
    return Phase(
        ordinal=1,
        kind=PhaseKind.PROPOSAL,
        start=start_timestamp,
        end=start_timestamp + proposal_duration,
    )


class PhaseScheduler:
    """
    Owns the phase field of the governance state.

    Hooks run before the phase flips:
        on_voting_started:  Proposal -> Voting (activate Created proposals)
        on_voting_finished: Voting -> Proposal (freeze tallies, queue finalization)
    """

    def __init__(self, state, clock: Clock, events: EventEmitter):
        self.state = state
        self.clock = clock
        self.events = events
        self.on_voting_started: List[Callable[[], None]] = []
        self.on_voting_finished: List[Callable[[], None]] = []

    @property
    def phase(self) -> Phase:
        return self.state.phase

    def duration(self, kind: PhaseKind) -> int:
        if kind == PhaseKind.PROPOSAL:
            return self.state.proposal_phase_duration
        return self.state.voting_phase_duration

    def require_phase(self, kind: PhaseKind) -> None:
        if self.phase.kind != kind:
            raise UnavailableInCurrentPhase(self.phase.kind)

    def switch_phase(self) -> bool:
        """
        Advance to the next phase if the current one has ended.

        Returns:
            True when the phase changed
        """
        now = self.clock.now()
        current = self.phase
        if now <= current.end:
            return False

        hooks = self.on_voting_started if current.kind == PhaseKind.PROPOSAL else self.on_voting_finished
        for hook in hooks:
            hook()

        kind = current.kind.flipped()
        start = now + 1
        self.state.phase = Phase(
            ordinal=current.ordinal + 1,
            kind=kind,
            start=start,
            end=start + self.duration(kind),
        )

        logger.info(
            f"DAO phase {current.ordinal} {current.kind.name} → "
            f"{self.state.phase.ordinal} {kind.name} (ends {self.state.phase.end})"
        )
        self.events.emit(
            SWITCH_DAO_PHASE,
            phaseCount=self.state.phase.ordinal,
            phase=int(kind),
            start=self.state.phase.start,
            end=self.state.phase.end,
        )
        return True
