"""
Proposal Execution

Dispatches the calls of accepted proposals. OPEN_LOW proposals are paid by the
low-majority pot contract, every other type by the governance pot. A failing
call aborts the whole execution; the surrounding transaction rolls back every
call dispatched before it.
"""

from typing import Optional, Sequence

from ..abi import encode_function_call
from ..chain.base import Ledger
from ..constants import LOW_MAJORITY_EXECUTE_SIGNATURE
from ..exceptions import DaoException
from ..logger import get_logger
from .events import PROPOSAL_EXECUTED, EventEmitter
from .proposals import ProposalState, ProposalType

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class ReentrancyGuardReentrantCall(DaoException):
    def __init__(self):
        super().__init__("Reentrant call")


class FailedInnerCall(DaoException):
    """A dispatched call reverted. The callee's exception is the __cause__."""

    def __init__(self, target: str, reason: Optional[BaseException] = None):
        self.target = target
        self.reason = reason
        detail = f": {type(reason).__name__}: {reason}" if reason is not None else ""
        super().__init__(f"Call to {target} failed{detail}")


class OutsideExecutionWindow(DaoException):
    def __init__(self, proposal_id: int, finalized_at_phase: int, current_phase: int):
        self.proposal_id = proposal_id
        self.finalized_at_phase = finalized_at_phase
        self.current_phase = current_phase
        super().__init__(
            f"Proposal #{proposal_id:x} finalized in phase {finalized_at_phase}, "
            f"execution window closed (phase {current_phase})"
        )


# ══════════════════════════════════════════════════════════════════════
#  GUARD / DISPATCH
# ══════════════════════════════════════════════════════════════════════

class ReentrancyGuard:
    """Rejects a second entry while a guarded call is in progress."""

    def __init__(self):
        self._entered = False

    @property
    def entered(self) -> bool:
        return self._entered

    def __enter__(self):
        if self._entered:
            raise ReentrancyGuardReentrantCall()
        self._entered = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self._entered = False
        return False


def dispatch_calls(
    ledger: Ledger,
    sender: str,
    targets: Sequence[str],
    values: Sequence[int],
    payloads: Sequence[bytes],
) -> None:
    """Send every call in order, raising FailedInnerCall on the first failure."""
    for target, value, payload in zip(targets, values, payloads):
        result = ledger.call(sender, target, value, payload)
        if not result:
            logger.warning(f"Call {sender} --> {target} (value {value}) failed")
            raise FailedInnerCall(target, result.error) from result.error


# ══════════════════════════════════════════════════════════════════════
#  ROUTER
# ══════════════════════════════════════════════════════════════════════

class ExecutionRouter:
    def __init__(self, state, ledger: Ledger, events: EventEmitter, dao_address: str):
        self.state = state
        self.ledger = ledger
        self.events = events
        self.dao_address = dao_address
        self.guard = ReentrancyGuard()

    def within_window(self, finalized_at_phase: int) -> bool:
        return self.state.phase.ordinal - finalized_at_phase <= self.state.execution_window_phases

    def execute(self, sender: str, proposal_id: int) -> None:
        with self.guard:
            proposal = self.state.proposal(proposal_id)
            proposal.require_state(ProposalState.ACCEPTED)
            if not self.within_window(proposal.finalized_at_phase):
                raise OutsideExecutionWindow(proposal_id, proposal.finalized_at_phase, self.state.phase.ordinal)

            targets, values, payloads = list(proposal.targets), list(proposal.values), list(proposal.payloads)
            if proposal.proposal_type == ProposalType.OPEN_LOW:
                pot = self.state.low_majority_pot
                data = encode_function_call(LOW_MAJORITY_EXECUTE_SIGNATURE, proposal_id, targets, values, payloads)
                logger.info(f"Executing Proposal #{proposal_id:x} from low-majority pot {pot}")
                dispatch_calls(self.ledger, self.dao_address, [pot], [0], [data])
            else:
                logger.info(f"Executing Proposal #{proposal_id:x} from governance pot ({len(targets)} call(s))")
                dispatch_calls(self.ledger, self.dao_address, targets, values, payloads)

            # Dispatched calls may have replaced the stored record
            proposal = self.state.proposal(proposal_id)
            proposal.transition_to(ProposalState.EXECUTED, f"executed by {sender}", self.state.phase.ordinal)
            self.state.statistics.executed += 1
            self.events.emit(PROPOSAL_EXECUTED, caller=sender, proposalId=proposal_id)
