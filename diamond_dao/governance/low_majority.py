"""
Low-Majority Pot

A separate contract holding the funds that OPEN_LOW proposals may spend.
Only the main DAO can make it dispatch calls; plain transfers fund it.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..abi import (
    compute_function_selector,
    decode_arguments,
    decode_function_call,
    normalize_address,
    require_non_zero_address,
)
from ..chain.base import Contract, Ledger, transactional
from ..constants import LOW_MAJORITY_EXECUTE_SIGNATURE
from ..exceptions import DaoException, InvalidArgument, OnlyGovernance
from ..logger import get_logger
from .events import LOW_MAJORITY_PROPOSAL_EXECUTED, SET_MAIN_DAO, EventEmitter
from .execution import ReentrancyGuard, dispatch_calls
from .quorum import low_majority_quorum

logger = get_logger(__name__)

_EXECUTE_SELECTOR = compute_function_selector(LOW_MAJORITY_EXECUTE_SIGNATURE)


class OnlyOwner(DaoException):
    def __init__(self, caller: str):
        self.caller = caller
        super().__init__(f"{caller} is not the owner")


@dataclass
class LowMajorityStorage:
    main_dao: str
    owner: Optional[str] = None


class LowMajorityTreasury(Contract):
    """
    Pot contract for OPEN_LOW proposals.

    Args:
        address:  Account of the contract on the ledger
        ledger:   Ledger it dispatches through
        main_dao: The only account allowed to call execute()
        owner:    Account allowed to re-point main_dao
    """

    def __init__(self, address: str, ledger: Ledger, main_dao: str, owner: Optional[str] = None):
        self.address = require_non_zero_address(address)
        self.ledger = ledger
        self.storage = LowMajorityStorage(
            main_dao=require_non_zero_address(main_dao),
            owner=require_non_zero_address(owner) if owner else None,
        )
        self.events = EventEmitter(ledger, self.address)
        self.guard = ReentrancyGuard()

    @property
    def main_dao(self) -> str:
        return self.storage.main_dao

    @property
    def owner(self) -> Optional[str]:
        return self.storage.owner

    def low_majority_pot(self) -> int:
        return self.ledger.balance_of(self.address)

    @staticmethod
    def quorum_reached(result, total_staked: int) -> bool:
        return low_majority_quorum(result, total_staked)

    @transactional
    def set_main_dao(self, sender: str, main_dao: str) -> None:
        sender = normalize_address(sender)
        if self.storage.owner is None or sender != self.storage.owner:
            raise OnlyOwner(sender)
        self.storage.main_dao = require_non_zero_address(main_dao)
        self.events.emit(SET_MAIN_DAO, mainDao=self.storage.main_dao)

    @transactional
    def execute(
        self,
        sender: str,
        proposal_id: int,
        targets: Sequence[str],
        values: Sequence[int],
        payloads: Sequence[bytes],
    ) -> None:
        sender = normalize_address(sender)
        if sender != self.storage.main_dao:
            raise OnlyGovernance(sender)
        with self.guard:
            if not (len(targets) == len(values) == len(payloads)):
                raise InvalidArgument("Targets, values and payloads must be of equal length")
            dispatch_calls(self.ledger, self.address, targets, values, payloads)
            logger.info(f"Low-majority pot executed Proposal #{proposal_id:x} ({len(targets)} call(s))")
            self.events.emit(LOW_MAJORITY_PROPOSAL_EXECUTED, proposalId=proposal_id)

    # ── Ledger entry points ───────────────────────────────────────────

    def handle_call(self, sender: str, value: int, payload: bytes) -> bytes:
        if not payload:
            logger.debug(f"Low-majority pot received {value} from {sender}")
            return b""
        selector, _ = decode_function_call(payload)
        if selector != _EXECUTE_SELECTOR:
            raise InvalidArgument(f"Unknown selector 0x{payload[:4].hex()}")
        proposal_id, targets, values, payloads = decode_arguments(LOW_MAJORITY_EXECUTE_SIGNATURE, payload)
        self.execute(sender, proposal_id, list(targets), list(values), list(payloads))
        return b""
