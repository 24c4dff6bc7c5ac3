"""
Governance Treasury

The governance pot is the DAO's own balance. Creation fees pass through it to
the reinsert pot; finalize() refunds accepted proposers from it and forwards
the fee of declined proposals to the reinsert pot.
"""

from dataclasses import dataclass
from typing import Any, Dict

from ..chain.base import Ledger
from ..exceptions import InsufficientFunds
from ..logger import get_logger

logger = get_logger(__name__)


@dataclass
class Statistics:
    """Lifetime proposal counters."""
    total: int = 0
    accepted: int = 0
    declined: int = 0
    canceled: int = 0
    executed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "accepted": self.accepted,
            "declined": self.declined,
            "canceled": self.canceled,
            "executed": self.executed,
        }


class Treasury:
    def __init__(self, state, ledger: Ledger, dao_address: str):
        self.state = state
        self.ledger = ledger
        self.dao_address = dao_address

    def governance_pot(self) -> int:
        return self.ledger.balance_of(self.dao_address)

    def collect_fee(self, sender: str, value: int) -> int:
        """
        Take the attached *value* from *sender* and forward all of it to the
        reinsert pot. Returns the fee recorded on the proposal.
        """
        fee = self.state.create_proposal_fee
        if value < fee:
            raise InsufficientFunds(fee, value)
        self.ledger.transfer(sender, self.dao_address, value)
        self.ledger.transfer(self.dao_address, self.state.reinsert_pot, value)
        logger.debug(f"Creation fee {value} from {sender} forwarded to reinsert pot")
        return fee

    def refund_fee(self, proposal) -> None:
        self.ledger.transfer(self.dao_address, proposal.proposer, proposal.fee_paid)
        logger.debug(f"Refunded {proposal.fee_paid} to {proposal.proposer}")

    def forward_to_reinsert(self, amount: int) -> None:
        self.ledger.transfer(self.dao_address, self.state.reinsert_pot, amount)
        logger.debug(f"Forwarded {amount} to reinsert pot")
