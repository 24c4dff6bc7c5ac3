"""
In-Memory Ledger

Deterministic, single-process implementations of the collaborator interfaces.
Used by simulations and the test-suite; the snapshot/revert model follows the
contract state manager: every snapshot captures balances, contract storage and
the log, and a revert drops everything newer than the snapshot.
"""

import copy
from typing import Any, Dict, List, Optional, Set

from eth_utils import to_checksum_address

from ..exceptions import InsufficientFunds, InvalidArgument
from ..logger import get_logger
from .base import (
    CallResult,
    Clock,
    Contract,
    Ledger,
    LogEntry,
    StakingProvider,
    ValidatorRoster,
)

logger = get_logger(__name__)


def _restore_storage(contract: Contract, saved: Any) -> None:
    # Restored in place: callers further up the stack may still hold the
    # storage object.
    current = contract.storage
    if hasattr(current, '__dict__') and type(current) is type(saved):
        current.__dict__.clear()
        current.__dict__.update(saved.__dict__)
    elif isinstance(current, dict) and isinstance(saved, dict):
        current.clear()
        current.update(saved)
    else:
        contract.storage = saved


class ManualClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000):
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise InvalidArgument(f"Clock cannot go backwards ({timestamp} < {self._now})")
        self._now = int(timestamp)

    def advance(self, seconds: int) -> int:
        self.set(self._now + seconds)
        return self._now


class InMemoryStaking(StakingProvider):
    """Stake table keyed by account."""

    def __init__(self, stakes: Optional[Dict[str, int]] = None):
        self._stakes: Dict[str, int] = {}
        for account, amount in (stakes or {}).items():
            self.set_stake(account, amount)

    def set_stake(self, account: str, amount: int) -> None:
        if amount < 0:
            raise InvalidArgument("Stake cannot be negative")
        self._stakes[to_checksum_address(account)] = int(amount)

    def stake_of(self, account: str) -> int:
        return self._stakes.get(to_checksum_address(account), 0)

    def total_staked(self) -> int:
        return sum(self._stakes.values())


class InMemoryValidatorSet(ValidatorRoster):
    """Validator roster with explicit add / remove / ban."""

    def __init__(self):
        self._active: Set[str] = set()
        self._banned: Set[str] = set()

    def add(self, account: str) -> None:
        self._active.add(to_checksum_address(account))

    def remove(self, account: str) -> None:
        self._active.discard(to_checksum_address(account))

    def ban(self, account: str) -> None:
        self._banned.add(to_checksum_address(account))

    def unban(self, account: str) -> None:
        self._banned.discard(to_checksum_address(account))

    def is_active_validator(self, account: str) -> bool:
        return to_checksum_address(account) in self._active

    def is_banned(self, account: str) -> bool:
        return to_checksum_address(account) in self._banned


class InMemoryLedger(Ledger):
    """
    Balances, deployed contracts and an event log.

    Accounts without a deployed contract accept any value transfer and ignore
    the payload, like externally owned accounts.

    Every snapshot deep-copies the storage of every deployed contract, so its
    cost grows with the DAO's proposal arena. Meant for simulations and tests.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock
        self._balances: Dict[str, int] = {}
        self._contracts: Dict[str, Contract] = {}
        self._logs: List[LogEntry] = []
        self._snapshots: List[Dict[str, Any]] = []

    # ── Accounts ──────────────────────────────────────────────────────

    def deploy(self, contract: Contract) -> Contract:
        address = to_checksum_address(contract.address)
        if address in self._contracts:
            raise InvalidArgument(f"Contract already deployed at {address}")
        self._contracts[address] = contract
        logger.debug(f"Contract {type(contract).__name__} deployed at {address}")
        return contract

    def contract_at(self, address: str) -> Optional[Contract]:
        return self._contracts.get(to_checksum_address(address))

    def set_balance(self, account: str, amount: int) -> None:
        if amount < 0:
            raise InvalidArgument("Balance cannot be negative")
        self._balances[to_checksum_address(account)] = int(amount)

    def balance_of(self, account: str) -> int:
        return self._balances.get(to_checksum_address(account), 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise InvalidArgument("Transfer amount cannot be negative")
        sender = to_checksum_address(sender)
        recipient = to_checksum_address(recipient)
        available = self.balance_of(sender)
        if available < amount:
            raise InsufficientFunds(amount, available)
        self._balances[sender] = available - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

    # ── Calls ─────────────────────────────────────────────────────────

    def call(self, sender: str, target: str, value: int, payload: bytes) -> CallResult:
        snapshot_id = self.snapshot()
        try:
            self.transfer(sender, target, value)
            contract = self.contract_at(target)
            return_data = b""
            if contract is not None:
                return_data = contract.handle_call(to_checksum_address(sender), value, bytes(payload)) or b""
        except Exception as e:
            self.revert(snapshot_id)
            logger.debug(f"Call {sender} --> {target} reverted: {type(e).__name__}: {e}")
            return CallResult(success=False, error=e)
        self.release(snapshot_id)
        return CallResult(success=True, return_data=return_data)

    def static_call(self, target: str, payload: bytes) -> bytes:
        contract = self.contract_at(target)
        if contract is None:
            raise InvalidArgument(f"No contract deployed at {target}")
        return contract.handle_static_call(bytes(payload))

    # ── Logs ──────────────────────────────────────────────────────────

    def emit(self, emitter: str, name: str, **args: Any) -> LogEntry:
        entry = LogEntry(
            emitter=to_checksum_address(emitter),
            name=name,
            args=args,
            timestamp=self.clock.now() if self.clock else 0,
        )
        self._logs.append(entry)
        return entry

    @property
    def logs(self) -> List[LogEntry]:
        return list(self._logs)

    def events(self, name: str, emitter: Optional[str] = None) -> List[LogEntry]:
        """Logs filtered by event name and, optionally, emitter."""
        wanted = to_checksum_address(emitter) if emitter else None
        return [
            entry for entry in self._logs
            if entry.name == name and (wanted is None or entry.emitter == wanted)
        ]

    # ── Snapshots ─────────────────────────────────────────────────────

    def snapshot(self) -> int:
        """
        Create state snapshot for revert.

        Returns:
            Snapshot ID
        """
        snapshot = {
            'balances': dict(self._balances),
            'storage': {
                address: copy.deepcopy(contract.storage)
                for address, contract in self._contracts.items()
            },
            'logs': len(self._logs),
        }
        self._snapshots.append(snapshot)
        return len(self._snapshots) - 1

    def revert(self, snapshot_id: int) -> None:
        """
        Revert state to snapshot.

        Args:
            snapshot_id: Snapshot ID from snapshot()
        """
        if snapshot_id < 0 or snapshot_id >= len(self._snapshots):
            raise ValueError(f"Invalid snapshot ID: {snapshot_id}")

        snapshot = self._snapshots[snapshot_id]
        self._balances = snapshot['balances']
        for address, storage in snapshot['storage'].items():
            _restore_storage(self._contracts[address], storage)
        # Contracts deployed after the snapshot are dropped with it
        for address in set(self._contracts) - set(snapshot['storage']):
            del self._contracts[address]
        del self._logs[snapshot['logs']:]

        self._snapshots = self._snapshots[:snapshot_id]

    def release(self, snapshot_id: int) -> None:
        if snapshot_id < 0 or snapshot_id >= len(self._snapshots):
            raise ValueError(f"Invalid snapshot ID: {snapshot_id}")
        self._snapshots = self._snapshots[:snapshot_id]
