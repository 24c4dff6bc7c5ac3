"""
Ledger Collaborator Interfaces

The governance core never talks to a chain directly. It consumes four narrow
capabilities, each defined here as an abstract base class:

  - StakingProvider   stake lookup per account and in total
  - ValidatorRoster   validator membership and ban status
  - Ledger            balances, external call dispatch, snapshots and logs
  - Clock             current ledger timestamp

`memory.py` provides deterministic in-process implementations, `rpc.py` the
JSON-RPC adapters for a running node.
"""

import functools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class StakingProvider(ABC):
    """Stake ledger (read-only)."""

    @abstractmethod
    def stake_of(self, account: str) -> int:
        """Total stake currently backing *account*."""

    @abstractmethod
    def total_staked(self) -> int:
        """Total stake across all validators."""


class ValidatorRoster(ABC):
    """Validator set (read-only)."""

    @abstractmethod
    def is_active_validator(self, account: str) -> bool:
        ...

    @abstractmethod
    def is_banned(self, account: str) -> bool:
        ...


class Clock(ABC):
    """Source of the ledger timestamp used for phase scheduling."""

    @abstractmethod
    def now(self) -> int:
        ...


@dataclass(frozen=True)
class CallResult:
    """
    Outcome of an external call.

    A failed call carries the exception raised by the callee (if any) so the
    caller can chain it onto its own failure.
    """
    success: bool
    return_data: bytes = b""
    error: Optional[BaseException] = None

    def __bool__(self) -> bool:
        return self.success


@dataclass(frozen=True)
class LogEntry:
    """An event emitted by a contract during a call."""
    emitter: str
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    timestamp: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "emitter": self.emitter,
            "event": self.name,
            "args": dict(self.args),
            "timestamp": self.timestamp,
        }


class Contract(ABC):
    """
    A callable account on the ledger.

    All mutable state of a contract lives in `storage` so that the ledger can
    snapshot and revert it together with balances.
    """

    address: str
    storage: Any

    @abstractmethod
    def handle_call(self, sender: str, value: int, payload: bytes) -> bytes:
        """Mutating call. Raise to revert."""

    def handle_static_call(self, payload: bytes) -> bytes:
        """Read-only call. Raise to revert."""
        raise NotImplementedError(f"{type(self).__name__} has no view functions")


class Ledger(ABC):
    """
    World state the governance engine runs against.

    Snapshots nest: `revert(id)` restores the state captured by `snapshot()`
    and drops every newer snapshot, `release(id)` keeps current state and
    drops the snapshot and every newer one.
    """

    @abstractmethod
    def balance_of(self, account: str) -> int:
        ...

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move native currency. Raises InsufficientFunds."""

    @abstractmethod
    def call(self, sender: str, target: str, value: int, payload: bytes) -> CallResult:
        """Send *value* and *payload* to *target*. Never raises for callee failures."""

    @abstractmethod
    def static_call(self, target: str, payload: bytes) -> bytes:
        """Read-only call. Raises when the target reverts."""

    @abstractmethod
    def emit(self, emitter: str, name: str, **args: Any) -> LogEntry:
        ...

    @property
    @abstractmethod
    def logs(self) -> List[LogEntry]:
        ...

    @abstractmethod
    def snapshot(self) -> int:
        ...

    @abstractmethod
    def revert(self, snapshot_id: int) -> None:
        ...

    @abstractmethod
    def release(self, snapshot_id: int) -> None:
        ...


def transactional(method):
    """
    Run a contract method under a ledger snapshot.

    The snapshot is reverted when the method raises and released otherwise,
    so a failed call leaves balances, storage and logs untouched.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        snapshot_id = self.ledger.snapshot()
        try:
            result = method(self, *args, **kwargs)
        except Exception:
            self.ledger.revert(snapshot_id)
            raise
        self.ledger.release(snapshot_id)
        return result
    return wrapper
