"""
Ledger collaborators consumed by the governance core.
"""

from .base import (
    CallResult,
    Clock,
    Contract,
    Ledger,
    LogEntry,
    StakingProvider,
    ValidatorRoster,
    transactional,
)
from .memory import (
    InMemoryLedger,
    InMemoryStaking,
    InMemoryValidatorSet,
    ManualClock,
)
from .rpc import (
    JsonRpcClient,
    RpcClock,
    RpcError,
    RpcStakingProvider,
    RpcValidatorRoster,
)

__all__ = [
    "CallResult",
    "Clock",
    "Contract",
    "Ledger",
    "LogEntry",
    "StakingProvider",
    "ValidatorRoster",
    "transactional",
    "InMemoryLedger",
    "InMemoryStaking",
    "InMemoryValidatorSet",
    "ManualClock",
    "JsonRpcClient",
    "RpcClock",
    "RpcError",
    "RpcStakingProvider",
    "RpcValidatorRoster",
]
