"""
JSON-RPC Collaborator Adapters

Reads stake, validator status and the ledger clock from a running node over
HTTP JSON-RPC (`eth_call`, `eth_getBlockByNumber`).
"""

import json
import time
from itertools import count
from typing import Any, List, Optional

import httpx
from eth_utils import decode_hex, encode_hex

from ..abi import decode_values, encode_function_call, normalize_address
from ..config import GovernanceConfig
from ..constants import (
    DAO_RPC_TIMEOUT,
    DAO_RPC_URL,
    IS_VALIDATOR_BANNED_SIGNATURE,
    IS_VALIDATOR_SIGNATURE,
    LOG_INCLUDE_RPC_CONTENT,
    STAKE_AMOUNT_TOTAL_SIGNATURE,
    TOTAL_STAKED_AMOUNT_SIGNATURE,
)
from ..exceptions import DaoException
from ..logger import get_logger
from .base import Clock, StakingProvider, ValidatorRoster

logger = get_logger(__name__)


class RpcError(DaoException):
    """The node answered with a JSON-RPC error or an unusable response."""

    def __init__(self, method: str, message: str, code: Optional[int] = None):
        self.method = method
        self.code = code
        super().__init__(f"{method} failed: {message}" + (f" (code {code})" if code is not None else ""))


class JsonRpcClient:
    """
    Minimal synchronous JSON-RPC 2.0 client.

    Network failures (`httpx.RequestError`) propagate to the caller; protocol
    level failures are raised as RpcError.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ):
        self.url = url or str(DAO_RPC_URL)
        self._client = client or httpx.Client(timeout=timeout or float(DAO_RPC_TIMEOUT))
        self._ids = count(1)

    @classmethod
    def from_config(cls, config: GovernanceConfig, client: Optional[httpx.Client] = None) -> "JsonRpcClient":
        """Client for the `[rpc]` endpoint of a loaded GovernanceConfig."""
        return cls(config.rpc_url, client=client, timeout=config.rpc_timeout)

    def request(self, method: str, params: List[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        start_time = time.time()

        body = f"\n\nOutgoing Request:\n\"{json.dumps(payload)}\"\n" if LOG_INCLUDE_RPC_CONTENT else ""
        logger.debug(f"--> \"{method}\" {self.url}{body}")

        try:
            response = self._client.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.RequestError:
            logger.warning(f"<-- \"{method}\" NETWORK_ERROR ({time.time() - start_time:.3f}s)")
            raise
        except (json.JSONDecodeError, httpx.HTTPStatusError) as e:
            logger.warning(f"<-- \"{method}\" ERROR ({time.time() - start_time:.3f}s): {e}")
            raise RpcError(method, str(e)) from e

        logger.debug(f"<-- \"{method}\" ({time.time() - start_time:.3f}s)")

        if "error" in data and data["error"]:
            error = data["error"]
            raise RpcError(method, error.get("message", "unknown error"), error.get("code"))
        if "result" not in data:
            raise RpcError(method, "response has no result")
        return data["result"]

    def eth_call(self, to: str, data: bytes, block: str = "latest") -> bytes:
        result = self.request("eth_call", [{"to": to, "data": encode_hex(data)}, block])
        return decode_hex(result)

    def latest_block_timestamp(self) -> int:
        block = self.request("eth_getBlockByNumber", ["latest", False])
        if not block or "timestamp" not in block:
            raise RpcError("eth_getBlockByNumber", "latest block has no timestamp")
        return int(block["timestamp"], 16)

    def close(self) -> None:
        self._client.close()


class RpcStakingProvider(StakingProvider):
    """Stake ledger contract read through eth_call."""

    def __init__(self, rpc: JsonRpcClient, staking_address: str):
        self.rpc = rpc
        self.staking_address = normalize_address(staking_address)

    def stake_of(self, account: str) -> int:
        data = encode_function_call(STAKE_AMOUNT_TOTAL_SIGNATURE, normalize_address(account))
        (amount,) = decode_values(["uint256"], self.rpc.eth_call(self.staking_address, data))
        return amount

    def total_staked(self) -> int:
        data = encode_function_call(TOTAL_STAKED_AMOUNT_SIGNATURE)
        (amount,) = decode_values(["uint256"], self.rpc.eth_call(self.staking_address, data))
        return amount


class RpcValidatorRoster(ValidatorRoster):
    """Validator set contract read through eth_call."""

    def __init__(self, rpc: JsonRpcClient, validator_set_address: str):
        self.rpc = rpc
        self.validator_set_address = normalize_address(validator_set_address)

    def _bool_view(self, signature: str, account: str) -> bool:
        data = encode_function_call(signature, normalize_address(account))
        (flag,) = decode_values(["bool"], self.rpc.eth_call(self.validator_set_address, data))
        return flag

    def is_active_validator(self, account: str) -> bool:
        return self._bool_view(IS_VALIDATOR_SIGNATURE, account)

    def is_banned(self, account: str) -> bool:
        return self._bool_view(IS_VALIDATOR_BANNED_SIGNATURE, account)


class RpcClock(Clock):
    """Timestamp of the latest block."""

    def __init__(self, rpc: JsonRpcClient):
        self.rpc = rpc

    def now(self) -> int:
        return self.rpc.latest_block_timestamp()
