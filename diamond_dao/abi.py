"""
Diamond DAO ABI Helpers

Call data encoding used at the edges of the governance engine:
function selectors, setter arguments read by the proposal classifier,
self-calls into the DAO's administrative setters, and JSON-RPC eth_call
payloads for the stake ledger and validator roster.
"""

from typing import Any, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import is_address, keccak, to_checksum_address

from .constants import SELECTOR_SIZE, ZERO_ADDRESS
from .exceptions import InvalidArgument


def compute_function_selector(function_signature: str) -> bytes:
    """
    Compute function selector (first 4 bytes of keccak256(sig)).

    Args:
        function_signature: Function signature like "transfer(address,uint256)"

    Returns:
        4-byte function selector
    """
    sig_hash = keccak(text=function_signature)
    return sig_hash[:SELECTOR_SIZE]


def argument_types(function_signature: str) -> List[str]:
    """"setter(address,uint256[])" -> ['address', 'uint256[]']"""
    args_start = function_signature.index('(') + 1
    args_end = function_signature.rindex(')')
    arg_types_str = function_signature[args_start:args_end]
    if not arg_types_str:
        return []
    return [t.strip() for t in arg_types_str.split(',')]


def encode_function_call(function_signature: str, *args) -> bytes:
    """
    Encode function call data (selector + ABI-encoded arguments).

    Args:
        function_signature: Function signature
        *args: Function arguments

    Returns:
        Encoded call data
    """
    selector = compute_function_selector(function_signature)
    arg_types = argument_types(function_signature)

    if arg_types:
        encoded_args = encode(arg_types, list(args))
    else:
        encoded_args = b''

    return selector + encoded_args


def decode_function_call(data: bytes) -> Tuple[bytes, bytes]:
    """
    Split call data into selector and arguments.

    Returns:
        Tuple of (selector, arguments); both empty for data shorter than a selector
    """
    if len(data) < SELECTOR_SIZE:
        return b'', b''
    return bytes(data[:SELECTOR_SIZE]), bytes(data[SELECTOR_SIZE:])


def decode_arguments(function_signature: str, data: bytes) -> Tuple[Any, ...]:
    """
    Decode the arguments of *data* according to *function_signature*.

    Raises InvalidArgument when the payload is not a well-formed call.
    """
    selector, args = decode_function_call(data)
    if selector != compute_function_selector(function_signature):
        raise InvalidArgument(f"Call data does not target {function_signature}")
    try:
        return tuple(decode(argument_types(function_signature), args))
    except DecodingError as e:
        raise InvalidArgument(f"Malformed arguments for {function_signature}: {e}") from e


def first_uint256_argument(data: bytes) -> int:
    """Read the leading uint256 argument of a setter call."""
    _, args = decode_function_call(data)
    try:
        (value,) = decode(['uint256'], args[:32])
    except DecodingError as e:
        raise InvalidArgument(f"Call data has no uint256 argument: {e}") from e
    return value


def encode_values(types: Sequence[str], values: Sequence[Any]) -> bytes:
    return encode(list(types), list(values))


def decode_values(types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    try:
        return tuple(decode(list(types), data))
    except DecodingError as e:
        raise InvalidArgument(f"Cannot decode {list(types)}: {e}") from e


def normalize_address(address: str) -> str:
    """
    Checksum an account address.

    Raises InvalidArgument for malformed input.
    """
    if not isinstance(address, str) or not is_address(address):
        raise InvalidArgument(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def require_non_zero_address(address: str) -> str:
    checksummed = normalize_address(address)
    if checksummed == to_checksum_address(ZERO_ADDRESS):
        raise InvalidArgument("Zero address is not allowed")
    return checksummed
