"""
Proposal Classifier

Decides the type (and therefore the quorum tier) of a proposal from its calls:

  - a call to a core contract whose setter is a registered changeable
    parameter is an ECOSYSTEM_PARAMETER_CHANGE; the new value must be the
    allowed value directly above or below the current one
  - any other call to a core contract is a CONTRACT_UPGRADE
  - otherwise the proposer's requested majority picks OPEN_LOW or OPEN_HIGH

Calls from the DAO to its own administrative setters are validated here with
the same rules the setters apply on execution.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from ..abi import (
    compute_function_selector,
    decode_arguments,
    decode_function_call,
    decode_values,
    encode_function_call,
    first_uint256_argument,
    require_non_zero_address,
)
from ..chain.base import Ledger
from ..constants import (
    SET_CHANGEABLE_PARAMETERS_SIGNATURE,
    SET_CREATE_PROPOSAL_FEE_SIGNATURE,
    SET_IS_CORE_CONTRACT_SIGNATURE,
)
from ..exceptions import DaoException
from ..logger import get_logger
from .proposals import OpenProposalMajority, ProposalType
from .quorum import QuorumTier

logger = get_logger(__name__)


class NewValueOutOfRange(DaoException):
    """Parameter value is not a permitted step from the current value."""

    def __init__(self, value: int):
        self.value = value
        super().__init__(f"New value {value} is out of range")


@dataclass(frozen=True)
class ChangeableParameter:
    """A setter on a core contract that proposals may step through *allowed_values*."""
    setter: str
    getter: str
    allowed_values: Tuple[int, ...]

    @property
    def selector(self) -> bytes:
        return compute_function_selector(self.setter)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "setter": self.setter,
            "getter": self.getter,
            "allowedValues": list(self.allowed_values),
        }


@dataclass(frozen=True)
class Classification:
    proposal_type: ProposalType
    quorum_tier: QuorumTier


def require_adjacent_value(allowed_values: Sequence[int], current: int, new: int) -> None:
    """*new* must sit next to *current* in *allowed_values*."""
    allowed = list(allowed_values)
    if current not in allowed:
        raise NewValueOutOfRange(new)
    index = allowed.index(current)
    neighbours = allowed[max(index - 1, 0):index] + allowed[index + 1:index + 2]
    if new not in neighbours:
        raise NewValueOutOfRange(new)


def classify(
    targets: Sequence[str],
    payloads: Sequence[bytes],
    majority: OpenProposalMajority,
    is_core: Callable[[str], bool],
    parameter_for: Callable[[str, bytes], Optional[ChangeableParameter]],
    current_value: Callable[[str, ChangeableParameter], int],
) -> Classification:
    """
    Classify a proposal.

    Args:
        is_core:       core-contract flag lookup
        parameter_for: registered parameter for (target, selector)
        current_value: reads the parameter's getter on the target

    Raises NewValueOutOfRange when a parameter change skips a step.
    """
    touches_core = False
    changes_parameter = False

    for target, payload in zip(targets, payloads):
        if not is_core(target):
            continue
        touches_core = True

        selector, _ = decode_function_call(payload)
        parameter = parameter_for(target, selector) if selector else None
        if parameter is None:
            continue

        new_value = first_uint256_argument(payload)
        require_adjacent_value(parameter.allowed_values, current_value(target, parameter), new_value)
        changes_parameter = True

    if changes_parameter:
        return Classification(ProposalType.ECOSYSTEM_PARAMETER_CHANGE, QuorumTier.HIGH)
    if touches_core:
        return Classification(ProposalType.CONTRACT_UPGRADE, QuorumTier.HIGH)
    if majority == OpenProposalMajority.HIGH:
        return Classification(ProposalType.OPEN_HIGH, QuorumTier.HIGH)
    return Classification(ProposalType.OPEN_LOW, QuorumTier.LOW)


def validate_self_call(payload: bytes) -> None:
    """
    Check a call to one of the DAO's own setters the way the setter will.

    Unknown selectors pass; they fail on execution.
    """
    selector, _ = decode_function_call(payload)
    if selector == compute_function_selector(SET_CREATE_PROPOSAL_FEE_SIGNATURE):
        (fee,) = decode_arguments(SET_CREATE_PROPOSAL_FEE_SIGNATURE, payload)
        if fee == 0:
            raise NewValueOutOfRange(fee)
    elif selector == compute_function_selector(SET_IS_CORE_CONTRACT_SIGNATURE):
        contract, _ = decode_arguments(SET_IS_CORE_CONTRACT_SIGNATURE, payload)
        require_non_zero_address(contract)
    elif selector == compute_function_selector(SET_CHANGEABLE_PARAMETERS_SIGNATURE):
        contract, _, _, _ = decode_arguments(SET_CHANGEABLE_PARAMETERS_SIGNATURE, payload)
        require_non_zero_address(contract)


class ProposalClassifier:
    """Classifies against the DAO's core flags and parameter registry."""

    def __init__(self, state, ledger: Ledger, dao_address: str):
        self.state = state
        self.ledger = ledger
        self.dao_address = dao_address

    def read_current_value(self, target: str, parameter: ChangeableParameter) -> int:
        data = self.ledger.static_call(target, encode_function_call(parameter.getter))
        (value,) = decode_values(['uint256'], data)
        return value

    def classify(
        self,
        targets: Sequence[str],
        payloads: Sequence[bytes],
        majority: OpenProposalMajority,
    ) -> Classification:
        for target, payload in zip(targets, payloads):
            if target == self.dao_address:
                validate_self_call(payload)

        classification = classify(
            targets,
            payloads,
            majority,
            is_core=self.state.is_core_contract,
            parameter_for=self.state.changeable_parameter,
            current_value=self.read_current_value,
        )
        logger.debug(f"Classified {len(targets)} call(s) as {classification.proposal_type.name}")
        return classification
