"""
Diamond DAO

The governance contract. Wires the phase scheduler, proposal registry, voting
ledger, classifier, treasury and execution router around one GovernanceState
and exposes the public operations.

Every mutating operation runs under a ledger snapshot: an exception anywhere
below it rolls back balances, the DAO's storage and emitted events.

Accounts are normalized to checksummed form on entry.
"""

import copy
from typing import Dict, List, Optional, Sequence

from ..abi import (
    compute_function_selector,
    decode_arguments,
    decode_function_call,
    encode_values,
    normalize_address,
    require_non_zero_address,
)
from ..chain.base import Clock, Contract, Ledger, StakingProvider, ValidatorRoster, transactional
from ..config import GovernanceConfig
from ..constants import (
    CREATE_PROPOSAL_FEE_GETTER_SIGNATURE,
    DAO_PHASE_COUNT_GETTER_SIGNATURE,
    EXECUTE_SIGNATURE,
    FINALIZE_SIGNATURE,
    GOVERNANCE_POT_GETTER_SIGNATURE,
    SET_CHANGEABLE_PARAMETERS_SIGNATURE,
    SET_CREATE_PROPOSAL_FEE_SIGNATURE,
    SET_IS_CORE_CONTRACT_SIGNATURE,
    SWITCH_PHASE_SIGNATURE,
)
from ..exceptions import InvalidArgument, InvalidStartTimestamp, OnlyGovernance
from ..logger import get_logger
from .classifier import ChangeableParameter, NewValueOutOfRange, ProposalClassifier
from .events import (
    SET_CHANGEABLE_PARAMETERS,
    SET_CREATE_PROPOSAL_FEE,
    SET_IS_CORE_CONTRACT,
    EventEmitter,
)
from .execution import ExecutionRouter
from .phases import Phase, PhaseScheduler, first_phase
from .proposals import OpenProposalMajority, Proposal, ProposalRegistry, hash_proposal
from .state import GovernanceState
from .treasury import Statistics, Treasury
from .voting import VoteRecord, VotingLedger, VotingResult

logger = get_logger(__name__)


def _selector(signature: str) -> bytes:
    return compute_function_selector(signature)


class DiamondDao(Contract):
    """
    Stake-weighted governance over a shared treasury.

    Args:
        address:             Account of the DAO on the ledger (the governance pot)
        ledger:              Balances, calls, snapshots and logs
        clock:               Ledger time for the phase schedule
        staking:             Stake lookups
        validators:          Validator membership and bans
        owner:               Account allowed to call the admin setters
        validator_set:       Address of the validator roster contract
        staking_contract:    Address of the stake ledger contract
        reinsert_pot:        Receives creation fees and declined refunds
        tx_permission:       Address of the permission policy contract
        low_majority_pot:    Address of the LowMajorityTreasury contract
        create_proposal_fee: Fee attached to propose(), > 0
        start_timestamp:     Start of the first Proposal phase, strictly in the future
        config:              Phase durations, per-phase cap and execution window
    """

    def __init__(
        self,
        address: str,
        ledger: Ledger,
        clock: Clock,
        staking: StakingProvider,
        validators: ValidatorRoster,
        *,
        owner: str,
        validator_set: str,
        staking_contract: str,
        reinsert_pot: str,
        tx_permission: str,
        low_majority_pot: str,
        create_proposal_fee: int,
        start_timestamp: int,
        config: Optional[GovernanceConfig] = None,
    ):
        config = config or GovernanceConfig()
        config.validate()

        self.address = require_non_zero_address(address)
        self.ledger = ledger
        self.clock = clock

        if create_proposal_fee <= 0:
            raise InvalidArgument("Create proposal fee must be positive")
        now = clock.now()
        if start_timestamp <= now:
            raise InvalidStartTimestamp(start_timestamp, now)

        self.storage = GovernanceState(
            owner=require_non_zero_address(owner),
            validator_set=require_non_zero_address(validator_set),
            staking=require_non_zero_address(staking_contract),
            reinsert_pot=require_non_zero_address(reinsert_pot),
            tx_permission=require_non_zero_address(tx_permission),
            low_majority_pot=require_non_zero_address(low_majority_pot),
            create_proposal_fee=int(create_proposal_fee),
            phase=first_phase(int(start_timestamp), config.proposal_phase_duration),
            proposal_phase_duration=config.proposal_phase_duration,
            voting_phase_duration=config.voting_phase_duration,
            max_new_proposals=config.max_new_proposals,
            execution_window_phases=config.execution_window_phases,
        )
        self.storage.core_contracts.add(self.address)

        state = self.storage
        self.events = EventEmitter(ledger, self.address)
        self.scheduler = PhaseScheduler(state, clock, self.events)
        self.treasury = Treasury(state, ledger, self.address)
        self.classifier = ProposalClassifier(state, ledger, self.address)
        self.voting = VotingLedger(state, self.events, self.scheduler, staking, validators, clock)
        self.registry = ProposalRegistry(
            state, self.events, self.scheduler, self.classifier, self.treasury, self.voting,
        )
        self.router = ExecutionRouter(state, ledger, self.events, self.address)

        logger.info(
            f"DiamondDao at {self.address}: first phase starts {start_timestamp}, "
            f"fee {create_proposal_fee}"
        )

    @property
    def state(self) -> GovernanceState:
        return self.storage

    def _only_governance(self, sender: str) -> None:
        if sender not in (self.storage.owner, self.address):
            raise OnlyGovernance(sender)

    # ══════════════════════════════════════════════════════════════════
    #  PROPOSALS
    # ══════════════════════════════════════════════════════════════════

    @transactional
    def propose(
        self,
        sender: str,
        targets: Sequence[str],
        values: Sequence[int],
        payloads: Sequence[bytes],
        title: str,
        description: str,
        url: str = "",
        majority: OpenProposalMajority = OpenProposalMajority.LOW,
        value: int = 0,
    ) -> int:
        """
        Create a proposal, paying *value* (at least the creation fee).

        Returns:
            The proposal id
        """
        return self.registry.propose(
            normalize_address(sender), targets, values, payloads, title, description, url, majority, value,
        )

    @transactional
    def cancel(self, sender: str, proposal_id: int, reason: str = "") -> None:
        self.registry.cancel(normalize_address(sender), proposal_id, reason)

    @transactional
    def finalize(self, sender: str, proposal_id: int) -> bool:
        return self.registry.finalize(normalize_address(sender), proposal_id)

    @transactional
    def execute(self, sender: str, proposal_id: int) -> None:
        self.router.execute(normalize_address(sender), proposal_id)

    @transactional
    def switch_phase(self) -> bool:
        return self.scheduler.switch_phase()

    # ══════════════════════════════════════════════════════════════════
    #  VOTING
    # ══════════════════════════════════════════════════════════════════

    @transactional
    def vote(self, sender: str, proposal_id: int, choice) -> None:
        self.voting.vote(normalize_address(sender), proposal_id, choice)

    @transactional
    def vote_with_reason(self, sender: str, proposal_id: int, choice, reason: str) -> None:
        self.voting.vote_with_reason(normalize_address(sender), proposal_id, choice, reason)

    @transactional
    def change_vote(self, sender: str, proposal_id: int, choice, reason: str = "") -> None:
        self.voting.change_vote(normalize_address(sender), proposal_id, choice, reason)

    def count_votes(self, proposal_id: int) -> VotingResult:
        return self.voting.count_votes(proposal_id)

    # ══════════════════════════════════════════════════════════════════
    #  ADMINISTRATION
    # ══════════════════════════════════════════════════════════════════

    @transactional
    def set_create_proposal_fee(self, sender: str, fee: int) -> None:
        self._only_governance(normalize_address(sender))
        if fee <= 0:
            raise NewValueOutOfRange(fee)
        self.storage.create_proposal_fee = int(fee)
        logger.info(f"Create proposal fee set to {fee}")
        self.events.emit(SET_CREATE_PROPOSAL_FEE, fee=fee)

    @transactional
    def set_is_core_contract(self, sender: str, contract: str, is_core: bool) -> None:
        self._only_governance(normalize_address(sender))
        contract = require_non_zero_address(contract)
        if is_core:
            self.storage.core_contracts.add(contract)
        else:
            self.storage.core_contracts.discard(contract)
        logger.info(f"Core contract flag of {contract} set to {bool(is_core)}")
        self.events.emit(SET_IS_CORE_CONTRACT, contract=contract, isCore=bool(is_core))

    @transactional
    def set_changeable_parameters(
        self,
        sender: str,
        contract: str,
        setter: str,
        getter: str,
        allowed_values: Sequence[int],
    ) -> None:
        """Register a stepped parameter on *contract*. An empty list removes it."""
        self._only_governance(normalize_address(sender))
        contract = require_non_zero_address(contract)
        key = (contract, _selector(setter))
        if allowed_values:
            self.storage.changeable_parameters[key] = ChangeableParameter(
                setter=setter,
                getter=getter,
                allowed_values=tuple(int(v) for v in allowed_values),
            )
        else:
            self.storage.changeable_parameters.pop(key, None)
        logger.info(f"Changeable parameter {setter} on {contract}: {list(allowed_values)}")
        self.events.emit(
            SET_CHANGEABLE_PARAMETERS,
            contract=contract,
            setter=setter,
            getter=getter,
            params=list(allowed_values),
        )

    @transactional
    def receive(self, sender: str, value: int) -> None:
        """Fund the governance pot."""
        self.ledger.transfer(normalize_address(sender), self.address, value)

    # ══════════════════════════════════════════════════════════════════
    #  READ ACCESSORS
    # ══════════════════════════════════════════════════════════════════

    @staticmethod
    def hash_proposal(
        targets: Sequence[str],
        values: Sequence[int],
        payloads: Sequence[bytes],
        description: str,
    ) -> int:
        return hash_proposal([normalize_address(t) for t in targets], values, payloads, description)

    def get_proposal(self, proposal_id: int) -> Proposal:
        return copy.deepcopy(self.storage.proposal(proposal_id))

    def proposal_exists(self, proposal_id: int) -> bool:
        return proposal_id in self.storage.proposal_index

    def get_proposal_voters(self, proposal_id: int) -> List[str]:
        return self.voting.voters(proposal_id)

    def get_proposal_votes_count(self, proposal_id: int) -> int:
        return len(self.voting.voters(proposal_id))

    def get_vote(self, proposal_id: int, voter: str) -> Optional[VoteRecord]:
        record = self.voting.get_vote(proposal_id, normalize_address(voter))
        return copy.copy(record)

    def has_voted(self, proposal_id: int, voter: str) -> bool:
        return self.voting.get_vote(proposal_id, normalize_address(voter)) is not None

    def get_current_phase_proposals(self) -> List[int]:
        return list(self.storage.current_phase_proposals)

    def get_unfinalized_proposals(self) -> List[int]:
        return list(self.storage.unfinalized_proposals)

    @property
    def dao_phase(self) -> Phase:
        return copy.copy(self.storage.phase)

    @property
    def dao_phase_count(self) -> int:
        return self.storage.phase.ordinal

    @property
    def statistics(self) -> Statistics:
        return copy.copy(self.storage.statistics)

    def get_proposal_voting_result(self, proposal_id: int) -> VotingResult:
        """Frozen result; all zero until voting on the proposal has finished."""
        frozen = self.storage.results.get(self.storage.handle_of(proposal_id))
        return VotingResult(**vars(frozen)) if frozen else VotingResult()

    def governance_pot(self) -> int:
        return self.treasury.governance_pot()

    @property
    def create_proposal_fee(self) -> int:
        return self.storage.create_proposal_fee

    def is_core_contract(self, contract: str) -> bool:
        return self.storage.is_core_contract(normalize_address(contract))

    def get_changeable_parameter(self, contract: str, setter: str) -> Optional[ChangeableParameter]:
        return self.storage.changeable_parameter(normalize_address(contract), _selector(setter))

    # ══════════════════════════════════════════════════════════════════
    #  LEDGER ENTRY POINTS
    # ══════════════════════════════════════════════════════════════════

    def handle_call(self, sender: str, value: int, payload: bytes) -> bytes:
        if not payload:
            logger.debug(f"Governance pot received {value} from {sender}")
            return b""

        selector, _ = decode_function_call(payload)
        if selector == _selector(SET_CREATE_PROPOSAL_FEE_SIGNATURE):
            (fee,) = decode_arguments(SET_CREATE_PROPOSAL_FEE_SIGNATURE, payload)
            self.set_create_proposal_fee(sender, fee)
        elif selector == _selector(SET_IS_CORE_CONTRACT_SIGNATURE):
            contract, is_core = decode_arguments(SET_IS_CORE_CONTRACT_SIGNATURE, payload)
            self.set_is_core_contract(sender, contract, is_core)
        elif selector == _selector(SET_CHANGEABLE_PARAMETERS_SIGNATURE):
            contract, setter, getter, allowed = decode_arguments(SET_CHANGEABLE_PARAMETERS_SIGNATURE, payload)
            self.set_changeable_parameters(sender, contract, setter, getter, list(allowed))
        elif selector == _selector(EXECUTE_SIGNATURE):
            (proposal_id,) = decode_arguments(EXECUTE_SIGNATURE, payload)
            self.execute(sender, proposal_id)
        elif selector == _selector(FINALIZE_SIGNATURE):
            (proposal_id,) = decode_arguments(FINALIZE_SIGNATURE, payload)
            self.finalize(sender, proposal_id)
        elif selector == _selector(SWITCH_PHASE_SIGNATURE):
            self.switch_phase()
        else:
            raise InvalidArgument(f"Unknown selector 0x{selector.hex()}")
        return b""

    def handle_static_call(self, payload: bytes) -> bytes:
        selector, _ = decode_function_call(payload)
        views: Dict[bytes, int] = {
            _selector(CREATE_PROPOSAL_FEE_GETTER_SIGNATURE): self.storage.create_proposal_fee,
            _selector(DAO_PHASE_COUNT_GETTER_SIGNATURE): self.storage.phase.ordinal,
            _selector(GOVERNANCE_POT_GETTER_SIGNATURE): self.governance_pot(),
        }
        if selector not in views:
            raise InvalidArgument(f"Unknown view selector 0x{selector.hex()}")
        return encode_values(['uint256'], [views[selector]])
