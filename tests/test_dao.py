"""
DiamondDao surface: construction checks, accessors, ledger entry points and
transactional rollback.
"""

import pytest

from diamond_dao.abi import decode_values, encode_function_call
from diamond_dao.chain import InMemoryLedger, InMemoryStaking, InMemoryValidatorSet, ManualClock
from diamond_dao.config import GovernanceConfig
from diamond_dao.constants import (
    CREATE_PROPOSAL_FEE_GETTER_SIGNATURE,
    DAO_PHASE_COUNT_GETTER_SIGNATURE,
    FINALIZE_SIGNATURE,
    GOVERNANCE_POT_GETTER_SIGNATURE,
    SET_CREATE_PROPOSAL_FEE_SIGNATURE,
    SWITCH_PHASE_SIGNATURE,
    ZERO_ADDRESS,
)
from diamond_dao.exceptions import (
    ConfigurationError,
    InsufficientFunds,
    InvalidArgument,
    InvalidStartTimestamp,
    OnlyGovernance,
)
from diamond_dao.governance import DiamondDao, PhaseKind, ProposalNotFound, ProposalState, Vote
from diamond_dao.governance.events import PROPOSAL_CREATED, SET_IS_CORE_CONTRACT

from helpers import (
    DAO,
    ETHER,
    FEE,
    GOVERNANCE_POT,
    OTHER,
    OWNER,
    PROPOSER,
    RECIPIENT,
    START,
    dao_arguments,
)


def deploy(**overrides):
    clock = ManualClock(START)
    ledger = InMemoryLedger(clock)
    return DiamondDao(DAO, ledger, clock, InMemoryStaking(), InMemoryValidatorSet(), **dao_arguments(**overrides))


class TestConstruction:

    def test_defaults(self):
        dao = deploy()
        assert dao.dao_phase_count == 1
        assert dao.dao_phase.kind == PhaseKind.PROPOSAL
        assert dao.dao_phase.start == START + 1
        assert dao.create_proposal_fee == FEE
        assert dao.state.execution_window_phases == 2

    @pytest.mark.parametrize("field", [
        "owner", "validator_set", "staking_contract", "reinsert_pot", "tx_permission", "low_majority_pot",
    ])
    def test_zero_address(self, field):
        with pytest.raises(InvalidArgument):
            deploy(**{field: ZERO_ADDRESS})

    def test_zero_fee(self):
        with pytest.raises(InvalidArgument):
            deploy(create_proposal_fee=0)

    @pytest.mark.parametrize("start", [START, START - 1])
    def test_start_not_in_future(self, start):
        with pytest.raises(InvalidStartTimestamp) as exc:
            deploy(start_timestamp=start)
        assert exc.value.now == START

    def test_invalid_config(self):
        with pytest.raises(ConfigurationError):
            deploy(config=GovernanceConfig(voting_phase_duration=0))


class TestAccessors:

    def test_unknown_proposal(self, dao):
        assert not dao.proposal_exists(1)
        with pytest.raises(ProposalNotFound):
            dao.get_proposal_voters(1)

    def test_proposal_snapshot_is_a_copy(self, harness, dao):
        proposal_id = harness.propose()
        proposal = dao.get_proposal(proposal_id)
        proposal.title = "changed"
        assert dao.get_proposal(proposal_id).title == "title"

    def test_hash_proposal_matches_propose(self, harness, dao):
        proposal_id = harness.propose(description="hash me")
        assert dao.hash_proposal([RECIPIENT], [ETHER], [b""], "hash me") == proposal_id
        assert dao.proposal_exists(proposal_id)

    def test_phase_lists(self, harness, dao):
        proposal_id = harness.propose()
        assert dao.get_current_phase_proposals() == [proposal_id]
        harness.next_phase()
        harness.next_phase()
        assert dao.get_current_phase_proposals() == []
        assert dao.get_unfinalized_proposals() == [proposal_id]

    def test_governance_pot(self, harness, dao):
        harness.propose()
        assert dao.governance_pot() == GOVERNANCE_POT

    def test_statistics(self, harness, dao):
        harness.accepted_proposal()
        stats = dao.statistics
        assert stats.total == 1
        assert stats.accepted == 1
        stats.total = 99
        assert dao.statistics.total == 1


class TestLedgerEntryPoints:

    def test_static_views(self, dao, ledger):
        def view(signature):
            (value,) = decode_values(["uint256"], ledger.static_call(DAO, encode_function_call(signature)))
            return value

        assert view(CREATE_PROPOSAL_FEE_GETTER_SIGNATURE) == FEE
        assert view(DAO_PHASE_COUNT_GETTER_SIGNATURE) == 1
        assert view(GOVERNANCE_POT_GETTER_SIGNATURE) == GOVERNANCE_POT

    def test_unknown_view(self, ledger):
        with pytest.raises(InvalidArgument):
            ledger.static_call(DAO, b"\x00\x00\x00\x01")

    def test_switch_phase_call(self, harness, dao, ledger):
        harness.clock.set(dao.dao_phase.end + 1)
        assert ledger.call(OTHER, DAO, 0, encode_function_call(SWITCH_PHASE_SIGNATURE)).success
        assert dao.dao_phase_count == 2

    def test_finalize_call(self, harness, dao, ledger):
        proposal_id = harness.finished_proposal(Vote.YES)
        assert ledger.call(OTHER, DAO, 0, encode_function_call(FINALIZE_SIGNATURE, proposal_id)).success
        assert dao.get_proposal(proposal_id).state == ProposalState.ACCEPTED

    def test_setter_from_outside_rejected(self, ledger):
        result = ledger.call(OTHER, DAO, 0, encode_function_call(SET_CREATE_PROPOSAL_FEE_SIGNATURE, ETHER))
        assert isinstance(result.error, OnlyGovernance)

    def test_setter_from_owner(self, dao, ledger):
        assert ledger.call(OWNER, DAO, 0, encode_function_call(SET_CREATE_PROPOSAL_FEE_SIGNATURE, ETHER)).success
        assert dao.create_proposal_fee == ETHER

    def test_unknown_selector(self, ledger):
        result = ledger.call(OTHER, DAO, 0, b"\x00\x00\x00\x01")
        assert isinstance(result.error, InvalidArgument)

    def test_plain_transfer(self, dao, ledger):
        assert ledger.call(OTHER, DAO, ETHER, b"").success
        assert dao.governance_pot() == GOVERNANCE_POT + ETHER


class TestReceive:

    def test_receive(self, dao, ledger):
        dao.receive(OTHER, 5 * ETHER)
        assert dao.governance_pot() == GOVERNANCE_POT + 5 * ETHER
        assert ledger.balance_of(OTHER) == 995 * ETHER

    def test_receive_insufficient(self, dao):
        with pytest.raises(InsufficientFunds):
            dao.receive(RECIPIENT, ETHER)


class TestTransactional:

    def test_failed_operation_leaves_no_events(self, harness, dao, ledger):
        with pytest.raises(InsufficientFunds):
            harness.propose(value=FEE - 1)
        assert ledger.events(PROPOSAL_CREATED) == []
        assert dao.statistics.total == 0
        assert ledger.balance_of(PROPOSER) == 1000 * ETHER

    def test_failed_setter_leaves_state(self, dao, ledger):
        with pytest.raises(InvalidArgument):
            dao.set_is_core_contract(OWNER, ZERO_ADDRESS, True)
        assert not dao.is_core_contract(ZERO_ADDRESS)
        assert ledger.events(SET_IS_CORE_CONTRACT) == []

    def test_snapshots_released(self, harness, dao, ledger):
        harness.accepted_proposal()
        assert ledger._snapshots == []
