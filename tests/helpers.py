"""
Shared test harness: accounts, helper contracts and a fully wired DAO on an
in-memory ledger.
"""

from typing import Callable, List, Optional, Sequence

from eth_utils import to_checksum_address

from diamond_dao.abi import decode_arguments, decode_function_call, encode_function_call, encode_values
from diamond_dao.chain import (
    Contract,
    InMemoryLedger,
    InMemoryStaking,
    InMemoryValidatorSet,
    ManualClock,
)
from diamond_dao.config import GovernanceConfig
from diamond_dao.exceptions import DaoException
from diamond_dao.governance import (
    DiamondDao,
    LowMajorityTreasury,
    OpenProposalMajority,
    Vote,
)


# ══════════════════════════════════════════════════════════════════════
#  ACCOUNTS
# ══════════════════════════════════════════════════════════════════════

def account(byte: str) -> str:
    return to_checksum_address("0x" + byte * 20)


ETHER = 10 ** 18

OWNER = account("01")
DAO = account("da")
LOW_POT = account("10")
REINSERT_POT = account("20")
STAKING_CONTRACT = account("30")
VALIDATOR_SET = account("40")
TX_PERMISSION = account("50")
PARAMETER_CONTRACT = account("60")

PROPOSER = account("a1")
OTHER = account("a2")
RECIPIENT = account("b1")
RECIPIENT_2 = account("b2")
VALIDATORS = [account(f"c{i}") for i in range(1, 6)]

START = 1_700_000_000
DURATION = 14 * 24 * 60 * 60
FEE = 10 * ETHER
GOVERNANCE_POT = 500 * ETHER
LOW_MAJORITY_FUNDS = 100 * ETHER


# ══════════════════════════════════════════════════════════════════════
#  HELPER CONTRACTS
# ══════════════════════════════════════════════════════════════════════

class ReceiveDisabled(DaoException):
    pass


class RevertingReceiver(Contract):
    """Rejects every call."""

    def __init__(self, address: str):
        self.address = address
        self.storage = {}

    def handle_call(self, sender, value, payload):
        raise ReceiveDisabled("receive disabled")


class RecordingContract(Contract):
    """Records every call it receives."""

    def __init__(self, address: str):
        self.address = address
        self.storage = {"calls": []}

    @property
    def calls(self):
        return self.storage["calls"]

    def handle_call(self, sender, value, payload):
        self.storage["calls"].append((sender, value, bytes(payload)))
        return b""


class CallbackContract(Contract):
    """Runs *callback* when called; used to re-enter guarded functions."""

    def __init__(self, address: str, callback: Callable[[], None]):
        self.address = address
        self.callback = callback
        self.storage = {}

    def handle_call(self, sender, value, payload):
        self.callback()
        return b""


SET_DELEGATOR_MIN_STAKE = "setDelegatorMinStake(uint256)"
DELEGATOR_MIN_STAKE = "delegatorMinStake()"
MIN_STAKE_STEPS = [50 * ETHER, 100 * ETHER, 150 * ETHER, 200 * ETHER, 250 * ETHER]


class ParameterContract(Contract):
    """A core contract with one numeric setting."""

    def __init__(self, address: str, value: int = 100 * ETHER):
        self.address = address
        self.storage = {"delegator_min_stake": value}

    def handle_call(self, sender, value, payload):
        (new_value,) = decode_arguments(SET_DELEGATOR_MIN_STAKE, payload)
        self.storage["delegator_min_stake"] = new_value
        return b""

    def handle_static_call(self, payload):
        selector, _ = decode_function_call(payload)
        if selector != encode_function_call(DELEGATOR_MIN_STAKE)[:4]:
            raise DaoException("unknown view")
        return encode_values(["uint256"], [self.storage["delegator_min_stake"]])


def min_stake_call(value: int) -> bytes:
    return encode_function_call(SET_DELEGATOR_MIN_STAKE, value)


# ══════════════════════════════════════════════════════════════════════
#  HARNESS
# ══════════════════════════════════════════════════════════════════════

def dao_arguments(**overrides):
    """Keyword arguments of a valid DiamondDao, with *overrides* applied."""
    arguments = dict(
        owner=OWNER,
        validator_set=VALIDATOR_SET,
        staking_contract=STAKING_CONTRACT,
        reinsert_pot=REINSERT_POT,
        tx_permission=TX_PERMISSION,
        low_majority_pot=LOW_POT,
        create_proposal_fee=FEE,
        start_timestamp=START + 1,
    )
    arguments.update(overrides)
    return arguments


class DaoHarness:
    """A DAO, its low-majority pot and collaborators on one in-memory ledger."""

    def __init__(self, config: Optional[GovernanceConfig] = None, fee: int = FEE):
        self.clock = ManualClock(START)
        self.ledger = InMemoryLedger(self.clock)
        self.staking = InMemoryStaking()
        self.validators = InMemoryValidatorSet()
        self.config = config or GovernanceConfig(
            proposal_phase_duration=DURATION,
            voting_phase_duration=DURATION,
            max_new_proposals=100,
            execution_window_phases=2,
        )

        self.pot = self.ledger.deploy(LowMajorityTreasury(LOW_POT, self.ledger, main_dao=DAO, owner=OWNER))
        self.dao = self.ledger.deploy(DiamondDao(
            DAO,
            self.ledger,
            self.clock,
            self.staking,
            self.validators,
            config=self.config,
            **dao_arguments(create_proposal_fee=fee),
        ))

        self.ledger.set_balance(DAO, GOVERNANCE_POT)
        self.ledger.set_balance(LOW_POT, LOW_MAJORITY_FUNDS)
        self.ledger.set_balance(PROPOSER, 1000 * ETHER)
        self.ledger.set_balance(OTHER, 1000 * ETHER)

    # ── Setup ─────────────────────────────────────────────────────────

    def add_validator(self, validator: str, stake: int) -> None:
        self.validators.add(validator)
        self.staking.set_stake(validator, stake)

    def add_validators(self, stakes: Sequence[int]) -> List[str]:
        voters = VALIDATORS[:len(stakes)]
        for voter, stake in zip(voters, stakes):
            self.add_validator(voter, stake)
        return voters

    # ── Phases ────────────────────────────────────────────────────────

    def next_phase(self) -> None:
        self.clock.set(self.dao.dao_phase.end + 1)
        assert self.dao.switch_phase()

    # ── Proposals ─────────────────────────────────────────────────────

    def propose(
        self,
        targets: Optional[Sequence[str]] = None,
        values: Optional[Sequence[int]] = None,
        payloads: Optional[Sequence[bytes]] = None,
        description: str = "test",
        majority: OpenProposalMajority = OpenProposalMajority.HIGH,
        proposer: str = PROPOSER,
        value: Optional[int] = None,
    ) -> int:
        targets = [RECIPIENT] if targets is None else targets
        values = [ETHER] if values is None else values
        payloads = [b""] * len(targets) if payloads is None else payloads
        return self.dao.propose(
            proposer,
            targets,
            values,
            payloads,
            "title",
            description,
            "url",
            majority,
            value=self.dao.create_proposal_fee if value is None else value,
        )

    def vote(self, proposal_id: int, voters: Sequence[str], choice: Vote) -> None:
        for voter in voters:
            self.dao.vote(voter, proposal_id, choice)

    def finished_proposal(self, choice: Vote = Vote.YES, stakes: Sequence[int] = (100 * ETHER,) * 3, **kwargs) -> int:
        """Proposal whose voting has ended, ready for finalize()."""
        proposal_id = self.propose(**kwargs)
        self.next_phase()
        voters = self.add_validators(stakes)
        self.vote(proposal_id, voters, choice)
        self.next_phase()
        return proposal_id

    def accepted_proposal(self, **kwargs) -> int:
        proposal_id = self.finished_proposal(Vote.YES, **kwargs)
        assert self.dao.finalize(PROPOSER, proposal_id)
        return proposal_id
