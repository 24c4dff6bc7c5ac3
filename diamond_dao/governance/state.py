"""
Governance State

Everything the DAO persists, held in one dataclass that serves as the DAO
contract's storage. The ledger snapshots and restores it as a unit.

Proposal records live in an append-only arena (`proposals`); `proposal_index`
maps an id to the handle of its latest record. Votes, voter lists, frozen
results and total-stake snapshots are keyed by handle.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .classifier import ChangeableParameter
from .phases import Phase
from .proposals import Proposal, ProposalNotFound
from .treasury import Statistics
from .voting import VoteRecord, VotingResult


@dataclass
class GovernanceState:
    owner: str
    validator_set: str
    staking: str
    reinsert_pot: str
    tx_permission: str
    low_majority_pot: str
    create_proposal_fee: int
    phase: Phase
    proposal_phase_duration: int
    voting_phase_duration: int
    max_new_proposals: int
    execution_window_phases: int

    proposals: List[Proposal] = field(default_factory=list)
    proposal_index: Dict[int, int] = field(default_factory=dict)
    votes: Dict[int, Dict[str, VoteRecord]] = field(default_factory=dict)
    voters: Dict[int, List[str]] = field(default_factory=dict)
    results: Dict[int, VotingResult] = field(default_factory=dict)
    total_staked_snapshots: Dict[int, int] = field(default_factory=dict)
    current_phase_proposals: List[int] = field(default_factory=list)
    created_this_phase: int = 0
    unfinalized_proposals: List[int] = field(default_factory=list)
    statistics: Statistics = field(default_factory=Statistics)
    core_contracts: Set[str] = field(default_factory=set)
    changeable_parameters: Dict[Tuple[str, bytes], ChangeableParameter] = field(default_factory=dict)

    # ── Proposal arena ────────────────────────────────────────────────

    def store_proposal(self, proposal: Proposal) -> int:
        handle = len(self.proposals)
        self.proposals.append(proposal)
        self.proposal_index[proposal.id] = handle
        return handle

    def handle_of(self, proposal_id: int) -> int:
        try:
            return self.proposal_index[proposal_id]
        except KeyError:
            raise ProposalNotFound(proposal_id) from None

    def find_proposal(self, proposal_id: int) -> Optional[Proposal]:
        handle = self.proposal_index.get(proposal_id)
        return None if handle is None else self.proposals[handle]

    def proposal(self, proposal_id: int) -> Proposal:
        return self.proposals[self.handle_of(proposal_id)]

    # ── Registries ────────────────────────────────────────────────────

    def is_core_contract(self, address: str) -> bool:
        return address in self.core_contracts

    def changeable_parameter(self, address: str, selector: bytes) -> Optional[ChangeableParameter]:
        return self.changeable_parameters.get((address, bytes(selector)))
