"""
GovernanceEngine - Main façade class

The primary interface to the token ledger and the proposal lifecycle. It
hides commands, events, the store and the projections behind plain method
calls.

Example:
    >>> from dao_governance import GovernanceEngine
    >>> engine = GovernanceEngine()
    >>> engine.mint("account1", 1000)
    >>> pid = engine.create_proposal("account1", "Fund audit", "...", "https://...", height=100)
    >>> engine.vote(pid, "account1", "YES", height=120)
    >>> engine.execute_proposal(pid, height=244)
    <ExecutionOutcome.PASSED: 'PASSED'>
"""

import copy
import threading
import time
from typing import Any, Callable

from dao_governance.governance.commands import CastVote, CreateProposal, ExecuteProposal
from dao_governance.governance.handlers import GovernanceCommandHandlers
from dao_governance.governance.invariants import has_passed
from dao_governance.governance.models import (
    ExecutionOutcome,
    Proposal,
    ProposalState,
    VoteChoice,
    VoteRecord,
)
from dao_governance.kernel.bus import InProcessBus
from dao_governance.kernel.commands import Command, create_command
from dao_governance.kernel.config import GovernanceConfig
from dao_governance.kernel.errors import StreamVersionConflict
from dao_governance.kernel.event_store import EventStore, InMemoryEventStore
from dao_governance.kernel.events import Event
from dao_governance.kernel.height import HeightProvider, ManualBlockClock
from dao_governance.kernel.ids import DefaultIdFactory, IdFactory
from dao_governance.kernel.logging import get_logger
from dao_governance.kernel.metrics import (
    proposals_created_total,
    proposals_executed_total,
    replay_duration_seconds,
    token_total_supply,
    token_transfers_total,
    vote_weight_total,
    votes_cast_total,
)
from dao_governance.state import GovernanceState
from dao_governance.token.commands import Mint, Transfer
from dao_governance.token.handlers import TokenCommandHandlers
from dao_governance.token.models import Holder, TokenMetadata

logger = get_logger(__name__)


class GovernanceEngine:
    """
    Token-weighted governance façade

    Every mutating call decides and commits under one lock: the handler
    reads a consistent GovernanceState and returns events (or raises), then
    the events are folded into a staged copy of the state, appended to the
    store, and the copy replaces the live state. A failed call appends
    nothing and changes nothing. Queries take the same lock.
    """

    def __init__(
        self,
        config: GovernanceConfig | None = None,
        event_store: EventStore | None = None,
        height_provider: HeightProvider | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        """
        Initialize the engine and replay any events already in the store

        Args:
            config: Deployment parameters (defaults: 51% quorum, 144 blocks)
            event_store: Event log (in-memory if None)
            height_provider: Height used when a call omits one
            id_factory: Event and command id generator
        """
        self.config = config or GovernanceConfig()
        self.event_store = event_store if event_store is not None else InMemoryEventStore()
        self.height_provider = height_provider or ManualBlockClock()
        self.id_factory = id_factory or DefaultIdFactory()

        self.token_handlers = TokenCommandHandlers(self.config, self.id_factory)
        self.governance_handlers = GovernanceCommandHandlers(self.config, self.id_factory)

        self.bus = InProcessBus()
        self.bus.register_command_handler("Mint", self._handle_mint)
        self.bus.register_command_handler("Transfer", self._handle_transfer)
        self.bus.register_command_handler("CreateProposal", self._handle_create_proposal)
        self.bus.register_command_handler("CastVote", self._handle_cast_vote)
        self.bus.register_command_handler("ExecuteProposal", self._handle_execute_proposal)

        self._lock = threading.RLock()
        self.state = GovernanceState()
        self._rebuild_state()

    def _rebuild_state(self) -> None:
        """Rebuild all stores from the event log"""
        start = time.perf_counter()
        events = self.event_store.load_all_events()
        self.state = GovernanceState.replay(events)
        if self.config.verify_invariants:
            self.state.verify_invariants()
        replay_duration_seconds.observe(time.perf_counter() - start)
        token_total_supply.set(self.state.ledger.total_supply())
        if events:
            logger.info(
                "Governance state replayed",
                events=len(events),
                proposals=self.state.proposals.count(),
                total_supply=self.state.ledger.total_supply(),
            )

    def _catch_up(self) -> None:
        """Replay again if another writer has appended to the shared log"""
        if self.event_store.count_events() != self.state.events_applied:
            logger.info(
                "Event log moved under the engine, replaying",
                applied=self.state.events_applied,
            )
            self._rebuild_state()

    # Command handlers (bus side): parse the payload, read state, decide

    def _handle_mint(self, command: Command) -> list[Event]:
        return self.token_handlers.handle_mint(
            Mint.model_validate(command.payload),
            command.command_id,
            command.actor_id,
            command.block_height,
            self.state.ledger,
        )

    def _handle_transfer(self, command: Command) -> list[Event]:
        return self.token_handlers.handle_transfer(
            Transfer.model_validate(command.payload),
            command.command_id,
            command.actor_id,
            command.block_height,
            self.state.ledger,
        )

    def _handle_create_proposal(self, command: Command) -> list[Event]:
        return self.governance_handlers.handle_create_proposal(
            CreateProposal.model_validate(command.payload),
            command.command_id,
            command.actor_id,
            command.block_height,
            self.state.ledger,
            self.state.proposals,
        )

    def _handle_cast_vote(self, command: Command) -> list[Event]:
        return self.governance_handlers.handle_cast_vote(
            CastVote.model_validate(command.payload),
            command.command_id,
            command.actor_id,
            command.block_height,
            self.state.ledger,
            self.state.proposals,
            self.state.votes,
        )

    def _handle_execute_proposal(self, command: Command) -> list[Event]:
        return self.governance_handlers.handle_execute_proposal(
            ExecuteProposal.model_validate(command.payload),
            command.command_id,
            command.actor_id,
            command.block_height,
            self.state.ledger,
            self.state.proposals,
        )

    # Decide + commit

    def _resolve_height(self, height: int | None) -> int:
        return self.height_provider.current_height() if height is None else height

    def _execute(
        self,
        command_type: str,
        payload: dict[str, Any],
        actor_id: str | None,
        height: int | None,
    ) -> list[Event]:
        """
        Dispatch a command and commit its events, all under the lock

        The state is brought up to date with the log before deciding. If
        another writer still wins the race for the stream, the command is
        decided once more against the replayed state.
        """
        with self._lock:
            command = create_command(
                command_id=self.id_factory.generate(),
                command_type=command_type,
                actor_id=actor_id,
                block_height=self._resolve_height(height),
                payload=payload,
            )
            self._catch_up()
            events = self.bus.dispatch_command(command)
            try:
                self._commit(events)
            except StreamVersionConflict as e:
                logger.warning(
                    "Stream advanced by another writer, deciding again",
                    stream_id=e.stream_id,
                    command_type=command_type,
                )
                self._rebuild_state()
                events = self.bus.dispatch_command(command)
                self._commit(events)
            self.bus.publish_events(events)
            return events

    def _commit(self, events: list[Event]) -> None:
        """
        Stage events on a copy of the state, then append and swap it in

        Projection checks and invariant verification run on the copy, so a
        rejection leaves both the log and the live state untouched.
        """
        if not events:
            return
        staged = copy.deepcopy(self.state)
        for event in events:
            staged.apply_event(event)
        if self.config.verify_invariants:
            staged.verify_invariants()

        head = events[0]
        self.event_store.append(head.stream_id, head.version - 1, events)
        self.state = staged
        for event in events:
            self._record_metrics(event)

    def _record_metrics(self, event: Event) -> None:
        if event.event_type == "TokensMinted":
            token_total_supply.set(self.state.ledger.total_supply())
        elif event.event_type == "TokensTransferred":
            token_transfers_total.inc()
        elif event.event_type == "ProposalCreated":
            proposals_created_total.inc()
        elif event.event_type == "VoteCast":
            votes_cast_total.labels(choice=event.payload["choice"]).inc()
            vote_weight_total.labels(choice=event.payload["choice"]).inc(
                event.payload["weight"]
            )
        elif event.event_type == "ProposalExecuted":
            proposals_executed_total.labels(outcome=event.payload["outcome"]).inc()

    # Token operations

    def mint(self, recipient: str, amount: int, caller: str | None = None) -> int:
        """
        Create tokens for recipient

        Args:
            recipient: Account credited
            amount: Token units (must be positive)
            caller: Required to equal config.minter when one is configured

        Returns:
            Recipient's new balance

        Raises:
            ZeroAmount: If amount <= 0
            NotAuthorized: If caller is not the configured minter
        """
        with self._lock:
            self._execute(
                "Mint",
                Mint(recipient=recipient, amount=amount).model_dump(),
                caller,
                height=None,
            )
            return self.state.ledger.balance_of(recipient)

    def transfer(self, amount: int, sender: str, recipient: str, caller: str | None) -> int:
        """
        Move tokens from sender to recipient on the caller's authority

        Returns:
            Sender's new balance

        Raises:
            NotAuthorized: If caller != sender
            ZeroAmount: If amount <= 0
            InsufficientBalance: If amount exceeds the sender's balance
        """
        with self._lock:
            self._execute(
                "Transfer",
                Transfer(amount=amount, sender=sender, recipient=recipient).model_dump(),
                caller,
                height=None,
            )
            return self.state.ledger.balance_of(sender)

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self.state.ledger.balance_of(account)

    def total_supply(self) -> int:
        with self._lock:
            return self.state.ledger.total_supply()

    def holders(self) -> list[Holder]:
        """Accounts with a positive balance, largest first"""
        with self._lock:
            return self.state.ledger.holders()

    def get_name(self) -> str:
        return self.config.token_name

    def get_symbol(self) -> str:
        return self.config.token_symbol

    def get_decimals(self) -> int:
        return self.config.token_decimals

    def token_metadata(self) -> TokenMetadata:
        return TokenMetadata(
            name=self.config.token_name,
            symbol=self.config.token_symbol,
            decimals=self.config.token_decimals,
        )

    # Proposal lifecycle

    def create_proposal(
        self,
        creator: str,
        title: str,
        description: str,
        link: str,
        height: int | None = None,
    ) -> int:
        """
        Open a proposal for voting at the given height

        Returns:
            The new proposal id (sequential from 0)

        Raises:
            InsufficientBalance: If the creator holds no tokens
        """
        with self._lock:
            events = self._execute(
                "CreateProposal",
                CreateProposal(
                    creator=creator, title=title, description=description, link=link
                ).model_dump(),
                creator,
                height,
            )
            return events[0].payload["proposal_id"]

    def vote(
        self,
        proposal_id: int,
        voter: str,
        choice: VoteChoice | str | bool,
        height: int | None = None,
    ) -> VoteRecord:
        """
        Cast the voter's whole balance for YES or NO

        Raises:
            ProposalNotFound: If the proposal doesn't exist
            ProposalExpired: If height is outside [start_height, end_height)
            InsufficientBalance: If the voter holds no tokens
            AlreadyVoted: If the voter already voted on this proposal
        """
        with self._lock:
            self._execute(
                "CastVote",
                CastVote(
                    proposal_id=proposal_id, voter=voter, choice=VoteChoice.parse(choice)
                ).model_dump(mode="json"),
                voter,
                height,
            )
            return self.state.votes.get(proposal_id, voter)

    def execute_proposal(
        self,
        proposal_id: int,
        height: int | None = None,
        caller: str | None = None,
    ) -> ExecutionOutcome:
        """
        Resolve a closed proposal, once

        Returns:
            PASSED if yes_weight > no_weight, otherwise REJECTED

        Raises:
            ProposalNotFound: If the proposal doesn't exist
            ProposalNotEnded: If height < end_height
            AlreadyExecuted: If the proposal was executed before
            QuorumNotReached: If cast weight is below the quorum threshold
        """
        with self._lock:
            events = self._execute(
                "ExecuteProposal",
                ExecuteProposal(proposal_id=proposal_id).model_dump(),
                caller,
                height,
            )
            return ExecutionOutcome(events[0].payload["outcome"])

    # Read-only queries (never raise on "not found")

    def get_proposal(self, proposal_id: int) -> Proposal | None:
        """A copy of the proposal, or None"""
        with self._lock:
            proposal = self.state.proposals.get(proposal_id)
            return proposal.model_copy() if proposal is not None else None

    def get_proposal_count(self) -> int:
        with self._lock:
            return self.state.proposals.count()

    def list_proposals(
        self, height: int | None = None, state: ProposalState | None = None
    ) -> list[Proposal]:
        """All proposals in id order, optionally only those in one state"""
        with self._lock:
            proposals = [p.model_copy() for p in self.state.proposals.list_all()]
            if state is None:
                return proposals
            current = self._resolve_height(height)
            return [p for p in proposals if p.state_at(current) == ProposalState(state)]

    def get_vote(self, proposal_id: int, voter: str) -> VoteRecord | None:
        with self._lock:
            return self.state.votes.get(proposal_id, voter)

    def get_votes(self, proposal_id: int) -> list[VoteRecord]:
        with self._lock:
            return self.state.votes.votes_for(proposal_id)

    def has_voted(self, proposal_id: int, voter: str) -> bool:
        with self._lock:
            return self.state.votes.has_voted(proposal_id, voter)

    def quorum_threshold(self) -> int:
        """Weight needed for quorum at the current total supply"""
        with self._lock:
            return self.config.quorum_threshold(self.state.ledger.total_supply())

    def has_proposal_passed(self, proposal_id: int, height: int | None = None) -> bool:
        """
        True iff voting has ended, quorum is met and yes > no

        Executed or not makes no difference. Never raises.
        """
        with self._lock:
            return has_passed(
                self.state.proposals.get(proposal_id),
                self._resolve_height(height),
                self.quorum_threshold(),
            )

    def proposal_state(
        self, proposal_id: int, height: int | None = None
    ) -> ProposalState | None:
        """Lifecycle state at a height, or None for an unknown proposal"""
        with self._lock:
            proposal = self.state.proposals.get(proposal_id)
            if proposal is None:
                return None
            return proposal.state_at(self._resolve_height(height))

    # Log, subscriptions, health

    def get_events(
        self,
        stream_type: str | None = None,
        event_type: str | None = None,
        limit: int | None = None,
    ) -> list[Event]:
        """Committed events in commit order"""
        with self._lock:
            return self.event_store.query_events(
                stream_type=stream_type, event_type=event_type, limit=limit
            )

    def subscribe(self, event_type: str, handler: Callable[[Event], None]) -> None:
        """
        Be told about committed events of one type ('*' for all)

        Handlers run after the commit, inside the engine lock, so they see
        events in commit order. A failing handler is logged and skipped.
        """
        self.bus.register_event_handler(event_type, handler)

    def snapshot(self) -> dict[str, Any]:
        """Plain-dict export of ledger, proposals and votes"""
        with self._lock:
            return self.state.snapshot()

    def verify_invariants(self) -> None:
        """
        Raises:
            InvariantViolation: If any cross-store invariant is broken
        """
        with self._lock:
            self.state.verify_invariants()

    def health(self) -> dict[str, Any]:
        """Summary used by the health endpoint and the CLI"""
        with self._lock:
            self._catch_up()
            ledger = self.state.ledger
            return {
                "total_supply": ledger.total_supply(),
                "holders": len(ledger.balances),
                "proposals": self.state.proposals.count(),
                "votes": self.state.votes.count(),
                "events": self.event_store.count_events(),
                "quorum_threshold": self.config.quorum_threshold(ledger.total_supply()),
                "supply_conserved": ledger.is_conserved(),
            }
