"""
Governance Handlers - Command→Event transformation for proposals

Each handler runs its checks in a fixed order so a command that breaks
several rules always reports the same error. They only read the
projections; committing the returned events is the engine's job.
"""

from dao_governance.governance.commands import CastVote, CreateProposal, ExecuteProposal
from dao_governance.governance.events import ProposalCreated, ProposalExecuted, VoteCast
from dao_governance.governance.invariants import (
    decide_outcome,
    require_proposal,
    validate_holds_tokens,
    validate_not_executed,
    validate_not_voted,
    validate_quorum,
    validate_voting_ended,
    validate_voting_window,
)
from dao_governance.governance.projections import (
    ProposalStore,
    VoteRegistry,
    proposal_stream_id,
)
from dao_governance.kernel.config import GovernanceConfig
from dao_governance.kernel.events import Event, create_event
from dao_governance.kernel.ids import DefaultIdFactory, IdFactory
from dao_governance.token.projections import TokenLedger


class GovernanceCommandHandlers:
    """
    Command handlers for the governance module

    Quorum percentage and voting period come from the config fixed at
    construction.
    """

    def __init__(
        self,
        config: GovernanceConfig,
        id_factory: IdFactory | None = None,
    ) -> None:
        self.config = config
        self.id_factory = id_factory or DefaultIdFactory()

    def handle_create_proposal(
        self,
        command: CreateProposal,
        command_id: str,
        actor_id: str | None,
        block_height: int,
        ledger: TokenLedger,
        proposals: ProposalStore,
    ) -> list[Event]:
        """
        Handle CreateProposal command

        The proposal opens at block_height and closes voting_period blocks
        later.

        Raises:
            InsufficientBalance: If the creator holds no tokens
        """
        validate_holds_tokens(command.creator, ledger.balance_of(command.creator))

        proposal_id = proposals.next_id()
        payload = ProposalCreated(
            proposal_id=proposal_id,
            creator=command.creator,
            title=command.title,
            description=command.description,
            link=command.link,
            start_height=block_height,
            end_height=block_height + self.config.voting_period,
        ).model_dump(mode="json")

        return [
            create_event(
                event_id=self.id_factory.generate(),
                stream_id=proposal_stream_id(proposal_id),
                stream_type="proposal",
                event_type="ProposalCreated",
                block_height=block_height,
                command_id=command_id,
                actor_id=actor_id,
                payload=payload,
                version=1,
            )
        ]

    def handle_cast_vote(
        self,
        command: CastVote,
        command_id: str,
        actor_id: str | None,
        block_height: int,
        ledger: TokenLedger,
        proposals: ProposalStore,
        votes: VoteRegistry,
    ) -> list[Event]:
        """
        Handle CastVote command

        Checks, in order: proposal exists, window is open, voter holds
        tokens, voter hasn't voted. The weight is the voter's balance now.

        Raises:
            ProposalNotFound, ProposalExpired, InsufficientBalance, AlreadyVoted
        """
        proposal = require_proposal(proposals.get(command.proposal_id), command.proposal_id)
        validate_voting_window(proposal, block_height)

        weight = ledger.balance_of(command.voter)
        validate_holds_tokens(command.voter, weight)
        validate_not_voted(
            votes.has_voted(command.proposal_id, command.voter),
            command.proposal_id,
            command.voter,
        )

        payload = VoteCast(
            proposal_id=command.proposal_id,
            voter=command.voter,
            choice=command.choice,
            weight=weight,
        ).model_dump(mode="json")

        return [
            create_event(
                event_id=self.id_factory.generate(),
                stream_id=proposal_stream_id(command.proposal_id),
                stream_type="proposal",
                event_type="VoteCast",
                block_height=block_height,
                command_id=command_id,
                actor_id=actor_id,
                payload=payload,
                version=proposals.version_of(command.proposal_id) + 1,
            )
        ]

    def handle_execute_proposal(
        self,
        command: ExecuteProposal,
        command_id: str,
        actor_id: str | None,
        block_height: int,
        ledger: TokenLedger,
        proposals: ProposalStore,
    ) -> list[Event]:
        """
        Handle ExecuteProposal command

        Quorum is measured against total supply at execution time, not at
        creation time.

        Raises:
            ProposalNotFound, ProposalNotEnded, AlreadyExecuted, QuorumNotReached
        """
        proposal = require_proposal(proposals.get(command.proposal_id), command.proposal_id)
        validate_voting_ended(proposal, block_height)
        validate_not_executed(proposal)

        total_supply = ledger.total_supply()
        threshold = self.config.quorum_threshold(total_supply)
        validate_quorum(proposal, threshold)

        payload = ProposalExecuted(
            proposal_id=proposal.proposal_id,
            outcome=decide_outcome(proposal.yes_weight, proposal.no_weight),
            yes_weight=proposal.yes_weight,
            no_weight=proposal.no_weight,
            quorum_threshold=threshold,
            total_supply=total_supply,
        ).model_dump(mode="json")

        return [
            create_event(
                event_id=self.id_factory.generate(),
                stream_id=proposal_stream_id(proposal.proposal_id),
                stream_type="proposal",
                event_type="ProposalExecuted",
                block_height=block_height,
                command_id=command_id,
                actor_id=actor_id,
                payload=payload,
                version=proposals.version_of(proposal.proposal_id) + 1,
            )
        ]
