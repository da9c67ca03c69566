"""
DAO Governance CLI

Developer tool over a SQLite event log. The chain is simulated: every
command that depends on block height takes it explicitly, and the caller
identity is passed with --caller.

Usage:
    dao init --db dao.db
    dao token mint --to account1 --amount 1000
    dao token transfer --from account1 --to account2 --amount 100 --caller account1
    dao proposal create --creator account1 --title "Fund audit" --height 100
    dao proposal vote --id 0 --voter account1 --choice yes --height 120
    dao proposal execute --id 0 --height 244
    dao health

Parameters come from DAO_* environment variables (see GovernanceConfig.from_env).
"""

import json
from pathlib import Path
from typing import NoReturn, Optional

import typer
from typing_extensions import Annotated

from dao_governance.engine import GovernanceEngine
from dao_governance.governance.models import ProposalState
from dao_governance.kernel.config import GovernanceConfig
from dao_governance.kernel.errors import GovernanceError
from dao_governance.kernel.event_store import SQLiteEventStore
from dao_governance.kernel.height import ManualBlockClock
from dao_governance.kernel.logging import configure_logging

# Logs go to stderr so stdout stays parseable
configure_logging(json_output=False, log_level="WARNING")

app = typer.Typer(
    name="dao",
    help="DAO Governance - token-weighted proposals and voting",
    add_completion=False,
)

token_app = typer.Typer(help="Token ledger commands")
proposal_app = typer.Typer(help="Proposal lifecycle commands")

app.add_typer(token_app, name="token")
app.add_typer(proposal_app, name="proposal")

DEFAULT_DB = Path(".dao.db")


def get_engine(db_path: Optional[Path] = None, height: int = 0) -> GovernanceEngine:
    """Open the engine over an existing event log"""
    db = db_path or DEFAULT_DB
    if not db.exists():
        typer.echo(f"Error: Database not found: {db}", err=True)
        typer.echo(f"Run 'dao init --db {db}' to initialize", err=True)
        raise typer.Exit(1)
    return GovernanceEngine(
        config=GovernanceConfig.from_env(),
        event_store=SQLiteEventStore(db),
        height_provider=ManualBlockClock(height),
    )


def fail(error: GovernanceError) -> NoReturn:
    """Report a rejected command and exit with status 1"""
    typer.echo(f"Error {error.code} ({type(error).__name__}): {error}", err=True)
    raise typer.Exit(1)


DbOption = Annotated[Optional[Path], typer.Option("--db", help="Database path")]
JsonOption = Annotated[bool, typer.Option("--json", help="Output as JSON")]


@app.command()
def init(
    db: Annotated[
        Path,
        typer.Option(help="Database path"),
    ] = DEFAULT_DB,
) -> None:
    """Initialize a new event log"""
    if db.exists():
        typer.echo(f"Error: Database already exists: {db}", err=True)
        raise typer.Exit(1)

    SQLiteEventStore(db)
    config = GovernanceConfig.from_env()
    typer.echo(f"✓ Initialized DAO database: {db}")
    typer.echo(
        f"  Token: {config.token_name} ({config.token_symbol}, "
        f"{config.token_decimals} decimals)"
    )
    typer.echo(
        f"  Quorum: {config.quorum_percentage}%  "
        f"Voting period: {config.voting_period} blocks"
    )


# Token commands


@token_app.command("mint")
def token_mint(
    to: Annotated[str, typer.Option("--to", help="Recipient account")],
    amount: Annotated[int, typer.Option("--amount", help="Token units")],
    caller: Annotated[
        Optional[str], typer.Option("--caller", help="Caller identity (minter)")
    ] = None,
    height: Annotated[int, typer.Option("--height", help="Block height")] = 0,
    db: DbOption = None,
) -> None:
    """Mint new tokens"""
    engine = get_engine(db, height)
    try:
        balance = engine.mint(to, amount, caller=caller)
    except GovernanceError as e:
        fail(e)

    typer.echo(f"✓ Minted {amount} to {to}")
    typer.echo(f"  Balance: {balance}  Total supply: {engine.total_supply()}")


@token_app.command("transfer")
def token_transfer(
    sender: Annotated[str, typer.Option("--from", help="Sender account")],
    recipient: Annotated[str, typer.Option("--to", help="Recipient account")],
    amount: Annotated[int, typer.Option("--amount", help="Token units")],
    caller: Annotated[str, typer.Option("--caller", help="Caller identity")],
    height: Annotated[int, typer.Option("--height", help="Block height")] = 0,
    db: DbOption = None,
) -> None:
    """Transfer tokens (caller must be the sender)"""
    engine = get_engine(db, height)
    try:
        remaining = engine.transfer(amount, sender, recipient, caller=caller)
    except GovernanceError as e:
        fail(e)

    typer.echo(f"✓ Transferred {amount} from {sender} to {recipient}")
    typer.echo(f"  {sender} balance: {remaining}")


@token_app.command("balance")
def token_balance(
    account: Annotated[str, typer.Argument(help="Account to query")],
    db: DbOption = None,
) -> None:
    """Show an account's balance"""
    engine = get_engine(db)
    typer.echo(f"{account}: {engine.balance_of(account)}")


@token_app.command("info")
def token_info(
    json_output: JsonOption = False,
    db: DbOption = None,
) -> None:
    """Show token metadata, supply and holders"""
    engine = get_engine(db)
    info = {
        **engine.token_metadata().model_dump(),
        "total_supply": engine.total_supply(),
        "holders": [h.model_dump() for h in engine.holders()],
    }

    if json_output:
        typer.echo(json.dumps(info, indent=2))
        return

    typer.echo(f"{info['name']} ({info['symbol']}), {info['decimals']} decimals")
    typer.echo(f"Total supply: {info['total_supply']}")
    for holder in engine.holders():
        typer.echo(f"  {holder.account}: {holder.balance} ({holder.share:.1%})")


# Proposal commands


@proposal_app.command("create")
def proposal_create(
    creator: Annotated[str, typer.Option("--creator", help="Creator account")],
    title: Annotated[str, typer.Option("--title", help="Proposal title")],
    height: Annotated[int, typer.Option("--height", help="Block height")],
    description: Annotated[str, typer.Option("--description", help="Description")] = "",
    link: Annotated[str, typer.Option("--link", help="Link to details")] = "",
    db: DbOption = None,
) -> None:
    """Create a proposal open from --height for one voting period"""
    engine = get_engine(db, height)
    try:
        proposal_id = engine.create_proposal(creator, title, description, link, height=height)
    except GovernanceError as e:
        fail(e)

    proposal = engine.get_proposal(proposal_id)
    typer.echo(f"✓ Created proposal: {proposal_id}")
    typer.echo(f"  Title: {proposal.title}")
    typer.echo(f"  Voting: blocks {proposal.start_height} to {proposal.end_height - 1}")


@proposal_app.command("vote")
def proposal_vote(
    proposal_id: Annotated[int, typer.Option("--id", help="Proposal id")],
    voter: Annotated[str, typer.Option("--voter", help="Voting account")],
    choice: Annotated[str, typer.Option("--choice", help="yes or no")],
    height: Annotated[int, typer.Option("--height", help="Block height")],
    db: DbOption = None,
) -> None:
    """Vote on a proposal with the voter's full balance"""
    engine = get_engine(db, height)
    try:
        record = engine.vote(proposal_id, voter, choice, height=height)
    except GovernanceError as e:
        fail(e)
    except ValueError:
        typer.echo(f"Error: choice must be 'yes' or 'no', got {choice!r}", err=True)
        raise typer.Exit(2)

    typer.echo(f"✓ {voter} voted {record.choice.value} with weight {record.weight}")


@proposal_app.command("execute")
def proposal_execute(
    proposal_id: Annotated[int, typer.Option("--id", help="Proposal id")],
    height: Annotated[int, typer.Option("--height", help="Block height")],
    caller: Annotated[
        Optional[str], typer.Option("--caller", help="Caller identity")
    ] = None,
    db: DbOption = None,
) -> None:
    """Execute a closed proposal"""
    engine = get_engine(db, height)
    try:
        outcome = engine.execute_proposal(proposal_id, height=height, caller=caller)
    except GovernanceError as e:
        fail(e)

    typer.echo(f"✓ Executed proposal {proposal_id}: {outcome.value}")


@proposal_app.command("show")
def proposal_show(
    proposal_id: Annotated[int, typer.Option("--id", help="Proposal id")],
    height: Annotated[int, typer.Option("--height", help="Block height")],
    json_output: JsonOption = False,
    db: DbOption = None,
) -> None:
    """Show a proposal, its tally and its state at --height"""
    engine = get_engine(db, height)
    proposal = engine.get_proposal(proposal_id)
    if proposal is None:
        typer.echo(f"Error: Proposal not found: {proposal_id}", err=True)
        raise typer.Exit(1)

    state = engine.proposal_state(proposal_id, height=height)
    passed = engine.has_proposal_passed(proposal_id, height=height)

    if json_output:
        data = {
            **proposal.model_dump(mode="json"),
            "state": state.value,
            "passed": passed,
            "votes": [v.model_dump(mode="json") for v in engine.get_votes(proposal_id)],
        }
        typer.echo(json.dumps(data, indent=2))
        return

    typer.echo(f"Proposal {proposal.proposal_id}: {proposal.title}")
    typer.echo(f"  Creator: {proposal.creator}")
    if proposal.link:
        typer.echo(f"  Link: {proposal.link}")
    typer.echo(f"  Window: [{proposal.start_height}, {proposal.end_height})")
    typer.echo(f"  State: {state.value}")
    typer.echo(f"  Yes: {proposal.yes_weight}  No: {proposal.no_weight}")
    typer.echo(f"  Quorum threshold: {engine.quorum_threshold()}")
    typer.echo(f"  Passed: {'yes' if passed else 'no'}")


@proposal_app.command("list")
def proposal_list(
    height: Annotated[int, typer.Option("--height", help="Block height")] = 0,
    state: Annotated[
        Optional[ProposalState], typer.Option("--state", help="Only this state")
    ] = None,
    db: DbOption = None,
) -> None:
    """List proposals"""
    engine = get_engine(db, height)
    proposals = engine.list_proposals(height=height, state=state)

    if not proposals:
        typer.echo("No proposals")
        return

    typer.echo(f"Proposals ({len(proposals)}):")
    for p in proposals:
        typer.echo(
            f"  {p.proposal_id}: {p.title} [{p.state_at(height).value}] "
            f"yes={p.yes_weight} no={p.no_weight}"
        )


@app.command()
def health(
    json_output: JsonOption = False,
    db: DbOption = None,
) -> None:
    """Show ledger and proposal summary"""
    engine = get_engine(db)
    summary = engine.health()

    if json_output:
        typer.echo(json.dumps(summary, indent=2))
        return

    typer.echo("DAO Governance Status:")
    typer.echo(f"  Total supply: {summary['total_supply']} ({summary['holders']} holders)")
    typer.echo(f"  Proposals: {summary['proposals']}  Votes: {summary['votes']}")
    typer.echo(f"  Events: {summary['events']}")
    typer.echo(f"  Quorum threshold: {summary['quorum_threshold']}")
    typer.echo(f"  Supply conserved: {'yes' if summary['supply_conserved'] else 'NO'}")


def main() -> None:
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
