"""
CLI interface for RAG Cost Simulator.

Provides command-line access to token estimation, cost calculation,
and the simulated RAG chat.
"""

import sys
from dataclasses import replace
from decimal import Decimal
from typing import Optional, Sequence

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rag_cost_sim.config.loader import SimulationConfig, StageDelays, load_simulation_config
from rag_cost_sim.core.cost import (
    EmbeddingScenario,
    calculate_cost,
    compare_model_costs,
    estimate_bulk_embedding_cost,
)
from rag_cost_sim.core.errors import StageFailed
from rag_cost_sim.core.pipeline import PipelineStageMachine, SessionContext, TurnResult
from rag_cost_sim.core.pricing import (
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_GENERATIVE_MODEL,
    PRICING_TABLE,
    resolve_embedding_model,
    resolve_generative_model,
)
from rag_cost_sim.core.stages import Stage, StageStatus
from rag_cost_sim.core.token_counter import estimate_tokens
from rag_cost_sim.storage.models import SessionTotals

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

EXIT_COMMANDS = {"exit", "quit"}

_STATUS_STYLES = {
    StageStatus.WAITING: "dim",
    StageStatus.PROCESSING: "blue",
    StageStatus.COMPLETED: "green",
    StageStatus.ERROR: "red",
}

_STATUS_LABELS = {
    StageStatus.WAITING: "Pending",
    StageStatus.PROCESSING: "In progress...",
    StageStatus.COMPLETED: "Completed",
    StageStatus.ERROR: "Error",
}

# UnknownModel and InvalidArgument are ValueErrors
_USER_ERRORS = (ValueError, FileNotFoundError, yaml.YAMLError)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """RAG Cost Simulator CLI."""
    if ctx.invoked_subcommand is None:
        console.print("RAG Cost Simulator - Use --help to see available commands")


@app.command()
def models():
    """List generative and embedding model pricing."""
    table = Table(title="Generative models (USD per 1M tokens)")
    table.add_column("Model")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    for model, pricing in PRICING_TABLE.prices.items():
        table.add_row(model.value, f"${pricing.input_cost_per_1m}", f"${pricing.output_cost_per_1m}")
    console.print(table)

    table = Table(title="Embedding models (USD per 1M tokens)")
    table.add_column("Model")
    table.add_column("Price", justify="right")
    table.add_column("Dimensions", justify="right")
    for model, pricing in PRICING_TABLE.embedding_prices.items():
        table.add_row(model.value, f"${pricing.cost_per_1m}", str(pricing.dimensions))
    console.print(table)


@app.command()
def tokens(text: str = typer.Argument(..., help="Text to estimate")):
    """Estimate the token count of a text (about 4 characters per token)."""
    console.print(f"Characters: {len(text):,}")
    console.print(f"Estimated tokens: {estimate_tokens(text):,}")


@app.command()
def cost(
    input_tokens: int = typer.Option(..., "--input-tokens", "-i", help="Input (prompt) tokens"),
    output_tokens: int = typer.Option(0, "--output-tokens", "-o", help="Output (completion) tokens"),
    model: str = typer.Option(DEFAULT_GENERATIVE_MODEL.value, "--model", "-m", help="Generative model"),
    embedding_tokens: int = typer.Option(0, "--embedding-tokens", help="Tokens to embed"),
    embedding_model: Optional[str] = typer.Option(
        None, "--embedding-model", "-e", help="Embedding model (enables embedding cost)"
    ),
    compare: bool = typer.Option(False, "--compare", "-c", help="Compare across all generative models"),
):
    """Calculate the cost of a single request."""
    try:
        breakdown = calculate_cost(
            input_tokens,
            output_tokens,
            model,
            embedding_tokens=embedding_tokens,
            embedding_model=embedding_model,
            include_embedding=embedding_model is not None,
        )
        console.print(f"\n[bold]Cost breakdown[/bold] ({model})")
        console.print("-" * 40)
        console.print(f"Input cost: {_format_cost(breakdown.input_cost)}")
        console.print(f"Output cost: {_format_cost(breakdown.output_cost)}")
        if embedding_model is not None:
            console.print(f"Embedding cost: {_format_cost(breakdown.embedding_cost)}")
        console.print(f"[bold]Total cost:[/bold] {_format_cost(breakdown.total_cost)}")

        if compare:
            table = Table(title="Model comparison")
            table.add_column("Model")
            table.add_column("Input", justify="right")
            table.add_column("Output", justify="right")
            table.add_column("Total", justify="right")
            comparison = compare_model_costs(input_tokens, output_tokens)
            for name, result in sorted(comparison.items(), key=lambda item: item[1].total_cost):
                table.add_row(
                    name.value,
                    _format_cost(result.input_cost),
                    _format_cost(result.output_cost),
                    _format_cost(result.total_cost),
                )
            console.print(table)
    except _USER_ERRORS as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)


@app.command("embedding-cost")
def embedding_cost(
    tokens_per_item: int = typer.Option(180, "--tokens-per-item", "-t", help="Tokens per property or query"),
    items: int = typer.Option(4000, "--items", "-n", help="Number of properties or queries"),
    model: str = typer.Option(DEFAULT_EMBEDDING_MODEL.value, "--model", "-m", help="Embedding model"),
    scenario: EmbeddingScenario = typer.Option(
        EmbeddingScenario.PROPERTY, "--scenario", "-s", help="What is being embedded"
    ),
):
    """Estimate the cost of embedding a property database or user queries."""
    try:
        estimate = estimate_bulk_embedding_cost(tokens_per_item, items, model, scenario)
    except _USER_ERRORS as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    noun = "Property" if estimate.scenario == EmbeddingScenario.PROPERTY else "Query"
    plural = "Properties" if estimate.scenario == EmbeddingScenario.PROPERTY else "Queries"
    console.print(f"\n[bold]Embedding cost estimate[/bold] ({estimate.embedding_model.value})")
    console.print("-" * 40)
    console.print(f"Tokens per {noun}: {estimate.tokens_per_item:,}")
    console.print(f"Number of {plural}: {estimate.item_count:,}")
    console.print(f"Total Tokens: {estimate.total_tokens:,}")
    console.print(f"Million Tokens: {estimate.million_tokens:,.2f}")
    console.print(f"[bold]Estimated Total Cost:[/bold] {_format_currency(estimate.cost)}")


@app.command()
def ask(
    query: str = typer.Argument(..., help="Question for the property search assistant"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Generative model"),
    embedding_model: Optional[str] = typer.Option(None, "--embedding-model", "-e", help="Embedding model"),
    no_rag: bool = typer.Option(False, "--no-rag", help="Skip the retrieval workflow"),
    config: Optional[str] = typer.Option(None, "--config", help="Path to simulation config YAML"),
    fast: bool = typer.Option(False, "--fast", help="Run without simulated latency"),
):
    """Run one simulated RAG turn and show where tokens and cost are incurred."""
    try:
        machine, session = _build_session(model, embedding_model, no_rag, config, fast)
        result = machine.submit(session, query)
    except StageFailed as e:
        _display_stages(session.stages)
        console.print(f"[red]Pipeline failed:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)
    except _USER_ERRORS as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    if result is None:
        console.print("[yellow]Empty message ignored[/]")
        sys.exit(EXIT_CODE_PASS)

    _display_turn(session, result)
    _display_totals(session.totals())


@app.command()
def chat(
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Generative model"),
    embedding_model: Optional[str] = typer.Option(None, "--embedding-model", "-e", help="Embedding model"),
    no_rag: bool = typer.Option(False, "--no-rag", help="Skip the retrieval workflow"),
    config: Optional[str] = typer.Option(None, "--config", help="Path to simulation config YAML"),
    fast: bool = typer.Option(False, "--fast", help="Run without simulated latency"),
):
    """Interactive property search chat with running cost tracking."""
    try:
        machine, session = _build_session(model, embedding_model, no_rag, config, fast)
    except _USER_ERRORS as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    console.print("[bold]Property Search Assistant[/bold] (type 'exit' to quit)")
    while True:
        try:
            text = console.input("\n[bold]You:[/] ")
        except EOFError:
            break
        if text.strip().lower() in EXIT_COMMANDS:
            break
        try:
            result = machine.submit(session, text)
        except StageFailed as e:
            _display_stages(session.stages)
            console.print(f"[red]Pipeline failed:[/] {escape(str(e))}")
            continue
        except _USER_ERRORS as e:
            console.print(f"[red]Error:[/] {escape(str(e))}")
            continue
        if result is None:
            continue
        _display_turn(session, result, show_prompt=False)
        _display_totals(session.totals())

    _display_history(session)


def _build_session(
    model: Optional[str],
    embedding_model: Optional[str],
    no_rag: bool,
    config_path: Optional[str],
    fast: bool,
):
    """Create a pipeline machine and session from CLI options."""
    config = load_simulation_config(config_path) if config_path else SimulationConfig()
    if fast:
        config = replace(config, delays=StageDelays.zero())

    machine = PipelineStageMachine(config=config, on_transition=_print_transition)
    session = machine.new_session()
    if model is not None:
        session.settings.model = resolve_generative_model(model)
    if embedding_model is not None:
        session.settings.embedding_model = resolve_embedding_model(embedding_model)
    if no_rag:
        session.settings.include_embedding = False
    return machine, session


def _print_transition(stage: Stage, previous: StageStatus, current: StageStatus) -> None:
    style = _STATUS_STYLES[current]
    console.print(f"[{style}]{_STATUS_LABELS[current]:<15}[/] {stage.title}")


def _format_cost(amount: Decimal) -> str:
    """Format a per-request cost with enough precision for small amounts."""
    return f"${amount:.6f}"


def _format_currency(amount: Decimal) -> str:
    """Format currency with proper symbols and formatting."""
    return f"${abs(amount):,.2f}"


def _display_turn(session: SessionContext, result: TurnResult, show_prompt: bool = True):
    """Display the stages, matches, and messages of a completed turn."""
    _display_stages(result.stages)

    if result.matched_records:
        matches = Table(title="Top matches")
        matches.add_column("Property")
        matches.add_column("Type")
        matches.add_column("Location")
        matches.add_column("Price", justify="right")
        matches.add_column("Similarity", justify="right")
        for record in result.matched_records:
            matches.add_row(
                record.id,
                f"{record.bedrooms}BR {record.type}",
                record.address,
                f"${record.price}/wk",
                f"{record.similarity * 100:.0f}%",
            )
        console.print(matches)

    if show_prompt and result.prompt:
        console.print(f"\n[bold]RAG prompt[/bold] ({estimate_tokens(result.prompt)} tokens):")
        console.print(escape(result.prompt))

    for message in (result.user_message, result.assistant_message):
        console.print(f"\n[bold]{message.role.value}:[/bold] {escape(message.content)}")
        console.print(f"[dim]{message.tokens} tokens ({_format_cost(message.cost)})[/]")


def _display_stages(stages: Sequence[Stage]):
    """Display the stage table, including any errored stage."""
    table = Table(title="RAG Process")
    table.add_column("#", justify="right")
    table.add_column("Stage")
    table.add_column("Status")
    table.add_column("Tokens", justify="right")
    table.add_column("Cost", justify="right")
    for index, stage in enumerate(stages, start=1):
        table.add_row(
            str(index),
            stage.title,
            _STATUS_LABELS[stage.status],
            "" if stage.tokens is None else f"{stage.tokens:,}",
            "" if stage.cost is None else _format_cost(stage.cost),
        )
    console.print(table)
    for stage in stages:
        if stage.status == StageStatus.ERROR:
            console.print(f"[red]{stage.title}:[/] {escape(stage.error or '')}")


def _display_totals(totals: SessionTotals):
    """Display running session totals."""
    console.print("\n[bold]Cost Tracking[/bold]")
    console.print("-" * 40)
    console.print(f"Input Tokens: {totals.input_tokens:,}")
    console.print(f"Output Tokens: {totals.output_tokens:,}")
    console.print(f"Embedding Tokens: {totals.embedding_tokens:,}")
    console.print(f"Total Cost: {_format_cost(totals.total_cost)}")


def _display_history(session: SessionContext):
    """Display the session ledger, one row per turn."""
    history = session.history
    if not history:
        return
    table = Table(title="Session history")
    table.add_column("Time")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    table.add_column("Embedding", justify="right")
    table.add_column("Total cost", justify="right")
    for entry in history:
        table.add_row(
            entry.timestamp.strftime("%H:%M:%S"),
            f"{entry.input_tokens:,}",
            f"{entry.output_tokens:,}",
            "-" if entry.embedding_tokens is None else f"{entry.embedding_tokens:,}",
            _format_cost(entry.total_cost),
        )
    console.print(table)


if __name__ == "__main__":
    app()
