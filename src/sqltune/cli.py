"""SQL tuning CLI.

Seeds the knowledge base, analyzes statements, generates rewrite
suggestions for slow queries and manages their review status.
"""

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

import structlog
import typer

from sqltune.config import Settings, load_settings
from sqltune.errors import SqlTuneError
from sqltune.models.result import OptimizationResult
from sqltune.services.analyzer import QueryAnalyzer
from sqltune.services.factory import Services, create_services

T = TypeVar("T")

SAMPLE_SEARCH_QUERY = "JOIN optimization performance index"


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        context_class=dict,
        cache_logger_on_first_use=False,
    )


logger = structlog.get_logger(__name__)

app = typer.Typer(
    name="sqltune",
    help="""Suggest explainable rewrites for slow SQL statements.

Examples:

  # Load the curated SQL performance articles
  uv run sqltune seed-docs

  # Profile a statement without calling the generator
  uv run sqltune analyze "SELECT * FROM orders ORDER BY created_at"

  # Generate a suggestion and review it
  uv run sqltune optimize --slow-query-id 42 "SELECT * FROM orders ORDER BY created_at"
  uv run sqltune pending
  uv run sqltune accept <result-id>""",
    rich_markup_mode="markdown",
)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file (default: $SQLTUNE_CONFIG_FILE or sqltune.yaml)",
    ),
) -> None:
    """Load configuration and set up logging for every command."""
    # Settings loading logs too; keep it on stderr at the default level
    configure_logging()
    try:
        settings = load_settings(config)
    except ValueError as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(1) from e
    configure_logging(settings.log_level, settings.log_json)
    ctx.obj = settings


def _run(settings: Settings, action: Callable[[Services], Awaitable[T]]) -> T:
    async def run() -> T:
        async with create_services(settings) as services:
            return await action(services)

    try:
        return asyncio.run(run())
    except SqlTuneError as e:
        logger.error("command_failed", error=str(e), error_type=type(e).__name__)
        raise typer.Exit(1) from e
    except ValueError as e:
        logger.error("invalid_configuration", error=str(e))
        raise typer.Exit(1) from e


def _echo_result(result: OptimizationResult) -> None:
    typer.echo(f"Result:     {result.result_id}")
    typer.echo(f"Status:     {result.status.value}")
    typer.echo(f"Confidence: {result.confidence_score:.2f}")
    typer.echo(f"Type:       {result.pattern.type.value} ({result.pattern.complexity.value})")
    if result.pattern.anti_patterns:
        typer.echo(f"Anti-patterns: {', '.join(result.pattern.anti_patterns)}")
    typer.echo("")
    typer.echo(result.optimized_sql)
    typer.echo("")
    if result.rationale:
        typer.echo(f"Rationale: {result.rationale}")
    if result.expected_improvement:
        typer.echo(f"Expected plan change: {result.expected_improvement}")
    if result.caveats:
        typer.echo(f"Caveats: {result.caveats}")


@app.command("seed-docs")
def seed_docs(ctx: typer.Context) -> None:
    """Upsert the curated knowledge base and run a sample search."""
    settings: Settings = ctx.obj

    async def action(services: Services) -> None:
        documents = await services.document_store.seed()
        typer.echo(f"Seeded {len(documents)} documents")
        results = await services.document_store.search(SAMPLE_SEARCH_QUERY, settings.top_k)
        typer.echo(f"Sample search '{SAMPLE_SEARCH_QUERY}' returned {len(results)} results")
        for hit in results:
            typer.echo(f"  {hit.score:.3f}  {hit.title} ({hit.category})")

    _run(settings, action)


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Search query"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum number of passages"),
) -> None:
    """Search the knowledge base."""
    settings: Settings = ctx.obj

    async def action(services: Services) -> None:
        results = await services.document_store.search(query, limit or settings.top_k)
        if not results:
            typer.echo("No passages within the distance threshold.")
        for hit in results:
            typer.echo(f"{hit.score:.3f}  {hit.title} ({hit.category}) #{hit.chunk_index}")
            typer.echo(f"       {hit.text[:120]}")

    _run(settings, action)


@app.command()
def analyze(sql: str = typer.Argument(..., help="SQL statement to profile")) -> None:
    """Print the structural profile of a SQL statement as JSON."""
    pattern = QueryAnalyzer().analyze(sql)
    typer.echo(pattern.model_dump_json(indent=2))


@app.command()
def optimize(
    ctx: typer.Context,
    sql: str = typer.Argument(..., help="Slow SQL statement"),
    slow_query_id: int = typer.Option(0, "--slow-query-id", "-i", help="Id of the originating slow query"),
) -> None:
    """Generate and store a rewrite suggestion for a slow statement."""
    settings: Settings = ctx.obj
    result = _run(settings, lambda services: services.engine.optimize_query(slow_query_id, sql))
    _echo_result(result)


@app.command()
def pending(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum number of results"),
) -> None:
    """List pending suggestions, highest confidence first."""
    settings: Settings = ctx.obj
    results = _run(settings, lambda services: services.engine.list_pending(limit))
    if not results:
        typer.echo("No pending optimizations.")
    for result in results:
        typer.echo(
            f"{result.result_id}  {result.confidence_score:.2f}  "
            f"slow_query={result.slow_query_id}  {result.pattern.type.value}"
        )


@app.command()
def show(ctx: typer.Context, result_id: str = typer.Argument(..., help="Optimization result id")) -> None:
    """Show a stored suggestion."""
    settings: Settings = ctx.obj
    _echo_result(_run(settings, lambda services: services.engine.get_by_id(result_id)))


@app.command()
def accept(ctx: typer.Context, result_id: str = typer.Argument(..., help="Optimization result id")) -> None:
    """Mark a pending suggestion as accepted."""
    settings: Settings = ctx.obj
    result = _run(settings, lambda services: services.engine.accept(result_id))
    typer.echo(f"Accepted {result.result_id}")


@app.command()
def reject(ctx: typer.Context, result_id: str = typer.Argument(..., help="Optimization result id")) -> None:
    """Mark a pending suggestion as rejected."""
    settings: Settings = ctx.obj
    result = _run(settings, lambda services: services.engine.reject(result_id))
    typer.echo(f"Rejected {result.result_id}")


@app.command()
def version() -> None:
    """Show version information."""
    from sqltune import __version__

    typer.echo(f"sqltune {__version__}")
