"""
CLI: ``splscan spl`` — token-list pipeline commands.

``run`` executes every stage in memory; the other commands run a single
stage, reading the previous stage's artifact.
"""

from __future__ import annotations

import typer

from splscan.cli.utils import console, fatal_errors, get_state, print_metrics
from splscan.pipeline.stages import (
    build_token_list,
    collect_fungible_mints,
    correlate_metadata,
    partition_token_list,
    run_token_list,
)
from splscan.pipeline.store import FromStore, Stage

app = typer.Typer(no_args_is_help=True)

NO_SAVE = typer.Option(False, "--no-save", help="Do not write the stage artifact.")


@app.command()
def run(ctx: typer.Context, no_save: bool = NO_SAVE) -> None:
    """Build the token list from scratch."""
    state = get_state(ctx)
    with fatal_errors():
        result = run_token_list(state.mint_scanner(), state.correlator(), state.store, not no_save)
    print_metrics(result.metrics, title="Token list")
    console.print(f"[dim]Finished in {result.duration_seconds:.1f}s[/dim]")


@app.command()
def mints(ctx: typer.Context, no_save: bool = NO_SAVE) -> None:
    """Scan every mint and keep the fungible ones."""
    state = get_state(ctx)
    with fatal_errors():
        result = collect_fungible_mints(state.mint_scanner(), state.store, not no_save)
    print_metrics(result.metrics, title="Mints")


@app.command()
def metadata(ctx: typer.Context, no_save: bool = NO_SAVE) -> None:
    """Join saved fungible mints with their metadata accounts."""
    state = get_state(ctx)
    with fatal_errors():
        result = correlate_metadata(
            state.correlator(), FromStore(Stage.MINTS), state.store, not no_save
        )
    print_metrics(result.metrics, title="Metadata")


@app.command("token-list")
def token_list(ctx: typer.Context, no_save: bool = NO_SAVE) -> None:
    """Build token-list entries from saved mint/metadata pairs."""
    state = get_state(ctx)
    with fatal_errors():
        result = build_token_list(FromStore(Stage.ACCOUNTS), state.store, not no_save)
    print_metrics(result.metrics, title="Token list")


@app.command("parse-token-list")
def parse_token_list(ctx: typer.Context, no_save: bool = NO_SAVE) -> None:
    """Split the saved token list by whether entries have a logo URI."""
    state = get_state(ctx)
    with fatal_errors():
        result = partition_token_list(FromStore(Stage.TOKEN_LIST), state.store, not no_save)
    print_metrics(result.metrics, title="Partition")
