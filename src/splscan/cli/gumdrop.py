"""
CLI: ``splscan gumdrop`` — claim-list generation.
"""

from __future__ import annotations

from pathlib import Path

import typer

from splscan.cli.utils import console, fatal_errors, get_state
from splscan.pipeline.claims import load_handles, make_claim_lists

app = typer.Typer(no_args_is_help=True)


@app.command("make-list")
def make_list(
    ctx: typer.Context,
    number: int = typer.Option(..., "--number", "-n", min=1, help="Entries per list"),
    amount: int = typer.Option(..., "--amount", "-a", min=0, help="Tokens per entry"),
    repeat: int | None = typer.Option(None, "--repeat", "-r", min=1, help="Number of lists"),
    pubkey_path: Path | None = typer.Option(
        None, "--pubkey-path", "-p", help="JSON array of addresses to place one per list"
    ),
) -> None:
    """Write claim lists of random addresses around chosen ones."""
    state = get_state(ctx)
    with fatal_errors():
        paths = make_claim_lists(
            number,
            amount,
            repeat=repeat,
            handles=load_handles(pubkey_path),
            directory=state.settings.artifact_dir,
        )
    for path in paths:
        console.print(f"[green]Saved[/green] {path}")
