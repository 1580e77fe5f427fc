"""
CLI: ``splscan metadata`` — creator attestation commands.
"""

from __future__ import annotations

from pathlib import Path

import typer

from splscan.cli.utils import fatal_errors, get_state, parse_pubkey, print_metrics
from splscan.core.settings import read_keypair_file, resolve_keypair_path
from splscan.pipeline.creators import find_unverified, sign_all
from splscan.pipeline.submit import MetadataSigner

app = typer.Typer(no_args_is_help=True)


@app.command("count-creators")
def count_creators(
    ctx: typer.Context,
    creator: str = typer.Option(..., "--creator", "-c", help="Base58 creator address"),
    no_save: bool = typer.Option(False, "--no-save"),
) -> None:
    """Find metadata accounts the creator has not signed yet."""
    creator_key = parse_pubkey(creator)
    state = get_state(ctx)
    with fatal_errors():
        targets = find_unverified(state.metadata_scanner(), creator_key, state.store, not no_save)
    print_metrics({"creator": str(creator_key), "unverified": len(targets)}, title="Creators")


@app.command("sign-all")
def sign_all_cmd(
    ctx: typer.Context,
    keypair: Path | None = typer.Option(None, "--keypair", "-k", help="Creator keypair file"),
    no_save: bool = typer.Option(False, "--no-save"),
) -> None:
    """Sign every metadata account that lists the keypair as an unverified creator."""
    state = get_state(ctx)
    with fatal_errors():
        if keypair is not None:
            state.settings = state.settings.model_copy(update={"keypair_path": keypair})
        authority = read_keypair_file(resolve_keypair_path(state.settings, state.cli_config))
        scanner = state.metadata_scanner()
        targets = find_unverified(scanner, authority.pubkey(), state.store, not no_save)
        if not targets:
            print_metrics({"unverified": 0}, title="Sign all")
            return
        result = sign_all(
            MetadataSigner(scanner.ledger),
            authority,
            targets,
            state.executor(scanner.ledger),
            state.store,
            not no_save,
        )
    print_metrics(
        {"targets": result.total, "signed": result.succeeded, "failed": result.failed},
        title="Sign all",
    )
