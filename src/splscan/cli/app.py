"""
Root Typer application for the splscan CLI.

Global options are folded into ``SplscanSettings`` (CLI over environment
over defaults) and handed to sub-commands through ``CliState``.
"""

from __future__ import annotations

from pathlib import Path

import typer
from typer import Typer

from splscan.cli.utils import CliState
from splscan.core.logging import configure_logging
from splscan.core.settings import SplscanSettings, load_solana_cli_config

app = Typer(
    name="splscan",
    help="splscan — build SPL token lists and manage creator attestations from on-chain data.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("splscan")
        except PackageNotFoundError:
            v = "0.1.0"
        typer.echo(f"splscan {v}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    rpc: str | None = typer.Option(None, "--rpc", "-r", help="RPC endpoint (default: Solana CLI config)."),
    heavy_rpc: str | None = typer.Option(
        None, "--heavy-rpc", help="Endpoint for bulk program-account scans."
    ),
    timeout: int | None = typer.Option(None, "--timeout", "-t", min=1, help="RPC timeout in seconds."),
    rate_limit: bool | None = typer.Option(
        None, "--rate-limit/--no-rate-limit", help="Space out per-account RPC calls."
    ),
    delay_ms: int | None = typer.Option(None, "--delay-ms", min=0, help="Delay between rate-limited calls."),
    artifacts: Path | None = typer.Option(None, "--artifacts", help="Directory for stage artifacts."),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """splscan CLI — token lists, creator signing and claim lists."""
    overrides = {
        "rpc_url": rpc,
        "heavy_rpc_url": heavy_rpc,
        "timeout": timeout,
        "rate_limit": rate_limit,
        "rpc_delay_ms": delay_ms,
        "artifact_dir": artifacts,
        "log_level": log_level,
    }
    settings = SplscanSettings(**{k: v for k, v in overrides.items() if v is not None})
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    ctx.obj = CliState(settings=settings, cli_config=load_solana_cli_config())


# ── Sub-command registration ─────────────────────────────────────────────

from splscan.cli.gumdrop import app as gumdrop_app  # noqa: E402
from splscan.cli.metadata import app as metadata_app  # noqa: E402
from splscan.cli.spl import app as spl_app  # noqa: E402

app.add_typer(spl_app, name="spl", help="Token-list pipeline.")
app.add_typer(metadata_app, name="metadata", help="Creator attestation.")
app.add_typer(gumdrop_app, name="gumdrop", help="Claim-list generation.")
