"""
CLI utility helpers: wiring from settings to pipeline objects, and output.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from solders.pubkey import Pubkey

from splscan.core.errors import SplscanError
from splscan.core.logging import get_logger
from splscan.core.settings import (
    SolanaCliConfig,
    SplscanSettings,
    resolve_endpoint,
)
from splscan.execution.batch import BatchExecutor
from splscan.execution.rate_limit import limiter_for_endpoint
from splscan.ledger.client import LedgerClient, SolanaRpcLedger
from splscan.ledger.layout import TOKEN_METADATA_PROGRAM_ID, TOKEN_PROGRAM_ID
from splscan.ledger.scanner import ProgramAccountScanner
from splscan.pipeline.correlate import MetadataCorrelator
from splscan.pipeline.store import StageStore

console = Console()
err_console = Console(stderr=True)

logger = get_logger(__name__)


# ── Runtime wiring ───────────────────────────────────────────────────────


@dataclass
class CliState:
    """Per-invocation state shared by every sub-command."""

    settings: SplscanSettings
    cli_config: SolanaCliConfig | None = None
    _ledgers: dict[str, LedgerClient] = field(default_factory=dict, init=False, repr=False)

    @property
    def store(self) -> StageStore:
        return StageStore(self.settings.artifact_dir)

    def endpoint(self) -> tuple[str, str]:
        """``(rpc_url, commitment)`` for single-account reads and submissions."""
        return resolve_endpoint(self.settings, self.cli_config)

    def ledger(self, heavy: bool = False) -> LedgerClient:
        if heavy and self.settings.heavy_rpc_url:
            url = self.settings.heavy_rpc_url
            commitment = self.settings.commitment
        else:
            url, commitment = self.endpoint()
        if url not in self._ledgers:
            self._ledgers[url] = SolanaRpcLedger(url, commitment=commitment, timeout=self.settings.timeout)
        return self._ledgers[url]

    def executor(self, ledger: LedgerClient) -> BatchExecutor:
        limiter = limiter_for_endpoint(
            ledger.endpoint, self.settings.rate_limit, self.settings.rpc_delay_ms
        )
        return BatchExecutor(limiter=limiter)

    def mint_scanner(self) -> ProgramAccountScanner:
        return ProgramAccountScanner(self.ledger(heavy=True), TOKEN_PROGRAM_ID)

    def metadata_scanner(self) -> ProgramAccountScanner:
        return ProgramAccountScanner(self.ledger(), TOKEN_METADATA_PROGRAM_ID)

    def correlator(self) -> MetadataCorrelator:
        scanner = self.metadata_scanner()
        return MetadataCorrelator(scanner, self.executor(scanner.ledger))


def get_state(ctx: typer.Context) -> CliState:
    """State set up by the root callback."""
    return ctx.obj


def parse_pubkey(value: str) -> Pubkey:
    """Typer parser for base58 addresses."""
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise typer.BadParameter(f"not a base58 address: {value}") from e


# ── Error handling ───────────────────────────────────────────────────────


@contextmanager
def fatal_errors() -> Iterator[None]:
    """Turn a pipeline error into a message on stderr and exit status 1."""
    try:
        yield
    except SplscanError as e:
        logger.debug("cli.fatal", **e.to_dict())
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {escape(e.message)}")
        raise typer.Exit(code=1) from e


# ── Output helpers ───────────────────────────────────────────────────────


def print_metrics(metrics: dict[str, Any], *, title: str = "") -> None:
    """Render stage counts as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in metrics.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")

