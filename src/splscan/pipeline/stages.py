"""Token-list pipeline stages.

::

    collect_fungible_mints ──► correlate_metadata ──► build_token_list ──► partition_token_list
       (mints)                    (accounts)             (token_list)         (uri / no_uri)

Each stage takes its input either in memory from the stage before it or
from that stage's artifact, and persists its own output unless saving is
disabled. ``run_token_list`` chains all four in memory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from splscan.core.errors import DecodeError, TransportError
from splscan.core.logging import LogContext, get_logger
from splscan.core.models import JoinedRecord, PrimaryRecord, PublicEntry
from splscan.ledger.classify import is_fungible
from splscan.ledger.decode import decode_primary
from splscan.ledger.layout import MINT_LEN
from splscan.ledger.scanner import ProgramAccountScanner
from splscan.pipeline.correlate import MetadataCorrelator
from splscan.pipeline.store import InMemory, Stage, StageInput, StageStore, resolve_input

logger = get_logger(__name__)

R = TypeVar("R")


@dataclass
class StageResult(Generic[R]):
    """Output of one stage."""

    stage: Stage
    records: list[R]
    started_at: datetime
    completed_at: datetime
    metrics: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()


@dataclass
class PartitionResult:
    """The token list split by whether an entry has a logo URI."""

    with_uri: list[PublicEntry]
    without_uri: list[PublicEntry]
    started_at: datetime
    completed_at: datetime

    @property
    def metrics(self) -> dict[str, int]:
        return {"with_uri": len(self.with_uri), "without_uri": len(self.without_uri)}

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()


def _now() -> datetime:
    return datetime.now(UTC)


def collect_fungible_mints(
    scanner: ProgramAccountScanner,
    store: StageStore,
    save: bool = True,
) -> StageResult[PrimaryRecord]:
    """Scan every mint, decode it and keep the fungible ones."""
    with LogContext(stage=Stage.MINTS.value):
        started = _now()
        accounts = scanner.scan(data_size=MINT_LEN)

        kept: list[PrimaryRecord] = []
        malformed = 0
        for address, account in accounts:
            try:
                record = decode_primary(account.data, address)
            except DecodeError as e:
                malformed += 1
                logger.debug("stage.mints.malformed", address=str(address), error=e.message)
                continue
            if is_fungible(record):
                kept.append(record)

        metrics = {"found": len(accounts), "malformed": malformed, "kept": len(kept)}
        logger.info("stage.mints.complete", **metrics)
        store.save(Stage.MINTS, kept, enabled=save)
        return StageResult(Stage.MINTS, kept, started, _now(), metrics)


def correlate_metadata(
    correlator: MetadataCorrelator,
    source: StageInput,
    store: StageStore,
    save: bool = True,
) -> StageResult[JoinedRecord]:
    """Pair each fungible mint with its metadata account."""
    with LogContext(stage=Stage.ACCOUNTS.value):
        started = _now()
        primaries = resolve_input(source, store, PrimaryRecord)
        batch = correlator.correlate(primaries)
        if batch.total and not batch.succeeded and batch.failed == batch.total:
            if all(isinstance(e, TransportError) for e in batch.errors):
                # nothing reachable; keep the previous artifact
                raise TransportError(
                    f"all {batch.total} metadata reads failed to reach the ledger",
                    cause=batch.errors[-1],
                )

        metrics = {
            "mints": batch.total,
            "joined": batch.succeeded,
            "without_metadata": batch.skipped,
            "failed": batch.failed,
        }
        logger.info("stage.accounts.complete", **metrics)
        store.save(Stage.ACCOUNTS, batch.results, enabled=save)
        return StageResult(Stage.ACCOUNTS, batch.results, started, _now(), metrics)


def build_token_list(
    source: StageInput,
    store: StageStore,
    save: bool = True,
) -> StageResult[PublicEntry]:
    """Project joined records onto public token-list entries."""
    with LogContext(stage=Stage.TOKEN_LIST.value):
        started = _now()
        joined = resolve_input(source, store, JoinedRecord)
        entries = [PublicEntry.from_joined(record) for record in joined]

        metrics = {"entries": len(entries)}
        logger.info("stage.token_list.complete", **metrics)
        store.save(Stage.TOKEN_LIST, entries, enabled=save)
        return StageResult(Stage.TOKEN_LIST, entries, started, _now(), metrics)


def partition_token_list(
    source: StageInput,
    store: StageStore,
    save: bool = True,
) -> PartitionResult:
    """Split the token list into entries with and without a logo URI."""
    with LogContext(stage="partition"):
        started = _now()
        entries = resolve_input(source, store, PublicEntry)

        with_uri: list[PublicEntry] = []
        without_uri: list[PublicEntry] = []
        for entry in entries:
            (with_uri if entry.has_uri else without_uri).append(entry)

        result = PartitionResult(with_uri, without_uri, started, _now())
        logger.info("stage.partition.complete", **result.metrics)
        store.save(Stage.URI_TOKEN_LIST, with_uri, enabled=save, pretty=True)
        store.save(Stage.NO_URI_TOKEN_LIST, without_uri, enabled=save, pretty=True)
        return result


def run_token_list(
    heavy_scanner: ProgramAccountScanner,
    correlator: MetadataCorrelator,
    store: StageStore,
    save: bool = True,
) -> PartitionResult:
    """Run every stage, handing each output to the next in memory."""
    mints = collect_fungible_mints(heavy_scanner, store, save)
    joined = correlate_metadata(correlator, InMemory(mints.records), store, save)
    token_list = build_token_list(InMemory(joined.records), store, save)
    return partition_token_list(InMemory(token_list.records), store, save)


__all__ = [
    "StageResult",
    "PartitionResult",
    "collect_fungible_mints",
    "correlate_metadata",
    "build_token_list",
    "partition_token_list",
    "run_token_list",
]
