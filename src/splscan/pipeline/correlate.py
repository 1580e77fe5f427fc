"""Mint → metadata join.

For every fungible mint the correlator derives the metadata address, reads
that account through the rate-limited executor, decodes it and pairs it
with the mint. Each mint is handled on its own: a missing account, a
timeout or a malformed payload drops that mint and nothing else.
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import ValidationError
from solders.pubkey import Pubkey

from splscan.core.logging import get_logger
from splscan.core.models import JoinedRecord, PrimaryRecord
from splscan.execution.batch import BatchExecutor, BatchResult
from splscan.ledger.decode import decode_secondary
from splscan.ledger.derive import derive
from splscan.ledger.layout import METADATA_SEED
from splscan.ledger.scanner import ProgramAccountScanner

logger = get_logger(__name__)


class MetadataCorrelator:
    """Joins mints with their metadata accounts.

    Args:
        scanner: Reads accounts of the metadata program
        executor: Runs one join per mint, optionally rate limited
        namespace: Seed prefix of the metadata address
    """

    def __init__(
        self,
        scanner: ProgramAccountScanner,
        executor: BatchExecutor,
        namespace: bytes = METADATA_SEED,
    ):
        self.scanner = scanner
        self.executor = executor
        self.namespace = namespace

    @property
    def program_id(self) -> Pubkey:
        return self.scanner.program_id

    def join_one(self, primary: PrimaryRecord) -> JoinedRecord | None:
        """Join a single mint; ``None`` if it has no metadata account.

        Raises whatever derive/read/decode raise; the executor counts those
        as failures.
        """
        address = derive(primary.pubkey, self.namespace, self.program_id)
        account = self.scanner.read_one(address)
        if account is None:
            return None
        secondary = decode_secondary(account.data, address)
        try:
            return JoinedRecord(primary=primary, secondary=secondary)
        except ValidationError:
            logger.warning(
                "correlate.owner_mismatch",
                mint=primary.key,
                metadata=secondary.key,
                metadata_mint=secondary.mint,
            )
            return None

    def correlate(self, primaries: Sequence[PrimaryRecord]) -> BatchResult[JoinedRecord]:
        result = self.executor.run_all(primaries, self.join_one)
        logger.info(
            "correlate.complete",
            mints=result.total,
            joined=result.succeeded,
            without_metadata=result.skipped,
            failed=result.failed,
        )
        return result


__all__ = ["MetadataCorrelator"]
