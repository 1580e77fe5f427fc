"""Program account scanner.

Thin, program-scoped wrapper over ``LedgerClient`` reads. Transport
failures propagate unchanged: a failed scan is fatal for its stage and
re-scanning is cheap, so nothing here retries.
"""

from __future__ import annotations

import time
from collections.abc import Sequence

from solders.pubkey import Pubkey

from splscan.core.logging import get_logger
from splscan.ledger.client import DataSizeFilter, LedgerClient, MemcmpFilter, RawAccount

logger = get_logger(__name__)


class ProgramAccountScanner:
    """Reads accounts owned by one program.

    Example:
        >>> scanner = ProgramAccountScanner(ledger, TOKEN_PROGRAM_ID, commitment="finalized")
        >>> mints = scanner.scan(data_size=MINT_LEN)
    """

    def __init__(self, ledger: LedgerClient, program_id: Pubkey, commitment: str | None = None):
        self.ledger = ledger
        self.program_id = program_id
        self.commitment = commitment

    def scan(
        self,
        data_size: int | None = None,
        matches: Sequence[MemcmpFilter] = (),
    ) -> list[tuple[Pubkey, RawAccount]]:
        """All program accounts matching the size and byte filters.

        The result can run to tens of thousands of entries and is held in
        memory.
        """
        filters: list[DataSizeFilter | MemcmpFilter] = []
        if data_size is not None:
            filters.append(DataSizeFilter(data_size))
        filters.extend(matches)

        started = time.monotonic()
        accounts = self.ledger.get_program_accounts(self.program_id, filters, self.commitment)
        logger.info(
            "scanner.scanned",
            program=str(self.program_id),
            endpoint=self.ledger.endpoint,
            found=len(accounts),
            duration_seconds=round(time.monotonic() - started, 3),
        )
        return accounts

    def read_one(self, address: Pubkey) -> RawAccount | None:
        return self.ledger.get_account(address, self.commitment)
