"""Creator attestation workflow.

A metadata account lists up to five creators; each creator must sign the
account before it counts as verified. ``find_unverified`` scans for every
metadata account naming a creator at each of the five positions and keeps
the ones where that creator has not signed yet. ``sign_all`` submits the
attestations and shrinks the pending set to whatever is still unsigned.
"""

from __future__ import annotations

from collections.abc import Sequence

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from splscan.core.errors import DecodeError
from splscan.core.logging import LogContext, get_logger
from splscan.core.models import SubmissionReceipt
from splscan.execution.batch import BatchExecutor, BatchResult
from splscan.ledger.client import MemcmpFilter
from splscan.ledger.decode import decode_secondary
from splscan.ledger.layout import MAX_CREATOR_LIMIT, creator_offset
from splscan.ledger.scanner import ProgramAccountScanner
from splscan.pipeline.store import Stage, StageStore
from splscan.pipeline.submit import MetadataSigner

logger = get_logger(__name__)


def creator_filter(creator: Pubkey, position: int) -> MemcmpFilter:
    """Match metadata accounts whose creator at ``position`` is ``creator``."""
    return MemcmpFilter(offset=creator_offset(position), bytes_b58=str(creator))


def find_unverified(
    scanner: ProgramAccountScanner,
    creator: Pubkey,
    store: StageStore,
    save: bool = True,
) -> list[str]:
    """Metadata addresses that list ``creator`` without its signature.

    Scans run one position at a time; a failed scan aborts the search.
    """
    creator_b58 = str(creator)
    pending: dict[str, None] = {}

    with LogContext(stage=Stage.UNVERIFIED_CREATORS.value, creator=creator_b58):
        for position in range(MAX_CREATOR_LIMIT):
            accounts = scanner.scan(matches=[creator_filter(creator, position)])
            unverified = 0
            for address, account in accounts:
                try:
                    metadata = decode_secondary(account.data, address)
                except DecodeError as e:
                    logger.debug("creators.malformed", address=str(address), error=e.message)
                    continue
                creators = metadata.creators or []
                if position >= len(creators):
                    continue
                entry = creators[position]
                if entry.address == creator_b58 and not entry.verified:
                    pending[metadata.key] = None
                    unverified += 1
            logger.info(
                "creators.position_scanned",
                position=position,
                found=len(accounts),
                unverified=unverified,
            )

        targets = list(pending)
        logger.info("creators.unverified_total", unverified=len(targets))
        if targets:
            store.save(Stage.UNVERIFIED_CREATORS, targets, enabled=save)
    return targets


def sign_all(
    signer: MetadataSigner,
    authority: Keypair,
    targets: Sequence[str],
    executor: BatchExecutor,
    store: StageStore,
    save: bool = True,
) -> BatchResult[SubmissionReceipt]:
    """Submit an attestation for every target.

    Failures are logged and counted; the pending-set artifact is rewritten
    to hold only the targets that are still unsigned.
    """
    with LogContext(stage="sign_all", creator=str(authority.pubkey())):
        result = executor.run_all(
            list(targets),
            lambda target: signer.submit(authority, Pubkey.from_string(target)),
        )
        for error in result.errors:
            logger.error("creators.sign_failed", error=str(error))

        signed = {receipt.target for receipt in result.results}
        remaining = [target for target in targets if target not in signed]
        logger.info(
            "creators.sign_complete",
            signed=len(signed),
            failed=result.failed,
            remaining=len(remaining),
        )
        store.save(Stage.UNVERIFIED_CREATORS, remaining, enabled=save)
    return result


__all__ = ["creator_filter", "find_unverified", "sign_all"]
