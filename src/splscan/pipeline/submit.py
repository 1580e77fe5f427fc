"""Creator attestation submitter.

Builds, signs and submits the token-metadata ``SignMetadata`` instruction,
retrying only transport failures. Every attempt fetches a fresh blockhash
and re-signs, so a retry never resends a transaction whose blockhash may
already have expired.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from splscan.core.errors import SubmissionRejected, SubmitError, TransportError
from splscan.core.logging import get_logger
from splscan.core.models import SubmissionReceipt
from splscan.execution.retry import ExponentialBackoff, RetryContext, RetryStrategy
from splscan.ledger.client import LedgerClient
from splscan.ledger.layout import SIGN_METADATA_INSTRUCTION, TOKEN_METADATA_PROGRAM_ID

logger = get_logger(__name__)


def default_strategy() -> ExponentialBackoff:
    """Three attempts in total, 0.25 s then 0.5 s apart."""
    return ExponentialBackoff(
        max_attempts=3,
        base_delay=0.25,
        multiplier=2.0,
        jitter=False,
        retryable_errors=(TransportError,),
    )


def sign_metadata_instruction(
    metadata: Pubkey,
    creator: Pubkey,
    program_id: Pubkey = TOKEN_METADATA_PROGRAM_ID,
) -> Instruction:
    """``SignMetadata``: marks ``creator`` as verified on ``metadata``."""
    return Instruction(
        program_id,
        bytes([SIGN_METADATA_INSTRUCTION]),
        [
            AccountMeta(metadata, is_signer=False, is_writable=True),
            AccountMeta(creator, is_signer=True, is_writable=False),
        ],
    )


class MetadataSigner:
    """Submits creator attestations with bounded retries.

    Args:
        ledger: Where transactions are sent
        strategy: Retry policy; defaults to ``default_strategy()``
        program_id: Token-metadata program
        sleep: Injected for tests
    """

    def __init__(
        self,
        ledger: LedgerClient,
        strategy: RetryStrategy | None = None,
        program_id: Pubkey = TOKEN_METADATA_PROGRAM_ID,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.ledger = ledger
        self.strategy = strategy or default_strategy()
        self.program_id = program_id
        self.sleep = sleep

    def _attempt(self, authority: Keypair, target: Pubkey) -> Signature:
        instruction = sign_metadata_instruction(target, authority.pubkey(), self.program_id)
        blockhash = self.ledger.latest_blockhash()
        transaction = Transaction.new_signed_with_payer(
            [instruction], authority.pubkey(), [authority], blockhash
        )
        return self.ledger.send_and_confirm(transaction)

    def submit(self, authority: Keypair, target: Pubkey) -> SubmissionReceipt:
        """Sign ``target`` as ``authority``.

        Raises:
            SubmissionRejected: the ledger refused the transaction (not retried)
            SubmitError: transport kept failing until attempts ran out
        """

        def _on_retry(attempt: int, error: Exception, delay: float) -> None:
            logger.warning(
                "submit.retrying",
                target=str(target),
                attempt=attempt,
                delay_seconds=delay,
                error=str(error),
            )

        ctx = RetryContext(self.strategy, on_retry=_on_retry, sleep=self.sleep)
        try:
            signature = ctx.run(self._attempt, authority, target)
        except SubmissionRejected:
            raise
        except Exception as e:
            raise SubmitError(
                f"Could not sign {target} after {ctx.attempts} attempt(s): {e}",
                attempts=ctx.attempts,
                cause=e,
            ).with_context(address=str(target), endpoint=self.ledger.endpoint) from e

        logger.info("submit.signed", target=str(target), signature=str(signature), attempts=ctx.attempts)
        return SubmissionReceipt(target=str(target), signature=str(signature), attempts=ctx.attempts)


__all__ = [
    "default_strategy",
    "sign_metadata_instruction",
    "MetadataSigner",
]
