"""Ledger client boundary.

The pipeline talks to the ledger only through ``LedgerClient``: filtered
bulk account queries, single-account reads, blockhash lookup and signed
transaction submission. ``SolanaRpcLedger`` implements it over
``solana.rpc.api.Client`` and translates library exceptions into
``TransportError`` / ``SubmissionRejected`` so callers never see
solana-py or httpx types.

Tests substitute an in-memory fake that satisfies the same protocol.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, Union, runtime_checkable

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException, UnconfirmedTxError
from solana.rpc.types import MemcmpOpts, TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from splscan.core.errors import SubmissionRejected, TransportError
from splscan.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RawAccount:
    """Account snapshot as returned by the ledger."""

    data: bytes
    owner: Pubkey | None = None
    lamports: int = 0


@dataclass(frozen=True)
class DataSizeFilter:
    """Match accounts whose data is exactly ``size`` bytes."""

    size: int


@dataclass(frozen=True)
class MemcmpFilter:
    """Match accounts whose data at ``offset`` equals the base58 ``bytes_b58``."""

    offset: int
    bytes_b58: str


AccountFilter = Union[DataSizeFilter, MemcmpFilter]


@runtime_checkable
class LedgerClient(Protocol):
    """Network operations the pipeline consumes."""

    endpoint: str

    def get_program_accounts(
        self,
        program_id: Pubkey,
        filters: Sequence[AccountFilter] = (),
        commitment: str | None = None,
    ) -> list[tuple[Pubkey, RawAccount]]:
        ...

    def get_account(self, address: Pubkey, commitment: str | None = None) -> RawAccount | None:
        ...

    def latest_blockhash(self) -> Hash:
        ...

    def send_and_confirm(self, transaction: Transaction) -> Signature:
        ...


_TRANSPORT_ERRORS = (SolanaRpcException, httpx.HTTPError, OSError)


class SolanaRpcLedger:
    """``LedgerClient`` backed by a solana-py JSON-RPC client.

    Args:
        endpoint: JSON-RPC URL
        commitment: Default commitment for reads and confirmation
        timeout: HTTP timeout in seconds
    """

    def __init__(self, endpoint: str, commitment: str = "confirmed", timeout: float = 60):
        self.endpoint = endpoint
        self.commitment = commitment
        self._client = Client(endpoint, commitment=Commitment(commitment), timeout=timeout)

    def _commitment(self, commitment: str | None) -> Commitment:
        return Commitment(commitment or self.commitment)

    def _transport_error(self, operation: str, error: Exception) -> TransportError:
        return TransportError(f"{operation} failed: {error}", cause=error).with_context(
            endpoint=self.endpoint, operation=operation
        )

    def get_program_accounts(
        self,
        program_id: Pubkey,
        filters: Sequence[AccountFilter] = (),
        commitment: str | None = None,
    ) -> list[tuple[Pubkey, RawAccount]]:
        rpc_filters: list[int | MemcmpOpts] = []
        for f in filters:
            if isinstance(f, DataSizeFilter):
                rpc_filters.append(f.size)
            else:
                rpc_filters.append(MemcmpOpts(offset=f.offset, bytes=f.bytes_b58))
        try:
            resp = self._client.get_program_accounts(
                program_id,
                commitment=self._commitment(commitment),
                encoding="base64",
                filters=rpc_filters or None,
            )
        except (RPCException, *_TRANSPORT_ERRORS) as e:
            raise self._transport_error("getProgramAccounts", e) from e
        return [
            (
                keyed.pubkey,
                RawAccount(
                    data=bytes(keyed.account.data),
                    owner=keyed.account.owner,
                    lamports=keyed.account.lamports,
                ),
            )
            for keyed in resp.value
        ]

    def get_account(self, address: Pubkey, commitment: str | None = None) -> RawAccount | None:
        try:
            resp = self._client.get_account_info(
                address,
                commitment=self._commitment(commitment),
                encoding="base64",
            )
        except (RPCException, *_TRANSPORT_ERRORS) as e:
            raise self._transport_error("getAccountInfo", e).with_context(address=str(address)) from e
        account = resp.value
        if account is None:
            return None
        return RawAccount(data=bytes(account.data), owner=account.owner, lamports=account.lamports)

    def latest_blockhash(self) -> Hash:
        try:
            resp = self._client.get_latest_blockhash(self._commitment(None))
        except (RPCException, *_TRANSPORT_ERRORS) as e:
            raise self._transport_error("getLatestBlockhash", e) from e
        return resp.value.blockhash

    def send_and_confirm(self, transaction: Transaction) -> Signature:
        """Submit and wait for confirmation.

        Raises:
            SubmissionRejected: preflight or execution failed on the ledger
            TransportError: request failed or confirmation timed out
        """
        opts = TxOpts(skip_confirmation=False, preflight_commitment=self._commitment(None))
        try:
            resp = self._client.send_transaction(transaction, opts=opts)
        except RPCException as e:
            raise SubmissionRejected(f"transaction rejected: {e}", cause=e).with_context(
                endpoint=self.endpoint
            ) from e
        except UnconfirmedTxError as e:
            raise self._transport_error("confirmTransaction", e) from e
        except _TRANSPORT_ERRORS as e:
            raise self._transport_error("sendTransaction", e) from e

        signature = resp.value
        try:
            status = self._client.get_signature_statuses([signature]).value[0]
        except (RPCException, *_TRANSPORT_ERRORS) as e:
            raise self._transport_error("getSignatureStatuses", e) from e
        if status is not None and status.err is not None:
            raise SubmissionRejected(f"transaction {signature} failed: {status.err}").with_context(
                endpoint=self.endpoint
            )
        logger.debug("ledger.transaction_confirmed", signature=str(signature))
        return signature


__all__ = [
    "RawAccount",
    "DataSizeFilter",
    "MemcmpFilter",
    "AccountFilter",
    "LedgerClient",
    "SolanaRpcLedger",
]
