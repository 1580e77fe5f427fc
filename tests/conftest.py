"""
Shared pytest fixtures for splscan tests.

This module provides:
- ``FakeLedger``: an in-memory ``LedgerClient`` with scriptable submissions
- Builders for encoded mint and metadata accounts
- A ``StageStore`` rooted in ``tmp_path``

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments.
"""

import sys
from collections.abc import Sequence
from pathlib import Path

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

# Ensure splscan package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from splscan.core.errors import TransportError
from splscan.core.models import Creator, PrimaryRecord, SecondaryRecord
from splscan.ledger.client import AccountFilter, DataSizeFilter, MemcmpFilter, RawAccount
from splscan.ledger.decode import encode_primary, encode_secondary
from splscan.ledger.derive import metadata_address
from splscan.ledger.layout import TOKEN_METADATA_PROGRAM_ID, TOKEN_PROGRAM_ID
from splscan.pipeline.store import StageStore


# =============================================================================
# Fake ledger
# =============================================================================


def _matches(data: bytes, filters: Sequence[AccountFilter]) -> bool:
    for f in filters:
        if isinstance(f, DataSizeFilter):
            if len(data) != f.size:
                return False
        elif isinstance(f, MemcmpFilter):
            expected = bytes(Pubkey.from_string(f.bytes_b58))
            if data[f.offset : f.offset + len(expected)] != expected:
                return False
    return True


class FakeLedger:
    """In-memory ``LedgerClient``.

    ``submissions`` is a script of outcomes for ``send_and_confirm``: an
    exception instance is raised, anything else means success. When the
    script runs out every further submission succeeds.
    """

    def __init__(self, endpoint: str = "https://fake.invalid"):
        self.endpoint = endpoint
        self.programs: dict[Pubkey, list[tuple[Pubkey, RawAccount]]] = {}
        self.accounts: dict[Pubkey, RawAccount] = {}
        self.read_errors: dict[Pubkey, Exception] = {}
        self.scan_error: Exception | None = None
        self.submissions: list[object] = []
        self.sent: list[Transaction] = []
        self.blockhashes: list[Hash] = []
        self.scans: list[tuple[Pubkey, list[AccountFilter]]] = []

    def add(self, program_id: Pubkey, address: Pubkey, data: bytes) -> None:
        account = RawAccount(data=data, owner=program_id)
        self.programs.setdefault(program_id, []).append((address, account))
        self.accounts[address] = account

    def get_program_accounts(self, program_id, filters=(), commitment=None):
        self.scans.append((program_id, list(filters)))
        if self.scan_error is not None:
            raise self.scan_error
        return [
            (address, account)
            for address, account in self.programs.get(program_id, [])
            if _matches(account.data, filters)
        ]

    def get_account(self, address, commitment=None):
        if address in self.read_errors:
            raise self.read_errors[address]
        return self.accounts.get(address)

    def latest_blockhash(self) -> Hash:
        blockhash = Hash.new_unique()
        self.blockhashes.append(blockhash)
        return blockhash

    def send_and_confirm(self, transaction: Transaction) -> Signature:
        self.sent.append(transaction)
        outcome = self.submissions.pop(0) if self.submissions else None
        if isinstance(outcome, Exception):
            raise outcome
        return transaction.signatures[0]


# =============================================================================
# Record builders
# =============================================================================


def make_mint(ledger: FakeLedger, supply: int, decimals: int) -> PrimaryRecord:
    """Register a mint account and return its decoded form."""
    address = Pubkey.new_unique()
    record = PrimaryRecord(key=str(address), supply=supply, decimals=decimals)
    ledger.add(TOKEN_PROGRAM_ID, address, encode_primary(record))
    return record


def make_metadata(
    ledger: FakeLedger,
    mint: PrimaryRecord,
    *,
    name: str = "Token",
    symbol: str = "TKN",
    uri: str = "https://example.com/logo.png",
    creators: list[Creator] | None = None,
    owner_mint: str | None = None,
) -> SecondaryRecord:
    """Register the metadata account of ``mint``.

    ``owner_mint`` stores a different mint inside the account to exercise the
    ownership check.
    """
    address = metadata_address(mint.pubkey)
    record = SecondaryRecord(
        key=str(address),
        mint=owner_mint or mint.key,
        update_authority=str(Pubkey.new_unique()),
        name=name,
        symbol=symbol,
        uri=uri,
        creators=creators,
    )
    ledger.add(TOKEN_METADATA_PROGRAM_ID, address, encode_secondary(record))
    return record


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def store(tmp_path: Path) -> StageStore:
    return StageStore(tmp_path)


@pytest.fixture
def authority() -> Keypair:
    return Keypair()


@pytest.fixture
def transport_error() -> TransportError:
    return TransportError("connection reset")
