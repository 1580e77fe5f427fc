"""Tests for splscan.core.models record types."""

import pytest
from pydantic import ValidationError
from solders.pubkey import Pubkey

from splscan.core.models import (
    MAINNET_CHAIN_ID,
    JoinedRecord,
    PrimaryRecord,
    PublicEntry,
    SecondaryRecord,
)


def _secondary(mint: str, **overrides) -> SecondaryRecord:
    fields = dict(
        key=str(Pubkey.new_unique()),
        mint=mint,
        update_authority=str(Pubkey.new_unique()),
        name="Wrapped SOL",
        symbol="SOL",
        uri="https://example.com/sol.png",
    )
    fields.update(overrides)
    return SecondaryRecord(**fields)


class TestAddressValidation:
    def test_rejects_non_base58(self):
        with pytest.raises(ValidationError):
            PrimaryRecord(key="not-an-address", supply=1, decimals=0)

    def test_records_are_frozen(self):
        record = PrimaryRecord(key=str(Pubkey.new_unique()), supply=1, decimals=0)
        with pytest.raises(ValidationError):
            record.supply = 2


class TestJoinedRecord:
    """The metadata inside a join must belong to the mint."""

    def test_matching_mint(self):
        primary = PrimaryRecord(key=str(Pubkey.new_unique()), supply=10, decimals=0)
        joined = JoinedRecord(primary=primary, secondary=_secondary(primary.key))
        assert joined.secondary.mint == joined.primary.key

    def test_mismatched_mint_rejected(self):
        primary = PrimaryRecord(key=str(Pubkey.new_unique()), supply=10, decimals=0)
        with pytest.raises(ValidationError):
            JoinedRecord(primary=primary, secondary=_secondary(str(Pubkey.new_unique())))


class TestPublicEntry:
    def _joined(self, **overrides) -> JoinedRecord:
        primary = PrimaryRecord(key=str(Pubkey.new_unique()), supply=10**12, decimals=9)
        return JoinedRecord(primary=primary, secondary=_secondary(primary.key, **overrides))

    def test_from_joined_projection(self):
        joined = self._joined()
        entry = PublicEntry.from_joined(joined)
        assert entry.chain_id == MAINNET_CHAIN_ID
        assert entry.address == joined.primary.key
        assert entry.decimals == 9
        assert entry.symbol == "SOL"
        assert entry.logo_uri == "https://example.com/sol.png"

    def test_nul_padding_trimmed(self):
        entry = PublicEntry.from_joined(self._joined(name="Token\x00\x00", uri="\x00\x00"))
        assert entry.name == "Token"
        assert entry.logo_uri == ""
        assert entry.has_uri is False

    def test_dumps_camel_case(self):
        entry = PublicEntry.from_joined(self._joined())
        dumped = entry.model_dump(by_alias=True)
        assert set(dumped) == {"chainId", "address", "symbol", "name", "decimals", "logoUri"}

    def test_loads_camel_case(self):
        entry = PublicEntry.from_joined(self._joined())
        reloaded = PublicEntry.model_validate(entry.model_dump(by_alias=True))
        assert reloaded == entry
