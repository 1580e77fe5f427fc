"""Tests for MetadataCorrelator."""

from solders.pubkey import Pubkey

from conftest import make_metadata, make_mint
from splscan.core.errors import TransportError
from splscan.execution.batch import BatchExecutor
from splscan.ledger.derive import metadata_address
from splscan.ledger.layout import TOKEN_METADATA_PROGRAM_ID
from splscan.ledger.scanner import ProgramAccountScanner
from splscan.pipeline.correlate import MetadataCorrelator


def _correlator(ledger) -> MetadataCorrelator:
    scanner = ProgramAccountScanner(ledger, TOKEN_METADATA_PROGRAM_ID)
    return MetadataCorrelator(scanner, BatchExecutor(max_workers=4))


class TestMetadataCorrelator:
    def test_joins_mints_with_metadata(self, ledger):
        mints = [make_mint(ledger, supply=10**9, decimals=0) for _ in range(4)]
        for mint in mints:
            make_metadata(ledger, mint, name=f"T{mint.key[:4]}")

        result = _correlator(ledger).correlate(mints)

        assert result.succeeded == 4
        assert {r.primary.key for r in result.results} == {m.key for m in mints}
        for record in result.results:
            assert record.secondary.mint == record.primary.key
            assert record.secondary.key == str(metadata_address(record.primary.pubkey))

    def test_missing_metadata_is_skipped(self, ledger):
        with_meta = make_mint(ledger, supply=100, decimals=0)
        make_metadata(ledger, with_meta)
        without_meta = make_mint(ledger, supply=100, decimals=0)

        result = _correlator(ledger).correlate([with_meta, without_meta])

        assert result.succeeded == 1
        assert result.skipped == 1
        assert result.failed == 0

    def test_read_failure_drops_only_that_mint(self, ledger):
        good = make_mint(ledger, supply=100, decimals=0)
        make_metadata(ledger, good)
        bad = make_mint(ledger, supply=100, decimals=0)
        make_metadata(ledger, bad)
        ledger.read_errors[metadata_address(bad.pubkey)] = TransportError("timeout")

        result = _correlator(ledger).correlate([good, bad])

        assert [r.primary.key for r in result.results] == [good.key]
        assert result.failed == 1

    def test_malformed_metadata_fails_item(self, ledger):
        mint = make_mint(ledger, supply=100, decimals=0)
        ledger.add(TOKEN_METADATA_PROGRAM_ID, metadata_address(mint.pubkey), b"\x04\x00")

        result = _correlator(ledger).correlate([mint])

        assert result.succeeded == 0
        assert result.failed == 1

    def test_foreign_metadata_dropped(self, ledger):
        """An account at the derived address that names another mint is never joined."""
        mint = make_mint(ledger, supply=100, decimals=0)
        make_metadata(ledger, mint, owner_mint=str(Pubkey.new_unique()))

        result = _correlator(ledger).correlate([mint])

        assert result.results == []
        assert result.skipped == 1

    def test_output_never_exceeds_input(self, ledger):
        mints = [make_mint(ledger, supply=100, decimals=0) for _ in range(6)]
        for mint in mints[::2]:
            make_metadata(ledger, mint)

        result = _correlator(ledger).correlate(mints)

        assert result.succeeded <= len(mints)
        assert result.succeeded + result.skipped + result.failed == len(mints)
