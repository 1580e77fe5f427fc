"""Tests for the creator attestation workflow."""

import json

import pytest
from solders.pubkey import Pubkey

from conftest import make_metadata, make_mint
from splscan.core.errors import SubmissionRejected, TransportError
from splscan.core.models import Creator
from splscan.execution.batch import BatchExecutor
from splscan.ledger.layout import TOKEN_METADATA_PROGRAM_ID, creator_offset
from splscan.ledger.scanner import ProgramAccountScanner
from splscan.pipeline.creators import creator_filter, find_unverified, sign_all
from splscan.pipeline.store import Stage
from splscan.pipeline.submit import MetadataSigner


def _creators(*entries: tuple[Pubkey, bool]) -> list[Creator]:
    share = 100 // len(entries)
    return [Creator(address=str(address), verified=verified, share=share) for address, verified in entries]


@pytest.fixture
def scanner(ledger) -> ProgramAccountScanner:
    return ProgramAccountScanner(ledger, TOKEN_METADATA_PROGRAM_ID)


class TestCreatorFilter:
    def test_offset_and_bytes(self):
        creator = Pubkey.new_unique()
        f = creator_filter(creator, 2)
        assert f.offset == creator_offset(2)
        assert f.bytes_b58 == str(creator)


class TestFindUnverified:
    def test_finds_creator_at_any_position(self, ledger, scanner, store, authority):
        me = authority.pubkey()
        other = Pubkey.new_unique()
        first = make_metadata(ledger, make_mint(ledger, 1, 0), creators=_creators((me, False)))
        third = make_metadata(
            ledger,
            make_mint(ledger, 1, 0),
            creators=_creators((other, True), (other, True), (me, False)),
        )
        make_metadata(ledger, make_mint(ledger, 1, 0), creators=_creators((me, True)))  # signed
        make_metadata(ledger, make_mint(ledger, 1, 0), creators=_creators((other, False)))  # not mine

        targets = find_unverified(scanner, me, store)

        assert sorted(targets) == sorted([first.key, third.key])
        assert len(ledger.scans) == 5
        assert sorted(json.loads(store.path_for(Stage.UNVERIFIED_CREATORS).read_text())) == sorted(targets)

    def test_creator_listed_twice_is_reported_once(self, ledger, scanner, store, authority):
        me = authority.pubkey()
        twice = make_metadata(
            ledger,
            make_mint(ledger, 1, 0),
            creators=_creators((me, False), (Pubkey.new_unique(), True), (me, False)),
        )

        targets = find_unverified(scanner, me, store)

        assert targets == [twice.key]
        assert store.load(Stage.UNVERIFIED_CREATORS, str) == [twice.key]

    def test_nothing_pending_writes_nothing(self, ledger, scanner, store, authority):
        assert find_unverified(scanner, authority.pubkey(), store) == []
        assert not store.exists(Stage.UNVERIFIED_CREATORS)

    def test_scan_failure_is_fatal(self, ledger, scanner, store, authority):
        ledger.scan_error = TransportError("timeout")
        with pytest.raises(TransportError):
            find_unverified(scanner, authority.pubkey(), store)


class TestSignAll:
    def test_rewrites_pending_set(self, ledger, store, authority):
        targets = [str(Pubkey.new_unique()) for _ in range(3)]
        ledger.submissions = [SubmissionRejected("not a creator")]
        signer = MetadataSigner(ledger, sleep=lambda _: None)

        result = sign_all(signer, authority, targets, BatchExecutor(max_workers=1), store)

        assert result.succeeded == 2
        assert result.failed == 1
        remaining = store.load(Stage.UNVERIFIED_CREATORS, str)
        assert len(remaining) == 1
        assert remaining[0] in targets
        assert remaining[0] not in {receipt.target for receipt in result.results}

    def test_all_signed_empties_pending_set(self, ledger, store, authority):
        targets = [str(Pubkey.new_unique()) for _ in range(2)]
        signer = MetadataSigner(ledger, sleep=lambda _: None)
        sign_all(signer, authority, targets, BatchExecutor(max_workers=2), store)
        assert store.load(Stage.UNVERIFIED_CREATORS, str) == []
