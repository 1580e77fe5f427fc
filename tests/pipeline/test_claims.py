"""Tests for claim-list generation."""

import json
import random

import pytest
from solders.pubkey import Pubkey

from splscan.core.errors import ArtifactUnwritable
from splscan.pipeline.claims import load_handles, make_claim_lists


def _read(path):
    return json.loads(path.read_text())


class TestMakeClaimLists:
    def test_single_list(self, tmp_path):
        paths = make_claim_lists(10, 5, directory=tmp_path, rng=random.Random(0))
        assert paths == [tmp_path / "distribution10-0.json"]
        entries = _read(paths[0])
        assert len(entries) == 10
        assert all(e["amount"] == 5 for e in entries)
        assert len({e["handle"] for e in entries}) == 10
        for e in entries:
            Pubkey.from_string(e["handle"])

    def test_repeat_with_handles(self, tmp_path):
        mine = [str(Pubkey.new_unique()), str(Pubkey.new_unique())]
        paths = make_claim_lists(4, 1, repeat=3, handles=mine, directory=tmp_path)
        assert [p.name for p in paths] == [
            "distribution4-0.json",
            "distribution4-1.json",
            "distribution4-2.json",
        ]
        assert mine[0] in {e["handle"] for e in _read(paths[0])}
        assert mine[1] in {e["handle"] for e in _read(paths[1])}

    def test_invalid_handle_replaced(self, tmp_path):
        (path,) = make_claim_lists(2, 1, handles=["not-a-key"], directory=tmp_path)
        assert "not-a-key" not in {e["handle"] for e in _read(path)}

    def test_single_entry_list(self, tmp_path):
        mine = str(Pubkey.new_unique())
        (path,) = make_claim_lists(1, 7, handles=[mine], directory=tmp_path)
        assert _read(path) == [{"handle": mine, "amount": 7}]

    def test_never_overwrites(self, tmp_path):
        existing = tmp_path / "distribution3-0.json"
        existing.write_text("keep")
        with pytest.raises(ArtifactUnwritable):
            make_claim_lists(3, 1, directory=tmp_path)
        assert existing.read_text() == "keep"

    def test_number_must_be_positive(self, tmp_path):
        with pytest.raises(ValueError):
            make_claim_lists(0, 1, directory=tmp_path)


class TestLoadHandles:
    def test_reads_array(self, tmp_path):
        path = tmp_path / "keys.json"
        path.write_text(json.dumps(["a", "b"]))
        assert load_handles(path) == ["a", "b"]

    def test_missing_file(self, tmp_path):
        assert load_handles(tmp_path / "absent.json") == []

    def test_none(self):
        assert load_handles(None) == []
