"""Tests for the fungibility heuristic."""

import pytest
from solders.pubkey import Pubkey

from splscan.core.models import PrimaryRecord
from splscan.ledger.classify import is_fungible


def _mint(supply: int, decimals: int) -> PrimaryRecord:
    return PrimaryRecord(key=str(Pubkey.new_unique()), supply=supply, decimals=decimals)


@pytest.mark.parametrize(
    "supply, decimals, expected",
    [
        (1, 0, False),  # typical NFT
        (2, 0, True),
        (1_000_000, 6, False),  # exactly one whole unit
        (1_000_001, 6, True),
        (0, 9, False),
        (2**64 - 1, 9, True),
    ],
)
def test_is_fungible(supply, decimals, expected):
    assert is_fungible(_mint(supply, decimals)) is expected
