"""Tests for program-derived address resolution."""

import pytest
from solders.pubkey import Pubkey

from splscan.ledger.derive import create_address, derive, find_address, metadata_address
from splscan.ledger.layout import METADATA_SEED, TOKEN_METADATA_PROGRAM_ID, TOKEN_PROGRAM_ID

USDC = Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")


class TestFindAddress:
    def test_matches_solders(self):
        seeds = [METADATA_SEED, bytes(TOKEN_METADATA_PROGRAM_ID), bytes(USDC)]
        assert find_address(seeds, TOKEN_METADATA_PROGRAM_ID) == Pubkey.find_program_address(
            seeds, TOKEN_METADATA_PROGRAM_ID
        )

    def test_result_is_off_curve(self):
        address, _ = find_address([b"splscan"], TOKEN_PROGRAM_ID)
        assert not address.is_on_curve()

    def test_bump_reproduces_address(self):
        address, bump = find_address([b"seed"], TOKEN_PROGRAM_ID)
        assert create_address([b"seed", bytes([bump])], TOKEN_PROGRAM_ID) == address

    def test_seed_too_long(self):
        with pytest.raises(ValueError):
            find_address([bytes(33)], TOKEN_PROGRAM_ID)

    def test_too_many_seeds(self):
        with pytest.raises(ValueError):
            find_address([b"s"] * 16, TOKEN_PROGRAM_ID)


class TestDerive:
    def test_deterministic(self):
        assert metadata_address(USDC) == metadata_address(USDC)

    def test_sensitive_to_each_input(self):
        base = derive(USDC, METADATA_SEED, TOKEN_METADATA_PROGRAM_ID)
        assert derive(Pubkey.new_unique(), METADATA_SEED, TOKEN_METADATA_PROGRAM_ID) != base
        assert derive(USDC, b"edition", TOKEN_METADATA_PROGRAM_ID) != base
        assert derive(USDC, METADATA_SEED, TOKEN_PROGRAM_ID) != base

    def test_metadata_address_uses_metadata_program(self):
        assert metadata_address(USDC) == derive(USDC, METADATA_SEED, TOKEN_METADATA_PROGRAM_ID)
