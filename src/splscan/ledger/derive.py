"""Program-derived address resolution.

A derived address has no private key: it is a SHA-256 digest that does not
lie on the ed25519 curve. The search hashes the seeds with a bump byte
counting down from 255 and keeps the first off-curve digest, so a given
(seeds, program) pair always maps to one address.

Examples:
    >>> metadata_address(Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"))
    Pubkey(...)
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence

from solders.pubkey import Pubkey

from splscan.core.errors import ResolutionExhausted
from splscan.ledger.layout import METADATA_SEED, TOKEN_METADATA_PROGRAM_ID

PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEED_LEN = 32
MAX_SEEDS = 16


def create_address(seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey | None:
    """Hash ``seeds`` under ``program_id``; ``None`` if the digest is on the curve."""
    digest = hashlib.sha256()
    for seed in seeds:
        digest.update(seed)
    digest.update(bytes(program_id))
    digest.update(PDA_MARKER)
    candidate = Pubkey.from_bytes(digest.digest())
    if candidate.is_on_curve():
        return None
    return candidate


def find_address(seeds: Sequence[bytes], program_id: Pubkey) -> tuple[Pubkey, int]:
    """Search bump values 255..0 for the first off-curve address.

    Returns:
        ``(address, bump)``

    Raises:
        ResolutionExhausted: no bump produced an off-curve address.
    """
    if len(seeds) + 1 > MAX_SEEDS:
        raise ValueError(f"at most {MAX_SEEDS - 1} seeds allowed, got {len(seeds)}")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise ValueError(f"seed of {len(seed)} bytes exceeds {MAX_SEED_LEN}")

    for bump in range(255, -1, -1):
        address = create_address([*seeds, bytes([bump])], program_id)
        if address is not None:
            return address, bump

    raise ResolutionExhausted(f"no off-curve address for seeds under {program_id}")


def derive(primary_key: Pubkey, namespace_tag: bytes, authority_id: Pubkey) -> Pubkey:
    """Derived address of the account ``authority_id`` keeps for ``primary_key``."""
    address, _ = find_address(
        [namespace_tag, bytes(authority_id), bytes(primary_key)],
        authority_id,
    )
    return address


def metadata_address(mint: Pubkey, program_id: Pubkey = TOKEN_METADATA_PROGRAM_ID) -> Pubkey:
    """Metaplex metadata account address for ``mint``."""
    return derive(mint, METADATA_SEED, program_id)


__all__ = [
    "create_address",
    "find_address",
    "derive",
    "metadata_address",
]
