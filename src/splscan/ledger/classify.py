"""Fungibility heuristic for decoded mints."""

from splscan.core.models import PrimaryRecord


def is_fungible(record: PrimaryRecord) -> bool:
    """True when more than one whole unit has been minted.

    ``supply > 10 ** decimals`` is a heuristic, not ground truth: a
    zero-decimal mint with supply 1 reads as an NFT, while a fungible token
    that has minted less than one whole unit so far reads as non-fungible.
    """
    return record.supply > 10 ** record.decimals
