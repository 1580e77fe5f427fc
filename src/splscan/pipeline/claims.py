"""Claim-list generator for token distributions.

Writes ``distribution{number}-{i}.json`` files, each a JSON array of
``{"handle": <address>, "amount": <n>}`` entries: ``number - 1`` freshly
generated addresses plus one chosen address at a random index. Used to
build large test distributions around a wallet you control.
"""

from __future__ import annotations

import json
import random
from collections.abc import Sequence
from pathlib import Path

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from splscan.core.errors import ArtifactUnwritable
from splscan.core.logging import get_logger
from splscan.core.models import ClaimEntry

logger = get_logger(__name__)


def _fresh_address() -> str:
    return str(Keypair().pubkey())


def _valid_or_fresh(handle: str | None) -> str:
    if handle is None:
        return _fresh_address()
    try:
        return str(Pubkey.from_string(handle))
    except ValueError:
        logger.warning("claims.invalid_handle", handle=handle)
        return _fresh_address()


def load_handles(path: Path | str | None) -> list[str]:
    """Read a JSON array of base58 addresses; empty if the file is unreadable."""
    if path is None:
        return []
    try:
        with Path(path).open(encoding="utf-8") as f:
            handles = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("claims.handles_unreadable", path=str(path), error=str(e))
        return []
    return [str(h) for h in handles] if isinstance(handles, list) else []


def make_claim_lists(
    number: int,
    amount: int,
    repeat: int | None = None,
    handles: Sequence[str] = (),
    directory: Path | str = ".",
    rng: random.Random | None = None,
) -> list[Path]:
    """Write ``repeat`` claim lists of ``number`` entries each.

    List ``i`` carries ``handles[i]`` when given (and valid), otherwise a
    fresh address. Existing files are never overwritten.

    Raises:
        ValueError: ``number`` is less than 1
        ArtifactUnwritable: a target file exists or cannot be created
    """
    if number < 1:
        raise ValueError(f"number must be >= 1, got {number}")
    rng = rng or random.Random()
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []

    for i in range(repeat or 1):
        chosen = _valid_or_fresh(handles[i] if i < len(handles) else None)
        entries = [ClaimEntry(handle=_fresh_address(), amount=amount) for _ in range(number - 1)]
        entries.insert(rng.randrange(number), ClaimEntry(handle=chosen, amount=amount))

        path = directory / f"distribution{number}-{i}.json"
        try:
            with path.open("x", encoding="utf-8") as f:
                json.dump([e.model_dump() for e in entries], f)
        except OSError as e:
            raise ArtifactUnwritable(f"Could not create claim list {path}", cause=e).with_context(
                path=str(path)
            ) from e

        logger.info("claims.saved", path=str(path), entries=len(entries), handle=chosen)
        written.append(path)
    return written


__all__ = ["load_handles", "make_claim_lists"]
