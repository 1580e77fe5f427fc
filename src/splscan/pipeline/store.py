"""Staged persistence of pipeline artifacts.

Each stage writes its output as a JSON array to a fixed path under the
artifact root, so any later stage can be re-run without recomputing the
earlier ones. Writing overwrites; there is no append.

A stage's input is either the previous stage's in-memory output or that
stage's artifact. ``StageInput`` models the choice as a sum type and
``resolve_input`` settles it once, at stage entry.

Failure policy:
    - ``load`` raises ``ArtifactMissing`` / ``ArtifactCorrupt``: the
      pipeline cannot resume from here and an earlier stage must run.
    - ``save`` logs and returns ``None`` on failure: the in-memory result
      is still good.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Generic, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from splscan.core.errors import ArtifactCorrupt, ArtifactMissing, ArtifactUnwritable
from splscan.core.logging import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class Stage(str, Enum):
    """Pipeline stages with a persisted artifact."""

    MINTS = "mints"
    ACCOUNTS = "accounts"
    TOKEN_LIST = "token_list"
    URI_TOKEN_LIST = "uri_token_list"
    NO_URI_TOKEN_LIST = "no_uri_token_list"
    UNVERIFIED_CREATORS = "unverified_creators"


ARTIFACT_PATHS: dict[Stage, Path] = {
    Stage.MINTS: Path("mint_info.json"),
    Stage.ACCOUNTS: Path("account_info.json"),
    Stage.TOKEN_LIST: Path("draft") / "tokenlist.json",
    Stage.URI_TOKEN_LIST: Path("draft") / "uri_tokenlist.json",
    Stage.NO_URI_TOKEN_LIST: Path("draft") / "no_uri_tokenlist.json",
    Stage.UNVERIFIED_CREATORS: Path("metadata_list.json"),
}


class StageStore:
    """JSON artifact store rooted at ``root``."""

    def __init__(self, root: Path | str = "."):
        self.root = Path(root)

    def path_for(self, stage: Stage) -> Path:
        return self.root / ARTIFACT_PATHS[Stage(stage)]

    def exists(self, stage: Stage) -> bool:
        return self.path_for(stage).is_file()

    def load(self, stage: Stage, model: type[M]) -> list[M]:
        """Read a stage's artifact as a list of ``model``.

        Raises:
            ArtifactMissing: no artifact for ``stage``
            ArtifactCorrupt: artifact unreadable or not a list of ``model``
        """
        stage = Stage(stage)
        path = self.path_for(stage)
        try:
            raw = path.read_bytes()
        except FileNotFoundError as e:
            raise ArtifactMissing(
                f"No artifact for stage '{stage.value}' at {path}; run an earlier stage first",
                cause=e,
            ).with_context(stage=stage.value, path=str(path)) from e
        except OSError as e:
            raise ArtifactCorrupt(f"Could not read {path}", cause=e).with_context(
                stage=stage.value, path=str(path)
            ) from e

        try:
            records = TypeAdapter(list[model]).validate_json(raw)
        except ValidationError as e:
            raise ArtifactCorrupt(
                f"Artifact {path} is not a list of {model.__name__}", cause=e
            ).with_context(stage=stage.value, path=str(path)) from e

        logger.info("store.loaded", stage=stage.value, path=str(path), records=len(records))
        return records

    def save(
        self,
        stage: Stage,
        records: Sequence[BaseModel] | Sequence[str],
        *,
        enabled: bool = True,
        pretty: bool = False,
    ) -> Path | None:
        """Write ``records`` as the stage's artifact.

        Returns the path written, or ``None`` when disabled or on failure.
        """
        if not enabled:
            return None
        stage = Stage(stage)
        path = self.path_for(stage)
        try:
            self._write(path, records, pretty)
        except ArtifactUnwritable as e:
            logger.error("store.save_failed", **e.to_dict())
            return None
        logger.info("store.saved", stage=stage.value, path=str(path), records=len(records))
        return path

    def _write(self, path: Path, records: Sequence, pretty: bool) -> None:
        rows = [
            r.model_dump(mode="json", by_alias=True) if isinstance(r, BaseModel) else r
            for r in records
        ]
        payload = json.dumps(rows, indent=2 if pretty else None)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise ArtifactUnwritable(f"Could not write {path}", cause=e).with_context(
                path=str(path)
            ) from e


# =============================================================================
# STAGE INPUT
# =============================================================================


@dataclass(frozen=True)
class InMemory(Generic[M]):
    """Records handed over directly from the previous stage."""

    records: Sequence[M]


@dataclass(frozen=True)
class FromStore:
    """Records to be loaded from a stage's artifact."""

    stage: Stage


StageInput = Union[InMemory, FromStore]


def resolve_input(source: StageInput, store: StageStore, model: type[M]) -> list[M]:
    """Materialise a stage's input, loading from the store if needed."""
    if isinstance(source, InMemory):
        return list(source.records)
    return store.load(source.stage, model)


__all__ = [
    "Stage",
    "ARTIFACT_PATHS",
    "StageStore",
    "InMemory",
    "FromStore",
    "StageInput",
    "resolve_input",
]
