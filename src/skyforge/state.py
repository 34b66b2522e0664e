import json
from pathlib import Path

import pydantic
from pydantic import BaseModel

from .errors import StateError
from .schemas.cluster import ClusterSpec


DEFAULT_STATE_DIR = Path.home() / ".config" / "skyforge" / "state"


class StateRecord(BaseModel):
    """What is remembered about one cluster between runs."""

    id: str = ""
    spec: ClusterSpec | None = None


class FileStateStore:
    """
    One JSON file per cluster identity (project/region/name) under `root`.

    Live state is never patched locally: every save replaces the record.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root) if root else DEFAULT_STATE_DIR

    def _path(self, key: str) -> Path:
        return self.root / (key.replace("/", "__") + ".json")

    def load(self, key: str) -> StateRecord | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open("r") as f:
                return StateRecord.model_validate(json.load(f))
        except (json.JSONDecodeError, pydantic.ValidationError) as e:
            raise StateError(f"Corrupt state file {path}: {e}") from e

    def save(self, key: str, record: StateRecord) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        with tmp.open("w") as f:
            json.dump(record.model_dump(mode="json"), f, indent=2)
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
