from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger("shacl_lens.sessions.store")

STORAGE_KEY = "shaclValidationSessions"


def render_json(data: object) -> str:
    return json.dumps(data, indent=2, sort_keys=True)


def write_json(data: object, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_json(data), encoding="utf-8")


class JsonSessionStore:
    """Flat key-value session storage backed by one JSON file."""

    def __init__(self, path: str | Path, key: str = STORAGE_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            logger.debug("Session store %s does not exist yet", self.path)
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            raise ValueError(f"Could not read session store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Expected mapping in session store: {self.path}")
        records = data.get(self.key, [])
        if not isinstance(records, list):
            raise ValueError(f"Expected a list under '{self.key}' in {self.path}")
        logger.debug("Loaded %s session record(s) from %s", len(records), self.path)
        return [record for record in records if isinstance(record, dict)]

    def save(self, records: list[dict[str, Any]]) -> None:
        write_json({self.key: records}, self.path)
        logger.debug("Saved %s session record(s) to %s", len(records), self.path)


class MemorySessionStore:
    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self.records = list(records or [])

    def load(self) -> list[dict[str, Any]]:
        return [dict(record) for record in self.records]

    def save(self, records: list[dict[str, Any]]) -> None:
        self.records = [dict(record) for record in records]
