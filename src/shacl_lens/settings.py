from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .resources import load_yaml, resolve_resource_path

logger = logging.getLogger("shacl_lens.settings")

DEFAULT_SETTINGS = "settings.yml"
SETTINGS_ENV = "SHACL_LENS_SETTINGS"
SESSIONS_ENV = "SHACL_LENS_SESSIONS"

INFERENCE_MODES = {"none", "rdfs", "owlrl", "both"}
# rdflib's in-memory store
DEFAULT_GRAPH_STORES = {"", "default", "memory"}


@dataclass
class ValidationSettings:
    inference: str = "none"
    advanced: bool = True
    allow_warnings: bool = True
    abort_on_first: bool = False


@dataclass
class Settings:
    name: str = "default"
    validation: ValidationSettings = field(default_factory=ValidationSettings)
    lookahead_lines: int = 5
    shapes_hint_lines: int = 10
    session_store: Path = Path(".shacl-lens/sessions.json")
    persist_reports: bool = False
    graph_store: str | None = None


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _positive_int(value: object, default: int, key: str) -> int:
    if value is None:
        return default
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Setting '{key}' must be an integer, got {value!r}") from exc
    if number < 1:
        raise ValueError(f"Setting '{key}' must be at least 1, got {number}")
    return number


def settings_from_dict(data: dict, base_dir: Path | None = None) -> Settings:
    validation_data = _section(data, "validation")
    locator_data = _section(data, "locator")
    sessions_data = _section(data, "sessions")
    graph_data = _section(data, "graph")

    inference = str(validation_data.get("inference", "none")).strip().lower()
    if inference not in INFERENCE_MODES:
        raise ValueError(
            f"Unknown inference mode '{inference}' (expected one of {sorted(INFERENCE_MODES)})"
        )
    validation = ValidationSettings(
        inference=inference,
        advanced=bool(validation_data.get("advanced", True)),
        allow_warnings=bool(validation_data.get("allow_warnings", True)),
        abort_on_first=bool(validation_data.get("abort_on_first", False)),
    )

    store = Path(str(sessions_data.get("store", ".shacl-lens/sessions.json"))).expanduser()
    if not store.is_absolute() and base_dir is not None:
        store = base_dir / store

    graph_store = str(graph_data.get("store") or "").strip()
    if graph_store.lower() in DEFAULT_GRAPH_STORES:
        graph_store = ""
    return Settings(
        name=str(data.get("name", "default")),
        validation=validation,
        lookahead_lines=_positive_int(locator_data.get("lookahead_lines"), 5, "lookahead_lines"),
        shapes_hint_lines=_positive_int(
            locator_data.get("shapes_hint_lines"), 10, "shapes_hint_lines"
        ),
        session_store=store,
        persist_reports=bool(sessions_data.get("persist_reports", False)),
        graph_store=graph_store or None,
    )


def load_settings(path: str | None = None, sessions_override: str | None = None) -> Settings:
    """Load settings from ``path``, ``$SHACL_LENS_SETTINGS`` or the packaged defaults.

    Relative session store paths in a user settings file are resolved against
    the file's directory; the packaged defaults keep them relative to the
    working directory.
    """
    settings_path = path or os.getenv(SETTINGS_ENV)
    if settings_path:
        resolved = resolve_resource_path(settings_path)
        if not resolved.exists():
            raise FileNotFoundError(f"Settings file not found: {settings_path}")
        logger.debug("Loading settings: %s", resolved)
        settings = settings_from_dict(load_yaml(resolved), base_dir=resolved.parent)
    else:
        logger.debug("Loading packaged default settings")
        settings = settings_from_dict(load_yaml(DEFAULT_SETTINGS))

    store_override = sessions_override or os.getenv(SESSIONS_ENV)
    if store_override:
        settings.session_store = Path(store_override).expanduser()
    logger.debug(
        "Settings %s: inference=%s lookahead=%s store=%s",
        settings.name,
        settings.validation.inference,
        settings.lookahead_lines,
        settings.session_store,
    )
    return settings
