from __future__ import annotations

from importlib import resources
from pathlib import Path

import yaml

PACKAGE = "shacl_lens.resources"


def resolve_resource_path(path: str | Path, package: str = PACKAGE) -> Path:
    """Resolve ``path`` as a local file, or else as packaged data."""
    candidate = Path(path).expanduser()
    if candidate.is_absolute() or candidate.exists():
        return candidate.resolve()
    return Path(str(resources.files(package).joinpath(str(path))))


def load_text(path: str | Path, package: str = PACKAGE) -> str:
    return resolve_resource_path(path, package).read_text(encoding="utf-8")


def load_yaml(path: str | Path, package: str = PACKAGE) -> dict:
    content = load_text(path, package)
    data = yaml.safe_load(content)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping in YAML file: {path}")
    return data
