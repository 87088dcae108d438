from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname


@dataclass(frozen=True)
class DocumentLocation:
    """Identity of a source document, kept as a URI string."""

    uri: str

    @classmethod
    def from_path(cls, path: str | Path) -> "DocumentLocation":
        return cls(Path(path).expanduser().resolve().as_uri())

    @classmethod
    def parse(cls, value: "str | Path | DocumentLocation") -> "DocumentLocation":
        if isinstance(value, DocumentLocation):
            return value
        if isinstance(value, Path):
            return cls.from_path(value)
        text = value.strip()
        if not text:
            raise ValueError("Document location must not be empty")
        parsed = urlparse(text)
        # single-letter schemes are Windows drive letters, not URIs
        if parsed.scheme and len(parsed.scheme) > 1:
            return cls(text)
        return cls.from_path(text)

    @property
    def path(self) -> Path | None:
        parsed = urlparse(self.uri)
        if parsed.scheme != "file":
            return None
        return Path(url2pathname(parsed.path))

    @property
    def name(self) -> str:
        path = self.path
        if path is not None:
            return path.name
        if "/" not in self.uri:
            return unquote(self.uri.split(":", 1)[-1])
        return unquote(self.uri.rstrip("/").rsplit("/", 1)[-1])

    def read_text(self) -> str:
        path = self.path
        if path is None:
            raise FileNotFoundError(f"Cannot read non-file location: {self.uri}")
        return path.read_text(encoding="utf-8")

    def __str__(self) -> str:
        return self.uri
