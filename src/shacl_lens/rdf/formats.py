from __future__ import annotations

from pathlib import Path

RDF_FORMAT_ALIASES = {
    "turtle": "turtle",
    "ttl": "turtle",
    "shacl": "turtle",
    "shc": "turtle",
    "n3": "n3",
    "trig": "trig",
    "json-ld": "json-ld",
    "jsonld": "json-ld",
    "rdfxml": "xml",
    "rdf/xml": "xml",
    "xml": "xml",
    "rdf": "xml",
    "owl": "xml",
    "ntriples": "nt",
    "n-triples": "nt",
    "nt": "nt",
    "nquads": "nquads",
    "n-quads": "nquads",
    "nq": "nquads",
}

SUFFIX_FORMATS = {
    ".ttl": "turtle",
    ".turtle": "turtle",
    ".shacl": "turtle",
    ".shc": "turtle",
    ".n3": "n3",
    ".trig": "trig",
    ".jsonld": "json-ld",
    ".json": "json-ld",
    ".rdf": "xml",
    ".xml": "xml",
    ".owl": "xml",
    ".nt": "nt",
    ".nq": "nquads",
}

TURTLE_FAMILY = {"turtle", "n3", "trig"}


def normalize_rdf_format(value: str) -> str:
    normalized = value.strip().lower()
    return RDF_FORMAT_ALIASES.get(normalized, normalized)


def infer_rdf_format(path: Path | None, explicit: str | None = None) -> str:
    if explicit:
        return normalize_rdf_format(explicit)
    if path is None:
        return "turtle"
    suffix = path.suffix.lower()
    if suffix in SUFFIX_FORMATS:
        return SUFFIX_FORMATS[suffix]
    raise ValueError(f"Unable to infer RDF format for '{path.name}'; use --format")
