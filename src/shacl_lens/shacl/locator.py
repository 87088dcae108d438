"""Find where a graph term is written in a document's source text.

Parsed graphs carry no source positions, so every lookup re-derives a
location from the term's identity. A term is expanded into ranked candidate
spellings (full IRI in brackets, bare IRI, every prefixed name, local name)
and the text is searched candidate by candidate with boundary checks. The
first candidate that matches anywhere wins, even if a lower-ranked spelling
occurs earlier in the text.
"""

from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from rdflib.namespace import RDF, SH

from shacl_lens.rdf.terms import Term, TermKind, local_name

logger = logging.getLogger("shacl_lens.shacl.locator")

LEADING_BOUNDARY = r"(?<![^\s<\"'(])"
TRAILING_BOUNDARY = r"(?![^\s>.,;\"')])"

STATEMENT_END_RE = re.compile(r"\.(?=\s|$)")
TRAILING_COMMENT_RE = re.compile(r"\s#.*$")
DIRECTIVE_RE = re.compile(r"^\s*(?:@?prefix|@?base)\b", re.IGNORECASE)


@dataclass(frozen=True)
class Position:
    line: int
    character: int

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class TextRange:
    start: Position
    end: Position
    start_offset: int
    end_offset: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "startOffset": self.start_offset,
            "endOffset": self.end_offset,
        }


@dataclass(frozen=True)
class LocatorResult:
    range: TextRange | None
    matched: str | None = None
    candidates: tuple[str, ...] = field(default_factory=tuple)

    @property
    def found(self) -> bool:
        return self.range is not None


class _LineIndex:
    def __init__(self, text: str) -> None:
        self.starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                self.starts.append(index + 1)

    def position(self, offset: int) -> Position:
        line = bisect.bisect_right(self.starts, offset) - 1
        return Position(line, offset - self.starts[line])

    def text_range(self, start: int, end: int) -> TextRange:
        return TextRange(self.position(start), self.position(end), start, end)


def _prefixed_names(iri: str, prefixes: Mapping[str, str]) -> list[str]:
    matches = [
        (namespace, prefix)
        for prefix, namespace in prefixes.items()
        if namespace and iri.startswith(namespace)
    ]
    # longest namespace first gives the most specific prefixed name
    matches.sort(key=lambda item: len(item[0]), reverse=True)
    return [f"{prefix}:{iri[len(namespace):]}" for namespace, prefix in matches]


def candidate_patterns(term: Term, prefixes: Mapping[str, str]) -> list[str]:
    """Ranked textual spellings of ``term``, most specific first, no duplicates."""
    if term.kind is TermKind.IRI:
        candidates = [f"<{term.value}>", term.value]
        candidates.extend(_prefixed_names(term.value, prefixes))
        candidates.append(local_name(term.value))
    elif term.kind is TermKind.BLANK_NODE:
        candidates = [f"_:{term.value}"]
    elif term.kind is TermKind.LITERAL:
        candidates = []
        if term.language:
            candidates.append(f'"{term.value}"@{term.language}')
        candidates.extend([f'"{term.value}"', term.value])
    else:
        candidates = []
    return list(dict.fromkeys(candidate for candidate in candidates if candidate))


def _compile(candidate: str) -> re.Pattern[str] | None:
    try:
        return re.compile(LEADING_BOUNDARY + re.escape(candidate) + TRAILING_BOUNDARY)
    except re.error as exc:
        logger.warning("Skipping locator candidate %r: %s", candidate, exc)
        return None


def _coerce(term: Term | str, kind: str | TermKind | None) -> Term:
    if isinstance(term, Term):
        return term
    return Term.parse(term, kind)


def search(
    text: str,
    prefixes: Mapping[str, str],
    term: Term | str,
    kind: str | TermKind | None = None,
) -> LocatorResult:
    """Locate the first occurrence of the best-ranked candidate that occurs at all."""
    resolved = _coerce(term, kind)
    candidates = tuple(candidate_patterns(resolved, prefixes))
    for candidate in candidates:
        pattern = _compile(candidate)
        if pattern is None:
            continue
        match = pattern.search(text)
        if match is None:
            continue
        logger.debug("Located %s as %r at offset %s", resolved, candidate, match.start())
        return LocatorResult(
            _LineIndex(text).text_range(match.start(), match.end()), candidate, candidates
        )
    logger.debug("No occurrence of %s (tried %s)", resolved, ", ".join(candidates))
    return LocatorResult(None, None, candidates)


def locate(
    text: str,
    prefixes: Mapping[str, str],
    term: Term | str,
    kind: str | TermKind | None = None,
) -> TextRange | None:
    return search(text, prefixes, term, kind).range


def locate_all(
    text: str,
    prefixes: Mapping[str, str],
    term: Term | str,
    kind: str | TermKind | None = None,
) -> list[TextRange]:
    """Every occurrence of the candidate :func:`search` settles on."""
    result = search(text, prefixes, term, kind)
    if result.matched is None:
        return []
    pattern = _compile(result.matched)
    if pattern is None:
        return []
    index = _LineIndex(text)
    return [index.text_range(match.start(), match.end()) for match in pattern.finditer(text)]


def _namespace_prefixes(prefixes: Mapping[str, str], namespace: str) -> list[str]:
    return [re.escape(prefix) for prefix, value in prefixes.items() if value == namespace]


def _type_assertion_re(prefixes: Mapping[str, str]) -> re.Pattern[str]:
    rdf_prefixes = _namespace_prefixes(prefixes, str(RDF)) or ["rdf"]
    sh_prefixes = _namespace_prefixes(prefixes, str(SH)) or ["sh"]
    type_terms = ["a", re.escape(f"<{RDF.type}>")]
    type_terms.extend(f"{prefix}:type" for prefix in rdf_prefixes)
    shape_terms = [re.escape(f"<{SH.NodeShape}>")]
    shape_terms.extend(f"{prefix}:NodeShape" for prefix in sh_prefixes)
    return re.compile(
        r"(?<![^\s;])(?:" + "|".join(type_terms) + r")\s+"
        r"(?:[^;]*?[\s,])?"
        r"(?:" + "|".join(shape_terms) + r")(?![^\s>.,;\]])"
    )


def _significant_line(line: str) -> str:
    if line.lstrip().startswith("#"):
        return ""
    return TRAILING_COMMENT_RE.sub("", line).strip()


def _in_subject_position(lines: list[str], line_no: int, column: int) -> bool:
    before = lines[line_no][:column]
    if before.strip():
        return before.rstrip().endswith(".")
    for previous in reversed(lines[:line_no]):
        content = _significant_line(previous)
        if not content:
            continue
        return content.endswith((".", "{", "}")) or bool(DIRECTIVE_RE.match(content))
    return True


def find_shape_declaration_range(
    text: str,
    prefixes: Mapping[str, str],
    shape: Term | str,
    lookahead_lines: int = 5,
) -> TextRange | None:
    """Range of the occurrence of ``shape`` that declares it as a node shape.

    An occurrence counts only when it sits in subject position and a
    ``a sh:NodeShape`` style assertion follows within ``lookahead_lines``
    lines, before the statement ends. Occurrences are tried in candidate
    rank order, then document order.
    """
    resolved = _coerce(shape, None)
    assertion = _type_assertion_re(prefixes)
    lines = text.split("\n")
    index = _LineIndex(text)
    for candidate in candidate_patterns(resolved, prefixes):
        pattern = _compile(candidate)
        if pattern is None:
            continue
        for match in pattern.finditer(text):
            start = index.position(match.start())
            if not _in_subject_position(lines, start.line, start.character):
                continue
            last_line = min(start.line + lookahead_lines, len(lines)) - 1
            window_end = index.starts[last_line] + len(lines[last_line])
            window = text[match.end() : window_end]
            terminator = STATEMENT_END_RE.search(window)
            if terminator is not None:
                window = window[: terminator.start()]
            if assertion.search(window):
                logger.debug("Shape %s declared at line %s as %r", resolved, start.line + 1, candidate)
                return index.text_range(match.start(), match.end())
    logger.debug("No declaration found for shape %s", resolved)
    return None
