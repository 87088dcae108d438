from __future__ import annotations

from pathlib import Path

from shacl_lens.locations import DocumentLocation
from shacl_lens.settings import INFERENCE_MODES, Settings, load_settings
from shacl_lens.shacl.report import ValidationReport
from shacl_lens.shacl.validator import detect_shapes_hint


def resolve_settings(
    *,
    settings_path: Path | None,
    store: Path | None,
    inference: str | None = None,
) -> Settings:
    try:
        settings = load_settings(
            str(settings_path) if settings_path else None,
            str(store) if store else None,
        )
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc
    if inference:
        mode = inference.strip().lower()
        if mode not in INFERENCE_MODES:
            raise SystemExit(f"Unknown inference mode: {inference}")
        settings.validation.inference = mode
    return settings


def resolve_shapes_location(
    data_path: Path,
    shapes_path: Path | None,
    settings: Settings,
) -> DocumentLocation:
    if shapes_path is not None:
        return DocumentLocation.from_path(shapes_path)
    data_location = DocumentLocation.from_path(data_path)
    try:
        text = data_location.read_text()
    except (OSError, UnicodeDecodeError) as exc:
        raise SystemExit(f"Could not read data graph {data_path}: {exc}") from exc
    hinted = detect_shapes_hint(text, data_location, settings.shapes_hint_lines)
    if hinted is None:
        raise SystemExit(
            "Shapes graph is required. Provide --shapes or add a '# shapes: <path>' "
            "comment near the top of the data graph."
        )
    return hinted


def format_report(report: ValidationReport) -> str:
    lines = [
        f"Data:     {report.data_document.name}",
        f"Shapes:   {report.shapes_document.name}",
        f"Conforms: {'yes' if report.conforms else 'no'}",
    ]
    for index, result in enumerate(report.results, start=1):
        severity = result.severity.value if result.severity is not None else "Result"
        lines.append(f"{index}. [{severity.rsplit('#', 1)[-1]}] {' / '.join(result.message)}")
        if result.focus_node is not None:
            lines.append(f"   focus node: {result.focus_node.render()}")
        if result.path is not None:
            lines.append(f"   path: {result.path.render()}")
        if result.value is not None:
            lines.append(f"   value: {result.value.render()}")
        if result.source_shape is not None:
            lines.append(f"   shape: {result.source_shape.render()}")
    return "\n".join(lines)
