from shacl_lens.shacl.locator import (
    LocatorResult,
    Position,
    TextRange,
    candidate_patterns,
    find_shape_declaration_range,
    locate,
    locate_all,
    search,
)
from shacl_lens.shacl.overview import ShapeLens, shape_overview
from shacl_lens.shacl.report import (
    RawReport,
    RawResult,
    ValidationReport,
    ValidationResult,
    engine_failure_report,
    parse_failure_report,
    project,
    raw_report_from_graph,
)
from shacl_lens.shacl.targets import (
    ShapeTarget,
    TargetKind,
    extract_targets,
    find_focus_nodes,
    has_property_constraints,
    node_shapes,
)
from shacl_lens.shacl.validator import detect_shapes_hint, run_validation, validate_graph

__all__ = [
    "candidate_patterns",
    "detect_shapes_hint",
    "engine_failure_report",
    "extract_targets",
    "find_focus_nodes",
    "find_shape_declaration_range",
    "has_property_constraints",
    "locate",
    "locate_all",
    "LocatorResult",
    "node_shapes",
    "parse_failure_report",
    "Position",
    "project",
    "raw_report_from_graph",
    "RawReport",
    "RawResult",
    "run_validation",
    "search",
    "ShapeLens",
    "shape_overview",
    "ShapeTarget",
    "TargetKind",
    "TextRange",
    "validate_graph",
    "ValidationReport",
    "ValidationResult",
]
