from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from shacl_lens.locations import DocumentLocation
from shacl_lens.shacl.report import ValidationReport

REQUIRED_FIELDS = ("id", "name", "dataGraphUri", "shapesGraphUri", "createdAt")


@dataclass
class ValidationSession:
    """A named pairing of a data graph and a shapes graph."""

    id: str
    name: str
    data_graph: DocumentLocation
    shapes_graph: DocumentLocation
    created_at: int
    last_report: ValidationReport | None = None

    @property
    def data_graph_file_name(self) -> str:
        return self.data_graph.name

    @property
    def shapes_graph_file_name(self) -> str:
        return self.shapes_graph.name

    def to_dict(self, include_report: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "dataGraphUri": self.data_graph.uri,
            "shapesGraphUri": self.shapes_graph.uri,
            "createdAt": self.created_at,
            "dataGraphFileName": self.data_graph_file_name,
            "shapesGraphFileName": self.shapes_graph_file_name,
        }
        if include_report and self.last_report is not None:
            data["lastValidationReport"] = self.last_report.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ValidationSession":
        missing = [key for key in REQUIRED_FIELDS if data.get(key) in (None, "")]
        if missing:
            raise ValueError(f"Session record is missing {', '.join(missing)}")
        report_data = data.get("lastValidationReport")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            data_graph=DocumentLocation.parse(str(data["dataGraphUri"])),
            shapes_graph=DocumentLocation.parse(str(data["shapesGraphUri"])),
            created_at=int(data["createdAt"]),
            last_report=(
                ValidationReport.from_dict(report_data)
                if isinstance(report_data, Mapping)
                else None
            ),
        )
