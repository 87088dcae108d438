from shacl_lens.rdf.documents import Diagnostic, DocumentRegistry, RdfDocument
from shacl_lens.rdf.formats import infer_rdf_format, normalize_rdf_format
from shacl_lens.rdf.store import new_graph
from shacl_lens.rdf.terms import Term, TermKind, local_name

__all__ = [
    "Diagnostic",
    "DocumentRegistry",
    "infer_rdf_format",
    "local_name",
    "new_graph",
    "normalize_rdf_format",
    "RdfDocument",
    "Term",
    "TermKind",
]
