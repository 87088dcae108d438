from __future__ import annotations

from rdflib import Graph


def new_graph(store: str | None = None, *, bind_namespaces: str = "rdflib") -> Graph:
    """Create an empty graph on the given rdflib store plugin.

    Document graphs pass ``bind_namespaces="none"`` so that the namespace
    manager only holds the prefixes the parser actually saw.
    """
    store_name = store or "default"
    return Graph(store=store_name, bind_namespaces=bind_namespaces)
