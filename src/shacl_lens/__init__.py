"""SHACL validation with source navigation for RDF documents."""

__version__ = "0.1.0"
