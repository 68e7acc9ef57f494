"""Document persistence backed by DuckDB."""

from .library import DocumentLibrary, make_ref, parse_ref

__all__ = ["DocumentLibrary", "make_ref", "parse_ref"]
