"""
Opaque document tree and its PSD codec.
"""

from .codec import (
    DocumentError,
    open_document,
    parse_document,
    save_document,
    serialize_document,
)
from .nodes import DocumentNode, DocumentTree

__all__ = [
    "DocumentError",
    "DocumentNode",
    "DocumentTree",
    "open_document",
    "parse_document",
    "save_document",
    "serialize_document",
]
