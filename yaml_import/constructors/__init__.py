"""Constructors for the import tag family."""

from .import_tags import (
    IMPORT_ALL_PARAMETERIZED_TAG,
    IMPORT_ALL_TAG,
    IMPORT_ANCHOR_TAG,
    IMPORT_TAG,
    IMPORT_TAGS,
    AnchorQuery,
    ImportSpec,
    register_import_tags,
)

__all__ = [
    "IMPORT_TAG",
    "IMPORT_ALL_TAG",
    "IMPORT_ANCHOR_TAG",
    "IMPORT_ALL_PARAMETERIZED_TAG",
    "IMPORT_TAGS",
    "AnchorQuery",
    "ImportSpec",
    "register_import_tags",
]
