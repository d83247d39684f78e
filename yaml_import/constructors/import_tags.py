"""
Constructors for the import tag family.

Tags:
- ``!import path`` - the full contents of one file
- ``!import-all pattern`` - list of the contents of every matched file
- ``!import.anchor path#anchor`` - only the subtree under one anchor
- ``!import-all-parameterized pattern`` - like ``!import-all``, with the
  pattern's placeholder captures merged into each file's mapping

Each constructor expects a loader exposing ``resolve_import_path``,
``resolve_pattern``, ``load_import`` and ``load_anchor`` (see
``yaml_import.parsers.yaml_loader.ImportLoader``).
"""

from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, ConfigDict, Field

from yaml_import.exceptions import ImportSyntaxError, ImportTypeError


IMPORT_TAG = "!import"
IMPORT_ALL_TAG = "!import-all"
IMPORT_ANCHOR_TAG = "!import.anchor"
IMPORT_ALL_PARAMETERIZED_TAG = "!import-all-parameterized"


class ImportSpec(BaseModel):
    """A single file requested by ``!import``."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute path of the imported file")


class AnchorQuery(BaseModel):
    """A named subtree requested by ``!import.anchor``."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="File reference, relative to the import root")
    anchor: str = Field(..., min_length=1, description="Anchor name without the leading '&'")

    @classmethod
    def from_reference(cls, reference: str) -> "AnchorQuery":
        """
        Split a ``path#anchor`` reference at its last ``#``.

        Args:
            reference: Raw scalar value of the tag

        Returns:
            AnchorQuery for the reference

        Raises:
            ValueError: If the path or the anchor part is missing
        """
        path, sep, anchor = reference.rpartition("#")
        path, anchor = path.strip(), anchor.strip()
        if not sep or not path or not anchor:
            raise ValueError(f"expected 'path#anchor', but found {reference!r}")
        return cls(path=path, anchor=anchor)


def scalar_reference(loader, node: yaml.Node) -> str:
    """
    Return the reference text of an import-tagged node.

    Raises:
        ImportTypeError: If the tag is applied to a mapping or sequence
        ImportSyntaxError: If the reference is empty
    """
    if not isinstance(node, yaml.ScalarNode):
        raise ImportTypeError(
            f"while constructing {node.tag}",
            node.start_mark,
            f"expected a scalar reference, but found a {node.id} node",
            node.start_mark,
        )
    reference = loader.construct_scalar(node).strip()
    if not reference:
        raise ImportSyntaxError(
            f"while constructing {node.tag}",
            node.start_mark,
            "empty import reference",
            node.start_mark,
        )
    return reference


def construct_import(loader, node: yaml.Node) -> Any:
    spec = ImportSpec(path=loader.resolve_import_path(scalar_reference(loader, node)))
    return loader.load_import(spec.path, node)


def construct_import_all(loader, node: yaml.Node) -> List[Any]:
    matches = loader.resolve_pattern(scalar_reference(loader, node), node)
    return [loader.load_import(match.path, node) for match in matches]


def construct_import_anchor(loader, node: yaml.Node) -> Any:
    reference = scalar_reference(loader, node)
    try:
        query = AnchorQuery.from_reference(reference)
    except ValueError as e:
        raise ImportSyntaxError(
            f"while constructing {node.tag}",
            node.start_mark,
            f"expected 'path#anchor', but found {reference!r}",
            node.start_mark,
        ) from e
    return loader.load_anchor(query, node)


def construct_import_all_parameterized(loader, node: yaml.Node) -> List[Dict[str, Any]]:
    results = []
    for match in loader.resolve_pattern(scalar_reference(loader, node), node):
        value = loader.load_import(match.path, node)
        if value is None:
            value = {}
        if not isinstance(value, dict):
            raise ImportTypeError(
                f"while constructing {node.tag}",
                node.start_mark,
                f"expected {match.path} to contain a mapping, but found {type(value).__name__}",
                None,
            )
        merged = dict(value)
        # Captured placeholder values override keys from the file itself
        merged.update(match.captures)
        results.append(merged)
    return results


IMPORT_CONSTRUCTORS = {
    IMPORT_TAG: construct_import,
    IMPORT_ALL_TAG: construct_import_all,
    IMPORT_ANCHOR_TAG: construct_import_anchor,
    IMPORT_ALL_PARAMETERIZED_TAG: construct_import_all_parameterized,
}

IMPORT_TAGS = frozenset(IMPORT_CONSTRUCTORS)


def register_import_tags(loader_cls: type) -> type:
    """
    Install every import constructor on a loader class.

    Args:
        loader_cls: PyYAML loader class (modified in place)

    Returns:
        The same class, for use as a decorator
    """
    for tag, constructor in IMPORT_CONSTRUCTORS.items():
        loader_cls.add_constructor(tag, constructor)
    return loader_cls
