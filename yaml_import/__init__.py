"""
yaml-import

A YAML document composition layer on top of PyYAML that:
- Imports whole files with ``!import``
- Imports every file matching a glob with ``!import-all``
- Imports a single anchored subtree with ``!import.anchor``
- Imports globs with named placeholder captures via ``!import-all-parameterized``
- Accepts all of the above as merge-key (``<<``) values
"""

__version__ = "0.1.0"

from yaml_import.context import (
    ImportContext,
    get_relative_import_dir,
    relative_import_dir,
    set_relative_import_dir,
)
from yaml_import.exceptions import (
    AnchorNotFoundError,
    CyclicImportError,
    ImportDecodeError,
    ImportNotFoundError,
    ImportSyntaxError,
    ImportTypeError,
    PatternSyntaxError,
    YamlImportError,
)
from yaml_import.parsers.yaml_loader import ImportLoader, load, load_file, make_loader

__all__ = [
    "ImportContext",
    "ImportLoader",
    "load",
    "load_file",
    "make_loader",
    "get_relative_import_dir",
    "set_relative_import_dir",
    "relative_import_dir",
    "YamlImportError",
    "ImportSyntaxError",
    "PatternSyntaxError",
    "ImportNotFoundError",
    "AnchorNotFoundError",
    "ImportTypeError",
    "CyclicImportError",
    "ImportDecodeError",
]
