"""
Exceptions raised while resolving import tags.

All errors derive from PyYAML's ConstructorError so they carry source marks
and are caught by ``except yaml.YAMLError`` like any other loader failure.
"""

from typing import Optional, Sequence

from yaml.constructor import ConstructorError
from yaml.error import Mark


class YamlImportError(ConstructorError):
    """Base class for import resolution failures."""


class ImportSyntaxError(YamlImportError):
    """Raised when an import reference is malformed."""


class PatternSyntaxError(ImportSyntaxError):
    """Raised when a path pattern has malformed placeholder syntax."""

    def __init__(self, pattern: str, reason: str, context_mark: Optional[Mark] = None):
        self.pattern = pattern
        self.reason = reason
        super().__init__(
            "while parsing a path pattern",
            context_mark,
            f"{reason} in pattern {pattern!r}",
            None,
        )


class ImportNotFoundError(YamlImportError):
    """Raised when an imported file does not exist."""

    def __init__(self, path: str, context_mark: Optional[Mark] = None):
        self.path = path
        super().__init__(
            "while resolving an import",
            context_mark,
            f"file not found: {path}",
            None,
        )


class AnchorNotFoundError(YamlImportError):
    """Raised when an anchor is absent from the scanned document."""

    def __init__(self, anchor: str, source: Optional[str] = None, context_mark: Optional[Mark] = None):
        self.anchor = anchor
        self.source = source
        super().__init__(
            "while extracting an anchored node",
            context_mark,
            f"anchor {anchor!r} not found in {source or '<stream>'}",
            None,
        )


class ImportTypeError(YamlImportError):
    """Raised when an import tag is applied to the wrong kind of node or value."""


class CyclicImportError(YamlImportError):
    """Raised when a file imports itself, directly or through other files."""

    def __init__(self, chain: Sequence[str], context_mark: Optional[Mark] = None):
        self.chain = list(chain)
        super().__init__(
            "while resolving an import",
            context_mark,
            "cyclic import detected: " + " -> ".join(self.chain),
            None,
        )


class ImportDecodeError(YamlImportError):
    """Raised when a file can't be decoded with the configured encoding."""

    def __init__(self, path: str, encoding: str, reason: str, context_mark: Optional[Mark] = None):
        self.path = path
        self.encoding = encoding
        super().__init__(
            "while reading an imported file",
            context_mark,
            f"cannot decode {path} as {encoding}: {reason}",
            None,
        )
