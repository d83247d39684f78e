"""
Path-pattern resolver for glob imports.

Expands glob expressions into the files they match. Patterns may embed
named placeholders that capture what they matched:

- ``{name:*}``  - a single path segment
- ``{name:**}`` - zero or more whole path segments

Example: ``items/{category:**}/{name:*}.yml`` matching
``items/tools/cli/grep.yml`` captures ``category="tools/cli"`` and
``name="grep"``.
"""

import glob
import re
from pathlib import Path
from typing import Callable, Dict, List, MutableMapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from yaml_import.exceptions import PatternSyntaxError
from yaml_import.utils.logger import setup_logger


logger = setup_logger(__name__)

PLACEHOLDER_RE = re.compile(r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*):(?P<kind>\*\*|\*)$")

GlobFunc = Callable[..., List[str]]


class PatternMatch(BaseModel):
    """A single file matched by a path pattern."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Concrete path of the matched file")
    captures: Dict[str, str] = Field(default_factory=dict, description="Placeholder name to matched text")


class PathPattern:
    """
    Parsed path pattern.

    Parsing yields two views of the same pattern: a plain glob expression for
    the filesystem walk and an anchored regex that recovers placeholder
    captures from each walked path.
    """

    def __init__(self, text: str):
        self.text = text
        self.placeholders: List[str] = []
        self._tokens = self._tokenize(text)
        self.glob_expression = self._build_glob()
        self.regex = re.compile(self._build_regex())

    @property
    def is_parameterized(self) -> bool:
        return bool(self.placeholders)

    @property
    def is_absolute(self) -> bool:
        return Path(self.text).is_absolute()

    def match(self, path: str) -> Optional[Dict[str, str]]:
        """
        Match a posix-style path against the pattern.

        Args:
            path: Path in the same form (relative or absolute) as the pattern

        Returns:
            Captured placeholder values, or None when the path doesn't match
        """
        found = self.regex.fullmatch(path)
        if found is None:
            return None
        return {name: found.group(name) or "" for name in self.placeholders}

    def _tokenize(self, text: str) -> List[Tuple[str, Optional[str]]]:
        tokens: List[Tuple[str, Optional[str]]] = []
        i = 0
        while i < len(text):
            ch = text[i]
            if ch == "{":
                end = text.find("}", i + 1)
                if end == -1:
                    raise PatternSyntaxError(text, "unmatched '{'")
                inner = text[i + 1:end]
                found = PLACEHOLDER_RE.match(inner)
                if found is None:
                    raise PatternSyntaxError(text, f"invalid placeholder '{{{inner}}}'")
                name = found.group("name")
                if name in self.placeholders:
                    raise PatternSyntaxError(text, f"duplicate placeholder '{name}'")
                self.placeholders.append(name)
                kind = "globstar" if found.group("kind") == "**" else "star"
                tokens.append((kind, name))
                i = end + 1
            elif ch == "}":
                raise PatternSyntaxError(text, "unmatched '}'")
            elif text.startswith("**", i):
                tokens.append(("globstar", None))
                i += 2
            elif ch == "*":
                tokens.append(("star", None))
                i += 1
            elif ch == "?":
                tokens.append(("any", None))
                i += 1
            elif ch == "[" and "]" in text[i + 2:]:
                end = text.index("]", i + 2)
                tokens.append(("class", text[i:end + 1]))
                i = end + 1
            else:
                tokens.append(("literal", ch))
                i += 1

        # ``**`` only recurses as a whole segment; elsewhere glob treats it as ``*``
        for index, (kind, value) in enumerate(tokens):
            if kind != "globstar":
                continue
            before = tokens[index - 1] if index > 0 else ("literal", "/")
            after = tokens[index + 1] if index + 1 < len(tokens) else ("literal", "/")
            whole_segment = before == ("literal", "/") and after == ("literal", "/")
            if not whole_segment:
                if value is not None:
                    raise PatternSyntaxError(text, f"placeholder '{value}:**' must span whole path segments")
                tokens[index] = ("star", None)
        return tokens

    def _build_glob(self) -> str:
        parts = []
        for kind, value in self._tokens:
            if kind == "globstar":
                parts.append("**")
            elif kind == "star":
                parts.append("*")
            elif kind == "any":
                parts.append("?")
            else:
                parts.append(value)
        return "".join(parts)

    def _build_regex(self) -> str:
        parts = []
        skip_slash = False
        for index, (kind, value) in enumerate(self._tokens):
            if skip_slash:
                skip_slash = False
                if (kind, value) == ("literal", "/"):
                    continue
            if kind == "literal":
                parts.append(re.escape(value))
            elif kind == "any":
                parts.append("[^/]")
            elif kind == "class":
                body = value[1:-1]
                body = body.replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                elif body.startswith("^"):
                    body = "\\" + body
                parts.append("[" + body + "]")
            elif kind == "star":
                parts.append(f"(?P<{value}>[^/]*)" if value else "[^/]*")
            else:
                trailing_slash = index + 1 < len(self._tokens)
                if trailing_slash:
                    # zero or more directories, each followed by a slash
                    parts.append(f"(?:(?P<{value}>.+?)/)?" if value else "(?:.+?/)?")
                    skip_slash = True
                else:
                    parts.append(f"(?P<{value}>.*)" if value else ".*")
        return "".join(parts)


class PathPatternResolver:
    """
    Resolves path patterns to ordered lists of matching files.

    Results are memoized per resolved pattern text in ``cache``; the cache is
    never invalidated automatically, so files created after the first
    resolution of a pattern are not seen until ``clear_cache()`` is called.
    """

    def __init__(
        self,
        cache: Optional[MutableMapping[str, List[PatternMatch]]] = None,
        glob_func: GlobFunc = glob.glob,
    ):
        """
        Initialize the resolver.

        Args:
            cache: Mapping used to memoize results (defaults to a new dict)
            glob_func: Filesystem walk with the signature of ``glob.glob``
        """
        self.cache = cache if cache is not None else {}
        self.glob_func = glob_func

    def resolve(self, pattern: str, root: Optional[Union[str, Path]] = None) -> List[PatternMatch]:
        """
        Resolve a pattern to the files it matches.

        Args:
            pattern: Glob pattern, optionally containing named placeholders
            root: Base directory for relative patterns (defaults to the cwd)

        Returns:
            Matches in filesystem enumeration order

        Raises:
            PatternSyntaxError: If the placeholder syntax is malformed
        """
        parsed = PathPattern(pattern)
        base = None if parsed.is_absolute else Path(root) if root is not None else Path.cwd()
        key = parsed.text if base is None else (base / parsed.text).as_posix()

        if key in self.cache:
            logger.debug(f"Pattern cache hit: {key}")
            return list(self.cache[key])

        matches = self._walk(parsed, base)
        logger.debug(f"Pattern {key} matched {len(matches)} files")
        self.cache[key] = matches
        return list(matches)

    def clear_cache(self) -> None:
        """Forget every memoized pattern."""
        self.cache.clear()

    def _walk(self, parsed: PathPattern, base: Optional[Path]) -> List[PatternMatch]:
        if base is None:
            found = self.glob_func(parsed.glob_expression, recursive=True)
        else:
            found = self.glob_func(parsed.glob_expression, root_dir=base, recursive=True)

        matches = []
        for entry in found:
            path = Path(entry) if base is None else base / entry
            if not path.is_file():
                continue
            captures = parsed.match(Path(entry).as_posix())
            if captures is None:
                continue
            matches.append(PatternMatch(path=path, captures=captures))
        return matches
