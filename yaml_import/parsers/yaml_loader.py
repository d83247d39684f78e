"""
Merge-aware YAML loader with import tags.

``ImportLoader`` is a ``yaml.SafeLoader`` that understands the import tag
family (see ``yaml_import.constructors``) and accepts those tags as
merge-key values:

    base:
      <<: !import defaults.yml
    combined:
      <<: [!import a.yml, !import b.yml]   # b.yml wins on collisions

Imports resolve depth-first in document order, each through a child loader
sharing the parent's context and import root.
"""

from collections import deque
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, Iterable, Iterator, List, Optional, Sequence, Union

import yaml
from yaml.error import Mark
from yaml.events import (
    DocumentEndEvent,
    DocumentStartEvent,
    Event,
    StreamEndEvent,
    StreamStartEvent,
)
from yaml.representer import SafeRepresenter

from yaml_import.constructors.import_tags import IMPORT_TAGS, AnchorQuery, register_import_tags
from yaml_import.context import ImportContext, get_default_context
from yaml_import.exceptions import (
    CyclicImportError,
    ImportDecodeError,
    ImportNotFoundError,
    PatternSyntaxError,
)
from yaml_import.parsers.anchor_scanner import extract_anchor_events
from yaml_import.resolvers.path_pattern import PatternMatch
from yaml_import.utils.logger import setup_logger


logger = setup_logger(__name__)

MERGE_TAG = "tag:yaml.org,2002:merge"


def represent_value(value: Any) -> yaml.Node:
    """Turn a constructed value back into a node PyYAML can merge."""
    return SafeRepresenter(sort_keys=False).represent_data(value)


@contextmanager
def decoding(path: Path, encoding: str, context_mark: Optional[Mark] = None) -> Iterator[None]:
    """Report undecodable bytes read from ``path`` as a loader error."""
    try:
        yield
    except UnicodeDecodeError as e:
        raise ImportDecodeError(str(path), encoding, e.reason, context_mark) from e


class ImportLoader(yaml.SafeLoader):
    """SafeLoader resolving import tags, including as merge-key values."""

    def __init__(
        self,
        stream: Union[str, bytes, IO],
        context: Optional[ImportContext] = None,
        root: Optional[Union[str, Path]] = None,
        chain: Iterable[str] = (),
    ):
        """
        Initialize the loader.

        Args:
            stream: YAML text or open file
            context: Import context (defaults to the process-wide one)
            root: Import root for this load; captured from the context when omitted
            chain: Files (and file#anchor references) currently being imported
        """
        super().__init__(stream)
        self.context = context or get_default_context()
        self.import_root = Path(root) if root is not None else self.context.root
        self.import_chain = tuple(chain)

    def resolve_import_path(self, reference: str) -> Path:
        return self.context.resolve_path(reference, self.import_root)

    def resolve_pattern(self, pattern: str, node: yaml.Node) -> list[PatternMatch]:
        try:
            return self.context.resolver.resolve(pattern, self.import_root)
        except PatternSyntaxError as e:
            raise PatternSyntaxError(e.pattern, e.reason, node.start_mark) from None

    def load_import(self, path: Path, node: yaml.Node) -> Any:
        """
        Load a whole file with a child loader.

        Args:
            path: File to load
            node: Node that requested the import, for error marks

        Returns:
            The file's top-level value
        """
        path = Path(path)
        if not path.is_file():
            raise ImportNotFoundError(str(path), node.start_mark)

        key = self._enter(str(path.resolve()), node)
        logger.debug(f"Importing {path}")
        encoding = self.context.encoding
        with open(path, "r", encoding=encoding) as stream, decoding(path, encoding, node.start_mark):
            return self._load_child(
                ImportLoader(stream, context=self.context, root=self.import_root, chain=self.import_chain + (key,))
            )

    def load_anchor(self, query: AnchorQuery, node: yaml.Node) -> Any:
        """
        Construct only the subtree under ``query.anchor`` in ``query.path``.

        Args:
            query: File reference and anchor name
            node: Node that requested the import, for error marks

        Returns:
            The constructed subtree
        """
        path = self.resolve_import_path(query.path)
        if not path.is_file():
            raise ImportNotFoundError(str(path), node.start_mark)

        key = self._enter(f"{path.resolve()}#{query.anchor}", node)
        logger.debug(f"Importing anchor {query.anchor!r} from {path}")
        encoding = self.context.encoding
        with open(path, "r", encoding=encoding) as stream, decoding(path, encoding, node.start_mark):
            definitions, events = extract_anchor_events(
                stream, query.anchor, source=str(path), context_mark=node.start_mark
            )

        return self._load_child(
            EventReplayLoader(
                events,
                definitions=definitions,
                name=str(path),
                context=self.context,
                root=self.import_root,
                chain=self.import_chain + (key,),
            )
        )

    def flatten_mapping(self, node: yaml.MappingNode) -> None:
        """
        Resolve import-tagged merge values, then run the stock merge.

        Merge lists that involve imports are reversed before the stock merge
        (which reverses them again), so later sources override earlier ones.
        The merge value nodes are replaced rather than modified, so an aliased
        merge sequence is never reversed twice.
        """
        for index, (key_node, value_node) in enumerate(node.value):
            if key_node.tag != MERGE_TAG:
                continue
            if self._is_import(value_node):
                resolved = self._represent_import(value_node)
                if isinstance(resolved, yaml.SequenceNode):
                    resolved.value.reverse()
                node.value[index] = (key_node, resolved)
            elif isinstance(value_node, yaml.SequenceNode) and any(
                self._is_import(item) for item in value_node.value
            ):
                items = []
                for item in value_node.value:
                    if not self._is_import(item):
                        items.append(item)
                        continue
                    resolved = self._represent_import(item)
                    if isinstance(resolved, yaml.SequenceNode):
                        items.extend(resolved.value)
                    else:
                        items.append(resolved)
                # SafeConstructor reverses merge lists (earlier wins); undo it so later wins
                items.reverse()
                node.value[index] = (
                    key_node,
                    yaml.SequenceNode(
                        value_node.tag,
                        items,
                        value_node.start_mark,
                        value_node.end_mark,
                        flow_style=value_node.flow_style,
                    ),
                )
        super().flatten_mapping(node)

    @staticmethod
    def _is_import(node: yaml.Node) -> bool:
        return node.tag in IMPORT_TAGS

    def _represent_import(self, node: yaml.Node) -> yaml.Node:
        return represent_value(self.construct_object(node, deep=True))

    def _enter(self, key: str, node: yaml.Node) -> str:
        if self.context.detect_cycles and key in self.import_chain:
            chain = list(self.import_chain[self.import_chain.index(key):]) + [key]
            raise CyclicImportError(chain, node.start_mark)
        return key

    @staticmethod
    def _load_child(loader: "ImportLoader") -> Any:
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


class EventReplayLoader(ImportLoader):
    """
    ImportLoader that composes a document from pre-parsed events.

    ``definitions`` are subtrees composed ahead of ``events`` only so their
    anchors are known. The document is the node built from ``events``.
    """

    def __init__(
        self,
        events: Sequence[Event],
        definitions: Sequence[Sequence[Event]] = (),
        name: str = "<events>",
        **kwargs,
    ):
        super().__init__("", **kwargs)
        self.name = name
        self.definition_count = len(definitions)
        prelude: List[Event] = [event for definition in definitions for event in definition]
        self.replay = deque(
            [StreamStartEvent(), DocumentStartEvent(), *prelude, *events, DocumentEndEvent(), StreamEndEvent()]
        )

    def compose_document(self) -> yaml.Node:
        # Drop the document start event
        self.get_event()
        for _ in range(self.definition_count):
            self.compose_node(None, None)
        node = self.compose_node(None, None)
        # Drop the document end event
        self.get_event()
        self.anchors = {}
        return node

    def check_event(self, *choices) -> bool:
        if not self.replay:
            return False
        if not choices:
            return True
        return isinstance(self.replay[0], choices)

    def peek_event(self) -> Optional[Event]:
        return self.replay[0] if self.replay else None

    def get_event(self) -> Optional[Event]:
        return self.replay.popleft() if self.replay else None


register_import_tags(ImportLoader)


def load(stream: Union[str, bytes, IO], context: Optional[ImportContext] = None) -> Any:
    """
    Compose a single YAML document, resolving import tags.

    Args:
        stream: YAML text or open file
        context: Import context (defaults to the process-wide one)

    Returns:
        The composed value
    """
    loader = ImportLoader(stream, context=context)
    try:
        return loader.get_single_data()
    finally:
        loader.dispose()


def load_file(path: Union[str, Path], context: Optional[ImportContext] = None) -> Any:
    """
    Compose a YAML file, resolving import tags.

    Args:
        path: File to load (relative to the cwd, not the import root)
        context: Import context (defaults to the process-wide one)

    Returns:
        The composed value

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If parsing or import resolution fails
    """
    path = Path(path)
    if not path.is_file():
        logger.error(f"File not found: {path}")
        raise FileNotFoundError(f"Input file not found: {path}")

    context = context or get_default_context()
    logger.info(f"Loading {path} (import root: {context.root})")
    with open(path, "r", encoding=context.encoding) as stream, decoding(path, context.encoding):
        loader = ImportLoader(stream, context=context, chain=(str(path.resolve()),))
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


def make_loader(context: Optional[ImportContext] = None) -> type:
    """
    Build a loader class bound to ``context``.

    The result plugs into PyYAML's own entry points:
    ``yaml.load(stream, Loader=make_loader(context))``.
    """

    class BoundImportLoader(ImportLoader):
        def __init__(self, stream):
            super().__init__(stream, context=context)

    return BoundImportLoader
