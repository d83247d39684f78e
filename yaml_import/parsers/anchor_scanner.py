"""
Anchor extraction at the parse-event layer.

Anchor names are lost once the composer turns aliases into shared node
references, so the subtree is isolated from the raw event stream instead of
from a constructed document.

A subtree may refer by alias to anchors defined earlier in the document.
The scanner keeps the event span of every anchored node it passes, so those
definitions can be replayed ahead of the subtree.
"""

from typing import IO, Dict, List, Optional, Sequence, Set, Tuple, Union

import yaml
from yaml.error import Mark
from yaml.events import (
    AliasEvent,
    CollectionEndEvent,
    CollectionStartEvent,
    DocumentStartEvent,
    Event,
    NodeEvent,
    ScalarEvent,
)

from yaml_import.exceptions import AnchorNotFoundError


def extract_anchor_events(
    stream: Union[str, IO],
    anchor: str,
    source: Optional[str] = None,
    context_mark: Optional[Mark] = None,
) -> Tuple[List[List[Event]], List[Event]]:
    """
    Collect the events that make up the node carrying ``anchor``.

    The first node defining the anchor wins; parsing stops as soon as its
    subtree is complete.

    Args:
        stream: YAML text or open file
        anchor: Anchor name, without the leading ``&``
        source: Name of the stream, used in error messages
        context_mark: Mark of the node that requested the anchor

    Returns:
        ``(definitions, events)``. ``events`` is the scalar event, or the
        collection events from start to matching end. ``definitions`` holds,
        in document order, the earlier subtrees defining anchors that
        ``events`` refers to, directly or through other definitions.

    Raises:
        AnchorNotFoundError: If no node in the stream defines the anchor
    """
    seen: List[Event] = []
    spans: Dict[str, Tuple[int, int]] = {}
    open_starts: List[int] = []
    captured: List[Event] = []
    depth = 0

    for event in yaml.parse(stream, Loader=yaml.SafeLoader):
        if depth:
            captured.append(event)
            if isinstance(event, CollectionStartEvent):
                depth += 1
            elif isinstance(event, CollectionEndEvent):
                depth -= 1
                if depth == 0:
                    return referenced_definitions(seen, spans, captured), captured
            continue

        # AliasEvent also has an ``anchor`` attribute, naming what it refers to
        if isinstance(event, ScalarEvent) and event.anchor == anchor:
            return referenced_definitions(seen, spans, [event]), [event]
        if isinstance(event, CollectionStartEvent) and event.anchor == anchor:
            captured.append(event)
            depth = 1
            continue

        # Anchors are scoped to a document
        if isinstance(event, DocumentStartEvent):
            spans = {}

        index = len(seen)
        seen.append(event)
        if isinstance(event, ScalarEvent) and event.anchor is not None:
            spans[event.anchor] = (index, index + 1)
        elif isinstance(event, CollectionStartEvent):
            open_starts.append(index)
        elif isinstance(event, CollectionEndEvent):
            start = open_starts.pop()
            if seen[start].anchor is not None:
                spans[seen[start].anchor] = (start, index + 1)

    raise AnchorNotFoundError(anchor, source or getattr(stream, "name", None), context_mark)


def undefined_aliases(events: Sequence[Event]) -> Set[str]:
    """Names of aliases in ``events`` whose anchor is not defined there too."""
    aliases = {e.anchor for e in events if isinstance(e, AliasEvent)}
    defined = {
        e.anchor
        for e in events
        if isinstance(e, NodeEvent) and not isinstance(e, AliasEvent) and e.anchor is not None
    }
    return aliases - defined


def referenced_definitions(
    seen: Sequence[Event],
    spans: Dict[str, Tuple[int, int]],
    events: Sequence[Event],
) -> List[List[Event]]:
    """
    Select the earlier definitions ``events`` depends on.

    Args:
        seen: Every event before the anchored node
        spans: ``seen`` index range of each completed anchored node
        events: The anchored node's events

    Returns:
        Outermost definition subtrees in document order. Definitions nested
        in another selected one are covered by it and are left out.
    """
    chosen: Dict[str, Tuple[int, int]] = {}
    pending = list(undefined_aliases(events))
    while pending:
        name = pending.pop()
        # Unknown names are left for the composer to report
        if name in chosen or name not in spans:
            continue
        start, end = spans[name]
        chosen[name] = (start, end)
        pending.extend(undefined_aliases(seen[start:end]))

    outermost: List[Tuple[int, int]] = []
    for start, end in sorted(chosen.values()):
        if outermost and end <= outermost[-1][1]:
            continue
        outermost.append((start, end))
    return [list(seen[start:end]) for start, end in outermost]
