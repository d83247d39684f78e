"""YAML loading with import tags and anchor extraction."""

from .anchor_scanner import extract_anchor_events
from .yaml_loader import EventReplayLoader, ImportLoader, load, load_file, make_loader

__all__ = [
    "extract_anchor_events",
    "EventReplayLoader",
    "ImportLoader",
    "load",
    "load_file",
    "make_loader",
]
