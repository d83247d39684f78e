"""Utility module for common functions."""

from .file_handler import FileHandler
from .logger import setup_logger

__all__ = ["FileHandler", "setup_logger"]
