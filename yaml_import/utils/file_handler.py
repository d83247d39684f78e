"""
File handler for I/O operations.

Handles writing files and serializing composed documents.
"""

import json
from pathlib import Path
from typing import Any

import yaml

from yaml_import.utils.logger import setup_logger


logger = setup_logger(__name__)


class FileHandler:
    """Handler for file I/O operations."""

    @staticmethod
    def write_file(file_path: Path, content: str) -> None:
        """
        Write content to file.

        Args:
            file_path: Path to the file
            content: Content to write
        """
        logger.debug(f"Writing to file: {file_path}")

        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)

        logger.debug(f"Wrote {len(content)} characters to {file_path}")

    @staticmethod
    def dump_yaml(data: Any) -> str:
        """
        Serialize data to YAML text.

        Args:
            data: Data to serialize

        Returns:
            YAML document text
        """
        return yaml.safe_dump(
            data,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )

    @staticmethod
    def dump_json(data: Any, indent: int = 2) -> str:
        """
        Serialize data to JSON text.

        Dates and other non-JSON scalars produced by YAML are written as strings.

        Args:
            data: Data to serialize
            indent: JSON indentation level

        Returns:
            JSON document text
        """
        return json.dumps(data, indent=indent, ensure_ascii=False, default=str) + "\n"
