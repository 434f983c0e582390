"""yaml_loader: unified YAML loading and dumping for guidelint files.

Wraps PyYAML's ``safe_load`` and ``safe_dump`` behind single entry points
shared by the engine, CLI, and all library modules, so encoding and
safe-parsing choices are made in one place.  PyYAML is a required
dependency.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

import yaml


def load_yaml(path: Union[str, Path]) -> Optional[dict[str, Any]]:
    """Load a YAML file and return its contents as a dict.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML contents, or None if the file is empty.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file contains invalid YAML.
    """
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def load_yaml_string(text: str) -> Optional[dict[str, Any]]:
    """Parse a YAML string and return its contents as a dict.

    Raises:
        yaml.YAMLError: If the string contains invalid YAML.
    """
    return yaml.safe_load(text)


def dump_yaml(data: dict[str, Any], path: Union[str, Path]) -> None:
    """Write a mapping to a YAML file in block style, preserving key order.

    Args:
        data: Mapping to serialize.
        path: Destination file path.
    """
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=False)
