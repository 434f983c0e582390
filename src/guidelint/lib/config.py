"""config: the built-in tables behind every guidelint default.

``config/defaults.yaml`` holds what the code would otherwise hard-code:
the default profile name, the ``check_defaults`` each check falls back to
when a rule sets no parameter, the severity and status vocabulary, CLI
messages and report formats.  It is read once, on the first lookup, and
looked up with dotted keys (``get("check_defaults.logger_names")``).

The ``get_str``/``get_int``/``get_list``/``get_dict`` variants raise
``TypeError`` when the table holds the wrong kind of value.
"""

from __future__ import annotations

from typing import Any

import yaml

from guidelint._paths import config_dir

_DEFAULTS: dict[str, Any] | None = None

_CONFIG_FILENAME = "defaults.yaml"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_defaults() -> dict[str, Any]:
    """Read ``defaults.yaml`` on first use and return the cached mapping.

    Returns:
        The full configuration dictionary.

    Raises:
        FileNotFoundError: If defaults.yaml is missing.
        yaml.YAMLError: If defaults.yaml contains invalid YAML.
    """
    global _DEFAULTS  # noqa: PLW0603
    if _DEFAULTS is None:
        with open(config_dir() / _CONFIG_FILENAME, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
        if not isinstance(data, dict):
            msg = f"defaults.yaml must be a YAML mapping, got {type(data).__name__}"
            raise TypeError(msg)
        _DEFAULTS = data
    return _DEFAULTS


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------


def get(dotted_key: str) -> Any:
    """Access a nested config value using dot notation.

    Args:
        dotted_key: A dot-separated path like ``"suppression.marker"``.

    Returns:
        The value at the specified path.

    Raises:
        KeyError: If any segment of the path is missing.
    """
    parts = dotted_key.split(".")
    node: Any = load_defaults()
    for part in parts:
        if not isinstance(node, dict) or part not in node:
            msg = f"Config key not found: {dotted_key!r} (missing segment: {part!r})"
            raise KeyError(msg)
        node = node[part]
    return node


def get_str(dotted_key: str) -> str:
    """Return a config value as a string.

    Raises:
        KeyError: If the key is missing.
        TypeError: If the value is not a string.
    """
    value = get(dotted_key)
    if not isinstance(value, str):
        msg = f"Expected str for {dotted_key!r}, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def get_int(dotted_key: str) -> int:
    """Return a config value as an integer.

    Raises:
        KeyError: If the key is missing.
        TypeError: If the value is not an integer.
    """
    value = get(dotted_key)
    if not isinstance(value, int) or isinstance(value, bool):
        msg = f"Expected int for {dotted_key!r}, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def get_list(dotted_key: str) -> list[Any]:
    """Return a config value as a list.

    Raises:
        KeyError: If the key is missing.
        TypeError: If the value is not a list.
    """
    value = get(dotted_key)
    if not isinstance(value, list):
        msg = f"Expected list for {dotted_key!r}, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def get_dict(dotted_key: str) -> dict[str, Any]:
    """Return a config value as a mapping.

    Raises:
        KeyError: If the key is missing.
        TypeError: If the value is not a mapping.
    """
    value = get(dotted_key)
    if not isinstance(value, dict):
        msg = f"Expected dict for {dotted_key!r}, got {type(value).__name__}"
        raise TypeError(msg)
    return value


# ---------------------------------------------------------------------------
# Test utilities
# ---------------------------------------------------------------------------


def reset() -> None:
    """Forget the cached table so the next lookup re-reads the file."""
    global _DEFAULTS  # noqa: PLW0603
    _DEFAULTS = None
