"""theme: ANSI colour roles for terminal output.

Role names (``error``, ``fix``, ``rule_id``...) map to colour names in
``cli/theme.yaml``, which map to escape codes.  The file is read once per
process.  Colour is only emitted when the target stream is a TTY, so piped
output and test captures stay plain.
"""

from __future__ import annotations

import sys
from typing import Any, Optional

from guidelint._paths import theme_path
from guidelint.lib.yaml_loader import load_yaml

_PLAIN_ROLES = ("bold", "dim", "reset")


class Theme:
    """Lazily loaded role-to-escape-code mapping.

    Attributes:
        resolved: Mapping of semantic role names to ANSI escape codes.
    """

    def __init__(self) -> None:
        self._resolved: Optional[dict[str, str]] = None

    def _load(self) -> dict[str, str]:
        path = theme_path()
        if not path.is_file():
            return {}
        raw = load_yaml(str(path)) or {}
        ansi: dict[str, str] = raw.get("ansi", {}) or {}
        roles: dict[str, str] = raw.get("roles", {}) or {}
        resolved = {role: ansi.get(colour, "") for role, colour in roles.items()}
        for name in _PLAIN_ROLES:
            resolved[name] = ansi.get(name, "")
        return resolved

    @property
    def resolved(self) -> dict[str, str]:
        """Return the role mapping, loading it on first access."""
        if self._resolved is None:
            self._resolved = self._load()
        return self._resolved

    @staticmethod
    def _is_tty(stream: Any) -> bool:
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    def code(self, role: str, *, stream: Any = None) -> str:
        """Return the escape code for *role*, or '' when not writing to a TTY."""
        if not self._is_tty(stream or sys.stderr):
            return ""
        return self.resolved.get(role, "")

    def colorize(self, text: str, role: str, *, stream: Any = None) -> str:
        """Wrap *text* in the codes for *role* when writing to a TTY."""
        start = self.code(role, stream=stream)
        if not start:
            return text
        return f"{start}{text}{self.code('reset', stream=stream)}"


_theme = Theme()


def colorize(text: str, role: str, *, stream: Any = None) -> str:
    """Colourize *text* with the process-wide theme (stderr by default)."""
    return _theme.colorize(text, role, stream=stream)


def code(role: str, *, stream: Any = None) -> str:
    """Return the raw escape code for *role* from the process-wide theme."""
    return _theme.code(role, stream=stream)
