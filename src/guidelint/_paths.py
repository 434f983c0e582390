"""Where guidelint finds its rule table.

The ``rules/``, ``profiles/`` and ``plugins/`` directories are looked up
under a home directory: ``$GUIDELINT_HOME`` when it names an existing
directory, the installed package otherwise.  Pointing the variable at a
copy of those three directories lets a project ship its own guidelines
without forking the package.  ``config/`` and ``cli/theme.yaml`` always
come from the package.
"""

import os
from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent


def _cfg(key: str) -> str:
    """Look up a string in ``defaults.yaml``.

    Args:
        key: Dotted config key.

    Returns:
        The string config value.
    """
    from guidelint.lib.config import get_str

    return get_str(key)


def get_home() -> Path:
    """Return ``$GUIDELINT_HOME`` if it is a directory, else the package directory."""
    env = os.environ.get(_cfg("env_vars.home"))
    if env:
        p = Path(env)
        if p.is_dir():
            return p
    return _PACKAGE_DIR


def rules_dir(home: "Path | None" = None) -> Path:
    """Return the directory holding one ``<rule-id>.yaml`` per guideline."""
    return (home or get_home()) / _cfg("directories.rules")


def profiles_dir(home: "Path | None" = None) -> Path:
    """Return the directory holding the ``write`` and ``review`` profiles."""
    return (home or get_home()) / _cfg("directories.profiles")


def plugins_dir(home: "Path | None" = None) -> Path:
    """Return the directory custom checks load their plugin files from."""
    return (home or get_home()) / _cfg("directories.plugins")


def cli_dir() -> Path:
    """Return the cli/ directory path."""
    return _PACKAGE_DIR / _cfg("directories.cli")


def config_dir() -> Path:
    """Return the config/ directory path."""
    return _PACKAGE_DIR / "config"


def theme_path() -> Path:
    """Return the path to cli/theme.yaml."""
    return cli_dir() / _cfg("filenames.theme")
