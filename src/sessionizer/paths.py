"""Path normalisation. All path equality goes through path_key()."""

from __future__ import annotations

import os


def expand_path(path: str) -> str:
    """Expand ~ and environment variables."""
    return os.path.expandvars(os.path.expanduser(path))


def normalize_path(path: str) -> str:
    if not path:
        return ""
    return os.path.normpath(os.path.abspath(expand_path(path)))


def path_key(path: str) -> str:
    """Comparison key using the OS-native case sensitivity."""
    return os.path.normcase(normalize_path(path))


def same_path(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return path_key(a) == path_key(b)


def compact_path(path: str) -> str:
    """Replace the home directory prefix with ~ for display."""
    home = os.path.expanduser("~")
    if path == home:
        return "~"
    if path.startswith(home + os.sep):
        return "~" + path[len(home):]
    return path
