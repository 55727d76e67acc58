"""Session registry protocol and session naming."""

from __future__ import annotations

import os
from typing import Protocol, runtime_checkable

from sessionizer.paths import normalize_path


def session_name_for(path: str) -> str:
    """Session name derived from a project path: base name with '.' → '_'."""
    return os.path.basename(normalize_path(path)).replace(".", "_")


@runtime_checkable
class SessionRegistry(Protocol):
    """Operations the picker needs from the session multiplexer.

    Implementations raise CollaboratorError on failure.
    """

    def session_exists(self, name: str) -> bool: ...

    def kill_session(self, name: str) -> None: ...

    def switch_to(self, name: str) -> None:
        """Make name the attached session (switch inside tmux, attach outside)."""
        ...

    def create_session(self, name: str, working_dir: str) -> None:
        """Create a detached session rooted at working_dir."""
        ...

    def current_session_name(self) -> str | None:
        """Name of the session this process runs in, or None outside tmux."""
        ...

    def list_sessions(self) -> list[str]: ...

    def capture_pane(self, target: str) -> str: ...

    def source_file(self, path: str) -> None:
        """Load a config file into the running server."""
        ...
