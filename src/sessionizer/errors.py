"""Error taxonomy shared by the picker components."""

from __future__ import annotations


class SessionizerError(Exception):
    """Base class for all sessionizer failures."""


# ── Validation (reported inline, no mutation) ────────────────


class ValidationError(SessionizerError):
    """The request is malformed for the current state."""


class InvalidKey(ValidationError):
    def __init__(self, key: str) -> None:
        super().__init__(f"'{key}' is not a valid key")
        self.key = key


class KeyInUse(ValidationError):
    def __init__(self, key: str, path: str = "") -> None:
        detail = f" (bound to {path})" if path else ""
        super().__init__(f"key '{key}' is already in use{detail}")
        self.key = key
        self.path = path


# ── Lookup failures ──────────────────────────────────────────


class NotFoundError(SessionizerError):
    """The referenced key, binding or path does not exist."""


class KeyNotBound(NotFoundError):
    def __init__(self, key: str) -> None:
        super().__init__(f"key '{key}' is not bound")
        self.key = key


class SessionNotFound(NotFoundError):
    def __init__(self, key: str) -> None:
        super().__init__(f"session with key '{key}' not found")
        self.key = key


# ── Environment failures ─────────────────────────────────────


class StateIOError(SessionizerError):
    """Reading or writing persisted state failed."""


class CollaboratorError(SessionizerError):
    """An external command (tmux, git) failed."""
