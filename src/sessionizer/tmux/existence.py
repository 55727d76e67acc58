"""Per-run memo of "does this project have a running session?".

Populated lazily, one registry query per path. Entries live until the
controller invalidates them after an action that changes session state.
"""

from __future__ import annotations

import logging

from sessionizer.errors import CollaboratorError
from sessionizer.paths import path_key
from sessionizer.tmux.base import SessionRegistry, session_name_for

logger = logging.getLogger(__name__)


class ExistenceCache:
    def __init__(self, registry: SessionRegistry | None) -> None:
        self._registry = registry
        self._known: dict[str, bool] = {}

    def exists(self, path: str) -> bool:
        key = path_key(path)
        if key in self._known:
            return self._known[key]

        exists = False
        if self._registry is not None:
            name = session_name_for(path)
            try:
                exists = bool(self._registry.session_exists(name))
            except CollaboratorError as e:
                logger.debug("Session probe for %s failed: %s", name, e)
        self._known[key] = exists
        return exists

    def invalidate(self, path: str) -> None:
        self._known.pop(path_key(path), None)

    def clear(self) -> None:
        self._known.clear()

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path_key(path) in self._known

    def __len__(self) -> int:
        return len(self._known)
