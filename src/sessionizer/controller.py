"""Interaction controller — the picker's state and actions.

Responsibilities:
1. Hold the ranked project list, the query, the cursor and a status line
2. Own the existence cache for this run
3. Select: record access, create the session if missing, switch to it
4. Key edits: mutate the key table, regenerate tmux bindings, reload
5. Kill: move off the current session first, then kill

Failures never escape an action: they end up in `status`, and in-memory
state stays as it was before the action.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from sessionizer.bindings import write_bindings
from sessionizer.config import SessionizerConfig
from sessionizer.discovery import discover_projects, project_from_path
from sessionizer.enrich.pipeline import EnrichmentOptions, EnrichmentPipeline
from sessionizer.errors import (
    CollaboratorError,
    NotFoundError,
    SessionizerError,
    StateIOError,
    ValidationError,
)
from sessionizer.models import Project
from sessionizer.paths import normalize_path, same_path
from sessionizer.picker.filtering import filter_projects, fold_worktrees
from sessionizer.picker.ranking import rank_projects
from sessionizer.state.access import AccessStore
from sessionizer.state.keymap import KeyBindingTable
from sessionizer.tmux.base import SessionRegistry, session_name_for
from sessionizer.tmux.existence import ExistenceCache

logger = logging.getLogger(__name__)


class InteractionController:
    """Single-threaded picker state driven by one input at a time."""

    def __init__(
        self,
        config: SessionizerConfig,
        keys: KeyBindingTable,
        history: AccessStore,
        registry: SessionRegistry | None,
        pipeline: EnrichmentPipeline | None = None,
        discover: Callable[[], list[Project]] | None = None,
    ) -> None:
        self.config = config
        self.keys = keys
        self.history = history
        self.registry = registry
        self.pipeline = pipeline
        self._discover = discover or (lambda: discover_projects(config.discovery))
        self.cache = ExistenceCache(registry)
        self.projects: list[Project] = []
        self.query = ""
        self.cursor = 0
        self.status = ""

    # ── List state ────────────────────────────────────────────

    async def refresh(self) -> None:
        """Reload keys, discover, rank, enrich, then re-apply the query."""
        try:
            self.keys.reload()
        except StateIOError as e:
            self._fail("reload keys", e)
        projects = rank_projects(self._discover(), self.history)
        if self.pipeline is not None:
            await self.pipeline.enrich(
                projects,
                EnrichmentOptions(
                    fetch_note_counts=self.config.enrich.notes,
                    fetch_git_status=self.config.enrich.git,
                    fetch_plan_stats=self.config.enrich.plans,
                ),
            )
        self.projects = projects
        self.cache.clear()
        self._clamp()

    @property
    def visible(self) -> list[Project]:
        filtered = filter_projects(self.projects, self.query)
        if not self.query and self.config.worktrees_folded:
            filtered = fold_worktrees(filtered, lambda p: self.cache.exists(p.path))
        return filtered

    def set_query(self, text: str) -> None:
        self.query = text.strip()
        self.cursor = 0

    def move(self, delta: int) -> None:
        self.cursor += delta
        self._clamp()

    @property
    def selected(self) -> Project | None:
        visible = self.visible
        return visible[self.cursor] if 0 <= self.cursor < len(visible) else None

    def is_running(self, project: Project) -> bool:
        return self.cache.exists(project.path)

    def _clamp(self) -> None:
        count = len(self.visible)
        self.cursor = max(0, min(self.cursor, count - 1)) if count else 0

    def _project_at(self, index: int | None) -> Project:
        visible = self.visible
        index = self.cursor if index is None else index
        if not 0 <= index < len(visible):
            raise NotFoundError(f"no project at position {index + 1}")
        return visible[index]

    def _fail(self, action: str, error: SessionizerError) -> bool:
        if isinstance(error, (ValidationError, NotFoundError)):
            logger.info("%s rejected: %s", action, error)
        else:
            logger.warning("%s failed: %s", action, error)
        self.status = f"Error: {error}"
        return False

    # ── Sessions ──────────────────────────────────────────────

    def select(self, index: int | None = None) -> bool:
        """Open the project at index (default: cursor) in its session."""
        try:
            project = self._project_at(index)
        except NotFoundError as e:
            return self._fail("select", e)
        return self.open(project)

    def open(self, project: Project) -> bool:
        name = session_name_for(project.path)
        recorded = self._record_access(project)

        if self.registry is None:
            return self._fail("open", CollaboratorError("tmux is not available"))
        try:
            if not self.cache.exists(project.path):
                self.registry.create_session(name, project.path)
                logger.info("Created session %s at %s", name, project.path)
            self.registry.switch_to(name)
        except CollaboratorError as e:
            return self._fail("open", e)
        finally:
            self.cache.invalidate(project.path)

        if recorded:
            self.status = f"Switched to {name}"
        return True

    def open_path(self, path: str) -> bool:
        """Open a session for an arbitrary directory."""
        return self.open(project_from_path(normalize_path(path)))

    def _record_access(self, project: Project) -> bool:
        paths = [project.path]
        if project.is_worktree and project.parent_path:
            paths.append(project.parent_path)
        try:
            for path in paths:
                self.history.record_access(path)
        except StateIOError as e:
            self._fail("record access", e)
            return False
        return True

    def kill(self, index: int | None = None) -> bool:
        """Kill the project's session, moving off it first if it is current."""
        try:
            project = self._project_at(index)
        except NotFoundError as e:
            return self._fail("kill", e)
        if self.registry is None:
            return self._fail("kill", CollaboratorError("tmux is not available"))

        name = session_name_for(project.path)
        if not self.cache.exists(project.path):
            self.status = f"No running session for {project.name}"
            return False

        try:
            current = self.registry.current_session_name()
        except CollaboratorError as e:
            logger.debug("Cannot read current session: %s", e)
            current = None

        try:
            if current == name:
                fallback = self._fallback_session(project, name)
                if fallback:
                    self.registry.switch_to(fallback)
            self.registry.kill_session(name)
        except CollaboratorError as e:
            return self._fail("kill", e)
        finally:
            self.cache.invalidate(project.path)

        self.status = f"Killed session {name}"
        self._clamp()
        return True

    def _fallback_session(self, project: Project, name: str) -> str | None:
        """Next running session below project in the list, else any other one."""
        visible = self.visible
        start = next(
            (i for i, p in enumerate(visible) if same_path(p.path, project.path)), -1
        )
        for candidate in visible[start + 1 :] + visible[: max(start, 0)]:
            other = session_name_for(candidate.path)
            if other != name and self.cache.exists(candidate.path):
                return other
        try:
            sessions = self.registry.list_sessions()
        except CollaboratorError as e:
            logger.debug("Cannot list sessions: %s", e)
            return None
        return next((s for s in sessions if s != name), None)

    # ── Key edits ─────────────────────────────────────────────

    def assign_key(self, key: str, index: int | None = None) -> bool:
        try:
            project = self._project_at(index)
            self.keys.assign(project.path, key)
        except SessionizerError as e:
            return self._fail("assign key", e)
        self.status = f"Mapped key {key} to {project.name}"
        self._regenerate_bindings()
        return True

    def release_key(self, key: str) -> bool:
        try:
            self.keys.release(key)
        except SessionizerError as e:
            return self._fail("release key", e)
        self.status = f"Released key {key}"
        self._regenerate_bindings()
        return True

    def rename_key(self, old_key: str, new_key: str) -> bool:
        try:
            self.keys.rename(old_key, new_key)
        except SessionizerError as e:
            return self._fail("rename key", e)
        self.status = f"Moved key {old_key} to {new_key}"
        self._regenerate_bindings()
        return True

    def unbind(self, index: int | None = None) -> bool:
        try:
            project = self._project_at(index)
            key = self.keys.unbind_path(project.path)
        except SessionizerError as e:
            return self._fail("unbind", e)
        self.status = f"Unmapped {project.name} from key {key}"
        self._regenerate_bindings()
        return True

    def describe_key(self, key: str, text: str) -> bool:
        try:
            self.keys.describe(key, text)
        except SessionizerError as e:
            return self._fail("describe key", e)
        self.status = f"Updated description for key {key}"
        self._regenerate_bindings()
        return True

    def _regenerate_bindings(self) -> None:
        """Best effort: a failure here never undoes the key edit."""
        path = self.config.bindings_file
        try:
            write_bindings(self.keys, path, self.config.keys.bind_command)
        except OSError as e:
            logger.warning("Cannot write %s: %s", path, e)
            return
        if self.registry is None:
            return
        try:
            self.registry.source_file(str(path))
        except CollaboratorError as e:
            logger.debug("tmux reload skipped: %s", e)
