"""Shared record types: projects, access records, key bindings, enrichment facts."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class GitStatus:
    """Working-tree summary for one checkout."""

    branch: str = ""
    upstream: str = ""
    ahead: int = 0
    behind: int = 0
    staged: int = 0
    modified: int = 0
    untracked: int = 0
    lines_added: int = 0
    lines_deleted: int = 0

    @property
    def is_dirty(self) -> bool:
        return bool(self.staged or self.modified or self.untracked)


NOTE_CATEGORIES = (
    "current",
    "issues",
    "inbox",
    "docs",
    "completed",
    "review",
    "in_progress",
    "other",
)


@dataclass
class NoteCounts:
    """Notes per category for one workspace."""

    current: int = 0
    issues: int = 0
    inbox: int = 0
    docs: int = 0
    completed: int = 0
    review: int = 0
    in_progress: int = 0
    other: int = 0

    @property
    def total(self) -> int:
        return sum(getattr(self, name) for name in NOTE_CATEGORIES)


@dataclass
class PlanStats:
    """Job counts across a project's plans."""

    total_plans: int = 0
    active_plan: str = ""
    running: int = 0
    pending: int = 0
    completed: int = 0
    failed: int = 0
    todo: int = 0
    hold: int = 0
    abandoned: int = 0
    plan_status: str = ""


@dataclass
class Project:
    """A discovered project. Identity is the absolute path.

    Enrichment slots are best-effort annotations recomputed each run;
    they do not take part in equality.
    """

    name: str
    path: str
    is_worktree: bool = False
    parent_path: str = ""
    is_ecosystem: bool = False
    parent_ecosystem_path: str = ""

    git_status: GitStatus | None = field(default=None, compare=False, repr=False)
    note_counts: NoteCounts | None = field(default=None, compare=False, repr=False)
    plan_stats: PlanStats | None = field(default=None, compare=False, repr=False)

    @property
    def group_path(self) -> str:
        """Worktrees rank with their parent checkout."""
        if self.is_worktree and self.parent_path:
            return self.parent_path
        return self.path


@dataclass
class AccessRecord:
    path: str
    last_accessed: datetime
    access_count: int = 1


@dataclass
class KeyBinding:
    """One slot of the key alphabet. An empty path means the key is free."""

    key: str
    path: str = ""
    description: str = ""

    @property
    def is_free(self) -> bool:
        return not self.path

    @property
    def repository(self) -> str:
        # Derived from the path on every read; storage copies are ignored.
        return os.path.basename(self.path) if self.path else ""
