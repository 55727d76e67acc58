"""Access-history ranking.

Worktrees rank with their parent checkout: a group's recency is the
parent's last access, so a stale worktree stays next to an active sibling.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from sessionizer.models import Project
from sessionizer.paths import path_key


class History(Protocol):
    def last_accessed(self, path: str) -> datetime | None: ...


def rank_projects(projects: Iterable[Project], history: History) -> list[Project]:
    """Order projects by group recency. Stable; idempotent.

    1. accessed groups before unaccessed ones
    2. more recently accessed groups first
    3. within a group the parent first, then worktrees alphabetically
    4. remaining ties keep discovery order (groups by their first member)
    """
    items = list(projects)

    group_first: dict[str, int] = {}
    group_time: dict[str, datetime | None] = {}
    for index, project in enumerate(items):
        group = path_key(project.group_path)
        if group not in group_first:
            group_first[group] = index
            group_time[group] = history.last_accessed(project.group_path)

    def within_group(entry: tuple[int, Project]) -> tuple:
        index, project = entry
        group = path_key(project.group_path)
        worktree_name = project.name.casefold() if project.is_worktree else ""
        return (group_first[group], project.is_worktree, worktree_name, index)

    def recency(entry: tuple[int, Project]) -> tuple:
        t = group_time[path_key(entry[1].group_path)]
        return (True, t) if t is not None else (False, 0)

    ordered = sorted(enumerate(items), key=within_group)
    # Stable descending sort keeps equal-recency groups in their current order.
    ordered.sort(key=recency, reverse=True)
    return [project for _, project in ordered]
