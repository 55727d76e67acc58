"""Query filtering: a stable partition into match tiers, never a re-rank."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from sessionizer.models import Project

EXACT_NAME = 1
NAME_PREFIX = 2
NAME_CONTAINS = 3
PATH_CONTAINS = 4


def match_tier(project: Project, query: str) -> int | None:
    """Tier of the first rule the project satisfies, or None."""
    q = query.lower()
    name = project.name.lower()
    if name == q:
        return EXACT_NAME
    if name.startswith(q):
        return NAME_PREFIX
    if q in name:
        return NAME_CONTAINS
    if q in project.path.lower():
        return PATH_CONTAINS
    return None


def filter_projects(projects: Iterable[Project], query: str) -> list[Project]:
    """Exact name, then name prefix, then name substring, then path substring.

    Each tier keeps its input order. Projects matching no tier are dropped.
    An empty query returns the input unchanged.
    """
    if not query:
        return list(projects)

    tiers: dict[int, list[Project]] = {
        EXACT_NAME: [],
        NAME_PREFIX: [],
        NAME_CONTAINS: [],
        PATH_CONTAINS: [],
    }
    for project in projects:
        tier = match_tier(project, query)
        if tier is not None:
            tiers[tier].append(project)

    return [p for tier in sorted(tiers) for p in tiers[tier]]


def fold_worktrees(
    projects: Iterable[Project], is_active: Callable[[Project], bool]
) -> list[Project]:
    """Hide worktrees whose session is not running. Parents always stay."""
    return [p for p in projects if not p.is_worktree or is_active(p)]
