"""Project discovery under the configured search paths.

A directory is a project when it holds one of the marker entries (`.git`
by default). Worktrees live in `<project>/.grove-worktrees/<name>` or are
checkouts whose `.git` file points into `<parent>/.git/worktrees/`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator

from sessionizer.config import DiscoveryConfig
from sessionizer.models import Project
from sessionizer.paths import normalize_path, path_key

logger = logging.getLogger(__name__)

WORKTREES_DIRNAME = ".grove-worktrees"


def project_from_path(path: str) -> Project:
    """Build a Project for a single directory, detecting linked worktrees."""
    path = normalize_path(path)
    parent = worktree_parent(path)
    return Project(
        name=os.path.basename(path),
        path=path,
        is_worktree=bool(parent),
        parent_path=parent,
    )


def worktree_parent(path: str) -> str:
    """Main checkout of a linked worktree, or "" for anything else."""
    parent_dir = os.path.dirname(path)
    if os.path.basename(parent_dir) == WORKTREES_DIRNAME:
        return os.path.dirname(parent_dir)

    git_file = os.path.join(path, ".git")
    if not os.path.isfile(git_file):
        return ""
    try:
        with open(git_file, encoding="utf-8") as f:
            line = f.readline().strip()
    except OSError:
        return ""
    if not line.startswith("gitdir:"):
        return ""
    gitdir = line.removeprefix("gitdir:").strip()
    if not os.path.isabs(gitdir):
        gitdir = os.path.join(path, gitdir)
    gitdir = os.path.normpath(gitdir)
    marker = os.sep + os.path.join(".git", "worktrees") + os.sep
    if marker not in gitdir:
        return ""
    return gitdir.split(marker, 1)[0]


def _is_project(path: str, markers: list[str]) -> bool:
    return any(os.path.exists(os.path.join(path, m)) for m in markers)


def _subdirs(path: str, excludes: set[str]) -> list[str]:
    try:
        entries = sorted(os.scandir(path), key=lambda e: e.name)
    except OSError as e:
        logger.debug("Cannot list %s: %s", path, e)
        return []
    return [
        e.path
        for e in entries
        if e.is_dir(follow_symlinks=True)
        and not e.name.startswith(".")
        and e.name not in excludes
    ]


def _walk(root: str, config: DiscoveryConfig) -> Iterator[str]:
    excludes = set(config.exclude_patterns)
    stack = [(root, 0)]
    while stack:
        path, depth = stack.pop()
        if depth >= config.min_depth and _is_project(path, config.file_types):
            yield path
        if depth < config.max_depth:
            # Reversed so the stack pops children in sorted order.
            for child in reversed(_subdirs(path, excludes)):
                stack.append((child, depth + 1))


def _worktrees(project: Project) -> list[Project]:
    folder = os.path.join(project.path, WORKTREES_DIRNAME)
    if not os.path.isdir(folder):
        return []
    return [
        Project(
            name=os.path.basename(wt),
            path=wt,
            is_worktree=True,
            parent_path=project.path,
            parent_ecosystem_path=project.parent_ecosystem_path,
        )
        for wt in _subdirs(folder, set())
    ]


def _mark_ecosystems(projects: list[Project]) -> None:
    """Flag projects that contain other projects; link members to the nearest one."""
    roots = [p for p in projects if not p.is_worktree]
    keys = {id(p): path_key(p.path) for p in roots}
    for outer in roots:
        prefix = keys[id(outer)] + os.sep
        if any(keys[id(inner)].startswith(prefix) for inner in roots if inner is not outer):
            outer.is_ecosystem = True

    ecosystems = sorted(
        (p for p in roots if p.is_ecosystem), key=lambda p: len(p.path), reverse=True
    )
    for project in roots:
        own = keys[id(project)]
        for eco in ecosystems:
            if own.startswith(keys[id(eco)] + os.sep):
                project.parent_ecosystem_path = eco.path
                break


def discover_projects(config: DiscoveryConfig) -> list[Project]:
    """Projects in discovery order: search paths in config order, each walked
    depth-first in sorted order, worktrees right after their parent, then
    explicit projects. Duplicate paths keep their first occurrence.
    """
    found: list[Project] = []
    for search in config.search_paths:
        if not search.enabled:
            continue
        root = normalize_path(search.path)
        if not os.path.isdir(root):
            logger.debug("Search path %s (%s) does not exist", search.name, root)
            continue
        for path in _walk(root, config):
            found.append(project_from_path(path))

    for explicit in config.explicit_projects:
        if not explicit.enabled:
            continue
        project = project_from_path(explicit.path)
        if not os.path.isdir(project.path):
            logger.debug("Explicit project %s does not exist", project.path)
            continue
        if explicit.name:
            project.name = explicit.name
        found.append(project)

    _mark_ecosystems(found)

    projects: list[Project] = []
    seen: set[str] = set()
    for project in found:
        for candidate in [project, *(_worktrees(project) if not project.is_worktree else [])]:
            key = path_key(candidate.path)
            if key in seen:
                continue
            seen.add(key)
            projects.append(candidate)

    logger.debug("Discovered %d projects", len(projects))
    return projects
