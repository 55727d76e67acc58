"""Note counts per workspace, read from a notebook tree.

Layout: <root>/<workspace>/<category>/**/*.md. The workspace name matches
a project name. A note's frontmatter `type` overrides the directory
category; notes marked `archived: true` are not counted.
"""

from __future__ import annotations

import logging
from pathlib import Path

import frontmatter

from sessionizer.errors import CollaboratorError
from sessionizer.models import NOTE_CATEGORIES, NoteCounts

logger = logging.getLogger(__name__)

CATEGORY_ALIASES = {
    "in-progress": "in_progress",
    "inprogress": "in_progress",
    "issue": "issues",
    "doc": "docs",
    "done": "completed",
}


def _category_field(name: str) -> str:
    category = name.strip().lower().replace(" ", "_")
    category = CATEGORY_ALIASES.get(category, category)
    if category in NOTE_CATEGORIES:
        return category
    return "other"


def _read_meta(path: Path) -> dict:
    try:
        post = frontmatter.load(str(path))
        return dict(post.metadata)
    except Exception:
        return {}


def count_workspace(workspace: Path) -> NoteCounts:
    counts = NoteCounts()
    for category_dir in sorted(workspace.iterdir()):
        if not category_dir.is_dir() or category_dir.name.startswith("."):
            continue
        for note in sorted(category_dir.rglob("*.md")):
            meta = _read_meta(note)
            if meta.get("archived") is True:
                continue
            note_type = meta.get("type")
            field_name = _category_field(str(note_type) if note_type else category_dir.name)
            setattr(counts, field_name, getattr(counts, field_name) + 1)
    return counts


def fetch_note_counts(notebook_root: str | Path) -> dict[str, NoteCounts]:
    """Scan every workspace once. Raises CollaboratorError if the root is unreadable."""
    root = Path(notebook_root).expanduser()
    if not root.is_dir():
        raise CollaboratorError(f"notebook root not found: {root}")

    result: dict[str, NoteCounts] = {}
    try:
        for workspace in sorted(root.iterdir()):
            if not workspace.is_dir() or workspace.name.startswith("."):
                continue
            counts = count_workspace(workspace)
            if counts.total:
                result[workspace.name] = counts
    except OSError as e:
        raise CollaboratorError(f"notebook scan failed: {e}") from e

    logger.debug("Note counts for %d workspaces under %s", len(result), root)
    return result
