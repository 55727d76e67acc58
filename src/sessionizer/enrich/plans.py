"""Plan/job statistics for one project.

    <project>/plans/<plan-name>/*.md    one job per file, frontmatter `status`
"""

from __future__ import annotations

import logging
from pathlib import Path

import frontmatter

from sessionizer.models import PlanStats

logger = logging.getLogger(__name__)

JOB_STATUSES = ("running", "pending", "completed", "failed", "todo", "hold", "abandoned")

STATUS_ALIASES = {
    "in_progress": "running",
    "in-progress": "running",
    "done": "completed",
    "error": "failed",
    "on_hold": "hold",
    "blocked": "hold",
}


def _job_status(path: Path) -> str:
    try:
        status = frontmatter.load(str(path)).metadata.get("status", "")
    except Exception:
        return ""
    status = str(status).strip().lower()
    return STATUS_ALIASES.get(status, status)


def _overall_status(stats: PlanStats) -> str:
    for status in ("running", "pending", "failed", "completed"):
        if getattr(stats, status):
            return status
    return ""


def load_plan_stats(project_path: str, plans_dirname: str = "plans") -> PlanStats | None:
    plans_dir = Path(project_path) / plans_dirname
    if not plans_dir.is_dir():
        return None

    stats = PlanStats()
    active_mtime = -1.0

    for plan_dir in sorted(plans_dir.iterdir()):
        if not plan_dir.is_dir() or plan_dir.name.startswith("."):
            continue
        stats.total_plans += 1

        live = False
        for job in sorted(plan_dir.glob("*.md")):
            status = _job_status(job)
            if status not in JOB_STATUSES:
                continue
            setattr(stats, status, getattr(stats, status) + 1)
            if status in ("running", "pending"):
                live = True

        if live:
            mtime = plan_dir.stat().st_mtime
            if mtime > active_mtime:
                active_mtime = mtime
                stats.active_plan = plan_dir.name

    stats.plan_status = _overall_status(stats)
    return stats
