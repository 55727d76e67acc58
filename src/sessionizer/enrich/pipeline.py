"""Bounded-concurrency enrichment of a project batch."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Iterable

from sessionizer.enrich.git import GIT_TIMEOUT_SECONDS, fetch_git_status
from sessionizer.enrich.notes import fetch_note_counts
from sessionizer.enrich.plans import load_plan_stats
from sessionizer.models import GitStatus, NoteCounts, PlanStats, Project
from sessionizer.paths import path_key

logger = logging.getLogger(__name__)

NoteFetcher = Callable[[Path], "dict[str, NoteCounts]"]
GitFetcher = Callable[[str, float], Awaitable[GitStatus]]
PlanFetcher = Callable[[str, str], "PlanStats | None"]


@dataclass
class EnrichmentOptions:
    fetch_note_counts: bool = True
    fetch_git_status: bool = True
    fetch_plan_stats: bool = True
    # None = every project; otherwise only these paths are touched.
    paths: Iterable[str] | None = None


class EnrichmentPipeline:
    """Fills git_status, note_counts and plan_stats on projects in place.

    Every fetch is best-effort: a failure leaves only that project's field
    unset. Results are written back after all fetches have finished.
    """

    def __init__(
        self,
        notebook_root: str | Path | None = None,
        plans_dirname: str = "plans",
        git_timeout: float = GIT_TIMEOUT_SECONDS,
        git_concurrency: int = 10,
        plan_concurrency: int = 5,
        note_fetcher: NoteFetcher | None = None,
        git_fetcher: GitFetcher | None = None,
        plan_fetcher: PlanFetcher | None = None,
    ) -> None:
        if git_concurrency < 1 or plan_concurrency < 1:
            raise ValueError("concurrency bounds must be >= 1")
        self.notebook_root = Path(notebook_root).expanduser() if notebook_root else None
        self.plans_dirname = plans_dirname
        self.git_timeout = git_timeout
        self.git_concurrency = git_concurrency
        self.plan_concurrency = plan_concurrency
        self._note_fetcher = note_fetcher or fetch_note_counts
        self._git_fetcher = git_fetcher or fetch_git_status
        self._plan_fetcher = plan_fetcher or load_plan_stats

    async def enrich(
        self, projects: list[Project], options: EnrichmentOptions | None = None
    ) -> None:
        options = options or EnrichmentOptions()
        targets = _select(projects, options.paths)
        if not targets:
            return

        git_gate = asyncio.Semaphore(self.git_concurrency)
        plan_gate = asyncio.Semaphore(self.plan_concurrency)

        async def git_one(project: Project) -> GitStatus | None:
            async with git_gate:
                try:
                    return await self._git_fetcher(project.path, self.git_timeout)
                except Exception as e:
                    logger.debug("Git status for %s unavailable: %s", project.path, e)
                    return None

        async def plan_one(project: Project) -> PlanStats | None:
            async with plan_gate:
                try:
                    return await asyncio.to_thread(
                        self._plan_fetcher, project.path, self.plans_dirname
                    )
                except Exception as e:
                    logger.debug("Plan stats for %s unavailable: %s", project.path, e)
                    return None

        async def notes_all() -> dict[str, NoteCounts] | None:
            if self.notebook_root is None:
                return None
            try:
                return await asyncio.to_thread(self._note_fetcher, self.notebook_root)
            except Exception as e:
                logger.debug("Note counts unavailable: %s", e)
                return None

        async def skipped() -> None:
            return None

        git_tasks = [
            git_one(p) if options.fetch_git_status else skipped() for p in targets
        ]
        plan_tasks = [
            plan_one(p) if options.fetch_plan_stats else skipped() for p in targets
        ]
        notes_task = notes_all() if options.fetch_note_counts else skipped()

        results = await asyncio.gather(notes_task, *git_tasks, *plan_tasks)

        notes = results[0]
        git_results = results[1 : 1 + len(targets)]
        plan_results = results[1 + len(targets) :]

        for project, git_status, plan_stats in zip(targets, git_results, plan_results):
            if options.fetch_git_status:
                project.git_status = git_status
            if options.fetch_plan_stats:
                project.plan_stats = plan_stats
            if options.fetch_note_counts:
                project.note_counts = notes.get(project.name) if notes else None

        logger.debug("Enriched %d of %d projects", len(targets), len(projects))


def _select(projects: list[Project], paths: Iterable[str] | None) -> list[Project]:
    if paths is None:
        return list(projects)
    wanted = {path_key(p) for p in paths}
    return [p for p in projects if path_key(p.path) in wanted]
