"""Tests for the enrichment pipeline and its fetchers."""

import asyncio
import os
import time
import pytest
from pathlib import Path

from sessionizer.enrich.git import fetch_git_status, parse_numstat, parse_porcelain_v2
from sessionizer.enrich.notes import fetch_note_counts
from sessionizer.enrich.pipeline import EnrichmentOptions, EnrichmentPipeline
from sessionizer.enrich.plans import load_plan_stats
from sessionizer.errors import CollaboratorError
from sessionizer.models import GitStatus, NoteCounts, PlanStats, Project


def make_projects(n: int) -> list[Project]:
    return [Project(name=f"p{i}", path=f"/work/p{i}") for i in range(n)]


class MockGit:
    """Async git fetcher that tracks how many calls run at once."""

    def __init__(self, fail: set[str] | None = None, delay: float = 0.01):
        self.fail = fail or set()
        self.delay = delay
        self.active = 0
        self.peak = 0
        self.calls: list[str] = []

    async def __call__(self, path: str, timeout: float) -> GitStatus:
        self.calls.append(path)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            if path in self.fail:
                raise CollaboratorError("git exploded")
            return GitStatus(branch="main")
        finally:
            self.active -= 1


def no_plans(path: str, dirname: str):
    return None


def no_notes(root):
    return {}


class TestEnrichmentPipeline:
    @pytest.mark.asyncio
    async def test_fault_isolation(self):
        projects = make_projects(5)
        git = MockGit(fail={"/work/p2"})
        pipeline = EnrichmentPipeline(git_fetcher=git, plan_fetcher=no_plans)

        await pipeline.enrich(projects)

        assert projects[2].git_status is None
        for i in (0, 1, 3, 4):
            assert projects[i].git_status.branch == "main"

    @pytest.mark.asyncio
    async def test_git_concurrency_bound(self):
        git = MockGit(delay=0.02)
        pipeline = EnrichmentPipeline(git_fetcher=git, plan_fetcher=no_plans)
        await pipeline.enrich(make_projects(35))
        assert len(git.calls) == 35
        assert 1 < git.peak <= 10

    @pytest.mark.asyncio
    async def test_custom_bound(self):
        git = MockGit(delay=0.01)
        pipeline = EnrichmentPipeline(git_concurrency=3, git_fetcher=git, plan_fetcher=no_plans)
        await pipeline.enrich(make_projects(12))
        assert git.peak <= 3

    @pytest.mark.asyncio
    async def test_plan_concurrency_bound(self):
        state = {"active": 0, "peak": 0}

        def plans(path, dirname):
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.02)
            state["active"] -= 1
            return PlanStats(total_plans=1)

        pipeline = EnrichmentPipeline(git_fetcher=MockGit(), plan_fetcher=plans)
        projects = make_projects(12)
        await pipeline.enrich(projects)
        assert state["peak"] <= 5
        assert all(p.plan_stats.total_plans == 1 for p in projects)

    @pytest.mark.asyncio
    async def test_restricted_paths(self, tmp_path: Path):
        git = MockGit()
        pipeline = EnrichmentPipeline(
            notebook_root=tmp_path,
            git_fetcher=git,
            plan_fetcher=lambda path, d: PlanStats(total_plans=2),
            note_fetcher=lambda root: {"p0": NoteCounts(inbox=1), "p1": NoteCounts(inbox=1)},
        )
        projects = make_projects(3)
        await pipeline.enrich(projects, EnrichmentOptions(paths={"/work/p1"}))

        assert git.calls == ["/work/p1"]
        assert projects[1].git_status is not None
        assert projects[1].note_counts.inbox == 1
        assert projects[1].plan_stats.total_plans == 2
        assert projects[0].git_status is None
        assert projects[0].note_counts is None
        assert projects[0].plan_stats is None

    @pytest.mark.asyncio
    async def test_disabled_families(self):
        git = MockGit()
        pipeline = EnrichmentPipeline(git_fetcher=git, plan_fetcher=no_plans)
        projects = make_projects(2)
        await pipeline.enrich(
            projects, EnrichmentOptions(fetch_git_status=False, fetch_plan_stats=False)
        )
        assert git.calls == []
        assert projects[0].git_status is None

    @pytest.mark.asyncio
    async def test_note_scan_failure(self, tmp_path: Path):
        def broken(root):
            raise CollaboratorError("notebook unreadable")

        pipeline = EnrichmentPipeline(
            notebook_root=tmp_path, git_fetcher=MockGit(), plan_fetcher=no_plans, note_fetcher=broken
        )
        projects = make_projects(2)
        await pipeline.enrich(projects)
        assert all(p.note_counts is None for p in projects)
        assert all(p.git_status is not None for p in projects)

    @pytest.mark.asyncio
    async def test_notes_merged_by_name(self, tmp_path: Path):
        pipeline = EnrichmentPipeline(
            notebook_root=tmp_path,
            git_fetcher=MockGit(),
            plan_fetcher=no_plans,
            note_fetcher=lambda root: {"p1": NoteCounts(issues=4)},
        )
        projects = make_projects(2)
        await pipeline.enrich(projects)
        assert projects[0].note_counts is None
        assert projects[1].note_counts.issues == 4

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        git = MockGit()
        await EnrichmentPipeline(git_fetcher=git).enrich([])
        assert git.calls == []

    def test_invalid_bound(self):
        with pytest.raises(ValueError):
            EnrichmentPipeline(git_concurrency=0)


PORCELAIN = """\
# branch.oid 1234567890abcdef
# branch.head feature/login
# branch.upstream origin/feature/login
# branch.ab +2 -1
1 M. N... 100644 100644 100644 aaa bbb src/a.py
1 .M N... 100644 100644 100644 aaa bbb src/b.py
1 MM N... 100644 100644 100644 aaa bbb src/c.py
2 R. N... 100644 100644 100644 aaa bbb R100 new.py\told.py
? notes.txt
? scratch/
"""


class TestGitParsing:
    def test_porcelain(self):
        status = parse_porcelain_v2(PORCELAIN)
        assert status.branch == "feature/login"
        assert status.upstream == "origin/feature/login"
        assert (status.ahead, status.behind) == (2, 1)
        assert status.staged == 3
        assert status.modified == 2
        assert status.untracked == 2
        assert status.is_dirty

    def test_clean(self):
        status = parse_porcelain_v2("# branch.head main\n")
        assert status.branch == "main"
        assert not status.is_dirty

    def test_numstat(self):
        assert parse_numstat("10\t2\ta.py\n-\t-\timage.png\n3\t0\tb.py\n") == (13, 2)
        assert parse_numstat("") == (0, 0)

    @pytest.mark.asyncio
    async def test_not_a_repository(self, tmp_path: Path):
        with pytest.raises(CollaboratorError):
            await fetch_git_status(str(tmp_path))


def write_note(path: Path, meta: str = "", body: str = "note") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = f"---\n{meta}\n---\n{body}\n" if meta else f"{body}\n"
    path.write_text(text)


class TestNoteCounts:
    def test_counts_by_category(self, tmp_path: Path):
        write_note(tmp_path / "app" / "inbox" / "a.md")
        write_note(tmp_path / "app" / "inbox" / "b.md")
        write_note(tmp_path / "app" / "issues" / "deep" / "c.md")
        write_note(tmp_path / "app" / "in-progress" / "d.md")
        write_note(tmp_path / "app" / "misc" / "e.md")
        write_note(tmp_path / "lib" / "docs" / "f.md")

        counts = fetch_note_counts(tmp_path)
        assert counts["app"].inbox == 2
        assert counts["app"].issues == 1
        assert counts["app"].in_progress == 1
        assert counts["app"].other == 1
        assert counts["app"].total == 5
        assert counts["lib"].docs == 1

    def test_frontmatter_type_overrides_directory(self, tmp_path: Path):
        write_note(tmp_path / "app" / "inbox" / "a.md", meta="type: review")
        counts = fetch_note_counts(tmp_path)
        assert counts["app"].review == 1
        assert counts["app"].inbox == 0

    def test_archived_skipped(self, tmp_path: Path):
        write_note(tmp_path / "app" / "inbox" / "a.md", meta="archived: true")
        write_note(tmp_path / "app" / "inbox" / "b.md")
        assert fetch_note_counts(tmp_path)["app"].inbox == 1

    def test_empty_workspace_omitted(self, tmp_path: Path):
        (tmp_path / "empty" / "inbox").mkdir(parents=True)
        assert "empty" not in fetch_note_counts(tmp_path)

    def test_missing_root(self, tmp_path: Path):
        with pytest.raises(CollaboratorError):
            fetch_note_counts(tmp_path / "nope")


class TestPlanStats:
    def test_no_plans_dir(self, tmp_path: Path):
        assert load_plan_stats(str(tmp_path)) is None

    def test_counts_and_active_plan(self, tmp_path: Path):
        plans = tmp_path / "plans"
        write_note(plans / "old" / "01.md", meta="status: completed")
        write_note(plans / "old" / "02.md", meta="status: failed")
        write_note(plans / "busy" / "01.md", meta="status: running")
        write_note(plans / "busy" / "02.md", meta="status: pending")
        write_note(plans / "busy" / "03.md", meta="status: todo")
        write_note(plans / "queued" / "01.md", meta="status: pending")
        write_note(plans / "busy" / "README.md")
        # busy is the most recently touched live plan
        now = time.time()
        os.utime(plans / "queued", (now - 100, now - 100))
        os.utime(plans / "busy", (now, now))

        stats = load_plan_stats(str(tmp_path))
        assert stats.total_plans == 3
        assert stats.running == 1
        assert stats.pending == 2
        assert stats.completed == 1
        assert stats.failed == 1
        assert stats.todo == 1
        assert stats.active_plan == "busy"
        assert stats.plan_status == "running"

    def test_finished_plans(self, tmp_path: Path):
        write_note(tmp_path / "plans" / "done" / "01.md", meta="status: completed")
        stats = load_plan_stats(str(tmp_path))
        assert stats.active_plan == ""
        assert stats.plan_status == "completed"
