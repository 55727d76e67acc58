"""Git working-tree status via `git status --porcelain=v2 --branch`."""

from __future__ import annotations

import asyncio
import logging
import os

from sessionizer.errors import CollaboratorError
from sessionizer.models import GitStatus

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 2.0


async def run_git(path: str, *args: str, timeout: float = GIT_TIMEOUT_SECONDS) -> str:
    """Run `git -C path args...` and return stdout. Raises CollaboratorError."""
    try:
        process = await asyncio.create_subprocess_exec(
            "git", "-C", path, *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CollaboratorError(f"git {args[0]} failed: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise CollaboratorError(f"git {args[0]} timed out") from e

    if process.returncode != 0:
        err = stderr.decode(errors="replace").strip() or "git command failed"
        raise CollaboratorError(err)
    return stdout.decode(errors="replace")


def parse_porcelain_v2(output: str) -> GitStatus:
    status = GitStatus()

    for line in output.replace("\r\n", "\n").split("\n"):
        if not line:
            continue

        if line.startswith("# "):
            if line.startswith("# branch.head "):
                status.branch = line.removeprefix("# branch.head ").strip()
            elif line.startswith("# branch.upstream "):
                status.upstream = line.removeprefix("# branch.upstream ").strip()
            elif line.startswith("# branch.ab "):
                for token in line.removeprefix("# branch.ab ").split():
                    try:
                        if token.startswith("+"):
                            status.ahead = int(token[1:])
                        elif token.startswith("-"):
                            status.behind = int(token[1:])
                    except ValueError:
                        pass
            continue

        if line.startswith("? "):
            status.untracked += 1
        elif line.startswith(("1 ", "2 ", "u ")):
            fields = line.split()
            xy = fields[1] if len(fields) > 1 else ""
            if len(xy) >= 1 and xy[0] != ".":
                status.staged += 1
            if len(xy) >= 2 and xy[1] != ".":
                status.modified += 1

    return status


def parse_numstat(output: str) -> tuple[int, int]:
    """Total (added, deleted) lines. Binary files ('-') are skipped."""
    added = deleted = 0
    for line in output.strip().splitlines():
        fields = line.split()
        if len(fields) < 2:
            continue
        if fields[0] != "-":
            try:
                added += int(fields[0])
            except ValueError:
                pass
        if fields[1] != "-":
            try:
                deleted += int(fields[1])
            except ValueError:
                pass
    return added, deleted


async def fetch_git_status(path: str, timeout: float = GIT_TIMEOUT_SECONDS) -> GitStatus:
    if not os.path.exists(os.path.join(path, ".git")):
        raise CollaboratorError(f"not a git repository: {path}")

    status = parse_porcelain_v2(
        await run_git(path, "status", "--porcelain=v2", "--branch", timeout=timeout)
    )
    for extra in ((), ("--cached",)):
        try:
            numstat = await run_git(path, "diff", *extra, "--numstat", timeout=timeout)
        except CollaboratorError as e:
            logger.debug("numstat failed for %s: %s", path, e)
            continue
        added, deleted = parse_numstat(numstat)
        status.lines_added += added
        status.lines_deleted += deleted
    return status
