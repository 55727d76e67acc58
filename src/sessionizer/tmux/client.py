"""tmux CLI client using synchronous single-shot subprocess calls."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess

from sessionizer.errors import CollaboratorError

logger = logging.getLogger(__name__)

_NO_SERVER_HINTS = ("no server running", "error connecting to", "no sessions")


class TmuxClient:
    """SessionRegistry backed by the tmux binary."""

    def __init__(self, binary: str = "tmux", timeout: float = 5.0) -> None:
        path = shutil.which(binary)
        if path is None:
            raise CollaboratorError(f"{binary} command not found in PATH")
        self.binary = path
        self.timeout = timeout

    @staticmethod
    def inside_tmux() -> bool:
        return bool(os.environ.get("TMUX"))

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [self.binary, *args]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CollaboratorError(f"tmux {args[0]} timed out") from e
        except OSError as e:
            raise CollaboratorError(f"tmux {args[0]} failed: {e}") from e

    def _check(self, *args: str) -> str:
        result = self._run(*args)
        if result.returncode != 0:
            err = result.stderr.strip() or result.stdout.strip() or "unknown error"
            raise CollaboratorError(f"tmux {args[0]} failed: {err}")
        return result.stdout

    # ── SessionRegistry ───────────────────────────────────────

    def session_exists(self, name: str) -> bool:
        result = self._run("has-session", "-t", f"={name}")
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            # Exit 1 covers both "can't find session" and "no server running".
            return False
        raise CollaboratorError(f"tmux has-session failed: {result.stderr.strip()}")

    def kill_session(self, name: str) -> None:
        self._check("kill-session", "-t", f"={name}")

    def create_session(self, name: str, working_dir: str) -> None:
        self._check("new-session", "-d", "-s", name, "-c", working_dir)

    def switch_to(self, name: str) -> None:
        if self.inside_tmux():
            self._check("switch-client", "-t", f"={name}")
            return
        # Outside tmux the attach takes over the terminal until detach.
        try:
            result = subprocess.run([self.binary, "attach-session", "-t", f"={name}"], check=False)
        except OSError as e:
            raise CollaboratorError(f"tmux attach-session failed: {e}") from e
        if result.returncode != 0:
            raise CollaboratorError(f"tmux attach-session exited with {result.returncode}")

    def current_session_name(self) -> str | None:
        if not self.inside_tmux():
            return None
        name = self._check("display-message", "-p", "#S").strip()
        return name or None

    def list_sessions(self) -> list[str]:
        result = self._run("list-sessions", "-F", "#{session_name}")
        if result.returncode != 0:
            stderr = result.stderr.lower()
            if any(hint in stderr for hint in _NO_SERVER_HINTS):
                return []
            raise CollaboratorError(f"tmux list-sessions failed: {result.stderr.strip()}")
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def capture_pane(self, target: str) -> str:
        return self._check("capture-pane", "-p", "-t", target)

    def source_file(self, path: str) -> None:
        self._check("source-file", path)
