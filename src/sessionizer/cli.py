"""Line-oriented picker front end: reads commands from stdin, prints the list."""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass, field

from sessionizer.controller import InteractionController
from sessionizer.models import Project
from sessionizer.paths import compact_path, path_key

logger = logging.getLogger(__name__)

HELP = """\
  <number>          open project
  /<text>           filter (a bare / clears it)
  :key K [N]        bind key K to project N (default: cursor)
  :unkey K          release key K
  :unbind [N]       release the key held by project N
  :rename K1 K2     move binding K1 to K2
  :desc K TEXT      set the description of key K
  :kill [N]         kill the session of project N
  :refresh          rediscover projects
  :keys             show key bindings
  j / k             move cursor down / up
  q                 quit"""


@dataclass
class Command:
    action: str
    args: list[str] = field(default_factory=list)


def parse_command(line: str) -> Command:
    """Parse one input line. Unknown input becomes an `unknown` command."""
    text = line.strip()
    if not text:
        return Command("noop")
    if text.lower() in ("q", "quit", "exit"):
        return Command("quit")
    if text in ("?", "help", ":help"):
        return Command("help")
    if text == "j":
        return Command("move", ["1"])
    if text == "k":
        return Command("move", ["-1"])
    if text.startswith("/"):
        return Command("query", [text[1:]])
    if text.isdecimal():
        return Command("select", [text])
    if text.startswith(":"):
        name, _, rest = text[1:].partition(" ")
        if name == "desc":
            key, _, description = rest.strip().partition(" ")
            return Command("desc", [key, description.strip()] if key else [])
        return Command(name, rest.split())
    return Command("unknown", [text])


def _index(args: list[str], position: int) -> int | None:
    """1-based list position from args, or None for the cursor."""
    if len(args) <= position:
        return None
    try:
        return int(args[position]) - 1
    except ValueError:
        return -1


class PickerCLI:
    """Interactive REPL over an InteractionController."""

    def __init__(self, controller: InteractionController, out=None) -> None:
        self.controller = controller
        self.out = out or sys.stdout
        self._running = False

    def _print(self, text: str = "") -> None:
        print(text, file=self.out)

    # ── Rendering ─────────────────────────────────────────────

    def render_row(self, position: int, project: Project, keys: dict[str, str]) -> str:
        marker = ">" if position - 1 == self.controller.cursor else " "
        key = keys.get(path_key(project.path), " ")
        running = "*" if self.controller.is_running(project) else " "
        indent = "  " if project.is_worktree else ""
        parts = [f"{marker}{position:3d} [{key}] {running} {indent}{project.name}"]

        git = project.git_status
        if git is not None and git.branch:
            branch = git.branch + ("*" if git.is_dirty else "")
            if git.ahead or git.behind:
                branch += f" +{git.ahead}/-{git.behind}"
            parts.append(f"({branch})")
        notes = project.note_counts
        if notes is not None and notes.total:
            parts.append(f"notes:{notes.total}")
        plans = project.plan_stats
        if plans is not None and plans.plan_status:
            parts.append(f"plan:{plans.active_plan or plans.plan_status}")
        parts.append(compact_path(project.path))
        return "  ".join(parts)

    def render(self) -> None:
        visible = self.controller.visible
        keys = self.controller.keys.path_to_key()
        header = f"{len(visible)} projects"
        if self.controller.query:
            header += f" matching '{self.controller.query}'"
        self._print(header)
        for position, project in enumerate(visible, start=1):
            self._print(self.render_row(position, project, keys))
        if self.controller.status:
            self._print(self.controller.status)

    def render_keys(self) -> None:
        for binding in self.controller.keys.bindings():
            if binding.is_free:
                self._print(f"  {binding.key}  -")
                continue
            line = f"  {binding.key}  {binding.repository}  {compact_path(binding.path)}"
            if binding.description:
                line += f"  # {binding.description}"
            self._print(line)

    # ── Dispatch ──────────────────────────────────────────────

    async def handle(self, command: Command) -> bool:
        """Apply one command. Returns False when the picker should exit."""
        c = self.controller
        args = command.args
        action = command.action

        if action == "quit":
            await self.stop()
            return False
        if action == "noop":
            return True
        if action == "help":
            self._print(HELP)
            return True
        if action == "keys":
            self.render_keys()
            return True

        if action == "move":
            c.move(int(args[0]))
        elif action == "query":
            c.set_query(args[0] if args else "")
        elif action == "select":
            if c.select(int(args[0]) - 1):
                await self.stop()
                return False
        elif action == "refresh":
            c.status = ""
            await c.refresh()
            c.status = c.status or "Refreshed"
        elif action == "key" and args:
            c.assign_key(args[0], _index(args, 1))
        elif action == "unkey" and args:
            c.release_key(args[0])
        elif action == "unbind":
            c.unbind(_index(args, 0))
        elif action == "rename" and len(args) == 2:
            c.rename_key(args[0], args[1])
        elif action == "desc" and args:
            c.describe_key(args[0], args[1] if len(args) > 1 else "")
        elif action == "kill":
            c.kill(_index(args, 0))
        else:
            c.status = "Unknown command (? for help)"

        self.render()
        return True

    async def start(self) -> None:
        self._running = True
        loop = asyncio.get_event_loop()

        await self.controller.refresh()
        self.render()

        while self._running:
            try:
                line = await loop.run_in_executor(None, self._read_input)
            except (EOFError, KeyboardInterrupt):
                break
            if line is None:
                break
            await self.handle(parse_command(line))

    def _read_input(self) -> str | None:
        try:
            sys.stdout.write("> ")
            sys.stdout.flush()
            raw = sys.stdin.buffer.readline()
            if not raw:
                return None
            return raw.decode("utf-8", errors="replace").rstrip("\n")
        except EOFError:
            return None

    async def stop(self) -> None:
        self._running = False
