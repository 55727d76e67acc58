"""Tests for the line-oriented picker front end."""

import io
import pytest
from pathlib import Path

from sessionizer.cli import Command, PickerCLI, parse_command
from sessionizer.config import SessionizerConfig
from sessionizer.controller import InteractionController
from sessionizer.models import GitStatus, Project
from sessionizer.state.access import AccessStore
from sessionizer.state.keymap import KeyBindingTable


class TestParseCommand:
    @pytest.mark.parametrize(
        "line, expected",
        [
            ("", Command("noop")),
            ("q", Command("quit")),
            ("exit", Command("quit")),
            ("3", Command("select", ["3"])),
            ("/foo", Command("query", ["foo"])),
            ("/", Command("query", [""])),
            ("j", Command("move", ["1"])),
            ("k", Command("move", ["-1"])),
            (":key a 2", Command("key", ["a", "2"])),
            (":unkey a", Command("unkey", ["a"])),
            (":rename a s", Command("rename", ["a", "s"])),
            (":desc a main app", Command("desc", ["a", "main app"])),
            (":kill", Command("kill", [])),
            ("hello", Command("unknown", ["hello"])),
            ("\u00b2", Command("unknown", ["\u00b2"])),
        ],
    )
    def test_parse(self, line, expected):
        assert parse_command(line) == expected


@pytest.fixture
def cli(tmp_path: Path) -> PickerCLI:
    config = SessionizerConfig(state_dir=tmp_path)
    projects = [
        Project(name="app", path="/work/app"),
        Project(name="lib", path="/work/lib"),
    ]
    controller = InteractionController(
        config,
        keys=KeyBindingTable(config.sessions_file, ["a", "s"]),
        history=AccessStore(config.history_file),
        registry=None,
        discover=lambda: list(projects),
    )
    return PickerCLI(controller, out=io.StringIO())


class TestPickerCLI:
    @pytest.mark.asyncio
    async def test_render(self, cli: PickerCLI):
        await cli.controller.refresh()
        cli.controller.projects[0].git_status = GitStatus(branch="main", modified=1)
        cli.render()
        out = cli.out.getvalue()
        assert "2 projects" in out
        assert "app" in out and "(main*)" in out

    @pytest.mark.asyncio
    async def test_key_command(self, cli: PickerCLI):
        await cli.controller.refresh()
        assert await cli.handle(parse_command(":key s 2"))
        assert cli.controller.keys.key_for("/work/lib") == "s"
        assert "[s]" in cli.out.getvalue()

    @pytest.mark.asyncio
    async def test_bad_position(self, cli: PickerCLI):
        await cli.controller.refresh()
        await cli.handle(parse_command(":key s x"))
        assert cli.controller.keys.bound() == []
        assert cli.controller.status.startswith("Error:")

    @pytest.mark.asyncio
    async def test_query(self, cli: PickerCLI):
        await cli.controller.refresh()
        await cli.handle(parse_command("/li"))
        assert [p.name for p in cli.controller.visible] == ["lib"]

    @pytest.mark.asyncio
    async def test_select_without_tmux_keeps_running(self, cli: PickerCLI):
        await cli.controller.refresh()
        assert await cli.handle(parse_command("1"))
        assert "tmux is not available" in cli.controller.status

    @pytest.mark.asyncio
    async def test_quit(self, cli: PickerCLI):
        cli._running = True
        assert not await cli.handle(Command("quit"))
        assert cli._running is False

    @pytest.mark.asyncio
    async def test_superscript_digit_is_not_a_selection(self, cli: PickerCLI):
        await cli.controller.refresh()
        assert await cli.handle(parse_command("\u00b2"))
        assert "Unknown command" in cli.controller.status

    @pytest.mark.asyncio
    async def test_refresh_shows_external_key_edits(self, cli: PickerCLI):
        await cli.controller.refresh()
        other = KeyBindingTable(cli.controller.keys.path, ["a", "s"])
        other.assign("/work/lib", "s")

        await cli.handle(parse_command(":refresh"))
        assert cli.controller.keys.key_for("/work/lib") == "s"
        assert cli.controller.status == "Refreshed"

    @pytest.mark.asyncio
    async def test_unknown(self, cli: PickerCLI):
        await cli.handle(parse_command("blah"))
        assert "Unknown command" in cli.controller.status

    def test_render_keys(self, cli: PickerCLI):
        cli.controller.keys.assign("/work/app", "a")
        cli.controller.keys.describe("a", "main")
        cli.render_keys()
        out = cli.out.getvalue()
        assert "a  app  /work/app  # main" in out
        assert "s  -" in out
