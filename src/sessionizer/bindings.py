"""tmux key bindings generated from the key table."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from sessionizer.models import KeyBinding
from sessionizer.state.files import atomic_write_text
from sessionizer.state.keymap import KeyBindingTable

logger = logging.getLogger(__name__)

HEADER = "# Generated by sessionizer. Do not edit; changes are overwritten.\n"


def _quote(path: str) -> str:
    return "'" + path.replace("'", "'\\''") + "'"


def render_bindings(bindings: Iterable[KeyBinding], command: str) -> str:
    lines = [HEADER]
    for binding in sorted((b for b in bindings if not b.is_free), key=lambda b: b.key):
        comment = f"# {binding.key}: {binding.repository}"
        if binding.description:
            comment += f" - {binding.description}"
        run = f"{command} {_quote(binding.path)}".replace('"', '\\"')
        lines.append(comment)
        lines.append(f'bind-key -r {binding.key} run-shell "{run}"')
        lines.append("")
    return "\n".join(lines)


def write_bindings(table: KeyBindingTable, path: Path, command: str) -> None:
    """Rewrite the bindings file. Raises OSError on failure."""
    atomic_write_text(Path(path), render_bindings(table.bound(), command))
    logger.info("Wrote %d key bindings to %s", len(table.bound()), path)
