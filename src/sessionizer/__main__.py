"""Entry point: python -m sessionizer [pick|sessionize PATH|keys|history]

- No args / "pick":   Interactive picker
- "sessionize PATH":  Open (create if missing) the session for PATH
- "keys":             Print the key bindings
- "history":          Print recently accessed projects
"""

from __future__ import annotations

import asyncio
import logging
import sys

from sessionizer.config import SessionizerConfig, load_config
from sessionizer.errors import CollaboratorError, SessionizerError

logger = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_controller(config: SessionizerConfig):
    from sessionizer.controller import InteractionController
    from sessionizer.enrich.pipeline import EnrichmentPipeline
    from sessionizer.state.access import AccessStore
    from sessionizer.state.keymap import KeyBindingTable
    from sessionizer.tmux.client import TmuxClient

    try:
        registry = TmuxClient()
    except CollaboratorError as e:
        logger.warning("Running without tmux: %s", e)
        registry = None

    pipeline = EnrichmentPipeline(
        notebook_root=config.enrich.notebook_dir,
        plans_dirname=config.enrich.plans_dirname,
        git_timeout=config.enrich.git_timeout,
        git_concurrency=config.enrich.git_concurrency,
        plan_concurrency=config.enrich.plan_concurrency,
    )
    return InteractionController(
        config,
        keys=KeyBindingTable(config.sessions_file, config.keys.available),
        history=AccessStore(config.history_file),
        registry=registry,
        pipeline=pipeline,
    )


def _run_pick(config: SessionizerConfig) -> None:
    """Interactive picker mode."""
    from sessionizer.cli import PickerCLI

    cli = PickerCLI(_build_controller(config))
    try:
        asyncio.run(cli.start())
    except KeyboardInterrupt:
        pass


def _run_sessionize(config: SessionizerConfig, path: str) -> None:
    controller = _build_controller(config)
    if not controller.open_path(path):
        print(controller.status, file=sys.stderr)
        sys.exit(1)


def _run_keys(config: SessionizerConfig) -> None:
    from sessionizer.cli import PickerCLI

    PickerCLI(_build_controller(config)).render_keys()


def _run_history(config: SessionizerConfig) -> None:
    from sessionizer.paths import compact_path
    from sessionizer.state.access import AccessStore

    for record in AccessStore(config.history_file).recent(20):
        stamp = record.last_accessed.astimezone().strftime("%Y-%m-%d %H:%M")
        print(f"  {stamp}  {record.access_count:4d}  {compact_path(record.path)}")


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "pick"

    config = load_config()
    _setup_logging(config.log_level)

    try:
        if cmd == "pick":
            _run_pick(config)
        elif cmd == "sessionize" and len(sys.argv) > 2:
            _run_sessionize(config, sys.argv[2])
        elif cmd == "keys":
            _run_keys(config)
        elif cmd == "history":
            _run_history(config)
        else:
            print("Usage: python -m sessionizer [pick|sessionize PATH|keys|history]")
            print("  pick             — Interactive picker (default)")
            print("  sessionize PATH  — Open the session for PATH")
            print("  keys             — Show key bindings")
            print("  history          — Show recently accessed projects")
            sys.exit(1)
    except SessionizerError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
