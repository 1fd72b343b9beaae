"""Command-line interface for workbench."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path

from workbench import __version__
from workbench.logging import get_logger, setup_logging

log = get_logger("cli")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="workbench",
        description="Chat with a model that reads, edits and runs code in a project folder",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be repeated)",
    )
    parser.add_argument(
        "-w", "--workspace",
        type=Path,
        help="Project folder to open",
    )
    parser.add_argument(
        "--model",
        help="litellm model id (default from config)",
    )
    parser.add_argument(
        "--mode",
        choices=["code", "plan", "search"],
        help="Chat mode",
    )
    parser.add_argument(
        "--no-history",
        action="store_true",
        help="Do not persist prompt history",
    )
    return parser


async def _run(config, workspace: Path | None, history_file: Path | None) -> None:
    from workbench.cli.app import create_app
    from workbench.cli.repl import ChatRepl

    app = await create_app(config)
    if workspace is not None:
        await app.open_workspace(workspace)
    await ChatRepl(app, history_file).run()


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    from workbench.config import load_config

    workspace = parsed.workspace.expanduser().resolve() if parsed.workspace else None
    config = load_config(str(workspace) if workspace else None)
    if parsed.verbose:
        config.logging.verbose = parsed.verbose
    setup_logging(config.logging)

    if parsed.model:
        config.llm.model = parsed.model
    if parsed.mode:
        config.llm.mode = parsed.mode

    history_file = None
    if not parsed.no_history:
        state_dir = Path(config.state.path).expanduser().parent
        state_dir.mkdir(parents=True, exist_ok=True)
        history_file = state_dir / "history"

    log.info("Starting workbench (model=%s, mode=%s)", config.llm.model, config.llm.mode)
    try:
        asyncio.run(_run(config, workspace, history_file))
    except KeyboardInterrupt:
        return 130
    return 0
