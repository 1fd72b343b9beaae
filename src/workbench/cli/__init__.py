"""Interactive command-line chat."""

from workbench.cli.app import App, create_app
from workbench.cli.repl import ChatRepl

__all__ = ["App", "ChatRepl", "create_app"]
