"""Slash command handlers for the chat REPL."""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

from workbench.errors import WorkbenchError
from workbench.prompts import MODES
from workbench.session.protocols import Attachment
from workbench.workspace.tree import format_tree

if TYPE_CHECKING:
    from workbench.cli.app import App

console = Console()


class CommandHandler:
    """Handles slash commands in the chat REPL."""

    def __init__(self, app: App) -> None:
        self.app = app

    async def handle(self, line: str) -> None:
        """Handle a slash command."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            return
        if not parts:
            return

        cmd = parts[0].lower()
        args = parts[1:]

        handlers = {
            "/help": self._cmd_help,
            "/open": self._cmd_open,
            "/forget": self._cmd_forget,
            "/tree": self._cmd_tree,
            "/keys": self._cmd_keys,
            "/mode": self._cmd_mode,
            "/model": self._cmd_model,
            "/attach": self._cmd_attach,
            "/edit": self._cmd_edit,
            "/select": self._cmd_select,
            "/history": self._cmd_history,
            "/condense": self._cmd_condense,
            "/clear": self._cmd_clear,
            "/quit": self._cmd_quit,
        }

        handler = handlers.get(cmd)
        if handler is None:
            console.print(f"[red]Unknown command: {escape(cmd)}[/red]")
            console.print("Type [bold]/help[/bold] for available commands.")
            return
        try:
            await handler(args)
        except (WorkbenchError, OSError, ValueError) as e:
            console.print(f"[red]{escape(str(e))}[/red]")

    async def _cmd_help(self, args: list[str]) -> None:
        """Show available commands."""
        table = Table(title="Available Commands")
        table.add_column("Command", style="bold")
        table.add_column("Description")

        commands = [
            ("/help", "Show this help message"),
            ("/open <dir>", "Open a project folder"),
            ("/forget", "Close the project folder"),
            ("/tree", "Show the project structure"),
            ("/keys [key ...]", "Show or replace the API keys"),
            ("/mode [code|plan|search]", "Show or switch the chat mode"),
            ("/model [id]", "Show or switch the model"),
            ("/attach <file>", "Attach an image to the next message"),
            ("/edit <path>", "Open a project file in the editor buffer"),
            ("/select <start> <end>", "Select lines of the open file"),
            ("/history", "Show the raw conversation history"),
            ("/condense", "Summarize the conversation into a new session"),
            ("/clear", "Clear the conversation"),
            ("/quit", "Exit"),
        ]

        for cmd, desc in commands:
            table.add_row(escape(cmd), desc)

        console.print(table)
        console.print("[dim]Press Ctrl-C while the assistant is working to cancel.[/dim]")

    async def _cmd_open(self, args: list[str]) -> None:
        if not args:
            console.print("[red]Usage: /open <dir>[/red]")
            return
        root = await self.app.open_workspace(args[0])
        console.print(f"[green]Opened project folder {escape(str(root))}[/green]")

    async def _cmd_forget(self, args: list[str]) -> None:
        await self.app.forget_workspace()
        console.print("[dim]Project folder closed[/dim]")

    async def _cmd_tree(self, args: list[str]) -> None:
        tree = await self.app.workspace.list_tree(args[0] if args else "")
        console.print(format_tree(tree), markup=False, highlight=False, end="")

    async def _cmd_keys(self, args: list[str]) -> None:
        """Show how many keys are loaded, or replace them."""
        if not args:
            pool = self.app.turn_loop.credentials
            console.print(f"{len(pool)} API key(s) loaded")
            return
        await self.app.save_keys(args)
        console.print(f"[green]Saved {len(args)} API key(s)[/green]")

    async def _cmd_mode(self, args: list[str]) -> None:
        if not args:
            console.print(f"Mode: [bold]{self.app.turn_loop.mode}[/bold] ({', '.join(MODES)})")
            return
        self.app.turn_loop.set_mode(args[0].lower())
        console.print(f"[green]Switched to {args[0].lower()} mode; a new session will start[/green]")

    async def _cmd_model(self, args: list[str]) -> None:
        if not args:
            console.print(f"Model: [bold]{escape(self.app.turn_loop.model)}[/bold]")
            return
        self.app.turn_loop.set_model(args[0])
        console.print(f"[green]Switched to {escape(args[0])}; a new session will start[/green]")

    async def _cmd_attach(self, args: list[str]) -> None:
        if not args:
            if self.app.attachment is None:
                console.print("[dim]Nothing attached. Usage: /attach <file>[/dim]")
            else:
                console.print(f"Attached: {escape(self.app.attachment.name)}")
            return
        self.app.attachment = Attachment.from_path(args[0])
        console.print(f"[green]Attached {escape(self.app.attachment.name)} to the next message[/green]")

    async def _cmd_edit(self, args: list[str]) -> None:
        if not args:
            active = self.app.editor.active_file()
            if active is None:
                console.print("[dim]No file open. Usage: /edit <path>[/dim]")
            else:
                console.print(active[1], markup=False, highlight=False)
            return
        path = "/".join(self.app.workspace.split(args[0]))
        content = await self.app.workspace.read(path)
        self.app.editor.open(path, content)
        console.print(f"[green]Opened {escape(path)} ({content.count(chr(10)) + 1} lines)[/green]")

    async def _cmd_select(self, args: list[str]) -> None:
        if len(args) != 2:
            console.print("[red]Usage: /select <start line> <end line>[/red]")
            return
        selection = self.app.editor.select_lines(int(args[0]), int(args[1]))
        text = self.app.editor.get_value_in_range(selection)
        console.print(f"[dim]Selected {len(text)} characters[/dim]")

    async def _cmd_history(self, args: list[str]) -> None:
        console.print_json(self.app.turn_loop.view_history())

    async def _cmd_condense(self, args: list[str]) -> None:
        console.print("[dim]Condensing history... This will start a new session.[/dim]")
        summary = await self.app.turn_loop.condense_history()
        if summary is None:
            console.print("[dim]History is already empty.[/dim]")
            return
        console.print("[dim]Original conversation history has been condensed.[/dim]")
        console.print(Markdown(summary))

    async def _cmd_clear(self, args: list[str]) -> None:
        self.app.turn_loop.clear_history()
        console.clear()
        console.print("[dim]Conversation history cleared.[/dim]")

    async def _cmd_quit(self, args: list[str]) -> None:
        """Exit the REPL."""
        console.print("[dim]Exiting...[/dim]")
