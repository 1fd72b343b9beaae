"""Interactive chat REPL."""

from __future__ import annotations

import asyncio
import contextlib
import json
import signal
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.markup import escape

from workbench import __version__
from workbench.cli.commands import CommandHandler
from workbench.session.protocols import SessionUpdate, UpdateKind

if TYPE_CHECKING:
    from pathlib import Path

    from workbench.cli.app import App

console = Console()


class UpdateRenderer:
    """Renders turn-loop updates: streamed Markdown, tool activity, notices."""

    def __init__(self, out: Console) -> None:
        self._console = out
        self._live: Live | None = None
        self._text = ""

    def _stop(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None
        self._text = ""

    def render(self, update: SessionUpdate) -> None:
        payload = update.payload
        match update.kind:
            case UpdateKind.RESPONSE_CHUNK:
                self._text += payload["text"]
                if self._live is None:
                    self._live = Live(Markdown(self._text), console=self._console, refresh_per_second=8)
                    self._live.start()
                else:
                    self._live.update(Markdown(self._text))
            case UpdateKind.ASSISTANT_MESSAGE:
                streamed = self._live is not None
                self._stop()
                if payload.get("notice"):
                    self._console.print(f"[yellow]{escape(payload['text'])}[/yellow]")
                elif not streamed:
                    self._console.print(Markdown(payload["text"]))
            case UpdateKind.TOOL_CALLS:
                self._stop()
                self._console.print(f"[dim]{escape(payload['message'])}[/dim]")
                for call in payload["calls"]:
                    args = json.dumps(call["arguments"], ensure_ascii=False)
                    if len(args) > 80:
                        args = args[:77] + "..."
                    self._console.print(f"  [cyan]{escape(call['name'])}[/cyan] [dim]{escape(args)}[/dim]")
            case UpdateKind.TOOL_RESULT:
                if payload["status"] == "Success":
                    self._console.print(f"  [green]✔[/green] {escape(payload['name'])}")
                else:
                    message = payload["response"].get("message", "")
                    self._console.print(f"  [red]✖[/red] {escape(payload['name'])}: {escape(message)}")
            case UpdateKind.ERROR:
                self._stop()
                self._console.print(f"[red]{escape(payload['message'])}[/red]")
            case UpdateKind.CANCELLED | UpdateKind.DONE:
                self._stop()
            case _:
                pass


class ChatRepl:
    """Chat REPL with slash commands."""

    def __init__(self, app: App, history_file: Path | None = None) -> None:
        self.app = app
        self.commands = CommandHandler(app)
        self.renderer = UpdateRenderer(console)
        self._running = False

        history = FileHistory(str(history_file)) if history_file else None
        self.session: PromptSession[str] = PromptSession(
            history=history,
            auto_suggest=AutoSuggestFromHistory(),
        )

    def _prompt_text(self) -> str:
        name = self.app.workspace.name
        return f"{name} [{self.app.turn_loop.mode}]> " if name else f"[{self.app.turn_loop.mode}]> "

    async def run(self) -> None:
        """Run the interactive REPL."""
        self._running = True

        console.print(f"[bold]Workbench[/bold] v{__version__} - {escape(self.app.turn_loop.model)}")
        if self.app.workspace.root is not None:
            console.print(f"Project folder: {escape(str(self.app.workspace.root))}")
        else:
            console.print("[dim]No project folder open. Use /open <dir>.[/dim]")
        console.print("Type [bold]/help[/bold] for commands, [bold]/quit[/bold] to exit.\n")

        while self._running:
            try:
                prompt = self._prompt_text()
                line = await asyncio.get_event_loop().run_in_executor(
                    None,
                    lambda: self.session.prompt(prompt),
                )

                line = line.strip()
                if not line:
                    continue

                if line.startswith("/"):
                    await self.commands.handle(line)
                    if line.split()[0].lower() == "/quit":
                        break
                else:
                    await self.send(line)

            except KeyboardInterrupt:
                continue
            except EOFError:
                break

        self._running = False

    async def send(self, text: str) -> None:
        """Send a message, rendering updates until done. Ctrl-C cancels."""
        attachment, self.app.attachment = self.app.attachment, None
        loop = asyncio.get_running_loop()
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signal.SIGINT, self.app.turn_loop.cancel)
        try:
            async for update in self.app.turn_loop.send(text, attachment):
                self.renderer.render(update)
        finally:
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(signal.SIGINT)

    def stop(self) -> None:
        """Stop the REPL."""
        self._running = False
