"""Wiring of the workspace, tools and turn loop for the interactive CLI."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from workbench.collaborators.editor import BufferEditorView, NullTreeView
from workbench.collaborators.formatter import PrettierFormatter
from workbench.config.schema import Config
from workbench.config.secrets import load_api_keys, parse_api_keys
from workbench.core.llm.litellm_provider import create_session
from workbench.core.llm.provider import SessionFactory
from workbench.errors import NotFoundError
from workbench.logging import get_logger
from workbench.session.credentials import CredentialPool
from workbench.session.protocols import Attachment
from workbench.session.storage import API_KEYS, WORKSPACE_ROOT, StateStore, YamlStateStore
from workbench.session.turn_loop import TurnLoop
from workbench.terminal.runner import SubprocessCommandRunner
from workbench.tools.dispatcher import ToolDispatcher
from workbench.workspace.adapter import Workspace

log = get_logger("cli")


@dataclass
class App:
    """Everything one interactive session needs."""

    config: Config
    store: StateStore
    workspace: Workspace
    editor: BufferEditorView
    dispatcher: ToolDispatcher
    turn_loop: TurnLoop
    attachment: Attachment | None = None

    async def open_workspace(self, root: str | Path) -> Path:
        path = self.workspace.establish(root)
        await self.store.put(WORKSPACE_ROOT, str(path))
        return path

    async def forget_workspace(self) -> None:
        self.workspace.clear()
        await self.store.delete(WORKSPACE_ROOT)

    async def save_keys(self, keys: list[str]) -> None:
        await self.store.put(API_KEYS, "\n".join(keys))
        self.turn_loop.reload_credentials(keys)


async def create_app(
    config: Config,
    *,
    store: StateStore | None = None,
    session_factory: SessionFactory = create_session,
) -> App:
    """Build the app and restore saved keys and workspace root."""
    store = store or YamlStateStore(config.state.path)

    keys = parse_api_keys(await store.get(API_KEYS)) or load_api_keys()
    credentials = CredentialPool(keys)
    log.debug("Loaded %d API key(s)", len(credentials))

    workspace = Workspace(ignore_dirs=config.workspace.ignore_dirs)
    editor = BufferEditorView()
    dispatcher = ToolDispatcher(
        workspace,
        store,
        editor=editor,
        tree_view=NullTreeView(),
        formatter=PrettierFormatter(config.tools.formatter_command, timeout=config.tools.command_timeout),
        command_runner=SubprocessCommandRunner(
            workspace=workspace,
            timeout=config.tools.command_timeout,
            output_limit=config.tools.output_limit,
        ),
        index_extensions=config.workspace.index_extensions,
    )
    turn_loop = TurnLoop(dispatcher, credentials, config=config, session_factory=session_factory)
    app = App(config, store, workspace, editor, dispatcher, turn_loop)

    root = config.workspace.root or await store.get(WORKSPACE_ROOT)
    if root:
        try:
            await app.open_workspace(root)
        except NotFoundError:
            log.warning("Saved project folder %s no longer exists", root)
    return app
