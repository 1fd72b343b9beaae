"""Session layer: credentials, state store and turn-loop protocols.

The turn loop itself lives in workbench.session.turn_loop; it depends on
the tool dispatcher, which in turn uses the state store defined here.
"""

from workbench.session.credentials import CredentialPool
from workbench.session.protocols import (
    Attachment,
    ChatMessage,
    SessionUpdate,
    TurnState,
    UpdateKind,
)
from workbench.session.storage import (
    API_KEYS,
    CODE_INDEX,
    WORKSPACE_ROOT,
    MemoryStateStore,
    StateStore,
    YamlStateStore,
)

__all__ = [
    "CredentialPool",
    "Attachment",
    "ChatMessage",
    "SessionUpdate",
    "TurnState",
    "UpdateKind",
    "API_KEYS",
    "CODE_INDEX",
    "WORKSPACE_ROOT",
    "MemoryStateStore",
    "StateStore",
    "YamlStateStore",
]
