"""API credential pool with rotation.

The pool hands out the credential at the rotation cursor and remembers
which credentials were drawn during the current rotation cycle. A cycle
spans one user message: the turn loop calls reset_cycle() once at the
start of every outer request and never while retrying.
"""

from __future__ import annotations

from collections.abc import Iterable

from workbench.errors import NoCredentialError


class CredentialPool:
    """Ordered credentials, a rotation cursor and the tried-set of this cycle."""

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._keys: list[str] = []
        self._cursor = 0
        self._tried: set[str] = set()
        self.load(keys)

    def load(self, keys: Iterable[str]) -> None:
        """Replace the credentials; resets the cursor and the cycle."""
        self._keys = [k.strip() for k in keys if k and k.strip()]
        self._cursor = 0
        self._tried.clear()

    @property
    def keys(self) -> list[str]:
        return list(self._keys)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def tried(self) -> frozenset[str]:
        return frozenset(self._tried)

    def __len__(self) -> int:
        return len(self._keys)

    def current(self) -> str:
        """Return the credential at the cursor and mark it tried.

        Raises:
            NoCredentialError: If the pool is empty.
        """
        if not self._keys:
            raise NoCredentialError()
        key = self._keys[self._cursor]
        self._tried.add(key)
        return key

    def rotate(self) -> None:
        """Advance the cursor, wrapping around. No-op on an empty pool."""
        if self._keys:
            self._cursor = (self._cursor + 1) % len(self._keys)

    def exhausted(self) -> bool:
        """True once every distinct credential was drawn in this cycle.

        An empty pool is always exhausted: there is nothing left to try.
        The turn loop never asks in that case, because current() raises
        NoCredentialError before any request is made.
        """
        return self._tried.issuperset(self._keys)

    def reset_cycle(self) -> None:
        """Forget which credentials were tried. Called once per user message."""
        self._tried.clear()

    def __repr__(self) -> str:
        return f"<CredentialPool keys={len(self._keys)} cursor={self._cursor} tried={len(self._tried)}>"
