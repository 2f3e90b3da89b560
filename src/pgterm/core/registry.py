"""Process-wide registry of named database connections.

The registry is created once by the application and passed to whoever needs
a connection; it owns every handle's lifetime. There is no implicit
reconnection: a broken handle surfaces errors on its next query.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, Sequence

from pgterm.core.adapters.postgres import PostgresConnection, QueryResult
from pgterm.core.cancel import CancelToken
from pgterm.core.errors import DatabaseConnectionError, NotFoundError

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Interface of an open database handle used by the core."""

    name: str

    def query(
        self,
        statement: Any,
        params: Sequence[Any] = (),
        *,
        cancel: CancelToken | None = None,
    ) -> QueryResult:
        """Execute a statement and return column names plus rows."""
        ...

    def scalar(
        self,
        statement: Any,
        params: Sequence[Any] = (),
        *,
        cancel: CancelToken | None = None,
    ) -> Any:
        """Return the first column of the first row."""
        ...

    def close(self) -> None:
        """Release the handle."""
        ...


Connector = Callable[[str, str], Connection]


class ConnectionRegistry:
    """Map from connection name to one open handle."""

    def __init__(self, connect: Connector | None = None) -> None:
        self._connect = connect or PostgresConnection.connect
        self._connections: dict[str, Connection] = {}

    def register(self, name: str, url: str) -> Connection:
        """
        Open a handle to `url` and store it under `name`.

        Raises:
            DatabaseConnectionError: If `name` is already registered or the
                handle cannot be established.
        """
        if not name:
            raise DatabaseConnectionError("Connection name must not be empty.")
        if name in self._connections:
            raise DatabaseConnectionError(f"Connection '{name}' is already registered.")

        try:
            conn = self._connect(name, url)
        except DatabaseConnectionError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise DatabaseConnectionError(f"Could not connect '{name}': {exc}") from exc

        self._connections[name] = conn
        logger.debug("registered connection %s", name)
        return conn

    def lookup(self, name: str) -> Connection:
        """Return the handle registered under `name`."""
        try:
            return self._connections[name]
        except KeyError:
            raise NotFoundError(f"No connection named '{name}'.") from None

    def names(self) -> list[str]:
        """Registered names, in registration order."""
        return list(self._connections)

    def __contains__(self, name: object) -> bool:
        return name in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def close_all(self) -> None:
        """Close every handle and forget them."""
        while self._connections:
            name, conn = self._connections.popitem()
            try:
                conn.close()
            except Exception as exc:  # noqa: BLE001
                logger.warning("closing connection %s failed: %s", name, exc)

    def __enter__(self) -> ConnectionRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close_all()
