"""Application context management for the CLI."""

from __future__ import annotations

from dataclasses import dataclass

from pgterm.cli.common.exits import die, exit_from_exc
from pgterm.core.cancel import CancelToken
from pgterm.core.config import DEFAULT_CONNECTION_NAME, Settings, load_settings
from pgterm.core.errors import DatabaseConnectionError
from pgterm.core.registry import Connection, ConnectionRegistry
from pgterm.core.views import ViewCache


@dataclass
class BrowseAppContext:
    """Application context holding settings, the connection registry and view cache."""

    settings: Settings
    registry: ConnectionRegistry
    views: ViewCache
    timeout: float | None = None

    def token(self) -> CancelToken:
        """Return a fresh cancel token for one navigation action."""
        return CancelToken(timeout=self.timeout)

    def resolve_name(self, name: str | None) -> str:
        """
        Pick the connection to use.

        An explicit name must be configured. Without one, a single configured
        connection is used as-is, then the `generic` default.
        """
        configured = self.settings.connections
        if not configured:
            die(
                "No connections configured. Set $PG_URL, pass --connection name=url "
                "or add them to the config file.",
                code=2,
            )
        if name:
            if name not in configured:
                die(f"Unknown connection '{name}'. Configured: {', '.join(configured)}", code=2)
            return name
        if len(configured) == 1:
            return next(iter(configured))
        if DEFAULT_CONNECTION_NAME in configured:
            return DEFAULT_CONNECTION_NAME
        die("Several connections configured; pick one with --db.", code=2)

    def open_connection(self, name: str) -> Connection:
        """
        Return the open handle for `name`, connecting on first use.

        Raises:
            DatabaseConnectionError: If the handle cannot be established. A
                failed connect registers nothing, so a later call retries.
        """
        if name in self.registry:
            return self.registry.lookup(name)
        return self.registry.register(name, self.settings.connections[name])

    def connection(self, name: str) -> Connection:
        """Like `open_connection`, but exit the command when connecting fails."""
        try:
            return self.open_connection(name)
        except DatabaseConnectionError as exc:
            exit_from_exc(exc, code=1)


def build_browse_context(
    connection_specs: list[str],
    *,
    batch_size: int | None = None,
    timeout: float | None = None,
) -> BrowseAppContext:
    """Build and return the application context from config, env and CLI values.

    Args:
        connection_specs: `name=url` values from --connection.
        batch_size: Optional --batch-size override.
        timeout: Optional per-query deadline in seconds.

    Returns:
        BrowseAppContext: Context with an empty registry and view cache.
    """
    try:
        settings = load_settings(connection_specs=connection_specs, batch_size=batch_size)
    except ValueError as exc:
        exit_from_exc(exc, code=2)
    if timeout is not None and timeout <= 0:
        die("--timeout must be > 0.", code=2)

    registry = ConnectionRegistry()
    views = ViewCache(registry, batch_size=settings.batch_size)
    return BrowseAppContext(
        settings=settings, registry=registry, views=views, timeout=timeout
    )
