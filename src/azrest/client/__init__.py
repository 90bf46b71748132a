"""HTTP transport for azrest.

:class:`SyncClient` wraps :class:`httpx.Client` with bearer auth
injection, retry with exponential backoff, and a dry-run preview. It
implements the engine's :class:`~azrest.engine.invoke.Transport` protocol.

Example::

    from azrest.client import SyncClient

    with SyncClient(profile, auth_manager=manager) as client:
        invoker = CommandInvoker(store, client)
"""

from azrest.client.sync_client import SyncClient

__all__ = ["SyncClient"]
