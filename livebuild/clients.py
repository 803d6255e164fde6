"""Live client registry and reload broadcast."""

from __future__ import annotations

import logging

log = logging.getLogger(__name__)

RELOAD_MESSAGE = "reload"


class ClientRegistry:
    """Open live-reload connections.

    Mutated only by the server's socket lifecycle and read by the
    broadcaster; both run on the event loop thread.
    """

    def __init__(self):
        self._clients = set()

    def add(self, client):
        self._clients.add(client)
        log.info("New WebSocket client connected. Total clients: %d", len(self))

    def discard(self, client):
        if client not in self._clients:
            return
        self._clients.discard(client)
        log.info("WebSocket client disconnected. Remaining clients: %d", len(self))

    def snapshot(self) -> list:
        return list(self._clients)

    def clear(self):
        self._clients.clear()

    def __contains__(self, client) -> bool:
        return client in self._clients

    def __iter__(self):
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._clients)


class ReloadBroadcaster:
    def __init__(self, registry: ClientRegistry):
        self.registry = registry

    def notify(self) -> int:
        """Send the reload directive to every client. Return send attempts."""
        clients = self.registry.snapshot()
        log.info("Notifying %d connected clients to reload...", len(clients))
        attempts = 0
        for client in clients:
            attempts += 1
            try:
                client.send(RELOAD_MESSAGE)
            except Exception as exc:
                log.warning("Could not send reload to %r: %s", client, exc)
        return attempts
