"""HTTP and live-reload WebSocket server.

The server only reads from the artifact store and the source tree. Its one
mutation is adding and removing live clients in the registry.
"""

from __future__ import annotations

import logging
import os
import re

import tornado.web
import tornado.websocket

from livebuild.artifacts import CONTENT_TYPES, Artifact, ArtifactStore
from livebuild.clients import ClientRegistry
from livebuild.errors import ArtifactError, TransportError, UpgradeError
from livebuild.paths import DevConfig

log = logging.getLogger(__name__)

MODULE_CONTENT_TYPE = "application/javascript; charset=utf-8"


class FileOnlyMixin:
    """No-cache static files; directories are reported as missing."""

    def set_extra_headers(self, path):
        self.set_header("Cache-Control", "no-cache")

    def validate_absolute_path(self, root, absolute_path):
        if os.path.isdir(absolute_path):
            raise tornado.web.HTTPError(404)
        return super().validate_absolute_path(root, absolute_path)


class LiveReloadSocket(tornado.websocket.WebSocketHandler):
    """One browser subscribed to reload notifications."""

    def initialize(self, registry: ClientRegistry):
        self.registry = registry

    def check_upgrade(self):
        upgrade = self.request.headers.get("Upgrade", "")
        if upgrade.lower() != "websocket":
            raise UpgradeError(f"Expected a WebSocket upgrade, got {upgrade!r}")

    def prepare(self):
        try:
            self.check_upgrade()
        except UpgradeError as exc:
            log.warning("WebSocket upgrade failed: %s", exc)
            raise tornado.web.HTTPError(400, reason="WebSocket upgrade failed") from exc

    def open(self):
        self.registry.add(self)

    def on_message(self, message):
        log.info("Received message from client: %s", message)

    def on_close(self):
        self.registry.discard(self)

    def send(self, message: str):
        try:
            future = self.write_message(message)
        except tornado.websocket.WebSocketClosedError as exc:
            raise TransportError(f"Client connection closed: {exc}") from exc
        future.add_done_callback(self._check_sent)

    def _check_sent(self, future):
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            log.warning("Reload delivery failed: %s", exc)

    def __repr__(self):
        return f"<LiveReloadSocket {self.request.remote_ip}>"


class ArtifactHandler(tornado.web.RequestHandler):
    """Serve one build artifact from the store, read whole per request."""

    def initialize(self, store: ArtifactStore, artifact: Artifact):
        self.store = store
        self.artifact = artifact

    def get(self):
        try:
            payload = self.store.read(self.artifact)
        except ArtifactError as exc:
            log.warning("%s", exc)
            raise tornado.web.HTTPError(404) from exc
        self.set_header("Content-Type", CONTENT_TYPES[self.artifact])
        self.set_header("Cache-Control", "no-cache")
        self.write(payload)


class SourceModuleHandler(FileOnlyMixin, tornado.web.StaticFileHandler):
    """Unbundled source modules imported by the hydration script."""

    def get_content_type(self):
        return MODULE_CONTENT_TYPE


class OutputFileHandler(FileOnlyMixin, tornado.web.StaticFileHandler):
    """Anything else that happens to exist in the output directory."""


def make_app(
    config: DevConfig, store: ArtifactStore, registry: ClientRegistry
) -> tornado.web.Application:
    def artifact(pattern, kind):
        return (pattern, ArtifactHandler, {"store": store, "artifact": kind})

    prefix = re.escape(config.source_prefix)
    return tornado.web.Application(
        [
            (re.escape(config.reload_path), LiveReloadSocket, {"registry": registry}),
            artifact(r"/", Artifact.PAGE),
            artifact("/" + re.escape(config.page_name), Artifact.PAGE),
            artifact("/" + re.escape(config.stylesheet_name), Artifact.STYLESHEET),
            artifact("/" + re.escape(config.hydration_name), Artifact.HYDRATION_SCRIPT),
            (prefix + r"(.+)", SourceModuleHandler, {"path": str(config.src_dir)}),
            (r"/(.+)", OutputFileHandler, {"path": str(config.dist_dir)}),
        ]
    )
