"""Error kinds raised by the build pipeline and the dev server."""

from __future__ import annotations


class LiveBuildError(Exception):
    """Base class for livebuild errors."""


class BuildError(LiveBuildError):
    """A stage failed; caught at the stage boundary."""


class CompileError(BuildError):
    """Style preprocessing or utility transform failed."""


class RenderError(BuildError):
    """Component module load or render failed."""


class ArtifactError(BuildError):
    """Artifact could not be written or read."""


class TransportError(LiveBuildError):
    """Sending to a single live client failed."""


class UpgradeError(LiveBuildError):
    """WebSocket handshake was refused."""
