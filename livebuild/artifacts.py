from __future__ import annotations

import enum
import os
import shutil
import tempfile
from pathlib import Path

from livebuild.errors import ArtifactError
from livebuild.paths import DevConfig


class Artifact(enum.Enum):
    STYLESHEET = "stylesheet"
    PAGE = "page"
    HYDRATION_SCRIPT = "hydration_script"


CONTENT_TYPES = {
    Artifact.STYLESHEET: "text/css; charset=utf-8",
    Artifact.PAGE: "text/html; charset=utf-8",
    Artifact.HYDRATION_SCRIPT: "application/javascript; charset=utf-8",
}

ARTIFACT_MODE = 0o644


def write_atomic(path: Path, payload: bytes):
    """Write payload to a sibling temp file, then rename it over path."""
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
        os.chmod(tmp_name, ARTIFACT_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class ArtifactStore:
    """The output directory, shared by the pipeline (writer) and server (reader)."""

    def __init__(self, config: DevConfig):
        self.root = config.dist_dir
        self.paths = {
            Artifact.STYLESHEET: config.stylesheet_path,
            Artifact.PAGE: config.page_path,
            Artifact.HYDRATION_SCRIPT: config.hydration_path,
        }

    def ensure(self):
        self.root.mkdir(parents=True, exist_ok=True)

    def path(self, artifact: Artifact) -> Path:
        return self.paths[artifact]

    def write(self, artifact: Artifact, payload: str | bytes) -> Path:
        """Replace an artifact in one step. Raise ArtifactError on failure."""
        path = self.paths[artifact]
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            write_atomic(path, payload)
        except OSError as exc:
            raise ArtifactError(f"Could not write {path}: {exc}") from exc
        return path

    def read(self, artifact: Artifact) -> bytes:
        path = self.paths[artifact]
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ArtifactError(f"Could not read {path}: {exc}") from exc

    def exists(self, artifact: Artifact) -> bool:
        return self.paths[artifact].is_file()

    def clean(self) -> bool:
        """Remove the output directory. Return True if anything was removed."""
        if not self.root.exists():
            return False
        shutil.rmtree(self.root)
        return True
