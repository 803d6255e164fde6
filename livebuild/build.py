"""Build pipeline: the style and render stages behind one interface."""

from __future__ import annotations

import enum
import logging
from pathlib import Path

from livebuild.artifacts import ArtifactStore
from livebuild.paths import COMPONENT_EXTENSIONS, STYLE_EXTENSIONS, DevConfig
from livebuild.render import PageRenderer
from livebuild.styles import build_styles, get_transform

log = logging.getLogger(__name__)


class Stage(enum.Enum):
    STYLE = "style"
    RENDER = "render"


def classify(path: Path) -> Stage | None:
    """Pick the stage a changed file triggers, by extension."""
    suffix = Path(path).suffix.lower()
    if suffix in STYLE_EXTENSIONS:
        return Stage.STYLE
    if suffix in COMPONENT_EXTENSIONS:
        return Stage.RENDER
    return None


class BuildPipeline:
    def __init__(self, config: DevConfig, store: ArtifactStore, transform=None):
        self.config = config
        self.store = store
        self.transform = transform or get_transform(config)
        self.renderer = PageRenderer(config, store)

    def build_styles(self) -> bool:
        return build_styles(self.config, self.store, self.transform)

    def build_page(self) -> bool:
        return self.renderer.build()

    def run_stage(self, stage: Stage) -> bool:
        if stage is Stage.STYLE:
            return self.build_styles()
        return self.build_page()

    def build_all(self) -> bool:
        """Full build. Both stages always run; True only if both succeed."""
        self.store.ensure()
        styles_ok = self.build_styles()
        page_ok = self.build_page()
        if not (styles_ok and page_ok):
            log.error("Build failed")
            return False
        return True
