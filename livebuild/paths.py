from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

ROOT = Path.cwd()
PORT = 3000
HOST = "localhost"
RELOAD_PATH = "/ws"
SOURCE_PREFIX = "/src/"
MOUNT_ID = "root"
RECONNECT_DELAY_MS = 2000
DEBOUNCE_SECONDS = 0.05
PAGE_TITLE = "SSR Dev App"
CLIENT_RENDERER = "https://esm.sh/preact"
TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

STYLE_EXTENSIONS = (".scss", ".sass")
COMPONENT_EXTENSIONS = (".py",)


@dataclass(frozen=True)
class DevConfig:
    """Source/output layout and server settings for one project root."""

    root: Path
    src_dir: Path
    dist_dir: Path
    style_entry: Path
    component_entry: Path
    stylesheet_name: str = "main.css"
    page_name: str = "index.html"
    hydration_name: str = "client.js"
    component_name: str = "App"
    host: str = HOST
    port: int = PORT
    reload_path: str = RELOAD_PATH
    source_prefix: str = SOURCE_PREFIX
    mount_id: str = MOUNT_ID
    reconnect_delay_ms: int = RECONNECT_DELAY_MS
    debounce: float = DEBOUNCE_SECONDS
    page_title: str = PAGE_TITLE
    client_renderer: str = CLIENT_RENDERER
    tailwind_bin: str | None = None

    @classmethod
    def from_root(cls, root: Path = ROOT, **overrides) -> "DevConfig":
        root = Path(root).resolve()
        src_dir = root / "src"
        config = cls(
            root=root,
            src_dir=src_dir,
            dist_dir=root / "dist",
            style_entry=src_dir / "main.scss",
            component_entry=src_dir / "main.py",
        )
        return replace(config, **overrides)

    @property
    def stylesheet_path(self) -> Path:
        return self.dist_dir / self.stylesheet_name

    @property
    def page_path(self) -> Path:
        return self.dist_dir / self.page_name

    @property
    def hydration_path(self) -> Path:
        return self.dist_dir / self.hydration_name

    @property
    def component_url(self) -> str:
        """URL the browser uses to import the component entry."""
        rel = self.component_entry.relative_to(self.src_dir).as_posix()
        return self.source_prefix + rel
