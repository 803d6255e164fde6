"""Versioned loading of the component entry module.

Every load runs the current source file into a brand new namespace with
``runpy.run_path``, so a rebuild can never render code from an earlier version
of the file. Nothing is read from ``__pycache__`` and the temporary module is
not left in ``sys.modules``.
"""

from __future__ import annotations

import hashlib
import runpy
import sys
from dataclasses import dataclass
from pathlib import Path

from markupsafe import Markup

from livebuild.errors import RenderError


@dataclass(frozen=True)
class LoadedComponent:
    path: Path
    generation: int
    digest: str
    namespace: dict
    component: object


def evict_modules(src_dir: Path) -> list[str]:
    """Drop cached modules whose file lives under src_dir."""
    src_dir = src_dir.resolve()
    evicted = []
    for name, module in list(sys.modules.items()):
        filename = getattr(module, "__file__", None)
        if not filename:
            continue
        try:
            Path(filename).resolve().relative_to(src_dir)
        except (ValueError, OSError):
            continue
        del sys.modules[name]
        evicted.append(name)
    return evicted


class ComponentLoader:
    """Load an entry module by generation counter and content hash."""

    def __init__(self, src_dir: Path, component_name: str = "App"):
        self.src_dir = src_dir
        self.component_name = component_name
        self.generation = 0

    def load(self, path: Path) -> LoadedComponent:
        try:
            source = path.read_bytes()
        except OSError as exc:
            raise RenderError(f"Could not read {path}: {exc}") from exc

        self.generation += 1
        digest = hashlib.sha256(source).hexdigest()
        name = f"_livebuild_{path.stem}_{self.generation}_{digest[:12]}"

        evict_modules(self.src_dir)
        try:
            namespace = runpy.run_path(str(path), run_name=name)
        except Exception as exc:
            raise RenderError(f"Could not load {path}: {exc}") from exc

        component = namespace.get(self.component_name)
        if component is None:
            raise RenderError(f"{path} does not define {self.component_name}")
        return LoadedComponent(path, self.generation, digest, namespace, component)


def render_to_string(component) -> Markup:
    """Render a component (callable returning markup) to an HTML string."""
    try:
        result = component() if callable(component) else component
    except Exception as exc:
        raise RenderError(f"Component raised during render: {exc}") from exc
    if result is None:
        return Markup("")
    if hasattr(result, "__html__"):
        return Markup(result.__html__())
    return Markup(str(result))
