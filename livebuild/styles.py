"""Style stage: SCSS -> utility-class transform -> main.css."""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path

import sass

from livebuild.artifacts import Artifact, ArtifactStore
from livebuild.errors import BuildError, CompileError
from livebuild.paths import DevConfig

log = logging.getLogger(__name__)

TAILWIND_PREAMBLE = '@import "tailwindcss";\n'


class PassthroughTransform:
    """Leave the preprocessed stylesheet as-is."""

    preamble = ""

    def __call__(self, css: str, *, source: Path, target: Path) -> str:
        return css


class TailwindTransform:
    """Run the Tailwind CLI over the preamble plus the preprocessed stylesheet."""

    preamble = TAILWIND_PREAMBLE

    def __init__(self, executable: str, cwd: Path):
        self.executable = executable
        self.cwd = cwd

    def __call__(self, css: str, *, source: Path, target: Path) -> str:
        with tempfile.TemporaryDirectory(prefix="livebuild-") as tmp:
            input_path = Path(tmp) / source.with_suffix(".css").name
            output_path = Path(tmp) / target.name
            input_path.write_text(css, encoding="utf-8")
            cmd = [self.executable, "-i", str(input_path), "-o", str(output_path)]
            try:
                result = subprocess.run(
                    cmd, capture_output=True, text=True, cwd=self.cwd
                )
            except OSError as exc:
                raise CompileError(f"Could not run {self.executable}: {exc}") from exc
            if result.returncode != 0:
                raise CompileError(f"Tailwind failed: {result.stderr.strip()}")
            return output_path.read_text(encoding="utf-8")


def get_transform(config: DevConfig):
    if config.tailwind_bin:
        return TailwindTransform(config.tailwind_bin, config.root)
    return PassthroughTransform()


def preprocess(entry: Path) -> str:
    """Compile the SCSS entry file into plain CSS."""
    try:
        return sass.compile(
            filename=str(entry),
            output_style="expanded",
            include_paths=[str(entry.parent)],
        )
    except sass.CompileError as exc:
        raise CompileError(f"SCSS error in {entry}: {exc}") from exc
    except OSError as exc:
        raise CompileError(f"Could not read {entry}: {exc}") from exc


def compile_styles(entry: Path, target: Path, transform) -> str:
    css = preprocess(entry)
    try:
        return transform(transform.preamble + css, source=entry, target=target)
    except CompileError:
        raise
    except Exception as exc:
        raise CompileError(f"Style transform failed for {entry}: {exc}") from exc


def build_styles(config: DevConfig, store: ArtifactStore, transform=None) -> bool:
    """Run the style stage. Return True if main.css was rewritten."""
    transform = transform or get_transform(config)
    target = store.path(Artifact.STYLESHEET)
    log.info("Compiling SASS and utility CSS...")
    try:
        css = compile_styles(config.style_entry, target, transform)
        path = store.write(Artifact.STYLESHEET, css)
    except BuildError as exc:
        log.error("Error compiling styles: %s", exc)
        return False
    log.info("CSS compiled and saved to %s", path)
    return True
