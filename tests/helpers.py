from __future__ import annotations

import asyncio
import time
from pathlib import Path

from livebuild.paths import DevConfig

SCSS = """$gap: 4px;

body {
  margin: $gap * 2;
}
"""


def component_source(markup: str) -> str:
    return f'def App():\n    return "{markup}"\n'


def make_project(root: Path, markup: str = "<h1>Hi</h1>") -> DevConfig:
    """Lay out src/main.scss and src/main.py under root."""
    config = DevConfig.from_root(root, debounce=0.01)
    config.src_dir.mkdir(parents=True, exist_ok=True)
    config.style_entry.write_text(SCSS)
    config.component_entry.write_text(component_source(markup))
    return config


async def wait_until(predicate, timeout: float = 3.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


class FakeClient:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages: list[str] = []

    def send(self, message: str):
        if self.fail:
            raise ConnectionResetError("gone")
        self.messages.append(message)
