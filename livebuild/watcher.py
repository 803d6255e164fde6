"""Watch the source tree and coordinate rebuilds.

Filesystem changes are posted as messages to a single coordinator loop.
The coordinator coalesces bursts per stage, runs at most one build of each
stage at a time, and notifies live clients after each successful run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from watchfiles import Change, awatch

from livebuild.build import BuildPipeline, Stage, classify
from livebuild.clients import ReloadBroadcaster

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    path: Path
    kind: str


_CHANGE_KINDS = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}

_STAGE_LABELS = {Stage.STYLE: "SCSS", Stage.RENDER: "Component"}


class RebuildCoordinator:
    def __init__(
        self,
        pipeline: BuildPipeline,
        broadcaster: ReloadBroadcaster,
        debounce: float = 0.05,
    ):
        self.pipeline = pipeline
        self.broadcaster = broadcaster
        self.debounce = debounce
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self._timers: dict[Stage, asyncio.TimerHandle] = {}
        self._running: dict[Stage, asyncio.Task] = {}
        self._dirty: set[Stage] = set()
        self.completed_runs = 0

    def submit(self, event: ChangeEvent):
        self._queue.put_nowait(event)

    async def run(self):
        """Consume change messages until cancelled."""
        try:
            while True:
                event = await self._queue.get()
                try:
                    self._dispatch(event)
                finally:
                    self._queue.task_done()
        finally:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()

    def _dispatch(self, event: ChangeEvent):
        stage = classify(event.path)
        if stage is None:
            log.debug("Ignoring %s (%s)", event.path, event.kind)
            return
        log.info("%s file changed: %s", _STAGE_LABELS[stage], event.path.name)
        self._schedule(stage)

    def _schedule(self, stage: Stage):
        timer = self._timers.pop(stage, None)
        if timer is not None:
            timer.cancel()
        loop = asyncio.get_running_loop()
        self._timers[stage] = loop.call_later(self.debounce, self._fire, stage)

    def _fire(self, stage: Stage):
        self._timers.pop(stage, None)
        if stage in self._running:
            self._dirty.add(stage)
            return
        task = asyncio.ensure_future(self._rebuild(stage))
        task.add_done_callback(self._report)
        self._running[stage] = task

    @staticmethod
    def _report(task: asyncio.Task):
        if task.cancelled() or task.exception() is None:
            return
        log.error("Rebuild crashed", exc_info=task.exception())

    async def _rebuild(self, stage: Stage):
        loop = asyncio.get_running_loop()
        try:
            while True:
                self._dirty.discard(stage)
                ok = await loop.run_in_executor(None, self.pipeline.run_stage, stage)
                self.completed_runs += 1
                if ok:
                    self.broadcaster.notify()
                else:
                    log.warning("Skipping reload, %s stage failed", stage.value)
                if stage not in self._dirty:
                    break
        finally:
            self._running.pop(stage, None)

    @property
    def idle(self) -> bool:
        return self._queue.empty() and not self._timers and not self._running

    async def wait_idle(self):
        """Wait until no events are queued and no stage is pending or running."""
        while not self.idle:
            await self._queue.join()
            if self._running:
                await asyncio.wait(list(self._running.values()))
            elif self._timers:
                await asyncio.sleep(self.debounce)


class ChangeWatcher:
    """Recursive subscription to the source tree."""

    def __init__(self, src_dir: Path, coordinator: RebuildCoordinator):
        self.src_dir = src_dir
        self.coordinator = coordinator

    async def run(self, stop_event: asyncio.Event | None = None):
        log.info("File watchers set up for %s", self.src_dir)
        async for changes in awatch(
            self.src_dir, stop_event=stop_event, recursive=True
        ):
            for change, path in changes:
                kind = _CHANGE_KINDS.get(change, "modified")
                self.coordinator.submit(ChangeEvent(Path(path), kind))
