"""Live reload dev server: initial build, watch src/, serve dist/."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.logging import RichHandler

from livebuild.artifacts import ArtifactStore
from livebuild.build import BuildPipeline
from livebuild.clients import ClientRegistry, ReloadBroadcaster
from livebuild.paths import HOST, PORT, ROOT, DevConfig
from livebuild.server import make_app
from livebuild.watcher import ChangeWatcher, RebuildCoordinator

log = logging.getLogger("livebuild")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Live reload dev server")
    parser.add_argument("--root", type=Path, default=ROOT, help="Project root")
    parser.add_argument("--host", default=HOST, help="Listen address")
    parser.add_argument("--port", type=int, default=PORT, help="Listen port")
    parser.add_argument("--tailwind", help="Path to the Tailwind CLI binary")
    parser.add_argument(
        "--build-only", action="store_true", help="Build once and exit"
    )
    parser.add_argument("--clean", action="store_true", help="Remove dist/")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logs")
    return parser.parse_args(argv)


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
    )


async def serve(config: DevConfig, pipeline: BuildPipeline) -> int:
    """Run server and watcher until cancelled. Return an exit status."""
    registry = ClientRegistry()
    coordinator = RebuildCoordinator(
        pipeline, ReloadBroadcaster(registry), debounce=config.debounce
    )
    app = make_app(config, pipeline.store, registry)
    try:
        server = app.listen(config.port, address=config.host)
    except OSError as exc:
        log.error("Failed to start development server: %s", exc)
        return 1
    log.info("Server started on port %d", config.port)

    stop_event = asyncio.Event()
    watcher = ChangeWatcher(config.src_dir, coordinator)
    tasks = [
        asyncio.ensure_future(coordinator.run()),
        asyncio.ensure_future(watcher.run(stop_event)),
    ]
    log.info("Development server running at http://localhost:%d", config.port)
    try:
        await asyncio.gather(*tasks)
    finally:
        stop_event.set()
        for task in tasks:
            task.cancel()
        server.stop()
        for client in registry.snapshot():
            client.close()
        registry.clear()
    return 0


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose)

    config = DevConfig.from_root(
        args.root, host=args.host, port=args.port, tailwind_bin=args.tailwind
    )
    store = ArtifactStore(config)

    if args.clean:
        if store.clean():
            log.info("Cleaned %s", config.dist_dir)
        return

    pipeline = BuildPipeline(config, store)
    log.info("Initial build...")
    if not pipeline.build_all():
        log.error("Initial build failed")
        sys.exit(1)
    if args.build_only:
        return

    try:
        status = asyncio.run(serve(config, pipeline))
    except KeyboardInterrupt:
        log.info("Stopped")
        return
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
