"""
Manifest Builder - digest every discovered asset into one Manifest
"""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

import anyio
from anyio.abc import TaskGroup

from content_server.core.config import DEFAULT_MAX_CONCURRENCY
from content_server.schemas.manifest import Manifest, ManifestEntry
from content_server.services.discovery_service import discover_assets
from content_server.services.integrity_service import digest_file

logger = logging.getLogger("content_server.manifest")


class ManifestBuildError(Exception):
    """A build could not produce a complete manifest."""


async def build_manifest(
    root: Path,
    extensions: Iterable[str],
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> Manifest:
    """
    Scan `root` and digest every allow-listed asset, at most
    `max_concurrency` files at a time.

    The first failing file aborts the build: pending files are cancelled and
    nothing digested so far is returned. Publishing the result is up to the
    caller.

    Raises:
        ManifestBuildError: wrapping the first OSError hit during the build
    """
    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")

    generated_at = datetime.now(timezone.utc)
    started = time.monotonic()
    root = Path(root).resolve()
    logger.info("generating manifest from %s", root)

    try:
        assets = await anyio.to_thread.run_sync(discover_assets, root, list(extensions))
    except OSError as e:
        raise ManifestBuildError(f"failed to scan content root '{root}': {e}") from e

    limiter = anyio.CapacityLimiter(max_concurrency)
    entries: List[ManifestEntry] = []
    failures: List[tuple] = []

    async def _process(file_path: Path, tg: TaskGroup) -> None:
        logger.debug("processing %s", file_path)
        try:
            entries.append(await digest_file(file_path, root, limiter))
        except OSError as e:
            failures.append((file_path, e))
            tg.cancel_scope.cancel()

    async with anyio.create_task_group() as tg:
        for file_path in assets:
            tg.start_soon(_process, file_path, tg)

    if failures:
        file_path, error = failures[0]
        raise ManifestBuildError(f"failed to digest '{file_path}': {error}") from error

    entries.sort(key=lambda entry: entry.name)
    manifest = Manifest(entries=tuple(entries), generated_at=generated_at)
    logger.info(
        "generated manifest (%d entries) in %.3f seconds",
        len(manifest), time.monotonic() - started,
    )
    return manifest
