"""
Manifest Service - build manifests and publish them to the store
"""

import logging

import anyio

from content_server.core.config import ServerSettings
from content_server.schemas.manifest import Manifest
from content_server.services.manifest_builder import ManifestBuildError, build_manifest
from content_server.services.manifest_store import ManifestStore

logger = logging.getLogger("content_server.manifest")


class ManifestService:
    """
    Publishes fresh manifests. Rebuilds are serialized: a rebuild requested
    while another is running waits for it, then runs on its own.
    """

    def __init__(self, settings: ServerSettings, store: ManifestStore):
        self.settings = settings
        self.store = store
        self._lock = anyio.Lock()

    @property
    def is_building(self) -> bool:
        return self._lock.locked()

    async def rebuild(self) -> Manifest:
        """
        Build a manifest from the content root and publish it.

        On failure the published manifest is left as it was and the error
        is re-raised.
        """
        async with self._lock:
            try:
                manifest = await build_manifest(
                    self.settings.root,
                    self.settings.valid_assets,
                    self.settings.max_concurrency,
                )
            except ManifestBuildError as e:
                if self.store.is_ready:
                    logger.error("manifest build failed, keeping the previous manifest: %s", e)
                else:
                    logger.error("manifest build failed: %s", e)
                raise
            self.store.publish(manifest)
            logger.info("published manifest generated at %s", manifest.generated_at.isoformat())
            return manifest

    async def run_periodic(self, interval: float) -> None:
        """Rebuild every `interval` seconds until cancelled."""
        while True:
            await anyio.sleep(interval)
            try:
                await self.rebuild()
            except ManifestBuildError:
                # Already logged, the stale manifest keeps serving
                continue
