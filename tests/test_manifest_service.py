import shutil
from datetime import datetime, timezone

import anyio
import pytest

from content_server.schemas.manifest import Manifest
from content_server.services import manifest_service
from content_server.services.manifest_builder import ManifestBuildError
from content_server.services.manifest_service import ManifestService
from content_server.services.manifest_store import ManifestStore


@pytest.mark.anyio
async def test_rebuild_publishes(settings):
    store = ManifestStore()
    service = ManifestService(settings, store)

    manifest = await service.rebuild()

    assert store.current() is manifest
    assert "weapons/gun.pk3" in manifest.names


@pytest.mark.anyio
async def test_failed_rebuild_keeps_previous_manifest(settings, content_root):
    store = ManifestStore()
    service = ManifestService(settings, store)
    first = await service.rebuild()

    shutil.rmtree(content_root)
    with pytest.raises(ManifestBuildError):
        await service.rebuild()

    assert store.current() is first


@pytest.mark.anyio
async def test_rebuilds_are_serialized(settings, monkeypatch):
    active = 0
    peak = 0
    calls = 0

    async def fake_build(root, extensions, max_concurrency):
        nonlocal active, peak, calls
        active += 1
        calls += 1
        peak = max(peak, active)
        await anyio.sleep(0.01)
        active -= 1
        return Manifest(entries=(), generated_at=datetime.now(timezone.utc))

    monkeypatch.setattr(manifest_service, "build_manifest", fake_build)
    service = ManifestService(settings, ManifestStore())

    async with anyio.create_task_group() as tg:
        for _ in range(4):
            tg.start_soon(service.rebuild)

    assert calls == 4
    assert peak == 1
    assert not service.is_building


@pytest.mark.anyio
async def test_periodic_rebuild_survives_failures(settings, monkeypatch):
    calls = 0

    async def failing_build(root, extensions, max_concurrency):
        nonlocal calls
        calls += 1
        raise ManifestBuildError("disk on fire")

    monkeypatch.setattr(manifest_service, "build_manifest", failing_build)
    service = ManifestService(settings, ManifestStore())

    with anyio.move_on_after(0.5):
        await service.run_periodic(0.05)

    assert calls >= 2
    assert not service.store.is_ready
