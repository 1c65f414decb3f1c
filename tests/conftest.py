import pytest
from fastapi.testclient import TestClient

from content_server.core.config import ServerSettings
from content_server.main import create_app

GUN_BYTES = b"tremulous " * 1000


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def content_root(tmp_path):
  """
  pk3_assets/
    weapons/gun.pk3        10000 bytes
    maps/arena/arena.pk3
    game.qvm
    readme.txt             not allow-listed
    SHOUT.PK3              wrong case
  """
  root = tmp_path / "pk3_assets"
  (root / "weapons").mkdir(parents=True)
  (root / "maps" / "arena").mkdir(parents=True)
  (root / "weapons" / "gun.pk3").write_bytes(GUN_BYTES)
  (root / "maps" / "arena" / "arena.pk3").write_bytes(bytes(range(256)) * 40)
  (root / "game.qvm").write_bytes(b"\x12\x72\x19\x00" * 64)
  (root / "readme.txt").write_text("not an asset")
  (root / "SHOUT.PK3").write_bytes(b"loud")
  return root


@pytest.fixture
def settings(content_root):
  return ServerSettings(root=content_root)


@pytest.fixture
def app(settings):
  return create_app(settings)


@pytest.fixture
def client(app):
  with TestClient(app) as c:
    yield c
