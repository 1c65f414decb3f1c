import argparse
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import anyio
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from content_server import __version__
from content_server.core.config import CONFIG_PATH, ServerSettings, load_settings
from content_server.core.logger import setup_logger
from content_server.routers.assets import router as assets_router
from content_server.services.manifest_service import ManifestService
from content_server.services.manifest_store import ManifestStore

logger = logging.getLogger("content_server")


@asynccontextmanager
async def lifespan(app: FastAPI):
  settings: ServerSettings = app.state.settings
  setup_logger(settings=settings.logging)

  # Initial manifest: if this fails there is nothing to serve, let startup fail
  await app.state.manifest_service.rebuild()

  async with anyio.create_task_group() as tg:
    if settings.rebuild_interval > 0:
      logger.info("rebuilding the manifest every %s seconds", settings.rebuild_interval)
      tg.start_soon(app.state.manifest_service.run_periodic, settings.rebuild_interval)
    yield
    tg.cancel_scope.cancel()


def create_app(settings: ServerSettings | None = None) -> FastAPI:
  settings = settings or ServerSettings()
  store = ManifestStore()

  app = FastAPI(title="Content Server", version=__version__, lifespan=lifespan)
  app.state.settings = settings
  app.state.manifest_store = store
  app.state.manifest_service = ManifestService(settings, store)

  app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"])
  if settings.compress_responses:
    app.add_middleware(GZipMiddleware)

  app.include_router(assets_router, prefix="/assets", tags=["assets"])
  return app


def main(argv=None):
  parser = argparse.ArgumentParser(prog="content-server", description="Serve game assets and their manifest over HTTP")
  parser.add_argument("--config", type=Path, default=CONFIG_PATH, help=f"Location of the configuration file (default: {CONFIG_PATH})")
  parser.add_argument("--root", type=Path, default=None, help="Content root, overrides the config file")
  parser.add_argument("--port", type=int, default=None, help="Listening port, overrides the config file")
  parser.add_argument("--host", default=None, help="Listening address, overrides the config file")
  args = parser.parse_args(argv)

  setup_logger()
  settings = load_settings(args.config, root=args.root, port=args.port, host=args.host)
  app = create_app(settings)

  logger.info("starting content server on %s:%d", settings.host, settings.port)
  uvicorn.run(
    app,
    host=settings.host,
    port=settings.port,
    timeout_keep_alive=settings.keep_alive_timeout,
  )


if __name__ == "__main__":
  main()
