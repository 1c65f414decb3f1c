from fastapi import Request
from content_server.core.config import ServerSettings
from content_server.services.manifest_store import ManifestStore

def get_settings(request: Request) -> ServerSettings:
  return request.app.state.settings

def get_manifest_store(request: Request) -> ManifestStore:
  return request.app.state.manifest_store
