"""
Assets Router - manifest.json and content-addressed asset downloads
"""

import logging
import mimetypes
import posixpath
import re
from datetime import datetime
from email.utils import format_datetime, parsedate_to_datetime
from pathlib import Path

import anyio
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import FileResponse, JSONResponse, Response

from content_server.core.config import ServerSettings
from content_server.dependencies import get_manifest_store, get_settings
from content_server.schemas.manifest import Manifest
from content_server.services.manifest_store import ManifestStore, ManifestUnavailableError

logger = logging.getLogger("content_server.assets")

router = APIRouter()

MANIFEST_CACHE_CONTROL = "public, max-age=60, must-revalidate"
# One year, the longest lifetime caches honour; the URL changes with the checksum
ASSET_CACHE_CONTROL = "public, max-age=31536000, immutable"

# {prefix}/{checksum}-{basename}, prefix may be empty
ASSET_PATH_RE = re.compile(r"^(.+/|)(\d+)-(.+?)$")
# 2**32 - 1 has 10 decimal digits
MAX_CHECKSUM_DIGITS = 10


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _current_manifest(store: ManifestStore) -> Manifest:
    try:
        return store.current()
    except ManifestUnavailableError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Manifest not ready")


def _not_modified_since(header: str | None, generated_at: datetime) -> bool:
    if not header:
        return False
    try:
        since = parsedate_to_datetime(header)
    except (TypeError, ValueError):
        return False
    if since.tzinfo is None:
        return False
    # HTTP dates have second precision
    return generated_at.replace(microsecond=0) <= since


def parse_asset_path(asset_path: str) -> tuple[str, int | None] | None:
    """
    Split `{prefix}{checksum}-{basename}` into the candidate manifest name and
    the requested checksum. Returns None when the path does not have that shape.

    A checksum too long to be a CRC-32 comes back as None, which no manifest
    entry matches.
    """
    match = ASSET_PATH_RE.match(asset_path)
    if match is None:
        return None
    prefix, checksum, basename = match.groups()
    if "\\" in asset_path:
        return None
    value = int(checksum) if len(checksum) <= MAX_CHECKSUM_DIGITS else None
    return posixpath.normpath(prefix + basename), value


@router.get("/manifest.json")
async def get_manifest(
    request: Request,
    store: ManifestStore = Depends(get_manifest_store),
    if_modified_since: str | None = Header(None, alias="If-Modified-Since"),
):
    """
    Current manifest: `[{"name", "checksum", "compressedSize"}, ...]`.

    Clients revalidate after 60 seconds; Last-Modified is the time the
    manifest build started.
    """
    logger.info("serving manifest to %s", _client_host(request))
    manifest = _current_manifest(store)
    headers = {
        "Cache-Control": MANIFEST_CACHE_CONTROL,
        "Last-Modified": format_datetime(manifest.generated_at, usegmt=True),
    }
    if _not_modified_since(if_modified_since, manifest.generated_at):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)
    return JSONResponse(content=manifest.to_payload(), headers=headers)


@router.get("/{asset_path:path}")
async def get_asset(
    asset_path: str,
    request: Request,
    store: ManifestStore = Depends(get_manifest_store),
    settings: ServerSettings = Depends(get_settings),
):
    """
    Download one asset. The (path, checksum) pair must match an entry of the
    current manifest, otherwise the request is a bare 400.
    """
    parsed = parse_asset_path(asset_path)
    if parsed is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    name, checksum = parsed

    manifest = _current_manifest(store)
    entry = manifest.find(name, checksum) if checksum is not None else None
    if entry is None:
        logger.info("rejected asset request '%s' from %s", asset_path, _client_host(request))
        return Response(status_code=status.HTTP_400_BAD_REQUEST)

    root = Path(settings.root).resolve()
    target = (root / entry.name).resolve()
    try:
        target.relative_to(root)
    except ValueError:
        logger.warning("manifest entry '%s' resolves outside the content root", entry.name)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    if not await anyio.Path(target).is_file():
        logger.warning("asset '%s' is in the manifest but missing on disk", entry.name)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    logger.info("serving %s (crc32 %d) to %s", entry.name, checksum, _client_host(request))
    media_type = mimetypes.guess_type(entry.name)[0] or "application/octet-stream"
    return FileResponse(target, media_type=media_type, headers={"Cache-Control": ASSET_CACHE_CONTROL})
