from content_server.schemas.manifest import Manifest


class ManifestUnavailableError(LookupError):
  """No manifest has been published yet."""


class ManifestStore:
  """Holds the currently published manifest.

  Manifests are immutable, so publishing is a single reference swap: a reader
  keeps whichever snapshot it got from `current()` for as long as it needs it.
  """

  def __init__(self, manifest: Manifest | None = None):
    self._manifest = manifest

  @property
  def is_ready(self) -> bool:
    return self._manifest is not None

  def current(self) -> Manifest:
    """Lấy manifest hiện tại

    Raises:
        ManifestUnavailableError: Chưa có manifest nào được publish

    Returns:
        Manifest: Snapshot đang được phục vụ
    """
    manifest = self._manifest
    if manifest is None:
      raise ManifestUnavailableError("no manifest has been published")
    return manifest

  def publish(self, manifest: Manifest) -> Manifest | None:
    """Replace the current manifest, returning the previous one (if any)."""
    if not isinstance(manifest, Manifest):
      raise TypeError(f"expected Manifest, got {type(manifest).__name__}")
    previous, self._manifest = self._manifest, manifest
    return previous
