from datetime import datetime, timezone
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

CHECKSUM_LIMIT = 2 ** 32


class ManifestEntry(BaseModel):
  """One distributable asset as clients see it in manifest.json"""
  model_config = ConfigDict(frozen=True, populate_by_name=True)

  name: str = Field(..., min_length=1)
  checksum: int = Field(..., ge=0, lt=CHECKSUM_LIMIT)
  compressed_size: int = Field(..., ge=0, alias="compressedSize")


class Manifest(BaseModel):
  """Immutable snapshot of every asset under the content root.

  A rebuild produces a new Manifest, it never edits an existing one.
  """
  model_config = ConfigDict(frozen=True)

  entries: Tuple[ManifestEntry, ...] = ()
  generated_at: datetime

  _index: dict = PrivateAttr(default_factory=dict)

  @field_validator("generated_at")
  @classmethod
  def _utc_timestamp(cls, value: datetime) -> datetime:
    # Last-Modified is rendered in GMT
    if value.tzinfo is None or value.utcoffset() is None:
      raise ValueError("generated_at must be timezone-aware")
    return value.astimezone(timezone.utc)

  @model_validator(mode="after")
  def _unique_names(self):
    seen = set()
    for entry in self.entries:
      if entry.name in seen:
        raise ValueError(f"duplicate manifest entry {entry.name!r}")
      seen.add(entry.name)
    return self

  def model_post_init(self, __context) -> None:
    self._index = {entry.name: entry for entry in self.entries}

  def __len__(self) -> int:
    return len(self.entries)

  @property
  def names(self) -> list[str]:
    return [entry.name for entry in self.entries]

  def find(self, name: str, checksum: int) -> ManifestEntry | None:
    """Entry matching both `name` and `checksum`, or None"""
    entry = self._index.get(name)
    if entry is None or entry.checksum != checksum:
      return None
    return entry

  def to_payload(self) -> list[dict]:
    """JSON-ready body of /assets/manifest.json"""
    return [entry.model_dump(by_alias=True) for entry in self.entries]
