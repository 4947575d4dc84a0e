"""
Image and source references stored in the memorials JSONB columns.

Both columns hold a list of small objects. Every entry written by this service
carries a schema version ("v") so older shapes can be coerced on read:

    v0 (legacy):  "https://..."                  bare URL string
    v0 (legacy):  {"url": ..., "title": ...}     no path, no version
    v1:           {"v": 1, "url": ..., "title": ..., "path": ...}

Images keep the stable bucket path next to the display URL. Membership tests
(orphan cleanup, primary image resolution) compare paths, never URLs.
"""
import logging
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

REFERENCE_SCHEMA_VERSION = 1

PathResolver = Callable[[str], Optional[str]]


class ImageReference(BaseModel):
    """
    An image attached to a memorial.

    url:   display URL (public, signed, or external)
    path:  object path inside the owned bucket; None for external images
    """
    model_config = ConfigDict(extra="ignore")

    url: str = Field(..., min_length=1)
    title: str = ""
    path: Optional[str] = None

    @property
    def is_owned(self) -> bool:
        return self.path is not None

    def to_storage(self) -> dict:
        return {
            "v": REFERENCE_SCHEMA_VERSION,
            "url": self.url,
            "title": self.title,
            "path": self.path,
        }


class SourceReference(BaseModel):
    """A cited web page backing the memorial text."""
    model_config = ConfigDict(extra="ignore")

    url: str = Field(..., min_length=1)
    title: str = "Source"

    def to_storage(self) -> dict:
        return {"v": REFERENCE_SCHEMA_VERSION, "url": self.url, "title": self.title}


def _coerce_entry(entry: Any) -> Optional[dict]:
    if isinstance(entry, str):
        return {"url": entry, "title": ""} if entry else None
    if isinstance(entry, dict) and isinstance(entry.get("url"), str):
        data = dict(entry)
        if data.get("title") is None:
            data.pop("title", None)
        return data
    return None


def parse_image_list(raw: Any, resolve_path: Optional[PathResolver] = None) -> List[ImageReference]:
    """
    Validate a JSONB images column (or request payload) into ImageReferences.

    Malformed entries are dropped with a warning. Legacy entries without a
    path get one from resolve_path when their URL points into the bucket.
    """
    if not isinstance(raw, list):
        return []

    images = []
    for entry in raw:
        data = _coerce_entry(entry)
        if data is None:
            logger.warning(f"⚠️  Dropping malformed image entry: {entry!r}")
            continue
        try:
            image = ImageReference.model_validate(data)
        except ValidationError as e:
            logger.warning(f"⚠️  Dropping invalid image entry {entry!r}: {e}")
            continue

        if image.path is None and resolve_path is not None:
            image.path = resolve_path(image.url)
        images.append(image)

    return images


def parse_source_list(raw: Any) -> List[SourceReference]:
    """Validate a JSONB sources column into SourceReferences."""
    if not isinstance(raw, list):
        return []

    sources = []
    for entry in raw:
        data = _coerce_entry(entry)
        if data is None:
            logger.warning(f"⚠️  Dropping malformed source entry: {entry!r}")
            continue
        if not data.get("title"):
            data["title"] = "Source"
        try:
            sources.append(SourceReference.model_validate(data))
        except ValidationError as e:
            logger.warning(f"⚠️  Dropping invalid source entry {entry!r}: {e}")

    return sources
