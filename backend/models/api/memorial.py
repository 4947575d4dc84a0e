"""
Pydantic models for the memorial endpoints
"""

from datetime import date
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from models.domain.references import (
    ImageReference,
    SourceReference,
    parse_image_list,
    parse_source_list,
)


class LookupRequest(BaseModel):
    """Request body for /api/lookup-memorial"""
    name: Optional[str] = None


class PersistImagesRequest(BaseModel):
    """Request body for /api/persist-images"""
    images: List[ImageReference] = Field(default_factory=list)

    @field_validator('images', mode='before')
    @classmethod
    def coerce_images(cls, v: Any):
        return parse_image_list(v) if v is not None else []


class MemorialSubmit(BaseModel):
    """
    Full memorial form submission.

    selected_images may mix owned (bucket) and external images; externals are
    persisted before the record is written. uploaded_image is the reference
    returned by /api/memorials/uploads.
    """
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    date_of_birth: Optional[date] = None
    date_of_death: date
    age: Optional[int] = Field(default=None, ge=0)
    place_of_birth: Optional[str] = None
    place_of_death: Optional[str] = None
    nationality: Optional[str] = None
    story: str = ""
    sources: List[SourceReference] = Field(default_factory=list)
    selected_images: List[ImageReference] = Field(default_factory=list)
    uploaded_image: Optional[ImageReference] = None
    primary_image_url: Optional[str] = None

    @field_validator('sources', mode='before')
    @classmethod
    def coerce_sources(cls, v: Any):
        return parse_source_list(v) if v is not None else []

    @field_validator('selected_images', mode='before')
    @classmethod
    def coerce_selected_images(cls, v: Any):
        return parse_image_list(v) if v is not None else []

    @field_validator('story', mode='before')
    @classmethod
    def story_not_null(cls, v: Any):
        return v or ""


class MessageResponse(BaseModel):
    """Generic {message} response"""
    message: str
