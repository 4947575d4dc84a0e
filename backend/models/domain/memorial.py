"""
Memorial domain model
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import List, Optional

from .references import ImageReference, SourceReference


@dataclass
class Memorial:
    """
    Memorial domain model - storage-agnostic representation

    Storage: PostgreSQL (memorials table)
    - images / sources: JSONB lists (see references.py for the entry schema)
    - primary_image_url: stable public URL of one owned image, or an
      externally supplied URL

    Records are written whole: insert on create, full replace on update.
    """
    name: str
    date_of_death: date

    id: Optional[str] = None  # UUID, assigned by the database on insert
    user_id: Optional[str] = None

    # Biography
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    place_of_birth: Optional[str] = None
    place_of_death: Optional[str] = None
    nationality: Optional[str] = None
    story: str = ""

    # Attachments
    sources: List[SourceReference] = field(default_factory=list)
    images: List[ImageReference] = field(default_factory=list)
    primary_image_url: Optional[str] = None

    created_at: Optional[datetime] = None

    def with_images(self, images: List[ImageReference]) -> 'Memorial':
        """Copy with a different image list (used for signed display URLs)"""
        return replace(self, images=images)

    def to_dict(self) -> dict:
        """JSON-ready representation for API responses"""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'date_of_birth': self.date_of_birth.isoformat() if self.date_of_birth else None,
            'date_of_death': self.date_of_death.isoformat() if self.date_of_death else None,
            'age': self.age,
            'place_of_birth': self.place_of_birth,
            'place_of_death': self.place_of_death,
            'nationality': self.nationality,
            'story': self.story,
            'sources': [s.model_dump() for s in self.sources],
            'images': [i.model_dump() for i in self.images],
            'primary_image_url': self.primary_image_url,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
