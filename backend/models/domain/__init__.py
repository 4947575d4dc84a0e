"""
Domain Models - Storage-agnostic data structures

- Memorial: a memorial record (PostgreSQL memorials table)
- ImageReference / SourceReference: entries of the images / sources JSONB columns
"""

from .memorial import Memorial
from .references import (
    REFERENCE_SCHEMA_VERSION,
    ImageReference,
    SourceReference,
    parse_image_list,
    parse_source_list,
)

__all__ = [
    'Memorial',
    'REFERENCE_SCHEMA_VERSION',
    'ImageReference',
    'SourceReference',
    'parse_image_list',
    'parse_source_list',
]
