"""
Domain Models - Storage-agnostic data structures

These models represent the core domain entities independent of storage layer.
Services operate on these models, not raw database rows.

Architecture:
- Domain models are pure Python objects (dataclasses)
- JSONB list entries are validated pydantic models (see domain/references.py)
- Storage details (PostgreSQL, Supabase Storage) are abstracted via
  repositories and services/storage_client.py
"""
