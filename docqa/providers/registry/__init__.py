"""Uploaded-file metadata registries.

SQLiteFileRegistry stores UploadedFile rows in data/files.db with a
UNIQUE(file_hash, owner_id) constraint.
"""

from docqa.providers.registry.sqlite_file_registry import SQLiteFileRegistry

__all__ = ["SQLiteFileRegistry"]
