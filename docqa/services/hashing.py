"""Content addressing for uploaded bytes.

The digest is both the dedup key and the first half of the object-store
key; the owner id is the second half, so identical bytes uploaded by two
owners live under two distinct keys.
"""

from __future__ import annotations

import hashlib


def content_digest(data: bytes) -> str:
    """Return the lowercase hex sha256 digest of *data*."""
    return hashlib.sha256(data).hexdigest()


def object_key(file_hash: str, owner_id: str) -> str:
    """Return the composite object-store key for one owner's copy of a file."""
    return f"{file_hash}{owner_id}"
