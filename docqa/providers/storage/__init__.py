"""Raw-object storage providers.

LocalObjectStore keeps uploaded bytes on local disk under OBJECT_STORE_DIR.
Any bucket service (S3, GCS, a hosted storage API) can replace it by
implementing IObjectStore and registering the class in main.py.
"""

from docqa.providers.storage.local_object_store import LocalObjectStore

__all__ = ["LocalObjectStore"]
