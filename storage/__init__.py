"""Storage backends: uploaded files and database records."""

from .abstract_storage import AbstractStorage
from .local_storage import LocalStorage
from .record_store import (
    DuplicateKey,
    RecordStore,
    RecordStoreError,
    StorageUnavailable,
    get_record_store,
)

__all__ = [
    "AbstractStorage",
    "LocalStorage",
    "DuplicateKey",
    "RecordStore",
    "RecordStoreError",
    "StorageUnavailable",
    "get_record_store",
]
