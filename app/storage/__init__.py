# Record store backends package
from .base import RecordStore, StorageMode
from .memory_store import MemoryRecordStore
from .sql_store import SQLRecordStore
from .factory import build_record_store, seed_if_empty

__all__ = [
    "RecordStore",
    "StorageMode",
    "MemoryRecordStore",
    "SQLRecordStore",
    "build_record_store",
    "seed_if_empty",
]
