"""Key-value storage adapters used to persist the ledger."""

from finance_tracker.storage.base import StorageAdapter
from finance_tracker.storage.json_file import JsonFileStorage
from finance_tracker.storage.memory import MemoryStorage

__all__ = [
    "StorageAdapter",
    "JsonFileStorage",
    "MemoryStorage",
]
