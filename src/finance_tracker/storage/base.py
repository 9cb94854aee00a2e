"""Abstract key-value storage interface."""

from abc import ABC, abstractmethod
from typing import Optional


class StorageAdapter(ABC):
    """Abstract base class for string-blob key-value stores.

    Subclasses must implement:
    - get(): Return the string stored under a key, or None
    - set(): Store a string under a key, replacing any previous value
    """

    @property
    def name(self) -> str:
        """Return adapter name for logging."""
        return self.__class__.__name__

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Read the value stored under a key.

        Args:
            key: Storage key.

        Returns:
            Stored string, or None if the key was never set.

        Raises:
            StorageError: If the backing store cannot be read.
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value under a key.

        Args:
            key: Storage key.
            value: String blob to store.
        """
        pass
