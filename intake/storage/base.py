from abc import ABC, abstractmethod


class StorageError(Exception):
    pass


class AbstractObjectStore(ABC):
    @abstractmethod
    def store(self, data: bytes, key: str, content_type: str) -> None:
        """Write a private object under key. Raises StorageError on failure."""

    @abstractmethod
    def presign(self, key: str, ttl_seconds: int = 86400) -> str:
        """Return a GET URL for key valid for ttl_seconds. Raises StorageError on failure."""
