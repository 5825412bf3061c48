"""
Document store interface and exceptions.

Generated tax documents (1099-NEC forms and report exports) are written
through a DocumentStore so the same code runs against the local filesystem
in development and S3 in production.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class StorageError(Exception):
    """Base exception for storage-related errors."""


class StorageNotFoundError(StorageError):
    """Raised when a requested document is not found in storage."""


class StoragePermissionError(StorageError):
    """Raised when there are permission issues with storage operations."""


DEFAULT_CONTENT_TYPE = "application/octet-stream"


class DocumentStore(ABC):
    """Abstract base class for document stores."""

    @abstractmethod
    def put(
        self,
        key: str,
        content: bytes,
        content_type: str = DEFAULT_CONTENT_TYPE,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Store a document.

        Args:
            key: Storage key, e.g. "1099/2025/12.html"
            content: Document bytes
            content_type: MIME type of the document
            metadata: Optional extra metadata stored alongside the document

        Returns:
            str: The key the document was stored under

        Raises:
            StorageError: If the document cannot be stored
        """

    @abstractmethod
    def get(self, key: str) -> bytes:
        """
        Read a document.

        Raises:
            StorageNotFoundError: If no document exists under the key
            StorageError: If the document cannot be read
        """

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check whether a document exists under the key."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a document.

        Returns:
            bool: True if a document was deleted, False if none existed
        """

    @abstractmethod
    def list_keys(self, prefix: str = "") -> List[str]:
        """List stored document keys, sorted, optionally filtered by prefix."""

    def put_text(
        self,
        key: str,
        text: str,
        content_type: str = "text/plain",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Store a text document encoded as UTF-8."""
        return self.put(key, text.encode("utf-8"), f"{content_type}; charset=utf-8", metadata)
