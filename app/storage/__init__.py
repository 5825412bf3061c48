"""
Storage for generated documents.

Provides one interface over the local filesystem and Amazon S3 for
persisting rendered tax forms and report exports.
"""

from .base import (
    DocumentStore,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
)
from .factory import create_document_store, get_document_store
from .local import LocalDocumentStore
from .s3 import S3DocumentStore

__all__ = [
    "DocumentStore",
    "StorageError",
    "StorageNotFoundError",
    "StoragePermissionError",
    "LocalDocumentStore",
    "S3DocumentStore",
    "create_document_store",
    "get_document_store",
]
