"""Document store factory driven by application settings."""

from app.config import Settings, get_global_settings

from .base import DocumentStore
from .local import LocalDocumentStore
from .s3 import S3DocumentStore


def create_document_store(settings: Settings) -> DocumentStore:
    """
    Create a document store based on configuration.

    Args:
        settings: Application settings containing storage configuration

    Returns:
        DocumentStore: Configured store

    Raises:
        ValueError: If storage configuration is invalid
    """
    if settings.storage_type == "local":
        return LocalDocumentStore(base_path=settings.storage_base_path, create_dirs=True)

    if settings.storage_type == "s3":
        if not settings.s3_bucket_name:
            raise ValueError("S3_BUCKET_NAME must be set when using S3 storage")
        return S3DocumentStore(
            bucket_name=settings.s3_bucket_name,
            region_name=settings.s3_region_name,
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=settings.s3_secret_access_key,
            prefix=settings.s3_prefix,
        )

    raise ValueError(f"Unsupported storage type: {settings.storage_type}")


def get_document_store() -> DocumentStore:
    """Create a document store using the global settings."""
    return create_document_store(get_global_settings())
