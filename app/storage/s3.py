"""
Amazon S3 document store.

Suitable for production and multi-instance deployments. Documents are
written as objects under an optional key prefix; metadata is attached as
S3 object metadata.
"""

from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from .base import (
    DEFAULT_CONTENT_TYPE,
    DocumentStore,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
DENIED_CODES = {"403", "AccessDenied"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3DocumentStore(DocumentStore):
    """Stores documents in an S3 bucket."""

    def __init__(
        self,
        bucket_name: str,
        region_name: str = "us-east-1",
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        prefix: str = "",
    ):
        """
        Initialize the S3 document store.

        Args:
            bucket_name: Name of the S3 bucket
            region_name: AWS region name
            aws_access_key_id: AWS access key ID (optional, can use IAM roles)
            aws_secret_access_key: AWS secret access key (optional, can use IAM roles)
            prefix: Optional prefix for all stored keys

        Raises:
            StorageError: If the bucket cannot be reached
        """
        self.bucket_name = bucket_name
        self.region_name = region_name
        self.prefix = prefix.strip("/")

        client_kwargs = {"region_name": region_name}
        if aws_access_key_id and aws_secret_access_key:
            client_kwargs["aws_access_key_id"] = aws_access_key_id
            client_kwargs["aws_secret_access_key"] = aws_secret_access_key

        self.s3_client = boto3.client("s3", **client_kwargs)

        try:
            self.s3_client.head_bucket(Bucket=bucket_name)
        except NoCredentialsError:
            raise StorageError("AWS credentials not found")
        except ClientError as e:
            code = _error_code(e)
            if code in NOT_FOUND_CODES:
                raise StorageError(f"S3 bucket '{bucket_name}' not found")
            if code in DENIED_CODES:
                raise StoragePermissionError(f"Access denied to S3 bucket '{bucket_name}'")
            raise StorageError(f"Failed to connect to S3: {e}")

    def _object_key(self, key: str) -> str:
        clean = key.lstrip("/")
        return f"{self.prefix}/{clean}" if self.prefix else clean

    def _translate(self, error: ClientError, action: str, key: str) -> StorageError:
        code = _error_code(error)
        if code in NOT_FOUND_CODES:
            return StorageNotFoundError(f"Document not found: {key}")
        if code in DENIED_CODES:
            return StoragePermissionError(f"Permission denied {action} {key}: {error}")
        return StorageError(f"Failed {action} {key}: {error}")

    def put(
        self,
        key: str,
        content: bytes,
        content_type: str = DEFAULT_CONTENT_TYPE,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=self._object_key(key),
                Body=content,
                ContentType=content_type,
                Metadata={k: str(v) for k, v in (metadata or {}).items()},
            )
        except ClientError as e:
            raise self._translate(e, "storing", key)
        return key

    def get(self, key: str) -> bytes:
        try:
            response = self.s3_client.get_object(
                Bucket=self.bucket_name, Key=self._object_key(key)
            )
        except ClientError as e:
            raise self._translate(e, "reading", key)
        return response["Body"].read()

    def exists(self, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=self._object_key(key))
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return False
            raise self._translate(e, "checking", key)
        return True

    def delete(self, key: str) -> bool:
        if not self.exists(key):
            return False
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=self._object_key(key))
        except ClientError as e:
            raise self._translate(e, "deleting", key)
        return True

    def list_keys(self, prefix: str = "") -> List[str]:
        keys = []
        strip = f"{self.prefix}/" if self.prefix else ""
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(
                Bucket=self.bucket_name, Prefix=self._object_key(prefix)
            ):
                for obj in page.get("Contents", []):
                    object_key = obj["Key"]
                    if strip and object_key.startswith(strip):
                        object_key = object_key[len(strip):]
                    keys.append(object_key)
        except ClientError as e:
            raise self._translate(e, "listing", prefix)
        return sorted(keys)
