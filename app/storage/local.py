"""
Local filesystem document store.

Suitable for development and single-instance deployments. Each document
is written under a base directory; metadata is kept in a JSON sidecar file
named after the document with a ".meta" suffix.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .base import (
    DEFAULT_CONTENT_TYPE,
    DocumentStore,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
)

META_SUFFIX = ".meta"


class LocalDocumentStore(DocumentStore):
    """Stores documents in a directory on the local filesystem."""

    def __init__(self, base_path: str = "storage", create_dirs: bool = True):
        """
        Initialize the local document store.

        Args:
            base_path: Base directory for documents
            create_dirs: Whether to create directories if they don't exist
        """
        self.base_path = Path(base_path)
        self.create_dirs = create_dirs

        if self.create_dirs:
            self.base_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        # Keys may not climb out of the base directory
        parts = []
        for part in key.replace("\\", "/").split("/"):
            if part == "..":
                if parts:
                    parts.pop()
            elif part and part != ".":
                parts.append(part)
        return self.base_path.joinpath(*parts)

    def _meta_path_for(self, key: str) -> Path:
        path = self._path_for(key)
        return path.with_name(path.name + META_SUFFIX)

    def put(
        self,
        key: str,
        content: bytes,
        content_type: str = DEFAULT_CONTENT_TYPE,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        path = self._path_for(key)
        try:
            if self.create_dirs:
                path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

            sidecar = {
                "created_at": datetime.utcnow().isoformat(),
                "size": len(content),
                "content_type": content_type,
                **(metadata or {}),
            }
            self._meta_path_for(key).write_text(json.dumps(sidecar, indent=2))
            return key

        except PermissionError as e:
            raise StoragePermissionError(f"Permission denied storing {key}: {e}")
        except OSError as e:
            raise StorageError(f"Failed to store {key}: {e}")

    def get(self, key: str) -> bytes:
        path = self._path_for(key)
        if not path.is_file():
            raise StorageNotFoundError(f"Document not found: {key}")
        try:
            return path.read_bytes()
        except PermissionError as e:
            raise StoragePermissionError(f"Permission denied reading {key}: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}")

    def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            self._meta_path_for(key).unlink(missing_ok=True)
            if not path.exists():
                return False
            path.unlink()
            return True
        except PermissionError as e:
            raise StoragePermissionError(f"Permission denied deleting {key}: {e}")
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}")

    def list_keys(self, prefix: str = "") -> List[str]:
        if not self.base_path.exists():
            return []
        keys = []
        for path in self.base_path.rglob("*"):
            if not path.is_file() or path.name.endswith(META_SUFFIX):
                continue
            key = path.relative_to(self.base_path).as_posix()
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)
