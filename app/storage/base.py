"""Blob backend interface."""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile
from starlette.responses import Response

from app.errors import ValidationError

CHUNK_SIZE = 1024 * 64  # 64KB chunks


@dataclass
class StoredBlob:
    """Where a payload landed.

    ``file_path`` is what clients use to retrieve it; ``storage_key`` is what
    the backend needs to delete it, when that differs.
    """

    file_path: str
    storage_key: str | None
    size: int


def too_large_error(size: int, max_bytes: int) -> ValidationError:
    return ValidationError(
        f"File too large ({size // (1024 * 1024)}MB). Maximum: {max_bytes // (1024 * 1024)}MB"
    )


def new_object_name(filename: str | None) -> str:
    """Random object name that keeps the original extension."""
    ext = Path(filename or "").suffix.lower()
    return f"{uuid.uuid4()}{ext}"


class BlobBackend(ABC):
    """Stores, retrieves, copies and deletes binary payloads."""

    async def read_upload(self, upload: UploadFile, max_bytes: int) -> bytes:
        """Read an upload into memory, enforcing the size limit chunk by chunk."""
        buffer = bytearray()
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            buffer.extend(chunk)
            if len(buffer) > max_bytes:
                raise too_large_error(len(buffer), max_bytes)
        return bytes(buffer)

    @abstractmethod
    async def store(self, user_id: int, upload: UploadFile, max_bytes: int) -> StoredBlob:
        """Persist an upload. Raises ValidationError if it exceeds ``max_bytes``."""

    @abstractmethod
    def delete(self, file_path: str | None, storage_key: str | None) -> None:
        """Remove a payload. A payload that is already gone is not an error."""

    @abstractmethod
    def exists(self, file_path: str | None, storage_key: str | None) -> bool: ...

    @abstractmethod
    def duplicate(self, user_id: int, file_path: str | None, storage_key: str | None) -> StoredBlob:
        """Make an independent physical copy. Raises NotFoundError if the source is missing."""

    @abstractmethod
    def file_response(
        self,
        file_path: str | None,
        storage_key: str | None,
        media_type: str | None,
        filename: str | None,
    ) -> Response:
        """Build the HTTP response that hands the payload to a client."""
