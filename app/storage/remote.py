"""Blob backend on Supabase Storage."""

import logging
import posixpath

import httpx
from fastapi import UploadFile
from fastapi.responses import RedirectResponse
from starlette.responses import Response
from storage3.utils import StorageException
from supabase import Client, create_client

from app.errors import BackendError, NotFoundError
from app.storage.base import BlobBackend, StoredBlob, new_object_name

logger = logging.getLogger("cloud_locker")

_PROVIDER_ERRORS = (StorageException, httpx.HTTPError)


class SupabaseBlobBackend(BlobBackend):
    """Keeps payloads in a Supabase bucket.

    The object path (``<user_id>/<uuid><ext>``) is the storage key; the
    public URL is the file path handed to clients.
    """

    def __init__(self, client: Client, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_credentials(cls, url: str, service_role_key: str, bucket: str) -> "SupabaseBlobBackend":
        if not (url and service_role_key):
            raise RuntimeError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY in .env")
        return cls(create_client(url, service_role_key), bucket)

    @property
    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def _upload_bytes(self, path: str, data: bytes, content_type: str | None) -> StoredBlob:
        options = {"content-type": content_type or "application/octet-stream", "upsert": "false"}
        try:
            self._bucket.upload(path, data, options)
            url = self._bucket.get_public_url(path)
        except _PROVIDER_ERRORS as e:
            raise BackendError(f"Upload to storage failed: {e}") from e
        return StoredBlob(file_path=url, storage_key=path, size=len(data))

    async def store(self, user_id: int, upload: UploadFile, max_bytes: int) -> StoredBlob:
        data = await self.read_upload(upload, max_bytes)
        path = f"{user_id}/{new_object_name(upload.filename)}"
        return self._upload_bytes(path, data, upload.content_type)

    def delete(self, file_path: str | None, storage_key: str | None) -> None:
        if not storage_key:
            return
        try:
            self._bucket.remove([storage_key])
        except _PROVIDER_ERRORS as e:
            raise BackendError(f"Delete from storage failed: {e}") from e

    def exists(self, file_path: str | None, storage_key: str | None) -> bool:
        if not storage_key:
            return False
        folder, name = posixpath.split(storage_key)
        try:
            entries = self._bucket.list(folder, {"search": name})
        except _PROVIDER_ERRORS as e:
            raise BackendError(f"Storage lookup failed: {e}") from e
        return any(entry.get("name") == name for entry in entries)

    def duplicate(self, user_id: int, file_path: str | None, storage_key: str | None) -> StoredBlob:
        if not self.exists(file_path, storage_key):
            raise NotFoundError("Source file not found")

        target = f"{user_id}/{new_object_name(storage_key)}"
        try:
            self._bucket.copy(storage_key, target)
            url = self._bucket.get_public_url(target)
            folder, name = posixpath.split(target)
            entries = self._bucket.list(folder, {"search": name})
        except _PROVIDER_ERRORS as e:
            raise BackendError(f"Copy in storage failed: {e}") from e

        size = 0
        for entry in entries:
            if entry.get("name") == name:
                size = int((entry.get("metadata") or {}).get("size") or 0)
        return StoredBlob(file_path=url, storage_key=target, size=size)

    def file_response(
        self,
        file_path: str | None,
        storage_key: str | None,
        media_type: str | None,
        filename: str | None,
    ) -> Response:
        if not file_path:
            raise NotFoundError("File not found")
        return RedirectResponse(url=file_path, status_code=307)
