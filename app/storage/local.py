"""Blob backend writing to the local filesystem."""

import os
import shutil
from pathlib import Path

from fastapi import UploadFile
from fastapi.responses import FileResponse
from starlette.responses import Response

from app.errors import NotFoundError
from app.storage.base import CHUNK_SIZE, BlobBackend, StoredBlob, new_object_name, too_large_error


class LocalBlobBackend(BlobBackend):
    """Keeps payloads under ``root/<user_id>/``.

    ``file_path`` is relative to the root; there is no separate storage key.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _resolve(self, file_path: str | None) -> Path | None:
        if not file_path:
            return None
        root = self.root.resolve()
        path = (root / file_path).resolve()
        if root not in path.parents:
            return None
        return path

    async def store(self, user_id: int, upload: UploadFile, max_bytes: int) -> StoredBlob:
        """Stream an upload to disk with size limit enforcement."""
        stored_filename = new_object_name(upload.filename)
        user_dir = self.root / str(user_id)
        user_dir.mkdir(parents=True, exist_ok=True)

        target = user_dir / stored_filename
        file_size = 0
        try:
            with open(target, "wb") as f:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    file_size += len(chunk)
                    if file_size > max_bytes:
                        raise too_large_error(file_size, max_bytes)
                    f.write(chunk)
        except Exception:
            if target.exists():
                os.remove(target)
            raise

        return StoredBlob(file_path=f"{user_id}/{stored_filename}", storage_key=None, size=file_size)

    def delete(self, file_path: str | None, storage_key: str | None) -> None:
        path = self._resolve(file_path)
        if path is not None and path.is_file():
            os.remove(path)

    def exists(self, file_path: str | None, storage_key: str | None) -> bool:
        path = self._resolve(file_path)
        return path is not None and path.is_file()

    def duplicate(self, user_id: int, file_path: str | None, storage_key: str | None) -> StoredBlob:
        source = self._resolve(file_path)
        if source is None or not source.is_file():
            raise NotFoundError("Source file not found")

        stored_filename = new_object_name(source.name)
        user_dir = self.root / str(user_id)
        user_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, user_dir / stored_filename)

        return StoredBlob(
            file_path=f"{user_id}/{stored_filename}",
            storage_key=None,
            size=(user_dir / stored_filename).stat().st_size,
        )

    def file_response(
        self,
        file_path: str | None,
        storage_key: str | None,
        media_type: str | None,
        filename: str | None,
    ) -> Response:
        path = self._resolve(file_path)
        if path is None or not path.is_file():
            raise NotFoundError("File not found")
        return FileResponse(path, media_type=media_type, filename=filename)
