"""Blob storage backends."""

from app.config import Settings
from app.storage.base import BlobBackend, StoredBlob
from app.storage.local import LocalBlobBackend


def build_blob_backend(settings: Settings) -> BlobBackend:
    """Construct the backend selected by STORAGE_BACKEND."""
    if settings.STORAGE_BACKEND == "supabase":
        from app.storage.remote import SupabaseBlobBackend

        return SupabaseBlobBackend.from_credentials(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_ROLE_KEY,
            settings.SUPABASE_BUCKET,
        )
    return LocalBlobBackend(settings.UPLOAD_DIR)


__all__ = ["BlobBackend", "LocalBlobBackend", "StoredBlob", "build_blob_backend"]
