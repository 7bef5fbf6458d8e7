"""Owner-scoped access to folders, images, pdfs and notes.

One ``ResourceService`` is instantiated per resource type. Every query it
issues is filtered on ``user_id``, so a record owned by someone else looks
exactly like a record that does not exist.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from fastapi import UploadFile
from sqlalchemy import func, not_
from sqlalchemy.orm import Query, Session
from starlette.responses import Response

from app.database import commit, utcnow
from app.errors import BackendError, NotFoundError, ValidationError
from app.models.resources import Folder, Image, Note, Pdf
from app.storage.base import BlobBackend, StoredBlob

logger = logging.getLogger("cloud_locker")

COPY_SUFFIX = " - Copy"
# Columns never carried over to a copy
_NOT_COPIED = {"id", "favorite", "created_at", "updated_at"}
# Editable fields that may be explicitly cleared
_NULLABLE = {"parent_id", "description"}


def any_content_type(content_type: str | None) -> bool:
    return True


def image_content_type(content_type: str | None) -> bool:
    return bool(content_type and content_type.startswith("image/"))


def pdf_content_type(content_type: str | None) -> bool:
    return content_type == "application/pdf"


def parse_day(date: str) -> tuple[datetime, datetime]:
    """UTC bounds of a YYYY-MM-DD day as a half-open range: start of day to start of the next."""
    try:
        start = datetime.strptime(date, "%Y-%m-%d")
    except ValueError:
        raise ValidationError("Date must be formatted as YYYY-MM-DD") from None
    end = start + timedelta(days=1)
    return start, end


class ResourceService:
    """CRUD, copy, favorites and aggregates for one owned resource type."""

    def __init__(
        self,
        model: type,
        label: str,
        backend: BlobBackend | None = None,
        name_field: str = "name",
        editable_fields: tuple[str, ...] = ("name", "parent_id", "favorite"),
        accepts: Callable[[str | None], bool] = any_content_type,
        max_upload_bytes: int = 25 * 1024 * 1024,
        duplicate_suffix: str = COPY_SUFFIX,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self.model = model
        self.label = label
        self.backend = backend
        self.name_field = name_field
        self.editable_fields = editable_fields
        self.accepts = accepts
        self.max_upload_bytes = max_upload_bytes
        self.duplicate_suffix = duplicate_suffix
        self.now = now

    @property
    def has_blobs(self) -> bool:
        return hasattr(self.model, "file_path")

    def _not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.label} not found")

    def _owned(self, db: Session, user_id: int) -> Query:
        return db.query(self.model).filter(self.model.user_id == user_id)

    def _check_parent(self, db: Session, user_id: int, parent_id: int | None, record_id: int | None = None) -> None:
        if parent_id is None:
            return
        if self.model is Folder and parent_id == record_id:
            raise ValidationError("A folder cannot be its own parent")
        parent = db.query(Folder.id, Folder.parent_id).filter(Folder.id == parent_id, Folder.user_id == user_id).first()
        if not parent:
            raise ValidationError("Parent folder not found")
        if self.model is not Folder or record_id is None:
            return

        # Walk up from the new parent; reaching the folder itself would close a loop
        seen = {parent_id}
        ancestor_id = parent.parent_id
        while ancestor_id is not None and ancestor_id not in seen:
            if ancestor_id == record_id:
                raise ValidationError("A folder cannot be moved into its own subfolder")
            seen.add(ancestor_id)
            ancestor_id = db.query(Folder.parent_id).filter(Folder.id == ancestor_id).scalar()

    def _clean_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        clean = {
            k: v
            for k, v in fields.items()
            if k in self.editable_fields and (v is not None or k in _NULLABLE)
        }
        if self.name_field in clean:
            name = (clean[self.name_field] or "").strip()
            if not name:
                raise ValidationError(f"{self.name_field.capitalize()} is required")
            clean[self.name_field] = name
        return clean

    # --- blobs ---

    async def store_upload(self, user_id: int, upload: UploadFile | None) -> StoredBlob:
        """Validate an upload and hand it to the blob backend."""
        if upload is None or not upload.filename:
            raise ValidationError("No file uploaded")
        if not self.accepts(upload.content_type):
            raise ValidationError(f"Invalid content type '{upload.content_type}' for {self.label.lower()}")
        if self.backend is None:
            raise BackendError("No blob backend configured")
        return await self.backend.store(user_id, upload, self.max_upload_bytes)

    def _discard_blob(self, blob: StoredBlob) -> None:
        """Remove a blob written for a record that never got saved."""
        try:
            self.backend.delete(blob.file_path, blob.storage_key)
        except (BackendError, OSError):
            logger.warning("Could not remove orphaned blob %s", blob.file_path, exc_info=True)

    def _release_blob(self, db: Session, file_path: str | None, storage_key: str | None) -> None:
        """Delete a blob once no record references it. Failures are logged, not raised."""
        if not file_path or self.backend is None:
            return
        still_referenced = db.query(self.model.id).filter(self.model.file_path == file_path).first()
        if still_referenced:
            logger.debug("Blob %s still referenced by %s %s", file_path, self.label, still_referenced.id)
            return
        try:
            self.backend.delete(file_path, storage_key)
        except (BackendError, OSError):
            logger.warning("Failed to delete blob %s; left for reconciliation", file_path, exc_info=True)

    # --- single record operations ---

    def create(
        self,
        db: Session,
        user_id: int,
        fields: dict[str, Any],
        blob: StoredBlob | None = None,
        blob_meta: dict[str, Any] | None = None,
    ) -> Any:
        """Insert a record owned by ``user_id``.

        ``blob`` must already be persisted; it is removed again if the
        record cannot be written.
        """
        try:
            values = self._clean_fields(fields)
            if self.name_field not in values:
                raise ValidationError(f"{self.name_field.capitalize()} is required")
            self._check_parent(db, user_id, values.get("parent_id"))
        except ValidationError:
            if blob is not None:
                self._discard_blob(blob)
            raise

        record = self.model(user_id=user_id, **values)
        if blob is not None:
            record.file_path = blob.file_path
            record.storage_key = blob.storage_key
            record.size = blob.size
            for key, value in (blob_meta or {}).items():
                setattr(record, key, value)

        db.add(record)
        try:
            commit(db)
        except BackendError:
            if blob is not None:
                self._discard_blob(blob)
            raise
        db.refresh(record)
        return record

    async def create_with_upload(
        self,
        db: Session,
        user_id: int,
        fields: dict[str, Any],
        upload: UploadFile | None,
        file_name_field: str | None = None,
    ) -> Any:
        """Persist the upload first, then the record pointing at it."""
        blob = await self.store_upload(user_id, upload)
        meta: dict[str, Any] = {"content_type": upload.content_type}
        if file_name_field:
            meta[file_name_field] = upload.filename
        return self.create(db, user_id, fields, blob=blob, blob_meta=meta)

    def get(self, db: Session, user_id: int, record_id: int) -> Any:
        record = self._owned(db, user_id).filter(self.model.id == record_id).first()
        if record is None:
            raise self._not_found()
        return record

    def update(self, db: Session, user_id: int, record_id: int, fields: dict[str, Any]) -> Any:
        """Change only the supplied editable fields."""
        record = self.get(db, user_id, record_id)
        values = self._clean_fields(fields)
        if "parent_id" in values:
            self._check_parent(db, user_id, values["parent_id"], record_id=record.id)

        for key, value in values.items():
            setattr(record, key, value)
        record.updated_at = self.now()
        commit(db)
        db.refresh(record)
        return record

    def rename(self, db: Session, user_id: int, record_id: int, name: str | None) -> Any:
        return self.update(db, user_id, record_id, {self.name_field: name or ""})

    def toggle_favorite(self, db: Session, user_id: int, record_id: int) -> Any:
        """Flip the favorite flag in a single UPDATE so concurrent toggles never interleave."""
        updated = (
            self._owned(db, user_id)
            .filter(self.model.id == record_id)
            .update(
                {self.model.favorite: not_(self.model.favorite), self.model.updated_at: self.now()},
                synchronize_session=False,
            )
        )
        if not updated:
            db.rollback()
            raise self._not_found()
        commit(db)
        record = self.get(db, user_id, record_id)
        db.refresh(record)
        return record

    def _detach_children(self, db: Session, user_id: int, folder_ids: list[int]) -> None:
        """Move items filed in the given folders back to the top level."""
        if self.model is not Folder or not folder_ids:
            return
        for model in (Folder, Image, Pdf, Note):
            db.query(model).filter(model.user_id == user_id, model.parent_id.in_(folder_ids)).update(
                {model.parent_id: None}, synchronize_session=False
            )

    def delete(self, db: Session, user_id: int, record_id: int) -> None:
        """Delete the record, then its blob if nothing else points at it."""
        record = self.get(db, user_id, record_id)
        self._detach_children(db, user_id, [record.id])
        file_path = getattr(record, "file_path", None)
        storage_key = getattr(record, "storage_key", None)

        db.delete(record)
        commit(db)
        self._release_blob(db, file_path, storage_key)

    def _clone(self, source: Any, user_id: int, suffix: str = COPY_SUFFIX) -> Any:
        values = {
            column.key: getattr(source, column.key)
            for column in self.model.__table__.columns
            if column.key not in _NOT_COPIED
        }
        values["user_id"] = user_id
        values[self.name_field] = f"{getattr(source, self.name_field)}{suffix}"
        return self.model(**values)

    def copy(self, db: Session, user_id: int, record_id: int) -> Any:
        """New record sharing the source's blob."""
        source = self.get(db, user_id, record_id)
        clone = self._clone(source, user_id)
        db.add(clone)
        commit(db)
        db.refresh(clone)
        return clone

    def duplicate(self, db: Session, user_id: int, record_id: int) -> Any:
        """New record backed by its own physical copy of the blob."""
        source = self.get(db, user_id, record_id)
        clone = self._clone(source, user_id, self.duplicate_suffix)

        blob = None
        if getattr(source, "file_path", None):
            blob = self.backend.duplicate(user_id, source.file_path, source.storage_key)
            clone.file_path = blob.file_path
            clone.storage_key = blob.storage_key
            clone.size = blob.size or source.size

        db.add(clone)
        try:
            commit(db)
        except BackendError:
            if blob is not None:
                self._discard_blob(blob)
            raise
        db.refresh(clone)
        return clone

    def size_of(self, db: Session, user_id: int, record_id: int) -> int:
        record = self.get(db, user_id, record_id)
        return getattr(record, "size", None) or 0

    def file_response(self, db: Session, user_id: int, record_id: int) -> Response:
        record = self.get(db, user_id, record_id)
        if not getattr(record, "file_path", None):
            raise NotFoundError(f"{self.label} file not found")
        filename = getattr(record, "file_name", None) or getattr(record, self.name_field)
        return self.backend.file_response(record.file_path, record.storage_key, record.content_type, filename)

    # --- collections and aggregates ---

    def list_all(self, db: Session, user_id: int) -> list[Any]:
        """All of the caller's records, newest first."""
        return self._owned(db, user_id).order_by(self.model.created_at.desc(), self.model.id.desc()).all()

    def list_favorites(self, db: Session, user_id: int) -> list[Any]:
        return (
            self._owned(db, user_id)
            .filter(self.model.favorite.is_(True))
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .all()
        )

    def list_by_date(self, db: Session, user_id: int, date: str) -> list[Any]:
        start, end = parse_day(date)
        return (
            self._owned(db, user_id)
            .filter(self.model.created_at >= start, self.model.created_at < end)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .all()
        )

    def count(self, db: Session, user_id: int) -> int:
        return db.query(func.count(self.model.id)).filter(self.model.user_id == user_id).scalar() or 0

    def total_size(self, db: Session, user_id: int) -> int:
        """Sum of blob sizes over the caller's records only."""
        if not self.has_blobs:
            return 0
        total = db.query(func.coalesce(func.sum(self.model.size), 0)).filter(self.model.user_id == user_id).scalar()
        return int(total or 0)

    def purge_user(self, db: Session, user_id: int) -> int:
        """Delete every record the user owns. Returns how many were removed."""
        records = self._owned(db, user_id).all()
        blobs = {(r.file_path, r.storage_key) for r in records if getattr(r, "file_path", None)}
        self._detach_children(db, user_id, [r.id for r in records])
        for record in records:
            db.delete(record)
        commit(db)
        for file_path, storage_key in blobs:
            self._release_blob(db, file_path, storage_key)
        return len(records)


def folder_storage_used(db: Session, user_id: int, folder_id: int) -> int:
    """Total blob size of the caller's images, pdfs and notes filed directly in a folder."""
    total = 0
    for model in (Image, Pdf, Note):
        total += (
            db.query(func.coalesce(func.sum(model.size), 0))
            .filter(model.user_id == user_id, model.parent_id == folder_id)
            .scalar()
            or 0
        )
    return int(total)
