"""Folder, image, pdf and note models.

All four share the owner/favorite/timestamp columns through ``OwnedMixin``;
the three binary types add blob metadata through ``BlobMixin``.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declared_attr

from app.database import Base, utcnow


class OwnedMixin:
    """Columns common to every user-owned record."""

    id = Column(Integer, primary_key=True, autoincrement=True)
    favorite = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @declared_attr
    def user_id(cls):
        return Column(Integer, ForeignKey("user.id"), nullable=False, index=True)

    @declared_attr
    def parent_id(cls):
        return Column(Integer, ForeignKey("folder.id"), nullable=True, index=True)


class BlobMixin:
    """Metadata for a payload held by the blob backend.

    ``file_path`` is the retrieval handle (relative path or public URL);
    ``storage_key`` is the backend's deletion key when it differs.
    """

    size = Column(Integer, nullable=False, default=0)
    content_type = Column(String(128), nullable=True)
    file_path = Column(String(1024), nullable=True, index=True)
    storage_key = Column(String(1024), nullable=True)


class Folder(OwnedMixin, Base):
    __tablename__ = "folder"

    name = Column(String(512), nullable=False)


class Image(OwnedMixin, BlobMixin, Base):
    __tablename__ = "image"

    name = Column(String(512), nullable=False)


class Pdf(OwnedMixin, BlobMixin, Base):
    __tablename__ = "pdf"

    name = Column(String(512), nullable=False)


class Note(OwnedMixin, BlobMixin, Base):
    """Text note with an optional attached file."""

    __tablename__ = "note"

    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=True)
    file_name = Column(String(512), nullable=True)
