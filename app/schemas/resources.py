"""Pydantic schemas for folder, image, pdf and note endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class FolderCreateRequest(BaseModel):
    name: str | None = None
    parent_id: int | None = Field(default=None, alias="parentId")
    favorite: bool = False

    model_config = {"populate_by_name": True}


class FolderUpdateRequest(BaseModel):
    name: str | None = None
    parent_id: int | None = Field(default=None, alias="parentId")
    favorite: bool | None = None

    model_config = {"populate_by_name": True}


class BlobUpdateRequest(FolderUpdateRequest):
    """Editable fields of an image or pdf."""


class NoteUpdateRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    parent_id: int | None = Field(default=None, alias="parentId")
    favorite: bool | None = None

    model_config = {"populate_by_name": True}


class RenameRequest(BaseModel):
    name: str | None = None


class FolderResponse(BaseModel):
    id: int
    user_id: int
    parent_id: int | None
    name: str
    favorite: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StoredFileResponse(BaseModel):
    id: int
    user_id: int
    parent_id: int | None
    name: str
    size: int
    content_type: str | None
    file_path: str | None
    favorite: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NoteResponse(BaseModel):
    id: int
    user_id: int
    parent_id: int | None
    title: str
    description: str | None
    file_name: str | None
    size: int
    content_type: str | None
    file_path: str | None
    favorite: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SizeResponse(BaseModel):
    size: int


class TotalSizeResponse(BaseModel):
    total_size: int = Field(serialization_alias="totalSize")


class StorageUsedResponse(BaseModel):
    storage_used: int = Field(serialization_alias="storageUsed")
