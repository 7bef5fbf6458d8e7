"""Folder API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user, get_folder_service
from app.routers.resources import add_resource_routes
from app.schemas.resources import FolderCreateRequest, FolderResponse, FolderUpdateRequest, StorageUsedResponse
from app.services.resources import ResourceService, folder_storage_used

router = APIRouter(prefix="/api/folders", tags=["Folders"])


@router.post("/create", response_model=FolderResponse, status_code=201)
def create_folder(
    body: FolderCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: ResourceService = Depends(get_folder_service),
):
    """Create an empty folder, optionally inside another of the caller's folders."""
    return service.create(db, user.user_id, body.model_dump())


@router.get("/storage/{record_id}", response_model=StorageUsedResponse)
def folder_storage(
    record_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: ResourceService = Depends(get_folder_service),
) -> StorageUsedResponse:
    """Total size of the files filed directly in a folder."""
    folder = service.get(db, user.user_id, record_id)
    return StorageUsedResponse(storage_used=folder_storage_used(db, user.user_id, folder.id))


add_resource_routes(
    router,
    get_folder_service,
    response_model=FolderResponse,
    update_model=FolderUpdateRequest,
    total_key="totalFolders",
    with_files=False,
)
