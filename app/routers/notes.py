"""Note API endpoints."""

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user, get_note_service
from app.rate_limit import limiter
from app.routers.resources import add_resource_routes
from app.schemas.resources import NoteResponse, NoteUpdateRequest
from app.services.resources import ResourceService

router = APIRouter(prefix="/api/notes", tags=["Notes"])


@router.post("/create", response_model=NoteResponse, status_code=201)
@limiter.limit("20/minute")
async def create_note(
    request: Request,
    title: str | None = Form(None),
    description: str | None = Form(None),
    favorite: bool = Form(False),
    parent_id: int | None = Form(None, alias="parentId"),
    file: UploadFile | None = File(None),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: ResourceService = Depends(get_note_service),
):
    """Create a note. Attaching a file is optional."""
    fields = {"title": title, "description": description, "favorite": favorite, "parent_id": parent_id}
    if file is not None and file.filename:
        return await service.create_with_upload(db, user.user_id, fields, file, file_name_field="file_name")
    return service.create(db, user.user_id, fields)


add_resource_routes(
    router,
    get_note_service,
    response_model=NoteResponse,
    update_model=NoteUpdateRequest,
    total_key="totalNotes",
)
