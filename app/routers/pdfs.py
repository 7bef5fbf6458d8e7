"""PDF API endpoints."""

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user, get_pdf_service
from app.rate_limit import limiter
from app.routers.resources import add_resource_routes
from app.schemas.resources import BlobUpdateRequest, StoredFileResponse
from app.services.resources import ResourceService

router = APIRouter(prefix="/api/pdfs", tags=["PDFs"])


@router.post("/upload", response_model=StoredFileResponse, status_code=201)
@limiter.limit("20/minute")
async def upload_pdf(
    request: Request,
    pdf: UploadFile | None = File(None),
    parent_id: int | None = Form(None, alias="parentId"),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: ResourceService = Depends(get_pdf_service),
):
    """Upload a PDF document."""
    fields = {"name": pdf.filename if pdf else None, "parent_id": parent_id}
    return await service.create_with_upload(db, user.user_id, fields, pdf)


add_resource_routes(
    router,
    get_pdf_service,
    response_model=StoredFileResponse,
    update_model=BlobUpdateRequest,
    total_key="totalPdfs",
)
