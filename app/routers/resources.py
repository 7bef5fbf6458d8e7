"""Routes shared by every resource type.

``add_resource_routes`` mounts the owner-scoped operations on a router; each
resource module adds its own create/upload endpoint on top.
"""

from collections.abc import Callable

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from starlette.responses import Response

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user
from app.schemas.auth import MessageResponse
from app.schemas.resources import RenameRequest, SizeResponse, TotalSizeResponse
from app.services.resources import ResourceService


def add_resource_routes(
    router: APIRouter,
    get_service: Callable[..., ResourceService],
    response_model: type[BaseModel],
    update_model: type[BaseModel],
    total_key: str,
    with_files: bool = True,
) -> APIRouter:
    """Register get/update/rename/favorite/copy/duplicate/delete/list/aggregate routes."""

    @router.get("/get/{record_id}", response_model=response_model)
    def get_record(
        record_id: int,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ):
        return service.get(db, user.user_id, record_id)

    @router.put("/update/{record_id}", response_model=response_model)
    def update_record(
        record_id: int,
        body: update_model,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ):
        return service.update(db, user.user_id, record_id, body.model_dump(exclude_unset=True))

    @router.put("/rename/{record_id}", response_model=response_model)
    def rename_record(
        record_id: int,
        body: RenameRequest,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ):
        return service.rename(db, user.user_id, record_id, body.name)

    @router.put("/favorite/{record_id}", response_model=response_model)
    def toggle_favorite(
        record_id: int,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ):
        return service.toggle_favorite(db, user.user_id, record_id)

    @router.post("/copy/{record_id}", response_model=response_model, status_code=201)
    def copy_record(
        record_id: int,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ):
        return service.copy(db, user.user_id, record_id)

    @router.post("/duplicate/{record_id}", response_model=response_model, status_code=201)
    def duplicate_record(
        record_id: int,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ):
        return service.duplicate(db, user.user_id, record_id)

    @router.delete("/delete/{record_id}", response_model=MessageResponse)
    def delete_record(
        record_id: int,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ) -> MessageResponse:
        service.delete(db, user.user_id, record_id)
        return MessageResponse(message=f"{service.label} deleted")

    @router.get("/get-all", response_model=list[response_model])
    def list_records(
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ):
        return service.list_all(db, user.user_id)

    @router.get("/all/favorites", response_model=list[response_model])
    def list_favorites(
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ):
        return service.list_favorites(db, user.user_id)

    @router.get("/date/{date}", response_model=list[response_model])
    def list_by_date(
        date: str,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ):
        return service.list_by_date(db, user.user_id, date)

    @router.get("/total/count")
    def total_count(
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ) -> dict:
        return {total_key: service.count(db, user.user_id)}

    if not with_files:
        return router

    @router.get("/total/size", response_model=TotalSizeResponse)
    def total_size(
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ) -> TotalSizeResponse:
        return TotalSizeResponse(total_size=service.total_size(db, user.user_id))

    @router.get("/size/{record_id}", response_model=SizeResponse)
    def record_size(
        record_id: int,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ) -> SizeResponse:
        return SizeResponse(size=service.size_of(db, user.user_id, record_id))

    @router.get("/file/{record_id}")
    def download_file(
        record_id: int,
        user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
        service: ResourceService = Depends(get_service),
    ) -> Response:
        return service.file_response(db, user.user_id, record_id)

    return router
