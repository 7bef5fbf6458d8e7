"""FastAPI dependencies: configured collaborators, services and the authorization gate."""

from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.errors import AuthError
from app.models.resources import Folder, Image, Note, Pdf
from app.models.user import User
from app.services.auth import AuthService
from app.services.jwt import get_jwt_service
from app.services.mail import Notifier, build_notifier
from app.services.resources import ResourceService, image_content_type, pdf_content_type
from app.services.sessions import SessionStore
from app.services.strategies import AuthStrategy, build_auth_strategy
from app.storage import BlobBackend, build_blob_backend


@dataclass
class CurrentUser:
    """Authenticated user context."""

    user_id: int
    email: str
    name: str


# --- collaborators, built once from settings ---


@lru_cache
def get_blob_backend() -> BlobBackend:
    return build_blob_backend(get_settings())


@lru_cache
def get_notifier() -> Notifier:
    return build_notifier(get_settings())


@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore(expire_minutes=get_settings().SESSION_EXPIRE_MINUTES)


@lru_cache
def get_auth_strategy() -> AuthStrategy:
    return build_auth_strategy(get_settings(), get_jwt_service(), get_session_store())


# --- services ---


def get_auth_service(notifier: Notifier = Depends(get_notifier)) -> AuthService:
    return AuthService(notifier)


def get_folder_service() -> ResourceService:
    return ResourceService(Folder, "Folder", duplicate_suffix=" - Duplicate")


def get_image_service(backend: BlobBackend = Depends(get_blob_backend)) -> ResourceService:
    return ResourceService(
        Image,
        "Image",
        backend=backend,
        accepts=image_content_type,
        max_upload_bytes=get_settings().max_upload_bytes,
    )


def get_pdf_service(backend: BlobBackend = Depends(get_blob_backend)) -> ResourceService:
    return ResourceService(
        Pdf,
        "Pdf",
        backend=backend,
        accepts=pdf_content_type,
        max_upload_bytes=get_settings().max_upload_bytes,
    )


def get_note_service(backend: BlobBackend = Depends(get_blob_backend)) -> ResourceService:
    return ResourceService(
        Note,
        "Note",
        backend=backend,
        name_field="title",
        editable_fields=("title", "description", "parent_id", "favorite"),
        max_upload_bytes=get_settings().max_upload_bytes,
    )


def get_all_resource_services(
    folders: ResourceService = Depends(get_folder_service),
    images: ResourceService = Depends(get_image_service),
    pdfs: ResourceService = Depends(get_pdf_service),
    notes: ResourceService = Depends(get_note_service),
) -> list[ResourceService]:
    """Every resource service, folders last so contained items go first."""
    return [notes, pdfs, images, folders]


# --- authorization gate ---


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    strategy: AuthStrategy = Depends(get_auth_strategy),
) -> CurrentUser:
    """Resolve the caller from the configured credential. Raises 401 if absent, invalid or stale.

    A valid credential for an account that has since been deleted is rejected.
    """
    user_id = strategy.resolve(request)
    user = db.get(User, user_id)
    if user is None:
        raise AuthError("Account no longer exists", reason="invalid")

    return CurrentUser(user_id=user.id, email=user.email, name=user.name)
