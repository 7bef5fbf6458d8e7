"""API routers."""

from app.routers.auth import router as auth_router
from app.routers.folders import router as folders_router
from app.routers.images import router as images_router
from app.routers.notes import router as notes_router
from app.routers.pdfs import router as pdfs_router

__all__ = ["auth_router", "folders_router", "images_router", "pdfs_router", "notes_router"]
