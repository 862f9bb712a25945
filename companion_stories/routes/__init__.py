"""FastAPI API endpoints under /api.

Endpoint groups: health, catalog (personas + stories), per-user progress and
story turns, persona chat, and the admin panel (catalog writes, story ideas,
stats, settings, connection check). Admin endpoints expect HTTP Basic credentials.
"""

from fastapi import APIRouter

from .admin import router as admin_router
from .catalog import router as catalog_router
from .chat import router as chat_router
from .progress import router as progress_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(catalog_router)
router.include_router(progress_router)
router.include_router(chat_router)
router.include_router(admin_router)
