"""FastAPI API endpoints under /api.

Endpoint groups: meta (health, skills, settings) and sessions (character
creation, start, player input, check rolls, result).
"""

from fastapi import APIRouter

from .meta import router as meta_router
from .sessions import router as sessions_router

router = APIRouter()
router.include_router(meta_router)
router.include_router(sessions_router)
