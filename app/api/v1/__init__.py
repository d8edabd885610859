"""API v1 router package — aggregates every resource router.

Mounted by app.main under /api/v1:
    /auth, /users, /members, /players, /tournaments, /districts, /news,
    /media, /downloads, /storage, /admin, /admin/audit, /public
"""

from fastapi import APIRouter

from app.api.v1.admin import router as admin_router
from app.api.v1.audit import router as audit_router
from app.api.v1.auth import router as auth_router
from app.api.v1.districts import router as districts_router
from app.api.v1.downloads import router as downloads_router
from app.api.v1.media import router as media_router
from app.api.v1.members import router as members_router
from app.api.v1.news import router as news_router
from app.api.v1.players import router as players_router
from app.api.v1.public import router as public_router
from app.api.v1.storage import router as storage_router
from app.api.v1.tournaments import router as tournaments_router
from app.api.v1.users import router as users_router

api_router: APIRouter = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])

# Association content
api_router.include_router(members_router, prefix="/members", tags=["Members"])
api_router.include_router(players_router, prefix="/players", tags=["Players"])
api_router.include_router(tournaments_router, prefix="/tournaments", tags=["Tournaments"])
api_router.include_router(districts_router, prefix="/districts", tags=["Districts"])
api_router.include_router(news_router, prefix="/news", tags=["News"])
api_router.include_router(media_router, prefix="/media", tags=["Media"])
api_router.include_router(downloads_router, prefix="/downloads", tags=["Downloads"])
api_router.include_router(storage_router, prefix="/storage", tags=["Storage"])

# Administration
api_router.include_router(audit_router, prefix="/admin/audit", tags=["Audit"])
api_router.include_router(admin_router, prefix="/admin", tags=["Admin"])

api_router.include_router(public_router, prefix="/public", tags=["Public"])
