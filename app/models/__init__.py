"""SQLAlchemy ORM models package — central import point for all domain models.

Importing from this package registers every model with the SQLAlchemy
metadata, which Alembic autogenerate and relationship resolution rely on.

Modules:
    user: users and role assignments
    token: refresh tokens
    district: districts
    member: association office bearers
    player: players, statistics, achievements
    tournament: tournaments and registrations
    news: news categories and articles
    media: media galleries and items
    download: downloadable documents
    audit_log: audit trail
"""

from app.models.user import User, UserRole
from app.models.token import RefreshToken
from app.models.district import District
from app.models.member import Member
from app.models.player import Achievement, Player, PlayerStatistics
from app.models.tournament import Tournament, TournamentRegistration
from app.models.news import NewsArticle, NewsCategory
from app.models.media import MediaGallery, MediaItem
from app.models.download import Download
from app.models.audit_log import AuditLog

__all__ = [
    "User", "UserRole",
    "RefreshToken",
    "District",
    "Member",
    "Player", "PlayerStatistics", "Achievement",
    "Tournament", "TournamentRegistration",
    "NewsCategory", "NewsArticle",
    "MediaGallery", "MediaItem",
    "Download",
    "AuditLog",
]
