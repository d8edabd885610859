"""Member service — association office bearers, tenure queries and contact form.

Cached entries (namespace ``members``): ``all-active``, ``prominent`` and
one entry per member id. Writes evict the id entry and both lists.
"""

from datetime import timedelta
from uuid import UUID

from loguru import logger
from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.member import Member
from app.repositories.member_repository import member_repository
from app.schemas.common import ContactRequest
from app.schemas.member import HierarchyUpdate, MemberCreate, MemberResponse, MemberStatistics, MemberUpdate
from app.utils.cache import cache
from app.utils.dates import today
from app.utils.email import render_contact_email, send_email
from app.utils.exceptions import DuplicateError, NotFoundError
from app.utils.pagination import Page

CACHE_NAME: str = "members"
TENURE_WARNING_DAYS: int = 30

_MEMBER = TypeAdapter(MemberResponse)
_MEMBER_LIST = TypeAdapter(list[MemberResponse])


def _to_responses(members) -> list[MemberResponse]:
    return [MemberResponse.model_validate(m) for m in members]


class MemberService:
    """Service handling member business logic."""

    async def _get_or_404(self, db: AsyncSession, member_id: UUID) -> Member:
        member: Member | None = await member_repository.get_by_id(db, member_id)
        if member is None:
            raise NotFoundError("Member not found")
        return member

    async def _evict(self, member_id: UUID) -> None:
        await cache.evict(CACHE_NAME, str(member_id), "all-active", "prominent")

    async def _ensure_email_free(self, db: AsyncSession, email: str | None, exclude_id: UUID | None = None) -> None:
        if email and await member_repository.exists(db, {"email": email}, exclude_id=exclude_id):
            raise DuplicateError("Member with this email already exists")

    # --- Reads --------------------------------------------------------------

    async def list_active(self, db: AsyncSession) -> list[MemberResponse]:
        async def load() -> list[MemberResponse]:
            return _to_responses(await member_repository.get_active(db))

        return await cache.get_or_load(CACHE_NAME, "all-active", _MEMBER_LIST, load)

    async def list_paginated(self, db: AsyncSession, page: int, size: int) -> Page[MemberResponse]:
        members, total = await member_repository.get_page(db, member_repository.active_query(), page, size)
        return Page[MemberResponse].build(_to_responses(members), total, page, size)

    async def get_member(self, db: AsyncSession, member_id: UUID) -> MemberResponse:
        async def load() -> MemberResponse:
            return MemberResponse.model_validate(await self._get_or_404(db, member_id))

        return await cache.get_or_load(CACHE_NAME, str(member_id), _MEMBER, load)

    async def list_prominent(self, db: AsyncSession) -> list[MemberResponse]:
        async def load() -> list[MemberResponse]:
            return _to_responses(await member_repository.get_prominent(db))

        return await cache.get_or_load(CACHE_NAME, "prominent", _MEMBER_LIST, load)

    async def list_currently_serving(self, db: AsyncSession) -> list[MemberResponse]:
        return _to_responses(await member_repository.get_currently_serving(db, today()))

    async def list_top_level(self, db: AsyncSession) -> list[MemberResponse]:
        return _to_responses(await member_repository.get_top_level(db))

    async def search(self, db: AsyncSession, term: str) -> list[MemberResponse]:
        return _to_responses(await member_repository.search(db, term))

    async def tenure_ending_soon(self, db: AsyncSession, days: int = TENURE_WARNING_DAYS) -> list[MemberResponse]:
        start = today()
        return _to_responses(await member_repository.get_tenure_ending_between(db, start, start + timedelta(days=days)))

    async def statistics(self, db: AsyncSession) -> MemberStatistics:
        return MemberStatistics(
            total_active=await member_repository.count(db, {"is_active": True}),
            prominent=await member_repository.count(db, {"is_active": True, "is_prominent": True}),
            currently_serving=await member_repository.count_currently_serving(db, today()),
        )

    # --- Writes -------------------------------------------------------------

    async def create_member(self, db: AsyncSession, data: MemberCreate) -> MemberResponse:
        """Create a member.

        Raises:
            DuplicateError: Email already used by another member
        """
        await self._ensure_email_free(db, data.email)
        member = await member_repository.create(db, data.model_dump())
        await self._evict(member.id)
        return MemberResponse.model_validate(member)

    async def update_member(self, db: AsyncSession, member_id: UUID, data: MemberUpdate) -> MemberResponse:
        member = await self._get_or_404(db, member_id)
        update_data = data.model_dump(exclude_unset=True)
        await self._ensure_email_free(db, update_data.get("email"), exclude_id=member.id)
        member = await member_repository.update(db, member, update_data)
        await self._evict(member.id)
        return MemberResponse.model_validate(member)

    async def update_hierarchy(self, db: AsyncSession, member_id: UUID, data: HierarchyUpdate) -> MemberResponse:
        member = await self._get_or_404(db, member_id)
        member.hierarchy_level = data.hierarchy_level
        await db.flush()
        await self._evict(member.id)
        return MemberResponse.model_validate(member)

    async def delete_member(self, db: AsyncSession, member_id: UUID) -> None:
        """Deactivate a member (soft delete)."""
        member = await self._get_or_404(db, member_id)
        member.is_active = False
        await db.flush()
        await self._evict(member.id)

    # --- Contact form -------------------------------------------------------

    async def submit_contact_form(self, db: AsyncSession, data: ContactRequest) -> None:
        """Email the chosen member, or the general inbox when none is given.

        Members without an email address fall back to the general inbox.

        Raises:
            NotFoundError: Unknown member id
        """
        recipient_name, recipient_email = "Association Office", settings.CONTACT_EMAIL
        if data.member_id is not None:
            member = await self._get_or_404(db, data.member_id)
            recipient_name = member.name
            if member.email:
                recipient_email = member.email

        html, text = render_contact_email(recipient_name, data.name, data.email, data.subject, data.message)
        sent = await send_email(
            recipient_email,
            f"[Contact] {data.subject}",
            html,
            text=text,
            reply_to=data.email,
        )
        logger.info("Contact form from {} for {} (sent={})", data.email, recipient_email, sent)


# Singleton instance
member_service: MemberService = MemberService()
