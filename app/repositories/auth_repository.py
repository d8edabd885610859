"""Auth repository — refresh token CRUD and credential lookups.

Provides database operations for authentication workflows including
refresh token rotation and lookup by username or email.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.token import RefreshToken
from app.models.user import User


class AuthRepository:
    """Repository handling authentication-related database queries."""

    async def get_user_by_login(
        self,
        db: AsyncSession,
        username_or_email: str,
    ) -> User | None:
        """Retrieve a user whose username or email matches (email case-insensitive).

        Args:
            db: Async database session
            username_or_email: Login identifier typed by the user

        Returns:
            User | None: Found user (roles eager-loaded) or None
        """
        login = username_or_email.strip()
        query: Select = select(User).where(
            or_(User.username == login, func.lower(User.email) == login.lower())
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def create_refresh_token(
        self,
        db: AsyncSession,
        user_id: UUID,
        token: str,
        expires_at: datetime,
    ) -> RefreshToken:
        """Persist a newly issued refresh token.

        Args:
            db: Async database session
            user_id: Token owner
            token: Encoded JWT refresh token
            expires_at: Token expiration timestamp
        """
        db_token: RefreshToken = RefreshToken(
            user_id=user_id,
            token=token,
            expires_at=expires_at,
        )
        db.add(db_token)
        await db.flush()
        return db_token

    async def get_refresh_token(
        self,
        db: AsyncSession,
        token: str,
    ) -> RefreshToken | None:
        query: Select = select(RefreshToken).where(RefreshToken.token == token)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def delete_refresh_token(
        self,
        db: AsyncSession,
        token: str,
    ) -> bool:
        """Delete a refresh token by its token string.

        Returns:
            bool: Whether a token was deleted
        """
        db_token: RefreshToken | None = await self.get_refresh_token(db, token)
        if db_token is None:
            return False

        await db.delete(db_token)
        await db.flush()
        return True

    async def delete_user_refresh_tokens(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> None:
        """Delete all refresh tokens of a user (logout from all devices)."""
        stmt = delete(RefreshToken).where(RefreshToken.user_id == user_id)
        await db.execute(stmt)
        await db.flush()


# Singleton instance
auth_repository: AuthRepository = AuthRepository()
