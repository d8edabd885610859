"""Audit repository — audit trail queries and retention cleanup."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import SECURITY_ACTIONS, AuditAction, AuditLog, AuditSeverity, AuditStatus
from app.repositories.base import BaseRepository


class AuditRepository(BaseRepository[AuditLog]):
    """Repository handling database queries for the audit_logs table."""

    def __init__(self) -> None:
        super().__init__(AuditLog)

    def recent_query(self) -> Select:
        return select(AuditLog).order_by(AuditLog.timestamp.desc())

    def user_query(self, user_id: UUID) -> Select:
        return self.recent_query().where(AuditLog.user_id == user_id)

    def entity_query(self, entity_type: str, entity_id: str) -> Select:
        return self.recent_query().where(
            AuditLog.entity_type == entity_type,
            AuditLog.entity_id == entity_id,
        )

    def security_query(self) -> Select:
        return self.recent_query().where(AuditLog.action.in_(SECURITY_ACTIONS))

    def failures_query(self) -> Select:
        return self.recent_query().where(
            AuditLog.status == AuditStatus.FAILURE.value,
            AuditLog.severity.in_((AuditSeverity.ERROR.value, AuditSeverity.CRITICAL.value)),
        )

    async def count_grouped(self, db: AsyncSession, column, since: datetime) -> dict[str, int]:
        query = (
            select(column, func.count(AuditLog.id))
            .where(AuditLog.timestamp >= since)
            .group_by(column)
        )
        return {key: count for key, count in (await db.execute(query)).all()}

    async def count_since(self, db: AsyncSession, since: datetime) -> int:
        query = select(func.count()).select_from(AuditLog).where(AuditLog.timestamp >= since)
        return (await db.execute(query)).scalar() or 0

    async def count_user_failures(self, db: AsyncSession, user_id: UUID, since: datetime) -> int:
        query = (
            select(func.count())
            .select_from(AuditLog)
            .where(
                AuditLog.user_id == user_id,
                AuditLog.status == AuditStatus.FAILURE.value,
                AuditLog.timestamp >= since,
            )
        )
        return (await db.execute(query)).scalar() or 0

    async def count_failed_logins_by_ip(self, db: AsyncSession, ip_address: str, since: datetime) -> int:
        query = (
            select(func.count())
            .select_from(AuditLog)
            .where(
                AuditLog.action == AuditAction.LOGIN_FAILED.value,
                AuditLog.ip_address == ip_address,
                AuditLog.timestamp >= since,
            )
        )
        return (await db.execute(query)).scalar() or 0

    async def top_failed_login_ips(self, db: AsyncSession, since: datetime, limit: int = 10) -> dict[str, int]:
        count = func.count(AuditLog.id)
        query = (
            select(AuditLog.ip_address, count)
            .where(
                AuditLog.action == AuditAction.LOGIN_FAILED.value,
                AuditLog.ip_address.is_not(None),
                AuditLog.timestamp >= since,
            )
            .group_by(AuditLog.ip_address)
            .order_by(count.desc())
            .limit(limit)
        )
        return {ip: total for ip, total in (await db.execute(query)).all()}

    async def delete_before(self, db: AsyncSession, cutoff: datetime) -> int:
        result = await db.execute(
            delete(AuditLog).where(AuditLog.timestamp < cutoff).execution_options(synchronize_session=False)
        )
        await db.flush()
        return result.rowcount or 0


# Singleton instance
audit_repository: AuditRepository = AuditRepository()
