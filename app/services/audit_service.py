"""Audit service — writes and queries the audit trail.

Rows are added to the caller's session and flushed; the caller (router,
audit route class or scheduler) owns the commit.
"""

import traceback
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import MAX_ERROR_LENGTH, AuditAction, AuditLog, AuditSeverity, AuditStatus
from app.models.user import User
from app.repositories.audit_repository import audit_repository
from app.schemas.audit import AuditLogResponse, AuditStatistics
from app.utils.dates import utcnow
from app.utils.pagination import Page
from app.utils.request import RequestInfo

# More FAILURE rows than this within the window flags a user
SUSPICIOUS_FAILURE_THRESHOLD: int = 5
SUSPICIOUS_WINDOW: timedelta = timedelta(hours=1)


def _truncate(value: str | None, limit: int = MAX_ERROR_LENGTH) -> str | None:
    if value is None:
        return None
    return value if len(value) <= limit else value[:limit]


def format_stack_trace(exc: BaseException) -> str:
    text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return _truncate(text) or ""


class AuditService:
    """Audit trail writer and reader."""

    async def audit(
        self,
        db: AsyncSession,
        action: AuditAction,
        *,
        user: User | None = None,
        user_id: UUID | None = None,
        username: str | None = None,
        entity_type: str | None = None,
        entity_id: str | UUID | None = None,
        description: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
        severity: AuditSeverity = AuditSeverity.INFO,
        status: AuditStatus = AuditStatus.SUCCESS,
        info: RequestInfo | None = None,
        status_code: int | None = None,
        execution_time_ms: int | None = None,
        error_message: str | None = None,
        stack_trace: str | None = None,
    ) -> AuditLog:
        """Write one audit row.

        ``user`` wins over ``user_id``/``username`` when both are given.
        """
        if user is not None:
            user_id, username = user.id, user.username
        info = info or RequestInfo()

        row = AuditLog(
            user_id=user_id,
            username=username,
            action=action.value,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            description=description,
            old_values=old_values,
            new_values=new_values,
            extra_metadata=metadata,
            ip_address=info.ip_address,
            user_agent=info.user_agent,
            request_method=info.method,
            request_url=info.url,
            session_id=info.session_id,
            correlation_id=info.correlation_id,
            status_code=status_code,
            execution_time_ms=execution_time_ms,
            severity=severity.value,
            status=status.value,
            error_message=_truncate(error_message),
            stack_trace=_truncate(stack_trace),
        )
        db.add(row)
        await db.flush()
        return row

    async def log_failure(
        self,
        db: AsyncSession,
        action: AuditAction,
        error: str | BaseException,
        *,
        severity: AuditSeverity = AuditSeverity.ERROR,
        **fields: Any,
    ) -> AuditLog:
        """Write a FAILURE row; exceptions contribute their traceback."""
        stack_trace = None
        if isinstance(error, BaseException):
            stack_trace = format_stack_trace(error)
            error = str(error) or type(error).__name__
        return await self.audit(
            db,
            action,
            severity=severity,
            status=AuditStatus.FAILURE,
            error_message=error,
            stack_trace=stack_trace,
            **fields,
        )

    async def log_login(
        self,
        db: AsyncSession,
        username: str,
        success: bool,
        reason: str | None = None,
        *,
        user: User | None = None,
        info: RequestInfo | None = None,
    ) -> AuditLog:
        if success:
            return await self.audit(
                db,
                AuditAction.LOGIN,
                user=user,
                username=username,
                entity_type="User",
                entity_id=user.id if user else None,
                description=f"User {username} logged in",
                info=info,
                status_code=200,
            )
        return await self.audit(
            db,
            AuditAction.LOGIN_FAILED,
            user=user,
            username=username,
            entity_type="User",
            description=f"Failed login attempt for {username}",
            severity=AuditSeverity.WARNING,
            status=AuditStatus.FAILURE,
            error_message=reason,
            info=info,
        )

    async def log_logout(self, db: AsyncSession, user: User, info: RequestInfo | None = None) -> AuditLog:
        return await self.audit(
            db,
            AuditAction.LOGOUT,
            user=user,
            entity_type="User",
            entity_id=user.id,
            description=f"User {user.username} logged out",
            info=info,
        )

    async def log_access_denied(
        self,
        db: AsyncSession,
        user: User | None,
        resource: str,
        reason: str,
        info: RequestInfo | None = None,
    ) -> AuditLog:
        return await self.audit(
            db,
            AuditAction.ACCESS_DENIED,
            user=user,
            entity_type=resource,
            description=f"Access denied to {resource}",
            severity=AuditSeverity.WARNING,
            status=AuditStatus.FAILURE,
            error_message=reason,
            info=info,
        )

    async def log_suspicious_activity(
        self,
        db: AsyncSession,
        user: User | None,
        description: str,
        metadata: dict[str, Any] | None = None,
        info: RequestInfo | None = None,
    ) -> AuditLog:
        logger.warning("Suspicious activity: {}", description)
        return await self.audit(
            db,
            AuditAction.SUSPICIOUS_ACTIVITY,
            user=user,
            description=description,
            metadata=metadata,
            severity=AuditSeverity.CRITICAL,
            status=AuditStatus.FAILURE,
            info=info,
        )

    # --- Queries ------------------------------------------------------------

    async def _page(self, db: AsyncSession, query, page: int, size: int) -> Page[AuditLogResponse]:
        rows, total = await audit_repository.get_page(db, query, page, size)
        items = [AuditLogResponse.model_validate(r) for r in rows]
        return Page[AuditLogResponse].build(items, total, page, size)

    async def get_logs(self, db: AsyncSession, page: int = 1, size: int = 20) -> Page[AuditLogResponse]:
        return await self._page(db, audit_repository.recent_query(), page, size)

    async def get_user_logs(
        self, db: AsyncSession, user_id: UUID, page: int = 1, size: int = 20
    ) -> Page[AuditLogResponse]:
        return await self._page(db, audit_repository.user_query(user_id), page, size)

    async def get_entity_logs(
        self, db: AsyncSession, entity_type: str, entity_id: str, page: int = 1, size: int = 20
    ) -> Page[AuditLogResponse]:
        return await self._page(db, audit_repository.entity_query(entity_type, entity_id), page, size)

    async def get_security_events(self, db: AsyncSession, page: int = 1, size: int = 20) -> Page[AuditLogResponse]:
        return await self._page(db, audit_repository.security_query(), page, size)

    async def get_failed_operations(self, db: AsyncSession, page: int = 1, size: int = 20) -> Page[AuditLogResponse]:
        return await self._page(db, audit_repository.failures_query(), page, size)

    async def get_statistics(self, db: AsyncSession, since: datetime) -> AuditStatistics:
        return AuditStatistics(
            since=since,
            total=await audit_repository.count_since(db, since),
            by_action=await audit_repository.count_grouped(db, AuditLog.action, since),
            by_severity=await audit_repository.count_grouped(db, AuditLog.severity, since),
        )

    async def detect_suspicious_activity(self, db: AsyncSession, user_id: UUID) -> bool:
        """True when the user produced more than five failures in the last hour."""
        since = utcnow() - SUSPICIOUS_WINDOW
        failures = await audit_repository.count_user_failures(db, user_id, since)
        return failures > SUSPICIOUS_FAILURE_THRESHOLD

    async def cleanup_old_logs(self, db: AsyncSession, retention_days: int = 90) -> int:
        """Delete rows older than the retention period. Returns the count."""
        cutoff = utcnow() - timedelta(days=retention_days)
        deleted = await audit_repository.delete_before(db, cutoff)
        logger.info("Deleted {count} audit rows older than {days} days", count=deleted, days=retention_days)
        return deleted


# Singleton instance
audit_service: AuditService = AuditService()
