"""Security monitoring — failed-login tracking and client IP blocking.

The block list is process-local, like the login rate limiter. Blocking
and anomaly detection write SUSPICIOUS_ACTIVITY rows into the caller's
session; the caller commits.
"""

from datetime import timedelta

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.audit_log import AuditAction, AuditLog, AuditSeverity
from app.models.user import User
from app.repositories.audit_repository import audit_repository
from app.schemas.audit import SecurityMetrics
from app.services.audit_service import audit_service
from app.utils.dates import utcnow
from app.utils.request import RequestInfo


class SecurityMonitoringService:
    """Tracks failed logins per client IP and keeps the block list."""

    def __init__(self) -> None:
        self._blocked: dict[str, str] = {}

    def is_blocked(self, ip_address: str) -> bool:
        return ip_address in self._blocked

    def blocked_ips(self) -> list[str]:
        return sorted(self._blocked)

    async def block_ip(
        self,
        db: AsyncSession,
        ip_address: str,
        reason: str,
        user: User | None = None,
        info: RequestInfo | None = None,
    ) -> None:
        self._blocked[ip_address] = reason
        logger.warning("IP address blocked: {} ({})", ip_address, reason)
        await audit_service.log_suspicious_activity(
            db,
            user,
            f"IP address blocked: {ip_address}",
            metadata={"ip_address": ip_address, "reason": reason},
            info=info,
        )

    def unblock_ip(self, ip_address: str) -> bool:
        """Remove one address. Returns False when it was not blocked."""
        if self._blocked.pop(ip_address, None) is None:
            return False
        logger.info("IP address unblocked: {}", ip_address)
        return True

    def clear_blocked_ips(self) -> int:
        cleared = len(self._blocked)
        self._blocked.clear()
        if cleared:
            logger.info("Cleared {} blocked IP address(es)", cleared)
        return cleared

    async def monitor_failed_login(
        self,
        db: AsyncSession,
        username: str,
        user: User | None = None,
        info: RequestInfo | None = None,
    ) -> None:
        """Check the failure count after a LOGIN_FAILED row has been flushed.

        Blocks the client IP at the threshold and warns at half of it. A
        known user with too many recent failures is flagged as well.
        """
        ip_address = info.ip_address if info else None
        if ip_address and not self.is_blocked(ip_address):
            window = settings.FAILED_LOGIN_WINDOW_MINUTES
            since = utcnow() - timedelta(minutes=window)
            attempts = await audit_repository.count_failed_logins_by_ip(db, ip_address, since)
            if attempts >= settings.FAILED_LOGIN_BLOCK_THRESHOLD:
                await self.block_ip(
                    db,
                    ip_address,
                    f"Excessive failed login attempts ({attempts} in {window} minutes)",
                    info=info,
                )
            elif attempts >= settings.FAILED_LOGIN_BLOCK_THRESHOLD // 2:
                logger.warning("Multiple failed login attempts from {} ({})", ip_address, attempts)

        if user is not None and await audit_service.detect_suspicious_activity(db, user.id):
            await audit_service.log_suspicious_activity(
                db,
                user,
                f"Anomalous behavior detected for user: {username}",
                metadata={"username": username, "time_window": "1 hour"},
                info=info,
            )

    async def metrics(self, db: AsyncSession) -> SecurityMetrics:
        since = utcnow() - timedelta(hours=24)
        by_action = await audit_repository.count_grouped(db, AuditLog.action, since)
        by_severity = await audit_repository.count_grouped(db, AuditLog.severity, since)
        blocked = self.blocked_ips()
        return SecurityMetrics(
            failed_logins_last_24_hours=by_action.get(AuditAction.LOGIN_FAILED.value, 0),
            critical_events_last_24_hours=by_severity.get(AuditSeverity.CRITICAL.value, 0),
            access_denied_last_24_hours=by_action.get(AuditAction.ACCESS_DENIED.value, 0),
            suspicious_activities_last_24_hours=by_action.get(AuditAction.SUSPICIOUS_ACTIVITY.value, 0),
            blocked_ips_count=len(blocked),
            blocked_ips=blocked,
            top_failed_ips=await audit_repository.top_failed_login_ips(db, since),
        )


# Singleton instance
security_monitoring_service: SecurityMonitoringService = SecurityMonitoringService()
