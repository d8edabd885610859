"""Audit Router — read and prune the audit trail, manage blocked IPs (SYSTEM_AUDIT)."""

from datetime import timedelta
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import DbSession, RequestContext, require_permission
from app.middleware.audit import AuditRoute
from app.models.user import User
from app.schemas.audit import AuditLogResponse, AuditStatistics, CleanupResponse, SecurityMetrics
from app.schemas.common import MessageResponse
from app.services.audit_service import audit_service
from app.services.security_monitoring_service import security_monitoring_service
from app.utils.dates import utcnow
from app.utils.exceptions import NotFoundError
from app.utils.pagination import Page, Pagination
from app.utils.rbac import Permission

router: APIRouter = APIRouter(route_class=AuditRoute)

Auditor = Annotated[User, Depends(require_permission(Permission.SYSTEM_AUDIT))]


@router.get("/logs", response_model=Page[AuditLogResponse])
async def list_logs(db: DbSession, params: Pagination, current_user: Auditor) -> Page[AuditLogResponse]:
    """All audit rows, newest first."""
    return await audit_service.get_logs(db, params.page, params.size)


@router.get("/logs/user/{user_id}", response_model=Page[AuditLogResponse])
async def user_logs(
    user_id: UUID, db: DbSession, params: Pagination, current_user: Auditor
) -> Page[AuditLogResponse]:
    return await audit_service.get_user_logs(db, user_id, params.page, params.size)


@router.get("/logs/entity/{entity_type}/{entity_id}", response_model=Page[AuditLogResponse])
async def entity_logs(
    entity_type: str, entity_id: str, db: DbSession, params: Pagination, current_user: Auditor
) -> Page[AuditLogResponse]:
    return await audit_service.get_entity_logs(db, entity_type, entity_id, params.page, params.size)


@router.get("/logs/security", response_model=Page[AuditLogResponse])
async def security_events(db: DbSession, params: Pagination, current_user: Auditor) -> Page[AuditLogResponse]:
    return await audit_service.get_security_events(db, params.page, params.size)


@router.get("/logs/failures", response_model=Page[AuditLogResponse])
async def failed_operations(db: DbSession, params: Pagination, current_user: Auditor) -> Page[AuditLogResponse]:
    return await audit_service.get_failed_operations(db, params.page, params.size)


@router.get("/logs/statistics", response_model=AuditStatistics)
async def audit_statistics(
    db: DbSession, current_user: Auditor, days: Annotated[int, Query(ge=1, le=365)] = 7
) -> AuditStatistics:
    return await audit_service.get_statistics(db, utcnow() - timedelta(days=days))


@router.post("/cleanup/audit-logs", response_model=CleanupResponse)
async def cleanup_audit_logs(
    db: DbSession, current_user: Auditor, retention_days: Annotated[int, Query(ge=1)] = 90
) -> CleanupResponse:
    deleted = await audit_service.cleanup_old_logs(db, retention_days)
    await db.commit()
    return CleanupResponse(deleted_count=deleted, retention_days=retention_days)


# --- Security monitoring ---------------------------------------------------

IpAddress = Annotated[str, Query(min_length=1, max_length=45)]


@router.get("/security/metrics", response_model=SecurityMetrics)
async def security_metrics(db: DbSession, current_user: Auditor) -> SecurityMetrics:
    return await security_monitoring_service.metrics(db)


@router.get("/security/blocked-ips", response_model=list[str])
async def blocked_ips(current_user: Auditor) -> list[str]:
    return security_monitoring_service.blocked_ips()


@router.post("/security/block-ip", response_model=MessageResponse)
async def block_ip(
    ip_address: IpAddress,
    db: DbSession,
    current_user: Auditor,
    info: RequestContext,
    reason: Annotated[str, Query(min_length=1, max_length=500)] = "Blocked by administrator",
) -> MessageResponse:
    """Manually block a client IP from logging in."""
    await security_monitoring_service.block_ip(db, ip_address, reason, user=current_user, info=info)
    await db.commit()
    return MessageResponse(message=f"IP address {ip_address} blocked")


@router.post("/security/unblock-ip", response_model=MessageResponse)
async def unblock_ip(ip_address: IpAddress, current_user: Auditor) -> MessageResponse:
    if not security_monitoring_service.unblock_ip(ip_address):
        raise NotFoundError(f"IP address {ip_address} is not blocked")
    return MessageResponse(message=f"IP address {ip_address} unblocked")


@router.post("/security/clear-blocked-ips", response_model=MessageResponse)
async def clear_blocked_ips(current_user: Auditor) -> MessageResponse:
    cleared = security_monitoring_service.clear_blocked_ips()
    return MessageResponse(message=f"Cleared {cleared} blocked IP address(es)")
