"""Audit route class — records one audit row per API call.

Routers created with ``APIRouter(route_class=AuditRoute)`` get every
endpoint wrapped: the call is timed, its outcome classified, and a row is
written through its own database session so a failed request's rollback
never discards the audit entry. Audit write failures are logged and
swallowed.

Endpoints that audit themselves (login, logout, token refresh) opt out
with ``@audit_as(None)``; others may force an action with
``@audit_as(AuditAction.X)``.
"""

import json
import time
from typing import Any, Callable, Coroutine, TypeVar
from uuid import UUID

import jwt
from fastapi import HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from loguru import logger

from app.config import settings
from app.database import get_db
from app.models.audit_log import AuditAction, AuditSeverity, AuditStatus
from app.services.audit_service import audit_service, format_stack_trace
from app.utils.jwt import decode_token
from app.utils.request import RequestInfo

F = TypeVar("F", bound=Callable[..., Any])

AUDIT_ACTION_ATTR: str = "__audit_action__"
_UNSET: Any = object()

_METHOD_ACTIONS: dict[str, AuditAction] = {
    "POST": AuditAction.CREATE,
    "GET": AuditAction.READ,
    "PUT": AuditAction.UPDATE,
    "PATCH": AuditAction.UPDATE,
    "DELETE": AuditAction.DELETE,
}

_ENTITY_NAMES: dict[str, str] = {
    "auth": "Auth",
    "users": "User",
    "members": "Member",
    "players": "Player",
    "tournaments": "Tournament",
    "districts": "District",
    "news": "News",
    "media": "Media",
    "downloads": "Download",
    "storage": "Storage",
    "admin": "Admin",
}

API_PREFIX: str = "/api/v1"


def audit_as(action: AuditAction | None) -> Callable[[F], F]:
    """Override the inferred audit action; None disables auditing for the endpoint."""

    def decorator(func: F) -> F:
        setattr(func, AUDIT_ACTION_ATTR, action)
        return func

    return decorator


def action_for_method(method: str) -> AuditAction:
    return _METHOD_ACTIONS.get(method.upper(), AuditAction.READ)


def entity_type_for_path(path: str) -> str:
    """First path segment after /api/v1, as an entity name."""
    rest = path[len(API_PREFIX):] if path.startswith(API_PREFIX) else path
    segment = next((s for s in rest.split("/") if s), "")
    if not segment:
        return "Unknown"
    return _ENTITY_NAMES.get(segment, segment.rstrip("s").capitalize())


def _token_identity(request: Request) -> tuple[UUID | None, str | None]:
    """User id and username from a valid bearer token; no database lookup."""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None, None
    try:
        payload = decode_token(token)
        return UUID(payload["sub"]), payload.get("username")
    except (jwt.InvalidTokenError, KeyError, ValueError):
        return None, None


def _response_entity_id(response: Response) -> str | None:
    """``id`` of a JSON object response body, if any."""
    if not (response.media_type or "").startswith("application/json"):
        return None
    try:
        body = json.loads(response.body)
    except (AttributeError, ValueError, TypeError):
        return None
    if isinstance(body, dict) and body.get("id") is not None:
        return str(body["id"])
    return None


async def _write(request: Request, **fields: Any) -> None:
    """Write one row in a dedicated session and commit it."""
    session_factory = request.app.dependency_overrides.get(get_db, get_db)
    sessions = session_factory()
    try:
        db = await sessions.__anext__()
        await audit_service.audit(db, **fields)
        await db.commit()
    except Exception as exc:
        logger.error("Failed to write audit row for {} {}: {}", request.method, request.url.path, exc)
    finally:
        await sessions.aclose()


class AuditRoute(APIRoute):
    """APIRoute that audits each call of its endpoint."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_handler = super().get_route_handler()
        override = getattr(self.endpoint, AUDIT_ACTION_ATTR, _UNSET)
        endpoint_name = getattr(self.endpoint, "__name__", "endpoint")

        if override is None:
            return original_handler

        async def audited_handler(request: Request) -> Response:
            if not settings.AUDIT_ENABLED:
                return await original_handler(request)

            action: AuditAction = action_for_method(request.method) if override is _UNSET else override
            entity_type = entity_type_for_path(request.url.path)
            user_id, username = _token_identity(request)
            common: dict[str, Any] = {
                "user_id": user_id,
                "username": username,
                "entity_type": entity_type,
                "info": RequestInfo.from_request(request),
            }

            start = time.perf_counter()

            def elapsed_ms() -> int:
                return int((time.perf_counter() - start) * 1000)

            try:
                response = await original_handler(request)
            except (HTTPException, RequestValidationError) as exc:
                status_code = exc.status_code if isinstance(exc, HTTPException) else 422
                message = exc.detail if isinstance(exc, HTTPException) else "Request validation failed"
                await _write(
                    request,
                    action=AuditAction.ACCESS_DENIED if status_code in (401, 403) else action,
                    description=f"{action.value} operation on {entity_type} failed (method: {endpoint_name})",
                    severity=AuditSeverity.ERROR if status_code >= 500 else AuditSeverity.WARNING,
                    status=AuditStatus.FAILURE,
                    status_code=status_code,
                    execution_time_ms=elapsed_ms(),
                    error_message=str(message),
                    **common,
                )
                raise
            except Exception as exc:
                await _write(
                    request,
                    action=action,
                    description=f"{action.value} operation on {entity_type} failed (method: {endpoint_name})",
                    severity=AuditSeverity.ERROR,
                    status=AuditStatus.FAILURE,
                    status_code=500,
                    execution_time_ms=elapsed_ms(),
                    error_message=str(exc) or type(exc).__name__,
                    stack_trace=format_stack_trace(exc),
                    **common,
                )
                raise

            duration = elapsed_ms()
            if duration > settings.AUDIT_SLOW_REQUEST_MS:
                logger.warning(
                    "Slow operation: {} {} took {}ms (method: {})",
                    request.method,
                    request.url.path,
                    duration,
                    endpoint_name,
                )

            await _write(
                request,
                action=action,
                entity_id=_response_entity_id(response),
                description=f"{action.value} operation on {entity_type} completed successfully (method: {endpoint_name})",
                status_code=response.status_code,
                execution_time_ms=duration,
                **common,
            )
            return response

        return audited_handler
