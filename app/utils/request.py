"""Request context helpers — client IP, user agent and correlation id."""

from dataclasses import dataclass

from starlette.requests import Request

CORRELATION_HEADER: str = "X-Correlation-ID"


def client_ip(request: Request) -> str:
    """Return the originating client IP.

    Order: first X-Forwarded-For entry, X-Real-IP, then the peer address.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host
    return "unknown"


@dataclass
class RequestInfo:
    """Per-request fields copied onto audit rows."""

    ip_address: str | None = None
    user_agent: str | None = None
    method: str | None = None
    url: str | None = None
    session_id: str | None = None
    correlation_id: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestInfo":
        user_agent = request.headers.get("user-agent")
        return cls(
            ip_address=client_ip(request)[:45],
            user_agent=user_agent[:500] if user_agent else None,
            method=request.method,
            url=str(request.url)[:1000],
            session_id=request.headers.get("x-session-id"),
            correlation_id=request.headers.get(CORRELATION_HEADER),
        )
