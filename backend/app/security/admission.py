"""Rate-limit admission dependency for the aggregation endpoints."""

import logging
import math
from collections.abc import Callable

from fastapi import BackgroundTasks, Request, Response

from app.errors import AdmissionDenied
from app.services.rate_limiter import RateLimitDecision, rate_limiter
from app.services.security_audit import SecurityEvent, security_audit_logger

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def client_identity(request: Request) -> str:
    """Derive the rate-limit identity from forwarding headers.

    Clients without forwarding headers all share the ``unknown`` bucket.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return UNKNOWN_CLIENT


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    """X-RateLimit-* headers for a decision."""
    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(math.ceil(decision.reset_in)),
    }


def admitted_headers(request: Request) -> dict[str, str]:
    """Rate-limit headers for a request that already passed admission, if any."""
    decision = getattr(request.state, "rate_limit", None)
    if decision is None:
        return {}
    return rate_limit_headers(decision)


def audit_tasks(events: list[SecurityEvent]) -> BackgroundTasks | None:
    """Background tasks that write ``events`` after the response is sent."""
    if not events:
        return None
    tasks = BackgroundTasks()
    tasks.add_task(security_audit_logger.log_events, events)
    return tasks


def pending_audit_tasks(request: Request) -> BackgroundTasks | None:
    """Audit writes for an admitted request whose handler failed."""
    return audit_tasks(getattr(request.state, "audit_events", []))


def require_admission(endpoint: str) -> Callable:
    """Factory that returns a dependency enforcing the per-client request ceiling.

    Buckets are keyed by endpoint and client, so each endpoint has its own
    budget. Raises AdmissionDenied when the client is over the limit. Audit
    events are written after the response goes out.
    """

    async def _check_admission(
        request: Request,
        response: Response,
        background_tasks: BackgroundTasks,
    ) -> RateLimitDecision:
        client = client_identity(request)
        decision = rate_limiter.check(f"{endpoint}:{client}")

        events = security_audit_logger.evaluate(
            decision,
            endpoint=endpoint,
            client_identity=client,
            user_agent=request.headers.get("user-agent"),
            window_seconds=int(rate_limiter.window_seconds),
        )

        if not decision.allowed:
            logger.warning(
                f"Rate limit exceeded on {endpoint} for {client} "
                f"(violations={decision.violations})"
            )
            raise AdmissionDenied(client, decision, events)

        # Background tasks are dropped if the handler raises; error
        # handlers pick these up from request.state instead.
        request.state.rate_limit = decision
        request.state.audit_events = events
        if events:
            background_tasks.add_task(security_audit_logger.log_events, events)

        response.headers.update(rate_limit_headers(decision))
        return decision

    return _check_admission
