"""Best-effort security audit logging for the admission layer."""

import enum
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import async_session_maker
from app.models import SecurityAuditLog
from app.services.rate_limiter import RateLimitDecision

logger = logging.getLogger(__name__)


class SecurityEventType(enum.StrEnum):
    """Kinds of security events written to the audit sink."""

    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    SUSPICIOUS_PATTERN = "suspicious_pattern"
    REPEATED_VIOLATOR = "repeated_violator"


@dataclass(frozen=True)
class SecurityEvent:
    """A single audit record, written once and never read back."""

    event_type: SecurityEventType
    endpoint: str
    client_identity: str
    user_agent: str | None
    request_count: int
    window_seconds: int
    details: dict[str, Any] = field(default_factory=dict)


class SecurityAuditLogger:
    """Derive security events from admission decisions and persist them.

    Writes never raise: failures are logged locally and dropped.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = async_session_maker,
        suspicious_threshold: int = 12,
        repeated_violator_threshold: int = 3,
    ):
        self._session_factory = session_factory
        self.suspicious_threshold = suspicious_threshold
        self.repeated_violator_threshold = repeated_violator_threshold

    def evaluate(
        self,
        decision: RateLimitDecision,
        endpoint: str,
        client_identity: str,
        user_agent: str | None,
        window_seconds: int,
    ) -> list[SecurityEvent]:
        """Return the events triggered by one admission decision.

        The three checks are independent and may fire together.
        """
        events: list[SecurityEvent] = []

        def make(event_type: SecurityEventType, details: dict[str, Any]) -> SecurityEvent:
            return SecurityEvent(
                event_type=event_type,
                endpoint=endpoint,
                client_identity=client_identity,
                user_agent=user_agent,
                request_count=decision.count,
                window_seconds=window_seconds,
                details=details,
            )

        if not decision.allowed:
            events.append(
                make(
                    SecurityEventType.RATE_LIMIT_EXCEEDED,
                    {
                        "violations": decision.violations,
                        "reset_in_seconds": math.ceil(decision.reset_in),
                    },
                )
            )

        # Equality so the signal fires once per window
        if decision.allowed and decision.count == self.suspicious_threshold:
            events.append(
                make(
                    SecurityEventType.SUSPICIOUS_PATTERN,
                    {
                        "threshold": self.suspicious_threshold,
                        "limit": decision.limit,
                        "message": "Client approaching rate limit",
                    },
                )
            )

        if (
            decision.allowed
            and decision.count == 1
            and decision.violations >= self.repeated_violator_threshold
        ):
            events.append(
                make(
                    SecurityEventType.REPEATED_VIOLATOR,
                    {
                        "violations": decision.violations,
                        "message": "Client with prior rate limit violations started a new window",
                    },
                )
            )

        return events

    async def log_event(self, event: SecurityEvent) -> bool:
        """Append one event to the audit sink. Returns False on failure."""
        try:
            async with self._session_factory() as db:
                db.add(
                    SecurityAuditLog(
                        event_type=event.event_type.value,
                        endpoint=event.endpoint,
                        client_ip=event.client_identity,
                        user_agent=event.user_agent,
                        request_count=event.request_count,
                        time_window_seconds=event.window_seconds,
                        details=event.details,
                    )
                )
                await db.commit()
        except Exception as e:
            logger.error(
                f"Failed to write security audit event {event.event_type.value} "
                f"for {event.client_identity}: {e}"
            )
            return False

        logger.info(
            f"Security event {event.event_type.value} on {event.endpoint} "
            f"from {event.client_identity}"
        )
        return True

    async def log_events(self, events: list[SecurityEvent]) -> None:
        """Append events in order, continuing past individual failures."""
        for event in events:
            await self.log_event(event)


def _build_security_audit_logger() -> SecurityAuditLogger:
    settings = get_settings()
    return SecurityAuditLogger(
        suspicious_threshold=settings.suspicious_request_threshold,
        repeated_violator_threshold=settings.repeated_violator_threshold,
    )


# Global security audit logger instance
security_audit_logger = _build_security_audit_logger()
