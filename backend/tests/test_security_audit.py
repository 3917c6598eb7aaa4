"""Tests for security audit event evaluation and best-effort logging."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.models import SecurityAuditLog
from app.services.rate_limiter import RateLimiter
from app.services.security_audit import (
    SecurityAuditLogger,
    SecurityEvent,
    SecurityEventType,
)


def _session_factory(session):
    """Wrap a mock session in an async context manager factory."""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


def _evaluate(audit: SecurityAuditLogger, decision):
    return audit.evaluate(
        decision,
        endpoint="movement-paths",
        client_identity="1.2.3.4",
        user_agent="curl/8.0",
        window_seconds=60,
    )


@pytest.fixture()
def audit():
    return SecurityAuditLogger(session_factory=MagicMock())


@pytest.fixture()
def limiter():
    return RateLimiter(max_requests=15, window_seconds=60)


class TestEvaluate:
    """Tests for SecurityAuditLogger.evaluate."""

    def test_suspicious_pattern_only_on_twelfth(self, audit, limiter):
        """suspicious_pattern fires once per window, on request 12."""
        fired_on = []
        for i in range(1, 16):
            events = _evaluate(audit, limiter.check("c", now=0.0))
            if any(e.event_type == SecurityEventType.SUSPICIOUS_PATTERN for e in events):
                fired_on.append(i)

        assert fired_on == [12]

    def test_rate_limit_exceeded_on_denial(self, audit, limiter):
        """A denied request produces rate_limit_exceeded with violations and reset."""
        for _ in range(15):
            limiter.check("c", now=0.0)

        events = _evaluate(audit, limiter.check("c", now=20.5))

        assert [e.event_type for e in events] == [SecurityEventType.RATE_LIMIT_EXCEEDED]
        event = events[0]
        assert event.details == {"violations": 1, "reset_in_seconds": 40}
        assert event.request_count == 15
        assert event.window_seconds == 60
        assert event.endpoint == "movement-paths"
        assert event.client_identity == "1.2.3.4"
        assert event.user_agent == "curl/8.0"

    def test_repeated_violator_on_fresh_window(self, audit, limiter):
        """A client with 3+ violations is flagged on the first request of a new window."""
        for _ in range(18):
            limiter.check("c", now=0.0)

        events = _evaluate(audit, limiter.check("c", now=60.0))

        assert [e.event_type for e in events] == [SecurityEventType.REPEATED_VIOLATOR]
        assert events[0].details["violations"] == 3

    def test_repeated_violator_not_flagged_below_threshold(self, audit, limiter):
        """Two violations are not enough to be a repeated violator."""
        for _ in range(17):
            limiter.check("c", now=0.0)

        assert _evaluate(audit, limiter.check("c", now=60.0)) == []

    def test_repeated_violator_not_flagged_mid_window(self, audit, limiter):
        """Only count == 1 triggers repeated_violator."""
        for _ in range(18):
            limiter.check("c", now=0.0)
        limiter.check("c", now=60.0)

        assert _evaluate(audit, limiter.check("c", now=61.0)) == []

    def test_events_are_independent(self, limiter):
        """Multiple signals can fire on the same request."""
        audit = SecurityAuditLogger(
            session_factory=MagicMock(), suspicious_threshold=1, repeated_violator_threshold=1
        )
        for _ in range(16):
            limiter.check("c", now=0.0)

        events = _evaluate(audit, limiter.check("c", now=60.0))

        assert {e.event_type for e in events} == {
            SecurityEventType.SUSPICIOUS_PATTERN,
            SecurityEventType.REPEATED_VIOLATOR,
        }

    def test_normal_request_has_no_events(self, audit, limiter):
        """An ordinary first request logs nothing."""
        assert _evaluate(audit, limiter.check("c", now=0.0)) == []


def _event() -> SecurityEvent:
    return SecurityEvent(
        event_type=SecurityEventType.RATE_LIMIT_EXCEEDED,
        endpoint="location-density",
        client_identity="5.6.7.8",
        user_agent=None,
        request_count=15,
        window_seconds=60,
        details={"violations": 1},
    )


@pytest.mark.asyncio
async def test_log_event_writes_audit_row():
    """log_event adds a SecurityAuditLog row and commits."""
    session = MagicMock()
    session.commit = AsyncMock()
    audit = SecurityAuditLogger(session_factory=_session_factory(session))

    assert await audit.log_event(_event()) is True

    row = session.add.call_args[0][0]
    assert isinstance(row, SecurityAuditLog)
    assert row.event_type == "rate_limit_exceeded"
    assert row.endpoint == "location-density"
    assert row.client_ip == "5.6.7.8"
    assert row.request_count == 15
    assert row.time_window_seconds == 60
    assert row.details == {"violations": 1}
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_log_event_swallows_sink_failure():
    """A failing audit sink is logged locally and never raises."""
    session = MagicMock()
    session.commit = AsyncMock(side_effect=RuntimeError("sink down"))
    audit = SecurityAuditLogger(session_factory=_session_factory(session))

    assert await audit.log_event(_event()) is False


@pytest.mark.asyncio
async def test_log_events_continues_after_failure():
    """One failed write does not stop later events."""
    audit = SecurityAuditLogger(session_factory=MagicMock())
    audit.log_event = AsyncMock(side_effect=[False, True])

    await audit.log_events([_event(), _event()])

    assert audit.log_event.await_count == 2
