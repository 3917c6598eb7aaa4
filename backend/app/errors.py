"""Application exceptions for the aggregation pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.services.rate_limiter import RateLimitDecision
    from app.services.security_audit import SecurityEvent


class AggregationError(Exception):
    """Base class for errors that terminate an aggregation request."""


class AdmissionDenied(AggregationError):
    """Client exceeded its request ceiling for the current window.

    Carries the audit events raised by the rejected request so the 429
    response can write them after it is sent.
    """

    def __init__(
        self,
        client: str,
        decision: RateLimitDecision,
        events: Sequence[SecurityEvent] = (),
    ):
        super().__init__(f"Rate limit exceeded for {client}")
        self.client = client
        self.decision = decision
        self.events = list(events)


class UpstreamQueryFailure(AggregationError):
    """Reading from the location ping store failed."""
