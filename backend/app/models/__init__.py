"""SQLAlchemy ORM models."""

from app.models.location import UserLocation
from app.models.security_audit import SecurityAuditLog

__all__ = [
    "SecurityAuditLog",
    "UserLocation",
]
