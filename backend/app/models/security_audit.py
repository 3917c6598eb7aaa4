"""Security audit log model for rate-limit and scraping signals."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utc_now


class SecurityAuditLog(Base):
    """A write-once security event recorded by the admission layer."""

    __tablename__ = "security_audit_logs"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    # 'rate_limit_exceeded', 'suspicious_pattern', 'repeated_violator'
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    # 'location-density', 'movement-paths'
    endpoint: Mapped[str] = mapped_column(String(100), nullable=False)
    client_ip: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_agent: Mapped[str | None] = mapped_column(Text)
    request_count: Mapped[int | None] = mapped_column(Integer)
    time_window_seconds: Mapped[int | None] = mapped_column(Integer)
    details: Mapped[dict | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        index=True,
    )
