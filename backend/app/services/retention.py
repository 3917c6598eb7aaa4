"""Security audit log retention cleanup service."""

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete

from app.config import get_settings
from app.database import async_session_maker
from app.models import SecurityAuditLog

logger = logging.getLogger(__name__)


async def cleanup_old_audit_logs(retention_days: int) -> int:
    """Delete audit events older than the retention period. Returns rows deleted."""
    cutoff = datetime.now(UTC) - timedelta(days=retention_days)

    async with async_session_maker() as db:
        result = await db.execute(
            delete(SecurityAuditLog).where(SecurityAuditLog.created_at < cutoff)
        )
        await db.commit()

    logger.info(
        f"Deleted {result.rowcount} security audit logs older than {retention_days} days"
    )
    return result.rowcount


class RetentionService:
    """Background service for security audit log cleanup."""

    def __init__(self, retention_days: int = 90, interval_hours: int = 24):
        self._retention_days = retention_days
        self._interval = interval_hours * 3600
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the retention cleanup service."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._cleanup_loop())
        logger.info("Started retention cleanup service")

    async def _cleanup_loop(self) -> None:
        """Periodic cleanup loop."""
        while self._running:
            try:
                await cleanup_old_audit_logs(self._retention_days)
            except Exception as e:
                logger.error(f"Retention cleanup error: {e}")

            await asyncio.sleep(self._interval)

    async def stop(self) -> None:
        """Stop the retention cleanup service."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Stopped retention cleanup service")


_settings = get_settings()

# Global retention service instance
retention_service = RetentionService(
    retention_days=_settings.audit_log_retention_days,
    interval_hours=_settings.audit_cleanup_interval_hours,
)
