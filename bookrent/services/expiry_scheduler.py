"""
Expiry Scheduler - Time-based overdue sweep

Runs the rental service's expiry sweep on a fixed interval in the
background of an asyncio application.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from bookrent.utils.clock import utcnow
from bookrent.utils.logging_utils import log_operation
from .interfaces import IRentDetailsService

logger = logging.getLogger(__name__)


class ExpiryScheduler:
    """
    Background task that periodically expires overdue rentals.

    The sweep itself is synchronous and blocks on the database, so each
    run is pushed to a worker thread to keep the event loop free.
    """

    def __init__(self, service: IRentDetailsService, interval_seconds: float):
        """
        Args:
            service: Rental service whose update_to_expired is called
            interval_seconds: Pause between the end of one sweep and the next
        """
        self.service = service
        self.interval_seconds = interval_seconds
        self.running = False
        self.task: Optional[asyncio.Task] = None
        self.runs = 0
        self.last_run_at: Optional[datetime] = None
        self.last_expired_count: Optional[int] = None
        self.last_error: Optional[str] = None

    def start(self):
        """Start the scheduler background task (requires a running event loop)"""
        if self.running:
            logger.warning("Expiry scheduler already running")
            return

        loop = asyncio.get_running_loop()
        self.running = True
        self.task = loop.create_task(self._run())
        logger.info(f"Expiry scheduler started (every {self.interval_seconds}s)")

    def stop(self):
        """Stop the scheduler background task"""
        if not self.running:
            return

        self.running = False
        if self.task:
            self.task.cancel()
        logger.info("Expiry scheduler stopped")

    @log_operation("expiry_sweep")
    async def run_once(self) -> int:
        """
        Run one sweep now.

        Returns:
            Number of rentals expired
        """
        self.last_run_at = utcnow()
        self.runs += 1
        try:
            expired = await asyncio.to_thread(self.service.update_to_expired)
        except Exception as e:
            self.last_error = str(e)
            raise
        self.last_expired_count = expired
        self.last_error = None
        return expired

    async def _run(self):
        """
        Main scheduler loop.

        A failed sweep is logged and retried on the next tick.
        """
        while self.running:
            try:
                await self.run_once()
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                logger.info("Expiry scheduler task cancelled")
                break
            except Exception as e:
                logger.error(f"Expiry sweep error: {e}")
                await asyncio.sleep(self.interval_seconds)

    def get_status(self) -> dict:
        """
        Get scheduler status information.

        Returns:
            Dictionary with scheduler state and the outcome of the last sweep
        """
        return {
            'running': self.running,
            'interval_seconds': self.interval_seconds,
            'runs': self.runs,
            'last_run_at': self.last_run_at.isoformat() if self.last_run_at else None,
            'last_expired_count': self.last_expired_count,
            'last_error': self.last_error,
        }
