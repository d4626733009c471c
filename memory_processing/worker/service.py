"""
Timer service for the media cleanup queue.
Triggers one cleanup batch per polling interval; the processor itself keeps no schedule.
"""

import asyncio
import logging
from typing import Optional
from datetime import datetime, timezone

from memory_processing.core.models import CleanupResult
from memory_processing.worker.cleanup import CleanupQueueProcessor

logger = logging.getLogger(__name__)


class CleanupScheduler:
    """Periodically invokes the cleanup processor."""

    def __init__(self, processor: CleanupQueueProcessor, polling_interval: int = 300):
        """
        Initialize the cleanup scheduler.

        Args:
            processor: Processor that drains one batch per call
            polling_interval: Seconds between batches
        """
        self.processor = processor
        self.polling_interval = polling_interval
        self.is_running = False
        self.stop_requested = False
        self.batches_run = 0
        self.last_run_at: Optional[datetime] = None
        self.last_result: Optional[CleanupResult] = None
        self.last_error: Optional[str] = None

    async def start(self):
        """Start the scheduler loop."""
        if self.is_running:
            logger.warning("Cleanup scheduler is already running")
            return
        if self.stop_requested:
            logger.info("Cleanup scheduler was stopped before it started")
            return

        self.is_running = True
        logger.info("🚀 Starting media cleanup scheduler")

        try:
            await self._main_loop()
        except asyncio.CancelledError:
            logger.info("Cleanup scheduler loop cancelled")
            raise
        except Exception as e:
            logger.error(f"❌ Cleanup scheduler loop crashed: {e}", exc_info=True)
        finally:
            self.is_running = False
            logger.info("🛑 Media cleanup scheduler stopped")

    def stop(self):
        """Stop the scheduler loop."""
        logger.info("Stopping media cleanup scheduler...")
        self.stop_requested = True

    async def run_once(self) -> Optional[CleanupResult]:
        """
        Run a single cleanup batch, recording the result.

        Returns:
            Batch result, or None if the batch could not run
        """
        self.last_run_at = datetime.now(timezone.utc)
        try:
            result = await self.processor.process_batch()
        except Exception as e:
            logger.error(f"Error running cleanup batch: {e}", exc_info=True)
            self.last_error = str(e)
            return None

        self.batches_run += 1
        self.last_result = result
        self.last_error = None
        return result

    async def _main_loop(self):
        while not self.stop_requested:
            await self.run_once()

            # Sleep in short steps so stop() takes effect quickly
            for _ in range(self.polling_interval):
                if self.stop_requested:
                    break
                await asyncio.sleep(1)

    def get_status(self) -> dict:
        """Get current scheduler status."""
        return {
            "worker_status": "running" if self.is_running and not self.stop_requested else "stopped",
            "polling_interval": self.polling_interval,
            "batches_run": self.batches_run,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_result": self.last_result.model_dump() if self.last_result else None,
            "last_error": self.last_error,
        }
