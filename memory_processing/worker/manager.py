"""
Cleanup scheduler management module.
Handles starting and stopping the media cleanup scheduler on a background thread.
"""

import asyncio
import logging
import threading
import atexit
from typing import Callable, Optional

from memory_processing.worker.cleanup import CleanupQueueProcessor
from memory_processing.worker.service import CleanupScheduler

logger = logging.getLogger(__name__)

# Global scheduler state
_scheduler_instance: Optional[CleanupScheduler] = None
_scheduler_thread: Optional[threading.Thread] = None


def get_scheduler_instance() -> Optional[CleanupScheduler]:
    """Get the current scheduler instance."""
    return _scheduler_instance


def start_scheduler(processor_factory: Callable[[], CleanupQueueProcessor], polling_interval: int) -> bool:
    """
    Start the cleanup scheduler in a background thread.

    Args:
        processor_factory: Builds the processor the scheduler drives
        polling_interval: Seconds between cleanup batches

    Returns:
        True if the scheduler was started, False if already running
    """
    global _scheduler_instance, _scheduler_thread

    if _scheduler_thread and _scheduler_thread.is_alive():
        logger.info("Cleanup scheduler is already running")
        return False

    _scheduler_instance = CleanupScheduler(processor_factory(), polling_interval=polling_interval)
    scheduler = _scheduler_instance

    def run_scheduler():
        try:
            asyncio.run(scheduler.start())
        except Exception as e:
            logger.error(f"Cleanup scheduler crashed: {e}", exc_info=True)

    _scheduler_thread = threading.Thread(target=run_scheduler, daemon=True)
    _scheduler_thread.start()

    logger.info("✅ Background cleanup scheduler started")
    return True


def stop_scheduler(timeout: float = 3.0):
    """
    Stop the cleanup scheduler and wait for its thread to exit.

    Args:
        timeout: Seconds to wait for the thread; a batch in flight may outlast it
    """
    if not (_scheduler_thread and _scheduler_thread.is_alive()):
        logger.debug("Cleanup scheduler not running, skipping")
        return

    logger.info("🛑 Stopping background cleanup scheduler...")
    _scheduler_instance.stop()
    _scheduler_thread.join(timeout)

    if _scheduler_thread.is_alive():
        logger.warning(f"Cleanup scheduler thread still running after {timeout}s")


# Stop the scheduler on interpreter exit
atexit.register(stop_scheduler)
