"""
Database operations for the media cleanup queue.
Handles selecting retryable items and recording their state transitions.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from supabase import Client
from memory_processing.core.models import CleanupQueueItem, CleanupStatus

logger = logging.getLogger(__name__)

QUEUE_TABLE = "media_cleanup_queue"


class QueueFetchError(Exception):
    """Raised when the cleanup queue cannot be read."""


class CleanupQueueDatabase:
    """Database operations for the media cleanup queue."""

    def __init__(self, supabase_client: Client):
        """
        Initialize cleanup queue database operations.

        Args:
            supabase_client: Supabase client instance (service role)
        """
        self.client = supabase_client

    async def get_pending_items(self, limit: int, max_retries: int) -> List[CleanupQueueItem]:
        """
        Get the oldest items eligible for a deletion attempt.

        Args:
            limit: Maximum number of items to return
            max_retries: Items that have already failed this many times are skipped

        Returns:
            Queue items ordered oldest first

        Raises:
            QueueFetchError: If the queue cannot be queried
        """
        try:
            result = self.client.table(QUEUE_TABLE).select("*").in_(
                "status", [CleanupStatus.PENDING.value, CleanupStatus.FAILED.value]
            ).lt(
                "retry_count", max_retries
            ).order(
                "created_at", desc=False
            ).limit(limit).execute()

            items = [CleanupQueueItem(**row) for row in result.data or []]
            logger.info(f"Found {len(items)} cleanup queue items to process")
            return items

        except Exception as e:
            logger.error(f"Error querying cleanup queue: {e}")
            raise QueueFetchError(str(e)) from e

    async def mark_processing(self, item_id: str) -> None:
        self._update(item_id, {
            "status": CleanupStatus.PROCESSING.value,
            "processed_at": datetime.now(timezone.utc).isoformat(),
        })

    async def mark_completed(self, item_id: str) -> None:
        self._update(item_id, {
            "status": CleanupStatus.COMPLETED.value,
            "processed_at": datetime.now(timezone.utc).isoformat(),
        })

    async def record_failure(self, item: CleanupQueueItem, error_message: str, max_retries: int) -> CleanupStatus:
        """
        Increment an item's retry count after a failed attempt.

        Args:
            item: Queue item as it was selected
            error_message: Error from the failed attempt
            max_retries: Retry bound after which the item is terminal

        Returns:
            The status the item was moved to (pending, or failed once exhausted)
        """
        new_retry_count = item.retry_count + 1
        status = CleanupStatus.FAILED if new_retry_count >= max_retries else CleanupStatus.PENDING

        if status == CleanupStatus.FAILED:
            logger.warning(f"Cleanup item {item.id} exceeded max retries ({max_retries}), marking as failed")

        self._update(item.id, {
            "status": status.value,
            "retry_count": new_retry_count,
            "error_message": error_message,
        })
        return status

    def _update(self, item_id: str, update_data: dict) -> Optional[list]:
        # Errors propagate so the caller's per-item policy applies
        result = self.client.table(QUEUE_TABLE).update(update_data).eq("id", item_id).execute()
        logger.debug(f"Updated cleanup item {item_id} to {update_data.get('status')}")
        return result.data
