"""
Cleanup processor for orphaned media files.
Drains one bounded batch of the cleanup queue per invocation.
"""

import logging

from memory_processing.core.models import CleanupQueueItem, CleanupResult
from memory_processing.worker.cleanup_queue import CleanupQueueDatabase
from memory_processing.worker.storage import MediaStorage, StorageDeletionError

logger = logging.getLogger(__name__)

BATCH_SIZE = 10
MAX_RETRIES = 3


class CleanupQueueProcessor:
    """Deletes queued storage objects and tracks their retry state."""

    def __init__(
        self,
        queue: CleanupQueueDatabase,
        storage: MediaStorage,
        batch_size: int = BATCH_SIZE,
        max_retries: int = MAX_RETRIES
    ):
        """
        Initialize the cleanup processor.

        Args:
            queue: Cleanup queue database operations
            storage: Storage operations used for deletes
            batch_size: Maximum number of items handled per batch
            max_retries: Failed attempts after which an item is terminal
        """
        self.queue = queue
        self.storage = storage
        self.batch_size = batch_size
        self.max_retries = max_retries

    async def process_batch(self) -> CleanupResult:
        """
        Process one batch of queued deletions, oldest first.

        Items are handled one at a time; a failure on one item never stops the
        rest of the batch.

        Returns:
            Counters for processed, succeeded and failed items plus error lines

        Raises:
            QueueFetchError: If the batch could not be selected
        """
        items = await self.queue.get_pending_items(self.batch_size, self.max_retries)
        results = CleanupResult()

        for item in items:
            try:
                await self.queue.mark_processing(item.id)

                try:
                    await self.storage.delete_object(item.bucket_name, item.file_path)
                except StorageDeletionError as e:
                    if not e.is_not_found:
                        raise
                    # Already gone, so the goal of the task is met
                    logger.info(f"{item.bucket_name}/{item.file_path} not found, treating as deleted")

                await self.queue.mark_completed(item.id)
                results.succeeded += 1

            except Exception as e:
                logger.error(f"Error processing cleanup item {item.id}: {e}")
                await self._record_failure(item, str(e))
                results.failed += 1
                results.errors.append(f"{item.file_path}: {e}")

            results.processed += 1

        logger.info(
            f"📊 Media cleanup processed: {results.processed}, "
            f"succeeded: {results.succeeded}, failed: {results.failed}"
        )
        return results

    async def _record_failure(self, item: CleanupQueueItem, error_message: str) -> None:
        try:
            await self.queue.record_failure(item, error_message, self.max_retries)
        except Exception as e:
            logger.error(f"Failed to record failure for cleanup item {item.id}: {e}")
