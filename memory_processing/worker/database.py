"""
Database operations for memory processing.
Handles reading memories for their owner, writing derived fields and tracking processing status.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from supabase import Client
from memory_processing.core.models import Memory, ProcessingState, ProcessingStatus

logger = logging.getLogger(__name__)

MEMORIES_TABLE = "memories"
STATUS_TABLE = "memory_processing_status"


class StatusReadError(Exception):
    """Raised when the processing status table cannot be read."""


@dataclass
class StatusWrite:
    """Outcome of a best-effort status write. Callers log it and carry on."""
    ok: bool
    error: Optional[str] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MemoryDatabase:
    """Record store for memories and their processing status."""

    def __init__(self, supabase_client: Client):
        """
        Initialize memory database operations.

        Args:
            supabase_client: Supabase client instance
        """
        self.client = supabase_client

    async def get_memory(self, memory_id: str, owner_id: str) -> Optional[Memory]:
        """
        Get a memory owned by the given user.

        Args:
            memory_id: ID of the memory
            owner_id: User ID that must own the memory

        Returns:
            Memory if found and owned by the user, None otherwise
        """
        try:
            result = self.client.table(MEMORIES_TABLE).select(
                "id, user_id, memory_type, input_text, processed_text, title, title_generated_at"
            ).eq("id", memory_id).eq("user_id", owner_id).limit(1).execute()

            if result.data:
                return Memory(**result.data[0])

            logger.warning(f"Memory {memory_id} not found for user {owner_id}")
            return None

        except Exception as e:
            logger.error(f"Error fetching memory {memory_id}: {e}")
            return None

    async def update_memory_fields(
        self,
        memory_id: str,
        processed_text: str,
        title: str,
        generated_at: datetime
    ) -> bool:
        """
        Write the derived fields of a completed run in a single update.

        Returns:
            True if update succeeded, False otherwise
        """
        try:
            result = self.client.table(MEMORIES_TABLE).update({
                "processed_text": processed_text,
                "title": title,
                "title_generated_at": generated_at.isoformat(),
            }).eq("id", memory_id).execute()

            if result.data:
                logger.info(f"Updated processed_text and title for memory {memory_id}")
                return True

            logger.error(f"Failed to update memory {memory_id}: no rows updated")
            return False

        except Exception as e:
            logger.error(f"Error updating memory {memory_id}: {e}")
            return False

    async def get_status(self, memory_id: str) -> Optional[ProcessingStatus]:
        """
        Get the processing status record for a memory.

        Returns:
            The status record, or None if the memory has none yet

        Raises:
            StatusReadError: If the status table cannot be read
        """
        try:
            result = self.client.table(STATUS_TABLE).select("*").eq(
                "memory_id", memory_id
            ).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching processing status for memory {memory_id}: {e}")
            raise StatusReadError(str(e)) from e

        if result.data:
            return ProcessingStatus(**result.data[0])
        return None

    async def mark_processing(self, memory_id: str, metadata: Optional[Dict[str, Any]] = None) -> StatusWrite:
        """Move a memory's status to processing."""
        return await self._transition(memory_id, lambda current: {
            "state": ProcessingState.PROCESSING.value,
            "started_at": _now(),
            "completed_at": None,
            "metadata": self._merge_metadata(current, metadata),
        })

    async def mark_complete(self, memory_id: str, metadata: Optional[Dict[str, Any]] = None) -> StatusWrite:
        """Record a completed run (success, partial or fallback)."""
        return await self._transition(memory_id, lambda current: {
            "state": ProcessingState.COMPLETE.value,
            "completed_at": _now(),
            "last_error": None,
            "metadata": self._merge_metadata(current, metadata),
        })

    async def mark_failed(
        self,
        memory_id: str,
        error_message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> StatusWrite:
        """
        Record a failed run, incrementing the attempt counter once.

        Args:
            memory_id: ID of the memory
            error_message: Error message from the failed run
            metadata: Extra metadata merged into the status record

        Returns:
            StatusWrite describing whether the record was persisted
        """
        def failed_update(current: Optional[ProcessingStatus]) -> Dict[str, Any]:
            attempts = (current.attempts if current else 0) + 1
            now = _now()
            logger.warning(f"Memory {memory_id} processing failed (attempt {attempts}): {error_message}")
            return {
                "state": ProcessingState.FAILED.value,
                "attempts": attempts,
                "last_error": error_message,
                "last_error_at": now,
                "completed_at": now,
                "metadata": self._merge_metadata(current, metadata),
            }

        return await self._transition(memory_id, failed_update)

    async def _transition(
        self,
        memory_id: str,
        build_update: Callable[[Optional[ProcessingStatus]], Dict[str, Any]]
    ) -> StatusWrite:
        # Without the current record the counter and metadata cannot be carried over
        try:
            current = await self.get_status(memory_id)
        except StatusReadError as e:
            logger.warning(f"Skipping status write for memory {memory_id}: current status unreadable")
            return StatusWrite(ok=False, error=f"status read failed: {e}")

        return self._write_status(memory_id, build_update(current))

    @staticmethod
    def _merge_metadata(current: Optional[ProcessingStatus], extra: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        merged = dict(current.metadata) if current else {}
        if extra:
            merged.update(extra)
        return merged

    def _write_status(self, memory_id: str, update_data: Dict[str, Any]) -> StatusWrite:
        try:
            update_data = {"memory_id": memory_id, **update_data}
            result = self.client.table(STATUS_TABLE).upsert(
                update_data, on_conflict="memory_id"
            ).execute()

            if result.data:
                logger.info(f"Updated processing status for memory {memory_id} to {update_data['state']}")
                return StatusWrite(ok=True)

            logger.error(f"Failed to update processing status for memory {memory_id}")
            return StatusWrite(ok=False, error="no rows written")

        except Exception as e:
            logger.error(f"Error updating processing status for memory {memory_id}: {e}")
            return StatusWrite(ok=False, error=str(e))
