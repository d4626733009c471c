"""
Storage operations for media cleanup.
Handles deleting objects from Supabase Storage.
"""

import logging
from supabase import Client

logger = logging.getLogger(__name__)


class StorageDeletionError(Exception):
    """Raised when Supabase Storage refuses or fails a delete."""

    @property
    def is_not_found(self) -> bool:
        message = str(self).lower()
        return "not found" in message or "404" in message


class MediaStorage:
    """Storage operations for the media cleanup queue."""

    def __init__(self, supabase_client: Client):
        """
        Initialize media storage operations.

        Args:
            supabase_client: Supabase client instance (service role)
        """
        self.client = supabase_client

    async def delete_object(self, bucket_name: str, file_path: str) -> None:
        """
        Delete a single object from a storage bucket.

        Args:
            bucket_name: Bucket holding the object
            file_path: Path of the object within the bucket

        Raises:
            StorageDeletionError: If the storage API reports an error
        """
        try:
            removed = self.client.storage.from_(bucket_name).remove([file_path])
        except Exception as e:
            logger.warning(f"Failed to delete {bucket_name}/{file_path}: {e}")
            raise StorageDeletionError(str(e)) from e

        if removed:
            logger.info(f"Deleted {bucket_name}/{file_path}")
        else:
            logger.info(f"Nothing to delete at {bucket_name}/{file_path}, already removed")
