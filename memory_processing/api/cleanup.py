"""
Media cleanup endpoints.
Runs cleanup batches on demand and controls the background cleanup scheduler.
"""

import logging
from fastapi import APIRouter, Depends

from memory_processing.core.config import config
from memory_processing.core.errors import APIError, ErrorCode
from memory_processing.core.models import CleanupResponse
from memory_processing.worker import manager as scheduler_manager
from memory_processing.worker.cleanup import CleanupQueueProcessor
from memory_processing.worker.cleanup_queue import CleanupQueueDatabase, QueueFetchError
from memory_processing.worker.storage import MediaStorage

router = APIRouter()
logger = logging.getLogger(__name__)


def build_cleanup_processor() -> CleanupQueueProcessor:
    """Build a cleanup processor on the service-role Supabase client."""
    client = config.get_supabase_client()
    return CleanupQueueProcessor(
        CleanupQueueDatabase(client),
        MediaStorage(client),
        batch_size=config.cleanup_batch_size,
        max_retries=config.cleanup_max_retries,
    )


def get_cleanup_processor() -> CleanupQueueProcessor:
    if not config.has_supabase_credentials():
        logger.error("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY environment variables")
        raise APIError(ErrorCode.INTERNAL_ERROR, "Server configuration error")
    return build_cleanup_processor()


@router.post("/cleanup-media", response_model=CleanupResponse)
async def cleanup_media(processor: CleanupQueueProcessor = Depends(get_cleanup_processor)):
    """
    Process one batch of the media cleanup queue.
    Can be called manually or by a scheduled job.
    """
    try:
        results = await processor.process_batch()
    except QueueFetchError:
        raise APIError(ErrorCode.FETCH_ERROR, "Failed to fetch cleanup queue")

    message = "Cleanup processing completed" if results.processed else "No items to process"
    return CleanupResponse(message=message, **results.model_dump())


@router.get("/worker/status")
async def worker_status():
    """Get current cleanup scheduler status."""
    scheduler = scheduler_manager.get_scheduler_instance()
    if scheduler:
        return scheduler.get_status()
    return {
        "worker_status": "not_started",
        "error": "Cleanup scheduler not initialized"
    }


@router.post("/worker/start")
async def start_worker():
    """Start the cleanup scheduler (if not already running)."""
    if not config.has_supabase_credentials():
        raise APIError(ErrorCode.INTERNAL_ERROR, "Server configuration error")

    started = scheduler_manager.start_scheduler(build_cleanup_processor, config.cleanup_polling_interval)
    if started:
        return {"message": "Cleanup scheduler started successfully", "status": "started"}
    return {"message": "Cleanup scheduler is already running", "status": "already_running"}


@router.post("/worker/stop")
def stop_worker():
    """Stop the cleanup scheduler, waiting briefly for its thread to exit."""
    scheduler_manager.stop_scheduler()
    return {"message": "Cleanup scheduler stopped successfully", "status": "stopped"}
