"""
Memory processing endpoints.
"""

import logging
from typing import AsyncIterator, Dict, Any
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from memory_processing.core.auth import get_current_user
from memory_processing.core.config import config
from memory_processing.core.errors import APIError, ErrorCode
from memory_processing.core.models import (
    GenerateTitleRequest,
    GenerateTitleResponse,
    MemoryType,
    ProcessMemoryRequest,
    ProcessMemoryResponse,
)
from memory_processing.service.generation import GenerationClient
from memory_processing.worker.database import MemoryDatabase
from memory_processing.worker.pipeline import PipelineOrchestrator

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_pipeline() -> AsyncIterator[PipelineOrchestrator]:
    """Build a request-scoped orchestrator and release its HTTP client afterwards."""
    if not config.has_supabase_credentials():
        logger.error("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY environment variables")
        raise APIError(ErrorCode.INTERNAL_ERROR, "Server configuration error")

    generator = GenerationClient(config.get_generation_config())
    try:
        yield PipelineOrchestrator(
            MemoryDatabase(config.get_supabase_client()),
            generator,
            config.story_pipeline_strategy,
        )
    finally:
        await generator.close()


async def _read_json(request: Request) -> Dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError:
        raise APIError(ErrorCode.INVALID_REQUEST, "Invalid JSON in request body")
    if not isinstance(payload, dict):
        raise APIError(ErrorCode.INVALID_REQUEST, "Request body must be a JSON object")
    return payload


async def _read_memory_id(request: Request) -> str:
    payload = await _read_json(request)
    try:
        return ProcessMemoryRequest.model_validate(payload).memory_id
    except ValidationError:
        raise APIError(ErrorCode.INVALID_REQUEST, "memoryId is required and must be a string")


@router.post("/process-moment", response_model=ProcessMemoryResponse)
async def process_moment(
    request: Request,
    user_id: str = Depends(get_current_user),
    pipeline: PipelineOrchestrator = Depends(get_pipeline),
):
    """
    Clean a moment's input_text into processed_text and generate its title.
    """
    memory_id = await _read_memory_id(request)
    return await pipeline.process_moment(memory_id, user_id)


@router.post("/process-story", response_model=ProcessMemoryResponse)
async def process_story(
    request: Request,
    user_id: str = Depends(get_current_user),
    pipeline: PipelineOrchestrator = Depends(get_pipeline),
):
    """
    Generate a narrative and title for a story.
    """
    memory_id = await _read_memory_id(request)
    return await pipeline.process_story(memory_id, user_id)


@router.post("/generate-title", response_model=GenerateTitleResponse)
async def generate_title(
    request: Request,
    user_id: str = Depends(get_current_user),
    pipeline: PipelineOrchestrator = Depends(get_pipeline),
):
    """
    Generate a title for a transcript, falling back to "Untitled <Type>".
    """
    payload = await _read_json(request)

    if not isinstance(payload.get("transcript"), str) or not payload["transcript"]:
        raise APIError(ErrorCode.INVALID_REQUEST, "transcript is required and must be a string")

    allowed_types = [t.value for t in MemoryType]
    if payload.get("memoryType") not in allowed_types:
        raise APIError(ErrorCode.INVALID_REQUEST, f"memoryType must be one of: {', '.join(allowed_types)}")

    body = GenerateTitleRequest.model_validate(payload)
    logger.info(f"Title generation requested by user {user_id}")
    return await pipeline.generate_title(body.transcript, body.memory_type)
