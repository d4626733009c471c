"""
Processing orchestrator for memories.
Runs the moment and story generation pipelines, applies fallback policy and records the outcome.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Optional, Tuple

from memory_processing.core.errors import APIError, ErrorCode
from memory_processing.core.models import (
    GenerateTitleResponse,
    Memory,
    MemoryType,
    Outcome,
    ProcessMemoryResponse,
    StoryStrategy,
)
from memory_processing.core.title import clean_title, fallback_title
from memory_processing.prompts import memory as prompts
from memory_processing.service.generation import GenerationClient
from memory_processing.worker.database import MemoryDatabase, StatusWrite

logger = logging.getLogger(__name__)

TEXT_CLEANUP_MAX_TOKENS = 1000
MOMENT_TITLE_MAX_TOKENS = 500
NARRATIVE_MAX_TOKENS = 2000
STORY_TITLE_MAX_TOKENS = 100
TRANSCRIPT_TITLE_MAX_TOKENS = 50

MIN_STORY_MEANINGFUL_CHARS = 2


class StoryGenerationError(Exception):
    """Raised when a story run cannot produce a publishable result."""


class PipelineOrchestrator:
    """Orchestrates generation and persistence for a single memory."""

    def __init__(
        self,
        db: MemoryDatabase,
        generator: GenerationClient,
        story_strategy: StoryStrategy = StoryStrategy.SEQUENTIAL_NARRATIVE_FIRST
    ):
        """
        Initialize the orchestrator.

        Args:
            db: Record store for memories and processing status
            generator: Text generation client
            story_strategy: How story narrative and title steps are sequenced
        """
        self.db = db
        self.generator = generator
        self.story_strategy = StoryStrategy(story_strategy)

    async def process_moment(self, memory_id: str, owner_id: str) -> ProcessMemoryResponse:
        """
        Clean a moment's input text and title it.

        Generation failures never fail the run: the cleaned text falls back to
        the trimmed input and the title to the moment default.

        Args:
            memory_id: ID of the memory to process
            owner_id: User ID that must own the memory

        Returns:
            Response with title, processed text and outcome status
        """
        memory = await self._load(memory_id, owner_id, MemoryType.MOMENT)

        input_text = (memory.input_text or "").strip()
        if not input_text:
            await self._record_failure(memory_id, "Memory has no input_text to process", phase="validation")
            raise APIError(ErrorCode.INVALID_REQUEST, "Memory has no input_text to process")

        self._log_status_write(memory_id, await self.db.mark_processing(
            memory_id, {"memory_type": MemoryType.MOMENT.value}
        ))
        start_time = time.monotonic()

        # Step 1: Clean text, falling back to the raw input
        processed_result = await self.generator.generate(
            prompts.text_cleanup_prompt(input_text),
            TEXT_CLEANUP_MAX_TOKENS,
            system_prompt=prompts.TEXT_CLEANUP_SYSTEM,
        )
        processed_text = processed_result or input_text

        # Step 2: Title from the processed text
        title_result = await self._generate_title(
            prompts.moment_title_prompt(processed_text),
            MOMENT_TITLE_MAX_TOKENS,
            prompts.TITLE_SYSTEM,
        )
        title = title_result or fallback_title(MemoryType.MOMENT)

        if processed_result and title_result:
            outcome = Outcome.SUCCESS
        elif processed_result:
            outcome = Outcome.PARTIAL
        else:
            outcome = Outcome.FALLBACK

        generated_at = datetime.now(timezone.utc)
        if not await self.db.update_memory_fields(memory_id, processed_text, title, generated_at):
            await self._record_failure(memory_id, "Failed to update memory", phase="persist")
            raise APIError(ErrorCode.INTERNAL_ERROR, "Failed to update memory")

        self._log_status_write(memory_id, await self.db.mark_complete(
            memory_id, {"outcome": outcome.value, "phase": "done"}
        ))

        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"✅ Processed moment {memory_id}: status={outcome.value}, title_length={len(title)}, "
            f"processed_text_length={len(processed_text)}, input_text_length={len(input_text)}, "
            f"duration_ms={duration_ms}"
        )

        return ProcessMemoryResponse(
            title=title,
            processed_text=processed_text,
            status=outcome,
            generated_at=generated_at,
        )

    async def process_story(self, memory_id: str, owner_id: str) -> ProcessMemoryResponse:
        """
        Generate a narrative and title for a story.

        A story without a narrative is not publishable, so narrative failure
        fails the whole run. Whether a title failure is fatal depends on the
        configured story strategy.

        Args:
            memory_id: ID of the memory to process
            owner_id: User ID that must own the memory

        Returns:
            Response with title, narrative and outcome status
        """
        memory = await self._load(memory_id, owner_id, MemoryType.STORY)
        input_text = await self._validate_story_input(memory_id, memory.input_text)

        metadata = {"memory_type": MemoryType.STORY.value, "strategy": self.story_strategy.value}
        self._log_status_write(memory_id, await self.db.mark_processing(memory_id, metadata))
        start_time = time.monotonic()

        try:
            if self.story_strategy == StoryStrategy.PARALLEL_NARRATIVE_AND_TITLE:
                narrative, title, outcome = await self._story_parallel(input_text)
            else:
                narrative, title, outcome = await self._story_sequential(input_text)
        except StoryGenerationError as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            logger.error(f"❌ Story processing failed for memory {memory_id} after {duration_ms}ms: {e}")
            await self._record_failure(memory_id, str(e), phase="generation")
            raise APIError(ErrorCode.PROCESSING_FAILED, str(e))

        generated_at = datetime.now(timezone.utc)
        if not await self.db.update_memory_fields(memory_id, narrative, title, generated_at):
            await self._record_failure(memory_id, "Failed to update memory", phase="persist")
            raise APIError(ErrorCode.PROCESSING_FAILED, "Failed to update memory")

        self._log_status_write(memory_id, await self.db.mark_complete(memory_id, {
            "outcome": outcome.value,
            "phase": "done",
            "narrative_generated_at": generated_at.isoformat(),
        }))

        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"✅ Processed story {memory_id}: status={outcome.value}, strategy={self.story_strategy.value}, "
            f"title_length={len(title)}, narrative_length={len(narrative)}, "
            f"input_text_length={len(input_text)}, duration_ms={duration_ms}"
        )

        return ProcessMemoryResponse(
            title=title,
            processed_text=narrative,
            status=outcome,
            generated_at=generated_at,
        )

    async def generate_title(self, transcript: str, memory_type: MemoryType) -> GenerateTitleResponse:
        """
        Title a raw transcript without touching any stored record.

        Args:
            transcript: Transcript text
            memory_type: Memory type the transcript belongs to

        Returns:
            Generated title, or the type's default title with a fallback status
        """
        trimmed = transcript.strip()
        if not trimmed:
            raise APIError(ErrorCode.INVALID_REQUEST, "transcript cannot be empty")

        title = await self._generate_title(
            prompts.transcript_title_prompt(trimmed, memory_type),
            TRANSCRIPT_TITLE_MAX_TOKENS,
            prompts.TITLE_SYSTEM,
        )
        outcome = Outcome.SUCCESS if title else Outcome.FALLBACK

        logger.info(f"Title generation for {MemoryType(memory_type).value}: status={outcome.value}")

        return GenerateTitleResponse(
            title=title or fallback_title(memory_type),
            status=outcome,
            generated_at=datetime.now(timezone.utc),
        )

    async def _story_sequential(self, input_text: str) -> Tuple[str, str, Outcome]:
        narrative = await self._generate_narrative(input_text)
        if not narrative:
            raise StoryGenerationError("Failed to generate narrative")

        title = await self._generate_title(
            prompts.story_title_prompt(narrative),
            STORY_TITLE_MAX_TOKENS,
            prompts.STORY_TITLE_SYSTEM,
        )
        if not title:
            return narrative, fallback_title(MemoryType.STORY), Outcome.FALLBACK

        return narrative, title, Outcome.SUCCESS

    async def _story_parallel(self, input_text: str) -> Tuple[str, str, Outcome]:
        # Title is generated from the raw input, so neither call waits on the other
        narrative, title = await asyncio.gather(
            self._generate_narrative(input_text),
            self._generate_title(
                prompts.story_title_prompt(input_text),
                STORY_TITLE_MAX_TOKENS,
                prompts.STORY_TITLE_SYSTEM,
            ),
        )

        if not narrative:
            raise StoryGenerationError("Failed to generate narrative")
        if not title:
            raise StoryGenerationError("Failed to generate title")

        return narrative, title, Outcome.SUCCESS

    async def _generate_narrative(self, input_text: str) -> Optional[str]:
        return await self.generator.generate(
            prompts.narrative_prompt(input_text),
            NARRATIVE_MAX_TOKENS,
            system_prompt=prompts.NARRATIVE_SYSTEM,
        )

    async def _generate_title(self, prompt: str, max_tokens: int, system_prompt: str) -> Optional[str]:
        raw_title = await self.generator.generate(prompt, max_tokens, system_prompt=system_prompt)
        return clean_title(raw_title)

    async def _load(self, memory_id: str, owner_id: str, expected_type: MemoryType) -> Memory:
        memory = await self.db.get_memory(memory_id, owner_id)
        if memory is None:
            raise APIError(ErrorCode.NOT_FOUND, "Memory not found or access denied")

        if memory.memory_type != expected_type:
            raise APIError(
                ErrorCode.INVALID_REQUEST,
                f"This function only processes {expected_type.value}s",
            )
        return memory

    async def _validate_story_input(self, memory_id: str, raw_text: Optional[str]) -> str:
        input_text = (raw_text or "").strip()

        # Only non-whitespace characters are counted, with no separate minimum on the
        # trimmed length: two-character inputs such as "a." and "ab" are accepted.
        if not input_text:
            error_message = "Story has no input_text to process"
        elif len("".join(input_text.split())) < MIN_STORY_MEANINGFUL_CHARS:
            error_message = "Story input_text is too short or contains no meaningful content"
        else:
            return input_text

        await self._record_failure(memory_id, error_message, phase="validation")
        raise APIError(ErrorCode.INVALID_REQUEST, error_message)

    async def _record_failure(self, memory_id: str, error_message: str, phase: str) -> None:
        write = await self.db.mark_failed(memory_id, error_message, {"phase": phase})
        self._log_status_write(memory_id, write)

    @staticmethod
    def _log_status_write(memory_id: str, write: StatusWrite) -> None:
        if not write.ok:
            logger.warning(f"Status write for memory {memory_id} did not persist: {write.error}")
