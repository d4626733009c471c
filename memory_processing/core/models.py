"""
Database and API models for the memory processing service.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any, List
from datetime import datetime


class MemoryType(str, Enum):
    MOMENT = "moment"
    STORY = "story"
    MEMENTO = "memento"


class ProcessingState(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


class Outcome(str, Enum):
    """Result of a completed pipeline run."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FALLBACK = "fallback"


class StoryStrategy(str, Enum):
    """How the story pipeline sequences its generation steps."""
    SEQUENTIAL_NARRATIVE_FIRST = "sequential"
    PARALLEL_NARRATIVE_AND_TITLE = "parallel"


class CleanupStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Memory(BaseModel):
    """Memory model representing the memories table."""
    id: str
    user_id: Optional[str] = None
    memory_type: MemoryType
    input_text: Optional[str] = None
    processed_text: Optional[str] = None
    title: Optional[str] = None
    title_generated_at: Optional[datetime] = None


class ProcessingStatus(BaseModel):
    """Processing status record, one per memory."""
    memory_id: str
    state: ProcessingState = ProcessingState.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    attempts: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CleanupQueueItem(BaseModel):
    """Pending deletion task from the media_cleanup_queue table."""
    id: str
    media_url: Optional[str] = None
    bucket_name: str
    file_path: str
    moment_id: Optional[str] = None
    status: CleanupStatus = CleanupStatus.PENDING
    retry_count: int = 0
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None


class ProcessMemoryRequest(BaseModel):
    """Body of the process-moment and process-story endpoints."""
    model_config = ConfigDict(populate_by_name=True)

    memory_id: str = Field(alias="memoryId", min_length=1)


class ProcessMemoryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    processed_text: str = Field(alias="processedText")
    status: Outcome
    generated_at: datetime = Field(alias="generatedAt")


class GenerateTitleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transcript: str
    memory_type: MemoryType = Field(alias="memoryType")


class GenerateTitleResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    status: Outcome
    generated_at: datetime = Field(alias="generatedAt")


class CleanupResult(BaseModel):
    """Counters for one cleanup batch."""
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)


class CleanupResponse(CleanupResult):
    message: str


class ErrorResponse(BaseModel):
    code: str
    message: str
