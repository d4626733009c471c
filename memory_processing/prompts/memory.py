"""
Prompts for turning captured memory text into readable text, narratives and titles.
"""

from memory_processing.core.models import MemoryType
from memory_processing.core.title import MAX_TITLE_LENGTH

# Only the head of long texts is sent for title generation
TITLE_SOURCE_LIMIT = 1000

TEXT_CLEANUP_SYSTEM = (
    "You are a helpful assistant that processes transcribed text into clean, "
    "readable format while preserving all information."
)

NARRATIVE_SYSTEM = (
    "You are a helpful assistant that transforms transcripts into polished, engaging "
    "narrative stories while preserving the speaker's voice and meaning."
)

TITLE_SYSTEM = "You are a helpful assistant that generates concise, engaging titles for personal memories."

STORY_TITLE_SYSTEM = "You are a helpful assistant that generates concise, engaging titles for narrative stories."

_MEMORY_TYPE_CONTEXT = {
    MemoryType.MOMENT: "a brief moment or memory",
    MemoryType.STORY: "a longer narrative story",
    MemoryType.MEMENTO: "a special memento or keepsake",
}


def text_cleanup_prompt(input_text: str) -> str:
    """
    Prompt for rewriting dictated text into clean prose.

    Args:
        input_text: Raw captured text

    Returns:
        Formatted prompt string
    """
    return f"""Transform this transcribed text into clean, readable text optimized for human reading. The text comes from voice dictation and may contain run-on sentences, incomplete thoughts, and filler words. Your task is to:

- Break up run-on sentences into proper sentence structure
- Ensure sentences are complete and grammatically coherent
- Remove filler words that don't convey meaningful information (e.g., "um", "uh", "like", "you know", "I mean")
- Preserve all information and meaning from the original
- Maintain the natural flow and voice of the speaker
- Do not add information that wasn't in the original
- Keep the tone and style consistent

The output should be readable and well-structured, but doesn't need to be perfectly grammatically correct. Focus on readability and information preservation.

Original text: {input_text}

Return only the cleaned text, nothing else."""


def narrative_prompt(input_text: str) -> str:
    """
    Prompt for turning a story transcript into a narrative.

    Args:
        input_text: Raw captured text

    Returns:
        Formatted prompt string
    """
    return f"""Transform this transcript into a polished, engaging narrative story. The transcript comes from voice dictation and may contain filler words and incomplete thoughts. The narrative should:
- Be written in first or third person as appropriate
- Flow naturally with proper paragraphs
- Remove filler words that don't convey meaningful information (e.g., "um", "uh", "like", "you know", "I mean")
- Capture the emotion and context of the memory
- Be engaging and readable
- Preserve the key details and meaning

Transcript: {input_text}

Return only the narrative text, nothing else."""


def moment_title_prompt(processed_text: str) -> str:
    return f"""Generate a concise, engaging title (maximum {MAX_TITLE_LENGTH} characters) for a brief moment or memory based on this cleaned text. The title should be descriptive but brief, capturing the essence of what happened. Return only the title text, nothing else.

Text: {processed_text[:TITLE_SOURCE_LIMIT]}"""


def story_title_prompt(text: str) -> str:
    return f"""Generate a concise, engaging title (maximum {MAX_TITLE_LENGTH} characters) for this story narrative. The title should capture the essence and emotion of the story. Return only the title text, nothing else.

Narrative: {text[:TITLE_SOURCE_LIMIT]}"""


def transcript_title_prompt(transcript: str, memory_type: MemoryType) -> str:
    """
    Prompt for titling a raw transcript of any memory type.

    Args:
        transcript: Trimmed transcript
        memory_type: Memory type, used to describe what is being titled

    Returns:
        Formatted prompt string
    """
    context = _MEMORY_TYPE_CONTEXT.get(MemoryType(memory_type), "a memory")
    return f"""Generate a concise, engaging title (maximum {MAX_TITLE_LENGTH} characters) for {context} based on this transcript. The title should be descriptive but brief, capturing the essence of what happened. Return only the title text, nothing else.

Transcript: {transcript[:TITLE_SOURCE_LIMIT]}"""
