"""
Title cleanup and truncation for generated titles.
"""

from typing import Optional

from memory_processing.core.models import MemoryType

MAX_TITLE_LENGTH = 60
ELLIPSIS = "..."

FALLBACK_TITLES = {
    MemoryType.MOMENT: "Untitled Moment",
    MemoryType.STORY: "Untitled Story",
    MemoryType.MEMENTO: "Untitled Memento",
}

_QUOTES = ("\"", "'")


def truncate_title(title: str, max_length: int = MAX_TITLE_LENGTH) -> str:
    """
    Truncate a title without breaking words where possible.

    Args:
        title: Title to truncate
        max_length: Maximum length before the ellipsis

    Returns:
        The title unchanged if it fits, otherwise cut at the last space in the
        back half of the allowed length (or hard cut) followed by "..."
    """
    if len(title) <= max_length:
        return title

    truncated = title[:max_length]
    last_space = truncated.rfind(" ")

    if last_space >= max_length * 0.5:
        return truncated[:last_space] + ELLIPSIS

    return truncated + ELLIPSIS


def clean_title(raw: Optional[str], max_length: int = MAX_TITLE_LENGTH) -> Optional[str]:
    """
    Clean a raw generated title.

    Strips one wrapping quote on each side and surrounding whitespace, then
    truncates. Returns None when nothing usable is left so callers can fall back.
    """
    if not raw:
        return None

    cleaned = raw.strip()
    if cleaned.startswith(_QUOTES):
        cleaned = cleaned[1:]
    if cleaned.endswith(_QUOTES):
        cleaned = cleaned[:-1]
    cleaned = cleaned.strip()

    if not cleaned:
        return None

    return truncate_title(cleaned, max_length)


def fallback_title(memory_type: MemoryType) -> str:
    return FALLBACK_TITLES.get(MemoryType(memory_type), "Untitled Memory")
