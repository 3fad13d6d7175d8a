"""Text processing utilities."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence


def split_text(text: str, max_len: int) -> List[str]:
    """
    Split text into word-aligned segments no longer than max_len.

    Words are packed greedily; a word is never split. A single word longer
    than max_len becomes its own oversized segment rather than being cut.

    Args:
        text: Text to split
        max_len: Maximum segment length in characters

    Returns:
        List of segments (empty for blank input)
    """
    if max_len < 1:
        raise ValueError(f"max_len must be positive, got {max_len}")

    segments: List[str] = []
    current = ""

    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if len(candidate) > max_len and current:
            segments.append(current)
            current = word
        else:
            current = candidate

    if current:
        segments.append(current)

    return segments


def join_segments(segments: Sequence[str]) -> str:
    """Reassemble translated segments with single spaces."""
    return " ".join(s for s in segments if s)


def normalize_language_code(code: str, overrides: Optional[Dict[str, str]] = None) -> str:
    """
    Normalize a language code to lower-case ISO 639-1.

    Args:
        code: Language code as entered (e.g. "RU", " zh ")
        overrides: Provider-specific replacements applied after lower-casing

    Returns:
        Normalized code
    """
    normalized = code.strip().lower()
    if overrides:
        return overrides.get(normalized, normalized)
    return normalized


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate text to maximum length with suffix.

    Args:
        text: Text to truncate
        max_length: Maximum length including suffix
        suffix: Suffix to append if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
