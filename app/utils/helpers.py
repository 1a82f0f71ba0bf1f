"""
Common utility functions and helpers.
"""
from typing import Iterable, List, Optional, Set
import re
import unicodedata


def normalize_text(text: str) -> str:
    """
    Normalize text for processing.

    Args:
        text: Raw text string

    Returns:
        Text with unicode normalized and whitespace runs collapsed
    """
    text = unicodedata.normalize('NFKC', text)
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def slugify(text: str, fallback: str = "section") -> str:
    """
    Build a URL/anchor friendly slug.

    Args:
        text: Heading or title
        fallback: Slug used when nothing alphanumeric survives

    Returns:
        Lower-case, hyphen separated ASCII slug
    """
    text = unicodedata.normalize('NFKD', text).encode('ascii', 'ignore').decode('ascii')
    text = re.sub(r'[^\w\s-]', '', text.lower())
    text = re.sub(r'[\s_-]+', '-', text).strip('-')
    return text[:60].rstrip('-') or fallback


def unique_slug(text: str, taken: Set[str], fallback: str = "section") -> str:
    """
    Slugify *text* and append -2, -3, ... until it is not in *taken*.
    The returned slug is added to *taken*.
    """
    base = slugify(text, fallback)
    slug = base
    n = 2
    while slug in taken:
        slug = f"{base}-{n}"
        n += 1
    taken.add(slug)
    return slug


def dedupe(items: Iterable[str]) -> List[str]:
    """Remove exact duplicates, keeping the first occurrence order."""
    seen: Set[str] = set()
    out: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def truncate_text(text: str, max_length: int = 200, suffix: str = "...") -> str:
    """
    Truncate text to maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length, suffix included
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)].rstrip() + suffix


def first_sentence(text: str, min_length: int = 10) -> Optional[str]:
    """Return the first sentence longer than *min_length* chars, if any."""
    for part in re.split(r'[.!?]+', text):
        part = part.strip()
        if len(part) > min_length:
            return part
    return None
