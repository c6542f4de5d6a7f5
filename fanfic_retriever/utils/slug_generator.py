from typing import Optional

from slugify import slugify

MAX_SLUG_LENGTH = 80


def generate_slug(text: str) -> str:
    """
    Generates a filename-safe slug from a given string.

    Args:
        text: The input string (e.g., a story title).

    Returns:
        A clean, lowercase, hyphen-separated slug. Non-Latin titles are
        transliterated; the result may be empty if nothing survives.
    """
    if not isinstance(text, str):
        raise TypeError("Input must be a string.")

    return slugify(text, max_length=MAX_SLUG_LENGTH, word_boundary=True)


def slug_or_fallback(text: Optional[str], fallback: str) -> str:
    """Slug of text, or of fallback when text is missing or slugs to nothing."""
    slug = generate_slug(text) if text else ''
    return slug or generate_slug(fallback) or 'story'
