"""Slug conversion for URL-safe identifiers."""
import re

from handlerkit.exceptions import SlugError

# Only basic Latin letters and digits survive; \d would also match non-ASCII digits
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def convert_to_slug(s: str) -> str:
    """Convert ``s`` to a lowercase, hyphen-delimited slug.

    Examples:
        >>> convert_to_slug("Hello, World!")
        'hello-world'

    Raises:
        SlugError: If ``s`` is empty, or nothing is left once characters
            outside ``a-z0-9`` are removed (e.g. text in non-Latin scripts).
    """
    if s == "":
        raise SlugError("empty string not permitted")

    slug = _NON_SLUG_CHARS.sub("-", s.lower()).strip("-")
    if not slug:
        raise SlugError("after removing characters, slug is zero length")
    return slug
