"""Post slugs derived from file names"""

import re


_SEPARATORS = re.compile(r"[\W_]+")


def slugify(stem: str, fallback: str = "post") -> str:
    """Slug for a post file stem: lowercase word runs joined by single hyphens, or fallback if none."""
    return _SEPARATORS.sub("-", stem.lower()).strip("-") or fallback
