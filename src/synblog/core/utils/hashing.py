"""SHA-256 content hashing for index change detection"""

import hashlib


def sha256(content: str | bytes) -> str:
    """Return hex-encoded SHA-256 of a post's text (64 chars, fits the String(64) hash column)."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()
