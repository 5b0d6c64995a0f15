"""Post file storage: discovery, full/metadata-only loads, and saving"""

import logging
from pathlib import Path

from synblog.core.document import Document, parse_document, parse_metadata, write_document
from synblog.core.errors import PostIOError, PostNotFoundError
from synblog.core.utils.slug import slugify


logger = logging.getLogger(__name__)

POST_EXTENSION = ".syn"


def discover_posts(path: Path, extension: str = POST_EXTENSION) -> list[Path]:
    """Return sorted post files under path, or [path] if it is a single post file."""
    if path.is_file():
        return [path] if path.suffix == extension else []
    return sorted(p for p in path.rglob(f"*{extension}") if p.is_file())


def post_slug(path: Path) -> str:
    """Derive the URL slug of a post from its file name."""
    return slugify(path.stem)


def _open(path: Path, mode: str, encoding: str):
    try:
        return open(path, mode, encoding=encoding, newline="")
    except FileNotFoundError as e:
        raise PostNotFoundError(f"Post not found: {path}") from e
    except OSError as e:
        raise PostIOError(f"Cannot open {path}: {e}") from e


def load_post(path: Path, encoding: str = "utf-8") -> Document:
    """Load a full post (header + elements) from path."""
    with _open(path, "r", encoding) as f:
        try:
            doc = parse_document(f)
        except UnicodeDecodeError as e:
            raise PostIOError(f"Cannot decode {path} as {encoding}: {e}") from e
    logger.debug("Loaded %s (%d elements)", path, len(doc.elements))
    return doc


def load_post_metadata(path: Path, encoding: str = "utf-8") -> Document:
    """Load only the header of a post; the body is not read from disk."""
    with _open(path, "r", encoding) as f:
        try:
            return parse_metadata(f)
        except UnicodeDecodeError as e:
            raise PostIOError(f"Cannot decode {path} as {encoding}: {e}") from e


def save_post(doc: Document, path: Path, encoding: str = "utf-8") -> Path:
    """Write doc to path in canonical wire form, creating parent directories.

    No locking or atomic replace: callers must not write the same path concurrently.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PostIOError(f"Cannot create {path.parent}: {e}") from e
    with _open(path, "w", encoding) as f:
        write_document(doc, f)
    logger.debug("Saved %s", path)
    return path
