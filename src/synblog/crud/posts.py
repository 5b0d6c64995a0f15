"""Post index persistence: upsert by path, lookup, listing, pruning"""

from datetime import datetime

from sqlmodel import Session, select

from synblog.core.document import Document, serialize
from synblog.core.utils.hashing import sha256
from synblog.crud.models import Post


# SQLite stores signed 64-bit integers
_MAX_INDEXED_POSTED = 2**63 - 1


def get_by_path(session: Session, path: str) -> Post | None:
    """Return the Post indexed from the given file path, or None if not found."""
    return session.exec(select(Post).where(Post.path == path)).one_or_none()


def get_by_slug(session: Session, slug: str) -> Post | None:
    """Return the first Post with the given slug, or None if not found."""
    return session.exec(select(Post).where(Post.slug == slug)).first()


def list_posts(session: Session, tag: str | None = None) -> list[Post]:
    """Return indexed posts newest first, optionally only those carrying tag."""
    posts = session.exec(select(Post).order_by(Post.posted.desc(), Post.slug)).all()
    if tag is None:
        return list(posts)
    return [p for p in posts if tag in (p.tags or [])]


def list_tags(session: Session) -> list[str]:
    """Return sorted distinct non-empty tags across all indexed posts."""
    tag_lists = session.exec(select(Post.tags)).all()
    return sorted({t for tags in tag_lists for t in (tags or []) if t})


def _apply(post: Post, slug: str, doc: Document, content_hash: str) -> None:
    post.slug = slug
    post.title = doc.title
    post.tags = list(doc.tags)
    post.posted = min(doc.posted, _MAX_INDEXED_POSTED)
    post.summary = doc.summary
    post.hash = content_hash
    post.indexed_at = datetime.now()


def index_post(
    session: Session,
    path: str,
    slug: str,
    doc: Document,
    ) -> tuple[Post, str]:
    """Upsert the header of one post file; change detection hashes the serialized header.

    Returns (post, status) where status is 'created', 'updated', or 'unchanged'.
    Flushes but does not commit; caller controls the transaction.
    """
    content_hash = sha256(serialize(doc))
    post = get_by_path(session, path)

    if post:
        if post.hash == content_hash:
            return post, 'unchanged'
        _apply(post, slug, doc, content_hash)
        session.add(post)
        session.flush()
        return post, 'updated'

    post = Post(slug=slug, path=path, title=doc.title, hash=content_hash)
    _apply(post, slug, doc, content_hash)
    session.add(post)
    session.flush()
    return post, 'created'


def remove_missing(session: Session, keep_paths: set[str]) -> list[str]:
    """Delete index rows whose path is not in keep_paths. Returns the removed slugs."""
    removed = []
    for post in session.exec(select(Post)).all():
        if post.path not in keep_paths:
            removed.append(post.slug)
            session.delete(post)
    session.flush()
    return removed
