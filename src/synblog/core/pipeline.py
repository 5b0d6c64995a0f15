"""Pipeline step functions: index sync, canonical formatting, and site export orchestration"""

from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import Session

from synblog.core.document import TIMESTAMP_FORMAT, lenient_losses, serialize
from synblog.core.site import write_site
from synblog.core.storage import discover_posts, load_post, load_post_metadata, post_slug, save_post
from synblog.core.utils.diff import canonical_diff
from synblog.crud.posts import index_post, remove_missing


def run_index(
    engine: Engine,
    posts_path: Path,
    extension: str,
    encoding: str = "utf-8",
    prune: bool = True,
    ) -> tuple[dict[str, int], list[tuple[str, str]]]:
    """Sync post headers under posts_path into the index using metadata-only loads.

    Returns (counts, changes) where changes is a list of (status, slug) for
    created/updated/removed posts. Returns ({}, []) when no posts are found.
    """
    paths = discover_posts(posts_path, extension)
    if not paths:
        return {}, []

    counts = {"created": 0, "updated": 0, "unchanged": 0, "removed": 0}
    changes = []
    with Session(engine) as session:
        for p in paths:
            try:
                meta = load_post_metadata(p, encoding)
            except Exception as e:
                raise RuntimeError(f"Failed to index {p}: {e}") from e
            post, status = index_post(session, str(p), post_slug(p), meta)
            counts[status] += 1
            if status != 'unchanged':
                changes.append((status, post.slug))
        if prune and posts_path.is_dir():
            for slug in remove_missing(session, {str(p) for p in paths}):
                counts["removed"] += 1
                changes.append(("removed", slug))
        session.commit()
    return counts, changes


def run_format(
    posts_path: Path,
    extension: str,
    encoding: str = "utf-8",
    check: bool = False,
    ) -> tuple[list[tuple[Path, list[str]]], list[tuple[Path, list[str]]]]:
    """Rewrite non-canonical posts in canonical wire form.

    Returns (changed, refused). changed holds (path, diff_lines) for every post
    whose text differs from its canonical form. refused holds (path, losses)
    for posts whose canonical form would drop or replace content; those are
    never written. With check=True nothing is written.
    """
    changed, refused = [], []
    for p in discover_posts(posts_path, extension):
        doc = load_post(p, encoding)
        original = p.read_bytes().decode(encoding)
        losses = lenient_losses(original)
        if losses:
            refused.append((p, losses))
            continue
        canonical = serialize(doc)
        if original == canonical:
            continue
        changed.append((p, canonical_diff(original, canonical, p.name)))
        if not check:
            save_post(doc, p, encoding)
    return changed, refused


def run_export(
    posts_path: Path,
    output_dir: Path,
    site_title: str,
    extension: str,
    encoding: str = "utf-8",
    timestamp_format: str = TIMESTAMP_FORMAT,
    ) -> list[tuple[str, Path]]:
    """Export the site. Returns (slug, html_path) pairs."""
    return write_site(posts_path, output_dir, site_title, extension, encoding, timestamp_format)
