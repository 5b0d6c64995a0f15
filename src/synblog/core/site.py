"""Static site export: per-post HTML pages, sidecar JSON, and an index page"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from synblog.core.document import (
    TIMESTAMP_FORMAT,
    Document,
    render_body,
    render_posted_timestamp,
)
from synblog.core.storage import POST_EXTENSION, discover_posts, load_post, load_post_metadata, post_slug


logger = logging.getLogger(__name__)

PAGE_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
<meta charset='utf-8'>
<title>{title}</title>
</head>
<body>
{content}
</body>
</html>
"""


@dataclass
class PostEntry:
    """A post in a listing: where it lives and its metadata-only Document."""
    slug: str
    path: Path
    meta: Document


def build_index_entries(paths: list[Path], encoding: str = "utf-8") -> list[PostEntry]:
    """Load metadata for each path, newest first (ties broken by slug)."""
    entries = [PostEntry(slug=post_slug(p), path=p, meta=load_post_metadata(p, encoding)) for p in paths]
    return sorted(entries, key=lambda e: (-e.meta.posted, e.slug))


def _tags_html(tags: tuple[str, ...]) -> str:
    return "".join(f"<span class='tag'>{t}</span>" for t in tags if t)


def render_post_page(doc: Document, timestamp_format: str = TIMESTAMP_FORMAT) -> str:
    """Render a complete HTML page for a single post. Like the element tags, nothing is escaped."""
    content = "\n".join([
        f"<h1>{doc.title}</h1>",
        f"<div class='posted'>{render_posted_timestamp(doc, timestamp_format)}</div>",
        f"<div class='tags'>{_tags_html(doc.tags)}</div>",
        render_body(doc),
    ])
    return PAGE_TEMPLATE.format(title=doc.title, content=content)


def render_index_page(
    entries: list[PostEntry],
    site_title: str,
    timestamp_format: str = TIMESTAMP_FORMAT,
    ) -> str:
    """Render the listing page linking every post, in the given order."""
    items = [
        f"<li><a href='{e.slug}.html'>{e.meta.title}</a>"
        f" <span class='posted'>{render_posted_timestamp(e.meta, timestamp_format)}</span>"
        f"<p>{e.meta.summary}</p></li>"
        for e in entries
    ]
    content = f"<h1>{site_title}</h1>\n<ul class='posts'>\n" + "\n".join(items) + "\n</ul>"
    return PAGE_TEMPLATE.format(title=site_title, content=content)


def build_sidecar(doc: Document, slug: str) -> dict:
    """Build the JSON sidecar for a post: slug, metadata, and typed elements."""
    return {
        "slug": slug,
        "title": doc.title,
        "tags": list(doc.tags),
        "posted": doc.posted,
        "summary": doc.summary,
        "elements": [e.model_dump() for e in doc.elements],
    }


def write_post(
    path: Path,
    output_dir: Path,
    encoding: str = "utf-8",
    timestamp_format: str = TIMESTAMP_FORMAT,
    ) -> tuple[Path, Path]:
    """Fully load one post and write <slug>.html + <slug>.json. Returns (html_path, json_path)."""
    doc = load_post(path, encoding)
    slug = post_slug(path)
    html_path = output_dir / f"{slug}.html"
    json_path = output_dir / f"{slug}.json"
    html_path.write_text(render_post_page(doc, timestamp_format), encoding="utf-8")
    json_path.write_text(json.dumps(build_sidecar(doc, slug), indent=2, ensure_ascii=False), encoding="utf-8")
    return html_path, json_path


def write_site(
    posts_path: Path,
    output_dir: Path,
    site_title: str = "SynBlog",
    extension: str = POST_EXTENSION,
    encoding: str = "utf-8",
    timestamp_format: str = TIMESTAMP_FORMAT,
    ) -> list[tuple[str, Path]]:
    """Export every post under posts_path plus index.html. Returns (slug, html_path) pairs.

    The index is built from metadata-only loads; post pages need the full parse.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = discover_posts(posts_path, extension)
    results = []
    for p in paths:
        try:
            html_path, _ = write_post(p, output_dir, encoding, timestamp_format)
        except Exception as e:
            raise RuntimeError(f"Failed to export {p}: {e}") from e
        logger.info("Exported %s -> %s", p, html_path)
        results.append((post_slug(p), html_path))

    try:
        page = render_index_page(build_index_entries(paths, encoding), site_title, timestamp_format)
    except Exception as e:
        raise RuntimeError(f"Failed to export index page: {e}") from e
    (output_dir / "index.html").write_text(page, encoding="utf-8")
    return results
