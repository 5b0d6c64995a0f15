"""CLI command implementations"""

import logging
import time
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session

from synblog.config import Settings, load_config
from synblog.core.document import Document, format_timestamp, render_posted_timestamp
from synblog.core.errors import SynblogError
from synblog.core.pipeline import run_export, run_format, run_index
from synblog.core.site import render_post_page
from synblog.core.storage import load_post, save_post
from synblog.crud.database import init_db, make_engine, reset_db
from synblog.crud.posts import list_posts, list_tags


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(ctx: typer.Context, overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling and configure logging from it.

    --verbose (stored on ctx.obj by the app callback) wins over the configured log_level.
    """
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    verbose = (ctx.obj or {}).get("verbose", False)
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(logging.DEBUG if verbose else settings.log_level)
    return settings


def _load(path: str, settings: Settings) -> Document:
    try:
        return load_post(Path(path), settings.encoding)
    except SynblogError as e:
        _fail(str(e))


def _posted_label(posted: int, fmt: str) -> str:
    """Formatted posted date, or the raw number when it is outside the date range."""
    try:
        return format_timestamp(posted, fmt)
    except ValueError:
        return str(posted)


def init_cmd(
    ctx: typer.Context,
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate the post index")] = False,
    ):
    """Initialize the post index database. Use --reset to clear existing data."""
    settings = _settings(ctx)
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing index cleared.")
    else:
        init_db(engine)
    typer.echo(f"Index initialized at: {settings.db_url}")


def new_cmd(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Post file to create")],
    title: Annotated[str, typer.Option("--title", help="Post title")],
    tags: Annotated[str, typer.Option("--tags", help="Comma-separated tags")] = "",
    summary: Annotated[str, typer.Option("--summary", help="One-line summary")] = "",
    posted: Annotated[Optional[int], typer.Option("--posted", min=0, help="Unix timestamp; defaults to now")] = None,
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing file")] = False,
    ):
    """Create a new, empty post with the given metadata."""
    settings = _settings(ctx)
    target = Path(path)
    if target.exists() and not force:
        _fail(f"{target} already exists (use --force to overwrite)")
    try:
        doc = Document(
            title=title.strip(),
            tags=[t.strip() for t in tags.split(",")] if tags.strip() else [],
            posted=int(time.time()) if posted is None else posted,
            summary=summary.strip(),
        )
        save_post(doc, target, settings.encoding)
    except (SynblogError, ValueError) as e:
        _fail(str(e))
    typer.echo(f"Created {target}")


def show_cmd(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Post file to inspect")],
    ):
    """Print a post's metadata and element count."""
    settings = _settings(ctx)
    doc = _load(path, settings)
    try:
        posted = render_posted_timestamp(doc, settings.timestamp_format)
    except ValueError as e:
        _fail(str(e))
    typer.echo(f"title:    {doc.title}")
    typer.echo(f"tags:     {', '.join(doc.tags)}")
    typer.echo(f"posted:   {posted}")
    typer.echo(f"summary:  {doc.summary}")
    typer.echo(f"elements: {len(doc.elements)}")


def render_cmd(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Post file to render")],
    out: Annotated[Optional[str], typer.Option("--out", "-o", help="Write HTML here instead of stdout")] = None,
    ):
    """Render a single post as an HTML page."""
    settings = _settings(ctx)
    doc = _load(path, settings)
    try:
        page = render_post_page(doc, settings.timestamp_format)
    except ValueError as e:
        _fail(str(e))
    if out:
        Path(out).write_text(page, encoding="utf-8")
        typer.echo(f"  {path} -> {out}")
    else:
        typer.echo(page, nl=False)


def fmt_cmd(
    ctx: typer.Context,
    path: Annotated[Optional[str], typer.Argument(help="Post file or directory")] = None,
    check: Annotated[bool, typer.Option("--check", help="Only report non-canonical posts")] = False,
    ):
    """Rewrite posts in canonical form. With --check, print diffs and exit 1 if any differ.

    Posts whose canonical form would lose content (malformed elements, an
    unparsable posted value) are never rewritten; they are reported and the exit code is 1.
    """
    settings = _settings(ctx)
    try:
        changed, refused = run_format(Path(path or settings.posts_dir), settings.post_extension, settings.encoding, check)
    except SynblogError as e:
        _fail(str(e))
    for p, diff in changed:
        if check:
            typer.echo("".join(diff), nl=False)
        else:
            typer.echo(f"  formatted: {p}")
    for p, losses in refused:
        for loss in losses:
            typer.echo(f"  refused: {p}: {loss}", err=True)
    typer.echo(f"{len(changed)} post(s) {'would be ' if check else ''}reformatted")
    if refused:
        typer.echo(f"{len(refused)} post(s) left untouched; fix them by hand", err=True)
        raise typer.Exit(1)
    if check and changed:
        typer.echo(f"{len(changed)} post(s) not in canonical form", err=True)
        raise typer.Exit(1)


def build_cmd(
    ctx: typer.Context,
    path: Annotated[Optional[str], typer.Argument(help="Post file or directory")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    title: Annotated[Optional[str], typer.Option("--site-title", help="Index page title")] = None,
    ):
    """Export posts as HTML pages + sidecar JSON, plus an index page."""
    settings = _settings(ctx, overrides={"output_dir": out, "site_title": title})
    output_dir = Path(settings.output_dir)
    try:
        results = run_export(
            Path(path or settings.posts_dir), output_dir, settings.site_title,
            settings.post_extension, settings.encoding, settings.timestamp_format,
        )
    except RuntimeError as e:
        _fail(str(e))
    for slug, html_path in results:
        typer.echo(f"  {slug} -> {html_path}")
    typer.echo(f"Exported {len(results)} post(s) to {output_dir}/")


def index_cmd(
    ctx: typer.Context,
    path: Annotated[Optional[str], typer.Argument(help="Post file or directory")] = None,
    keep: Annotated[bool, typer.Option("--keep-missing", help="Keep index rows for deleted files")] = False,
    ):
    """Sync post headers into the index database (metadata-only loads)."""
    settings = _settings(ctx)
    engine = make_engine(settings.db_url)
    init_db(engine)
    try:
        counts, changes = run_index(
            engine, Path(path or settings.posts_dir), settings.post_extension, settings.encoding, prune=not keep,
        )
    except RuntimeError as e:
        _fail(str(e))
    if not counts:
        typer.echo("No posts found.")
        raise typer.Exit(1)
    for status, slug in changes:
        typer.echo(f"  {status}: {slug}")
    typer.echo(
        f"Index complete - "
        f"{counts['created']} created, "
        f"{counts['updated']} updated, "
        f"{counts['unchanged']} unchanged, "
        f"{counts['removed']} removed"
    )


def list_cmd(
    ctx: typer.Context,
    tag: Annotated[Optional[str], typer.Option("--tag", help="Only posts with this tag")] = None,
    tags: Annotated[bool, typer.Option("--tags", help="List distinct tags instead of posts")] = False,
    ):
    """List indexed posts, newest first."""
    settings = _settings(ctx)
    engine = make_engine(settings.db_url)
    init_db(engine)
    with Session(engine) as session:
        if tags:
            rows = list_tags(session)
        else:
            rows = [
                f"{p.slug}\t{_posted_label(p.posted, settings.timestamp_format)}\t{p.title}"
                for p in list_posts(session, tag)
            ]
    if not rows:
        typer.echo("No posts indexed. Run 'synblog index' first.")
        raise typer.Exit(1)
    for row in rows:
        typer.echo(row)
