"""Unit tests for core/pipeline.py"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import Session, SQLModel, select

from synblog.core.pipeline import run_export, run_format, run_index
from synblog.crud.models import Post


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="posts_dir")
def posts_dir_fixture(tmp_path):
    d = tmp_path / "posts"
    d.mkdir()
    (d / "one.syn").write_text("One\na,b\n100\nfirst\n\n#H\n", encoding="utf-8")
    (d / "two.syn").write_text("Two\nb\n200\nsecond\n\ntext\n", encoding="utf-8")
    return d


# --- run_index ---

def test_run_index_creates_rows(engine, posts_dir):
    counts, changes = run_index(engine, posts_dir, ".syn")
    assert counts == {"created": 2, "updated": 0, "unchanged": 0, "removed": 0}
    assert sorted(changes) == [("created", "one"), ("created", "two")]
    with Session(engine) as session:
        posts = session.exec(select(Post)).all()
        assert {p.title for p in posts} == {"One", "Two"}


def test_run_index_unchanged_on_rerun(engine, posts_dir):
    run_index(engine, posts_dir, ".syn")
    counts, changes = run_index(engine, posts_dir, ".syn")
    assert counts["unchanged"] == 2
    assert changes == []


def test_run_index_body_change_is_unchanged(engine, posts_dir):
    """Only the header is indexed, so body edits do not touch the row."""
    run_index(engine, posts_dir, ".syn")
    (posts_dir / "one.syn").write_text("One\na,b\n100\nfirst\n\n#Other heading\n", encoding="utf-8")
    counts, _ = run_index(engine, posts_dir, ".syn")
    assert counts["unchanged"] == 2


def test_run_index_header_change_updates(engine, posts_dir):
    run_index(engine, posts_dir, ".syn")
    (posts_dir / "one.syn").write_text("One (edited)\na,b\n100\nfirst\n", encoding="utf-8")
    counts, changes = run_index(engine, posts_dir, ".syn")
    assert counts["updated"] == 1
    assert changes == [("updated", "one")]


def test_run_index_prunes_deleted_files(engine, posts_dir):
    run_index(engine, posts_dir, ".syn")
    (posts_dir / "two.syn").unlink()
    counts, changes = run_index(engine, posts_dir, ".syn")
    assert counts["removed"] == 1
    assert ("removed", "two") in changes


def test_run_index_keep_missing(engine, posts_dir):
    run_index(engine, posts_dir, ".syn")
    (posts_dir / "two.syn").unlink()
    counts, _ = run_index(engine, posts_dir, ".syn", prune=False)
    assert counts["removed"] == 0


def test_run_index_empty(engine, tmp_path):
    assert run_index(engine, tmp_path, ".syn") == ({}, [])


def test_run_index_bad_header(engine, posts_dir):
    (posts_dir / "bad.syn").write_text("Title\n", encoding="utf-8")
    with pytest.raises(RuntimeError, match="Failed to index"):
        run_index(engine, posts_dir, ".syn")


# --- run_format ---

NON_CANONICAL = "T\na , b\n1\ns\n\n\n#H\n\n\n\nx"
CANONICAL = "T\na,b\n1\ns\n\n#H\n\nx\n\n"


def test_run_format_check_reports_without_writing(tmp_path):
    p = tmp_path / "p.syn"
    p.write_text(NON_CANONICAL, encoding="utf-8")
    changed, refused = run_format(tmp_path, ".syn", check=True)
    assert [path for path, _ in changed] == [p]
    assert refused == []
    assert any(line.startswith("+a,b") for line in changed[0][1])
    assert p.read_text(encoding="utf-8") == NON_CANONICAL


def test_run_format_rewrites(tmp_path):
    p = tmp_path / "p.syn"
    p.write_text(NON_CANONICAL, encoding="utf-8")
    run_format(tmp_path, ".syn")
    assert p.read_bytes().decode("utf-8") == CANONICAL


def test_run_format_canonical_untouched(tmp_path):
    (tmp_path / "p.syn").write_text(CANONICAL, encoding="utf-8")
    assert run_format(tmp_path, ".syn", check=True) == ([], [])


def test_run_format_crlf_is_not_canonical(tmp_path):
    p = tmp_path / "p.syn"
    p.write_bytes(CANONICAL.replace("\n", "\r\n").encode("utf-8"))
    changed, _ = run_format(p, ".syn", check=True)
    assert len(changed) == 1


def test_run_format_refuses_to_drop_malformed_elements(tmp_path):
    """A post with a malformed block is reported and left byte-for-byte intact."""
    p = tmp_path / "p.syn"
    text = "T\na , b\n1\ns\n\n.img a|b\n\nkeep\n"
    p.write_text(text, encoding="utf-8")
    changed, refused = run_format(tmp_path, ".syn")
    assert changed == []
    assert [path for path, _ in refused] == [p]
    assert "element would be dropped" in refused[0][1][0]
    assert p.read_text(encoding="utf-8") == text


def test_run_format_refuses_to_reset_posted(tmp_path):
    """An unparsable posted value is not rewritten as 0."""
    p = tmp_path / "p.syn"
    text = "T\na\nyesterday\ns\n\n#H\n"
    p.write_text(text, encoding="utf-8")
    _, refused = run_format(tmp_path, ".syn")
    assert refused == [(p, ["posted value 'yesterday' would be replaced by 0"])]
    assert p.read_text(encoding="utf-8") == text


def test_run_format_refusal_does_not_block_other_posts(tmp_path):
    (tmp_path / "bad.syn").write_text("T\na\n1\ns\n\n.img x\n", encoding="utf-8")
    good = tmp_path / "good.syn"
    good.write_text(NON_CANONICAL, encoding="utf-8")
    changed, refused = run_format(tmp_path, ".syn")
    assert [path for path, _ in changed] == [good]
    assert [path.name for path, _ in refused] == ["bad.syn"]
    assert good.read_text(encoding="utf-8") == CANONICAL


# --- run_export ---

def test_run_export(posts_dir, tmp_path):
    out = tmp_path / "dist"
    results = run_export(posts_dir, out, "Blog", ".syn", timestamp_format="%Y")
    assert [slug for slug, _ in results] == ["one", "two"]
    assert (out / "index.html").exists()
