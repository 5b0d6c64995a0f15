"""Shared fixtures for crud unit tests"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from synblog.core.document import Document
from synblog.crud.posts import index_post


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="post")
def post_fixture(session):
    """A single indexed post."""
    doc = Document(title="Hello", tags=["intro", "meta"], posted=100, summary="First post")
    post, _ = index_post(session, "posts/hello.syn", "hello", doc)
    return post
