"""Shared fixtures for core unit tests"""

import pytest

from synblog.core.document import Document
from synblog.core.elements import Code, Heading, Image, LineH, Text


SAMPLE_POST = """\
My Post
rust, python ,web
1700000000
A summary

#Intro

Hello,
SynBlog!

.img test.png|A test image!|width:100%

---

.code print(1)

bye
"""

SAMPLE_ELEMENTS = (
    Heading(text="Intro"),
    Text(body="Hello,\nSynBlog!"),
    Image(path="test.png", alt="A test image!", style="width:100%"),
    LineH(),
    Code(text="print(1)"),
    Text(body="bye"),
)


@pytest.fixture(name="sample_doc")
def sample_doc_fixture():
    return Document(
        title="My Post",
        tags=["rust", "python", "web"],
        posted=1700000000,
        summary="A summary",
        elements=SAMPLE_ELEMENTS,
    )


@pytest.fixture(name="post_file")
def post_file_fixture(tmp_path):
    """SAMPLE_POST written to a .syn file."""
    p = tmp_path / "my-post.syn"
    p.write_text(SAMPLE_POST, encoding="utf-8")
    return p


@pytest.fixture(name="sample_text")
def sample_text_fixture():
    return SAMPLE_POST


@pytest.fixture(name="sample_elements")
def sample_elements_fixture():
    return SAMPLE_ELEMENTS
