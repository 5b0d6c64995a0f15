"""Document model: 4-line metadata header + ordered elements, parse and serialize"""

from __future__ import annotations

import io
import logging
import re
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Iterator, TextIO

from pydantic import BaseModel, ConfigDict, Field, field_validator

from synblog.core.elements import Element, generate_line, parse_line, render_html
from synblog.core.errors import MalformedLineError, TruncatedHeaderError


logger = logging.getLogger(__name__)

HEADER_LINES = 4
TAG_SEPARATOR = ","
MAX_POSTED = 2**64 - 1
TIMESTAMP_FORMAT = "%a, %d %b %Y %H:%M:%S %z"

_POSTED_RE = re.compile(r"\+?[0-9]+")


class Document(BaseModel):
    """One post. Immutable; tags and elements are tuples owned by the document."""
    model_config = ConfigDict(frozen=True)

    title: str
    tags: tuple[str, ...] = ()
    posted: int = Field(default=0, ge=0, le=MAX_POSTED, description="Seconds since the epoch")
    summary: str = ""
    elements: tuple[Element, ...] = ()

    @field_validator("elements")
    @classmethod
    def _wire_stable(cls, elements: tuple[Element, ...]) -> tuple[Element, ...]:
        """Reject elements whose wire form would read back as something else."""
        for element in elements:
            if _read_back(element) != element:
                raise ValueError(f"{element!r} does not survive serialization as a single element")
        return elements


class _ScanState(Enum):
    FLUSHED = "flushed"
    COLLECTING = "collecting"


def _as_stream(source: str | TextIO) -> TextIO:
    return io.StringIO(source) if isinstance(source, str) else source


def _strip_terminator(line: str) -> str:
    return line.rstrip("\r\n")


def _read_back(element: Element) -> Element | None:
    """Run one element through the serialize/scan/parse path; None if it is lost or split."""
    blocks = list(_element_blocks(io.StringIO(generate_line(element))))
    if len(blocks) != 1:
        return None
    try:
        return parse_line(blocks[0])
    except MalformedLineError:
        return None


def parse_tags(line: str) -> tuple[str, ...]:
    """Split a tags header line on commas, trimming each tag. A blank line has no tags."""
    if not line.strip():
        return ()
    return tuple(tag.strip() for tag in line.split(TAG_SEPARATOR))


def _posted_value(line: str) -> int | None:
    value = line.strip()
    if _POSTED_RE.fullmatch(value) and int(value) <= MAX_POSTED:
        return int(value)
    return None


def parse_posted(line: str) -> int:
    """Parse the posted header field; anything not an unsigned 64-bit integer becomes 0.

    Missing and malformed values are deliberately treated the same.
    """
    posted = _posted_value(line)
    if posted is None:
        logger.debug("Unparsable posted value %r; defaulting to 0", line.strip())
        return 0
    return posted


def _read_header_lines(stream: TextIO) -> list[str]:
    lines = []
    for _ in range(HEADER_LINES):
        line = stream.readline()
        if not line:
            raise TruncatedHeaderError(
                f"Expected {HEADER_LINES} header lines (title, tags, posted, summary), got {len(lines)}"
            )
        lines.append(_strip_terminator(line))
    return lines


def _read_header(stream: TextIO) -> dict:
    title, tags, posted, summary = _read_header_lines(stream)
    return {
        "title": title.strip(),
        "tags": parse_tags(tags),
        "posted": parse_posted(posted),
        "summary": summary.strip(),
    }


def _element_blocks(stream: TextIO) -> Iterator[str]:
    """Yield blank-line-delimited blocks; consecutive non-blank lines join with a newline."""
    state = _ScanState.FLUSHED
    candidate: list[str] = []
    for raw in stream:
        line = _strip_terminator(raw)
        if line.strip():
            candidate.append(line)
            state = _ScanState.COLLECTING
        elif state is _ScanState.COLLECTING:
            yield "\n".join(candidate).strip()
            candidate = []
            state = _ScanState.FLUSHED
    if state is _ScanState.COLLECTING:
        yield "\n".join(candidate).strip()


def _parse_body(stream: TextIO) -> tuple[Element, ...]:
    elements = []
    for block in _element_blocks(stream):
        try:
            elements.append(parse_line(block))
        except MalformedLineError as e:
            logger.debug("Dropping malformed element: %s", e)
    return tuple(elements)


def parse_document(source: str | TextIO) -> Document:
    """Parse a full post (header and body) from text or a readable text stream.

    Malformed body elements are dropped; a short header raises TruncatedHeaderError.
    """
    stream = _as_stream(source)
    header = _read_header(stream)
    return Document(**header, elements=_parse_body(stream))


def parse_metadata(source: str | TextIO) -> Document:
    """Parse only the 4 header lines; the body is never read."""
    return Document(**_read_header(_as_stream(source)))


def lenient_losses(source: str | TextIO) -> list[str]:
    """List what parse_document would silently discard or replace in source.

    Covers a posted field that falls back to 0 and every malformed body element.
    An empty list means the parse is lossless up to canonical whitespace.
    """
    stream = _as_stream(source)
    posted = _read_header_lines(stream)[2]
    losses = []
    if _posted_value(posted) is None:
        losses.append(f"posted value {posted.strip()!r} would be replaced by 0")
    for block in _element_blocks(stream):
        try:
            parse_line(block)
        except MalformedLineError as e:
            losses.append(f"element would be dropped: {e}")
    return losses


def write_document(doc: Document, stream: TextIO) -> None:
    """Write the canonical wire form of doc to a writable text stream."""
    stream.write(f"{doc.title}\n{TAG_SEPARATOR.join(doc.tags)}\n{doc.posted}\n{doc.summary}\n\n")
    for element in doc.elements:
        stream.write(f"{generate_line(element)}\n\n")


def serialize(doc: Document) -> str:
    """Return the canonical wire form of doc."""
    buf = io.StringIO()
    write_document(doc, buf)
    return buf.getvalue()


def format_timestamp(posted: int, fmt: str = TIMESTAMP_FORMAT, tz: tzinfo | None = None) -> str:
    """Format epoch seconds in the local time zone (or tz), e.g. 'Thu, 01 Jan 1970 00:00:00 +0000'."""
    try:
        moment = datetime.fromtimestamp(posted, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise ValueError(f"Posted timestamp {posted} is outside the supported date range") from e
    return moment.astimezone(tz).strftime(fmt)


def render_posted_timestamp(
    doc: Document,
    fmt: str = TIMESTAMP_FORMAT,
    tz: tzinfo | None = None,
    ) -> str:
    """Format doc.posted for display."""
    return format_timestamp(doc.posted, fmt, tz)


def render_body(doc: Document) -> str:
    """Return the HTML fragments for the document's elements."""
    return render_html(doc.elements)
