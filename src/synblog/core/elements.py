"""Element grammar: one wire line <-> Element <-> HTML fragment"""

from typing import Annotated, Iterable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from synblog.core.errors import MalformedLineError


HLINE = "---"
HEADING_PREFIX = "#"
IMAGE_PREFIX = ".img "
CODE_PREFIX = ".code "
IMAGE_SEPARATOR = "|"


class _Element(BaseModel):
    model_config = ConfigDict(frozen=True)


class Text(_Element):
    """Free-form paragraph; an embedded newline renders as a line break."""
    kind: Literal["text"] = "text"
    body: str


class Heading(_Element):
    kind: Literal["heading"] = "heading"
    text: str


class Image(_Element):
    """Image reference. alt is rendered as element content, not as an attribute."""
    kind: Literal["image"] = "image"
    path: str
    alt: str
    style: str


class LineH(_Element):
    """Horizontal divider."""
    kind: Literal["hline"] = "hline"


class Code(_Element):
    kind: Literal["code"] = "code"
    text: str


Element = Annotated[Union[Text, Heading, Image, LineH, Code], Field(discriminator="kind")]


def parse_line(line: str) -> Element:
    """Classify a single stripped line. The check order is significant: first match wins.

    Raises MalformedLineError when an .img line does not have exactly 3 fields.
    """
    if line == HLINE:
        return LineH()
    if line.startswith(HEADING_PREFIX):
        return Heading(text=line[len(HEADING_PREFIX):])
    if line.startswith(IMAGE_PREFIX):
        fields = line[len(IMAGE_PREFIX):].split(IMAGE_SEPARATOR)
        if len(fields) != 3:
            raise MalformedLineError(
                f"Image line needs 3 '{IMAGE_SEPARATOR}'-separated fields, got {len(fields)}: {line!r}"
            )
        path, alt, style = fields
        return Image(path=path, alt=alt, style=style)
    if line.startswith(CODE_PREFIX):
        return Code(text=line[len(CODE_PREFIX):])
    return Text(body=line)


def generate_tag(element: Element) -> str:
    """Render an element as an HTML fragment. Content is NOT escaped."""
    match element:
        case Text(body=body):
            return "<p>" + body.replace("\n", "<br>") + "</p>"
        case Code(text=text):
            return f"<p class='code'>{text}</p>"
        case Heading(text=text):
            return f"<h2>{text}</h2>"
        case Image(path=path, alt=alt, style=style):
            return f"<img src='{path}' style='{style}'>{alt}</img>"
        case LineH():
            return "<div class='hline'></div>"
        case _:
            raise TypeError(f"Not an element: {type(element).__name__}")


def generate_line(element: Element) -> str:
    """Return the wire form of an element (inverse of parse_line)."""
    match element:
        case Text(body=body):
            return body
        case Code(text=text):
            return CODE_PREFIX + text
        case Heading(text=text):
            return HEADING_PREFIX + text
        case Image(path=path, alt=alt, style=style):
            return IMAGE_PREFIX + IMAGE_SEPARATOR.join((path, alt, style))
        case LineH():
            return HLINE
        case _:
            raise TypeError(f"Not an element: {type(element).__name__}")


def render_html(elements: Iterable[Element]) -> str:
    """Join the HTML fragments of elements, one per line."""
    return "\n".join(generate_tag(e) for e in elements)
