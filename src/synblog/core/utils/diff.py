"""Diff of a post file against its canonical wire form, as printed by `fmt --check`"""

import difflib


def _visible_lines(text: str) -> list[str]:
    # Carriage returns are spelled out so CRLF-only changes still show up
    return text.replace("\r", "\\r").splitlines(keepends=True)


def canonical_diff(original: str, canonical: str, name: str, context: int = 3) -> list[str]:
    """Return unified diff lines from original to canonical, labelled a/<name> and b/<name>.

    Empty if the texts are identical. Lines keep their newlines; join with '' for display.
    """
    return list(difflib.unified_diff(
        _visible_lines(original), _visible_lines(canonical), f"a/{name}", f"b/{name}", n=context,
    ))
