"""Rich-text (HTML) to plain text conversion for embedding and prompting."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

_WS_RE = re.compile(r"\s+")

_SKIP_TAGS = ("script", "style", "img", "head", "noscript", "template")
_BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt",
        "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6",
        "header", "hr", "li", "main", "nav", "ol", "p", "section", "table",
        "tbody", "thead", "tr", "ul",
    }
)


class _Literal(str):
    """Text from a ``<pre>`` block, emitted untouched."""


_BREAK = object()


def html_to_text(markup: str | None) -> str:
    """
    Convert editor HTML to plain text.

    Tags are stripped and whitespace is collapsed; link text is kept while
    hrefs are dropped; images, scripts and styles are skipped; ``<pre>``
    blocks are copied verbatim. Input without markup comes back with only
    whitespace normalized.

    Args:
        markup: HTML fragment or plain text

    Returns:
        Plain text, one line per block element
    """
    if not markup:
        return ""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(list(_SKIP_TAGS)):
        tag.decompose()

    parts: list[object] = []
    _walk(soup, parts)
    return "\n".join(_assemble(parts))


def _walk(node: Tag, out: list[object]) -> None:
    for child in node.children:
        if isinstance(child, PreformattedString):
            continue
        if isinstance(child, NavigableString):
            out.append(str(child))
        elif isinstance(child, Tag):
            if child.name == "pre":
                out.extend((_BREAK, _Literal(child.get_text()), _BREAK))
            elif child.name == "br":
                out.append(_BREAK)
            elif child.name in _BLOCK_TAGS:
                out.append(_BREAK)
                _walk(child, out)
                out.append(_BREAK)
            else:
                _walk(child, out)


def _assemble(parts: list[object]) -> list[str]:
    blocks: list[str] = []
    pending: list[str] = []

    def flush() -> None:
        text = _WS_RE.sub(" ", "".join(pending)).strip()
        if text:
            blocks.append(text)
        pending.clear()

    for part in parts:
        if part is _BREAK:
            flush()
        elif isinstance(part, _Literal):
            flush()
            if part:
                blocks.append(str(part))
        else:
            pending.append(part)
    flush()
    return blocks


__all__ = ["html_to_text"]
