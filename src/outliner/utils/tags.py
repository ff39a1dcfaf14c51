"""Inline token parsing utilities.

Item text is stored verbatim. Renderers (and the suggestion engine) recognize a small
set of inline tokens inside it:

- ``#tag`` -- a ``#`` at the start of the text or after whitespace, followed by word chars
- ``[[Link Text]]`` -- a cross-item link, resolved by exact item text
- ``[label](https://...)`` -- markdown-style link
- bare URLs and email addresses
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

TAG_RE = re.compile(r"(?<!\S)#\w+")
LINK_RE = re.compile(r"\[\[(?P<target>.*?)\]\]")

_INLINE_RE = re.compile(
    r"\[\[(?P<link>.*?)\]\]"
    r"|\[(?P<label>[^\[\]]+)\]\((?P<href>[^)\s]+)\)"
    r"|(?P<url>https?://[^\s<>]*[^\s<>.,;:!?)\]])"
    r"|(?P<email>[\w.+-]+@[\w-]+(?:\.[\w-]+)+)"
    r"|(?<!\S)(?P<tag>#\w+)"
)

TokenKind = Literal["text", "tag", "link", "mdlink", "url", "email"]


@dataclass(frozen=True)
class InlineToken:
    """A run of item text with its recognized kind."""

    kind: TokenKind
    text: str
    start: int
    end: int
    target: str | None = None


def extract_tags(text: str) -> list[str]:
    """Extract ``#tag`` tokens, keeping first-seen order."""

    seen: set[str] = set()
    out: list[str] = []
    for m in TAG_RE.finditer(text):
        tag = m.group(0)
        if tag not in seen:
            seen.add(tag)
            out.append(tag)
    return out


def extract_links(text: str) -> list[str]:
    """Extract ``[[target]]`` link targets in order of appearance."""

    return [m.group("target") for m in LINK_RE.finditer(text)]


def tokenize_inline(text: str) -> list[InlineToken]:
    """Split text into plain and recognized inline tokens.

    The tokens cover the whole input: concatenating ``token.text`` yields ``text`` back.
    """

    tokens: list[InlineToken] = []
    last = 0
    for m in _INLINE_RE.finditer(text):
        if m.start() > last:
            tokens.append(InlineToken("text", text[last : m.start()], last, m.start()))

        if m.group("link") is not None:
            tok = InlineToken("link", m.group(0), m.start(), m.end(), target=m.group("link"))
        elif m.group("label") is not None:
            tok = InlineToken("mdlink", m.group(0), m.start(), m.end(), target=m.group("href"))
        elif m.group("url") is not None:
            tok = InlineToken("url", m.group(0), m.start(), m.end(), target=m.group("url"))
        elif m.group("email") is not None:
            tok = InlineToken("email", m.group(0), m.start(), m.end(), target=f"mailto:{m.group('email')}")
        else:
            tok = InlineToken("tag", m.group(0), m.start(), m.end(), target=m.group("tag"))
        tokens.append(tok)
        last = m.end()

    if last < len(text):
        tokens.append(InlineToken("text", text[last:], last, len(text)))
    return tokens
