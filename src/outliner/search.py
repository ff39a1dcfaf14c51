"""Quick-find search and ``[[link]]`` / ``#tag`` autocompletion.

Everything here reads the tree and never mutates it. Suggestions are applied as plain
text rewrites that the caller stores through :func:`outliner.tree.mutator.set_fields`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from outliner.models.item import Direction, Forest, Item
from outliner.models.search import LinkSuggestion, SearchHit, TextEdit
from outliner.tree.store import walk
from outliner.utils.tags import extract_tags

_OR_RE = re.compile(r"\s+or\s+", re.IGNORECASE)
_WORD_CHAR_RE = re.compile(r"\w")


@dataclass(frozen=True)
class Trigger:
    """An autocomplete trigger found before the caret.

    ``start`` is the index of ``[[`` (links) or ``#`` (tags); ``query`` is the text typed
    after it up to the caret.
    """

    start: int
    query: str


def parse_query(query: str) -> list[list[str]]:
    """Split a quick-find query into OR-groups of lower-cased AND-terms."""

    trimmed = query.strip()
    if not trimmed:
        return []
    groups = [clause.split() for clause in _OR_RE.split(trimmed.lower())]
    return [g for g in groups if g]


def matches(text: str, groups: list[list[str]]) -> bool:
    if not groups:
        return True
    hay = text.lower()
    return any(all(term in hay for term in terms) for terms in groups)


def search(tree: Forest, query: str) -> list[SearchHit]:
    """Search every item in the forest (ignores zoom).

    An item matches when its text contains all terms of at least one OR-group, case
    insensitively. An empty query matches everything.
    """

    groups = parse_query(query)
    return [
        SearchHit(id=node.id, text=node.text, path=[a.text for a in ancestors])
        for node, ancestors in walk(tree)
        if matches(node.text, groups)
    ]


def highlight_terms(query: str) -> list[str]:
    """Unique lower-cased terms of a query, without the ``OR`` keywords."""

    seen: dict[str, None] = {}
    for terms in parse_query(query):
        for term in terms:
            seen.setdefault(term, None)
    return list(seen)


def find_link_trigger(text: str, caret: int) -> Trigger | None:
    """Find an unclosed ``[[`` before the caret."""

    before = text[:caret]
    open_at = before.rfind("[[")
    if open_at == -1 or before.rfind("]]") > open_at:
        return None
    return Trigger(start=open_at, query=before[open_at + 2 :])


def find_tag_trigger(text: str, caret: int) -> Trigger | None:
    """Find a ``#word`` run ending at the caret, with ``#`` at the start or after whitespace."""

    caret = max(0, min(caret, len(text)))
    i = caret
    while i > 0 and _WORD_CHAR_RE.match(text[i - 1]):
        i -= 1
    hash_at = i - 1
    if hash_at < 0 or text[hash_at] != "#":
        return None
    if hash_at > 0 and not text[hash_at - 1].isspace():
        return None
    return Trigger(start=hash_at, query=text[i:caret])


def suggest_links(
    tree: Forest,
    query: str,
    *,
    exclude_id: str | None = None,
    limit: int | None = None,
) -> list[LinkSuggestion]:
    """Rank link targets: prefix matches first, then substring matches, forest order within.

    Empty items and the item being edited are never suggested.
    """

    q = query.lower()
    prefix: list[LinkSuggestion] = []
    substring: list[LinkSuggestion] = []
    for node, ancestors in walk(tree):
        if node.id == exclude_id or not node.text:
            continue
        hay = node.text.lower()
        if hay.startswith(q):
            bucket, exact = prefix, True
        elif q in hay:
            bucket, exact = substring, False
        else:
            continue
        bucket.append(
            LinkSuggestion(
                id=node.id,
                text=node.text,
                path=[a.text for a in ancestors],
                exact_prefix=exact,
            )
        )
    ranked = prefix + substring
    return ranked[:limit] if limit is not None else ranked


def collect_tags(tree: Forest) -> set[str]:
    tags: set[str] = set()
    for node, _ancestors in walk(tree):
        tags.update(extract_tags(node.text))
    return tags


def suggest_tags(tree: Forest, query: str, *, limit: int | None = None) -> list[str]:
    """Distinct ``#tags`` in the forest containing ``query``, sorted alphabetically."""

    q = query.lower().lstrip("#")
    found = [t for t in collect_tags(tree) if q in t[1:].lower()]
    found.sort(key=lambda t: (t.lower(), t))
    return found[:limit] if limit is not None else found


def apply_link(text: str, caret: int, target_text: str) -> TextEdit | None:
    """Replace the open ``[[query`` before the caret with a complete ``[[target]]``.

    A ``]]`` right after the caret (auto-closed brackets) is absorbed into the token.
    """

    trigger = find_link_trigger(text, caret)
    if trigger is None:
        return None
    after = text[caret:]
    if after.startswith("]]"):
        after = after[2:]
    head = text[: trigger.start] + f"[[{target_text}]]"
    return TextEdit(text=head + after, caret=len(head))


def apply_tag(text: str, caret: int, tag: str) -> TextEdit | None:
    """Replace the ``#query`` run before the caret with ``tag``."""

    caret = max(0, min(caret, len(text)))
    trigger = find_tag_trigger(text, caret)
    if trigger is None:
        return None
    token = tag if tag.startswith("#") else f"#{tag}"
    head = text[: trigger.start] + token
    return TextEdit(text=head + text[caret:], caret=len(head))


def dismiss_link(text: str, caret: int) -> TextEdit | None:
    """Drop an unclosed ``[[query`` (and a trailing auto-closed ``]]``) before the caret."""

    trigger = find_link_trigger(text, caret)
    if trigger is None:
        return None
    after = text[caret:]
    if after.startswith("]]"):
        after = after[2:]
    return TextEdit(text=text[: trigger.start] + after, caret=trigger.start)


def cycle_index(count: int, index: int, direction: Direction) -> int:
    """Next highlighted row in a suggestion popup, wrapping around."""

    if count == 0:
        return index
    if direction == "down":
        return (index + 1) % count
    return (index - 1 + count) % count


def resolve_link(tree: Forest, link_text: str) -> Item | None:
    """The first item (in forest order) whose text is exactly ``link_text``."""

    for node, _ancestors in walk(tree):
        if node.text == link_text:
            return node
    return None
