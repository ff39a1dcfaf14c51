"""Tests for structural mutations."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from outline_builders import item, shape

from outliner.events import ItemEventType
from outliner.models.item import Forest
from outliner.tree import mutator
from outliner.tree.mutator import Mutation
from outliner.tree.store import find, iter_items


def test_add_sibling_inserts_after_and_focuses_new_item() -> None:
    """It should insert right after the item and ask for focus at the start."""

    tree = (item("a"), item("b"))
    result = mutator.add_sibling(tree, "a", "new", now=100)

    new_id = result.focus_id
    assert new_id is not None
    assert shape(result.tree) == ["a", new_id, "b"]
    assert result.caret == "start"
    new = find(result.tree, new_id)
    assert new.text == "new"
    assert new.created_at == 100 and new.updated_at == 100
    assert [e.event_type for e in result.events] == [ItemEventType.CREATED]
    assert result.events[0].item_id == new_id


def test_add_sibling_touches_parent() -> None:
    """A nested insert refreshes the owning parent's updated_at."""

    tree = (item("p", item("c")),)
    result = mutator.add_sibling(tree, "c", now=100)

    assert shape(result.tree) == [{"p": ["c", result.focus_id]}]
    assert result.tree[0].updated_at == 100


def test_add_item_unfolds_parent_and_honours_index() -> None:
    """Adding under a folded parent unfolds it; ``index`` picks the position."""

    tree = (item("p", item("c1"), item("c2"), is_collapsed=True),)

    appended = mutator.add_item(tree, "p", "last", now=5)
    assert shape(appended.tree) == [{"p": ["c1", "c2", appended.focus_id]}]
    assert appended.tree[0].is_collapsed is False

    first = mutator.add_item(tree, "p", "first", index=0, now=5)
    assert shape(first.tree) == [{"p": [first.focus_id, "c1", "c2"]}]


def test_add_item_at_root() -> None:
    """A ``None`` parent appends to the root list."""

    tree = (item("a"),)
    result = mutator.add_item(tree, None, now=5)

    assert shape(result.tree) == ["a", result.focus_id]


def test_split_moves_tail_to_new_sibling() -> None:
    """Head stays on the item, tail goes to a new item after it."""

    tree = (item("a", text="hello world"), item("b"))
    result = mutator.split(tree, "a", 5, now=100)

    new_id = result.focus_id
    assert shape(result.tree) == ["a", new_id, "b"]
    assert find(result.tree, "a").text == "hello"
    assert find(result.tree, new_id).text == " world"
    assert result.caret == "start"
    assert [e.event_type for e in result.events] == [ItemEventType.CHANGED, ItemEventType.CREATED]
    assert result.events[0].fields == ["text"]


def test_split_at_end_keeps_item_unchanged() -> None:
    """Splitting at the end creates an empty sibling and leaves the text alone."""

    tree = (item("a", text="abc"),)
    result = mutator.split(tree, "a", 99, now=100)

    assert result.tree[0] is tree[0]
    assert result.tree[1].text == ""
    assert [e.event_type for e in result.events] == [ItemEventType.CREATED]


def test_split_at_start_inserts_blank_before_and_keeps_item() -> None:
    """Enter at the start of an item opens a line above it; the item keeps its id."""

    tree = (item("a", text="abc", is_favorite=True), item("b"))
    result = mutator.split(tree, "a", 0, now=100)

    blank_id = result.tree[0].id
    assert shape(result.tree) == [blank_id, "a", "b"]
    assert result.tree[0].text == ""
    assert result.tree[1] is tree[0]
    assert result.tree[1].is_favorite is True
    assert (result.focus_id, result.caret) == ("a", "start")
    assert [(e.event_type, e.item_id) for e in result.events] == [(ItemEventType.CREATED, blank_id)]


def test_delete_removes_subtree_and_focuses_previous_sibling() -> None:
    """Every removed id gets an event; focus moves to the previous sibling."""

    tree = (item("a"), item("b", item("b1", item("b1x"))), item("c"))
    result = mutator.delete(tree, "b", now=10)

    assert shape(result.tree) == ["a", "c"]
    assert [e.item_id for e in result.events] == ["b", "b1", "b1x"]
    assert all(e.event_type == ItemEventType.REMOVED for e in result.events)
    assert result.focus_id == "a"
    assert result.caret == "end"


def test_delete_first_child_focuses_parent() -> None:
    """Without a previous sibling focus falls back to the parent."""

    tree = (item("p", item("c1"), item("c2")),)
    result = mutator.delete(tree, "c1", now=10)

    assert shape(result.tree) == [{"p": ["c2"]}]
    assert result.focus_id == "p"


def test_delete_only_root_item_requests_no_focus() -> None:
    """Deleting the first root item leaves nothing to focus."""

    result = mutator.delete((item("a"),), "a", now=10)

    assert result.tree == ()
    assert result.focus_id is None


def test_indent_appends_to_previous_sibling_and_unfolds_it() -> None:
    """The item becomes the last child of its folded previous sibling."""

    tree = (item("a"), item("b", item("b1"), is_collapsed=True), item("c"))
    result = mutator.indent(tree, "c", now=10)

    assert shape(result.tree) == ["a", {"b": ["b1", "c"]}]
    assert find(result.tree, "b").is_collapsed is False
    assert [(e.event_type, e.item_id, e.fields) for e in result.events] == [
        (ItemEventType.CHANGED, "c", ["position"])
    ]


def test_indent_first_item_is_noop() -> None:
    """A first item has no previous sibling to move under."""

    tree = (item("a"), item("b"))
    result = mutator.indent(tree, "a", now=10)

    assert result.tree is tree
    assert result.events == ()


def test_outdent_trailing_siblings_follow() -> None:
    """Later siblings become children of the outdented item, after its own."""

    tree = (item("p", item("x"), item("y", item("y1")), item("z")), item("q"))
    result = mutator.outdent(tree, "y", now=10)

    assert shape(result.tree) == [{"p": ["x"]}, {"y": ["y1", "z"]}, "q"]
    assert result.events[0].item_id == "y"


def test_outdent_unfolds_item_that_receives_siblings() -> None:
    """A folded item that adopts trailing siblings is expanded."""

    tree = (item("p", item("x", item("x1"), is_collapsed=True), item("y")),)
    result = mutator.outdent(tree, "x", now=10)

    assert shape(result.tree) == ["p", {"x": ["x1", "y"]}]
    assert find(result.tree, "x").is_collapsed is False


def test_outdent_keeps_fold_state_without_trailing_siblings() -> None:
    """The last child keeps its fold state when outdented."""

    tree = (item("p", item("x", item("x1"), is_collapsed=True)),)
    result = mutator.outdent(tree, "x", now=10)

    assert shape(result.tree) == ["p", {"x": ["x1"]}]
    assert find(result.tree, "x").is_collapsed is True


def test_outdent_nested_lands_after_parent_in_grandparent() -> None:
    """The item is inserted right after its old parent."""

    tree = (item("g", item("p", item("x"), item("y")), item("s")),)
    result = mutator.outdent(tree, "x", now=10)

    assert shape(result.tree) == [{"g": ["p", {"x": ["y"]}, "s"]}]


def test_outdent_root_item_is_noop() -> None:
    """Root items cannot be outdented."""

    tree = (item("a"),)
    assert mutator.outdent(tree, "a", now=10).tree is tree


def test_indent_then_outdent_restores_shape() -> None:
    """Outdent undoes indent for the last item of a list."""

    tree = (item("a", item("a1")), item("b"))
    indented = mutator.indent(tree, "b", now=10).tree
    assert shape(indented) == [{"a": ["a1", "b"]}]

    restored = mutator.outdent(indented, "b", now=11).tree
    assert shape(restored) == shape(tree)


@pytest.mark.parametrize(
    ("item_id", "direction", "expected"),
    [
        ("b", "up", ["b", "a", "c"]),
        ("b", "down", ["a", "c", "b"]),
    ],
)
def test_move_swaps_with_neighbour(item_id: str, direction: str, expected: list[str]) -> None:
    """Move swaps the item with its neighbour in the sibling list."""

    tree = (item("a"), item("b"), item("c"))
    result = mutator.move(tree, item_id, direction, now=10)  # type: ignore[arg-type]

    assert shape(result.tree) == expected
    assert result.events[0].fields == ["position"]


@pytest.mark.parametrize(("item_id", "direction"), [("a", "up"), ("c", "down")])
def test_move_at_boundary_is_noop(item_id: str, direction: str) -> None:
    """Moves never cross into another list."""

    tree = (item("a"), item("b"), item("c"))
    assert mutator.move(tree, item_id, direction, now=10).tree is tree  # type: ignore[arg-type]


def test_merge_joins_text_and_children_into_previous_sibling() -> None:
    """Focus lands at the join point of the merged text."""

    tree = (item("p", text="foo"), item("q", item("q1"), text="bar"))
    result = mutator.merge(tree, "q", now=10)

    assert shape(result.tree) == [{"p": ["q1"]}]
    assert result.tree[0].text == "foobar"
    assert result.focus_id == "p"
    assert result.caret == 3
    assert [(e.event_type, e.item_id) for e in result.events] == [
        (ItemEventType.CHANGED, "p"),
        (ItemEventType.REMOVED, "q"),
    ]
    assert result.events[0].fields == ["text", "children"]


def test_merge_into_folded_childless_sibling_unfolds_it() -> None:
    """Merged-in children must stay visible."""

    tree = (item("p", text="foo", is_collapsed=True), item("q", item("q1"), text="bar"))
    result = mutator.merge(tree, "q", now=10)

    assert result.tree[0].is_collapsed is False


def test_merge_empty_first_child_removes_it_and_focuses_parent() -> None:
    """Backspace in an empty first child deletes it."""

    tree = (item("p", item("c", text="")),)
    result = mutator.merge(tree, "c", now=10)

    assert shape(result.tree) == ["p"]
    assert result.focus_id == "p"
    assert result.caret == "end"
    assert [e.item_id for e in result.events] == ["c"]


def test_merge_first_child_with_text_is_noop() -> None:
    """A non-empty first item has nothing to merge into."""

    tree = (item("p", item("c", text="keep")),)
    assert mutator.merge(tree, "c", now=10).tree is tree


def test_fold_all_collapses_writable_descendants_without_touching_timestamps() -> None:
    """Read-only descendants keep their fold state; updatedAt is untouched."""

    tree = (
        item(
            "a",
            item("b", item("c")),
            item("ro", item("d"), is_read_only=True),
            item("leaf"),
        ),
    )
    result = mutator.fold_all(tree, "a", True)

    a = result.tree[0]
    assert a.is_collapsed is True
    assert find(result.tree, "b").is_collapsed is True
    assert find(result.tree, "ro").is_collapsed is False
    assert find(result.tree, "ro") is find(tree, "ro")
    assert find(result.tree, "leaf") is find(tree, "leaf")
    assert all(n.updated_at == 1 for n in iter_items(result.tree))
    assert result.events == ()


def test_fold_all_on_read_only_item_folds_only_itself() -> None:
    """A locked target may be folded, but its descendants are left alone."""

    tree = (item("ro", item("d", item("e")), is_read_only=True),)
    result = mutator.fold_all(tree, "ro", True)

    assert result.tree[0].is_collapsed is True
    assert find(result.tree, "d").is_collapsed is False


def test_fold_all_already_folded_is_noop() -> None:
    """Nothing to change keeps the same tree."""

    tree = (item("a", item("b"), is_collapsed=True),)
    assert mutator.fold_all(tree, "a", True).tree is tree


def test_set_fields_updates_text_and_timestamp() -> None:
    """A text patch refreshes updatedAt and reports the camelCase field name."""

    tree = (item("a", text="old"),)
    result = mutator.set_fields(tree, "a", text="new", now=50)

    assert result.tree[0].text == "new"
    assert result.tree[0].updated_at == 50
    assert result.events[0].fields == ["text"]
    assert result.events[0].text_changed


def test_set_fields_reports_favorite_flag() -> None:
    """Favorite changes carry ``isFavorite`` and the new flag value."""

    result = mutator.set_fields((item("a"),), "a", is_favorite=True, now=50)

    assert result.events[0].fields == ["isFavorite"]
    assert result.events[0].is_favorite is True


def test_set_fields_equal_value_is_noop() -> None:
    """Patching the current value changes nothing."""

    tree = (item("a", text="same"),)
    assert mutator.set_fields(tree, "a", text="same", now=50).tree is tree


def test_set_fields_rejects_unknown_fields() -> None:
    """Only text, fold and favorite can be patched."""

    with pytest.raises(TypeError):
        mutator.set_fields((item("a"),), "a", id="b")


def test_set_fields_never_moves_timestamps_backwards() -> None:
    """updatedAt is monotonic even with a skewed clock."""

    tree = (item("a", text="x", updated_at=500),)
    result = mutator.set_fields(tree, "a", text="y", now=100)

    assert result.tree[0].updated_at == 500


def test_read_only_item_can_be_folded_without_timestamp_change() -> None:
    """Fold state is the one thing a read-only item accepts."""

    tree = (item("ro", item("c"), is_read_only=True),)

    folded = mutator.set_fields(tree, "ro", is_collapsed=True, now=50)
    assert folded.tree[0].is_collapsed is True
    assert folded.tree[0].updated_at == 1

    renamed = mutator.set_fields(tree, "ro", text="changed", now=50)
    assert renamed.tree is tree


def test_toggle_collapse_needs_children() -> None:
    """Leaves have no fold state to flip."""

    tree = (item("leaf"), item("p", item("c")))

    assert mutator.toggle_collapse(tree, "leaf", now=5).tree is tree
    toggled = mutator.toggle_collapse(tree, "p", now=5)
    assert find(toggled.tree, "p").is_collapsed is True


def test_toggle_favorite_flips_flag() -> None:
    """Unset favorites count as not favorite."""

    tree = (item("a"),)
    on = mutator.toggle_favorite(tree, "a", now=5).tree
    assert on[0].is_favorite is True
    off = mutator.toggle_favorite(on, "a", now=6).tree
    assert off[0].is_favorite is False


def test_edits_share_untouched_subtrees() -> None:
    """Subtrees off the edited path keep their identity."""

    tree = (item("a", item("a1")), item("b", item("b1")))
    result = mutator.set_fields(tree, "b1", text="x", now=5)

    assert result.tree[0] is tree[0]
    assert result.tree[1] is not tree[1]


_LOCKED_TREE: Forest = (
    item("ro", item("c1"), item("c2", text="text"), is_read_only=True),
    item("after"),
)

_LOCKED_OPS: dict[str, Callable[[Forest], Mutation]] = {
    "add_sibling": lambda t: mutator.add_sibling(t, "c2", now=10),
    "add_item": lambda t: mutator.add_item(t, "c2", now=10),
    "split": lambda t: mutator.split(t, "c2", 2, now=10),
    "delete": lambda t: mutator.delete(t, "c2", now=10),
    "indent": lambda t: mutator.indent(t, "c2", now=10),
    "outdent": lambda t: mutator.outdent(t, "c2", now=10),
    "move": lambda t: mutator.move(t, "c2", "up", now=10),
    "merge": lambda t: mutator.merge(t, "c2", now=10),
    "set_text": lambda t: mutator.set_fields(t, "c2", text="new", now=10),
    "toggle_favorite": lambda t: mutator.toggle_favorite(t, "c2", now=10),
    "indent_into_read_only": lambda t: mutator.indent(t, "after", now=10),
    "merge_into_read_only": lambda t: mutator.merge(t, "after", now=10),
}


@pytest.mark.parametrize("op", sorted(_LOCKED_OPS))
def test_read_only_subtrees_reject_structural_edits(op: str) -> None:
    """Edits inside or into a read-only subtree are no-ops."""

    result = _LOCKED_OPS[op](_LOCKED_TREE)

    assert result.tree is _LOCKED_TREE
    assert result.events == ()
    assert result.focus_id is None


@pytest.mark.parametrize(
    "op",
    [
        lambda t: mutator.add_sibling(t, "ghost", now=10),
        lambda t: mutator.delete(t, "ghost", now=10),
        lambda t: mutator.indent(t, "ghost", now=10),
        lambda t: mutator.outdent(t, "ghost", now=10),
        lambda t: mutator.merge(t, "ghost", now=10),
        lambda t: mutator.fold_all(t, "ghost", True),
        lambda t: mutator.set_fields(t, "ghost", text="x", now=10),
    ],
)
def test_stale_ids_are_ignored(op: Callable[[Forest], Mutation]) -> None:
    """Unknown ids leave the tree reference-equal."""

    tree = (item("a"),)
    assert op(tree).tree is tree
