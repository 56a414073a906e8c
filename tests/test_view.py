"""Tests for LineView: access, provenance, propagation and block extraction."""

import pytest

from linemachine import Line, LineInfo, LineView
from linemachine.errors import UnexpectedIndentationError, ViewIndexError


def make_doc() -> LineView:
    return LineView(["zero", "one", "two", "three", "four"], source="doc.txt")


# =========================================================================
# Construction
# =========================================================================


class TestConstruction:
    def test_auto_numbered_offsets(self) -> None:
        view = LineView(["a", "b", "c"], source="src")
        assert view.items == [("src", 0), ("src", 1), ("src", 2)]

    def test_explicit_items(self) -> None:
        view = LineView(["a", "b"], items=[("x", 10), ("y", 3)])
        assert view.info(0) == LineInfo("x", 10)
        assert view.info(1) == LineInfo("y", 3)

    def test_items_length_mismatch(self) -> None:
        with pytest.raises(ValueError, match="data mismatch"):
            LineView(["a", "b"], items=[("x", 0)])

    def test_from_lines(self) -> None:
        view = LineView.from_lines([Line("a", "f1", 4), Line("b", "f2", 0)])
        assert view.data == ["a", "b"]
        assert view.items == [("f1", 4), ("f2", 0)]

    def test_root_has_no_parent(self) -> None:
        view = make_doc()
        assert view.parent is None
        assert view.parent_offset == 0

    def test_copy_is_detached(self) -> None:
        doc = make_doc()
        child = doc[1:3]
        copy = child.copy()
        assert copy.parent is None
        copy.set(0, "changed")
        assert doc.get(1) == "one"
        assert child.get(0) == "one"

    def test_empty(self) -> None:
        view = LineView()
        assert len(view) == 0
        assert list(view) == []


# =========================================================================
# Read access
# =========================================================================


class TestAccess:
    def test_get(self) -> None:
        assert make_doc().get(2) == "two"

    def test_getitem(self) -> None:
        assert make_doc()[4] == "four"

    @pytest.mark.parametrize("index", [-1, 5, 100])
    def test_get_out_of_range(self, index: int) -> None:
        with pytest.raises(ViewIndexError):
            make_doc().get(index)

    def test_index_error_is_builtin_index_error(self) -> None:
        with pytest.raises(IndexError):
            make_doc().get(99)

    def test_iteration_and_contains(self) -> None:
        view = make_doc()
        assert list(view) == ["zero", "one", "two", "three", "four"]
        assert "three" in view
        assert "five" not in view

    def test_equality(self) -> None:
        assert LineView(["a", "b"], source="x") == ["a", "b"]
        assert LineView(["a", "b"], source="x") == LineView(["a", "b"], source="y")
        assert LineView(["a"], source="x") != ["b"]

    def test_lines_and_xitems(self) -> None:
        view = LineView(["a", "b"], source="s")
        assert list(view.lines()) == [Line("a", "s", 0), Line("b", "s", 1)]
        assert list(view.xitems()) == [("s", 0, "a"), ("s", 1, "b")]

    def test_add_makes_root_view(self) -> None:
        left = LineView(["a"], source="l")
        right = LineView(["b"], source="r")
        combined = left[0:1] + right
        assert combined.parent is None
        assert combined.data == ["a", "b"]
        assert combined.items == [("l", 0), ("r", 0)]


class TestInfo:
    def test_info_in_range(self) -> None:
        view = make_doc()
        assert view.info(3) == ("doc.txt", 3)
        assert view.source(3) == "doc.txt"
        assert view.offset(3) == 3

    def test_info_just_past_end(self) -> None:
        view = LineView(["a", "b"], items=[("first", 0), ("last", 7)])
        assert view.info(2) == ("last", -1)
        assert view.offset(2) == -1

    def test_info_beyond_end(self) -> None:
        with pytest.raises(ViewIndexError):
            make_doc().info(6)

    def test_info_negative(self) -> None:
        with pytest.raises(ViewIndexError):
            make_doc().info(-1)

    def test_info_on_empty_view(self) -> None:
        with pytest.raises(ViewIndexError):
            LineView().info(0)


# =========================================================================
# Slicing and propagation
# =========================================================================


class TestSlicing:
    def test_child_linkage(self) -> None:
        doc = make_doc()
        child = doc[1:4]
        assert child.parent is doc
        assert child.parent_offset == 1
        assert child.data == ["one", "two", "three"]
        assert child.info(0) == ("doc.txt", 1)

    def test_open_slices(self) -> None:
        doc = make_doc()
        assert doc[:2].data == ["zero", "one"]
        assert doc[3:].data == ["three", "four"]
        assert doc[3:].parent_offset == 3

    def test_invalid_slices(self) -> None:
        doc = make_doc()
        with pytest.raises(ViewIndexError):
            doc.slice(3, 2)
        with pytest.raises(ViewIndexError):
            doc.slice(0, 6)
        with pytest.raises(ValueError):
            doc[::2]

    def test_set_propagates_through_chain(self) -> None:
        doc = make_doc()
        child = doc[1:5]
        grandchild = child[2:4]
        grandchild.set(1, "FOUR")
        assert child.get(3) == "FOUR"
        assert doc.get(4) == "FOUR"

    def test_setitem(self) -> None:
        doc = make_doc()
        child = doc[2:4]
        child[0] = "TWO"
        assert doc[2] == "TWO"

    def test_delete_at_propagates(self) -> None:
        doc = make_doc()
        child = doc[1:4]
        child.delete_at(1)
        assert child.data == ["one", "three"]
        assert doc.data == ["zero", "one", "three", "four"]

    def test_delitem_slice_propagates(self) -> None:
        doc = make_doc()
        child = doc[1:5]
        del child[1:3]
        assert child.data == ["one", "four"]
        assert doc.data == ["zero", "one", "four"]

    def test_insert_at_propagates(self) -> None:
        doc = make_doc()
        child = doc[1:3]
        child.insert_at(1, "new", "extra", 0)
        assert child.data == ["one", "new", "two"]
        assert doc.data == ["zero", "one", "new", "two", "three", "four"]
        assert doc.info(2) == ("extra", 0)

    def test_insert_at_end_of_child(self) -> None:
        doc = make_doc()
        child = doc[1:3]
        child.insert_at(2, "new", "extra", 0)
        assert doc.data == ["zero", "one", "two", "new", "three", "four"]

    def test_insert_requires_source(self) -> None:
        with pytest.raises(ValueError, match="source"):
            make_doc().insert_at(0, "x", "", 0)

    def test_insert_out_of_range(self) -> None:
        with pytest.raises(ViewIndexError):
            make_doc().insert_at(6, "x", "s", 0)

    def test_insert_range_propagates(self) -> None:
        doc = make_doc()
        child = doc[3:5]
        child.insert_range(0, LineView(["a", "b"], source="inc"))
        assert child.data == ["a", "b", "three", "four"]
        assert doc.data == ["zero", "one", "two", "a", "b", "three", "four"]
        assert doc.items[3:5] == [("inc", 0), ("inc", 1)]

    def test_append_propagates_at_child_end(self) -> None:
        doc = make_doc()
        child = doc[0:2]
        child.append("tail", "extra", 9)
        assert child.data == ["zero", "one", "tail"]
        assert doc.data == ["zero", "one", "tail", "two", "three", "four"]

    def test_append_range_propagates(self) -> None:
        doc = make_doc()
        child = doc[1:2]
        child.append_range(LineView(["x", "y"], source="inc"))
        assert child.data == ["one", "x", "y"]
        assert doc.data == ["zero", "one", "x", "y", "two", "three", "four"]

    def test_extend_is_append_range(self) -> None:
        view = LineView(["a"], source="s")
        view.extend(LineView(["b"], source="t"))
        assert view.data == ["a", "b"]
        assert view.info(1) == ("t", 0)

    def test_set_range_propagates(self) -> None:
        doc = make_doc()
        child = doc[1:4]
        child[0:2] = LineView(["X"], source="new")
        assert child.data == ["X", "three"]
        assert doc.data == ["zero", "X", "three", "four"]

    def test_set_range_rejects_plain_list(self) -> None:
        with pytest.raises(TypeError):
            make_doc()[0:1] = ["x"]

    def test_remove_at_propagates(self) -> None:
        doc = make_doc()
        child = doc[2:5]
        assert child.remove_at(1) == "three"
        assert child.data == ["two", "four"]
        assert doc.data == ["zero", "one", "two", "four"]

    def test_pop_defaults_to_last(self) -> None:
        doc = make_doc()
        child = doc[0:2]
        assert child.pop() == "one"
        assert doc.data == ["zero", "two", "three", "four"]

    def test_pop_empty(self) -> None:
        with pytest.raises(ViewIndexError):
            LineView().pop()

    def test_parent_changes_do_not_reach_child(self) -> None:
        doc = make_doc()
        child = doc[1:3]
        doc.set(1, "changed")
        assert child.get(0) == "one"


class TestDisconnect:
    def test_disconnect_stops_propagation(self) -> None:
        doc = make_doc()
        child = doc[1:3]
        child.disconnect()
        assert child.parent is None
        child.set(0, "X")
        child.append("Y", "s", 0)
        child.delete_at(1)
        assert doc.data == ["zero", "one", "two", "three", "four"]
        assert child.data == ["X", "Y"]


# =========================================================================
# Local-only mutation
# =========================================================================


class TestTrim:
    def test_trim_start_is_local(self) -> None:
        doc = make_doc()
        doc.trim_start(2)
        assert doc.data == ["two", "three", "four"]
        assert doc.info(0) == ("doc.txt", 2)

    def test_trim_start_advances_parent_offset(self) -> None:
        doc = make_doc()
        child = doc[1:5]
        child.trim_start(2)
        assert child.parent_offset == 3
        assert doc.data == ["zero", "one", "two", "three", "four"]
        child.set(0, "THREE")
        assert doc.get(3) == "THREE"

    def test_trim_end_keeps_parent_offset(self) -> None:
        doc = make_doc()
        child = doc[1:5]
        child.trim_end(2)
        assert child.data == ["one", "two"]
        assert child.parent_offset == 1
        assert len(doc) == 5

    def test_trim_all(self) -> None:
        view = make_doc()
        view.trim_end(5)
        assert len(view) == 0

    @pytest.mark.parametrize("n", [-1, 6])
    def test_trim_bounds(self, n: int) -> None:
        with pytest.raises(ViewIndexError):
            make_doc().trim_start(n)
        with pytest.raises(ViewIndexError):
            make_doc().trim_end(n)


class TestStringOperations:
    def test_replace_all_is_local(self) -> None:
        doc = LineView(["a-b", "b-c"], source="s")
        child = doc[0:2]
        child.replace_all("-", "+")
        assert child.data == ["a+b", "b+c"]
        assert doc.data == ["a-b", "b-c"]

    def test_trim_left_chars(self) -> None:
        view = LineView(["   a", "   b", "   c"], source="s")
        view.trim_left_chars(2, 1, 3)
        assert view.data == ["   a", " b", " c"]

    def test_trim_left_chars_no_whitespace_check(self) -> None:
        view = LineView(["abcdef"], source="s")
        view.trim_left_chars(3)
        assert view.data == ["def"]

    def test_trim_left_chars_is_local(self) -> None:
        doc = LineView(["  a", "  b"], source="s")
        child = doc[0:2]
        child.trim_left_chars(2)
        assert doc.data == ["  a", "  b"]


# =========================================================================
# Block extraction
# =========================================================================


class TestTextBlock:
    def test_stops_at_blank_line(self) -> None:
        view = LineView(["foo", "  bar", "", "baz"], source="s")
        block = view.get_text_block(0)
        assert block.data == ["foo", "  bar"]

    def test_flush_left_rejects_indented_line(self) -> None:
        view = LineView(["foo", "  bar", ""], source="s")
        with pytest.raises(UnexpectedIndentationError) as exc_info:
            view.get_text_block(0, flush_left=True)
        assert exc_info.value.offset == 1
        assert exc_info.value.block.data == ["foo"]

    def test_flush_left_accepts_flush_block(self) -> None:
        view = LineView(["foo", "bar", "", "  baz"], source="s")
        assert view.get_text_block(0, flush_left=True).data == ["foo", "bar"]

    def test_runs_to_end(self) -> None:
        view = LineView(["", "a", "b"], source="s")
        assert view.get_text_block(1).data == ["a", "b"]

    def test_blank_start_gives_empty_block(self) -> None:
        view = LineView(["", "a"], source="s")
        assert len(view.get_text_block(0)) == 0

    def test_block_from_root_is_root(self) -> None:
        doc = LineView(["x", "", "a", "b"], source="s")
        block = doc.get_text_block(2)
        assert block.parent is None
        block.set(1, "B")
        assert doc.data == ["x", "", "a", "b"]

    def test_block_shares_source_parent(self) -> None:
        doc = LineView(["x", "", "a", "b", "", "c"], source="s")
        child = doc[1:5]
        block = child.get_text_block(1)
        assert block.data == ["a", "b"]
        assert block.parent is doc
        assert block.parent_offset == 2
        block.set(1, "B")
        assert doc.get(3) == "B"
        assert child.get(2) == "b"

    def test_indentation_error_block_shares_source_parent(self) -> None:
        doc = LineView(["x", "a", "  b"], source="s")
        child = doc[1:3]
        with pytest.raises(UnexpectedIndentationError) as exc_info:
            child.get_text_block(0, flush_left=True)
        assert exc_info.value.block.parent is doc
        assert exc_info.value.block.parent_offset == 1


class TestIndented:
    def test_measured_indent(self) -> None:
        view = LineView(["    a", "  b", "", "  c", "d"], source="s")
        block, indent, blank_finish = view.get_indented(0)
        assert indent == 2
        assert block.data == ["  a", "b", "", "c"]
        assert blank_finish is False

    def test_blank_finish(self) -> None:
        view = LineView(["  a", "", "b"], source="s")
        block, indent, blank_finish = view.get_indented(0)
        assert block.data == ["a", ""]
        assert blank_finish is True

    def test_until_blank(self) -> None:
        view = LineView(["  a", "  b", "", "  c"], source="s")
        block, indent, blank_finish = view.get_indented(0, until_blank=True)
        assert block.data == ["a", "b"]
        assert blank_finish is True

    def test_block_indent(self) -> None:
        view = LineView(["   a", "   b", "  c"], source="s")
        block, indent, _ = view.get_indented(0, block_indent=3)
        assert indent == 3
        assert block.data == ["a", "b"]

    def test_first_indent(self) -> None:
        view = LineView(["-  item", "   more", "next"], source="s")
        block, indent, _ = view.get_indented(0, first_indent=3)
        assert indent == 3
        assert block.data == ["item", "more"]

    def test_not_indented(self) -> None:
        view = LineView(["a", "  b"], source="s")
        block, indent, _ = view.get_indented(0)
        assert len(block) == 0
        assert indent == 0

    def test_stripping_is_local(self) -> None:
        doc = LineView(["  a", "  b"], source="s")
        doc.get_indented(0)
        assert doc.data == ["  a", "  b"]
