"""Unit tests for the style/annotation store.

Covers footnote mark sequences, append-only semantics, property-wise style
merging, first-encounter mark assignment, unmarked footnotes, and JSON
round-tripping of the resolved store.
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

from collections import Counter

import pytest

from tablestyle.errors import ResolutionError
from tablestyle.locations import cells_body, cells_column_labels, cells_footnotes, cells_row_groups
from tablestyle.schema import Coordinate, text
from tablestyle.store import ResolvedStore, StyleStore, footnote_mark
from tablestyle.styles import cell_fill, cell_text


def body(column: str, row: str) -> Coordinate:
    return Coordinate(region="body", column=column, row=row)


# ===========================================================================
# footnote_mark tests
# ===========================================================================


class TestFootnoteMark:

    def test_numbers(self):
        assert [footnote_mark(i) for i in range(3)] == ["1", "2", "3"]

    def test_numbers_unbounded(self):
        assert footnote_mark(99) == "100"

    def test_standard_repeats_doubled(self):
        assert [footnote_mark(i, "standard") for i in range(6)] == ["*", "†", "‡", "§", "**", "††"]

    def test_letters_wrap(self):
        assert footnote_mark(26, "letters") == "aa"

    def test_upper_letters(self):
        assert footnote_mark(1, "LETTERS") == "B"

    def test_explicit_glyphs(self):
        assert [footnote_mark(i, ["x", "y"]) for i in range(4)] == ["x", "y", "xx", "yy"]

    def test_unknown_set(self):
        with pytest.raises(ValueError):
            footnote_mark(0, "roman")

    def test_negative_index(self):
        with pytest.raises(ValueError):
            footnote_mark(-1)


# ===========================================================================
# Style merging tests
# ===========================================================================


class TestStyleStore:

    def test_add_is_append_only(self):
        store = StyleStore()
        bigger = store.add_style(cells_body(), cell_fill())
        assert store.styles == ()
        assert len(bigger.styles) == 1

    def test_disjoint_properties_merge(self, num_table):
        store = StyleStore().add_style(cells_body(columns="num"), cell_fill(color="cyan"))
        store = store.add_style(cells_body(rows=[1]), cell_text(weight="bold"))
        resolved = store.resolve(num_table.shape)
        assert resolved.styles_at(body("num", "1")) == {"fill.color": "cyan", "text.weight": "bold"}
        assert resolved.styles_at(body("num", "0")) == {"fill.color": "cyan"}
        assert resolved.styles_at(body("currency", "1")) == {"text.weight": "bold"}

    def test_overlapping_property_later_wins(self, num_table):
        store = StyleStore().add_style(cells_body(columns="num"), cell_fill(color="cyan"))
        store = store.add_style(cells_body(rows=[0, 1]), cell_fill(color="yellow"))
        resolved = store.resolve(num_table.shape)
        assert resolved.styles_at(body("num", "0")) == {"fill.color": "yellow"}
        assert resolved.styles_at(body("num", "2")) == {"fill.color": "cyan"}

    def test_order_dependence(self, num_table):
        store = StyleStore().add_style(cells_body(rows=[0]), cell_fill(color="yellow"))
        store = store.add_style(cells_body(columns="num"), cell_fill(color="cyan"))
        assert store.resolve(num_table.shape).styles_at(body("num", "0")) == {"fill.color": "cyan"}

    def test_unstyled_coordinate(self, num_table):
        resolved = StyleStore().resolve(num_table.shape)
        assert resolved.styles_at(body("num", "0")) == {}

    def test_merged_styles_covers_every_styled_cell(self, num_table):
        store = StyleStore().add_style(cells_body(columns="num"), cell_fill(color="cyan"))
        merged = store.resolve(num_table.shape).merged_styles()
        assert set(merged) == {body("num", "0"), body("num", "1"), body("num", "2")}


# ===========================================================================
# Annotation tests
# ===========================================================================


class TestAnnotations:

    def test_marks_follow_traversal_not_call_order(self, num_table):
        store = StyleStore().add_annotation(cells_body(columns="num", rows=[0, 1]), text("body note"))
        store = store.add_annotation(cells_column_labels(columns="num"), text("label note"))
        notes = store.resolve(num_table.shape).footnotes()
        assert [(n.mark, n.text.content) for n in notes] == [("1", "label note"), ("2", "body note")]

    def test_one_mark_per_annotation(self, num_table):
        store = StyleStore().add_annotation(cells_body(columns="num"), text("note"))
        marks = store.resolve(num_table.shape).marks_at()
        assert set(marks.values()) == {("1",)}
        assert len(marks) == 3

    def test_identical_text_gets_distinct_marks(self, num_table):
        store = StyleStore().add_annotation(cells_body(rows=[0], columns="num"), text("same"))
        store = store.add_annotation(cells_body(rows=[1], columns="num"), text("same"))
        notes = store.resolve(num_table.shape).footnotes()
        assert [n.mark for n in notes] == ["1", "2"]

    def test_shared_coordinate_carries_both_marks(self, num_table):
        store = StyleStore().add_annotation(cells_body(columns="num", rows=[0]), text("first"))
        store = store.add_annotation(cells_body(rows=[0]), text("second"))
        marks = store.resolve(num_table.shape).marks_at()
        assert marks[body("num", "0")] == ("1", "2")
        assert marks[body("currency", "0")] == ("2",)

    def test_mark_counts_match_coordinate_counts(self, num_table):
        store = StyleStore()
        store = store.add_annotation(cells_body(columns="num"), text("a"))
        store = store.add_annotation([cells_body(rows=[0]), cells_body(columns="num", rows=[0])], text("b"))
        store = store.add_annotation(cells_column_labels(), text("c"))
        resolved = store.resolve(num_table.shape)
        notes = resolved.footnotes()
        counts = Counter(m for marks in resolved.marks_at().values() for m in marks)

        assert len({n.mark for n in notes}) <= 3
        for note in notes:
            assert counts[note.mark] == len(note.coordinates)

    def test_absent_region_footnote_is_unmarked_but_kept(self, num_table):
        store = StyleStore().add_annotation(cells_row_groups(), text("groups"))
        store = store.add_annotation(cells_body(columns="num", rows=[2]), text("body"))
        resolved = store.resolve(num_table.shape)
        notes = resolved.footnotes()
        assert [(n.mark, n.text.content) for n in notes] == [("1", "body"), (None, "groups")]
        assert all(m == ("1",) for m in resolved.marks_at().values())

    def test_footnote_without_locations(self, num_table):
        store = StyleStore().add_annotation(None, text("general"))
        notes = store.resolve(num_table.shape).footnotes()
        assert notes[0].mark is None
        assert notes[0].text.content == "general"

    def test_marks_option(self, num_table):
        store = StyleStore().add_annotation(cells_column_labels(columns="num"), text("a"))
        store = store.add_annotation(cells_column_labels(columns="currency"), text("b"))
        assert [n.mark for n in store.resolve(num_table.shape).footnotes("standard")] == ["*", "†"]

    def test_cannot_annotate_footer_regions(self):
        with pytest.raises(ResolutionError):
            StyleStore().add_annotation(cells_footnotes(), text("meta"))


# ===========================================================================
# Serialization tests
# ===========================================================================


class TestResolvedStoreSerialization:

    @pytest.fixture
    def resolved(self, num_table):
        store = StyleStore().add_style(cells_body(columns="num"), cell_fill(color="cyan", alpha=0.5))
        store = store.add_style(cells_body(rows=[1]), cell_text(weight=700, color="red"))
        store = store.add_style(cells_body(rows=[1]), cell_fill(color="yellow"))
        store = store.add_annotation(cells_body(columns="currency", rows=[2]), text("late"))
        store = store.add_annotation(cells_column_labels(columns="num"), text("early"))
        store = store.add_annotation(None, text("unmarked"))
        return store.resolve(num_table.shape)

    def test_round_trip_equal(self, resolved):
        assert ResolvedStore.from_json(resolved.to_json()) == resolved

    def test_round_trip_preserves_insertion_order(self, resolved):
        reloaded = ResolvedStore.from_json(resolved.to_json())
        assert [a.text.content for a in reloaded.annotations] == ["late", "early", "unmarked"]
        assert [s.properties for s in reloaded.styles] == [s.properties for s in resolved.styles]

    def test_round_trip_preserves_merge_results(self, resolved):
        reloaded = ResolvedStore.from_json(resolved.to_json())
        assert reloaded.merged_styles() == resolved.merged_styles()
        assert reloaded.styles_at(body("num", "1")) == {"fill.color": "yellow", "fill.alpha": 0.5, "text.weight": 700, "text.color": "red"}

    def test_round_trip_preserves_marks(self, resolved):
        reloaded = ResolvedStore.from_json(resolved.to_json())
        assert reloaded.footnotes() == resolved.footnotes()
        assert reloaded.marks_at() == resolved.marks_at()
