"""Unit tests for location resolution.

Covers every region, permissive resolution of absent regions, traversal
order (row-major body in display order), deduplicated unions, and the
resolution errors that must surface immediately.
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

import pytest

from tablestyle.errors import ResolutionError
from tablestyle.locations import (
    LocBody,
    cells_body,
    cells_column_labels,
    cells_column_spanners,
    cells_footnotes,
    cells_grand_summary,
    cells_row_groups,
    cells_source_notes,
    cells_stub,
    cells_stubhead,
    cells_summary,
    cells_title,
    resolve_locations,
)
from tablestyle.schema import Coordinate
from tablestyle.selectors import starts_with


def body(column: str, row: str) -> Coordinate:
    return Coordinate(region="body", column=column, row=row)


# ===========================================================================
# Body resolution tests
# ===========================================================================


class TestBodyResolution:

    def test_predicate_example(self, num_table):
        """Rows where num is [100, 6000, 50] and num >= 5000 resolve to row 2 only."""
        loc = cells_body(columns="num", rows=lambda row: row["num"] >= 5000)
        assert loc.resolve(num_table.shape) == (body("num", "1"),)

    def test_resolution_is_deterministic(self, num_table):
        loc = cells_body(columns=["currency", "num"], rows=lambda row: row["num"] < 1000)
        assert loc.resolve(num_table.shape) == loc.resolve(num_table.shape)

    def test_row_major_order(self, num_table):
        coords = cells_body(rows=[0, 1]).resolve(num_table.shape)
        assert coords == (body("num", "0"), body("currency", "0"), body("num", "1"), body("currency", "1"))

    def test_default_location_targets_whole_body(self, num_table):
        assert len(LocBody().resolve(num_table.shape)) == 6

    def test_excludes_stub_and_group_columns(self, grouped_table):
        columns = {c.column for c in cells_body().resolve(grouped_table.shape)}
        assert columns == {"a", "b", "c_pct"}

    def test_display_order_with_groups(self, grouped_table):
        rows = [c.row for c in cells_body(columns="a").resolve(grouped_table.shape)]
        assert rows == ["r1", "r3", "r2"]

    def test_unknown_column_raises(self, num_table):
        with pytest.raises(ResolutionError):
            cells_body(columns="nope").resolve(num_table.shape)

    def test_stub_column_is_not_a_body_column(self, grouped_table):
        with pytest.raises(ResolutionError):
            cells_body(columns="name").resolve(grouped_table.shape)

    def test_predicate_error_raises(self, num_table):
        with pytest.raises(ResolutionError):
            cells_body(rows=lambda row: row["missing"]).resolve(num_table.shape)

    def test_empty_match_is_not_error(self, num_table):
        assert cells_body(rows=lambda row: False).resolve(num_table.shape) == ()


# ===========================================================================
# Absent region tests
# ===========================================================================


class TestAbsentRegions:

    @pytest.mark.parametrize(
        "loc",
        [
            cells_title(),
            cells_title(groups="subtitle"),
            cells_stubhead(),
            cells_column_spanners(),
            cells_column_spanners(spanners="missing"),
            cells_row_groups(),
            cells_row_groups(groups="missing"),
            cells_stub(),
            cells_summary(),
            cells_grand_summary(),
            cells_footnotes(),
            cells_source_notes(),
        ],
    )
    def test_absent_region_resolves_empty(self, num_table, loc):
        assert loc.resolve(num_table.shape) == ()


# ===========================================================================
# Header, stub and group region tests
# ===========================================================================


class TestOtherRegions:

    def test_title_and_subtitle(self, num_table):
        shape = num_table.shape.model_copy(update={"has_title": True, "has_subtitle": True})
        coords = cells_title(groups=("subtitle", "title")).resolve(shape)
        assert coords == (Coordinate(region="title"), Coordinate(region="subtitle"))

    def test_stubhead_exists_with_stub(self, grouped_table):
        assert cells_stubhead().resolve(grouped_table.shape) == (Coordinate(region="stubhead"),)

    def test_column_labels(self, grouped_table):
        coords = cells_column_labels(columns=starts_with("c")).resolve(grouped_table.shape)
        assert coords == (Coordinate(region="column_labels", column="c_pct"),)

    def test_row_groups_all(self, grouped_table):
        groups = [c.group for c in cells_row_groups().resolve(grouped_table.shape)]
        assert groups == ["g1", "g2"]

    def test_row_group_unknown_raises_when_groups_exist(self, grouped_table):
        with pytest.raises(ResolutionError, match="Unknown row group"):
            cells_row_groups(groups="g9").resolve(grouped_table.shape)

    def test_stub_by_id(self, grouped_table):
        assert cells_stub(rows="r3").resolve(grouped_table.shape) == (Coordinate(region="stub", row="r3"),)

    def test_stub_by_predicate(self, grouped_table):
        coords = cells_stub(rows=lambda row: row["b"] > 15).resolve(grouped_table.shape)
        assert [c.row for c in coords] == ["r3", "r2"]

    def test_footnotes_region_exists_once_footnotes_do(self, num_table):
        shape = num_table.shape.model_copy(update={"has_footnotes": True})
        assert cells_footnotes().resolve(shape) == (Coordinate(region="footnotes"),)


# ===========================================================================
# Malformed location tests
# ===========================================================================


class TestMalformedLocations:

    def test_unknown_title_part(self):
        with pytest.raises(ResolutionError, match="LocTitle"):
            cells_title(groups="heading")

    def test_non_string_spanner_id(self):
        with pytest.raises(ResolutionError, match="LocColumnSpanners"):
            cells_column_spanners(spanners=5)

    def test_non_string_row_group(self):
        with pytest.raises(ResolutionError):
            cells_row_groups(groups=[1])

    def test_non_string_summary_group(self):
        with pytest.raises(ResolutionError):
            cells_summary(groups=3)

    @pytest.mark.parametrize("helper", [cells_summary, cells_grand_summary])
    def test_summary_predicate_rejected_without_shape(self, helper):
        with pytest.raises(ResolutionError, match="not by predicate"):
            helper(rows=lambda row: True)


# ===========================================================================
# Summary resolution tests
# ===========================================================================


class TestSummaryResolution:

    @pytest.fixture
    def shape(self, grouped_table):
        return grouped_table.summary_rows(["sum", "mean"], groups="g1").grand_summary_rows(["max"]).shape

    def test_summary_cell(self, shape):
        coords = cells_summary(groups="g1", columns="a", rows="mean").resolve(shape)
        assert coords == (Coordinate(region="summary", group="g1", row="mean", column="a"),)

    def test_summary_skips_groups_without_summaries(self, shape):
        groups = {c.group for c in cells_summary().resolve(shape)}
        assert groups == {"g1"}

    def test_summary_unknown_row_raises(self, shape):
        with pytest.raises(ResolutionError, match="Unknown summary row"):
            cells_summary(rows="median").resolve(shape)

    def test_grand_summary(self, shape):
        coords = cells_grand_summary(columns="b").resolve(shape)
        assert coords == (Coordinate(region="grand_summary", row="max", column="b"),)


# ===========================================================================
# resolve_locations tests
# ===========================================================================


class TestResolveLocations:

    def test_union_is_deduplicated(self, num_table):
        locs = [cells_body(columns="num", rows=[1]), cells_body(columns="num", rows=[1])]
        assert resolve_locations(locs, num_table.shape) == (body("num", "1"),)

    def test_union_in_traversal_order(self, grouped_table):
        locs = [
            cells_body(columns="b", rows="r2"),
            cells_stub(rows="r1"),
            cells_row_groups(groups="g2"),
            cells_column_labels(columns="a"),
            cells_stubhead(),
        ]
        regions = [c.region for c in resolve_locations(locs, grouped_table.shape)]
        assert regions == ["stubhead", "column_labels", "row_groups", "stub", "body"]

    def test_empty(self, num_table):
        assert resolve_locations([], num_table.shape) == ()
