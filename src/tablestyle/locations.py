"""Location variants and their resolution to concrete coordinates.

A Location is a declarative target such as "body cells in column num where
num >= 5000".  ``resolve`` turns it into Coordinates against a TableShape.
Regions missing from the shape (no stub, no row groups, no title ...) resolve
to an empty tuple.  Bad selectors raise ResolutionError.

Every resolution returns coordinates in the fixed traversal order:
title, subtitle, stubhead, spanners, column labels, row groups, stub, body
(row-major in display order), summary, grand summary, footnotes, source notes.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from tablestyle.errors import ResolutionError
from tablestyle.schema import Coordinate, TableShape, region_rank
from tablestyle.selectors import (
    ColumnSelector,
    ColumnsArg,
    Everything,
    RowsArg,
    normalize_columns,
    normalize_rows,
    resolve_columns,
    resolve_rows,
    select_ids,
)

logger = logging.getLogger(__name__)


# ─── Base ─────────────────────────────────────────────────────────────────────


class Location(BaseModel):
    """Base class for all targetable table regions."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    region: ClassVar[str] = ""

    @model_validator(mode="wrap")
    @classmethod
    def _as_resolution_error(cls, data: Any, handler: Callable[[Any], Any]) -> Any:
        """Report malformed arguments (an unknown title part, a non-string id ...) as ResolutionError."""
        try:
            return handler(data)
        except ValidationError as exc:
            details = "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors())
            raise ResolutionError(f"Invalid {cls.__name__} arguments: {details}") from exc

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        raise NotImplementedError


class _ColumnsMixin(BaseModel):
    columns: tuple[ColumnSelector, ...] = (Everything(),)

    @field_validator("columns", mode="before")
    @classmethod
    def _normalize_columns(cls, value: Any) -> tuple[ColumnSelector, ...]:
        return normalize_columns(value)


class _RowsMixin(BaseModel):
    rows: Any = None

    @field_validator("rows", mode="before")
    @classmethod
    def _normalize_rows(cls, value: Any) -> Any:
        return normalize_rows(value)


class _SummaryRowsMixin(_RowsMixin):
    @field_validator("rows")
    @classmethod
    def _no_predicates(cls, value: Any) -> Any:
        if callable(value):
            raise ResolutionError("Summary rows are selected by label or position, not by predicate")
        return value


# ─── Heading & Footer ────────────────────────────────────────────────────────


class LocTitle(Location):
    region: ClassVar[str] = "title"

    groups: tuple[Literal["title", "subtitle"], ...] = ("title",)

    @field_validator("groups", mode="before")
    @classmethod
    def _single_group(cls, value: Any) -> Any:
        return (value,) if isinstance(value, str) else value

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        coords = []
        if "title" in self.groups and shape.has_title:
            coords.append(Coordinate(region="title"))
        if "subtitle" in self.groups and shape.has_subtitle:
            coords.append(Coordinate(region="subtitle"))
        return tuple(coords)


class LocStubhead(Location):
    region: ClassVar[str] = "stubhead"

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        return (Coordinate(region="stubhead"),) if shape.has_stub else ()


class LocFootnotes(Location):
    region: ClassVar[str] = "footnotes"

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        return (Coordinate(region="footnotes"),) if shape.has_footnotes else ()


class LocSourceNotes(Location):
    region: ClassVar[str] = "source_notes"

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        return (Coordinate(region="source_notes"),) if shape.has_source_notes else ()


# ─── Column Headers ──────────────────────────────────────────────────────────


class LocColumnSpanners(Location):
    region: ClassVar[str] = "column_spanners"

    spanners: tuple[str, ...] | None = None

    @field_validator("spanners", mode="before")
    @classmethod
    def _single_spanner(cls, value: Any) -> Any:
        return (value,) if isinstance(value, str) else value

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        if not shape.spanners:
            return ()
        ordered = [s.id for s in shape.ordered_spanners()]
        return tuple(Coordinate(region="column_spanners", spanner=s) for s in select_ids(self.spanners, ordered, "spanner"))


class LocColumnLabels(_ColumnsMixin, Location):
    region: ClassVar[str] = "column_labels"

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        cols = resolve_columns(self.columns, shape.data_columns())
        return tuple(Coordinate(region="column_labels", column=c) for c in cols)


# ─── Row Groups, Stub & Body ─────────────────────────────────────────────────


class LocRowGroups(Location):
    region: ClassVar[str] = "row_groups"

    groups: tuple[str, ...] | None = None

    @field_validator("groups", mode="before")
    @classmethod
    def _single_group(cls, value: Any) -> Any:
        return (value,) if isinstance(value, str) else value

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        if not shape.has_groups:
            return ()
        return tuple(Coordinate(region="row_groups", group=g) for g in select_ids(self.groups, shape.groups(), "row group"))


class LocStub(_RowsMixin, Location):
    region: ClassVar[str] = "stub"

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        if not shape.has_stub:
            return ()
        positions = resolve_rows(self.rows, shape, shape.display_rows())
        return tuple(Coordinate(region="stub", row=shape.row_ids[p]) for p in positions)


class LocBody(_ColumnsMixin, _RowsMixin, Location):
    region: ClassVar[str] = "body"

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        cols = resolve_columns(self.columns, shape.data_columns())
        positions = resolve_rows(self.rows, shape, shape.display_rows())
        return tuple(Coordinate(region="body", column=c, row=shape.row_ids[p]) for p in positions for c in cols)


# ─── Summaries ───────────────────────────────────────────────────────────────


class LocSummary(_ColumnsMixin, _SummaryRowsMixin, Location):
    region: ClassVar[str] = "summary"

    groups: tuple[str, ...] | None = None

    @field_validator("groups", mode="before")
    @classmethod
    def _single_group(cls, value: Any) -> Any:
        return (value,) if isinstance(value, str) else value

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        if not shape.summary_rows:
            return ()
        cols = resolve_columns(self.columns, shape.data_columns())
        groups = select_ids(self.groups, shape.groups(), "row group")

        coords: list[Coordinate] = []
        matched: set[str | int] = set()
        for group in groups:
            ids = shape.summary_rows.get(group, ())
            wanted = _filter_present(self.rows, ids, matched)
            for row in select_ids(wanted, ids, "summary row"):
                coords.extend(Coordinate(region="summary", group=group, row=row, column=c) for c in cols)

        # An id or position that matches no group's summary rows is a typo, not an absent region
        if self.rows is not None:
            unmatched = [r for r in self.rows if r not in matched]
            if unmatched:
                raise ResolutionError(f"Unknown summary row(s) {unmatched}")
        return tuple(coords)


class LocGrandSummary(_ColumnsMixin, _SummaryRowsMixin, Location):
    region: ClassVar[str] = "grand_summary"

    def resolve(self, shape: TableShape) -> tuple[Coordinate, ...]:
        if not shape.grand_summary_rows:
            return ()
        cols = resolve_columns(self.columns, shape.data_columns())
        rows = select_ids(self.rows, shape.grand_summary_rows, "grand summary row")
        return tuple(Coordinate(region="grand_summary", row=r, column=c) for r in rows for c in cols)


def _filter_present(selection: Sequence[str | int] | None, ids: Sequence[str], matched: set) -> Sequence[str | int] | None:
    """Keep the ids/positions from *selection* that exist in *ids*, recording them in *matched*."""
    if selection is None:
        return None
    present = []
    for item in selection:
        if (isinstance(item, str) and item in ids) or (isinstance(item, int) and -len(ids) <= item < len(ids)):
            present.append(item)
            matched.add(item)
    return present


# ─── Traversal Order ─────────────────────────────────────────────────────────


class TraversalIndex:
    """Sort keys that place coordinates in the fixed traversal order for one shape."""

    def __init__(self, shape: TableShape):
        self.columns = {c: i for i, c in enumerate(shape.columns)}
        self.spanners = {s.id: i for i, s in enumerate(shape.ordered_spanners())}
        self.groups = {g: i for i, g in enumerate(shape.groups())}
        self.rows = {shape.row_ids[p]: i for i, p in enumerate(shape.display_rows())}
        self.summary_rows = {g: {r: i for i, r in enumerate(rows)} for g, rows in shape.summary_rows.items()}
        self.grand_summary_rows = {r: i for i, r in enumerate(shape.grand_summary_rows)}

    def key(self, coord: Coordinate) -> tuple:
        col = self.columns.get(coord.column, -1)
        region = coord.region
        if region == "column_spanners":
            pos: tuple = (self.spanners.get(coord.spanner, -1),)
        elif region == "column_labels":
            pos = (col,)
        elif region == "row_groups":
            pos = (self.groups.get(coord.group, -1),)
        elif region in ("stub", "body"):
            pos = (self.rows.get(coord.row, -1), col)
        elif region == "summary":
            pos = (self.groups.get(coord.group, -1), self.summary_rows.get(coord.group, {}).get(coord.row, -1), col)
        elif region == "grand_summary":
            pos = (self.grand_summary_rows.get(coord.row, -1), col)
        else:
            pos = ()
        return (region_rank(region), *pos)

    def sort(self, coords: Iterable[Coordinate]) -> tuple[Coordinate, ...]:
        """Deduplicate and order *coords*."""
        return tuple(sorted(set(coords), key=self.key))


def normalize_locations(locations: "Location | Iterable[Location] | None") -> tuple[Location, ...]:
    if locations is None:
        return ()
    if isinstance(locations, Location):
        return (locations,)
    result = tuple(locations)
    for loc in result:
        if not isinstance(loc, Location):
            raise ResolutionError(f"Expected a location (e.g. cells_body()), got {type(loc).__name__}")
    return result


def resolve_locations(locations: Iterable[Location], shape: TableShape) -> tuple[Coordinate, ...]:
    """Union of every location's coordinates, deduplicated and in traversal order."""
    coords: list[Coordinate] = []
    for loc in locations:
        coords.extend(loc.resolve(shape))
    return TraversalIndex(shape).sort(coords)


# ─── Helper Constructors ─────────────────────────────────────────────────────


def cells_title(groups: str | Sequence[str] = "title") -> LocTitle:
    """Target the title, the subtitle, or both (``groups=("title", "subtitle")``)."""
    return LocTitle(groups=groups)


def cells_stubhead() -> LocStubhead:
    return LocStubhead()


def cells_column_spanners(spanners: str | Sequence[str] | None = None) -> LocColumnSpanners:
    return LocColumnSpanners(spanners=spanners)


def cells_column_labels(columns: ColumnsArg = None) -> LocColumnLabels:
    return LocColumnLabels(columns=columns)


def cells_row_groups(groups: str | Sequence[str] | None = None) -> LocRowGroups:
    return LocRowGroups(groups=groups)


def cells_stub(rows: RowsArg = None) -> LocStub:
    return LocStub(rows=rows)


def cells_body(columns: ColumnsArg = None, rows: RowsArg = None) -> LocBody:
    """Target body cells by column selection and row selection.

    ``rows`` may be a predicate such as ``lambda row: row["num"] >= 5000``,
    a list of row ids or positions, or None for every row.
    """
    return LocBody(columns=columns, rows=rows)


def cells_summary(groups: str | Sequence[str] | None = None, columns: ColumnsArg = None, rows: Any = None) -> LocSummary:
    return LocSummary(groups=groups, columns=columns, rows=rows)


def cells_grand_summary(columns: ColumnsArg = None, rows: Any = None) -> LocGrandSummary:
    return LocGrandSummary(columns=columns, rows=rows)


def cells_footnotes() -> LocFootnotes:
    return LocFootnotes()


def cells_source_notes() -> LocSourceNotes:
    return LocSourceNotes()
