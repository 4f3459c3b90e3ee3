"""Pydantic models for the structural side of a display table.

TableShape is the snapshot every location is resolved against: the ordered
columns and rows, the row data, optional stub and row groups, spanners,
summary rows, and which optional regions (title, footer) currently exist.
Coordinates are the concrete cells a location resolves to.
"""

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from tablestyle.errors import ShapeError
from tablestyle.patterns import REGION_ORDER

Region = Literal[
    "title",
    "subtitle",
    "stubhead",
    "column_spanners",
    "column_labels",
    "row_groups",
    "stub",
    "body",
    "summary",
    "grand_summary",
    "footnotes",
    "source_notes",
]

# Group id given to rows whose group column value is missing
MISSING_GROUP = "NA"


# ─── Rich Text ────────────────────────────────────────────────────────────────


class RichText(BaseModel):
    """Pre-resolved text for titles, labels and notes.

    ``kind`` records which markup dialect ``content`` is written in.  The
    content is carried through untouched; interpreting it is the renderer's job.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["text", "md", "html"] = "text"
    content: str

    def __str__(self) -> str:
        return self.content


def text(content: str) -> RichText:
    return RichText(kind="text", content=content)


def md(content: str) -> RichText:
    """Mark *content* as Markdown."""
    return RichText(kind="md", content=content)


def html(content: str) -> RichText:
    """Mark *content* as HTML."""
    return RichText(kind="html", content=content)


def as_rich_text(value: str | RichText) -> RichText:
    """Wrap a plain string as RichText; pass RichText through unchanged."""
    if isinstance(value, RichText):
        return value
    return text(str(value))


# ─── Coordinates & Spanners ──────────────────────────────────────────────────


class Coordinate(BaseModel):
    """One concrete cell (or heading/footer slot) of the table."""

    model_config = ConfigDict(frozen=True)

    region: Region
    column: str | None = None
    row: str | None = None
    group: str | None = None
    spanner: str | None = None

    def __str__(self) -> str:
        parts = [p for p in (self.group, self.spanner, self.column, self.row) if p is not None]
        return f"{self.region}[{', '.join(parts)}]" if parts else self.region


class Spanner(BaseModel):
    """A label spanning several column labels."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: RichText
    columns: tuple[str, ...]
    level: int = 1


# ─── Table Shape ─────────────────────────────────────────────────────────────


class TableShape(BaseModel):
    """Ordered structure of a table plus the row data used by row predicates.

    Build instances with :func:`build_shape`, which enforces unique column and
    row identifiers.  The model itself is frozen; structural changes (a new
    spanner, a title) produce a new shape via ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)

    columns: tuple[str, ...]
    row_ids: tuple[str, ...]
    records: tuple[dict[str, Any], ...]
    rowname_col: str | None = None
    groupname_col: str | None = None
    row_groups: tuple[str, ...] | None = None
    group_order: tuple[str, ...] = ()
    spanners: tuple[Spanner, ...] = ()
    summary_rows: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    grand_summary_rows: tuple[str, ...] = ()
    has_title: bool = False
    has_subtitle: bool = False
    has_footnotes: bool = False
    has_source_notes: bool = False

    @property
    def has_stub(self) -> bool:
        return self.rowname_col is not None

    @property
    def has_groups(self) -> bool:
        return self.row_groups is not None

    def data_columns(self) -> tuple[str, ...]:
        """Columns shown in the body (everything except the stub and group columns)."""
        hidden = {self.rowname_col, self.groupname_col}
        return tuple(c for c in self.columns if c not in hidden)

    def groups(self) -> tuple[str, ...]:
        """Row group ids in display order: explicit order first, then first appearance."""
        if self.row_groups is None:
            return ()
        ordered = list(self.group_order)
        for group in self.row_groups:
            if group not in ordered:
                ordered.append(group)
        return tuple(ordered)

    def display_rows(self) -> tuple[int, ...]:
        """Row positions in display order (grouped rows are gathered under their group)."""
        if self.row_groups is None:
            return tuple(range(len(self.row_ids)))
        positions: list[int] = []
        for group in self.groups():
            positions.extend(i for i, g in enumerate(self.row_groups) if g == group)
        return tuple(positions)

    def group_rows(self, group: str) -> tuple[int, ...]:
        """Row positions belonging to *group*, in data order."""
        if self.row_groups is None:
            return ()
        return tuple(i for i, g in enumerate(self.row_groups) if g == group)

    def row_data(self, position: int) -> Mapping[str, Any]:
        """Read-only view of one row's values."""
        return MappingProxyType(self.records[position])

    def ordered_spanners(self) -> tuple[Spanner, ...]:
        """Spanners top level first, then left to right by their first column."""
        index = {c: i for i, c in enumerate(self.columns)}
        return tuple(sorted(self.spanners, key=lambda s: (-s.level, min(index[c] for c in s.columns))))


def build_shape(
    records: Sequence[Mapping[str, Any]],
    rowname_col: str | None = None,
    groupname_col: str | None = None,
    columns: Sequence[str] | None = None,
) -> TableShape:
    """Validate raw records and build a TableShape.

    Columns are taken from *columns* when given, otherwise from the keys of the
    records in first-appearance order.  Missing values become None.
    """
    if columns is None:
        ordered: dict[str, None] = {}
        for record in records:
            ordered.update(dict.fromkeys(record))
        columns = list(ordered)
    if len(set(columns)) != len(columns):
        dupes = sorted({c for c in columns if list(columns).count(c) > 1})
        raise ShapeError(f"Duplicate column ids: {dupes}")

    for col, role in ((rowname_col, "rowname_col"), (groupname_col, "groupname_col")):
        if col is not None and col not in columns:
            raise ShapeError(f"{role} '{col}' is not a column (columns: {list(columns)})")
    if rowname_col is not None and rowname_col == groupname_col:
        raise ShapeError("rowname_col and groupname_col must be different columns")

    rows = tuple({c: record.get(c) for c in columns} for record in records)

    # Row ids come from the stub column when present, otherwise the row position
    if rowname_col is not None:
        row_ids = tuple(str(r[rowname_col]) for r in rows)
        seen: set[str] = set()
        for row_id in row_ids:
            if row_id in seen:
                raise ShapeError(f"Duplicate row id '{row_id}' in stub column '{rowname_col}'")
            seen.add(row_id)
    else:
        row_ids = tuple(str(i) for i in range(len(rows)))

    row_groups = None
    if groupname_col is not None:
        row_groups = tuple(MISSING_GROUP if r[groupname_col] is None else str(r[groupname_col]) for r in rows)

    return TableShape(
        columns=tuple(columns),
        row_ids=row_ids,
        records=rows,
        rowname_col=rowname_col,
        groupname_col=groupname_col,
        row_groups=row_groups,
    )


def region_rank(region: str) -> int:
    """Position of *region* in the fixed traversal order."""
    return REGION_ORDER.index(region)
