"""The immutable table value and its transformation pipeline.

Every ``tab_*`` / ``cols_*`` / ``opt_*`` method returns a new Table; the
original is never modified, so a failed call leaves it valid.  Typical use::

    gt = (
        Table.from_records(rows, rowname_col="name")
        .tab_header(title="Sales", subtitle=md("*2024*"))
        .tab_spanner(label="Money", columns=["num", "currency"])
        .tab_style(cell_fill(color="cyan"), cells_body(columns="num", rows=lambda r: r["num"] >= 5000))
        .tab_footnote("Estimated.", cells_column_labels(columns="currency"))
        .tab_options(table_width="100%")
    )

Locations are resolved once when they are introduced (to report selector
errors at the offending call) and again at compose time against the final
shape.
"""

import logging
import statistics
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tablestyle.config import default_options
from tablestyle.errors import ResolutionError, TableStyleError
from tablestyle.locations import Location, normalize_locations
from tablestyle.options import Options
from tablestyle.schema import RichText, Spanner, TableShape, as_rich_text, build_shape
from tablestyle.selectors import ColumnsArg, normalize_columns, resolve_columns, select_ids
from tablestyle.store import ResolvedStore, StyleStore
from tablestyle.styles import StyleDirective, combine

logger = logging.getLogger(__name__)

Aggregate = str | Callable[[list[Any]], Any]


def _numeric(values: list[Any]) -> list[float | int]:
    return [v for v in values if isinstance(v, (int, float)) and not isinstance(v, bool)]


def _safe(fn: Callable[[list[Any]], Any]) -> Callable[[list[Any]], Any]:
    """Apply *fn* to the numeric values only; None when there are none."""

    def apply(values: list[Any]) -> Any:
        nums = _numeric(values)
        return fn(nums) if nums else None

    return apply


# Built-in summary aggregates, applied to the numeric values of one column
AGGREGATES: dict[str, Callable[[list[Any]], Any]] = {
    "sum": _safe(sum),
    "mean": _safe(statistics.fmean),
    "min": _safe(min),
    "max": _safe(max),
    "median": _safe(statistics.median),
    "count": lambda values: sum(1 for v in values if v is not None),
}


class Table(BaseModel):
    """A display table: data shape, heading, labels, notes, styles, footnotes and options."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    shape: TableShape
    title: RichText | None = None
    subtitle: RichText | None = None
    stubhead: RichText | None = None
    column_labels: dict[str, RichText] = Field(default_factory=dict)
    source_notes: tuple[RichText, ...] = ()
    summary_aggregates: dict[str, dict[str, Any]] = Field(default_factory=dict)
    grand_aggregates: dict[str, Any] = Field(default_factory=dict)
    store: StyleStore = Field(default_factory=StyleStore)
    options: Options = Field(default_factory=default_options)

    # ─── Construction ─────────────────────────────────────────────────────────

    @classmethod
    def from_records(
        cls,
        records: Sequence[Mapping[str, Any]],
        rowname_col: str | None = None,
        groupname_col: str | None = None,
        columns: Sequence[str] | None = None,
    ) -> "Table":
        """Build a table from a sequence of row mappings."""
        shape = build_shape(records, rowname_col=rowname_col, groupname_col=groupname_col, columns=columns)
        logger.debug("New table: %d columns x %d rows", len(shape.columns), len(shape.row_ids))
        return cls(shape=shape)

    @classmethod
    def from_columns(
        cls,
        data: Mapping[str, Sequence[Any]],
        rowname_col: str | None = None,
        groupname_col: str | None = None,
    ) -> "Table":
        """Build a table from a mapping of column id to equal-length value sequences."""
        lengths = {len(values) for values in data.values()}
        if len(lengths) > 1:
            raise TableStyleError(f"All columns must have the same length, got lengths {sorted(lengths)}")
        n_rows = lengths.pop() if lengths else 0
        records = [{col: values[i] for col, values in data.items()} for i in range(n_rows)]
        return cls.from_records(records, rowname_col=rowname_col, groupname_col=groupname_col, columns=list(data))

    def _with_shape(self, **changes: Any) -> dict[str, Any]:
        return {"shape": self.shape.model_copy(update=changes)}

    # ─── Heading, Labels & Notes ──────────────────────────────────────────────

    def tab_header(self, title: str | RichText, subtitle: str | RichText | None = None) -> "Table":
        """Add a title and an optional subtitle."""
        update = {"title": as_rich_text(title), "subtitle": as_rich_text(subtitle) if subtitle is not None else None}
        update.update(self._with_shape(has_title=True, has_subtitle=subtitle is not None))
        return self.model_copy(update=update)

    def tab_stubhead(self, label: str | RichText) -> "Table":
        return self.model_copy(update={"stubhead": as_rich_text(label)})

    def cols_label(self, labels: Mapping[str, str | RichText] | None = None, **kwargs: str | RichText) -> "Table":
        """Relabel columns; unknown column ids raise ResolutionError."""
        new_labels = {**(labels or {}), **kwargs}
        resolve_columns(normalize_columns(list(new_labels)), self.shape.columns)
        merged = {**self.column_labels, **{col: as_rich_text(label) for col, label in new_labels.items()}}
        return self.model_copy(update={"column_labels": merged})

    def tab_source_note(self, source_note: str | RichText) -> "Table":
        update = {"source_notes": (*self.source_notes, as_rich_text(source_note))}
        update.update(self._with_shape(has_source_notes=True))
        return self.model_copy(update=update)

    def tab_spanner(
        self,
        label: str | RichText,
        columns: ColumnsArg,
        id: str | None = None,  # pylint: disable=redefined-builtin
        level: int | None = None,
    ) -> "Table":
        """Add a spanner label over the selected columns.

        ``id`` defaults to the label text.  ``level`` defaults to the lowest
        level (starting at 1) where the spanner overlaps no existing spanner.
        """
        rich_label = as_rich_text(label)
        spanner_id = id if id is not None else rich_label.content
        if any(s.id == spanner_id for s in self.shape.spanners):
            raise TableStyleError(f"A spanner with id '{spanner_id}' already exists")

        cols = resolve_columns(normalize_columns(columns), self.shape.data_columns())
        if not cols:
            raise ResolutionError(f"Spanner '{spanner_id}' selects no columns")

        if level is None:
            level = 1
            while any(s.level == level and set(s.columns) & set(cols) for s in self.shape.spanners):
                level += 1
        elif level < 1:
            raise TableStyleError(f"Spanner level must be >= 1, got {level}")
        elif any(s.level == level and set(s.columns) & set(cols) for s in self.shape.spanners):
            raise TableStyleError(f"Spanner '{spanner_id}' overlaps an existing spanner at level {level}")

        spanner = Spanner(id=spanner_id, label=rich_label, columns=cols, level=level)
        logger.debug("tab_spanner: '%s' over %s at level %d", spanner_id, list(cols), level)
        return self.model_copy(update=self._with_shape(spanners=(*self.shape.spanners, spanner)))

    # ─── Row Groups & Summaries ───────────────────────────────────────────────

    def row_group_order(self, groups: Sequence[str]) -> "Table":
        """Put the given groups first, in the given order."""
        if not self.shape.has_groups:
            raise ResolutionError("row_group_order() needs a table with row groups (groupname_col)")
        ordered = select_ids(list(groups), self.shape.groups(), "row group")
        # select_ids returns table order; keep the caller's order instead
        ordered = tuple(dict.fromkeys(g for g in groups if g in ordered))
        return self.model_copy(update=self._with_shape(group_order=ordered))

    def summary_rows(self, fns: Sequence[str] | Mapping[str, Aggregate], groups: str | Sequence[str] | None = None) -> "Table":
        """Add per-group summary rows.

        ``fns`` is a list of aggregate names ("sum", "mean", "min", "max",
        "median", "count") or a mapping of row label to aggregate name or
        callable.  Tables without row groups get no summary rows.
        """
        aggregates = _normalize_aggregates(fns)
        if not self.shape.has_groups:
            logger.debug("summary_rows: table has no row groups, nothing added")
            return self
        if isinstance(groups, str):
            groups = [groups]
        targets = select_ids(groups, self.shape.groups(), "row group")

        # Each group keeps its own label -> aggregate map; labels may repeat across groups and the grand summary
        summary = dict(self.shape.summary_rows)
        summary_aggregates = dict(self.summary_aggregates)
        for group in targets:
            summary[group] = tuple(dict.fromkeys((*summary.get(group, ()), *aggregates)))
            summary_aggregates[group] = {**summary_aggregates.get(group, {}), **aggregates}
        update = {"summary_aggregates": summary_aggregates}
        update.update(self._with_shape(summary_rows=summary))
        return self.model_copy(update=update)

    def grand_summary_rows(self, fns: Sequence[str] | Mapping[str, Aggregate]) -> "Table":
        """Add summary rows computed over the whole table."""
        aggregates = _normalize_aggregates(fns)
        rows = tuple(dict.fromkeys((*self.shape.grand_summary_rows, *aggregates)))
        update = {"grand_aggregates": {**self.grand_aggregates, **aggregates}}
        update.update(self._with_shape(grand_summary_rows=rows))
        return self.model_copy(update=update)

    # ─── Styles & Footnotes ───────────────────────────────────────────────────

    def tab_style(self, style: StyleDirective | Iterable[StyleDirective], locations: Location | Iterable[Location]) -> "Table":
        """Apply one or more style directives to the given locations."""
        directive = combine(style)
        locs = normalize_locations(locations)
        if not locs:
            raise ResolutionError("tab_style() needs at least one location")
        self._check_locations(locs)
        return self.model_copy(update={"store": self.store.add_style(locs, directive)})

    def tab_footnote(self, footnote: str | RichText, locations: Location | Iterable[Location] | None = None) -> "Table":
        """Add a footnote; with no locations it appears in the footer without a mark."""
        locs = normalize_locations(locations)
        self._check_locations(locs)
        update = {"store": self.store.add_annotation(locs, as_rich_text(footnote))}
        update.update(self._with_shape(has_footnotes=True))
        return self.model_copy(update=update)

    def _check_locations(self, locations: Sequence[Location]) -> None:
        """Resolve against the current shape so selector errors surface at this call."""
        for loc in locations:
            coords = loc.resolve(self.shape)
            logger.debug("%s currently resolves to %d coordinate(s)", type(loc).__name__, len(coords))

    # ─── Options ──────────────────────────────────────────────────────────────

    def tab_options(self, options: Mapping[str, Any] | None = None, **kwargs: Any) -> "Table":
        """Merge option overrides (dotted keys, nested mappings, or underscore keywords)."""
        return self.model_copy(update={"options": self.options.set_options(options, **kwargs)})

    def opt_footnote_marks(self, marks: str | Sequence[str] = "numbers") -> "Table":
        if not isinstance(marks, str):
            marks = tuple(marks)
        return self.tab_options({"footnotes.marks": marks})

    # ─── Resolution ───────────────────────────────────────────────────────────

    def resolve(self) -> ResolvedStore:
        """Bind all styles and footnotes to coordinates of the current shape."""
        return self.store.resolve(self.shape)

    def column_label(self, column: str) -> RichText:
        return self.column_labels.get(column) or as_rich_text(column)


GT = Table


def _normalize_aggregates(fns: Sequence[str] | Mapping[str, Aggregate]) -> dict[str, Aggregate]:
    """Map summary row labels to aggregate names or callables, validating names."""
    if isinstance(fns, str):
        fns = [fns]
    pairs = fns.items() if isinstance(fns, Mapping) else ((name, name) for name in fns)
    aggregates: dict[str, Aggregate] = {}
    for label, fn in pairs:
        if isinstance(fn, str) and fn not in AGGREGATES:
            raise TableStyleError(f"Unknown aggregate '{fn}' (known: {sorted(AGGREGATES)})")
        if not isinstance(fn, str) and not callable(fn):
            raise TableStyleError(f"Aggregate for '{label}' must be a name or a callable")
        aggregates[str(label)] = fn
    if not aggregates:
        raise TableStyleError("At least one summary function is required")
    return aggregates
