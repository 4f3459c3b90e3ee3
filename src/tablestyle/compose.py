"""Render composer: turn a Table into a render-ready plan, plus a markdown preview.

``compose`` resolves every stored style and footnote against the table's
final shape, computes summary aggregates, assigns footnote marks, and
returns a RenderPlan.  A rendering backend (HTML, LaTeX, ...) consumes the
plan; ``render_markdown`` is a plain-text preview for logs and terminals.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from tablestyle.options import Options
from tablestyle.schema import Coordinate, RichText, Spanner, TableShape
from tablestyle.store import Footnote
from tablestyle.table import AGGREGATES, Table

logger = logging.getLogger(__name__)


# ─── Render Plan ──────────────────────────────────────────────────────────────


class ColumnHeader(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: RichText


class RenderRow(BaseModel):
    """One body or summary row.  ``cells`` follow the plan's column order."""

    model_config = ConfigDict(frozen=True)

    id: str
    stub: Any = None
    cells: tuple[Any, ...]


class RenderGroup(BaseModel):
    """A row group; ``id`` is None for tables without row groups."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    rows: tuple[RenderRow, ...] = ()
    summary: tuple[RenderRow, ...] = ()


class StyledCoordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinate: Coordinate
    properties: dict[str, str | int | float]


class MarkedCoordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinate: Coordinate
    marks: tuple[str, ...]


class RenderPlan(BaseModel):
    """Everything a rendering backend needs, with all targeting already resolved."""

    model_config = ConfigDict(frozen=True)

    title: RichText | None = None
    subtitle: RichText | None = None
    stubhead: RichText | None = None
    spanners: tuple[Spanner, ...] = ()
    columns: tuple[ColumnHeader, ...] = ()
    groups: tuple[RenderGroup, ...] = ()
    grand_summary: tuple[RenderRow, ...] = ()
    footnotes: tuple[Footnote, ...] = ()
    source_notes: tuple[RichText, ...] = ()
    options: Options
    styles: tuple[StyledCoordinate, ...] = ()
    marks: tuple[MarkedCoordinate, ...] = ()

    def style_for(self, coord: Coordinate) -> dict[str, Any]:
        for styled in self.styles:
            if styled.coordinate == coord:
                return dict(styled.properties)
        return {}

    def marks_for(self, coord: Coordinate) -> tuple[str, ...]:
        for marked in self.marks:
            if marked.coordinate == coord:
                return marked.marks
        return ()


# ─── Summaries ───────────────────────────────────────────────────────────────


def _summary_row(shape: TableShape, aggregates: dict[str, Any], label: str, positions: tuple[int, ...]) -> RenderRow:
    """Apply the aggregate registered under *label* in *aggregates* to each data column over *positions*."""
    fn = aggregates[label]
    if isinstance(fn, str):
        fn = AGGREGATES[fn]
    cells = tuple(fn([shape.records[p][col] for p in positions]) for col in shape.data_columns())
    return RenderRow(id=label, stub=label, cells=cells)


def _body_row(shape: TableShape, position: int) -> RenderRow:
    record = shape.records[position]
    stub = record[shape.rowname_col] if shape.has_stub else None
    return RenderRow(id=shape.row_ids[position], stub=stub, cells=tuple(record[c] for c in shape.data_columns()))


# ─── Composer ────────────────────────────────────────────────────────────────


def compose(table: Table) -> RenderPlan:
    """Resolve *table* into a RenderPlan."""
    shape = table.shape
    resolved = table.resolve()
    marks_option = table.options.footnotes.marks

    if shape.has_groups:
        groups = tuple(
            RenderGroup(
                id=group,
                rows=tuple(_body_row(shape, p) for p in shape.group_rows(group)),
                summary=tuple(
                    _summary_row(shape, table.summary_aggregates[group], label, shape.group_rows(group))
                    for label in shape.summary_rows.get(group, ())
                ),
            )
            for group in shape.groups()
        )
    else:
        groups = (RenderGroup(rows=tuple(_body_row(shape, p) for p in shape.display_rows())),)

    all_rows = tuple(range(len(shape.row_ids)))
    grand_summary = tuple(_summary_row(shape, table.grand_aggregates, label, all_rows) for label in shape.grand_summary_rows)

    styles = tuple(StyledCoordinate(coordinate=c, properties=p) for c, p in resolved.merged_styles().items())
    marks = tuple(MarkedCoordinate(coordinate=c, marks=m) for c, m in resolved.marks_at(marks_option).items())
    footnotes = resolved.footnotes(marks_option)

    logger.info(
        "Composed table: %d rows in %d group(s), %d styled cell(s), %d footnote(s)",
        len(shape.row_ids),
        len(groups),
        len(styles),
        len(footnotes),
    )
    return RenderPlan(
        title=table.title,
        subtitle=table.subtitle,
        stubhead=table.stubhead,
        spanners=shape.ordered_spanners(),
        columns=tuple(ColumnHeader(id=c, label=table.column_label(c)) for c in shape.data_columns()),
        groups=groups,
        grand_summary=grand_summary,
        footnotes=footnotes,
        source_notes=table.source_notes,
        options=table.options,
        styles=styles,
        marks=marks,
    )


# ─── Markdown Preview ────────────────────────────────────────────────────────


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        value = format(value, "g")
    return str(value).replace("|", "\\|")


def _with_marks(content: str, marks: tuple[str, ...]) -> str:
    return f"{content}^{','.join(marks)}" if marks else content


def render_markdown(plan: RenderPlan) -> str:
    """Convert a RenderPlan into a markdown table string.

    Spanner labels are folded into the column label in parentheses, e.g.
    "num (Money)", since markdown tables cannot span columns.  Footnotes and
    source notes follow the table as block quotes.
    """
    lines: list[str] = []
    if plan.title is not None:
        title = _with_marks(plan.title.content, plan.marks_for(Coordinate(region="title")))
        lines.append(f"**{title}**")
        if plan.subtitle is not None:
            subtitle = _with_marks(plan.subtitle.content, plan.marks_for(Coordinate(region="subtitle")))
            lines.append(f"*{subtitle}*")
        lines.append("")

    has_stub = any(row.stub is not None for group in plan.groups for row in group.rows) or any(g.id is not None for g in plan.groups)
    has_stub = has_stub or bool(plan.grand_summary)

    # Column header row + separator
    headers: list[str] = []
    if has_stub:
        stubhead = plan.stubhead.content if plan.stubhead is not None else ""
        headers.append(_with_marks(stubhead, plan.marks_for(Coordinate(region="stubhead"))))
    for column in plan.columns:
        label = _with_marks(column.label.content, plan.marks_for(Coordinate(region="column_labels", column=column.id)))
        spanned = [
            _with_marks(s.label.content, plan.marks_for(Coordinate(region="column_spanners", spanner=s.id)))
            for s in plan.spanners
            if column.id in s.columns
        ]
        headers.append(f"{label} ({', '.join(spanned)})" if spanned else label)
    lines.append("| " + " | ".join(_cell(h) for h in headers) + " |")
    lines.append("| " + " | ".join(["---"] * len(headers)) + " |")

    # Data rows, each group introduced by a bold label row
    for group in plan.groups:
        if group.id is not None:
            label = _with_marks(group.id, plan.marks_for(Coordinate(region="row_groups", group=group.id)))
            lines.append("| " + " | ".join([f"**{_cell(label)}**"] + [""] * (len(headers) - 1)) + " |")
        for row in group.rows:
            cells = [
                _with_marks(_cell(v), plan.marks_for(Coordinate(region="body", column=c.id, row=row.id)))
                for c, v in zip(plan.columns, row.cells)
            ]
            if has_stub:
                cells.insert(0, _with_marks(_cell(row.stub), plan.marks_for(Coordinate(region="stub", row=row.id))))
            lines.append("| " + " | ".join(cells) + " |")
        for row in group.summary:
            cells = [
                _with_marks(_cell(v), plan.marks_for(Coordinate(region="summary", group=group.id, row=row.id, column=c.id)))
                for c, v in zip(plan.columns, row.cells)
            ]
            lines.append("| " + " | ".join([f"*{_cell(row.stub)}*"] + cells) + " |")
    for row in plan.grand_summary:
        cells = [
            _with_marks(_cell(v), plan.marks_for(Coordinate(region="grand_summary", row=row.id, column=c.id)))
            for c, v in zip(plan.columns, row.cells)
        ]
        lines.append("| " + " | ".join([f"**{_cell(row.stub)}**"] + cells) + " |")

    # Footnotes and source notes as blockquotes
    if plan.footnotes or plan.source_notes:
        lines.append("")
        for footnote in plan.footnotes:
            prefix = f"{footnote.mark} " if footnote.mark is not None else ""
            lines.append(f"> {prefix}{footnote.text.content}")
        for note in plan.source_notes:
            lines.append(f"> {note.content}")

    return "\n".join(lines)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    # Preview a JSON list of records: python -m tablestyle.compose records.json
    records_file = Path(sys.argv[1])
    with open(records_file, "r", encoding="utf-8") as fopen:
        raw_records = json.load(fopen)
    print(render_markdown(compose(Table.from_records(raw_records).tab_header(title=records_file.stem))))
