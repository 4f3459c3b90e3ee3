"""Column and row selector algebra.

Column selectors are small tagged models (ById, Contains, Matches, StartsWith,
EndsWith, Everything).  Several selectors given together select the union of
what each selects, always returned in table column order.

Row selection is either a predicate over a row's values, a list of row ids
(str) or 0-based positions (int), or None for every row.
"""

import logging
import re
from collections.abc import Callable, Sequence
from difflib import get_close_matches
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, field_validator

from tablestyle.errors import ResolutionError
from tablestyle.schema import TableShape

logger = logging.getLogger(__name__)


# ─── Column Selectors ─────────────────────────────────────────────────────────


class ColumnSelector(BaseModel):
    """Base class: subclasses implement ``select`` over a sequence of column ids."""

    model_config = ConfigDict(frozen=True)

    def select(self, columns: Sequence[str]) -> set[str]:
        raise NotImplementedError


class ById(ColumnSelector):
    kind: Literal["id"] = "id"
    ids: tuple[str, ...]

    def select(self, columns: Sequence[str]) -> set[str]:
        missing = [c for c in self.ids if c not in columns]
        if missing:
            suggestions = get_close_matches(missing[0], list(columns), n=3, cutoff=0.4)
            hint = f" (did you mean: {', '.join(suggestions)}?)" if suggestions else ""
            raise ResolutionError(f"Unknown column(s) {missing}{hint}")
        return set(self.ids)


class Contains(ColumnSelector):
    kind: Literal["contains"] = "contains"
    text: str
    ignore_case: bool = True

    def select(self, columns: Sequence[str]) -> set[str]:
        if self.ignore_case:
            needle = self.text.lower()
            return {c for c in columns if needle in c.lower()}
        return {c for c in columns if self.text in c}


class StartsWith(ColumnSelector):
    kind: Literal["starts_with"] = "starts_with"
    prefix: str
    ignore_case: bool = True

    def select(self, columns: Sequence[str]) -> set[str]:
        if self.ignore_case:
            return {c for c in columns if c.lower().startswith(self.prefix.lower())}
        return {c for c in columns if c.startswith(self.prefix)}


class EndsWith(ColumnSelector):
    kind: Literal["ends_with"] = "ends_with"
    suffix: str
    ignore_case: bool = True

    def select(self, columns: Sequence[str]) -> set[str]:
        if self.ignore_case:
            return {c for c in columns if c.lower().endswith(self.suffix.lower())}
        return {c for c in columns if c.endswith(self.suffix)}


class Matches(ColumnSelector):
    kind: Literal["matches"] = "matches"
    pattern: str
    ignore_case: bool = True

    @field_validator("pattern")
    @classmethod
    def pattern_compiles(cls, value: str) -> str:
        """Reject malformed regular expressions when the selector is built."""
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid regular expression {value!r}: {exc}") from exc
        return value

    def select(self, columns: Sequence[str]) -> set[str]:
        regex = re.compile(self.pattern, re.IGNORECASE if self.ignore_case else 0)
        return {c for c in columns if regex.search(c)}


class Everything(ColumnSelector):
    kind: Literal["everything"] = "everything"

    def select(self, columns: Sequence[str]) -> set[str]:
        return set(columns)


def contains(text: str, ignore_case: bool = True) -> Contains:
    return Contains(text=text, ignore_case=ignore_case)


def starts_with(prefix: str, ignore_case: bool = True) -> StartsWith:
    return StartsWith(prefix=prefix, ignore_case=ignore_case)


def ends_with(suffix: str, ignore_case: bool = True) -> EndsWith:
    return EndsWith(suffix=suffix, ignore_case=ignore_case)


def matches(pattern: str, ignore_case: bool = True) -> Matches:
    """Select columns whose id matches *pattern* anywhere (``re.search``).

    Raises ResolutionError straight away if *pattern* does not compile.
    """
    try:
        re.compile(pattern)
    except re.error as exc:
        raise ResolutionError(f"Invalid regular expression {pattern!r} in column selector: {exc}") from exc
    return Matches(pattern=pattern, ignore_case=ignore_case)


def everything() -> Everything:
    return Everything()


ColumnsArg = Union[str, ColumnSelector, Sequence[Union[str, ColumnSelector]], None]


def normalize_columns(columns: ColumnsArg) -> tuple[ColumnSelector, ...]:
    """Turn the user-facing ``columns=`` argument into a tuple of selectors.

    Bare strings are gathered (in order) into a single ById selector.
    """
    if columns is None:
        return (Everything(),)
    if isinstance(columns, (str, ColumnSelector)):
        columns = [columns]
    ids = [c for c in columns if isinstance(c, str)]
    others = [c for c in columns if not isinstance(c, str)]
    for other in others:
        if not isinstance(other, ColumnSelector):
            raise ResolutionError(f"Column selectors must be strings or selector objects, got {type(other).__name__}")
    selectors: list[ColumnSelector] = [ById(ids=tuple(ids))] if ids else []
    return tuple(selectors + others)


def resolve_columns(selectors: Sequence[ColumnSelector], columns: Sequence[str]) -> tuple[str, ...]:
    """Union of every selector's selection, in *columns* order."""
    chosen: set[str] = set()
    for selector in selectors:
        chosen |= selector.select(columns)
    return tuple(c for c in columns if c in chosen)


# ─── Row Selection ───────────────────────────────────────────────────────────

RowPredicate = Callable[[Any], Any]
RowsArg = Union[RowPredicate, str, int, Sequence[Union[str, int]], None]


def normalize_rows(rows: Any) -> Any:
    """Wrap single ids/positions in a tuple and freeze lists; callables pass through."""
    if rows is None or callable(rows):
        return rows
    if isinstance(rows, (str, int)) and not isinstance(rows, bool):
        return (rows,)
    if isinstance(rows, Sequence):
        return tuple(rows)
    raise ResolutionError(f"Row selection must be a predicate, row ids, or positions; got {type(rows).__name__}")


def select_ids(selection: Sequence[str | int] | None, ids: Sequence[str], what: str) -> tuple[str, ...]:
    """Select from *ids* by id (str) or position (int), returned in *ids* order."""
    if selection is None:
        return tuple(ids)
    chosen: set[str] = set()
    for item in selection:
        if isinstance(item, bool) or not isinstance(item, (str, int)):
            raise ResolutionError(f"Cannot select {what} by {type(item).__name__} value {item!r}")
        if isinstance(item, int):
            if not -len(ids) <= item < len(ids):
                raise ResolutionError(f"{what.capitalize()} position {item} is out of range (0..{len(ids) - 1})")
            chosen.add(ids[item])
        elif item in ids:
            chosen.add(item)
        else:
            suggestions = get_close_matches(item, list(ids), n=3, cutoff=0.4)
            hint = f" (did you mean: {', '.join(suggestions)}?)" if suggestions else ""
            raise ResolutionError(f"Unknown {what} '{item}'{hint}")
    return tuple(i for i in ids if i in chosen)


def resolve_rows(rows: Any, shape: TableShape, positions: Sequence[int]) -> tuple[int, ...]:
    """Return the subset of row *positions* selected by *rows*, keeping *positions* order.

    A predicate receives a read-only mapping of the row's values.  Any error
    raised while evaluating it (such as a KeyError for a column that does not
    exist) is re-raised as ResolutionError.
    """
    if rows is None:
        return tuple(positions)

    if callable(rows):
        selected: list[int] = []
        for pos in positions:
            try:
                keep = rows(shape.row_data(pos))
            except Exception as exc:  # pylint: disable=broad-exception-caught
                raise ResolutionError(
                    f"Row predicate failed on row '{shape.row_ids[pos]}': {type(exc).__name__}: {exc}"
                ) from exc
            if keep:
                selected.append(pos)
        logger.debug("Row predicate selected %d of %d rows", len(selected), len(positions))
        return tuple(selected)

    # Ids and positions are checked against the whole table, not just *positions*
    all_ids = shape.row_ids
    wanted = set(select_ids(rows, all_ids, "row"))
    return tuple(pos for pos in positions if all_ids[pos] in wanted)
