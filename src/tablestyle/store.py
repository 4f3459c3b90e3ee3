"""Append-only registry of style directives and footnote annotations.

StyleStore keeps what the user asked for (locations + directive, locations +
footnote text) in call order.  ``resolve`` binds every entry to concrete
coordinates for one TableShape and returns a ResolvedStore, which answers the
render-time questions: the merged style of a coordinate, and which footnote
marks belong where.  A ResolvedStore round-trips through JSON unchanged.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict

from tablestyle.errors import ResolutionError
from tablestyle.locations import Location, TraversalIndex, normalize_locations, resolve_locations
from tablestyle.patterns import FOOTNOTE_MARK_SETS, UNMARKABLE_REGIONS
from tablestyle.schema import Coordinate, RichText, TableShape
from tablestyle.styles import StyleDirective

logger = logging.getLogger(__name__)


# ─── Footnote Marks ───────────────────────────────────────────────────────────


def footnote_mark(index: int, marks: str | Sequence[str] = "numbers") -> str:
    """Return the mark for the *index*-th (0-based) footnote.

    ``marks`` is "numbers", the name of a mark set ("letters", "LETTERS",
    "standard", "extended") or an explicit sequence of glyphs.  Finite
    sequences repeat with doubled, tripled ... glyphs once exhausted
    (``*, †, ‡, §, **, ††, ...``).
    """
    if index < 0:
        raise ValueError(f"Footnote index must be >= 0, got {index}")
    if isinstance(marks, str):
        if marks == "numbers":
            return str(index + 1)
        if marks not in FOOTNOTE_MARK_SETS:
            raise ValueError(f"Unknown footnote mark set '{marks}'")
        glyphs: Sequence[str] = FOOTNOTE_MARK_SETS[marks]
    else:
        glyphs = marks
    if not glyphs:
        raise ValueError("Footnote mark sequence is empty")
    return glyphs[index % len(glyphs)] * (index // len(glyphs) + 1)


# ─── Unresolved Store ────────────────────────────────────────────────────────


class StyleEntry(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    locations: tuple[Location, ...]
    directive: StyleDirective


class Annotation(BaseModel):
    """A footnote: body text plus the locations that carry its mark."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: int
    text: RichText
    locations: tuple[Location, ...] = ()


class StyleStore(BaseModel):
    """Ordered style and annotation entries.  Adding returns a new store."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    styles: tuple[StyleEntry, ...] = ()
    annotations: tuple[Annotation, ...] = ()

    def add_style(self, locations: Location | Iterable[Location], directive: StyleDirective) -> "StyleStore":
        locs = normalize_locations(locations)
        entry = StyleEntry(locations=locs, directive=directive)
        logger.debug("add_style: %d location(s), properties=%s", len(locs), list(directive.properties))
        return self.model_copy(update={"styles": (*self.styles, entry)})

    def add_annotation(self, locations: Location | Iterable[Location] | None, text: RichText) -> "StyleStore":
        locs = normalize_locations(locations)
        for loc in locs:
            if loc.region in UNMARKABLE_REGIONS:
                raise ResolutionError(f"Footnotes cannot be attached to the '{loc.region}' region")
        annotation = Annotation(id=len(self.annotations), text=text, locations=locs)
        logger.debug("add_annotation #%d: %d location(s)", annotation.id, len(locs))
        return self.model_copy(update={"annotations": (*self.annotations, annotation)})

    def resolve(self, shape: TableShape) -> "ResolvedStore":
        """Bind every entry to its coordinates for *shape*."""
        index = TraversalIndex(shape)
        styles = tuple(
            ResolvedStyle(coordinates=resolve_locations(entry.locations, shape), properties=entry.directive.properties)
            for entry in self.styles
        )
        annotations = tuple(
            ResolvedAnnotation(id=a.id, text=a.text, coordinates=resolve_locations(a.locations, shape)) for a in self.annotations
        )

        # Rank every annotated coordinate once so first-encounter order is comparable across annotations
        ranked = index.sort(c for a in annotations for c in a.coordinates)
        rank = {c: i for i, c in enumerate(ranked)}
        annotations = tuple(
            a.model_copy(update={"first_position": rank[a.coordinates[0]] if a.coordinates else None}) for a in annotations
        )

        logger.debug("Resolved %d style entries and %d annotations", len(styles), len(annotations))
        return ResolvedStore(styles=styles, annotations=annotations)


# ─── Resolved Store ──────────────────────────────────────────────────────────


class ResolvedStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinates: tuple[Coordinate, ...]
    properties: dict[str, str | int | float]


class ResolvedAnnotation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    text: RichText
    coordinates: tuple[Coordinate, ...]
    first_position: int | None = None


class Footnote(BaseModel):
    """A footer entry.  ``mark`` is None for footnotes that target no cell."""

    model_config = ConfigDict(frozen=True)

    mark: str | None
    text: RichText
    annotation_id: int
    coordinates: tuple[Coordinate, ...] = ()


class ResolvedStore(BaseModel):
    """Entries bound to concrete coordinates, in insertion order."""

    model_config = ConfigDict(frozen=True)

    styles: tuple[ResolvedStyle, ...] = ()
    annotations: tuple[ResolvedAnnotation, ...] = ()

    def styles_at(self, coord: Coordinate) -> dict[str, Any]:
        """Merged style of *coord*: property-wise union, later entries winning."""
        merged: dict[str, Any] = {}
        for entry in self.styles:
            if coord in entry.coordinates:
                merged.update(entry.properties)
        return merged

    def merged_styles(self) -> dict[Coordinate, dict[str, Any]]:
        """Merged style for every styled coordinate, keyed in first-styled order."""
        merged: dict[Coordinate, dict[str, Any]] = {}
        for entry in self.styles:
            for coord in entry.coordinates:
                merged.setdefault(coord, {}).update(entry.properties)
        return merged

    def footnotes(self, marks: str | Sequence[str] = "numbers") -> tuple[Footnote, ...]:
        """Footer entries: marked footnotes in mark order, then unmarked ones in call order.

        Marks are handed out in first-encounter order over the traversal, one
        per annotation however many cells it targets.
        """
        marked = sorted((a for a in self.annotations if a.first_position is not None), key=lambda a: (a.first_position, a.id))
        unmarked = [a for a in self.annotations if a.first_position is None]
        notes = [
            Footnote(mark=footnote_mark(i, marks), text=a.text, annotation_id=a.id, coordinates=a.coordinates)
            for i, a in enumerate(marked)
        ]
        notes.extend(Footnote(mark=None, text=a.text, annotation_id=a.id) for a in unmarked)
        return tuple(notes)

    def marks_at(self, marks: str | Sequence[str] = "numbers") -> dict[Coordinate, tuple[str, ...]]:
        """Marks carried by each annotated coordinate, in mark order."""
        result: dict[Coordinate, list[str]] = {}
        for note in self.footnotes(marks):
            for coord in note.coordinates:
                result.setdefault(coord, []).append(note.mark)
        return {coord: tuple(m) for coord, m in result.items()}

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, data: str) -> "ResolvedStore":
        return cls.model_validate_json(data)
