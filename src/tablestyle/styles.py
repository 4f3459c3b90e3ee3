"""Style directives and the helpers that build them.

A StyleDirective is a flat mapping of style-property name to value, e.g.
``{"fill.color": "lightcyan", "text.weight": "bold"}``.  Directives compose
property-wise: merging two directives keeps every property of both, and the
later directive wins where they set the same property.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from tablestyle.errors import StyleError
from tablestyle.patterns import (
    BORDER_SIDES,
    HEX_COLOR_RE,
    LENGTH_RE,
    NAMED_COLOR_RE,
    STYLE_PROPERTIES,
    TEXT_WEIGHT,
)

logger = logging.getLogger(__name__)

# Functional colour notation such as "rgba(128,128,128,0.05)" or "hsl(120, 50%, 50%)"
_FUNCTIONAL_COLOR_PREFIXES = ("rgb(", "rgba(", "hsl(", "hsla(")


# ─── Value Checks ─────────────────────────────────────────────────────────────


def is_color(value: Any) -> bool:
    """Return True for hex, named, or functional (rgb/hsl) colour strings."""
    if not isinstance(value, str):
        return False
    if HEX_COLOR_RE.match(value) or NAMED_COLOR_RE.match(value):
        return True
    return value.startswith(_FUNCTIONAL_COLOR_PREFIXES) and value.endswith(")")


def is_length(value: Any) -> bool:
    """Return True for a CSS-like length string or a plain non-negative number (pixels)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value >= 0
    return isinstance(value, str) and bool(LENGTH_RE.match(value.strip()))


def _check_value(name: str, value: Any) -> None:
    """Raise StyleError if *value* is not acceptable for property *name*."""
    kind = STYLE_PROPERTIES[name]
    if isinstance(kind, tuple):
        if value not in kind:
            raise StyleError(f"Style property '{name}' must be one of {list(kind)}, got {value!r}")
        return
    if kind == "color":
        ok = is_color(value)
    elif kind == "length":
        ok = is_length(value)
    elif kind == "alpha":
        ok = isinstance(value, (int, float)) and not isinstance(value, bool) and 0 <= value <= 1
    elif kind == "weight":
        ok = value in TEXT_WEIGHT or (isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= 1000)
    elif kind == "font":
        ok = isinstance(value, str) and bool(value.strip())
    else:
        ok = False
    if not ok:
        raise StyleError(f"Invalid {kind} value {value!r} for style property '{name}'")


def validate_properties(properties: Mapping[str, Any]) -> dict[str, Any]:
    """Check every property name and value; drop None values.  Returns a new dict."""
    checked: dict[str, Any] = {}
    for name, value in properties.items():
        if name not in STYLE_PROPERTIES:
            raise StyleError(f"Unknown style property '{name}' (known: {sorted(STYLE_PROPERTIES)})")
        if value is None:
            continue
        _check_value(name, value)
        checked[name] = value
    return checked


# ─── Directive ───────────────────────────────────────────────────────────────


class StyleDirective(BaseModel):
    """An ordered mapping of style-property name to value."""

    model_config = ConfigDict(frozen=True)

    properties: dict[str, str | int | float] = {}

    @field_validator("properties", mode="before")
    @classmethod
    def _known_properties(cls, value: Any) -> dict[str, Any]:
        if not isinstance(value, Mapping):
            raise StyleError(f"Style properties must be a mapping, got {type(value).__name__}")
        return validate_properties(value)

    @classmethod
    def of(cls, properties: Mapping[str, Any]) -> "StyleDirective":
        """Build a directive from *properties* (raises StyleError)."""
        return cls(properties=properties)

    def merged(self, other: "StyleDirective") -> "StyleDirective":
        """Property-wise union, with *other* winning on conflicting properties."""
        return StyleDirective(properties={**self.properties, **other.properties})

    def __bool__(self) -> bool:
        return bool(self.properties)


def combine(directives: "StyleDirective | Iterable[StyleDirective]") -> StyleDirective:
    """Merge a directive or a sequence of directives in order (later wins)."""
    if isinstance(directives, StyleDirective):
        return directives
    result = StyleDirective()
    for directive in directives:
        if not isinstance(directive, StyleDirective):
            raise StyleError(f"Expected a StyleDirective, got {type(directive).__name__}")
        result = result.merged(directive)
    return result


# ─── Helper Constructors ─────────────────────────────────────────────────────


def cell_text(
    color: str | None = None,
    font: str | list[str] | None = None,
    size: str | int | float | None = None,
    align: str | None = None,
    v_align: str | None = None,
    style: str | None = None,
    weight: str | int | None = None,
    decorate: str | None = None,
    transform: str | None = None,
    whitespace: str | None = None,
    indent: str | int | float | None = None,
) -> StyleDirective:
    """Text styling for the targeted cells.

    ``font`` may be a single family or a list of families, which is joined
    into a CSS-style fallback stack.
    """
    if isinstance(font, (list, tuple)):
        font = ", ".join(font)
    return StyleDirective.of(
        {
            "text.color": color,
            "text.font": font,
            "text.size": size,
            "text.align": align,
            "text.v_align": v_align,
            "text.style": style,
            "text.weight": weight,
            "text.decorate": decorate,
            "text.transform": transform,
            "text.whitespace": whitespace,
            "text.indent": indent,
        }
    )


def cell_fill(color: str = "#D3D3D3", alpha: float | None = None) -> StyleDirective:
    """Background fill for the targeted cells."""
    return StyleDirective.of({"fill.color": color, "fill.alpha": alpha})


def cell_borders(
    sides: str | list[str] = "all",
    color: str = "#000000",
    style: str = "solid",
    weight: str | int | float = "1px",
) -> StyleDirective:
    """Borders on one or more sides of the targeted cells.

    ``sides`` accepts "all", a single side, or a list of sides; "t", "b", "l"
    and "r" are accepted as abbreviations.
    """
    abbrev = {"t": "top", "b": "bottom", "l": "left", "r": "right"}
    if isinstance(sides, str):
        sides = [sides]
    resolved: list[str] = []
    for side in sides:
        if side == "all":
            resolved.extend(BORDER_SIDES)
            continue
        side = abbrev.get(side, side)
        if side not in BORDER_SIDES:
            raise StyleError(f"Unknown border side '{side}' (expected 'all' or one of {list(BORDER_SIDES)})")
        resolved.append(side)

    properties: dict[str, Any] = {}
    for side in dict.fromkeys(resolved):
        properties[f"border.{side}.color"] = color
        properties[f"border.{side}.style"] = style
        properties[f"border.{side}.weight"] = weight
    logger.debug("cell_borders: sides=%s style=%s", list(dict.fromkeys(resolved)), style)
    return StyleDirective.of(properties)
