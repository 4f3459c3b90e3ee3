"""Constants shared by the resolver, the store and the composer.

Region names and their traversal order, footnote mark sequences, and the
catalogue of style properties a directive may set.
"""

import re

# ─── Regions ──────────────────────────────────────────────────────────────────

# Fixed traversal order used for coordinate ordering and footnote-mark assignment
REGION_ORDER = (
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
)

# Regions that can be styled but never carry a footnote mark
UNMARKABLE_REGIONS = ("footnotes", "source_notes")


# ─── Footnote Marks ──────────────────────────────────────────────────────────

FOOTNOTE_MARK_SETS = {
    "letters": tuple("abcdefghijklmnopqrstuvwxyz"),
    "LETTERS": tuple("ABCDEFGHIJKLMNOPQRSTUVWXYZ"),
    "standard": ("*", "†", "‡", "§"),
    "extended": ("*", "†", "‡", "§", "‖", "¶"),
}

# "numbers" is unbounded so it has no entry in FOOTNOTE_MARK_SETS
FOOTNOTE_MARK_NAMES = ("numbers", *FOOTNOTE_MARK_SETS)


# ─── Style Properties ────────────────────────────────────────────────────────

BORDER_SIDES = ("top", "bottom", "left", "right")

LINE_STYLES = ("solid", "dashed", "dotted", "double", "hidden", "none")

TEXT_ALIGN = ("center", "left", "right", "justify")
TEXT_V_ALIGN = ("middle", "top", "bottom")
TEXT_STYLE = ("normal", "italic", "oblique")
TEXT_WEIGHT = ("normal", "bold", "bolder", "lighter")
TEXT_DECORATE = ("overline", "line-through", "underline", "underline overline")
TEXT_TRANSFORM = ("uppercase", "lowercase", "capitalize")
TEXT_WHITESPACE = ("normal", "nowrap", "pre", "pre-wrap", "pre-line", "break-spaces")

# Property name -> allowed values (tuple), or a value kind checked in styles.py
STYLE_PROPERTIES: dict[str, tuple[str, ...] | str] = {
    "text.color": "color",
    "text.font": "font",
    "text.size": "length",
    "text.align": TEXT_ALIGN,
    "text.v_align": TEXT_V_ALIGN,
    "text.style": TEXT_STYLE,
    "text.weight": "weight",
    "text.decorate": TEXT_DECORATE,
    "text.transform": TEXT_TRANSFORM,
    "text.whitespace": TEXT_WHITESPACE,
    "text.indent": "length",
    "fill.color": "color",
    "fill.alpha": "alpha",
}
for _side in BORDER_SIDES:
    STYLE_PROPERTIES[f"border.{_side}.color"] = "color"
    STYLE_PROPERTIES[f"border.{_side}.style"] = LINE_STYLES
    STYLE_PROPERTIES[f"border.{_side}.weight"] = "length"


# ─── Value Patterns ──────────────────────────────────────────────────────────

# "#RGB", "#RRGGBB" or "#RRGGBBAA"
HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

# CSS-like named colour or keyword such as "lightcyan", "transparent", "currentColor"
NAMED_COLOR_RE = re.compile(r"^[a-zA-Z]+$")

# CSS length such as "12px", "1.5em", "100%", "0", or the keywords auto/initial/inherit
LENGTH_RE = re.compile(r"^(?:-?\d+(?:\.\d+)?(?:px|pt|em|rem|%|ex|ch|vw|vh|cm|mm|in)?|auto|initial|inherit)$")
