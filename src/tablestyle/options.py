"""Hierarchical table options with defaults and dotted-key merging.

The option tree is a set of nested, frozen pydantic models, one per table
region.  Every leaf has a built-in default.  ``Options.set_options`` accepts
dotted keys (``"table.border.top.color"``), nested dicts, or a mix, and
returns a new Options with the non-None values merged over the current ones.

Unknown keys raise UnknownOptionError (with close-match suggestions, since
most unknown keys are typos in long dotted names).  Bad values for known keys
raise InvalidOptionValueError.
"""

import json
import logging
from collections.abc import Mapping
from difflib import get_close_matches
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, field_validator

from tablestyle.errors import InvalidOptionValueError, UnknownOptionError
from tablestyle.patterns import FOOTNOTE_MARK_NAMES, LINE_STYLES, TEXT_WEIGHT
from tablestyle.styles import is_color, is_length

logger = logging.getLogger(__name__)


# ─── Value Types ──────────────────────────────────────────────────────────────


def _check_color(value: str) -> str:
    if not is_color(value):
        raise ValueError("expected a hex (#RRGGBB), named, or rgb()/hsl() colour")
    return value


def _check_length(value: str) -> str:
    if not is_length(value):
        raise ValueError("expected a length such as '12px', '100%', '1.5em' or 'auto'")
    return value


def _check_weight(value: str | int) -> str | int:
    if isinstance(value, int):
        if not 1 <= value <= 1000:
            raise ValueError("numeric font weight must be between 1 and 1000")
        return value
    if value not in (*TEXT_WEIGHT, "initial", "inherit"):
        raise ValueError(f"expected one of {list(TEXT_WEIGHT)}, 'initial', 'inherit', or 1-1000")
    return value


def _check_line_style(value: str) -> str:
    if value not in LINE_STYLES:
        raise ValueError(f"expected one of {list(LINE_STYLES)}")
    return value


Color = Annotated[str, AfterValidator(_check_color)]
Length = Annotated[str, AfterValidator(_check_length)]
FontWeight = Annotated[str | int, AfterValidator(_check_weight)]
LineStyle = Annotated[str, AfterValidator(_check_line_style)]
Align = Literal["center", "left", "right"]
TextTransform = Literal["inherit", "uppercase", "lowercase", "capitalize"]
FontStyle = Literal["normal", "italic", "oblique"]


class _Group(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ─── Shared Groups ───────────────────────────────────────────────────────────


class BorderOptions(_Group):
    style: LineStyle = "solid"
    width: Length = "2px"
    color: Color = "#D3D3D3"


def _border(style: str = "solid", width: str = "2px", color: str = "#D3D3D3"):
    return Field(default_factory=lambda: BorderOptions(style=style, width=width, color=color))


class SideBorders(_Group):
    top: BorderOptions = _border()
    bottom: BorderOptions = _border()
    left: BorderOptions = _border(style="none")
    right: BorderOptions = _border(style="none")


class BackgroundOptions(_Group):
    color: Color | None = None


class FontOptions(_Group):
    names: tuple[str, ...] = ("-apple-system", "BlinkMacSystemFont", "Segoe UI", "Roboto", "Helvetica Neue", "Arial", "sans-serif")
    size: Length = "16px"
    weight: FontWeight = "normal"
    style: FontStyle = "normal"
    color: Color = "#333333"


class TextOptions(_Group):
    font_size: Length = "100%"
    font_weight: FontWeight = "initial"


# ─── Region Groups ───────────────────────────────────────────────────────────


class TableOptions(_Group):
    width: Length = "auto"
    layout: Literal["fixed", "auto"] = "fixed"
    align: Align = "center"
    margin_left: Length = "auto"
    margin_right: Length = "auto"
    background: BackgroundOptions = Field(default_factory=lambda: BackgroundOptions(color="#FFFFFF"))
    font: FontOptions = Field(default_factory=FontOptions)
    border: SideBorders = Field(
        default_factory=lambda: SideBorders(
            top=BorderOptions(color="#A8A8A8"),
            bottom=BorderOptions(color="#A8A8A8"),
        )
    )


class HeadingOptions(_Group):
    align: Align = "center"
    background: BackgroundOptions = Field(default_factory=BackgroundOptions)
    title: TextOptions = Field(default_factory=lambda: TextOptions(font_size="125%"))
    subtitle: TextOptions = Field(default_factory=lambda: TextOptions(font_size="85%"))
    padding: Length = "4px"
    padding_horizontal: Length = "5px"
    border: SideBorders = Field(default_factory=lambda: SideBorders(top=BorderOptions(style="none")))


class ColumnLabelsOptions(_Group):
    background: BackgroundOptions = Field(default_factory=BackgroundOptions)
    font_size: Length = "100%"
    font_weight: FontWeight = "normal"
    text_transform: TextTransform = "inherit"
    padding: Length = "5px"
    padding_horizontal: Length = "5px"
    vertical_align: Literal["bottom", "middle", "top"] = "bottom"
    border: SideBorders = Field(default_factory=SideBorders)
    hidden: bool = False


class StubOptions(_Group):
    background: BackgroundOptions = Field(default_factory=BackgroundOptions)
    font_size: Length = "100%"
    font_weight: FontWeight = "initial"
    text_transform: TextTransform = "inherit"
    border: BorderOptions = Field(default_factory=BorderOptions)


class RowGroupOptions(_Group):
    background: BackgroundOptions = Field(default_factory=BackgroundOptions)
    font_size: Length = "100%"
    font_weight: FontWeight = "initial"
    text_transform: TextTransform = "inherit"
    padding: Length = "8px"
    padding_horizontal: Length = "5px"
    border: SideBorders = Field(default_factory=SideBorders)
    as_column: bool = False
    default_label: str | None = None


class DataRowOptions(_Group):
    padding: Length = "8px"
    padding_horizontal: Length = "5px"


class SummaryRowOptions(_Group):
    background: BackgroundOptions = Field(default_factory=BackgroundOptions)
    text_transform: TextTransform = "inherit"
    padding: Length = "8px"
    padding_horizontal: Length = "5px"
    border: BorderOptions = Field(default_factory=BorderOptions)


class GrandSummaryRowOptions(SummaryRowOptions):
    border: BorderOptions = Field(default_factory=lambda: BorderOptions(style="double", width="6px"))


class FootnotesOptions(_Group):
    background: BackgroundOptions = Field(default_factory=BackgroundOptions)
    font_size: Length = "90%"
    padding: Length = "4px"
    padding_horizontal: Length = "5px"
    marks: str | tuple[str, ...] = "numbers"
    multiline: bool = True
    sep: str = " "
    border: SideBorders = Field(default_factory=lambda: SideBorders(top=BorderOptions(style="none")))

    @field_validator("marks")
    @classmethod
    def marks_known(cls, value: str | tuple[str, ...]) -> str | tuple[str, ...]:
        """Mark sets are referenced by name; explicit glyph lists must be non-empty."""
        if isinstance(value, str):
            if value not in FOOTNOTE_MARK_NAMES:
                raise ValueError(f"expected one of {list(FOOTNOTE_MARK_NAMES)} or a list of glyphs")
        elif not value or not all(value):
            raise ValueError("explicit footnote marks must be a non-empty list of non-empty strings")
        return value


class SourceNotesOptions(_Group):
    background: BackgroundOptions = Field(default_factory=BackgroundOptions)
    font_size: Length = "90%"
    padding: Length = "4px"
    padding_horizontal: Length = "5px"
    multiline: bool = True
    sep: str = " "


class StripingOptions(_Group):
    background_color: Color = "rgba(128,128,128,0.05)"
    include_stub: bool = False
    include_table_body: bool = False


class RowOptions(_Group):
    striping: StripingOptions = Field(default_factory=StripingOptions)


class ContainerOptions(_Group):
    width: Length = "auto"
    height: Length = "auto"
    overflow_x: Literal["auto", "hidden", "scroll", "visible"] = "auto"
    overflow_y: Literal["auto", "hidden", "scroll", "visible"] = "auto"
    padding_x: Length = "0px"
    padding_y: Length = "10px"


# ─── Root ────────────────────────────────────────────────────────────────────


class Options(_Group):
    """The full option tree.  ``Options()`` is the built-in default table."""

    table: TableOptions = Field(default_factory=TableOptions)
    heading: HeadingOptions = Field(default_factory=HeadingOptions)
    column_labels: ColumnLabelsOptions = Field(default_factory=ColumnLabelsOptions)
    stub: StubOptions = Field(default_factory=StubOptions)
    row_group: RowGroupOptions = Field(default_factory=RowGroupOptions)
    data_row: DataRowOptions = Field(default_factory=DataRowOptions)
    summary_row: SummaryRowOptions = Field(default_factory=SummaryRowOptions)
    grand_summary_row: GrandSummaryRowOptions = Field(default_factory=GrandSummaryRowOptions)
    footnotes: FootnotesOptions = Field(default_factory=FootnotesOptions)
    source_notes: SourceNotesOptions = Field(default_factory=SourceNotesOptions)
    row: RowOptions = Field(default_factory=RowOptions)
    container: ContainerOptions = Field(default_factory=ContainerOptions)

    def get(self, key: str) -> Any:
        """Value of a dotted option key."""
        flat = flatten(self.model_dump())
        if key not in flat:
            raise UnknownOptionError(key, get_close_matches(key, list(flat), n=3, cutoff=0.6))
        return flat[key]

    def to_dotted(self) -> dict[str, Any]:
        return flatten(self.model_dump())

    def changed(self) -> dict[str, Any]:
        """Dotted keys whose value differs from the built-in default."""
        default = flatten(Options().model_dump())
        return {k: v for k, v in self.to_dotted().items() if default[k] != v}

    def set_options(self, partial: Mapping[str, Any] | None = None, **kwargs: Any) -> "Options":
        """Merge non-None options over this registry and return the result.

        *partial* may use dotted keys and/or nested mappings.  Keyword
        arguments use underscores in place of dots (``table_width="100%"``).
        """
        updates = _expand(partial or {})
        for name, value in kwargs.items():
            updates.update(_expand({_keyword_to_dotted(name): value}))
        updates = {k: v for k, v in updates.items() if v is not None}
        if not updates:
            return self

        nested = self.model_dump()
        for key, value in updates.items():
            _assign(nested, key, value)
        try:
            result = Options.model_validate(nested)
        except ValidationError as exc:
            error = exc.errors()[0]
            key = _leaf_key(".".join(str(p) for p in error["loc"]))
            raise InvalidOptionValueError(key, updates.get(key, error.get("input")), error["msg"]) from exc
        logger.debug("set_options: %s", sorted(updates))
        return result


# ─── Dotted-Key Helpers ──────────────────────────────────────────────────────


def flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested option dicts to ``{"a.b.c": value}``."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten(value, f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def _known_keys() -> tuple[set[str], set[str]]:
    """(leaf keys, group keys) of the option tree."""
    leaves = set(flatten(Options().model_dump()))
    groups = {leaf.rsplit(".", i)[0] for leaf in leaves for i in range(1, leaf.count(".") + 1)}
    return leaves, groups


_LEAF_KEYS, _GROUP_KEYS = _known_keys()

# table_background_color -> table.background.color
_KEYWORD_KEYS = {key.replace(".", "_"): key for key in _LEAF_KEYS}


def _leaf_key(key: str) -> str:
    """Trim a pydantic error location down to the option key it refers to."""
    while key and key not in _LEAF_KEYS and "." in key:
        key = key.rsplit(".", 1)[0]
    return key


def _keyword_to_dotted(name: str) -> str:
    if name in _KEYWORD_KEYS:
        return _KEYWORD_KEYS[name]
    raise UnknownOptionError(name, get_close_matches(name, list(_KEYWORD_KEYS), n=3, cutoff=0.6))


def _expand(partial: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Turn a dotted and/or nested mapping into ``{leaf_key: value}``, checking every key."""
    expanded: dict[str, Any] = {}
    for key, value in partial.items():
        dotted = f"{prefix}{key}"
        if dotted in _LEAF_KEYS:
            expanded[dotted] = value
        elif dotted in _GROUP_KEYS:
            if isinstance(value, Mapping):
                expanded.update(_expand(value, f"{dotted}."))
            elif value is not None:
                raise InvalidOptionValueError(dotted, value, "option group expects a mapping of sub-options")
        else:
            raise UnknownOptionError(dotted, get_close_matches(dotted, sorted(_LEAF_KEYS), n=3, cutoff=0.6))
    return expanded


def _assign(nested: dict[str, Any], key: str, value: Any) -> None:
    parts = key.split(".")
    node = nested
    for part in parts[:-1]:
        node = node[part]
    node[parts[-1]] = value


def read_options_file(path: Path | str) -> dict[str, Any]:
    """Read a JSON file of dotted and/or nested option overrides."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as fopen:
        data = json.load(fopen)
    if not isinstance(data, dict):
        raise InvalidOptionValueError(str(path), type(data).__name__, "options file must contain a JSON object")
    logger.info("Loaded %d top-level option entries from %s", len(data), path)
    return data
