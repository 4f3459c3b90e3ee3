"""Targeting, styling and footnote engine for display tables.

Submodules:
  patterns   -- region traversal order, footnote mark sets, style property catalogue
  errors     -- exception hierarchy
  schema     -- TableShape, Coordinate, RichText and Spanner models
  selectors  -- column selectors (ids, contains, matches, ...) and row selection
  locations  -- cells_*() location variants and coordinate resolution
  styles     -- StyleDirective plus cell_text / cell_fill / cell_borders
  store      -- append-only style/annotation store, footnote marks, serialization
  options    -- hierarchical option tree with dotted-key merging
  config     -- project root, .env loading, default option overrides
  table      -- the immutable Table value and its tab_*() pipeline
  compose    -- RenderPlan assembly and markdown preview
"""

from tablestyle.compose import RenderPlan, compose, render_markdown
from tablestyle.errors import (
    InvalidOptionValueError,
    OptionError,
    ResolutionError,
    ShapeError,
    StyleError,
    TableStyleError,
    UnknownOptionError,
)
from tablestyle.locations import (
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
)
from tablestyle.options import Options
from tablestyle.schema import Coordinate, RichText, html, md, text
from tablestyle.selectors import contains, ends_with, everything, matches, starts_with
from tablestyle.styles import StyleDirective, cell_borders, cell_fill, cell_text
from tablestyle.table import GT, Table

__version__ = "0.1.0"

__all__ = [
    "GT",
    "Coordinate",
    "InvalidOptionValueError",
    "OptionError",
    "Options",
    "RenderPlan",
    "ResolutionError",
    "RichText",
    "ShapeError",
    "StyleDirective",
    "StyleError",
    "Table",
    "TableStyleError",
    "UnknownOptionError",
    "cell_borders",
    "cell_fill",
    "cell_text",
    "cells_body",
    "cells_column_labels",
    "cells_column_spanners",
    "cells_footnotes",
    "cells_grand_summary",
    "cells_row_groups",
    "cells_source_notes",
    "cells_stub",
    "cells_stubhead",
    "cells_summary",
    "cells_title",
    "compose",
    "contains",
    "ends_with",
    "everything",
    "html",
    "matches",
    "md",
    "render_markdown",
    "starts_with",
    "text",
]
