"""Project-level configuration: root path, .env loading, default option overrides.

Environment variables (read from the process or ``ROOT/.env``):
  TABLESTYLE_OPTIONS_FILE     -- JSON file of option overrides applied to every new table
  TABLESTYLE_FOOTNOTE_MARKS   -- default mark set ("numbers", "letters", "standard", ...)
                                 or a comma-separated list of glyphs
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from tablestyle.options import Options, read_options_file

logger = logging.getLogger(__name__)

ROOT = Path(__file__).parent.parent.parent.resolve()
load_dotenv(ROOT / ".env")

OPTIONS_FILE_ENV = "TABLESTYLE_OPTIONS_FILE"
FOOTNOTE_MARKS_ENV = "TABLESTYLE_FOOTNOTE_MARKS"


def parse_marks(raw: str) -> str | tuple[str, ...]:
    """Parse a mark setting: a set name, or comma-separated glyphs."""
    raw = raw.strip()
    if "," in raw:
        return tuple(part.strip() for part in raw.split(",") if part.strip())
    return raw


def default_options() -> Options:
    """Built-in defaults, overlaid with any environment-configured overrides.

    Read on every call so tests (and long-running processes) see changes to
    the environment.
    """
    options = Options()

    options_file = os.getenv(OPTIONS_FILE_ENV, "")
    if options_file:
        path = Path(options_file)
        if not path.is_absolute():
            path = ROOT / path
        options = options.set_options(read_options_file(path))

    marks = os.getenv(FOOTNOTE_MARKS_ENV, "")
    if marks:
        options = options.set_options({"footnotes.marks": parse_marks(marks)})
        logger.debug("Default footnote marks from %s: %s", FOOTNOTE_MARKS_ENV, marks)

    return options
