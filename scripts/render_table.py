"""Render a JSON table description to a markdown preview.

The description is a JSON object:

    {
      "records": [{"name": "a", "num": 100, "currency": 50.5}, ...],
      "rowname_col": "name",
      "groupname_col": null,
      "title": "Sales", "subtitle": "2024",
      "stubhead": "Item",
      "labels": {"num": "Number"},
      "spanners": [{"label": "Values", "columns": ["num", "currency"]}],
      "footnotes": [{"text": "Estimated.", "columns": ["currency"]}, {"text": "General note."}],
      "source_notes": ["Source: internal."],
      "options": {"footnotes.marks": "standard"}
    }

Footnotes with "columns" are attached to those column labels; without, they
appear in the footer unmarked.

Usage:
    python scripts/render_table.py table.json
    python scripts/render_table.py table.json --options overrides.json --plan
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure project root is importable
ROOT = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(ROOT / "src"))

from tablestyle import Table, cells_column_labels, compose, render_markdown  # pylint: disable=wrong-import-position
from tablestyle.options import read_options_file  # pylint: disable=wrong-import-position

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def build_table(description: dict) -> Table:
    """Apply every section of a table description, in a fixed order."""
    table = Table.from_records(
        description["records"],
        rowname_col=description.get("rowname_col"),
        groupname_col=description.get("groupname_col"),
    )
    if description.get("title"):
        table = table.tab_header(title=description["title"], subtitle=description.get("subtitle"))
    if description.get("stubhead"):
        table = table.tab_stubhead(description["stubhead"])
    if description.get("labels"):
        table = table.cols_label(description["labels"])
    for spanner in description.get("spanners", []):
        table = table.tab_spanner(label=spanner["label"], columns=spanner["columns"], id=spanner.get("id"))
    for footnote in description.get("footnotes", []):
        locations = cells_column_labels(columns=footnote["columns"]) if footnote.get("columns") else None
        table = table.tab_footnote(footnote["text"], locations)
    for note in description.get("source_notes", []):
        table = table.tab_source_note(note)
    if description.get("options"):
        table = table.tab_options(description["options"])
    return table


def main():
    """Render the table description given on the command line."""
    parser = argparse.ArgumentParser(description="Render a JSON table description as markdown")
    parser.add_argument("description", type=Path, help="Path to the JSON table description")
    parser.add_argument("--options", type=Path, default=None, help="JSON file of extra option overrides")
    parser.add_argument("--plan", action="store_true", help="Print the full render plan as JSON instead of markdown")
    args = parser.parse_args()

    with open(args.description, "r", encoding="utf-8") as fopen:
        description = json.load(fopen)

    table = build_table(description)
    if args.options is not None:
        table = table.tab_options(read_options_file(args.options))

    plan = compose(table)
    logger.info("Changed options: %s", sorted(table.options.changed()))
    print(plan.model_dump_json(indent=2) if args.plan else render_markdown(plan))


if __name__ == "__main__":
    main()
