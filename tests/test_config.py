"""Unit tests for the config module."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import json

import pytest

from tablestyle import Table
from tablestyle.config import FOOTNOTE_MARKS_ENV, OPTIONS_FILE_ENV, ROOT, default_options, parse_marks
from tablestyle.errors import InvalidOptionValueError


class TestParseMarks:

    def test_named_set(self):
        assert parse_marks(" standard ") == "standard"

    def test_glyph_list(self):
        assert parse_marks("a, b,,c") == ("a", "b", "c")


class TestDefaultOptions:

    def test_root_is_project_root(self):
        """ROOT should point to the project root (contains pyproject.toml)."""
        assert (ROOT / "pyproject.toml").exists()

    def test_no_environment(self):
        assert default_options().changed() == {}

    def test_marks_from_environment(self, monkeypatch):
        monkeypatch.setenv(FOOTNOTE_MARKS_ENV, "letters")
        assert default_options().footnotes.marks == "letters"

    def test_glyph_marks_from_environment(self, monkeypatch):
        monkeypatch.setenv(FOOTNOTE_MARKS_ENV, "x,y")
        assert default_options().footnotes.marks == ("x", "y")

    def test_invalid_marks_from_environment(self, monkeypatch):
        monkeypatch.setenv(FOOTNOTE_MARKS_ENV, "roman")
        with pytest.raises(InvalidOptionValueError):
            default_options()

    def test_options_file(self, monkeypatch, tmp_path):
        path = tmp_path / "defaults.json"
        path.write_text(json.dumps({"table": {"width": "100%"}}), encoding="utf-8")
        monkeypatch.setenv(OPTIONS_FILE_ENV, str(path))
        assert default_options().changed() == {"table.width": "100%"}

    def test_new_tables_pick_up_environment(self, monkeypatch):
        monkeypatch.setenv(FOOTNOTE_MARKS_ENV, "standard")
        assert Table.from_records([{"a": 1}]).options.footnotes.marks == "standard"
