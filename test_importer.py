"""importer.py file parsing and dry runs (no database access)."""
import json

import pytest

import importer


def test_parse_line():
    assert importer.parse_line("") is None
    assert importer.parse_line("not json") is None
    assert importer.parse_line("[1, 2]") is None
    assert importer.parse_line('{"stem": "x"}') == {"stem": "x"}


def test_load_questions_jsonl_and_json(tmp_path):
    row = {"stem": "Q?", "choices": ["a", "b"], "correct_index": 1}
    jsonl = tmp_path / "bank.jsonl"
    jsonl.write_text(json.dumps(row) + "\n\n" + "garbage\n" + json.dumps(row) + "\n", encoding="utf-8")
    assert importer.load_questions(jsonl) == [row, row]

    js = tmp_path / "bank.json"
    js.write_text(json.dumps([row, "skip me"]), encoding="utf-8")
    assert importer.load_questions(js) == [row]

    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps(row), encoding="utf-8")
    with pytest.raises(ValueError):
        importer.load_questions(bad)


def test_split_valid_reports_row_numbers():
    rows = [
        {"stem": "Q1?", "choices": ["a", "b"], "correct_index": 0},
        {"stem": "", "choices": ["a", "b"], "correct_index": 0},
        {"stem": "Q3?", "choices": ["a", "b"], "correct_index": 5},
    ]
    valid, rejected = importer.split_valid(rows)
    assert valid == rows[:1]
    assert [n for n, _ in rejected] == [2, 3]


def test_dry_run_samples(capsys):
    assert importer.run_import(samples=True, dry_run=True) == 3
    assert "would insert 3 questions" in capsys.readouterr().out


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        importer.run_import(path=tmp_path / "nope.jsonl", dry_run=True)
