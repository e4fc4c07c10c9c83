from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from quickedit_table import __version__
from quickedit_table.cli import app

_DOCUMENT = {
    "columns": [
        {"key": "id", "label": "ID"},
        {
            "key": "name",
            "label": "Name",
            "quick_edit": {"validation": {"css": "yiv-required"}},
        },
        {
            "key": "age",
            "label": "Age",
            "quick_edit": {
                "validation": {
                    "css": "yiv-integer:[0,120]",
                    "messages": {"integer": "Enter an age"},
                }
            },
        },
    ],
    "records": [
        {"id": 1, "name": "Ada", "age": 7},
        {"id": 2, "name": "Bob", "age": 0},
    ],
    "changes_always_include": ["id"],
}


@pytest.fixture
def document_path(tmp_path: Path) -> Path:
    path = tmp_path / "table.json"
    path.write_text(json.dumps(_DOCUMENT), encoding="utf-8")
    return path


def _write_edits(tmp_path: Path, edits: list[dict[str, object]]) -> Path:
    path = tmp_path / "edits.json"
    path.write_text(json.dumps(edits), encoding="utf-8")
    return path


def test_version_prints_version() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_check_without_edits_reports_only_always_included_keys(
    document_path: Path, tmp_path: Path
) -> None:
    out = tmp_path / "out" / "changes.json"
    runner = CliRunner()
    result = runner.invoke(app, ["check", str(document_path), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert json.loads(out.read_text(encoding="utf-8")) == [{"id": 1}, {"id": 2}]


def test_check_applies_edits(document_path: Path, tmp_path: Path) -> None:
    edits = _write_edits(tmp_path, [{"row": 0, "key": "age", "value": "8"}])
    out = tmp_path / "changes.json"
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["check", str(document_path), "--edits", str(edits), "--output", str(out)],
    )
    assert result.exit_code == 0, result.output
    assert json.loads(out.read_text(encoding="utf-8")) == [{"id": 1, "age": "8"}, {"id": 2}]


def test_check_validation_failure_exits_1(document_path: Path, tmp_path: Path) -> None:
    edits = _write_edits(
        tmp_path,
        [
            {"row": 0, "key": "name", "value": ""},
            {"row": 1, "key": "age", "value": "200"},
        ],
    )
    out = tmp_path / "changes.json"
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["check", str(document_path), "--edits", str(edits), "-o", str(out)],
    )
    assert result.exit_code == 1
    assert "Validation failed" in result.output
    assert "Enter an age" in result.output
    assert not out.exists()


def test_check_rejects_invalid_document(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"columns": [{"key": "a"}, {"key": "a"}]}), encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(app, ["check", str(path)])
    assert result.exit_code == 2
    assert "Invalid table document" in result.output


def test_check_rejects_edit_of_non_editable_cell(document_path: Path, tmp_path: Path) -> None:
    edits = _write_edits(tmp_path, [{"row": 0, "key": "id", "value": "9"}])
    runner = CliRunner()
    result = runner.invoke(app, ["check", str(document_path), "--edits", str(edits)])
    assert result.exit_code == 2
    assert "No editable field" in result.output


def test_check_rejects_malformed_edits(document_path: Path, tmp_path: Path) -> None:
    edits = _write_edits(tmp_path, [{"row": "first", "key": "age", "value": "1"}])
    runner = CliRunner()
    result = runner.invoke(app, ["check", str(document_path), "--edits", str(edits)])
    assert result.exit_code == 2
    assert "Invalid edits" in result.output


def test_edit_writes_changes_from_session(
    document_path: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import quickedit_table.cli as cli_mod

    seen = []

    def _fake_session(document):  # noqa: ANN001
        seen.append(document)
        return [{"id": 1, "name": "Ann"}, {"id": 2}]

    monkeypatch.setattr(cli_mod, "run_quickedit_session", _fake_session)
    out = tmp_path / "changes.json"
    runner = CliRunner()
    result = runner.invoke(app, ["edit", str(document_path), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert len(seen) == 1 and seen[0].changes_always_include == ["id"]
    assert json.loads(out.read_text(encoding="utf-8"))[0] == {"id": 1, "name": "Ann"}


def test_edit_cancelled_session_writes_nothing(
    document_path: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import quickedit_table.cli as cli_mod

    monkeypatch.setattr(cli_mod, "run_quickedit_session", lambda _document: None)
    out = tmp_path / "changes.json"
    runner = CliRunner()
    result = runner.invoke(app, ["edit", str(document_path), "-o", str(out)])
    assert result.exit_code == 0
    assert "No changes saved." in result.output
    assert not out.exists()
