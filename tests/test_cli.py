from __future__ import annotations

import json
import sys
from pathlib import Path

from typer.testing import CliRunner

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from srm_mapping.cli import app  # noqa: E402


runner = CliRunner()


def _session() -> dict:
    return {
        "heading": "Map SRM to ontology",
        "srm": {
            "classes": {"c1": {"name": "A"}, "c2": {"name": "B"}},
            "relations": {"r1": {"name": "links", "fromClass": "c1", "toClass": "c2"}},
        },
        "ids": ["x1", "x2", "x3"],
        "initialMapping": {"c1": "x1", "c2": "", "r1": ""},
    }


def _write(tmp_path: Path, name: str, payload: object) -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_cli_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "srm-mapping" in result.stdout


def test_cli_show_lists_sorted_rows(tmp_path: Path) -> None:
    session_path = _write(tmp_path, "session.json", _session())
    result = runner.invoke(app, ["show", "--session", str(session_path)])
    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0] == "Map SRM to ontology"
    assert lines[1].endswith("A  =  x1  [edit,clear]")
    assert lines[2].endswith("B  =  (unmapped)  [edit]")
    assert "links (A → B)" in lines[3]


def test_cli_show_json(tmp_path: Path) -> None:
    session_path = _write(tmp_path, "session.json", _session())
    result = runner.invoke(app, ["show", "--session", str(session_path), "--json"])
    assert result.exit_code == 0
    rows = json.loads(result.stdout)
    assert [row["srmId"] for row in rows] == ["c1", "c2", "r1"]
    assert rows[0]["canClear"] is True
    assert rows[1]["canRestore"] is False


def test_cli_show_rejects_invalid_session(tmp_path: Path) -> None:
    bad = _session()
    bad["ids"] = ["x1", "x1"]
    session_path = _write(tmp_path, "session.json", bad)
    result = runner.invoke(app, ["show", "--session", str(session_path)])
    assert result.exit_code == 2
    assert '"error":"Validation"' in result.stdout


def test_cli_apply_writes_mapping(tmp_path: Path) -> None:
    session_path = _write(tmp_path, "session.json", _session())
    actions_path = _write(
        tmp_path,
        "actions.json",
        [
            {"action": "edit", "srmId": "r1"},
            {"action": "commit", "id": "x3"},
            {"action": "clear", "srmId": "c2"},
            {"action": "done"},
        ],
    )
    out_path = tmp_path / "mapping.json"
    result = runner.invoke(
        app,
        ["apply", "--session", str(session_path), "--actions", str(actions_path), "--output", str(out_path)],
    )
    assert result.exit_code == 0
    assert "1 actions skipped" in result.stdout
    assert json.loads(out_path.read_text(encoding="utf-8")) == {"c1": "x1", "c2": "", "r1": "x3"}


def test_cli_apply_reports_action_envelope(tmp_path: Path) -> None:
    session_path = _write(tmp_path, "session.json", _session())
    actions_path = _write(tmp_path, "actions.json", [{"action": "edit", "srmId": "c2"}, {"action": "commit", "id": "x1"}])
    out_path = tmp_path / "mapping.json"
    result = runner.invoke(
        app,
        ["apply", "--session", str(session_path), "--actions", str(actions_path), "--output", str(out_path)],
    )
    assert result.exit_code == 2
    assert '"error":"Action"' in result.stdout
    assert not out_path.exists()


def test_cli_apply_cancel_writes_nothing(tmp_path: Path) -> None:
    session_path = _write(tmp_path, "session.json", _session())
    actions_path = _write(tmp_path, "actions.json", [{"action": "clear", "srmId": "c1"}, {"action": "cancel"}])
    out_path = tmp_path / "mapping.json"
    result = runner.invoke(
        app,
        ["apply", "--session", str(session_path), "--actions", str(actions_path), "--output", str(out_path)],
    )
    assert result.exit_code == 0
    assert "cancelled" in result.stdout
    assert not out_path.exists()


def test_cli_edit_interactive_done(tmp_path: Path) -> None:
    session_path = _write(tmp_path, "session.json", _session())
    out_path = tmp_path / "mapping.json"
    # Row 2 is "B"; its choices are x2, x3. Then clear row 1 ("A") and finish.
    result = runner.invoke(
        app,
        ["edit", "--session", str(session_path), "--output", str(out_path)],
        input="e 2\n2\nc 1\nd\n",
    )
    assert result.exit_code == 0
    assert "Please select the ontology equivalent for SRM class B." in result.stdout
    assert json.loads(out_path.read_text(encoding="utf-8")) == {"c1": "", "c2": "x3", "r1": ""}


def test_cli_edit_interactive_abandon_and_cancel(tmp_path: Path) -> None:
    session_path = _write(tmp_path, "session.json", _session())
    out_path = tmp_path / "mapping.json"
    result = runner.invoke(
        app,
        ["edit", "--session", str(session_path), "--output", str(out_path)],
        input="e 1\n\nr 1\nq\n",
    )
    assert result.exit_code == 0
    assert " *  1. x1" in result.stdout
    assert "Already at default." in result.stdout
    assert "Cancelled." in result.stdout
    assert not out_path.exists()
