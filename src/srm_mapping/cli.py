"""CLI for the SRM mapping reconciliation session."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer

from .logging_config import configure_logging
from .runner import run_actions
from .session import MappingRow, MappingSession
from .validation import ValidationError, build_error_envelope, is_envelope

app = typer.Typer(help="SRM to ontology mapping CLI.")

VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Emit debug logs to stderr")
JSON_LOGS_OPTION = typer.Option(False, "--json-logs", help="Render logs as JSON lines")


@app.command()
def version() -> None:
    """Show version output."""
    typer.echo("srm-mapping 0.1.0")


def _load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _dump_json(path: Path, payload: Any) -> None:
    path.write_text(
        json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )


def _fail(envelope: dict[str, Any]) -> NoReturn:
    typer.echo(json.dumps(envelope, sort_keys=True, separators=(",", ":"), ensure_ascii=True))
    raise typer.Exit(code=2)


def _load_session(path: Path) -> MappingSession:
    try:
        session_config = _load_json(path)
    except Exception as exc:  # pragma: no cover - defensive CLI parse path
        _fail(build_error_envelope("Validation", f"input-parse-error: {exc}"))
    try:
        return MappingSession.from_config(session_config)
    except ValidationError as exc:
        _fail(build_error_envelope("Validation", f"session: {exc}", {"section": "session"}))


def _flags(row: MappingRow) -> str:
    flags = [
        name
        for name, enabled in (("edit", row.can_edit), ("restore", row.can_restore), ("clear", row.can_clear))
        if enabled
    ]
    return ",".join(flags) if flags else "-"


def _render_rows(session: MappingSession) -> list[MappingRow]:
    if session.heading:
        typer.echo(session.heading)
    rows = session.rows()
    for number, row in enumerate(rows, start=1):
        typer.echo(f"{number:>3}. {row.label}  =  {row.value or '(unmapped)'}  [{_flags(row)}]")
    return rows


@app.command()
def show(
    session_path: Path = typer.Option(..., "--session", exists=True, file_okay=True, dir_okay=False, help="Path to session JSON"),
    as_json: bool = typer.Option(False, "--json", help="Print rows as JSON"),
    verbose: bool = VERBOSE_OPTION,
    json_logs: bool = JSON_LOGS_OPTION,
) -> None:
    """Print the sorted mapping rows with their enabled actions."""
    configure_logging(verbose, json_logs)
    session = _load_session(session_path)
    if as_json:
        payload = [
            {
                "srmId": row.srm_id,
                "label": row.label,
                "id": row.value,
                "canEdit": row.can_edit,
                "canRestore": row.can_restore,
                "canClear": row.can_clear,
            }
            for row in session.rows()
        ]
        typer.echo(json.dumps(payload, ensure_ascii=False))
        return
    _render_rows(session)


@app.command()
def apply(
    session_path: Path = typer.Option(..., "--session", exists=True, file_okay=True, dir_okay=False, help="Path to session JSON"),
    actions_path: Path = typer.Option(..., "--actions", exists=True, file_okay=True, dir_okay=False, help="Path to actions JSON array"),
    output: Path = typer.Option(..., file_okay=True, dir_okay=False, help="Where to write the resulting mapping"),
    verbose: bool = VERBOSE_OPTION,
    json_logs: bool = JSON_LOGS_OPTION,
) -> None:
    """Apply a scripted list of actions and write the resulting mapping."""
    configure_logging(verbose, json_logs)
    try:
        session_config = _load_json(session_path)
        actions = _load_json(actions_path)
    except Exception as exc:  # pragma: no cover - defensive CLI parse path
        _fail(build_error_envelope("Validation", f"input-parse-error: {exc}"))

    result = run_actions(session_config, actions)
    if is_envelope(result):
        _fail(result)

    if result["outcome"] == "cancel":
        typer.echo("Session cancelled; nothing written")
        return
    _dump_json(output, result["mapping"])
    skipped = sum(1 for entry in result["log"] if entry["status"] == "skipped")
    typer.echo(f"Wrote mapping with {len(result['mapping'])} entries to {output} ({skipped} actions skipped)")


def _pick(rows: list[MappingRow], raw: str) -> MappingRow | None:
    try:
        number = int(raw)
    except ValueError:
        return None
    if 1 <= number <= len(rows):
        return rows[number - 1]
    return None


def _run_selection(session: MappingSession, row: MappingRow) -> None:
    props = session.open_edit(row.srm_id)
    if props is None:
        typer.echo("Nothing to select.")
        return
    typer.echo(props.title)
    typer.echo(props.text)
    for number, external_id in enumerate(props.ids, start=1):
        marker = "*" if external_id == props.default_id else " "
        typer.echo(f" {marker}{number:>3}. {external_id}")
    raw = typer.prompt("Choice (empty to cancel)", default="", show_default=False)
    if raw.strip() == "":
        session.abandon()
        return
    try:
        number = int(raw)
    except ValueError:
        number = 0
    if not 1 <= number <= len(props.ids):
        typer.echo("Invalid choice.")
        session.abandon()
        return
    session.commit(props.ids[number - 1])


@app.command()
def edit(
    session_path: Path = typer.Option(..., "--session", exists=True, file_okay=True, dir_okay=False, help="Path to session JSON"),
    output: Path = typer.Option(..., file_okay=True, dir_okay=False, help="Where to write the mapping on done"),
    verbose: bool = VERBOSE_OPTION,
    json_logs: bool = JSON_LOGS_OPTION,
) -> None:
    """Edit the mapping interactively.

    Commands: ``e N`` edit, ``r N`` restore default, ``c N`` clear,
    ``d`` done (writes the mapping), ``q`` cancel.
    """
    configure_logging(verbose, json_logs)
    session = _load_session(session_path)
    prompt = f"[e N] edit  [r N] restore  [c N] clear  [d] {session.done_label}  [q] {session.cancel_label}"

    while not session.is_finished:
        rows = _render_rows(session)
        command, _, arg = typer.prompt(prompt).strip().partition(" ")
        if command == "q":
            session.cancel()
            typer.echo("Cancelled.")
            return
        if command == "d":
            if not session.can_done():
                typer.echo("Nothing to save.")
                continue
            _dump_json(output, session.done())
            typer.echo(f"Wrote mapping to {output}")
            return
        row = _pick(rows, arg.strip())
        if command not in {"e", "r", "c"} or row is None:
            typer.echo("Unknown command.")
        elif command == "e":
            if row.can_edit:
                _run_selection(session, row)
            else:
                typer.echo("No ontology ids available.")
        elif command == "r":
            if row.can_restore:
                session.restore_default(row.srm_id)
            else:
                typer.echo("Already at default.")
        elif row.can_clear:
            session.clear(row.srm_id)
        else:
            typer.echo("Already empty.")


def main() -> None:
    """Entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
