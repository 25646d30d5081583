"""Apply a scripted sequence of user actions to a mapping session."""

from __future__ import annotations

from typing import Any

import structlog

from .session import MappingSession
from .validation import (
    MappingInvariantError,
    ValidationError,
    build_error_envelope,
    validate_actions,
)

logger = structlog.get_logger(__name__)


def _is_enabled(session: MappingSession, action: dict[str, Any]) -> bool:
    kind = action["action"]
    if session.is_finished:
        return False
    selecting = session.selection.is_selecting()
    if kind in {"commit", "abandon"}:
        return selecting
    if kind == "cancel":
        return True
    if selecting:
        return False
    if kind == "edit":
        return session.can_edit(action["srmId"])
    if kind == "clear":
        return session.store.can_clear(action["srmId"])
    if kind == "restore":
        return session.store.can_restore(action["srmId"])
    return session.can_done()


def _apply(session: MappingSession, action: dict[str, Any]) -> str:
    kind = action["action"]
    if kind == "edit":
        return "opened" if session.open_edit(action["srmId"]) is not None else "skipped"
    if kind == "commit":
        session.commit(action["id"])
    elif kind == "abandon":
        session.abandon()
    elif kind == "clear":
        session.clear(action["srmId"])
    elif kind == "restore":
        session.restore_default(action["srmId"])
    elif kind == "done":
        session.done()
    else:
        session.cancel()
    return "applied"


def run_actions(session_config: dict[str, Any], actions: list[dict[str, Any]]) -> dict[str, Any]:
    """Run actions in order and return the final mapping or an error envelope.

    Actions whose affordance is disabled at that point (clear on an empty
    value, restore at default, edit with nothing to offer, anything but
    commit/abandon/cancel while a selection is open) are logged as skipped.
    """
    try:
        session = MappingSession.from_config(session_config)
    except ValidationError as exc:
        return build_error_envelope("Validation", f"session: {exc}", {"section": "session"})

    try:
        validate_actions(actions)
    except ValidationError as exc:
        return build_error_envelope("Validation", f"actions: {exc}", {"section": "actions"})

    log: list[dict[str, Any]] = []
    for index, action in enumerate(actions):
        if action.get("srmId") is not None and action["srmId"] not in session.store.keys():
            return build_error_envelope(
                "Action",
                f"unknown srmId: {action['srmId']}",
                {"actionIndex": index},
            )
        try:
            status = _apply(session, action) if _is_enabled(session, action) else "skipped"
        except MappingInvariantError as exc:
            logger.error("action_failed", index=index, action=action["action"], reason=str(exc))
            return build_error_envelope("Action", str(exc), {"actionIndex": index})
        log.append({"index": index, "action": action["action"], "status": status})

    return {
        "mapping": session.store.mapping,
        "outcome": session.outcome or "open",
        "log": log,
    }
