"""Validation layer for session input contracts."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

DEFAULT_DONE_LABEL = "Done"
DEFAULT_CANCEL_LABEL = "Cancel"
DEFAULT_DIALOG_TITLE = "Select ontology equivalent"


class ValidationError(ValueError):
    """Raised when input contracts are violated."""


class MappingInvariantError(AssertionError):
    """Raised when the caller breaks a catalog/mapping invariant at runtime."""


def _ensure(condition: bool, message: str) -> None:
    if not condition:
        raise ValidationError(message)


def invariant(condition: bool, message: str) -> None:
    if not condition:
        raise MappingInvariantError(message)


def build_error_envelope(error: str, reason: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build an error envelope for the runner and CLI."""
    _ensure(error in {"Validation", "Action"}, "error type is not allowed")
    _ensure(isinstance(reason, str) and reason != "", "reason must be non-empty string")
    payload: dict[str, Any] = {
        "error": error,
        "reason": reason,
        "details": details if details is not None else {},
    }
    return payload


def is_envelope(payload: Any) -> bool:
    return isinstance(payload, dict) and set(payload.keys()) == {"error", "reason", "details"}


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(x, str) for x in value)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def validate_srm_catalog(srm: dict[str, Any]) -> None:
    _ensure(isinstance(srm, dict), "srm must be an object")
    _ensure("classes" in srm, "srm.classes is required")
    classes = srm["classes"]
    relations = srm.get("relations") or {}
    _ensure(isinstance(classes, dict), "srm.classes must be an object")
    _ensure(isinstance(relations, dict), "srm.relations must be an object if present")

    for class_id, entry in classes.items():
        _ensure(_non_empty_str(class_id), "srm.classes keys must be non-empty strings")
        _ensure(isinstance(entry, dict), f"srm.classes['{class_id}'] must be object")
        _ensure(_non_empty_str(entry.get("name")), f"srm.classes['{class_id}'].name is required")

    for relation_id, entry in relations.items():
        _ensure(_non_empty_str(relation_id), "srm.relations keys must be non-empty strings")
        _ensure(relation_id not in classes, f"srm id '{relation_id}' is both a class and a relation")
        _ensure(isinstance(entry, dict), f"srm.relations['{relation_id}'] must be object")
        _ensure(_non_empty_str(entry.get("name")), f"srm.relations['{relation_id}'].name is required")
        for end in ("fromClass", "toClass"):
            _ensure(
                entry.get(end) in classes,
                f"srm.relations['{relation_id}'].{end} must resolve to a class id",
            )


def validate_ids(ids: list[str]) -> None:
    _ensure(_is_str_list(ids), "ids must be an array of strings")
    _ensure(all(x != "" for x in ids), "ids must not contain empty strings")
    _ensure(len(ids) == len(set(ids)), "ids must be unique")


def validate_mapping_values(mapping: dict[str, Any]) -> None:
    """Check every value is a string and no non-empty external id is held twice."""
    _ensure(isinstance(mapping, dict), "initialMapping must be an object")
    seen: dict[str, str] = {}
    for srm_id, value in mapping.items():
        _ensure(isinstance(value, str), f"initialMapping['{srm_id}'] must be a string")
        if value == "":
            continue
        _ensure(
            value not in seen,
            f"initialMapping assigns '{value}' to both '{seen.get(value)}' and '{srm_id}'",
        )
        seen[value] = srm_id


def validate_initial_mapping(initial_mapping: dict[str, Any], srm: dict[str, Any]) -> None:
    """Check keys resolve to SRM elements and no external id is held twice."""
    validate_srm_catalog(srm)
    _ensure(isinstance(initial_mapping, dict), "initialMapping must be an object")
    known = set(srm["classes"]) | set(srm.get("relations") or {})
    for srm_id in initial_mapping:
        _ensure(srm_id in known, f"initialMapping key '{srm_id}' must resolve to an SRM class or relation")
    validate_mapping_values(initial_mapping)


def normalize_session_config(session_config: dict[str, Any]) -> dict[str, Any]:
    _ensure(isinstance(session_config, dict), "session must be an object")
    cfg = deepcopy(session_config)
    cfg.setdefault("heading", "")
    cfg.setdefault("doneLabel", DEFAULT_DONE_LABEL)
    cfg.setdefault("cancelLabel", DEFAULT_CANCEL_LABEL)
    cfg.setdefault("dialogTitle", DEFAULT_DIALOG_TITLE)
    srm = cfg.get("srm")
    if isinstance(srm, dict):
        srm.setdefault("relations", {})
    return cfg


def validate_session_config(session_config: dict[str, Any]) -> None:
    cfg = normalize_session_config(session_config)
    for section in ("srm", "ids", "initialMapping"):
        _ensure(section in cfg, f"session.{section} is required")
    for field in ("heading", "doneLabel", "cancelLabel", "dialogTitle"):
        _ensure(isinstance(cfg[field], str), f"session.{field} must be a string")
    validate_srm_catalog(cfg["srm"])
    validate_ids(cfg["ids"])
    validate_initial_mapping(cfg["initialMapping"], cfg["srm"])


def validate_actions(actions: list[dict[str, Any]]) -> None:
    _ensure(isinstance(actions, list), "actions must be an array")
    allowed = {"edit", "commit", "abandon", "clear", "restore", "done", "cancel"}
    for idx, action in enumerate(actions):
        _ensure(isinstance(action, dict), f"actions[{idx}] must be object")
        kind = action.get("action")
        _ensure(kind in allowed, f"actions[{idx}].action must be one of {sorted(allowed)}")
        if kind in {"edit", "clear", "restore"}:
            _ensure(_non_empty_str(action.get("srmId")), f"actions[{idx}].srmId is required")
        if kind == "commit":
            _ensure(_non_empty_str(action.get("id")), f"actions[{idx}].id is required")
