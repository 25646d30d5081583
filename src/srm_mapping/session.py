"""Page-level session: row view for the renderer, dialog props, done/cancel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import structlog

from .catalog import SrmCatalog
from .labels import build_display_label, label_sort_key
from .selection import SelectionNegotiator, SelectionScope
from .store import MappingStore
from .validation import (
    DEFAULT_CANCEL_LABEL,
    DEFAULT_DIALOG_TITLE,
    DEFAULT_DONE_LABEL,
    invariant,
    normalize_session_config,
    validate_mapping_values,
    validate_session_config,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class MappingRow:
    srm_id: str
    label: str
    value: str
    can_edit: bool
    can_restore: bool
    can_clear: bool


@dataclass(frozen=True)
class DialogProps:
    title: str
    text: str
    ids: tuple[str, ...]
    default_id: str | None


class MappingSession:
    def __init__(
        self,
        catalog: SrmCatalog,
        ids: Iterable[str],
        initial_mapping: Mapping[str, str],
        heading: str = "",
        done_label: str = DEFAULT_DONE_LABEL,
        cancel_label: str = DEFAULT_CANCEL_LABEL,
        dialog_title: str = DEFAULT_DIALOG_TITLE,
    ):
        for srm_id in initial_mapping:
            invariant(srm_id in catalog, f"mapping key is not an SRM element: {srm_id}")
        self.catalog = catalog
        self.heading = heading
        self.done_label = done_label
        self.cancel_label = cancel_label
        self.dialog_title = dialog_title
        self.store = MappingStore(ids, initial_mapping)
        self.selection = SelectionNegotiator(self.store)
        self.outcome: str | None = None

    @classmethod
    def from_config(cls, session_config: dict[str, Any]) -> "MappingSession":
        validate_session_config(session_config)
        cfg = normalize_session_config(session_config)
        return cls(
            SrmCatalog.from_dict(cfg["srm"]),
            cfg["ids"],
            cfg["initialMapping"],
            heading=cfg["heading"],
            done_label=cfg["doneLabel"],
            cancel_label=cfg["cancelLabel"],
            dialog_title=cfg["dialogTitle"],
        )

    @property
    def is_finished(self) -> bool:
        return self.outcome is not None

    def label(self, srm_id: str, prefix: bool = False) -> str:
        return build_display_label(srm_id, self.catalog, prefix)

    def can_edit(self, srm_id: str) -> bool:
        return bool(self.store.assignable_pool()) or self.store.can_clear(srm_id)

    def can_done(self) -> bool:
        return len(self.store.keys()) > 0

    def rows(self) -> list[MappingRow]:
        rows = [
            MappingRow(
                srm_id=srm_id,
                label=self.label(srm_id),
                value=self.store.value_of(srm_id),
                can_edit=self.can_edit(srm_id),
                can_restore=self.store.can_restore(srm_id),
                can_clear=self.store.can_clear(srm_id),
            )
            for srm_id in self.store.keys()
        ]
        return sorted(rows, key=lambda row: label_sort_key(row.label))

    def dialog_props(self, scope: SelectionScope) -> DialogProps:
        return DialogProps(
            title=self.dialog_title,
            text=f"Please select the ontology equivalent for SRM {self.label(scope.srm_id, prefix=True)}.",
            ids=scope.choices,
            default_id=scope.default_id,
        )

    def open_edit(self, srm_id: str) -> DialogProps | None:
        self._require_active()
        scope = self.selection.open(srm_id)
        return self.dialog_props(scope) if scope is not None else None

    def current_dialog(self) -> DialogProps | None:
        scope = self.selection.scope
        return self.dialog_props(scope) if scope is not None else None

    def commit(self, external_id: str) -> None:
        self._require_active()
        self.selection.commit(external_id)

    def abandon(self) -> None:
        self._require_active()
        self.selection.abandon()

    def clear(self, srm_id: str) -> None:
        self._require_viewing()
        self.store.clear(srm_id)

    def restore_default(self, srm_id: str) -> None:
        self._require_viewing()
        self.store.restore_default(srm_id)

    def set_external_ids(self, ids: Iterable[str]) -> None:
        self._require_active()
        self.store.set_external_ids(ids)

    def resync(self, initial_mapping: Mapping[str, str]) -> None:
        """Adopt a newly supplied initial mapping, closing any open selection."""
        self._require_active()
        for srm_id in initial_mapping:
            invariant(srm_id in self.catalog, f"mapping key is not an SRM element: {srm_id}")
        validate_mapping_values(dict(initial_mapping))
        self.selection.abandon()
        self.store.reset(initial_mapping)

    def done(self) -> dict[str, str]:
        self._require_viewing()
        invariant(self.can_done(), "done requires a non-empty mapping")
        self.outcome = "done"
        logger.info("session_done", size=len(self.store.keys()))
        return self.store.mapping

    def cancel(self) -> None:
        self._require_active()
        self.selection.abandon()
        self.outcome = "cancel"
        logger.info("session_cancelled")

    def _require_active(self) -> None:
        invariant(not self.is_finished, "session has already ended")

    def _require_viewing(self) -> None:
        self._require_active()
        invariant(not self.selection.is_selecting(), "a selection is open")
