"""Modal pick-one interaction that commits a choice back into the store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

import structlog

from .store import EMPTY, MappingStore
from .validation import invariant

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SelectionScope:
    srm_id: str
    choices: tuple[str, ...]
    default_id: str | None
    commit: Callable[[str], None]
    abandon: Callable[[], None]


@dataclass(frozen=True)
class Viewing:
    pass


@dataclass(frozen=True)
class Selecting:
    scope: SelectionScope


SelectionState = Union[Viewing, Selecting]


def build_choices(current: str, pool: list[str]) -> tuple[str, ...]:
    if current == EMPTY:
        return tuple(sorted(set(pool)))
    return tuple(sorted({current, *pool}))


class SelectionNegotiator:
    """Owns the ``Viewing | Selecting`` state for one store."""

    def __init__(self, store: MappingStore):
        self._store = store
        self._state: SelectionState = Viewing()

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def scope(self) -> SelectionScope | None:
        return self._state.scope if isinstance(self._state, Selecting) else None

    def is_selecting(self) -> bool:
        return isinstance(self._state, Selecting)

    def open(self, srm_id: str) -> SelectionScope | None:
        invariant(not self.is_selecting(), "a selection is already open")
        current = self._store.value_of(srm_id)
        choices = build_choices(current, self._store.assignable_pool())
        if not choices:
            logger.debug("selection_not_opened", srm_id=srm_id)
            return None

        # Handles are bound to this scope only; once it closes they are dead.
        def commit(chosen_id: str) -> None:
            self._commit_scope(scope, chosen_id)

        def abandon() -> None:
            self._abandon_scope(scope)

        scope = SelectionScope(
            srm_id=srm_id,
            choices=choices,
            default_id=current if current != EMPTY else None,
            commit=commit,
            abandon=abandon,
        )
        self._state = Selecting(scope)
        logger.debug("selection_opened", srm_id=srm_id, choices=len(choices))
        return scope

    def commit(self, chosen_id: str) -> None:
        scope = self.scope
        invariant(scope is not None, "no selection is open")
        self._commit_scope(scope, chosen_id)

    def abandon(self) -> None:
        scope = self.scope
        if scope is not None:
            self._abandon_scope(scope)

    def _commit_scope(self, scope: SelectionScope, chosen_id: str) -> None:
        invariant(self.scope is scope, "selection scope is closed")
        invariant(chosen_id in scope.choices, f"'{chosen_id}' was not offered for {scope.srm_id}")
        self._store.assign(scope.srm_id, chosen_id)
        self._state = Viewing()
        logger.info("selection_committed", srm_id=scope.srm_id, external_id=chosen_id)

    def _abandon_scope(self, scope: SelectionScope) -> None:
        invariant(self.scope is scope, "selection scope is closed")
        self._state = Viewing()
        logger.debug("selection_abandoned", srm_id=scope.srm_id)
