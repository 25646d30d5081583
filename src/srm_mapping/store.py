"""Working mapping from SRM element ids to external (ontology) ids."""

from __future__ import annotations

from typing import Iterable, Mapping

import structlog

from .validation import invariant, validate_ids, validate_mapping_values

logger = structlog.get_logger(__name__)

EMPTY = ""


class MappingStore:
    """
    Single source of truth for the working mapping.

    The key set is fixed by the initial mapping. The assignable pool is never
    stored; it is derived from the external-id catalog and the current values
    on every call.

    ``assign`` does not reject an id held by another element. Callers go
    through ``SelectionNegotiator``, whose choice set already excludes such ids.
    """

    def __init__(self, external_ids: Iterable[str], initial_mapping: Mapping[str, str]):
        self._external_ids: tuple[str, ...] = tuple(external_ids)
        self._initial: dict[str, str] = dict(initial_mapping)
        self._mapping: dict[str, str] = dict(initial_mapping)

    @property
    def external_ids(self) -> tuple[str, ...]:
        return self._external_ids

    @property
    def initial_mapping(self) -> dict[str, str]:
        return dict(self._initial)

    @property
    def mapping(self) -> dict[str, str]:
        return dict(self._mapping)

    def keys(self) -> list[str]:
        return list(self._mapping)

    def value_of(self, srm_id: str) -> str:
        self._require_key(srm_id)
        return self._mapping[srm_id]

    def default_of(self, srm_id: str) -> str:
        self._require_key(srm_id)
        return self._initial[srm_id]

    def owner_of(self, external_id: str) -> str | None:
        if external_id == EMPTY:
            return None
        for srm_id, value in self._mapping.items():
            if value == external_id:
                return srm_id
        return None

    def assigned_ids(self) -> set[str]:
        return {value for value in self._mapping.values() if value != EMPTY}

    def assignable_pool(self) -> list[str]:
        """External ids with no current owner, in catalog order."""
        taken = self.assigned_ids()
        return [external_id for external_id in self._external_ids if external_id not in taken]

    def is_default(self, srm_id: str) -> bool:
        return self.value_of(srm_id) == self.default_of(srm_id)

    def can_restore(self, srm_id: str) -> bool:
        return not self.is_default(srm_id)

    def can_clear(self, srm_id: str) -> bool:
        return self.value_of(srm_id) != EMPTY

    def assign(self, srm_id: str, external_id: str) -> None:
        self._require_key(srm_id)
        owner = self.owner_of(external_id)
        if owner is not None and owner != srm_id:
            logger.warning("duplicate_assignment", srm_id=srm_id, external_id=external_id, owner=owner)
        previous = self._mapping[srm_id]
        self._mapping[srm_id] = external_id
        logger.debug("mapping_assigned", srm_id=srm_id, external_id=external_id, previous=previous)

    def clear(self, srm_id: str) -> None:
        self.assign(srm_id, EMPTY)

    def restore_default(self, srm_id: str) -> None:
        self.assign(srm_id, self.default_of(srm_id))

    def set_external_ids(self, external_ids: Iterable[str]) -> None:
        """Swap the external-id catalog; assigned ids that were dropped stay assigned."""
        ids = list(external_ids)
        validate_ids(ids)
        self._external_ids = tuple(ids)
        logger.info("external_ids_replaced", count=len(self._external_ids))

    def reset(self, initial_mapping: Mapping[str, str]) -> None:
        """Re-synchronise with a newly supplied initial mapping."""
        validate_mapping_values(dict(initial_mapping))
        self._initial = dict(initial_mapping)
        self._mapping = dict(initial_mapping)
        logger.info("mapping_reset", size=len(self._mapping))

    def _require_key(self, srm_id: str) -> None:
        invariant(srm_id in self._mapping, f"SRM id is not part of the mapping: {srm_id}")
