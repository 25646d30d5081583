"""Immutable SRM schema catalog (classes and relations)."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from .validation import invariant, validate_srm_catalog


@dataclass(frozen=True)
class SrmClass:
    name: str


@dataclass(frozen=True)
class SrmRelation:
    name: str
    from_class: str
    to_class: str


@dataclass(frozen=True)
class SrmCatalog:
    classes: Mapping[str, SrmClass] = field(default_factory=dict)
    relations: Mapping[str, SrmRelation] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "classes", MappingProxyType(dict(self.classes)))
        object.__setattr__(self, "relations", MappingProxyType(dict(self.relations)))

    @classmethod
    def from_dict(cls, srm: dict[str, Any]) -> "SrmCatalog":
        """Build a catalog from the ``{"classes": ..., "relations": ...}`` document."""
        validate_srm_catalog(srm)
        classes = {class_id: SrmClass(name=entry["name"]) for class_id, entry in srm["classes"].items()}
        relations = {
            relation_id: SrmRelation(
                name=entry["name"],
                from_class=entry["fromClass"],
                to_class=entry["toClass"],
            )
            for relation_id, entry in (srm.get("relations") or {}).items()
        }
        return cls(classes=classes, relations=relations)

    def is_class(self, srm_id: str) -> bool:
        return srm_id in self.classes

    def is_relation(self, srm_id: str) -> bool:
        return srm_id in self.relations

    def __contains__(self, srm_id: object) -> bool:
        return srm_id in self.classes or srm_id in self.relations

    def class_name(self, class_id: str) -> str:
        invariant(class_id in self.classes, f"unknown SRM class id: {class_id}")
        return self.classes[class_id].name
