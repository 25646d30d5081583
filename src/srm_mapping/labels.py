"""Display labels for SRM elements, derived from the static catalog only."""

from __future__ import annotations

from .catalog import SrmCatalog
from .validation import invariant

ARROW = "→"


def build_display_label(srm_id: str, catalog: SrmCatalog, prefix: bool = False) -> str:
    if catalog.is_class(srm_id):
        name = catalog.class_name(srm_id)
        return f"class {name}" if prefix else name
    invariant(catalog.is_relation(srm_id), f"SRM id is neither a class nor a relation: {srm_id}")
    relation = catalog.relations[srm_id]
    label = (
        f"{relation.name} "
        f"({catalog.class_name(relation.from_class)} {ARROW} {catalog.class_name(relation.to_class)})"
    )
    return f"relation {label}" if prefix else label


def label_sort_key(label: str) -> tuple[str, str]:
    """Approximate English collation: case-folded label, then the exact label.

    Not locale-aware; accented and punctuation ordering may differ from a
    full collation table.
    """
    return label.casefold(), label
