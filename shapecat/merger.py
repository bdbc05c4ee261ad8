"""Cross-zone merge of expanded catalog entries."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace

from shapecat.types import Catalog, CatalogEntry


def identity_key(entry: CatalogEntry) -> str:
    return str(entry.key)


def merge(per_zone: Mapping[str, Sequence[CatalogEntry]]) -> Catalog:
    """Fold entries with the same (name, vcpu, memory) into one.

    The first entry seen for a key supplies the sizing; each later zone
    offering the same variant is added to its zone list.
    """
    catalog: Catalog = {}
    for zone, entries in per_zone.items():
        for entry in entries:
            key = identity_key(entry)
            existing = catalog.get(key)
            if existing is None:
                catalog[key] = entry
            elif zone not in existing.zones:
                catalog[key] = replace(existing, zones=(*existing.zones, zone))
    return catalog
