"""Pipeline helpers for normalizing, merging, filtering and labelling inventories."""

from __future__ import annotations

from .derive import label_fields
from .filter import filter_inventory
from .merge import merge_records
from .normalize import SCHEMA, coerce_schema, empty_inventory, normalize

__all__ = [
    "SCHEMA",
    "coerce_schema",
    "empty_inventory",
    "filter_inventory",
    "label_fields",
    "merge_records",
    "normalize",
]
