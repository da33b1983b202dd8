#!/usr/bin/env python3
"""
Inspect an EO3 equipment table snapshot the way the editor's item list sees it.

The snapshot is the JSON written by ``EquipmentTable.save_json``. Use
``--filter`` to reproduce a category view (including the placeholder window
for a category) and ``--json`` to emit the rows for scripting.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional

sys.path.append(str(Path(__file__).resolve().parents[1]))

from editor.catalog import CatalogView, project_catalog
from editor.data import (
    EQUIPMENT_NAMES_PLURAL,
    EQUIPMENT_NAMES_SINGULAR,
    Equipment,
    EquipmentTable,
    EquipmentType,
)
from editor.text import DecodeError, decode_text

log = logging.getLogger(__name__)


def parse_filter(value: str) -> Optional[EquipmentType]:
    """Accept "all", an enum name (``cloth_armor``) or a numeric type id."""
    key = value.strip().upper().replace(" ", "_").replace("-", "_")
    if key in ("ALL", ""):
        return None
    if key.isdigit():
        return EquipmentType(int(key))
    try:
        return EquipmentType[key]
    except KeyError:
        raise argparse.ArgumentTypeError(f"unknown equipment type {value!r}") from None


def describe_row(item: Equipment) -> Dict[str, object]:
    row = item.to_dict()
    physical, magic = item.primary_stats()
    labels = item.primary_stat_labels()
    row["type_name"] = EQUIPMENT_NAMES_SINGULAR[item.type]
    row[labels[0]] = physical
    row[labels[1]] = magic
    try:
        row["description_text"] = decode_text(item.description).to_editable()
    except DecodeError as exc:
        log.warning("Row %d: %s", item.index, exc)
        row["description_text"] = None
    return row


def summarise(table: EquipmentTable, view: CatalogView) -> str:
    lines: List[str] = []
    label = "All equipment" if view.category is None else EQUIPMENT_NAMES_PLURAL[view.category]
    lines.append(f"Filter        : {label}")
    lines.append(
        f"Placeholders  : {'included' if view.include_placeholders else 'hidden'}"
        + ("" if view.placeholders_toggle_enabled else " (locked for this category)")
    )
    lines.append(f"Rows          : {len(view)} of {len(table)}")
    lines.append("")
    for item in view.rows(table):
        physical, magic = item.primary_stats()
        p_label, m_label = item.primary_stat_labels()
        lines.append(
            f"  [{item.index:4}] {item.name:<24} {EQUIPMENT_NAMES_SINGULAR[item.type]:<12} "
            f"{p_label} {physical:4} {m_label} {magic:4} price {item.price:6} "
            f"forges {item.assigned_forge_count()}+{item.forge_slots}"
        )
    type_counts = Counter(EQUIPMENT_NAMES_SINGULAR[item.type] for item in view.rows(table))
    if type_counts:
        lines.append("")
        lines.append(
            "Types: " + ", ".join(f"{name}×{count}" for name, count in type_counts.most_common())
        )
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Inspect an EO3 equipment table snapshot through the catalog filter."
    )
    parser.add_argument("table", type=Path, help="Path to an equipment JSON snapshot")
    parser.add_argument(
        "--filter",
        type=parse_filter,
        default=None,
        help="Equipment type to show (e.g. sword, cloth_armor, accessory); default all",
    )
    parser.add_argument(
        "--include-placeholders",
        action="store_true",
        help="Keep dummy rows (for a type: its block of the table, dummies included).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit structured JSON instead of the human-readable summary.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        table = EquipmentTable.load_json(args.table)
    except (OSError, ValueError, KeyError) as exc:
        print(f"Error: failed to load {args.table}: {exc}", file=sys.stderr)
        return 1
    log.debug("Loaded %d equipment rows from %s", len(table), args.table)

    view = project_catalog(table, args.filter, args.include_placeholders)
    if args.json:
        payload = {
            "filter": None if view.category is None else view.category.name,
            "include_placeholders": view.include_placeholders,
            "rows": [describe_row(item) for item in view.rows(table)],
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(summarise(table, view))
    return 0


if __name__ == "__main__":
    sys.exit(main())
