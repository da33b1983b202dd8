"""
Filtered views over the equipment table for the item list.

A view is a tuple of :data:`EquipmentIndex` into the owned table, never a copy
of rows: table position is the item's identity everywhere else in the game.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import FrozenSet, List, Optional, Sequence, Tuple

from .data import Equipment, EquipmentIndex, EquipmentTable, EquipmentType

PLACEHOLDER_NAMES: FrozenSet[str] = frozenset({"NONE", "Dummy", "ダミー"})

# Accessories are the last block in the table; nothing after them bounds the window.
TERMINAL_TYPE = EquipmentType.ACCESSORY
# Two cloth armors (Summer Tweed, Bikini Armor) sit far ahead of the rest of
# their block, so windowing would pull in other blocks' dummies.
PLACEHOLDER_LOCKED_TYPES: FrozenSet[EquipmentType] = frozenset({EquipmentType.CLOTH_ARMOR})
UNUSED_TYPE = EquipmentType.FIST


def is_placeholder_name(name: str) -> bool:
    return name in PLACEHOLDER_NAMES


@dataclass(frozen=True)
class CatalogView:
    category: Optional[EquipmentType]
    include_placeholders: bool
    placeholders_toggle_enabled: bool
    indices: Tuple[EquipmentIndex, ...]
    selected_position: Optional[int]

    def __len__(self) -> int:
        return len(self.indices)

    @property
    def selected_index(self) -> Optional[EquipmentIndex]:
        if self.selected_position is None:
            return None
        return self.indices[self.selected_position]

    def select_position(self, position: int) -> "CatalogView":
        if not 0 <= position < len(self.indices):
            raise IndexError(f"List position {position} out of range ({len(self.indices)} items)")
        return replace(self, selected_position=position)

    def restore_selection(self, index: Optional[EquipmentIndex]) -> "CatalogView":
        """Reselect ``index`` by identity; stays on position 0 if it is gone."""
        if index is None or index not in self.indices:
            return self
        return replace(self, selected_position=self.indices.index(index))

    def rows(self, table: EquipmentTable) -> List[Equipment]:
        return table.resolve(self.indices)


def effective_include_placeholders(
    category: Optional[EquipmentType], include_placeholders: bool
) -> Tuple[bool, bool]:
    """Return ``(include_placeholders, toggle_enabled)`` after the cloth-armor lock."""
    if category in PLACEHOLDER_LOCKED_TYPES:
        return False, False
    return include_placeholders, True


def _window(
    records: Sequence[Equipment], category: EquipmentType
) -> List[EquipmentIndex]:
    first = next((pos for pos, item in enumerate(records) if item.type == category), None)
    if first is None:
        return []
    boundary = len(records)
    if category != TERMINAL_TYPE:
        for pos in range(first, len(records)):
            kind = records[pos].type
            if kind != category and kind != EquipmentType.DUMMY:
                boundary = pos
                break
    return [
        EquipmentIndex(pos)
        for pos in range(first, boundary)
        if records[pos].type in (category, EquipmentType.DUMMY)
    ]


def project_catalog(
    table: EquipmentTable,
    category: Optional[EquipmentType],
    include_placeholders: bool = False,
) -> CatalogView:
    """
    Select the rows the item list shows for a filter.

    ``category`` of ``None`` (or DUMMY, which occupies the "All" slot of the
    filter dropdown) means every row. With placeholders included, a concrete
    category shows its contiguous block of the table, dummies interleaved,
    rather than every dummy in the game.
    """
    if category == EquipmentType.DUMMY:
        category = None
    include, toggle_enabled = effective_include_placeholders(category, include_placeholders)
    records = table.records

    if category is None:
        indices = list(table.indices())
    elif category == UNUSED_TYPE:
        indices = []
    elif include:
        indices = _window(records, category)
    else:
        indices = [EquipmentIndex(pos) for pos, item in enumerate(records) if item.type == category]

    if not include:
        indices = [i for i in indices if not is_placeholder_name(records[i].name)]

    return CatalogView(
        category=category,
        include_placeholders=include,
        placeholders_toggle_enabled=toggle_enabled,
        indices=tuple(indices),
        selected_position=0 if indices else None,
    )


def refresh_catalog(table: EquipmentTable, view: CatalogView) -> CatalogView:
    """Rerun ``view``'s query after edits, keeping the selected item if still listed."""
    fresh = project_catalog(table, view.category, view.include_placeholders)
    return fresh.restore_selection(view.selected_index)
