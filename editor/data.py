from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, NewType, Optional, Sequence, Tuple

from .text import encode_text

EquipmentIndex = NewType("EquipmentIndex", int)

FORGE_MAXIMUM = 6  # game design limit on forge slots, filled or open
FORGE_SLOT_COUNT = 6
REQUIREMENT_COUNT = 3
STAT_BONUS_COUNT = 8

DUMMY_NAME = "ダミー"
# Editable form of the description the game ships for unused rows.
DUMMY_DESCRIPTION = "ダミー[80 01]"


class EquipmentType(IntEnum):
    DUMMY = 0
    SWORD = 1
    KATANA = 2
    KNIFE = 3
    SPEAR = 4
    RAPIER = 5
    STAFF = 6
    BOW = 7
    CROSSBOW = 8
    FIST = 9  # no retail rows use this type
    HEAVY_ARMOR = 10
    LIGHT_ARMOR = 11
    CLOTH_ARMOR = 12
    SHIELD = 13
    HEADGEAR = 14
    GLOVES = 15
    BOOTS = 16
    ACCESSORY = 17


WEAPON_TYPES = frozenset(
    t for t in EquipmentType if EquipmentType.SWORD <= t <= EquipmentType.FIST
)

EQUIPMENT_NAMES_SINGULAR: Dict[EquipmentType, str] = {
    EquipmentType.DUMMY: "Dummy",
    EquipmentType.SWORD: "Sword",
    EquipmentType.KATANA: "Katana",
    EquipmentType.KNIFE: "Knife",
    EquipmentType.SPEAR: "Spear",
    EquipmentType.RAPIER: "Rapier",
    EquipmentType.STAFF: "Staff",
    EquipmentType.BOW: "Bow",
    EquipmentType.CROSSBOW: "Crossbow",
    EquipmentType.FIST: "Fist",
    EquipmentType.HEAVY_ARMOR: "Heavy Armor",
    EquipmentType.LIGHT_ARMOR: "Light Armor",
    EquipmentType.CLOTH_ARMOR: "Cloth Armor",
    EquipmentType.SHIELD: "Shield",
    EquipmentType.HEADGEAR: "Headgear",
    EquipmentType.GLOVES: "Gloves",
    EquipmentType.BOOTS: "Boots",
    EquipmentType.ACCESSORY: "Accessory",
}

EQUIPMENT_NAMES_PLURAL: Dict[EquipmentType, str] = {
    EquipmentType.DUMMY: "Dummies",
    EquipmentType.SWORD: "Swords",
    EquipmentType.KATANA: "Katanas",
    EquipmentType.KNIFE: "Knives",
    EquipmentType.SPEAR: "Spears",
    EquipmentType.RAPIER: "Rapiers",
    EquipmentType.STAFF: "Staves",
    EquipmentType.BOW: "Bows",
    EquipmentType.CROSSBOW: "Crossbows",
    EquipmentType.FIST: "Fists",
    EquipmentType.HEAVY_ARMOR: "Heavy Armor",
    EquipmentType.LIGHT_ARMOR: "Light Armor",
    EquipmentType.CLOTH_ARMOR: "Cloth Armor",
    EquipmentType.SHIELD: "Shields",
    EquipmentType.HEADGEAR: "Headgear",
    EquipmentType.GLOVES: "Gloves",
    EquipmentType.BOOTS: "Boots",
    EquipmentType.ACCESSORY: "Accessories",
}


def filter_choices() -> List[Tuple[Optional[EquipmentType], str]]:
    """Return the filter dropdown entries: "All equipment" then every real type."""
    choices: List[Tuple[Optional[EquipmentType], str]] = [(None, "All equipment")]
    for kind, plural in EQUIPMENT_NAMES_PLURAL.items():
        if kind is EquipmentType.DUMMY:
            continue
        choices.append((kind, plural))
    return choices


class Stat(IntEnum):
    HP = 0
    TP = 1
    STR = 2
    TEC = 3
    VIT = 4
    WIS = 5
    AGI = 6
    LUC = 7


class CharacterClass(IntFlag):
    PRINCESS = 1 << 0
    GLADIATOR = 1 << 1
    HOPLITE = 1 << 2
    BUCCANEER = 1 << 3
    NINJA = 1 << 4
    MONK = 1 << 5
    ZODIAC = 1 << 6
    WILDLING = 1 << 7
    ARBALIST = 1 << 8
    FARMER = 1 << 9
    SHOGUN = 1 << 10
    YGGDROID = 1 << 11


PLAYABLE_CLASSES: Tuple[CharacterClass, ...] = tuple(
    CharacterClass(1 << bit) for bit in range(12)
)
ALL_CLASSES = CharacterClass(0xFFF)
NO_CLASSES = CharacterClass(0)


class DamageType(IntFlag):
    CUT = 1 << 0
    STAB = 1 << 1
    BASH = 1 << 2
    FIRE = 1 << 3
    ICE = 1 << 4
    VOLT = 1 << 5
    ALMIGHTY = 1 << 6
    NO_PENALTY = 1 << 7


class EquipmentFlags(IntFlag):
    RARE = 1 << 0  # gold icon in shop and inventory lists
    CAN_SELL_OUT = 1 << 1  # consumes materials when bought
    STARTER = 1 << 2


class ForgeType(IntEnum):
    NONE = 0
    ATK = 1
    TEC = 2
    ACCURACY = 3
    SPEED = 4
    FIRE = 5
    ICE = 6
    VOLT = 7
    POISON = 8
    BLIND = 9
    SLEEP = 10
    CONFUSE = 11
    PARALYZE = 12
    STUN = 13
    HEAD_BIND = 14
    ARM_BIND = 15
    LEG_BIND = 16
    INSTANT_DEATH = 17
    PETRIFY = 18


FORGE_TYPE_STRINGS: Dict[ForgeType, str] = {
    ForgeType.NONE: "(none)",
    ForgeType.ATK: "ATK Up",
    ForgeType.TEC: "TEC Up",
    ForgeType.ACCURACY: "Accuracy Up",
    ForgeType.SPEED: "Speed Up",
    ForgeType.FIRE: "Fire",
    ForgeType.ICE: "Ice",
    ForgeType.VOLT: "Volt",
    ForgeType.POISON: "Poison",
    ForgeType.BLIND: "Blind",
    ForgeType.SLEEP: "Sleep",
    ForgeType.CONFUSE: "Confuse",
    ForgeType.PARALYZE: "Paralyze",
    ForgeType.STUN: "Stun",
    ForgeType.HEAD_BIND: "Head Bind",
    ForgeType.ARM_BIND: "Arm Bind",
    ForgeType.LEG_BIND: "Leg Bind",
    ForgeType.INSTANT_DEATH: "Instant Death",
    ForgeType.PETRIFY: "Petrify",
}


@dataclass
class StatBonuses:
    """The eight stat bonus words, addressed by :class:`Stat`."""

    values: List[int] = field(default_factory=lambda: [0] * STAT_BONUS_COUNT)

    def __post_init__(self) -> None:
        if len(self.values) != STAT_BONUS_COUNT:
            raise ValueError(
                f"Stat bonus vector must have {STAT_BONUS_COUNT} entries (got {len(self.values)})"
            )

    def __getitem__(self, stat: Stat) -> int:
        return self.values[stat]

    def __setitem__(self, stat: Stat, value: int) -> None:
        self.values[stat] = int(value)

    def items(self) -> Iterator[Tuple[Stat, int]]:
        for stat in Stat:
            yield stat, self.values[stat]


@dataclass(frozen=True)
class MaterialRequirement:
    item_index: int = 0
    amount: int = 0

    @property
    def is_unused(self) -> bool:
        return self.item_index == 0 and self.amount == 0


def _default_requirements() -> List[MaterialRequirement]:
    return [MaterialRequirement() for _ in range(REQUIREMENT_COUNT)]


def _default_forges() -> List[ForgeType]:
    return [ForgeType.NONE] * FORGE_SLOT_COUNT


@dataclass
class Equipment:
    index: int
    name: str
    type: EquipmentType = EquipmentType.DUMMY
    patk: int = 0
    matk: int = 0
    pdef: int = 0
    mdef: int = 0
    accuracy: int = 0
    price: int = 0
    stat_bonuses: StatBonuses = field(default_factory=StatBonuses)
    classes: CharacterClass = NO_CLASSES
    damage_types: DamageType = DamageType(0)
    forges: List[ForgeType] = field(default_factory=_default_forges)
    forge_slots: int = 0
    requirements: List[MaterialRequirement] = field(default_factory=_default_requirements)
    flags: EquipmentFlags = EquipmentFlags(0)
    description: bytes = b""

    def __post_init__(self) -> None:
        self.type = EquipmentType(self.type)
        if len(self.forges) != FORGE_SLOT_COUNT:
            raise ValueError(
                f"Equipment {self.index}: expected {FORGE_SLOT_COUNT} forge slots (got {len(self.forges)})"
            )
        self.forges = [ForgeType(forge) for forge in self.forges]
        if len(self.requirements) != REQUIREMENT_COUNT:
            raise ValueError(
                f"Equipment {self.index}: expected {REQUIREMENT_COUNT} requirements (got {len(self.requirements)})"
            )
        if self.forge_slots < 0 or self.forge_slots + self.assigned_forge_count() > FORGE_MAXIMUM:
            raise ValueError(
                f"Equipment {self.index}: {self.forge_slots} open forge slots plus "
                f"{self.assigned_forge_count()} assigned exceeds {FORGE_MAXIMUM}"
            )

    @property
    def identity(self) -> EquipmentIndex:
        return EquipmentIndex(self.index)

    @property
    def is_weapon(self) -> bool:
        return self.type in WEAPON_TYPES

    # ------------------------------------------------------------------#
    # ATK/DEF pairs
    # ------------------------------------------------------------------#
    def primary_stat_labels(self) -> Tuple[str, str]:
        if self.is_weapon:
            return "PATK", "MATK"
        return "PDEF", "MDEF"

    def primary_stats(self) -> Tuple[int, int]:
        """Return the physical/magic pair that applies to this item's type."""
        if self.is_weapon:
            return self.patk, self.matk
        return self.pdef, self.mdef

    def set_primary_stats(self, physical: int, magic: int) -> None:
        if self.is_weapon:
            self.patk, self.matk = int(physical), int(magic)
        else:
            self.pdef, self.mdef = int(physical), int(magic)

    # ------------------------------------------------------------------#
    # Class permissions / damage types
    # ------------------------------------------------------------------#
    def can_equip(self, klass: CharacterClass) -> bool:
        return bool(self.classes & klass)

    def set_can_equip(self, klass: CharacterClass, allowed: bool) -> None:
        if allowed:
            self.classes |= klass
        else:
            self.classes &= ~klass

    def equippable_classes(self) -> List[CharacterClass]:
        return [klass for klass in PLAYABLE_CLASSES if self.classes & klass]

    def has_damage_type(self, damage: DamageType) -> bool:
        return bool(self.damage_types & damage)

    def set_damage_type(self, damage: DamageType, enabled: bool) -> None:
        if enabled:
            self.damage_types |= damage
        else:
            self.damage_types &= ~damage

    def set_flag(self, flag: EquipmentFlags, enabled: bool) -> None:
        if enabled:
            self.flags |= flag
        else:
            self.flags &= ~flag

    # ------------------------------------------------------------------#
    # Forges
    # ------------------------------------------------------------------#
    def assigned_forge_count(self) -> int:
        return sum(1 for forge in self.forges if forge is not ForgeType.NONE)

    def open_forge_slot_limit(self, maximum: int = FORGE_MAXIMUM) -> int:
        return max(0, maximum - self.assigned_forge_count())

    def set_forge(self, slot: int, forge: ForgeType, maximum: int = FORGE_MAXIMUM) -> None:
        """Assign ``forge`` to ``slot``, shrinking open slots first if needed."""
        if not 0 <= slot < FORGE_SLOT_COUNT:
            raise IndexError(f"Forge slot {slot} out of range (0-{FORGE_SLOT_COUNT - 1})")
        forge = ForgeType(forge)
        assigned = self.assigned_forge_count()
        if self.forges[slot] is ForgeType.NONE and forge is not ForgeType.NONE:
            assigned += 1
        elif self.forges[slot] is not ForgeType.NONE and forge is ForgeType.NONE:
            assigned -= 1
        if assigned > maximum:
            raise ValueError(
                f"Equipment {self.index}: cannot assign {assigned} forges (limit {maximum})"
            )
        self.forges[slot] = forge
        if self.forge_slots > maximum - assigned:
            self.forge_slots = maximum - assigned

    def set_open_forge_slots(self, count: int, maximum: int = FORGE_MAXIMUM) -> int:
        """Set the open forge slot count, clamped like the numeric stepper."""
        self.forge_slots = max(0, min(int(count), self.open_forge_slot_limit(maximum)))
        return self.forge_slots

    def clamp_forge_slots(self, maximum: int) -> int:
        """Reduce open slots to fit a (possibly lowered) capacity."""
        assigned = self.assigned_forge_count()
        if assigned > maximum:
            raise ValueError(
                f"Equipment {self.index}: {assigned} assigned forges exceed new limit {maximum}"
            )
        if self.forge_slots > maximum - assigned:
            self.forge_slots = maximum - assigned
        return self.forge_slots

    # ------------------------------------------------------------------#
    # Requirements
    # ------------------------------------------------------------------#
    def set_requirement(self, position: int, item_index: int, amount: int) -> None:
        if not 0 <= position < REQUIREMENT_COUNT:
            raise IndexError(f"Requirement position {position} out of range (0-{REQUIREMENT_COUNT - 1})")
        self.requirements[position] = MaterialRequirement(int(item_index), int(amount))

    def requirement_labels(self, use_item_names: Sequence[str]) -> List[str]:
        labels: List[str] = []
        for requirement in self.requirements:
            if requirement.is_unused:
                labels.append("—")
                continue
            if 0 <= requirement.item_index < len(use_item_names):
                name = use_item_names[requirement.item_index]
            else:
                name = f"<item {requirement.item_index}>"
            labels.append(f"{name} ×{requirement.amount}")
        return labels

    # ------------------------------------------------------------------#
    # Snapshot (de)serialisation
    # ------------------------------------------------------------------#
    def to_dict(self) -> Dict[str, object]:
        return {
            "index": self.index,
            "name": self.name,
            "type": self.type.name,
            "patk": self.patk,
            "matk": self.matk,
            "pdef": self.pdef,
            "mdef": self.mdef,
            "accuracy": self.accuracy,
            "price": self.price,
            "stat_bonuses": list(self.stat_bonuses.values),
            "classes": int(self.classes),
            "damage_types": int(self.damage_types),
            "forges": [forge.name for forge in self.forges],
            "forge_slots": self.forge_slots,
            "requirements": [[req.item_index, req.amount] for req in self.requirements],
            "flags": int(self.flags),
            "description": self.description.hex(),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, object]) -> "Equipment":
        return cls(
            index=int(raw["index"]),
            name=str(raw.get("name", "")),
            type=EquipmentType[str(raw.get("type", "DUMMY"))],
            patk=int(raw.get("patk", 0)),
            matk=int(raw.get("matk", 0)),
            pdef=int(raw.get("pdef", 0)),
            mdef=int(raw.get("mdef", 0)),
            accuracy=int(raw.get("accuracy", 0)),
            price=int(raw.get("price", 0)),
            stat_bonuses=StatBonuses(list(raw.get("stat_bonuses", [0] * STAT_BONUS_COUNT))),
            classes=CharacterClass(int(raw.get("classes", 0))),
            damage_types=DamageType(int(raw.get("damage_types", 0))),
            forges=[ForgeType[name] for name in raw.get("forges", ["NONE"] * FORGE_SLOT_COUNT)],
            forge_slots=int(raw.get("forge_slots", 0)),
            requirements=[
                MaterialRequirement(int(item), int(amount))
                for item, amount in raw.get("requirements", [[0, 0]] * REQUIREMENT_COUNT)
            ],
            flags=EquipmentFlags(int(raw.get("flags", 0))),
            description=bytes.fromhex(str(raw.get("description", ""))),
        )


@dataclass
class EquipmentTable:
    """The master equipment table; row position doubles as identity."""

    path: Optional[Path]
    records: List[Equipment]

    def __post_init__(self) -> None:
        for position, record in enumerate(self.records):
            if record.index != position:
                raise ValueError(
                    f"Equipment at position {position} carries index {record.index}; "
                    "table order is identity and must match"
                )

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Equipment]:
        return iter(self.records)

    def __getitem__(self, index: EquipmentIndex) -> Equipment:
        if not 0 <= index < len(self.records):
            raise IndexError(f"Equipment index {index} out of range (0-{len(self.records) - 1})")
        return self.records[index]

    def indices(self) -> Tuple[EquipmentIndex, ...]:
        return tuple(EquipmentIndex(i) for i in range(len(self.records)))

    def resolve(self, indices: Iterable[EquipmentIndex]) -> List[Equipment]:
        return [self[i] for i in indices]

    @classmethod
    def load_json(cls, path: Path) -> "EquipmentTable":
        payload = json.loads(path.read_text(encoding="utf-8"))
        rows = payload["equipment"] if isinstance(payload, dict) else payload
        return cls(path=path, records=[Equipment.from_dict(row) for row in rows])

    def save_json(self, path: Optional[Path] = None) -> None:
        target = path or self.path
        if target is None:
            raise ValueError("No path supplied for saving EquipmentTable.")
        payload = {"equipment": [record.to_dict() for record in self.records]}
        target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def pad_text_tables(
    table_len: int, names: List[str], descriptions: List[bytes]
) -> Tuple[int, int]:
    """
    Pad the name and description lists so both cover every equipment row.

    The game ships name/description resources that can be shorter than the
    equipment table; missing rows get the stock dummy entries. Returns the
    number of names and descriptions added.
    """
    added_names = 0
    while len(names) < table_len:
        names.append(DUMMY_NAME)
        added_names += 1

    added_descriptions = 0
    if len(descriptions) < table_len:
        dummy = encode_text(DUMMY_DESCRIPTION)
        while len(descriptions) < table_len:
            descriptions.append(dummy)
            added_descriptions += 1
    return added_names, added_descriptions
