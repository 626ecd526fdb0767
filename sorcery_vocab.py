from __future__ import annotations
from enum import Enum, IntEnum, auto
from typing import Optional


class Category(Enum):
    AVATAR = "Avatar"
    SITE = "Site"
    MINION = "Minion"
    MAGIC = "Magic"
    ARTIFACT = "Artifact"
    AURA = "Aura"

    @classmethod
    def parse(cls, raw) -> Optional["Category"]:
        if isinstance(raw, cls):
            return raw
        label = str(raw or "").strip().lower()
        for member in cls:
            if member.value.lower() == label:
                return member
        return None

    @property
    def is_spell(self) -> bool:
        return self in SPELL_CATEGORIES


SPELL_CATEGORIES = frozenset({Category.MINION, Category.MAGIC, Category.ARTIFACT, Category.AURA})


class Element(Enum):
    # declaration order is the canonical tie-break order
    WATER = "Water"
    FIRE = "Fire"
    EARTH = "Earth"
    AIR = "Air"
    VOID = "Void"

    @classmethod
    def parse(cls, raw) -> Optional["Element"]:
        if isinstance(raw, cls):
            return raw
        label = str(raw or "").strip().lower()
        for member in cls:
            if member.value.lower() == label:
                return member
        return None


ELEMENT_ORDER = tuple(Element)


class Rarity(Enum):
    ORDINARY = "Ordinary"
    EXCEPTIONAL = "Exceptional"
    ELITE = "Elite"
    UNIQUE = "Unique"

    @classmethod
    def parse(cls, raw) -> "Rarity":
        label = str(raw or "").strip().lower()
        for member in cls:
            if member.value.lower() == label:
                return member
        return cls.ORDINARY


class BuildStatus(Enum):
    COMPLETE = auto()
    INSUFFICIENT_POOL = auto()


class BuilderState(IntEnum):
    SELECTING_AVATAR = auto()
    SELECTING_SITES = auto()
    SELECTING_SPELLS = auto()
    DONE = auto()
