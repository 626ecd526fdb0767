from __future__ import annotations
import re
from dataclasses import dataclass
from functools import cached_property
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from analysis_cache import sha256_hex, stable_json_dumps
from sorcery_vocab import Category, Element, Rarity, ELEMENT_ORDER

# Trailing printing markers such as "(Foil)" or " - Alpha" are not part of the base name
_PRINTING_SUFFIX = re.compile(r"\s*(\([^)]*\)|\s-\s.*)$")


# ─────────────────────────────────────────────────────────
# Card record
# ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CardRecord:
    # Identity
    name: str
    category: Category
    base_name: str = ""

    # Type / tags
    subtypes: Tuple[str, ...] = ()
    elements: FrozenSet[Element] = frozenset()

    # Costs
    cost: int = 0
    thresholds: Tuple[Tuple[Element, int], ...] = ()
    rarity: Rarity = Rarity.ORDINARY

    # Ability text
    text: str = ""

    def __post_init__(self):
        if not self.base_name:
            object.__setattr__(self, "base_name", base_name_for(self.name))
        if not isinstance(self.elements, frozenset):
            object.__setattr__(self, "elements", frozenset(self.elements))
        if isinstance(self.thresholds, dict):
            object.__setattr__(self, "thresholds", _threshold_tuple(self.thresholds))
        if isinstance(self.subtypes, str):
            object.__setattr__(self, "subtypes", tuple(s for s in self.subtypes.split() if s))
        elif not isinstance(self.subtypes, tuple):
            object.__setattr__(self, "subtypes", tuple(self.subtypes))

    @property
    def subtype_label(self) -> str:
        return " ".join(self.subtypes)

    @property
    def text_lower(self) -> str:
        return self.text.lower()

    @property
    def is_spell(self) -> bool:
        return self.category.is_spell

    def has_subtype(self, label: str) -> bool:
        label = label.lower()
        return any(s.lower() == label for s in self.subtypes)

    def threshold_for(self, element: Element) -> int:
        for el, amount in self.thresholds:
            if el is element:
                return amount
        return 0

    def sorted_elements(self) -> List[Element]:
        return [el for el in ELEMENT_ORDER if el in self.elements]

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "base_name": self.base_name,
            "category": self.category.value,
            "subtypes": list(self.subtypes),
            "elements": [el.value for el in self.sorted_elements()],
            "cost": self.cost,
            "thresholds": {el.value: amount for el, amount in self.thresholds},
            "rarity": self.rarity.value,
            "text": self.text,
        }

    @cached_property
    def fingerprint(self) -> str:
        return sha256_hex(stable_json_dumps(self.as_dict()))


def base_name_for(name: str) -> str:
    return _PRINTING_SUFFIX.sub("", name).strip() or name


def _threshold_tuple(amounts: Dict) -> Tuple[Tuple[Element, int], ...]:
    by_element = {Element.parse(key): int(value) for key, value in amounts.items()}
    return tuple((el, by_element[el]) for el in ELEMENT_ORDER if by_element.get(el, 0) > 0)


# ─────────────────────────────────────────────────────────
# Row adapters (already-decoded tabular data → CardRecord)
# ─────────────────────────────────────────────────────────

def _is_missing(raw) -> bool:
    return raw is None or (isinstance(raw, float) and pd.isna(raw))


def _as_list(raw) -> list:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, (tuple, set, frozenset)):
        return list(raw)
    if isinstance(raw, np.ndarray):
        return list(raw)
    if _is_missing(raw):
        return []
    if isinstance(raw, str):
        raw = raw.strip()
        if raw.startswith("[") and raw.endswith("]"):
            raw = raw[1:-1]
        return [s.strip(" '\"") for s in re.split(r"[,/;]", raw) if s.strip(" '\"")]
    try:
        return list(raw)
    except TypeError:
        return []


def _parse_elements(raw) -> FrozenSet[Element]:
    found = set()
    for item in _as_list(raw):
        for token in str(item).split():
            el = Element.parse(token)
            if el is not None:
                found.add(el)
    return frozenset(found)


def _parse_thresholds(row: pd.Series) -> Dict[Element, int]:
    amounts: Dict[Element, int] = {}

    raw = row.get("thresholds", row.get("threshold", None))
    if isinstance(raw, dict):
        for key, value in raw.items():
            el = Element.parse(key)
            if el is not None and not _is_missing(value):
                amounts[el] = amounts.get(el, 0) + int(value)
    else:
        # "Fire 2, Water 1" or ["Fire", "Fire", "Water"]
        for item in _as_list(raw):
            parts = str(item).split()
            el = Element.parse(parts[0]) if parts else None
            if el is None:
                continue
            qty = 1
            if len(parts) > 1:
                try:
                    qty = int(float(parts[1]))
                except ValueError:
                    qty = 1
            amounts[el] = amounts.get(el, 0) + qty

    # Wide format: one column per element, e.g. "fire_threshold"
    for el in ELEMENT_ORDER:
        value = row.get(f"{el.value.lower()}_threshold", None)
        if not _is_missing(value):
            try:
                amounts[el] = amounts.get(el, 0) + int(float(value))
            except (TypeError, ValueError):
                pass

    return {el: n for el, n in amounts.items() if n > 0}


def card_from_row(row: pd.Series) -> Optional[CardRecord]:
    """
    Convert one decoded card row into a CardRecord.

    Returns None for rows without a name or a recognisable category; the
    caller decides whether that is worth reporting.
    """
    name = str(row.get("name", "") or "").strip()
    category = Category.parse(row.get("category", row.get("type", "")))
    if not name or category is None:
        return None

    base_name = row.get("base_name", row.get("baseName", ""))
    base_name = "" if _is_missing(base_name) else str(base_name).strip()

    subtypes = tuple(str(s) for s in _as_list(row.get("subtypes", row.get("subtype", []))))
    if len(subtypes) == 1 and " " in subtypes[0]:
        subtypes = tuple(subtypes[0].split())

    elements = _parse_elements(row.get("elements", row.get("element", [])))
    thresholds = _parse_thresholds(row)
    # A threshold in an element implies the card belongs to that element
    elements = elements | frozenset(thresholds)

    try:
        raw_cost = row.get("cost", 0)
        cost = 0 if _is_missing(raw_cost) else max(0, int(float(raw_cost)))
    except (TypeError, ValueError):
        cost = 0

    text = row.get("text", row.get("rules_text", ""))
    text = "" if _is_missing(text) else str(text)

    return CardRecord(
        name=name,
        base_name=base_name,
        category=category,
        subtypes=subtypes,
        elements=elements,
        cost=cost,
        thresholds=_threshold_tuple(thresholds),
        rarity=Rarity.parse(row.get("rarity", "")),
        text=text,
    )


def cards_from_frame(df: pd.DataFrame) -> List[CardRecord]:
    cards = []
    for _, row in df.iterrows():
        card = card_from_row(row)
        if card is not None:
            cards.append(card)
    return cards


def cards_to_frame(cards: Iterable[CardRecord]) -> pd.DataFrame:
    return pd.DataFrame([c.as_dict() for c in cards])
