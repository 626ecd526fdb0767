# mechanics.py
from __future__ import annotations
from typing import FrozenSet, List

from cards import CardRecord
from constants import MECHANIC_KEYWORDS, SORCERY_KEYWORD_ABILITIES
from sorcery_vocab import Category


def detect_card_mechanics(card: CardRecord) -> FrozenSet[str]:
    """
    Mechanic tags for one card. A tag applies when any of its phrases shows up
    in the rules text or subtype line; Equipment/Weapon subtypes, minion-buffing
    auras and damage magics are tagged even without a phrase hit.
    """
    text = (card.text + " " + card.subtype_label).lower()

    matched: set[str] = set()

    # 1) Phrase-based mechanics
    for mechanic, words in MECHANIC_KEYWORDS.items():
        for kw in words:
            if kw in text:
                matched.add(mechanic)
                break  # don't double count within one mechanic

    # 2) Broad backups from the card's shape
    if card.has_subtype("equipment") or card.has_subtype("weapon"):
        matched.add("equipment")
    if card.category is Category.AURA and "minion" in text and "+" in text:
        matched.add("minion_boost")
    if card.category is Category.MAGIC and "damage" in text:
        matched.add("direct_damage")

    return frozenset(matched)


def keyword_abilities(card: CardRecord) -> List[str]:
    """Printed keyword abilities in SORCERY_KEYWORD_ABILITIES order."""
    text = card.text_lower
    return [kw.rstrip(" +") for kw in SORCERY_KEYWORD_ABILITIES if kw in text]
