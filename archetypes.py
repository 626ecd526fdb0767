# archetypes.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from card_features import is_control_spell
from cards import CardRecord
from constants import (
    AGGRO_LOW_COST_SHARE,
    AGGRO_MAX_COST,
    CONTROL_SPELL_SHARE,
    MIDRANGE_COST_RANGE,
    MIDRANGE_SHARE,
)


@dataclass(frozen=True)
class ArchetypeMatch:
    name: str
    strength: float
    cards: Tuple[CardRecord, ...] = ()


def identify_deck_archetypes(cards: Sequence[CardRecord], combos: Sequence = ()) -> List[ArchetypeMatch]:
    """
    Label the play pattern of a finished (or partial) spellbook.

    A deck can match several archetypes; strength is the share of the deck
    that backs the label, in [0, 1]. Sorted strongest first.
    """
    spells = [c for c in cards if c.is_spell]
    total = len(spells)
    if total == 0:
        return []

    matches: List[ArchetypeMatch] = []

    # --- Control: lots of magics / auras ---
    control = [c for c in spells if is_control_spell(c)]
    if len(control) / total > CONTROL_SPELL_SHARE:
        matches.append(ArchetypeMatch("Control", len(control) / total, tuple(control)))

    # --- Aggro: low curve ---
    cheap = [c for c in spells if c.cost <= AGGRO_MAX_COST]
    if len(cheap) / total > AGGRO_LOW_COST_SHARE:
        matches.append(ArchetypeMatch("Aggro", len(cheap) / total, tuple(cheap)))

    # --- Midrange: the middle of the curve carries the deck ---
    lo, hi = MIDRANGE_COST_RANGE
    middle = [c for c in spells if lo <= c.cost <= hi]
    if len(middle) / total > MIDRANGE_SHARE:
        matches.append(ArchetypeMatch("Midrange", len(middle) / total, tuple(middle)))

    # --- Combo: any detected combo at all ---
    if combos:
        members = []
        seen = set()
        for combo in combos:
            for c in combo.cards:
                if c.base_name not in seen:
                    seen.add(c.base_name)
                    members.append(c)
        strength = min(1.0, len(combos) / 5.0)
        matches.append(ArchetypeMatch("Combo", strength, tuple(members)))

    matches.sort(key=lambda m: -m.strength)
    return matches
