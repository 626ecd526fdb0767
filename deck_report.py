from __future__ import annotations
from typing import Sequence

import pandas as pd

from archetypes import identify_deck_archetypes
from combos import ComboInstance
from constants import DEFAULT_ALLOCATION
from deck_builder import Spellbook
from mechanics import keyword_abilities
from scoring import compute_curve_metrics

SPELLBOOK_COLUMNS = [
    "step", "name", "base_name", "category", "pool", "cost", "elements", "keywords",
    "elemental", "mechanical", "cost_curve", "combo", "total",
]


def spellbook_frame(book: Spellbook) -> pd.DataFrame:
    """One row per pick, in pick order, with the breakdown that justified it."""
    rows = []
    for pick in book.picks:
        card = pick.card
        row = {
            "step": pick.step,
            "name": card.name,
            "base_name": card.base_name,
            "category": card.category.value,
            "pool": pick.pool.value,
            "cost": card.cost,
            "elements": ",".join(el.value for el in card.sorted_elements()),
            "keywords": ",".join(keyword_abilities(card)),
        }
        row.update(pick.breakdown.as_dict())
        rows.append(row)
    return pd.DataFrame(rows, columns=SPELLBOOK_COLUMNS)


def combo_frame(combos: Sequence[ComboInstance]) -> pd.DataFrame:
    rows = [
        {
            "pattern": c.pattern,
            "group": "" if c.group is None else str(c.group),
            "count": c.count,
            "synergy": c.synergy,
            "cards": ", ".join(card.name for card in c.cards),
            "description": c.description,
        }
        for c in combos
    ]
    return pd.DataFrame(rows, columns=["pattern", "group", "count", "synergy", "cards", "description"])


def category_balance(book: Spellbook) -> pd.DataFrame:
    """Actual vs. indicative allocation per spell category (scaled to the target size)."""
    planned_total = sum(DEFAULT_ALLOCATION.values())
    counts = book.category_counts
    rows = []
    for cat, n in counts.items():
        planned = DEFAULT_ALLOCATION.get(cat.value, 0) * book.target_size / planned_total
        rows.append({"category": cat.value, "count": n, "planned": round(planned, 1), "delta": n - round(planned, 1)})
    return pd.DataFrame(rows, columns=["category", "count", "planned", "delta"])


def describe_spellbook(book: Spellbook, top_combos: int = 5) -> str:
    """
    Produce a short 'how it plays' summary: status, avatar, curve, archetypes,
    the strongest combos, threshold gaps and legality errors.
    """
    frame = spellbook_frame(book)
    curve = compute_curve_metrics(frame)
    combos = list(book.combos or ())
    archetypes = identify_deck_archetypes(book.spells, combos)

    lines = []
    avatar = book.avatar.name if book.avatar is not None else "no avatar"
    lines.append(f"{avatar}: {len(book.spells)}/{book.target_size} spells, {len(book.sites)} sites ({book.status.name})")
    if book.insufficient_pool:
        lines.append(f"Pool ran dry {book.shortfall} card(s) short of a full spellbook.")
    if book.site_shortfall:
        lines.append(f"Atlas is {book.site_shortfall} site(s) short of {book.site_target}.")

    counts = ", ".join(f"{cat.value} {n}" for cat, n in book.category_counts.items())
    lines.append(f"Categories: {counts}")

    if curve["avg_cost"] is not None:
        lines.append(
            f"Curve: average cost {curve['avg_cost']:.2f}, "
            f"{curve['low_frac']:.0%} at 0-2, {curve['high_frac']:.0%} at 6+, "
            f"peak at {curve['peak']}, {curve['ideal_gap']:.0%} off the target curve"
        )

    if archetypes:
        labels = ", ".join(f"{a.name} ({a.strength:.0%})" for a in archetypes)
        lines.append(f"Plays like: {labels}")
    else:
        lines.append("Plays like: no clear archetype")

    if combos:
        ranked = sorted(combos, key=lambda c: -c.synergy)[:top_combos]
        lines.append("Key combos:")
        for c in ranked:
            lines.append(f"  - {c.description} [{c.synergy:.1f}]")

    for el, missing in book.elements.shortfalls.items():
        lines.append(f"Warning: sites are {missing} short of the {el.value} threshold.")

    for problem in book.validation.errors:
        lines.append(f"Error: {problem}")

    if book.pattern_failures:
        names = ", ".join(f.pattern_name for f in book.pattern_failures)
        lines.append(f"Skipped combo patterns: {names}")

    lines.append(f"Total pick synergy: {book.total_synergy:.2f}")
    return "\n".join(lines)
