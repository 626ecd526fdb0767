from __future__ import annotations
from collections import Counter
from typing import List, Sequence

import numpy as np
import pandas as pd

from cards import CardRecord
from config import DEFAULT_SCORING, ScoringConfig
from constants import COMPLEMENTARY_MECHANICS, CURVE_HIGH_MIN, CURVE_LOW_MAX, CURVE_MAX_BUCKET
from mechanics import detect_card_mechanics
from sorcery_vocab import ELEMENT_ORDER, Element

# ─────────────────────────────────────────────────────────────
# Context profiles
# ─────────────────────────────────────────────────────────────

def element_counts(cards: Sequence[CardRecord]) -> Counter:
    counts: Counter = Counter()
    for card in cards:
        counts.update(card.elements)
    return counts


def dominant_elements(cards: Sequence[CardRecord], top: int = 2) -> List[Element]:
    """Most common elements in ``cards``; ties fall back to canonical element order."""
    counts = element_counts(cards)
    ranked = sorted(
        (el for el in ELEMENT_ORDER if counts[el] > 0),
        key=lambda el: (-counts[el], ELEMENT_ORDER.index(el)),
    )
    return ranked[:top]


def cost_bucket(cost: int) -> int:
    return min(max(int(cost), 0), CURVE_MAX_BUCKET)


def curve_distribution(cards: Sequence[CardRecord]) -> np.ndarray:
    costs = np.array([cost_bucket(c.cost) for c in cards], dtype=int)
    return np.bincount(costs, minlength=CURVE_MAX_BUCKET + 1)


def compute_curve_metrics(spells: pd.DataFrame, config: ScoringConfig = DEFAULT_SCORING) -> dict:
    """
    Shape of a spellbook's curve, read from its ``cost`` column.

    ``shares`` has one entry per cost bucket 0..CURVE_MAX_BUCKET, the last
    bucket holding everything above it. ``ideal_gap`` is half the L1
    distance to ``config.ideal_curve``: 0.0 is an exact match, 1.0 means no
    overlap at all.
    """
    costs = pd.to_numeric(spells["cost"], errors="coerce").dropna() if "cost" in spells.columns else pd.Series(dtype=float)
    if costs.empty:
        return {
            "avg_cost": None,
            "shares": [0.0] * (CURVE_MAX_BUCKET + 1),
            "peak": None,
            "ideal_gap": None,
            "low_frac": 0.0,
            "high_frac": 0.0,
        }

    buckets = np.clip(costs.to_numpy().astype(int), 0, CURVE_MAX_BUCKET)
    shares = np.bincount(buckets, minlength=CURVE_MAX_BUCKET + 1) / len(buckets)
    ideal = np.asarray(config.ideal_curve, dtype=float)

    return {
        "avg_cost": float(costs.mean()),
        "shares": [float(s) for s in shares],
        "peak": int(shares.argmax()),
        "ideal_gap": float(np.abs(shares - ideal).sum() / 2),
        "low_frac": float(shares[: CURVE_LOW_MAX + 1].sum()),
        "high_frac": float(shares[CURVE_HIGH_MIN:].sum()),
    }


# ─────────────────────────────────────────────────────────────
# Sub-scorers: (card, context) → non-negative float, pure
# ─────────────────────────────────────────────────────────────

def elemental_synergy(
    card: CardRecord,
    context: Sequence[CardRecord],
    config: ScoringConfig = DEFAULT_SCORING,
) -> float:
    """
    Reward element overlap with what the deck is already playing.

    Each element on the card adds its (capped) count in the context, at full
    weight for a dominant element and half weight otherwise. In strict mode an
    element the context doesn't play at all costs ``off_element_penalty``.
    """
    if not context or not card.elements:
        return 0.0

    counts = element_counts(context)
    dominant = set(dominant_elements(context, config.dominant_element_count))

    score = 0.0
    for el in card.sorted_elements():
        seen = min(counts[el], config.element_count_cap)
        if seen == 0:
            if config.elemental_strictness == "strict":
                score -= config.off_element_penalty
            continue
        weight = config.element_weight(el)
        if el not in dominant:
            weight *= 0.5
        score += seen * weight

    return max(0.0, score)


def mechanical_synergy(
    card: CardRecord,
    context: Sequence[CardRecord],
    config: ScoringConfig = DEFAULT_SCORING,
) -> float:
    if not context:
        return 0.0

    mine = detect_card_mechanics(card)
    if not mine:
        return 0.0

    counts: Counter = Counter()
    for other in context:
        counts.update(detect_card_mechanics(other))

    cap = config.mechanic_cap
    score = 0.0

    # 1. Shared mechanics
    for mechanic in sorted(mine):
        score += min(counts[mechanic], cap)

    # 2. Complementary pairs (draw feeds resources, damage backs up control, ...)
    for have, wants, weight in COMPLEMENTARY_MECHANICS:
        if have in mine and counts[wants]:
            score += config.complementary_weight * weight * min(counts[wants], cap)

    return max(0.0, score)


def cost_curve_synergy(
    card: CardRecord,
    context: Sequence[CardRecord],
    config: ScoringConfig = DEFAULT_SCORING,
) -> float:
    """
    Compare the card's cost bucket with the ideal curve scaled to the deck
    size after adding it. Under-filled buckets score above neutral,
    over-crowded ones score zero.
    """
    bucket = cost_bucket(card.cost)
    current = int(curve_distribution(context)[bucket]) if context else 0
    expected = config.ideal_curve[bucket] * (len(context) + 1)

    if current < expected:
        deficit = expected - current
        return config.curve_neutral + config.curve_fill_reward * min(deficit / max(expected, 1.0), 1.0)
    if current > 0 and current >= config.curve_overcrowd_ratio * expected:
        return 0.0
    return config.curve_neutral
