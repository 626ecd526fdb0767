# synergy.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from analysis_cache import AnalysisCache, context_fingerprint, ordered_fingerprint
from cards import CardRecord
from combos import DEFAULT_REGISTRY, ComboRegistry, ComboScan, patterns_accepting, scan_combos
from config import DEFAULT_SCORING, ScoringConfig, SynergyWeights
from deck_context import DeckContext
from errors import PatternEvaluationFailure
from scoring import cost_curve_synergy, elemental_synergy, mechanical_synergy

Context = Union[DeckContext, Sequence[CardRecord]]

DEFAULT_WEIGHTS = SynergyWeights()


@dataclass(frozen=True)
class SynergyBreakdown:
    elemental: float
    mechanical: float
    cost_curve: float
    combo: float
    total: float
    pattern_failures: Tuple[PatternEvaluationFailure, ...] = field(default=(), compare=False, repr=False)

    def as_dict(self) -> dict:
        return {
            "elemental": self.elemental,
            "mechanical": self.mechanical,
            "cost_curve": self.cost_curve,
            "combo": self.combo,
            "total": self.total,
        }


def _context_view(context: Context) -> Tuple[Tuple[CardRecord, ...], str, str]:
    if isinstance(context, DeckContext):
        return context.scoring_cards, context.fingerprint, context.ordered_fingerprint
    cards = tuple(context)
    return cards, context_fingerprint(cards), ordered_fingerprint(cards)


def context_combos(
    context: Context,
    registry: Optional[ComboRegistry] = None,
    cache: Optional[AnalysisCache] = None,
) -> ComboScan:
    """Combo scan of the context itself; every candidate in a build step shares it."""
    registry = DEFAULT_REGISTRY if registry is None else registry
    cards, _, ordered = _context_view(context)
    if cache is None:
        return scan_combos(cards, registry)
    return cache.get_or_compute(("combos", ordered, id(registry)), lambda: scan_combos(cards, registry))


def _combo_delta(
    card: CardRecord,
    context: Context,
    registry: ComboRegistry,
    cache: Optional[AnalysisCache],
) -> Tuple[float, List[PatternEvaluationFailure]]:
    cards, _, _ = _context_view(context)
    before = context_combos(context, registry, cache)
    failures = list(before.failures)

    # only patterns that take the candidate can gain it as a participant
    accepted, rejected = patterns_accepting(card, registry)
    failures.extend(rejected)
    if not accepted:
        return 0.0, failures

    after = scan_combos(cards + (card,), registry, only=accepted)
    failures.extend(after.failures)
    previous = before.by_key()

    delta = 0.0
    for inst in after.instances:
        if not inst.includes(card):
            continue
        prior = previous.get(inst.key)
        if prior is None:
            delta += inst.synergy
        elif not prior.includes(card):
            delta += inst.synergy - prior.synergy
    return max(0.0, delta), failures


def combo_contribution(
    card: CardRecord,
    context: Context,
    registry: Optional[ComboRegistry] = None,
    cache: Optional[AnalysisCache] = None,
) -> float:
    """
    Synergy the card would add to the context through combos it starts or
    extends. Instances the card doesn't join are never counted.
    """
    registry = DEFAULT_REGISTRY if registry is None else registry
    delta, _ = _combo_delta(card, context, registry, cache)
    return delta


def synergy_breakdown(
    card: CardRecord,
    context: Context,
    weights: Optional[SynergyWeights] = None,
    cache: Optional[AnalysisCache] = None,
    registry: Optional[ComboRegistry] = None,
    config: ScoringConfig = DEFAULT_SCORING,
) -> SynergyBreakdown:
    weights = DEFAULT_WEIGHTS if weights is None else weights
    registry = DEFAULT_REGISTRY if registry is None else registry
    cards, fingerprint, _ = _context_view(context)

    def compute() -> SynergyBreakdown:
        elemental = elemental_synergy(card, cards, config)
        mechanical = mechanical_synergy(card, cards, config)
        curve = cost_curve_synergy(card, cards, config)
        combo, failures = _combo_delta(card, context, registry, cache)

        blended = (
            weights.elemental * elemental +
            weights.mechanical * mechanical +
            weights.cost_curve * curve +
            weights.combo * combo
        )
        total = max(0.0, blended * weights.multiplier_for(card.category))

        return SynergyBreakdown(
            elemental=elemental,
            mechanical=mechanical,
            cost_curve=curve,
            combo=combo,
            total=total,
            pattern_failures=tuple(failures),
        )

    if cache is None:
        return compute()
    key = ("synergy", card.fingerprint, fingerprint, weights, config, id(registry))
    return cache.get_or_compute(key, compute)


def calculate_synergy(
    card: CardRecord,
    context: Context,
    weights: Optional[SynergyWeights] = None,
    cache: Optional[AnalysisCache] = None,
    registry: Optional[ComboRegistry] = None,
    config: ScoringConfig = DEFAULT_SCORING,
) -> float:
    return synergy_breakdown(card, context, weights, cache, registry, config).total
