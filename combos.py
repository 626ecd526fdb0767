# combos.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from card_features import is_aura_dispel
from card_patterns import CardPattern, any_of, keywords
from cards import CardRecord
from constants import COMBO_KEYWORDS
from errors import InvalidConfiguration, PatternEvaluationFailure
from sorcery_vocab import Category

logger = logging.getLogger(__name__)

DEFAULT_SCALING_CAP = 6


# ─────────────────────────────────────────────────────────
# Scaling functions (participant count → multiplier)
# ─────────────────────────────────────────────────────────

def linear_scaling(count: int) -> float:
    return float(count)


@dataclass(frozen=True)
class CappedScaling:
    cap: int

    def __call__(self, count: int) -> float:
        return float(min(count, self.cap))


def capped_scaling(cap: int) -> CappedScaling:
    return CappedScaling(cap)


# ─────────────────────────────────────────────────────────
# Patterns and instances
# ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ComboPattern:
    """
    A named interaction rule.

    ``predicate`` decides which cards take part. ``group_key`` (optional)
    returns the keys a card belongs under, e.g. its minion subtypes; each key
    is a separate occurrence. ``group_requirement`` (optional) must hold for a
    whole group and may only become true, never false, as members are added.

    ``description`` is a format template with ``{name}``, ``{count}``,
    ``{cards}`` and ``{group}`` fields.
    """
    name: str
    description: str
    predicate: Callable[[CardRecord], bool]
    base_weight: float
    min_cards: int = 2
    scaling: Callable[[int], float] = CappedScaling(DEFAULT_SCALING_CAP)
    group_key: Optional[Callable[[CardRecord], Iterable[Hashable]]] = None
    group_requirement: Optional[Callable[[Sequence[CardRecord]], bool]] = None

    def __post_init__(self):
        if not self.name:
            raise InvalidConfiguration("combo pattern needs a name")
        if self.min_cards < 1:
            raise InvalidConfiguration(f"combo pattern {self.name!r}: min_cards must be >= 1")
        if self.base_weight < 0:
            raise InvalidConfiguration(f"combo pattern {self.name!r}: base_weight must be >= 0")

    def synergy_for(self, count: int) -> float:
        return self.base_weight * self.scaling(count)

    def render(self, cards: Sequence[CardRecord], group: Hashable = None) -> str:
        return self.description.format(
            name=self.name,
            count=len(cards),
            cards=", ".join(c.name for c in cards),
            group="" if group is None else group,
        )


@dataclass(frozen=True)
class ComboInstance:
    pattern: str
    cards: Tuple[CardRecord, ...]
    synergy: float
    description: str
    group: Hashable = None

    @property
    def key(self) -> Tuple[str, Hashable]:
        return (self.pattern, self.group)

    @property
    def count(self) -> int:
        return len(self.cards)

    def includes(self, card: CardRecord) -> bool:
        return any(c.base_name == card.base_name for c in self.cards)


@dataclass(frozen=True)
class ComboScan:
    instances: Tuple[ComboInstance, ...] = ()
    failures: Tuple[PatternEvaluationFailure, ...] = ()

    @property
    def total_synergy(self) -> float:
        return sum(inst.synergy for inst in self.instances)

    def by_key(self) -> Dict[Tuple[str, Hashable], ComboInstance]:
        return {inst.key: inst for inst in self.instances}


class ComboRegistry:
    """Ordered, immutable list of patterns. Order is the evaluation and reporting order."""

    def __init__(self, patterns: Iterable[ComboPattern] = ()):
        patterns = tuple(patterns)
        seen = set()
        for p in patterns:
            if p.name in seen:
                raise InvalidConfiguration(f"duplicate combo pattern name {p.name!r}")
            seen.add(p.name)
        self._patterns = patterns

    def register(self, pattern: ComboPattern) -> "ComboRegistry":
        return ComboRegistry(self._patterns + (pattern,))

    def without(self, name: str) -> "ComboRegistry":
        return ComboRegistry(p for p in self._patterns if p.name != name)

    def get(self, name: str) -> Optional[ComboPattern]:
        for p in self._patterns:
            if p.name == name:
                return p
        return None

    def names(self) -> List[str]:
        return [p.name for p in self._patterns]

    def __iter__(self):
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __repr__(self) -> str:
        return f"ComboRegistry({self.names()!r})"


# ─────────────────────────────────────────────────────────
# Detection
# ─────────────────────────────────────────────────────────

def _evaluate_pattern(pattern: ComboPattern, cards: Sequence[CardRecord]) -> List[ComboInstance]:
    groups: Dict[Hashable, List[CardRecord]] = {}
    names: Dict[Hashable, set] = {}

    for card in cards:
        try:
            if not pattern.predicate(card):
                continue
            keys = (None,) if pattern.group_key is None else tuple(pattern.group_key(card))
        except Exception as exc:
            raise PatternEvaluationFailure(pattern.name, card.name, exc) from exc

        for key in keys:
            members = groups.setdefault(key, [])
            seen = names.setdefault(key, set())
            if card.base_name in seen:
                continue  # copies of one card count once
            seen.add(card.base_name)
            members.append(card)

    found = []
    for key, members in groups.items():
        if len(members) < pattern.min_cards:
            continue
        if pattern.group_requirement is not None and not pattern.group_requirement(members):
            continue
        found.append(ComboInstance(
            pattern=pattern.name,
            cards=tuple(members),
            synergy=pattern.synergy_for(len(members)),
            description=pattern.render(members, key),
            group=key,
        ))
    return found


def scan_combos(
    cards: Iterable[CardRecord],
    registry: Optional[ComboRegistry] = None,
    only: Optional[Iterable[str]] = None,
) -> ComboScan:
    """
    Run every pattern (or just the ``only`` names) over ``cards``.

    A pattern that raises is skipped for this scan; the failure is logged and
    kept on the result instead of aborting the other patterns.
    """
    registry = DEFAULT_REGISTRY if registry is None else registry
    cards = list(cards)
    if not cards:
        return ComboScan()

    wanted = None if only is None else set(only)
    instances: List[ComboInstance] = []
    failures: List[PatternEvaluationFailure] = []

    for pattern in registry:
        if wanted is not None and pattern.name not in wanted:
            continue
        try:
            instances.extend(_evaluate_pattern(pattern, cards))
        except PatternEvaluationFailure as failure:
            logger.warning("%s; pattern skipped for this scan", failure)
            failures.append(failure)
        except Exception as exc:
            failure = PatternEvaluationFailure(pattern.name, None, exc)
            logger.warning("%s; pattern skipped for this scan", failure)
            failures.append(failure)

    return ComboScan(tuple(instances), tuple(failures))


def detect_combos(cards: Iterable[CardRecord], registry: Optional[ComboRegistry] = None) -> List[ComboInstance]:
    return list(scan_combos(cards, registry).instances)


def patterns_accepting(card: CardRecord, registry: ComboRegistry) -> Tuple[List[str], List[PatternEvaluationFailure]]:
    """Names of patterns whose predicate accepts ``card``; a predicate error counts as a failure."""
    accepted, failures = [], []
    for pattern in registry:
        try:
            if pattern.predicate(card):
                accepted.append(pattern.name)
        except Exception as exc:
            failure = PatternEvaluationFailure(pattern.name, card.name, exc)
            logger.warning("%s; pattern skipped for this card", failure)
            failures.append(failure)
    return accepted, failures


# ─────────────────────────────────────────────────────────
# Default Sorcery registry
# ─────────────────────────────────────────────────────────

def _kw(name: str, **kwargs) -> CardPattern:
    return keywords(*COMBO_KEYWORDS[name], **kwargs)


def _minion_subtypes(card: CardRecord):
    return [s.lower() for s in card.subtypes]


def _has_dispel(cards: Sequence[CardRecord]) -> bool:
    return any(is_aura_dispel(c) for c in cards)


def _has_trigger_and_magic(cards: Sequence[CardRecord]) -> bool:
    trigger = _kw("spell_triggered")
    return any(trigger(c) for c in cards) and any(c.category is Category.MAGIC for c in cards)


def default_registry(scaling_cap: int = DEFAULT_SCALING_CAP) -> ComboRegistry:
    scale = capped_scaling(scaling_cap)
    minions = frozenset({Category.MINION})

    def pattern(name, description, predicate, weight, min_cards=2, **kwargs):
        return ComboPattern(name, description, predicate, weight, min_cards, scale, **kwargs)

    return ComboRegistry([
        pattern(
            "equipment_synergy", "Equipment package ({count}): {cards}",
            CardPattern(
                subtypes_any=("equipment", "weapon", "armor"),
                text_any=tuple(COMBO_KEYWORDS["equipment_synergy"]),
                match_subtype_or_text=True,
            ),
            12.0,
        ),
        pattern("lance_cavalry", "Lance charge ({count}): {cards}", _kw("lance_cavalry"), 10.0),
        pattern("projectile_barrage", "Ranged barrage ({count}): {cards}", _kw("projectile_barrage"), 10.0),
        pattern("spellcaster_engine", "Spellcaster engine ({count}): {cards}", _kw("spellcaster_engine"), 11.0),
        pattern("lethal_strike", "Lethal strikers ({count}): {cards}", _kw("lethal_strike"), 9.0),
        pattern("token_swarm", "Token swarm ({count}): {cards}", _kw("token_swarm"), 8.0),
        pattern("movement_control", "Movement control ({count}): {cards}", _kw("movement_control"), 8.0, min_cards=3),
        pattern("immobilize_lock", "Immobilize lock ({count}): {cards}", _kw("immobilize_lock"), 10.0),
        pattern("voidwalk_recursion", "Voidwalk recursion ({count}): {cards}", _kw("voidwalk_recursion"), 16.0),
        pattern("disable_control", "Disable control ({count}): {cards}", _kw("disable_control"), 11.0),
        pattern("mind_control", "Mind control ({count}): {cards}", _kw("mind_control"), 18.0),
        pattern("curse_affliction", "Curse affliction ({count}): {cards}", _kw("curse_affliction"), 13.0),
        pattern("transformation", "Transformation ({count}): {cards}", _kw("transformation"), 13.0),
        pattern("cost_reduction", "Cost reduction engine ({count}): {cards}", _kw("cost_reduction"), 11.0),
        pattern(
            "spell_triggered", "Spell-triggered value ({count}): {cards}",
            any_of(_kw("spell_triggered"), CardPattern(categories=frozenset({Category.MAGIC}))),
            11.0, min_cards=3, group_requirement=_has_trigger_and_magic,
        ),
        pattern(
            "aura_control_matrix", "Aura control matrix ({count}): {cards}",
            any_of(CardPattern(categories=frozenset({Category.AURA})), _kw("aura_dispel")),
            12.0, min_cards=3, group_requirement=_has_dispel,
        ),
        pattern("underground_assault", "Underground assault ({count}): {cards}", _kw("underground_assault"), 9.0),
        pattern("underwater_ambush", "Underwater ambush ({count}): {cards}", _kw("underwater_ambush"), 9.0),
        pattern("airborne_dominance", "Airborne dominance ({count}): {cards}", _kw("airborne_dominance"), 8.0, min_cards=3),
        pattern(
            "kindred_minions", "Kindred {group} ({count}): {cards}",
            CardPattern(categories=minions), 7.0, min_cards=3, group_key=_minion_subtypes,
        ),
        pattern("deathrite_sacrifice", "Deathrite sacrifice ({count}): {cards}", _kw("deathrite_sacrifice"), 13.0),
    ])


DEFAULT_REGISTRY = default_registry()
