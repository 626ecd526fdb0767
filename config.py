# config.py
from __future__ import annotations
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Tuple

from constants import (
    ARCHETYPE_WEIGHT_PRESETS,
    CURVE_MAX_BUCKET,
    DEFAULT_SITE_COUNT,
    DEFAULT_SPELLBOOK_SIZE,
    IDEAL_CURVE,
    RARITY_COPY_LIMITS,
)
from errors import InvalidConfiguration
from sorcery_vocab import Category, Element, Rarity

SIGNALS = ("elemental", "mechanical", "cost_curve", "combo")


class ArchetypePreference(Enum):
    BALANCED = "Balanced"
    COMBO = "Combo"
    AGGRO = "Aggro"
    CONTROL = "Control"
    MIDRANGE = "Midrange"


def _check_number(label: str, value, allow_zero: bool = True) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"{label} must be a number, got {value!r}") from None
    if not math.isfinite(number) or number < 0 or (not allow_zero and number == 0):
        bound = ">= 0" if allow_zero else "> 0"
        raise InvalidConfiguration(f"{label} must be finite and {bound}, got {value!r}")
    return number


@dataclass(frozen=True)
class SynergyWeights:
    """
    Relative importance of the four synergy signals, plus optional
    per-category multipliers applied to the blended total.
    """
    elemental: float = 3.0
    mechanical: float = 1.0
    cost_curve: float = 0.6
    combo: float = 2.0
    category_multipliers: Tuple[Tuple[Category, float], ...] = ()

    def __post_init__(self):
        for name in SIGNALS:
            _check_number(f"weight {name!r}", getattr(self, name))
        if sum(getattr(self, name) for name in SIGNALS) <= 0:
            raise InvalidConfiguration("at least one synergy weight must be positive")
        seen = set()
        for cat, mult in self.category_multipliers:
            if not isinstance(cat, Category):
                raise InvalidConfiguration(f"category multiplier key must be a Category, got {cat!r}")
            if cat in seen:
                raise InvalidConfiguration(f"duplicate category multiplier for {cat.value}")
            seen.add(cat)
            _check_number(f"multiplier for {cat.value}", mult)

    def multiplier_for(self, category: Category) -> float:
        for cat, mult in self.category_multipliers:
            if cat is category:
                return mult
        return 1.0


@dataclass(frozen=True)
class ScoringConfig:
    # elemental
    elemental_strictness: str = "lenient"
    element_weights: Tuple[Tuple[Element, float], ...] = ()
    element_count_cap: int = 5
    off_element_penalty: float = 1.0
    dominant_element_count: int = 2
    # mechanical
    mechanic_cap: int = 5
    complementary_weight: float = 1.0
    # cost curve
    ideal_curve: Tuple[float, ...] = tuple(IDEAL_CURVE[b] for b in range(CURVE_MAX_BUCKET + 1))
    curve_fill_reward: float = 2.0
    curve_neutral: float = 1.0
    curve_overcrowd_ratio: float = 1.5
    # combos
    combo_scaling_cap: int = 6

    def __post_init__(self):
        if self.elemental_strictness not in ("lenient", "strict"):
            raise InvalidConfiguration(
                f"elemental_strictness must be 'lenient' or 'strict', got {self.elemental_strictness!r}"
            )
        for el, w in self.element_weights:
            if not isinstance(el, Element):
                raise InvalidConfiguration(f"element weight key must be an Element, got {el!r}")
            _check_number(f"element weight for {el.value}", w)
        for label in ("element_count_cap", "mechanic_cap", "combo_scaling_cap", "dominant_element_count"):
            _check_number(label, getattr(self, label), allow_zero=False)
        for label in ("off_element_penalty", "complementary_weight", "curve_fill_reward", "curve_neutral"):
            _check_number(label, getattr(self, label))
        _check_number("curve_overcrowd_ratio", self.curve_overcrowd_ratio, allow_zero=False)
        if len(self.ideal_curve) != CURVE_MAX_BUCKET + 1:
            raise InvalidConfiguration(f"ideal_curve needs {CURVE_MAX_BUCKET + 1} buckets")
        for share in self.ideal_curve:
            _check_number("ideal_curve share", share)

    def element_weight(self, element: Element) -> float:
        for el, w in self.element_weights:
            if el is element:
                return w
        return 1.0


DEFAULT_SCORING = ScoringConfig()


@dataclass(frozen=True)
class BuilderConfig:
    spellbook_size: int = DEFAULT_SPELLBOOK_SIZE
    site_count: int = DEFAULT_SITE_COUNT
    copy_limits: Tuple[Tuple[Rarity, int], ...] = tuple(
        (Rarity(name), limit) for name, limit in RARITY_COPY_LIMITS.items()
    )
    max_workers: int = 1
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    def validate(self) -> "BuilderConfig":
        if not isinstance(self.spellbook_size, int) or self.spellbook_size <= 0:
            raise InvalidConfiguration(f"spellbook_size must be a positive int, got {self.spellbook_size!r}")
        if not isinstance(self.site_count, int) or self.site_count < 0:
            raise InvalidConfiguration(f"site_count must be a non-negative int, got {self.site_count!r}")
        if not isinstance(self.max_workers, int) or self.max_workers < 1:
            raise InvalidConfiguration(f"max_workers must be >= 1, got {self.max_workers!r}")
        seen = set()
        for rarity, limit in self.copy_limits:
            if not isinstance(rarity, Rarity):
                raise InvalidConfiguration(f"copy limit key must be a Rarity, got {rarity!r}")
            if not isinstance(limit, int) or limit < 1:
                raise InvalidConfiguration(f"copy limit for {rarity.value} must be >= 1, got {limit!r}")
            seen.add(rarity)
        missing = set(Rarity) - seen
        if missing:
            names = ", ".join(sorted(r.value for r in missing))
            raise InvalidConfiguration(f"copy limits missing for: {names}")
        if not isinstance(self.scoring, ScoringConfig):
            raise InvalidConfiguration("scoring must be a ScoringConfig")
        return self

    def copy_limit(self, rarity: Rarity) -> int:
        for r, limit in self.copy_limits:
            if r is rarity:
                return limit
        return RARITY_COPY_LIMITS["Ordinary"]


def resolve_archetype(token) -> ArchetypePreference:
    """None means Balanced; strings are matched case-insensitively."""
    if token is None:
        return ArchetypePreference.BALANCED
    if isinstance(token, ArchetypePreference):
        return token
    label = str(token).strip().lower()
    for pref in ArchetypePreference:
        if pref.value.lower() == label:
            return pref
    known = ", ".join(p.value for p in ArchetypePreference)
    raise InvalidConfiguration(f"unknown archetype preference {token!r} (expected one of: {known})")


def _category_key(raw) -> Category:
    cat = Category.parse(raw)
    if cat is None or not cat.is_spell:
        raise InvalidConfiguration(f"category multiplier for non-spell category {raw!r}")
    return cat


def weights_for(preference=None, overrides: Optional[Mapping] = None) -> SynergyWeights:
    pref = resolve_archetype(preference)
    preset = dict(ARCHETYPE_WEIGHT_PRESETS[pref.value])
    # keyed by Category so "minion", "Minion" and Category.MINION all land on one entry
    categories = {_category_key(k): v for k, v in preset.pop("categories", {}).items()}

    for key, value in (overrides or {}).items():
        if key in SIGNALS:
            preset[key] = value
        elif key == "categories":
            if not isinstance(value, Mapping):
                raise InvalidConfiguration("'categories' override must be a mapping")
            resolved = {}
            for raw_cat, mult in value.items():
                cat = _category_key(raw_cat)
                if cat in resolved:
                    raise InvalidConfiguration(f"category {cat.value!r} given more than once")
                resolved[cat] = mult
            categories.update(resolved)
        else:
            raise InvalidConfiguration(f"unknown weight override {key!r}")

    multipliers = [
        (cat, _check_number(f"multiplier for {cat.value}", categories[cat]))
        for cat in Category
        if cat in categories
    ]

    return SynergyWeights(
        elemental=_check_number("weight 'elemental'", preset["elemental"]),
        mechanical=_check_number("weight 'mechanical'", preset["mechanical"]),
        cost_curve=_check_number("weight 'cost_curve'", preset["cost_curve"]),
        combo=_check_number("weight 'combo'", preset["combo"]),
        category_multipliers=tuple(multipliers),
    )
