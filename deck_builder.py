from __future__ import annotations
import logging
import math
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from analysis_cache import AnalysisCache
from card_features import is_avatar, is_draw_site, is_resource_site, is_site, is_spell
from cards import CardRecord
from combos import DEFAULT_SCALING_CAP, DEFAULT_REGISTRY, ComboInstance, ComboRegistry, default_registry
from config import (
    ArchetypePreference,
    BuilderConfig,
    SynergyWeights,
    resolve_archetype,
    weights_for,
)
from constants import (
    AVATAR_ELEMENT_WEIGHT,
    SITE_DOMINANT_RATIO,
    SITE_EXPENSIVE_COST,
    SITE_SECONDARY_RATIO,
)
from deck_context import DeckContext
from deck_validation import DeckValidation, ElementReport, element_requirements, validate_deck
from errors import BuilderStateError, InvalidConfiguration, PatternEvaluationFailure
from scoring import element_counts
from sorcery_vocab import ELEMENT_ORDER, BuilderState, BuildStatus, Category, Element
from synergy import SynergyBreakdown, context_combos, synergy_breakdown

logger = logging.getLogger(__name__)

# Rank of each spell pool for tie-breaks
POOL_ORDER = (Category.MINION, Category.ARTIFACT, Category.AURA, Category.MAGIC)
_POOL_FIELDS = {
    "minions": Category.MINION,
    "artifacts": Category.ARTIFACT,
    "auras": Category.AURA,
    "magics": Category.MAGIC,
    "sites": Category.SITE,
    "avatars": Category.AVATAR,
}


# ─────────────────────────────────────────────────────────
# Inputs / outputs
# ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CandidatePools:
    minions: Tuple[CardRecord, ...] = ()
    artifacts: Tuple[CardRecord, ...] = ()
    auras: Tuple[CardRecord, ...] = ()
    magics: Tuple[CardRecord, ...] = ()
    sites: Tuple[CardRecord, ...] = ()
    avatars: Tuple[CardRecord, ...] = ()

    def __post_init__(self):
        for name in _POOL_FIELDS:
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @classmethod
    def from_cards(cls, cards: Iterable[CardRecord]) -> "CandidatePools":
        """Partition a flat card list by category, keeping input order inside each pool."""
        buckets: Dict[Category, List[CardRecord]] = {cat: [] for cat in _POOL_FIELDS.values()}
        for card in cards:
            buckets[card.category].append(card)
        return cls(**{name: buckets[cat] for name, cat in _POOL_FIELDS.items()})

    @classmethod
    def from_mapping(cls, pools: Mapping[str, Iterable[CardRecord]]) -> "CandidatePools":
        unknown = [k for k in pools if k not in _POOL_FIELDS]
        if unknown:
            raise InvalidConfiguration(f"unknown candidate pool(s): {', '.join(map(str, unknown))}")
        return cls(**{k: tuple(v) for k, v in pools.items()})

    def spell_pools(self) -> List[Tuple[Category, Tuple[CardRecord, ...]]]:
        return [(Category.MINION, self.minions), (Category.ARTIFACT, self.artifacts),
                (Category.AURA, self.auras), (Category.MAGIC, self.magics)]

    def spell_cards(self) -> List[CardRecord]:
        return [c for _, pool in self.spell_pools() for c in pool]


@dataclass(frozen=True)
class Candidate:
    card: CardRecord
    pool_rank: int
    position: int

    def tie_break(self) -> Tuple[int, str, int]:
        return (self.position, self.card.name, self.pool_rank)


@dataclass(frozen=True)
class PickRecord:
    step: int
    card: CardRecord
    pool: Category
    breakdown: SynergyBreakdown


@dataclass(frozen=True)
class Spellbook:
    """
    A finished build. ``status`` only tracks the spell count; a thin site
    base shows up in ``site_shortfall`` and in ``validation.errors``.
    """
    avatar: Optional[CardRecord]
    sites: Tuple[CardRecord, ...]
    spells: Tuple[CardRecord, ...]
    status: BuildStatus
    target_size: int
    site_target: int = 0
    archetype: ArchetypePreference = ArchetypePreference.BALANCED
    picks: Tuple[PickRecord, ...] = ()
    elements: ElementReport = field(default_factory=ElementReport)
    validation: DeckValidation = field(default_factory=DeckValidation)
    combos: Optional[Tuple[ComboInstance, ...]] = None
    pattern_failures: Tuple[PatternEvaluationFailure, ...] = field(default=(), compare=False)
    cache_stats: dict = field(default_factory=dict, compare=False)

    @property
    def insufficient_pool(self) -> bool:
        return self.status is BuildStatus.INSUFFICIENT_POOL

    @property
    def shortfall(self) -> int:
        return max(0, self.target_size - len(self.spells))

    @property
    def site_shortfall(self) -> int:
        return max(0, self.site_target - len(self.sites))

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid

    @property
    def total_synergy(self) -> float:
        return sum(p.breakdown.total for p in self.picks)

    @property
    def category_counts(self) -> Dict[Category, int]:
        counts = Counter(c.category for c in self.spells)
        return {cat: counts[cat] for cat in POOL_ORDER}

    @property
    def copy_counts(self) -> Dict[str, int]:
        return dict(Counter(c.base_name for c in self.spells))


# ─────────────────────────────────────────────────────────
# Avatar and sites
# ─────────────────────────────────────────────────────────

def select_avatar(pools: CandidatePools) -> Optional[CardRecord]:
    """
    Avatar whose elements cover the most spell cards in the pools.
    Ties keep the earlier avatar.
    """
    if not pools.avatars:
        return None

    freq = element_counts(pools.spell_cards())
    best, best_score = None, -1
    for avatar in pools.avatars:
        score = sum(freq[el] for el in avatar.elements)
        if score > best_score:
            best, best_score = avatar, score
    return best


def site_score(site: CardRecord, dominant: Optional[Element]) -> float:
    score = 1.0
    if dominant is not None and dominant in site.elements:
        score += 3.0
    score += 0.5 * len(site.elements)
    if is_draw_site(site):
        score += 2.0
    if is_resource_site(site):
        score += 1.0
    if site.cost > SITE_EXPENSIVE_COST:
        score -= 0.5
    return score


def site_quotas(freq: Counter, site_count: int) -> Dict[Element, int]:
    present = sorted(
        (el for el in ELEMENT_ORDER if freq[el] > 0),
        key=lambda el: (-freq[el], ELEMENT_ORDER.index(el)),
    )
    if not present:
        return {}
    ratios = {el: (SITE_DOMINANT_RATIO if i == 0 else SITE_SECONDARY_RATIO) for i, el in enumerate(present)}
    total = sum(ratios.values())
    return {el: int(math.floor(site_count * r / total)) for el, r in ratios.items()}


def select_sites(
    pools: CandidatePools,
    avatar: Optional[CardRecord] = None,
    config: Optional[BuilderConfig] = None,
) -> Tuple[CardRecord, ...]:
    """
    Pick the site base: fill a per-element quota led by the dominant element,
    then top up with the best remaining sites. Copy limits apply to sites too.
    """
    config = config or BuilderConfig()
    target = config.site_count
    sites = [s for s in pools.sites if is_site(s)]
    if target == 0 or not sites:
        return ()

    freq = element_counts(pools.spell_cards())
    if avatar is not None:
        for el in avatar.elements:
            freq[el] += AVATAR_ELEMENT_WEIGHT
    quotas = site_quotas(freq, target)
    dominant = next(iter(quotas), None)

    ranked = sorted(range(len(sites)), key=lambda i: (-site_score(sites[i], dominant), i))
    used: set = set()
    copies: Counter = Counter()
    chosen: List[CardRecord] = []

    def take(i: int) -> bool:
        site = sites[i]
        if i in used or copies[site.base_name] >= config.copy_limit(site.rarity):
            return False
        used.add(i)
        copies[site.base_name] += 1
        chosen.append(site)
        return True

    # 1) element quotas, dominant first
    for el, quota in quotas.items():
        taken = 0
        for i in ranked:
            if taken >= quota or len(chosen) >= target:
                break
            if el in sites[i].elements and take(i):
                taken += 1

    # 2) top up by score
    for i in ranked:
        if len(chosen) >= target:
            break
        take(i)

    if len(chosen) < target:
        logger.warning("Only %d of %d sites available", len(chosen), target)
    return tuple(chosen)


# ─────────────────────────────────────────────────────────
# Builder
# ─────────────────────────────────────────────────────────

def _coerce_pools(candidate_pools) -> CandidatePools:
    if isinstance(candidate_pools, CandidatePools):
        return candidate_pools
    if isinstance(candidate_pools, Mapping):
        return CandidatePools.from_mapping(candidate_pools)
    return CandidatePools.from_cards(candidate_pools)


class SpellbookBuilder:
    """
    One build, one cache.

    States only move forward: SELECTING_AVATAR → SELECTING_SITES →
    SELECTING_SPELLS → DONE. A finished builder can't be rerun.
    """

    def __init__(
        self,
        candidate_pools,
        avatar: Optional[CardRecord] = None,
        archetype_preference=None,
        *,
        config: Optional[BuilderConfig] = None,
        weight_overrides: Optional[Mapping] = None,
        registry: Optional[ComboRegistry] = None,
        report_combos: bool = False,
    ):
        # everything that can be wrong with the request fails here, before any selection
        self.config = (config or BuilderConfig()).validate()
        self.preference = resolve_archetype(archetype_preference)
        self.weights: SynergyWeights = weights_for(self.preference, weight_overrides)
        if avatar is not None and not is_avatar(avatar):
            raise InvalidConfiguration(f"{avatar.name!r} is a {avatar.category.value}, not an Avatar")
        self.pools = _coerce_pools(candidate_pools)

        if registry is None:
            cap = self.config.scoring.combo_scaling_cap
            registry = DEFAULT_REGISTRY if cap == DEFAULT_SCALING_CAP else default_registry(cap)
        self.registry = registry
        self.report_combos = report_combos

        self.cache = AnalysisCache()
        self.state = BuilderState.SELECTING_AVATAR
        self._avatar = avatar

    def _advance(self, target: BuilderState) -> None:
        if target <= self.state:
            raise BuilderStateError(f"cannot move from {self.state.name} to {target.name}")
        logger.debug("Builder %s -> %s", self.state.name, target.name)
        self.state = target

    # --- candidate handling ---

    def _candidates(self) -> List[Candidate]:
        out = []
        for rank, (cat, pool) in enumerate(self.pools.spell_pools()):
            for pos, card in enumerate(pool):
                if not is_spell(card):
                    logger.warning("Skipping %s in the %s pool: it is a %s", card.name, cat.value, card.category.value)
                    continue
                if card.category is not cat:
                    # still a legal spell; it keeps this pool's rank and position
                    logger.warning("%s is a %s but sits in the %s pool", card.name, card.category.value, cat.value)
                out.append(Candidate(card, rank, pos))
        return out

    def _score(self, candidate: Candidate, context: DeckContext) -> SynergyBreakdown:
        return synergy_breakdown(
            candidate.card, context,
            weights=self.weights,
            cache=self.cache,
            registry=self.registry,
            config=self.config.scoring,
        )

    def _score_all(self, legal: List[Candidate], context: DeckContext, executor) -> List[SynergyBreakdown]:
        # map() hands back results in input order, and only after all are done
        if executor is None:
            return [self._score(c, context) for c in legal]
        return list(executor.map(lambda c: self._score(c, context), legal))

    def _select_spells(self, context: DeckContext):
        target = self.config.spellbook_size
        candidates = self._candidates()
        copies: Counter = Counter()
        picks: List[PickRecord] = []
        failures: Dict[str, PatternEvaluationFailure] = {}

        executor = ThreadPoolExecutor(max_workers=self.config.max_workers) if self.config.max_workers > 1 else None
        try:
            while len(context.spells) < target:
                # copy counts only grow, so a capped base name never comes back
                candidates = [
                    c for c in candidates
                    if copies[c.card.base_name] < self.config.copy_limit(c.card.rarity)
                ]
                if not candidates:
                    break

                scores = self._score_all(candidates, context, executor)
                for breakdown in scores:
                    for failure in breakdown.pattern_failures:
                        failures.setdefault(failure.pattern_name, failure)

                best = min(
                    range(len(candidates)),
                    key=lambda i: (-scores[i].total,) + candidates[i].tie_break(),
                )
                winner, breakdown = candidates[best], scores[best]

                context = context.with_spell(winner.card)
                copies[winner.card.base_name] += 1
                del candidates[best]

                picks.append(PickRecord(
                    step=len(picks) + 1,
                    card=winner.card,
                    pool=POOL_ORDER[winner.pool_rank],
                    breakdown=breakdown,
                ))
                logger.debug(
                    "Pick %d: %s (total %.3f; elem %.2f, mech %.2f, curve %.2f, combo %.2f)",
                    len(picks), winner.card.name, breakdown.total, breakdown.elemental,
                    breakdown.mechanical, breakdown.cost_curve, breakdown.combo,
                )
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        return context, picks, list(failures.values())

    # --- the build ---

    def build(self) -> Spellbook:
        if self.state is not BuilderState.SELECTING_AVATAR:
            raise BuilderStateError("this builder has already run; create a new one")

        target = self.config.spellbook_size
        logger.info("Building spellbook: target %d spells, preference %s", target, self.preference.value)

        avatar = self._avatar if self._avatar is not None else select_avatar(self.pools)
        logger.info("Avatar: %s", avatar.name if avatar is not None else "none")
        self._advance(BuilderState.SELECTING_SITES)

        sites = select_sites(self.pools, avatar, self.config)
        logger.info("Sites: %d selected", len(sites))
        self._advance(BuilderState.SELECTING_SPELLS)

        context, picks, failures = self._select_spells(DeckContext(avatar=avatar, sites=sites))

        combos = None
        if self.report_combos:
            combos = context_combos(context, self.registry, self.cache).instances
        self._advance(BuilderState.DONE)

        status = BuildStatus.COMPLETE if len(context.spells) >= target else BuildStatus.INSUFFICIENT_POOL
        if status is BuildStatus.INSUFFICIENT_POOL:
            logger.warning(
                "Insufficient pool: %d of %d spells (%d short)",
                len(context.spells), target, target - len(context.spells),
            )

        elements = element_requirements(context.spells, sites, avatar)
        for el, missing in elements.shortfalls.items():
            logger.warning("Sites fall %d short of the %s threshold the spells need", missing, el.value)
        validation = validate_deck(avatar, sites, context.spells, self.config, elements)
        for problem in validation.errors:
            logger.warning("Deck check: %s", problem)

        stats = self.cache.stats()
        logger.debug("Analysis cache: %s", stats)

        book = Spellbook(
            avatar=avatar,
            sites=sites,
            spells=context.spells,
            status=status,
            target_size=target,
            site_target=self.config.site_count,
            archetype=self.preference,
            picks=tuple(picks),
            elements=elements,
            validation=validation,
            combos=combos,
            pattern_failures=tuple(failures),
            cache_stats=stats,
        )
        logger.info(
            "Built spellbook: %d spells, %d sites, total synergy %.2f (%s)",
            len(book.spells), len(book.sites), book.total_synergy, status.name,
        )
        return book


def build_spellbook(
    candidate_pools,
    avatar: Optional[CardRecord] = None,
    archetype_preference=None,
    *,
    config: Optional[BuilderConfig] = None,
    weight_overrides: Optional[Mapping] = None,
    registry: Optional[ComboRegistry] = None,
    report_combos: bool = False,
) -> Spellbook:
    """
    Build one spellbook from candidate pools.

    ``candidate_pools`` is a CandidatePools, a mapping with the keys
    minions / artifacts / auras / magics (plus optional sites / avatars), or
    a flat card list. Bad preferences or weights raise InvalidConfiguration
    before anything is picked. A pool that runs dry is not an error: the
    partial spellbook comes back flagged INSUFFICIENT_POOL.

    Equal scores go to the lower index within its own pool, compared across
    pools as a raw number: the first magic (index 0) beats the second minion
    (index 1). Equal indices fall back to card name, then to pool order
    minions, artifacts, auras, magics.
    """
    builder = SpellbookBuilder(
        candidate_pools,
        avatar,
        archetype_preference,
        config=config,
        weight_overrides=weight_overrides,
        registry=registry,
        report_combos=report_combos,
    )
    return builder.build()
