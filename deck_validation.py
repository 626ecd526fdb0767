from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from cards import CardRecord
from config import BuilderConfig
from constants import OVERSIZED_PILE
from sorcery_vocab import ELEMENT_ORDER, Element


# ─────────────────────────────────────────────────────────
# Thresholds
# ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ElementReport:
    provided: Dict[Element, int] = field(default_factory=dict)
    required: Dict[Element, int] = field(default_factory=dict)

    @property
    def balance(self) -> Dict[Element, int]:
        """provided − required, for every element the spells actually need."""
        return {el: self.provided.get(el, 0) - need for el, need in self.required.items()}

    @property
    def shortfalls(self) -> Dict[Element, int]:
        return {el: -bal for el, bal in self.balance.items() if bal < 0}


def element_requirements(
    spells: Sequence[CardRecord],
    sites: Sequence[CardRecord],
    avatar: Optional[CardRecord] = None,
) -> ElementReport:
    """What the site base (and avatar) provides vs. the highest threshold any spell asks for."""
    provided: Dict[Element, int] = {}
    sources = list(sites) + ([avatar] if avatar is not None else [])
    for card in sources:
        for el, amount in card.thresholds:
            provided[el] = provided.get(el, 0) + amount

    required: Dict[Element, int] = {}
    for card in spells:
        for el, amount in card.thresholds:
            required[el] = max(required.get(el, 0), amount)

    order = {el: i for i, el in enumerate(ELEMENT_ORDER)}
    return ElementReport(
        provided=dict(sorted(provided.items(), key=lambda kv: order[kv[0]])),
        required=dict(sorted(required.items(), key=lambda kv: order[kv[0]])),
    )


# ─────────────────────────────────────────────────────────
# Legality counts
# ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DeckValidation:
    """
    Errors break the requested deck shape (sizes, copy limits); warnings
    only flag a build that may play badly.
    """
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    spell_count: int = 0
    site_count: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors


def copy_limit_errors(cards: Sequence[CardRecord], group: str, config: BuilderConfig) -> List[str]:
    counts = Counter(c.base_name for c in cards)
    rarity = {}
    for c in cards:
        rarity.setdefault(c.base_name, c.rarity)

    errors = []
    for name, n in counts.items():
        limit = config.copy_limit(rarity[name])
        if n > limit:
            errors.append(
                f'{group} contain {n}x "{name}": at most {limit} allowed for {rarity[name].value} cards'
            )
    return errors


def threshold_warnings(spells: Sequence[CardRecord], report: ElementReport) -> List[str]:
    warnings = []
    seen = set()
    for card in spells:
        for el, need in card.thresholds:
            have = report.provided.get(el, 0)
            if need > have and (card.base_name, el) not in seen:
                seen.add((card.base_name, el))
                warnings.append(
                    f'"{card.name}" needs {el.value} {need} but the sites and avatar provide {have}'
                )
    return warnings


def validate_deck(
    avatar: Optional[CardRecord],
    sites: Sequence[CardRecord],
    spells: Sequence[CardRecord],
    config: Optional[BuilderConfig] = None,
    report: Optional[ElementReport] = None,
) -> DeckValidation:
    """Check a deck against the sizes and copy limits in ``config``."""
    config = config or BuilderConfig()
    report = report or element_requirements(spells, sites, avatar)
    errors: List[str] = []
    warnings: List[str] = []

    if len(sites) < config.site_count:
        errors.append(f"Atlas needs {config.site_count} sites, has {len(sites)}")
    if len(spells) < config.spellbook_size:
        errors.append(f"Spellbook needs {config.spellbook_size} spells, has {len(spells)}")
    for label, pile in (("Atlas", sites), ("Spellbook", spells)):
        if len(pile) > OVERSIZED_PILE:
            warnings.append(f"{label} holds {len(pile)} cards and will be hard to shuffle")

    errors += copy_limit_errors(sites, "Sites", config)
    errors += copy_limit_errors(spells, "Spells", config)
    warnings += threshold_warnings(spells, report)

    return DeckValidation(
        errors=tuple(errors),
        warnings=tuple(warnings),
        spell_count=len(spells),
        site_count=len(sites),
    )
