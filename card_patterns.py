from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from cards import CardRecord
from sorcery_vocab import Category, Element

# =====================
# Card Patterns (wildcards allowed)
# =====================

@dataclass(frozen=True)
class CardPattern:
    """
    Declarative predicate over the canonical card fields.

    Every field is a wildcard when left as None / empty. Text checks run on the
    lower-cased ability text; keywords are given lower-case.
    """
    categories: Optional[FrozenSet[Category]] = None
    subtypes_any: Tuple[str, ...] = ()
    text_any: Tuple[str, ...] = ()
    text_all: Tuple[str, ...] = ()
    elements_any: Optional[FrozenSet[Element]] = None
    min_cost: Optional[int] = None
    max_cost: Optional[int] = None
    match_subtype_or_text: bool = False

    def __call__(self, card: CardRecord) -> bool:
        return pattern_matches(self, card)


@dataclass(frozen=True)
class AnyOf:
    patterns: Tuple[CardPattern, ...]

    def __call__(self, card: CardRecord) -> bool:
        return any(pattern_matches(p, card) for p in self.patterns)


def any_of(*patterns: CardPattern) -> AnyOf:
    return AnyOf(tuple(patterns))


def keywords(*words: str, **kwargs) -> CardPattern:
    return CardPattern(text_any=tuple(w.lower() for w in words), **kwargs)


# =================
# Matcher
# =================

def _subtype_hit(pattern: CardPattern, card: CardRecord) -> bool:
    return any(card.has_subtype(s) for s in pattern.subtypes_any)


def _text_hit(pattern: CardPattern, text: str) -> bool:
    return any(kw in text for kw in pattern.text_any)


def pattern_matches(pattern: CardPattern, card: CardRecord) -> bool:
    if pattern.categories is not None and card.category not in pattern.categories:
        return False
    if pattern.elements_any is not None and not (card.elements & pattern.elements_any):
        return False
    if pattern.min_cost is not None and card.cost < pattern.min_cost:
        return False
    if pattern.max_cost is not None and card.cost > pattern.max_cost:
        return False

    text = card.text_lower
    if pattern.text_all and not all(kw in text for kw in pattern.text_all):
        return False

    # Either-or mode: a subtype tag or an ability-text keyword is enough
    if pattern.match_subtype_or_text:
        if pattern.subtypes_any or pattern.text_any:
            return _subtype_hit(pattern, card) or _text_hit(pattern, text)
        return True

    if pattern.subtypes_any and not _subtype_hit(pattern, card):
        return False
    if pattern.text_any and not _text_hit(pattern, text):
        return False
    return True
