from __future__ import annotations
from dataclasses import dataclass
from functools import cached_property
from typing import Optional, Tuple

from analysis_cache import context_fingerprint, ordered_fingerprint
from cards import CardRecord
from scoring import dominant_elements as rank_elements
from sorcery_vocab import Element


@dataclass(frozen=True)
class DeckContext:
    """
    The deck as it stands at one point of the build.

    Immutable: the builder moves forward with ``with_spell`` and every step
    gets a new value, so a context's fingerprints never go stale.
    """
    avatar: Optional[CardRecord] = None
    sites: Tuple[CardRecord, ...] = ()
    spells: Tuple[CardRecord, ...] = ()
    version: int = 0

    def with_spell(self, card: CardRecord) -> "DeckContext":
        return DeckContext(self.avatar, self.sites, self.spells + (card,), self.version + 1)

    @cached_property
    def scoring_cards(self) -> Tuple[CardRecord, ...]:
        # sites only feed thresholds; synergy is judged against avatar + spells
        if self.avatar is None:
            return self.spells
        return (self.avatar,) + self.spells

    @cached_property
    def dominant_elements(self) -> Tuple[Element, ...]:
        return tuple(rank_elements(self.scoring_cards))

    @cached_property
    def fingerprint(self) -> str:
        return context_fingerprint(self.scoring_cards)

    @cached_property
    def ordered_fingerprint(self) -> str:
        return ordered_fingerprint(self.scoring_cards)

    def __len__(self) -> int:
        return len(self.spells)
