# errors.py
from __future__ import annotations
from typing import Optional


class DeckBuildError(Exception):
    """Base class for everything the spellbook builder raises."""


class InvalidConfiguration(DeckBuildError, ValueError):
    """Unknown archetype token, malformed weights, or bad builder limits."""


class BuilderStateError(DeckBuildError):
    pass


class PatternEvaluationFailure(DeckBuildError):
    """
    A single combo pattern blew up while evaluating a card.

    The detector never raises these; it collects them on the scan result so
    the caller can see which pattern was skipped and why.
    """

    def __init__(self, pattern_name: str, card_name: Optional[str], cause: BaseException):
        self.pattern_name = pattern_name
        self.card_name = card_name
        self.cause = cause
        where = f" on {card_name!r}" if card_name else ""
        super().__init__(
            f"combo pattern {pattern_name!r} failed{where}: {type(cause).__name__}: {cause}"
        )
