# card_features.py
from __future__ import annotations

from cards import CardRecord
from constants import SITE_DRAW_KEYWORDS, SITE_RESOURCE_KEYWORDS
from sorcery_vocab import Category


def is_avatar(card: CardRecord) -> bool:
    return card.category is Category.AVATAR

def is_site(card: CardRecord) -> bool:
    return card.category is Category.SITE

def is_spell(card: CardRecord) -> bool:
    return card.category.is_spell

def is_control_spell(card: CardRecord) -> bool:
    # magics and auras carry most of the interaction in Sorcery
    return card.category in (Category.MAGIC, Category.AURA)

def mentions_any(card: CardRecord, words) -> bool:
    text = card.text_lower
    for kw in words:
        if kw in text:
            return True
    return False

def is_draw_site(card: CardRecord) -> bool:
    return is_site(card) and mentions_any(card, SITE_DRAW_KEYWORDS)

def is_resource_site(card: CardRecord) -> bool:
    return is_site(card) and mentions_any(card, SITE_RESOURCE_KEYWORDS)

def is_aura_dispel(card: CardRecord) -> bool:
    text = card.text_lower
    return "aura" in text and ("dispel" in text or "banish" in text or "destroy" in text or "remove" in text)
