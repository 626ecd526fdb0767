"""
tests/test_cards.py
CardRecord helpers and tabular row adapters.
"""

import numpy as np
import pandas as pd
import pytest

from card_patterns import CardPattern, any_of, keywords, pattern_matches
from cards import CardRecord, base_name_for, card_from_row, cards_from_frame, cards_to_frame
from sorcery_vocab import Category, Element, Rarity


def test_base_name_strips_printing_markers():
    assert base_name_for("Sling Pixies (Foil)") == "Sling Pixies"
    assert base_name_for("Sling Pixies - Alpha") == "Sling Pixies"
    assert base_name_for("Sling Pixies") == "Sling Pixies"


def test_card_defaults_and_thresholds(card):
    imp = card("Imp (Foil)", thresholds={Element.FIRE: 2, Element.AIR: 0})
    assert imp.base_name == "Imp"
    assert imp.thresholds == ((Element.FIRE, 2),)
    assert imp.threshold_for(Element.FIRE) == 2
    assert imp.threshold_for(Element.WATER) == 0
    assert imp.is_spell


def test_card_is_hashable_and_comparable(card):
    assert card("Imp") == card("Imp")
    assert len({card("Imp"), card("Imp"), card("Ogre")}) == 2


def test_card_from_row_handles_messy_values():
    row = pd.Series({
        "name": "Pit Vipers",
        "category": "minion",
        "subtype": "Beast Serpent",
        "elements": np.array(["Earth"]),
        "cost": 3.0,
        "threshold": "Earth 2, Fire",
        "rarity": "Exceptional",
        "text": "Lethal",
    })
    rec = card_from_row(row)

    assert rec.category is Category.MINION
    assert rec.subtypes == ("Beast", "Serpent")
    assert rec.cost == 3
    assert rec.thresholds == ((Element.FIRE, 1), (Element.EARTH, 2))
    # thresholds imply element membership
    assert rec.elements == frozenset({Element.EARTH, Element.FIRE})
    assert rec.rarity is Rarity.EXCEPTIONAL
    assert rec.base_name == "Pit Vipers"


def test_card_from_row_wide_thresholds_and_missing_values():
    row = pd.Series({
        "name": "Tidal Wave",
        "type": "Magic",
        "elements": float("nan"),
        "cost": float("nan"),
        "water_threshold": 3,
        "rarity": None,
        "rules_text": float("nan"),
    })
    rec = card_from_row(row)
    assert rec.thresholds == ((Element.WATER, 3),)
    assert rec.elements == frozenset({Element.WATER})
    assert rec.cost == 0
    assert rec.rarity is Rarity.ORDINARY
    assert rec.text == ""


def test_card_from_row_rejects_unusable_rows():
    assert card_from_row(pd.Series({"name": "", "category": "Minion"})) is None
    assert card_from_row(pd.Series({"name": "Token", "category": "Emblem"})) is None


def test_frame_round_trip_keeps_records(card):
    cards = [card("Imp", elements={Element.FIRE}, thresholds={Element.FIRE: 1}, text="Airborne"),
             card("Helm", Category.ARTIFACT, subtypes=("Equipment",), rarity=Rarity.ELITE)]
    frame = cards_to_frame(cards)
    assert list(frame["name"]) == ["Imp", "Helm"]
    assert cards_from_frame(frame) == cards


def test_card_patterns(card):
    helm = card("Helm", Category.ARTIFACT, subtypes=("Equipment",), cost=1)
    assert CardPattern(subtypes_any=("equipment",))(helm)
    assert not CardPattern(categories=frozenset({Category.MINION}))(helm)
    assert not CardPattern(max_cost=0)(helm)
    assert not keywords("bearer")(helm)
    assert CardPattern(subtypes_any=("equipment",), text_any=("bearer",), match_subtype_or_text=True)(helm)
    assert pattern_matches(CardPattern(text_all=()), helm)
    assert any_of(keywords("bearer"), CardPattern(min_cost=1))(helm)
    assert not CardPattern(elements_any=frozenset({Element.FIRE}))(helm)


@pytest.mark.parametrize("raw, expected", [
    ("Fire", Element.FIRE),
    (" water ", Element.WATER),
    ("Mud", None),
])
def test_element_parse(raw, expected):
    assert Element.parse(raw) is expected
