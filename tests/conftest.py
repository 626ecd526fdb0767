"""
tests/conftest.py
Shared card factories and pools.
"""

import pytest

from cards import CardRecord
from deck_builder import CandidatePools
from sorcery_vocab import Category, Element, Rarity


def make_card(
    name,
    category=Category.MINION,
    *,
    text="",
    elements=(),
    cost=2,
    subtypes=(),
    rarity=Rarity.ORDINARY,
    thresholds=None,
    base_name="",
):
    return CardRecord(
        name=name,
        category=category,
        base_name=base_name,
        subtypes=tuple(subtypes),
        elements=frozenset(elements),
        cost=cost,
        thresholds=thresholds or {},
        rarity=rarity,
        text=text,
    )


@pytest.fixture
def card():
    return make_card


@pytest.fixture
def equipment_pair():
    a = make_card("Iron Gauntlet", Category.ARTIFACT, subtypes=("Equipment",), text="Equipment: bearer has +1 power.")
    b = make_card("Steel Helm", Category.ARTIFACT, subtypes=("Equipment",), text="Equipment: bearer has +1 life.")
    return a, b


@pytest.fixture
def fire_pools():
    fire = {Element.FIRE}
    minions = [make_card("Ember Hound", elements=fire, cost=2, thresholds={Element.FIRE: 1}) for _ in range(6)]
    minions += [
        make_card("Pyre Lord", elements=fire, cost=5, rarity=Rarity.UNIQUE, thresholds={Element.FIRE: 3}),
        make_card("Pyre Lord", elements=fire, cost=5, rarity=Rarity.UNIQUE, thresholds={Element.FIRE: 3}),
        make_card("Tide Caller", elements={Element.WATER}, cost=3, thresholds={Element.WATER: 2}),
        make_card("Sky Lancer", elements={Element.AIR}, cost=4, text="Airborne. Lance."),
    ]
    artifacts = [
        make_card("Iron Gauntlet", Category.ARTIFACT, subtypes=("Equipment",), text="Equipment: bearer has +1 power."),
        make_card("Steel Helm", Category.ARTIFACT, subtypes=("Equipment",), text="Equipment: bearer has +1 life."),
        make_card("Battle Standard", Category.ARTIFACT, cost=3, subtypes=("Equipment",), text="Equipment."),
    ]
    auras = [
        make_card("Wall of Flame", Category.AURA, elements=fire, cost=3, thresholds={Element.FIRE: 2}),
    ]
    magics = [
        make_card("Fireball", Category.MAGIC, elements=fire, cost=3, rarity=Rarity.EXCEPTIONAL,
                  text="Deals damage to target minion.", thresholds={Element.FIRE: 2})
        for _ in range(4)
    ]
    sites = [
        make_card("Red Desert", Category.SITE, elements=fire, cost=0, thresholds={Element.FIRE: 1}) for _ in range(5)
    ]
    sites += [
        make_card("Spring River", Category.SITE, elements={Element.WATER}, cost=0, thresholds={Element.WATER: 1}),
        make_card("Arid Library", Category.SITE, elements=fire, cost=0, thresholds={Element.FIRE: 1},
                  text="Draw a spell when this enters."),
    ]
    avatars = [
        make_card("Tidewarden", Category.AVATAR, elements={Element.WATER}, cost=0),
        make_card("Flamecaller", Category.AVATAR, elements={Element.FIRE}, cost=0),
    ]
    return CandidatePools(
        minions=minions, artifacts=artifacts, auras=auras, magics=magics, sites=sites, avatars=avatars,
    )
