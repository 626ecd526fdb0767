"""
tests/test_deck_report.py
Archetype labels and the tabular / text build reports.
"""

import pytest

from archetypes import identify_deck_archetypes
from combos import detect_combos
from config import BuilderConfig
from deck_builder import build_spellbook
from deck_report import (
    SPELLBOOK_COLUMNS,
    category_balance,
    combo_frame,
    describe_spellbook,
    spellbook_frame,
)
from sorcery_vocab import Category


def test_archetypes_from_card_mix(card):
    cheap_spells = [card(f"Bolt {i}", Category.MAGIC, cost=1) for i in range(4)] + [card("Ogre", cost=5)]
    labels = {m.name: m.strength for m in identify_deck_archetypes(cheap_spells)}
    assert labels["Control"] == 0.8
    assert labels["Aggro"] == 0.8
    assert "Midrange" not in labels
    assert "Combo" not in labels


def test_combo_archetype_needs_combos(card, equipment_pair):
    cards = list(equipment_pair)
    matches = identify_deck_archetypes(cards, detect_combos(cards))
    combo = [m for m in matches if m.name == "Combo"][0]
    assert combo.strength == 0.2
    assert [c.name for c in combo.cards] == ["Iron Gauntlet", "Steel Helm"]
    assert identify_deck_archetypes([]) == []


def test_archetypes_sorted_by_strength(card):
    cards = [card(f"M{i}", cost=4) for i in range(3)] + [card("Bolt", Category.MAGIC, cost=1)]
    matches = identify_deck_archetypes(cards)
    assert [m.name for m in matches] == ["Midrange"]
    assert matches[0].strength == 0.75


def test_spellbook_frame(fire_pools):
    book = build_spellbook(fire_pools, config=BuilderConfig(spellbook_size=8, site_count=4), report_combos=True)
    frame = spellbook_frame(book)

    assert list(frame.columns) == SPELLBOOK_COLUMNS
    assert len(frame) == 8
    assert frame["step"].tolist() == list(range(1, 9))
    assert (frame["total"] >= 0).all()
    assert frame["total"].sum() == pytest.approx(book.total_synergy)


def test_combo_frame(equipment_pair):
    frame = combo_frame(detect_combos(list(equipment_pair)))
    assert frame.loc[0, "pattern"] == "equipment_synergy"
    assert frame.loc[0, "count"] == 2
    assert frame.loc[0, "cards"] == "Iron Gauntlet, Steel Helm"
    assert combo_frame([]).empty


def test_category_balance_scales_allocation(fire_pools):
    book = build_spellbook(fire_pools, config=BuilderConfig(spellbook_size=10, site_count=0))
    balance = category_balance(book)
    assert balance["category"].tolist() == ["Minion", "Artifact", "Aura", "Magic"]
    assert balance["count"].sum() == 10
    assert balance.loc[0, "planned"] == round(24 * 10 / 55, 1)


def test_describe_spellbook_mentions_the_essentials(fire_pools):
    book = build_spellbook(fire_pools, config=BuilderConfig(spellbook_size=20, site_count=2), report_combos=True)
    text = describe_spellbook(book)

    assert text.startswith("Flamecaller:")
    assert "INSUFFICIENT_POOL" in text
    assert "card(s) short" in text
    assert "Categories:" in text
    assert "Total pick synergy" in text


def test_describe_spellbook_reports_thin_site_base(fire_pools):
    book = build_spellbook(fire_pools, config=BuilderConfig(spellbook_size=8, site_count=20))
    text = describe_spellbook(book)

    assert len(book.sites) == 6
    assert "Atlas is 14 site(s) short of 20." in text
    assert "Error: Atlas needs 20 sites, has 6" in text
    assert "off the target curve" in text
