"""
tests/test_deck_builder.py
Avatar/site selection, greedy spell selection, legality and reporting flags.
"""

import logging
from collections import Counter

import pytest

import deck_builder
from combos import DEFAULT_REGISTRY, ComboPattern
from config import BuilderConfig
from deck_builder import (
    CandidatePools,
    SpellbookBuilder,
    build_spellbook,
    select_avatar,
    select_sites,
)
from errors import BuilderStateError, InvalidConfiguration
from sorcery_vocab import BuilderState, BuildStatus, Category, Element, Rarity

SMALL = BuilderConfig(spellbook_size=10, site_count=4)


def test_avatar_covers_most_common_element(fire_pools):
    assert select_avatar(fire_pools).name == "Flamecaller"


def test_avatar_tie_keeps_input_order(card):
    pools = CandidatePools(
        minions=[card("Imp", elements={Element.FIRE}), card("Nixie", elements={Element.WATER})],
        avatars=[card("Wave", Category.AVATAR, elements={Element.WATER}),
                 card("Flame", Category.AVATAR, elements={Element.FIRE})],
    )
    assert select_avatar(pools).name == "Wave"
    assert select_avatar(CandidatePools()) is None


def test_sites_follow_dominant_element(fire_pools):
    avatar = select_avatar(fire_pools)
    sites = select_sites(fire_pools, avatar, SMALL)

    assert len(sites) == 4
    # draw site outranks the plain fire sites
    assert sites[0].name == "Arid Library"
    assert Counter(s.base_name for s in sites)["Red Desert"] <= 4
    assert all(Element.FIRE in s.elements or Element.WATER in s.elements for s in sites)


def test_site_copy_limits(card):
    pools = CandidatePools(
        minions=[card("Imp", elements={Element.FIRE})],
        sites=[card("Volcano", Category.SITE, elements={Element.FIRE}, rarity=Rarity.ELITE) for _ in range(5)],
    )
    sites = select_sites(pools, None, BuilderConfig(site_count=5))
    assert [s.name for s in sites] == ["Volcano", "Volcano"]


def test_full_build_is_legal(fire_pools):
    book = build_spellbook(fire_pools, config=SMALL)

    assert book.status is BuildStatus.COMPLETE
    assert not book.insufficient_pool
    assert len(book.spells) == 10
    assert book.shortfall == 0
    assert book.avatar.name == "Flamecaller"
    assert len(book.sites) == 4
    assert book.site_shortfall == 0
    assert book.is_valid

    limits = {c.base_name: SMALL.copy_limit(c.rarity) for c in book.spells}
    for name, n in book.copy_counts.items():
        assert n <= limits[name]
    assert sum(book.category_counts.values()) == 10
    assert [p.step for p in book.picks] == list(range(1, 11))
    assert book.total_synergy == pytest.approx(sum(p.breakdown.total for p in book.picks))


def test_unique_cards_capped_at_one(fire_pools):
    book = build_spellbook(fire_pools, config=BuilderConfig(spellbook_size=20, site_count=0))
    assert book.copy_counts.get("Pyre Lord", 0) <= 1
    assert book.copy_counts.get("Ember Hound", 0) <= 4
    assert book.copy_counts.get("Fireball", 0) <= 3


def test_small_pool_returns_flagged_partial_deck(card, caplog):
    pools = {
        "minions": [card("Imp"), card("Ogre", cost=4)],
        "magics": [card("Bolt", Category.MAGIC, cost=1)],
    }
    with caplog.at_level(logging.WARNING, logger="deck_builder"):
        book = build_spellbook(pools)

    assert book.status is BuildStatus.INSUFFICIENT_POOL
    assert book.insufficient_pool
    assert len(book.spells) == 3
    assert book.shortfall == 47
    assert "Insufficient pool" in caplog.text


def test_copy_limits_count_towards_available_candidates(card):
    pools = CandidatePools(
        minions=[card("Lone Hero", rarity=Rarity.UNIQUE) for _ in range(6)] + [card("Imp")],
    )
    book = build_spellbook(pools, config=BuilderConfig(spellbook_size=5))
    assert len(book.spells) == 2
    assert book.shortfall == 3
    assert book.insufficient_pool


def test_tie_goes_to_earlier_pool_position(card):
    pools = CandidatePools(minions=[card("Zephyr Squire"), card("Aldric Squire")])
    book = build_spellbook(pools, config=BuilderConfig(spellbook_size=1))
    assert [c.name for c in book.spells] == ["Zephyr Squire"]


def test_tie_at_same_position_falls_back_to_name(card):
    pools = CandidatePools(minions=[card("Bram")], magics=[card("Aegis", Category.MAGIC)])
    book = build_spellbook(pools, config=BuilderConfig(spellbook_size=1))
    assert [c.name for c in book.spells] == ["Aegis"]
    assert book.picks[0].pool is Category.MAGIC


def test_builds_are_deterministic(fire_pools):
    first = build_spellbook(fire_pools, None, "Combo", config=SMALL, report_combos=True)
    second = build_spellbook(fire_pools, None, "Combo", config=SMALL, report_combos=True)
    assert first == second
    assert [c.pattern for c in first.combos] == [c.pattern for c in second.combos]


def test_parallel_scoring_matches_sequential(fire_pools):
    sequential = build_spellbook(fire_pools, config=SMALL)
    parallel = build_spellbook(fire_pools, config=BuilderConfig(spellbook_size=10, site_count=4, max_workers=4))
    assert parallel.spells == sequential.spells
    assert parallel.picks == sequential.picks


def test_report_combos_lists_final_deck_combos(fire_pools):
    book = build_spellbook(fire_pools, config=BuilderConfig(spellbook_size=20, site_count=0), report_combos=True)
    assert book.combos is not None
    if sum(1 for c in book.spells if c.has_subtype("Equipment")) >= 2:
        assert "equipment_synergy" in [c.pattern for c in book.combos]
    assert build_spellbook(fire_pools, config=SMALL).combos is None


def test_bad_preference_fails_before_selection(fire_pools, monkeypatch):
    def should_not_run(*args, **kwargs):
        raise AssertionError("selection started")

    monkeypatch.setattr(deck_builder, "select_avatar", should_not_run)
    with pytest.raises(InvalidConfiguration):
        build_spellbook(fire_pools, archetype_preference="Tempo")
    with pytest.raises(InvalidConfiguration):
        build_spellbook(fire_pools, weight_overrides={"combo": -3})
    with pytest.raises(InvalidConfiguration):
        build_spellbook(fire_pools, config=BuilderConfig(spellbook_size=0))


def test_avatar_argument_must_be_an_avatar(fire_pools):
    with pytest.raises(InvalidConfiguration):
        build_spellbook(fire_pools, avatar=fire_pools.minions[0])


def test_supplied_avatar_is_used(fire_pools):
    book = build_spellbook(fire_pools, avatar=fire_pools.avatars[0], config=SMALL)
    assert book.avatar.name == "Tidewarden"


def test_unknown_pool_name_rejected(card):
    with pytest.raises(InvalidConfiguration):
        build_spellbook({"creatures": [card("Imp")]})


def test_flat_card_list_is_partitioned(card):
    cards = [card("Imp"), card("Bolt", Category.MAGIC), card("Red Desert", Category.SITE),
             card("Flame", Category.AVATAR, elements={Element.FIRE})]
    pools = CandidatePools.from_cards(cards)
    assert [c.name for c in pools.minions] == ["Imp"]
    assert [c.name for c in pools.magics] == ["Bolt"]
    assert [c.name for c in pools.sites] == ["Red Desert"]
    assert [c.name for c in pools.avatars] == ["Flame"]


def test_non_spells_in_spell_pools_are_skipped(card, caplog):
    pools = CandidatePools(minions=[card("Imp"), card("Red Desert", Category.SITE)])
    with caplog.at_level(logging.WARNING, logger="deck_builder"):
        book = build_spellbook(pools, config=BuilderConfig(spellbook_size=2))
    assert [c.name for c in book.spells] == ["Imp"]
    assert "Skipping Red Desert" in caplog.text


def test_pattern_failure_does_not_stop_the_build(fire_pools):
    def explode(c):
        raise KeyError("missing field")

    registry = DEFAULT_REGISTRY.register(ComboPattern("boom", "{cards}", explode, 5.0))
    book = build_spellbook(fire_pools, config=SMALL, registry=registry)

    assert book.status is BuildStatus.COMPLETE
    assert [f.pattern_name for f in book.pattern_failures] == ["boom"]


def test_builder_states_only_move_forward(fire_pools):
    builder = SpellbookBuilder(fire_pools, config=SMALL)
    assert builder.state is BuilderState.SELECTING_AVATAR
    builder.build()
    assert builder.state is BuilderState.DONE

    with pytest.raises(BuilderStateError):
        builder.build()
    with pytest.raises(BuilderStateError):
        builder._advance(BuilderState.SELECTING_SITES)


def test_one_cache_per_build(fire_pools):
    a = SpellbookBuilder(fire_pools, config=SMALL)
    b = SpellbookBuilder(fire_pools, config=SMALL)
    assert a.cache is not b.cache
    book = a.build()
    assert book.cache_stats["hits"] > 0
    assert len(b.cache) == 0


def test_thin_site_base_is_reported_on_the_result(card, caplog):
    pools = CandidatePools(
        minions=[card(f"Imp {i}") for i in range(12)],
        sites=[card("Red Desert", Category.SITE)],
    )
    with caplog.at_level(logging.WARNING, logger="deck_builder"):
        book = build_spellbook(pools, config=BuilderConfig(spellbook_size=10, site_count=5))

    # the spell count alone decides the status
    assert book.status is BuildStatus.COMPLETE
    assert len(book.sites) == 1
    assert book.site_target == 5
    assert book.site_shortfall == 4
    assert not book.is_valid
    assert book.validation.errors == ("Atlas needs 5 sites, has 1",)
    assert "Deck check: Atlas needs 5 sites" in caplog.text


def test_spell_in_the_wrong_pool_is_flagged(card, caplog):
    pools = CandidatePools(minions=[card("Bolt", Category.MAGIC)])
    with caplog.at_level(logging.WARNING, logger="deck_builder"):
        book = build_spellbook(pools, config=BuilderConfig(spellbook_size=1, site_count=0))

    assert [c.name for c in book.spells] == ["Bolt"]
    assert book.picks[0].pool is Category.MINION
    assert book.category_counts[Category.MAGIC] == 1
    assert "Bolt is a Magic but sits in the Minion pool" in caplog.text


def test_positions_compare_across_pools(card):
    pools = CandidatePools(minions=[card("Alder"), card("Birch")], magics=[card("Zephyr", Category.MAGIC)])
    book = build_spellbook(pools, config=BuilderConfig(spellbook_size=3, site_count=0))
    # the first magic outranks the second minion on equal scores
    assert [c.name for c in book.spells] == ["Alder", "Zephyr", "Birch"]
