#Dictionary

# Mechanic taxonomy used by the mechanical synergy scorer.
# Plain phrase containment on lower-cased ability text, first hit wins per tag.
MECHANIC_KEYWORDS = {
    "airborne": ["airborne", "flying"],
    "burrowing": ["burrowing", "burrow", "underground"],
    "submerge": ["submerge", "underwater", "waterbound"],
    "voidwalk": ["voidwalk", "the void"],
    "charge": ["charge", "haste"],
    "stealth": ["stealth", "can't be targeted", "cannot be targeted"],
    "lethal": ["lethal", "deathtouch"],
    "strike_first": ["strikes first", "strike first", "first strike", "lance"],
    "ranged": ["ranged", "projectile", "shoot"],
    "spellcaster": ["spellcaster"],
    "movement": ["movement +", "move to", "teleport", "moves to", "move an additional"],
    "draw": ["draw a spell", "draw a site", "draw a card", "draw two", "draw three", "draw spells"],
    "resource": ["mana", "gain an additional", "provides", "affinity"],
    "direct_damage": ["deals damage", "deal damage", "damage to target", "damage to each", "damage to all"],
    "minion_control": ["gain control", "take control", "disable", "can't attack", "cannot attack"],
    "area_effect": ["each minion", "all minions", "each unit", "all units", "each enemy", "every minion"],
    "defense": ["defend", "intercept", "ward", "prevent", "spellguard", "protect"],
    "minion_boost": ["minions you control", "allied minions", "other minions", "gets +", "get +", "gains +"],
    "recursion": ["cemetery", "resurrect", "return it to", "from your cemetery"],
    "tokens": ["token", "summon a", "create a"],
    "equipment": ["equipment", "bearer", "equip"],
    "deathrite": ["deathrite"],
    "genesis": ["genesis"],
}

# Keyword abilities printed on Sorcery cards, used to pull the keyword line apart.
SORCERY_KEYWORD_ABILITIES = [
    "airborne",
    "burrowing",
    "charge",
    "deathrite",
    "genesis",
    "immobile",
    "lance",
    "lethal",
    "movement +",
    "ranged",
    "spellcaster",
    "stealth",
    "submerge",
    "voidwalk",
    "waterbound",
]

# (mechanic on candidate, mechanic in context, weight)
COMPLEMENTARY_MECHANICS = [
    ("draw", "resource", 2.0),
    ("resource", "draw", 2.0),
    ("direct_damage", "minion_control", 1.5),
    ("minion_control", "direct_damage", 1.5),
    ("area_effect", "defense", 1.5),
    ("defense", "area_effect", 1.5),
    ("minion_boost", "charge", 2.0),
    ("minion_boost", "airborne", 2.0),
    ("charge", "minion_boost", 2.0),
    ("airborne", "minion_boost", 2.0),
    ("strike_first", "lethal", 1.0),
    ("lethal", "strike_first", 1.0),
]

# Combo pattern keyword lists; the registry in combos.py wires these to predicates.
COMBO_KEYWORDS = {
    "equipment_synergy": ["equipment", "bearer", "equip"],
    "lance_cavalry": ["lance"],
    "projectile_barrage": ["projectile", "ranged", "shoot", "artillery"],
    "spellcaster_engine": ["spellcaster"],
    "lethal_strike": ["lethal"],
    "token_swarm": ["token"],
    "movement_control": ["teleport", "movement +", "move to", "moves to", "push", "pull"],
    "immobilize_lock": ["immobile", "can't move", "cannot move"],
    "voidwalk_recursion": ["voidwalk", "resurrect", "from your cemetery", "from the cemetery"],
    "disable_control": ["disable", "disabled", "asleep", "sleep"],
    "mind_control": ["gain control", "take control", "steal"],
    "curse_affliction": ["curse", "hex", "afflict"],
    "transformation": ["transform", "polymorph", "becomes a"],
    "cost_reduction": ["costs less", "cost less", "costs ① less", "reduce the cost", "cheaper"],
    "spell_triggered": ["whenever you cast", "whenever a spell", "after you cast"],
    "aura_control": ["aura"],
    "aura_dispel": ["dispel", "banish", "destroy target aura", "remove an aura"],
    "underground_assault": ["burrowing", "underground"],
    "underwater_ambush": ["submerge", "underwater", "waterbound"],
    "airborne_dominance": ["airborne"],
    "deathrite_sacrifice": ["deathrite", "genesis"],
}

# Rarity → maximum copies of one base name
RARITY_COPY_LIMITS = {
    "Ordinary": 4,
    "Exceptional": 3,
    "Elite": 2,
    "Unique": 1,
}

# Atlas or spellbook sizes past this get a shuffling warning
OVERSIZED_PILE = 100

DEFAULT_SPELLBOOK_SIZE = 50
DEFAULT_SITE_COUNT = 30

# Indicative spellbook allocation, only used to report category balance
DEFAULT_ALLOCATION = {
    "Minion": 24,
    "Artifact": 10,
    "Aura": 6,
    "Magic": 15,
}

# Ideal share of the spellbook per cost bucket (7 means 7+). Sums to 1.0.
CURVE_MAX_BUCKET = 7
IDEAL_CURVE = {
    0: 0.02,
    1: 0.12,
    2: 0.22,
    3: 0.22,
    4: 0.18,
    5: 0.12,
    6: 0.07,
    7: 0.05,
}

# Report bands over the cost buckets: 0..2 is the early game, 6+ the top end
CURVE_LOW_MAX = 2
CURVE_HIGH_MIN = 6

# Site selection
SITE_DOMINANT_RATIO = 0.4
SITE_SECONDARY_RATIO = 0.2
SITE_DRAW_KEYWORDS = ["draw", "search", "look at the top"]
SITE_RESOURCE_KEYWORDS = ["mana", "threshold", "affinity", "provides"]
SITE_EXPENSIVE_COST = 3

# Aggregator weights per archetype preference.
# Keys: elemental, mechanical, cost_curve, combo, plus per-category multipliers.
ARCHETYPE_WEIGHT_PRESETS = {
    "Balanced": {
        "elemental": 3.0,
        "mechanical": 1.0,
        "cost_curve": 0.6,
        "combo": 2.0,
        "categories": {},
    },
    "Combo": {
        "elemental": 2.5,
        "mechanical": 1.0,
        "cost_curve": 0.3,
        "combo": 4.0,
        "categories": {},
    },
    "Aggro": {
        "elemental": 2.5,
        "mechanical": 1.2,
        "cost_curve": 1.5,
        "combo": 1.5,
        "categories": {"Minion": 1.2},
    },
    "Control": {
        "elemental": 3.0,
        "mechanical": 1.0,
        "cost_curve": 0.6,
        "combo": 2.0,
        "categories": {"Magic": 1.2, "Aura": 1.1},
    },
    "Midrange": {
        "elemental": 3.0,
        "mechanical": 1.0,
        "cost_curve": 0.8,
        "combo": 2.0,
        "categories": {"Minion": 1.1},
    },
}

# Archetype detection thresholds (share of the spellbook)
CONTROL_SPELL_SHARE = 0.4
AGGRO_LOW_COST_SHARE = 0.6
AGGRO_MAX_COST = 3
MIDRANGE_SHARE = 0.5
MIDRANGE_COST_RANGE = (3, 6)

# How much an avatar's own elements count when steering the site base
AVATAR_ELEMENT_WEIGHT = 5
