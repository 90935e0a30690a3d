# vaultclash/content/balance.py
DEFAULTS = {
    "hp": 100,
    "shield": 50,
    "level": 1,
    "speed": 50,
    "cpu_speed_base": 40,
    "cpu_speed_per_level": 2,
}

CAPS = {
    "mastery_min": 1,
    "mastery_max": 10,
    "ascended_from": 6,
    "max_chance": 95,
    "reduction_pct_max": 100,
}

# Turn order: score = speed + priority * PRIORITY_WEIGHT + randint(*TURN_JITTER)
PRIORITY_WEIGHT = 100
TURN_JITTER = (0, 5)

TYPE_PRIORITIES = {
    "attack": 0,
    "defense": 0,
    "heal": 0,
    "utility": 0,
    "support": 0,
}

# Base range shape per call site: [floor(base * floor), base] + level bonus.
RANGE_SHAPES = {
    "damage": {"floor": 0.80, "level_step": 0.10},
    "healing": {"floor": 0.80, "level_step": 0.10},
    "shield": {"floor": 0.85, "level_step": 0.08},
}

# (min_mult, max_mult) applied when stepping INTO the keyed tier.
MASTERY_BOOSTS = {
    2: (1.05, 1.10),
    3: (1.05, 1.12),
    4: (1.08, 1.15),
    5: (1.10, 1.20),
}

ASCENDED_BOOSTS = {
    6: (1.15, 1.25),
    7: (1.15, 1.30),
    8: (1.20, 1.35),
    9: (1.20, 1.40),
    10: (1.25, 1.50),
}

SHIELD_MASTERY_BOOSTS = {
    2: (1.04, 1.08),
    3: (1.04, 1.10),
    4: (1.06, 1.12),
    5: (1.08, 1.15),
    6: (1.10, 1.20),
    7: (1.10, 1.22),
    8: (1.12, 1.25),
    9: (1.12, 1.28),
    10: (1.15, 1.30),
}

# Displayed chance of a max roll (percent); informational only.
MAX_CHANCE = {
    "damage": {"base": 20, "move_level": 5, "mastery": 8},
    "healing": {"base": 25, "move_level": 5, "mastery": 8},
    "shield": {"base": 30, "move_level": 6, "mastery": 10},
}

CPU_WEIGHTS = {
    "critical_hp_pct": 25,
    "low_hp_pct": 50,
    "no_shield_pct": 20,
    "low_shield_pct": 50,
    "target_low_hp_pct": 30,
    "target_healthy_pct": 70,
    "finishing_bonus": 500,
    "weak_attack_damage": 10,
}

ARCHETYPE_STYLES = {
    "balanced": {"attack": 1.0, "defense": 1.0, "heal": 1.0},
    "aggressive": {"attack": 1.4, "defense": 0.6, "heal": 0.7},
    "defensive": {"attack": 0.8, "defense": 1.5, "heal": 1.3},
    "passive": {"attack": 0.0, "defense": 1.0, "heal": 1.0},
}

POLL_INTERVAL_SECONDS = 1.0
OVERRIDE_CACHE_SECONDS = 5 * 60
