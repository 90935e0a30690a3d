# vaultclash/content/moves.py
# Moves a player brings into a practice battle when none are picked.
DEFAULT_LOADOUT = ["emotional_read", "pattern_shield", "mend", "ember_lash"]

MOVES = {
    "emotional_read": {
        "name": "Emotional Read",
        "category": "manifest",
        "type": "attack",
        "description": "Reads the target's intent and strikes at the gap.",
        "damage": 8,
        "level": 1,
    },
    "reality_rewrite": {
        "name": "Reality Rewrite",
        "category": "manifest",
        "type": "attack",
        "description": "Rewrites a line of the target's story.",
        "damage": 12,
        "level": 1,
    },
    "pattern_break": {
        "name": "Pattern Break",
        "category": "manifest",
        "type": "attack",
        "description": "Breaks the target's rhythm and siphons their reserves.",
        "damage": 16,
        "steal": 8,
        "level": 1,
    },
    "flow_strike": {
        "name": "Flow Strike",
        "category": "manifest",
        "type": "attack",
        "damage": 14,
        "priority": 1,
        "level": 1,
    },
    "pattern_shield": {
        "name": "Pattern Shield",
        "category": "manifest",
        "type": "defense",
        "description": "Raises a lattice of predicted blows.",
        "shield_boost": 15,
        "level": 1,
    },
    "rhythm_guard": {
        "name": "Rhythm Guard",
        "category": "manifest",
        "type": "defense",
        "shield_boost": 16,
        "reduction": {"amount": 3, "percentage": 0, "duration": 2},
        "level": 1,
    },
    "mend": {
        "name": "Mend",
        "category": "system",
        "type": "heal",
        "healing": 18,
        "level": 1,
    },
    "rally": {
        "name": "Rally",
        "category": "system",
        "type": "support",
        "description": "Restores an ally's shield.",
        "shield_boost": 12,
        "level": 1,
    },
    # Elemental moves with status effects
    "ember_lash": {
        "name": "Ember Lash",
        "category": "elemental",
        "type": "attack",
        "damage": 10,
        "level": 1,
        "effects": [
            {"type": "burn", "duration": 3, "success_chance": 80, "damage_per_turn": 4},
        ],
    },
    "venom_dart": {
        "name": "Venom Dart",
        "category": "elemental",
        "type": "attack",
        "damage": 6,
        "level": 1,
        "effects": [
            {"type": "poison", "duration": 3, "success_chance": 90, "damage_per_turn": 3},
        ],
    },
    "frost_bind": {
        "name": "Frost Bind",
        "category": "elemental",
        "type": "attack",
        "damage": 7,
        "priority": -1,
        "level": 1,
        "effects": [
            {"type": "freeze", "duration": 1, "success_chance": 60},
        ],
    },
    "stagger": {
        "name": "Stagger",
        "category": "elemental",
        "type": "attack",
        "damage": 5,
        "level": 1,
        "effects": [
            {"type": "stun", "duration": 1, "success_chance": 50},
        ],
    },
    "bleeding_edge": {
        "name": "Bleeding Edge",
        "category": "elemental",
        "type": "attack",
        "damage": 9,
        "level": 1,
        "effects": [
            {"type": "bleed", "duration": 2, "success_chance": 75, "loss_per_turn": 5},
        ],
    },
    "siphon": {
        "name": "Siphon",
        "category": "elemental",
        "type": "attack",
        "damage": 6,
        "level": 1,
        "effects": [
            {"type": "drain", "duration": 3, "success_chance": 85, "steal_per_turn": 3, "heal_per_turn": 3},
        ],
    },
    "mind_fog": {
        "name": "Mind Fog",
        "category": "elemental",
        "type": "utility",
        "level": 1,
        "effects": [
            {"type": "confuse", "duration": 2, "success_chance": 70, "trigger_chance": 50},
        ],
    },
    "iron_skin": {
        "name": "Iron Skin",
        "category": "elemental",
        "type": "defense",
        "shield_boost": 8,
        "level": 1,
        "effects": [
            {"type": "reduce", "duration": 2, "success_chance": 100, "reduction_pct": 30},
        ],
    },
    "clear_mind": {
        "name": "Clear Mind",
        "category": "system",
        "type": "support",
        "healing": 6,
        "level": 1,
        "effects": [
            {"type": "cleanse", "duration": 0, "success_chance": 100},
        ],
    },
    "thorn_ward": {
        "name": "Thorn Ward",
        "category": "elemental",
        "type": "defense",
        "shield_boost": 10,
        "reduction": {"amount": 0, "percentage": 25, "duration": 2},
        "counter": {"condition": "if_attacked", "damage": 6},
        "level": 1,
    },
    # CPU opponent moves
    "flameburst": {
        "name": "Flameburst",
        "category": "cpu",
        "type": "attack",
        "description": "Sends out two fireballs at the opponent.",
        "damage_range": (28, 36),
    },
    "inferno_breaker": {
        "name": "Inferno Breaker",
        "category": "cpu",
        "type": "attack",
        "damage_range": (45, 60),
        "priority": -1,
    },
    "phoenix_regeneration": {
        "name": "Phoenix Regeneration",
        "category": "cpu",
        "type": "heal",
        "healing_range": (30, 45),
    },
    "vault_breach": {"name": "Vault Breach", "category": "cpu", "type": "attack", "damage": 8, "steal": 4},
    "shield_bash": {"name": "Shield Bash", "category": "cpu", "type": "attack", "damage": 7},
    "energy_strike": {"name": "Energy Strike", "category": "cpu", "type": "attack", "damage": 9},
    "ice_shard": {
        "name": "Ice Shard",
        "category": "cpu",
        "type": "attack",
        "damage_range": (20, 50),
        "effects": [
            {"type": "freeze", "duration": 1, "success_chance": 20},
        ],
    },
    "ice_punch": {"name": "Ice Punch", "category": "cpu", "type": "attack", "damage_range": (25, 40)},
    "glacial_wall": {
        "name": "Glacial Wall",
        "category": "cpu",
        "type": "defense",
        "shield_boost": 20,
        "reduction": {"amount": 5, "percentage": 20, "duration": 2},
        "counter": {"condition": "on_low_health", "damage_range": (8, 12), "threshold": 40},
    },
}
