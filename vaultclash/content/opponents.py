# vaultclash/content/opponents.py
OPPONENTS = {
    "training_dummy": {
        "id": "training_dummy",
        "name": "Training Dummy",
        "style": "passive",
        "level": 1,
        "hp": 60,
        "shield": 0,
        "moves": ["pattern_shield"],
    },
    "powered_zombie": {
        "id": "powered_zombie",
        "name": "Powered Zombie",
        "style": "aggressive",
        "level": 3,
        "hp": 90,
        "shield": 20,
        "moves": ["energy_strike", "vault_breach", "shield_bash"],
    },
    "master_guardian": {
        "id": "master_guardian",
        "name": "Master Guardian",
        "style": "balanced",
        "level": 8,
        "hp": 160,
        "shield": 60,
        "moves": ["flameburst", "inferno_breaker", "phoenix_regeneration"],
    },
    "legendary_protector": {
        "id": "legendary_protector",
        "name": "Legendary Protector",
        "style": "defensive",
        "level": 6,
        "hp": 140,
        "shield": 80,
        "moves": ["vault_breach", "shield_bash", "energy_strike", "glacial_wall"],
    },
    "ice_golem": {
        "id": "ice_golem",
        "name": "Ice Golem",
        "style": "aggressive",
        "level": 10,
        "hp": 220,
        "shield": 40,
        "moves": ["ice_shard", "ice_punch", "glacial_wall"],
        # Scripted: a hit that leaves the controlling player under 20 hp ends
        # the fight and hands over to the "icy_death" cutscene.
        "instant_defeat": {"target_roles": ["self"], "hp_below": 20, "cutscene": "icy_death"},
    },
}
