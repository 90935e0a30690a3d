# vaultclash/engine/models.py
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any, Tuple

EFFECT_TYPES = ("burn", "stun", "bleed", "poison", "confuse", "drain", "cleanse", "freeze", "reduce")
MOVE_TYPES = ("attack", "defense", "heal", "utility", "support")
ROLES = ("self", "ally", "opponent")

PHASES = (
    "selection",
    "execution",
    "opponent_turn",
    "cutscene",
    "victory",
    "defeat",
    "escape",
)
TERMINAL_PHASES = ("victory", "defeat", "escape")


@dataclass
class EffectTemplate:
    type: str
    duration: int = 1
    success_chance: int = 100
    damage_per_turn: int = 0
    loss_per_turn: int = 0
    steal_per_turn: int = 0
    heal_per_turn: int = 0
    reduction_pct: int = 0
    trigger_chance: int = 0


@dataclass
class ActiveEffect:
    type: str
    remaining: int
    damage_per_turn: int = 0
    loss_per_turn: int = 0
    steal_per_turn: int = 0
    heal_per_turn: int = 0
    reduction_pct: int = 0
    trigger_chance: int = 0
    source_id: Optional[str] = None
    source_move: str = ""

    @classmethod
    def from_template(cls, template: EffectTemplate, source_id: Optional[str] = None, source_move: str = "") -> "ActiveEffect":
        return cls(
            type=template.type,
            remaining=int(template.duration),
            damage_per_turn=template.damage_per_turn,
            loss_per_turn=template.loss_per_turn,
            steal_per_turn=template.steal_per_turn,
            heal_per_turn=template.heal_per_turn,
            reduction_pct=template.reduction_pct,
            trigger_chance=template.trigger_chance,
            source_id=source_id,
            source_move=source_move,
        )


@dataclass
class DamageReduction:
    amount: int = 0
    percentage: int = 0
    duration: int = 1


@dataclass
class CounterMove:
    condition: str = "if_attacked"          # "always" | "if_attacked" | "on_low_health"
    damage: int = 0
    damage_range: Optional[Tuple[int, int]] = None
    threshold: int = 0                      # hp percentage for on_low_health


@dataclass
class Guard:
    """Active damage reduction raised by a defense move."""
    source_move: str
    amount: int = 0
    percentage: int = 0
    remaining: int = 1
    counter: Optional[CounterMove] = None


@dataclass
class Move:
    id: str
    name: str
    category: str = "manifest"
    type: str = "attack"
    description: str = ""
    damage: int = 0
    damage_range: Optional[Tuple[int, int]] = None
    healing: int = 0
    healing_range: Optional[Tuple[int, int]] = None
    shield_boost: int = 0
    steal: int = 0
    priority: Optional[int] = None
    level: int = 1
    mastery: int = 1
    effects: List[EffectTemplate] = field(default_factory=list)
    reduction: Optional[DamageReduction] = None
    counter: Optional[CounterMove] = None

    @property
    def is_offensive(self) -> bool:
        return self.type == "attack" or (self.type == "utility" and bool(self.effects))


@dataclass
class Participant:
    id: str
    name: str
    role: str = "self"
    controller: str = "human"               # "human" | "cpu"
    hp: int = 100
    hp_max: int = 100
    shield: int = 50
    shield_max: int = 50
    level: int = 1
    speed: int = 50
    archetype: Optional[str] = None
    moves: List[Move] = field(default_factory=list)
    effects: List[ActiveEffect] = field(default_factory=list)
    guards: List[Guard] = field(default_factory=list)
    instant_defeat: Optional[Dict[str, Any]] = None

    @property
    def side(self) -> str:
        return "enemy" if self.role == "opponent" else "player"

    @property
    def is_defeated(self) -> bool:
        return self.hp <= 0

    def move(self, move_id: Optional[str]) -> Optional[Move]:
        for mv in self.moves:
            if mv.id == move_id:
                return mv
        return None

    def resources(self) -> Dict[str, int]:
        return {"hp": self.hp, "hp_max": self.hp_max, "shield": self.shield, "shield_max": self.shield_max}

    def snapshot(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "hp": self.hp,
            "shield": self.shield,
            "effects": [asdict(e) for e in self.effects],
            "guards": [asdict(g) for g in self.guards],
        }

    def adopt(self, snap: Dict[str, Any]) -> None:
        """Overwrite resources and effects from a peer's snapshot."""
        self.hp = max(0, min(self.hp_max, int(snap.get("hp", self.hp))))
        self.shield = max(0, min(self.shield_max, int(snap.get("shield", self.shield))))
        if "effects" in snap:
            self.effects = [ActiveEffect(**e) for e in snap["effects"] or []]
        if "guards" in snap:
            guards = []
            for g in snap["guards"] or []:
                g = dict(g)
                if g.get("counter"):
                    g["counter"] = CounterMove(**g["counter"])
                guards.append(Guard(**g))
            self.guards = guards


@dataclass
class MoveSelection:
    participant_id: str
    move_id: Optional[str]
    target_id: Optional[str]


@dataclass
class TurnEntry:
    participant_id: str
    speed: int
    priority: int
    random: int
    score: int


@dataclass
class BattleState:
    battle_id: str
    self_id: str
    participants: Dict[str, Participant] = field(default_factory=dict)
    seed: int = 0                           # for deterministic dice
    pvp: bool = False
    first_id: Optional[str] = None          # pvp: who acts first each turn
    phase: str = "selection"
    turn: int = 1
    log: List[str] = field(default_factory=list)
    selected_move: Optional[str] = None
    selected_target: Optional[str] = None
    selections: Dict[str, MoveSelection] = field(default_factory=dict)
    turn_order: List[TurnEntry] = field(default_factory=list)
    cursor: int = 0
    steal_pool: Dict[str, int] = field(default_factory=lambda: {"player": 0, "enemy": 0})
    result: Optional[str] = None
    rewards: Dict[str, Any] = field(default_factory=dict)
    interrupt: Optional[Dict[str, Any]] = None
    last_action: Optional[Dict[str, Any]] = None

    @property
    def me(self) -> Participant:
        return self.participants[self.self_id]

    def live(self, side: Optional[str] = None) -> List[Participant]:
        return [
            p for p in self.participants.values()
            if not p.is_defeated and (side is None or p.side == side)
        ]

    def opponents_of(self, pid: str) -> List[Participant]:
        side = self.participants[pid].side
        return [p for p in self.live() if p.side != side]

    @property
    def is_round_mode(self) -> bool:
        return len(self.live()) >= 3

    @property
    def is_over(self) -> bool:
        return self.phase in TERMINAL_PHASES


@dataclass
class PublishedMoveRecord:
    round_id: str
    actor_id: str
    kind: str = "outcome"                   # "outcome" | "selection"
    move_id: Optional[str] = None
    move_name: str = ""
    target_id: Optional[str] = None
    deltas: Dict[str, int] = field(default_factory=lambda: {"shield": 0, "primary": 0})
    snapshot: Dict[str, Any] = field(default_factory=dict)
    log_lines: List[str] = field(default_factory=list)
    stolen: int = 0
    turn: int = 0
    timestamp: float = 0.0
    processed_by: List[str] = field(default_factory=list)
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PublishedMoveRecord":
        known = {name for name in cls.__dataclass_fields__}
        data = {key: value for key, value in (payload or {}).items() if key in known}
        data.setdefault("round_id", "")
        data.setdefault("actor_id", "")
        data["processed_by"] = list(data.get("processed_by") or [])
        data["log_lines"] = list(data.get("log_lines") or [])
        return cls(**data)
