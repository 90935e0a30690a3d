# vaultclash/engine/catalog.py
from __future__ import annotations

import inspect
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from .models import CounterMove, DamageReduction, EffectTemplate, EFFECT_TYPES, Move
from ..content.balance import OVERRIDE_CACHE_SECONDS
from ..content.moves import MOVES

logger = logging.getLogger(__name__)

# bookkeeping keys stored next to the override records
METADATA_KEYS = ("lastUpdated", "updatedBy", "last_updated", "updated_by")

_EFFECT_KEYS = {
    "type": "type",
    "duration": "duration",
    "successChance": "success_chance",
    "success_chance": "success_chance",
    "chance": "success_chance",
    "damagePerTurn": "damage_per_turn",
    "damage_per_turn": "damage_per_turn",
    "ppLossPerTurn": "loss_per_turn",
    "lossPerTurn": "loss_per_turn",
    "loss_per_turn": "loss_per_turn",
    "ppStealPerTurn": "steal_per_turn",
    "stealPerTurn": "steal_per_turn",
    "steal_per_turn": "steal_per_turn",
    "healPerTurn": "heal_per_turn",
    "heal_per_turn": "heal_per_turn",
    "reductionPct": "reduction_pct",
    "reduction_pct": "reduction_pct",
    "triggerChance": "trigger_chance",
    "trigger_chance": "trigger_chance",
}


def _effect_from_dict(raw: Dict[str, Any]) -> Optional[EffectTemplate]:
    data = {}
    for key, value in (raw or {}).items():
        field_name = _EFFECT_KEYS.get(key)
        if field_name and value is not None:
            data[field_name] = value
    effect_type = data.get("type")
    if not effect_type or effect_type == "none":
        return None
    if effect_type not in EFFECT_TYPES:
        logger.warning("Dropping unknown status effect type %r", effect_type)
        return None
    for key in data:
        if key != "type":
            data[key] = int(data[key])
    return EffectTemplate(**data)


def normalize_effects(record: Dict[str, Any]) -> List[EffectTemplate]:
    """One EffectTemplate list from any of the stored effect shapes.

    The effect list (``statusEffects`` / ``status_effects`` / ``effects``)
    wins over the legacy single ``statusEffect`` when both are present.
    """
    record = record or {}
    many = None
    for key in ("statusEffects", "status_effects", "effects"):
        if record.get(key):
            many = record[key]
            break
    if many is None:
        single = record.get("statusEffect") or record.get("status_effect")
        many = [single] if single else []

    effects = []
    for raw in many:
        effect = _effect_from_dict(raw)
        if effect is not None:
            effects.append(effect)
    return effects


def _as_range(value: Any) -> Optional[Tuple[int, int]]:
    if isinstance(value, dict):
        return int(value.get("min", 0)), int(value.get("max", 0))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return int(value[0]), int(value[1])
    return None


def _reduction(record: Dict[str, Any]) -> Optional[DamageReduction]:
    raw = record.get("reduction") or record.get("damageReduction")
    if not raw:
        return None
    return DamageReduction(
        amount=int(raw.get("amount", 0) or 0),
        percentage=int(raw.get("percentage", 0) or 0),
        duration=int(raw.get("duration", 1) or 1),
    )


def _counter(record: Dict[str, Any]) -> Optional[CounterMove]:
    raw = record.get("counter") or record.get("counterMove")
    if not raw:
        return None
    damage = raw.get("damage", 0)
    return CounterMove(
        condition=raw.get("condition", "if_attacked"),
        damage=damage if isinstance(damage, int) else 0,
        damage_range=_as_range(raw.get("damage_range") or raw.get("damageRange") or damage),
        threshold=int(raw.get("threshold", 0) or 0),
    )


def build_move(move_id: str, record: Dict[str, Any], level: Optional[int] = None, mastery: int = 1) -> Move:
    damage = record.get("damage", 0)
    damage_range = _as_range(record.get("damage_range")) or _as_range(damage)
    healing = record.get("healing", 0)
    return Move(
        id=move_id,
        name=record.get("name", move_id),
        category=record.get("category", "manifest"),
        type=record.get("type", "attack"),
        description=record.get("description", ""),
        damage=int(damage) if isinstance(damage, (int, float)) else 0,
        damage_range=damage_range,
        healing=int(healing) if isinstance(healing, (int, float)) else 0,
        healing_range=_as_range(record.get("healing_range")) or _as_range(healing),
        shield_boost=int(record.get("shield_boost", record.get("shieldBoost", 0)) or 0),
        steal=int(record.get("steal", record.get("ppSteal", 0)) or 0),
        priority=record.get("priority"),
        level=int(level if level is not None else record.get("level", 1)),
        mastery=int(mastery or 1),
        effects=normalize_effects(record),
        reduction=_reduction(record),
        counter=_counter(record),
    )


class OverrideCache:
    """Administrator override records, loaded lazily and kept for ``ttl`` seconds.

    ``version`` bumps on every reload or invalidation; subscribers are called
    with the new version.
    """

    def __init__(self, loader: Callable[[], Any], ttl: float = OVERRIDE_CACHE_SECONDS, clock=time.monotonic):
        self._loader = loader
        self.ttl = ttl
        self._clock = clock
        self._data: Optional[Dict[str, Dict[str, Any]]] = None
        self._loaded_at = 0.0
        self._subscribers: List[Callable[[int], None]] = []
        self.version = 0

    @property
    def is_stale(self) -> bool:
        return self._data is None or (self._clock() - self._loaded_at) >= self.ttl

    def get(self) -> Dict[str, Dict[str, Any]]:
        """Cached overrides without touching the loader."""
        return self._data or {}

    def subscribe(self, callback: Callable[[int], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def invalidate(self) -> None:
        logger.debug("Override cache invalidated")
        self._data = None
        self._loaded_at = 0.0
        self._bump()

    def refresh(self, force: bool = False) -> Dict[str, Dict[str, Any]]:
        if not force and not self.is_stale:
            logger.debug("Using cached move overrides")
            return self._data
        try:
            loaded = self._loader()
        except Exception:
            logger.error("Failed to load move overrides", exc_info=True)
            return self._data or {}
        return self._store(loaded)

    async def refresh_async(self, force: bool = False) -> Dict[str, Dict[str, Any]]:
        if not force and not self.is_stale:
            logger.debug("Using cached move overrides")
            return self._data
        try:
            loaded = self._loader()
            if inspect.isawaitable(loaded):
                loaded = await loaded
        except Exception:
            logger.error("Failed to load move overrides", exc_info=True)
            return self._data or {}
        return self._store(loaded)

    def _store(self, loaded: Optional[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
        data = {k: v for k, v in (loaded or {}).items() if k not in METADATA_KEYS}
        self._data = data
        self._loaded_at = self._clock()
        self._bump()
        return data

    def _bump(self) -> None:
        self.version += 1
        for callback in list(self._subscribers):
            callback(self.version)


class MoveCatalog:
    def __init__(self, defaults: Optional[Dict[str, Dict[str, Any]]] = None, cache: Optional[OverrideCache] = None):
        self.defaults = MOVES if defaults is None else defaults
        self.cache = cache or OverrideCache(dict)

    def _override(self, name: str) -> Optional[Dict[str, Any]]:
        return self.cache.get().get(name)

    def has_move(self, name: str) -> bool:
        return name in self.defaults or self._override(name) is not None

    def record(self, name: str) -> Dict[str, Any]:
        """Default record with the override's fields layered on top."""
        merged = dict(self.defaults.get(name, {}))
        override = self._override(name)
        if override:
            merged.update(override)
            if "damage" in override:
                merged.pop("damage_range", None)
            if any(k in override for k in ("statusEffect", "statusEffects", "status_effect", "status_effects")):
                merged.pop("effects", None)
        return merged

    def get_move_magnitude(self, name: str):
        override = self._override(name)
        if override and "damage" in override:
            return override["damage"]
        default = self.defaults.get(name)
        if default:
            return default.get("damage_range") or default.get("damage", 0)
        logger.warning("No magnitude found for move %r", name)
        return 0

    def get_move_name(self, name: str) -> str:
        override = self._override(name)
        if override and override.get("name"):
            return override["name"]
        return self.defaults.get(name, {}).get("name", name)

    def get_move_description(self, name: str) -> str:
        override = self._override(name)
        if override:
            return override.get("description", "")
        return self.defaults.get(name, {}).get("description", "")

    def get_move_status_effects(self, name: str) -> List[EffectTemplate]:
        return normalize_effects(self.record(name))

    async def get_move_magnitude_async(self, name: str):
        await self.cache.refresh_async()
        return self.get_move_magnitude(name)

    async def get_move_name_async(self, name: str) -> str:
        await self.cache.refresh_async()
        return self.get_move_name(name)

    async def get_move_description_async(self, name: str) -> str:
        await self.cache.refresh_async()
        return self.get_move_description(name)

    async def get_move_status_effects_async(self, name: str) -> List[EffectTemplate]:
        await self.cache.refresh_async()
        return self.get_move_status_effects(name)

    def resolve(self, name: str, level: Optional[int] = None, mastery: int = 1) -> Optional[Move]:
        if self.cache.is_stale:
            self.cache.refresh()
        if not self.has_move(name):
            logger.warning("Unknown move %r", name)
            return None
        return build_move(name, self.record(name), level=level, mastery=mastery)

    def describe(self, name: str) -> Dict[str, Any]:
        if self.cache.is_stale:
            self.cache.refresh()
        magnitude = self.get_move_magnitude(name)
        if isinstance(magnitude, tuple):
            magnitude = {"min": magnitude[0], "max": magnitude[1]}
        return {
            "id": name,
            "name": self.get_move_name(name),
            "description": self.get_move_description(name),
            "damage": magnitude,
            "status_effects": [vars(e).copy() for e in self.get_move_status_effects(name)],
        }
