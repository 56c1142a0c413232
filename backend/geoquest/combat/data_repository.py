"""Read-only combat game data injected into sessions.

Built-in tables by default; spells.json and monster_abilities.json in a data
directory override or extend them.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .class_abilities import build_class_abilities
from .combat_math import xp_threshold
from .models.ability import Ability, ClassAbility
from .models.combatant import CharacterClass
from .monster_abilities import get_monster_abilities, normalize_monster_key
from .spells import SPELL_TABLE, Spell

logger = logging.getLogger(__name__)


class CombatDataRepository:
    """
    Static game data for the combat core

    Holds the spell table, monster ability rosters and XP thresholds.
    """

    def __init__(self, data_dir: Optional[str] = None, xp_thresholds: Optional[Dict[int, int]] = None):
        self.spells: Dict[str, Spell] = dict(SPELL_TABLE)
        self.xp_thresholds: Optional[Dict[int, int]] = dict(xp_thresholds) if xp_thresholds else None
        self.monster_rosters: Dict[str, List[Ability]] = {}
        if data_dir:
            self._load_overrides(Path(data_dir))

    def spell_table(self) -> Dict[str, Spell]:
        return dict(self.spells)

    def class_abilities(self, character_class: CharacterClass, level: int) -> Dict[str, ClassAbility]:
        return build_class_abilities(character_class, level)

    def monster_abilities(self, name_or_type: str) -> List[Ability]:
        """Roster overrides first, then the built-in rosters."""
        key = normalize_monster_key(name_or_type)
        if key in self.monster_rosters:
            return [Ability.from_dict(a.to_dict()) for a in self.monster_rosters[key]]
        return get_monster_abilities(name_or_type)

    def xp_threshold(self, level: int) -> Optional[int]:
        """Total XP needed to advance past `level`; levels missing from an injected table are the cap."""
        if self.xp_thresholds is None:
            return xp_threshold(level)
        return self.xp_thresholds.get(level)

    # ===== local files =====

    def _load_overrides(self, data_dir: Path) -> None:
        spells = self._read_json(data_dir / "spells.json")
        for entry in _as_list(spells):
            try:
                spell = Spell.from_dict(entry)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping invalid spell %r: %s", entry.get("id") if isinstance(entry, dict) else entry, exc)
                continue
            self.spells[spell.id] = spell

        rosters = self._read_json(data_dir / "monster_abilities.json")
        if isinstance(rosters, dict):
            for monster_type, abilities in rosters.items():
                try:
                    parsed = [Ability.from_dict(raw) for raw in _as_list(abilities)]
                except (TypeError, ValueError) as exc:
                    logger.warning("Skipping invalid roster %s: %s", monster_type, exc)
                    continue
                if parsed:
                    self.monster_rosters[normalize_monster_key(monster_type)] = parsed

        logger.info(
            "CombatDataRepository loaded %d spells, %d roster overrides from %s",
            len(self.spells),
            len(self.monster_rosters),
            data_dir,
        )

    @staticmethod
    def _read_json(path: Path) -> Any:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load %s: %s", path, exc)
            return None


def _as_list(raw: Any) -> List[Dict[str, Any]]:
    if isinstance(raw, dict):
        raw = list(raw.values())
    if not isinstance(raw, list):
        return []
    return [entry for entry in raw if isinstance(entry, dict)]
