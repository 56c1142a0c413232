#!/usr/bin/env python3
"""
GeoQuest combat - development CLI

Drives the combat engine directly, no HTTP server needed.

Usage:
    cd backend
    python play_cli.py
    python play_cli.py --class wizard --level 5 --monster "Troll" --tier elite
    python play_cli.py --seed 42
"""
import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

sys.path.insert(0, str(Path(__file__).parent))

from rich.box import ROUNDED
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from geoquest.combat.combat_engine import CombatEngine
from geoquest.combat.models.action import Intent
from geoquest.combat.models.combatant import CombatantStats, MonsterStats
from geoquest.combat.models.errors import CombatError
from geoquest.combat.spells import SPELL_TABLE
from geoquest.config import configure_logging


# ==================== Config ====================

COLORS = {
    "player": "bright_green",
    "monster": "bright_red",
    "system": "bright_magenta",
    "error": "bright_red",
    "hint": "dim",
    "reward": "bright_yellow",
}

DEFAULT_SPELLS = {
    "wizard": ["fire_bolt", "magic_missile", "burning_hands", "fireball"],
    "sorcerer": ["fire_bolt", "magic_missile", "scorching_ray"],
    "cleric": ["sacred_flame", "cure_wounds", "guiding_bolt"],
    "druid": ["produce_flame", "healing_word", "thunderwave"],
    "bard": ["vicious_mockery", "healing_word", "shatter"],
    "warlock": ["eldritch_blast", "hellish_rebuke"],
    "paladin": ["cure_wounds"],
    "ranger": ["cure_wounds"],
}


# ==================== Renderer ====================


class CombatRenderer:
    """rich output for the combat loop"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_help(self):
        help_text = """
[bold]Actions:[/bold]
  attack              weapon attack (action)
  cast <spell_id>     cast a spell (action)
  use <ability_id>    use a class ability
  flee                try to escape (action)
  end                 end the turn

[bold]Info:[/bold]
  status              show the encounter
  spells              list castable spells and slots
  abilities           list class abilities
  log                 dump the combat log as JSON

[bold]System:[/bold]
  help                show this help
  quit/exit           leave
"""
        self.console.print(Panel(help_text, title="Help", border_style="green"))

    def print_status(self, state: Dict[str, Any]):
        character = state["character"]
        monster = state["monster"]
        table = Table(box=ROUNDED, show_header=False)
        table.add_column("Who", style="bold")
        table.add_column("Health")
        table.add_column("Notes", style="dim")
        table.add_row(
            f"[{COLORS['player']}]{character['name']}[/]",
            f"{character['current_health']}/{character['max_health']}",
            f"lv{character['level']} {character['class']}, AC {character['armor_class']}",
        )
        table.add_row(
            f"[{COLORS['monster']}]{monster['name']}[/]",
            f"{monster['health']}/{monster['max_health']}",
            f"lv{monster['level']} {monster['tier']}, armor {monster['armor']}",
        )
        slots = "action used" if state["action_used"] else "action ready"
        slots += ", bonus used" if state["bonus_action_used"] else ", bonus ready"
        self.console.print(Panel(table, title=f"Round {state['round']} | {slots}", border_style="red"))

    def print_spells(self, spells: List[Dict[str, Any]], remaining: Dict[str, Any]):
        table = Table(title="Spells", box=ROUNDED)
        table.add_column("ID", style="cyan")
        table.add_column("Level")
        table.add_column("Effect", style="dim")
        for spell in spells:
            effect = spell.get("damage") or spell.get("healing") or {}
            table.add_row(spell["id"], str(spell["level"]), effect.get("dice", ""))
        self.console.print(table)
        if remaining:
            text = ", ".join(f"L{level}: {count}" for level, count in remaining.items())
            self.console.print(f"[{COLORS['hint']}]Slots remaining: {text}[/]")

    def print_abilities(self, abilities: List[Dict[str, Any]]):
        table = Table(title="Abilities", box=ROUNDED)
        table.add_column("ID", style="cyan")
        table.add_column("Slot")
        table.add_column("Uses")
        for ability in abilities:
            uses = "unlimited" if ability.get("is_unlimited") else f"{ability['uses_remaining']}/{ability['max_uses']}"
            if ability.get("is_free"):
                slot = "free"
            elif ability.get("is_bonus_action"):
                slot = "bonus"
            else:
                slot = "action"
            table.add_row(ability["id"], slot, uses)
        self.console.print(table)

    def print_resolution(self, record: Dict[str, Any]):
        for key, color in (("player", COLORS["player"]), ("monster", COLORS["monster"])):
            side = record.get(key)
            if not side:
                continue
            for message in side.get("messages", []):
                self.console.print(f"[{color}]{message}[/]")
            for warning in side.get("warnings", []):
                self.console.print(f"[{COLORS['hint']}]warning: {warning}[/]")

        outcome = record.get("outcome")
        if outcome and outcome != "none":
            self.console.print(Panel(f"[bold]{outcome.upper()}[/bold]", border_style=COLORS["system"]))
        reward = record.get("reward")
        if reward:
            line = f"+{reward['experience']} XP, +{reward['gold']} gold"
            if reward.get("leveled_up"):
                line += f", level {reward['new_level']}!"
            self.console.print(f"[{COLORS['reward']}]{line}[/]")

    def print_error(self, error: CombatError):
        self.console.print(f"[{COLORS['error']}]{error.kind.value}: {error.message}[/]")


# ==================== Game loop ====================


class CombatCLI:
    """Interactive single-encounter loop"""

    def __init__(self, engine: CombatEngine, renderer: CombatRenderer):
        self.engine = engine
        self.renderer = renderer
        self.combat_id: Optional[str] = None

    def start(self, character: Dict[str, Any], monster: Dict[str, Any], seed: Optional[int], scale: bool):
        session = self.engine.new_session(character, monster, seed=seed, scale=scale)
        self.combat_id = session.combat_id
        self.renderer.console.print(
            f"[{COLORS['system']}]{session.combat_log[0].message}[/] [dim]({self.combat_id})[/dim]"
        )
        self.renderer.print_status(session.to_dict())

        while True:
            raw = Prompt.ask("[bold]>[/bold]").strip()
            if not raw:
                continue
            if not self.handle_command(raw):
                break

    def handle_command(self, raw: str) -> bool:
        """Return False to leave the loop."""
        cmd, _, arg = raw.partition(" ")
        cmd = cmd.lower()
        arg = arg.strip()

        if cmd in ("quit", "exit"):
            return False
        if cmd == "help":
            self.renderer.print_help()
            return True

        session = self.engine.get_session(self.combat_id)
        state = session.to_dict()
        if cmd == "status":
            self.renderer.print_status(state)
            return True
        if cmd == "spells":
            self.renderer.print_spells(state["spells"], state["spell_slots_remaining"])
            return True
        if cmd == "abilities":
            self.renderer.print_abilities(state["abilities"])
            return True
        if cmd == "log":
            self.renderer.console.print_json(json.dumps([entry.to_dict() for entry in session.combat_log]))
            return True

        intent = self._parse_intent(cmd, arg)
        if intent is None:
            self.renderer.console.print(f"[{COLORS['hint']}]Unknown command, type help[/]")
            return True

        result = self.engine.submit_intent(self.combat_id, intent)
        if isinstance(result, CombatError):
            self.renderer.print_error(result)
            return True
        self.renderer.print_resolution(result.to_dict())
        if result.is_terminal:
            self.engine.discard_session(self.combat_id)
            return False
        self.renderer.print_status(self.engine.get_session(self.combat_id).to_dict())
        return True

    @staticmethod
    def _parse_intent(cmd: str, arg: str) -> Optional[Intent]:
        if cmd == "attack":
            return Intent.attack()
        if cmd == "cast" and arg:
            return Intent.cast_spell(arg)
        if cmd == "use" and arg:
            return Intent.use_ability(arg)
        if cmd == "flee":
            return Intent.flee()
        if cmd in ("end", "end_turn"):
            return Intent.end_turn()
        return None


# ==================== Entry ====================


def build_character(args: argparse.Namespace) -> Dict[str, Any]:
    health = 10 + args.level * 7
    known = [spell_id for spell_id in DEFAULT_SPELLS.get(args.character_class, []) if spell_id in SPELL_TABLE]
    return CombatantStats(
        name=args.name,
        strength=14,
        dexterity=14,
        constitution=14,
        intelligence=14,
        wisdom=12,
        charisma=12,
        level=args.level,
        current_health=health,
        max_health=health,
        armor_class=15,
        character_class=args.character_class,
        known_spell_ids=set(known),
    ).model_dump()


def build_monster(args: argparse.Namespace) -> Dict[str, Any]:
    return MonsterStats(
        name=args.monster,
        tier=args.tier,
        level=args.monster_level,
        health=30,
        max_health=30,
        damage=6,
        armor=12,
    ).model_dump()


def main():
    parser = argparse.ArgumentParser(description="GeoQuest combat - development CLI")
    parser.add_argument("--name", default="Hero", help="Character name")
    parser.add_argument("--class", dest="character_class", default="fighter", help="Character class")
    parser.add_argument("--level", type=int, default=3, help="Character level")
    parser.add_argument("--monster", default="Goblin", help="Monster name or type")
    parser.add_argument("--tier", default="common", choices=["common", "elite", "boss", "legendary"], help="Monster tier")
    parser.add_argument("--monster-level", type=int, default=1, help="Monster level before scaling")
    parser.add_argument("--no-scale", action="store_true", help="Do not scale the monster to the character")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args()

    configure_logging(args.log_level)
    renderer = CombatRenderer()
    game = CombatCLI(CombatEngine(), renderer)
    try:
        game.start(build_character(args), build_monster(args), seed=args.seed, scale=not args.no_scale)
    except ValueError as exc:
        renderer.console.print(f"[{COLORS['error']}]{exc}[/]")
        sys.exit(1)


if __name__ == "__main__":
    main()
