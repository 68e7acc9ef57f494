"""
Monster and NPC converter.

A monster compiles to an npc actor whose actions are embedded weapon items.
"""

from typing import Any, Dict, List

from ..errors import MissingRequiredFieldError
from ..models.documents import CompiledDocuments, DocumentSpec
from ..models.records import ArmorClass, HitPointRule, MonsterAction, MonsterRecord, Movement
from .common import (
    Ruleset,
    ABILITY_CODES,
    ability_code,
    as_dict,
    as_float,
    as_int,
    as_list,
    as_str,
    build_attack_activity,
    size_code,
    slugify,
    to_html,
)


PROMPT_TEMPLATE = """Extract D&D 5e MONSTER/NPC information from the text below and return strictly valid JSON.

Required JSON Structure:
{
  "name": "Goblin",
  "description": "Flavor text...",
  "size": "sm",
  "type": "humanoid",
  "ac": { "value": 15, "calc": "natural" },
  "hp": { "value": 7, "formula": "2d6" },
  "speed": { "walk": 30 },
  "stats": { "str": 8, "dex": 14, "con": 10, "int": 10, "wis": 8, "cha": 8 },
  "cr": 0.25,
  "actions": [
    { "name": "Scimitar", "desc": "Melee Weapon Attack: +4 to hit...", "damage": "1d6 + 2", "damageType": "slashing", "ability": "dex" }
  ]
}

RULES:
1. Size codes: tiny, sm, med, lg, huge, grg.
2. Ability scores are the raw scores, not modifiers.
3. "damage" is the dice formula only; leave it empty for actions that deal no damage.
4. Fractional challenge ratings are decimals (1/4 is 0.25).

*** ONE-SHOT EXAMPLE ***
Input Text:
"Cave Rat. Small beast. Armor Class 12. Hit Points 5 (2d6 - 2). Speed 30 ft., climb 20 ft.
STR 6 DEX 15 CON 9 INT 2 WIS 10 CHA 4. Challenge 1/8.
Bite. Melee Weapon Attack: +4 to hit, reach 5 ft. Hit: 1d4 + 2 piercing damage."

Correct Output (JSON):
{
  "name": "Cave Rat",
  "description": "",
  "size": "sm",
  "type": "beast",
  "ac": { "value": 12, "calc": "flat" },
  "hp": { "value": 5, "formula": "2d6 - 2" },
  "speed": { "walk": 30, "climb": 20 },
  "stats": { "str": 6, "dex": 15, "con": 9, "int": 2, "wis": 10, "cha": 4 },
  "cr": 0.125,
  "actions": [
    { "name": "Bite", "desc": "Melee Weapon Attack: +4 to hit, reach 5 ft. Hit: 1d4 + 2 piercing damage.", "damage": "1d4 + 2", "damageType": "piercing", "ability": "dex" }
  ]
}
*** END EXAMPLE ***

SOURCE TEXT:
"""

ABILITIES = list(ABILITY_CODES.values())


def build_prompt(source_text: str) -> str:
    return PROMPT_TEMPLATE + source_text


def _validate_actions(raw: Any) -> List[MonsterAction]:
    actions = []
    for item in as_list(raw):
        data = as_dict(item)
        name = as_str(data.get("name"))
        if not name:
            continue
        actions.append(MonsterAction(
            name=name,
            description=as_str(data.get("desc", data.get("description"))),
            damage=as_str(data.get("damage")),
            damage_type=as_str(data.get("damageType")).lower(),
            ability=ability_code(data.get("ability")) or "str"
        ))
    return actions


def validate(raw: Dict[str, Any]) -> MonsterRecord:
    """
    Validate a monster extraction.

    Raises:
        MissingRequiredFieldError: If the monster has no name
    """
    name = as_str(raw.get("name"))
    if not name:
        raise MissingRequiredFieldError("name", "monster")

    ac = as_dict(raw.get("ac"))
    hp = as_dict(raw.get("hp"))
    speed = as_dict(raw.get("speed"))
    stats = as_dict(raw.get("stats"))

    return MonsterRecord(
        name=name,
        description=as_str(raw.get("description")),
        size=size_code(raw.get("size")),
        creature_type=as_str(raw.get("type")).lower() or "humanoid",
        ac=ArmorClass(value=as_int(ac.get("value"), 10), calc=as_str(ac.get("calc")) or "flat"),
        hp=HitPointRule(value=as_int(hp.get("value"), 1), formula=as_str(hp.get("formula"))),
        speed=Movement(**{
            mode: as_int(speed.get(mode), default) or default
            for mode, default in (("walk", 30), ("climb", 0), ("fly", 0), ("swim", 0), ("burrow", 0))
        }),
        stats={ability: as_int(stats.get(ability), 10) for ability in ABILITIES},
        cr=max(as_float(raw.get("cr"), 0.0), 0.0),
        actions=_validate_actions(raw.get("actions"))
    )


def _build_action(action: MonsterAction) -> DocumentSpec:
    system: Dict[str, Any] = {"description": {"value": to_html(action.description)}}
    if action.damage:
        system["activities"] = build_attack_activity([(action.damage, action.damage_type)], action.ability)
    return DocumentSpec(
        name=action.name,
        doc_type="weapon",
        collection="actors",
        img="icons/svg/sword.svg",
        system=system
    )


def compile_documents(record: MonsterRecord, ruleset: Ruleset) -> CompiledDocuments:
    """Compile a validated monster into an npc actor with embedded action items."""
    movement = {mode: speed for mode, speed in record.speed.model_dump().items() if speed}
    movement["units"] = "ft"

    primary = DocumentSpec(
        name=record.name,
        doc_type="npc",
        collection="actors",
        img="icons/svg/mystery-man.svg",
        system={
            "attributes": {
                "ac": {"value": record.ac.value, "calc": record.ac.calc},
                "hp": {"value": record.hp.value, "max": record.hp.value, "formula": record.hp.formula},
                "movement": movement
            },
            "abilities": {ability: {"value": score} for ability, score in record.stats.items()},
            "details": {
                "cr": record.cr,
                "type": {"value": record.creature_type},
                "race": record.name,
                "biography": {"value": to_html(record.description)}
            },
            "traits": {"size": record.size},
            "identifier": slugify(record.name)
        },
        embedded=[_build_action(action) for action in record.actions]
    )
    return CompiledDocuments(primary=primary)
