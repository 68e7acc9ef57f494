"""
Spell converter.
"""

from typing import Any, Dict

from ..errors import MissingRequiredFieldError
from ..models.documents import CompiledDocuments, DocumentSpec, random_id
from ..models.records import (
    CastingTime,
    Components,
    Duration,
    RangeRule,
    SaveRule,
    SpellDamage,
    SpellRecord,
    TargetRule,
)
from .common import (
    Ruleset,
    ability_code,
    as_bool,
    as_dict,
    as_int,
    as_str,
    damage_parts,
    parse_damage_formula,
    slugify,
    to_html,
)


PROMPT_TEMPLATE = """Extract D&D 5e SPELL information from the text below and return strictly valid JSON.

Required JSON Structure:
{
  "name": "Fireball",
  "level": 3,
  "school": "evocation",
  "castingTime": { "value": 1, "unit": "action" },
  "range": { "value": 150, "units": "ft" },
  "duration": { "value": 0, "units": "inst" },
  "components": { "v": true, "s": true, "m": false, "material": "" },
  "description": "Full text...",
  "damage": { "parts": [["8d6", "fire"]], "scaling": "level" },
  "save": { "ability": "dex", "dc": null, "scaling": "spell" },
  "target": { "value": 20, "units": "ft", "type": "sphere" }
}

RULES:
1. School must be lowercase (evocation, abjuration, etc).
2. Level 0 is a cantrip.
3. Duration units: inst, round, minute, hour, day.
4. Target type: sphere, cone, cylinder, line, cube, self, creature.
5. Omit "save" entirely when the spell has no saving throw.

*** ONE-SHOT EXAMPLE ***
Input Text:
"Frost Lance. 2nd-level evocation. Casting Time: 1 action. Range: 60 feet. Components: V, S, M (a shard of ice). Duration: Instantaneous.
A lance of ice strikes one creature within range. The target must make a Constitution saving throw, taking 3d8 cold damage on a failed save."

Correct Output (JSON):
{
  "name": "Frost Lance",
  "level": 2,
  "school": "evocation",
  "castingTime": { "value": 1, "unit": "action" },
  "range": { "value": 60, "units": "ft" },
  "duration": { "value": 0, "units": "inst" },
  "components": { "v": true, "s": true, "m": true, "material": "a shard of ice" },
  "description": "A lance of ice strikes one creature within range. The target must make a Constitution saving throw, taking 3d8 cold damage on a failed save.",
  "damage": { "parts": [["3d8", "cold"]], "scaling": "level" },
  "save": { "ability": "con", "dc": null, "scaling": "spell" },
  "target": { "value": 1, "units": "", "type": "creature" }
}
*** END EXAMPLE ***

SOURCE TEXT:
"""


def build_prompt(source_text: str) -> str:
    return PROMPT_TEMPLATE + source_text


def validate(raw: Dict[str, Any]) -> SpellRecord:
    """
    Validate a spell extraction; the level is clamped to 0-9.

    Raises:
        MissingRequiredFieldError: If the spell has no name
    """
    name = as_str(raw.get("name"))
    if not name:
        raise MissingRequiredFieldError("name", "spell")

    casting = as_dict(raw.get("castingTime"))
    range_data = as_dict(raw.get("range"))
    duration = as_dict(raw.get("duration"))
    components = as_dict(raw.get("components"))
    damage = as_dict(raw.get("damage"))
    target = as_dict(raw.get("target"))
    save = as_dict(raw.get("save"))

    return SpellRecord(
        name=name,
        level=min(max(as_int(raw.get("level"), 0) or 0, 0), 9),
        school=as_str(raw.get("school")).lower(),
        casting_time=CastingTime(
            value=as_int(casting.get("value"), 1) or 1,
            unit=as_str(casting.get("unit")).lower() or "action"
        ),
        range=RangeRule(value=as_int(range_data.get("value"), None), units=as_str(range_data.get("units")) or "ft"),
        duration=Duration(
            value=as_int(duration.get("value"), 0) or 0,
            units=as_str(duration.get("units")).lower() or "inst"
        ),
        components=Components(
            v=as_bool(components.get("v")),
            s=as_bool(components.get("s")),
            m=as_bool(components.get("m")),
            material=as_str(components.get("material"))
        ),
        description=as_str(raw.get("description")),
        damage=SpellDamage(parts=damage_parts(damage.get("parts")), scaling=as_str(damage.get("scaling"))),
        save=SaveRule(
            ability=ability_code(save.get("ability")),
            scaling=as_str(save.get("scaling")) or "spell"
        ) if as_str(save.get("ability")) else None,
        target=TargetRule(
            value=as_int(target.get("value"), None),
            units=as_str(target.get("units")),
            type=as_str(target.get("type")).lower()
        )
    )


def _build_activity(record: SpellRecord) -> Dict[str, Any]:
    if not record.damage.parts and record.save is None:
        return {}

    activity_id = random_id()
    activity: Dict[str, Any] = {
        "_id": activity_id,
        "type": "save" if record.save else "attack",
        "damage": {
            "parts": [
                parse_damage_formula(formula, damage_type, bonus=None)
                for formula, damage_type in record.damage.parts
            ]
        }
    }
    if record.damage.scaling:
        activity["damage"]["scaling"] = record.damage.scaling
    if record.save:
        activity["save"] = {"ability": [record.save.ability], "dc": {"calculation": record.save.scaling}}
    return {activity_id: activity}


def compile_documents(record: SpellRecord, ruleset: Ruleset) -> CompiledDocuments:
    """Compile a validated spell into a single spell document."""
    components = record.components
    properties = []
    if components.v:
        properties.append("vocal")
    if components.s:
        properties.append("somatic")
    if components.m:
        properties.append("material")

    system: Dict[str, Any] = {
        "description": {"value": to_html(record.description)},
        "identifier": slugify(record.name),
        "level": record.level,
        "school": record.school,
        "activation": {"type": record.casting_time.unit, "value": record.casting_time.value},
        "duration": {"value": record.duration.value, "units": record.duration.units},
        "range": {"value": record.range.value, "units": record.range.units},
        "target": {"value": record.target.value, "units": record.target.units, "type": record.target.type},
        "properties": properties,
        "activities": _build_activity(record)
    }
    if components.m:
        system["materials"] = {"value": components.material, "consumed": False, "cost": 0}

    primary = DocumentSpec(
        name=record.name,
        doc_type="spell",
        collection="spells",
        img="icons/svg/daze.svg",
        system=system
    )
    return CompiledDocuments(primary=primary)
