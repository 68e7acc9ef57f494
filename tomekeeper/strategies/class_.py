"""
Class converter.

A class compiles to one class document plus one feat document per feature,
with feature grants grouped by level.
"""

import re
from typing import Any, Dict

from ..dedupe import dedupe
from ..errors import MissingRequiredFieldError
from ..models.documents import (
    CompiledDocuments,
    DocumentSpec,
    HitPointsAdvancement,
    HitPointsConfiguration,
    TraitAdvancement,
    TraitChoice,
    TraitConfiguration,
)
from ..models.records import ClassRecord, SkillChoice
from .common import (
    Ruleset,
    ability_code,
    as_dict,
    as_int,
    as_list,
    as_str,
    build_feature_document,
    build_level_grants,
    slugify,
    to_html,
    validate_features,
)


HIT_DICE = ("d6", "d8", "d10", "d12")

PROMPT_TEMPLATE = """Extract D&D 5e CLASS information from the text below and return strictly valid JSON.

Required JSON Structure:
{
  "name": "Class Name",
  "description": "Class flavor text",
  "hitDie": "d8",
  "savingThrows": ["dex", "int"],
  "skills": {
    "count": 2,
    "options": ["acr", "ste", "prc"]
  },
  "features": [
    {
      "name": "Feature Name",
      "description": "Beginning at 1st level...",
      "level": 1,
      "activation": { "type": "action", "cost": 1 },
      "save": { "ability": "", "scaling": "spell" },
      "uses": { "value": null, "max": "", "per": "" }
    }
  ]
}

RULES:
1. Extract ALL class features mentioned in the text with their level.
2. Hit Die should be d6, d8, d10, or d12.
3. Saving throws should be abbreviated (str, dex, con, int, wis, cha).
4. Skill codes: acr, ani, arc, ath, dec, his, ins, itm, inv, med, nat, prc, prf, per, rel, slt, ste, sur.
5. If a feature appears both in a summary table and in a detailed section, extract the detailed one.

*** ONE-SHOT EXAMPLE ***
Input Text:
"Duelist. Hit Dice: 1d10 per duelist level. Saving Throws: Strength, Dexterity.
Skills: Choose two from Acrobatics, Athletics, Insight and Perception.
Level 1: Riposte. When a creature misses you with a melee attack, you can use your reaction to make one melee attack against it.
Level 2: Flourish. You can use a bonus action to add 1d6 to your next weapon damage roll. You can do so twice per short rest."

Correct Output (JSON):
{
  "name": "Duelist",
  "description": "",
  "hitDie": "d10",
  "savingThrows": ["str", "dex"],
  "skills": { "count": 2, "options": ["acr", "ath", "ins", "prc"] },
  "features": [
    { "name": "Riposte", "description": "When a creature misses you with a melee attack, you can use your reaction to make one melee attack against it.", "level": 1, "activation": { "type": "reaction", "cost": 1 } },
    { "name": "Flourish", "description": "You can use a bonus action to add 1d6 to your next weapon damage roll. You can do so twice per short rest.", "level": 2, "activation": { "type": "bonus", "cost": 1 }, "uses": { "value": 2, "max": "2", "per": "sr" } }
  ]
}
*** END EXAMPLE ***

SOURCE TEXT:
"""


def build_prompt(source_text: str) -> str:
    return PROMPT_TEMPLATE + source_text


def normalize_hit_die(value: Any) -> str:
    """Normalize "d10", "1d10", 10 or "10" to a die code; unknown dice become d8."""
    text = as_str(value).lower().replace(" ", "")
    match = re.search(r"d?(\d+)$", text)
    die = f"d{match.group(1)}" if match else ""
    return die if die in HIT_DICE else "d8"


def validate(raw: Dict[str, Any]) -> ClassRecord:
    """
    Validate a class extraction.

    Raises:
        MissingRequiredFieldError: If the class has no name
    """
    name = as_str(raw.get("name"))
    if not name:
        raise MissingRequiredFieldError("name", "class")

    skills = as_dict(raw.get("skills"))
    return ClassRecord(
        name=name,
        description=as_str(raw.get("description")),
        hit_die=normalize_hit_die(raw.get("hitDie")),
        saving_throws=[
            ability_code(save) for save in as_list(raw.get("savingThrows")) if as_str(save)
        ],
        skills=SkillChoice(
            count=max(as_int(skills.get("count"), 0) or 0, 0),
            options=[as_str(skill) for skill in as_list(skills.get("options")) if as_str(skill)]
        ),
        features=validate_features(raw.get("features"), "class")
    )


def compile_documents(record: ClassRecord, ruleset: Ruleset) -> CompiledDocuments:
    """Compile a validated class into its class document and feature documents."""
    features = dedupe(record.features)
    auxiliaries = [
        build_feature_document(
            feature,
            source=f"{record.name} Class Feature",
            requirements=f"{record.name} {feature.level}"
        )
        for feature in features
    ]

    advancement = list(build_level_grants(features, "Class Features"))
    advancement.append(HitPointsAdvancement(
        title="Hit Points",
        configuration=HitPointsConfiguration(denomination=int(record.hit_die[1:]))
    ))

    if record.saving_throws:
        advancement.append(TraitAdvancement(
            title="Saving Throws",
            configuration=TraitConfiguration(
                grants=[ruleset.save_code(save) for save in record.saving_throws]
            )
        ))

    if record.skills.count > 0:
        pool = [ruleset.skill_code(skill) for skill in record.skills.options] or ruleset.skill_pool
        advancement.append(TraitAdvancement(
            title="Skills",
            hint=f"Choose {record.skills.count} skills",
            configuration=TraitConfiguration(
                choices=[TraitChoice(count=record.skills.count, pool=pool)]
            )
        ))

    primary = DocumentSpec(
        name=record.name,
        doc_type="class",
        collection="classes",
        img="icons/svg/mystery-man.svg",
        system={
            "description": {"value": to_html(record.description)},
            "identifier": slugify(record.name),
            "hitDice": record.hit_die
        },
        advancement=advancement
    )
    return CompiledDocuments(primary=primary, auxiliaries=auxiliaries)
