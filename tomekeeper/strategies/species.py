"""
Species (race) converter.

A species compiles to one race document plus one trait document per named
trait. Traits are granted at level 0 through ItemGrant records; a skill
choice found in a trait's prose is attached to that trait's document.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from ..errors import MissingRequiredFieldError
from ..models.documents import (
    AbilityScoreAdvancement,
    AbilityScoreConfiguration,
    CompiledDocuments,
    DocumentSpec,
    ItemGrantAdvancement,
    SizeAdvancement,
    SizeConfiguration,
    TraitAdvancement,
    TraitChoice,
    TraitConfiguration,
)
from ..models.records import (
    AbilityScoreRule,
    DamageRule,
    LanguageRule,
    Movement,
    Senses,
    SizeRule,
    SkillProficiencies,
    SpeciesRecord,
    TraitDescriptor,
)
from .common import (
    Ruleset,
    ability_code,
    as_bool,
    as_dict,
    as_int,
    as_list,
    as_str,
    build_attack_activity,
    damage_parts,
    size_code,
    slugify,
    to_html,
)


SKILL_CHOICE = re.compile(
    r"(?:choose|select|pick|proficiency\s+in)\s+(?:any\s+)?(\d+|one|two|three|four)\s+skills?",
    re.IGNORECASE
)
NUMBER_WORDS = {"one": 1, "two": 2, "three": 3, "four": 4}

ATTACK_ICON = "icons/skills/melee/strike-sword-steel-yellow.webp"
TRAIT_ICON = "icons/svg/upgrade.svg"
SPECIES_ICON = "icons/svg/mystery-man.svg"

PROMPT_TEMPLATE = """Extract species information from the text below and return strictly valid JSON.

Required JSON Structure:
{
  "name": "Race Name",
  "description": "Flavor text...",
  "creatureType": "Humanoid",
  "size": { "value": "med", "options": ["sm", "med"] },
  "movement": { "walk": 30, "climb": 0, "fly": 0, "swim": 0 },
  "senses": { "darkvision": 0, "blindsight": 0 },
  "abilityScoreIncrease": {
    "type": "flexible",
    "options": { "increases": 3, "pool": [1, 1, 1] }
  },
  "traits": [
    {
      "name": "Trait Name",
      "description": "Full description of the trait.",
      "isAttack": false,
      "damage": { "base": "str", "parts": [["1d4", "slashing"]] }
    }
  ],
  "languages": { "value": ["common"], "custom": "one choice" },
  "proficiencies": {
    "skills": [],
    "skillCount": 0,
    "traitName": ""
  }
}

RULES:
1. EXTRACT EVERY BOLDED HEADER AS A TRAIT. Do not skip short traits such as "Expert Duplication" or "Mimicry".
2. "isAttack": true ONLY if it is a natural weapon (bite, claw, horns). Only attacks carry "damage".
3. SKILLS: If text says "choose two skills" or "proficiency in two skills":
   - Set "skillCount": 2.
   - Set "traitName": "Name of the trait" (e.g. Kenku Recall).
   - Leave "skills": [] empty.
4. NAMES: Use the literal header text as the trait name, never a term from inside its body.
5. ABILITY SCORES: If the text gives fixed increases (e.g. "+2 Strength, +1 Charisma"), use
   { "type": "fixed", "options": { "str": 2, "cha": 1 } }.

*** ONE-SHOT EXAMPLE ***
Input Text:
"Tabaxi. Tabaxi are feline humanoids driven by curiosity.
Creature Type: Humanoid. Size: Medium. Speed: 30 feet, climbing 30 feet.
Darkvision. You can see in dim light within 60 feet of you as if it were bright light.
Cat's Claws. You can use your claws to make unarmed strikes dealing 1d4 slashing damage.
Cat's Talent. You have proficiency in the Perception and Stealth skills."

Correct Output (JSON):
{
  "name": "Tabaxi",
  "description": "Tabaxi are feline humanoids driven by curiosity.",
  "creatureType": "Humanoid",
  "size": { "value": "med", "options": ["med"] },
  "movement": { "walk": 30, "climb": 30, "fly": 0, "swim": 0 },
  "senses": { "darkvision": 60, "blindsight": 0 },
  "abilityScoreIncrease": { "type": "flexible", "options": { "increases": 3, "pool": [1, 1, 1] } },
  "traits": [
    { "name": "Darkvision", "description": "You can see in dim light within 60 feet of you as if it were bright light.", "isAttack": false },
    { "name": "Cat's Claws", "description": "You can use your claws to make unarmed strikes dealing 1d4 slashing damage.", "isAttack": true, "damage": { "base": "str", "parts": [["1d4", "slashing"]] } },
    { "name": "Cat's Talent", "description": "You have proficiency in the Perception and Stealth skills.", "isAttack": false }
  ],
  "languages": { "value": ["common"], "custom": "" },
  "proficiencies": { "skills": ["prc", "ste"], "skillCount": 0, "traitName": "" }
}
*** END EXAMPLE ***

SOURCE TEXT:
"""


def build_prompt(source_text: str) -> str:
    """Build the species extraction prompt."""
    return PROMPT_TEMPLATE + source_text


def find_skill_choice(traits: List[TraitDescriptor]) -> Optional[TraitDescriptor]:
    """Return the first trait whose prose offers a choice of skills, if any."""
    for trait in traits:
        if skill_choice_count(trait.description) > 0:
            return trait
    return None


def skill_choice_count(text: str) -> int:
    match = SKILL_CHOICE.search(text or "")
    if not match:
        return 0
    token = match.group(1).lower()
    if token.isdigit():
        return int(token)
    return NUMBER_WORDS.get(token, 0)


def _validate_size(raw: Any) -> SizeRule:
    if isinstance(raw, dict):
        value = size_code(raw.get("value"))
        options = [size_code(option) for option in as_list(raw.get("options")) if as_str(option)]
        return SizeRule(value=value, options=options or [value])
    value = size_code(raw)
    return SizeRule(value=value, options=[value])


def _validate_movement(raw: Any) -> Movement:
    data = as_dict(raw)
    if not data:
        return Movement()
    return Movement(
        walk=as_int(data.get("walk"), 30) or 30,
        climb=as_int(data.get("climb"), 0) or 0,
        fly=as_int(data.get("fly"), 0) or 0,
        swim=as_int(data.get("swim"), 0) or 0,
        burrow=as_int(data.get("burrow"), 0) or 0
    )


def _validate_senses(raw: Any) -> Senses:
    data = as_dict(raw)
    return Senses(**{
        sense: as_int(data.get(sense), 0) or 0
        for sense in ("darkvision", "blindsight", "tremorsense", "truesight")
    })


def _validate_ability_scores(raw: Any) -> AbilityScoreRule:
    data = as_dict(raw)
    options = as_dict(data.get("options"))
    if not data or not options:
        return AbilityScoreRule()

    if as_str(data.get("type")).lower() == "fixed":
        fixed = {
            ability_code(ability): as_int(bonus, 0)
            for ability, bonus in options.items()
            if as_int(bonus, 0)
        }
        if fixed:
            return AbilityScoreRule(mode="fixed", increases=sum(fixed.values()), pool=[], fixed=fixed)

    pool = [as_int(value, 1) or 1 for value in as_list(options.get("pool"))]
    increases = as_int(options.get("increases"), 0) or sum(pool) or 3
    return AbilityScoreRule(mode="flexible", increases=increases, pool=pool or [1, 1, 1])


def _validate_damage(raw: Any) -> Optional[DamageRule]:
    data = as_dict(raw)
    parts = damage_parts(data.get("parts"))
    if not parts and as_str(data.get("formula")):
        parts = [(as_str(data.get("formula")), as_str(data.get("type")).lower())]
    if not parts:
        return None
    return DamageRule(base=ability_code(data.get("base")) or "str", parts=parts)


def _validate_traits(raw: Any) -> List[TraitDescriptor]:
    traits = []
    seen = set()
    for item in as_list(raw):
        data = as_dict(item)
        name = as_str(data.get("name"))
        if not name:
            logging.warning("Dropping species trait without a name")
            continue
        if name in seen:
            logging.warning(f"Dropping repeated species trait '{name}'")
            continue
        seen.add(name)
        traits.append(TraitDescriptor(
            name=name,
            description=as_str(data.get("description")),
            is_attack=as_bool(data.get("isAttack", data.get("is_attack", False))),
            damage=_validate_damage(data.get("damage"))
        ))
    return traits


def _validate_languages(raw: Any) -> LanguageRule:
    if isinstance(raw, list):
        return LanguageRule(value=[as_str(lang).lower() for lang in raw if as_str(lang)], custom="")
    data = as_dict(raw)
    if not data:
        return LanguageRule()
    return LanguageRule(
        value=[as_str(lang).lower() for lang in as_list(data.get("value")) if as_str(lang)],
        custom=as_str(data.get("custom"))
    )


def validate(raw: Dict[str, Any]) -> SpeciesRecord:
    """
    Validate and repair a species extraction.

    Raises:
        MissingRequiredFieldError: If the species has no name
    """
    name = as_str(raw.get("name"))
    if not name:
        raise MissingRequiredFieldError("name", "species")

    traits = _validate_traits(raw.get("traits"))

    proficiencies = as_dict(raw.get("proficiencies"))
    skill_count = as_int(proficiencies.get("skillCount", proficiencies.get("skill_count")), 0) or 0
    trait_name = as_str(proficiencies.get("traitName", proficiencies.get("trait_name")))

    if skill_count <= 0:
        skill_count = 0
        housing = find_skill_choice(traits)
        if housing is not None:
            skill_count = skill_choice_count(housing.description)
            trait_name = housing.name
            logging.info(f"Safety net: found a choice of {skill_count} skills in trait '{housing.name}'")

    return SpeciesRecord(
        name=name,
        description=as_str(raw.get("description")),
        creature_type=as_str(raw.get("creatureType")) or "Humanoid",
        size=_validate_size(raw.get("size")),
        movement=_validate_movement(raw.get("movement")),
        senses=_validate_senses(raw.get("senses")),
        ability_score_increase=_validate_ability_scores(raw.get("abilityScoreIncrease")),
        traits=traits,
        languages=_validate_languages(raw.get("languages")),
        proficiencies=SkillProficiencies(
            skills=[as_str(skill) for skill in as_list(proficiencies.get("skills")) if as_str(skill)],
            skill_count=skill_count,
            trait_name=trait_name if skill_count else ""
        )
    )


def _movement_data(movement: Movement) -> Dict[str, Any]:
    data: Dict[str, Any] = {"walk": movement.walk or 30, "units": "ft"}
    for mode in ("climb", "fly", "swim", "burrow"):
        speed = getattr(movement, mode)
        if speed:
            data[mode] = speed
    return data


def _senses_data(senses: Senses) -> Dict[str, Any]:
    data: Dict[str, Any] = {"units": "ft"}
    for sense in ("darkvision", "blindsight", "tremorsense", "truesight"):
        distance = getattr(senses, sense)
        if distance:
            data[sense] = distance
    return data


def _skill_choice_grant(count: int, ruleset: Ruleset) -> TraitAdvancement:
    return TraitAdvancement(
        title="Skills",
        hint=f"Choose any {count} skill proficiencies",
        configuration=TraitConfiguration(
            allow_replacements=True,
            choices=[TraitChoice(count=count, pool=ruleset.skill_pool)]
        )
    )


def _build_trait(trait: TraitDescriptor, record: SpeciesRecord, ruleset: Ruleset) -> DocumentSpec:
    document = DocumentSpec(
        name=trait.name,
        doc_type="feat",
        collection="traits",
        img=ATTACK_ICON if trait.is_attack else TRAIT_ICON,
        system={
            "description": {"value": to_html(trait.description)},
            "source": {"custom": f"{record.name} Trait"},
            "type": {"value": "race", "subtype": ""}
        }
    )

    skills = record.proficiencies
    if skills.trait_name == trait.name and skills.skill_count > 0:
        logging.info(f"Attaching skill choice to trait '{trait.name}'")
        document.advancement.append(_skill_choice_grant(skills.skill_count, ruleset))

    if trait.is_attack and trait.damage and trait.damage.parts:
        document.system["activities"] = build_attack_activity(trait.damage.parts, trait.damage.base)

    return document


def _build_advancement(record: SpeciesRecord, ruleset: Ruleset) -> list:
    advancement = [
        SizeAdvancement(configuration=SizeConfiguration(sizes=record.size.options or ["med"]))
    ]

    asi = record.ability_score_increase
    if asi.mode == "fixed" and asi.fixed:
        advancement.append(AbilityScoreAdvancement(
            configuration=AbilityScoreConfiguration(fixed=asi.fixed)
        ))
    else:
        advancement.append(AbilityScoreAdvancement(
            configuration=AbilityScoreConfiguration(points=asi.increases or 3, cap=2)
        ))

    languages = record.languages
    advancement.append(TraitAdvancement(
        title="Languages",
        hint=languages.custom,
        configuration=TraitConfiguration(
            grants=list(languages.value),
            choices=[TraitChoice(count=1, pool=[])] if languages.custom else []
        )
    ))

    for trait in record.traits:
        advancement.append(ItemGrantAdvancement(title=trait.name, pending=[trait.name]))

    skills = record.proficiencies
    if skills.skills:
        advancement.append(TraitAdvancement(
            title="Skill Proficiency",
            configuration=TraitConfiguration(grants=[ruleset.skill_code(s) for s in skills.skills])
        ))

    trait_names = {trait.name for trait in record.traits}
    if skills.skill_count > 0 and skills.trait_name not in trait_names:
        # No trait houses the choice, so the species itself offers it.
        advancement.append(_skill_choice_grant(skills.skill_count, ruleset))

    return advancement


def compile_documents(record: SpeciesRecord, ruleset: Ruleset) -> CompiledDocuments:
    """Compile a validated species into a race document and its trait documents."""
    primary = DocumentSpec(
        name=record.name,
        doc_type="race",
        collection="species",
        img=SPECIES_ICON,
        system={
            "description": {"value": to_html(record.description)},
            "identifier": slugify(record.name),
            "type": {"value": (record.creature_type or "humanoid").lower()},
            "movement": _movement_data(record.movement),
            "senses": _senses_data(record.senses)
        },
        advancement=_build_advancement(record, ruleset)
    )
    auxiliaries = [_build_trait(trait, record, ruleset) for trait in record.traits]
    return CompiledDocuments(primary=primary, auxiliaries=auxiliaries)
