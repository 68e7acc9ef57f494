"""
Shared helpers for the domain converters.

Coercion helpers used by the response validators, ruleset code tables, and
the document builders every compiler reaches for (HTML descriptions, damage
formulas, attack blocks, feature documents, level-grouped item grants).
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..models.documents import DocumentSpec, ItemGrantAdvancement, random_id
from ..models.records import (
    Activation,
    FeatureDamage,
    FeatureDescriptor,
    RangeRule,
    SaveRule,
    TargetRule,
    UsesRule,
)


SIZE_CODES = {
    "tiny": "tiny",
    "small": "sm",
    "medium": "med",
    "large": "lg",
    "huge": "huge",
    "gargantuan": "grg",
}

ABILITY_CODES = {
    "strength": "str",
    "dexterity": "dex",
    "constitution": "con",
    "intelligence": "int",
    "wisdom": "wis",
    "charisma": "cha",
}

CONDITIONS = [
    "Charmed", "Frightened", "Paralyzed", "Restrained", "Invisible",
    "Prone", "Stunned", "Poisoned", "Grappled",
]

TEMPLATE_SHAPES = [
    "circle", "cone", "cube", "cylinder", "line", "sphere", "square", "wall", "radius",
]

DICE_COUNT = re.compile(r"(\d+)\s*d", re.IGNORECASE)
DICE_FACES = re.compile(r"d\s*(\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class Ruleset:
    """
    Code tables for one game-system flavor.
    """
    name: str
    skill_prefix: str
    save_prefix: str
    skills: Tuple[str, ...]
    skill_aliases: Dict[str, str] = field(default_factory=dict)

    def skill_code(self, skill: str) -> str:
        """Format a skill name or code the way this ruleset stores it."""
        code = skill.strip().lower()
        if ":" in code:
            code = code.split(":", 1)[1]
        code = self.skill_aliases.get(code, code)
        return f"{self.skill_prefix}{code}"

    def save_code(self, ability: str) -> str:
        return f"{self.save_prefix}{ability_code(ability)}"

    @property
    def skill_pool(self) -> List[str]:
        return [f"{self.skill_prefix}{skill}" for skill in self.skills]


RULESETS = {
    "dnd5e": Ruleset(
        name="dnd5e",
        skill_prefix="skills:",
        save_prefix="saves:",
        skills=(
            "acr", "ani", "arc", "ath", "dec", "his", "ins", "itm", "inv",
            "med", "nat", "prc", "prf", "per", "rel", "slt", "ste", "sur",
        ),
        skill_aliases={
            "acrobatics": "acr", "animal handling": "ani", "arcana": "arc",
            "athletics": "ath", "deception": "dec", "history": "his",
            "insight": "ins", "intimidation": "itm", "investigation": "inv",
            "medicine": "med", "nature": "nat", "perception": "prc",
            "performance": "prf", "persuasion": "per", "religion": "rel",
            "sleight of hand": "slt", "stealth": "ste", "survival": "sur",
        },
    ),
    "pf2e": Ruleset(
        name="pf2e",
        skill_prefix="skills:",
        save_prefix="saves:",
        skills=(
            "acr", "arc", "ath", "cra", "dec", "dip", "itm", "med",
            "nat", "occ", "prf", "rel", "soc", "ste", "sur", "thi",
        ),
        skill_aliases={
            "acrobatics": "acr", "arcana": "arc", "athletics": "ath",
            "crafting": "cra", "deception": "dec", "diplomacy": "dip",
            "intimidation": "itm", "medicine": "med", "nature": "nat",
            "occultism": "occ", "performance": "prf", "religion": "rel",
            "society": "soc", "stealth": "ste", "survival": "sur",
            "thievery": "thi",
        },
    ),
    "generic": Ruleset(
        name="generic",
        skill_prefix="",
        save_prefix="",
        skills=(
            "acrobatics", "animal handling", "arcana", "athletics", "deception",
            "history", "insight", "intimidation", "investigation", "medicine",
            "nature", "perception", "performance", "persuasion", "religion",
            "sleight of hand", "stealth", "survival",
        ),
    ),
}


def get_ruleset(name: Optional[str]) -> Ruleset:
    """Look up a ruleset flavor, falling back to dnd5e for unknown names."""
    ruleset = RULESETS.get((name or "dnd5e").lower())
    if ruleset is None:
        logging.warning(f"Unknown ruleset '{name}', formatting codes for dnd5e")
        return RULESETS["dnd5e"]
    return ruleset


# Coercion helpers for untrusted model output


def as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return []


def as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def as_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    """
    Coerce a model-supplied number to int.

    Accepts ints, floats and strings with a leading number ("30 ft").
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        match = re.search(r"-?\d+", value)
        if match:
            return int(match.group(0))
    return default


def as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if "/" in text:
            numerator, _, denominator = text.partition("/")
            try:
                return float(numerator) / float(denominator)
            except (ValueError, ZeroDivisionError):
                return default
        try:
            return float(text)
        except ValueError:
            return default
    return default


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def size_code(value: Any, default: str = "med") -> str:
    """Map a size name or code ("Medium", "med") to a size code."""
    text = as_str(value).lower()
    if not text:
        return default
    if text in SIZE_CODES.values():
        return text
    return SIZE_CODES.get(text, default)


def ability_code(value: Any) -> str:
    text = as_str(value).lower()
    return ABILITY_CODES.get(text, text[:3])


def damage_parts(value: Any) -> List[Tuple[str, str]]:
    """
    Normalize damage parts to (formula, type) pairs.

    Accepts ``[["1d4", "slashing"]]`` as well as
    ``[{"formula": "1d4", "type": "slashing"}]``.
    """
    parts = []
    for part in as_list(value):
        if isinstance(part, (list, tuple)) and part:
            formula = as_str(part[0])
            damage_type = as_str(part[1]).lower() if len(part) > 1 else ""
        elif isinstance(part, dict):
            formula = as_str(part.get("formula"))
            damage_type = as_str(part.get("type")).lower()
        else:
            continue
        if formula:
            parts.append((formula, damage_type))
    return parts


def validate_feature(raw: Any, default_level: int = 1) -> Optional[FeatureDescriptor]:
    """
    Coerce one extracted feature; returns None when it has no name.

    Missing mechanics blocks default to empty; a level below zero or not a
    number becomes ``default_level``.
    """
    data = as_dict(raw)
    name = as_str(data.get("name"))
    if not name:
        return None

    level = as_int(data.get("level"), default_level)
    if level is None or level < 0:
        level = default_level

    activation = as_dict(data.get("activation"))
    range_data = as_dict(data.get("range"))
    target = as_dict(data.get("target"))
    save = as_dict(data.get("save"))
    uses = as_dict(data.get("uses"))

    return FeatureDescriptor(
        name=name,
        description=as_str(data.get("description")),
        level=level,
        activation=Activation(
            type=as_str(activation.get("type")).lower(),
            cost=as_int(activation.get("cost"), 1) or 1,
            condition=as_str(activation.get("condition"))
        ),
        range=RangeRule(value=as_int(range_data.get("value"), None), units=as_str(range_data.get("units"))),
        target=TargetRule(
            value=as_int(target.get("value"), None),
            units=as_str(target.get("units")),
            type=as_str(target.get("type"))
        ),
        save=SaveRule(
            ability=ability_code(save.get("ability")) if as_str(save.get("ability")) else "",
            scaling=as_str(save.get("scaling")) or "spell"
        ),
        uses=UsesRule(
            value=as_int(uses.get("value"), None),
            max=as_str(uses.get("max")),
            per=as_str(uses.get("per"))
        ),
        damage=[FeatureDamage(formula=formula, type=damage_type)
                for formula, damage_type in damage_parts(data.get("damage"))],
        requirements=as_str(data.get("requirements"))
    )


def validate_features(raw: Any, domain: str, default_level: int = 1) -> List[FeatureDescriptor]:
    features = []
    for item in as_list(raw):
        feature = validate_feature(item, default_level)
        if feature is None:
            logging.warning(f"Dropping {domain} feature without a name")
            continue
        features.append(feature)
    return features


# Document building


def to_html(text: str) -> str:
    """Wrap plain text in paragraph markup; text that is already HTML is kept."""
    text = text or ""
    if text.strip().startswith("<"):
        return text
    return "<p>" + text.replace("\n\n", "</p><p>").replace("\n", "<br>") + "</p>"


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def parse_damage_formula(formula: str, damage_type: str = "",
                         bonus: Optional[str] = "@mod") -> Dict[str, Any]:
    """
    Split an "NdM" formula into numeric dice fields.

    A formula without a dice count or face count falls back to 1 and 6.

    Args:
        formula: Dice formula such as "2d8" or "1d6 + 2"
        damage_type: Damage type recorded on the part
        bonus: Damage bonus expression, or None to omit it

    Returns:
        A damage part with number, denomination, bonus and types
    """
    count = DICE_COUNT.search(formula or "")
    faces = DICE_FACES.search(formula or "")
    if not count or not faces:
        logging.warning(f"Unparseable damage formula '{formula}', using 1d6")

    part: Dict[str, Any] = {
        "number": int(count.group(1)) if count else 1,
        "denomination": int(faces.group(1)) if faces else 6,
    }
    if bonus is not None:
        part["bonus"] = bonus
    part["types"] = [damage_type] if damage_type else []
    return part


def build_attack_activity(parts: Iterable[Tuple[str, str]], ability: str = "str") -> Dict[str, Dict[str, Any]]:
    """
    Build a natural weapon attack activity keyed by its id.
    """
    activity_id = random_id()
    return {
        activity_id: {
            "_id": activity_id,
            "type": "attack",
            "activation": {"type": "action", "value": 1},
            "attack": {
                "ability": ability or "str",
                "type": {"value": "melee", "classification": "natural"}
            },
            "damage": {
                "includeBase": True,
                "parts": [parse_damage_formula(formula, damage_type) for formula, damage_type in parts]
            }
        }
    }


def _clean_activation(activation: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in activation.items() if value}


def _clean_range(range_data: Dict[str, Any]) -> Dict[str, Any]:
    if not range_data["value"] and not range_data["units"]:
        return {}
    return {"value": range_data["value"], "units": range_data["units"]}


def _clean_target(target: Dict[str, Any]) -> Dict[str, Any]:
    if not target["value"] and not target["units"] and not target["type"]:
        return {}

    raw_type = target["type"].lower().strip()
    shape = next((s for s in TEMPLATE_SHAPES if s in raw_type), None)
    if shape:
        return {"template": {"type": shape, "size": target["value"], "units": target["units"]}}
    return {"affects": {"type": raw_type or "creature", "count": target["value"] or ""}}


def _feature_damage_parts(feature: FeatureDescriptor) -> List[Dict[str, Any]]:
    return [
        {
            "custom": {"enabled": False},
            "number": None,
            "denomination": None,
            "bonus": "",
            "types": [damage.type] if damage.type else [],
            "scaling": "number",
            "formula": damage.formula
        }
        for damage in feature.damage
    ]


def condition_effects(description: str) -> List[Dict[str, Any]]:
    """Return one status effect per condition named in the description."""
    effects = []
    for condition in CONDITIONS:
        if re.search(rf"\b{condition}\b", description, re.IGNORECASE):
            effects.append({
                "name": condition,
                "icon": "icons/svg/aura.svg",
                "transfer": False,
                "statuses": [condition.lower()],
                "description": f"Applies {condition} condition."
            })
    return effects


def build_feature_document(feature: FeatureDescriptor, source: str, requirements: str) -> DocumentSpec:
    """
    Compile a class, subclass or standalone feature into a feat document.

    The feature's mechanics become at most one activity: a save activity when
    a save ability is given, a damage activity when it only deals damage, and
    a utility activity when it only has an activation type.
    """
    description = to_html(feature.description)
    activation = {"type": feature.activation.type, "cost": feature.activation.cost or 1,
                  "condition": feature.activation.condition}
    range_data = {"value": feature.range.value or None, "units": feature.range.units}
    target = {"value": feature.target.value or None, "units": feature.target.units,
              "type": feature.target.type}
    save = {"ability": ability_code(feature.save.ability) if feature.save.ability else "",
            "dc": None, "scaling": feature.save.scaling or "spell"}
    uses = {"value": feature.uses.value or None, "max": feature.uses.max, "per": feature.uses.per}

    if save["ability"]:
        action_type = "save"
    elif target["type"]:
        action_type = "other"
    else:
        action_type = ""

    system: Dict[str, Any] = {
        "description": {"value": description},
        "source": {"custom": source},
        "type": {"value": "class", "subtype": ""},
        "requirements": requirements,
        "activation": activation,
        "range": range_data,
        "target": target,
        "save": save,
        "uses": uses,
        "actionType": action_type,
        "activities": {}
    }

    activity_id = random_id()
    common = {
        "_id": activity_id,
        "name": feature.name,
        "activation": _clean_activation(activation),
        "range": _clean_range(range_data),
        "target": _clean_target(target),
    }
    if save["ability"]:
        system["activities"][activity_id] = dict(
            common,
            type="save",
            save={"ability": [save["ability"]], "dc": {"calculation": "spell", "formula": ""}},
            damage={"parts": _feature_damage_parts(feature)}
        )
    elif feature.damage:
        system["activities"][activity_id] = dict(
            common,
            type="damage",
            damage={"parts": _feature_damage_parts(feature)}
        )
    elif activation["type"]:
        system["activities"][activity_id] = dict(
            common,
            type="utility",
            roll={"prompt": False, "visible": False}
        )

    return DocumentSpec(
        name=feature.name,
        doc_type="feat",
        collection="features",
        img="icons/svg/book.svg",
        system=system,
        effects=condition_effects(description)
    )


def build_level_grants(features: Iterable[FeatureDescriptor], title: str) -> List[ItemGrantAdvancement]:
    """
    Group features by level into one ItemGrant per level.

    Each grant lists, by name, every feature unlocked at its level; levels
    are emitted in ascending order.
    """
    by_level: Dict[int, List[str]] = {}
    for feature in features:
        by_level.setdefault(feature.level, []).append(feature.name)

    return [
        ItemGrantAdvancement(level=level, title=title, pending=names)
        for level, names in sorted(by_level.items())
    ]
