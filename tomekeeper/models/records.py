"""
Validated extraction records for Tomekeeper.

This module defines the structures the response validators produce from the
language model's untrusted JSON. Every field the document compilers read is
present with a type-correct default.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, Field


class DomainKind(str, Enum):
    """The closed set of content domains an import can target."""

    SPECIES = "species"
    CLASS = "class"
    SUBCLASS = "subclass"
    FEATURE = "feature"
    SPELL = "spell"
    MONSTER = "monster"


class ImportRequest(BaseModel):
    """
    A single user-triggered import.
    """

    kind: DomainKind = Field(
        ...,
        description="Which domain converter handles the text"
    )

    source_text: str = Field(
        ...,
        description="Pasted or fetched text describing one game entity"
    )


# Species


class SizeRule(BaseModel):
    value: str = "med"
    options: List[str] = Field(default_factory=lambda: ["med"])


class Movement(BaseModel):
    walk: int = 30
    climb: int = 0
    fly: int = 0
    swim: int = 0
    burrow: int = 0


class Senses(BaseModel):
    darkvision: int = 0
    blindsight: int = 0
    tremorsense: int = 0
    truesight: int = 0


class AbilityScoreRule(BaseModel):
    """
    How a species raises ability scores.

    Flexible mode spends ``increases`` points from ``pool``; fixed mode
    applies the ``fixed`` per-ability map.
    """

    mode: str = Field(
        "flexible",
        description="Either 'flexible' or 'fixed'"
    )
    increases: int = 3
    pool: List[int] = Field(default_factory=lambda: [1, 1, 1])
    fixed: Dict[str, int] = Field(default_factory=dict)


class DamageRule(BaseModel):
    """Damage dealt by an attack-capable trait or action."""

    base: str = Field(
        "str",
        description="Ability used for the attack roll"
    )
    parts: List[Tuple[str, str]] = Field(
        default_factory=list,
        description="Pairs of (dice formula, damage type), e.g. ('1d4', 'slashing')"
    )


class TraitDescriptor(BaseModel):
    """
    A named species trait.
    """

    name: str = Field(
        ...,
        description="Trait name, unique within one import"
    )
    description: str = ""
    is_attack: bool = Field(
        False,
        description="True only for natural weapons such as claws or bites"
    )
    damage: Optional[DamageRule] = None


class LanguageRule(BaseModel):
    value: List[str] = Field(default_factory=lambda: ["common"])
    custom: str = ""


class SkillProficiencies(BaseModel):
    skills: List[str] = Field(default_factory=list)
    skill_count: int = 0
    trait_name: str = Field(
        "",
        description="Trait whose text houses the skill choice, if any"
    )


class SpeciesRecord(BaseModel):
    """
    A validated species (race) extraction.
    """

    name: str
    description: str = ""
    creature_type: str = "Humanoid"
    size: SizeRule = Field(default_factory=SizeRule)
    movement: Movement = Field(default_factory=Movement)
    senses: Senses = Field(default_factory=Senses)
    ability_score_increase: AbilityScoreRule = Field(default_factory=AbilityScoreRule)
    traits: List[TraitDescriptor] = Field(default_factory=list)
    languages: LanguageRule = Field(default_factory=LanguageRule)
    proficiencies: SkillProficiencies = Field(default_factory=SkillProficiencies)


# Class features


class Activation(BaseModel):
    type: str = ""
    cost: int = 1
    condition: str = ""


class RangeRule(BaseModel):
    value: Optional[int] = None
    units: str = ""


class TargetRule(BaseModel):
    value: Optional[int] = None
    units: str = ""
    type: str = ""


class SaveRule(BaseModel):
    ability: str = ""
    scaling: str = "spell"


class UsesRule(BaseModel):
    value: Optional[int] = None
    max: str = ""
    per: str = ""


class FeatureDamage(BaseModel):
    formula: str
    type: str = ""


class FeatureDescriptor(BaseModel):
    """
    A class, subclass or standalone feature.
    """

    name: str
    description: str = ""
    level: int = Field(0, ge=0)
    activation: Activation = Field(default_factory=Activation)
    range: RangeRule = Field(default_factory=RangeRule)
    target: TargetRule = Field(default_factory=TargetRule)
    save: SaveRule = Field(default_factory=SaveRule)
    uses: UsesRule = Field(default_factory=UsesRule)
    damage: List[FeatureDamage] = Field(default_factory=list)
    requirements: str = ""


class SkillChoice(BaseModel):
    count: int = 0
    options: List[str] = Field(default_factory=list)


class ClassRecord(BaseModel):
    """
    A validated class extraction.
    """

    name: str
    description: str = ""
    hit_die: str = "d8"
    saving_throws: List[str] = Field(default_factory=list)
    skills: SkillChoice = Field(default_factory=SkillChoice)
    features: List[FeatureDescriptor] = Field(default_factory=list)


class SpellEntry(BaseModel):
    name: str
    level: int = 1


class SubclassRecord(BaseModel):
    """
    A validated subclass extraction.
    """

    name: str
    base_class: str = "Warlock"
    description: str = ""
    features: List[FeatureDescriptor] = Field(default_factory=list)
    spells: List[SpellEntry] = Field(default_factory=list)


class FeatureListRecord(BaseModel):
    """A batch of standalone features extracted ahead of a subclass import."""

    features: List[FeatureDescriptor] = Field(default_factory=list)


# Spells


class CastingTime(BaseModel):
    value: int = 1
    unit: str = "action"


class Duration(BaseModel):
    value: int = 0
    units: str = "inst"


class Components(BaseModel):
    v: bool = False
    s: bool = False
    m: bool = False
    material: str = ""


class SpellDamage(BaseModel):
    parts: List[Tuple[str, str]] = Field(default_factory=list)
    scaling: str = ""


class SpellRecord(BaseModel):
    """
    A validated spell extraction.
    """

    name: str
    level: int = Field(0, ge=0, le=9)
    school: str = ""
    casting_time: CastingTime = Field(default_factory=CastingTime)
    range: RangeRule = Field(default_factory=lambda: RangeRule(units="ft"))
    duration: Duration = Field(default_factory=Duration)
    components: Components = Field(default_factory=Components)
    description: str = ""
    damage: SpellDamage = Field(default_factory=SpellDamage)
    save: Optional[SaveRule] = None
    target: TargetRule = Field(default_factory=TargetRule)


# Monsters


class ArmorClass(BaseModel):
    value: int = 10
    calc: str = "flat"


class HitPointRule(BaseModel):
    value: int = 1
    formula: str = ""


class MonsterAction(BaseModel):
    name: str
    description: str = ""
    damage: str = Field(
        "",
        description="Damage formula such as '1d6 + 2'; empty for non-damaging actions"
    )
    damage_type: str = ""
    ability: str = "str"


class MonsterRecord(BaseModel):
    """
    A validated monster or NPC extraction.
    """

    name: str
    description: str = ""
    size: str = "med"
    creature_type: str = "humanoid"
    ac: ArmorClass = Field(default_factory=ArmorClass)
    hp: HitPointRule = Field(default_factory=HitPointRule)
    speed: Movement = Field(default_factory=Movement)
    stats: Dict[str, int] = Field(
        default_factory=lambda: {k: 10 for k in ("str", "dex", "con", "int", "wis", "cha")}
    )
    cr: float = 0
    actions: List[MonsterAction] = Field(default_factory=list)
