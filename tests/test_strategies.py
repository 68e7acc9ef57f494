"""
Tests for the per-domain converters.

Covers prompt building, response validation (defaults, coercion, the skill
choice safety net) and document compilation for every domain.
"""

import unittest

import pytest

from tomekeeper.errors import MissingRequiredFieldError
from tomekeeper.models import (
    AbilityScoreAdvancement,
    DomainKind,
    HitPointsAdvancement,
    ItemGrantAdvancement,
    SizeAdvancement,
)
from tomekeeper.models.records import FeatureDescriptor, SpeciesRecord
from tomekeeper.strategies import RULESETS, get_ruleset, strategy_registry
from tomekeeper.strategies import class_, feature, monster, species, spell, subclass
from tomekeeper.strategies.common import (
    build_feature_document,
    parse_damage_formula,
    to_html,
    validate_feature,
)


DND5E = RULESETS["dnd5e"]


def strip_ids(value):
    """Drop generated identifiers so two compilations can be compared."""
    if isinstance(value, dict):
        return {
            key: strip_ids(list(item.values()) if key == "activities" else item)
            for key, item in value.items()
            if key != "_id"
        }
    if isinstance(value, list):
        return [strip_ids(item) for item in value]
    return value


@pytest.fixture
def keen_senses_species():
    return {
        "name": "Vulpin",
        "description": "Fox folk of the deep woods.",
        "size": "Small",
        "movement": {"walk": "35 ft"},
        "senses": {"darkvision": 60},
        "traits": [
            {"name": "Darkvision", "description": "You can see in dim light within 60 feet."},
            {"name": "Keen Senses", "description": "You gain proficiency in two skills of your choice. Choose two skills."},
            {"name": "Claws", "description": "Your claws deal 1d4 slashing damage.", "isAttack": True,
             "damage": {"base": "str", "parts": [["1d4", "slashing"]]}},
        ],
        "languages": ["Common", "Sylvan"],
    }


class TestPromptBuilders(unittest.TestCase):
    """Test every prompt embeds the schema, an example and the source text."""

    def test_every_domain_builds_a_prompt(self):
        for kind in DomainKind:
            converter = strategy_registry.get(kind)
            prompt = converter.build_prompt("SOURCE BODY")

            self.assertTrue(prompt.endswith("SOURCE BODY"), kind)
            self.assertIn("EXAMPLE", prompt)
            self.assertIn('"name"', prompt)

    def test_prompt_is_deterministic(self):
        text = "Tabaxi. Feline folk."
        self.assertEqual(species.build_prompt(text), species.build_prompt(text))

    def test_subclass_prompt_cleans_source(self):
        prompt = subclass.build_prompt("Hexblade [XGE]\r\n\r\n\r\n\r\nHex Warrior")

        self.assertTrue(prompt.endswith("Hexblade \n\nHex Warrior"))
        self.assertNotIn("[XGE]", prompt)

    def test_species_prompt_does_not_clean_source(self):
        self.assertTrue(species.build_prompt("Elf [PHB]").endswith("Elf [PHB]"))


class TestSpeciesValidation(unittest.TestCase):
    """Test species defaults and the skill choice safety net."""

    def test_missing_name(self):
        with self.assertRaises(MissingRequiredFieldError):
            species.validate({"description": "No name here"})

    def test_defaults(self):
        record = species.validate({"name": "Bare"})

        self.assertEqual(record.description, "")
        self.assertEqual(record.creature_type, "Humanoid")
        self.assertEqual(record.size.value, "med")
        self.assertEqual(record.size.options, ["med"])
        self.assertEqual(record.movement.walk, 30)
        self.assertEqual(record.ability_score_increase.mode, "flexible")
        self.assertEqual(record.ability_score_increase.increases, 3)
        self.assertEqual(record.ability_score_increase.pool, [1, 1, 1])
        self.assertEqual(record.traits, [])
        self.assertEqual(record.languages.value, ["common"])
        self.assertEqual(record.languages.custom, "")
        self.assertEqual(record.proficiencies.skill_count, 0)

    def test_legacy_size_string(self):
        self.assertEqual(species.validate({"name": "Goliath", "size": "Large"}).size.options, ["lg"])
        self.assertEqual(species.validate({"name": "Odd", "size": "Colossal"}).size.value, "med")

    def test_wrong_shapes_are_replaced(self):
        record = species.validate({
            "name": "Garbled",
            "movement": "fast",
            "traits": {"name": "not a list"},
            "proficiencies": ["ath"],
            "abilityScoreIncrease": 7,
        })

        self.assertEqual(record.movement.walk, 30)
        self.assertEqual(record.traits, [])
        self.assertEqual(record.proficiencies.skills, [])
        self.assertEqual(record.ability_score_increase.increases, 3)

    def test_language_list_is_lowercased(self):
        record = species.validate({"name": "Elf", "languages": ["Common", "Elvish"]})
        self.assertEqual(record.languages.value, ["common", "elvish"])

    def test_fixed_ability_scores(self):
        record = species.validate({
            "name": "Dwarf",
            "abilityScoreIncrease": {"type": "fixed", "options": {"Constitution": 2, "wis": "1"}},
        })

        self.assertEqual(record.ability_score_increase.mode, "fixed")
        self.assertEqual(record.ability_score_increase.fixed, {"con": 2, "wis": 1})

    def test_safety_net_finds_skill_choice(self):
        record = species.validate({
            "name": "Kenku",
            "traits": [
                {"name": "Expert Duplication", "description": "You can copy writing."},
                {"name": "Kenku Recall", "description": "Thanks to your supernaturally good memory, choose two skills."},
            ],
        })

        self.assertEqual(record.proficiencies.skill_count, 2)
        self.assertEqual(record.proficiencies.trait_name, "Kenku Recall")

    def test_safety_net_number_words_and_digits(self):
        for phrase, count in [("Pick any 3 skills.", 3), ("You have proficiency in one skill.", 1),
                              ("Select FOUR skills", 4)]:
            record = species.validate({"name": "X", "traits": [{"name": "T", "description": phrase}]})
            self.assertEqual(record.proficiencies.skill_count, count, phrase)

    def test_safety_net_leaves_explicit_count(self):
        record = species.validate({
            "name": "Human",
            "traits": [{"name": "Skillful", "description": "Choose two skills."}],
            "proficiencies": {"skills": [], "skillCount": 1, "traitName": "Skillful"},
        })

        self.assertEqual(record.proficiencies.skill_count, 1)

    def test_safety_net_without_match(self):
        record = species.validate({"name": "Orc", "traits": [{"name": "Relentless", "description": "Drop to 1 hp."}]})

        self.assertEqual(record.proficiencies.skill_count, 0)
        self.assertEqual(record.proficiencies.trait_name, "")

    def test_unnamed_traits_are_dropped(self):
        record = species.validate({"name": "Elf", "traits": [{"description": "orphan"}, {"name": "Trance"}]})
        self.assertEqual([trait.name for trait in record.traits], ["Trance"])


def test_validated_species_compiles(keen_senses_species):
    """Any record that passed validation compiles without error."""
    record = species.validate(keen_senses_species)
    compiled = species.compile_documents(record, DND5E)

    assert compiled.primary.to_data()["type"] == "race"
    assert len(compiled.auxiliaries) == 3


def test_species_compile_places_skill_choice_on_trait(keen_senses_species):
    record = species.validate(keen_senses_species)
    compiled = species.compile_documents(record, DND5E)

    traits = {doc.name: doc for doc in compiled.auxiliaries}
    keen = traits["Keen Senses"]
    assert len(keen.advancement) == 1
    choice = keen.advancement[0].configuration.choices[0]
    assert choice.count == 2
    assert len(choice.pool) == 18
    assert choice.pool[0] == "skills:acr"
    assert traits["Darkvision"].advancement == []

    grants = compiled.primary.advancement
    assert not [adv for adv in grants if adv.title == "Skills"]
    assert [adv.pending for adv in grants if isinstance(adv, ItemGrantAdvancement)] == [
        ["Darkvision"], ["Keen Senses"], ["Claws"]
    ]


def test_species_compile_grants(keen_senses_species):
    record = species.validate(keen_senses_species)
    primary = species.compile_documents(record, DND5E).primary

    size = [adv for adv in primary.advancement if isinstance(adv, SizeAdvancement)]
    assert size[0].configuration.sizes == ["sm"]

    asi = [adv for adv in primary.advancement if isinstance(adv, AbilityScoreAdvancement)][0]
    assert asi.to_data()["configuration"] == {"points": 3, "cap": 2}

    languages = [adv for adv in primary.advancement if adv.title == "Languages"][0]
    assert languages.configuration.grants == ["common", "sylvan"]
    assert languages.configuration.choices == []

    data = primary.to_data()
    assert data["system"]["movement"] == {"walk": 35, "units": "ft"}
    assert data["system"]["senses"] == {"units": "ft", "darkvision": 60}
    assert all(adv["level"] == 0 for adv in data["system"]["advancement"])


def test_species_custom_language_adds_open_choice():
    record = species.validate({"name": "Human", "languages": {"value": ["common"], "custom": "one extra language"}})
    primary = species.compile_documents(record, DND5E).primary

    languages = [adv for adv in primary.advancement if adv.title == "Languages"][0]
    configuration = languages.to_data()["configuration"]
    assert configuration["choices"] == [{"count": 1, "pool": []}]
    assert configuration["allowReplacements"] is False


def test_species_fixed_skill_list_is_top_level():
    record = species.validate({"name": "Tabaxi", "proficiencies": {"skills": ["prc", "Stealth"]}})
    primary = species.compile_documents(record, DND5E).primary

    grant = [adv for adv in primary.advancement if adv.title == "Skill Proficiency"][0]
    assert grant.configuration.grants == ["skills:prc", "skills:ste"]


def test_species_choice_without_housing_trait_is_top_level():
    record = species.validate({
        "name": "Changeling",
        "proficiencies": {"skills": [], "skillCount": 2, "traitName": "Changeling Instincts"},
    })
    primary = species.compile_documents(record, DND5E).primary

    skills = [adv for adv in primary.advancement if adv.title == "Skills"]
    assert len(skills) == 1
    assert skills[0].configuration.choices[0].count == 2


def test_species_attack_trait_gets_attack_activity(keen_senses_species):
    record = species.validate(keen_senses_species)
    claws = [doc for doc in species.compile_documents(record, DND5E).auxiliaries if doc.name == "Claws"][0]

    activity = list(claws.system["activities"].values())[0]
    assert activity["type"] == "attack"
    assert activity["attack"]["type"] == {"value": "melee", "classification": "natural"}
    assert activity["damage"]["parts"] == [
        {"number": 1, "denomination": 4, "bonus": "@mod", "types": ["slashing"]}
    ]


def test_compile_is_idempotent_apart_from_ids(keen_senses_species):
    record = species.validate(keen_senses_species)

    first = species.compile_documents(record, DND5E)
    second = species.compile_documents(record, DND5E)

    def render(compiled):
        return strip_ids({
            "primary": compiled.primary.to_data(),
            "auxiliaries": [doc.to_data() for doc in compiled.auxiliaries],
        })

    assert render(first) == render(second)
    assert first.primary.advancement[0].id != second.primary.advancement[0].id


class TestDamageParsing(unittest.TestCase):
    """Test dice formula parsing."""

    def test_plain_formula(self):
        self.assertEqual(
            parse_damage_formula("2d8", "slashing"),
            {"number": 2, "denomination": 8, "bonus": "@mod", "types": ["slashing"]}
        )

    def test_formula_with_bonus(self):
        part = parse_damage_formula("1d6 + 2", "piercing", bonus=None)
        self.assertEqual((part["number"], part["denomination"]), (1, 6))
        self.assertNotIn("bonus", part)

    def test_fallback_warns(self):
        with self.assertLogs(level="WARNING"):
            part = parse_damage_formula("special")

        self.assertEqual((part["number"], part["denomination"]), (1, 6))
        self.assertEqual(part["types"], [])


class TestFeatureDocuments(unittest.TestCase):
    """Test feature mechanics become activities and effects."""

    def test_save_feature(self):
        feature_record = validate_feature({
            "name": "Magma Mastery",
            "description": "Each creature must make a Dexterity saving throw or be Restrained.",
            "level": 3,
            "activation": {"type": "action", "cost": 1},
            "range": {"value": 15, "units": "ft"},
            "target": {"value": 15, "units": "ft", "type": "15-foot Cone"},
            "save": {"ability": "Dexterity"},
            "damage": [{"formula": "3d6", "type": "fire"}],
        })
        document = build_feature_document(feature_record, "Magma (Warlock)", "Warlock 3")

        activity = list(document.system["activities"].values())[0]
        self.assertEqual(activity["type"], "save")
        self.assertEqual(activity["save"]["ability"], ["dex"])
        self.assertEqual(activity["target"], {"template": {"type": "cone", "size": 15, "units": "ft"}})
        self.assertEqual(activity["damage"]["parts"][0]["formula"], "3d6")
        self.assertEqual(document.system["actionType"], "save")
        self.assertEqual([effect["name"] for effect in document.effects], ["Restrained"])
        self.assertFalse(document.effects[0]["transfer"])

    def test_utility_feature(self):
        feature_record = FeatureDescriptor(name="Riposte", level=1, activation={"type": "reaction"})
        document = build_feature_document(feature_record, "Duelist Class Feature", "Duelist 1")

        activity = list(document.system["activities"].values())[0]
        self.assertEqual(activity["type"], "utility")
        self.assertEqual(activity["target"], {})

    def test_passive_feature_has_no_activity(self):
        document = build_feature_document(FeatureDescriptor(name="Fast Movement"), "X", "")
        self.assertEqual(document.system["activities"], {})
        self.assertEqual(document.effects, [])

    def test_creature_target(self):
        feature_record = FeatureDescriptor(name="Mark", activation={"type": "bonus"}, target={"value": 1, "type": "creature"})
        activity = list(build_feature_document(feature_record, "X", "").system["activities"].values())[0]
        self.assertEqual(activity["target"], {"affects": {"type": "creature", "count": 1}})

    def test_html_wrapping(self):
        self.assertEqual(to_html("One\n\nTwo\nThree"), "<p>One</p><p>Two<br>Three</p>")
        self.assertEqual(to_html("<p>Kept</p>"), "<p>Kept</p>")


class TestClassConverter(unittest.TestCase):
    """Test class validation and compilation."""

    def test_missing_name(self):
        with self.assertRaises(MissingRequiredFieldError):
            class_.validate({"hitDie": "d10"})

    def test_hit_die_normalization(self):
        self.assertEqual(class_.validate({"name": "A", "hitDie": 10}).hit_die, "d10")
        self.assertEqual(class_.validate({"name": "A", "hitDie": "1d12"}).hit_die, "d12")
        self.assertEqual(class_.validate({"name": "A", "hitDie": "d7"}).hit_die, "d8")
        self.assertEqual(class_.validate({"name": "A"}).hit_die, "d8")

    def test_compile(self):
        record = class_.validate({
            "name": "Duelist",
            "hitDie": "d10",
            "savingThrows": ["Strength", "dex"],
            "skills": {"count": 2, "options": ["acr", "ath"]},
            "features": [
                {"name": "Flourish", "description": "Short.", "level": 2},
                {"name": "Riposte", "description": "Reaction attack.", "level": 1},
                {"name": "Flourish", "description": "The detailed flourish text.", "level": 2},
            ],
        })
        compiled = class_.compile_documents(record, DND5E)

        self.assertEqual([doc.name for doc in compiled.auxiliaries], ["Riposte", "Flourish"])
        self.assertEqual(compiled.auxiliaries[1].system["requirements"], "Duelist 2")
        self.assertEqual(compiled.auxiliaries[0].system["source"], {"custom": "Duelist Class Feature"})

        grants = compiled.primary.advancement
        item_grants = [adv for adv in grants if isinstance(adv, ItemGrantAdvancement)]
        self.assertEqual([(adv.level, adv.pending) for adv in item_grants], [(1, ["Riposte"]), (2, ["Flourish"])])
        self.assertTrue(all(adv.title == "Class Features" for adv in item_grants))

        hit_points = [adv for adv in grants if isinstance(adv, HitPointsAdvancement)][0]
        self.assertEqual(hit_points.configuration.denomination, 10)

        saves = [adv for adv in grants if adv.title == "Saving Throws"][0]
        self.assertEqual(saves.configuration.grants, ["saves:str", "saves:dex"])

        skills = [adv for adv in grants if adv.title == "Skills"][0]
        self.assertEqual(skills.configuration.choices[0].pool, ["skills:acr", "skills:ath"])
        self.assertEqual(skills.hint, "Choose 2 skills")

        self.assertEqual(compiled.primary.system["hitDice"], "d10")


class TestSubclassConverter(unittest.TestCase):
    """Test subclass validation and compilation."""

    def test_defaults(self):
        record = subclass.validate({"name": "The Faceless One"})

        self.assertEqual(record.base_class, "Warlock")
        self.assertEqual(record.features, [])
        self.assertEqual(record.spells, [])

    def test_missing_name(self):
        with self.assertRaises(MissingRequiredFieldError):
            subclass.validate({"baseClass": "Wizard"})

    def test_compile_with_spells(self):
        record = subclass.validate({
            "name": "Magma Soul",
            "baseClass": "Sorcerer",
            "features": [
                {"name": "Lava Walk", "description": "Walk on lava.", "level": 6},
                {"name": "Magma Mastery", "description": "Summary.", "level": 3},
                {"name": "Magma Mastery", "description": "The full detailed description.", "level": 3},
            ],
            "spells": [{"name": "Burning Hands", "level": 1}, {"name": "Heat Metal", "level": 2},
                       {"name": "Hellish Rebuke", "level": 1}, "Fireball"],
        })
        compiled = subclass.compile_documents(record, DND5E)

        names = [doc.name for doc in compiled.auxiliaries]
        self.assertEqual(names, ["Expanded Spell List", "Magma Mastery", "Lava Walk"])

        table = compiled.auxiliaries[0].system["description"]["value"]
        self.assertIn("<tr><td>1</td><td>Burning Hands, Hellish Rebuke, Fireball</td></tr>", table)
        self.assertIn("<tr><td>2</td><td>Heat Metal</td></tr>", table)

        magma = compiled.auxiliaries[1]
        self.assertIn("full detailed", magma.system["description"]["value"])
        self.assertEqual(magma.system["source"], {"custom": "Magma Soul (Sorcerer)"})
        self.assertEqual(magma.system["requirements"], "Sorcerer 3")

        primary = compiled.primary
        self.assertEqual(primary.folder, "Sorcerer")
        self.assertEqual(primary.system["identifier"], "magma-soul")
        self.assertEqual(primary.system["classIdentifier"], "sorcerer")
        self.assertEqual(
            [(adv.level, adv.pending) for adv in primary.item_grants()],
            [(1, ["Expanded Spell List"]), (3, ["Magma Mastery"]), (6, ["Lava Walk"])]
        )


class TestFeatureConverter(unittest.TestCase):
    """Test standalone feature batches."""

    def test_unnamed_features_dropped(self):
        record = feature.validate({"features": [{"description": "nameless"}, {"name": "Phantom Echo", "level": 6}]})
        self.assertEqual([item.name for item in record.features], ["Phantom Echo"])

    def test_no_named_features(self):
        with self.assertRaises(MissingRequiredFieldError):
            feature.validate({"features": [{"description": "nameless"}]})

    def test_compile_has_no_primary(self):
        record = feature.validate({"features": [
            {"name": "Phantom Echo", "level": 6},
            {"name": "Hex Warrior", "requirements": "Warlock 1"},
        ]})
        compiled = feature.compile_documents(record, DND5E)

        self.assertIsNone(compiled.primary)
        self.assertEqual(compiled.auxiliaries[0].name, "Hex Warrior")
        self.assertEqual(compiled.auxiliaries[0].system["requirements"], "Warlock 1")
        self.assertEqual(compiled.auxiliaries[1].system["requirements"], "Level 6")
        self.assertEqual(compiled.auxiliaries[1].system["source"], {"custom": "Imported Feature"})


class TestSpellConverter(unittest.TestCase):
    """Test spell validation and compilation."""

    def test_defaults_and_clamping(self):
        record = spell.validate({"name": "Wish", "level": 12, "school": "Conjuration"})

        self.assertEqual(record.level, 9)
        self.assertEqual(record.school, "conjuration")
        self.assertEqual(record.casting_time.unit, "action")
        self.assertEqual(record.duration.units, "inst")
        self.assertIsNone(record.save)

    def test_missing_name(self):
        with self.assertRaises(MissingRequiredFieldError):
            spell.validate({"level": 3})

    def test_compile_save_spell(self):
        record = spell.validate({
            "name": "Fireball",
            "level": 3,
            "school": "evocation",
            "components": {"v": True, "s": True, "m": True, "material": "bat guano"},
            "damage": {"parts": [["8d6", "fire"]], "scaling": "level"},
            "save": {"ability": "dex"},
            "target": {"value": 20, "units": "ft", "type": "sphere"},
        })
        system = spell.compile_documents(record, DND5E).primary.system

        self.assertEqual(system["properties"], ["vocal", "somatic", "material"])
        self.assertEqual(system["materials"]["value"], "bat guano")
        activity = list(system["activities"].values())[0]
        self.assertEqual(activity["type"], "save")
        self.assertEqual(activity["save"]["ability"], ["dex"])
        self.assertEqual(activity["damage"]["parts"], [{"number": 8, "denomination": 6, "types": ["fire"]}])

    def test_compile_attack_spell(self):
        record = spell.validate({"name": "Fire Bolt", "level": 0, "damage": {"parts": [["1d10", "fire"]]}})
        system = spell.compile_documents(record, DND5E).primary.system

        self.assertEqual(list(system["activities"].values())[0]["type"], "attack")
        self.assertNotIn("materials", system)

    def test_compile_utility_spell(self):
        record = spell.validate({"name": "Light", "level": 0})
        self.assertEqual(spell.compile_documents(record, DND5E).primary.system["activities"], {})


class TestMonsterConverter(unittest.TestCase):
    """Test monster validation and compilation."""

    def test_defaults(self):
        record = monster.validate({"name": "Commoner"})

        self.assertEqual(record.size, "med")
        self.assertEqual(record.creature_type, "humanoid")
        self.assertEqual(record.ac.value, 10)
        self.assertEqual(record.hp.value, 1)
        self.assertEqual(record.speed.walk, 30)
        self.assertEqual(record.stats, {"str": 10, "dex": 10, "con": 10, "int": 10, "wis": 10, "cha": 10})
        self.assertEqual(record.cr, 0)

    def test_missing_name(self):
        with self.assertRaises(MissingRequiredFieldError):
            monster.validate({"ac": {"value": 12}})

    def test_compile(self):
        record = monster.validate({
            "name": "Goblin",
            "size": "Small",
            "type": "Humanoid",
            "ac": {"value": 15, "calc": "natural"},
            "hp": {"value": 7, "formula": "2d6"},
            "speed": {"walk": 30},
            "stats": {"str": 8, "dex": 14},
            "cr": "1/4",
            "actions": [
                {"name": "Scimitar", "desc": "Melee Weapon Attack.", "damage": "1d6 + 2", "damageType": "slashing",
                 "ability": "dex"},
                {"name": "Nimble Escape", "desc": "Disengage or Hide as a bonus action."},
            ],
        })
        data = monster.compile_documents(record, DND5E).primary.to_data()

        self.assertEqual(data["type"], "npc")
        self.assertNotIn("advancement", data["system"])
        self.assertEqual(data["system"]["attributes"]["ac"], {"value": 15, "calc": "natural"})
        self.assertEqual(data["system"]["attributes"]["hp"]["max"], 7)
        self.assertEqual(data["system"]["abilities"]["dex"], {"value": 14})
        self.assertEqual(data["system"]["abilities"]["con"], {"value": 10})
        self.assertEqual(data["system"]["details"]["cr"], 0.25)
        self.assertEqual(data["system"]["traits"]["size"], "sm")

        scimitar, escape = data["items"]
        self.assertEqual(scimitar["type"], "weapon")
        activity = list(scimitar["system"]["activities"].values())[0]
        self.assertEqual(activity["attack"]["ability"], "dex")
        self.assertEqual(activity["damage"]["parts"][0]["denomination"], 6)
        self.assertNotIn("activities", escape["system"])


class TestRegistry(unittest.TestCase):
    """Test the domain dispatch table."""

    def test_all_kinds_registered(self):
        self.assertEqual(sorted(strategy_registry.list_kinds()), sorted(kind.value for kind in DomainKind))

    def test_lookup_by_string(self):
        self.assertIs(strategy_registry.get("spell").kind, DomainKind.SPELL)

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            strategy_registry.get("vehicle")

    def test_unknown_ruleset_falls_back(self):
        self.assertIs(get_ruleset("starfinder"), DND5E)
        self.assertEqual(get_ruleset("generic").skill_code("Stealth"), "stealth")
        self.assertEqual(len(get_ruleset("pf2e").skill_pool), 16)


def test_species_record_defaults_are_compiler_ready():
    """A minimal record compiles with nothing but its name."""
    compiled = species.compile_documents(SpeciesRecord(name="Minimal"), DND5E)
    assert compiled.auxiliaries == []
    assert isinstance(compiled.primary.advancement[0], SizeAdvancement)
