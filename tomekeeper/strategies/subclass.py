"""
Subclass converter.

Subclass write-ups repeat features between a summary table and the detailed
text, so features are deduplicated before compiling. Feature documents that
already exist in the features collection are linked instead of recreated.
"""

from typing import Any, Dict, List

from ..dedupe import dedupe
from ..errors import MissingRequiredFieldError
from ..importers.cleaning import clean_source_text
from ..models.documents import CompiledDocuments, DocumentSpec
from ..models.records import FeatureDescriptor, SpellEntry, SubclassRecord
from .common import (
    Ruleset,
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


EXPANDED_SPELL_LIST = "Expanded Spell List"

PROMPT_TEMPLATE = """You are a strict data extraction engine.

TASK: Extract D&D 5e SUBCLASS data from the text below and return strictly valid JSON.

*** CRITICAL RULES ***
1. EXTRACT VERBATIM: Do NOT summarize. Copy the text EXACTLY as it appears.
2. INCLUDE ALL PARAGRAPHS: Features often have several paragraphs ("Additionally...", "Once you use..."). Extract EVERYTHING.
3. MECHANICS: Extract action type, range, target, saving throws and damage from ANY part of the text.
4. HANDLE DUPLICATES: The text may contain a summary list ("Level 3: Feature Name") AND a detailed section. IGNORE THE SUMMARY LIST and extract only the detailed section.
5. HTML FORMAT: Wrap paragraphs in <p> tags. Use <ul>/<li> for lists.
6. NO SPLITTING SUB-OPTIONS: If a feature lists choices, KEEP them in its description. Do NOT create separate features for them.
7. NAME ACCURACY: Use the EXACT header text as the feature name, never a term from inside the description.
8. SPELLS: If you see "Expanded Spell List", extract it as a "spells" array.
9. NAME DETECTION: If the subclass name is not labeled, take it from the first paragraph ("The Faceless One is..." -> "The Faceless One").
10. HEADER FORMATS: Recognize BOTH "Feature Name (Level X)" AND "Level X: Feature Name".

*** ONE-SHOT EXAMPLE ***
Input Text:
"Level 3: Magma Mastery. As an action, you create a sphere of magma in a 15-foot cone. Each creature in that area must make a Dexterity saving throw. On a failed save, the creature takes 3d6 fire damage.

Once you use this feature, you cannot use it again until you finish a short or long rest."

Correct Output (JSON):
{
  "features": [
    {
      "name": "Magma Mastery",
      "description": "<p>As an action, you create a sphere of magma in a 15-foot cone. Each creature in that area must make a Dexterity saving throw. On a failed save, the creature takes 3d6 fire damage.</p><p>Once you use this feature, you cannot use it again until you finish a short or long rest.</p>",
      "level": 3,
      "activation": { "type": "action", "cost": 1 },
      "range": { "value": 15, "units": "ft" },
      "target": { "value": 15, "units": "ft", "type": "cone" },
      "save": { "ability": "dex", "scaling": "spell" },
      "damage": [ { "formula": "3d6", "type": "fire" } ],
      "uses": { "value": 1, "max": "1", "per": "sr" }
    }
  ]
}
*** END EXAMPLE ***

Required JSON Structure:
{
  "name": "Subclass Name",
  "baseClass": "Base Class",
  "description": "Flavor text",
  "features": [
    {
      "name": "Feature Name",
      "description": "FULL HTML CONTENT",
      "level": 3,
      "activation": { "type": "action", "cost": 1 },
      "range": { "value": null, "units": "ft" },
      "target": { "value": null, "units": "ft", "type": "" },
      "save": { "ability": "", "scaling": "spell" },
      "uses": { "value": null, "max": "", "per": "" }
    }
  ],
  "spells": [ { "name": "Spell Name", "level": 1 } ]
}

SOURCE TEXT:
"""


def build_prompt(source_text: str) -> str:
    return PROMPT_TEMPLATE + clean_source_text(source_text)


def validate(raw: Dict[str, Any]) -> SubclassRecord:
    """
    Validate a subclass extraction.

    A missing base class defaults to Warlock.

    Raises:
        MissingRequiredFieldError: If the subclass has no name
    """
    name = as_str(raw.get("name"))
    if not name:
        raise MissingRequiredFieldError("name", "subclass")

    spells = []
    for item in as_list(raw.get("spells")):
        if isinstance(item, str):
            item = {"name": item}
        data = as_dict(item)
        spell_name = as_str(data.get("name"))
        if spell_name:
            spells.append(SpellEntry(name=spell_name, level=max(as_int(data.get("level"), 1) or 1, 1)))

    return SubclassRecord(
        name=name,
        base_class=as_str(raw.get("baseClass")) or "Warlock",
        description=as_str(raw.get("description")),
        features=validate_features(raw.get("features"), "subclass", default_level=3),
        spells=spells
    )


def spell_list_feature(spells: List[SpellEntry]) -> FeatureDescriptor:
    """Render extracted spells as a level 1 feature holding a table grouped by spell level."""
    by_level: Dict[int, List[str]] = {}
    for spell in spells:
        by_level.setdefault(spell.level, []).append(spell.name)

    rows = "".join(
        f"<tr><td>{level}</td><td>{', '.join(names)}</td></tr>"
        for level, names in sorted(by_level.items())
    )
    table = (
        f"<h3>{EXPANDED_SPELL_LIST}</h3><table border='1'><thead><tr>"
        "<th>Spell Level</th><th>Spells</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
    )
    return FeatureDescriptor(name=EXPANDED_SPELL_LIST, description=table, level=1)


def compile_documents(record: SubclassRecord, ruleset: Ruleset) -> CompiledDocuments:
    """
    Compile a validated subclass into its subclass document and feature documents.

    The subclass document is filed in a folder named after the base class.
    """
    features = dedupe(record.features)
    if record.spells:
        features.insert(0, spell_list_feature(record.spells))

    source = f"{record.name} ({record.base_class})"
    auxiliaries = [
        build_feature_document(feature, source=source, requirements=f"{record.base_class} {feature.level}")
        for feature in features
    ]

    primary = DocumentSpec(
        name=record.name,
        doc_type="subclass",
        collection="subclasses",
        img="icons/svg/mystery-man.svg",
        folder=record.base_class,
        system={
            "description": {"value": to_html(record.description)},
            "identifier": slugify(record.name),
            "classIdentifier": slugify(record.base_class) or "warlock"
        },
        advancement=build_level_grants(features, "Subclass Features")
    )
    return CompiledDocuments(primary=primary, auxiliaries=auxiliaries)
