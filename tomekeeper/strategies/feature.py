"""
Standalone feature converter.

Extracts a batch of class features into the features collection so later
subclass imports can link to them by name. There is no primary document.
"""

from typing import Any, Dict

from ..dedupe import dedupe
from ..errors import MissingRequiredFieldError
from ..importers.cleaning import clean_source_text
from ..models.documents import CompiledDocuments
from ..models.records import FeatureListRecord
from .common import Ruleset, build_feature_document, validate_features


PROMPT_TEMPLATE = """You are a strict data extraction engine.

TASK: Extract D&D 5e CLASS FEATURE data from the text below and return strictly valid JSON.

*** CRITICAL RULES ***
1. EXTRACT VERBATIM: Do NOT summarize. Copy the text EXACTLY as it appears.
2. INCLUDE ALL PARAGRAPHS: Features often have several paragraphs ("Additionally...", "Once you use..."). Extract EVERYTHING.
3. MECHANICS: Extract action type, range, target, saving throws and damage from ANY part of the text.
4. HTML FORMAT: Wrap paragraphs in <p> tags. Use <ul>/<li> for lists.
5. NO SPLITTING SUB-OPTIONS: If a feature lists choices, KEEP them in its description. Do NOT create separate features for them.
6. NAME ACCURACY: Use the EXACT header text as the feature name, never a term from inside the description.
7. IGNORE REFERENCES: If the text modifies another feature ("When you use Misty Escape..."), the name is the NEW feature's header.
8. REQUIREMENTS: Only include class requirements if explicitly stated in the text.

*** ONE-SHOT EXAMPLE ***
Input:
"Level 6: Phantom Echo. When you use your Misty Step feature, you can choose to leave an illusion behind that lasts until the end of your next turn.

Once you use this feature, you cannot use it again until you finish a short or long rest."

Output:
{
  "features": [
    {
      "name": "Phantom Echo",
      "description": "<p>When you use your Misty Step feature, you can choose to leave an illusion behind that lasts until the end of your next turn.</p><p>Once you use this feature, you cannot use it again until you finish a short or long rest.</p>",
      "level": 6,
      "activation": {},
      "range": {},
      "target": {},
      "save": {},
      "uses": { "value": 1, "max": "1", "per": "sr" }
    }
  ]
}
*** END EXAMPLE ***

Required JSON Structure:
{
  "features": [
    {
      "name": "Feature Name",
      "description": "FULL HTML CONTENT",
      "level": 1,
      "activation": { "type": "action", "cost": 1 },
      "range": { "value": null, "units": "ft" },
      "target": { "value": null, "units": "ft", "type": "" },
      "save": { "ability": "", "scaling": "spell" },
      "uses": { "value": null, "max": "", "per": "" }
    }
  ]
}

SOURCE TEXT:
"""


def build_prompt(source_text: str) -> str:
    return PROMPT_TEMPLATE + clean_source_text(source_text)


def validate(raw: Dict[str, Any]) -> FeatureListRecord:
    """
    Validate a feature batch, dropping unnamed features.

    Raises:
        MissingRequiredFieldError: If no feature has a name
    """
    features = validate_features(raw.get("features"), "standalone", default_level=0)
    if not features:
        raise MissingRequiredFieldError("features", "feature")
    return FeatureListRecord(features=features)


def compile_documents(record: FeatureListRecord, ruleset: Ruleset) -> CompiledDocuments:
    auxiliaries = []
    for feature in dedupe(record.features):
        requirements = feature.requirements or (f"Level {feature.level}" if feature.level else "")
        auxiliaries.append(build_feature_document(feature, "Imported Feature", requirements))
    return CompiledDocuments(primary=None, auxiliaries=auxiliaries)
