"""
Feature de-duplication.

Class and subclass write-ups often list each feature twice: once in a
summary table and once in a detailed section. Extraction passes pick up both.
"""

import logging
from typing import Dict, List

from .models.records import FeatureDescriptor


def dedupe(features: List[FeatureDescriptor]) -> List[FeatureDescriptor]:
    """
    Collapse features that share a name, keeping the richer entry.

    Entries are keyed by exact name. The entry with the longer description
    wins; on an exact tie the first one seen is kept. A survivor keeps the
    position of the first entry with its name, and the result is
    stable-sorted by ascending level.

    Args:
        features: Feature descriptors in extraction order

    Returns:
        One descriptor per name, ordered by level
    """
    unique: Dict[str, FeatureDescriptor] = {}

    for feature in features:
        current = unique.get(feature.name)
        if current is None:
            unique[feature.name] = feature
        elif len(feature.description) > len(current.description):
            logging.info(f"Replacing duplicate feature '{feature.name}' with longer description")
            unique[feature.name] = feature

    return sorted(unique.values(), key=lambda feature: feature.level)
