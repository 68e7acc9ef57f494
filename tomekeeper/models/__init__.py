"""Data models for Tomekeeper."""

from .records import (
    DomainKind,
    ImportRequest,
    SpeciesRecord,
    ClassRecord,
    SubclassRecord,
    FeatureListRecord,
    SpellRecord,
    MonsterRecord,
    TraitDescriptor,
    FeatureDescriptor,
)
from .documents import (
    DocumentRef,
    DocumentSpec,
    CompiledDocuments,
    StoredDocument,
    ImportResult,
    AdvancementRecord,
    SizeAdvancement,
    AbilityScoreAdvancement,
    TraitAdvancement,
    ItemGrantAdvancement,
    HitPointsAdvancement,
)

__all__ = [
    "DomainKind",
    "ImportRequest",
    "SpeciesRecord",
    "ClassRecord",
    "SubclassRecord",
    "FeatureListRecord",
    "SpellRecord",
    "MonsterRecord",
    "TraitDescriptor",
    "FeatureDescriptor",
    "DocumentRef",
    "DocumentSpec",
    "CompiledDocuments",
    "StoredDocument",
    "ImportResult",
    "AdvancementRecord",
    "SizeAdvancement",
    "AbilityScoreAdvancement",
    "TraitAdvancement",
    "ItemGrantAdvancement",
    "HitPointsAdvancement",
]
