"""
Document graph models for Tomekeeper.

A compiled import is a primary DocumentSpec plus auxiliary DocumentSpecs.
Grant (advancement) records on a document say what it unlocks and at which
level; ItemGrant records name auxiliary documents that the linker later
replaces with library references.
"""

import uuid
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Library references are opaque strings handed out by the document library.
DocumentRef = str


def random_id() -> str:
    """Return a 16 character identifier for advancements and activities."""
    return uuid.uuid4().hex[:16]


class _Configuration(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_data(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class SizeConfiguration(_Configuration):
    sizes: List[str] = Field(default_factory=lambda: ["med"])


class AbilityScoreConfiguration(_Configuration):
    points: int = 0
    cap: int = 2
    fixed: Dict[str, int] = Field(default_factory=dict)

    def to_data(self) -> Dict[str, Any]:
        if self.fixed:
            return {"fixed": dict(self.fixed)}
        return {"points": self.points, "cap": self.cap}


class TraitChoice(_Configuration):
    count: int
    pool: List[str] = Field(
        default_factory=list,
        description="Allowed picks; an empty pool means any"
    )


class TraitConfiguration(_Configuration):
    mode: str = "default"
    allow_replacements: bool = False
    grants: List[str] = Field(default_factory=list)
    choices: List[TraitChoice] = Field(default_factory=list)


class ItemGrantConfiguration(_Configuration):
    items: List[DocumentRef] = Field(default_factory=list)


class HitPointsConfiguration(_Configuration):
    denomination: int = 8


class _Advancement(BaseModel):
    id: str = Field(default_factory=random_id)
    level: int = Field(
        0,
        ge=0,
        description="Character level that unlocks this grant; 0 applies unconditionally"
    )
    title: str = ""
    hint: str = ""

    def to_data(self) -> Dict[str, Any]:
        data = {
            "_id": self.id,
            "type": self.type,
            "level": self.level,
            "configuration": self.configuration.to_data()
        }
        if self.title:
            data["title"] = self.title
        if self.hint:
            data["hint"] = self.hint
        return data


class SizeAdvancement(_Advancement):
    type: Literal["Size"] = "Size"
    configuration: SizeConfiguration = Field(default_factory=SizeConfiguration)


class AbilityScoreAdvancement(_Advancement):
    type: Literal["AbilityScoreImprovement"] = "AbilityScoreImprovement"
    configuration: AbilityScoreConfiguration = Field(default_factory=AbilityScoreConfiguration)


class TraitAdvancement(_Advancement):
    type: Literal["Trait"] = "Trait"
    configuration: TraitConfiguration = Field(default_factory=TraitConfiguration)


class ItemGrantAdvancement(_Advancement):
    type: Literal["ItemGrant"] = "ItemGrant"
    configuration: ItemGrantConfiguration = Field(default_factory=ItemGrantConfiguration)

    pending: List[str] = Field(
        default_factory=list,
        exclude=True,
        description="Document names awaiting resolution to references"
    )
    unresolved: List[str] = Field(
        default_factory=list,
        exclude=True,
        description="Names the linker could not resolve"
    )


class HitPointsAdvancement(_Advancement):
    type: Literal["HitPoints"] = "HitPoints"
    configuration: HitPointsConfiguration = Field(default_factory=HitPointsConfiguration)


AdvancementRecord = Annotated[
    Union[
        SizeAdvancement,
        AbilityScoreAdvancement,
        TraitAdvancement,
        ItemGrantAdvancement,
        HitPointsAdvancement,
    ],
    Field(discriminator="type")
]


class DocumentSpec(BaseModel):
    """
    A document ready to be written to the library.
    """

    name: str = Field(
        ...,
        description="Document name; also the upsert and linking key"
    )

    doc_type: str = Field(
        ...,
        description="Host document type (race, feat, class, subclass, spell, npc, weapon)"
    )

    collection: str = Field(
        ...,
        description="Collection key (species, traits, classes, ...) resolved through settings"
    )

    img: str = "icons/svg/item-bag.svg"

    folder: Optional[str] = Field(
        None,
        description="Name of the folder to file the document under"
    )

    system: Dict[str, Any] = Field(default_factory=dict)

    advancement: List[AdvancementRecord] = Field(default_factory=list)

    effects: List[Dict[str, Any]] = Field(default_factory=list)

    embedded: List["DocumentSpec"] = Field(
        default_factory=list,
        description="Documents owned by this one, e.g. a monster's actions"
    )

    def item_grants(self) -> List[ItemGrantAdvancement]:
        """Return the reference-bearing grant records."""
        return [adv for adv in self.advancement if isinstance(adv, ItemGrantAdvancement)]

    def to_data(self) -> Dict[str, Any]:
        """Render the document in the shape the host library stores."""
        system = dict(self.system)
        if self.doc_type != "npc":
            system["advancement"] = [adv.to_data() for adv in self.advancement]

        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.doc_type,
            "img": self.img,
            "system": system
        }
        if self.effects:
            data["effects"] = [dict(effect) for effect in self.effects]
        if self.embedded:
            data["items"] = [doc.to_data() for doc in self.embedded]
        return data


DocumentSpec.model_rebuild()


class CompiledDocuments(BaseModel):
    """
    The document graph produced by one compile step.
    """

    primary: Optional[DocumentSpec] = Field(
        None,
        description="The imported entity; absent only for feature batches"
    )

    auxiliaries: List[DocumentSpec] = Field(
        default_factory=list,
        description="Traits or features the primary document grants"
    )


class StoredDocument(BaseModel):
    """
    A document as persisted in the library.
    """

    ref: DocumentRef
    collection: str
    name: str
    doc_type: str
    folder_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class ImportResult(BaseModel):
    """
    The identifiers one import run persisted.
    """

    kind: str
    name: str
    primary_ref: Optional[DocumentRef] = None
    updated: bool = Field(
        False,
        description="True when the primary replaced an existing document of the same name"
    )
    auxiliary_refs: Dict[str, DocumentRef] = Field(default_factory=dict)
    unresolved: List[str] = Field(default_factory=list)
