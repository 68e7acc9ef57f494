"""
Strategy registry for Tomekeeper.

This module maps every content domain to its converter: the prompt builder,
response validator and document compiler for that domain, plus the write
policies the pipeline applies when persisting the compiled documents.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Union

from ..models.documents import CompiledDocuments
from ..models.records import DomainKind
from . import class_, feature, monster, species, spell, subclass
from .common import Ruleset


class WritePolicy(str, Enum):
    """How documents of one role are written to the library."""

    CREATE = "create"
    UPSERT_BY_NAME = "upsert"
    LINK_OR_CREATE = "link_or_create"
    NONE = "none"


@dataclass(frozen=True)
class Converter:
    """
    Everything the pipeline needs to import one domain.
    """
    kind: DomainKind
    description: str
    build_prompt: Callable[[str], str]
    validate: Callable[[Dict[str, Any]], Any]
    compile: Callable[[Any, Ruleset], CompiledDocuments]
    auxiliary_policy: WritePolicy = WritePolicy.NONE
    primary_policy: WritePolicy = WritePolicy.CREATE


class StrategyRegistry:
    """
    Dispatch table from domain kind to converter.
    """

    def __init__(self):
        """Initialize the registry with the built-in domains."""
        self._converters: Dict[DomainKind, Converter] = {}
        self._register_default_converters()

    def _register_default_converters(self):
        self.register(Converter(
            kind=DomainKind.SPECIES,
            description="Species (race) with traits granted at level 0",
            build_prompt=species.build_prompt,
            validate=species.validate,
            compile=species.compile_documents,
            auxiliary_policy=WritePolicy.UPSERT_BY_NAME,
            primary_policy=WritePolicy.UPSERT_BY_NAME
        ))
        self.register(Converter(
            kind=DomainKind.CLASS,
            description="Class with level-gated features, hit points, saves and skills",
            build_prompt=class_.build_prompt,
            validate=class_.validate,
            compile=class_.compile_documents,
            auxiliary_policy=WritePolicy.CREATE
        ))
        self.register(Converter(
            kind=DomainKind.SUBCLASS,
            description="Subclass filed under its base class, linking existing features",
            build_prompt=subclass.build_prompt,
            validate=subclass.validate,
            compile=subclass.compile_documents,
            auxiliary_policy=WritePolicy.LINK_OR_CREATE
        ))
        self.register(Converter(
            kind=DomainKind.FEATURE,
            description="Batch of standalone class features",
            build_prompt=feature.build_prompt,
            validate=feature.validate,
            compile=feature.compile_documents,
            auxiliary_policy=WritePolicy.CREATE,
            primary_policy=WritePolicy.NONE
        ))
        self.register(Converter(
            kind=DomainKind.SPELL,
            description="Single spell",
            build_prompt=spell.build_prompt,
            validate=spell.validate,
            compile=spell.compile_documents
        ))
        self.register(Converter(
            kind=DomainKind.MONSTER,
            description="Monster or NPC actor with embedded actions",
            build_prompt=monster.build_prompt,
            validate=monster.validate,
            compile=monster.compile_documents
        ))

    def register(self, converter: Converter) -> None:
        """
        Register or replace the converter for a domain.

        Args:
            converter: The converter to register
        """
        self._converters[converter.kind] = converter

    def get(self, kind: Union[DomainKind, str]) -> Converter:
        """
        Look up the converter for a domain.

        Args:
            kind: A DomainKind or its string value

        Returns:
            The registered converter

        Raises:
            ValueError: If the kind is not a known domain
            KeyError: If no converter is registered for the domain
        """
        return self._converters[DomainKind(kind)]

    def list_kinds(self) -> List[str]:
        return [kind.value for kind in self._converters]


# Global strategy registry instance
strategy_registry = StrategyRegistry()
