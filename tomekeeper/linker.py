"""
Cross-reference linking for Tomekeeper.

Compilers address auxiliary documents by name inside ItemGrant records. Once
the auxiliaries are persisted, the linker swaps those names for library
references using an explicit, ordered list of matchers.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .models.documents import DocumentRef, DocumentSpec


def normalize_name(name: str) -> str:
    """Lower-case a name and drop everything but letters and digits."""
    return re.sub(r"[^a-z0-9]", "", name.lower())


class NameMatcher(ABC):
    """
    One tier of name resolution.
    """

    label = "matcher"

    @abstractmethod
    def match(self, name: str) -> Optional[DocumentRef]:
        """
        Resolve a name to a reference.

        Args:
            name: Human-readable document name from a grant record

        Returns:
            The matching reference, or None
        """
        pass


class CreatedExactMatcher(NameMatcher):
    """
    Exact match against documents created in this run.

    A same-case name wins over a case-insensitive one.
    """

    label = "created"

    def __init__(self, created_refs: Dict[str, DocumentRef]):
        self._exact = dict(created_refs)
        self._refs: Dict[str, DocumentRef] = {}
        for name, ref in created_refs.items():
            self._refs.setdefault(name.lower(), ref)

    def match(self, name: str) -> Optional[DocumentRef]:
        return self._exact.get(name) or self._refs.get(name.lower())


class ExistingExactMatcher(NameMatcher):
    """Case-insensitive exact match against documents already in the target library."""

    label = "existing"

    def __init__(self, existing_index: Dict[str, DocumentRef]):
        self._refs: Dict[str, DocumentRef] = {}
        for name, ref in existing_index.items():
            self._refs.setdefault(name.lower(), ref)

    def match(self, name: str) -> Optional[DocumentRef]:
        return self._refs.get(name.lower())


class FuzzyMatcher(NameMatcher):
    """
    Last-resort match where one normalized name contains the other.

    Candidates are tried in insertion order and the first hit wins.
    """

    label = "fuzzy"

    def __init__(self, *candidate_maps: Dict[str, DocumentRef]):
        self._candidates = []
        for candidates in candidate_maps:
            for name, ref in candidates.items():
                normalized = normalize_name(name)
                if normalized:
                    self._candidates.append((normalized, ref))

    def match(self, name: str) -> Optional[DocumentRef]:
        wanted = normalize_name(name)
        if not wanted:
            return None
        for candidate, ref in self._candidates:
            if wanted in candidate or candidate in wanted:
                return ref
        return None


def build_matchers(created_refs: Dict[str, DocumentRef],
                   existing_index: Optional[Dict[str, DocumentRef]] = None) -> List[NameMatcher]:
    """
    Build the matcher tiers in resolution order.

    Args:
        created_refs: Names and references of documents created this run
        existing_index: Names and references already in the auxiliary
            library; only supplied for domains that link to prior imports

    Returns:
        Matchers ordered exact-created, exact-existing, fuzzy
    """
    matchers: List[NameMatcher] = [CreatedExactMatcher(created_refs)]
    if existing_index:
        matchers.append(ExistingExactMatcher(existing_index))
        matchers.append(FuzzyMatcher(created_refs, existing_index))
    else:
        matchers.append(FuzzyMatcher(created_refs))
    return matchers


def resolve(name: str, matchers: List[NameMatcher]) -> Optional[DocumentRef]:
    for matcher in matchers:
        ref = matcher.match(name)
        if ref:
            if matcher.label == "fuzzy":
                logging.info(f"Fuzzy-linked '{name}' to {ref}")
            return ref
    return None


def link(created_refs: Dict[str, DocumentRef], primary: DocumentSpec,
         existing_index: Optional[Dict[str, DocumentRef]] = None) -> DocumentSpec:
    """
    Replace pending names in the primary document's ItemGrants with references.

    Names nothing resolves are logged, recorded on the grant's
    ``unresolved`` list, and left out of its items; the grant itself is kept.

    Args:
        created_refs: Names and references of documents created this run
        primary: The compiled primary document
        existing_index: Optional pre-existing names and references

    Returns:
        A linked copy of the primary document
    """
    linked = primary.model_copy(deep=True)
    matchers = build_matchers(created_refs, existing_index)

    for grant in linked.item_grants():
        for name in grant.pending:
            ref = resolve(name, matchers)
            if ref is None:
                logging.warning(
                    f"Unresolved reference '{name}' in grant '{grant.title}' of {primary.name}; "
                    "it will not unlock anything until linked manually"
                )
                grant.unresolved.append(name)
            elif ref not in grant.configuration.items:
                grant.configuration.items.append(ref)
        grant.pending = []

    return linked
