"""
Import pipeline for Tomekeeper.

One import runs strictly in order: build the prompt, call the model,
validate the answer, compile the document graph, write the auxiliary
documents, link the primary document's grants, then write the primary.
Any failure stops the remaining steps. Documents already written stay in
the library.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from .agents import AgentRunner
from .config import ImportSettings
from .database import DocumentLibrary
from .errors import MalformedResponseError, TomekeeperError
from .importers import UrlImporter
from .linker import link
from .models import DocumentRef, DocumentSpec, DomainKind, ImportRequest, ImportResult
from .strategies import Converter, StrategyRegistry, WritePolicy, get_ruleset, strategy_registry


StatusCallback = Callable[[str, str], None]


def log_status(level: str, message: str) -> None:
    """Default status sink: forward to the log."""
    if level == "error":
        logging.error(message)
    elif level == "warning":
        logging.warning(message)
    else:
        logging.info(message)


class ImportPipeline:
    """
    Runs imports against one document library.
    """

    def __init__(self, settings: ImportSettings, library: DocumentLibrary,
                 runner: Optional[AgentRunner] = None,
                 registry: Optional[StrategyRegistry] = None,
                 status: Optional[StatusCallback] = None):
        """
        Initialize the pipeline.

        Args:
            settings: Settings snapshot for the imports this pipeline runs
            library: Connected document library to write to
            runner: Model client; built from the settings when omitted
            registry: Converter registry; the global registry when omitted
            status: Callback receiving (level, message) progress and failures
        """
        self.settings = settings
        self.library = library
        self.runner = runner or AgentRunner(
            ollama_host=settings.ollama_host,
            model=settings.model,
            timeout=settings.timeout,
            library=library
        )
        self.registry = registry or strategy_registry
        self.status = status or log_status

    def run(self, kind: Union[DomainKind, str], source_text: str) -> ImportResult:
        """
        Import one entity from text.

        Args:
            kind: Domain the text describes
            source_text: Pasted or fetched text

        Returns:
            The references this import created or updated

        Raises:
            TomekeeperError: On any terminal failure, after reporting it
                through the status callback
        """
        try:
            converter = self.registry.get(kind)
        except (ValueError, KeyError):
            message = f"Unknown import kind '{kind}'"
            self.status("error", message)
            raise TomekeeperError(message) from None

        try:
            return self._run(converter, ImportRequest(kind=converter.kind, source_text=source_text))
        except TomekeeperError as e:
            self.status("error", e.user_message)
            raise

    def _run(self, converter: Converter, request: ImportRequest) -> ImportResult:
        kind = request.kind.value
        ruleset = get_ruleset(self.settings.ruleset)

        self.status("info", f"Parsing {kind} with {self.settings.model}...")
        prompt = converter.build_prompt(request.source_text)
        raw = self.runner.extract(prompt, kind)

        try:
            record = converter.validate(raw)
        except ValidationError as e:
            raise MalformedResponseError(f"Extracted {kind} does not fit its schema: {e}") from e

        compiled = converter.compile(record, ruleset)

        self.status("info", f"Creating {kind} documents...")
        created_refs, auxiliary_refs, existing_index = self._write_auxiliaries(converter, compiled.auxiliaries)

        if compiled.primary is None:
            self.status("info", f"Created {len(auxiliary_refs)} {kind} documents")
            return ImportResult(
                kind=kind,
                name=", ".join(auxiliary_refs),
                auxiliary_refs=auxiliary_refs
            )

        linked = link(created_refs, compiled.primary, existing_index)
        unresolved = [name for grant in linked.item_grants() for name in grant.unresolved]

        primary_ref, updated = self._write_primary(converter, linked)

        verb = "Updated" if updated else "Created"
        self.status("info", f"{verb} {kind}: {linked.name} with {len(auxiliary_refs)} linked documents")
        if unresolved:
            self.status("warning", f"Could not link: {', '.join(unresolved)}")

        return ImportResult(
            kind=kind,
            name=linked.name,
            primary_ref=primary_ref,
            updated=updated,
            auxiliary_refs=auxiliary_refs,
            unresolved=unresolved
        )

    def _write_auxiliaries(self, converter: Converter, auxiliaries: List[DocumentSpec]
                           ) -> Tuple[Dict[str, DocumentRef], Dict[str, DocumentRef], Optional[Dict[str, DocumentRef]]]:
        """
        Persist auxiliary documents according to the converter's policy.

        Returns:
            Names and references written this run, names and references of
            every auxiliary including linked ones, and the pre-existing index
            when the policy links to existing documents
        """
        created_refs: Dict[str, DocumentRef] = {}
        auxiliary_refs: Dict[str, DocumentRef] = {}
        existing_indexes: Dict[str, Dict[str, DocumentRef]] = {}
        policy = converter.auxiliary_policy

        for document in auxiliaries:
            collection = self.settings.collection(document.collection)
            data = document.to_data()

            if policy == WritePolicy.LINK_OR_CREATE:
                if collection not in existing_indexes:
                    existing_indexes[collection] = self.library.get_index(collection)
                existing_ref = existing_indexes[collection].get(document.name)
                if existing_ref:
                    logging.info(f"Linked existing {document.doc_type} '{document.name}' ({existing_ref})")
                    auxiliary_refs[document.name] = existing_ref
                    continue
                ref = self.library.create_document(collection, data).ref
            elif policy == WritePolicy.UPSERT_BY_NAME:
                ref, _ = self._upsert(collection, data)
            else:
                ref = self.library.create_document(collection, data).ref

            created_refs[document.name] = ref
            auxiliary_refs[document.name] = ref

        existing_index = None
        if existing_indexes:
            existing_index = {}
            for index in existing_indexes.values():
                existing_index.update(index)
        return created_refs, auxiliary_refs, existing_index

    def _write_primary(self, converter: Converter, document: DocumentSpec) -> Tuple[DocumentRef, bool]:
        collection = self.settings.collection(document.collection)
        data = document.to_data()

        if converter.primary_policy == WritePolicy.UPSERT_BY_NAME:
            return self._upsert(collection, data)

        folder_id = None
        if document.folder:
            folder_id = self.library.get_or_create_folder(collection, document.folder)
        return self.library.create_document(collection, data, folder_id).ref, False

    def _upsert(self, collection: str, data: dict) -> Tuple[DocumentRef, bool]:
        existing = self.library.find_by_name(collection, data["name"])
        if existing:
            return self.library.update_document(existing.ref, data).ref, True
        return self.library.create_document(collection, data).ref, False

    def import_url(self, kind: Union[DomainKind, str], url: str) -> ImportResult:
        """
        Fetch a web page and import the entity it describes.
        """
        self.status("info", f"Fetching {url}...")
        importer = UrlImporter(url, timeout=self.settings.fetch_timeout, user_agent=self.settings.user_agent)
        try:
            text = importer.get_source_text()
        except TomekeeperError as e:
            self.status("error", e.user_message)
            raise
        return self.run(kind, text)

    def check_connection(self) -> bool:
        """Report whether the model server is reachable."""
        if self.runner.check_connection():
            self.status("info", f"Connected to {self.settings.ollama_host}")
            return True
        self.status("error", f"Cannot reach the model server at {self.settings.ollama_host}")
        return False
