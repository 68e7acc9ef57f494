"""
Document library for Tomekeeper.

This module persists compiled documents, folders and the model call log
using DuckDB. Documents are addressed by reference strings of the form
``Compendium.<collection>.<id>``.
"""

import duckdb
import json
import logging
from typing import Any, Dict, List, Optional

from ..errors import ConnectivityError, LibraryError
from ..models.documents import DocumentRef, StoredDocument, random_id


def make_ref(collection: str, document_id: str) -> DocumentRef:
    return f"Compendium.{collection}.{document_id}"


def parse_ref(ref: DocumentRef) -> tuple:
    """
    Split a reference into its collection and document id.

    Raises:
        LibraryError: If the reference is not a library reference
    """
    prefix, _, rest = ref.partition(".")
    collection, _, document_id = rest.rpartition(".")
    if prefix != "Compendium" or not collection or not document_id:
        raise LibraryError(f"Not a library reference: {ref}")
    return collection, document_id


class DocumentLibrary:
    """
    Manages the DuckDB database holding imported documents.
    """

    def __init__(self, db_path: str = "tomekeeper.db"):
        """
        Initialize the document library.

        Args:
            db_path: Path to the DuckDB database file, or ":memory:"
        """
        self.db_path = db_path
        self.connection = None

    def connect(self):
        """Open the database and make sure the tables exist."""
        self.connection = duckdb.connect(self.db_path)
        self.initialize_database()

    def disconnect(self):
        """Close the database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()

    def _require_connection(self):
        if not self.connection:
            raise ConnectivityError(
                f"Database connection not established for {self.db_path}",
                f"The document library at {self.db_path} is not open."
            )
        return self.connection

    def initialize_database(self):
        """
        Create all necessary tables if they don't exist.
        """
        connection = self._require_connection()

        connection.execute("""
            CREATE TABLE IF NOT EXISTS folders (
                folder_id VARCHAR PRIMARY KEY,
                collection VARCHAR NOT NULL,
                name VARCHAR NOT NULL,
                parent_id VARCHAR,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        connection.execute("CREATE SEQUENCE IF NOT EXISTS document_seq;")
        connection.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                seq BIGINT DEFAULT nextval('document_seq'),
                document_id VARCHAR NOT NULL,
                collection VARCHAR NOT NULL,
                name VARCHAR NOT NULL,
                doc_type VARCHAR NOT NULL,
                folder_id VARCHAR,
                data TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (collection, document_id)
            )
        """)

        connection.execute("CREATE SEQUENCE IF NOT EXISTS call_id_seq;")
        connection.execute("""
            CREATE TABLE IF NOT EXISTS ai_calls (
                call_id BIGINT PRIMARY KEY DEFAULT nextval('call_id_seq'),
                domain VARCHAR NOT NULL,
                model_name VARCHAR NOT NULL,
                prompt TEXT NOT NULL,
                raw_response TEXT NOT NULL,
                success BOOLEAN NOT NULL,
                error_message TEXT,
                execution_time_ms INTEGER,
                called_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    # Documents

    def create_document(self, collection: str, data: Dict[str, Any],
                        folder_id: Optional[str] = None) -> StoredDocument:
        """
        Store a new document.

        Args:
            collection: Collection identifier
            data: Host-shaped document data; must carry "name" and "type"
            folder_id: Optional folder to file the document under

        Returns:
            The stored document with its new reference
        """
        connection = self._require_connection()
        name = data.get("name")
        doc_type = data.get("type")
        if not name or not doc_type:
            raise LibraryError(f"Refusing to store a document without name and type in {collection}")

        document_id = random_id()
        try:
            connection.execute("""
                INSERT INTO documents (document_id, collection, name, doc_type, folder_id, data)
                VALUES (?, ?, ?, ?, ?, ?)
            """, [document_id, collection, name, doc_type, folder_id, json.dumps(data)])
        except duckdb.Error as e:
            raise LibraryError(f"Failed to create '{name}' in {collection}: {e}") from e

        ref = make_ref(collection, document_id)
        logging.info(f"Created {doc_type} '{name}' as {ref}")
        return StoredDocument(
            ref=ref, collection=collection, name=name, doc_type=doc_type,
            folder_id=folder_id, data=data
        )

    def update_document(self, ref: DocumentRef, data: Dict[str, Any]) -> StoredDocument:
        """
        Replace the data of an existing document, keeping its reference and folder.

        Raises:
            LibraryError: If the reference does not exist
        """
        connection = self._require_connection()
        existing = self.get_document(ref)
        if existing is None:
            raise LibraryError(f"Document {ref} does not exist")

        collection, document_id = parse_ref(ref)
        name = data.get("name") or existing.name
        doc_type = data.get("type") or existing.doc_type
        try:
            connection.execute("""
                UPDATE documents
                SET name = ?, doc_type = ?, data = ?, updated_at = CURRENT_TIMESTAMP
                WHERE collection = ? AND document_id = ?
            """, [name, doc_type, json.dumps(data), collection, document_id])
        except duckdb.Error as e:
            raise LibraryError(f"Failed to update {ref}: {e}") from e

        logging.info(f"Updated {doc_type} '{name}' ({ref})")
        return StoredDocument(
            ref=ref, collection=collection, name=name, doc_type=doc_type,
            folder_id=existing.folder_id, data=data
        )

    def _row_to_document(self, row) -> StoredDocument:
        document_id, collection, name, doc_type, folder_id, data = row
        return StoredDocument(
            ref=make_ref(collection, document_id),
            collection=collection,
            name=name,
            doc_type=doc_type,
            folder_id=folder_id,
            data=json.loads(data)
        )

    def get_document(self, ref: DocumentRef) -> Optional[StoredDocument]:
        connection = self._require_connection()
        collection, document_id = parse_ref(ref)
        try:
            row = connection.execute("""
                SELECT document_id, collection, name, doc_type, folder_id, data
                FROM documents
                WHERE collection = ? AND document_id = ?
            """, [collection, document_id]).fetchone()
        except duckdb.Error as e:
            raise LibraryError(f"Failed to read {ref}: {e}") from e
        return self._row_to_document(row) if row else None

    def find_by_name(self, collection: str, name: str) -> Optional[StoredDocument]:
        """
        Find the oldest document in a collection with exactly this name.

        Returns:
            The matching document, or None
        """
        connection = self._require_connection()
        try:
            row = connection.execute("""
                SELECT document_id, collection, name, doc_type, folder_id, data
                FROM documents
                WHERE collection = ? AND name = ?
                ORDER BY seq
                LIMIT 1
            """, [collection, name]).fetchone()
        except duckdb.Error as e:
            raise LibraryError(f"Failed to look up '{name}' in {collection}: {e}") from e
        return self._row_to_document(row) if row else None

    def list_documents(self, collection: str, folder_id: Optional[str] = None) -> List[StoredDocument]:
        """
        List the documents of a collection, optionally restricted to one folder.
        """
        connection = self._require_connection()
        query = """
            SELECT document_id, collection, name, doc_type, folder_id, data
            FROM documents
            WHERE collection = ?
        """
        params: List[Any] = [collection]
        if folder_id:
            query += " AND folder_id = ?"
            params.append(folder_id)
        query += " ORDER BY seq"

        try:
            rows = connection.execute(query, params).fetchall()
        except duckdb.Error as e:
            raise LibraryError(f"Failed to list documents of {collection}: {e}") from e
        return [self._row_to_document(row) for row in rows]

    def get_index(self, collection: str) -> Dict[str, DocumentRef]:
        """
        Read the name index of a collection.

        Returns:
            Mapping of document name to reference; the oldest document wins
            when names repeat
        """
        index: Dict[str, DocumentRef] = {}
        for document in self.list_documents(collection):
            index.setdefault(document.name, document.ref)
        return index

    # Folders

    def get_or_create_folder(self, collection: str, name: str,
                             parent_id: Optional[str] = None) -> str:
        """
        Return the folder with this name in the collection, creating it if needed.

        Names are compared case-insensitively within one collection and parent.

        Returns:
            The folder id
        """
        connection = self._require_connection()
        folder_name = name.strip()

        params: List[Any] = [collection, folder_name.lower()]
        query = """
            SELECT folder_id FROM folders
            WHERE collection = ? AND lower(name) = ?
        """
        if parent_id:
            query += " AND parent_id = ?"
            params.append(parent_id)
        else:
            query += " AND parent_id IS NULL"

        try:
            row = connection.execute(query + " ORDER BY created_at LIMIT 1", params).fetchone()
            if row:
                logging.info(f"Using existing folder '{folder_name}' in {collection}")
                return row[0]

            folder_id = random_id()
            connection.execute("""
                INSERT INTO folders (folder_id, collection, name, parent_id)
                VALUES (?, ?, ?, ?)
            """, [folder_id, collection, folder_name, parent_id])
        except duckdb.Error as e:
            raise LibraryError(f"Failed to file folder '{folder_name}' in {collection}: {e}") from e
        logging.info(f"Created folder '{folder_name}' in {collection}")
        return folder_id

    def list_folders(self, collection: str) -> List[Dict[str, Any]]:
        connection = self._require_connection()
        rows = connection.execute("""
            SELECT folder_id, name, parent_id FROM folders
            WHERE collection = ?
            ORDER BY name
        """, [collection]).fetchall()
        return [{"folder_id": row[0], "name": row[1], "parent_id": row[2]} for row in rows]

    # Model call log

    def log_ai_call(self, domain: str, model_name: str, prompt: str, raw_response: str,
                    success: bool, error_message: Optional[str] = None,
                    execution_time_ms: Optional[int] = None) -> int:
        """
        Record one model call for reproducibility.

        Returns:
            The new call id
        """
        connection = self._require_connection()
        row = connection.execute("""
            INSERT INTO ai_calls (domain, model_name, prompt, raw_response, success,
                                  error_message, execution_time_ms)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            RETURNING call_id
        """, [domain, model_name, prompt, raw_response, success, error_message,
              execution_time_ms]).fetchone()
        return row[0]

    def get_ai_calls(self, domain: Optional[str] = None, success_only: bool = False,
                     limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Retrieve logged model calls, newest first.

        Args:
            domain: Filter by domain kind (optional)
            success_only: Only return successful calls
            limit: Limit number of results

        Returns:
            List of call records
        """
        connection = self._require_connection()
        query = """
            SELECT call_id, domain, model_name, prompt, raw_response, success,
                   error_message, execution_time_ms, called_at
            FROM ai_calls
            WHERE 1=1
        """
        params: List[Any] = []

        if domain:
            query += " AND domain = ?"
            params.append(domain)

        if success_only:
            query += " AND success = true"

        query += " ORDER BY call_id DESC"

        if limit is not None:
            query += f" LIMIT {int(limit)}"

        return [
            {
                "call_id": row[0],
                "domain": row[1],
                "model_name": row[2],
                "prompt": row[3],
                "raw_response": row[4],
                "success": row[5],
                "error_message": row[6],
                "execution_time_ms": row[7],
                "called_at": row[8]
            }
            for row in connection.execute(query, params).fetchall()
        ]
