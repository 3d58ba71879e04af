"""
Remote document store

Path-addressed JSON documents ("users/{uid}", "users/{uid}/streaks/data",
...). Two implementations:
- PostgresDocumentStore: one JSONB row per path
- InMemoryDocumentStore: process-local dict, for tests and offline use

Failures raise DatabaseError subclasses; callers decide how to degrade.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple

import psycopg
from psycopg import sql
from psycopg.types.json import Jsonb

from calinode.config import DOCUMENTS_TABLE
from calinode.db.connection import Database
from calinode.exceptions import wrap_external_exception
from calinode.resilience.metrics import record_store_operation

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class DocumentStore(ABC):
    """Async get/set/delete by path"""

    name: str = "remote"

    @abstractmethod
    async def get(self, path: str) -> Optional[Document]:
        """Document at path, or None when absent"""

    @abstractmethod
    async def set(self, path: str, data: Document, merge: bool = False) -> None:
        """Write data at path; merge=True updates top-level fields only"""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Remove the document at path (no-op when absent)"""

    @abstractmethod
    async def delete_fields(self, path: str, fields: Iterable[str]) -> None:
        """Remove top-level fields from the document at path"""

    @abstractmethod
    async def list_documents(self, prefix: str) -> List[Tuple[str, Document]]:
        """(path, document) pairs under prefix/, ordered by path"""

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> int:
        """Remove every document under prefix/; returns how many"""


def _child_prefix(prefix: str) -> str:
    return prefix.rstrip("/") + "/"


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store; documents are deep-copied in and out"""

    name = "memory"

    def __init__(self):
        self._documents: Dict[str, Document] = {}

    async def get(self, path: str) -> Optional[Document]:
        document = self._documents.get(path)
        return copy.deepcopy(document) if document is not None else None

    async def set(self, path: str, data: Document, merge: bool = False) -> None:
        if merge and path in self._documents:
            self._documents[path].update(copy.deepcopy(data))
        else:
            self._documents[path] = copy.deepcopy(data)

    async def delete(self, path: str) -> None:
        self._documents.pop(path, None)

    async def delete_fields(self, path: str, fields: Iterable[str]) -> None:
        document = self._documents.get(path)
        if document is None:
            return
        for name in fields:
            document.pop(name, None)

    async def list_documents(self, prefix: str) -> List[Tuple[str, Document]]:
        child = _child_prefix(prefix)
        return [
            (path, copy.deepcopy(doc))
            for path, doc in sorted(self._documents.items())
            if path.startswith(child)
        ]

    async def delete_prefix(self, prefix: str) -> int:
        child = _child_prefix(prefix)
        doomed = [path for path in self._documents if path.startswith(child)]
        for path in doomed:
            del self._documents[path]
        return len(doomed)


CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS {table} (
    path TEXT PRIMARY KEY,
    data JSONB NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgresDocumentStore(DocumentStore):
    """JSONB documents in a single PostgreSQL table"""

    name = "postgres"

    def __init__(self, database: Database, table: str = DOCUMENTS_TABLE):
        self.database = database
        self.table = sql.Identifier(table)

    def _query(self, template: str) -> sql.Composed:
        return sql.SQL(template).format(table=self.table)

    async def ensure_schema(self) -> None:
        """Create the documents table if missing"""
        try:
            async with self.database.connection() as conn:
                await conn.execute(self._query(CREATE_TABLE_SQL))
                await conn.commit()
            logger.info("Documents table ready")
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="ensure_schema")

    async def get(self, path: str) -> Optional[Document]:
        try:
            async with self.database.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        self._query("SELECT data FROM {table} WHERE path = %s"),
                        (path,)
                    )
                    row = await cur.fetchone()
            record_store_operation(self.name, "get", success=True)
            return dict(row["data"]) if row else None
        except psycopg.Error as e:
            record_store_operation(self.name, "get", success=False)
            raise wrap_external_exception(e, operation="get_document", context={"path": path})

    async def set(self, path: str, data: Document, merge: bool = False) -> None:
        if merge:
            query = """
                INSERT INTO {table} (path, data) VALUES (%s, %s)
                ON CONFLICT (path) DO UPDATE
                SET data = {table}.data || EXCLUDED.data, updated_at = CURRENT_TIMESTAMP
            """
        else:
            query = """
                INSERT INTO {table} (path, data) VALUES (%s, %s)
                ON CONFLICT (path) DO UPDATE
                SET data = EXCLUDED.data, updated_at = CURRENT_TIMESTAMP
            """
        try:
            async with self.database.connection() as conn:
                await conn.execute(self._query(query), (path, Jsonb(data)))
                await conn.commit()
            record_store_operation(self.name, "set", success=True)
        except psycopg.Error as e:
            record_store_operation(self.name, "set", success=False)
            raise wrap_external_exception(e, operation="set_document", context={"path": path})

    async def delete(self, path: str) -> None:
        try:
            async with self.database.connection() as conn:
                await conn.execute(self._query("DELETE FROM {table} WHERE path = %s"), (path,))
                await conn.commit()
            record_store_operation(self.name, "delete", success=True)
        except psycopg.Error as e:
            record_store_operation(self.name, "delete", success=False)
            raise wrap_external_exception(e, operation="delete_document", context={"path": path})

    async def delete_fields(self, path: str, fields: Iterable[str]) -> None:
        try:
            async with self.database.connection() as conn:
                await conn.execute(
                    self._query(
                        "UPDATE {table} SET data = data - %s::text[], updated_at = CURRENT_TIMESTAMP "
                        "WHERE path = %s"
                    ),
                    (list(fields), path)
                )
                await conn.commit()
            record_store_operation(self.name, "delete_fields", success=True)
        except psycopg.Error as e:
            record_store_operation(self.name, "delete_fields", success=False)
            raise wrap_external_exception(e, operation="delete_fields", context={"path": path})

    async def list_documents(self, prefix: str) -> List[Tuple[str, Document]]:
        pattern = _escape_like(_child_prefix(prefix)) + "%"
        try:
            async with self.database.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        self._query("SELECT path, data FROM {table} WHERE path LIKE %s ORDER BY path"),
                        (pattern,)
                    )
                    rows = await cur.fetchall()
            record_store_operation(self.name, "list", success=True)
            return [(row["path"], dict(row["data"])) for row in rows]
        except psycopg.Error as e:
            record_store_operation(self.name, "list", success=False)
            raise wrap_external_exception(e, operation="list_documents", context={"path": prefix})

    async def delete_prefix(self, prefix: str) -> int:
        pattern = _escape_like(_child_prefix(prefix)) + "%"
        try:
            async with self.database.connection() as conn:
                cur = await conn.execute(self._query("DELETE FROM {table} WHERE path LIKE %s"), (pattern,))
                deleted = cur.rowcount
                await conn.commit()
            record_store_operation(self.name, "delete_prefix", success=True)
            return deleted
        except psycopg.Error as e:
            record_store_operation(self.name, "delete_prefix", success=False)
            raise wrap_external_exception(e, operation="delete_prefix", context={"path": prefix})
