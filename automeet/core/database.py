"""
Document store backed by PostgreSQL JSONB.

Each collection is a table of ``(id, data)`` rows. Documents are plain
dicts; updates merge top-level fields into the stored document.
"""

import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from automeet.config import settings
from automeet.core.exceptions import NotFound
from automeet.core.logging import get_logger
from automeet.core.models import Document

log = get_logger(__name__)

COLLECTIONS = ("users", "meetings")

# Range operators compare the field's text value, which orders
# normalized ISO timestamps correctly.
RANGE_OPERATORS = {"<": "<", "<=": "<=", ">": ">", ">=": ">="}


def new_document_id() -> str:
    """Generate an opaque document key."""
    return uuid.uuid4().hex


class BaseCollection(ABC):
    """Keyed document collection interface."""

    name: str

    @abstractmethod
    async def get(self, doc_id: str) -> Document | None:
        """Fetch a document by key, or None if it does not exist."""

    @abstractmethod
    async def add(self, data: dict[str, Any]) -> str:
        """Insert a document under a new key and return the key."""

    @abstractmethod
    async def update(self, doc_id: str, fields: dict[str, Any]) -> None:
        """
        Merge top-level fields into an existing document.

        Raises:
            NotFound: If the document does not exist
        """

    @abstractmethod
    async def delete(self, doc_id: str) -> bool:
        """Delete a document. Returns False if it did not exist."""

    @abstractmethod
    async def list_all(self) -> list[Document]:
        """Return every document in the collection."""

    @abstractmethod
    async def where(self, field: str, op: str, value: Any) -> list[Document]:
        """
        Filter documents on a top-level field.

        Args:
            field: Document field name
            op: ``==`` or one of ``<``, ``<=``, ``>``, ``>=``
            value: Value to compare against
        """


class Database:
    """PostgreSQL connection handling and schema for the document store."""

    def __init__(self, connection_string: str | None = None):
        """
        Initialize database connection settings.

        Args:
            connection_string: PostgreSQL connection URL. Uses settings if not provided.
        """
        self.connection_string = connection_string or settings.database_url

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Get a database connection as an async context manager."""
        conn = await psycopg.AsyncConnection.connect(
            self.connection_string, row_factory=dict_row
        )
        try:
            yield conn
        finally:
            await conn.close()

    async def init_schema(self) -> None:
        """Create collection tables if they do not exist."""
        async with self.get_connection() as conn:
            for name in COLLECTIONS:
                await conn.execute(
                    sql.SQL(
                        """
                        CREATE TABLE IF NOT EXISTS {table} (
                            id TEXT PRIMARY KEY,
                            data JSONB NOT NULL DEFAULT '{{}}'::jsonb,
                            created_at TIMESTAMPTZ DEFAULT NOW()
                        )
                        """
                    ).format(table=sql.Identifier(name))
                )
            await conn.commit()
            log.info("database_schema_initialized", collections=list(COLLECTIONS))

    def collection(self, name: str) -> "PostgresCollection":
        if name not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {name}")
        return PostgresCollection(self, name)


class PostgresCollection(BaseCollection):
    """A collection stored as one PostgreSQL table."""

    def __init__(self, database: Database, name: str):
        self.database = database
        self.name = name
        self._table = sql.Identifier(name)

    async def get(self, doc_id: str) -> Document | None:
        query = sql.SQL("SELECT id, data FROM {table} WHERE id = %s").format(table=self._table)
        async with self.database.get_connection() as conn:
            cursor = await conn.execute(query, (doc_id,))
            row = await cursor.fetchone()
        return Document(id=row["id"], data=row["data"]) if row else None

    async def add(self, data: dict[str, Any]) -> str:
        doc_id = new_document_id()
        query = sql.SQL("INSERT INTO {table} (id, data) VALUES (%s, %s)").format(table=self._table)
        async with self.database.get_connection() as conn:
            await conn.execute(query, (doc_id, Jsonb(data)))
            await conn.commit()
        log.debug("document_inserted", collection=self.name, doc_id=doc_id)
        return doc_id

    async def update(self, doc_id: str, fields: dict[str, Any]) -> None:
        query = sql.SQL(
            "UPDATE {table} SET data = data || %s WHERE id = %s RETURNING id"
        ).format(table=self._table)
        async with self.database.get_connection() as conn:
            cursor = await conn.execute(query, (Jsonb(fields), doc_id))
            row = await cursor.fetchone()
            await conn.commit()
        if row is None:
            raise NotFound(f"No document {doc_id} in {self.name}")

    async def delete(self, doc_id: str) -> bool:
        query = sql.SQL("DELETE FROM {table} WHERE id = %s RETURNING id").format(table=self._table)
        async with self.database.get_connection() as conn:
            cursor = await conn.execute(query, (doc_id,))
            row = await cursor.fetchone()
            await conn.commit()
        return row is not None

    async def list_all(self) -> list[Document]:
        query = sql.SQL("SELECT id, data FROM {table} ORDER BY created_at").format(table=self._table)
        async with self.database.get_connection() as conn:
            cursor = await conn.execute(query)
            rows = await cursor.fetchall()
        return [Document(id=row["id"], data=row["data"]) for row in rows]

    async def where(self, field: str, op: str, value: Any) -> list[Document]:
        if op == "==":
            query = sql.SQL("SELECT id, data FROM {table} WHERE data @> %s").format(
                table=self._table
            )
            params: tuple = (Jsonb({field: value}),)
        elif op in RANGE_OPERATORS:
            query = sql.SQL("SELECT id, data FROM {table} WHERE data ->> %s {op} %s").format(
                table=self._table, op=sql.SQL(RANGE_OPERATORS[op])
            )
            params = (field, str(value))
        else:
            raise ValueError(f"Unsupported operator: {op}")

        async with self.database.get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
        return [Document(id=row["id"], data=row["data"]) for row in rows]
