"""Persistence: remote document store, local fallback store and codecs"""
from calinode.db.connection import Database
from calinode.db.documents import DocumentStore, InMemoryDocumentStore, PostgresDocumentStore
from calinode.db.local_store import LocalKeyValueStore

__all__ = [
    "Database",
    "DocumentStore",
    "InMemoryDocumentStore",
    "PostgresDocumentStore",
    "LocalKeyValueStore",
]
