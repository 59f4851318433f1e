"""Collaborator connectors for the Product Research Tracker"""

from app.connectors.base import (
    AuthenticationError,
    AuthProvider,
    AuthUser,
    CollectionPath,
    Document,
    DocumentStore,
    StoreError,
    Subscription,
)
from app.connectors.memory import InMemoryAuthProvider, InMemoryDocumentStore

__all__ = [
    "AuthenticationError",
    "AuthProvider",
    "AuthUser",
    "CollectionPath",
    "Document",
    "DocumentStore",
    "StoreError",
    "Subscription",
    "InMemoryAuthProvider",
    "InMemoryDocumentStore",
]
