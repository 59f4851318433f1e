"""
Base Connector Classes

Contracts for the two managed collaborators the tracker depends on:
an authentication provider and a realtime document store. Concrete
backends (Supabase, in-memory) implement these.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


class AuthenticationError(Exception):
    """Credential operation rejected; message is shown to the user as-is."""


class StoreError(Exception):
    """Remote document store operation failed."""


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class CollectionPath:
    """Per-user collection address: <namespace>/<user_id>/<collection>"""
    namespace: str
    user_id: str
    collection: str = "products"

    def __str__(self) -> str:
        return f"{self.namespace}/{self.user_id}/{self.collection}"


@dataclass(frozen=True)
class Document:
    """A stored document and its storage key"""
    key: str
    data: Dict[str, Any]


SnapshotCallback = Callable[[List[Document]], None]
ErrorCallback = Callable[[Exception], None]
AuthStateCallback = Callable[[Optional[AuthUser]], None]


class Subscription(ABC):
    """Handle for a live listener; unsubscribe() must be idempotent."""

    @abstractmethod
    def unsubscribe(self) -> None:
        pass

    async def aclose(self) -> None:
        """Async teardown; backends with network cleanup override this."""
        self.unsubscribe()


class CallbackSubscription(Subscription):
    """Subscription that runs a cleanup callable once"""

    def __init__(self, cleanup: Callable[[], None]):
        self._cleanup = cleanup
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._cleanup()


class AuthProvider(ABC):
    """
    Managed authentication service

    Credential operations raise AuthenticationError on rejection.
    """

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> AuthUser:
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthUser:
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass

    @abstractmethod
    def current_user(self) -> Optional[AuthUser]:
        pass

    @abstractmethod
    def on_auth_state_change(self, callback: AuthStateCallback) -> Subscription:
        """
        Register for session changes.

        The callback receives the signed-in user or None, once with the
        current state and again on every change.
        """
        pass


class DocumentStore(ABC):
    """
    Managed realtime document store

    Writes raise StoreError on failure.
    """

    @abstractmethod
    async def merge_write(self, path: CollectionPath, key: str, data: Dict[str, Any]) -> None:
        """Create the document or update only the given fields."""
        pass

    @abstractmethod
    async def delete(self, path: CollectionPath, key: str) -> None:
        pass

    @abstractmethod
    async def subscribe(
        self,
        path: CollectionPath,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        """
        Live query over a collection.

        on_snapshot receives the full collection on the initial load and
        after every change; on_error receives listener failures.
        """
        pass
