"""
In-memory connectors

Process-local stand-ins for the managed auth service and document store.
Used with STORE_BACKEND=memory for local development and by the test suite.
Listeners are notified synchronously, in registration order.
"""
import copy
from typing import Any, Dict, List, Optional, Tuple

from passlib.context import CryptContext

from app.connectors.base import (
    AuthenticationError,
    AuthProvider,
    AuthStateCallback,
    AuthUser,
    CallbackSubscription,
    CollectionPath,
    Document,
    DocumentStore,
    ErrorCallback,
    SnapshotCallback,
    Subscription,
)
from app.utils.helpers import generate_id

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class InMemoryAuthProvider(AuthProvider):
    """Email/password accounts held in a dict"""

    def __init__(self, min_password_length: int = 6):
        self.min_password_length = min_password_length
        self._accounts: Dict[str, Tuple[AuthUser, str]] = {}
        self._current: Optional[AuthUser] = None
        self._listeners: List[AuthStateCallback] = []

    async def sign_up(self, email: str, password: str) -> AuthUser:
        email = (email or "").lower().strip()
        if "@" not in email:
            raise AuthenticationError("Unable to validate email address: invalid format")
        if len(password or "") < self.min_password_length:
            raise AuthenticationError(
                f"Password should be at least {self.min_password_length} characters."
            )
        if email in self._accounts:
            raise AuthenticationError("User already registered")

        user = AuthUser(id=generate_id(), email=email)
        self._accounts[email] = (user, pwd_context.hash(password))
        self._set_current(user)
        return user

    async def sign_in(self, email: str, password: str) -> AuthUser:
        account = self._accounts.get((email or "").lower().strip())
        if not account or not pwd_context.verify(password or "", account[1]):
            raise AuthenticationError("Invalid login credentials")
        self._set_current(account[0])
        return account[0]

    async def sign_out(self) -> None:
        self._set_current(None)

    def current_user(self) -> Optional[AuthUser]:
        return self._current

    def on_auth_state_change(self, callback: AuthStateCallback) -> Subscription:
        self._listeners.append(callback)
        callback(self._current)
        return CallbackSubscription(lambda: self._listeners.remove(callback))

    def _set_current(self, user: Optional[AuthUser]) -> None:
        self._current = user
        for listener in list(self._listeners):
            listener(user)


class InMemoryDocumentStore(DocumentStore):
    """Collections of dict documents keyed by CollectionPath"""

    def __init__(self):
        self._collections: Dict[CollectionPath, Dict[str, Dict[str, Any]]] = {}
        self._listeners: Dict[CollectionPath, List[Tuple[SnapshotCallback, ErrorCallback]]] = {}

    async def merge_write(self, path: CollectionPath, key: str, data: Dict[str, Any]) -> None:
        collection = self._collections.setdefault(path, {})
        collection.setdefault(key, {}).update(copy.deepcopy(data))
        self._notify(path)

    async def delete(self, path: CollectionPath, key: str) -> None:
        collection = self._collections.get(path, {})
        if collection.pop(key, None) is not None:
            self._notify(path)

    async def subscribe(
        self,
        path: CollectionPath,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        entry = (on_snapshot, on_error)
        self._listeners.setdefault(path, []).append(entry)
        on_snapshot(self.snapshot(path))
        return CallbackSubscription(lambda: self._listeners[path].remove(entry))

    def snapshot(self, path: CollectionPath) -> List[Document]:
        """Current contents of a collection"""
        return [
            Document(key=key, data=copy.deepcopy(data))
            for key, data in self._collections.get(path, {}).items()
        ]

    def get(self, path: CollectionPath, key: str) -> Optional[Dict[str, Any]]:
        data = self._collections.get(path, {}).get(key)
        return copy.deepcopy(data) if data is not None else None

    def listener_count(self, path: CollectionPath) -> int:
        return len(self._listeners.get(path, []))

    def fail_listeners(self, path: CollectionPath, error: Exception) -> None:
        """Report a listener failure to every subscriber of a collection"""
        for _, on_error in list(self._listeners.get(path, [])):
            on_error(error)

    def _notify(self, path: CollectionPath) -> None:
        listeners = list(self._listeners.get(path, []))
        if not listeners:
            return
        for on_snapshot, _ in listeners:
            on_snapshot(self.snapshot(path))
