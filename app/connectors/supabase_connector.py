"""
Supabase Connector

Auth and document store backed by a Supabase project:

- Auth: Supabase email/password auth (GoTrue)
- Store: one Postgres table per collection, one row per document, one column
  per product field. Merge-writes are PostgREST upserts carrying only the
  changed columns, so untouched columns keep their values.
- Live queries: a realtime postgres_changes channel filtered by user_id;
  every change event triggers a full re-read of the user's rows, which is
  delivered as a snapshot.

Table layout: see sql/products.sql
"""
import asyncio
from typing import Any, Dict, List, Optional

from supabase import AsyncClient, AuthError, acreate_client

from app.config import Settings
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
    StoreError,
    Subscription,
)
from app.utils.logger import log

# Document field -> table column
FIELD_COLUMNS = {
    "name": "name",
    "status": "status",
    "cogs": "cogs",
    "price": "price",
    "valueProp": "value_prop",
    "targetMarket": "target_market",
    "supplierLink": "supplier_link",
    "personalNotes": "personal_notes",
    "internalNotes": "internal_notes",
    "hasContent": "has_content",
    "competitors": "competitors",
    "otherLinks": "other_links",
    "createdAt": "created_at",
}
COLUMN_FIELDS = {column: field for field, column in FIELD_COLUMNS.items()}

CONFLICT_COLUMNS = "namespace,user_id,id"
FAILED_CHANNEL_STATES = ("CHANNEL_ERROR", "TIMED_OUT")


async def create_supabase_client(settings: Settings) -> AsyncClient:
    """Return an async Supabase client if credentials are set."""
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise RuntimeError("Supabase credentials not set in environment variables.")
    return await acreate_client(settings.supabase_url, settings.supabase_anon_key)


def _to_user(user: Any) -> Optional[AuthUser]:
    if user is None:
        return None
    return AuthUser(id=str(user.id), email=getattr(user, "email", None))


class SupabaseAuthProvider(AuthProvider):
    """Email/password auth against Supabase"""

    def __init__(self, client: AsyncClient):
        self.client = client
        self._current: Optional[AuthUser] = None

    async def sign_up(self, email: str, password: str) -> AuthUser:
        try:
            res = await self.client.auth.sign_up({"email": email, "password": password})
        except AuthError as e:
            raise AuthenticationError(str(e)) from e
        user = _to_user(res.user)
        if user is None:
            raise AuthenticationError("Sign up did not return a user")
        return user

    async def sign_in(self, email: str, password: str) -> AuthUser:
        try:
            res = await self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as e:
            raise AuthenticationError(str(e)) from e
        user = _to_user(res.user)
        if user is None:
            raise AuthenticationError("Sign in did not return a user")
        return user

    async def sign_out(self) -> None:
        await self.client.auth.sign_out()

    def current_user(self) -> Optional[AuthUser]:
        return self._current

    def on_auth_state_change(self, callback: AuthStateCallback) -> Subscription:
        def handler(event, session):
            user = _to_user(session.user) if session else None
            log.debug(f"Auth event {event}: {user.email if user else 'signed out'}")
            self._current = user
            callback(user)

        subscription = self.client.auth.on_auth_state_change(handler)
        callback(self._current)
        return CallbackSubscription(subscription.unsubscribe)


class SupabaseSubscription(Subscription):
    """Realtime channel plus the snapshot refreshes it triggers"""

    def __init__(self, client: AsyncClient, channel: Any):
        self.client = client
        self.channel = channel
        self.active = True
        self.tasks: set = set()

    def spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        for task in list(self.tasks):
            task.cancel()
        self.spawn(self._remove_channel())

    async def aclose(self) -> None:
        if not self.active:
            return
        self.active = False
        for task in list(self.tasks):
            task.cancel()
        await self._remove_channel()

    async def _remove_channel(self) -> None:
        try:
            await self.client.remove_channel(self.channel)
        except Exception as e:
            log.warning(f"Failed to remove realtime channel: {str(e)}")


class SupabaseDocumentStore(DocumentStore):
    """Per-user collections stored as Postgres rows"""

    def __init__(self, client: AsyncClient, table_names: Optional[Dict[str, str]] = None, schema: str = "public"):
        self.client = client
        self.table_names = table_names or {}
        self.schema = schema

    def _table(self, path: CollectionPath) -> str:
        return self.table_names.get(path.collection, path.collection)

    @staticmethod
    def _to_columns(data: Dict[str, Any]) -> Dict[str, Any]:
        columns = {}
        for field, value in data.items():
            column = FIELD_COLUMNS.get(field)
            if column is None:
                if field != "id":
                    log.debug(f"Dropping unmapped field '{field}'")
                continue
            columns[column] = value
        return columns

    @staticmethod
    def _to_document(row: Dict[str, Any]) -> Dict[str, Any]:
        return {
            COLUMN_FIELDS[column]: value
            for column, value in row.items()
            if column in COLUMN_FIELDS and value is not None
        }

    async def merge_write(self, path: CollectionPath, key: str, data: Dict[str, Any]) -> None:
        row = {
            "namespace": path.namespace,
            "user_id": path.user_id,
            "id": key,
            **self._to_columns(data),
        }
        try:
            await (
                self.client.table(self._table(path))
                .upsert(row, on_conflict=CONFLICT_COLUMNS)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Write to {path}/{key} failed: {str(e)}") from e

    async def delete(self, path: CollectionPath, key: str) -> None:
        try:
            await (
                self.client.table(self._table(path))
                .delete()
                .eq("namespace", path.namespace)
                .eq("user_id", path.user_id)
                .eq("id", key)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Delete of {path}/{key} failed: {str(e)}") from e

    async def fetch_all(self, path: CollectionPath) -> List[Document]:
        """Read the whole collection"""
        res = await (
            self.client.table(self._table(path))
            .select("*")
            .eq("namespace", path.namespace)
            .eq("user_id", path.user_id)
            .execute()
        )
        return [
            Document(key=str(row["id"]), data=self._to_document(row))
            for row in res.data or []
        ]

    async def subscribe(
        self,
        path: CollectionPath,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        channel = self.client.channel(f"{path.namespace}:{path.user_id}:{path.collection}")
        subscription = SupabaseSubscription(self.client, channel)
        refresh_lock = asyncio.Lock()

        async def refresh():
            # Sequential re-reads keep snapshots in event order
            async with refresh_lock:
                if not subscription.active:
                    return
                try:
                    documents = await self.fetch_all(path)
                except Exception as e:
                    if subscription.active:
                        on_error(e)
                    return
                if subscription.active:
                    on_snapshot(documents)

        def on_change(payload):
            if subscription.active:
                subscription.spawn(refresh())

        def on_status(status, error=None):
            log.debug(f"Realtime channel {path}: {status}")
            if not subscription.active:
                return
            if status == "SUBSCRIBED":
                subscription.spawn(refresh())
            elif status in FAILED_CHANNEL_STATES:
                on_error(error or StoreError(f"Realtime channel {path} reported {status}"))

        channel.on_postgres_changes(
            "*",
            schema=self.schema,
            table=self._table(path),
            filter=f"user_id=eq.{path.user_id}",
            callback=on_change,
        )
        # Realtime cannot filter DELETE events, so listen to them unfiltered
        channel.on_postgres_changes(
            "DELETE",
            schema=self.schema,
            table=self._table(path),
            callback=on_change,
        )
        try:
            await channel.subscribe(on_status)
        except Exception as e:
            raise StoreError(f"Subscribing to {path} failed: {str(e)}") from e
        return subscription
