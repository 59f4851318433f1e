"""
Session management

Builds the client context (auth provider, document store, local cache) at
startup and follows auth-state changes: each new user gets a fresh
SyncEngine, and the previous one is always stopped first so two users'
subscriptions never overlap.
"""
import asyncio
from dataclasses import dataclass
from typing import Optional, Set

from app.config import Settings
from app.connectors.base import AuthProvider, AuthUser, CollectionPath, DocumentStore, Subscription
from app.services.local_cache import LocalCache
from app.services.mutation_gateway import MutationGateway
from app.services.product_store import ProductStore
from app.services.sync_engine import SyncEngine, SyncState
from app.utils.logger import log


@dataclass
class ClientContext:
    """Explicitly constructed collaborator handles"""
    settings: Settings
    auth: AuthProvider
    store: DocumentStore
    local_cache: Optional[LocalCache] = None


async def build_client_context(settings: Settings) -> ClientContext:
    """Create the collaborators selected by settings.store_backend."""
    from app.models.base import SessionLocal, init_db

    init_db()
    local_cache = LocalCache(SessionLocal, settings.local_cache_key)

    if settings.store_backend == "memory":
        from app.connectors.memory import InMemoryAuthProvider, InMemoryDocumentStore
        auth = InMemoryAuthProvider(min_password_length=settings.min_password_length)
        store = InMemoryDocumentStore()
    elif settings.store_backend == "supabase":
        from app.connectors.supabase_connector import (
            SupabaseAuthProvider,
            SupabaseDocumentStore,
            create_supabase_client,
        )
        client = await create_supabase_client(settings)
        auth = SupabaseAuthProvider(client)
        store = SupabaseDocumentStore(client, {"products": settings.products_table})
    else:
        raise ValueError(f"Unknown store backend '{settings.store_backend}'")

    log.info(f"Client context ready (backend: {settings.store_backend})")
    return ClientContext(settings=settings, auth=auth, store=store, local_cache=local_cache)


class SessionManager:
    """Follows the signed-in user and owns their sync engine"""

    def __init__(self, context: ClientContext, product_store: Optional[ProductStore] = None):
        self.context = context
        self.product_store = product_store or ProductStore()
        self.gateway = MutationGateway(
            store=context.store,
            product_store=self.product_store,
            current_user=self.current_user,
            namespace=context.settings.tenant_namespace,
        )
        self.user: Optional[AuthUser] = None
        self.engine: Optional[SyncEngine] = None
        self.auth_checking = True

        self._auth_subscription: Optional[Subscription] = None
        self._switch_lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()

    def current_user(self) -> Optional[AuthUser]:
        return self.user

    @property
    def sync_state(self) -> SyncState:
        return self.engine.state if self.engine else SyncState.UNSUBSCRIBED

    async def start(self) -> None:
        """Register for auth-state changes and apply the current state."""
        self._auth_subscription = self.context.auth.on_auth_state_change(self._on_auth_state)
        await self.settle()

    async def close(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None
        await self.settle()
        async with self._switch_lock:
            if self.engine is not None:
                await self.engine.stop()
                self.engine = None

    async def settle(self) -> None:
        """Wait until every pending user switch has been applied."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ── Credentials ──────────────────────────────────────────

    async def sign_up(self, email: str, password: str) -> AuthUser:
        """Create an account; raises AuthenticationError with the provider's message."""
        user = await self.context.auth.sign_up(email, password)
        log.info(f"Signed up {user.email}")
        await self.settle()
        return user

    async def sign_in(self, email: str, password: str) -> AuthUser:
        """Sign in; raises AuthenticationError with the provider's message."""
        user = await self.context.auth.sign_in(email, password)
        log.info(f"Signed in {user.email}")
        await self.settle()
        return user

    async def sign_out(self) -> None:
        try:
            await self.context.auth.sign_out()
        except Exception as e:
            log.error(f"Logout error: {str(e)}")
        await self.settle()

    # ── Auth state ───────────────────────────────────────────

    def _on_auth_state(self, user: Optional[AuthUser]) -> None:
        self.auth_checking = False
        task = asyncio.get_running_loop().create_task(self._switch_user(user))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _switch_user(self, user: Optional[AuthUser]) -> None:
        async with self._switch_lock:
            previous = self.user
            if user is not None and previous is not None and user.id == previous.id and self.engine:
                # Token refresh or repeated event for the same session
                self.user = user
                return

            if self.engine is not None:
                await self.engine.stop()
                self.engine = None

            self.user = user
            if previous is not None:
                self.product_store.clear()

            if user is None:
                if previous is not None:
                    log.info(f"Session ended for {previous.email}")
                return

            path = CollectionPath(namespace=self.context.settings.tenant_namespace, user_id=user.id)
            self.engine = SyncEngine(
                store=self.context.store,
                product_store=self.product_store,
                path=path,
                local_cache=self.context.local_cache,
            )
            try:
                await self.engine.start()
            except Exception as e:
                log.error(f"Failed to start product sync for {user.email}: {str(e)}")
