"""
Mutation gateway tests: merge-writes, positional competitors, links by id.

Guards against:
1. Partial writes clobbering fields outside the payload
2. Competitor edits disturbing neighbouring slots
3. Link deletes reordering or re-identifying the survivors
4. Selection surviving deletion of the selected product
5. Writes going out (or raising) without a session / on store failure
"""
import asyncio

import pytest

from app.connectors.base import AuthUser, CollectionPath, StoreError
from app.connectors.memory import InMemoryDocumentStore
from app.services.mutation_gateway import MutationGateway
from app.services.product_store import ProductStore
from app.services.sync_engine import SyncEngine

USER = AuthUser(id="user-1", email="researcher@example.com")
NAMESPACE = "dropship-tracker-app"
PATH = CollectionPath(namespace=NAMESPACE, user_id=USER.id)


def _run(coro):
    """Run an async coroutine in a sync test."""
    return asyncio.run(coro)


async def _signed_in(store=None, user=USER):
    """Gateway with a running sync engine feeding the local projection."""
    store = store or InMemoryDocumentStore()
    products = ProductStore()
    engine = SyncEngine(store=store, product_store=products, path=PATH)
    await engine.start()
    gateway = MutationGateway(store, products, lambda: user, NAMESPACE)
    return store, products, gateway


# ────────────────────────────────────────────
# Create / update / delete
# ────────────────────────────────────────────


class TestProducts:

    def test_create_writes_defaulted_product(self):
        async def scenario():
            store, products, gateway = await _signed_in()
            product_id = await gateway.create_product()
            return store.get(PATH, product_id), products.get(product_id), product_id

        doc, local, product_id = _run(scenario())
        assert doc["id"] == product_id
        assert doc["status"] == "Pending"
        assert len(doc["competitors"]) == 3
        assert doc["otherLinks"] == []
        assert isinstance(doc["createdAt"], int) and doc["createdAt"] > 0
        assert local is not None

    def test_ids_are_unique(self):
        async def scenario():
            _, _, gateway = await _signed_in()
            return {await gateway.create_product() for _ in range(20)}

        assert len(_run(scenario())) == 20

    def test_update_field_merges(self):
        async def scenario():
            store, _, gateway = await _signed_in()
            product_id = await gateway.create_product()
            await gateway.update_field(product_id, "name", "Posture Corrector")
            await gateway.update_field(product_id, "price", "29.99")
            await gateway.update_field(product_id, "hasContent", True)
            return store.get(PATH, product_id)

        doc = _run(scenario())
        assert doc["name"] == "Posture Corrector"
        assert doc["price"] == "29.99"
        assert doc["hasContent"] is True
        assert len(doc["competitors"]) == 3

    def test_update_status(self):
        async def scenario():
            store, products, gateway = await _signed_in()
            product_id = await gateway.create_product()
            await gateway.update_field(product_id, "status", "Approved")
            return store.get(PATH, product_id)["status"], products.get(product_id).status.value

        assert _run(scenario()) == ("Approved", "Approved")

    def test_invalid_field_and_status_raise(self):
        async def scenario():
            _, _, gateway = await _signed_in()
            product_id = await gateway.create_product()
            with pytest.raises(ValueError):
                await gateway.update_field(product_id, "id", "new-id")
            with pytest.raises(ValueError):
                await gateway.update_field(product_id, "createdAt", 0)
            with pytest.raises(ValueError):
                await gateway.update_field(product_id, "status", "Shortlisted")

        _run(scenario())

    def test_delete_selected_clears_selection(self):
        async def scenario():
            store, products, gateway = await _signed_in()
            product_id = await gateway.create_product()
            products.select(product_id)
            ok = await gateway.delete_product(product_id)
            return ok, products.selected_id, store.get(PATH, product_id)

        assert _run(scenario()) == (True, None, None)

    def test_delete_other_keeps_selection(self):
        async def scenario():
            _, products, gateway = await _signed_in()
            keep = await gateway.create_product()
            drop = await gateway.create_product()
            products.select(keep)
            await gateway.delete_product(drop)
            return products.selected_id, keep, [p.id for p in products.products]

        selected, keep, remaining = _run(scenario())
        assert selected == keep
        assert remaining == [keep]


# ────────────────────────────────────────────
# Competitors
# ────────────────────────────────────────────


class TestCompetitors:

    def test_update_one_slot_leaves_others_unchanged(self):
        async def scenario():
            store, _, gateway = await _signed_in()
            product_id = await gateway.create_product()
            await gateway.update_competitor(product_id, 0, "brand", "Alpha")
            await gateway.update_competitor(product_id, 0, "adsCount", "14")
            await gateway.update_competitor(product_id, 2, "storeLink", "https://gamma.example")
            before = store.get(PATH, product_id)["competitors"]

            await gateway.update_competitor(product_id, 1, "brand", "Beta")
            after = store.get(PATH, product_id)["competitors"]
            return before, after

        before, after = _run(scenario())
        assert after[0] == before[0]
        assert after[2] == before[2]
        assert after[1] == {**before[1], "brand": "Beta"}
        assert [c["brand"] for c in after] == ["Alpha", "Beta", ""]

    def test_out_of_range_index_is_noop(self):
        async def scenario():
            store, _, gateway = await _signed_in()
            product_id = await gateway.create_product()
            ok = await gateway.update_competitor(product_id, 3, "brand", "Nope")
            return ok, store.get(PATH, product_id)["competitors"]

        ok, competitors = _run(scenario())
        assert ok is False
        assert len(competitors) == 3

    def test_unknown_product_is_noop(self):
        async def scenario():
            store, _, gateway = await _signed_in()
            ok = await gateway.update_competitor("missing", 0, "brand", "x")
            return ok, store.snapshot(PATH)

        assert _run(scenario()) == (False, [])

    def test_unknown_competitor_field_raises(self):
        async def scenario():
            _, _, gateway = await _signed_in()
            product_id = await gateway.create_product()
            with pytest.raises(ValueError):
                await gateway.update_competitor(product_id, 0, "revenue", "1")

        _run(scenario())


# ────────────────────────────────────────────
# Other links
# ────────────────────────────────────────────


class TestLinks:

    def test_add_appends_in_order(self):
        async def scenario():
            store, _, gateway = await _signed_in()
            product_id = await gateway.create_product()
            ids = [await gateway.add_link(product_id) for _ in range(3)]
            return ids, store.get(PATH, product_id)["otherLinks"]

        ids, links = _run(scenario())
        assert [link["id"] for link in links] == ids
        assert all(link["title"] == "" and link["url"] == "" for link in links)

    def test_delete_keeps_order_and_ids(self):
        async def scenario():
            store, _, gateway = await _signed_in()
            product_id = await gateway.create_product()
            first, middle, last = [await gateway.add_link(product_id) for _ in range(3)]
            await gateway.update_link(product_id, last, "title", "Supplier video")
            await gateway.delete_link(product_id, middle)
            return first, last, store.get(PATH, product_id)["otherLinks"]

        first, last, links = _run(scenario())
        assert [link["id"] for link in links] == [first, last]
        assert links[1]["title"] == "Supplier video"

    def test_update_touches_only_matching_link(self):
        async def scenario():
            store, _, gateway = await _signed_in()
            product_id = await gateway.create_product()
            a = await gateway.add_link(product_id)
            b = await gateway.add_link(product_id)
            await gateway.update_link(product_id, b, "url", "https://b.example")
            return a, b, store.get(PATH, product_id)["otherLinks"]

        a, b, links = _run(scenario())
        assert links[0] == {"id": a, "title": "", "url": ""}
        assert links[1] == {"id": b, "title": "", "url": "https://b.example"}

    def test_unknown_link_field_raises(self):
        async def scenario():
            _, _, gateway = await _signed_in()
            product_id = await gateway.create_product()
            link_id = await gateway.add_link(product_id)
            with pytest.raises(ValueError):
                await gateway.update_link(product_id, link_id, "id", "x")

        _run(scenario())


# ────────────────────────────────────────────
# Session and write failures
# ────────────────────────────────────────────


class TestNoSessionAndFailures:

    def test_no_session_is_noop(self):
        async def scenario():
            store = InMemoryDocumentStore()
            gateway = MutationGateway(store, ProductStore(), lambda: None, NAMESPACE)
            created = await gateway.create_product()
            updated = await gateway.update_field("x", "name", "y")
            deleted = await gateway.delete_product("x")
            return created, updated, deleted, store.snapshot(PATH)

        assert _run(scenario()) == (None, False, False, [])

    def test_write_errors_are_swallowed(self):
        class ReadOnlyStore(InMemoryDocumentStore):
            async def merge_write(self, path, key, data):
                raise StoreError("read-only")

            async def delete(self, path, key):
                raise StoreError("read-only")

        async def scenario():
            _, products, gateway = await _signed_in(store=ReadOnlyStore())
            products.select("p1")
            return (
                await gateway.create_product(),
                await gateway.update_field("p1", "name", "x"),
                await gateway.delete_product("p1"),
                products.selected_id,
            )

        assert _run(scenario()) == (None, False, False, "p1")
