"""
Filter tests: case-insensitive substring match on name or status.
"""
from app.models.product import Product
from app.services.product_filter import FilteredProducts, filter_products
from app.services.product_store import ProductStore


def _catalog():
    return [
        Product(id="1", name="Widget Pro", status="Pending"),
        Product(id="2", name="Gadget", status="Approved"),
    ]


def _names(products):
    return [p.name for p in products]


def test_name_match_is_case_insensitive():
    assert _names(filter_products(_catalog(), "WIDGET")) == ["Widget Pro"]


def test_query_matches_name_or_status():
    # "pro" is in "Widget Pro" and in "Approved"
    assert _names(filter_products(_catalog(), "pro")) == ["Widget Pro", "Gadget"]


def test_status_match():
    assert _names(filter_products(_catalog(), "approved")) == ["Gadget"]


def test_empty_query_returns_everything_in_order():
    assert _names(filter_products(_catalog(), "")) == ["Widget Pro", "Gadget"]
    assert _names(filter_products(_catalog(), None)) == ["Widget Pro", "Gadget"]


def test_no_match():
    assert filter_products(_catalog(), "zzz") == []


def test_filtered_view_follows_store_and_query():
    store = ProductStore()
    view = FilteredProducts(store, query="widget")
    assert view.items == []

    store.replace(_catalog())
    assert _names(view.items) == ["Widget Pro"]

    view.query = "g"
    assert _names(view.items) == ["Widget Pro", "Gadget"]

    view.close()
    store.replace([])
    assert _names(view.items) == ["Widget Pro", "Gadget"]
