"""
Product model tests: defaults and document mapping.

These are unit tests that do NOT require a store or database.
"""
from app.models.product import (
    COMPETITOR_SLOTS,
    Product,
    ProductStatus,
    new_link,
    new_product,
)


def test_new_product_defaults():
    p = new_product("abc", 1700000000000)
    doc = p.to_document()

    assert doc["id"] == "abc"
    assert doc["createdAt"] == 1700000000000
    assert doc["name"] == ""
    assert doc["status"] == "Pending"
    assert doc["cogs"] == "" and doc["price"] == ""
    assert doc["hasContent"] is False
    assert doc["otherLinks"] == []
    assert len(doc["competitors"]) == COMPETITOR_SLOTS
    assert doc["competitors"][0] == {
        "brand": "", "adLink": "", "storeLink": "", "adsCount": "", "traffic": "",
    }
    for key in ("valueProp", "targetMarket", "supplierLink", "personalNotes", "internalNotes"):
        assert doc[key] == ""


def test_competitor_slots_are_independent():
    p = new_product("abc", 1)
    p.competitors[0].brand = "Acme"
    assert p.competitors[1].brand == ""


def test_storage_key_overrides_body_id():
    p = Product.from_document("key-1", {"id": "stale-id", "name": "Widget"})
    assert p.id == "key-1"
    assert p.name == "Widget"


def test_partial_document_gets_defaults():
    p = Product.from_document("k", {"name": "Only a name"})
    assert p.status == ProductStatus.PENDING
    assert len(p.competitors) == COMPETITOR_SLOTS
    assert p.created_at is None
    assert p.sort_key == 0


def test_unknown_status_reads_as_pending():
    p = Product.from_document("k", {"status": "Maybe"})
    assert p.status == ProductStatus.PENDING


def test_numbers_and_nulls_are_tolerated():
    p = Product.from_document("k", {
        "price": 19.99,
        "cogs": None,
        "createdAt": "1700000000000",
        "competitors": [{"brand": "A", "adsCount": 12}],
    })
    assert p.price == "19.99"
    assert p.cogs == ""
    assert p.created_at == 1700000000000
    assert p.competitors[0].ads_count == "12"


def test_unknown_fields_round_trip():
    p = Product.from_document("k", {"name": "x", "legacyField": 1})
    assert p.to_document()["legacyField"] == 1


def test_new_link_is_empty():
    assert new_link("l1").to_document() == {"id": "l1", "title": "", "url": ""}


def test_embedded_records_are_tolerated():
    p = Product.from_document("k", {
        "competitors": [None, {"brand": "B"}, "junk"],
        "otherLinks": [{"title": "no id", "url": "https://a.example"}, None],
    })
    assert [c.brand for c in p.competitors] == ["", "B", ""]
    assert [link.id for link in p.other_links] == ["link-0", "link-1"]
    assert p.other_links[0].title == "no id"


def test_invalid_top_level_field_falls_back_to_default():
    p = Product.from_document("k", {"name": {"nested": True}, "price": "12"})
    assert p.id == "k"
    assert p.name == ""
    assert p.price == "12"


def test_has_content_strings():
    assert Product.from_document("k", {"hasContent": "false"}).has_content is False
    assert Product.from_document("k", {"hasContent": "0"}).has_content is False
    assert Product.from_document("k", {"hasContent": "true"}).has_content is True
    assert Product.from_document("k", {"hasContent": "1"}).has_content is True
    assert Product.from_document("k", {"hasContent": 1}).has_content is True
