"""
Product research models

Document form (what the remote store holds) uses camelCase keys; Python
attributes are snake_case with camelCase aliases.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class ProductStatus(str, Enum):
    """Research verdict for a product"""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


# Fields a caller may merge-write through update_field()
EDITABLE_FIELDS = {
    "name",
    "status",
    "cogs",
    "price",
    "valueProp",
    "targetMarket",
    "supplierLink",
    "personalNotes",
    "internalNotes",
    "hasContent",
    "competitors",
    "otherLinks",
}

COMPETITOR_FIELDS = {"brand", "adLink", "storeLink", "adsCount", "traffic"}
LINK_FIELDS = {"title", "url"}

COMPETITOR_SLOTS = 3

TRUE_STRINGS = {"true", "1", "yes", "on"}


class _Document(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    def to_document(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, as stored remotely."""
        return self.model_dump(by_alias=True, mode="json")


class Competitor(_Document):
    """Competitor intel, addressed by its position within a product"""
    brand: str = ""
    ad_link: str = Field("", alias="adLink")
    store_link: str = Field("", alias="storeLink")
    ads_count: str = Field("", alias="adsCount")
    traffic: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def empty_if_none(cls, value: Any) -> Any:
        return "" if value is None else value


class Link(_Document):
    """Free-form reference link with its own id"""
    id: str
    title: str = ""
    url: str = ""

    @field_validator("title", "url", mode="before")
    @classmethod
    def empty_if_none(cls, value: Any) -> Any:
        return "" if value is None else value


def default_competitors() -> List[Competitor]:
    return [Competitor() for _ in range(COMPETITOR_SLOTS)]


class Product(_Document):
    """A tracked product idea"""
    id: str
    name: str = ""
    status: ProductStatus = ProductStatus.PENDING
    cogs: str = ""
    price: str = ""
    value_prop: str = Field("", alias="valueProp")
    target_market: str = Field("", alias="targetMarket")
    supplier_link: str = Field("", alias="supplierLink")
    personal_notes: str = Field("", alias="personalNotes")
    internal_notes: str = Field("", alias="internalNotes")
    has_content: bool = Field(False, alias="hasContent")
    competitors: List[Competitor] = Field(default_factory=default_competitors)
    other_links: List[Link] = Field(default_factory=list, alias="otherLinks")
    created_at: Optional[int] = Field(None, alias="createdAt")

    @field_validator(
        "name", "cogs", "price", "value_prop", "target_market",
        "supplier_link", "personal_notes", "internal_notes",
        mode="before",
    )
    @classmethod
    def empty_if_none(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value: Any) -> ProductStatus:
        # Anything unrecognised is shown as Pending
        try:
            return ProductStatus(value)
        except ValueError:
            return ProductStatus.PENDING

    @field_validator("has_content", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in TRUE_STRINGS
        return bool(value)

    @field_validator("competitors", mode="before")
    @classmethod
    def _competitor_entries(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [entry if isinstance(entry, (dict, Competitor)) else {} for entry in value]

    @field_validator("other_links", mode="before")
    @classmethod
    def _link_entries(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        links = []
        for position, entry in enumerate(value):
            if isinstance(entry, Link):
                links.append(entry)
                continue
            entry = dict(entry) if isinstance(entry, dict) else {}
            if not entry.get("id"):
                # Stable per position, so edits by id keep working until the next write
                entry["id"] = f"link-{position}"
            links.append(entry)
        return links

    @field_validator("created_at", mode="before")
    @classmethod
    def _epoch_ms(cls, value: Any) -> Optional[int]:
        if value is None or value == "" or isinstance(value, bool):
            return None
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None

    @classmethod
    def from_document(cls, key: str, data: Dict[str, Any]) -> "Product":
        """Build from a stored document; the storage key always wins over any id in the body.

        Top-level fields that fail validation fall back to their defaults so a
        single bad value never hides the whole product.
        """
        data = {**data, "id": key}
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            invalid = {err["loc"][0] for err in e.errors() if err["loc"] and err["loc"][0] != "id"}
            if not invalid:
                raise
            invalid |= {name for name, f in cls.model_fields.items() if f.alias in invalid}
            return cls.model_validate({k: v for k, v in data.items() if k not in invalid})

    @property
    def sort_key(self) -> int:
        return self.created_at or 0


def new_product(product_id: str, created_at: int) -> Product:
    """Product with every field defaulted"""
    return Product(id=product_id, created_at=created_at)


def new_link(link_id: str) -> Link:
    return Link(id=link_id, title="", url="")
