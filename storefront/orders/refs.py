"""Product references carried by incoming order items.

Clients send the product of a line item in several shapes, depending on
which screen built the cart::

    {"product": "64f0c2..."}                  -> DirectId
    {"product": {"id": "64f0c2..."}}          -> EmbeddedRef(key="id")
    {"product": {"_id": "64f0c2..."}}         -> EmbeddedRef(key="_id")
    {"productId": "64f0c2..."}                -> ProductIdField
    {"name": "USB-C Cable"}                   -> NamedRef

``parse_product_ref`` picks the first shape that yields a value, in the
order above. Only ``NamedRef`` needs a catalog lookup to become an id.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class DirectId:
    value: str


@dataclass(frozen=True)
class EmbeddedRef:
    value: str
    key: str


@dataclass(frozen=True)
class ProductIdField:
    value: str


@dataclass(frozen=True)
class NamedRef:
    name: str


ProductRef = Union[DirectId, EmbeddedRef, ProductIdField, NamedRef]


def _present(value: Any) -> bool:
    return value is not None and value != ""


def parse_product_ref(item: Dict[str, Any]) -> Optional[ProductRef]:
    product = item.get("product")
    if isinstance(product, dict):
        for key in ("id", "_id"):
            if _present(product.get(key)):
                return EmbeddedRef(value=str(product[key]), key=key)
    elif _present(product) and not isinstance(product, (list, bool)):
        return DirectId(value=str(product))

    if _present(item.get("productId")):
        return ProductIdField(value=str(item["productId"]))

    name = item.get("name")
    if isinstance(name, str) and name.strip():
        return NamedRef(name=name)
    return None


def literal_product_id(item: Dict[str, Any]) -> Optional[str]:
    """Only accept ``item["product"]`` holding an id, nothing else."""
    ref = parse_product_ref(item)
    if isinstance(ref, DirectId):
        return ref.value
    return None
