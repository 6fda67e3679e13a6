from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass
class CartLine:
    product: Dict[str, Any]
    quantity: int

    @property
    def product_id(self) -> str:
        return self.product["id"]

    @property
    def subtotal(self) -> float:
        return float(self.product.get("price", 0)) * self.quantity


class Cart:
    """Items the shopper picked, keyed by product id, in insertion order."""

    def __init__(self):
        self._lines: List[CartLine] = []

    @property
    def items(self) -> List[CartLine]:
        return list(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def _find(self, product_id: str):
        for line in self._lines:
            if line.product_id == product_id:
                return line
        return None

    def add_item(self, product: Dict[str, Any], quantity: int = 1) -> None:
        line = self._find(product["id"])
        if line is not None:
            line.quantity += quantity
        else:
            self._lines.append(CartLine(product=dict(product), quantity=quantity))

    def remove_item(self, product_id: str) -> None:
        self._lines = [line for line in self._lines if line.product_id != product_id]

    def update_quantity(self, product_id: str, quantity: int) -> None:
        line = self._find(product_id)
        if line is not None:
            line.quantity = max(1, quantity)

    def clear(self) -> None:
        self._lines = []

    def total_price(self) -> float:
        return sum(line.subtotal for line in self._lines)

    def total_items(self) -> int:
        return sum(line.quantity for line in self._lines)
