# core/models.py
from dataclasses import dataclass
from typing import Any, Dict, Union

Number = Union[int, float]


@dataclass
class Item:
    """
    A single inventory line. The name doubles as the document key in the store,
    so two Items with the same name always describe the same stored record.
    """
    name: str
    quantity: int = 0
    price: Number = 0.0

    def to_fields(self) -> Dict[str, Any]:
        return {"quantity": self.quantity, "price": self.price}

    @classmethod
    def from_fields(cls, name: str, fields: Dict[str, Any]) -> "Item":
        return cls(
            name=name,
            quantity=fields.get("quantity", 0),
            price=fields.get("price", 0.0),
        )


@dataclass
class FormState:
    """
    Pending add/edit form values, kept as the raw text typed by the user.
    An empty string means the field was left blank.
    """
    item_name: str = ""
    quantity: str = ""
    price: str = ""

    def clear(self) -> None:
        self.item_name = ""
        self.quantity = ""
        self.price = ""
