# core/inventory.py
"""
View-model behind the inventory widget.

InventoryManager owns the item snapshot, the search term and the pending form,
and is the only thing that talks to the document store. Every mutation is a
plain read followed by a separate write, then a full reload of the collection.
There is no locking around that read-modify-write: two writers updating the
same item concurrently can overwrite each other's change (last write wins).
"""
import math
from typing import Callable, List, Optional

from stores.base import DocumentStore

from .errors import FormValidationError
from .logger import get_logger
from .models import FormState, Item

logger = get_logger(__name__)

MISSING_FIELDS_MESSAGE = "Please fill out all fields."


def _parse_quantity(text: str) -> int:
    try:
        quantity = int(text)
    except ValueError:
        # "10.0" and "1e3" are whole numbers too
        try:
            value = float(text)
        except ValueError:
            raise FormValidationError("Quantity must be a whole number.")
        if not math.isfinite(value) or not value.is_integer():
            raise FormValidationError("Quantity must be a whole number.")
        quantity = int(value)
    if quantity < 0:
        raise FormValidationError("Quantity cannot be negative.")
    return quantity


def _parse_price(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise FormValidationError("Price must be a number.")
    if not math.isfinite(value):
        raise FormValidationError("Price must be a number.")
    if value < 0:
        raise FormValidationError("Price cannot be negative.")
    return value


def parse_form(form: FormState) -> Item:
    """Turn raw form text into an Item, or raise FormValidationError."""
    if not form.item_name or form.quantity == "" or form.price == "":
        raise FormValidationError(MISSING_FIELDS_MESSAGE)
    return Item(
        name=form.item_name,
        quantity=_parse_quantity(form.quantity.strip()),
        price=_parse_price(form.price.strip()),
    )


def _format_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class InventoryManager:
    """
    Stateful view-model for the inventory widget.

    Args:
        store: document store holding one document per item name.
        alert: shows a blocking message to the user (validation failures).
        confirm: asks a yes/no question and returns the answer.
        on_change: called with the manager whenever the visible table changes.
    """

    def __init__(
        self,
        store: DocumentStore,
        alert: Callable[[str], None],
        confirm: Callable[[str], bool],
        on_change: Optional[Callable[["InventoryManager"], None]] = None,
    ):
        self.store = store
        self._alert = alert
        self._confirm = confirm
        self._on_change = on_change
        self._items: List[Item] = []
        self.search_term = ""
        self.form = FormState()

    @property
    def items(self) -> List[Item]:
        return list(self._items)

    def _notify(self) -> None:
        if self._on_change:
            self._on_change(self)

    # Store operations

    def refresh(self) -> None:
        """Reload the whole collection and replace the snapshot."""
        self._items = [
            Item.from_fields(key, fields) for key, fields in self.store.list_all()
        ]
        logger.debug("Snapshot refreshed: %d items.", len(self._items))
        self._notify()

    def load(self) -> None:
        """Initial load when the widget is first shown."""
        self.refresh()

    def add_item(self, item: Item) -> None:
        """Create the item, or add to its quantity and replace its price."""
        existing = self.store.get(item.name)
        if existing is not None:
            quantity = existing.get("quantity", 0) + item.quantity
            logger.info(
                "Updating %s: quantity %s -> %s, price %s",
                item.name, existing.get("quantity"), quantity, item.price,
            )
            self.store.set(item.name, {"quantity": quantity, "price": item.price})
        else:
            logger.info(
                "Adding %s: quantity %s, price %s", item.name, item.quantity, item.price
            )
            self.store.set(item.name, item.to_fields())
        self.refresh()

    def remove_item(self, item: Item) -> None:
        """Subtract item.quantity from the stored line, deleting it when it would reach zero."""
        existing = self.store.get(item.name)
        if existing is not None:
            stored_quantity = existing.get("quantity", 0)
            if stored_quantity <= item.quantity:
                logger.info("Deleting %s (had %s).", item.name, stored_quantity)
                self.store.delete(item.name)
            else:
                logger.info(
                    "Decrementing %s: %s -> %s",
                    item.name, stored_quantity, stored_quantity - item.quantity,
                )
                self.store.set(
                    item.name,
                    {
                        "quantity": stored_quantity - item.quantity,
                        "price": existing.get("price"),
                    },
                )
        else:
            logger.debug("Remove of unknown item %s ignored.", item.name)
        self.refresh()

    # Form and table actions

    def set_item_name(self, value: str) -> None:
        self.form.item_name = value

    def set_quantity(self, value) -> None:
        self.form.quantity = "" if value in ("", None) else str(value)

    def set_price(self, value) -> None:
        self.form.price = "" if value in ("", None) else str(value)

    def submit(self, form: Optional[FormState] = None) -> bool:
        """
        Validate the form and add its item. Creating and updating are the same
        operation, so an existing name has its quantity increased.
        Returns False (after alerting) when the form is incomplete.
        """
        if form is not None:
            self.form = form
        try:
            item = parse_form(self.form)
        except FormValidationError as e:
            logger.debug("Form rejected: %s", e)
            self._alert(str(e))
            return False

        self.add_item(item)
        self.form.clear()
        return True

    def edit(self, item: Item) -> None:
        """
        Copy an item into the form. Submitting it again goes through add_item,
        so the quantity is added on top of the stored one, not set.
        """
        self.form.item_name = item.name
        self.form.quantity = _format_number(item.quantity)
        self.form.price = _format_number(item.price)

    def delete(self, item: Item) -> bool:
        if not self._confirm(f"Are you sure you want to delete {item.name}?"):
            return False
        self._items = [i for i in self._items if i.name != item.name]
        self._notify()
        self.remove_item(item)
        return True

    # Search

    def set_search_term(self, term: str) -> None:
        self.search_term = term or ""
        self._notify()

    @property
    def filtered_items(self) -> List[Item]:
        return filter_items(self._items, self.search_term)

    def find(self, name: str) -> Optional[Item]:
        for item in self._items:
            if item.name == name:
                return item
        return None


def filter_items(items: List[Item], term: str) -> List[Item]:
    needle = (term or "").lower()
    return [it for it in items if needle in it.name.lower()]
