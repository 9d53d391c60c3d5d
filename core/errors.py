# core/errors.py
"""
Exceptions raised by the inventory widget.

    InventoryError
    ├── StoreError            document store call failed
    └── FormValidationError   form input rejected before any store call
"""


class InventoryError(Exception):
    """Base class for all inventory errors."""


class StoreError(InventoryError):
    """A document store operation failed (transport, HTTP status, or database)."""

    def __init__(self, message: str, key: str | None = None):
        self.message = message
        self.key = key
        super().__init__(f"{message} (key={key})" if key else message)


class FormValidationError(InventoryError):
    """Form input is missing or malformed. The message is shown to the user."""
