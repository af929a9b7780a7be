"""Custom exceptions for the cart ledger."""
from __future__ import annotations

from typing import Any


class CartException(Exception):
    """Base exception for all cart ledger errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationException(CartException):
    """Input validation errors."""

    pass


class InvalidQuantity(ValidationException):
    """Quantity is not a positive integral number."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Invalid quantity: {value!r}")
        self.value = value


class InvalidPrice(ValidationException):
    """Price is not a finite, non-negative number."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Invalid price: {value!r}")
        self.value = value


class InvalidAttribute(ValidationException):
    """Attribute cannot be changed through an update."""

    def __init__(self, attribute: str) -> None:
        super().__init__(f"Attribute {attribute!r} cannot be updated")
        self.attribute = attribute


class InvalidItemDescriptor(ValidationException):
    """Item descriptor (or batch payload) is malformed."""

    pass


class RowNotFound(CartException):
    """Row not found in cart."""

    def __init__(self, row_id: str) -> None:
        super().__init__(f"Row {row_id} not found")
        self.row_id = row_id


class InvalidAssociation(CartException):
    """Associated model does not refer to a known type."""

    def __init__(self, model: Any) -> None:
        super().__init__(f"Invalid model name: {model!r}")
        self.model = model


class ConfigurationException(CartException):
    """Configuration errors."""

    pass
