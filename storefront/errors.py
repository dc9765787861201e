"""
Errors — business failures as values.

Services return ``Result[T, ShopError]``; graph nodes raise ``CheckoutError``
and the graph boundary turns it back into ``Error(...)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class ErrorKind(Enum):
    """Kinds of storefront errors."""

    INVALID = auto()  # Malformed or missing input
    UNAUTHORIZED = auto()  # No (valid) credentials
    FORBIDDEN = auto()  # Authenticated but not allowed
    NOT_FOUND = auto()
    CONFLICT = auto()  # Uniqueness / state conflict
    OUT_OF_STOCK = auto()  # Requested quantity exceeds stock


@dataclass(frozen=True, slots=True)
class ShopError:
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


class CheckoutError(Exception):
    """Raised inside graph nodes; carries the ShopError out of the graph."""

    def __init__(self, error: ShopError) -> None:
        super().__init__(error.message)
        self.error = error


class Errors:
    @staticmethod
    def invalid(message: str) -> ShopError:
        return ShopError(ErrorKind.INVALID, message)

    @staticmethod
    def unauthorized(message: str = "Unauthorized") -> ShopError:
        return ShopError(ErrorKind.UNAUTHORIZED, message)

    @staticmethod
    def forbidden(message: str = "Forbidden") -> ShopError:
        return ShopError(ErrorKind.FORBIDDEN, message)

    @staticmethod
    def not_found(entity: str, key: object | None = None) -> ShopError:
        if key is None:
            return ShopError(ErrorKind.NOT_FOUND, f"{entity} not found")
        return ShopError(ErrorKind.NOT_FOUND, f"{entity} {key} not found")

    @staticmethod
    def conflict(message: str) -> ShopError:
        return ShopError(ErrorKind.CONFLICT, message)

    @staticmethod
    def out_of_stock(name: str, requested: int, available: int) -> ShopError:
        return ShopError(
            ErrorKind.OUT_OF_STOCK,
            f"{name}: requested {requested}, only {available} in stock",
        )


__all__ = ("ErrorKind", "ShopError", "CheckoutError", "Errors")
