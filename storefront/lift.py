"""
Lift — turning lookups and raising calls into Result computations.

``catching_async`` comes from combinators; ``from_optional`` covers the
common "row or not found" case.
"""

from __future__ import annotations

from collections.abc import Callable

from combinators.lift import catching_async
from kungfu import Error, Ok, Result


def from_optional[T, E](value: T | None, error: Callable[[], E]) -> Result[T, E]:
    """
    Turn a nullable lookup into a Result.

    Example:
        row = await session.get(ProductTable, product_id)
        return from_optional(row, lambda: Errors.not_found("Product", product_id))
    """
    if value is None:
        return Error(error())
    return Ok(value)


__all__ = ("catching_async", "from_optional")
