"""Pricing — tax and shipping on top of a cart subtotal."""

from __future__ import annotations

import math
from dataclasses import dataclass

from storefront.config import Settings
from storefront.domain import Quote


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True, slots=True)
class PricingPolicy:
    """
    Tax is ``subtotal × tax_rate`` rounded to the nearest cent (halves up).
    Shipping is free strictly above ``free_shipping_threshold``.
    """

    tax_rate: float = 0.08
    shipping_fee: int = 999
    free_shipping_threshold: int = 5000

    @classmethod
    def from_settings(cls, settings: Settings) -> PricingPolicy:
        return cls(
            tax_rate=settings.tax_rate,
            shipping_fee=settings.shipping_fee,
            free_shipping_threshold=settings.free_shipping_threshold,
        )

    def quote(self, subtotal: int) -> Quote:
        tax = _round_half_up(subtotal * self.tax_rate)
        shipping = 0 if subtotal > self.free_shipping_threshold else self.shipping_fee
        return Quote(subtotal=subtotal, tax=tax, shipping=shipping)


__all__ = ("PricingPolicy",)
