"""Shipping details validation."""

from __future__ import annotations

import re

from kungfu import Error, Ok, Result

from storefront.domain import ShippingInfo
from storefront.errors import Errors, ShopError

EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE = re.compile(r"^[6-9]\d{9}$")
ZIP_CODE = re.compile(r"^\d{6}$")


def validate_shipping(info: ShippingInfo) -> Result[ShippingInfo, ShopError]:
    """
    Check every field is present and well-formed; returns the stripped copy.

    The phone keeps only its digits, so ``"98765-43210"`` is stored as
    ``"9876543210"``.
    """
    cleaned = ShippingInfo(
        full_name=info.full_name.strip(),
        email=info.email.strip(),
        phone=re.sub(r"\D", "", info.phone),
        address=info.address.strip(),
        city=info.city.strip(),
        state=info.state.strip(),
        zip_code=info.zip_code.strip(),
    )
    required = (
        cleaned.full_name,
        cleaned.email,
        cleaned.phone,
        cleaned.address,
        cleaned.city,
        cleaned.state,
        cleaned.zip_code,
    )
    if not all(required):
        return Error(Errors.invalid("Please fill in all required fields"))
    if not EMAIL.match(cleaned.email):
        return Error(Errors.invalid("Please enter a valid email address"))
    if not PHONE.match(cleaned.phone):
        return Error(Errors.invalid("Please enter a valid 10-digit phone number"))
    if not ZIP_CODE.match(cleaned.zip_code):
        return Error(Errors.invalid("Please enter a valid 6-digit PIN code"))
    return Ok(cleaned)


__all__ = ("validate_shipping", "EMAIL", "PHONE", "ZIP_CODE")
