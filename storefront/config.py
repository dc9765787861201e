"""
Settings — immutable runtime configuration.

Values come from ``STOREFRONT_*`` environment variables; a ``.env`` file in
the working directory is loaded first (existing variables win).

    settings = Settings.from_env()
    settings = settings.with_database("sqlite+aiosqlite:///shop.db")
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import timedelta

from dotenv import load_dotenv


_PREFIX = "STOREFRONT_"


def _env(name: str, default: str) -> str:
    return os.environ.get(f"{_PREFIX}{name}", default)


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Storefront configuration.

    Money values are integer cents. Note: ``free_shipping_threshold`` is
    exclusive, a subtotal must be strictly above it to ship for free.
    """

    database_url: str = "sqlite+aiosqlite:///storefront.db"
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    token_ttl: timedelta = timedelta(days=7)
    admin_token_ttl: timedelta = timedelta(hours=8)
    admin_registration_code: str = "ADMIN-SECRET-2024"
    bcrypt_rounds: int = 12
    auth_cookie: str = "auth-token"
    tax_rate: float = 0.08
    shipping_fee: int = 999
    free_shipping_threshold: int = 5000
    catalog_cache_size: int = 500
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Settings:
        load_dotenv(dotenv_path)
        base = cls()
        return cls(
            database_url=_env("DATABASE_URL", base.database_url),
            jwt_secret=_env("JWT_SECRET", base.jwt_secret),
            jwt_algorithm=_env("JWT_ALGORITHM", base.jwt_algorithm),
            token_ttl=timedelta(
                seconds=int(_env("TOKEN_TTL_SECONDS", str(int(base.token_ttl.total_seconds()))))
            ),
            admin_token_ttl=timedelta(
                seconds=int(
                    _env("ADMIN_TOKEN_TTL_SECONDS", str(int(base.admin_token_ttl.total_seconds())))
                )
            ),
            admin_registration_code=_env("ADMIN_REGISTRATION_CODE", base.admin_registration_code),
            bcrypt_rounds=int(_env("BCRYPT_ROUNDS", str(base.bcrypt_rounds))),
            auth_cookie=_env("AUTH_COOKIE", base.auth_cookie),
            tax_rate=float(_env("TAX_RATE", str(base.tax_rate))),
            shipping_fee=int(_env("SHIPPING_FEE", str(base.shipping_fee))),
            free_shipping_threshold=int(
                _env("FREE_SHIPPING_THRESHOLD", str(base.free_shipping_threshold))
            ),
            catalog_cache_size=int(_env("CATALOG_CACHE_SIZE", str(base.catalog_cache_size))),
            log_level=_env("LOG_LEVEL", base.log_level),
        )

    def with_database(self, url: str) -> Settings:
        return replace(self, database_url=url)

    def with_secret(self, secret: str) -> Settings:
        return replace(self, jwt_secret=secret)

    def with_bcrypt_rounds(self, rounds: int) -> Settings:
        """Lower rounds make tests fast; never go below 4 (bcrypt minimum)."""
        return replace(self, bcrypt_rounds=max(rounds, 4))


__all__ = ("Settings",)
