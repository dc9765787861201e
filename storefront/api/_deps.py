"""Request dependencies: runner, settings, caller identity."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from kungfu import Error, Ok

from storefront.auth import principal_from_token
from storefront.config import Settings
from storefront.domain import Principal
from storefront.errors import Errors, ShopError
from storefront.ops import Op, Runner
from storefront.api._errors import ApiError


def get_runner(request: Request) -> Runner:
    return request.app.state.runner


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def token_from_request(request: Request, settings: Settings) -> str | None:
    """Bearer header first, then the auth cookie."""
    header = request.headers.get("authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return request.cookies.get(settings.auth_cookie) or None


def optional_principal(
    request: Request, settings: Annotated[Settings, Depends(get_settings)]
) -> Principal | None:
    token = token_from_request(request, settings)
    if token is None:
        return None
    return principal_from_token(token, settings)


def require_user(
    principal: Annotated[Principal | None, Depends(optional_principal)],
) -> Principal:
    if principal is None:
        raise ApiError(Errors.unauthorized())
    return principal


def require_admin(principal: Annotated[Principal, Depends(require_user)]) -> Principal:
    if not principal.is_admin:
        raise ApiError(Errors.forbidden("Admin access required"))
    return principal


RunnerDep = Annotated[Runner, Depends(get_runner)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
UserDep = Annotated[Principal, Depends(require_user)]
AdminDep = Annotated[Principal, Depends(require_admin)]


async def execute[T](runner: Runner, op: Op[T, ShopError]) -> T:
    """Run an op; ``Error`` becomes an ApiError response."""
    match await runner.run(op):
        case Ok(value):
            return value
        case Error(e):
            raise ApiError(e)


__all__ = (
    "get_runner",
    "get_settings",
    "token_from_request",
    "optional_principal",
    "require_user",
    "require_admin",
    "RunnerDep",
    "SettingsDep",
    "UserDep",
    "AdminDep",
    "execute",
)
