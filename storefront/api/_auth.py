"""Account routes: shoppers under /api/auth, admins under /api/admin."""

from datetime import UTC, datetime

from fastapi import APIRouter, Response

from storefront import auth
from storefront.api._deps import RunnerDep, SettingsDep, UserDep, execute
from storefront.api._schemas import LoginIn, MeOut, RegisterAdminIn, RegisterIn, SessionOut
from storefront.config import Settings
from storefront.domain import AuthSession

router = APIRouter(prefix="/api", tags=["auth"])


def _set_cookie(response: Response, settings: Settings, session: AuthSession) -> None:
    max_age = int((session.expires_at - datetime.now(UTC)).total_seconds())
    response.set_cookie(
        settings.auth_cookie,
        session.token,
        max_age=max(max_age, 0),
        httponly=True,
        samesite="strict",
        path="/",
    )


@router.post("/auth/register")
async def register(
    body: RegisterIn, response: Response, runner: RunnerDep, settings: SettingsDep
) -> SessionOut:
    session = await execute(runner, body.to_domain())
    _set_cookie(response, settings, session)
    return SessionOut.from_domain(session)


@router.post("/auth/login")
async def login(
    body: LoginIn, response: Response, runner: RunnerDep, settings: SettingsDep
) -> SessionOut:
    session = await execute(runner, body.to_domain())
    _set_cookie(response, settings, session)
    return SessionOut.from_domain(session)


@router.get("/auth/me")
async def me(principal: UserDep, runner: RunnerDep) -> MeOut:
    return MeOut.from_domain(await execute(runner, auth.CurrentUser(principal.user_id)))


@router.post("/auth/logout")
async def logout(response: Response, settings: SettingsDep) -> dict[str, bool]:
    response.delete_cookie(settings.auth_cookie, path="/")
    return {"success": True}


@router.post("/admin/register")
async def register_admin(
    body: RegisterAdminIn, response: Response, runner: RunnerDep, settings: SettingsDep
) -> SessionOut:
    session = await execute(runner, body.to_domain())
    _set_cookie(response, settings, session)
    return SessionOut.from_domain(session)


@router.post("/admin/login")
async def admin_login(
    body: LoginIn, response: Response, runner: RunnerDep, settings: SettingsDep
) -> SessionOut:
    session = await execute(runner, body.to_admin_domain())
    _set_cookie(response, settings, session)
    return SessionOut.from_domain(session)
