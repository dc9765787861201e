"""
Auth — accounts, password hashing and JWT sessions.

Passwords are hashed with bcrypt off the event loop; tokens are HS256 JWTs
carrying ``sub``, ``email`` and ``role``. Admin tokens live 8 hours, user
tokens 7 days.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt
from kungfu import Error, LazyCoroResult, Ok, Result
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from storefront import db as D
from storefront.config import Settings
from storefront.domain import AuthSession, Principal, Role, User
from storefront.errors import Errors, ShopError
from storefront.lift import catching_async
from storefront.ops import Op, ops

logger = logging.getLogger(__name__)

_ADMIN_PASSWORD = re.compile(r"^(?=.*[0-9])(?=.*[!@#$%^&*])")


# ═══════════════════════════════════════════════════════════════════════════════
# Passwords & tokens
# ═══════════════════════════════════════════════════════════════════════════════

async def hash_password(password: str, rounds: int) -> str:
    hashed = await asyncio.to_thread(
        bcrypt.hashpw, password.encode(), bcrypt.gensalt(rounds=rounds)
    )
    return hashed.decode()


def check_password(password: str, hashed: str) -> LazyCoroResult[bool, ShopError]:
    """Verify off the event loop. A malformed stored hash comes back as an Error."""
    return catching_async(
        lambda: asyncio.to_thread(bcrypt.checkpw, password.encode(), hashed.encode()),
        on_error=lambda e: Errors.unauthorized(f"Unreadable password hash: {e}"),
    )


def issue_token(user: User, settings: Settings, ttl: timedelta) -> AuthSession:
    now = datetime.now(UTC)
    expires_at = now + ttl
    token = jwt.encode(
        {
            "sub": user.id,
            "email": user.email,
            "role": user.role.value,
            "iat": now,
            "exp": expires_at,
        },
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    return AuthSession(user=user, token=token, expires_at=expires_at)


def principal_from_token(token: str, settings: Settings) -> Principal | None:
    """Verify a token. Bad signature, expiry or malformed claims give None."""
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return Principal(
            user_id=claims["sub"],
            email=claims["email"],
            role=Role(claims["role"]),
        )
    except (jwt.PyJWTError, KeyError, ValueError):
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Ops
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Register(Op[AuthSession, ShopError]):
    email: str
    password: str
    first_name: str
    last_name: str


@dataclass(frozen=True, slots=True)
class Login(Op[AuthSession, ShopError]):
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RegisterAdmin(Op[AuthSession, ShopError]):
    email: str
    password: str
    first_name: str
    last_name: str
    admin_code: str


@dataclass(frozen=True, slots=True)
class AdminLogin(Op[AuthSession, ShopError]):
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class CurrentUser(Op[User, ShopError]):
    user_id: str


# ═══════════════════════════════════════════════════════════════════════════════
# Handlers
# ═══════════════════════════════════════════════════════════════════════════════

def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def _find_by_email(db: D.Database, email: str) -> D.UserTable | None:
    async with db.session() as session:
        return await session.scalar(select(D.UserTable).where(D.UserTable.email == email))


async def _password_matches(password: str, row: D.UserTable) -> bool:
    match await check_password(password, row.password_hash):
        case Ok(matches):
            return matches
        case Error(e):
            logger.error("Cannot verify password for %s: %s", row.email, e)
            return False


async def _create_user(
    db: D.Database,
    settings: Settings,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: Role,
) -> Result[User, ShopError]:
    password_hash = await hash_password(password, settings.bcrypt_rounds)
    row = D.UserTable(
        email=email,
        password_hash=password_hash,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role=role.value,
    )
    try:
        async with db.transaction() as session:
            session.add(row)
            await session.flush()
            user = D.to_user(row)
    except IntegrityError:
        return Error(Errors.conflict("An account with this email already exists"))
    return Ok(user)


async def register(req: Register, db: D.Database, settings: Settings) -> Result[AuthSession, ShopError]:
    if not all((req.email.strip(), req.password, req.first_name.strip(), req.last_name.strip())):
        return Error(Errors.invalid("All fields are required"))
    if len(req.password) < 6:
        return Error(Errors.invalid("Password must be at least 6 characters"))

    email = _normalize_email(req.email)
    if await _find_by_email(db, email) is not None:
        return Error(Errors.conflict("User already exists"))

    match await _create_user(db, settings, email, req.password, req.first_name, req.last_name, Role.USER):
        case Ok(user):
            logger.info("Registered user %s", user.email)
            return Ok(issue_token(user, settings, settings.token_ttl))
        case Error(e):
            return Error(e)


async def login(req: Login, db: D.Database, settings: Settings) -> Result[AuthSession, ShopError]:
    if not req.email.strip() or not req.password:
        return Error(Errors.invalid("Email and password are required"))

    row = await _find_by_email(db, _normalize_email(req.email))
    if row is None or not await _password_matches(req.password, row):
        logger.warning("Failed login for %s", req.email)
        return Error(Errors.unauthorized("Invalid credentials"))

    user = D.to_user(row)
    ttl = settings.admin_token_ttl if user.is_admin else settings.token_ttl
    return Ok(issue_token(user, settings, ttl))


async def register_admin(
    req: RegisterAdmin, db: D.Database, settings: Settings
) -> Result[AuthSession, ShopError]:
    fields = (req.email.strip(), req.password, req.first_name.strip(), req.last_name.strip(), req.admin_code)
    if not all(fields):
        return Error(Errors.invalid("All fields are required"))
    if req.admin_code != settings.admin_registration_code:
        logger.warning("Rejected admin registration for %s: bad code", req.email)
        return Error(Errors.forbidden("Invalid admin registration code"))
    if len(req.password) < 8:
        return Error(Errors.invalid("Password must be at least 8 characters for admin accounts"))
    if not _ADMIN_PASSWORD.match(req.password):
        return Error(
            Errors.invalid("Password must contain at least one number and one special character")
        )

    email = _normalize_email(req.email)
    if await _find_by_email(db, email) is not None:
        return Error(Errors.conflict("An account with this email already exists"))

    match await _create_user(db, settings, email, req.password, req.first_name, req.last_name, Role.ADMIN):
        case Ok(user):
            logger.info("New admin created: %s", user.email)
            return Ok(issue_token(user, settings, settings.admin_token_ttl))
        case Error(e):
            return Error(e)


async def admin_login(req: AdminLogin, db: D.Database, settings: Settings) -> Result[AuthSession, ShopError]:
    if not req.email.strip() or not req.password:
        return Error(Errors.invalid("Email and password are required"))

    row = await _find_by_email(db, _normalize_email(req.email))
    if row is None:
        return Error(Errors.unauthorized("Invalid credentials"))
    if row.role != Role.ADMIN.value:
        logger.warning("Admin login refused for non-admin %s", row.email)
        return Error(Errors.forbidden("Access denied. Admin privileges required."))
    if not await _password_matches(req.password, row):
        logger.warning("Failed admin login for %s", row.email)
        return Error(Errors.unauthorized("Invalid credentials"))

    logger.info("Admin login: %s", row.email)
    return Ok(issue_token(D.to_user(row), settings, settings.admin_token_ttl))


async def current_user(req: CurrentUser, db: D.Database) -> Result[User, ShopError]:
    async with db.session() as session:
        row = await session.get(D.UserTable, req.user_id)
    if row is None:
        return Error(Errors.not_found("User"))
    return Ok(D.to_user(row))


handlers = (
    ops()
    .on(Register, register)
    .on(Login, login)
    .on(RegisterAdmin, register_admin)
    .on(AdminLogin, admin_login)
    .on(CurrentUser, current_user)
)


__all__ = (
    "hash_password",
    "check_password",
    "issue_token",
    "principal_from_token",
    "Register",
    "Login",
    "RegisterAdmin",
    "AdminLogin",
    "CurrentUser",
    "handlers",
)
