"""Password hashing and account persistence.

Passwords are hashed with bcrypt (auto-salted, work factor 10 by default).
Hashing is deliberately slow, so it runs in the default executor instead of
on the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

import bcrypt
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from app.adapters.db.database import Database
from app.adapters.db.errors import IntegrityViolation, classify_integrity_error
from app.adapters.db.models import Account
from app.core.errors import AccountNotFoundError, DuplicateEmailError, ValidationAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

REQUIRED_ACCOUNT_FIELDS = ("email", "password", "full_name", "phone_number")

# bcrypt only considers the first 72 bytes; longer secrets are rejected.
BCRYPT_MAX_PASSWORD_BYTES = 72


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def missing_required_fields(fields: Mapping[str, Any]) -> list[str]:
    """Return the required account fields that are absent or blank."""
    missing = []
    for name in REQUIRED_ACCOUNT_FIELDS:
        value = fields.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def ensure_required_fields(fields: Mapping[str, Any]) -> None:
    missing = missing_required_fields(fields)
    if missing:
        raise ValidationAppError(
            code="missing_required_fields",
            message="Please fill all required fields",
            details={"missing_fields": missing},
        )


def _ensure_password_length(password: str) -> None:
    if len(password.encode()) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValidationAppError(
            code="password_too_long",
            message=f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes",
            details={"field": "password"},
        )


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password with bcrypt; every call uses a fresh salt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except (ValueError, TypeError):
        return False


class CredentialStore:
    """Creates and looks up account rows; owns password hashing.

    Attributes:
        database: Pool owner used for every query.
        rounds: bcrypt work factor.
    """

    def __init__(self, database: Database, *, rounds: int = 10) -> None:
        self.database = database
        self.rounds = rounds
        self._dummy_hash: str | None = None

    async def _run_blocking(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def hash(self, password: str) -> str:
        return await self._run_blocking(hash_password, password, self.rounds)

    async def verify(self, password: str, password_hash: str) -> bool:
        return await self._run_blocking(verify_password, password, password_hash)

    async def check_password(self, password: str, account: Account | None) -> bool:
        """Verify ``password`` for ``account``.

        A missing account is checked against a throwaway hash so that both
        outcomes cost one bcrypt verification.
        """
        if account is None:
            if self._dummy_hash is None:
                self._dummy_hash = await self.hash("account-does-not-exist")
            await self.verify(password or "", self._dummy_hash)
            return False
        return await self.verify(password or "", account.password_hash)

    async def create_account(
        self,
        *,
        email: str | None,
        password: str | None,
        full_name: str | None,
        phone_number: str | None,
        company_name: str | None = None,
        is_agency: bool | None = False,
    ) -> Account:
        """Insert a new account with a hashed password.

        Raises:
            ValidationAppError: A required field is missing or blank.
            DuplicateEmailError: The email is already registered.
        """
        ensure_required_fields(
            {
                "email": email,
                "password": password,
                "full_name": full_name,
                "phone_number": phone_number,
            }
        )
        _ensure_password_length(password)

        email = normalize_email(email)
        account = Account(
            email=email,
            password_hash=await self.hash(password),
            full_name=full_name.strip(),
            phone_number=phone_number.strip(),
            company_name=company_name or None,
            is_agency=bool(is_agency),
        )

        try:
            async with self.database.session() as session:
                session.add(account)
                await session.flush()
        except IntegrityError as exc:
            kind = classify_integrity_error(exc)
            if kind is IntegrityViolation.UNIQUE:
                logger.info(
                    "account.duplicate_email",
                    extra={"email_hash": hash_identifier(email)},
                )
                raise DuplicateEmailError(
                    code="email_already_registered",
                    message="Email already registered",
                ) from exc
            raise

        logger.info(
            "account.created",
            extra={"account_id": account.id, "email_hash": hash_identifier(email)},
        )
        return account

    async def find_by_email(self, email: str | None) -> Account | None:
        email = normalize_email(email)
        if not email:
            return None
        async with self.database.session() as session:
            return await session.scalar(select(Account).where(Account.email == email))

    async def get_by_id(self, account_id: int) -> Account | None:
        async with self.database.session() as session:
            return await session.get(Account, account_id)

    async def rotate_password(self, account_id: int, new_password: str | None) -> None:
        """Replace an account's password hash.

        Raises:
            ValidationAppError: The new password is blank or too long.
            AccountNotFoundError: No row matched the account id.
        """
        if not new_password or not new_password.strip():
            raise ValidationAppError(
                code="missing_required_fields",
                message="Please fill all required fields",
                details={"missing_fields": ["password"]},
            )
        _ensure_password_length(new_password)

        new_hash = await self.hash(new_password)
        async with self.database.session() as session:
            result = await session.execute(
                update(Account)
                .where(Account.id == account_id)
                .values(password_hash=new_hash)
                .execution_options(synchronize_session=False)
            )
            updated = result.rowcount

        if updated == 0:
            raise AccountNotFoundError(code="account_not_found", message="User not found")

        logger.info("account.password_rotated", extra={"account_id": account_id})
