"""Account orchestration: registration, login and profile pictures.

The service validates input, delegates persistence to ``CredentialStore`` and
the configured ``AbstractProfileAssetStore``, and returns sanitized views.
Business errors propagate as ``AppError`` subclasses for the HTTP layer's
exception handlers.
"""

from __future__ import annotations

import logging

from app.adapters.storage.base import AbstractProfileAssetStore, ProfileAsset, UploadDescriptor
from app.core.errors import InvalidCredentialsError
from app.core.logging import hash_identifier
from app.schemas.account import AccountView, LoginView, RegisterRequest
from app.services.credential_store import (
    CredentialStore,
    ensure_required_fields,
    normalize_email,
)

logger = logging.getLogger(__name__)


def _invalid_credentials() -> InvalidCredentialsError:
    # Same code and message for unknown email and wrong password.
    return InvalidCredentialsError(code="invalid_credentials", message="Invalid credentials")


class AccountService:
    """Entry point for account operations used by the API routes.

    Attributes:
        credentials: Account persistence and password hashing.
        assets: Profile picture backend selected at startup.
    """

    def __init__(self, credentials: CredentialStore, assets: AbstractProfileAssetStore) -> None:
        self.credentials = credentials
        self.assets = assets

    async def register(self, request: RegisterRequest) -> AccountView:
        """Create an account and return it without secrets.

        Raises:
            ValidationAppError: A required field is missing.
            DuplicateEmailError: The email already has an account.
        """
        fields = {
            "email": request.email,
            "password": request.password,
            "full_name": request.fullname,
            "phone_number": request.phonenumber,
        }
        ensure_required_fields(fields)

        account = await self.credentials.create_account(
            **fields,
            company_name=request.companyname,
            is_agency=bool(request.isagency),
        )
        return AccountView.model_validate(account)

    async def login(self, email: str | None, password: str | None) -> LoginView:
        """Check credentials and return the account's public fields.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password.
        """
        account = await self.credentials.find_by_email(email)
        if not await self.credentials.check_password(password or "", account):
            logger.info(
                "auth.login_failed",
                extra={"email_hash": hash_identifier(normalize_email(email))},
            )
            raise _invalid_credentials()

        logger.info("auth.login_succeeded", extra={"account_id": account.id})
        return LoginView.model_validate(account)

    async def upload_profile_picture(
        self,
        account_id: int | None,
        data: bytes | None,
        mimetype: str,
        original_name: str | None = None,
    ) -> UploadDescriptor:
        return await self.assets.upload(account_id, data, mimetype, original_name)

    async def get_profile_picture(self, account_id: int) -> ProfileAsset:
        return await self.assets.retrieve(account_id)
