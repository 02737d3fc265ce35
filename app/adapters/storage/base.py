"""Profile picture storage interface.

Two backends implement it: one keeps the bytes on disk and stores a
reference on the account row, the other stores the bytes and MIME type on the
row itself. A deployment picks exactly one through ``create_asset_store``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import select

from app.adapters.db.database import Database
from app.adapters.db.models import Account
from app.core.errors import AccountNotFoundError, MissingFileError, ValidationAppError


@dataclass(frozen=True)
class UploadDescriptor:
    """What an upload reports back: the stored MIME type and, for file-backed
    storage, the reference clients resolve to fetch the bytes."""

    mimetype: str
    reference: str | None = None


@dataclass(frozen=True)
class InlineAsset:
    data: bytes
    mimetype: str


@dataclass(frozen=True)
class AssetReference:
    """Pointer to externally stored bytes; the caller resolves it."""

    reference: str
    path: Path
    mimetype: str


ProfileAsset = InlineAsset | AssetReference


class AbstractProfileAssetStore(ABC):
    """Interface for storing one profile picture per account."""

    backend_name: str = ""

    def __init__(self, database: Database) -> None:
        self.database = database

    @abstractmethod
    async def upload(
        self,
        account_id: int | None,
        data: bytes | None,
        mimetype: str,
        original_name: str | None = None,
    ) -> UploadDescriptor:
        """Replace the account's profile picture.

        Raises:
            MissingFileError: No bytes were supplied.
            ValidationAppError: No account id was supplied.
            AccountNotFoundError: No row matched the account id.
        """
        raise NotImplementedError

    @abstractmethod
    async def retrieve(self, account_id: int) -> ProfileAsset:
        """Return the stored profile picture.

        Raises:
            AccountNotFoundError: No row matched the account id.
            AssetNotFoundError: The account has no picture yet.
        """
        raise NotImplementedError

    @staticmethod
    def _check_upload_args(account_id: int | None, data: bytes | None) -> None:
        if not data:
            raise MissingFileError(code="missing_file", message="No file uploaded")
        if account_id is None:
            raise ValidationAppError(
                code="missing_user_id",
                message="User ID is required",
                details={"field": "userId"},
            )

    async def _account_exists(self, account_id: int) -> bool:
        async with self.database.session() as session:
            found = await session.scalar(select(Account.id).where(Account.id == account_id))
        return found is not None

    @staticmethod
    def _account_not_found(account_id: int) -> AccountNotFoundError:
        return AccountNotFoundError(
            code="account_not_found",
            message="User not found",
            details={"context": {"account_id": account_id}},
        )
