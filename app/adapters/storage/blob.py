"""Inline profile picture storage: bytes and MIME type live on the row."""

from __future__ import annotations

import logging

from sqlalchemy import select, update

from app.adapters.db.models import Account
from app.adapters.storage.base import AbstractProfileAssetStore, InlineAsset, UploadDescriptor
from app.core.errors import AssetNotFoundError

logger = logging.getLogger(__name__)


class InlineBlobAssetStore(AbstractProfileAssetStore):
    backend_name = "blob"

    async def upload(
        self,
        account_id: int | None,
        data: bytes | None,
        mimetype: str,
        original_name: str | None = None,
    ) -> UploadDescriptor:
        self._check_upload_args(account_id, data)
        mimetype = mimetype or "application/octet-stream"

        async with self.database.session() as session:
            result = await session.execute(
                update(Account)
                .where(Account.id == account_id)
                .values(
                    profile_image=data,
                    profile_image_mimetype=mimetype,
                    profile_image_url=None,
                )
                .execution_options(synchronize_session=False)
            )
            updated = result.rowcount

        if updated == 0:
            raise self._account_not_found(account_id)

        logger.info(
            "storage.uploaded",
            extra={
                "backend": self.backend_name,
                "account_id": account_id,
                "size_bytes": len(data),
                "mimetype": mimetype,
            },
        )
        return UploadDescriptor(mimetype=mimetype)

    async def retrieve(self, account_id: int) -> InlineAsset:
        async with self.database.session() as session:
            row = (
                await session.execute(
                    select(
                        Account.id,
                        Account.profile_image,
                        Account.profile_image_mimetype,
                    ).where(Account.id == account_id)
                )
            ).one_or_none()

        if row is None:
            raise self._account_not_found(account_id)

        if not row.profile_image:
            raise AssetNotFoundError(
                code="profile_picture_not_found",
                message="Profile picture not found",
            )

        return InlineAsset(
            data=bytes(row.profile_image),
            mimetype=row.profile_image_mimetype or "application/octet-stream",
        )
