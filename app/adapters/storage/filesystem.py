"""File-backed profile picture storage.

Bytes are written to ``upload_dir`` under a collision-resistant name
(``<epoch-ms>-<uuid4 hex><ext>``) and only the public reference
(``<public_url_prefix>/<name>``) is stored on the account row. The uploaded
MIME type is kept verbatim in a ``<name>.type`` file next to the bytes. Files
of replaced pictures are left in place.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import time
import uuid
from pathlib import Path

from sqlalchemy import select, update

from app.adapters.db.database import Database
from app.adapters.db.models import Account
from app.adapters.storage.base import (
    AbstractProfileAssetStore,
    AssetReference,
    UploadDescriptor,
)
from app.core.errors import AssetNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_MIMETYPE = "application/octet-stream"
MIMETYPE_SUFFIX = ".type"


def choose_extension(original_name: str | None, mimetype: str) -> str:
    """Pick the stored file extension.

    The original file's extension is kept when it agrees with the declared
    MIME type; otherwise the canonical extension for the MIME type is used so
    static servers given the reference pick a matching Content-Type.
    """
    suffix = Path(original_name).suffix.lower() if original_name else ""
    if suffix and not suffix[1:].isalnum():
        suffix = ""

    if suffix and mimetypes.guess_type(f"file{suffix}")[0] == mimetype:
        return suffix

    guessed = mimetypes.guess_extension(mimetype) if mimetype else None
    return guessed or suffix


def unique_filename(extension: str) -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex}{extension}"


def _mimetype_path(path: Path) -> Path:
    return path.with_name(path.name + MIMETYPE_SUFFIX)


def _remove(path: Path) -> None:
    path.unlink(missing_ok=True)
    _mimetype_path(path).unlink(missing_ok=True)


class FilesystemAssetStore(AbstractProfileAssetStore):
    """Store pictures on disk and keep a reference string on the row."""

    backend_name = "filesystem"

    def __init__(
        self,
        database: Database,
        *,
        upload_dir: str | Path,
        public_url_prefix: str = "/uploads",
    ) -> None:
        super().__init__(database)
        self.upload_dir = Path(upload_dir)
        self.public_url_prefix = "/" + public_url_prefix.strip("/")

    def reference_for(self, filename: str) -> str:
        return f"{self.public_url_prefix}/{filename}"

    def path_for(self, reference: str) -> Path:
        """Resolve a stored reference to its file inside ``upload_dir``."""
        return self.upload_dir / Path(reference).name

    def _write(self, filename: str, data: bytes, mimetype: str) -> Path:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.upload_dir / filename
        path.write_bytes(data)
        _mimetype_path(path).write_text(mimetype, encoding="utf-8")
        return path

    def _read_mimetype(self, path: Path) -> str:
        try:
            stored = _mimetype_path(path).read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            stored = ""
        return stored or mimetypes.guess_type(path.name)[0] or DEFAULT_MIMETYPE

    async def upload(
        self,
        account_id: int | None,
        data: bytes | None,
        mimetype: str,
        original_name: str | None = None,
    ) -> UploadDescriptor:
        self._check_upload_args(account_id, data)
        mimetype = mimetype or DEFAULT_MIMETYPE

        filename = unique_filename(choose_extension(original_name, mimetype))
        loop = asyncio.get_running_loop()
        path = await loop.run_in_executor(None, self._write, filename, data, mimetype)
        reference = self.reference_for(filename)

        try:
            async with self.database.session() as session:
                result = await session.execute(
                    update(Account)
                    .where(Account.id == account_id)
                    .values(
                        profile_image_url=reference,
                        profile_image=None,
                        profile_image_mimetype=None,
                    )
                    .execution_options(synchronize_session=False)
                )
                updated = result.rowcount
        except BaseException:
            _remove(path)
            raise

        if updated == 0:
            _remove(path)
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
        return UploadDescriptor(mimetype=mimetype, reference=reference)

    async def retrieve(self, account_id: int) -> AssetReference:
        async with self.database.session() as session:
            row = (
                await session.execute(
                    select(Account.id, Account.profile_image_url).where(Account.id == account_id)
                )
            ).one_or_none()

        if row is None:
            raise self._account_not_found(account_id)

        reference = row.profile_image_url
        if not reference:
            raise AssetNotFoundError(
                code="profile_picture_not_found",
                message="Profile picture not found",
            )

        path = self.path_for(reference)
        if not path.is_file():
            logger.warning(
                "storage.file_missing",
                extra={"backend": self.backend_name, "account_id": account_id},
            )
            raise AssetNotFoundError(
                code="profile_picture_not_found",
                message="Profile picture not found",
            )

        mimetype = await asyncio.get_running_loop().run_in_executor(
            None, self._read_mimetype, path
        )
        return AssetReference(reference=reference, path=path, mimetype=mimetype)
