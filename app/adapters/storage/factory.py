"""Factory selecting the profile picture backend once at startup."""

from app.adapters.db.database import Database
from app.adapters.storage.base import AbstractProfileAssetStore
from app.adapters.storage.blob import InlineBlobAssetStore
from app.adapters.storage.filesystem import FilesystemAssetStore
from app.core.config import StorageSettings


def create_asset_store(
    storage_settings: StorageSettings, database: Database
) -> AbstractProfileAssetStore:
    """Instantiate the configured storage backend.

    Raises:
        ValueError: If the configured backend is unknown.
    """
    backend = storage_settings.backend.lower()

    if backend == "filesystem":
        return FilesystemAssetStore(
            database,
            upload_dir=storage_settings.upload_dir,
            public_url_prefix=storage_settings.public_url_prefix,
        )

    if backend == "blob":
        return InlineBlobAssetStore(database)

    raise ValueError(
        f"Unknown storage backend: '{backend}'. Supported backends: filesystem, blob"
    )
