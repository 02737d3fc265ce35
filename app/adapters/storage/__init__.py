"""Profile picture storage adapters."""

from app.adapters.storage.base import (
    AbstractProfileAssetStore,
    AssetReference,
    InlineAsset,
    ProfileAsset,
    UploadDescriptor,
)
from app.adapters.storage.blob import InlineBlobAssetStore
from app.adapters.storage.factory import create_asset_store
from app.adapters.storage.filesystem import FilesystemAssetStore

__all__ = [
    "AbstractProfileAssetStore",
    "AssetReference",
    "FilesystemAssetStore",
    "InlineAsset",
    "InlineBlobAssetStore",
    "ProfileAsset",
    "UploadDescriptor",
    "create_asset_store",
]
