from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from fastapi.responses import FileResponse

from app.adapters.storage.base import InlineAsset, ProfileAsset
from app.api.dependencies import get_account_service, get_settings
from app.core.config import Settings
from app.core.errors import AccountNotFoundError, ValidationAppError
from app.core.file_validation import read_upload_file_limited
from app.schemas.account import UploadProfilePictureResponse
from app.services.account_service import AccountService

router = APIRouter(tags=["Profile"])

# Ids are stored in a 32-bit signed INTEGER column.
MAX_ACCOUNT_ID = 2**31 - 1


def _in_id_range(account_id: int) -> bool:
    return 1 <= account_id <= MAX_ACCOUNT_ID


def _parse_account_id(raw: str | None) -> int | None:
    """Parse a user id form field; blank means "not supplied"."""
    if raw is None or not raw.strip():
        return None
    try:
        account_id = int(raw.strip())
    except ValueError:
        account_id = None

    if account_id is None or not _in_id_range(account_id):
        raise ValidationAppError(
            code="invalid_user_id",
            message="User ID must be a positive integer",
            details={"field": "userId"},
        )
    return account_id


def _asset_response(asset: ProfileAsset) -> Response:
    if isinstance(asset, InlineAsset):
        return Response(content=asset.data, media_type=asset.mimetype)
    return FileResponse(asset.path, media_type=asset.mimetype)


@router.post(
    "/upload-profile-picture",
    response_model=UploadProfilePictureResponse,
    response_model_exclude_none=True,
)
async def upload_profile_picture(
    profile_picture: UploadFile | None = File(None, description="Image file to store."),
    userId: str | None = Form(None, description="Id of the account to update."),
    service: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_settings),
) -> UploadProfilePictureResponse:
    """Replace an account's profile picture.

    Raises:
        MissingFileError: 400 when no file (or an empty file) was sent.
        ValidationAppError: 400 when userId is missing or not an integer.
        AccountNotFoundError: 404 when no account has that id.
        PayloadTooLargeError: 413 when the file exceeds the upload limit.
    """
    data: bytes | None = None
    if profile_picture is not None:
        max_bytes = settings.app.max_upload_size_mb * 1024 * 1024
        data = await read_upload_file_limited(profile_picture, max_bytes)

    # A missing file takes precedence over a malformed id.
    account_id = _parse_account_id(userId) if data else None

    descriptor = await service.upload_profile_picture(
        account_id,
        data,
        profile_picture.content_type if profile_picture is not None else "",
        profile_picture.filename if profile_picture is not None else None,
    )
    return UploadProfilePictureResponse(
        profile_image_mimetype=descriptor.mimetype,
        profile_image_url=descriptor.reference,
    )


@router.get(
    "/profile-picture/{user_id}",
    response_class=Response,
    responses={200: {"content": {"image/*": {}}, "description": "Stored picture bytes."}},
)
async def get_profile_picture(
    user_id: str,
    service: AccountService = Depends(get_account_service),
) -> Response:
    """Serve an account's profile picture with its stored Content-Type.

    Raises:
        AccountNotFoundError: 404 when no account has that id.
        AssetNotFoundError: 404 when the account has no picture yet.
    """
    try:
        account_id = int(user_id)
    except ValueError:
        account_id = None

    if account_id is None or not _in_id_range(account_id):
        raise AccountNotFoundError(code="account_not_found", message="User not found")

    asset = await service.get_profile_picture(account_id)
    return _asset_response(asset)
