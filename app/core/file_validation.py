"""Size-limited reading of uploaded profile pictures."""
from __future__ import annotations

import logging

from fastapi import UploadFile

from app.core.errors import PayloadTooLargeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _too_large(max_bytes: int) -> PayloadTooLargeError:
    return PayloadTooLargeError(
        code="file_too_large",
        message=f"File too large. Maximum size: {max_bytes // (1024 * 1024)}MB",
        details={"max_bytes": max_bytes},
    )


async def read_upload_file_limited(file: UploadFile, max_bytes: int) -> bytes:
    """Read an uploaded file in chunks, enforcing ``max_bytes``.

    The size announced in the multipart headers is checked first; the chunked
    read enforces the limit again for clients that under-report it.

    Raises:
        PayloadTooLargeError: If the file exceeds ``max_bytes``.
    """
    file_size = getattr(file, "size", None)
    if file_size is not None and file_size > max_bytes:
        logger.warning(
            "file_validation.rejected_by_header",
            extra={"file_size": file_size, "max_bytes": max_bytes},
        )
        raise _too_large(max_bytes)

    size = 0
    chunks: list[bytes] = []
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break

        size += len(chunk)
        if size > max_bytes:
            logger.warning(
                "file_validation.rejected_by_chunked_read",
                extra={"size": size, "max_bytes": max_bytes},
            )
            raise _too_large(max_bytes)
        chunks.append(chunk)

    return b"".join(chunks)
