"""Attachment intake: pull the optional upload off a write request and store it."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.datastructures import UploadFile

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.datastructures import FormData

    from shared.storage import AttachmentStorage

ATTACHMENT_FIELD = "image"

_CHUNK_SIZE = 64 * 1024


class AttachmentError(Exception):
    """The attachment could not be written to storage."""


class TooManyAttachmentsError(ValueError):
    """More than one file was sent under the attachment field."""


def extract_upload(form: FormData) -> UploadFile | None:
    """Return the single uploaded file bound to ATTACHMENT_FIELD, or None.

    A file part with an empty filename is what browsers send when no file
    was chosen; it counts as absent.
    """
    uploads = [
        value
        for value in form.getlist(ATTACHMENT_FIELD)
        if isinstance(value, UploadFile) and value.filename
    ]
    if len(uploads) > 1:
        raise TooManyAttachmentsError(f"Only one file may be sent in '{ATTACHMENT_FIELD}'")
    return uploads[0] if uploads else None


async def _iter_chunks(upload: UploadFile) -> AsyncIterator[bytes]:
    while chunk := await upload.read(_CHUNK_SIZE):
        yield chunk


class AttachmentIntake:
    """Stream an optional upload into attachment storage.

    Content type and size are not checked.
    """

    def __init__(self, storage: AttachmentStorage) -> None:
        self._storage = storage

    async def resolve(self, upload: UploadFile | None) -> str | None:
        """Store the upload and return its attachment reference. No upload means no reference."""
        if upload is None:
            return None
        await upload.seek(0)
        try:
            return await self._storage.save(upload.filename or "", _iter_chunks(upload))
        except OSError as e:
            raise AttachmentError(f"Failed to store attachment: {e}") from e
