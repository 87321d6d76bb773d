"""Inventory endpoints: create an entry (authenticated) and list all entries (public)."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING

import structlog
from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse

from inventory.entries.intake import AttachmentError, TooManyAttachmentsError, extract_upload
from inventory.entries.pipeline import EntryValidationError
from shared.dal.errors import StorageError

if TYPE_CHECKING:
    from starlette.requests import Request

    from inventory.auth.gate import AuthContext
    from inventory.entries.pipeline import MutationPipeline
    from shared.dal.inventory_repository import InventoryRepository
    from shared.dal.models import InventoryEntry

logger = structlog.get_logger()


def _message(text: str, status: HTTPStatus) -> JSONResponse:
    return JSONResponse({"message": text}, status_code=status)


async def _create_from_json(request: Request, pipeline: MutationPipeline, auth: AuthContext) -> InventoryEntry:
    try:
        body = await request.json()
    except (ValueError, json.JSONDecodeError):  # fmt: skip
        body = {}
    return await pipeline.create_entry(auth, body if isinstance(body, dict) else {})


async def create_entry(request: Request, auth: AuthContext) -> JSONResponse:
    """POST /mercadorias - multipart fields plus optional ``image`` file (JSON body also accepted)."""
    pipeline: MutationPipeline = request.app.state.pipeline
    content_type = request.headers.get("content-type", "")

    try:
        if content_type.startswith("application/json"):
            entry = await _create_from_json(request, pipeline, auth)
        else:
            async with request.form() as form:
                entry = await pipeline.create_entry(auth, form, extract_upload(form))
    except (EntryValidationError, TooManyAttachmentsError) as e:
        return _message(str(e), HTTPStatus.BAD_REQUEST)
    except HTTPException as e:
        # unparseable multipart body
        return _message(e.detail, HTTPStatus.BAD_REQUEST)
    except (AttachmentError, StorageError):
        logger.exception("failed to create inventory entry")
        return _message("Error creating inventory entry.", HTTPStatus.INTERNAL_SERVER_ERROR)

    return JSONResponse(
        {"message": "Inventory entry created successfully!", "id": entry.id},
        status_code=HTTPStatus.CREATED,
    )


async def list_entries(request: Request) -> JSONResponse:
    """GET /mercadorias - every entry, attachment reference included (null when absent)."""
    inventory_repo: InventoryRepository = request.app.state.inventory_repo
    try:
        entries = await inventory_repo.list_entries()
    except StorageError:
        logger.exception("failed to list inventory entries")
        return _message("Error fetching inventory entries.", HTTPStatus.INTERNAL_SERVER_ERROR)
    return JSONResponse([entry.as_row() for entry in entries])
