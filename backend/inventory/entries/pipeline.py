"""Mutation pipeline for creating inventory entries.

A write moves through these stages:

    received -> authorized -> validated -> attachment_resolved
             -> persisted -> broadcast -> responded

Authorization happens in the auth gate before the pipeline runs; holding an
AuthContext is the proof of it. A request can be rejected at validation
(EntryValidationError), attachment intake (AttachmentError), or persistence
(StorageError). Nothing is retried. Once persisted, the broadcast cannot fail
the request.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from inventory.entries.intake import AttachmentError
from inventory.events.messages import EVENT_NEW_ENTRY
from shared.dal.errors import StorageError
from shared.dal.models import NewInventoryEntry

if TYPE_CHECKING:
    from collections.abc import Mapping

    from starlette.datastructures import UploadFile

    from inventory.auth.gate import AuthContext
    from inventory.entries.intake import AttachmentIntake
    from inventory.events.broadcaster import EventBroadcaster
    from shared.dal.inventory_repository import InventoryRepository
    from shared.dal.models import InventoryEntry

logger = structlog.get_logger()

REQUIRED_FIELDS = ("name", "price", "height", "width", "status")


class PipelineStage(StrEnum):
    """Last stage a write reached, logged when it is rejected."""

    AUTHORIZED = "authorized"
    VALIDATED = "validated"
    ATTACHMENT_RESOLVED = "attachment_resolved"
    PERSISTED = "persisted"


class EntryValidationError(Exception):
    """Required field missing, blank, or out of range."""

    def __init__(self, message: str, fields: list[str]) -> None:
        super().__init__(message)
        self.fields = fields


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_entry_fields(fields: Mapping[str, Any]) -> NewInventoryEntry:
    """Check presence of every required field, then parse numbers and ranges."""
    missing = [name for name in REQUIRED_FIELDS if _is_blank(fields.get(name))]
    if missing:
        raise EntryValidationError("All fields are required.", missing)
    try:
        return NewInventoryEntry(**{name: fields[name] for name in REQUIRED_FIELDS})
    except ValidationError as e:
        invalid = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise EntryValidationError(f"Invalid value for: {', '.join(invalid)}.", invalid) from e


class MutationPipeline:
    """Validate, store, persist, and announce a new inventory entry."""

    def __init__(
        self,
        inventory_repo: InventoryRepository,
        intake: AttachmentIntake,
        broadcaster: EventBroadcaster,
    ) -> None:
        self._inventory_repo = inventory_repo
        self._intake = intake
        self._broadcaster = broadcaster

    async def create_entry(
        self,
        auth: AuthContext,
        fields: Mapping[str, Any],
        upload: UploadFile | None = None,
    ) -> InventoryEntry:
        log = logger.bind(username=auth.username)
        stage = PipelineStage.AUTHORIZED
        try:
            entry = validate_entry_fields(fields)
            stage = PipelineStage.VALIDATED

            image = await self._intake.resolve(upload)
            stage = PipelineStage.ATTACHMENT_RESOLVED

            created = await self._inventory_repo.create_entry(entry.model_copy(update={"image": image}))
            stage = PipelineStage.PERSISTED
        except (EntryValidationError, AttachmentError, StorageError) as e:
            log.info("entry rejected", stage=stage, error=type(e).__name__)
            raise

        recipients = self._broadcaster.broadcast(EVENT_NEW_ENTRY, created.as_row())
        log.info("entry created", entry_id=created.id, image=created.image, observers=recipients)
        return created
