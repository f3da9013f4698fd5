from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.models import PhotoSignValidation, ProcessingRecord, VerificationRecord
from passport_tracker.schemas.common import (
    PhotoValidationStatus,
    PoliceVerificationStatus,
    VerificationStatus,
)

RecordT = TypeVar("RecordT")


class StageRecordHandler(Generic[RecordT]):
    """get / create-or-fetch / verdict update for one per-application stage table."""

    def __init__(
        self,
        model: type[RecordT],
        *,
        entity: str,
        actor_field: str,
        stamped_at_field: str,
        defaults: dict[str, Any],
    ) -> None:
        self.model = model
        self.entity = entity
        self.actor_field = actor_field
        self.stamped_at_field = stamped_at_field
        self.defaults = defaults

    async def get(
        self, db: AsyncSession, application_id: uuid.UUID, *, for_update: bool = False
    ) -> RecordT | None:
        stmt = select(self.model).where(self.model.application_id == application_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, db: AsyncSession, application_id: uuid.UUID, **fields: Any) -> RecordT:
        """Return the existing row or insert one; only non-null ``fields`` overwrite stored values."""
        record = await self.get(db, application_id, for_update=True)
        if record is None:
            record = self.model(id=uuid.uuid4(), application_id=application_id, **self.defaults)
            db.add(record)
        for name, value in fields.items():
            if value is not None:
                setattr(record, name, value)
        return record

    def update(self, record: RecordT, verdicts: dict[str, Any], actor: deps.Actor) -> RecordT:
        for name, value in verdicts.items():
            setattr(record, name, value)
        setattr(record, self.actor_field, actor.id)
        setattr(record, self.stamped_at_field, datetime.now(timezone.utc))
        return record


photo_sign = StageRecordHandler(
    PhotoSignValidation,
    entity="photo_sign",
    actor_field="validated_by",
    stamped_at_field="validated_at",
    defaults={
        "photo_approved": False,
        "signature_approved": False,
        "validation_status": PhotoValidationStatus.PENDING.value,
    },
)

verification = StageRecordHandler(
    VerificationRecord,
    entity="verification",
    actor_field="verified_by",
    stamped_at_field="verified_at",
    defaults={
        "aadhaar_verified": False,
        "pan_verified": False,
        "dl_verified": False,
        "voter_id_verified": False,
        "cctns_verified": False,
        "verification_status": VerificationStatus.PENDING.value,
    },
)

processing = StageRecordHandler(
    ProcessingRecord,
    entity="processing",
    actor_field="processed_by",
    stamped_at_field="processed_at",
    defaults={
        "police_verification_status": PoliceVerificationStatus.PENDING.value,
        "reference1_verified": False,
        "reference2_verified": False,
    },
)
