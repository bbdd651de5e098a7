"""
Append-only activity trail for mutations (who changed which record, how).

Writing the trail is never allowed to break the mutation it describes: the
entry is written inside a savepoint and a failure is logged and dropped.
"""

import json
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, String, Text, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from rentdesk.common.base_models import UUIDBase

logger = logging.getLogger(__name__)


class ActivityLog(UUIDBase):
    __tablename__ = "activity_log"

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    changes_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    actor: Mapped[str] = mapped_column(String(255), nullable=False, default="system")
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


async def record_activity(
    db: AsyncSession,
    entity_type: str,
    entity_id: Any,
    action: str,
    changes: Optional[dict] = None,
    actor: str = "system",
) -> Optional[ActivityLog]:
    entry = ActivityLog(
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        changes_json=json.dumps(changes, default=str) if changes is not None else None,
        actor=actor,
    )
    try:
        async with db.begin_nested():
            db.add(entry)
    except SQLAlchemyError:
        logger.exception("Could not record %s on %s %s", action, entity_type, entity_id)
        return None
    return entry


async def list_activity(db: AsyncSession, entity_type: str, entity_id: Any) -> list[ActivityLog]:
    result = await db.execute(
        select(ActivityLog)
        .where(ActivityLog.entity_type == entity_type, ActivityLog.entity_id == str(entity_id))
        .order_by(ActivityLog.timestamp.asc())
    )
    return list(result.scalars().all())
