"""Syllabus list for the signed-in user (every syllabus for admins)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sylman.schemas.syllabus import SyllabusRecord
from sylman.services.gateway import SyllabusGateway
from sylman.services.session import SessionContext

logger = logging.getLogger(__name__)

NO_DATE = "No Date Provided"
UNTITLED = "Untitled"


@dataclass
class DashboardRow:
    syllabus_id: str
    title: str
    last_updated: str
    updated_at: Optional[datetime] = None


def parse_timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning("Invalid date value: %s", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_row(record: SyllabusRecord) -> DashboardRow:
    stamp = parse_timestamp(record.syllabus_data.last_edited or record.updated_at or record.created_at)
    return DashboardRow(
        syllabus_id=record.id,
        title=record.syllabus_data.course_title or UNTITLED,
        last_updated=stamp.strftime("%m/%d/%Y") if stamp else NO_DATE,
        updated_at=stamp,
    )


class SyllabusDashboard:
    def __init__(self, session: SessionContext, gateway: SyllabusGateway) -> None:
        self.session = session
        self.gateway = gateway

    async def rows(self) -> List[DashboardRow]:
        """Newest first; undated syllabi go last."""
        if self.session.is_admin:
            records = await self.gateway.list_all()
        else:
            if not self.session.user_id:
                raise RuntimeError("User ID is missing from the session.")
            records = await self.gateway.list_for_user(self.session.user_id)

        rows = [to_row(record) for record in records]
        rows.sort(key=lambda row: (row.updated_at is not None, row.updated_at or datetime.min.replace(tzinfo=timezone.utc)),
                  reverse=True)
        return rows

    async def new_syllabus(self) -> str:
        syllabus_id = await self.gateway.create(self.session.user_id, {}, autosave=False)
        self.session.open_syllabus(syllabus_id)
        logger.info("New syllabus created: %s", syllabus_id)
        return syllabus_id

    async def copy(self, syllabus_id: str) -> str:
        """Clone on the server and switch the session to the copy."""
        new_id = await self.gateway.copy(syllabus_id)
        self.session.clear_syllabus()
        self.session.open_syllabus(new_id)
        logger.info("Copied syllabus %s -> %s", syllabus_id, new_id)
        return new_id

    async def delete(self, syllabus_id: str) -> None:
        await self.gateway.delete(syllabus_id)
        if self.session.syllabus_id == syllabus_id:
            self.session.clear_syllabus()
        logger.info("Deleted syllabus %s", syllabus_id)
