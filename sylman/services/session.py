"""Per-session identity shared by the sync engine, gateway callers and dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ADMIN_ROLE = "admin"


@dataclass
class SessionContext:
    user_id: Optional[str] = None
    syllabus_id: Optional[str] = None
    is_admin: bool = False

    @classmethod
    def from_login(cls, user_id: str, role: Optional[str] = None) -> "SessionContext":
        return cls(user_id=str(user_id), is_admin=(role or "").lower() == ADMIN_ROLE)

    @property
    def has_syllabus(self) -> bool:
        return bool(self.syllabus_id)

    def open_syllabus(self, syllabus_id: str) -> None:
        self.syllabus_id = syllabus_id

    def clear_syllabus(self) -> None:
        self.syllabus_id = None
