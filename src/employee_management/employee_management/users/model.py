from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import MANAGER_ROLES


@dataclass(frozen=True)
class User:
    """Domain entity: a directory user.

    Note: Plain data object (no DB access code). The directory is read-only from this system's point of view.
    """

    user_id: int
    full_name: str
    username: str
    role: str
    department: Optional[str] = None
    email: Optional[str] = None
    password_hash: str = ""
    is_active: bool = True

    @property
    def can_manage(self) -> bool:
        """Admin and HR may publish announcements and correct attendance."""
        return self.role in MANAGER_ROLES

    def to_public_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "full_name": self.full_name,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "department": self.department,
            "is_active": self.is_active,
        }
