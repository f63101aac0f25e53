from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import Field

from .common import ApiModel, TimeStamped


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"
    SELLER = "seller"


class Profile(TimeStamped):
    id: Optional[int] = None
    name: str = ""
    lastname: str = ""


class User(TimeStamped):
    id: str
    email: str
    role: str = Role.USER.value
    profile: Optional[Profile] = None

    @property
    def display_name(self) -> str:
        if self.profile and (self.profile.name or self.profile.lastname):
            return f"{self.profile.name} {self.profile.lastname}".strip()
        return self.email


class AuthSession(ApiModel):
    """
    Credential + user of the logged-in seller.

    Built by AuthService on login/register or restored from the session file,
    then handed to ApiClient. Cleared on logout.
    """
    token: Optional[str] = None
    user: Optional[User] = None
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def clear(self) -> None:
        self.token = None
        self.user = None
