from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from Hallsmart.core import roles
from Hallsmart.core.errors import NotFoundError, PermissionDenied
from Hallsmart.data.repos.profiles_repo import get_profile_by_username


@dataclass
class Session:
    """Acting user plus the reference date business rules are evaluated against."""
    profile: Optional[dict]
    today: date = field(default_factory=date.today)

    @classmethod
    def for_username(cls, username: str, today: Optional[date] = None) -> "Session":
        profile = get_profile_by_username(username)
        if profile is None:
            raise NotFoundError(f"profile {username!r} not found")
        return cls(profile=profile, today=today or date.today())

    @property
    def user_id(self):
        return self.profile["id"] if self.profile else None

    def can(self, action: str) -> bool:
        return roles.can(self.profile, action)

    def require(self, action: str):
        if not self.can(action):
            raise PermissionDenied(f"{roles.role_of(self.profile) or 'anonymous'} may not {action}")
