# backend/services/caller.py
from dataclasses import dataclass
from typing import Optional

ELEVATED_ROLES = {"admin", "service"}


# Identity on whose behalf a service call runs
@dataclass(frozen=True)
class Caller:
    user_id: Optional[int] = None
    role: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        # The service caller has no user id but is not a guest
        return self.user_id is None and self.role is None

    @property
    def is_elevated(self) -> bool:
        return (self.role or "").lower() in ELEVATED_ROLES

    @classmethod
    def anonymous(cls) -> "Caller":
        return cls()

    @classmethod
    def service(cls) -> "Caller":
        # Trusted backend actor, e.g. a verified payment webhook
        return cls(user_id=None, role="service")

    @classmethod
    def from_user(cls, user) -> "Caller":
        return cls(user_id=user.id, role=user.role)
