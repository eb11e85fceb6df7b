from dataclasses import dataclass

from app.models.enums import UserRole, STAFF_ROLES


@dataclass(frozen=True)
class RequestContext:
    """Who is acting on this request. Built per request, never stored globally."""
    user_id: int
    role: UserRole

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def may_act_for(self, owner_id: int) -> bool:
        return self.is_staff or self.user_id == owner_id
