"""
Typed outcomes of reservation operations.

Every state-mutating operation returns a ServiceResult carrying either the
resulting entity or exactly one of the error types below, so callers have
to branch on each failure explicitly.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Generic, Optional, TypeVar, Union


@dataclass(frozen=True)
class ValidationError:
    """Malformed or unacceptable input. Never retried."""
    message: str
    field: Optional[str] = None


@dataclass(frozen=True)
class ConflictError:
    """Requested rooms overlap existing reservations. Caller may retry with alternates."""
    message: str
    conflicting_room_ids: FrozenSet[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class InvalidTransitionError:
    """Lifecycle edge outside the transition table."""
    current: str
    attempted: str
    message: str = ""

    def __post_init__(self):
        if not self.message:
            object.__setattr__(
                self, "message", f"Cannot transition from {self.current} to {self.attempted}"
            )


@dataclass(frozen=True)
class NotFoundError:
    entity: str
    entity_id: object

    @property
    def message(self) -> str:
        return f"{self.entity} {self.entity_id} not found"


@dataclass(frozen=True)
class ForbiddenError:
    message: str


@dataclass(frozen=True)
class BookingNotCheckedInError:
    """Service orders need a parent booking that is currently CHECKED_IN."""
    booking_id: int
    current: str

    @property
    def message(self) -> str:
        return (
            f"Service orders require a checked-in booking; "
            f"booking {self.booking_id} is {self.current}"
        )


ReservationError = Union[
    ValidationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ForbiddenError,
    BookingNotCheckedInError,
]

TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    is_success: bool
    data: Optional[TData] = None
    error: Optional[ReservationError] = None

    @classmethod
    def success(cls, data: TData) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data)

    @classmethod
    def failure(cls, error: ReservationError) -> "ServiceResult[TData]":
        return cls(is_success=False, error=error)
