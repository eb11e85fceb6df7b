"""Service order lifecycle and staff assignment rules."""
from typing import Dict, FrozenSet, Optional

from app.core.results import InvalidTransitionError
from app.models.enums import ServiceBookingStatus

SERVICE_ORDER_TRANSITIONS: Dict[ServiceBookingStatus, FrozenSet[ServiceBookingStatus]] = {
    ServiceBookingStatus.PENDING: frozenset({
        ServiceBookingStatus.CONFIRMED,
        ServiceBookingStatus.CANCELLED,
    }),
    ServiceBookingStatus.CONFIRMED: frozenset({
        ServiceBookingStatus.IN_PROGRESS,
        ServiceBookingStatus.CANCELLED,
    }),
    ServiceBookingStatus.IN_PROGRESS: frozenset({ServiceBookingStatus.COMPLETED}),
    ServiceBookingStatus.COMPLETED: frozenset(),
    ServiceBookingStatus.CANCELLED: frozenset(),
    ServiceBookingStatus.NO_SHOW: frozenset(),
}

# Orders that have not started yet; cancelled together with their parent booking
UNSTARTED_SERVICE_STATUSES = frozenset({
    ServiceBookingStatus.PENDING,
    ServiceBookingStatus.CONFIRMED,
})

ASSIGNABLE_SERVICE_STATUSES = UNSTARTED_SERVICE_STATUSES

# Orders counted against a service's daily capacity
ACTIVE_SERVICE_STATUSES = frozenset({
    ServiceBookingStatus.PENDING,
    ServiceBookingStatus.CONFIRMED,
    ServiceBookingStatus.IN_PROGRESS,
})


def can_transition(current: ServiceBookingStatus, target: ServiceBookingStatus) -> bool:
    return target in SERVICE_ORDER_TRANSITIONS[ServiceBookingStatus(current)]


def check_transition(
    current: ServiceBookingStatus, target: ServiceBookingStatus
) -> Optional[InvalidTransitionError]:
    current = ServiceBookingStatus(current)
    target = ServiceBookingStatus(target)
    if can_transition(current, target):
        return None
    return InvalidTransitionError(current=current.value, attempted=target.value)


def check_assignment(status: ServiceBookingStatus, assigned_staff_id) -> Optional[InvalidTransitionError]:
    """Staff can be assigned once, and only before the order starts."""
    status = ServiceBookingStatus(status)
    if status not in ASSIGNABLE_SERVICE_STATUSES:
        return InvalidTransitionError(
            current=status.value,
            attempted="ASSIGN_STAFF",
            message=f"Cannot assign staff to a service order in {status.value}",
        )
    if assigned_staff_id is not None:
        return InvalidTransitionError(
            current=status.value,
            attempted="ASSIGN_STAFF",
            message=f"Service order already assigned to staff {assigned_staff_id}",
        )
    return None
