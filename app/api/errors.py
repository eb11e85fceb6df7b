from fastapi import HTTPException

from app.core.results import (
    BookingNotCheckedInError, ConflictError, ForbiddenError, InvalidTransitionError,
    NotFoundError, ServiceResult, ValidationError,
)


def to_http_exception(error) -> HTTPException:
    if isinstance(error, ConflictError):
        return HTTPException(
            status_code=409,
            detail={
                "message": error.message,
                "conflicting_room_ids": sorted(error.conflicting_room_ids),
            },
        )
    if isinstance(error, InvalidTransitionError):
        return HTTPException(
            status_code=409,
            detail={
                "message": error.message,
                "current": error.current,
                "attempted": error.attempted,
            },
        )
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, ForbiddenError):
        return HTTPException(status_code=403, detail=error.message)
    if isinstance(error, BookingNotCheckedInError):
        return HTTPException(
            status_code=400,
            detail={"message": error.message, "booking_status": error.current},
        )
    if isinstance(error, ValidationError):
        return HTTPException(
            status_code=400,
            detail={"message": error.message, "field": error.field},
        )
    raise TypeError(f"Unhandled reservation error: {error!r}")


def unwrap(result: ServiceResult):
    """Return the result's data or raise the matching HTTPException."""
    if result.is_success:
        return result.data
    raise to_http_exception(result.error)


def raise_if_invalid(value):
    """Commands are returned as-is; a ValidationError becomes a 400."""
    if isinstance(value, ValidationError):
        raise to_http_exception(value)
    return value
