from fastapi import HTTPException

from gymbook.booking.errors import BookingError


def http_error(error: BookingError) -> HTTPException:
    """Structured HTTP error for a booking rejection."""
    return HTTPException(status_code=error.status_code, detail=error.to_dict())
