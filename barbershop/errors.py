# barbershop/errors.py


class BookingError(Exception):
    """Base class for failures reported by the booking core."""

    code = "booking_error"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidSlot(BookingError):
    """Requested time is in the past, off the grid or outside working hours."""

    code = "invalid_slot"


class SlotConflict(BookingError):
    """Requested interval overlaps an existing appointment of the barber."""

    code = "slot_conflict"


class InvalidTransition(BookingError):
    code = "invalid_transition"

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot change appointment from '{current}' to '{target}'")
        self.current = current
        self.target = target


class InvalidClient(BookingError):
    """Client details cannot identify or name a customer."""

    code = "invalid_client"


class TooLateToCancel(BookingError):
    code = "too_late_to_cancel"


class NotFound(BookingError):
    code = "not_found"


class Unavailable(BookingError):
    """Raised when storage is unreachable or does not answer in time."""

    code = "unavailable"
    retryable = True


Timeout = Unavailable
