class BookingError(Exception):
    """Base class for everything the booking core raises on purpose."""


class BookingRejected(BookingError):
    """
    An expected, user-facing refusal. Nothing was written.
    ``reason`` is the machine readable code returned to API clients.
    """

    reason = "REJECTED"

    def __init__(self, message=None, charter_id=None, trip_date=None):
        self.charter_id = charter_id
        self.trip_date = trip_date
        super().__init__(message or self.default_message)

    default_message = "Booking rejected"


class NoAvailability(BookingRejected):
    reason = "NO_AVAILABILITY"
    default_message = "No availability for this date"


class BookingTimeout(BookingRejected):
    reason = "TIMEOUT"
    default_message = "Availability is busy, please retry"


class TransactionAborted(BookingError):
    """The unit of work failed for a non-business reason and was rolled back."""


class BookingNotFound(BookingError):
    def __init__(self, booking_id):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found")


class InvalidTransition(BookingError):
    def __init__(self, booking_id, current, target):
        self.booking_id = booking_id
        self.current = current
        self.target = target
        super().__init__(f"Booking {booking_id} cannot go from {current} to {target}")


class AvailabilityConflict(BookingError):
    """A ledger row already exists for that charter and date."""
