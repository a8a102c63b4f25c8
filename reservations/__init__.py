from .errors import (
    AvailabilityConflict,
    BookingError,
    BookingNotFound,
    BookingRejected,
    BookingTimeout,
    InvalidTransition,
    NoAvailability,
    TransactionAborted,
)
from .availability import (
    check_availability,
    create_availability,
    delete_availability,
    get_availability,
    release_slot,
    resize_availability,
    seed_availability_window,
    update_availability_slots,
)
from .coordinator import book_slot, cancel_booking, update_booking_status
