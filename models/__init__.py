from .db import db
from .user import User, Role, user_roles
from .session import AuthSession
from .audit_log import AuditLog
from .charter import Charter
from .availability import AvailabilitySlot
from .booking import Booking, BookingStatus
