from .health import health_bp
from .auth import auth_bp
from .charters import charters_bp
from .availability import availability_bp
from .booking import booking_bp
