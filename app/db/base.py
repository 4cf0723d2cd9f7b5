from app.db.session import Base  # noqa: F401
from app.models.booking import Booking  # noqa: F401
from app.models.booking_payment import BookingPayment  # noqa: F401
from app.models.haven import Haven, HavenImage  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
