# Import every model so relationships resolve and Base.metadata is complete
from app.db.session import Base  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.room import Room, RoomType  # noqa: F401
from app.models.promotion import Promotion  # noqa: F401
from app.models.booking import Booking, BookingRoom  # noqa: F401
from app.models.payment import Payment  # noqa: F401
from app.models.service import Service, ServiceBooking  # noqa: F401
