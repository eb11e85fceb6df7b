from enum import Enum


class RoomStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"
    CLEANING = "CLEANING"
    OUT_OF_ORDER = "OUT_OF_ORDER"


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class BookingSource(str, Enum):
    WEBSITE = "WEBSITE"
    PHONE = "PHONE"
    WALK_IN = "WALK_IN"
    OTA = "OTA"


class ServiceBookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class ServicePricingType(str, Enum):
    FIXED = "FIXED"
    PER_PERSON = "PER_PERSON"
    PER_ITEM = "PER_ITEM"
    PER_HOUR = "PER_HOUR"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    E_WALLET = "E_WALLET"


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    RECEPTIONIST = "RECEPTIONIST"
    HOUSEKEEPING = "HOUSEKEEPING"
    CUSTOMER = "CUSTOMER"


# Roles allowed to drive lifecycles on behalf of guests
STAFF_ROLES = {UserRole.ADMIN, UserRole.MANAGER, UserRole.RECEPTIONIST}

# Roles a service order can be handed to
ASSIGNABLE_ROLES = {UserRole.RECEPTIONIST, UserRole.HOUSEKEEPING, UserRole.MANAGER}
