from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3b8d1c0f9a21"
down_revision = None
branch_labels = None
depends_on = None


room_status = sa.Enum("AVAILABLE", "OCCUPIED", "MAINTENANCE", "CLEANING", "OUT_OF_ORDER", name="roomstatus")
booking_status = sa.Enum(
    "PENDING", "CONFIRMED", "CHECKED_IN", "CHECKED_OUT", "CANCELLED", "NO_SHOW", name="bookingstatus"
)
booking_source = sa.Enum("WEBSITE", "PHONE", "WALK_IN", "OTA", name="bookingsource")
service_booking_status = sa.Enum(
    "PENDING", "CONFIRMED", "IN_PROGRESS", "COMPLETED", "CANCELLED", "NO_SHOW", name="servicebookingstatus"
)
service_pricing_type = sa.Enum("FIXED", "PER_PERSON", "PER_ITEM", "PER_HOUR", name="servicepricingtype")
payment_status = sa.Enum("PENDING", "COMPLETED", "FAILED", "REFUNDED", name="paymentstatus")
payment_method = sa.Enum("CASH", "CREDIT_CARD", "BANK_TRANSFER", "E_WALLET", name="paymentmethod")
discount_type = sa.Enum("PERCENTAGE", "FIXED_AMOUNT", name="discounttype")
user_role = sa.Enum("ADMIN", "MANAGER", "RECEPTIONIST", "HOUSEKEEPING", "CUSTOMER", name="userrole")

MONEY = sa.Numeric(14, 2)


def upgrade():
    # 1. Reference data
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "room_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False, unique=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("base_price", MONEY, nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("bed_type", sa.String(), nullable=False),
        sa.Column("amenities", sa.JSON(), nullable=False),
    )

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("room_number", sa.String(), nullable=False),
        sa.Column("floor", sa.Integer(), nullable=False),
        sa.Column("status", room_status, nullable=False),
        sa.Column("type_id", sa.Integer(), sa.ForeignKey("room_types.id"), nullable=False),
    )
    op.create_index("ix_rooms_room_number", "rooms", ["room_number"], unique=True)

    op.create_table(
        "promotions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("discount_type", discount_type, nullable=False),
        sa.Column("discount_value", MONEY, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_promotions_code", "promotions", ["code"], unique=True)

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("pricing_type", service_pricing_type, nullable=False),
        sa.Column("base_price", MONEY, nullable=False),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("requires_booking", sa.Boolean(), nullable=False),
        sa.Column("operating_hours", sa.JSON(), nullable=True),
        sa.Column("max_capacity", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )

    # 2. Reservations
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_code", sa.String(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("guest_name", sa.String(), nullable=False),
        sa.Column("guest_email", sa.String(), nullable=False),
        sa.Column("guest_phone", sa.String(), nullable=False),
        sa.Column("guest_id_number", sa.String(), nullable=True),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("number_of_guests", sa.Integer(), nullable=False),
        sa.Column("number_of_nights", sa.Integer(), nullable=False),
        sa.Column("subtotal", MONEY, nullable=False),
        sa.Column("tax_amount", MONEY, nullable=False),
        sa.Column("service_charge", MONEY, nullable=False),
        sa.Column("discount_amount", MONEY, nullable=False),
        sa.Column("total_amount", MONEY, nullable=False),
        sa.Column("paid_amount", MONEY, nullable=False),
        sa.Column("status", booking_status, nullable=False),
        sa.Column("booking_source", booking_source, nullable=False),
        sa.Column("promotion_id", sa.Integer(), sa.ForeignKey("promotions.id"), nullable=True),
        sa.Column("special_requests", sa.String(), nullable=True),
        sa.Column("staff_notes", sa.String(), nullable=True),
        sa.Column("check_in_time", sa.DateTime(), nullable=True),
        sa.Column("check_out_time", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("cancel_reason", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("check_out_date > check_in_date", name="ck_booking_date_range"),
    )
    op.create_index("ix_bookings_booking_code", "bookings", ["booking_code"], unique=True)
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_check_in_date", "bookings", ["check_in_date"])
    op.create_index("ix_bookings_check_out_date", "bookings", ["check_out_date"])

    op.create_table(
        "booking_rooms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("price_per_night", MONEY, nullable=False),
        sa.Column("number_of_nights", sa.Integer(), nullable=False),
        sa.Column("total_price", MONEY, nullable=False),
        sa.UniqueConstraint("booking_id", "room_id", name="uq_booking_room"),
    )
    op.create_index("ix_booking_rooms_booking_id", "booking_rooms", ["booking_id"])
    op.create_index("ix_booking_rooms_room_id", "booking_rooms", ["room_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("method", payment_method, nullable=False),
        sa.Column("status", payment_status, nullable=False),
        sa.Column("transaction_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"])
    op.create_index("ix_payments_transaction_id", "payments", ["transaction_id"])

    op.create_table(
        "service_bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_code", sa.String(), nullable=False),
        sa.Column("service_id", sa.Integer(), sa.ForeignKey("services.id"), nullable=False),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("guest_name", sa.String(), nullable=False),
        sa.Column("guest_phone", sa.String(), nullable=False),
        sa.Column("room_number", sa.String(), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("scheduled_time", sa.Time(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", MONEY, nullable=False),
        sa.Column("total_price", MONEY, nullable=False),
        sa.Column("status", service_booking_status, nullable=False),
        sa.Column("special_requests", sa.String(), nullable=True),
        sa.Column("assigned_staff_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("staff_notes", sa.String(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("cancel_reason", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_service_bookings_booking_code", "service_bookings", ["booking_code"], unique=True)
    op.create_index("ix_service_bookings_booking_id", "service_bookings", ["booking_id"])
    op.create_index("ix_service_bookings_status", "service_bookings", ["status"])


def downgrade():
    op.drop_table("service_bookings")
    op.drop_table("payments")
    op.drop_table("booking_rooms")
    op.drop_table("bookings")
    op.drop_table("services")
    op.drop_table("promotions")
    op.drop_table("rooms")
    op.drop_table("room_types")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (
        room_status, booking_status, booking_source, service_booking_status,
        service_pricing_type, payment_status, payment_method, discount_type, user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
