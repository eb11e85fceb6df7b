from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from app.core.config import CURRENCY_DECIMALS
from app.models.enums import DiscountType, ServicePricingType

ZERO = Decimal("0")


@dataclass(frozen=True)
class RoomCharge:
    room_id: int
    nights: int
    rate_per_night: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.rate_per_night * self.nights


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    tax_amount: Decimal
    service_charge: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    lines: List[RoomCharge]


def to_money(value, decimals: int = CURRENCY_DECIMALS) -> Decimal:
    """Round half up to the currency's smallest unit."""
    unit = Decimal(1).scaleb(-decimals)
    return Decimal(value).quantize(unit, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    return to_money(Decimal(amount) * Decimal(percent) / Decimal(100))


def nights_between(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def calculate_booking_price(
    rooms: Iterable[RoomCharge],
    tax_rate_percent: Decimal,
    service_charge_percent: Decimal,
    discount_amount: Decimal = ZERO,
) -> PriceBreakdown:
    lines = list(rooms)

    subtotal = to_money(sum((line.line_total for line in lines), ZERO))

    # Each component is rounded once; the total is never re-rounded
    tax_amount = percent_of(subtotal, tax_rate_percent)
    service_charge = percent_of(subtotal, service_charge_percent)
    discount_amount = to_money(discount_amount)

    total = subtotal + tax_amount + service_charge - discount_amount
    if total < ZERO:
        total = ZERO

    return PriceBreakdown(
        subtotal=subtotal,
        tax_amount=tax_amount,
        service_charge=service_charge,
        discount_amount=discount_amount,
        total_amount=total,
        lines=lines,
    )


def promotion_discount(discount_type: DiscountType, discount_value: Decimal, subtotal: Decimal) -> Decimal:
    if discount_type == DiscountType.PERCENTAGE:
        return percent_of(subtotal, discount_value)
    return to_money(discount_value)


def calculate_service_price(
    pricing_type: ServicePricingType,
    base_price: Decimal,
    quantity: int,
    duration_minutes: Optional[int] = None,
) -> Decimal:
    base_price = Decimal(base_price)

    if pricing_type in (ServicePricingType.PER_PERSON, ServicePricingType.PER_ITEM):
        return to_money(base_price * quantity)

    if pricing_type == ServicePricingType.PER_HOUR:
        hours = Decimal(duration_minutes or 60) / Decimal(60)
        return to_money(base_price * hours * quantity)

    return to_money(base_price)
