import random
from decimal import Decimal

import pytest

from app.models.enums import DiscountType, ServicePricingType
from app.utils.pricing import (
    RoomCharge, calculate_booking_price, calculate_service_price, promotion_discount, to_money,
)


def D(value):
    return Decimal(str(value))


class TestBookingPrice:

    def test_two_nights_standard_room(self):
        price = calculate_booking_price(
            [RoomCharge(room_id=1, nights=2, rate_per_night=D(500000))],
            tax_rate_percent=D(10),
            service_charge_percent=D(5),
        )
        assert price.subtotal == D(1000000)
        assert price.tax_amount == D(100000)
        assert price.service_charge == D(50000)
        assert price.discount_amount == D(0)
        assert price.total_amount == D(1150000)

    def test_multiple_rooms_are_summed(self):
        price = calculate_booking_price(
            [
                RoomCharge(room_id=1, nights=3, rate_per_night=D(500000)),
                RoomCharge(room_id=2, nights=3, rate_per_night=D(800000)),
            ],
            tax_rate_percent=D(10),
            service_charge_percent=D(5),
        )
        assert price.subtotal == D(3900000)
        assert len(price.lines) == 2

    def test_discount_larger_than_subtotal_clamps_to_zero(self):
        price = calculate_booking_price(
            [RoomCharge(room_id=1, nights=1, rate_per_night=D(100000))],
            tax_rate_percent=D(10),
            service_charge_percent=D(5),
            discount_amount=D(1000000),
        )
        assert price.total_amount == D(0)
        assert price.discount_amount == D(1000000)

    def test_components_round_half_up_once(self):
        # 333 * 10% = 33.3 -> 33 ; 333 * 5% = 16.65 -> 17
        price = calculate_booking_price(
            [RoomCharge(room_id=1, nights=1, rate_per_night=D(333))],
            tax_rate_percent=D(10),
            service_charge_percent=D(5),
        )
        assert price.tax_amount == D(33)
        assert price.service_charge == D(17)
        assert price.total_amount == D(333 + 33 + 17)

    def test_half_unit_rounds_up(self):
        assert to_money(D("2.5")) == D(3)
        assert to_money(D("3.5")) == D(4)
        assert to_money(D("1.005"), decimals=2) == D("1.01")

    def test_total_identity_holds_for_random_inputs(self):
        rng = random.Random(20241210)
        for _ in range(300):
            lines = [
                RoomCharge(room_id=i, nights=rng.randint(1, 14), rate_per_night=D(rng.randint(1, 5000) * 1000))
                for i in range(rng.randint(1, 4))
            ]
            discount = D(rng.randint(0, 20000000))
            price = calculate_booking_price(
                lines,
                tax_rate_percent=D(rng.choice([0, 8, 10, 12.5])),
                service_charge_percent=D(rng.choice([0, 5, 7.5])),
                discount_amount=discount,
            )
            expected = price.subtotal + price.tax_amount + price.service_charge - price.discount_amount
            assert price.total_amount == max(expected, D(0))
            assert price.total_amount >= 0


class TestPromotionDiscount:

    def test_percentage(self):
        assert promotion_discount(DiscountType.PERCENTAGE, D(15), D(1000000)) == D(150000)

    def test_fixed_amount(self):
        assert promotion_discount(DiscountType.FIXED_AMOUNT, D(200000), D(1000000)) == D(200000)


class TestServicePrice:

    @pytest.mark.parametrize(
        "pricing_type, quantity, duration, expected",
        [
            (ServicePricingType.FIXED, 3, None, 300000),
            (ServicePricingType.PER_PERSON, 3, None, 900000),
            (ServicePricingType.PER_ITEM, 4, None, 1200000),
            (ServicePricingType.PER_HOUR, 1, 90, 450000),
            (ServicePricingType.PER_HOUR, 2, None, 600000),
        ],
    )
    def test_pricing_types(self, pricing_type, quantity, duration, expected):
        assert calculate_service_price(pricing_type, D(300000), quantity, duration) == D(expected)
