"""Discounts and price constraints.

Discounts are computed against a configurable base and return nothing when
disabled, not qualifying, or rounding to zero. Price constraints run last
and each one that fires adds its own line item.
"""

from dataclasses import dataclass
from typing import Optional

from charter.knobs import DiscountBase, PricingKnobs, VhbDiscountMode
from charter.models import Airport, Leg, LineItem, LineItemCode, Trip
from charter.money import round_money


@dataclass(frozen=True)
class Subtotals:
    """Amounts a discount percentage can be taken from."""

    base: float
    fees: float
    running_total: float

    def for_base(self, applies_to: DiscountBase) -> float:
        if applies_to == DiscountBase.BASE_ONLY:
            return self.base
        if applies_to == DiscountBase.SUBTOTAL_BEFORE_FEES:
            return self.base + self.fees
        return self.running_total


def subtotals(items: list[LineItem]) -> Subtotals:
    base = sum(i.amount for i in items if i.code.value.startswith("BASE_"))
    fees = sum(i.amount for i in items if i.code.value.startswith("FEE_"))
    running = sum(i.amount for i in items)
    return Subtotals(base=round_money(base), fees=round_money(fees), running_total=round_money(running))


def calc_vhb_discount(
    trip: Trip, knobs: PricingKnobs, home_bases: list[Airport], totals: Subtotals
) -> Optional[LineItem]:
    """Home-base discount when the origin and/or destination is a home base."""
    disc = knobs.discounts.vhb_discount
    if disc is None or disc.mode == VhbDiscountMode.NONE or disc.percent <= 0:
        return None

    codes = {a.icao for a in home_bases}
    origin_is_vhb = trip.origin.icao in codes
    dest_is_vhb = trip.destination.icao in codes
    if disc.mode == VhbDiscountMode.ORIGIN_OR_DESTINATION:
        qualifies = origin_is_vhb or dest_is_vhb
    elif disc.mode == VhbDiscountMode.BOTH_REQUIRED:
        qualifies = origin_is_vhb and dest_is_vhb
    else:
        raise ValueError(f"Unsupported VHB discount mode {disc.mode!r}")
    if not qualifies:
        return None

    base = totals.for_base(disc.applies_to)
    amount = round_money(-base * disc.percent)
    if amount == 0:
        return None
    return LineItem(
        code=LineItemCode.DISCOUNT_VHB,
        label=f"VHB discount ({disc.percent * 100:g}%)",
        amount=amount,
        meta={
            "mode": disc.mode.value,
            "percent": disc.percent,
            "appliesTo": disc.applies_to.value,
            "originIsVhb": origin_is_vhb,
            "destIsVhb": dest_is_vhb,
            "baseForDiscount": base,
        },
    )


def calc_time_based_discount(knobs: PricingKnobs, legs: list[Leg], totals: Subtotals) -> Optional[LineItem]:
    """Discount when every occupied leg's actual hours meet the threshold."""
    disc = knobs.discounts.time_based_discount
    if disc is None or not disc.enabled or disc.discount_percent <= 0:
        return None

    occupied = [leg for leg in legs if leg.is_occupied]
    if not all((leg.meta.actual_hours or 0.0) >= disc.min_occupied_hours_per_leg for leg in occupied):
        return None

    base = totals.for_base(disc.applies_to)
    amount = round_money(-base * disc.discount_percent / 100)
    if amount == 0:
        return None
    return LineItem(
        code=LineItemCode.DISCOUNT_TIME_BASED,
        label=f"Time-based discount ({disc.discount_percent:g}%)",
        amount=amount,
        meta={
            "discountPercent": disc.discount_percent,
            "minOccupiedHoursPerLeg": disc.min_occupied_hours_per_leg,
            "appliesTo": disc.applies_to.value,
            "qualifyingLegs": len(occupied),
            "baseForDiscount": base,
        },
    )


def calc_discounts(
    trip: Trip, knobs: PricingKnobs, legs: list[Leg], home_bases: list[Airport], items: list[LineItem]
) -> list[LineItem]:
    """Home-base then time-based discount, each seeing the running total before it."""
    out: list[LineItem] = []
    vhb = calc_vhb_discount(trip, knobs, home_bases, subtotals(items))
    if vhb is not None:
        out.append(vhb)
    timed = calc_time_based_discount(knobs, legs, subtotals([*items, *out]))
    if timed is not None:
        out.append(timed)
    return out


def apply_price_constraints(knobs: PricingKnobs, tentative_total: float, occupied_leg_count: int) -> list[LineItem]:
    """Per-leg minimum, then trip minimum, then trip maximum cap."""
    pc = knobs.fees.price_constraints
    if pc is None:
        return []

    items: list[LineItem] = []
    current = round_money(tentative_total)

    if pc.min_price_per_leg is not None and occupied_leg_count > 0:
        required = pc.min_price_per_leg * occupied_leg_count
        if current < required:
            adjustment = round_money(required - current)
            items.append(
                LineItem(
                    code=LineItemCode.FEE_MIN_PRICE_PER_LEG,
                    label=f"Min price adjustment ({occupied_leg_count} leg{'s' if occupied_leg_count > 1 else ''})",
                    amount=adjustment,
                    meta={"minPricePerLeg": pc.min_price_per_leg, "occupiedLegCount": occupied_leg_count},
                )
            )
            current = round_money(current + adjustment)

    if pc.min_trip_price is not None and current < pc.min_trip_price:
        adjustment = round_money(pc.min_trip_price - current)
        items.append(
            LineItem(
                code=LineItemCode.FEE_MIN_TRIP_PRICE,
                label="Min trip price adjustment",
                amount=adjustment,
                meta={"minTripPrice": pc.min_trip_price},
            )
        )
        current = round_money(current + adjustment)

    if pc.max_trip_price is not None and current > pc.max_trip_price:
        reduction = round_money(current - pc.max_trip_price)
        items.append(
            LineItem(
                code=LineItemCode.DISCOUNT_MAX_TRIP_PRICE_CAP,
                label="Max trip price cap",
                amount=-reduction,
                meta={"maxTripPrice": pc.max_trip_price},
            )
        )
    return items
