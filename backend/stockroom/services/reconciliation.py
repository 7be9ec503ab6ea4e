# Overview: Pure quantity and value rules for incoming inventory line items.

"""
Quantity Reconciliation

Every incoming line tracks four counters against the ordered quantity:

    received + short + rejected + arrived == total_quantity

- received: units accepted at the dock
- short: units still missing
- rejected: units moved out of received (damaged) or short (written off)
- arrived: short units that turned up later (short lowered by a point update)

arrived is never stored; it is the gap left by the other three and is never
negative. Moves shift units between received/short and rejected and so never
change arrived.

Stock contribution of a line = total_quantity - short - rejected
(= received + arrived). This is what a completed header adds to SKU stock.

Nothing here touches the database. The incoming service calls these to
validate a change before it issues the guarded UPDATE.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP

from ..errors import ValidationError


TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ItemQuantities:
    total_quantity: int
    received: int
    short: int
    rejected: int

    @property
    def arrived(self) -> int:
        return self.total_quantity - self.received - self.short - self.rejected

    @property
    def stock_contribution(self) -> int:
        return self.total_quantity - self.short - self.rejected

    @classmethod
    def of(cls, item) -> "ItemQuantities":
        return cls(
            total_quantity=item.total_quantity,
            received=item.received,
            short=item.short,
            rejected=item.rejected,
        )


def initial_split(total_quantity: int, received: int | None) -> ItemQuantities:
    """
    Quantities for a new line. short is always derived server-side.

    received defaults to the full ordered quantity when omitted.
    """
    if total_quantity < 0:
        raise ValidationError("totalQuantity must be >= 0")
    if received is None:
        received = total_quantity
    if received < 0:
        raise ValidationError("received must be >= 0")
    if received > total_quantity:
        raise ValidationError(
            f"received ({received}) cannot exceed totalQuantity ({total_quantity})"
        )
    return ItemQuantities(
        total_quantity=total_quantity,
        received=received,
        short=total_quantity - received,
        rejected=0,
    )


def move_received_to_rejected(current: ItemQuantities, quantity: int) -> ItemQuantities:
    if quantity <= 0:
        raise ValidationError("quantity must be greater than 0")
    if quantity > current.received:
        raise ValidationError(
            f"Cannot move {quantity} to rejected: only {current.received} received",
            details={"available": current.received, "requested": quantity},
        )
    return replace(
        current,
        received=current.received - quantity,
        rejected=current.rejected + quantity,
    )


def move_short_to_rejected(current: ItemQuantities, quantity: int | None = None) -> ItemQuantities:
    """Move short units to rejected. quantity=None moves everything still short."""
    if quantity is None:
        quantity = current.short
    if quantity <= 0:
        raise ValidationError("No short quantity to move" if current.short == 0 else "quantity must be greater than 0")
    if quantity > current.short:
        raise ValidationError(
            f"Cannot move {quantity} to rejected: only {current.short} short",
            details={"available": current.short, "requested": quantity},
        )
    return replace(
        current,
        short=current.short - quantity,
        rejected=current.rejected + quantity,
    )


def apply_point_update(
    current: ItemQuantities,
    *,
    short: int | None = None,
    rejected: int | None = None,
) -> ItemQuantities:
    """
    Overwrite short and/or rejected. received is never touched here.

    The result must keep received + short + rejected <= total_quantity.
    """
    new_short = current.short if short is None else short
    new_rejected = current.rejected if rejected is None else rejected

    if new_short < 0:
        raise ValidationError("short must be >= 0")
    if new_rejected < 0:
        raise ValidationError("rejected must be >= 0")

    updated = replace(current, short=new_short, rejected=new_rejected)
    if updated.arrived < 0:
        raise ValidationError(
            "received + short + rejected cannot exceed totalQuantity",
            details={
                "totalQuantity": current.total_quantity,
                "received": current.received,
                "short": new_short,
                "rejected": new_rejected,
            },
        )
    return updated


@dataclass(frozen=True)
class LineTotals:
    total_value_excl_gst: Decimal
    gst_amount: Decimal
    total_value_incl_gst: Decimal


def line_totals(total_quantity: int, unit_price: Decimal, gst_percentage: Decimal) -> LineTotals:
    """excl = qty * price; gst = excl * pct / 100; incl = excl + gst (2 places, half-up)."""
    excl = (Decimal(total_quantity) * unit_price).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    gst = (excl * gst_percentage / HUNDRED).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    return LineTotals(
        total_value_excl_gst=excl,
        gst_amount=gst,
        total_value_incl_gst=excl + gst,
    )


def short_report_status(short: int, arrived: int) -> str:
    if short == 0:
        return "Received Back"
    if arrived > 0:
        return "Partially Received"
    return "Pending"


def rejected_net(quantity: int, sent_to_vendor: int, received_back: int, scrapped: int) -> int:
    return max(0, quantity - sent_to_vendor - received_back - scrapped)
