"""
B2B bulk pricing and order charges

Tier resolution:
- a tier matches when min_qty <= quantity <= max_qty (max_qty None = no cap)
- among matching tiers the one with the highest min_qty wins
- nothing matches (or no tiers at all): base price, no tier label

Tier tables are not validated here; a malformed tier simply never matches.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Mapping, Optional, Union

from grocery.core.config import settings

PAISE = Decimal("0.01")


@dataclass(frozen=True)
class BulkTier:
    """Quantity band with its per-unit price"""
    min_qty: int
    max_qty: Optional[int]
    price_per_unit: Decimal

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BulkTier":
        max_qty = data.get("max_qty")
        return cls(
            min_qty=int(data["min_qty"]),
            max_qty=int(max_qty) if max_qty is not None else None,
            price_per_unit=Decimal(str(data["price_per_unit"])),
        )

    def contains(self, quantity: int) -> bool:
        return quantity >= self.min_qty and (self.max_qty is None or quantity <= self.max_qty)

    @property
    def label(self) -> str:
        upper = self.max_qty if self.max_qty is not None else "∞"
        return f"Tier: {self.min_qty}-{upper} units"


@dataclass(frozen=True)
class TierPrice:
    unit_price: Decimal
    applied_tier: Optional[str]


@dataclass(frozen=True)
class NextTierInfo:
    """Upsell hint towards the next cheaper band"""
    quantity_needed: int
    price_per_unit: Decimal
    savings: Decimal

    def to_dict(self) -> dict:
        return {
            "quantity_needed": self.quantity_needed,
            "price_per_unit": float(self.price_per_unit),
            "savings": float(self.savings),
        }


TierInput = Union[BulkTier, Mapping[str, Any]]


def parse_tiers(tiers: Optional[Iterable[TierInput]]) -> List[BulkTier]:
    """Accept stored JSON dicts or BulkTier objects"""
    if not tiers:
        return []
    return [t if isinstance(t, BulkTier) else BulkTier.from_dict(t) for t in tiers]


def calculate_b2b_price(
    base_price: Union[Decimal, float, int],
    quantity: int,
    tiers: Optional[Iterable[TierInput]] = None) -> TierPrice:
    """Resolve the unit price for quantity against the tier table"""
    base = Decimal(str(base_price))
    parsed = parse_tiers(tiers)
    if not parsed:
        return TierPrice(unit_price=base, applied_tier=None)

    # highest threshold first so the most specific band wins overlaps
    for tier in sorted(parsed, key=lambda t: t.min_qty, reverse=True):
        if tier.contains(quantity):
            return TierPrice(unit_price=tier.price_per_unit, applied_tier=tier.label)

    return TierPrice(unit_price=base, applied_tier=None)


def get_next_tier_info(
    quantity: int,
    tiers: Optional[Iterable[TierInput]] = None,
    base_price: Union[Decimal, float, int] = 0) -> Optional[NextTierInfo]:
    """
    First tier above quantity and what reaching it would save.

    savings compares totals: current quantity at the current resolved price
    against the next tier's minimum quantity at its price, floored at zero.
    Below every tier the current price is base_price, so pass the product's
    B2B base price to get real savings there; the default of 0 keeps them at 0.
    """
    parsed = parse_tiers(tiers)
    if not parsed:
        return None

    current = calculate_b2b_price(base_price, quantity, parsed)

    for tier in sorted(parsed, key=lambda t: t.min_qty):
        if quantity < tier.min_qty:
            current_total = current.unit_price * quantity
            next_total = tier.price_per_unit * tier.min_qty
            savings = current_total - next_total
            return NextTierInfo(
                quantity_needed=tier.min_qty - quantity,
                price_per_unit=tier.price_per_unit,
                savings=savings if savings > 0 else Decimal("0"),
            )

    return None


def to_money(value: Union[Decimal, float, int]) -> Decimal:
    """Round to paise"""
    return Decimal(str(value)).quantize(PAISE, rounding=ROUND_HALF_UP)


def b2c_delivery_charge(subtotal: Decimal) -> Decimal:
    """Free above the threshold, flat fee otherwise"""
    if subtotal > settings.B2C_FREE_DELIVERY_ABOVE:
        return Decimal("0")
    return settings.B2C_DELIVERY_FEE


def b2b_delivery_charge(subtotal: Decimal) -> Decimal:
    """Three bands: free / reduced / full"""
    if subtotal > settings.B2B_FREE_DELIVERY_ABOVE:
        return Decimal("0")
    if subtotal >= settings.B2B_REDUCED_DELIVERY_FROM:
        return settings.B2B_REDUCED_DELIVERY_FEE
    return settings.B2B_DELIVERY_FEE


def gst_amount(subtotal: Decimal) -> Decimal:
    return to_money(subtotal * settings.GST_RATE)


def charges_for(account_type: str, subtotal: Decimal) -> dict:
    """subtotal, gst, delivery and total for a cart or order"""
    subtotal = to_money(subtotal)
    if account_type == "b2b":
        gst = gst_amount(subtotal)
        delivery = b2b_delivery_charge(subtotal)
    else:
        gst = Decimal("0")
        delivery = b2c_delivery_charge(subtotal)
    delivery = to_money(delivery)
    return {
        "subtotal": subtotal,
        "gst_amount": to_money(gst),
        "delivery_charges": delivery,
        "total_amount": to_money(subtotal + gst + delivery),
    }
