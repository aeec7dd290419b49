# Overview: Consignor payout split calculation.

"""
Payout Service - splits a consignment sale between consignor and store.

All amounts are integer cents. Percentages are Decimals (0-100).

INVARIANT: sale_price_cents == consignor_payout_cents + store_commission_cents
for every payout method. The consignor payout is computed first (rounded
half-up to the cent) and the store commission is always the remainder.

A store commission below zero is reported as-is and flagged with
is_store_loss; it is never clamped.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from ..errors import ValidationError
from ..models import PAYOUT_METHODS

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PayoutSplit:
    consignor_payout_cents: int
    store_commission_cents: int
    payout_method: str

    @property
    def is_store_loss(self) -> bool:
        return self.store_commission_cents < 0

    def to_dict(self) -> dict:
        return {
            "consignor_payout_cents": self.consignor_payout_cents,
            "store_commission_cents": self.store_commission_cents,
            "payout_method": self.payout_method,
            "is_store_loss": self.is_store_loss,
        }


def _round_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _as_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_payout(
    *,
    sale_price_cents: int,
    cost_price_cents: int,
    payout_method: str,
    commission_rate=None,
    fixed_markup_cents: int | None = None,
    markup_percentage=None,
) -> PayoutSplit:
    """
    Pure payout calculation.

    percentage_split      payout = sale * (1 - commission_rate / 100)
    cost_price            payout = cost
    cost_plus_fixed       payout = cost + fixed_markup
    cost_plus_percentage  payout = cost * (1 + markup_percentage / 100)

    Raises ValidationError for an unknown payout method.
    """
    if payout_method == "percentage_split":
        rate = _as_decimal(commission_rate)
        payout = _round_cents(Decimal(sale_price_cents) * (HUNDRED - rate) / HUNDRED)
    elif payout_method == "cost_price":
        payout = int(cost_price_cents)
    elif payout_method == "cost_plus_fixed":
        payout = int(cost_price_cents) + int(fixed_markup_cents or 0)
    elif payout_method == "cost_plus_percentage":
        markup = _as_decimal(markup_percentage)
        payout = _round_cents(Decimal(cost_price_cents) * (HUNDRED + markup) / HUNDRED)
    else:
        raise ValidationError(
            f"Unknown payout method: {payout_method}",
            details={"allowed": list(PAYOUT_METHODS)},
        )

    return PayoutSplit(
        consignor_payout_cents=payout,
        store_commission_cents=int(sale_price_cents) - payout,
        payout_method=payout_method,
    )


def calculate_for_consignor(consignor, *, sale_price_cents: int, cost_price_cents: int) -> PayoutSplit:
    return calculate_payout(
        sale_price_cents=sale_price_cents,
        cost_price_cents=cost_price_cents,
        payout_method=consignor.payout_method,
        commission_rate=consignor.commission_rate,
        fixed_markup_cents=consignor.fixed_markup_cents,
        markup_percentage=consignor.markup_percentage,
    )


def validate_payout_settings(
    payout_method: str | None,
    commission_rate=None,
    fixed_markup_cents: int | None = None,
    markup_percentage=None,
) -> list[str]:
    """Return field errors for a consignor's payout configuration (empty when valid)."""
    errors: list[str] = []

    if payout_method not in PAYOUT_METHODS:
        errors.append(f"payout_method must be one of: {', '.join(PAYOUT_METHODS)}")
        return errors

    if payout_method == "percentage_split":
        if commission_rate is None:
            errors.append("commission_rate is required for percentage_split")
        elif not (0 <= _as_decimal(commission_rate) <= HUNDRED):
            errors.append("commission_rate must be between 0 and 100")
    elif commission_rate is not None and not (0 <= _as_decimal(commission_rate) <= HUNDRED):
        errors.append("commission_rate must be between 0 and 100")

    if payout_method == "cost_plus_fixed":
        if fixed_markup_cents is None:
            errors.append("fixed_markup_cents is required for cost_plus_fixed")
        elif fixed_markup_cents < 0:
            errors.append("fixed_markup_cents must be >= 0")

    if payout_method == "cost_plus_percentage":
        if markup_percentage is None:
            errors.append("markup_percentage is required for cost_plus_percentage")
        elif _as_decimal(markup_percentage) < 0:
            errors.append("markup_percentage must be >= 0")

    return errors
