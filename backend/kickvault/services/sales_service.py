"""
Sales Service - checkout recording, history and refunds

WHY: A sale freezes everything needed to explain it later: line prices,
costs, the payment type used (snapshot), the discount, and how the net
profit was split between avatars.

TOTALS (all cents, computed server-side):
- subtotal      = sum of sold prices
- discount      = min(requested discount, subtotal)
- payment fee   = fee_value% of subtotal (percent) or fee_value (fixed)
- total amount  = subtotal - discount (+ fee when applies_to == "cost")
- total cost    = store unit costs + consignor payouts (+ fee when "cost")
- net profit    = per line (store unit: sold - cost; consigned unit: store
                  commission) - discount (- fee when applies_to == "profit")

CONSIGNMENT: Selling a consignor-owned unit creates a pending
ConsignmentSale row with the payout split frozen at sale time.

REFUNDS: Units go back to Available (no quota check) and pending
consignment rows are cancelled. A sale whose consignment rows were already
paid out cannot be refunded.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..errors import ValidationError, NotFoundError, ConflictError
from ..models import (
    Sale, SaleItem, SaleProfitDistribution, Variant, Avatar, PaymentType,
    Customer, ConsignmentSale, Consignor, ProfitTemplate,
)
from ..validation import to_cents, to_decimal
from kickvault.time_utils import today, utcnow, parse_iso_date
from .concurrency import lock_for_update
from .payout_service import calculate_for_consignor
from .inventory_service import restore_after_refund


HUNDRED = Decimal("100")
SELLABLE_STATUSES = ("Available", "Reserved", "PreOrder")


# --- Profit distribution ----------------------------------------------------


@dataclass(frozen=True)
class ProfitShare:
    avatar_id: int
    percentage: Decimal


def validate_profit_distribution(entries) -> list[ProfitShare]:
    """
    Check a list of {avatarId, percentage} entries.

    Rules (each failure names itself):
    - the list is not empty
    - every entry has a non-empty avatarId
    - percentages are numbers >= 0
    - percentages sum to exactly 100
    """
    if not isinstance(entries, list) or not entries:
        raise ValidationError("Profit distribution must contain at least one avatar")

    shares: list[ProfitShare] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValidationError(f"Profit distribution entry {index} must be an object")

        avatar_id = entry.get("avatarId")
        if avatar_id is None or (isinstance(avatar_id, str) and not avatar_id.strip()):
            raise ValidationError("Each profit distribution entry must have an avatar selected")
        try:
            avatar_id = int(avatar_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid avatar id: {avatar_id}")

        percentage = to_decimal(entry.get("percentage"), "percentage")
        if percentage < 0:
            raise ValidationError("Profit distribution percentages cannot be negative")
        shares.append(ProfitShare(avatar_id=avatar_id, percentage=percentage))

    total = sum((s.percentage for s in shares), Decimal("0"))
    if total != HUNDRED:
        raise ValidationError(
            f"Profit distribution must total 100% (currently {total.normalize():f}%)",
            details={"total_percentage": float(total)},
        )
    return shares


def split_profit(net_profit_cents: int, shares: list[ProfitShare]) -> list[int]:
    """Amount per share; the last share absorbs rounding so amounts sum to net profit."""
    amounts: list[int] = []
    for share in shares[:-1]:
        amount = (Decimal(net_profit_cents) * share.percentage / HUNDRED).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        amounts.append(int(amount))
    amounts.append(net_profit_cents - sum(amounts))
    return amounts


# --- Totals -----------------------------------------------------------------


@dataclass(frozen=True)
class LineFigures:
    sold_price_cents: int
    cost_price_cents: int
    consignor_payout_cents: int | None = None  # None for store-owned units
    store_commission_cents: int | None = None


@dataclass(frozen=True)
class SaleTotals:
    subtotal_cents: int
    discount_cents: int
    payment_fee_cents: int
    total_amount_cents: int
    total_cost_cents: int
    net_profit_cents: int


def compute_payment_fee(subtotal_cents: int, fee_type: str | None, fee_value) -> int:
    if fee_type == "percent":
        fee = Decimal(subtotal_cents) * Decimal(str(fee_value or 0)) / HUNDRED
    elif fee_type == "fixed":
        fee = Decimal(str(fee_value or 0)) * HUNDRED
    else:
        return 0
    return int(fee.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_totals(
    lines: list[LineFigures],
    *,
    discount_cents: int = 0,
    fee_type: str | None = None,
    fee_value=0,
    fee_applies_to: str = "profit",
) -> SaleTotals:
    """Pure checkout arithmetic, see module docstring."""
    subtotal = sum(line.sold_price_cents for line in lines)
    discount = min(max(discount_cents, 0), subtotal)
    fee = compute_payment_fee(subtotal, fee_type, fee_value)

    line_profit = 0
    cost = 0
    for line in lines:
        if line.consignor_payout_cents is None:
            line_profit += line.sold_price_cents - line.cost_price_cents
            cost += line.cost_price_cents
        else:
            line_profit += line.store_commission_cents
            cost += line.consignor_payout_cents

    total_amount = subtotal - discount
    net_profit = line_profit - discount
    if fee_applies_to == "cost":
        total_amount += fee
        cost += fee
    else:
        net_profit -= fee

    return SaleTotals(
        subtotal_cents=subtotal,
        discount_cents=discount,
        payment_fee_cents=fee,
        total_amount_cents=total_amount,
        total_cost_cents=cost,
        net_profit_cents=net_profit,
    )


# --- Recording --------------------------------------------------------------


def _parse_items(items) -> list[tuple[str, int]]:
    if not isinstance(items, list) or not items:
        raise ValidationError("A sale must contain at least one item")

    parsed: list[tuple[str, int]] = []
    errors: list[str] = []
    seen: set[str] = set()
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not item.get("variantId"):
            errors.append(f"items[{index}].variantId is required")
            continue
        variant_id = str(item["variantId"])
        if variant_id in seen:
            errors.append(f"items[{index}]: variant {variant_id} appears more than once")
            continue
        seen.add(variant_id)
        try:
            parsed.append((variant_id, to_cents(item.get("soldPrice"), f"items[{index}].soldPrice")))
        except ValidationError as e:
            errors.append(e.message)

    if errors:
        raise ValidationError("Invalid sale items", errors=errors)
    return parsed


def _resolve_payment_type(owner_id: int, payment_type_id) -> PaymentType | None:
    if payment_type_id in (None, ""):
        return None
    payment_type = db.session.query(PaymentType).filter_by(id=payment_type_id, owner_id=owner_id).first()
    if payment_type is None:
        raise ValidationError("Payment type not found")
    return payment_type


def require_owned_avatars(owner_id: int, shares: list[ProfitShare]) -> None:
    ids = {s.avatar_id for s in shares}
    owned = {
        row[0] for row in db.session.query(Avatar.id).filter(
            Avatar.owner_id == owner_id, Avatar.id.in_(ids)
        ).all()
    }
    missing = sorted(ids - owned)
    if missing:
        raise ValidationError("Unknown avatar in profit distribution", details={"avatar_ids": missing})


def _template_shares(owner_id: int, template_id) -> list[ProfitShare]:
    template = db.session.query(ProfitTemplate).filter_by(id=template_id, owner_id=owner_id).first()
    if template is None:
        raise ValidationError("Profit template not found")
    return [ProfitShare(avatar_id=item.avatar_id, percentage=Decimal(item.percentage)) for item in template.items]


def _resolve_shares(owner_id: int, raw, template_id=None) -> list[ProfitShare]:
    # An explicit distribution wins over a template
    if raw is None and template_id not in (None, ""):
        return _template_shares(owner_id, template_id)
    if raw is None:
        main = db.session.query(Avatar).filter_by(owner_id=owner_id, avatar_type="Main").first()
        if main is None:
            raise ValidationError("Profit distribution is required")
        return [ProfitShare(avatar_id=main.id, percentage=HUNDRED)]

    shares = validate_profit_distribution(raw)
    require_owned_avatars(owner_id, shares)
    return shares


def record_sale(*, owner_id: int, payload: dict) -> Sale:
    """
    Record a checkout.

    Validates items, payment type, customer and profit distribution, then
    in one transaction: writes the sale with its items and distribution,
    marks the units Sold, and creates pending ConsignmentSale rows for
    consignor-owned units.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    items = _parse_items(payload.get("items"))

    discount_raw = payload.get("discount", payload.get("totalDiscount"))
    discount_cents = 0 if discount_raw in (None, "") else to_cents(discount_raw, "discount")

    sale_date = today()
    if payload.get("saleDate"):
        try:
            sale_date = parse_iso_date(str(payload["saleDate"]))
        except ValueError:
            raise ValidationError("saleDate must be an ISO-8601 date")

    payment_type = _resolve_payment_type(owner_id, payload.get("paymentTypeId"))
    shares = _resolve_shares(owner_id, payload.get("profitDistribution"), payload.get("profitTemplateId"))

    customer = None
    if payload.get("customerId") not in (None, ""):
        customer = db.session.query(Customer).filter_by(
            id=payload["customerId"], owner_id=owner_id
        ).first()
        if customer is None:
            raise ValidationError("Customer not found")

    variant_ids = [variant_id for variant_id, _price in items]
    variants = lock_for_update(
        db.session.query(Variant).filter(Variant.owner_id == owner_id, Variant.id.in_(variant_ids))
    ).all()
    by_id = {v.id: v for v in variants}

    errors = []
    for variant_id in variant_ids:
        variant = by_id.get(variant_id)
        if variant is None:
            errors.append(f"Variant {variant_id} not found")
        elif variant.is_archived:
            errors.append(f"Variant {variant_id} is archived")
        elif variant.status not in SELLABLE_STATUSES:
            errors.append(f"Variant {variant_id} is not available for sale (status {variant.status})")
    if errors:
        raise ValidationError("Some items cannot be sold", errors=errors)

    lines: list[LineFigures] = []
    splits = {}
    for variant_id, sold_cents in items:
        variant = by_id[variant_id]
        if variant.owner_type == "consignor" and variant.consignor_id is not None:
            consignor = db.session.get(Consignor, variant.consignor_id)
            split = calculate_for_consignor(
                consignor,
                sale_price_cents=sold_cents,
                cost_price_cents=variant.cost_price_cents,
            )
            splits[variant_id] = (consignor, split)
            lines.append(LineFigures(
                sold_price_cents=sold_cents,
                cost_price_cents=variant.cost_price_cents,
                consignor_payout_cents=split.consignor_payout_cents,
                store_commission_cents=split.store_commission_cents,
            ))
        else:
            lines.append(LineFigures(sold_price_cents=sold_cents, cost_price_cents=variant.cost_price_cents))

    totals = compute_totals(
        lines,
        discount_cents=discount_cents,
        fee_type=payment_type.fee_type if payment_type else None,
        fee_value=payment_type.fee_value if payment_type else 0,
        fee_applies_to=payment_type.applies_to if payment_type else "profit",
    )

    sale = Sale(
        owner_id=owner_id,
        sale_date=sale_date,
        customer_id=customer.id if customer else None,
        customer_name=(customer.name if customer else (payload.get("customerName") or None)),
        customer_phone=(customer.phone if customer else (payload.get("customerPhone") or None)),
        subtotal_cents=totals.subtotal_cents,
        discount_cents=totals.discount_cents,
        payment_fee_cents=totals.payment_fee_cents,
        total_amount_cents=totals.total_amount_cents,
        total_cost_cents=totals.total_cost_cents,
        net_profit_cents=totals.net_profit_cents,
        payment_type=_payment_type_snapshot(payment_type, totals.payment_fee_cents),
        status="completed",
    )
    db.session.add(sale)
    db.session.flush()

    for variant_id, sold_cents in items:
        variant = by_id[variant_id]
        db.session.add(SaleItem(
            sale_id=sale.id,
            variant_id=variant.id,
            sold_price_cents=sold_cents,
            cost_price_cents=variant.cost_price_cents,
        ))
        variant.status = "Sold"

        if variant_id in splits:
            consignor, split = splits[variant_id]
            db.session.add(ConsignmentSale(
                owner_id=owner_id,
                sale_id=sale.id,
                variant_id=variant.id,
                consignor_id=consignor.id,
                sale_price_cents=sold_cents,
                commission_rate=consignor.commission_rate,
                payout_method_used=split.payout_method,
                store_commission_cents=split.store_commission_cents,
                consignor_payout_cents=split.consignor_payout_cents,
                payout_status="pending",
            ))
            if split.is_store_loss:
                current_app.logger.warning(
                    "Consignment sale of variant %s leaves store commission at %d cents",
                    variant.id, split.store_commission_cents,
                )

    for share, amount in zip(shares, split_profit(totals.net_profit_cents, shares)):
        db.session.add(SaleProfitDistribution(
            sale_id=sale.id,
            avatar_id=share.avatar_id,
            percentage=share.percentage,
            amount_cents=amount,
        ))

    db.session.commit()
    current_app.logger.info(
        "Recorded sale %s for owner %s: %d item(s), total %d cents",
        sale.id, owner_id, len(items), totals.total_amount_cents,
    )
    return sale


def _payment_type_snapshot(payment_type: PaymentType | None, fee_cents: int) -> dict | None:
    if payment_type is None:
        return None
    return {
        "id": payment_type.id,
        "name": payment_type.name,
        "fee_type": payment_type.fee_type,
        "fee_value": float(payment_type.fee_value or 0),
        "fee_amount_cents": fee_cents,
        "applies_to": payment_type.applies_to,
    }


# --- Reads --------------------------------------------------------------------


def get_sale(owner_id: int, sale_id: int) -> Sale:
    sale = db.session.query(Sale).filter_by(id=sale_id, owner_id=owner_id).first()
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def _date_filtered(query, start_date, end_date):
    if start_date is not None:
        query = query.filter(Sale.sale_date >= start_date)
    if end_date is not None:
        query = query.filter(Sale.sale_date <= end_date)
    return query


def list_sales(
    owner_id: int,
    *,
    start_date=None,
    end_date=None,
    customer_id: int | None = None,
    status: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> dict:
    query = db.session.query(Sale).filter(Sale.owner_id == owner_id)
    query = _date_filtered(query, start_date, end_date)
    if customer_id is not None:
        query = query.filter(Sale.customer_id == customer_id)
    if status:
        query = query.filter(Sale.status == status)

    per_page = min(max(per_page, 1), 100)
    page = max(page, 1)
    total = query.count()
    sales = (
        query.order_by(Sale.sale_date.desc(), Sale.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    return {
        "items": [s.to_dict() for s in sales],
        "count": len(sales),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_sales_stats(owner_id: int, *, start_date=None, end_date=None) -> dict:
    """Aggregates over completed (not refunded) sales."""
    base = db.session.query(Sale).filter(Sale.owner_id == owner_id, Sale.status == "completed")
    base = _date_filtered(base, start_date, end_date)

    count, revenue, profit, discount, fees, cost = base.with_entities(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_amount_cents), 0),
        func.coalesce(func.sum(Sale.net_profit_cents), 0),
        func.coalesce(func.sum(Sale.discount_cents), 0),
        func.coalesce(func.sum(Sale.payment_fee_cents), 0),
        func.coalesce(func.sum(Sale.total_cost_cents), 0),
    ).one()

    items_query = (
        db.session.query(func.count(SaleItem.id))
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(Sale.owner_id == owner_id, Sale.status == "completed")
    )
    items_sold = _date_filtered(items_query, start_date, end_date).scalar() or 0

    refunded = _date_filtered(
        db.session.query(func.count(Sale.id)).filter(Sale.owner_id == owner_id, Sale.status == "refunded"),
        start_date, end_date,
    ).scalar() or 0

    count = int(count or 0)
    return {
        "sales_count": count,
        "items_sold": int(items_sold),
        "refunded_count": int(refunded),
        "total_revenue_cents": int(revenue),
        "total_cost_cents": int(cost),
        "net_profit_cents": int(profit),
        "total_discount_cents": int(discount),
        "total_fees_cents": int(fees),
        "average_sale_cents": int(revenue) // count if count else 0,
    }


# --- Refunds ------------------------------------------------------------------


def refund_sale(*, owner_id: int, sale_id: int) -> Sale:
    sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id, owner_id=owner_id)).first()
    if sale is None:
        raise NotFoundError("Sale not found")
    if sale.status == "refunded":
        raise ConflictError("Sale has already been refunded")

    consignments = db.session.query(ConsignmentSale).filter_by(sale_id=sale.id).all()
    paid = [c.id for c in consignments if c.payout_status == "paid"]
    if paid:
        raise ConflictError(
            "Sale includes consignment items that were already paid out",
            details={"consignment_sale_ids": paid},
        )

    restore_after_refund([item.variant for item in sale.items if item.variant is not None])
    for consignment in consignments:
        consignment.payout_status = "cancelled"

    sale.status = "refunded"
    sale.refunded_at = utcnow()
    db.session.commit()

    current_app.logger.info("Refunded sale %s for owner %s", sale.id, owner_id)
    return sale
