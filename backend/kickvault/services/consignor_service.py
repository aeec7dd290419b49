# Overview: Service-layer operations for consignors; encapsulates business logic and database work.

"""
Consignor Service

MULTI-TENANT: Consignors, their consignment sales and payout transactions
are scoped by owner_id. A consignor of another owner is "not found".

LIFECYCLE:
- Archive (soft delete) is refused while the consignor still owns units.
- Permanent delete is only allowed for archived consignors. Any units still
  pointing at them are handed to the store first.
- Restore clears is_archived.

PAYOUTS:
- Each sold consignor unit produces one ConsignmentSale (pending).
- process_payout settles pending sales oldest-first. A sale is paid only
  when the remaining amount covers it in full; partial sales are never
  split. The amounts settled are recorded on a PayoutTransaction.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func

from flask import current_app

from ..extensions import db
from ..errors import ValidationError, NotFoundError, ConflictError
from ..models import (
    Consignor, ConsignmentSale, PayoutTransaction, PayoutTransactionItem,
    Variant, User,
)
from kickvault.time_utils import today
from .concurrency import lock_for_update
from .payout_service import validate_payout_settings


PORTAL_PASSWORD_MIN_LENGTH = 6
DEFAULT_COMMISSION_RATE = Decimal("20")


def get_consignor(owner_id: int, consignor_id: int) -> Consignor:
    consignor = db.session.query(Consignor).filter_by(id=consignor_id, owner_id=owner_id).first()
    if consignor is None:
        raise NotFoundError("Consignor not found")
    return consignor


def require_active_consignor(owner_id: int, consignor_id: int) -> Consignor:
    """Consignor that may receive new units: owned by owner_id and not archived."""
    consignor = db.session.query(Consignor).filter_by(id=consignor_id, owner_id=owner_id).first()
    if consignor is None or consignor.is_archived:
        raise ValidationError(
            "Validation failed",
            errors=[f"Consignor {consignor_id} not found or archived"],
        )
    return consignor


# --- Stats ----------------------------------------------------------------


def _sales_totals(owner_id: int, consignor_ids: list[int]) -> dict[int, dict]:
    """Per-consignor sale and payout totals in cents."""
    totals = {cid: {
        "total_sales_cents": 0,
        "total_payout_cents": 0,
        "pending_payout_cents": 0,
        "paid_payout_cents": 0,
        "sold_variants": 0,
    } for cid in consignor_ids}
    if not consignor_ids:
        return totals

    rows = (
        db.session.query(
            ConsignmentSale.consignor_id,
            ConsignmentSale.payout_status,
            func.count(ConsignmentSale.id),
            func.coalesce(func.sum(ConsignmentSale.sale_price_cents), 0),
            func.coalesce(func.sum(ConsignmentSale.consignor_payout_cents), 0),
        )
        .filter(
            ConsignmentSale.owner_id == owner_id,
            ConsignmentSale.consignor_id.in_(consignor_ids),
            ConsignmentSale.payout_status != "cancelled",
        )
        .group_by(ConsignmentSale.consignor_id, ConsignmentSale.payout_status)
        .all()
    )
    for consignor_id, status, count, sales, payout in rows:
        entry = totals[consignor_id]
        entry["sold_variants"] += int(count)
        entry["total_sales_cents"] += int(sales)
        entry["total_payout_cents"] += int(payout)
        if status == "pending":
            entry["pending_payout_cents"] += int(payout)
        elif status == "paid":
            entry["paid_payout_cents"] += int(payout)
    return totals


def _variant_counts(owner_id: int, consignor_ids: list[int]) -> dict[int, dict]:
    counts = {cid: {"total_variants": 0, "available_variants": 0} for cid in consignor_ids}
    if not consignor_ids:
        return counts

    rows = (
        db.session.query(Variant.consignor_id, Variant.status, func.count(Variant.id))
        .filter(
            Variant.owner_id == owner_id,
            Variant.owner_type == "consignor",
            Variant.consignor_id.in_(consignor_ids),
            Variant.is_archived == False,  # noqa: E712
        )
        .group_by(Variant.consignor_id, Variant.status)
        .all()
    )
    for consignor_id, status, count in rows:
        counts[consignor_id]["total_variants"] += int(count)
        if status == "Available":
            counts[consignor_id]["available_variants"] += int(count)
    return counts


def _with_stats(owner_id: int, consignors: list[Consignor]) -> list[dict]:
    ids = [c.id for c in consignors]
    sales = _sales_totals(owner_id, ids)
    variants = _variant_counts(owner_id, ids)
    items = []
    for c in consignors:
        data = c.to_dict()
        data.update(sales[c.id])
        data.update(variants[c.id])
        items.append(data)
    return items


def list_consignors(
    owner_id: int,
    *,
    status: str = "all",
    search: str | None = None,
    archived: bool = False,
    page: int = 1,
    limit: int = 10,
) -> dict:
    """Paginated consignor list with per-consignor sales and inventory stats."""
    query = db.session.query(Consignor).filter(
        Consignor.owner_id == owner_id,
        Consignor.is_archived == archived,
    )
    if status and status != "all":
        query = query.filter(Consignor.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Consignor.name.ilike(pattern),
            Consignor.email.ilike(pattern),
            Consignor.phone.ilike(pattern),
        ))

    limit = min(max(limit, 1), 100)
    page = max(page, 1)
    total = query.count()
    consignors = (
        query.order_by(Consignor.created_at.desc(), Consignor.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "consignors": _with_stats(owner_id, consignors),
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": (total + limit - 1) // limit if total else 0,
    }


def get_consignor_stats(owner_id: int, *, archived: bool = False) -> dict:
    """All consignors with stats, plus a summary across them."""
    consignors = (
        db.session.query(Consignor)
        .filter(Consignor.owner_id == owner_id, Consignor.is_archived == archived)
        .order_by(Consignor.created_at.desc(), Consignor.id.desc())
        .all()
    )
    items = _with_stats(owner_id, consignors)

    def _total(key: str) -> int:
        return sum(item[key] for item in items)

    return {
        "consignors": items,
        "summary": {
            "total_consignors": len(items),
            "active_consignors": sum(1 for item in items if item["status"] == "active"),
            "total_sales_cents": _total("total_sales_cents"),
            "total_pending_payouts_cents": _total("pending_payout_cents"),
            "total_paid_payouts_cents": _total("paid_payout_cents"),
            "total_variants": _total("total_variants"),
            "available_variants": _total("available_variants"),
            "sold_variants": _total("sold_variants"),
        },
    }


# --- CRUD -----------------------------------------------------------------


def _check_payout_settings(consignor: Consignor) -> None:
    errors = validate_payout_settings(
        consignor.payout_method,
        consignor.commission_rate,
        consignor.fixed_markup_cents,
        consignor.markup_percentage,
    )
    if errors:
        raise ValidationError("Validation failed", errors=errors)


def _apply_portal_password(consignor: Consignor, portal_password) -> None:
    from .auth_service import hash_secret

    if portal_password is None or portal_password == "":
        consignor.portal_password_hash = None
        return
    if not isinstance(portal_password, str) or len(portal_password) < PORTAL_PASSWORD_MIN_LENGTH:
        raise ValidationError(
            "Validation failed",
            errors=[f"portal_password must be at least {PORTAL_PASSWORD_MIN_LENGTH} characters"],
        )
    consignor.portal_password_hash = hash_secret(portal_password)


def create_consignor(*, owner_id: int, patch: dict, portal_password=None) -> Consignor:
    consignor = Consignor(owner_id=owner_id, status="active")
    for key, value in patch.items():
        setattr(consignor, key, value)
    if consignor.payout_method is None:
        consignor.payout_method = "percentage_split"
    if consignor.commission_rate is None:
        consignor.commission_rate = DEFAULT_COMMISSION_RATE

    _check_payout_settings(consignor)
    if portal_password is not None:
        _apply_portal_password(consignor, portal_password)

    db.session.add(consignor)
    db.session.commit()
    return consignor


def update_consignor(*, owner_id: int, consignor_id: int, patch: dict, portal_password=...) -> Consignor:
    """
    Update a consignor. portal_password: omitted (...) leaves it unchanged,
    None or "" disables portal access, any other string replaces it.
    """
    consignor = get_consignor(owner_id, consignor_id)
    for key, value in patch.items():
        setattr(consignor, key, value)

    try:
        _check_payout_settings(consignor)
        if portal_password is not ...:
            _apply_portal_password(consignor, portal_password)
    except ValidationError:
        db.session.rollback()
        raise

    db.session.commit()
    return consignor


def archive_consignor(*, owner_id: int, consignor_id: int) -> Consignor:
    consignor = get_consignor(owner_id, consignor_id)
    if consignor.is_archived:
        raise ValidationError("Consignor is already archived")

    owned = db.session.query(Variant).filter(
        Variant.owner_id == owner_id,
        Variant.consignor_id == consignor.id,
        Variant.owner_type == "consignor",
        Variant.is_archived == False,  # noqa: E712
    ).count()
    if owned:
        raise ConflictError(
            f"Cannot archive consignor with {owned} active unit(s). "
            "Reassign or archive the units first.",
            details={"variant_count": owned},
        )

    consignor.is_archived = True
    consignor.status = "inactive"
    db.session.commit()
    return consignor


def restore_consignor(*, owner_id: int, consignor_id: int) -> Consignor:
    consignor = get_consignor(owner_id, consignor_id)
    if not consignor.is_archived:
        raise ValidationError("Consignor is not archived")
    consignor.is_archived = False
    consignor.status = "active"
    db.session.commit()
    return consignor


def delete_consignor_permanently(*, owner_id: int, consignor_id: int) -> dict:
    """
    Hard-delete an archived consignor.

    Units still linked to the consignor become store-owned. Consignor with
    consignment sale history cannot be removed (the history references it).
    """
    consignor = get_consignor(owner_id, consignor_id)
    if not consignor.is_archived:
        raise ConflictError("Only archived consignors can be permanently deleted")

    history = db.session.query(ConsignmentSale).filter_by(consignor_id=consignor.id).count()
    if history:
        raise ConflictError(
            "Consignor has consignment sale history and cannot be permanently deleted",
            details={"consignment_sales": history},
        )

    variants = db.session.query(Variant).filter_by(owner_id=owner_id, consignor_id=consignor.id).all()
    for variant in variants:
        variant.owner_type = "store"
        variant.consignor_id = None

    db.session.delete(consignor)
    db.session.commit()
    current_app.logger.info(
        "Permanently deleted consignor %s for owner %s; %d unit(s) reassigned to store",
        consignor_id, owner_id, len(variants),
    )
    return {"deleted": True, "variants_reassigned": len(variants)}


def get_consignor_items(owner_id: int, consignor_id: int) -> dict:
    consignor = get_consignor(owner_id, consignor_id)
    items = (
        db.session.query(Variant)
        .filter(
            Variant.owner_id == owner_id,
            Variant.consignor_id == consignor.id,
            Variant.owner_type == "consignor",
        )
        .order_by(Variant.created_at.desc(), Variant.serial_number.desc())
        .all()
    )

    available = [v for v in items if v.status == "Available" and not v.is_archived]
    categories: dict[str, int] = {}
    for v in items:
        category = (v.product.category if v.product else None) or "Uncategorized"
        categories[category] = categories.get(category, 0) + 1

    return {
        "consignor": {"id": consignor.id, "name": consignor.name},
        "items": [v.to_dict(include_product=True) for v in items],
        "summary": {
            "total_items": len(items),
            "available_items": len(available),
            "total_value_cents": sum(v.effective_sale_price_cents for v in items),
            "available_value_cents": sum(v.effective_sale_price_cents for v in available),
            "category_breakdown": categories,
        },
    }


# --- Consignment sales and payouts ----------------------------------------


def list_consignment_sales(
    owner_id: int,
    *,
    consignor_id: int | None = None,
    payout_status: str | None = None,
) -> list[ConsignmentSale]:
    query = db.session.query(ConsignmentSale).filter(ConsignmentSale.owner_id == owner_id)
    if consignor_id is not None:
        query = query.filter(ConsignmentSale.consignor_id == consignor_id)
    if payout_status:
        query = query.filter(ConsignmentSale.payout_status == payout_status)
    return query.order_by(ConsignmentSale.created_at.desc(), ConsignmentSale.id.desc()).all()


def process_payout(
    *,
    owner_id: int,
    consignor_id: int,
    amount_cents: int,
    method: str | None = None,
    payout_date=None,
    notes: str | None = None,
) -> dict:
    """
    Pay out up to amount_cents of a consignor's pending sales.

    Pending sales are settled oldest-first while the remaining amount covers
    each one in full.

    Raises:
        ValidationError: amount <= 0, no pending sales, amount over the
            pending total, or amount smaller than the oldest pending sale
        NotFoundError: consignor missing or owned by someone else
    """
    if amount_cents <= 0:
        raise ValidationError("Invalid payout amount")

    consignor = get_consignor(owner_id, consignor_id)

    pending = lock_for_update(
        db.session.query(ConsignmentSale).filter(
            ConsignmentSale.owner_id == owner_id,
            ConsignmentSale.consignor_id == consignor.id,
            ConsignmentSale.payout_status == "pending",
        ).order_by(ConsignmentSale.created_at.asc(), ConsignmentSale.id.asc())
    ).all()
    if not pending:
        raise ValidationError("No pending payouts found for this consignor")

    total_pending = sum(s.consignor_payout_cents for s in pending)
    if amount_cents > total_pending:
        raise ValidationError(
            "Payout amount exceeds pending total",
            details={"amount_cents": amount_cents, "pending_total_cents": total_pending},
        )

    payout_date = payout_date or today()
    remaining = amount_cents
    settled: list[ConsignmentSale] = []
    for sale in pending:
        if remaining <= 0:
            break
        if remaining >= sale.consignor_payout_cents:
            settled.append(sale)
            remaining -= sale.consignor_payout_cents

    if not settled:
        raise ValidationError(
            "Payout amount does not cover any pending sale in full",
            details={"smallest_due_cents": pending[0].consignor_payout_cents},
        )

    processed = amount_cents - remaining
    transaction = PayoutTransaction(
        owner_id=owner_id,
        consignor_id=consignor.id,
        total_amount_cents=processed,
        payment_method=method,
        payout_date=payout_date,
        notes=notes,
        status="completed",
    )
    db.session.add(transaction)
    db.session.flush()

    for sale in settled:
        sale.payout_status = "paid"
        sale.payout_date = payout_date
        sale.payout_method = method
        if notes:
            sale.notes = notes
        db.session.add(PayoutTransactionItem(
            payout_transaction_id=transaction.id,
            consignment_sale_id=sale.id,
            amount_cents=sale.consignor_payout_cents,
        ))

    db.session.commit()
    current_app.logger.info(
        "Processed payout %s for consignor %s: %d cents over %d sale(s)",
        transaction.id, consignor.id, processed, len(settled),
    )

    return {
        "message": "Payout processed successfully",
        "payout_transaction_id": transaction.id,
        "processed_amount_cents": processed,
        "updated_sales": len(settled),
        "remaining_pending_cents": total_pending - processed,
        "unapplied_amount_cents": remaining,
    }


def list_payout_transactions(owner_id: int, consignor_id: int) -> list[PayoutTransaction]:
    return (
        db.session.query(PayoutTransaction)
        .filter_by(owner_id=owner_id, consignor_id=consignor_id)
        .order_by(PayoutTransaction.payout_date.desc(), PayoutTransaction.id.desc())
        .all()
    )


# --- Portal ---------------------------------------------------------------


def portal_snapshot(consignor: Consignor) -> dict:
    """Read-only view of a consignor's sales, payouts and inventory for the portal."""
    owner = db.session.get(User, consignor.owner_id)

    sales = (
        db.session.query(ConsignmentSale)
        .filter(
            ConsignmentSale.consignor_id == consignor.id,
            ConsignmentSale.payout_status != "cancelled",
        )
        .order_by(ConsignmentSale.created_at.desc(), ConsignmentSale.id.desc())
        .all()
    )
    inventory = (
        db.session.query(Variant)
        .filter(
            Variant.consignor_id == consignor.id,
            Variant.owner_type == "consignor",
            Variant.is_archived == False,  # noqa: E712
            Variant.status != "Sold",
        )
        .order_by(Variant.created_at.desc(), Variant.serial_number.desc())
        .all()
    )

    pending = sum(s.consignor_payout_cents for s in sales if s.payout_status == "pending")
    paid = sum(s.consignor_payout_cents for s in sales if s.payout_status == "paid")

    return {
        "consignor": {
            "id": consignor.id,
            "name": consignor.name,
            "email": consignor.email,
            "commission_rate": float(consignor.commission_rate) if consignor.commission_rate is not None else None,
            "payment_method": consignor.payment_method,
        },
        "currency": owner.currency if owner else "USD",
        "stats": {
            "total_sales_cents": sum(s.sale_price_cents for s in sales),
            "total_earnings_cents": sum(s.consignor_payout_cents for s in sales),
            "pending_payout_cents": pending,
            "paid_payout_cents": paid,
            "available_items": sum(1 for v in inventory if v.status == "Available"),
            "sold_items": len(sales),
            "total_items": len(inventory) + len(sales),
        },
        "sales": [s.to_dict(include_variant=True) for s in sales],
        "current_inventory": [v.to_dict(include_product=True) for v in inventory],
        "payout_history": [t.to_dict() for t in list_payout_transactions(consignor.owner_id, consignor.id)],
    }
