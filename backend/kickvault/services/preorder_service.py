"""
Pre-order Service

A pre-order reserves a product/size for a customer before the owner has
the pair. Pre-orders are numbered per owner (pre_order_no) and move
through:

    pending -> confirmed -> completed      (completed only via convert)
    pending/confirmed -> canceled | voided

CONVERSION: when the pair arrives, convert() mints exactly one unit for
the pre-order's product and size through the regular serial allocator,
links it via variant_id and marks the pre-order completed, all in one
transaction. A conversion into Available status counts against the plan
quota like any other new unit.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ValidationError, ConflictError, NotFoundError
from ..models import PreOrder, Customer, Product, User, PREORDER_STATUSES, OPEN_PREORDER_STATUSES
from ..validation import to_cents
from kickvault.time_utils import today, parse_iso_date
from .concurrency import run_with_retry, is_unique_violation
from .plan_service import check_variant_quota
from .serial_service import allocate_serial_range
from .inventory_service import VariantTemplate, insert_with_serial_retry, materialize_variants

CONVERTIBLE_UNIT_STATUSES = ("Available", "Reserved", "PreOrder")
DEFAULT_LOCATION = "Store"
DEFAULT_CONDITION = "New"


def list_preorders(owner_id: int, *, status: str | None = None, available: bool = False) -> list[PreOrder]:
    query = db.session.query(PreOrder).filter(PreOrder.owner_id == owner_id)
    if available:
        query = query.filter(PreOrder.status.in_(OPEN_PREORDER_STATUSES))
    elif status:
        if status not in PREORDER_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(PREORDER_STATUSES)}")
        query = query.filter(PreOrder.status == status)
    return query.order_by(PreOrder.pre_order_no.desc()).all()


def get_preorder(owner_id: int, preorder_id: int) -> PreOrder:
    preorder = db.session.query(PreOrder).filter_by(id=preorder_id, owner_id=owner_id).first()
    if preorder is None:
        raise NotFoundError("Pre-order not found")
    return preorder


def _optional_cents(payload: dict, key: str, errors: list[str]) -> int:
    raw = payload.get(key)
    if raw in (None, ""):
        return 0
    try:
        return to_cents(raw, key)
    except ValidationError as e:
        errors.append(e.message)
        return 0


def _optional_date(payload: dict, key: str, errors: list[str]):
    raw = payload.get(key)
    if raw in (None, ""):
        return None
    try:
        return parse_iso_date(str(raw))
    except ValueError:
        errors.append(f"{key} must be an ISO-8601 date")
        return None


def _next_preorder_no(owner_id: int) -> int:
    current = db.session.query(func.max(PreOrder.pre_order_no)).filter(PreOrder.owner_id == owner_id).scalar()
    return (current or 0) + 1


def create_preorder(*, owner_id: int, payload: dict) -> PreOrder:
    """
    Body: customerId, productId, size (required); sizeLabel, costPrice,
    totalAmount, downPayment, expectedDeliveryDate, notes (optional).
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors: list[str] = []
    size = str(payload.get("size") or "").strip()
    if not size:
        errors.append("size is required")
    elif len(size) > 16:
        errors.append("size must be at most 16 characters")

    customer = None
    if payload.get("customerId") in (None, ""):
        errors.append("customerId is required")
    else:
        customer = db.session.query(Customer).filter_by(
            id=payload["customerId"], owner_id=owner_id, is_archived=False
        ).first()
        if customer is None:
            errors.append("Customer not found")

    product = None
    if payload.get("productId") in (None, ""):
        errors.append("productId is required")
    else:
        product = db.session.query(Product).filter_by(id=payload["productId"], owner_id=owner_id).first()
        if product is None:
            errors.append("Product not found")

    cost_cents = _optional_cents(payload, "costPrice", errors)
    total_cents = _optional_cents(payload, "totalAmount", errors)
    down_cents = _optional_cents(payload, "downPayment", errors)
    if down_cents > total_cents:
        errors.append("downPayment cannot exceed totalAmount")
    expected = _optional_date(payload, "expectedDeliveryDate", errors)

    if errors:
        raise ValidationError("Invalid pre-order", errors=errors)

    def _op():
        preorder = PreOrder(
            owner_id=owner_id,
            pre_order_no=_next_preorder_no(owner_id),
            customer_id=customer.id,
            product_id=product.id,
            size=size,
            size_label=str(payload.get("sizeLabel") or "US")[:16],
            status="pending",
            cost_price_cents=cost_cents,
            total_amount_cents=total_cents,
            down_payment_cents=down_cents,
            expected_delivery_date=expected,
            notes=payload.get("notes"),
        )
        db.session.add(preorder)
        db.session.commit()
        return preorder

    return run_with_retry(
        _op,
        exponential=False,
        retry_on=(IntegrityError,),
        should_retry=is_unique_violation,
        label="pre-order insert",
    )


def update_preorder(*, owner_id: int, preorder_id: int, payload: dict) -> PreOrder:
    """Change status (pending, confirmed, canceled, voided), notes or expected date of an open pre-order."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    preorder = get_preorder(owner_id, preorder_id)
    if preorder.status not in OPEN_PREORDER_STATUSES:
        raise ConflictError(f"Pre-order is {preorder.status} and can no longer be changed")

    errors: list[str] = []
    if "status" in payload:
        status = payload.get("status")
        if status == "completed":
            errors.append("Pre-orders are completed by converting them into inventory")
        elif status not in PREORDER_STATUSES:
            errors.append(f"status must be one of {', '.join(PREORDER_STATUSES)}")
        else:
            preorder.status = status
    if "expectedDeliveryDate" in payload:
        preorder.expected_delivery_date = _optional_date(payload, "expectedDeliveryDate", errors)
    if "notes" in payload:
        preorder.notes = payload.get("notes")

    if errors:
        db.session.rollback()
        raise ValidationError("Invalid pre-order update", errors=errors)
    db.session.commit()
    return preorder


def convert_preorder(*, owner: User, preorder_id: int, status: str = "Available") -> PreOrder:
    """
    Turn an open pre-order into one serial-numbered unit.

    Raises:
        ValidationError: unit status not allowed
        ConflictError: pre-order already completed, canceled or voided
        QuotaExceededError: plan ceiling reached (Available units only)
        SerialAllocationError: serial still colliding after bounded retries
    """
    if status not in CONVERTIBLE_UNIT_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(CONVERTIBLE_UNIT_STATUSES)}")

    preorder = get_preorder(owner.id, preorder_id)
    if preorder.status not in OPEN_PREORDER_STATUSES:
        raise ConflictError(f"Pre-order is {preorder.status} and cannot be converted")

    if status == "Available":
        check_variant_quota(owner, 1)

    template = VariantTemplate(
        size=preorder.size,
        size_label=preorder.size_label or "US",
        location=DEFAULT_LOCATION,
        condition=DEFAULT_CONDITION,
        status=status,
        date_added=today(),
        cost_price_cents=preorder.cost_price_cents or 0,
        sale_price_cents=preorder.total_amount_cents or None,
    )
    preorder_pk = preorder.id

    def _op():
        target = get_preorder(owner.id, preorder_pk)
        start = allocate_serial_range(owner.id, 1)
        (variant,) = materialize_variants(
            owner_id=owner.id,
            product=target.product,
            template=template,
            quantity=1,
            start_serial=start,
        )
        db.session.add(variant)
        db.session.flush()
        target.variant_id = variant.id
        target.status = "completed"
        target.completed_date = today()
        db.session.commit()
        return target

    converted = insert_with_serial_retry(_op)
    current_app.logger.info(
        "Converted pre-order #%s for owner %s into variant %s",
        converted.pre_order_no, owner.id, converted.variant_id,
    )
    return converted
