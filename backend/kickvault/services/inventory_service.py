# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/kickvault/services/inventory_service.py
"""
KickVault Inventory Invariants (authoritative)

Inventory model:
- Every physical unit is one Variant row. There is no mutable quantity
  column; counts are always derived from variant rows.
- A request to add N units mints N variants that share every field except
  id (fresh UUID) and serial_number (contiguous run from the allocator).

Add-inventory flow (one transaction):
1. Validate the whole request before touching the database.
2. Quota guard: Available units being added must fit the plan ceiling.
3. Find-or-create the product by (owner_id, sku).
4. Reserve serials and insert every variant.
5. Commit. A unique-violation on serials rolls everything back (product
   included) and the batch is retried with fresh serials.

Quota:
- Only Available, non-archived variants count.
- Restoring a variant and changing a status into Available each add one.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ValidationError, NotFoundError, SerialAllocationError
from ..models import Product, Variant, User, VARIANT_STATUSES, OWNER_TYPES
from ..validation import to_cents
from kickvault.time_utils import today, parse_iso_date
from .concurrency import run_with_retry, is_unique_violation
from .plan_service import check_variant_quota
from .serial_service import allocate_serial_range
from .consignor_service import require_active_consignor


MAX_UNITS_PER_ROW = 500


@dataclass(frozen=True)
class VariantTemplate:
    """Fields shared by every unit minted from one variantsToAdd row."""
    size: str
    size_label: str = "US"
    location: str | None = None
    condition: str | None = None
    status: str = "Available"
    date_added: date | None = None
    cost_price_cents: int = 0
    sale_price_cents: int | None = None
    owner_type: str = "store"
    consignor_id: int | None = None


@dataclass(frozen=True)
class InventoryRequest:
    product: dict
    rows: list[tuple[VariantTemplate, int]] = field(default_factory=list)

    @property
    def unit_count(self) -> int:
        return sum(quantity for _template, quantity in self.rows)

    @property
    def available_unit_count(self) -> int:
        return sum(q for t, q in self.rows if t.status == "Available")


def _clean_str(value, max_len: int) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text[:max_len]


def _parse_product_form(form, errors: list[str]) -> dict:
    if not isinstance(form, dict):
        errors.append("productForm must be an object")
        return {}

    product = {
        "sku": _clean_str(form.get("sku"), 100),
        "name": _clean_str(form.get("name"), 255),
        "brand": _clean_str(form.get("brand"), 100),
        "category": _clean_str(form.get("category"), 100),
        "size_category": _clean_str(form.get("sizeCategory"), 32),
        "image_url": _clean_str(form.get("image"), 1024),
    }
    if not product["sku"]:
        errors.append("productForm.sku is required")
    if not product["name"]:
        errors.append("productForm.name is required")

    for key, column in (("originalPrice", "cost_price_cents"), ("salePrice", "sale_price_cents")):
        raw = form.get(key)
        if raw in (None, ""):
            product[column] = 0
            continue
        try:
            product[column] = to_cents(raw, f"productForm.{key}")
        except ValidationError as e:
            errors.append(e.message)
    return product


def _parse_variant_row(index: int, row, errors: list[str]) -> tuple[VariantTemplate, int] | None:
    label = f"variantsToAdd[{index}]"
    if not isinstance(row, dict):
        errors.append(f"{label} must be an object")
        return None

    row_errors: list[str] = []

    size = _clean_str(row.get("size"), 16)
    if not size:
        row_errors.append(f"{label}.size is required")

    status = row.get("status") or "Available"
    if status not in VARIANT_STATUSES:
        row_errors.append(f"{label}.status must be one of: {', '.join(VARIANT_STATUSES)}")

    quantity = row.get("quantity", 1)
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        row_errors.append(f"{label}.quantity must be an integer")
        quantity = 0
    elif quantity < 1 or quantity > MAX_UNITS_PER_ROW:
        row_errors.append(f"{label}.quantity must be between 1 and {MAX_UNITS_PER_ROW}")

    cost_cents = 0
    if row.get("costPrice") not in (None, ""):
        try:
            cost_cents = to_cents(row.get("costPrice"), f"{label}.costPrice")
        except ValidationError as e:
            row_errors.append(e.message)

    sale_cents = None
    if row.get("salePrice") not in (None, ""):
        try:
            sale_cents = to_cents(row.get("salePrice"), f"{label}.salePrice")
        except ValidationError as e:
            row_errors.append(e.message)

    date_added = None
    if row.get("dateAdded"):
        try:
            date_added = parse_iso_date(str(row.get("dateAdded")))
        except ValueError:
            row_errors.append(f"{label}.dateAdded must be an ISO-8601 date")

    owner_type = row.get("ownerType") or "store"
    consignor_id = row.get("consignorId")
    if owner_type not in OWNER_TYPES:
        row_errors.append(f"{label}.ownerType must be one of: {', '.join(OWNER_TYPES)}")
    elif owner_type == "consignor":
        if isinstance(consignor_id, bool) or not isinstance(consignor_id, int):
            row_errors.append(f"{label}.consignorId is required for consignor-owned units")
    else:
        consignor_id = None

    if row_errors:
        errors.extend(row_errors)
        return None

    template = VariantTemplate(
        size=size,
        size_label=_clean_str(row.get("sizeLabel"), 16) or "US",
        location=_clean_str(row.get("location"), 128),
        condition=_clean_str(row.get("condition"), 64),
        status=status,
        date_added=date_added or today(),
        cost_price_cents=cost_cents,
        sale_price_cents=sale_cents,
        owner_type=owner_type,
        consignor_id=consignor_id,
    )
    return template, quantity


def parse_inventory_request(payload) -> InventoryRequest:
    """
    Validate an add-inventory payload ({productForm, variantsToAdd}).

    Every problem is collected and raised as one ValidationError.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid request data")

    errors: list[str] = []
    product = _parse_product_form(payload.get("productForm"), errors)

    rows_raw = payload.get("variantsToAdd")
    max_rows = current_app.config.get("MAX_VARIANT_ROWS_PER_REQUEST", 100)
    rows: list[tuple[VariantTemplate, int]] = []
    if not isinstance(rows_raw, list) or not rows_raw:
        errors.append("variantsToAdd must be a non-empty list")
    elif len(rows_raw) > max_rows:
        errors.append(f"variantsToAdd cannot contain more than {max_rows} rows")
    else:
        for index, row in enumerate(rows_raw):
            parsed = _parse_variant_row(index, row, errors)
            if parsed is not None:
                rows.append(parsed)

    if errors:
        raise ValidationError("Invalid request data", errors=errors)

    return InventoryRequest(product=product, rows=rows)


def materialize_variants(
    *,
    owner_id: int,
    product: Product,
    template: VariantTemplate,
    quantity: int,
    start_serial: int,
) -> list[Variant]:
    """
    Expand one template into `quantity` unsaved Variant rows.

    Serials run start_serial .. start_serial + quantity - 1 with no gaps.
    """
    if quantity < 1:
        raise ValueError("quantity must be >= 1")

    variant_sku = f"{product.sku}-{template.size}"
    return [
        Variant(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            product_id=product.id,
            serial_number=start_serial + offset,
            size=template.size,
            size_label=template.size_label,
            variant_sku=variant_sku,
            location=template.location,
            condition=template.condition,
            status=template.status,
            cost_price_cents=template.cost_price_cents,
            sale_price_cents=template.sale_price_cents,
            owner_type=template.owner_type,
            consignor_id=template.consignor_id,
            date_added=template.date_added,
            is_archived=False,
        )
        for offset in range(quantity)
    ]


def _find_or_create_product(owner_id: int, fields: dict) -> tuple[Product, bool]:
    product = db.session.query(Product).filter_by(owner_id=owner_id, sku=fields["sku"]).first()
    if product is not None:
        # New stock under an archived SKU brings the product back into the catalog
        if product.is_archived:
            product.is_archived = False
        return product, False

    product = Product(owner_id=owner_id, **fields)
    db.session.add(product)
    db.session.flush()
    return product, True


def insert_with_serial_retry(op):
    """
    Run op (allocate serials, insert, commit) with bounded retries.

    Only serial unique-violations are retried. When they persist past the
    configured attempts a SerialAllocationError (409) is raised; any other
    IntegrityError propagates unchanged.
    """
    attempts = current_app.config.get("SERIAL_ALLOCATION_ATTEMPTS", 3)
    try:
        return run_with_retry(
            op,
            attempts=attempts,
            backoff_base=current_app.config.get("SERIAL_ALLOCATION_BACKOFF_SECONDS", 0.1),
            exponential=False,
            retry_on=(IntegrityError,),
            should_retry=is_unique_violation,
            label="variant insert",
        )
    except IntegrityError as exc:
        db.session.rollback()
        if not is_unique_violation(exc):
            raise
        raise SerialAllocationError(
            "Could not allocate serial numbers because of concurrent updates. Please try again.",
            details={"attempts": attempts},
        )


def add_inventory(*, owner: User, payload) -> dict:
    """
    Add product units from a {productForm, variantsToAdd} payload.

    Raises:
        ValidationError: malformed request or unknown consignor
        QuotaExceededError: plan ceiling would be exceeded
        SerialAllocationError: serials still colliding after bounded retries
    """
    request_data = parse_inventory_request(payload)

    for template, _quantity in request_data.rows:
        if template.owner_type == "consignor":
            require_active_consignor(owner.id, template.consignor_id)

    check_variant_quota(owner, request_data.available_unit_count)

    def _op():
        product, created = _find_or_create_product(owner.id, request_data.product)
        start = allocate_serial_range(owner.id, request_data.unit_count)

        serials: list[int] = []
        next_serial = start
        for template, quantity in request_data.rows:
            variants = materialize_variants(
                owner_id=owner.id,
                product=product,
                template=template,
                quantity=quantity,
                start_serial=next_serial,
            )
            db.session.add_all(variants)
            serials.extend(v.serial_number for v in variants)
            next_serial += quantity

        db.session.flush()
        db.session.commit()
        return product, created, serials

    product, created, serials = insert_with_serial_retry(_op)

    current_app.logger.info(
        "Added %d variant(s) to product %s for owner %s (serials %s-%s)",
        len(serials), product.id, owner.id, serials[0], serials[-1],
    )

    return {
        "productId": product.id,
        "productName": product.name,
        "productCreated": created,
        "variantsAdded": len(serials),
        "serialNumbers": serials,
    }


# --- Variant lookups and mutations ---------------------------------------


VARIANT_PATCH_FIELDS = {
    "size", "size_label", "location", "condition", "status",
    "cost_price_cents", "sale_price_cents", "owner_type", "consignor_id", "date_added",
}


def get_variant(owner_id: int, variant_id: str) -> Variant:
    variant = db.session.query(Variant).filter_by(id=variant_id, owner_id=owner_id).first()
    if variant is None:
        raise NotFoundError("Variant not found")
    return variant


def get_variant_by_serial(owner_id: int, serial_number: int) -> Variant:
    variant = db.session.query(Variant).filter_by(owner_id=owner_id, serial_number=serial_number).first()
    if variant is None:
        raise NotFoundError(f"No variant with serial number {serial_number}")
    return variant


def get_variants_for_labels(owner_id: int, variant_ids: list[str], *, limit: int) -> list[Variant]:
    """
    The owner's variants among variant_ids, in serial order.

    Ids belonging to other owners are skipped like unknown ones. Raises
    NotFoundError when nothing matches.
    """
    if not variant_ids:
        raise ValidationError("ids must name at least one variant")
    if len(variant_ids) > limit:
        raise ValidationError(f"At most {limit} labels per request")

    variants = (
        db.session.query(Variant)
        .filter(Variant.owner_id == owner_id, Variant.id.in_(variant_ids))
        .order_by(Variant.serial_number.asc())
        .all()
    )
    if not variants:
        raise NotFoundError("No variants found")
    return variants


def list_product_variants(owner_id: int, product_id: int, *, include_archived: bool = False) -> list[Variant]:
    query = db.session.query(Variant).filter_by(owner_id=owner_id, product_id=product_id)
    if not include_archived:
        query = query.filter(Variant.is_archived == False)  # noqa: E712
    return query.order_by(Variant.serial_number.asc()).all()


def update_variant(*, owner: User, variant_id: str, patch: dict) -> Variant:
    """
    Apply a validated patch to a variant.

    A status change into Available is quota-checked. Switching owner_type
    to "consignor" requires an active consignor; switching to "store"
    clears consignor_id.
    """
    variant = get_variant(owner.id, variant_id)

    new_status = patch.get("status", variant.status)
    if new_status == "Available" and variant.status != "Available" and not variant.is_archived:
        check_variant_quota(owner, 1)

    owner_type = patch.get("owner_type", variant.owner_type)
    consignor_id = patch.get("consignor_id", variant.consignor_id)
    if owner_type == "consignor":
        if consignor_id is None:
            raise ValidationError("Validation failed", errors=["consignor_id is required for consignor-owned units"])
        require_active_consignor(owner.id, consignor_id)
    else:
        patch["consignor_id"] = None

    for key, value in patch.items():
        if key in VARIANT_PATCH_FIELDS:
            setattr(variant, key, value)

    if "size" in patch and variant.product is not None:
        variant.variant_sku = f"{variant.product.sku}-{variant.size}"

    db.session.commit()
    return variant


def archive_variants(owner_id: int, variant_ids: list[str]) -> int:
    """Archive (soft-delete) the owner's variants; returns the number archived."""
    if not variant_ids:
        raise ValidationError("variantIds must be a non-empty list")

    variants = db.session.query(Variant).filter(
        Variant.owner_id == owner_id,
        Variant.id.in_(variant_ids),
        Variant.is_archived == False,  # noqa: E712
    ).all()
    for variant in variants:
        variant.is_archived = True
    db.session.commit()
    return len(variants)


def restore_variant(*, owner: User, variant_id: str) -> Variant:
    variant = get_variant(owner.id, variant_id)
    if not variant.is_archived:
        raise ValidationError("Variant is not archived")

    if variant.status == "Available":
        check_variant_quota(owner, 1)

    variant.is_archived = False
    if variant.product is not None and variant.product.is_archived:
        variant.product.is_archived = False
    db.session.commit()
    return variant


def move_variants_location(owner_id: int, variant_ids: list[str], location: str | None) -> int:
    if not variant_ids:
        raise ValidationError("variantIds must be a non-empty list")
    location = _clean_str(location, 128)

    variants = db.session.query(Variant).filter(
        Variant.owner_id == owner_id,
        Variant.id.in_(variant_ids),
    ).all()
    for variant in variants:
        variant.location = location
    db.session.commit()
    return len(variants)


def get_inventory_summary(owner_id: int) -> dict:
    """Counts and valuation of the owner's Available, non-archived units."""
    sale_price = func.coalesce(Variant.sale_price_cents, Product.sale_price_cents)
    row = (
        db.session.query(
            func.count(Variant.id),
            func.coalesce(func.sum(Variant.cost_price_cents), 0),
            func.coalesce(func.sum(sale_price), 0),
        )
        .join(Product, Product.id == Variant.product_id)
        .filter(
            Variant.owner_id == owner_id,
            Variant.status == "Available",
            Variant.is_archived == False,  # noqa: E712
        )
        .one()
    )
    count, cost_total, sale_total = row

    by_status = dict(
        db.session.query(Variant.status, func.count(Variant.id))
        .filter(Variant.owner_id == owner_id, Variant.is_archived == False)  # noqa: E712
        .group_by(Variant.status)
        .all()
    )

    return {
        "available_count": int(count or 0),
        "total_cost_cents": int(cost_total or 0),
        "total_sale_value_cents": int(sale_total or 0),
        "potential_profit_cents": int(sale_total or 0) - int(cost_total or 0),
        "by_status": {status: int(by_status.get(status, 0)) for status in VARIANT_STATUSES},
    }


def restore_after_refund(variants: list[Variant]) -> None:
    """Return sold units to stock. Refunds bypass the quota guard."""
    for variant in variants:
        variant.status = "Available"
