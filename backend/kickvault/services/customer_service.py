# Overview: Service-layer operations for customers; encapsulates business logic and database work.

"""
Customer Service

MULTI-TENANT: Customers are scoped by owner_id.

RULES:
- name is required; at least one of email or phone is required
- email and phone are unique among the owner's non-archived customers
- delete archives (purchase history keeps pointing at the row)
- totalOrders / totalSpent are derived from completed sales on read
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..errors import ValidationError, ConflictError, NotFoundError
from ..models import Customer, Sale


def get_customer(owner_id: int, customer_id: int) -> Customer:
    customer = db.session.query(Customer).filter_by(id=customer_id, owner_id=owner_id).first()
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def _normalize_contact(patch: dict) -> None:
    if patch.get("email"):
        patch["email"] = patch["email"].lower()
    for key in ("email", "phone"):
        if key in patch and patch[key] == "":
            patch[key] = None


def _check_contact_rules(owner_id: int, customer: Customer, exclude_id: int | None = None) -> None:
    if not customer.email and not customer.phone:
        raise ValidationError("Validation failed", errors=["Either email or phone is required"])

    for field in ("email", "phone"):
        value = getattr(customer, field)
        if not value:
            continue
        query = db.session.query(Customer).filter(
            Customer.owner_id == owner_id,
            getattr(Customer, field) == value,
            Customer.is_archived == False,  # noqa: E712
        )
        if exclude_id is not None:
            query = query.filter(Customer.id != exclude_id)
        if query.first() is not None:
            raise ConflictError(
                f"A customer with this {field} already exists",
                details={"field": field},
            )


def create_customer(*, owner_id: int, patch: dict) -> Customer:
    _normalize_contact(patch)
    customer = Customer(owner_id=owner_id, customer_type="regular")
    for key, value in patch.items():
        setattr(customer, key, value)

    _check_contact_rules(owner_id, customer)

    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(*, owner_id: int, customer_id: int, patch: dict) -> Customer:
    customer = get_customer(owner_id, customer_id)
    _normalize_contact(patch)
    with db.session.no_autoflush:
        for key, value in patch.items():
            setattr(customer, key, value)
        try:
            _check_contact_rules(owner_id, customer, exclude_id=customer.id)
        except (ValidationError, ConflictError):
            db.session.rollback()
            raise
    db.session.commit()
    return customer


def archive_customer(*, owner_id: int, customer_id: int) -> Customer:
    customer = get_customer(owner_id, customer_id)
    customer.is_archived = True
    db.session.commit()
    return customer


def _purchase_totals(owner_id: int, customer_ids: list[int]) -> dict[int, tuple[int, int]]:
    if not customer_ids:
        return {}
    rows = (
        db.session.query(
            Sale.customer_id,
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.total_amount_cents), 0),
        )
        .filter(
            Sale.owner_id == owner_id,
            Sale.customer_id.in_(customer_ids),
            Sale.status == "completed",
        )
        .group_by(Sale.customer_id)
        .all()
    )
    return {cid: (int(orders), int(spent)) for cid, orders, spent in rows}


def list_customers(
    owner_id: int,
    *,
    search: str | None = None,
    customer_type: str | None = None,
    archived: bool = False,
    page: int = 1,
    per_page: int = 20,
) -> dict:
    query = db.session.query(Customer).filter(
        Customer.owner_id == owner_id,
        Customer.is_archived == archived,
    )
    if customer_type:
        query = query.filter(Customer.customer_type == customer_type)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Customer.name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))

    per_page = min(max(per_page, 1), 100)
    page = max(page, 1)
    total = query.count()
    customers = (
        query.order_by(Customer.name.asc(), Customer.id.asc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    totals = _purchase_totals(owner_id, [c.id for c in customers])
    items = []
    for c in customers:
        data = c.to_dict()
        orders, spent = totals.get(c.id, (0, 0))
        data["totalOrders"] = orders
        data["totalSpentCents"] = spent
        items.append(data)

    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    return {
        "items": items,
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def customer_detail(owner_id: int, customer_id: int) -> dict:
    customer = get_customer(owner_id, customer_id)
    orders, spent = _purchase_totals(owner_id, [customer.id]).get(customer.id, (0, 0))
    data = customer.to_dict()
    data["totalOrders"] = orders
    data["totalSpentCents"] = spent
    return data


def get_purchase_history(owner_id: int, customer_id: int) -> dict:
    """Completed sales for a customer, flattened to one row per item."""
    customer = get_customer(owner_id, customer_id)
    sales = (
        db.session.query(Sale)
        .filter_by(owner_id=owner_id, customer_id=customer.id, status="completed")
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .all()
    )

    history = []
    total_spent = 0
    total_items = 0
    for sale in sales:
        for item in sale.items:
            variant = item.variant
            product = variant.product if variant else None
            if product is not None:
                name = f"{product.brand} {product.name}".strip() if product.brand else product.name
            else:
                name = "Unknown Product"
            history.append({
                "sale_id": sale.id,
                "sale_date": sale.to_dict()["sale_date"],
                "product_name": name,
                "sku": product.sku if product else None,
                "image_url": product.image_url if product else None,
                "size": f"{variant.size} {variant.size_label}" if variant else None,
                "serial_number": variant.serial_number if variant else None,
                "sold_price_cents": item.sold_price_cents,
            })
            total_spent += item.sold_price_cents
            total_items += 1

    return {
        "customer": {"id": customer.id, "name": customer.name},
        "purchases": history,
        "stats": {
            "total_orders": len(sales),
            "total_items": total_items,
            "total_spent_cents": total_spent,
        },
    }
