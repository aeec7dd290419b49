# backend/kickvault/services/products_service.py
"""
Products Service

MULTI-TENANT: Every query is filtered by owner_id. A product that exists
but belongs to someone else is reported exactly like a missing one.

Products are created implicitly by inventory_service.add_inventory; this
module covers listing, editing, archiving and restoring them.
"""
from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Product, Variant

PRODUCT_MUTABLE_FIELDS = {
    "sku", "name", "brand", "category", "size_category", "image_url",
    "cost_price_cents", "sale_price_cents",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def get_product(owner_id: int, product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id, owner_id=owner_id).first()
    if product is None:
        raise NotFoundError("Product not found")
    return product


def _available_counts(owner_id: int, product_ids: list[int]) -> dict[int, int]:
    if not product_ids:
        return {}
    rows = (
        db.session.query(Variant.product_id, func.count(Variant.id))
        .filter(
            Variant.owner_id == owner_id,
            Variant.product_id.in_(product_ids),
            Variant.status == "Available",
            Variant.is_archived == False,  # noqa: E712
        )
        .group_by(Variant.product_id)
        .all()
    )
    return {product_id: count for product_id, count in rows}


def list_products(
    owner_id: int,
    *,
    search: str | None = None,
    archived: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Owner-scoped product listing with optional search and pagination.

    Args:
        owner_id: Tenant whose products to list
        search: Case-insensitive match against name, brand or sku
        archived: List archived products instead of active ones
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
        Each item carries available_count (Available, non-archived units).
    """
    base_query = db.session.query(Product).filter(
        Product.owner_id == owner_id,
        Product.is_archived == archived,
    )
    if search:
        pattern = f"%{search.strip()}%"
        base_query = base_query.filter(db.or_(
            Product.name.ilike(pattern),
            Product.brand.ilike(pattern),
            Product.sku.ilike(pattern),
        ))
    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    pagination = None
    if page is None:
        products = base_query.all()
    else:
        per_page = min(max(per_page or 20, 1), 100)
        page = max(page, 1)
        total = base_query.count()
        total_pages = (total + per_page - 1) // per_page if total > 0 else 1
        products = base_query.offset((page - 1) * per_page).limit(per_page).all()
        pagination = {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        }

    counts = _available_counts(owner_id, [p.id for p in products])
    items = []
    for p in products:
        data = p.to_dict()
        data["available_count"] = counts.get(p.id, 0)
        items.append(data)

    result = {"items": items, "count": len(items)}
    if pagination is not None:
        result["pagination"] = pagination
    return result


def update_product(*, owner_id: int, product_id: int, patch: dict) -> Product:
    """
    Update a product.

    Raises:
        NotFoundError: product missing or owned by someone else
        ConflictError: new sku already used by another of the owner's products
    """
    p = get_product(owner_id, product_id)

    if "sku" in patch and patch["sku"] != p.sku:
        existing = (
            db.session.query(Product)
            .filter(
                Product.owner_id == owner_id,
                Product.sku == patch["sku"],
                Product.id != p.id,
            )
            .first()
        )
        if existing:
            raise ConflictError("SKU already exists.", details={"sku": patch["sku"]})

    apply_product_patch(p, patch)

    if "sku" in patch:
        for variant in p.variants:
            variant.variant_sku = f"{p.sku}-{variant.size}"

    db.session.commit()
    return p


def archive_product(*, owner_id: int, product_id: int) -> dict:
    """
    Soft-delete a product and archive its Available units.

    Sold and reserved units keep their state so sale history stays intact.
    """
    p = get_product(owner_id, product_id)
    if p.is_archived:
        raise ValidationError("Product is already archived")

    archived = 0
    for variant in p.variants:
        if variant.status == "Available" and not variant.is_archived:
            variant.is_archived = True
            archived += 1
    p.is_archived = True

    db.session.commit()
    return {"product_id": p.id, "variants_archived": archived}


def restore_product(*, owner_id: int, product_id: int) -> Product:
    """Un-archive a product. Its archived units stay archived until restored individually."""
    p = get_product(owner_id, product_id)
    if not p.is_archived:
        raise ValidationError("Product is not archived")
    p.is_archived = False
    db.session.commit()
    return p
