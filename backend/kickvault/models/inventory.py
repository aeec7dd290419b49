from __future__ import annotations

from ..extensions import db
from kickvault.time_utils import to_utc_z, to_iso_date


VARIANT_STATUSES = ("Available", "Sold", "Reserved", "PullOut", "PreOrder")
OWNER_TYPES = ("store", "consignor")


class Product(db.Model):
    """
    Product master data (one row per sku per owner).

    MULTI-TENANT: Products are scoped to the owning user via owner_id.
    SKUs are unique within an owner: UniqueConstraint("owner_id", "sku").

    A product is created the first time units are added under an sku the
    owner does not have yet; later additions reuse it.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("owner_id", "sku", name="uq_products_owner_sku"),
        db.Index("ix_products_owner_name", "owner_id", "name"),
        db.Index("ix_products_owner_archived", "owner_id", "is_archived"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    sku = db.Column(db.String(100), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(100), nullable=True)
    category = db.Column(db.String(100), nullable=True)
    size_category = db.Column(db.String(32), nullable=True)
    image_url = db.Column(db.String(1024), nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    sale_price_cents = db.Column(db.Integer, nullable=False, default=0)

    is_archived = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    owner = db.relationship("User", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} owner_id={self.owner_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "size_category": self.size_category,
            "image_url": self.image_url,
            "cost_price_cents": self.cost_price_cents,
            "sale_price_cents": self.sale_price_cents,
            "is_archived": self.is_archived,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Variant(db.Model):
    """
    One physical, individually tracked unit of a product.

    SERIALS: serial_number is unique per owner (uq_variants_owner_serial)
    and allocated from the owner's high-water mark, see serial_service.

    OWNERSHIP: owner_type "store" units belong to the tenant; "consignor"
    units are held on behalf of consignor_id and generate a
    ConsignmentSale row when sold.
    """
    __tablename__ = "variants"
    __table_args__ = (
        db.UniqueConstraint("owner_id", "serial_number", name="uq_variants_owner_serial"),
        db.Index("ix_variants_owner_status", "owner_id", "status", "is_archived"),
        db.Index("ix_variants_product", "product_id"),
        db.Index("ix_variants_consignor", "consignor_id"),
    )

    # UUID string generated per unit by the materializer
    id = db.Column(db.String(36), primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    serial_number = db.Column(db.Integer, nullable=False)

    size = db.Column(db.String(16), nullable=False)
    size_label = db.Column(db.String(16), nullable=False, default="US")
    variant_sku = db.Column(db.String(128), nullable=True)
    location = db.Column(db.String(128), nullable=True)
    condition = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="Available")

    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    # Per-unit override of the product sale price
    sale_price_cents = db.Column(db.Integer, nullable=True)

    owner_type = db.Column(db.String(16), nullable=False, default="store")
    consignor_id = db.Column(db.Integer, db.ForeignKey("consignors.id"), nullable=True)

    date_added = db.Column(db.Date, nullable=True)
    is_archived = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", backref=db.backref("variants", lazy=True))
    consignor = db.relationship("Consignor", backref=db.backref("variants", lazy=True))

    @property
    def effective_sale_price_cents(self) -> int:
        if self.sale_price_cents is not None:
            return self.sale_price_cents
        return self.product.sale_price_cents if self.product else 0

    def __repr__(self) -> str:
        return f"<Variant id={self.id} serial={self.serial_number} status={self.status!r}>"

    def to_dict(self, include_product: bool = False) -> dict:
        data = {
            "id": self.id,
            "product_id": self.product_id,
            "serial_number": self.serial_number,
            "size": self.size,
            "size_label": self.size_label,
            "variant_sku": self.variant_sku,
            "location": self.location,
            "condition": self.condition,
            "status": self.status,
            "cost_price_cents": self.cost_price_cents,
            "sale_price_cents": self.sale_price_cents,
            "effective_sale_price_cents": self.effective_sale_price_cents,
            "owner_type": self.owner_type,
            "consignor_id": self.consignor_id,
            "date_added": to_iso_date(self.date_added),
            "is_archived": self.is_archived,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_product and self.product is not None:
            data["product"] = {
                "id": self.product.id,
                "sku": self.product.sku,
                "name": self.product.name,
                "brand": self.product.brand,
                "image_url": self.product.image_url,
            }
        return data


class CustomLocation(db.Model):
    """
    Owner-defined storage location name (shelf, bin, back room).

    Units reference locations by name in Variant.location; renaming a
    location renames it on the owner's units too.
    """
    __tablename__ = "custom_locations"
    __table_args__ = (
        db.UniqueConstraint("owner_id", "name", name="uq_custom_locations_owner_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
