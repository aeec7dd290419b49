from __future__ import annotations

from ..extensions import db
from kickvault.time_utils import to_utc_z, to_iso_date


PREORDER_STATUSES = ("pending", "confirmed", "completed", "canceled", "voided")
# Statuses a pre-order can still be fulfilled from
OPEN_PREORDER_STATUSES = ("pending", "confirmed")


class PreOrder(db.Model):
    """
    Customer order for a product/size the owner does not hold yet.

    pre_order_no counts up per owner. Converting a pre-order mints one
    serial-numbered unit, links it through variant_id and marks the
    pre-order completed; completed pre-orders are kept as history.
    """
    __tablename__ = "pre_orders"
    __table_args__ = (
        db.UniqueConstraint("owner_id", "pre_order_no", name="uq_pre_orders_owner_no"),
        db.Index("ix_pre_orders_owner_status", "owner_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    pre_order_no = db.Column(db.Integer, nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    variant_id = db.Column(db.String(36), db.ForeignKey("variants.id"), nullable=True)

    size = db.Column(db.String(16), nullable=False)
    size_label = db.Column(db.String(16), nullable=False, default="US")

    status = db.Column(db.String(16), nullable=False, default="pending")

    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    down_payment_cents = db.Column(db.Integer, nullable=False, default=0)

    expected_delivery_date = db.Column(db.Date, nullable=True)
    completed_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    customer = db.relationship("Customer")
    product = db.relationship("Product")
    variant = db.relationship("Variant")

    @property
    def remaining_balance_cents(self) -> int:
        return max((self.total_amount_cents or 0) - (self.down_payment_cents or 0), 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pre_order_no": self.pre_order_no,
            "status": self.status,
            "customer": {
                "id": self.customer.id,
                "name": self.customer.name,
                "email": self.customer.email,
                "phone": self.customer.phone,
            } if self.customer is not None else None,
            "product": {
                "id": self.product.id,
                "sku": self.product.sku,
                "name": self.product.name,
                "brand": self.product.brand,
            } if self.product is not None else None,
            "variant_id": self.variant_id,
            "size": self.size,
            "size_label": self.size_label,
            "cost_price_cents": self.cost_price_cents,
            "total_amount_cents": self.total_amount_cents,
            "down_payment_cents": self.down_payment_cents,
            "remaining_balance_cents": self.remaining_balance_cents,
            "expected_delivery_date": to_iso_date(self.expected_delivery_date),
            "completed_date": to_iso_date(self.completed_date),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
