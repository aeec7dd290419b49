from __future__ import annotations

from ..extensions import db
from kickvault.time_utils import to_utc_z, to_iso_date


PAYOUT_METHODS = ("percentage_split", "cost_price", "cost_plus_fixed", "cost_plus_percentage")
PAYOUT_STATUSES = ("pending", "paid", "disputed", "cancelled")
CONSIGNOR_STATUSES = ("active", "inactive")


def _pct(value) -> float | None:
    return float(value) if value is not None else None


class Consignor(db.Model):
    """
    Third party whose goods the store sells in exchange for a payout.

    MULTI-TENANT: Scoped to the owning user via owner_id.

    PAYOUTS: payout_method selects how a sale splits between consignor and
    store (see payout_service.calculate_payout). commission_rate is what the
    store keeps under percentage_split.

    PORTAL: portal_password_hash (bcrypt) enables the read-only public
    portal for this consignor. NULL means the portal is disabled.
    """
    __tablename__ = "consignors"
    __table_args__ = (
        db.Index("ix_consignors_owner_archived", "owner_id", "is_archived"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    commission_rate = db.Column(db.Numeric(6, 2), nullable=False, default=20)
    payment_method = db.Column(db.String(64), nullable=True)
    payout_method = db.Column(db.String(32), nullable=False, default="percentage_split")
    fixed_markup_cents = db.Column(db.Integer, nullable=True)
    markup_percentage = db.Column(db.Numeric(6, 2), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")
    portal_password_hash = db.Column(db.String(255), nullable=True)
    is_archived = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    owner = db.relationship("User", backref=db.backref("consignors", lazy=True))

    def __repr__(self) -> str:
        return f"<Consignor id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "commission_rate": _pct(self.commission_rate),
            "payment_method": self.payment_method,
            "payout_method": self.payout_method,
            "fixed_markup_cents": self.fixed_markup_cents,
            "markup_percentage": _pct(self.markup_percentage),
            "notes": self.notes,
            "status": self.status,
            "has_portal_access": self.portal_password_hash is not None,
            "is_archived": self.is_archived,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ConsignmentSale(db.Model):
    """
    Links a sold consignor-owned variant to its consignor.

    INVARIANT: sale_price_cents == consignor_payout_cents + store_commission_cents.
    Rows start "pending"; payouts move them to "paid", refunds to "cancelled".
    """
    __tablename__ = "consignment_sales"
    __table_args__ = (
        db.Index("ix_consignment_sales_consignor_status", "consignor_id", "payout_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    variant_id = db.Column(db.String(36), db.ForeignKey("variants.id"), nullable=False)
    consignor_id = db.Column(db.Integer, db.ForeignKey("consignors.id"), nullable=False)

    sale_price_cents = db.Column(db.Integer, nullable=False)
    commission_rate = db.Column(db.Numeric(6, 2), nullable=True)
    payout_method_used = db.Column(db.String(32), nullable=False)
    store_commission_cents = db.Column(db.Integer, nullable=False)
    consignor_payout_cents = db.Column(db.Integer, nullable=False)

    payout_status = db.Column(db.String(16), nullable=False, default="pending")
    payout_date = db.Column(db.Date, nullable=True)
    payout_method = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("consignment_sales", lazy=True))
    variant = db.relationship("Variant")
    consignor = db.relationship("Consignor", backref=db.backref("consignment_sales", lazy=True))

    def to_dict(self, include_variant: bool = False) -> dict:
        data = {
            "id": self.id,
            "sale_id": self.sale_id,
            "variant_id": self.variant_id,
            "consignor_id": self.consignor_id,
            "sale_price_cents": self.sale_price_cents,
            "commission_rate": _pct(self.commission_rate),
            "payout_method_used": self.payout_method_used,
            "store_commission_cents": self.store_commission_cents,
            "consignor_payout_cents": self.consignor_payout_cents,
            "payout_status": self.payout_status,
            "payout_date": to_iso_date(self.payout_date),
            "payout_method": self.payout_method,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
        if include_variant and self.variant is not None:
            data["variant"] = self.variant.to_dict(include_product=True)
        return data


class PayoutTransaction(db.Model):
    """A settlement paid to a consignor, covering one or more consignment sales."""
    __tablename__ = "payout_transactions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    consignor_id = db.Column(db.Integer, db.ForeignKey("consignors.id"), nullable=False, index=True)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(64), nullable=True)
    payout_date = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="completed")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    consignor = db.relationship("Consignor", backref=db.backref("payout_transactions", lazy=True))
    items = db.relationship("PayoutTransactionItem", backref="payout_transaction", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "consignor_id": self.consignor_id,
            "total_amount_cents": self.total_amount_cents,
            "payment_method": self.payment_method,
            "payout_date": to_iso_date(self.payout_date),
            "notes": self.notes,
            "status": self.status,
            "consignment_sale_ids": [item.consignment_sale_id for item in self.items],
            "created_at": to_utc_z(self.created_at),
        }


class PayoutTransactionItem(db.Model):
    __tablename__ = "payout_transaction_items"
    __table_args__ = (
        db.UniqueConstraint("consignment_sale_id", name="uq_payout_items_consignment_sale"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    payout_transaction_id = db.Column(db.Integer, db.ForeignKey("payout_transactions.id"), nullable=False, index=True)
    consignment_sale_id = db.Column(db.Integer, db.ForeignKey("consignment_sales.id"), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
