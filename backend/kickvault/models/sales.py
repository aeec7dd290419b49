from __future__ import annotations

from ..extensions import db
from kickvault.time_utils import to_utc_z, to_iso_date


FEE_TYPES = ("percent", "fixed", "none")
FEE_APPLIES_TO = ("profit", "cost")
AVATAR_TYPES = ("Main", "Member")


def _pct(value) -> float | None:
    return float(value) if value is not None else None


class Avatar(db.Model):
    """
    Named recipient of a share of each sale's net profit.

    Every owner has exactly one "Main" avatar, created at signup.
    The number of avatars an owner may have is capped by their plan.
    """
    __tablename__ = "avatars"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(128), nullable=False)
    avatar_type = db.Column(db.String(16), nullable=False, default="Member")
    default_percentage = db.Column(db.Numeric(6, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    owner = db.relationship("User", backref=db.backref("avatars", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "avatar_type": self.avatar_type,
            "default_percentage": _pct(self.default_percentage),
            "created_at": to_utc_z(self.created_at),
        }


class PaymentType(db.Model):
    """
    Checkout payment type with an optional processing fee.

    fee_type "percent" takes fee_value percent of the sale subtotal,
    "fixed" charges fee_value in the owner's currency. applies_to "profit"
    deducts the fee from net profit; "cost" passes it to the customer as
    part of the total.
    """
    __tablename__ = "payment_types"
    __table_args__ = (
        db.UniqueConstraint("owner_id", "name", name="uq_payment_types_owner_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(64), nullable=False)
    fee_type = db.Column(db.String(16), nullable=False, default="none")
    # Percent for fee_type=percent, currency amount for fee_type=fixed
    fee_value = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    applies_to = db.Column(db.String(16), nullable=False, default="profit")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "fee_type": self.fee_type,
            "fee_value": _pct(self.fee_value),
            "applies_to": self.applies_to,
            "created_at": to_utc_z(self.created_at),
        }


class Sale(db.Model):
    """
    A completed checkout.

    Totals are computed server-side at record time and frozen here, along
    with a snapshot of the payment type used.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_owner_date", "owner_id", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    sale_date = db.Column(db.Date, nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    payment_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cost_cents = db.Column(db.Integer, nullable=False, default=0)
    net_profit_cents = db.Column(db.Integer, nullable=False, default=0)

    payment_type = db.Column(db.JSON, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="completed")
    refunded_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    items = db.relationship("SaleItem", backref="sale", lazy=True, cascade="all, delete-orphan")
    profit_distribution = db.relationship(
        "SaleProfitDistribution", backref="sale", lazy=True, cascade="all, delete-orphan"
    )

    def to_dict(self, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "sale_date": to_iso_date(self.sale_date),
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "payment_fee_cents": self.payment_fee_cents,
            "total_amount_cents": self.total_amount_cents,
            "total_cost_cents": self.total_cost_cents,
            "net_profit_cents": self.net_profit_cents,
            "payment_type": self.payment_type,
            "status": self.status,
            "refunded_at": to_utc_z(self.refunded_at) if self.refunded_at else None,
            "created_at": to_utc_z(self.created_at),
            "item_count": len(self.items),
        }
        if include_lines:
            data["items"] = [item.to_dict() for item in self.items]
            data["profit_distribution"] = [d.to_dict() for d in self.profit_distribution]
        return data


class SaleItem(db.Model):
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    variant_id = db.Column(db.String(36), db.ForeignKey("variants.id"), nullable=False, index=True)

    sold_price_cents = db.Column(db.Integer, nullable=False)
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)

    variant = db.relationship("Variant")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "variant_id": self.variant_id,
            "sold_price_cents": self.sold_price_cents,
            "cost_price_cents": self.cost_price_cents,
            "variant": self.variant.to_dict(include_product=True) if self.variant else None,
        }


class SaleProfitDistribution(db.Model):
    __tablename__ = "sale_profit_distributions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    avatar_id = db.Column(db.Integer, db.ForeignKey("avatars.id"), nullable=False, index=True)

    percentage = db.Column(db.Numeric(6, 2), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)

    avatar = db.relationship("Avatar")

    def to_dict(self) -> dict:
        return {
            "avatar_id": self.avatar_id,
            "avatar_name": self.avatar.name if self.avatar else None,
            "percentage": _pct(self.percentage),
            "amount_cents": self.amount_cents,
        }


class ProfitTemplate(db.Model):
    """
    Saved profit split, picked at checkout instead of typing percentages.

    Items follow the same rules as a sale's distribution: at least one
    avatar, no negative shares, exactly 100% in total.
    """
    __tablename__ = "profit_templates"
    __table_args__ = (
        db.Index("ix_profit_templates_owner_name", "owner_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    items = db.relationship(
        "ProfitTemplateItem",
        backref="template",
        cascade="all, delete-orphan",
        order_by="ProfitTemplateItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "distributions": [item.to_dict() for item in self.items],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProfitTemplateItem(db.Model):
    __tablename__ = "profit_template_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(db.Integer, db.ForeignKey("profit_templates.id"), nullable=False, index=True)
    avatar_id = db.Column(db.Integer, db.ForeignKey("avatars.id"), nullable=False, index=True)
    percentage = db.Column(db.Numeric(6, 2), nullable=False)

    avatar = db.relationship("Avatar")

    def to_dict(self) -> dict:
        return {
            "avatar_id": self.avatar_id,
            "avatar_name": self.avatar.name if self.avatar else None,
            "percentage": _pct(self.percentage),
        }
