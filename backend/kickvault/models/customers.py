from __future__ import annotations

from ..extensions import db
from kickvault.time_utils import to_utc_z


CUSTOMER_TYPES = ("regular", "vip", "wholesale")


class Customer(db.Model):
    """
    Customer master data for tracking purchases.

    MULTI-TENANT: Customers are scoped to the owning user via owner_id.

    Purchase aggregates (total orders, total spent) are derived from sales
    when read; they are not stored here.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_owner_archived", "owner_id", "is_archived"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(128), nullable=True)
    state = db.Column(db.String(128), nullable=True)
    zip_code = db.Column(db.String(32), nullable=True)
    country = db.Column(db.String(128), nullable=True)

    customer_type = db.Column(db.String(16), nullable=False, default="regular")
    notes = db.Column(db.Text, nullable=True)

    is_archived = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    owner = db.relationship("User", backref=db.backref("customers", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
            "customer_type": self.customer_type,
            "notes": self.notes,
            "is_archived": self.is_archived,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
