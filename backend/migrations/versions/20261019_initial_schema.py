"""Initial schema: owners, inventory, consignment, sales, customers, pre-orders

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=nullable)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("plan", sa.String(32), nullable=False, server_default="free"),
        sa.Column("currency", sa.String(8), nullable=False, server_default="USD"),
        sa.Column("last_serial_number", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _timestamp("created_at"),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index("ix_users_username", ["username"], unique=True)

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(255), nullable=False),
        _timestamp("created_at"),
        _timestamp("last_used_at"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(255), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("session_tokens", schema=None) as batch_op:
        batch_op.create_index("ix_session_tokens_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_session_tokens_token_hash", ["token_hash"], unique=True)
        batch_op.create_index("ix_session_tokens_expires_at", ["expires_at"], unique=False)
        batch_op.create_index("ix_session_tokens_is_revoked", ["is_revoked"], unique=False)
        batch_op.create_index("ix_session_tokens_user_active", ["user_id", "is_revoked"], unique=False)

    op.create_table(
        "security_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("resource", sa.String(128), nullable=True),
        sa.Column("action", sa.String(255), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        _timestamp("occurred_at"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("security_events", schema=None) as batch_op:
        batch_op.create_index("ix_security_events_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_security_events_event_type", ["event_type"], unique=False)
        batch_op.create_index("ix_security_events_success", ["success"], unique=False)
        batch_op.create_index("ix_security_events_occurred_at", ["occurred_at"], unique=False)
        batch_op.create_index("ix_security_events_type_action", ["event_type", "action"], unique=False)

    op.create_table(
        "consignors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("commission_rate", sa.Numeric(6, 2), nullable=False, server_default=sa.text("20")),
        sa.Column("payment_method", sa.String(64), nullable=True),
        sa.Column("payout_method", sa.String(32), nullable=False, server_default="percentage_split"),
        sa.Column("fixed_markup_cents", sa.Integer(), nullable=True),
        sa.Column("markup_percentage", sa.Numeric(6, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("portal_password_hash", sa.String(255), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("consignors", schema=None) as batch_op:
        batch_op.create_index("ix_consignors_owner_id", ["owner_id"], unique=False)
        batch_op.create_index("ix_consignors_owner_archived", ["owner_id", "is_archived"], unique=False)

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("state", sa.String(128), nullable=True),
        sa.Column("zip_code", sa.String(32), nullable=True),
        sa.Column("country", sa.String(128), nullable=True),
        sa.Column("customer_type", sa.String(16), nullable=False, server_default="regular"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.create_index("ix_customers_owner_id", ["owner_id"], unique=False)
        batch_op.create_index("ix_customers_is_archived", ["is_archived"], unique=False)
        batch_op.create_index("ix_customers_owner_archived", ["owner_id", "is_archived"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("brand", sa.String(100), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("size_category", sa.String(32), nullable=True),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("cost_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("sale_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", "sku", name="uq_products_owner_sku"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index("ix_products_owner_id", ["owner_id"], unique=False)
        batch_op.create_index("ix_products_owner_name", ["owner_id", "name"], unique=False)
        batch_op.create_index("ix_products_owner_archived", ["owner_id", "is_archived"], unique=False)

    op.create_table(
        "variants",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("serial_number", sa.Integer(), nullable=False),
        sa.Column("size", sa.String(16), nullable=False),
        sa.Column("size_label", sa.String(16), nullable=False, server_default="US"),
        sa.Column("variant_sku", sa.String(128), nullable=True),
        sa.Column("location", sa.String(128), nullable=True),
        sa.Column("condition", sa.String(64), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="Available"),
        sa.Column("cost_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("sale_price_cents", sa.Integer(), nullable=True),
        sa.Column("owner_type", sa.String(16), nullable=False, server_default="store"),
        sa.Column("consignor_id", sa.Integer(), nullable=True),
        sa.Column("date_added", sa.Date(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["consignor_id"], ["consignors.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", "serial_number", name="uq_variants_owner_serial"),
    )
    with op.batch_alter_table("variants", schema=None) as batch_op:
        batch_op.create_index("ix_variants_owner_id", ["owner_id"], unique=False)
        batch_op.create_index("ix_variants_owner_status", ["owner_id", "status", "is_archived"], unique=False)
        batch_op.create_index("ix_variants_product", ["product_id"], unique=False)
        batch_op.create_index("ix_variants_consignor", ["consignor_id"], unique=False)

    op.create_table(
        "avatars",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("avatar_type", sa.String(16), nullable=False, server_default="Member"),
        sa.Column("default_percentage", sa.Numeric(6, 2), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("avatars", schema=None) as batch_op:
        batch_op.create_index("ix_avatars_owner_id", ["owner_id"], unique=False)

    op.create_table(
        "payment_types",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("fee_type", sa.String(16), nullable=False, server_default="none"),
        sa.Column("fee_value", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("applies_to", sa.String(16), nullable=False, server_default="profit"),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", "name", name="uq_payment_types_owner_name"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("payment_types", schema=None) as batch_op:
        batch_op.create_index("ix_payment_types_owner_id", ["owner_id"], unique=False)

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("sale_date", sa.Date(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("customer_phone", sa.String(32), nullable=True),
        sa.Column("subtotal_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_fee_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_cost_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("net_profit_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_type", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="completed"),
        sa.Column("refunded_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.create_index("ix_sales_owner_id", ["owner_id"], unique=False)
        batch_op.create_index("ix_sales_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_sales_owner_date", ["owner_id", "sale_date"], unique=False)

    op.create_table(
        "sale_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("variant_id", sa.String(36), nullable=False),
        sa.Column("sold_price_cents", sa.Integer(), nullable=False),
        sa.Column("cost_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["variant_id"], ["variants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("sale_items", schema=None) as batch_op:
        batch_op.create_index("ix_sale_items_sale_id", ["sale_id"], unique=False)
        batch_op.create_index("ix_sale_items_variant_id", ["variant_id"], unique=False)

    op.create_table(
        "sale_profit_distributions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("avatar_id", sa.Integer(), nullable=False),
        sa.Column("percentage", sa.Numeric(6, 2), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["avatar_id"], ["avatars.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("sale_profit_distributions", schema=None) as batch_op:
        batch_op.create_index("ix_sale_profit_distributions_sale_id", ["sale_id"], unique=False)
        batch_op.create_index("ix_sale_profit_distributions_avatar_id", ["avatar_id"], unique=False)

    op.create_table(
        "consignment_sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("variant_id", sa.String(36), nullable=False),
        sa.Column("consignor_id", sa.Integer(), nullable=False),
        sa.Column("sale_price_cents", sa.Integer(), nullable=False),
        sa.Column("commission_rate", sa.Numeric(6, 2), nullable=True),
        sa.Column("payout_method_used", sa.String(32), nullable=False),
        sa.Column("store_commission_cents", sa.Integer(), nullable=False),
        sa.Column("consignor_payout_cents", sa.Integer(), nullable=False),
        sa.Column("payout_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("payout_date", sa.Date(), nullable=True),
        sa.Column("payout_method", sa.String(64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["variant_id"], ["variants.id"]),
        sa.ForeignKeyConstraint(["consignor_id"], ["consignors.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("consignment_sales", schema=None) as batch_op:
        batch_op.create_index("ix_consignment_sales_owner_id", ["owner_id"], unique=False)
        batch_op.create_index("ix_consignment_sales_sale_id", ["sale_id"], unique=False)
        batch_op.create_index("ix_consignment_sales_consignor_status", ["consignor_id", "payout_status"], unique=False)

    op.create_table(
        "payout_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("consignor_id", sa.Integer(), nullable=False),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(64), nullable=True),
        sa.Column("payout_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="completed"),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["consignor_id"], ["consignors.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("payout_transactions", schema=None) as batch_op:
        batch_op.create_index("ix_payout_transactions_owner_id", ["owner_id"], unique=False)
        batch_op.create_index("ix_payout_transactions_consignor_id", ["consignor_id"], unique=False)

    op.create_table(
        "payout_transaction_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("payout_transaction_id", sa.Integer(), nullable=False),
        sa.Column("consignment_sale_id", sa.Integer(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["payout_transaction_id"], ["payout_transactions.id"]),
        sa.ForeignKeyConstraint(["consignment_sale_id"], ["consignment_sales.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("consignment_sale_id", name="uq_payout_items_consignment_sale"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("payout_transaction_items", schema=None) as batch_op:
        batch_op.create_index(
            "ix_payout_transaction_items_payout_transaction_id", ["payout_transaction_id"], unique=False
        )

    op.create_table(
        "custom_locations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", "name", name="uq_custom_locations_owner_name"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("custom_locations", schema=None) as batch_op:
        batch_op.create_index("ix_custom_locations_owner_id", ["owner_id"], unique=False)

    op.create_table(
        "profit_templates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("profit_templates", schema=None) as batch_op:
        batch_op.create_index("ix_profit_templates_owner_id", ["owner_id"], unique=False)
        batch_op.create_index("ix_profit_templates_owner_name", ["owner_id", "name"], unique=False)

    op.create_table(
        "profit_template_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("avatar_id", sa.Integer(), nullable=False),
        sa.Column("percentage", sa.Numeric(6, 2), nullable=False),
        sa.ForeignKeyConstraint(["template_id"], ["profit_templates.id"]),
        sa.ForeignKeyConstraint(["avatar_id"], ["avatars.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("profit_template_items", schema=None) as batch_op:
        batch_op.create_index("ix_profit_template_items_template_id", ["template_id"], unique=False)
        batch_op.create_index("ix_profit_template_items_avatar_id", ["avatar_id"], unique=False)

    op.create_table(
        "pre_orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("pre_order_no", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("variant_id", sa.String(36), nullable=True),
        sa.Column("size", sa.String(16), nullable=False),
        sa.Column("size_label", sa.String(16), nullable=False, server_default="US"),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("cost_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("down_payment_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("expected_delivery_date", sa.Date(), nullable=True),
        sa.Column("completed_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["variant_id"], ["variants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", "pre_order_no", name="uq_pre_orders_owner_no"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("pre_orders", schema=None) as batch_op:
        batch_op.create_index("ix_pre_orders_owner_id", ["owner_id"], unique=False)
        batch_op.create_index("ix_pre_orders_owner_status", ["owner_id", "status"], unique=False)
        batch_op.create_index("ix_pre_orders_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_pre_orders_product_id", ["product_id"], unique=False)


def downgrade():
    for table in (
        "pre_orders",
        "profit_template_items",
        "profit_templates",
        "custom_locations",
        "payout_transaction_items",
        "payout_transactions",
        "consignment_sales",
        "sale_profit_distributions",
        "sale_items",
        "sales",
        "payment_types",
        "avatars",
        "variants",
        "products",
        "customers",
        "consignors",
        "security_events",
        "session_tokens",
        "users",
    ):
        op.drop_table(table)
