"""Initial migration

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""

from typing import List, Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Creation order; foreign keys only point at earlier tables
TABLES = (
    "users",
    "vendors",
    "categories",
    "products",
    "payment_accounts",
    "homepage_banners",
    "homepage_cards",
    "homepage_categories",
    "visit_places",
    "orders",
    "order_items",
    "vendor_orders",
    "monthly_commissions",
    "commission_transactions",
    "customer_inquiries",
    "inquiry_messages",
    "inquiry_notes",
    "carts",
    "cart_items",
    "contact_messages",
    "newsletter_subscriptions",
)


def base_columns() -> List[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
    ]


def money(name: str, nullable: bool = False, precision: int = 12) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=precision, scale=2), nullable=nullable)


def upgrade() -> None:
    # Create accounts
    op.create_table(
        "users",
        *base_columns(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "vendors",
        *base_columns(),
        sa.Column("business_name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("owner_name", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("logo", sa.String(length=500), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("commission_rate", sa.Numeric(precision=5, scale=4), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_vendors_slug", "vendors", ["slug"], unique=True)
    op.create_index("ix_vendors_email", "vendors", ["email"], unique=True)
    op.create_index("ix_vendors_status", "vendors", ["status"])

    # Create catalog
    op.create_table(
        "categories",
        *base_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "parent_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("image", sa.String(length=500), nullable=True),
        sa.Column("image_alt", sa.String(length=255), nullable=True),
        sa.Column("meta_title", sa.String(length=255), nullable=True),
        sa.Column("meta_description", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_categories_slug", "categories", ["slug"], unique=True)

    op.create_table(
        "products",
        *base_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("brand", sa.String(length=255), nullable=True),
        money("price"),
        money("shipping_cost"),
        sa.Column("stock", sa.Integer(), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "vendor_id",
            sa.Integer(),
            sa.ForeignKey("vendors.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("image", sa.String(length=500), nullable=True),
        sa.Column("images", sa.JSON(), nullable=True),
        sa.Column("image_alt_texts", sa.JSON(), nullable=True),
        sa.Column("image_metadata", sa.JSON(), nullable=True),
        sa.Column("alt_text", sa.String(length=255), nullable=True),
        sa.Column("seo_keywords", sa.JSON(), nullable=True),
        sa.Column("meta_title", sa.String(length=255), nullable=True),
        sa.Column("meta_description", sa.Text(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_featured", sa.Boolean(), nullable=False),
        sa.Column("is_premium", sa.Boolean(), nullable=False),
        sa.Column("featured_order", sa.Integer(), nullable=False),
        sa.Column("approval_status", sa.String(length=20), nullable=False),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
    )
    op.create_index("ix_products_slug", "products", ["slug"], unique=True)
    op.create_index("ix_products_category_id", "products", ["category_id"])
    op.create_index("ix_products_vendor_id", "products", ["vendor_id"])
    op.create_index("ix_products_approval_status", "products", ["approval_status"])

    # Create storefront content
    op.create_table(
        "payment_accounts",
        *base_columns(),
        sa.Column("account_type", sa.String(length=30), nullable=False),
        sa.Column("account_title", sa.String(length=255), nullable=False),
        sa.Column("account_number", sa.String(length=100), nullable=False),
        sa.Column("bank_name", sa.String(length=255), nullable=True),
        sa.Column("iban", sa.String(length=64), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "homepage_banners",
        *base_columns(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("subtitle", sa.String(length=500), nullable=True),
        sa.Column("image", sa.String(length=500), nullable=True),
        sa.Column("link", sa.String(length=500), nullable=True),
        sa.Column("button_text", sa.String(length=100), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "homepage_cards",
        *base_columns(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image", sa.String(length=500), nullable=True),
        sa.Column("link", sa.String(length=500), nullable=True),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "homepage_categories",
        *base_columns(),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("image", sa.String(length=500), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "visit_places",
        *base_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("image", sa.String(length=500), nullable=False),
    )

    # Create orders table
    op.create_table(
        "orders",
        *base_columns(),
        sa.Column("order_number", sa.String(length=50), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=50), nullable=False),
        sa.Column("shipping_address", sa.Text(), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("payment_method", sa.String(length=50), nullable=False),
        sa.Column(
            "payment_account_id",
            sa.Integer(),
            sa.ForeignKey("payment_accounts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("payment_receipt", sa.String(length=500), nullable=True),
        sa.Column("payment_status", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("order_type", sa.String(length=20), nullable=False),
        money("total_amount"),
        money("shipping_cost"),
        sa.Column("is_forwarded_to_vendors", sa.Boolean(), nullable=False),
        sa.Column("forwarded_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_by", sa.String(length=20), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("delivered_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_orders_order_number", "orders", ["order_number"], unique=True)
    op.create_index("ix_orders_user_id", "orders", ["user_id"])
    op.create_index("ix_orders_customer_email", "orders", ["customer_email"])
    op.create_index("ix_orders_status", "orders", ["status"])

    # Create order_items table
    op.create_table(
        "order_items",
        *base_columns(),
        sa.Column(
            "order_id",
            sa.Integer(),
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "product_id",
            sa.Integer(),
            sa.ForeignKey("products.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "vendor_id",
            sa.Integer(),
            sa.ForeignKey("vendors.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        money("price"),
        sa.Column("quantity", sa.Integer(), nullable=False),
        money("shipping"),
        sa.Column("image", sa.String(length=500), nullable=True),
        sa.Column("category_names", sa.JSON(), nullable=True),
        sa.Column("attributes", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("cancelled_by", sa.String(length=20), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_index("ix_order_items_vendor_id", "order_items", ["vendor_id"])

    # Create vendor_orders table
    op.create_table(
        "vendor_orders",
        *base_columns(),
        sa.Column(
            "parent_order_id",
            sa.Integer(),
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("order_number", sa.String(length=60), nullable=False),
        sa.Column(
            "vendor_id",
            sa.Integer(),
            sa.ForeignKey("vendors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=50), nullable=False),
        sa.Column("shipping_address", sa.Text(), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("items", sa.JSON(), nullable=False),
        money("items_total"),
        money("shipping_cost"),
        money("total_amount"),
        sa.Column("commission_rate", sa.Numeric(precision=5, scale=4), nullable=False),
        money("commission_amount"),
        sa.Column("commission_reversed", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("tracking_number", sa.String(length=100), nullable=True),
        sa.Column("vendor_notes", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("cancelled_by", sa.String(length=20), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("forwarded_at", sa.DateTime(), nullable=False),
        sa.Column("shipped_at", sa.DateTime(), nullable=True),
        sa.Column("delivered_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("parent_order_id", "vendor_id", name="uq_vendor_order_parent"),
    )
    op.create_index(
        "ix_vendor_orders_parent_order_id", "vendor_orders", ["parent_order_id"]
    )
    op.create_index(
        "ix_vendor_orders_order_number", "vendor_orders", ["order_number"], unique=True
    )
    op.create_index("ix_vendor_orders_vendor_id", "vendor_orders", ["vendor_id"])
    op.create_index("ix_vendor_orders_status", "vendor_orders", ["status"])

    # Create commission ledger
    op.create_table(
        "monthly_commissions",
        *base_columns(),
        sa.Column(
            "vendor_id",
            sa.Integer(),
            sa.ForeignKey("vendors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("total_orders", sa.Integer(), nullable=False),
        money("total_sales", precision=14),
        money("total_commission", precision=14),
        money("paid_commission", precision=14),
        money("pending_commission", precision=14),
        sa.Column("payment_status", sa.String(length=20), nullable=False),
        sa.Column("last_payment_at", sa.DateTime(), nullable=True),
        sa.Column("payment_method", sa.String(length=50), nullable=True),
        sa.Column("payment_reference", sa.String(length=100), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.UniqueConstraint("vendor_id", "year", "month", name="uq_commission_month"),
    )
    op.create_index(
        "ix_monthly_commissions_vendor_id", "monthly_commissions", ["vendor_id"]
    )

    op.create_table(
        "commission_transactions",
        *base_columns(),
        sa.Column(
            "monthly_commission_id",
            sa.Integer(),
            sa.ForeignKey("monthly_commissions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=True),
        sa.Column("vendor_order_id", sa.Integer(), nullable=True),
        sa.Column("order_number", sa.String(length=60), nullable=True),
        money("sale_amount", precision=14),
        money("amount", precision=14),
        sa.Column("note", sa.Text(), nullable=True),
    )
    op.create_index(
        "ix_commission_transactions_monthly_commission_id",
        "commission_transactions",
        ["monthly_commission_id"],
    )
    op.create_index(
        "ix_commission_transactions_vendor_order_id",
        "commission_transactions",
        ["vendor_order_id"],
    )

    # Create customer inquiries
    op.create_table(
        "customer_inquiries",
        *base_columns(),
        sa.Column("inquiry_id", sa.String(length=40), nullable=False),
        sa.Column(
            "customer_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=50), nullable=True),
        sa.Column(
            "vendor_id",
            sa.Integer(),
            sa.ForeignKey("vendors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("category", sa.String(length=30), nullable=False),
        sa.Column("priority", sa.String(length=10), nullable=False),
        sa.Column(
            "related_product_id",
            sa.Integer(),
            sa.ForeignKey("products.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "related_order_id",
            sa.Integer(),
            sa.ForeignKey("orders.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("assigned_to", sa.String(length=255), nullable=True),
        sa.Column("assigned_at", sa.DateTime(), nullable=True),
        sa.Column("resolution_summary", sa.Text(), nullable=True),
        sa.Column("resolved_by", sa.String(length=255), nullable=True),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column("resolution_time", sa.Integer(), nullable=True),
        sa.Column("feedback_rating", sa.Integer(), nullable=True),
        sa.Column("feedback_comment", sa.Text(), nullable=True),
        sa.Column("feedback_submitted_at", sa.DateTime(), nullable=True),
        sa.Column("source", sa.String(length=20), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("first_response_at", sa.DateTime(), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_customer_inquiries_inquiry_id",
        "customer_inquiries",
        ["inquiry_id"],
        unique=True,
    )
    op.create_index(
        "ix_customer_inquiries_customer_id", "customer_inquiries", ["customer_id"]
    )
    op.create_index(
        "ix_customer_inquiries_customer_email", "customer_inquiries", ["customer_email"]
    )
    op.create_index("ix_customer_inquiries_vendor_id", "customer_inquiries", ["vendor_id"])
    op.create_index("ix_customer_inquiries_priority", "customer_inquiries", ["priority"])
    op.create_index("ix_customer_inquiries_status", "customer_inquiries", ["status"])

    op.create_table(
        "inquiry_messages",
        *base_columns(),
        sa.Column(
            "inquiry_pk",
            sa.Integer(),
            sa.ForeignKey("customer_inquiries.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("message_id", sa.String(length=40), nullable=False, unique=True),
        sa.Column("sender", sa.String(length=10), nullable=False),
        sa.Column("sender_name", sa.String(length=255), nullable=False),
        sa.Column("content", sa.String(length=2000), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_inquiry_messages_inquiry_pk", "inquiry_messages", ["inquiry_pk"])

    op.create_table(
        "inquiry_notes",
        *base_columns(),
        sa.Column(
            "inquiry_pk",
            sa.Integer(),
            sa.ForeignKey("customer_inquiries.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("added_by", sa.String(length=255), nullable=False),
    )
    op.create_index("ix_inquiry_notes_inquiry_pk", "inquiry_notes", ["inquiry_pk"])

    # Create saved carts
    op.create_table(
        "carts",
        *base_columns(),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
    )

    op.create_table(
        "cart_items",
        *base_columns(),
        sa.Column(
            "cart_id",
            sa.Integer(),
            sa.ForeignKey("carts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "product_id",
            sa.Integer(),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False),
        money("price"),
        sa.Column("attributes", sa.JSON(), nullable=True),
        sa.UniqueConstraint("cart_id", "product_id"),
    )
    op.create_index("ix_cart_items_cart_id", "cart_items", ["cart_id"])

    # Create contact form and newsletter tables
    op.create_table(
        "contact_messages",
        *base_columns(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("inquiry_type", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("priority", sa.String(length=10), nullable=False),
        sa.Column(
            "assigned_to",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("admin_response", sa.Text(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column(
            "resolved_by",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
    )
    op.create_index("ix_contact_messages_email", "contact_messages", ["email"])
    op.create_index(
        "ix_contact_messages_inquiry_type", "contact_messages", ["inquiry_type"]
    )
    op.create_index("ix_contact_messages_status", "contact_messages", ["status"])

    op.create_table(
        "newsletter_subscriptions",
        *base_columns(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("source", sa.String(length=20), nullable=False),
        sa.Column("subscribed_at", sa.DateTime(), nullable=False),
        sa.Column("unsubscribed_at", sa.DateTime(), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
    )
    op.create_index(
        "ix_newsletter_subscriptions_email",
        "newsletter_subscriptions",
        ["email"],
        unique=True,
    )
    op.create_index(
        "ix_newsletter_subscriptions_is_active",
        "newsletter_subscriptions",
        ["is_active"],
    )


def downgrade() -> None:
    # Indexes go with their tables
    for table in reversed(TABLES):
        op.drop_table(table)
