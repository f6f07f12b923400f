"""Initial schema and category seed

Revision ID: 001
Revises: None
Create Date: 2025-01-10 00:00:00.000000+00:00

What:  Creates users, categories, events and their child tables, vendor
       services and bids, and seeds the eight top-level categories.
How:   Portable column types (sa.Uuid, sa.JSON, timezone-aware DateTime)
       matching eventhub/models; ids and timestamps are filled in by the ORM.

Rollback: downgrade() drops every table and enum type (destructive).
"""

import uuid
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("USER", "HOST", "VENDOR", "ADMIN", name="user_role")
auth_provider = sa.Enum("EMAIL", "GOOGLE", "FACEBOOK", "APPLE", name="auth_provider")
event_status = sa.Enum("DRAFT", "UPCOMING", "ONGOING", "COMPLETED", "CANCELLED", name="event_status")
attendee_status = sa.Enum("REGISTERED", "CANCELLED", "ATTENDED", name="attendee_status")
bid_status = sa.Enum("PENDING", "ACCEPTED", "REJECTED", name="bid_status")

SEED_CATEGORIES = [
    ("Outdoor & Adventure", "outdoor-adventure", "🏔️"),
    ("Music & Entertainment", "music-entertainment", "🎵"),
    ("Cultural & Arts", "cultural-arts", "🎨"),
    ("Social & Networking", "social-networking", "👥"),
    ("Nightlife", "nightlife", "🌃"),
    ("Tech & Professional", "tech-professional", "💻"),
    ("Cosplay & Gaming", "cosplay-gaming", "🎮"),
    ("Food & Drink", "food-drink", "🍽️"),
]


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("profile_picture", sa.Text(), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("preferences", sa.JSON(), nullable=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("auth_provider", auth_provider, nullable=False),
        sa.Column("verification_token_hash", sa.String(64), nullable=True),
        sa.Column("verification_token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reset_token_hash", sa.String(64), nullable=True),
        sa.Column("reset_token_expires_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_verification_token_hash", "users", ["verification_token_hash"])
    op.create_index("ix_users_reset_token_hash", "users", ["reset_token_hash"])

    # ── categories ────────────────────────────────────────────────────────
    categories = op.create_table(
        "categories",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(120), nullable=False, unique=True),
        sa.Column("icon", sa.String(50), nullable=True),
        sa.Column("parent_id", sa.Uuid(), sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
    )

    # ── events ────────────────────────────────────────────────────────────
    op.create_table(
        "events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("long_description", sa.Text(), nullable=True),
        sa.Column("category_id", sa.Uuid(), sa.ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("host_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("start_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="INR"),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("status", event_status, nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_events_category_id", "events", ["category_id"])
    op.create_index("ix_events_host_id", "events", ["host_id"])
    op.create_index("ix_events_status", "events", ["status"])
    op.create_index("idx_events_start_datetime", "events", ["start_datetime"])

    # ── event children ────────────────────────────────────────────────────
    def event_fk() -> sa.Column:
        return sa.Column("event_id", sa.Uuid(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False)

    op.create_table(
        "event_features",
        sa.Column("id", sa.Uuid(), primary_key=True),
        event_fk(),
        sa.Column("name", sa.String(255), nullable=False),
    )
    op.create_table(
        "event_faqs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        event_fk(),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_table(
        "event_schedule_items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        event_fk(),
        sa.Column("time", sa.String(20), nullable=False),
        sa.Column("activity", sa.String(500), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_table(
        "event_attendees",
        sa.Column("id", sa.Uuid(), primary_key=True),
        event_fk(),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", attendee_status, nullable=False),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_attendee"),
    )
    op.create_table(
        "event_reviews",
        sa.Column("id", sa.Uuid(), primary_key=True),
        event_fk(),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        _timestamp("created_at"),
    )
    for table in ("event_features", "event_faqs", "event_schedule_items", "event_attendees", "event_reviews"):
        op.create_index(f"ix_{table}_event_id", table, ["event_id"])
    op.create_index("ix_event_attendees_user_id", "event_attendees", ["user_id"])
    op.create_index("ix_event_reviews_user_id", "event_reviews", ["user_id"])

    # ── vendors ───────────────────────────────────────────────────────────
    op.create_table(
        "vendor_services",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("vendor_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("base_price", sa.Float(), nullable=True),
        _timestamp("created_at"),
    )
    op.create_index("ix_vendor_services_vendor_id", "vendor_services", ["vendor_id"])

    op.create_table(
        "service_bids",
        sa.Column("id", sa.Uuid(), primary_key=True),
        event_fk(),
        sa.Column("vendor_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "service_id", sa.Uuid(), sa.ForeignKey("vendor_services.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", bid_status, nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_service_bids_event_id", "service_bids", ["event_id"])
    op.create_index("ix_service_bids_vendor_id", "service_bids", ["vendor_id"])

    # ── seed ──────────────────────────────────────────────────────────────
    op.bulk_insert(
        categories,
        [{"id": uuid.uuid4(), "name": name, "slug": slug, "icon": icon} for name, slug, icon in SEED_CATEGORIES],
    )


def downgrade() -> None:
    for table in (
        "service_bids",
        "vendor_services",
        "event_reviews",
        "event_attendees",
        "event_schedule_items",
        "event_faqs",
        "event_features",
        "events",
        "categories",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (bid_status, attendee_status, event_status, auth_provider, user_role):
        enum_type.drop(bind, checkfirst=True)
