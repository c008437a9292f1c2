"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)

def _note_columns() -> list:
    return [
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("seq", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("author", sa.String(length=36), nullable=False),
        sa.Column("attachment", sa.String(length=512), nullable=True),
        sa.Column("attachment_name", sa.String(length=255), nullable=True),
        _ts("created_at"),
    ]

def upgrade() -> None:
    op.create_table(
        "catalog_items",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("item_type", sa.String(length=12), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("base_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _ts("created_at"),
    )
    op.create_index("ix_catalog_items_item_type", "catalog_items", ["item_type"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_ref", sa.String(length=32), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("address", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("item_type", sa.String(length=12), nullable=False),
        sa.Column("item_id", sa.String(length=36), nullable=False),
        sa.Column("item_name", sa.String(length=200), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("number_of_days", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("number_of_guests", sa.Integer(), nullable=True),
        sa.Column("special_requests", sa.Text(), nullable=False, server_default=""),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("amount_paid", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("payment_option", sa.String(length=12), nullable=False),
        sa.Column("original_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("discount_applied", sa.Numeric(12, 2), nullable=True),
        sa.Column("promotion_title", sa.String(length=200), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("deadline_kind", sa.String(length=32), nullable=False, server_default="none"),
        _ts("deadline_at", nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        sa.CheckConstraint("total_price >= 0", name="ck_bookings_total_price"),
        sa.CheckConstraint("amount_paid >= 0", name="ck_bookings_amount_paid"),
        sa.CheckConstraint("(deadline_kind = 'none') = (deadline_at IS NULL)", name="ck_bookings_deadline"),
    )
    op.create_index("ix_bookings_booking_ref", "bookings", ["booking_ref"], unique=True)
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_email", "bookings", ["email"])
    op.create_index("ix_bookings_item_type", "bookings", ["item_type"])
    op.create_index("ix_bookings_item_id", "bookings", ["item_id"])
    op.create_index("ix_bookings_start_date", "bookings", ["start_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_deadline_kind", "bookings", ["deadline_kind"])
    op.create_index("ix_bookings_deadline_at", "bookings", ["deadline_at"])

    op.create_table(
        "booking_payments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_reference", sa.String(length=40), nullable=False),
        sa.Column("manual_reference", sa.String(length=120), nullable=True),
        sa.Column("proof_ref", sa.String(length=512), nullable=False),
        _ts("paid_at"),
        sa.UniqueConstraint("booking_id", "seq", name="uq_booking_payments_seq"),
        sa.CheckConstraint("amount > 0", name="ck_booking_payments_amount"),
    )
    op.create_index("ix_booking_payments_booking_id", "booking_payments", ["booking_id"])
    op.create_index("ix_booking_payments_payment_reference", "booking_payments", ["payment_reference"])

    op.create_table(
        "booking_notes",
        *_note_columns(),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
    )
    op.create_index("ix_booking_notes_booking_id", "booking_notes", ["booking_id"])

    op.create_table(
        "refund_requests",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id"), nullable=False, unique=True),
        sa.Column("booking_ref", sa.String(length=32), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("item_type", sa.String(length=12), nullable=False),
        sa.Column("item_name", sa.String(length=200), nullable=False),
        sa.Column("booking_start_date", sa.Date(), nullable=False),
        sa.Column("booking_total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("submitter_name", sa.String(length=200), nullable=False),
        sa.Column("submitter_email", sa.String(length=320), nullable=False),
        sa.Column("submitter_phone", sa.String(length=40), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("refund_policy", sa.String(length=8), nullable=False),
        sa.Column("calculated_refund_amount", sa.Numeric(12, 2), nullable=False),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_refund_requests_booking_ref", "refund_requests", ["booking_ref"], unique=True)
    op.create_index("ix_refund_requests_user_id", "refund_requests", ["user_id"])
    op.create_index("ix_refund_requests_status", "refund_requests", ["status"])

    op.create_table(
        "refund_notes",
        *_note_columns(),
        sa.Column("refund_request_id", sa.String(length=36),
                  sa.ForeignKey("refund_requests.id", ondelete="CASCADE"), nullable=False),
    )
    op.create_index("ix_refund_notes_refund_request_id", "refund_notes", ["refund_request_id"])

    op.create_table(
        "promotions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("discount_type", sa.String(length=12), nullable=False),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("applicable_to", sa.String(length=12), nullable=False),
        sa.Column("item_ids", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _ts("start_date"),
        _ts("end_date"),
        _ts("created_at"),
    )
    op.create_index("ix_promotions_applicable_to", "promotions", ["applicable_to"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("recipient", sa.String(length=36), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _ts("created_at"),
    )
    op.create_index("ix_notifications_recipient", "notifications", ["recipient"])

    op.create_table(
        "email_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("to_email", sa.String(length=320), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("template_kind", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="queued"),
        sa.Column("related_ref", sa.String(length=32), nullable=False, server_default=""),
        _ts("created_at"),
        _ts("sent_at", nullable=True),
    )
    op.create_index("ix_email_logs_to_email", "email_logs", ["to_email"])
    op.create_index("ix_email_logs_related_ref", "email_logs", ["related_ref"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=60), nullable=False),
        sa.Column("entity_ref", sa.String(length=36), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("link", sa.String(length=255), nullable=False, server_default=""),
        _ts("created_at"),
    )
    op.create_index("ix_activity_logs_actor_id", "activity_logs", ["actor_id"])
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index("ix_activity_logs_entity_ref", "activity_logs", ["entity_ref"])

def downgrade() -> None:
    for table in (
        "activity_logs", "email_logs", "notifications", "promotions", "refund_notes",
        "refund_requests", "booking_notes", "booking_payments", "bookings", "catalog_items",
    ):
        op.drop_table(table)
