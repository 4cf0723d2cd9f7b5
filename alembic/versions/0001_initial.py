"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=False, server_default="0")


def upgrade() -> None:
    op.create_table(
        "havens",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("haven_name", sa.String(length=200), nullable=False),
        sa.Column("tower", sa.String(length=80), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_havens_haven_name", "havens", ["haven_name"], unique=True)

    op.create_table(
        "haven_images",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("haven_id", sa.String(length=36), sa.ForeignKey("havens.id", ondelete="CASCADE"), nullable=False),
        sa.Column("image_url", sa.String(length=1024), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_haven_images_haven_id", "haven_images", ["haven_id"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("guest_first_name", sa.String(length=100), nullable=False),
        sa.Column("guest_last_name", sa.String(length=100), nullable=False),
        sa.Column("guest_age", sa.Integer(), nullable=True),
        sa.Column("guest_gender", sa.String(length=20), nullable=True),
        sa.Column("guest_email", sa.String(length=320), nullable=False),
        sa.Column("guest_phone", sa.String(length=40), nullable=False),
        sa.Column("facebook_link", sa.String(length=500), nullable=True),
        sa.Column("valid_id_url", sa.String(length=1024), nullable=True),
        sa.Column("additional_guests", sa.JSON(), nullable=True),
        sa.Column("room_name", sa.String(length=200), nullable=True),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_in_time", sa.String(length=10), nullable=True),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("check_out_time", sa.String(length=10), nullable=True),
        sa.Column("adults", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("children", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("infants", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("payment_method", sa.String(length=40), nullable=True),
        sa.Column("payment_proof_url", sa.String(length=1024), nullable=True),
        _money("room_rate"),
        _money("security_deposit"),
        _money("add_ons_total"),
        _money("total_amount"),
        _money("down_payment"),
        _money("remaining_balance"),
        sa.Column("add_ons", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_bookings_booking_id", "bookings", ["booking_id"], unique=True)
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"], unique=False)
    op.create_index("ix_bookings_guest_email", "bookings", ["guest_email"], unique=False)
    op.create_index("ix_bookings_room_name", "bookings", ["room_name"], unique=False)
    op.create_index("ix_bookings_check_in_date", "bookings", ["check_in_date"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)
    op.create_index("ix_bookings_created_at", "bookings", ["created_at"], unique=False)

    op.create_table(
        "booking_payments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("payment_method", sa.String(length=40), nullable=True),
        sa.Column("payment_proof_url", sa.String(length=1024), nullable=True),
        _money("room_rate"),
        _money("add_ons_total"),
        _money("total_amount"),
        _money("down_payment"),
        _money("remaining_balance"),
        _money("amount_paid"),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("reviewed_by", sa.String(length=120), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_booking_payments_booking_id", "booking_payments", ["booking_id"], unique=False)
    op.create_index("ix_booking_payments_payment_status", "booking_payments", ["payment_status"], unique=False)
    op.create_index("ix_booking_payments_created_at", "booking_payments", ["created_at"], unique=False)

    op.create_table(
        "email_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("to_email", sa.String(length=320), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("event", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="queued"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("related_booking_ref", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_email_logs_to_email", "email_logs", ["to_email"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor", sa.String(length=120), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor", "audit_logs", ["actor"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"], unique=False)
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"], unique=False)


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("email_logs")
    op.drop_table("booking_payments")
    op.drop_table("bookings")
    op.drop_table("haven_images")
    op.drop_table("havens")
