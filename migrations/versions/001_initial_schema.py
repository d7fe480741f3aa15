"""Initial schema: users, rides, ride stops and ride requests.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── rides ─────────────────────────────────────────────────────────
    op.create_table(
        "rides",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "departure_type",
            sa.Enum("scheduled", "window", name="departuretype"),
            nullable=False,
        ),
        sa.Column("ride_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("flexible_window_minutes", sa.Integer, nullable=True),
        sa.Column("window_anchored_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("departs_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_seats", sa.Integer, nullable=False),
        sa.Column("available_seats", sa.Integer, nullable=False),
        sa.Column(
            "status",
            sa.Enum("active", "inactive", name="ridestatus"),
            default="active",
            nullable=False,
        ),
        sa.Column("price_per_person", sa.Float, nullable=True),
        sa.Column("seat_layout", sa.String(120), nullable=True),
        sa.Column("payment_contact", sa.String(255), nullable=True),
        sa.Column("car_info", sa.String(255), nullable=True),
        sa.Column("extra_notes", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("total_seats > 0", name="ck_rides_total_seats_positive"),
        sa.CheckConstraint(
            "available_seats >= 0 AND available_seats <= total_seats",
            name="ck_rides_available_seats_range",
        ),
    )
    op.create_index("idx_rides_search", "rides", ["status", "departs_at"])
    op.create_index("idx_rides_driver", "rides", ["driver_id"])

    # ── ride_stops ────────────────────────────────────────────────────
    op.create_table(
        "ride_stops",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "ride_id",
            sa.Integer,
            sa.ForeignKey("rides.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "kind",
            sa.Enum("source", "destination", name="stopkind"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("place", sa.String(255), nullable=False),
    )
    op.create_index("idx_ride_stops_ride", "ride_stops", ["ride_id"])
    op.create_index("idx_ride_stops_place", "ride_stops", ["kind", "place"])

    # ── ride_requests ─────────────────────────────────────────────────
    op.create_table(
        "ride_requests",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "ride_id", sa.Integer, sa.ForeignKey("rides.id"), nullable=False
        ),
        sa.Column(
            "passenger_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "status",
            sa.Enum("pending", "accepted", name="requeststatus"),
            default="pending",
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "ride_id", "passenger_id", name="uq_ride_requests_ride_passenger"
        ),
    )
    op.create_index("idx_ride_requests_ride", "ride_requests", ["ride_id"])
    op.create_index("idx_ride_requests_passenger", "ride_requests", ["passenger_id"])


def downgrade() -> None:
    op.drop_table("ride_requests")
    op.drop_table("ride_stops")
    op.drop_table("rides")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS requeststatus")
    op.execute("DROP TYPE IF EXISTS stopkind")
    op.execute("DROP TYPE IF EXISTS ridestatus")
    op.execute("DROP TYPE IF EXISTS departuretype")
