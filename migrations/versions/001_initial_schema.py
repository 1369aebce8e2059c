"""Initial schema: users, vehicles, locations, rides, waypoints, bookings.

Revision ID: 001
Create Date: 2026-10-18
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
        sa.Column("uid", sa.String(128), unique=True, nullable=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "owner_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("vehicle_number", sa.String(32), nullable=False),
        sa.Column("vehicle_name", sa.String(120), nullable=False),
        sa.Column("vehicle_type", sa.String(32), nullable=False, server_default="CAR"),
        sa.Column("capacity", sa.Integer, nullable=False, server_default="4"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )
    op.create_index("idx_vehicles_owner", "vehicles", ["owner_id"])

    # ── locations ─────────────────────────────────────────────────────
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("place_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(120), nullable=True),
        sa.Column("state", sa.String(120), nullable=True),
        sa.Column("country", sa.String(120), nullable=True),
        sa.Column("zip_code", sa.String(20), nullable=True),
    )

    # ── rides ─────────────────────────────────────────────────────────
    op.create_table(
        "rides",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=True
        ),
        sa.Column(
            "pickup_id", sa.Integer, sa.ForeignKey("locations.id"), nullable=False
        ),
        sa.Column(
            "destination_id",
            sa.Integer,
            sa.ForeignKey("locations.id"),
            nullable=False,
        ),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("selected_capacity", sa.Integer, nullable=False),
        sa.Column("price", sa.Float, nullable=False, server_default="0"),
        sa.Column("price_per_km", sa.Float, nullable=True),
        sa.Column("estimated_distance_km", sa.Float, nullable=True),
        sa.Column("estimated_duration_min", sa.Integer, nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "UPCOMING",
                "IN_PROGRESS",
                "COMPLETED",
                "CANCELLED",
                name="ridestatus",
            ),
            nullable=False,
            server_default="UPCOMING",
        ),
        sa.Column(
            "ride_type",
            sa.Enum("PUBLISHED", "BOOKED", name="ridetype"),
            nullable=False,
            server_default="PUBLISHED",
        ),
        sa.Column("immediate_mode", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("scheduled_mode", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_recurring", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("recurring_days", sa.String(64), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
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
    )
    op.create_index("idx_rides_status", "rides", ["status"])
    op.create_index("idx_rides_driver", "rides", ["driver_id"])
    op.create_index("idx_rides_scheduled", "rides", ["scheduled_at"])

    # ── waypoints ─────────────────────────────────────────────────────
    op.create_table(
        "waypoints",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "ride_id", sa.Integer, sa.ForeignKey("rides.id"), nullable=False
        ),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("place_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("stop_order", sa.Integer, nullable=False),
        sa.Column("estimated_arrival", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_waypoints_ride", "waypoints", ["ride_id", "stop_order"])

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "ride_id", sa.Integer, sa.ForeignKey("rides.id"), nullable=False
        ),
        sa.Column(
            "passenger_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("passenger_count", sa.Integer, nullable=False, server_default="1"),
        sa.Column("source", sa.String(255), nullable=False, server_default=""),
        sa.Column("destination", sa.String(255), nullable=False, server_default=""),
        sa.Column(
            "status",
            sa.Enum(
                "ONGOING",
                "CONFIRMED",
                "COMPLETED",
                "CANCELLED",
                name="bookingstatus",
            ),
            nullable=False,
            server_default="CONFIRMED",
        ),
        sa.Column(
            "payment_status",
            sa.Enum("PENDING", "COMPLETED", "REFUNDED", name="paymentstatus"),
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("payment_amount", sa.Float, nullable=False, server_default="0"),
        sa.Column("special_requests", sa.Text, nullable=True),
        sa.Column(
            "booked_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    # At most one active booking per passenger and ride
    op.create_index(
        "uq_bookings_active_passenger",
        "bookings",
        ["ride_id", "passenger_id"],
        unique=True,
        postgresql_where=sa.text("status != 'CANCELLED'"),
    )
    op.create_index("idx_bookings_passenger", "bookings", ["passenger_id"])
    op.create_index("idx_bookings_ride", "bookings", ["ride_id"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("waypoints")
    op.drop_table("rides")
    op.drop_table("locations")
    op.drop_table("vehicles")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS paymentstatus")
    op.execute("DROP TYPE IF EXISTS bookingstatus")
    op.execute("DROP TYPE IF EXISTS ridetype")
    op.execute("DROP TYPE IF EXISTS ridestatus")
