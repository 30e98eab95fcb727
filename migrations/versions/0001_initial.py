"""users, resources and bookings

Revision ID: 0001_initial
Revises:
Create Date: 2025-02-01 09:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

role = sa.Enum("Admin", "Faculty", "Student", "Staff", name="role")
resource_status = sa.Enum("Active", "Maintenance", "Inactive", name="resourcestatus")
booking_status = sa.Enum("Pending", "Confirmed", "Cancelled", "Completed", name="bookingstatus")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("role", role, nullable=False),
        sa.Column("department_code", sa.String(), nullable=True),
        sa.Column("department_name", sa.String(), nullable=True),
        sa.Column("department_batch", sa.String(), nullable=True),
        sa.Column("can_book_labs", sa.Boolean(), nullable=False),
        sa.Column("can_book_auditorium", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "resources",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("sub_category", sa.String(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("status", resource_status, nullable=False),
        sa.Column("building", sa.String(), nullable=True),
        sa.Column("zone", sa.String(), nullable=True),
        sa.Column("floor", sa.Integer(), nullable=True),
        sa.Column("requires_approval", sa.Boolean(), nullable=False),
        sa.Column("allowed_roles", sa.JSON(), nullable=False),
        sa.Column("max_duration_hours", sa.Float(), nullable=True),
        sa.Column("required_permission", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_resources_id", "resources", ["id"])
    op.create_index("ix_resources_code", "resources", ["code"], unique=True)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("reference", sa.String(), nullable=False),
        sa.Column("resource_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=False),
        sa.Column("status", booking_status, nullable=False),
        sa.Column("resource_name", sa.String(), nullable=False),
        sa.Column("user_name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_reference", "bookings", ["reference"], unique=True)
    op.create_index("ix_bookings_resource_id", "bookings", ["resource_id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_date", "bookings", ["date"])


def downgrade():
    op.drop_table("bookings")
    op.drop_table("resources")
    op.drop_table("users")
    booking_status.drop(op.get_bind(), checkfirst=True)
    resource_status.drop(op.get_bind(), checkfirst=True)
    role.drop(op.get_bind(), checkfirst=True)
