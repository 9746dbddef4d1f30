"""initial lottery schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", ID_TYPE, autoincrement=False, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("profession", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_members")),
    )
    op.create_table(
        "prizes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("image_url", sa.String(length=500), nullable=True),
        sa.Column("total_quantity", sa.Integer(), nullable=False),
        sa.Column("remaining_quantity", sa.Integer(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "remaining_quantity >= 0", name=op.f("ck_prizes_remaining_non_negative")
        ),
        sa.CheckConstraint(
            "remaining_quantity <= total_quantity",
            name=op.f("ck_prizes_remaining_within_total"),
        ),
        sa.CheckConstraint("weight >= 0", name=op.f("ck_prizes_weight_non_negative")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_prizes")),
    )
    op.create_table(
        "checkins",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("member_id", ID_TYPE, nullable=False),
        sa.Column("meeting_date", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("checkin_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "status IN ('present','early','late','early_leave','absent')",
            name=op.f("ck_checkins_status_enum"),
        ),
        sa.ForeignKeyConstraint(
            ["member_id"],
            ["members.id"],
            name=op.f("fk_checkins_member_id_members"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_checkins")),
        sa.UniqueConstraint("member_id", "meeting_date", name="uq_checkin_member_date"),
    )
    op.create_index(op.f("ix_checkins_member_id"), "checkins", ["member_id"])
    op.create_index(op.f("ix_checkins_meeting_date"), "checkins", ["meeting_date"])
    op.create_table(
        "lottery_winners",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("meeting_date", sa.String(length=10), nullable=False),
        sa.Column("member_id", ID_TYPE, nullable=False),
        sa.Column("prize_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["member_id"],
            ["members.id"],
            name=op.f("fk_lottery_winners_member_id_members"),
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["prize_id"],
            ["prizes.id"],
            name=op.f("fk_lottery_winners_prize_id_prizes"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_lottery_winners")),
        sa.UniqueConstraint(
            "member_id", "meeting_date", name="uq_lottery_winner_member_date"
        ),
    )
    op.create_index(
        "ix_lottery_winners_meeting_date", "lottery_winners", ["meeting_date"]
    )


def downgrade() -> None:
    op.drop_index("ix_lottery_winners_meeting_date", table_name="lottery_winners")
    op.drop_table("lottery_winners")
    op.drop_index(op.f("ix_checkins_meeting_date"), table_name="checkins")
    op.drop_index(op.f("ix_checkins_member_id"), table_name="checkins")
    op.drop_table("checkins")
    op.drop_table("prizes")
    op.drop_table("members")
