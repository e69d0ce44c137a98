"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
AMOUNT_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "operators",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("address", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_operators")),
    )
    op.create_index(op.f("ix_operators_id"), "operators", ["id"], unique=False)
    op.create_index(op.f("ix_operators_address"), "operators", ["address"], unique=True)

    op.create_table(
        "packages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("combinations", sa.Integer(), nullable=False),
        sa.Column("price", AMOUNT_TYPE, nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_packages")),
    )

    op.create_table(
        "lottery_rounds",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("seed_amount", AMOUNT_TYPE, nullable=False),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("winning_numbers", sa.JSON(), nullable=True),
        sa.Column("winning_powerball", sa.Integer(), nullable=True),
        sa.Column("pool_balance", AMOUNT_TYPE, nullable=True),
        sa.Column("management_fee", AMOUNT_TYPE, nullable=True),
        sa.Column("next_pool_prize", AMOUNT_TYPE, nullable=True),
        sa.Column("winning_counts", sa.JSON(), nullable=True),
        sa.Column("division_prizes", sa.JSON(), nullable=True),
        sa.Column("settled_by", sa.String(length=128), nullable=True),
        sa.Column("settled_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('open','settled')", name=op.f("ck_lottery_rounds_status_enum")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_lottery_rounds")),
    )
    op.create_index("ix_lottery_rounds_status", "lottery_rounds", ["status"], unique=False)

    op.create_table(
        "participants",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("address", sa.String(length=128), nullable=False),
        sa.Column("last_participation", AMOUNT_TYPE, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_participants")),
        sa.UniqueConstraint("address", name=op.f("uq_participants_address")),
    )

    op.create_table(
        "tickets",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("participant_id", ID_TYPE, nullable=False),
        sa.Column("round_id", sa.Integer(), nullable=False),
        sa.Column("main_numbers", sa.JSON(), nullable=False),
        sa.Column("powerball", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["participant_id"],
            ["participants.id"],
            name=op.f("fk_tickets_participant_id_participants"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["round_id"],
            ["lottery_rounds.id"],
            name=op.f("fk_tickets_round_id_lottery_rounds"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_tickets")),
    )
    op.create_index(
        op.f("ix_tickets_participant_id"), "tickets", ["participant_id"], unique=False
    )
    op.create_index(
        "ix_tickets_round_participant",
        "tickets",
        ["round_id", "participant_id"],
        unique=False,
    )

    op.create_table(
        "round_contributions",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("round_id", sa.Integer(), nullable=False),
        sa.Column("participant_id", ID_TYPE, nullable=False),
        sa.Column("amount", AMOUNT_TYPE, nullable=False),
        sa.ForeignKeyConstraint(
            ["participant_id"],
            ["participants.id"],
            name=op.f("fk_round_contributions_participant_id_participants"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["round_id"],
            ["lottery_rounds.id"],
            name=op.f("fk_round_contributions_round_id_lottery_rounds"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_round_contributions")),
        sa.UniqueConstraint("round_id", "participant_id", name="uq_round_contribution"),
    )
    op.create_index(
        op.f("ix_round_contributions_round_id"),
        "round_contributions",
        ["round_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_round_contributions_participant_id"),
        "round_contributions",
        ["participant_id"],
        unique=False,
    )

    op.create_table(
        "winners",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("winner_address", sa.String(length=128), nullable=False),
        sa.Column("matching_numbers", sa.JSON(), nullable=False),
        sa.Column("division", sa.Integer(), nullable=False),
        sa.Column("prize", AMOUNT_TYPE, nullable=False),
        sa.Column("round_id", sa.Integer(), nullable=True),
        sa.Column("ticket_id", ID_TYPE, nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["round_id"],
            ["lottery_rounds.id"],
            name=op.f("fk_winners_round_id_lottery_rounds"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["ticket_id"],
            ["tickets.id"],
            name=op.f("fk_winners_ticket_id_tickets"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_winners")),
    )
    op.create_index(
        op.f("ix_winners_winner_address"), "winners", ["winner_address"], unique=False
    )
    op.create_index(
        "ix_winners_round_division", "winners", ["round_id", "division"], unique=False
    )

    op.create_table(
        "ledger_transfers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("sender", sa.String(length=128), nullable=False),
        sa.Column("recipient", sa.String(length=128), nullable=False),
        sa.Column("amount", AMOUNT_TYPE, nullable=False),
        sa.Column("round_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "kind IN ('debit','payout','fee')", name=op.f("ck_ledger_transfers_kind_enum")
        ),
        sa.ForeignKeyConstraint(
            ["round_id"],
            ["lottery_rounds.id"],
            name=op.f("fk_ledger_transfers_round_id_lottery_rounds"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ledger_transfers")),
    )
    op.create_index(
        "ix_ledger_transfers_round", "ledger_transfers", ["round_id"], unique=False
    )
    op.create_index(
        "ix_ledger_transfers_kind", "ledger_transfers", ["kind"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_ledger_transfers_kind", table_name="ledger_transfers")
    op.drop_index("ix_ledger_transfers_round", table_name="ledger_transfers")
    op.drop_table("ledger_transfers")
    op.drop_index("ix_winners_round_division", table_name="winners")
    op.drop_index(op.f("ix_winners_winner_address"), table_name="winners")
    op.drop_table("winners")
    op.drop_index(
        op.f("ix_round_contributions_participant_id"), table_name="round_contributions"
    )
    op.drop_index(op.f("ix_round_contributions_round_id"), table_name="round_contributions")
    op.drop_table("round_contributions")
    op.drop_index("ix_tickets_round_participant", table_name="tickets")
    op.drop_index(op.f("ix_tickets_participant_id"), table_name="tickets")
    op.drop_table("tickets")
    op.drop_table("participants")
    op.drop_index("ix_lottery_rounds_status", table_name="lottery_rounds")
    op.drop_table("lottery_rounds")
    op.drop_table("packages")
    op.drop_index(op.f("ix_operators_address"), table_name="operators")
    op.drop_index(op.f("ix_operators_id"), table_name="operators")
    op.drop_table("operators")
