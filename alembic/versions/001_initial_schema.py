"""Initial schema: create worldcup, worldcupitem, tournament, match tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create worldcup (item pool) table
    op.create_table(
        "worldcup",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("participants", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create worldcupitem table (bye rows live here with is_bye=1)
    op.create_table(
        "worldcupitem",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("worldcup_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("media_url", sa.String(), nullable=True),
        sa.Column("order_num", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_bye", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("championship_wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["worldcup_id"],
            ["worldcup.id"],
        ),
    )
    op.create_index("ix_worldcupitem_worldcup_id", "worldcupitem", ["worldcup_id"])
    op.create_index("ix_worldcupitem_is_bye", "worldcupitem", ["is_bye"])

    # Create tournament table
    op.create_table(
        "tournament",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("worldcup_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("bracket_size", sa.Integer(), nullable=False),
        sa.Column("total_rounds", sa.Integer(), nullable=False),
        sa.Column("current_round", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("winner_item_id", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["worldcup_id"],
            ["worldcup.id"],
        ),
        sa.ForeignKeyConstraint(
            ["winner_item_id"],
            ["worldcupitem.id"],
        ),
    )
    op.create_index("ix_tournament_worldcup_id", "tournament", ["worldcup_id"])
    op.create_index("ix_tournament_user_id", "tournament", ["user_id"])

    # Create match table
    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("round", sa.Integer(), nullable=False),
        sa.Column("match_number", sa.Integer(), nullable=False),
        sa.Column("item1_id", sa.Integer(), nullable=False),
        sa.Column("item2_id", sa.Integer(), nullable=False),
        sa.Column("winner_id", sa.Integer(), nullable=True),
        sa.Column("auto_resolved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["tournament_id"],
            ["tournament.id"],
        ),
        sa.ForeignKeyConstraint(
            ["item1_id"],
            ["worldcupitem.id"],
        ),
        sa.ForeignKeyConstraint(
            ["item2_id"],
            ["worldcupitem.id"],
        ),
        sa.ForeignKeyConstraint(
            ["winner_id"],
            ["worldcupitem.id"],
        ),
        sa.UniqueConstraint("tournament_id", "round", "match_number", name="uq_match_bracket_position"),
    )
    op.create_index("ix_match_tournament_id", "match", ["tournament_id"])


def downgrade() -> None:
    op.drop_index("ix_match_tournament_id", table_name="match")
    op.drop_table("match")
    op.drop_index("ix_tournament_user_id", table_name="tournament")
    op.drop_index("ix_tournament_worldcup_id", table_name="tournament")
    op.drop_table("tournament")
    op.drop_index("ix_worldcupitem_is_bye", table_name="worldcupitem")
    op.drop_index("ix_worldcupitem_worldcup_id", table_name="worldcupitem")
    op.drop_table("worldcupitem")
    op.drop_table("worldcup")
