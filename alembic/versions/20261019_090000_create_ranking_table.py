"""Create ranking table for weekly ranking snapshots

Revision ID: 4f1a2b3c5d6e
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic.
revision: str = "4f1a2b3c5d6e"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "ranking",
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("ranking", sa.Integer(), nullable=False),
        sa.Column("editions", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["version_id"], ["ranking_version.id"]),
        sa.ForeignKeyConstraint(["player_id"], ["player.id"]),
        sa.PrimaryKeyConstraint("version_id", "player_id", "date"),
    )
    op.create_index(
        "idx_ranking_version_date_ranking",
        "ranking",
        ["version_id", "date", "ranking"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_ranking_version_date_ranking", table_name="ranking")
    op.drop_table("ranking")
