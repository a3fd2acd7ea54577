"""Create gym identity, tournament and roster tables

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
        "master_gyms",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("canonical_name", sa.String(length=255), nullable=False),
        sa.Column("search_name", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("website", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_master_gyms_search_name", "master_gyms", ["search_name"], unique=False)

    op.create_table(
        "source_gyms",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("federation", sa.String(length=10), nullable=False),
        sa.Column("external_id", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("country_code", sa.String(length=3), nullable=True),
        sa.Column("master_gym_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["master_gym_id"], ["master_gyms.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("federation", "external_id", name="uq_source_gym_federation_external"),
    )
    op.create_index("idx_source_gyms_country", "source_gyms", ["federation", "country_code"], unique=False)
    op.create_index("ix_source_gyms_master_gym_id", "source_gyms", ["master_gym_id"], unique=False)

    op.create_table(
        "pending_gym_matches",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("source_gym_1_id", sa.String(length=64), nullable=False),
        sa.Column("source_gym_1_name", sa.String(length=255), nullable=False),
        sa.Column("source_gym_2_id", sa.String(length=64), nullable=False),
        sa.Column("source_gym_2_name", sa.String(length=255), nullable=False),
        sa.Column("pair_key", sa.String(length=130), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("signals", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("reviewed_by", sa.String(length=100), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_pending_gym_matches_status", "pending_gym_matches", ["status", "created_at"], unique=False)
    op.create_index("idx_pending_gym_matches_pair", "pending_gym_matches", ["pair_key", "status"], unique=False)

    op.create_table(
        "gym_sync_meta",
        sa.Column("federation", sa.String(length=10), nullable=False),
        sa.Column("total_records", sa.Integer(), nullable=False),
        sa.Column("last_sync_at", sa.DateTime(), nullable=False),
        sa.Column("last_change_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("federation"),
    )

    op.create_table(
        "tournaments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("federation", sa.String(length=10), nullable=False),
        sa.Column("external_id", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("federation", "external_id", name="uq_tournament_federation_external"),
    )
    op.create_index("idx_tournaments_start_date", "tournaments", ["start_date"], unique=False)

    op.create_table(
        "wishlist_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=100), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "tournament_id", name="uq_wishlist_user_tournament"),
    )
    op.create_index("ix_wishlist_items_user_id", "wishlist_items", ["user_id"], unique=False)

    op.create_table(
        "athletes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("gym_source_id", sa.String(length=64), nullable=True),
        sa.Column("gym_name", sa.String(length=255), nullable=True),
        sa.Column("master_gym_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["master_gym_id"], ["master_gyms.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_athletes_user_id", "athletes", ["user_id"], unique=False)

    op.create_table(
        "user_profiles",
        sa.Column("user_id", sa.String(length=100), nullable=False),
        sa.Column("master_gym_id", sa.String(length=36), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["master_gym_id"], ["master_gyms.id"]),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "gym_rosters",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("federation", sa.String(length=10), nullable=False),
        sa.Column("tournament_external_id", sa.String(length=50), nullable=False),
        sa.Column("gym_external_id", sa.String(length=50), nullable=False),
        sa.Column("gym_name", sa.String(length=255), nullable=False),
        sa.Column("athletes", sa.JSON(), nullable=False),
        sa.Column("athlete_count", sa.Integer(), nullable=False),
        sa.Column("fetched_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "federation", "tournament_external_id", "gym_external_id",
            name="uq_gym_roster_tournament_gym",
        ),
    )


def downgrade() -> None:
    op.drop_table("gym_rosters")
    op.drop_table("user_profiles")
    op.drop_index("ix_athletes_user_id", table_name="athletes")
    op.drop_table("athletes")
    op.drop_index("ix_wishlist_items_user_id", table_name="wishlist_items")
    op.drop_table("wishlist_items")
    op.drop_index("idx_tournaments_start_date", table_name="tournaments")
    op.drop_table("tournaments")
    op.drop_table("gym_sync_meta")
    op.drop_index("idx_pending_gym_matches_pair", table_name="pending_gym_matches")
    op.drop_index("idx_pending_gym_matches_status", table_name="pending_gym_matches")
    op.drop_table("pending_gym_matches")
    op.drop_index("ix_source_gyms_master_gym_id", table_name="source_gyms")
    op.drop_index("idx_source_gyms_country", table_name="source_gyms")
    op.drop_table("source_gyms")
    op.drop_index("ix_master_gyms_search_name", table_name="master_gyms")
    op.drop_table("master_gyms")
