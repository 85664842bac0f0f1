"""Initial schema.

Revision ID: 001
Revises:
Create Date: 2026-01-10 00:00:00.000000
"""

import sqlalchemy as sa

from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Series / seasons / episodes
    op.create_table(
        "series",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(300), nullable=False, index=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_table(
        "seasons",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "series_id",
            sa.Integer,
            sa.ForeignKey("series.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("season_number", sa.Integer, nullable=False),
    )
    op.create_table(
        "episodes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "season_id",
            sa.Integer,
            sa.ForeignKey("seasons.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("episode_number", sa.Integer, nullable=False),
        sa.Column("title", sa.String(300), nullable=True),
    )

    # Episode progress
    op.create_table(
        "episode_progresses",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, nullable=False, index=True),
        sa.Column(
            "episode_id",
            sa.Integer,
            sa.ForeignKey("episodes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("is_completed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("last_updated", sa.DateTime, server_default=sa.func.now()),
    )

    # Recommendation logs
    op.create_table(
        "recommendation_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, nullable=False, index=True),
        sa.Column(
            "series_id",
            sa.Integer,
            sa.ForeignKey("series.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("recommended_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("watched", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    # Consumers look up unwatched logs per (user, series)
    op.create_index(
        "ix_recommendation_logs_user_series",
        "recommendation_logs",
        ["user_id", "series_id", "watched"],
    )

    # Series watching state
    op.create_table(
        "series_watching_states",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, nullable=False),
        sa.Column(
            "series_id",
            sa.Integer,
            sa.ForeignKey("series.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum("to_watch", "in_progress", "finished", name="series_watching_status_enum"),
            nullable=False,
        ),
        sa.Column("watched_episodes_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_episodes_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("last_updated", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "series_id", name="uq_watching_state_user_series"),
    )


def downgrade() -> None:
    op.drop_table("series_watching_states")
    op.execute("DROP TYPE IF EXISTS series_watching_status_enum")
    op.drop_index("ix_recommendation_logs_user_series", table_name="recommendation_logs")
    op.drop_table("recommendation_logs")
    op.drop_table("episode_progresses")
    op.drop_table("episodes")
    op.drop_table("seasons")
    op.drop_table("series")
