"""SQLAlchemy ORM models."""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class SeriesWatchingStatus(str, enum.Enum):
    TO_WATCH = "to_watch"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Series(Base):
    __tablename__ = "series"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(300), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    seasons = relationship("Season", back_populates="series", lazy="selectin")


class Season(Base):
    __tablename__ = "seasons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    series_id = Column(Integer, ForeignKey("series.id", ondelete="CASCADE"), nullable=False)
    season_number = Column(Integer, nullable=False)

    series = relationship("Series", back_populates="seasons")
    episodes = relationship("Episode", back_populates="season", lazy="selectin")


class Episode(Base):
    __tablename__ = "episodes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    season_id = Column(Integer, ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False)
    episode_number = Column(Integer, nullable=False)
    title = Column(String(300), nullable=True)

    season = relationship("Season", back_populates="episodes")


class EpisodeProgress(Base):
    __tablename__ = "episode_progresses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    episode_id = Column(Integer, ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class RecommendationLog(Base):
    """A series recommended to a user; ``watched`` only ever flips to True."""

    __tablename__ = "recommendation_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    series_id = Column(Integer, ForeignKey("series.id", ondelete="CASCADE"), nullable=False)
    recommended_at = Column(DateTime, default=datetime.utcnow)
    watched = Column(Boolean, nullable=False, default=False)


class SeriesWatchingState(Base):
    __tablename__ = "series_watching_states"
    __table_args__ = (UniqueConstraint("user_id", "series_id", name="uq_watching_state_user_series"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False)
    series_id = Column(Integer, ForeignKey("series.id", ondelete="CASCADE"), nullable=False)
    status = Column(
        Enum(
            SeriesWatchingStatus,
            name="series_watching_status_enum",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=SeriesWatchingStatus.TO_WATCH,
    )
    watched_episodes_count = Column(Integer, nullable=False, default=0)
    total_episodes_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
