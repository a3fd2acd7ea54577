"""
SQLAlchemy ORM models for MatTrack.

The schema is built around a canonical gym identity: every federation
keeps its own source gym rows, and a master gym ties together the rows
that describe the same physical academy.

Key design decisions:
- Source gyms are keyed by (federation, external_id) and upserted on every sync
- master_gym_id on a source gym is a back-reference, not ownership
- Pending matches store an order-independent pair key for duplicate checks
- Sync metadata per federation is only a change-detection hint

Tables:
- source_gyms: One gym as known to one federation
- master_gyms: Canonical, federation-independent gym identities
- pending_gym_matches: Proposed links awaiting admin review
- gym_sync_meta: Last observed remote record count per federation
- tournaments: Tournament master data from both federations
- wishlist_items: Tournaments users have wishlisted
- athletes: User athletes with an optional gym affiliation
- user_profiles: User home gym (master gym) selection
- gym_rosters: Cached athletes a gym entered at a tournament
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# =============================================================================
# Constants
# =============================================================================

FEDERATION_JJWL = "JJWL"
FEDERATION_IBJJF = "IBJJF"
FEDERATIONS = (FEDERATION_JJWL, FEDERATION_IBJJF)

PENDING_MATCH_STATUSES = ("pending", "approved", "rejected")


def utc_now() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns below."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def build_source_key(federation: str, external_id: str) -> str:
    """
    Build the federation-qualified key for a source gym.

    Examples:
        >>> build_source_key("JJWL", "5713")
        'JJWL#5713'
    """
    return f"{federation}#{external_id}"


def parse_source_key(source_key: str) -> Optional[tuple[str, str]]:
    """
    Split a federation-qualified gym key into (federation, external_id).

    Returns None for anything that is not '<JJWL|IBJJF>#<id>'.
    """
    federation, sep, external_id = source_key.partition("#")
    if not sep or federation not in FEDERATIONS or not external_id:
        return None
    return federation, external_id


def build_pair_key(source_key_1: str, source_key_2: str) -> str:
    """Order-independent key for a pair of source gyms."""
    first, second = sorted((source_key_1, source_key_2))
    return f"{first}|{second}"


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Gym Identity Models
# =============================================================================

@dataclass(frozen=True)
class SourceGymRecord:
    """
    Immutable snapshot of a source gym row.

    The matching engine only ever sees these, never live ORM rows, so a
    snapshot taken at the start of a sync run stays exactly as it was read
    even while the run writes new links to the database.
    """
    federation: str
    external_id: str
    name: str
    city: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    master_gym_id: Optional[str] = None

    @property
    def source_key(self) -> str:
        return build_source_key(self.federation, self.external_id)


class SourceGym(Base):
    """
    A gym as known to a single federation.

    Created or refreshed on every sync upsert. The master_gym_id link is
    only changed by the matching engine or an admin unlink, and rows are
    never deleted by the sync itself.
    """
    __tablename__ = "source_gyms"

    id: Mapped[int] = mapped_column(primary_key=True)

    # 'JJWL' or 'IBJJF'
    federation: Mapped[str] = mapped_column(String(10), nullable=False)
    external_id: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country_code: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)

    master_gym_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("master_gyms.id"), nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now
    )

    master_gym: Mapped[Optional["MasterGym"]] = relationship(back_populates="source_gyms")

    __table_args__ = (
        UniqueConstraint("federation", "external_id", name="uq_source_gym_federation_external"),
        Index("idx_source_gyms_country", "federation", "country_code"),
    )

    @property
    def source_key(self) -> str:
        return build_source_key(self.federation, self.external_id)

    def to_record(self) -> SourceGymRecord:
        return SourceGymRecord(
            federation=self.federation,
            external_id=self.external_id,
            name=self.name,
            city=self.city,
            country=self.country,
            country_code=self.country_code,
            master_gym_id=self.master_gym_id,
        )

    def __repr__(self) -> str:
        return f"<SourceGym(key='{self.source_key}', name='{self.name}')>"


class MasterGym(Base):
    """
    Canonical, federation-independent gym identity.

    The canonical name is copied from whichever source gym triggered the
    creation. Display and search go through this table; the federation
    rows hang off it via source_gyms.master_gym_id.
    """
    __tablename__ = "master_gyms"

    # UUID string, generated on creation
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    canonical_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Lowercased copy of canonical_name for case-insensitive prefix search
    search_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now
    )

    source_gyms: Mapped[list["SourceGym"]] = relationship(back_populates="master_gym")

    def __repr__(self) -> str:
        return f"<MasterGym(id='{self.id}', name='{self.canonical_name}')>"


class PendingGymMatch(Base):
    """
    Proposed link between two source gyms awaiting human review.

    Status lifecycle: 'pending' -> 'approved' or 'pending' -> 'rejected'.
    Reviewed matches are never re-opened. At most one 'pending' row may
    exist per pair_key; the matching engine checks before inserting.
    """
    __tablename__ = "pending_gym_matches"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # Federation-qualified keys ('JJWL#123') plus name snapshots for the UI
    source_gym_1_id: Mapped[str] = mapped_column(String(64), nullable=False)
    source_gym_1_name: Mapped[str] = mapped_column(String(255), nullable=False)
    source_gym_2_id: Mapped[str] = mapped_column(String(64), nullable=False)
    source_gym_2_name: Mapped[str] = mapped_column(String(255), nullable=False)
    pair_key: Mapped[str] = mapped_column(String(130), nullable=False)

    # 0-100 score from the decision strategy, signals from the legacy scorer
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    signals: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        Index("idx_pending_gym_matches_status", "status", "created_at"),
        Index("idx_pending_gym_matches_pair", "pair_key", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<PendingGymMatch({self.source_gym_1_id} ~ {self.source_gym_2_id}, "
            f"status='{self.status}')>"
        )


class GymSyncMeta(Base):
    """
    Per-federation sync bookkeeping for change detection.

    last_sync_at moves on every completed sync; last_change_at only moves
    when the remote record count differs from the stored one.
    """
    __tablename__ = "gym_sync_meta"

    federation: Mapped[str] = mapped_column(String(10), primary_key=True)
    total_records: Mapped[int] = mapped_column(Integer, nullable=False)
    last_sync_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_change_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<GymSyncMeta(federation='{self.federation}', total={self.total_records})>"


# =============================================================================
# Tournament and User Models
# =============================================================================

@dataclass(frozen=True)
class TournamentRef:
    """Federation-qualified tournament identifier."""
    federation: str
    external_id: str


class Tournament(Base):
    """Tournament master data from either federation."""
    __tablename__ = "tournaments"

    id: Mapped[int] = mapped_column(primary_key=True)
    federation: Mapped[str] = mapped_column(String(10), nullable=False)
    external_id: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    __table_args__ = (
        UniqueConstraint("federation", "external_id", name="uq_tournament_federation_external"),
        Index("idx_tournaments_start_date", "start_date"),
    )

    @property
    def ref(self) -> TournamentRef:
        return TournamentRef(self.federation, self.external_id)

    def __repr__(self) -> str:
        return f"<Tournament({self.federation}#{self.external_id}, '{self.name}')>"


class WishlistItem(Base):
    """A tournament a user is interested in."""
    __tablename__ = "wishlist_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    tournament_id: Mapped[int] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    tournament: Mapped["Tournament"] = relationship()

    __table_args__ = (
        UniqueConstraint("user_id", "tournament_id", name="uq_wishlist_user_tournament"),
    )


class Athlete(Base):
    """
    An athlete registered by a user.

    gym_source_id uses the federation-qualified key format ('JJWL#5713')
    of the source gym the athlete trains at, if any.
    """
    __tablename__ = "athletes"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    gym_source_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    gym_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    master_gym_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("master_gyms.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)


class UserProfile(Base):
    """User profile holding the user's home gym."""
    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    master_gym_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("master_gyms.id"), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now
    )


class GymRoster(Base):
    """
    Athletes a gym has entered at a tournament, cached from the federation.

    One row per (federation, tournament, gym); refreshed in place by the
    roster sync.
    """
    __tablename__ = "gym_rosters"

    id: Mapped[int] = mapped_column(primary_key=True)
    federation: Mapped[str] = mapped_column(String(10), nullable=False)
    tournament_external_id: Mapped[str] = mapped_column(String(50), nullable=False)
    gym_external_id: Mapped[str] = mapped_column(String(50), nullable=False)
    gym_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # List of {name, gender, age_division, belt, weight}
    athletes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    athlete_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fetched_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    __table_args__ = (
        UniqueConstraint(
            "federation", "tournament_external_id", "gym_external_id",
            name="uq_gym_roster_tournament_gym",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<GymRoster({self.federation}#{self.tournament_external_id}, "
            f"gym={self.gym_external_id}, athletes={self.athlete_count})>"
        )
