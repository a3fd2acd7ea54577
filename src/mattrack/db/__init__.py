"""
Database module for MatTrack.

Provides SQLAlchemy ORM models, session management, and the stores the
sync services read and write through.

Usage:
    from mattrack.db import get_session, GymStore

    with get_session() as session:
        gyms = GymStore(session).list_all_gyms("JJWL")
"""

from mattrack.db.models import (
    Athlete,
    Base,
    GymRoster,
    GymSyncMeta,
    MasterGym,
    PendingGymMatch,
    SourceGym,
    SourceGymRecord,
    Tournament,
    TournamentRef,
    UserProfile,
    WishlistItem,
    build_pair_key,
    build_source_key,
    parse_source_key,
)
from mattrack.db.session import SessionLocal, get_engine, get_session
from mattrack.db.stores import (
    AthleteStore,
    GymRosterStore,
    GymStore,
    MasterGymStore,
    PendingMatchStore,
    TournamentStore,
    UserProfileStore,
    WishlistStore,
)

__all__ = [
    # Base
    "Base",
    # Models
    "Athlete",
    "GymRoster",
    "GymSyncMeta",
    "MasterGym",
    "PendingGymMatch",
    "SourceGym",
    "SourceGymRecord",
    "Tournament",
    "TournamentRef",
    "UserProfile",
    "WishlistItem",
    # Keys
    "build_pair_key",
    "build_source_key",
    "parse_source_key",
    # Stores
    "AthleteStore",
    "GymRosterStore",
    "GymStore",
    "MasterGymStore",
    "PendingMatchStore",
    "TournamentStore",
    "UserProfileStore",
    "WishlistStore",
    # Session
    "SessionLocal",
    "get_engine",
    "get_session",
]
