"""Sync services: federation gym sync and roster batch sync."""

from mattrack.services.gym_sync import (
    GymSyncResult,
    IBJJFGymSyncResult,
    MatchingStats,
    RosterSyncResult,
    TournamentQueryResult,
    get_upcoming_tournaments,
    sync_gym_roster,
    sync_ibjjf_gyms,
    sync_jjwl_gyms,
)
from mattrack.services.roster_sync import (
    RosterPair,
    RosterPairOutcome,
    RosterSyncBatchResult,
    build_profile_pairs,
    build_wishlist_pairs,
    execute_roster_pairs,
    sync_user_gym_rosters,
    sync_wishlisted_rosters,
)

__all__ = [
    "GymSyncResult",
    "IBJJFGymSyncResult",
    "MatchingStats",
    "RosterPair",
    "RosterPairOutcome",
    "RosterSyncBatchResult",
    "RosterSyncResult",
    "TournamentQueryResult",
    "build_profile_pairs",
    "build_wishlist_pairs",
    "execute_roster_pairs",
    "get_upcoming_tournaments",
    "sync_gym_roster",
    "sync_ibjjf_gyms",
    "sync_jjwl_gyms",
    "sync_user_gym_rosters",
    "sync_wishlisted_rosters",
]
