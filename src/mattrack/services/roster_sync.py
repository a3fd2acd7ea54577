"""
Roster batch sync - refreshes cached gym rosters for upcoming tournaments.

Two ways to decide which (tournament, gym) pairs to refresh:

- Wishlist-driven: every JJWL tournament any user wishlisted, crossed with
  every JJWL gym any athlete trains at. This over-generates pairs on
  purpose; it is cheap to reason about and rosters are cheap to fetch.
- Profile-driven: every source gym linked to a master gym some user picked
  as their home gym, crossed with the tournaments in the look-ahead window
  of the same federation.

Both feed the same executor: deduplicate, then run in batches of 10
concurrent roster fetches with a 1 second pause between batches (the JJWL
roster endpoint has an informal rate limit). A failing pair is recorded
and never stops the batch.

Usage:
    with get_session() as session:
        result = await sync_user_gym_rosters(session, {"JJWL": jjwl_fetcher})
        print(result.summary())
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, Iterable, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from mattrack.config import settings
from mattrack.db.models import (
    FEDERATION_JJWL,
    Athlete,
    SourceGymRecord,
    TournamentRef,
    parse_source_key,
)
from mattrack.db.stores import AthleteStore, GymStore, UserProfileStore, WishlistStore
from mattrack.fetchers.base import BaseGymFetcher
from mattrack.services.gym_sync import RosterSyncResult, get_upcoming_tournaments, sync_gym_roster
from mattrack.tasks.batching import Sleeper, run_in_batches

logger = logging.getLogger(__name__)

PairSyncer = Callable[["RosterPair"], Awaitable[RosterSyncResult]]


@dataclass(frozen=True)
class RosterPair:
    """One unit of roster work: a gym at a tournament of the same federation."""
    federation: str
    tournament_id: str
    gym_external_id: str


@dataclass
class RosterPairOutcome:
    pair: RosterPair
    success: bool
    athlete_count: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "federation": self.pair.federation,
            "tournament_id": self.pair.tournament_id,
            "gym_external_id": self.pair.gym_external_id,
            "success": self.success,
            "athlete_count": self.athlete_count,
            "error": self.error,
        }


@dataclass
class RosterSyncBatchResult:
    """Aggregate outcome of one roster batch run."""
    success_count: int = 0
    failure_count: int = 0
    pairs: list[RosterPairOutcome] = field(default_factory=list)

    def summary(self) -> str:
        """Return a human-readable summary of the run."""
        lines = [
            "Roster sync complete:",
            f"  Pairs:      {len(self.pairs)}",
            f"  Succeeded:  {self.success_count}",
            f"  Failed:     {self.failure_count}",
        ]
        failures = [p for p in self.pairs if not p.success]
        for outcome in failures[:5]:
            lines.append(
                f"    - {outcome.pair.federation}/{outcome.pair.tournament_id}/"
                f"{outcome.pair.gym_external_id}: {outcome.error}"
            )
        if len(failures) > 5:
            lines.append(f"    ... and {len(failures) - 5} more")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "pairs": [p.to_dict() for p in self.pairs],
        }


# =============================================================================
# Pair Generation
# =============================================================================

def build_wishlist_pairs(
    tournaments: Iterable[TournamentRef],
    athletes: Iterable[Athlete],
) -> list[RosterPair]:
    """
    Cross wishlisted JJWL tournaments with JJWL gyms that athletes train at.

    IBJJF tournaments and gyms are dropped; IBJJF does not publish rosters.
    Athletes with a malformed gym_source_id are ignored.
    """
    gym_ids: dict[str, None] = {}
    for athlete in athletes:
        if not athlete.gym_source_id:
            continue
        parsed = parse_source_key(athlete.gym_source_id)
        if parsed is None or parsed[0] != FEDERATION_JJWL:
            continue
        gym_ids[parsed[1]] = None

    return [
        RosterPair(FEDERATION_JJWL, tournament.external_id, gym_external_id)
        for tournament in tournaments
        if tournament.federation == FEDERATION_JJWL
        for gym_external_id in gym_ids
    ]


def build_profile_pairs(
    gyms: Iterable[SourceGymRecord],
    tournaments: Iterable[TournamentRef],
) -> list[RosterPair]:
    """Cross gyms and tournaments, keeping pairs from the same federation."""
    tournaments = list(tournaments)
    return [
        RosterPair(gym.federation, tournament.external_id, gym.external_id)
        for gym in gyms
        for tournament in tournaments
        if gym.federation == tournament.federation
    ]


def dedupe_pairs(pairs: Iterable[RosterPair]) -> list[RosterPair]:
    """Drop repeated pairs, keeping first-seen order."""
    return list(dict.fromkeys(pairs))


# =============================================================================
# Execution
# =============================================================================

async def execute_roster_pairs(
    pairs: Sequence[RosterPair],
    sync_pair: PairSyncer,
    batch_size: Optional[int] = None,
    delay_seconds: Optional[float] = None,
    sleep: Sleeper = asyncio.sleep,
) -> RosterSyncBatchResult:
    """
    Sync roster pairs in rate-limited concurrent batches.

    Args:
        pairs: Pairs to sync; duplicates are dropped first
        sync_pair: Coroutine syncing one pair
        batch_size: Concurrent fetches per batch (default from settings)
        delay_seconds: Pause between batches (default from settings)
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        RosterSyncBatchResult with one outcome per unique pair
    """
    unique_pairs = dedupe_pairs(pairs)
    if not unique_pairs:
        return RosterSyncBatchResult()

    async def _run(pair: RosterPair) -> RosterPairOutcome:
        try:
            result = await sync_pair(pair)
        except Exception as e:
            logger.warning(
                "Roster sync raised for %s/%s/%s: %s",
                pair.federation, pair.tournament_id, pair.gym_external_id, e,
            )
            return RosterPairOutcome(pair=pair, success=False, error=str(e) or type(e).__name__)

        if not result.success:
            logger.warning(
                "Roster sync failed for %s/%s/%s: %s",
                pair.federation, pair.tournament_id, pair.gym_external_id, result.error,
            )
        return RosterPairOutcome(
            pair=pair,
            success=result.success,
            athlete_count=result.athlete_count,
            error=result.error,
        )

    outcomes = await run_in_batches(
        unique_pairs,
        _run,
        batch_size=batch_size or settings.roster_concurrency_limit,
        delay_seconds=settings.roster_batch_delay_seconds if delay_seconds is None else delay_seconds,
        sleep=sleep,
    )

    batch = RosterSyncBatchResult(pairs=outcomes)
    batch.success_count = sum(1 for o in outcomes if o.success)
    batch.failure_count = len(outcomes) - batch.success_count

    logger.info(
        "Roster sync complete: %d success, %d failures out of %d pairs",
        batch.success_count, batch.failure_count, len(outcomes),
    )
    return batch


def _pair_syncer(session: Session, fetchers: Mapping[str, BaseGymFetcher]) -> PairSyncer:
    async def _sync(pair: RosterPair) -> RosterSyncResult:
        return await sync_gym_roster(
            session, fetchers, pair.federation, pair.tournament_id, pair.gym_external_id
        )
    return _sync


async def sync_wishlisted_rosters(
    session: Session,
    fetchers: Mapping[str, BaseGymFetcher],
    days_ahead: Optional[int] = None,
    today: Optional[date] = None,
    sleep: Sleeper = asyncio.sleep,
) -> RosterSyncBatchResult:
    """
    Refresh rosters for wishlisted JJWL tournaments x athlete gyms.

    Args:
        session: SQLAlchemy database session
        fetchers: Fetcher per federation
        days_ahead: Look-ahead window (default settings.roster_wishlist_days_ahead)
        today: Start of the window (default: today, UTC)
        sleep: Awaitable sleep, replaceable in tests
    """
    if days_ahead is None:
        days_ahead = settings.roster_wishlist_days_ahead
    logger.info("Starting wishlist roster sync for tournaments within %d days", days_ahead)

    tournaments = WishlistStore(session).list_wishlisted_tournaments(days_ahead, today=today)
    if not tournaments:
        logger.info("No wishlisted tournaments found within date range")
        return RosterSyncBatchResult()

    athletes = AthleteStore(session).list_athletes_with_gyms()
    if not athletes:
        logger.info("No athletes with gym associations found")
        return RosterSyncBatchResult()

    pairs = build_wishlist_pairs(tournaments, athletes)
    logger.info(
        "%d wishlisted tournaments x %d athletes -> %d pairs",
        len(tournaments), len(athletes), len(pairs),
    )
    return await execute_roster_pairs(pairs, _pair_syncer(session, fetchers), sleep=sleep)


async def sync_user_gym_rosters(
    session: Session,
    fetchers: Mapping[str, BaseGymFetcher],
    days_ahead: Optional[int] = None,
    today: Optional[date] = None,
    sleep: Sleeper = asyncio.sleep,
) -> RosterSyncBatchResult:
    """
    Refresh rosters for users' home gyms at upcoming tournaments.

    Args:
        session: SQLAlchemy database session
        fetchers: Fetcher per federation
        days_ahead: Look-ahead window (default settings.roster_profile_days_ahead)
        today: Start of the window (default: today, UTC)
        sleep: Awaitable sleep, replaceable in tests
    """
    if days_ahead is None:
        days_ahead = settings.roster_profile_days_ahead
    logger.info("Starting profile roster sync for tournaments within %d days", days_ahead)

    master_gym_ids = UserProfileStore(session).list_master_gym_ids()
    if not master_gym_ids:
        logger.info("No user profiles with a home gym")
        return RosterSyncBatchResult()

    gym_store = GymStore(session)
    gyms: dict[str, SourceGymRecord] = {}
    for master_gym_id in dict.fromkeys(master_gym_ids):
        for gym in gym_store.list_by_master_gym_id(master_gym_id):
            gyms.setdefault(gym.source_key, gym)

    upcoming = get_upcoming_tournaments(session, days_ahead=days_ahead, today=today)
    if upcoming.error:
        logger.error("Profile roster sync aborted, tournament query failed: %s", upcoming.error)
        return RosterSyncBatchResult()
    tournaments = [t.ref for t in upcoming.tournaments]

    pairs = build_profile_pairs(gyms.values(), tournaments)
    logger.info(
        "%d source gyms x %d tournaments -> %d same-federation pairs",
        len(gyms), len(tournaments), len(pairs),
    )
    return await execute_roster_pairs(pairs, _pair_syncer(session, fetchers), sleep=sleep)
