"""
Gym sync service - pulls federation gym lists into source_gyms.

Two independent procedures, both safe to re-run:

- JJWL: fetch every gym, upsert, then resolve each unlinked gym against a
  snapshot of US IBJJF gyms (auto-link or queue for review).
- IBJJF: check the remote record count first and skip the full fetch when
  it has not changed since the last sync. Never runs matching; pairs are
  only resolved from the JJWL side so each pair is looked at once per cycle.

Also hosts the single-pair roster sync and the upcoming tournament query
that the roster batch scheduler builds on.

Failures are reported on the result object (error field) and logged; they
are never raised to the caller.

Usage:
    from mattrack.services.gym_sync import sync_jjwl_gyms

    with get_session() as session:
        result = await sync_jjwl_gyms(session, jjwl_fetcher)
        print(result.summary())
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from time import perf_counter
from typing import Mapping, Optional

from sqlalchemy.orm import Session

from mattrack.db.models import FEDERATION_IBJJF, Tournament, utc_now
from mattrack.db.stores import GymRosterStore, GymStore, MasterGymStore, PendingMatchStore, TournamentStore
from mattrack.fetchers.base import BaseGymFetcher, ProgressCallback
from mattrack.gyms.matching import GymMatchingService

logger = logging.getLogger(__name__)

# Matching progress is logged every N gyms
PROGRESS_LOG_INTERVAL = 100


# =============================================================================
# Results
# =============================================================================

@dataclass
class MatchingStats:
    """Counts from matching one sync run's gyms."""
    processed: int = 0
    auto_linked: int = 0
    pending_created: int = 0

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "auto_linked": self.auto_linked,
            "pending_created": self.pending_created,
        }


@dataclass
class GymSyncResult:
    """Result of a JJWL gym sync."""
    fetched: int = 0
    saved: int = 0
    matching: Optional[MatchingStats] = None
    error: Optional[str] = None

    def summary(self) -> str:
        """Return a human-readable summary of the sync."""
        if self.error:
            return f"JJWL gym sync failed: {self.error}"
        lines = [
            "JJWL gym sync complete:",
            f"  Gyms fetched:    {self.fetched}",
            f"  Gyms saved:      {self.saved}",
        ]
        if self.matching:
            lines.extend([
                f"  Gyms matched:    {self.matching.processed}",
                f"  Auto-linked:     {self.matching.auto_linked}",
                f"  Pending review:  {self.matching.pending_created}",
            ])
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "fetched": self.fetched,
            "saved": self.saved,
            "matching": self.matching.to_dict() if self.matching else None,
            "error": self.error,
        }


@dataclass
class IBJJFGymSyncResult:
    """Result of an IBJJF gym sync."""
    skipped: bool = False
    fetched: int = 0
    saved: int = 0
    duration_s: float = 0.0
    error: Optional[str] = None

    def summary(self) -> str:
        if self.error:
            return f"IBJJF gym sync failed after {self.duration_s:.1f}s: {self.error}"
        if self.skipped:
            return f"IBJJF gym sync skipped (unchanged), {self.duration_s:.1f}s"
        return (
            f"IBJJF gym sync complete: {self.fetched} fetched, "
            f"{self.saved} saved in {self.duration_s:.1f}s"
        )

    def to_dict(self) -> dict:
        return {
            "skipped": self.skipped,
            "fetched": self.fetched,
            "saved": self.saved,
            "duration_s": self.duration_s,
            "error": self.error,
        }


@dataclass
class RosterSyncResult:
    """Result of syncing one gym's roster at one tournament."""
    success: bool
    athlete_count: int = 0
    error: Optional[str] = None


@dataclass
class TournamentQueryResult:
    tournaments: list[Tournament] = field(default_factory=list)
    error: Optional[str] = None


# =============================================================================
# Gym Sync
# =============================================================================

async def sync_jjwl_gyms(
    session: Session,
    fetcher: BaseGymFetcher,
    matching: Optional[GymMatchingService] = None,
) -> GymSyncResult:
    """
    Sync all JJWL gyms and match unlinked ones against US IBJJF gyms.

    The IBJJF snapshot is loaded once for the whole run. Links written
    during the run do not show up in it, so later gyms in the same run
    still see the pre-run state.

    Args:
        session: SQLAlchemy database session
        fetcher: JJWL gym fetcher
        matching: Match decision engine (default: built on this session)

    Returns:
        GymSyncResult; on failure fetched/saved are 0 and error is set
    """
    gym_store = GymStore(session)
    matching = matching or GymMatchingService(MasterGymStore(session), PendingMatchStore(session))

    try:
        gyms = await fetcher.fetch_all_gyms()
        logger.info("Fetched %d JJWL gyms", len(gyms))
        saved = gym_store.batch_upsert_gyms(gyms)

        snapshot = gym_store.list_us_ibjjf_gyms()
        logger.info("Loaded %d US IBJJF gyms for matching", len(snapshot))

        stats = MatchingStats()
        started = perf_counter()
        for gym in gyms:
            # Re-read: an earlier gym in this run may have linked this one
            source_gym = gym_store.get_source_gym(gym.federation, gym.external_id)
            if source_gym is None or source_gym.master_gym_id:
                continue

            outcome = matching.process_matches(source_gym, snapshot)
            stats.processed += 1
            stats.auto_linked += outcome.auto_linked
            stats.pending_created += outcome.pending_created

            if stats.processed % PROGRESS_LOG_INTERVAL == 0:
                logger.info("Matching progress: %d/%d", stats.processed, len(gyms))

        logger.info(
            "JJWL matching: %d processed, %d auto-linked, %d pending in %.1fs",
            stats.processed, stats.auto_linked, stats.pending_created,
            perf_counter() - started,
        )
        return GymSyncResult(fetched=len(gyms), saved=saved, matching=stats)

    except Exception as e:
        # Discard upserts flushed but never committed by the failed run
        session.rollback()
        logger.error("Failed to sync JJWL gyms: %s", e, exc_info=True)
        return GymSyncResult(fetched=0, saved=0, error=str(e) or type(e).__name__)


async def sync_ibjjf_gyms(
    session: Session,
    fetcher: BaseGymFetcher,
    force_sync: bool = False,
    on_progress: Optional[ProgressCallback] = None,
) -> IBJJFGymSyncResult:
    """
    Sync IBJJF gyms, skipping the full fetch when the record count is unchanged.

    A fetcher that does not expose a record count always runs the full
    fetch, and the fetched gym count is stored as the new total.

    Args:
        session: SQLAlchemy database session
        fetcher: IBJJF gym fetcher
        force_sync: Fetch everything even if the count has not changed
        on_progress: Passed through to the fetcher as (current, total)

    Returns:
        IBJJFGymSyncResult
    """
    gym_store = GymStore(session)
    started = perf_counter()

    try:
        meta = gym_store.get_sync_meta(FEDERATION_IBJJF)
        previous_total = meta.total_records if meta else None
        total_records = None

        if fetcher.supports_total_count:
            total_records = await fetcher.fetch_total_count()
            if not force_sync and meta is not None and previous_total == total_records:
                logger.info("IBJJF unchanged (%d records), skipping sync", total_records)
                return IBJJFGymSyncResult(skipped=True, duration_s=perf_counter() - started)
            logger.info("IBJJF sync starting: %d -> %d records", previous_total or 0, total_records)
        else:
            logger.info("IBJJF fetcher exposes no record count, running full sync")

        gyms = await fetcher.fetch_all_gyms(on_progress)
        saved = gym_store.batch_upsert_gyms(gyms)
        gym_store.update_sync_meta(
            FEDERATION_IBJJF, len(gyms) if total_records is None else total_records
        )

        result = IBJJFGymSyncResult(
            fetched=len(gyms),
            saved=saved,
            duration_s=perf_counter() - started,
        )
        logger.info(result.summary())
        return result

    except Exception as e:
        session.rollback()
        logger.error("IBJJF sync failed: %s", e, exc_info=True)
        return IBJJFGymSyncResult(
            duration_s=perf_counter() - started,
            error=str(e) or type(e).__name__,
        )


# =============================================================================
# Rosters and Tournaments
# =============================================================================

async def sync_gym_roster(
    session: Session,
    fetchers: Mapping[str, BaseGymFetcher],
    federation: str,
    tournament_id: str,
    gym_external_id: str,
) -> RosterSyncResult:
    """
    Fetch and cache one gym's roster at one tournament.

    Args:
        session: SQLAlchemy database session
        fetchers: Fetcher per federation ('JJWL', 'IBJJF')
        federation: Federation of both the tournament and the gym
        tournament_id: Federation's tournament ID
        gym_external_id: Federation's gym ID

    Returns:
        RosterSyncResult with the athlete count, or an error
    """
    fetcher = fetchers.get(federation)
    if fetcher is None:
        return RosterSyncResult(success=False, error=f"No fetcher configured for {federation}")
    if not fetcher.supports_rosters:
        return RosterSyncResult(success=False, error=f"Rosters not supported for {federation}")

    try:
        gym = GymStore(session).get_source_gym(federation, gym_external_id)
        gym_name = gym.name if gym else "Unknown Gym"

        athletes = await fetcher.fetch_roster(tournament_id, gym_external_id)
        GymRosterStore(session).upsert_roster(
            federation, tournament_id, gym_external_id, gym_name, athletes
        )
        return RosterSyncResult(success=True, athlete_count=len(athletes))

    except Exception as e:
        logger.error(
            "Failed to sync roster for %s/%s/%s: %s",
            federation, tournament_id, gym_external_id, e,
        )
        return RosterSyncResult(success=False, error=str(e) or type(e).__name__)


def get_upcoming_tournaments(
    session: Session,
    days_ahead: int = 60,
    today: Optional[date] = None,
) -> TournamentQueryResult:
    """Tournaments starting between today and today + days_ahead."""
    today = today or utc_now().date()
    store = TournamentStore(session)

    try:
        tournaments: list[Tournament] = []
        cursor = None
        while True:
            page, cursor = store.query_tournaments(today, today + timedelta(days=days_ahead), cursor=cursor)
            tournaments.extend(page)
            if cursor is None:
                break
        return TournamentQueryResult(tournaments=tournaments)

    except Exception as e:
        logger.error("Failed to get upcoming tournaments: %s", e)
        return TournamentQueryResult(error=str(e) or type(e).__name__)
