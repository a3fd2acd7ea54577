"""
Database-backed stores for the gym identity and roster sync services.

Each store wraps one SQLAlchemy session and exposes the handful of
queries the services need. Gym reads hand back frozen SourceGymRecord
snapshots instead of ORM rows so callers can hold on to them across
writes without seeing them change underneath.

Writes commit immediately: a sync run that fails halfway keeps what it
already saved, and re-running the sync is always safe.

Usage:
    with get_session() as session:
        gym_store = GymStore(session)
        snapshot = gym_store.list_us_ibjjf_gyms()
"""

import logging
import uuid
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from mattrack.config import settings
from mattrack.db.models import (
    FEDERATION_IBJJF,
    PENDING_MATCH_STATUSES,
    Athlete,
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
    utc_now,
)
from mattrack.fetchers.base import FetchedGym, RosterAthlete

logger = logging.getLogger(__name__)


def sanitize_gym_name(name: str) -> str:
    """Strip '#' (reserved for source keys) and surrounding whitespace."""
    return name.replace("#", "").strip()


class _SessionStore:
    """Shared session handling for the stores below."""

    def __init__(self, session: Session):
        self.session = session

    def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise


# =============================================================================
# Gym Stores
# =============================================================================

class GymStore(_SessionStore):
    """Source gym rows and per-federation sync metadata."""

    def upsert_gym(self, gym: FetchedGym) -> None:
        """Insert or refresh one source gym, keyed by federation + external id."""
        self._upsert(gym)
        self._commit()

    def batch_upsert_gyms(self, gyms: Iterable[FetchedGym]) -> int:
        """
        Upsert gyms one at a time.

        Existing rows keep their created_at and master_gym_id; only the
        descriptive fields are refreshed.

        Returns:
            Number of gyms written
        """
        count = 0
        for gym in gyms:
            self._upsert(gym)
            count += 1
        self._commit()
        return count

    def get_source_gym(self, federation: str, external_id: str) -> Optional[SourceGymRecord]:
        row = self._get_row(federation, external_id)
        return row.to_record() if row else None

    def list_gyms(
        self,
        federation: str,
        limit: Optional[int] = None,
        cursor: Optional[int] = None,
    ) -> tuple[list[SourceGymRecord], Optional[int]]:
        """
        List one page of a federation's gyms.

        Args:
            federation: 'JJWL' or 'IBJJF'
            limit: Page size (default from settings)
            cursor: Cursor returned by the previous page, None for the first

        Returns:
            Tuple of (gyms, next_cursor); next_cursor is None on the last page
        """
        limit = limit or settings.gym_page_size
        stmt = select(SourceGym).where(SourceGym.federation == federation)
        if cursor is not None:
            stmt = stmt.where(SourceGym.id > cursor)
        rows = self.session.scalars(stmt.order_by(SourceGym.id).limit(limit + 1)).all()

        next_cursor = rows[limit - 1].id if len(rows) > limit else None
        return [row.to_record() for row in rows[:limit]], next_cursor

    def list_all_gyms(self, federation: str) -> list[SourceGymRecord]:
        """List every gym of a federation, following pagination to the end."""
        gyms: list[SourceGymRecord] = []
        cursor = None
        while True:
            page, cursor = self.list_gyms(federation, cursor=cursor)
            gyms.extend(page)
            if cursor is None:
                return gyms

    def list_us_ibjjf_gyms(self) -> tuple[SourceGymRecord, ...]:
        """
        Load the IBJJF gyms used as the matching snapshot.

        JJWL only runs US events, so only IBJJF gyms whose country code or
        country name is in settings.gym_snapshot_countries are candidates.
        This roughly halves the comparison space.
        """
        countries = settings.gym_snapshot_countries
        stmt = (
            select(SourceGym)
            .where(
                SourceGym.federation == FEDERATION_IBJJF,
                or_(SourceGym.country_code.in_(countries), SourceGym.country.in_(countries)),
            )
            .order_by(SourceGym.id)
        )
        return tuple(row.to_record() for row in self.session.scalars(stmt))

    def list_by_master_gym_id(self, master_gym_id: str) -> list[SourceGymRecord]:
        stmt = (
            select(SourceGym)
            .where(SourceGym.master_gym_id == master_gym_id)
            .order_by(SourceGym.id)
        )
        return [row.to_record() for row in self.session.scalars(stmt)]

    def get_sync_meta(self, federation: str) -> Optional[GymSyncMeta]:
        return self.session.get(GymSyncMeta, federation)

    def update_sync_meta(self, federation: str, total_records: int) -> GymSyncMeta:
        """
        Record a completed sync.

        last_sync_at always moves; last_change_at only moves when the
        record count differs from the stored one.
        """
        now = utc_now()
        meta = self.session.get(GymSyncMeta, federation)
        if meta is None:
            meta = GymSyncMeta(
                federation=federation,
                total_records=total_records,
                last_sync_at=now,
                last_change_at=now,
            )
            self.session.add(meta)
        else:
            if meta.total_records != total_records:
                meta.last_change_at = now
            meta.total_records = total_records
            meta.last_sync_at = now

        self._commit()
        return meta

    def _get_row(self, federation: str, external_id: str) -> Optional[SourceGym]:
        return self.session.scalars(
            select(SourceGym).where(
                SourceGym.federation == federation,
                SourceGym.external_id == external_id,
            )
        ).first()

    def _upsert(self, gym: FetchedGym) -> None:
        row = self._get_row(gym.federation, gym.external_id)
        if row is None:
            row = SourceGym(federation=gym.federation, external_id=gym.external_id)
            self.session.add(row)

        row.name = sanitize_gym_name(gym.name)
        row.city = gym.city
        row.country = gym.country
        row.country_code = gym.country_code
        # Flush so a repeated key later in the same batch finds this row
        self.session.flush()


class MasterGymStore(_SessionStore):
    """Canonical gym identities and the links pointing at them."""

    def create_master_gym(
        self,
        canonical_name: str,
        city: Optional[str] = None,
        country: Optional[str] = None,
        address: Optional[str] = None,
        website: Optional[str] = None,
    ) -> MasterGym:
        master = MasterGym(
            id=str(uuid.uuid4()),
            canonical_name=canonical_name,
            search_name=canonical_name.lower(),
            city=city,
            country=country,
            address=address,
            website=website,
        )
        self.session.add(master)
        self._commit()
        return master

    def get_master_gym(self, master_gym_id: str) -> Optional[MasterGym]:
        return self.session.get(MasterGym, master_gym_id)

    def search_master_gyms(self, name_prefix: str, limit: int = 20) -> list[MasterGym]:
        """Case-insensitive prefix search on the canonical name."""
        stmt = (
            select(MasterGym)
            .where(MasterGym.search_name.startswith(name_prefix.lower(), autoescape=True))
            .order_by(MasterGym.search_name)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def link_source_gym(self, federation: str, external_id: str, master_gym_id: str) -> None:
        self._set_master(federation, external_id, master_gym_id)

    def unlink_source_gym(self, federation: str, external_id: str) -> None:
        self._set_master(federation, external_id, None)

    def _set_master(
        self, federation: str, external_id: str, master_gym_id: Optional[str]
    ) -> None:
        row = self.session.scalars(
            select(SourceGym).where(
                SourceGym.federation == federation,
                SourceGym.external_id == external_id,
            )
        ).first()
        if row is None:
            logger.warning("Source gym %s#%s not found, link not changed", federation, external_id)
            return

        row.master_gym_id = master_gym_id
        self._commit()


class PendingMatchStore(_SessionStore):
    """Pending gym matches awaiting review."""

    def create_pending_match(
        self,
        source_gym_1_id: str,
        source_gym_1_name: str,
        source_gym_2_id: str,
        source_gym_2_name: str,
        confidence: float,
        signals: dict,
    ) -> PendingGymMatch:
        match = PendingGymMatch(
            id=str(uuid.uuid4()),
            source_gym_1_id=source_gym_1_id,
            source_gym_1_name=source_gym_1_name,
            source_gym_2_id=source_gym_2_id,
            source_gym_2_name=source_gym_2_name,
            pair_key=build_pair_key(source_gym_1_id, source_gym_2_id),
            confidence=confidence,
            signals=signals,
            status="pending",
        )
        self.session.add(match)
        self._commit()
        return match

    def get_pending_match(self, match_id: str) -> Optional[PendingGymMatch]:
        return self.session.get(PendingGymMatch, match_id)

    def find_existing_pending_match(
        self,
        source_gym_1_id: str,
        source_gym_2_id: str,
        status: str = "pending",
    ) -> Optional[PendingGymMatch]:
        """Find a match for the pair in either order."""
        stmt = select(PendingGymMatch).where(
            PendingGymMatch.pair_key == build_pair_key(source_gym_1_id, source_gym_2_id),
            PendingGymMatch.status == status,
        )
        return self.session.scalars(stmt).first()

    def list_pending_matches(self, status: str = "pending", limit: int = 50) -> list[PendingGymMatch]:
        if status not in PENDING_MATCH_STATUSES:
            raise ValueError(f"Invalid status: {status}. Must be one of {PENDING_MATCH_STATUSES}")

        stmt = (
            select(PendingGymMatch)
            .where(PendingGymMatch.status == status)
            .order_by(PendingGymMatch.created_at, PendingGymMatch.id)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def update_status(self, match_id: str, status: str, reviewed_by: str) -> None:
        match = self.session.get(PendingGymMatch, match_id)
        if match is None:
            raise LookupError(f"Pending match {match_id} not found")

        match.status = status
        match.reviewed_by = reviewed_by
        match.reviewed_at = utc_now()
        self._commit()


# =============================================================================
# Tournament and User Stores
# =============================================================================

class TournamentStore(_SessionStore):
    """Tournament window queries."""

    def query_tournaments(
        self,
        start_after: date,
        start_before: date,
        limit: Optional[int] = None,
        cursor: Optional[int] = None,
    ) -> tuple[list[Tournament], Optional[int]]:
        """
        One page of tournaments starting inside [start_after, start_before].

        Returns:
            Tuple of (tournaments, next_cursor); next_cursor is None on the last page
        """
        limit = limit or settings.tournament_page_size
        stmt = select(Tournament).where(
            Tournament.start_date >= start_after,
            Tournament.start_date <= start_before,
        )
        if cursor is not None:
            stmt = stmt.where(Tournament.id > cursor)
        rows = self.session.scalars(stmt.order_by(Tournament.id).limit(limit + 1)).all()

        next_cursor = rows[limit - 1].id if len(rows) > limit else None
        return list(rows[:limit]), next_cursor


class WishlistStore(_SessionStore):
    """Wishlist lookups across all users."""

    def list_wishlisted_tournaments(
        self,
        days_ahead: int,
        today: Optional[date] = None,
    ) -> list[TournamentRef]:
        """Distinct tournaments any user wishlisted that start within the window."""
        today = today or utc_now().date()
        stmt = (
            select(Tournament.federation, Tournament.external_id)
            .join(WishlistItem, WishlistItem.tournament_id == Tournament.id)
            .where(
                Tournament.start_date >= today,
                Tournament.start_date <= today + timedelta(days=days_ahead),
            )
            .distinct()
            .order_by(Tournament.federation, Tournament.external_id)
        )
        return [TournamentRef(federation, external_id) for federation, external_id in self.session.execute(stmt)]


class AthleteStore(_SessionStore):

    def list_athletes_with_gyms(self) -> list[Athlete]:
        stmt = select(Athlete).where(Athlete.gym_source_id.is_not(None)).order_by(Athlete.id)
        return list(self.session.scalars(stmt))


class UserProfileStore(_SessionStore):

    def list_master_gym_ids(self) -> list[str]:
        """Distinct home gyms referenced by any user profile."""
        stmt = (
            select(UserProfile.master_gym_id)
            .where(UserProfile.master_gym_id.is_not(None))
            .distinct()
            .order_by(UserProfile.master_gym_id)
        )
        return list(self.session.scalars(stmt))


class GymRosterStore(_SessionStore):
    """Cached tournament rosters per gym."""

    def upsert_roster(
        self,
        federation: str,
        tournament_id: str,
        gym_external_id: str,
        gym_name: str,
        athletes: Sequence[RosterAthlete],
    ) -> GymRoster:
        roster = self.get_roster(federation, tournament_id, gym_external_id)
        if roster is None:
            roster = GymRoster(
                federation=federation,
                tournament_external_id=tournament_id,
                gym_external_id=gym_external_id,
            )
            self.session.add(roster)

        roster.gym_name = gym_name
        roster.athletes = [athlete.to_dict() for athlete in athletes]
        roster.athlete_count = len(athletes)
        roster.fetched_at = utc_now()
        self._commit()
        return roster

    def get_roster(
        self, federation: str, tournament_id: str, gym_external_id: str
    ) -> Optional[GymRoster]:
        return self.session.scalars(
            select(GymRoster).where(
                GymRoster.federation == federation,
                GymRoster.tournament_external_id == tournament_id,
                GymRoster.gym_external_id == gym_external_id,
            )
        ).first()

    def list_tournament_rosters(self, federation: str, tournament_id: str) -> list[GymRoster]:
        stmt = (
            select(GymRoster)
            .where(
                GymRoster.federation == federation,
                GymRoster.tournament_external_id == tournament_id,
            )
            .order_by(GymRoster.gym_name)
        )
        return list(self.session.scalars(stmt))
