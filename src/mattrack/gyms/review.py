"""
Admin review of pending gym matches.

Pending matches are created by the matching engine for pairs scoring in
the review band (70-89). An admin either approves the pair, which links
both gyms under one master gym exactly like an auto-link, or rejects it.
Reviewed matches are final.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from mattrack.db.models import PendingGymMatch, SourceGymRecord, parse_source_key
from mattrack.db.stores import GymStore, MasterGymStore, PendingMatchStore
from mattrack.gyms.matching import GymMatchingService

logger = logging.getLogger(__name__)


class PendingMatchNotFoundError(LookupError):
    """No pending match with the given ID."""


class PendingMatchAlreadyReviewedError(ValueError):
    """The match was already approved or rejected."""


class PendingMatchReviewService:
    """
    Approve, reject and list pending gym matches.

    Usage:
        service = PendingMatchReviewService(session)
        for match in service.list_pending_matches():
            ...
        master_gym_id = service.approve(match.id, reviewer_id="admin")
    """

    def __init__(self, db: Session, matching: Optional[GymMatchingService] = None):
        self.db = db
        self.gym_store = GymStore(db)
        self.master_store = MasterGymStore(db)
        self.pending_store = PendingMatchStore(db)
        self.matching = matching or GymMatchingService(self.master_store, self.pending_store)

    def list_pending_matches(self, status: str = "pending", limit: int = 50) -> list[PendingGymMatch]:
        """
        List matches by status, oldest first.

        Raises:
            ValueError: If status is not pending/approved/rejected
        """
        return self.pending_store.list_pending_matches(status, limit)

    def approve(self, match_id: str, reviewer_id: str) -> str:
        """
        Approve a match and link both gyms under one master gym.

        Returns:
            The master gym ID both gyms now point to

        Raises:
            PendingMatchNotFoundError: Unknown match ID
            PendingMatchAlreadyReviewedError: Match is not pending
            ValueError: Match carries a malformed source gym key
        """
        match = self._get_reviewable(match_id)

        gym1 = self._resolve_gym(match.source_gym_1_id, match.source_gym_1_name)
        gym2 = self._resolve_gym(match.source_gym_2_id, match.source_gym_2_name)

        master_gym_id = self.matching.link_gyms(gym1, gym2)
        self.pending_store.update_status(match_id, "approved", reviewer_id)

        logger.info(
            "Match %s approved by %s: %s + %s -> master gym %s",
            match_id, reviewer_id, gym1.source_key, gym2.source_key, master_gym_id,
        )
        return master_gym_id

    def reject(self, match_id: str, reviewer_id: str) -> None:
        """
        Reject a match. Neither gym is touched.

        Raises:
            PendingMatchNotFoundError: Unknown match ID
            PendingMatchAlreadyReviewedError: Match is not pending
        """
        self._get_reviewable(match_id)
        self.pending_store.update_status(match_id, "rejected", reviewer_id)
        logger.info("Match %s rejected by %s", match_id, reviewer_id)

    def unlink_source_gym(self, master_gym_id: str, source_key: str) -> None:
        """
        Detach a source gym from a master gym.

        Args:
            master_gym_id: Master gym the source gym belongs to
            source_key: Federation-qualified key, e.g. 'JJWL#5713'

        Raises:
            LookupError: Master gym does not exist
            ValueError: Malformed source gym key
        """
        if self.master_store.get_master_gym(master_gym_id) is None:
            raise LookupError(f"Master gym {master_gym_id} not found")

        parsed = parse_source_key(source_key)
        if parsed is None:
            raise ValueError(f"Invalid source gym key: {source_key}")

        federation, external_id = parsed
        self.master_store.unlink_source_gym(federation, external_id)
        logger.info("Unlinked %s from master gym %s", source_key, master_gym_id)

    def _get_reviewable(self, match_id: str) -> PendingGymMatch:
        match = self.pending_store.get_pending_match(match_id)
        if match is None:
            raise PendingMatchNotFoundError(f"Pending match {match_id} not found")
        if match.status != "pending":
            raise PendingMatchAlreadyReviewedError(
                f"Match {match_id} has already been reviewed ({match.status})"
            )
        return match

    def _resolve_gym(self, source_key: str, name_snapshot: str) -> SourceGymRecord:
        parsed = parse_source_key(source_key)
        if parsed is None:
            raise ValueError(f"Invalid source gym key in match: {source_key}")

        federation, external_id = parsed
        gym = self.gym_store.get_source_gym(federation, external_id)
        if gym is None:
            # Gym row is gone; fall back to the name captured on the match
            logger.warning("Source gym %s not found, using name snapshot", source_key)
            gym = SourceGymRecord(federation=federation, external_id=external_id, name=name_snapshot)
        return gym
