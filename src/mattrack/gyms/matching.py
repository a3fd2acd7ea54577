"""
Cross-federation gym matching.

Decides, for one freshly synced source gym, how it relates to the gyms of
the other federation:

1. Already linked to a master gym - nothing to do
2. Best candidate scores >= auto-link threshold (90) - link automatically,
   reusing the candidate's master gym or creating a new one
3. Best candidate scores >= review threshold (70) - queue a pending match
   for an admin, unless one is already pending for the pair
4. Otherwise - leave the gym unlinked

Only the single best candidate is ever acted on. Two existing master gyms
that turn out to be duplicates of each other are never merged here.

The candidate pool is a snapshot taken once per sync run. It is never
re-read or updated while the run writes links, so gyms later in the run
still see the pre-run link state.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from mattrack.config import settings
from mattrack.db.models import SourceGymRecord, build_pair_key
from mattrack.db.stores import MasterGymStore, PendingMatchStore
from mattrack.gyms.names import calculate_match_score
from mattrack.gyms.similarity import SimilarityStrategy, get_strategy
from mattrack.gyms.vocabulary import MatchingVocabulary

logger = logging.getLogger(__name__)


@dataclass
class MatchCandidate:
    """A candidate gym from the other federation and its score."""
    gym: SourceGymRecord
    score: float

    def __repr__(self) -> str:
        return f"<MatchCandidate({self.gym.source_key}, score={self.score:.1f})>"


@dataclass
class MatchOutcome:
    """What process_matches() did for one gym."""
    auto_linked: int = 0
    pending_created: int = 0

    def __add__(self, other: "MatchOutcome") -> "MatchOutcome":
        return MatchOutcome(
            auto_linked=self.auto_linked + other.auto_linked,
            pending_created=self.pending_created + other.pending_created,
        )


class GymMatchingService:
    """
    Match decision engine for source gyms.

    Usage:
        service = GymMatchingService(
            MasterGymStore(session),
            PendingMatchStore(session),
        )
        outcome = service.process_matches(jjwl_gym, ibjjf_snapshot)
    """

    def __init__(
        self,
        master_store: MasterGymStore,
        pending_store: PendingMatchStore,
        strategy: Optional[SimilarityStrategy] = None,
        vocabulary: Optional[MatchingVocabulary] = None,
        auto_link_threshold: Optional[float] = None,
        review_threshold: Optional[float] = None,
    ):
        """
        Args:
            master_store: Master gym creation and linking
            pending_store: Pending match lookup and creation
            strategy: Scorer for the decision (default from settings)
            vocabulary: Affiliation/suffix lists (default: active vocabulary)
            auto_link_threshold: Override settings.gym_auto_link_threshold
            review_threshold: Override settings.gym_review_threshold
        """
        self.master_store = master_store
        self.pending_store = pending_store
        self.vocabulary = vocabulary
        self.strategy = strategy or get_strategy(settings.gym_similarity_strategy, vocabulary)

        self.auto_link_threshold = (
            settings.gym_auto_link_threshold if auto_link_threshold is None else auto_link_threshold
        )
        self.review_threshold = (
            settings.gym_review_threshold if review_threshold is None else review_threshold
        )

    # =========================================================================
    # Matching
    # =========================================================================

    def find_matches(
        self,
        source_gym: SourceGymRecord,
        candidate_pool: Sequence[SourceGymRecord],
    ) -> list[MatchCandidate]:
        """
        Score unlinked candidates and keep those at or above the review threshold.

        Returns:
            Candidates sorted by score descending; ties keep pool order
        """
        matches = []
        for candidate in candidate_pool:
            if candidate.source_key == source_gym.source_key:
                continue
            if candidate.master_gym_id:
                continue

            score = self.strategy.score(source_gym, candidate)
            if score >= self.review_threshold:
                matches.append(MatchCandidate(gym=candidate, score=score))

        # sort() is stable, so equal scores stay in pool order
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches

    def process_matches(
        self,
        source_gym: SourceGymRecord,
        candidate_pool: Sequence[SourceGymRecord],
    ) -> MatchOutcome:
        """
        Auto-link or queue a review for the best candidate of one gym.

        Args:
            source_gym: Gym to resolve (current persisted state)
            candidate_pool: Other federation's gyms from the run snapshot

        Returns:
            MatchOutcome with at most one of auto_linked/pending_created set
        """
        if source_gym.master_gym_id:
            return MatchOutcome()

        matches = self.find_matches(source_gym, candidate_pool)
        if not matches:
            return MatchOutcome()

        top = matches[0]

        if top.score >= self.auto_link_threshold:
            master_gym_id = self.link_gyms(source_gym, top.gym)
            logger.info(
                "Auto-linked %s ~ %s (score %.1f) -> master gym %s",
                source_gym.source_key, top.gym.source_key, top.score, master_gym_id,
            )
            return MatchOutcome(auto_linked=1)

        if top.score >= self.review_threshold:
            if self._queue_for_review(source_gym, top):
                return MatchOutcome(pending_created=1)

        return MatchOutcome()

    # =========================================================================
    # Linking
    # =========================================================================

    def link_gyms(self, gym1: SourceGymRecord, gym2: SourceGymRecord) -> str:
        """
        Put two source gyms under one master gym.

        Reuses gym2's master gym if it has one, then gym1's; otherwise
        creates a new master gym named after gym1. Used by both the
        auto-link path and admin approval.

        Returns:
            The master gym ID both gyms now point to
        """
        master_gym_id = gym2.master_gym_id or gym1.master_gym_id

        if master_gym_id is None:
            master = self.master_store.create_master_gym(
                canonical_name=gym1.name,
                city=gym1.city or gym2.city,
                country=gym1.country or gym2.country,
            )
            master_gym_id = master.id

        for gym in (gym1, gym2):
            if gym.master_gym_id != master_gym_id:
                self.master_store.link_source_gym(gym.federation, gym.external_id, master_gym_id)

        return master_gym_id

    def _queue_for_review(self, source_gym: SourceGymRecord, match: MatchCandidate) -> bool:
        """Create a pending match unless one is already pending for the pair."""
        existing = self.pending_store.find_existing_pending_match(
            source_gym.source_key, match.gym.source_key
        )
        if existing:
            logger.debug(
                "Pending match already exists for %s",
                build_pair_key(source_gym.source_key, match.gym.source_key),
            )
            return False

        _, signals = calculate_match_score(source_gym, match.gym, self.vocabulary)
        self.pending_store.create_pending_match(
            source_gym_1_id=source_gym.source_key,
            source_gym_1_name=source_gym.name,
            source_gym_2_id=match.gym.source_key,
            source_gym_2_name=match.gym.name,
            confidence=round(match.score, 2),
            signals=signals.to_dict(),
        )
        logger.info(
            "Queued pending match %s ~ %s (score %.1f)",
            source_gym.source_key, match.gym.source_key, match.score,
        )
        return True
