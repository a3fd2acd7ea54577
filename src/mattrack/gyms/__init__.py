"""
Gym identity resolution across federations.

Normalizes and scores gym names, decides auto-link / pending-review for
new source gyms, and handles admin review of pending matches.
"""

from mattrack.gyms.matching import GymMatchingService, MatchCandidate, MatchOutcome
from mattrack.gyms.names import (
    MatchSignals,
    calculate_match_score,
    calculate_name_similarity,
    calculate_similarity,
    normalize_gym_name,
)
from mattrack.gyms.review import (
    PendingMatchAlreadyReviewedError,
    PendingMatchNotFoundError,
    PendingMatchReviewService,
)
from mattrack.gyms.similarity import (
    JaroWinklerStrategy,
    LevenshteinStrategy,
    SimilarityStrategy,
    get_strategy,
)
from mattrack.gyms.vocabulary import MatchingVocabulary, get_vocabulary, load_vocabulary

__all__ = [
    "GymMatchingService",
    "JaroWinklerStrategy",
    "LevenshteinStrategy",
    "MatchCandidate",
    "MatchOutcome",
    "MatchSignals",
    "MatchingVocabulary",
    "PendingMatchAlreadyReviewedError",
    "PendingMatchNotFoundError",
    "PendingMatchReviewService",
    "SimilarityStrategy",
    "calculate_match_score",
    "calculate_name_similarity",
    "calculate_similarity",
    "get_strategy",
    "get_vocabulary",
    "load_vocabulary",
    "normalize_gym_name",
]
