"""
Pluggable similarity strategies for the match decision engine.

Both scorers from gyms/names.py are exposed behind one interface so the
engine can run either of them. JaroWinklerStrategy is the default and
the one used in production.
"""

from abc import ABC, abstractmethod
from typing import Optional

from mattrack.db.models import SourceGymRecord
from mattrack.gyms.names import calculate_match_score, calculate_similarity
from mattrack.gyms.vocabulary import MatchingVocabulary


class SimilarityStrategy(ABC):
    """Scores a pair of source gyms on a 0-100 scale."""

    name: str = ""

    def __init__(self, vocabulary: Optional[MatchingVocabulary] = None):
        self.vocabulary = vocabulary

    @abstractmethod
    def score(self, gym1: SourceGymRecord, gym2: SourceGymRecord) -> float:
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class LevenshteinStrategy(SimilarityStrategy):
    """Normalized-name Levenshtein plus boosts (calculate_match_score)."""

    name = "levenshtein"

    def score(self, gym1: SourceGymRecord, gym2: SourceGymRecord) -> float:
        score, _ = calculate_match_score(gym1, gym2, self.vocabulary)
        return float(score)


class JaroWinklerStrategy(SimilarityStrategy):
    """Raw-name Jaro-Winkler plus boosts (calculate_similarity)."""

    name = "jaro_winkler"

    def score(self, gym1: SourceGymRecord, gym2: SourceGymRecord) -> float:
        return calculate_similarity(
            gym1.name, gym2.name, gym1.city, gym2.city, self.vocabulary
        )


STRATEGIES: dict[str, type[SimilarityStrategy]] = {
    LevenshteinStrategy.name: LevenshteinStrategy,
    JaroWinklerStrategy.name: JaroWinklerStrategy,
}


def get_strategy(
    name: str,
    vocabulary: Optional[MatchingVocabulary] = None,
) -> SimilarityStrategy:
    """
    Build a strategy by name.

    Raises:
        ValueError: If the name is not a known strategy
    """
    try:
        strategy_cls = STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown similarity strategy: {name}. Must be one of {list(STRATEGIES)}")
    return strategy_cls(vocabulary)
