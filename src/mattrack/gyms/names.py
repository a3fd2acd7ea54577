"""
Gym name normalization and scoring.

Gym names for the same academy drift a lot between federations:
- JJWL: "Pablo Silva BJJ"
- IBJJF: "Pablo Silveira Academy"
- Either: "Gracie Barra Austin" vs "Gracie Barra - Austin"

Two scorers live here and both are used:

1. calculate_match_score(): Levenshtein over normalized names plus city and
   affiliation boosts. Produces the MatchSignals shown to reviewers.
2. calculate_similarity(): Jaro-Winkler over the raw lowercased names plus
   the same boosts. Drives the auto-link / pending-review decision.

The two can disagree on the same pair. They are kept separate on purpose
until product signs off on a single algorithm; see gyms/similarity.py for
the strategy wrapper used to A/B them.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

import jellyfish
from rapidfuzz.distance import Levenshtein

from mattrack.config import settings
from mattrack.db.models import SourceGymRecord
from mattrack.gyms.vocabulary import MatchingVocabulary, get_vocabulary


def normalize_gym_name(name: str, vocabulary: Optional[MatchingVocabulary] = None) -> str:
    """
    Normalize a gym name for comparison.

    Normalization steps:
    1. Convert to lowercase, collapse whitespace
    2. Strip trailing suffixes (BJJ, Academy, Jiu-Jitsu...), longest first,
       until none is left
    3. Collapse whitespace and trim again

    Args:
        name: Raw gym name from either federation
        vocabulary: Suffix list to use (default: active vocabulary)

    Returns:
        Normalized name; empty string for empty input

    Examples:
        >>> normalize_gym_name("Pablo Silva BJJ")
        'pablo silva'
        >>> normalize_gym_name("Gracie Barra  Brazilian Jiu-Jitsu")
        'gracie barra'
        >>> normalize_gym_name("Atos Jiu Jitsu Academy")
        'atos'
    """
    if not name:
        return ""

    vocabulary = vocabulary or get_vocabulary()
    normalized = " ".join(name.lower().split())

    # Repeat until stable so "x academy bjj" and "x bjj academy" agree,
    # and normalizing twice changes nothing
    previous = None
    while previous != normalized:
        previous = normalized
        for suffix in vocabulary.suffixes_longest_first:
            normalized = re.sub(rf"\s*{re.escape(suffix)}\s*$", "", normalized)

    return " ".join(normalized.split())


def calculate_name_similarity(
    name1: str,
    name2: str,
    vocabulary: Optional[MatchingVocabulary] = None,
) -> int:
    """
    Levenshtein similarity of two normalized gym names, 0-100.

    Examples:
        >>> calculate_name_similarity("Pablo Silva BJJ", "Pablo Silva Academy")
        100
        >>> calculate_name_similarity("", "Test")
        0
    """
    normalized1 = normalize_gym_name(name1, vocabulary)
    normalized2 = normalize_gym_name(name2, vocabulary)

    if normalized1 == normalized2:
        return 100
    if not normalized1 or not normalized2:
        return 0

    distance = Levenshtein.distance(normalized1, normalized2)
    max_length = max(len(normalized1), len(normalized2))
    similarity = (max_length - distance) / max_length * 100

    return round(max(0.0, similarity))


def has_city_match(city: Optional[str], other_name: str) -> bool:
    """True if a gym's city appears anywhere in the other gym's raw name."""
    if not city:
        return False
    city_lower = city.lower().strip()
    if not city_lower:
        return False
    return city_lower in other_name.lower()


def extract_shared_affiliation(
    name1: str,
    name2: str,
    vocabulary: Optional[MatchingVocabulary] = None,
) -> Optional[str]:
    """
    First known affiliation contained in both raw names, if any.

    Examples:
        >>> extract_shared_affiliation("Gracie Barra Austin", "GB Austin")
        >>> extract_shared_affiliation("Gracie Barra Austin", "Gracie Barra Dallas")
        'gracie barra'
    """
    vocabulary = vocabulary or get_vocabulary()
    lower1 = name1.lower()
    lower2 = name2.lower()
    for affiliation in vocabulary.affiliations:
        if affiliation in lower1 and affiliation in lower2:
            return affiliation
    return None


def _boosts(
    name1: str,
    name2: str,
    city1: Optional[str],
    city2: Optional[str],
    vocabulary: Optional[MatchingVocabulary],
) -> tuple[int, int, Optional[str]]:
    city_boost = 0
    if has_city_match(city1, name2) or has_city_match(city2, name1):
        city_boost = settings.gym_city_boost

    affiliation = extract_shared_affiliation(name1, name2, vocabulary)
    affiliation_boost = settings.gym_affiliation_boost if affiliation else 0

    return city_boost, affiliation_boost, affiliation


@dataclass
class MatchSignals:
    """
    Breakdown of a composite match score.

    Stored on pending matches so reviewers can see why two gyms were paired.
    """
    name_similarity: int
    city_boost: int = 0
    affiliation_boost: int = 0
    affiliation: Optional[str] = field(default=None)

    def to_dict(self) -> dict:
        return {
            "name_similarity": self.name_similarity,
            "city_boost": self.city_boost,
            "affiliation_boost": self.affiliation_boost,
            "affiliation": self.affiliation,
        }


def calculate_match_score(
    gym1: SourceGymRecord,
    gym2: SourceGymRecord,
    vocabulary: Optional[MatchingVocabulary] = None,
) -> tuple[int, MatchSignals]:
    """
    Composite Levenshtein score with city and affiliation boosts.

    Args:
        gym1: First gym
        gym2: Second gym
        vocabulary: Affiliation/suffix lists (default: active vocabulary)

    Returns:
        Tuple of (score capped at 100, signal breakdown)
    """
    name_similarity = calculate_name_similarity(gym1.name, gym2.name, vocabulary)
    city_boost, affiliation_boost, affiliation = _boosts(
        gym1.name, gym2.name, gym1.city, gym2.city, vocabulary
    )

    signals = MatchSignals(
        name_similarity=name_similarity,
        city_boost=city_boost,
        affiliation_boost=affiliation_boost,
        affiliation=affiliation,
    )
    score = min(100, name_similarity + city_boost + affiliation_boost)

    return score, signals


def calculate_similarity(
    name1: str,
    name2: str,
    city1: Optional[str] = None,
    city2: Optional[str] = None,
    vocabulary: Optional[MatchingVocabulary] = None,
) -> float:
    """
    Jaro-Winkler similarity with city and affiliation boosts, 0-100.

    Names are lowercased and trimmed but NOT suffix-stripped: Jaro-Winkler
    weights the shared prefix heavily, which already makes trailing
    "BJJ"/"Academy" noise cheap.

    Examples:
        >>> calculate_similarity("Gracie Barra", "Gracie Barra", "Austin", "Austin")
        100.0
    """
    lower1 = name1.lower().strip()
    lower2 = name2.lower().strip()

    if not lower1 or not lower2:
        base = 0.0
    else:
        base = jellyfish.jaro_winkler_similarity(lower1, lower2) * 100

    city_boost, affiliation_boost, _ = _boosts(name1, name2, city1, city2, vocabulary)

    return min(100.0, base + city_boost + affiliation_boost)
