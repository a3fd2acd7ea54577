"""
Matching vocabulary: known affiliations and trailing name suffixes.

Gym names from JJWL and IBJJF share a lot of noise ("BJJ", "Academy",
"Jiu-Jitsu") and a lot of real signal (multi-location affiliations like
Gracie Barra or Alliance). Both lists live here so they can be replaced
from a JSON file without touching the scoring code:

    {
        "affiliations": ["gracie barra", "alliance", ...],
        "suffixes": ["bjj", "academy", ...]
    }

Point settings.gym_vocabulary_path at the file. A key left out of the
file keeps the built-in list.
"""

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from mattrack.config import settings

logger = logging.getLogger(__name__)


# Order matters only for which affiliation is reported when a name
# contains more than one
DEFAULT_AFFILIATIONS: tuple[str, ...] = (
    "gracie barra",
    "alliance",
    "atos",
    "checkmat",
    "carlson gracie",
    "nova uniao",
    "brazilian top team",
    "btt",
    "ribeiro",
    "zenith",
    "unity",
    "renzo gracie",
    "marcelo garcia",
    "arte suave",
    "gracie humaita",
    "gracie academy",
    "10th planet",
    "tenth planet",
)

DEFAULT_SUFFIXES: tuple[str, ...] = (
    "bjj",
    "brazilian jiu jitsu",
    "brazilian jiu-jitsu",
    "jiu jitsu",
    "jiu-jitsu",
    "jiujitsu",
    "academy",
    "team",
    "mma",
    "martial arts",
    "training center",
    "hq",
    "headquarters",
)


@dataclass(frozen=True)
class MatchingVocabulary:
    """Affiliation and suffix lists used by the name scorer."""
    affiliations: tuple[str, ...] = DEFAULT_AFFILIATIONS
    suffixes: tuple[str, ...] = DEFAULT_SUFFIXES

    @property
    def suffixes_longest_first(self) -> tuple[str, ...]:
        # Multi-word suffixes must be tried before the words they end with
        return tuple(sorted(self.suffixes, key=len, reverse=True))


def _read_terms(data: dict, key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    if key not in data:
        return default

    terms = data[key]
    if not isinstance(terms, list) or not all(isinstance(t, str) for t in terms):
        raise ValueError(f"'{key}' must be a list of strings")

    cleaned = tuple(t.strip().lower() for t in terms if t.strip())
    if not cleaned:
        raise ValueError(f"'{key}' must not be empty")
    return cleaned


def load_vocabulary(path: Union[str, Path]) -> MatchingVocabulary:
    """
    Load a vocabulary file.

    Args:
        path: JSON file with optional 'affiliations' and 'suffixes' lists

    Returns:
        MatchingVocabulary with the file's lists (built-ins for missing keys)

    Raises:
        ValueError: If the file cannot be read or is not the expected shape
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Cannot load matching vocabulary from {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Matching vocabulary in {path} must be a JSON object")

    vocabulary = MatchingVocabulary(
        affiliations=_read_terms(data, "affiliations", DEFAULT_AFFILIATIONS),
        suffixes=_read_terms(data, "suffixes", DEFAULT_SUFFIXES),
    )
    logger.info(
        "Loaded matching vocabulary from %s (%d affiliations, %d suffixes)",
        path, len(vocabulary.affiliations), len(vocabulary.suffixes),
    )
    return vocabulary


@lru_cache
def get_vocabulary(path: Optional[str] = None) -> MatchingVocabulary:
    """
    Get the active vocabulary, loaded once per path.

    Falls back to settings.gym_vocabulary_path, then to the built-in lists.
    """
    path = path or settings.gym_vocabulary_path
    if not path:
        return MatchingVocabulary()
    return load_vocabulary(path)
