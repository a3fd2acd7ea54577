"""
Unit tests for gym name normalization and scoring.
"""

import pytest

from conftest import make_record
from mattrack.gyms.names import (
    calculate_match_score,
    calculate_name_similarity,
    calculate_similarity,
    extract_shared_affiliation,
    has_city_match,
    normalize_gym_name,
)
from mattrack.gyms.similarity import JaroWinklerStrategy, LevenshteinStrategy, get_strategy


class TestNormalizeGymName:

    def test_strips_trailing_suffix(self):
        assert normalize_gym_name("Pablo Silva BJJ") == "pablo silva"
        assert normalize_gym_name("Pablo Silva Academy") == "pablo silva"

    def test_multi_word_suffix_and_whitespace(self):
        assert normalize_gym_name("  Gracie   Barra  Brazilian Jiu-Jitsu ") == "gracie barra"

    def test_stacked_suffixes_removed(self):
        assert normalize_gym_name("Atos Jiu Jitsu Academy") == "atos"
        assert normalize_gym_name("Pablo Academy BJJ") == "pablo"

    def test_suffix_only_matched_at_end(self):
        assert normalize_gym_name("Team Lloyd Irvin") == "team lloyd irvin"

    def test_empty_input(self):
        assert normalize_gym_name("") == ""

    def test_case_insensitive(self):
        assert normalize_gym_name("GRACIE BARRA HQ") == normalize_gym_name("gracie barra hq")

    @pytest.mark.parametrize(
        "name",
        [
            "Pablo Silva BJJ",
            "Atos Jiu Jitsu Academy",
            "Checkmat MMA Team",
            "10th Planet Austin Headquarters",
            "BJJ",
            "   ",
        ],
    )
    def test_idempotent(self, name):
        once = normalize_gym_name(name)
        assert normalize_gym_name(once) == once


class TestNameSimilarity:

    def test_same_after_normalization(self):
        assert calculate_name_similarity("Pablo Silva BJJ", "Pablo Silva Academy") == 100

    def test_empty_side_scores_zero(self):
        assert calculate_name_similarity("", "Test") == 0
        assert calculate_name_similarity("Test", "") == 0

    def test_single_edit(self):
        # "alpha" vs "alphb": 1 edit over 5 chars
        assert calculate_name_similarity("Alpha", "Alphb") == 80


class TestMatchScore:

    def test_no_boosts(self):
        gym1 = make_record("JJWL", "1", "Test Academy")
        gym2 = make_record("IBJJF", "2", "Test Academy")

        score, signals = calculate_match_score(gym1, gym2)

        assert score == 100
        assert signals.name_similarity == 100
        assert signals.city_boost == 0
        assert signals.affiliation_boost == 0
        assert signals.affiliation is None

    def test_city_boost_is_symmetric(self):
        gym1 = make_record("JJWL", "1", "Pablo Silva BJJ", city="Austin")
        gym2 = make_record("IBJJF", "2", "Pablo Silva Austin")

        score_ab, signals_ab = calculate_match_score(gym1, gym2)
        score_ba, signals_ba = calculate_match_score(gym2, gym1)

        assert signals_ab.city_boost == 15
        assert signals_ba.city_boost == 15
        assert score_ab == score_ba
        # "pablo silva" vs "pablo silva austin": 7 edits over 18 chars -> 61
        assert score_ab == 61 + 15

    def test_affiliation_boost(self):
        gym1 = make_record("JJWL", "1", "Gracie Barra Austin")
        gym2 = make_record("IBJJF", "2", "Gracie Barra Dallas")

        score, signals = calculate_match_score(gym1, gym2)

        assert signals.affiliation == "gracie barra"
        assert signals.affiliation_boost == 10
        assert signals.city_boost == 0
        assert score == min(100, signals.name_similarity + 10)

    def test_capped_at_100(self):
        gym1 = make_record("JJWL", "1", "Gracie Barra Austin", city="Austin")
        gym2 = make_record("IBJJF", "2", "Gracie Barra Austin", city="Austin")

        score, signals = calculate_match_score(gym1, gym2)

        assert signals.name_similarity == 100
        assert signals.city_boost == 15
        assert signals.affiliation_boost == 10
        assert score == 100

    def test_signals_payload(self):
        gym1 = make_record("JJWL", "1", "Gracie Barra Austin")
        gym2 = make_record("IBJJF", "2", "Gracie Barra Dallas")

        _, signals = calculate_match_score(gym1, gym2)

        assert set(signals.to_dict()) == {
            "name_similarity", "city_boost", "affiliation_boost", "affiliation",
        }


class TestBoostHelpers:

    def test_city_match_case_insensitive(self):
        assert has_city_match(" AUSTIN ", "Gracie Barra Austin")
        assert not has_city_match("Dallas", "Gracie Barra Austin")
        assert not has_city_match(None, "Gracie Barra Austin")
        assert not has_city_match("", "Gracie Barra Austin")

    def test_shared_affiliation_requires_both(self):
        assert extract_shared_affiliation("Alliance BJJ Dallas", "Atos Jiu-Jitsu Houston") is None
        assert extract_shared_affiliation("Checkmat Austin", "CHECKMAT Houston") == "checkmat"


class TestJaroWinklerSimilarity:

    def test_identical_names(self):
        assert calculate_similarity("Gracie Barra", "Gracie Barra", "Austin", "Austin") == 100

    def test_affiliation_boost_caps_at_100(self):
        # Jaro-Winkler ~91.6, +10 affiliation, no city boost
        score = calculate_similarity("Gracie Barra Austin", "Gracie Barra Dallas", "Austin", "Dallas")
        assert score == 100

    def test_different_gyms_below_review_threshold(self):
        assert calculate_similarity("Alliance BJJ Dallas", "Atos Jiu-Jitsu Houston") < 70

    def test_close_names_land_in_review_band(self):
        score = calculate_similarity("Pablo Silva BJJ", "Pablo Silveira Academy")
        assert 70 <= score < 90

    def test_empty_name(self):
        assert calculate_similarity("", "Gracie Barra") == 0


class TestStrategies:

    def test_levenshtein_strategy_uses_normalized_names(self):
        gym1 = make_record("JJWL", "1", "Pablo Silva BJJ")
        gym2 = make_record("IBJJF", "2", "Pablo Silva Academy")
        assert LevenshteinStrategy().score(gym1, gym2) == 100.0

    def test_jaro_winkler_strategy_matches_function(self):
        gym1 = make_record("JJWL", "1", "Pablo Silva BJJ")
        gym2 = make_record("IBJJF", "2", "Pablo Silveira Academy")
        assert JaroWinklerStrategy().score(gym1, gym2) == calculate_similarity(
            "Pablo Silva BJJ", "Pablo Silveira Academy"
        )

    def test_strategies_can_disagree(self):
        gym1 = make_record("JJWL", "1", "Pablo Silva BJJ")
        gym2 = make_record("IBJJF", "2", "Pablo Silva Academy")
        assert LevenshteinStrategy().score(gym1, gym2) != JaroWinklerStrategy().score(gym1, gym2)

    def test_get_strategy(self):
        assert isinstance(get_strategy("levenshtein"), LevenshteinStrategy)
        assert isinstance(get_strategy("jaro_winkler"), JaroWinklerStrategy)
        with pytest.raises(ValueError):
            get_strategy("soundex")
