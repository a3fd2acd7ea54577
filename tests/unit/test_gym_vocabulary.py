"""Unit tests for the matching vocabulary loader."""

import json

import pytest

from conftest import make_record
from mattrack.gyms.names import calculate_match_score, normalize_gym_name
from mattrack.gyms.vocabulary import (
    DEFAULT_AFFILIATIONS,
    DEFAULT_SUFFIXES,
    MatchingVocabulary,
    get_vocabulary,
    load_vocabulary,
)


def test_default_vocabulary():
    vocabulary = get_vocabulary()
    assert vocabulary.affiliations == DEFAULT_AFFILIATIONS
    assert vocabulary.suffixes == DEFAULT_SUFFIXES


def test_suffixes_sorted_longest_first():
    vocabulary = MatchingVocabulary(suffixes=("bjj", "brazilian jiu jitsu", "team"))
    assert vocabulary.suffixes_longest_first == ("brazilian jiu jitsu", "team", "bjj")


def test_load_partial_file_keeps_builtin_suffixes(tmp_path):
    path = tmp_path / "vocab.json"
    path.write_text(json.dumps({"affiliations": ["Fight Sports", "  "]}), encoding="utf-8")

    vocabulary = load_vocabulary(path)

    assert vocabulary.affiliations == ("fight sports",)
    assert vocabulary.suffixes == DEFAULT_SUFFIXES


def test_custom_vocabulary_drives_scoring(tmp_path):
    path = tmp_path / "vocab.json"
    path.write_text(
        json.dumps({"affiliations": ["fight sports"], "suffixes": ["gym"]}),
        encoding="utf-8",
    )
    vocabulary = load_vocabulary(str(path))

    assert normalize_gym_name("Iron Gym", vocabulary) == "iron"
    assert normalize_gym_name("Iron BJJ", vocabulary) == "iron bjj"

    gym1 = make_record("JJWL", "1", "Fight Sports Miami")
    gym2 = make_record("IBJJF", "2", "Fight Sports Orlando")
    _, signals = calculate_match_score(gym1, gym2, vocabulary)
    assert signals.affiliation == "fight sports"


def test_missing_file_raises_value_error(tmp_path):
    with pytest.raises(ValueError):
        load_vocabulary(tmp_path / "missing.json")


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        json.dumps(["gracie barra"]),
        json.dumps({"affiliations": "gracie barra"}),
        json.dumps({"suffixes": [1, 2]}),
        json.dumps({"suffixes": []}),
    ],
)
def test_malformed_file_raises_value_error(tmp_path, payload):
    path = tmp_path / "vocab.json"
    path.write_text(payload, encoding="utf-8")
    with pytest.raises(ValueError):
        load_vocabulary(path)
