import pytest

from app.modules.proposals.similarity import is_similar, levenshtein_distance, similarity


@pytest.mark.parametrize("s1,s2,expected", [
    ("", "", 0),
    ("abc", "", 3),
    ("kitten", "sitting", 3),
    ("flaw", "lawn", 2),
    ("same", "same", 0),
])
def test_levenshtein_distance(s1, s2, expected):
    assert levenshtein_distance(s1, s2) == expected
    assert levenshtein_distance(s2, s1) == expected


def test_identical_strings_are_fully_similar():
    assert similarity("Weekly scrims", "Weekly scrims") == 1.0
    assert similarity("", "") == 1.0


def test_similarity_is_symmetric_and_bounded():
    a, b = "Ranked night on Fridays", "Ranked nights on Friday"
    assert similarity(a, b) == similarity(b, a)
    assert 0.0 <= similarity("abc", "xyz") <= 1.0
    assert similarity("abc", "xyz") == 0.0


def test_is_similar_ignores_case_and_needs_strictly_more_than_threshold():
    assert is_similar("WEEKLY SCRIMS", "weekly scrims", 0.8)
    # 1 edit over 5 chars: exactly 0.8, not above
    assert similarity("abcde", "abcdx") == pytest.approx(0.8)
    assert not is_similar("abcde", "abcdx", 0.8)
    assert is_similar("abcdefghij", "abcdefghix", 0.8)
