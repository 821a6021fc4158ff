import pytest

from blog_search.search.fuzzy import (
    extract_search_terms,
    iter_words,
    max_errors,
    substring_distance,
)


@pytest.mark.parametrize(
    "pattern,text,expected",
    [
        ("hook", "hooks", 0),
        ("react", "reactjs", 0),
        ("raect", "react", 2),
        ("reakt", "react", 1),
        ("hooks", "hook", 1),
        ("abc", "", 3),
        ("", "anything", 0),
    ],
)
def test_substring_distance(pattern, text, expected):
    assert substring_distance(pattern, text) == expected


def test_substring_distance_caps_at_max():
    assert substring_distance("react", "ownership", max_distance=2) == 3


@pytest.mark.parametrize(
    "length,threshold,expected",
    [(5, 0.4, 2), (2, 0.4, 0), (3, 0.4, 1), (10, 0.0, 0), (4, 1.0, 4)],
)
def test_max_errors(length, threshold, expected):
    assert max_errors(length, threshold) == expected


def test_extract_search_terms():
    assert extract_search_terms("  React   HOOKS, react a ") == ["react", "hooks"]
    assert extract_search_terms("next.js c++") == ["next.js", "c++"]
    assert extract_search_terms("") == []
    assert extract_search_terms("a b c") == []


def test_iter_words_positions_are_inclusive():
    text = "Intro to React Hooks"
    words = list(iter_words(text))

    assert words[2] == ("react", 9, 13)
    assert text[9 : 13 + 1] == "React"
