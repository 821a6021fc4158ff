import math

import pytest

from blog_search.search.extractor import (
    create_excerpt,
    count_words,
    extract_document,
    reading_time,
    strip_markup,
)


def test_strip_markup_removes_syntax_keeps_text():
    source = "\n".join(
        [
            "# Heading One",
            "## Sub heading",
            "Some **bold** and *italic* and __strong__ and _em_ text.",
            "- first item",
            "* second item",
            "1. numbered item",
            "> quoted line",
            "> > nested quote",
            "---",
            "Read the [guide](https://example.com/guide) and ![a diagram](img.png).",
            "Call `useState()` inline.",
            "```python",
            "print('hi')",
            "```",
            'Before <Callout type="info">inside</Callout> after.',
        ]
    )
    text = strip_markup(source)

    assert "`" not in text
    assert "#" not in text
    assert "**" not in text
    assert "](" not in text
    assert "---" not in text
    assert "<" not in text and ">" not in text
    assert "python" not in text  # fence language tag dropped
    assert "print('hi')" in text
    assert "Heading One Sub heading" in text
    assert "Some bold and italic and strong and em text." in text
    assert "first item second item numbered item quoted line nested quote" in text
    assert "Read the guide and a diagram." in text
    assert "Call useState() inline." in text
    assert "Before inside after." in text
    assert "  " not in text


def test_strip_markup_keeps_identifiers_with_underscores():
    assert strip_markup("use snake_case_names here") == "use snake_case_names here"


def test_strip_markup_headers_inside_quotes_and_lists():
    source = "> # Warning\n> ## Note\n- # listed heading\n1. ### Step one\n\nbody"

    assert strip_markup(source) == "Warning Note listed heading Step one body"


def test_strip_markup_empty():
    assert strip_markup("") == ""


def test_excerpt_short_text_returned_as_is():
    assert create_excerpt("Short post.") == "Short post."


def test_excerpt_breaks_at_sentence_boundary():
    sentence = "This sentence is exactly forty chars ok. "
    text = sentence * 6
    excerpt = create_excerpt(text)
    assert len(excerpt) <= 160
    assert excerpt.endswith(".")
    assert len(excerpt) >= 80


def test_excerpt_falls_back_to_hard_truncation():
    text = "word " * 100  # no sentence boundary at all
    excerpt = create_excerpt(text.strip())
    assert excerpt.endswith("...")
    assert len(excerpt) <= 160


def test_excerpt_falls_back_when_first_sentence_too_long():
    text = "Tiny. " + ("x" * 200) + "."
    excerpt = create_excerpt(text)
    assert excerpt.endswith("...")
    assert len(excerpt) <= 160


@pytest.mark.parametrize("words", [0, 1, 199, 200, 201, 1000])
def test_reading_time_formula(words):
    assert reading_time(words) == max(1, math.ceil(words / 200))


def test_count_words_ignores_extra_whitespace():
    assert count_words("  one   two\nthree\t ") == 3
    assert count_words("") == 0


def test_extract_document_front_matter_and_derived_fields():
    source = """---
title: Hello World
subtitle: A first post
tags: [python, testing, python]
createdAt: 2024-01-02T03:04:05Z
---

Hello **there**. This is the body.
"""
    doc = extract_document("hello-world", source)

    assert doc.slug == "hello-world"
    assert doc.title == "Hello World"
    assert doc.subtitle == "A first post"
    assert doc.tags == ("python", "testing")
    assert doc.created_at == "2024-01-02T03:04:05Z"
    assert doc.updated_at == doc.created_at
    assert doc.content == "Hello there. This is the body."
    assert doc.excerpt == doc.content
    assert doc.word_count == 6
    assert doc.reading_time == 1
    assert doc.url == "/blog/hello-world"


def test_extract_document_defaults():
    doc = extract_document("untitled", "Just a body.", url_prefix="/posts/")

    assert doc.title == "untitled"
    assert doc.subtitle is None
    assert doc.tags == ()
    assert doc.created_at.endswith("Z")
    assert doc.url == "/posts/untitled"


def test_extract_document_non_list_tags_become_empty():
    doc = extract_document("t", "---\ntitle: T\ntags: react\n---\nbody")
    assert doc.tags == ()


def test_extract_document_bad_date_raises():
    with pytest.raises(ValueError):
        extract_document("bad", "---\ntitle: Bad\ncreatedAt: not-a-date\n---\nbody")
