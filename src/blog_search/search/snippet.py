"""
Snippet Highlighting for Search Results

Builds HTML-safe KWIC (Key Word In Context) snippets with <mark> highlighting.
"""

import html
import re

ELLIPSIS = "..."


def _term_pattern(terms: list[str]) -> re.Pattern | None:
    escaped = [re.escape(t) for t in sorted(set(terms), key=len, reverse=True) if t.strip()]
    if not escaped:
        return None
    return re.compile("(" + "|".join(escaped) + ")", re.IGNORECASE)


def highlight_terms(text: str, terms: list[str]) -> str:
    """
    Escape `text` for HTML and wrap every case-insensitive occurrence of a
    term in <mark> tags.
    """
    if not text:
        return ""
    pattern = _term_pattern(terms)
    if pattern is None:
        return html.escape(text)

    parts = []
    last = 0
    for match in pattern.finditer(text):
        parts.append(html.escape(text[last : match.start()]))
        parts.append(f"<mark>{html.escape(match.group(0))}</mark>")
        last = match.end()
    parts.append(html.escape(text[last:]))
    return "".join(parts)


def generate_snippet(text: str, terms: list[str], window_size: int = 160) -> str:
    """
    Cut a window of roughly `window_size` chars around the first term
    occurrence and highlight every term inside it.

    Falls back to the start of the text when no term occurs literally
    (fuzzy-only matches).
    """
    if not text:
        return ""

    pattern = _term_pattern(terms)
    match = pattern.search(text) if pattern else None
    if match is None:
        window = text[:window_size]
        if len(text) > window_size:
            window = window.rstrip() + ELLIPSIS
        return highlight_terms(window, terms)

    half_window = window_size // 2
    start = max(0, match.start() - half_window)
    end = min(len(text), match.start() + half_window)

    # Avoid cutting words
    if start > 0:
        space_pos = text.rfind(" ", 0, start + 20)
        if space_pos != -1 and space_pos > start - 20:
            start = space_pos + 1
    if end < len(text):
        space_pos = text.find(" ", end - 20)
        if space_pos != -1 and space_pos < end + 20:
            end = space_pos

    snippet = highlight_terms(text[start:end].strip(), terms)
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(text):
        snippet = snippet + ELLIPSIS
    return snippet
