"""
Content Extractor

Turns one raw post (YAML front matter + MDX body) into a SearchableDocument:
markup is stripped, and excerpt, word count and reading time are derived
from the stripped text.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any

import frontmatter

from blog_search.search.models import SearchableDocument, format_timestamp, parse_timestamp

EXCERPT_LENGTH = 160
WORDS_PER_MINUTE = 200

_COMPONENT_TAG = re.compile(r"<[^>]*>")
_FENCED_CODE = re.compile(r"```[\s\S]*?```")
_FENCE_OPEN = re.compile(r"^```[\w+-]*[^\S\n]*\n?")
_INLINE_CODE = re.compile(r"`([^`]+)`")
_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_BOLD_STARS = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_STAR = re.compile(r"\*([^*]+)\*")
_BOLD_UNDERSCORES = re.compile(r"(?<!\w)__([^_]+)__(?!\w)")
_ITALIC_UNDERSCORE = re.compile(r"(?<!\w)_([^_]+)_(?!\w)")
_HEADER = re.compile(r"^[^\S\n]*#+[^\S\n]+", re.MULTILINE)
_HORIZONTAL_RULE = re.compile(r"^[^\S\n]*(?:-{3,}|\*{3,}|_{3,})[^\S\n]*$", re.MULTILINE)
_BLOCKQUOTE = re.compile(r"^[^\S\n]*(?:>[^\S\n]*)+", re.MULTILINE)
_BULLET = re.compile(r"^\s*[-*+]\s+", re.MULTILINE)
_NUMBERED = re.compile(r"^\s*\d+\.\s+", re.MULTILINE)
_WHITESPACE = re.compile(r"\s+")
_SENTENCE = re.compile(r"[^.!?]+[.!?]*|[.!?]+")


def _unfence(match: re.Match) -> str:
    # Drop the opening fence and its language tag, then the closing fence
    block = _FENCE_OPEN.sub("", match.group(0), count=1)
    if block.endswith("```"):
        block = block[:-3]
    return "\n" + block + "\n"


def strip_markup(content: str) -> str:
    """
    Strip MDX syntax from a post body, keeping the readable text.

    Components are removed, code fences collapse to their contents, links and
    images keep their text, emphasis markers and line prefixes (headers,
    blockquotes, list bullets) are dropped, and whitespace is collapsed.
    """
    if not content:
        return ""

    text = _COMPONENT_TAG.sub(" ", content)
    text = _FENCED_CODE.sub(_unfence, text)
    text = _INLINE_CODE.sub(r"\1", text)
    text = _IMAGE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _BOLD_STARS.sub(r"\1", text)
    text = _ITALIC_STAR.sub(r"\1", text)
    text = _BOLD_UNDERSCORES.sub(r"\1", text)
    text = _ITALIC_UNDERSCORE.sub(r"\1", text)
    text = _HORIZONTAL_RULE.sub("", text)
    text = _BLOCKQUOTE.sub("", text)
    text = _BULLET.sub("", text)
    text = _NUMBERED.sub("", text)
    # Headers may sit behind quote or list markers
    text = _HEADER.sub("", text)
    # Unbalanced fences or stray backticks left inside code
    text = text.replace("`", "")
    return _WHITESPACE.sub(" ", text).strip()


def create_excerpt(text: str, max_length: int = EXCERPT_LENGTH) -> str:
    """
    Build an excerpt from already-stripped text.

    Whole sentences are accumulated while they fit; if that covers less than
    half of the limit the text is hard-truncated with an ellipsis instead.
    """
    if len(text) <= max_length:
        return text

    excerpt = ""
    for sentence in _SENTENCE.findall(text):
        if len(excerpt) + len(sentence) > max_length:
            break
        excerpt += sentence

    excerpt = excerpt.strip()
    if len(excerpt) < max_length / 2:
        excerpt = text[: max_length - 3].rstrip() + "..."
    return excerpt


def count_words(text: str) -> int:
    return len(text.split())


def reading_time(word_count: int) -> int:
    """Minutes to read at 200 words per minute, never less than one."""
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


def _normalize_tags(raw: Any) -> tuple[str, ...]:
    if not isinstance(raw, list):
        return ()
    seen: dict[str, None] = {}
    for tag in raw:
        if tag is None:
            continue
        value = str(tag).strip()
        if value:
            seen.setdefault(value, None)
    return tuple(seen)


def _normalize_timestamp(raw: Any, fallback: datetime) -> str:
    if raw is None or raw == "":
        return format_timestamp(fallback)
    return format_timestamp(parse_timestamp(raw))


def extract_document(
    slug: str, source: str, url_prefix: str = "/blog"
) -> SearchableDocument:
    """
    Parse front matter and body into a SearchableDocument.

    Raises:
        ValueError, yaml.YAMLError: if the front matter cannot be parsed
    """
    post = frontmatter.loads(source)
    meta = post.metadata

    title = str(meta.get("title") or slug)
    subtitle = str(meta["subtitle"]) if meta.get("subtitle") else None
    created_at = _normalize_timestamp(meta.get("createdAt"), datetime.now(timezone.utc))
    updated_at = _normalize_timestamp(meta.get("updatedAt"), parse_timestamp(created_at))

    body = strip_markup(post.content)
    words = count_words(body)

    return SearchableDocument(
        slug=slug,
        title=title,
        subtitle=subtitle,
        excerpt=create_excerpt(body),
        content=body,
        tags=_normalize_tags(meta.get("tags")),
        created_at=created_at,
        updated_at=updated_at,
        word_count=words,
        reading_time=reading_time(words),
        url=f"{url_prefix.rstrip('/')}/{slug}",
    )
