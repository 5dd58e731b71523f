"""Extraction rules: named regex patterns paired with value coercions.

Rules operate on the raw HTML text of a fiction page, not on a parsed DOM.
Each pattern has exactly one capture group; the captured text is handed to
the rule's coercion. The fiction rule set is built once at import time and
is never mutated.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable

Coercion = Callable[[str], Any]

SCORE_MAX = 5.0

_WHITESPACE = re.compile(r"\s+")
_DECIMAL = re.compile(r"\d+(?:\.\d+)?")
_TAG = re.compile(r"<[^>]+>")


@dataclass(frozen=True)
class ExtractionRule:
    """A field name, a single-group pattern and the coercion for its capture."""

    name: str
    pattern: re.Pattern[str]
    coerce: Coercion


# --- Coercions ---


def to_int(raw: str) -> int:
    """Strip thousands separators and parse as a non-negative integer."""
    cleaned = raw.replace(",", "").strip()
    if not cleaned.isascii() or not cleaned.isdigit():
        raise ValueError(f"Not an integer: {raw!r}")
    return int(cleaned)


def to_score(raw: str) -> float:
    """Parse a star score, clamped to the site's 0-5 range."""
    cleaned = raw.strip()
    if not _DECIMAL.fullmatch(cleaned):
        raise ValueError(f"Not a score: {raw!r}")
    return min(max(float(cleaned), 0.0), SCORE_MAX)


def to_text(raw: str) -> str:
    """Decode HTML entities and collapse whitespace. Empty text is rejected."""
    text = _WHITESPACE.sub(" ", html.unescape(raw)).strip()
    if not text:
        raise ValueError("Empty text")
    return text


def to_plain_text(raw: str) -> str:
    """Drop markup from an HTML fragment, then normalise as text."""
    return to_text(_TAG.sub(" ", raw))


# --- Rule construction ---


def build_rule_set(rules: Iterable[ExtractionRule]) -> tuple[ExtractionRule, ...]:
    """Validate and freeze a rule set.

    Raises ValueError for duplicate field names or patterns that do not
    have exactly one capture group.
    """
    frozen = tuple(rules)
    seen: set[str] = set()
    for rule in frozen:
        if rule.name in seen:
            raise ValueError(f"Duplicate extraction rule: {rule.name}")
        if rule.pattern.groups != 1:
            raise ValueError(
                f"Rule {rule.name} must have exactly one capture group, "
                f"found {rule.pattern.groups}"
            )
        seen.add(rule.name)
    return frozen


def _stat_rule(name: str, label: str) -> ExtractionRule:
    # <li class="bold uppercase">Followers :</li><li class="bold uppercase font-red-sunglo">1,234</li>
    return ExtractionRule(
        name=name,
        pattern=re.compile(
            re.escape(label)
            + r' :</li>\s*<li[^>]*class="[^"]*font-red-sunglo[^"]*"[^>]*>([\d,]+)</li>'
        ),
        coerce=to_int,
    )


def _score_rule(name: str, label: str) -> ExtractionRule:
    # Star widgets render as: data-content="4.77 / 5" aria-label="4.77 stars"
    return ExtractionRule(
        name=name,
        pattern=re.compile(re.escape(label) + r'[\s\S]*?data-content="([\d.]+) / 5"'),
        coerce=to_score,
    )


FICTION_RULES: tuple[ExtractionRule, ...] = build_rule_set(
    [
        ExtractionRule("pages", re.compile(r"Pages[^>]*>([\d,]+)</li>"), to_int),
        _stat_rule("total_views", "Total Views"),
        _stat_rule("average_views", "Average Views"),
        _stat_rule("followers", "Followers"),
        _stat_rule("favorites", "Favorites"),
        _stat_rule("ratings", "Ratings"),
        _score_rule("overall_score", "Overall Score"),
        _score_rule("style_score", "Style Score"),
        _score_rule("story_score", "Story Score"),
        _score_rule("grammar_score", "Grammar Score"),
        _score_rule("character_score", "Character Score"),
        ExtractionRule("title", re.compile(r"<h1[^>]*>([^<]+)</h1>"), to_text),
        ExtractionRule(
            "author_name",
            re.compile(r'<a[^>]*href="[^"]*/profile/\d+[^"]*"[^>]*>\s*([^<\s][^<]*)</a>'),
            to_text,
        ),
        ExtractionRule(
            "author_id", re.compile(r'<a[^>]*href="[^"]*/profile/(\d+)[^"]*"'), to_int
        ),
        ExtractionRule(
            "description",
            re.compile(
                r'<div[^>]*class="(?:[^"]*\s)?description(?:\s[^"]*)?"[^>]*>([\s\S]*?)</div>'
            ),
            to_plain_text,
        ),
        ExtractionRule(
            "status",
            re.compile(r">\s*(ONGOING|COMPLETED|HIATUS|DROPPED|STUB|INACTIVE)\s*<"),
            to_text,
        ),
        ExtractionRule(
            "fiction_type",
            re.compile(r">\s*(ORIGINAL|FANFICTION|TRANSLATION|ADAPTATION)\s*<", re.IGNORECASE),
            to_text,
        ),
        ExtractionRule(
            "cover_url",
            re.compile(r'<img[^>]*src="([^"]*covers-large[^"]*)"'),
            to_text,
        ),
    ]
)

FICTION_FIELDS: tuple[str, ...] = tuple(rule.name for rule in FICTION_RULES)
