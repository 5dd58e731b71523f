"""Tests for extraction rules and value coercions."""

from __future__ import annotations

import re

import pytest

from scraper.extraction.rules import (
    FICTION_FIELDS,
    FICTION_RULES,
    ExtractionRule,
    build_rule_set,
    to_int,
    to_plain_text,
    to_score,
    to_text,
)


class TestToInt:
    def test_strips_thousands_separators(self):
        assert to_int("1,234") == 1234
        assert to_int("69,422,390") == 69422390

    def test_plain_digits(self):
        assert to_int("0") == 0
        assert to_int(" 42 ") == 42

    @pytest.mark.parametrize("raw", ["", ",", "12a", "-5", "1.5", "١٢٣"])
    def test_rejects_non_integers(self, raw):
        with pytest.raises(ValueError):
            to_int(raw)


class TestToScore:
    def test_parses_decimal(self):
        assert to_score("4.61") == pytest.approx(4.61)

    def test_parses_whole_number(self):
        assert to_score("5") == 5.0

    def test_clamps_above_maximum(self):
        assert to_score("7.5") == 5.0

    @pytest.mark.parametrize("raw", ["", "4..5", ".", "4.", "abc"])
    def test_rejects_malformed(self, raw):
        with pytest.raises(ValueError):
            to_score(raw)


class TestToText:
    def test_unescapes_entities(self):
        assert to_text("Mother of Learning &amp; Co") == "Mother of Learning & Co"

    def test_collapses_whitespace(self):
        assert to_text("  The   Wandering\n Inn ") == "The Wandering Inn"

    def test_rejects_blank(self):
        with pytest.raises(ValueError):
            to_text("   ")

    def test_plain_text_drops_markup(self):
        assert to_plain_text("<p>First</p><p>Second &amp; third</p>") == "First Second & third"

    def test_plain_text_rejects_markup_only(self):
        with pytest.raises(ValueError):
            to_plain_text("<div><br /></div>")


class TestBuildRuleSet:
    def test_rejects_duplicate_names(self):
        rule = ExtractionRule("pages", re.compile(r"(\d+)"), to_int)
        with pytest.raises(ValueError, match="Duplicate"):
            build_rule_set([rule, rule])

    def test_rejects_pattern_without_capture_group(self):
        rule = ExtractionRule("pages", re.compile(r"\d+"), to_int)
        with pytest.raises(ValueError, match="exactly one capture group"):
            build_rule_set([rule])

    def test_rejects_pattern_with_two_groups(self):
        rule = ExtractionRule("pages", re.compile(r"(\d+)-(\d+)"), to_int)
        with pytest.raises(ValueError, match="exactly one capture group"):
            build_rule_set([rule])

    def test_returns_immutable_tuple(self):
        rules = build_rule_set([ExtractionRule("pages", re.compile(r"(\d+)"), to_int)])
        assert isinstance(rules, tuple)


class TestFictionRules:
    def test_field_names_are_unique(self):
        assert len(set(FICTION_FIELDS)) == len(FICTION_FIELDS)

    def test_declares_statistics_and_metadata(self):
        for name in (
            "pages",
            "total_views",
            "average_views",
            "followers",
            "favorites",
            "ratings",
            "overall_score",
            "style_score",
            "story_score",
            "grammar_score",
            "character_score",
            "title",
            "author_name",
            "author_id",
            "description",
            "status",
            "fiction_type",
            "cover_url",
        ):
            assert name in FICTION_FIELDS

    def test_every_rule_has_one_group(self):
        assert all(rule.pattern.groups == 1 for rule in FICTION_RULES)

    def test_rules_are_frozen(self):
        with pytest.raises(Exception):
            FICTION_RULES[0].name = "other"
