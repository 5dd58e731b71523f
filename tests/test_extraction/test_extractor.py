"""Tests for the field extractor."""

from __future__ import annotations

import logging
import re

import pytest

from scraper.extraction.extractor import apply_rule, extract
from scraper.extraction.record import FieldStatus
from scraper.extraction.rules import FICTION_FIELDS, ExtractionRule, to_int


class TestApplyRule:
    def test_match_is_coerced(self):
        rule = ExtractionRule("pages", re.compile(r"Pages[^>]*>([\d,]+)</li>"), to_int)
        field = apply_rule(rule, "Pages: <li>1,234</li>")
        assert field.status == FieldStatus.FOUND
        assert field.value == 1234
        assert field.raw == "1,234"
        assert field.source_pattern == rule.pattern.pattern

    def test_no_match_is_not_found(self):
        rule = ExtractionRule("pages", re.compile(r"Pages[^>]*>([\d,]+)</li>"), to_int)
        field = apply_rule(rule, "<html><body>nothing here</body></html>")
        assert field.status == FieldStatus.NOT_FOUND
        assert field.value is None
        assert not field.present

    def test_coercion_failure_is_unparseable(self):
        rule = ExtractionRule("pages", re.compile(r"Pages: <li>([^<]*)</li>"), to_int)
        field = apply_rule(rule, "Pages: <li>lots</li>")
        assert field.status == FieldStatus.UNPARSEABLE
        assert field.value is None
        assert field.raw == "lots"
        assert not field.present

    def test_unmatched_optional_group_is_not_found(self):
        rule = ExtractionRule("pages", re.compile(r"Pages(?:: (\d+))?"), to_int)
        assert apply_rule(rule, "Pages").status == FieldStatus.NOT_FOUND

    def test_first_match_wins(self):
        rule = ExtractionRule("pages", re.compile(r"<li>(\d+)</li>"), to_int)
        assert apply_rule(rule, "<li>1</li><li>2</li>").value == 1

    def test_lookup_coercion_failure_is_unparseable(self):
        rule = ExtractionRule("kind", re.compile(r"<b>(\w+)</b>"), {"a": 1}.__getitem__)
        record = extract("<b>zzz</b>", [rule])
        assert record.fields["kind"].status == FieldStatus.UNPARSEABLE
        assert record.fields["kind"].raw == "zzz"
        assert extract("<b>a</b>", [rule]).get("kind") == 1

    def test_coercion_failure_is_logged_at_debug(self, caplog):
        rule = ExtractionRule("pages", re.compile(r"<li>([^<]*)</li>"), to_int)
        with caplog.at_level(logging.DEBUG, logger="scraper.extraction.extractor"):
            apply_rule(rule, "<li>n/a</li>")
        assert any(record.getMessage() == "Coercion failed" for record in caplog.records)


class TestExtract:
    def test_full_page(self, fiction_page):
        record = extract(fiction_page)

        assert record.get("pages") == 14214
        assert record.get("total_views") == 69422390
        assert record.get("average_views") == 45310
        assert record.get("followers") == 24861
        assert record.get("favorites") == 11452
        assert record.get("ratings") == 6003
        assert record.get("overall_score") == pytest.approx(4.61)
        assert record.get("style_score") == pytest.approx(4.52)
        assert record.get("story_score") == pytest.approx(4.55)
        assert record.get("grammar_score") == pytest.approx(4.31)
        assert record.get("character_score") == pytest.approx(4.68)
        assert record.get("title") == "The Wandering Inn"
        assert record.get("author_name") == "pirateaba"
        assert record.get("author_id") == 20535
        assert record.get("description") == (
            "An inn is a place to rest. Erin Solstice finds herself in a world of monsters & magic."
        )
        assert record.get("status") == "ONGOING"
        assert record.get("fiction_type") == "Original"
        assert record.get("cover_url").startswith("https://www.royalroadcdn.com/public/covers-large/")

        assert record.completeness_score == 1.0
        assert not record.is_partial
        assert record.missing_fields() == []

    def test_every_rule_is_reported(self):
        record = extract("")
        assert set(record.fields) == set(FICTION_FIELDS)

    def test_empty_document_has_no_present_fields(self):
        record = extract("")
        assert all(not field.present for field in record.fields.values())
        assert record.completeness_score == 0.0
        assert record.is_partial

    def test_pages_scenario(self):
        record = extract("Pages: <li>1,234</li>")
        assert record.get("pages") == 1234
        assert record.get("followers") is None

    def test_pages_absent(self):
        record = extract("<html><body><p>No statistics</p></body></html>")
        assert record.fields["pages"].status == FieldStatus.NOT_FOUND
        assert record.get("pages") is None

    def test_non_numeric_capture_is_absent(self):
        rules = [ExtractionRule("pages", re.compile(r"Pages: <li>([^<]*)</li>"), to_int)]
        record = extract("Pages: <li>many</li>", rules)
        assert record.fields["pages"].status == FieldStatus.UNPARSEABLE
        assert record.get("pages") is None
        assert record.missing_fields() == ["pages"]

    def test_absent_field_does_not_affect_others(self, fiction_page):
        page = fiction_page.replace("Followers :", "Watchers :")
        record = extract(page)
        assert record.get("followers") is None
        assert record.get("favorites") == 11452
        assert record.missing_fields() == ["followers"]
        assert record.is_partial
        assert record.completeness_score == pytest.approx(
            (len(FICTION_FIELDS) - 1) / len(FICTION_FIELDS)
        )

    def test_absolute_profile_link(self):
        record = extract('by <a href="https://www.royalroad.com/profile/20535">pirateaba</a>')
        assert record.get("author_name") == "pirateaba"
        assert record.get("author_id") == 20535

    def test_description_without_markup_is_absent(self):
        record = extract('<div class="description"><div class="hidden-content"></div></div>')
        assert record.fields["description"].status == FieldStatus.UNPARSEABLE

    def test_description_class_must_match_exactly(self):
        record = extract('<div class="fiction-description-note">Not this</div>')
        assert record.get("description") is None

    def test_score_above_range_is_clamped(self):
        record = extract('Overall Score <span data-content="9.20 / 5"></span>')
        assert record.get("overall_score") == 5.0

    def test_extraction_is_idempotent(self, fiction_page):
        assert extract(fiction_page) == extract(fiction_page)

    def test_source_hash_tracks_document(self, fiction_page):
        assert extract(fiction_page).source_hash == extract(fiction_page).source_hash
        assert extract(fiction_page).source_hash != extract(fiction_page + " ").source_hash

    def test_empty_rule_set(self):
        record = extract("<html></html>", [])
        assert record.fields == {}
        assert record.completeness_score == 0.0
