"""Field extractor. Applies the static rule set to raw fiction page HTML.

Pure and synchronous: no I/O, no shared mutable state. A rule that does not
match, or whose capture fails coercion, yields an absent field rather than
an error.
"""

from __future__ import annotations

import logging
from typing import Sequence

from scraper.extraction.record import ExtractedRecord, FieldStatus, FieldValue
from scraper.extraction.rules import FICTION_RULES, ExtractionRule

logger = logging.getLogger(__name__)


def apply_rule(rule: ExtractionRule, html: str) -> FieldValue:
    """Apply a single rule. Only the first match is considered."""
    source_pattern = rule.pattern.pattern
    match = rule.pattern.search(html)
    if match is None or match.group(1) is None:
        return FieldValue(status=FieldStatus.NOT_FOUND, source_pattern=source_pattern)

    raw = match.group(1)
    try:
        value = rule.coerce(raw)
    except Exception as exc:
        logger.debug(
            "Coercion failed",
            extra={"field": rule.name, "raw": raw[:100], "error": str(exc)},
        )
        return FieldValue(
            status=FieldStatus.UNPARSEABLE, raw=raw, source_pattern=source_pattern
        )

    return FieldValue(
        status=FieldStatus.FOUND, value=value, raw=raw, source_pattern=source_pattern
    )


def extract(html: str, rules: Sequence[ExtractionRule] = FICTION_RULES) -> ExtractedRecord:
    """Extract one record from a fiction page.

    Args:
        html: Raw HTML text of the page.
        rules: Validated rule set; defaults to the fiction statistics rules.

    Returns:
        ExtractedRecord with one entry per rule.
    """
    fields = {rule.name: apply_rule(rule, html) for rule in rules}

    total_fields = len(fields)
    found_count = sum(1 for field in fields.values() if field.present)
    completeness = found_count / total_fields if total_fields > 0 else 0.0

    return ExtractedRecord(
        fields=fields,
        source_hash=ExtractedRecord.compute_hash(html),
        completeness_score=completeness,
        is_partial=completeness < 1.0,
    )
