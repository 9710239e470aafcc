"""
Unit tests for the per-field merge rules.
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from officeresolver.pipeline.field_policies import (
    OFFICE_FIELD_RULES,
    ResolutionStrategy,
    is_present,
    merge_extra,
    resolve_fields,
    resolve_value,
    section_rules,
)
from officeresolver.pipeline.models import FundingInfo, Office, TeamInfo


class TestResolveValue(unittest.TestCase):
    """Test cases for single-field resolution."""

    def test_keep_existing_ignores_incoming(self):
        value = resolve_value("Mine", "Theirs", ResolutionStrategy.KEEP_EXISTING)
        self.assertEqual(value, "Mine")

        value = resolve_value(None, "Theirs", ResolutionStrategy.KEEP_EXISTING)
        self.assertIsNone(value)

    def test_prefer_existing_fills_gaps(self):
        self.assertEqual(resolve_value("P1", "P2", ResolutionStrategy.PREFER_EXISTING), "P1")
        self.assertEqual(resolve_value(None, "P2", ResolutionStrategy.PREFER_EXISTING), "P2")

    def test_prefer_incoming_only_when_present(self):
        strategy = ResolutionStrategy.PREFER_INCOMING
        self.assertEqual(resolve_value("old", "new", strategy), "new")
        self.assertEqual(resolve_value("old", "  ", strategy), "old")
        self.assertEqual(resolve_value("old", None, strategy), "old")

    def test_prefer_incoming_takes_zero(self):
        strategy = ResolutionStrategy.PREFER_INCOMING
        self.assertEqual(resolve_value(4.6, 0, strategy), 0)
        self.assertEqual(resolve_value(12, 0.0, strategy), 0.0)

    def test_prefer_incoming_count_ignores_unreported(self):
        strategy = ResolutionStrategy.PREFER_INCOMING_COUNT
        self.assertEqual(resolve_value(12, 0, strategy), 12)
        self.assertEqual(resolve_value(12, None, strategy), 12)
        self.assertEqual(resolve_value(12, 15, strategy), 15)

    def test_union_keeps_first_seen_casing(self):
        value = resolve_value(
            ["Alice Ozola", "Partner"],
            ["alice ozola", "Architect", "PARTNER"],
            ResolutionStrategy.UNION_CASE_INSENSITIVE,
        )
        self.assertEqual(value, ["Alice Ozola", "Partner", "Architect"])

    def test_union_with_empty_incoming(self):
        value = resolve_value(["A"], [], ResolutionStrategy.UNION_CASE_INSENSITIVE)
        self.assertEqual(value, ["A"])

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            resolve_value("a", "b", "not-a-strategy")


class TestIsPresent(unittest.TestCase):
    def test_presence(self):
        self.assertFalse(is_present(None))
        self.assertFalse(is_present(""))
        self.assertFalse(is_present([]))
        self.assertTrue(is_present(0))
        self.assertTrue(is_present(-1.5))
        self.assertTrue(is_present("x"))
        self.assertTrue(is_present(4.5))
        self.assertTrue(is_present(False))
        self.assertTrue(is_present({"a": 1}))


class TestResolveFields(unittest.TestCase):
    def setUp(self):
        self.existing = Office(
            name="Nordic Architects",
            address="Brīvības 10, Rīga",
            place_id="P1",
            phone="+371-1111111",
            modified_name="Nordic HQ",
            custom_data={"notes": "key client"},
        )
        self.incoming = Office(
            name="Nordic Architects",
            address="Brīvības 10, Rīga",
            place_id="P9",
            phone="+371-2000000",
            modified_name="Scraper name",
            custom_data={"notes": "overwritten"},
        )

    def test_office_rules(self):
        resolved, changes = resolve_fields(self.existing, self.incoming, OFFICE_FIELD_RULES)

        self.assertEqual(resolved["phone"], "+371-2000000")
        self.assertEqual(resolved["place_id"], "P1")
        self.assertEqual(resolved["modified_name"], "Nordic HQ")
        self.assertEqual(resolved["custom_data"], {"notes": "key client"})
        self.assertEqual([change.field for change in changes], ["phone"])

    def test_rescrape_reporting_zero_replaces_stale_counts(self):
        existing = Office(name="Nordic Architects", address="Brīvības 10, Rīga", rating=4.6, reviews=31)
        incoming = Office(name="Nordic Architects", address="Brīvības 10, Rīga", rating=0, reviews=0)

        resolved, changes = resolve_fields(existing, incoming, OFFICE_FIELD_RULES)

        self.assertEqual(resolved["rating"], 0)
        self.assertEqual(resolved["reviews"], 0)
        self.assertEqual(sorted(change.field for change in changes), ["rating", "reviews"])

    def test_change_records_previous_value(self):
        _, changes = resolve_fields(self.existing, self.incoming, OFFICE_FIELD_RULES)
        self.assertEqual(changes[0].previous, "+371-1111111")
        self.assertEqual(changes[0].resolved, "+371-2000000")
        self.assertEqual(changes[0].strategy, ResolutionStrategy.PREFER_INCOMING)


class TestMergeExtra(unittest.TestCase):
    def test_incoming_keys_win_when_present(self):
        merged, changes = merge_extra(
            {"instagram": "@old", "founded": "1999"},
            {"instagram": "@new", "founded": "", "awards": ["LAMA"]},
        )
        self.assertEqual(
            merged, {"instagram": "@new", "founded": "1999", "awards": ["LAMA"]}
        )
        self.assertEqual(sorted(c.field for c in changes), ["awards", "instagram"])

    def test_handles_missing_mappings(self):
        merged, changes = merge_extra(None, None)
        self.assertEqual(merged, {})
        self.assertEqual(changes, [])


class TestSectionRules(unittest.TestCase):
    def test_lists_are_unioned_scalars_overwritten(self):
        rules = section_rules(TeamInfo())
        self.assertEqual(rules["roles"], ResolutionStrategy.UNION_CASE_INSENSITIVE)
        self.assertEqual(rules["specific_architects"], ResolutionStrategy.UNION_CASE_INSENSITIVE)
        self.assertEqual(rules["team_size"], ResolutionStrategy.PREFER_INCOMING)
        self.assertEqual(rules["number_of_people"], ResolutionStrategy.PREFER_INCOMING_COUNT)

    def test_funding_rules(self):
        rules = section_rules(FundingInfo())
        self.assertEqual(rules["funding_sources"], ResolutionStrategy.UNION_CASE_INSENSITIVE)
        self.assertEqual(rules["budget"], ResolutionStrategy.PREFER_INCOMING)


if __name__ == "__main__":
    unittest.main()
