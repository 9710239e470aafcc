"""
Unit tests for explicit user edits of offices.
"""

import os
import sys
import unittest
from datetime import datetime, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from officeresolver.pipeline.merge_engine import MergeEngine
from officeresolver.pipeline.models import Office, OfficeMetadata
from officeresolver.pipeline.user_edits import (
    find_office,
    update_office_custom_data,
    update_office_name,
)

EARLIER = datetime(2026, 1, 1, tzinfo=timezone.utc)
NOW = datetime(2026, 2, 1, tzinfo=timezone.utc)


class TestUserEdits(unittest.TestCase):
    """Test cases for the protected-field edit operations."""

    def setUp(self):
        """Set up test fixtures."""
        self.office = Office(
            name="Nordic Architects",
            address="Brīvības 10, Rīga",
            unique_id="nordic-1",
            metadata=OfficeMetadata(scraped_at=EARLIER, last_updated=EARLIER, data_version=2),
        )

    def test_update_custom_data(self):
        edited = update_office_custom_data(self.office, {"notes": "key client"}, now=NOW)

        self.assertEqual(edited.custom_data, {"notes": "key client", "lastModified": NOW})
        self.assertTrue(edited.metadata.custom_data_exists)
        self.assertEqual(edited.metadata.last_updated, NOW)
        self.assertEqual(edited.metadata.data_version, 2)
        self.assertIsNone(self.office.custom_data)

    def test_custom_data_must_be_a_mapping(self):
        with self.assertRaises(ValueError):
            update_office_custom_data(self.office, ["not", "a", "mapping"])

    def test_update_name(self):
        edited = update_office_name(self.office, "  Nordic HQ ", now=NOW)

        self.assertEqual(edited.modified_name, "Nordic HQ")
        self.assertEqual(edited.extra["modifiedAt"], NOW.isoformat())
        self.assertIsNone(self.office.modified_name)

    def test_empty_name_is_rejected(self):
        with self.assertRaises(ValueError):
            update_office_name(self.office, "   ")

    def test_edits_survive_a_rescrape(self):
        edited = update_office_name(
            update_office_custom_data(self.office, {"notes": "key client"}, now=NOW),
            "Nordic HQ",
            now=NOW,
        )
        rescraped = Office(
            name="Nordic Architects",
            address="Brīvības 10, Rīga",
            modified_name="Scraper name",
        )
        merged, _ = MergeEngine().merge_office(edited, rescraped, NOW)

        self.assertEqual(merged.modified_name, "Nordic HQ")
        self.assertEqual(merged.custom_data["notes"], "key client")

    def test_serialized_custom_data(self):
        edited = update_office_custom_data(self.office, {"notes": "x"}, now=NOW)
        data = edited.to_dict()

        self.assertEqual(data["customData"]["lastModified"], NOW.isoformat())
        restored = Office.from_dict(data)
        self.assertEqual(restored.custom_data["lastModified"], NOW)

    def test_find_office(self):
        offices = [Office(name="A", unique_id="a"), self.office]
        self.assertIs(find_office(offices, "nordic-1"), self.office)
        self.assertIsNone(find_office(offices, "missing"))


if __name__ == "__main__":
    unittest.main()
