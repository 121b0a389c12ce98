"""Tests for scripture reference formatting."""

from parish.core.reference import format_reference, split_reference
from parish.core.session import Reading


class TestFormatReference:
    def test_joins_pipe_separated(self):
        assert format_reference("Malachi 3:1-4|Hebrews 2:14-18") == "Malachi 3:1-4 & Hebrews 2:14-18"

    def test_tolerates_spaces(self):
        assert format_reference("Isaiah 9:1-6 | Titus 2:11-14") == "Isaiah 9:1-6 & Titus 2:11-14"

    def test_single_and_empty(self):
        assert format_reference("Luke 2:22-40") == "Luke 2:22-40"
        assert format_reference("") == ""

    def test_reading_display_reference(self):
        reading = Reading(reference="Acts 2:1-11|1 Cor 12:3b-7", text="")
        assert reading.display_reference == "Acts 2:1-11 & 1 Cor 12:3b-7"


class TestSplitReference:
    def test_splits_parts(self):
        assert split_reference("Malachi 3:1-4 | Hebrews 2:14-18") == ["Malachi 3:1-4", "Hebrews 2:14-18"]

    def test_empty(self):
        assert split_reference("") == []
