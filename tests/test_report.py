"""Tests for quakewatch.report — Markdown report generation."""

from datetime import datetime, timezone

from conftest import HOUR_MS, T0, quake
from quakewatch.models import SwarmParams
from quakewatch.report import generate_report, md_table
from quakewatch.stats import magnitude_histogram
from quakewatch.summary import historical_summary

GENERATED = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestMdTable:
    """Markdown table generation."""

    def test_simple(self):
        result = md_table(["Name", "Value"], [["Alice", "10"], ["Bob", "20"]])
        lines = result.split("\n")
        assert lines[0] == "| Name | Value |"
        assert lines[1] == "| --- | --- |"
        assert lines[2] == "| Alice | 10 |"

    def test_alignment(self):
        result = md_table(["A", "B", "C"], [[1, 2, 3]], ["l", "r", "c"])
        assert result.split("\n")[1] == "| --- | ---: | :---: |"

    def test_short_rows_padded(self):
        result = md_table(["A", "B"], [["x"]])
        assert result.split("\n")[2] == "| x |  |"

    def test_empty_rows(self):
        assert md_table(["A"], []) == ""


class TestGenerateReport:
    """generate_report()"""

    def _records(self):
        return [
            quake("a", T0, 2.0),
            quake("b", T0 + HOUR_MS, 2.5),
            quake("c", T0 + 2 * HOUR_MS, 3.4, place="5km N of Dublin, CA"),
        ]

    def test_sections_present(self):
        records = self._records()
        text = generate_report(historical_summary(records), magnitude_histogram(records),
                               generated_at=GENERATED)
        for heading in ["# Bay Area Earthquake Activity", "## Overview", "## Regions",
                        "## Magnitude Distribution", "## Recent Swarms", "## Methodology"]:
            assert heading in text
        assert "*Generated: 2024-03-10 12:00 UTC*" in text

    def test_overview_content(self):
        text = generate_report(historical_summary(self._records()), generated_at=GENERATED)
        assert "**3** earthquakes" in text
        assert "M2.0 to M3.4" in text
        assert "Largest event: **M3.4** (Light) 5km N of Dublin, CA" in text
        assert "Swarms detected: **1**." in text

    def test_swarm_table(self):
        text = generate_report(historical_summary(self._records()), generated_at=GENERATED)
        assert "San Ramon / Dublin / Pleasanton" in text
        assert "| moderate |" in text

    def test_histogram_optional(self):
        text = generate_report(historical_summary(self._records()), generated_at=GENERATED)
        assert "## Magnitude Distribution" not in text

    def test_empty_summary(self):
        text = generate_report(historical_summary([]), generated_at=GENERATED)
        assert "No earthquakes in the selected data." in text
        assert "No swarms detected." in text
        assert "No regional data." in text

    def test_methodology_uses_params(self):
        params = SwarmParams(time_window_hours=48, distance_threshold_km=5, min_cluster_size=4)
        text = generate_report(historical_summary([]), params=params, generated_at=GENERATED)
        assert "within 48 hours" in text
        assert "3 mi (5 km)" in text
        assert "at least 4 events" in text

    def test_ends_with_single_newline(self):
        text = generate_report(historical_summary([]), generated_at=GENERATED)
        assert text.endswith("\n")
        assert not text.endswith("\n\n")
