"""
Tests for the city catalog, flag glyphs, date strip helpers and clock labels.
"""

from datetime import date

import pytest

from conftest import utc
from worldtime_core.domain.dates import format_date_for_display, generate_date_range, group_by_month, MonthSpan
from worldtime_core.domain.models import DEFAULT_FLAG, country_code_to_flag
from worldtime_core.domain.timegrid import TimeGrid, format_clock_label
from worldtime_core.config import SlotConfig
from worldtime_core.io_layer.cities import descriptor_for, descriptor_from_city


class TestCatalog:
    def test_prefix_match_first(self, catalog):
        hits = catalog.search("tok")
        assert hits[0].city == "Tokyo"

    def test_country_match_sorted_by_population(self, catalog):
        hits = catalog.search("india")
        assert [h.city for h in hits] == ["New Delhi", "Mumbai"]

    def test_empty_query(self, catalog):
        assert catalog.search("  ") == []

    def test_find_by_zone_prefers_largest_city(self, catalog):
        assert catalog.find_by_zone("Asia/Shanghai").city == "Shanghai"
        assert catalog.find_by_zone("Nowhere/Atlantis") is None

    def test_descriptor_from_city(self, catalog, resolver):
        rec = catalog.find("Asia/Kolkata", "Mumbai")
        desc = descriptor_from_city(rec, resolver, now=utc(2024, 1, 15))
        assert desc.snapshot_utc_offset_hours == 5.5
        assert desc.flag == "\U0001F1EE\U0001F1F3"
        assert desc.natural_id == "Asia/Kolkata:Mumbai"

    def test_descriptor_for_unknown_city(self, catalog, resolver):
        desc = descriptor_for("America/New_York", "Hoboken", catalog, resolver, now=utc(2024, 7, 1))
        assert desc.country == ""
        assert desc.flag == DEFAULT_FLAG
        assert desc.snapshot_utc_offset_hours == -4.0


class TestFlags:
    @pytest.mark.parametrize("code", ["", "U", "USA", "1A", None])
    def test_invalid_codes(self, code):
        assert country_code_to_flag(code) == DEFAULT_FLAG

    def test_lowercase_code(self):
        assert country_code_to_flag("jp") == "\U0001F1EF\U0001F1F5"


class TestDateStrip:
    def test_generate_date_range_in_home_zone(self, resolver):
        ny = resolver.zone("America/New_York")
        # 2024-02-01 03:00Z is still Jan 31 in New York
        dates = generate_date_range(utc(2024, 2, 1, 3), 3, ny)
        assert dates == [date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 2)]

    def test_group_by_month(self):
        dates = generate_date_range(date(2024, 1, 28), 7)
        assert group_by_month(dates) == [MonthSpan("Jan", 0, 3), MonthSpan("Feb", 4, 6)]
        assert group_by_month([]) == []

    def test_format_date_for_display(self):
        assert format_date_for_display(date(2024, 1, 15)) == {"day": 15, "weekday": "Mon"}


class TestTimeGrid:
    @pytest.mark.parametrize("hour, minute, expected", [
        (0, 0, "12:00 AM"),
        (9, 5, "9:05 AM"),
        (12, 30, "12:30 PM"),
        (23, 45, "11:45 PM"),
    ])
    def test_format_clock_label(self, hour, minute, expected):
        assert format_clock_label(hour, minute) == expected

    def test_for_offset(self):
        cfg = SlotConfig()
        assert TimeGrid.for_offset(330, cfg) == TimeGrid(30, 52)
        assert TimeGrid.for_offset(-210, cfg) == TimeGrid(30, 52)
        assert TimeGrid.for_offset(345, cfg) == TimeGrid(60, 26)
        assert TimeGrid.for_offset(-300, cfg) == TimeGrid(60, 26)

    def test_index_of(self):
        grid = TimeGrid(60, 26)
        base = utc(2024, 1, 15, 5)
        assert grid.index_of(base, utc(2024, 1, 15, 8)) == 3
        assert grid.index_of(base, utc(2024, 1, 15, 8, 0, 30), tolerance_sec=60) == 3
        assert grid.index_of(base, utc(2024, 1, 15, 8, 30), tolerance_sec=60) == -1
        assert grid.index_of(base, utc(2024, 1, 20)) == -1
