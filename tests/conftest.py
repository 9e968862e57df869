"""
Pytest configuration and fixtures for the worldtime_core test suite.
"""

from datetime import datetime

import pytest
from dateutil import tz

from worldtime_core.alignment.aligner import SlotAligner
from worldtime_core.config import AppConfig
from worldtime_core.domain.models import TimeZoneDescriptor
from worldtime_core.io_layer.cities import CityCatalog
from worldtime_core.resolution.abbreviations import AbbreviationResolver
from worldtime_core.resolution.offsets import TimezoneOffsetResolver

# 2024-01-15 15:00Z = New York 10:00 (EST)
FIXED_NOW = datetime(2024, 1, 15, 15, 0, tzinfo=tz.UTC)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=tz.UTC)


def make_desc(zone_id: str, city: str, country: str = "") -> TimeZoneDescriptor:
    return TimeZoneDescriptor(
        zone_id=zone_id,
        city=city,
        country=country,
        snapshot_utc_offset_hours=0.0,
    )


@pytest.fixture
def cfg() -> AppConfig:
    """解決できないゾーンは UTC に差し替える（テストをマシンのTZに依存させない）"""
    return AppConfig(fallback_timezone_name="UTC")


@pytest.fixture
def resolver(cfg) -> TimezoneOffsetResolver:
    return TimezoneOffsetResolver(cfg)


@pytest.fixture
def aligner(resolver, cfg) -> SlotAligner:
    return SlotAligner(resolver, cfg)


@pytest.fixture
def abbr(resolver) -> AbbreviationResolver:
    return AbbreviationResolver(resolver)


@pytest.fixture
def catalog() -> CityCatalog:
    return CityCatalog.builtin()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def new_york():
    return make_desc("America/New_York", "New York", "United States")


@pytest.fixture
def london():
    return make_desc("Europe/London", "London", "United Kingdom")


@pytest.fixture
def tokyo():
    return make_desc("Asia/Tokyo", "Tokyo", "Japan")


@pytest.fixture
def mumbai():
    return make_desc("Asia/Kolkata", "Mumbai", "India")
