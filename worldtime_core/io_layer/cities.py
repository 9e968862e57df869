# worldtime_core/io_layer/cities.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from dateutil import tz

from worldtime_core.domain.models import CityRecord, TimeZoneDescriptor, country_code_to_flag, DEFAULT_FLAG
from worldtime_core.resolution.offsets import TimezoneOffsetResolver

# (zone_id, city, country, iso2, 人口の概数)
_BUILTIN: Tuple[Tuple[str, str, str, str, int], ...] = (
    ("America/New_York", "New York", "United States", "US", 18_800_000),
    ("America/Los_Angeles", "Los Angeles", "United States", "US", 12_500_000),
    ("America/Chicago", "Chicago", "United States", "US", 8_900_000),
    ("America/Denver", "Denver", "United States", "US", 2_900_000),
    ("America/Phoenix", "Phoenix", "United States", "US", 4_600_000),
    ("America/Anchorage", "Anchorage", "United States", "US", 290_000),
    ("America/Honolulu", "Honolulu", "United States", "US", 1_000_000),
    ("America/Toronto", "Toronto", "Canada", "CA", 6_200_000),
    ("America/Vancouver", "Vancouver", "Canada", "CA", 2_600_000),
    ("America/St_Johns", "St. John's", "Canada", "CA", 210_000),
    ("America/Sao_Paulo", "Sao Paulo", "Brazil", "BR", 22_000_000),
    ("Europe/London", "London", "United Kingdom", "GB", 9_500_000),
    ("Europe/Paris", "Paris", "France", "FR", 11_000_000),
    ("Europe/Berlin", "Berlin", "Germany", "DE", 3_700_000),
    ("Europe/Rome", "Rome", "Italy", "IT", 4_300_000),
    ("Europe/Madrid", "Madrid", "Spain", "ES", 6_700_000),
    ("Europe/Amsterdam", "Amsterdam", "Netherlands", "NL", 1_200_000),
    ("Europe/Brussels", "Brussels", "Belgium", "BE", 2_100_000),
    ("Europe/Vienna", "Vienna", "Austria", "AT", 1_900_000),
    ("Europe/Zurich", "Zurich", "Switzerland", "CH", 1_400_000),
    ("Europe/Stockholm", "Stockholm", "Sweden", "SE", 1_600_000),
    ("Europe/Oslo", "Oslo", "Norway", "NO", 1_000_000),
    ("Europe/Copenhagen", "Copenhagen", "Denmark", "DK", 1_300_000),
    ("Europe/Helsinki", "Helsinki", "Finland", "FI", 1_300_000),
    ("Europe/Warsaw", "Warsaw", "Poland", "PL", 1_800_000),
    ("Europe/Prague", "Prague", "Czechia", "CZ", 1_300_000),
    ("Europe/Budapest", "Budapest", "Hungary", "HU", 1_700_000),
    ("Europe/Athens", "Athens", "Greece", "GR", 3_100_000),
    ("Europe/Istanbul", "Istanbul", "Turkey", "TR", 15_600_000),
    ("Europe/Moscow", "Moscow", "Russia", "RU", 12_600_000),
    ("Asia/Tokyo", "Tokyo", "Japan", "JP", 37_000_000),
    ("Asia/Shanghai", "Shanghai", "China", "CN", 29_000_000),
    ("Asia/Shanghai", "Beijing", "China", "CN", 21_000_000),
    ("Asia/Seoul", "Seoul", "South Korea", "KR", 9_900_000),
    ("Asia/Hong_Kong", "Hong Kong", "Hong Kong", "HK", 7_500_000),
    ("Asia/Singapore", "Singapore", "Singapore", "SG", 5_900_000),
    ("Asia/Bangkok", "Bangkok", "Thailand", "TH", 10_900_000),
    ("Asia/Manila", "Manila", "Philippines", "PH", 14_400_000),
    ("Asia/Jakarta", "Jakarta", "Indonesia", "ID", 11_000_000),
    ("Asia/Kolkata", "Mumbai", "India", "IN", 21_000_000),
    ("Asia/Kolkata", "New Delhi", "India", "IN", 32_000_000),
    ("Asia/Kathmandu", "Kathmandu", "Nepal", "NP", 1_500_000),
    ("Asia/Dhaka", "Dhaka", "Bangladesh", "BD", 23_000_000),
    ("Asia/Karachi", "Karachi", "Pakistan", "PK", 17_000_000),
    ("Asia/Dubai", "Dubai", "United Arab Emirates", "AE", 3_500_000),
    ("Asia/Jerusalem", "Tel Aviv", "Israel", "IL", 4_200_000),
    ("Asia/Riyadh", "Riyadh", "Saudi Arabia", "SA", 7_700_000),
    ("Asia/Baghdad", "Baghdad", "Iraq", "IQ", 7_500_000),
    ("Asia/Tehran", "Tehran", "Iran", "IR", 9_400_000),
    ("Australia/Sydney", "Sydney", "Australia", "AU", 5_300_000),
    ("Australia/Melbourne", "Melbourne", "Australia", "AU", 5_200_000),
    ("Australia/Brisbane", "Brisbane", "Australia", "AU", 2_600_000),
    ("Australia/Perth", "Perth", "Australia", "AU", 2_200_000),
    ("Australia/Adelaide", "Adelaide", "Australia", "AU", 1_400_000),
    ("Pacific/Auckland", "Auckland", "New Zealand", "NZ", 1_700_000),
    ("Pacific/Fiji", "Suva", "Fiji", "FJ", 180_000),
    ("Pacific/Chatham", "Waitangi", "New Zealand", "NZ", 300),
)

_COUNTRY_ALIASES: Dict[str, str] = {
    "United States of America": "United States",
}


def normalize_country_name(country: str) -> str:
    return _COUNTRY_ALIASES.get(country, country)


@dataclass(frozen=True)
class CityCatalog:
    """都市検索（自由文字列 → 候補）。外部データに差し替え可能なよう records を受け取る"""
    records: Tuple[CityRecord, ...]

    @classmethod
    def builtin(cls) -> "CityCatalog":
        return cls(tuple(
            CityRecord(zone_id=z, city=c, country=normalize_country_name(n), country_code=iso, population=pop)
            for z, c, n, iso, pop in _BUILTIN
        ))

    def search(self, query: str, limit: int = 10) -> List[CityRecord]:
        q = (query or "").strip().lower()
        if not q:
            return []
        hits = []
        for r in self.records:
            city = r.city.lower()
            # 都市名前方一致を優先、次に都市名/国名/ゾーンIDの部分一致
            if city.startswith(q):
                rank = 0
            elif q in city or q in r.country.lower() or q in r.zone_id.lower():
                rank = 1
            else:
                continue
            hits.append((rank, -r.population, r.city, r))
        hits.sort(key=lambda x: x[:3])
        return [h[-1] for h in hits[:limit]]

    def find(self, zone_id: str, city: str) -> Optional[CityRecord]:
        for r in self.records:
            if r.zone_id == zone_id and r.city == city:
                return r
        return None

    def find_by_zone(self, zone_id: str) -> Optional[CityRecord]:
        cands = [r for r in self.records if r.zone_id == zone_id]
        if not cands:
            return None
        return max(cands, key=lambda r: r.population)


def descriptor_from_city(
    record: CityRecord,
    resolver: TimezoneOffsetResolver,
    now: Optional[datetime] = None,
) -> TimeZoneDescriptor:
    now = now or datetime.now(tz=tz.UTC)
    offset = resolver.offset(now, record.zone_id).utc_offset_minutes
    return TimeZoneDescriptor(
        zone_id=record.zone_id,
        city=record.city,
        country=record.country,
        snapshot_utc_offset_hours=offset / 60,
        flag=country_code_to_flag(record.country_code),
    )


def descriptor_for(
    zone_id: str,
    city: str,
    catalog: CityCatalog,
    resolver: TimezoneOffsetResolver,
    now: Optional[datetime] = None,
) -> TimeZoneDescriptor:
    """(zone_id, city) から記述子を作る。カタログに無い都市は国名空・既定の旗で作る"""
    record = catalog.find(zone_id, city)
    if record is not None:
        return descriptor_from_city(record, resolver, now)
    now = now or datetime.now(tz=tz.UTC)
    offset = resolver.offset(now, zone_id).utc_offset_minutes
    return TimeZoneDescriptor(
        zone_id=zone_id,
        city=city,
        country="",
        snapshot_utc_offset_hours=offset / 60,
        flag=DEFAULT_FLAG,
    )
