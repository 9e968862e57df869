# worldtime_core/resolution/abbreviations.py
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Dict, Optional, Tuple

from dateutil import tz

from worldtime_core.resolution.offsets import TimezoneOffsetResolver, ZoneResolutionError, as_utc

logger = logging.getLogger(__name__)

# zone_id -> (standard, daylight)
ABBREVIATIONS: Dict[str, Tuple[str, str]] = {
    # Americas
    "America/New_York": ("EST", "EDT"),
    "America/Chicago": ("CST", "CDT"),
    "America/Denver": ("MST", "MDT"),
    "America/Los_Angeles": ("PST", "PDT"),
    "America/Phoenix": ("MST", "MST"),
    "America/Anchorage": ("AKST", "AKDT"),
    "America/Honolulu": ("HST", "HST"),
    "America/Toronto": ("EST", "EDT"),
    "America/Vancouver": ("PST", "PDT"),
    "America/Sao_Paulo": ("BRT", "BRST"),
    # Europe
    "Europe/London": ("GMT", "BST"),
    "Europe/Paris": ("CET", "CEST"),
    "Europe/Berlin": ("CET", "CEST"),
    "Europe/Rome": ("CET", "CEST"),
    "Europe/Madrid": ("CET", "CEST"),
    "Europe/Amsterdam": ("CET", "CEST"),
    "Europe/Brussels": ("CET", "CEST"),
    "Europe/Vienna": ("CET", "CEST"),
    "Europe/Zurich": ("CET", "CEST"),
    "Europe/Stockholm": ("CET", "CEST"),
    "Europe/Oslo": ("CET", "CEST"),
    "Europe/Copenhagen": ("CET", "CEST"),
    "Europe/Helsinki": ("EET", "EEST"),
    "Europe/Warsaw": ("CET", "CEST"),
    "Europe/Prague": ("CET", "CEST"),
    "Europe/Budapest": ("CET", "CEST"),
    "Europe/Athens": ("EET", "EEST"),
    "Europe/Istanbul": ("TRT", "TRT"),
    "Europe/Moscow": ("MSK", "MSK"),
    # Asia
    "Asia/Tokyo": ("JST", "JST"),
    "Asia/Shanghai": ("CST", "CST"),
    "Asia/Seoul": ("KST", "KST"),
    "Asia/Hong_Kong": ("HKT", "HKT"),
    "Asia/Singapore": ("SGT", "SGT"),
    "Asia/Bangkok": ("ICT", "ICT"),
    "Asia/Manila": ("PHT", "PHT"),
    "Asia/Jakarta": ("WIB", "WIB"),
    "Asia/Kolkata": ("IST", "IST"),
    "Asia/Dubai": ("GST", "GST"),
    "Asia/Riyadh": ("AST", "AST"),
    "Asia/Tehran": ("IRST", "IRDT"),
    # Australia / Pacific
    "Australia/Sydney": ("AEST", "AEDT"),
    "Australia/Melbourne": ("AEST", "AEDT"),
    "Australia/Brisbane": ("AEST", "AEST"),
    "Australia/Perth": ("AWST", "AWST"),
    "Australia/Adelaide": ("ACST", "ACDT"),
    "Pacific/Auckland": ("NZST", "NZDT"),
    "Pacific/Fiji": ("FJT", "FJST"),
}

_NUMERIC_RE = re.compile(r"^([+-]\d|(GMT|UTC)[+-]\d)")


def format_gmt_offset(offset_minutes: int) -> str:
    """-330 -> 'GMT-5:30' / 540 -> 'GMT+9'"""
    sign = "+" if offset_minutes >= 0 else "-"
    hours, minutes = divmod(abs(offset_minutes), 60)
    if minutes == 0:
        return f"GMT{sign}{hours}"
    return f"GMT{sign}{hours}:{minutes:02d}"


class AbbreviationResolver:
    """
    表示用の短いゾーン名を返す。
    優先順：静的テーブル（DST判定付き） → tzデータベースの略称 → GMT±H[:MM]
    """

    def __init__(self, resolver: TimezoneOffsetResolver):
        self.resolver = resolver

    def is_daylight(self, instant: datetime, zone_id: str) -> bool:
        # 1月をDSTでない基準とみなす（南半球では誤判定する既知の近似）
        year = as_utc(instant).year
        jan = self.resolver.offset(datetime(year, 1, 1, tzinfo=tz.UTC), zone_id).utc_offset_minutes
        jul = self.resolver.offset(datetime(year, 7, 1, tzinfo=tz.UTC), zone_id).utc_offset_minutes
        if jan == jul:
            return False
        return self.resolver.offset(instant, zone_id).utc_offset_minutes != jan

    def _database_name(self, instant: datetime, zone_id: str) -> Optional[str]:
        name = self.resolver.to_local(instant, zone_id).tzname()
        if not name or _NUMERIC_RE.match(name) or len(name) > 5:
            return None
        return name

    def abbreviate(self, instant: datetime, zone_id: str) -> str:
        try:
            self.resolver.zone(zone_id)
        except ZoneResolutionError as e:
            logger.warning("略称を決定できません: %s", e)
            return "GMT"

        mapping = ABBREVIATIONS.get(zone_id)
        if mapping:
            standard, daylight = mapping
            return daylight if self.is_daylight(instant, zone_id) else standard

        name = self._database_name(instant, zone_id)
        if name:
            return name

        return format_gmt_offset(self.resolver.offset(instant, zone_id).utc_offset_minutes)

    def current(self, zone_id: str, now: Optional[datetime] = None) -> str:
        return self.abbreviate(now or datetime.now(tz=tz.UTC), zone_id)
