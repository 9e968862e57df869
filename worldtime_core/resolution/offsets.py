# worldtime_core/resolution/offsets.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Dict, Optional, Set

from dateutil import tz

from worldtime_core.config import AppConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)


class ZoneResolutionError(ValueError):
    """tzデータベースでゾーンIDを解釈できない"""

    def __init__(self, zone_id: str):
        super().__init__(f"Invalid timezone identifier: {zone_id!r}")
        self.zone_id = zone_id


@dataclass(frozen=True)
class OffsetInfo:
    utc_offset_minutes: int
    is_dst: bool


def as_utc(instant: datetime) -> datetime:
    # naive は UTC とみなす
    if instant.tzinfo is None:
        return instant.replace(tzinfo=tz.UTC)
    return instant.astimezone(tz.UTC)


class TimezoneOffsetResolver:
    """
    dateutil.tz の薄いラッパー。
    - zone(): 厳密版。解決できなければ ZoneResolutionError
    - safe_zone(): 境界用。失敗時は代替ゾーンに差し替えて警告のみ
    """

    def __init__(self, cfg: AppConfig = DEFAULT_CONFIG):
        self.cfg = cfg
        self._cache: Dict[str, tzinfo] = {}
        self._warned: Set[str] = set()
        self._fallback: Optional[tzinfo] = None

    def zone(self, zone_id: str) -> tzinfo:
        if zone_id in self._cache:
            return self._cache[zone_id]
        if not zone_id or not str(zone_id).strip():
            raise ZoneResolutionError(zone_id)
        try:
            zone = tz.gettz(str(zone_id).strip())
        except (ValueError, OSError) as ex:
            raise ZoneResolutionError(zone_id) from ex
        if zone is None:
            raise ZoneResolutionError(zone_id)
        self._cache[zone_id] = zone
        return zone

    def is_valid(self, zone_id: str) -> bool:
        try:
            self.zone(zone_id)
        except ZoneResolutionError:
            return False
        return True

    def fallback_zone(self) -> tzinfo:
        if self._fallback is None:
            name = self.cfg.fallback_timezone_name
            if name.lower() in {"local", "system"}:
                self._fallback = tz.tzlocal()
            elif name.upper() in {"UTC", "GMT", "Z"}:
                self._fallback = tz.UTC
            else:
                self._fallback = tz.gettz(name) or tz.UTC
        return self._fallback

    def safe_zone(self, zone_id: str) -> tzinfo:
        try:
            return self.zone(zone_id)
        except ZoneResolutionError as e:
            if zone_id not in self._warned:
                self._warned.add(zone_id)
                logger.warning(
                    "ゾーンを解決できないため代替ゾーン(%s)を使用します: %s",
                    self.cfg.fallback_timezone_name, e,
                )
            return self.fallback_zone()

    # --- 変換 ---

    def to_local(self, instant: datetime, zone_id: str) -> datetime:
        return as_utc(instant).astimezone(self.safe_zone(zone_id))

    def offset(self, instant: datetime, zone_id: str) -> OffsetInfo:
        local = self.to_local(instant, zone_id)
        off = local.utcoffset() or timedelta(0)
        dst = local.dst() or timedelta(0)
        return OffsetInfo(
            utc_offset_minutes=int(off.total_seconds() // 60),
            is_dst=dst != timedelta(0),
        )

    def to_utc(self, wall: datetime, zone_id: str) -> datetime:
        """ゾーン上の壁時計時刻 → UTC。存在しない時刻は前方へ、重複時刻は1回目を採用"""
        local = wall.replace(tzinfo=self.safe_zone(zone_id), fold=0)
        if not tz.datetime_exists(local):
            local = tz.resolve_imaginary(local)
        return local.astimezone(tz.UTC)

    def local_midnight(self, d: date, zone_id: str) -> datetime:
        """その日付のゾーン上 0:00 を UTC で返す（その日のDSTルールを適用）"""
        return self.to_utc(datetime.combine(d, time(0, 0)), zone_id)

    def local_date(self, instant: datetime, zone_id: str) -> date:
        return self.to_local(instant, zone_id).date()
