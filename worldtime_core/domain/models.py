# worldtime_core/domain/models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from worldtime_core.config import DEFAULT_CONFIG, DaytimeConfig

DEFAULT_FLAG = "\U0001F30D"  # 🌍


def country_code_to_flag(country_code: Optional[str]) -> str:
    """ISO 3166 alpha-2 → 国旗絵文字（regional indicator 2文字）"""
    if not country_code or len(country_code) != 2 or not country_code.isalpha():
        return DEFAULT_FLAG
    return "".join(chr(0x1F1A5 + ord(ch)) for ch in country_code.upper())


@dataclass(frozen=True)
class CityRecord:
    """都市検索の結果1件"""
    zone_id: str
    city: str
    country: str
    country_code: str
    population: int = 0


@dataclass(frozen=True)
class TimeZoneDescriptor:
    zone_id: str                       # IANA名
    city: str
    country: str
    snapshot_utc_offset_hours: float   # 生成時点のオフセット（表示用。計算には使わない）
    flag: str = DEFAULT_FLAG

    @property
    def key(self) -> Tuple[str, str]:
        return self.zone_id, self.city

    @property
    def natural_id(self) -> str:
        return f"{self.zone_id}:{self.city}"


@dataclass(frozen=True)
class TimeSlot:
    """タイムライン上の1点。utc_instant が正、他はターゲットゾーンでの派生値"""
    local_hour: int
    local_minute: int
    local_time_label: str
    local_wall_clock: datetime
    utc_instant: datetime
    is_selected: bool
    is_weekend: bool
    is_day_boundary: bool

    def is_daytime(self, daytime: DaytimeConfig = DEFAULT_CONFIG.daytime) -> bool:
        minutes = self.local_hour * 60 + self.local_minute
        return daytime.start_minute <= minutes < daytime.end_minute


@dataclass(frozen=True)
class Location:
    """LocationRegistry が所有するスナップショット（変更は丸ごと差し替え）"""
    id: str
    timezone: TimeZoneDescriptor
    last_refreshed: datetime
    slots: Tuple[TimeSlot, ...] = ()

    @property
    def zone_id(self) -> str:
        return self.timezone.zone_id

    def selected_slot(self) -> Optional[TimeSlot]:
        for s in self.slots:
            if s.is_selected:
                return s
        return None


@dataclass(frozen=True)
class SelectionState:
    anchor_date: datetime            # ホームゾーンの0:00（UTCのaware datetime）
    selected_utc_instant: datetime
    selected_column_index: int       # ホーム行のスロット番号
