# worldtime_core/domain/timegrid.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List

from worldtime_core.config import SlotConfig


def format_clock_label(hour: int, minute: int) -> str:
    """24時間表記 → 'h:mm AM/PM'"""
    suffix = "AM" if hour < 12 else "PM"
    h12 = hour % 12 or 12
    return f"{h12}:{minute:02d} {suffix}"


@dataclass(frozen=True)
class TimeGrid:
    """UTC基点 × 一定刻みのスロット列を扱う"""
    slot_minutes: int = 60
    steps: int = 26

    @classmethod
    def for_offset(cls, offset_minutes: int, cfg: SlotConfig) -> "TimeGrid":
        # 30分ずれのゾーンだけ30分刻み。45分ずれ等は1時間刻みのまま（既知の近似）
        if offset_minutes % 60 == 30:
            return cls(slot_minutes=cfg.half_hour_minutes, steps=cfg.half_hour_steps)
        return cls(slot_minutes=cfg.hourly_minutes, steps=cfg.hourly_steps)

    @property
    def step(self) -> timedelta:
        return timedelta(minutes=self.slot_minutes)

    def slot_to_instant(self, utc_base: datetime, slot: int) -> datetime:
        return utc_base + slot * self.step

    def instants(self, utc_base: datetime) -> List[datetime]:
        return [self.slot_to_instant(utc_base, i) for i in range(self.steps)]

    def slots_between(self, start: datetime, end: datetime) -> int:
        """start→end に収まるスロット数（端数切り捨て）"""
        return int((end - start).total_seconds() // (self.slot_minutes * 60))

    def index_of(self, utc_base: datetime, instant: datetime, tolerance_sec: int = 0) -> int:
        """instant に一致するスロット番号。無ければ -1"""
        for i in range(self.steps):
            diff = abs((self.slot_to_instant(utc_base, i) - instant).total_seconds())
            if diff <= tolerance_sec:
                return i
        return -1
