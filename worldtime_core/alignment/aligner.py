# worldtime_core/alignment/aligner.py
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Tuple

from worldtime_core.config import AppConfig, DEFAULT_CONFIG
from worldtime_core.domain.models import TimeSlot
from worldtime_core.domain.timegrid import TimeGrid, format_clock_label
from worldtime_core.resolution.offsets import TimezoneOffsetResolver


class SlotAligner:
    """
    ホームゾーンの0:00を起点に、ターゲットゾーンのスロット列（26 or 52）を生成する。

    実装方針（重要）
    - 起点 utc_base は「アンカー日付のホーム 0:00」をその日のDSTルールで UTC 化したもの
    - 刻みは utc_base 時点のターゲットオフセットで1回だけ決める（窓の途中で変えない）
    - スロットは UTC で管理する。DSTで飛ぶ/重なる時刻も削除・統合しない
    - 解決できないゾーンは resolver.safe_zone 側で代替ゾーンに差し替わる（ここでは例外を出さない）
    """

    def __init__(self, resolver: TimezoneOffsetResolver, cfg: AppConfig = DEFAULT_CONFIG):
        self.resolver = resolver
        self.cfg = cfg

    def home_midnight(self, day: date, home_zone: str) -> datetime:
        return self.resolver.local_midnight(day, home_zone)

    def utc_base(self, home_midnight: datetime, home_zone: str) -> datetime:
        # 渡された instant のホーム上の日付から 0:00 を引き直す
        day = self.resolver.local_date(home_midnight, home_zone)
        return self.home_midnight(day, home_zone)

    def grid_for(self, utc_base: datetime, target_zone: str) -> TimeGrid:
        offset = self.resolver.offset(utc_base, target_zone).utc_offset_minutes
        return TimeGrid.for_offset(offset, self.cfg.slots)

    def cadence_minutes(self, utc_base: datetime, target_zone: str) -> int:
        return self.grid_for(utc_base, target_zone).slot_minutes

    def home_grid(self, home_midnight: datetime, home_zone: str) -> Tuple[datetime, TimeGrid]:
        base = self.utc_base(home_midnight, home_zone)
        return base, self.grid_for(base, home_zone)

    def align(
        self,
        home_midnight: datetime,
        home_zone: str,
        target_zone: str,
        selected_column_index: Optional[int] = None,
    ) -> Tuple[TimeSlot, ...]:
        base = self.utc_base(home_midnight, home_zone)
        grid = self.grid_for(base, target_zone)

        slots: List[TimeSlot] = []
        prev_day: Optional[date] = None
        for i, instant in enumerate(grid.instants(base)):
            local = self.resolver.to_local(instant, target_zone)
            day = local.date()
            slots.append(TimeSlot(
                local_hour=local.hour,
                local_minute=local.minute,
                local_time_label=format_clock_label(local.hour, local.minute),
                local_wall_clock=local,
                utc_instant=instant,
                # ホーム行のみ index で選択。他の行は呼び出し側で instant 一致により付け直す
                is_selected=selected_column_index is not None and i == selected_column_index,
                is_weekend=day.weekday() >= 5,
                is_day_boundary=i == 0 or day != prev_day,
            ))
            prev_day = day
        return tuple(slots)
