# worldtime_core/domain/dates.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import List, Optional, Union

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


@dataclass(frozen=True)
class MonthSpan:
    month: str
    start: int   # 日付リスト上の開始位置（含む）
    end: int     # 終了位置（含む）


def local_date(value: Union[date, datetime], zone: Optional[tzinfo] = None) -> date:
    """aware datetime はゾーン上の日付に、naive はそのまま日付に落とす"""
    if isinstance(value, datetime):
        if value.tzinfo is not None and zone is not None:
            return value.astimezone(zone).date()
        return value.date()
    return value


def generate_date_range(start: Union[date, datetime], count: int, zone=None) -> List[date]:
    """日付バー用：start（ホームゾーンの日付）から count 日分"""
    base = local_date(start, zone)
    return [base + timedelta(days=i) for i in range(count)]


def group_by_month(dates: List[date]) -> List[MonthSpan]:
    groups: List[MonthSpan] = []
    current = -1
    start_index = 0
    for idx, d in enumerate(dates):
        if d.month != current:
            if current != -1:
                groups.append(MonthSpan(MONTHS[current - 1], start_index, idx - 1))
            current = d.month
            start_index = idx
    if current != -1:
        groups.append(MonthSpan(MONTHS[current - 1], start_index, len(dates) - 1))
    return groups


def format_date_for_display(d: date) -> dict:
    return dict(day=d.day, weekday=WEEKDAYS[d.weekday()])
