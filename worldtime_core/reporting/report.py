# worldtime_core/reporting/report.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import pandas as pd

from worldtime_core.domain.dates import format_date_for_display, group_by_month
from worldtime_core.domain.models import Location
from worldtime_core.domain.timegrid import format_clock_label
from worldtime_core.resolution.abbreviations import AbbreviationResolver, format_gmt_offset
from worldtime_core.resolution.offsets import as_utc


def _cell(slot, mark_selected: bool = True) -> str:
    txt = slot.local_time_label
    if slot.is_day_boundary:
        txt = f"{slot.local_wall_clock:%m/%d} {txt}"
    if mark_selected and slot.is_selected:
        txt = f"[{txt}]"
    return txt


def build_timeline_table(locations: Sequence[Location], abbr: AbbreviationResolver) -> pd.DataFrame:
    """
    行=ロケーション、列=ホーム行のスロット時刻（UTC）。
    30分刻みの行はホームの列に一致するスロットだけを載せる（列はホーム基準）
    """
    if not locations:
        return pd.DataFrame()

    home = locations[0]
    columns = [s.utc_instant for s in home.slots]

    rows = []
    index = []
    for loc in locations:
        by_instant = {s.utc_instant: s for s in loc.slots}
        ref = loc.slots[0].utc_instant if loc.slots else None
        label = f"{loc.timezone.flag} {loc.timezone.city}"
        if ref is not None:
            label = f"{label} ({abbr.abbreviate(ref, loc.zone_id)})"
        index.append(label)
        rows.append([_cell(by_instant[c]) if c in by_instant else "" for c in columns])

    header = [f"{c:%H:%M}Z" for c in columns]
    return pd.DataFrame(rows, index=index, columns=header)


def build_slot_table(location: Location) -> pd.DataFrame:
    """1ロケーション分のスロットを縦持ちで"""
    rows = []
    for i, s in enumerate(location.slots):
        rows.append(dict(
            index=i,
            utc=s.utc_instant.isoformat(),
            local=s.local_wall_clock.isoformat(),
            label=s.local_time_label,
            selected=s.is_selected,
            weekend=s.is_weekend,
            day_boundary=s.is_day_boundary,
            daytime=s.is_daytime(),
        ))
    return pd.DataFrame(rows)


def build_location_summary(
    locations: Sequence[Location],
    abbr: AbbreviationResolver,
    now: Optional[datetime] = None,
) -> pd.DataFrame:
    resolver = abbr.resolver
    rows = []
    for i, loc in enumerate(locations):
        at = as_utc(now or loc.last_refreshed)
        local = resolver.to_local(at, loc.zone_id)
        offset = resolver.offset(at, loc.zone_id)
        selected = loc.selected_slot()
        rows.append(dict(
            position=i,
            location_id=loc.id,
            city=loc.timezone.city,
            country=loc.timezone.country,
            zone_id=loc.zone_id,
            abbreviation=abbr.abbreviate(at, loc.zone_id),
            utc_offset=format_gmt_offset(offset.utc_offset_minutes),
            is_dst=offset.is_dst,
            current_time=format_clock_label(local.hour, local.minute),
            slot_count=len(loc.slots),
            selected_time=selected.local_time_label if selected else "",
        ))
    return pd.DataFrame(rows)


def build_date_strip(dates: Sequence[date], selected: Optional[date] = None) -> pd.DataFrame:
    """日付バー。月の見出しは各月の先頭行にだけ付ける"""
    heads = {span.start: span.month for span in group_by_month(list(dates))}
    rows = []
    for i, d in enumerate(dates):
        shown = format_date_for_display(d)
        rows.append(dict(
            date=d.isoformat(),
            month=heads.get(i, ""),
            day=shown["day"],
            weekday=shown["weekday"],
            selected=d == selected,
        ))
    return pd.DataFrame(rows)
