# main_cli.py
from __future__ import annotations

import argparse
import logging
from datetime import date
from typing import Optional

from worldtime_core.config import DEFAULT_CONFIG
from worldtime_core.domain.models import TimeZoneDescriptor
from worldtime_core.io_layer.cities import CityCatalog, descriptor_for, descriptor_from_city
from worldtime_core.io_layer.share_link import ShareLinkError, decode_location, parse_share_query, to_query
from worldtime_core.reporting.export_xlsx import export_result_xlsx
from worldtime_core.reporting.report import build_date_strip, build_location_summary, build_timeline_table
from worldtime_core.resolution.abbreviations import AbbreviationResolver
from worldtime_core.resolution.offsets import TimezoneOffsetResolver
from worldtime_core.sync.synchronizer import SelectionSynchronizer
from worldtime_core.validation.validator import ValidationError, validate_descriptor, validate_share_state


def parse_args(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument("--home", default=None, help="ホーム都市（例: 'America/New_York:New York' / 'Tokyo'）")
    p.add_argument("--city", nargs="*", default=[], help="比較する都市（複数可。'zone:city'・ゾーンID・都市名）")
    p.add_argument("--defaults", action="store_true", help="既定の都市セットを並べる")
    p.add_argument("--date", default=None, help="アンカー日付（例: 2024-01-15）")
    p.add_argument("--select", default=None, help="ホーム時刻で選択するスロット（例: 09:00）")
    p.add_argument("--share", default=None, help="共有リンク（URLまたはクエリ文字列）から復元")
    p.add_argument("--base-url", default="", help="共有リンク出力時のベースURL")
    p.add_argument("--out", default=None, help="出力xlsx")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def resolve_city(text: str, catalog: CityCatalog, resolver: TimezoneOffsetResolver) -> Optional[TimeZoneDescriptor]:
    text = text.strip()
    if ":" in text:
        zone_id, city = decode_location(text)
        return descriptor_for(zone_id, city, catalog, resolver)
    if "/" in text:
        record = catalog.find_by_zone(text)
        if record is not None:
            return descriptor_from_city(record, resolver)
        zone_id, city = decode_location(text)
        return descriptor_for(zone_id, city, catalog, resolver)
    hits = catalog.search(text, limit=1)
    if not hits:
        return None
    return descriptor_from_city(hits[0], resolver)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )
    cfg = DEFAULT_CONFIG
    resolver = TimezoneOffsetResolver(cfg)
    abbr = AbbreviationResolver(resolver)
    catalog = CityCatalog.builtin()

    if args.share:
        try:
            share = parse_share_query(args.share)
            warnings = validate_share_state(share, resolver)
        except (ShareLinkError, ValidationError) as e:
            print(f"[ERROR] {e}")
            return 1
        for w in warnings:
            print(f"[WARN] {w.message}")
        sync = SelectionSynchronizer.restore(share, catalog, resolver=resolver, cfg=cfg)
    else:
        home_text = args.home or ":".join(cfg.default_home)
        descs = []
        for text in [home_text] + list(args.city):
            d = resolve_city(text, catalog, resolver)
            if d is None:
                print(f"[ERROR] 都市が見つかりません: {text}")
                return 1
            try:
                validate_descriptor(d, resolver)
            except ValidationError as e:
                print(f"[ERROR] {e.message}")
                return 1
            descs.append(d)

        if args.defaults:
            home_zone = descs[0].zone_id
            descs += [descriptor_for(z, c, catalog, resolver) for z, c in cfg.default_cities if z != home_zone]

        sync = SelectionSynchronizer.create(descs[0], descs[1:], resolver=resolver, cfg=cfg)

    if args.date:
        try:
            sync.pick_date(date.fromisoformat(args.date))
        except ValueError:
            print(f"[ERROR] 日付の形式が不正です: {args.date}")
            return 1

    if args.select:
        home = sync.locations[0]
        hit = None
        for i, s in enumerate(home.slots):
            if f"{s.local_hour:02d}:{s.local_minute:02d}" == args.select:
                hit = (i, s)
                break
        if hit is None:
            print(f"[ERROR] ホーム行に該当する時刻がありません: {args.select}")
            return 1
        sync.click_slot(hit[0], hit[1].utc_instant)

    timeline_df = build_timeline_table(sync.locations, abbr)
    summary_df = build_location_summary(sync.locations, abbr)

    print(f"[RESULT] anchor={sync.anchor_date.isoformat()} home={sync.home_zone_id} "
          f"selected={sync.selected_utc_instant.isoformat()} (col {sync.selected_column_index})")
    strip_df = build_date_strip(sync.date_strip(), sync.anchor_day())
    cells = []
    for r in strip_df.itertuples(index=False):
        txt = f"{r.month} {r.day} {r.weekday}".strip()
        cells.append(f"[{txt}]" if r.selected else txt)
    print(f"[DATES] {' '.join(cells)}")
    print(summary_df.to_string(index=False))
    print(timeline_df.T.to_string())

    if args.out:
        out_path = export_result_xlsx(args.out, timeline_df, summary_df)
        print(f"[RESULT] OK: {out_path}")

    print(f"[SHARE] {to_query(sync.share_state(), args.base_url)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
