# worldtime_core/io_layer/share_link.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Tuple
from urllib.parse import parse_qs, unquote, urlencode, urlsplit

from dateutil import parser as date_parser

from worldtime_core.resolution.offsets import as_utc

# クエリ文字列のキー名（運用で変えるならここだけ）
KEY_CITIES = "cities"
KEY_SELECTED = "selectedUtcDate"
KEY_ANCHOR = "anchorDate"
KEY_HOME = "homeTimezone"


class ShareLinkError(ValueError):
    pass


@dataclass(frozen=True)
class ShareState:
    """共有リンク用のフラットな状態"""
    locations: Tuple[str, ...]   # "zone_id:city"
    selected_utc_instant: datetime
    anchor_date: datetime
    home_zone_id: str

    def entries(self) -> List[Tuple[str, str]]:
        return [decode_location(e) for e in self.locations]


def encode_location(zone_id: str, city: str) -> str:
    return f"{zone_id}:{city}"


def decode_location(entry: str) -> Tuple[str, str]:
    # IANA名に ':' は含まれないので最初の ':' で分ける
    zone_id, sep, city = entry.partition(":")
    zone_id = zone_id.strip()
    if not sep or not city.strip():
        city = zone_id.rsplit("/", 1)[-1].replace("_", " ")
    return zone_id, city.strip()


def format_instant(instant: datetime) -> str:
    return as_utc(instant).replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


def parse_instant(text: str) -> datetime:
    try:
        return as_utc(date_parser.isoparse(text.strip()))
    except (ValueError, OverflowError) as ex:
        raise ShareLinkError(f"日時を解釈できません: {text!r}") from ex


def _escape_entry(entry: str) -> str:
    # 都市名の ',' は区切りと衝突するので値の中でだけ %-エスケープする
    return entry.replace("%", "%25").replace(",", "%2C")


def to_params(share: ShareState) -> Dict[str, str]:
    return {
        KEY_CITIES: ",".join(_escape_entry(e) for e in share.locations),
        KEY_SELECTED: format_instant(share.selected_utc_instant),
        KEY_ANCHOR: format_instant(share.anchor_date),
        KEY_HOME: share.home_zone_id,
    }


def to_query(share: ShareState, base_url: str = "") -> str:
    query = urlencode(to_params(share))
    if not base_url:
        return query
    return f"{base_url}?{query}"


def parse_share_query(text: str) -> ShareState:
    """URL全体でもクエリ文字列だけでも受け付ける"""
    raw = text.strip()
    query = urlsplit(raw).query if "?" in raw else raw
    params = parse_qs(query, keep_blank_values=True)

    missing = [k for k in (KEY_CITIES, KEY_SELECTED, KEY_ANCHOR) if not params.get(k)]
    if missing:
        raise ShareLinkError(f"共有リンクに必要な項目がありません: {', '.join(missing)}")

    cities = tuple(unquote(c) for c in params[KEY_CITIES][0].split(",") if c.strip())
    if not cities:
        raise ShareLinkError("共有リンクに都市が含まれていません")

    home = params.get(KEY_HOME, [""])[0] or decode_location(cities[0])[0]
    return ShareState(
        locations=cities,
        selected_utc_instant=parse_instant(params[KEY_SELECTED][0]),
        anchor_date=parse_instant(params[KEY_ANCHOR][0]),
        home_zone_id=home,
    )
