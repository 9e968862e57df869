# worldtime_core/validation/validator.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from worldtime_core.domain.models import TimeZoneDescriptor
from worldtime_core.io_layer.share_link import ShareState, decode_location
from worldtime_core.resolution.offsets import TimezoneOffsetResolver


@dataclass(frozen=True)
class ValidationError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ValidationWarning:
    message: str


def validate_descriptor(descriptor: TimeZoneDescriptor, resolver: TimezoneOffsetResolver) -> None:
    # 追加前チェック：解決できないゾーンは呼び出し側（UI）で「見つからない」扱いにする
    if not descriptor.city.strip():
        raise ValidationError(f"都市名が空です: {descriptor.zone_id}")
    if not resolver.is_valid(descriptor.zone_id):
        raise ValidationError(f"タイムゾーンを解決できません: {descriptor.zone_id}")


def validate_share_state(share: ShareState, resolver: TimezoneOffsetResolver) -> List[ValidationWarning]:
    """
    共有リンク復元前の整合性チェック。
    致命的なもの（都市ゼロ）は例外、それ以外は警告に留める（復元時は代替ゾーンで継続）
    """
    warnings: List[ValidationWarning] = []

    if not share.locations:
        raise ValidationError("共有リンクに都市が含まれていません")

    entries = [decode_location(e) for e in share.locations]
    for zone_id, city in entries:
        if not resolver.is_valid(zone_id):
            warnings.append(ValidationWarning(f"解決できないタイムゾーンです（代替ゾーンで表示）: {zone_id} ({city})"))

    if entries[0][0] != share.home_zone_id:
        warnings.append(ValidationWarning(
            f"homeTimezone が先頭の都市と一致しません: {share.home_zone_id} != {entries[0][0]}（先頭の都市を優先）"
        ))

    if share.selected_utc_instant < share.anchor_date:
        warnings.append(ValidationWarning("選択時刻がアンカー日付より前です（アンカー日付に合わせて補正）"))

    seen = set()
    for e in entries:
        if e in seen:
            warnings.append(ValidationWarning(f"重複した都市は無視されます: {e[0]}:{e[1]}"))
        seen.add(e)

    return warnings
