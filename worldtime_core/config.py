# worldtime_core/config.py
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class SlotConfig:
    """タイムライン1窓分のスロット仕様"""
    hourly_steps: int = 26        # 24時間 + 翌日2時間
    half_hour_steps: int = 52     # 30分刻み（+5:30 等のゾーン）
    hourly_minutes: int = 60
    half_hour_minutes: int = 30
    match_tolerance_sec: int = 60  # ホーム変更時、選択スロットを同一とみなす誤差
    max_resnap_index: int = 25     # 壁時計フォールバック時の上限（0..25）


@dataclass(frozen=True)
class DaytimeConfig:
    """昼間帯（表示の色分け用）"""
    start_minute: int = 7 * 60   # 07:00
    end_minute: int = 19 * 60    # 19:00（含まない）


@dataclass(frozen=True)
class AppConfig:
    # index 0 のロケーションに必ず付与するID
    home_location_id: str = "local"

    # ゾーン解決に失敗した場合の代替（"local" = システムのタイムゾーン）
    fallback_timezone_name: str = "local"

    # 起動時のホーム（指定が無い場合）
    default_home: Tuple[str, str] = ("America/New_York", "New York")

    # 起動時に並べる都市（zone_id, city）
    default_cities: Tuple[Tuple[str, str], ...] = (
        ("America/New_York", "New York"),
        ("Europe/London", "London"),
        ("Asia/Tokyo", "Tokyo"),
        ("Asia/Shanghai", "Shanghai"),
        ("America/Los_Angeles", "Los Angeles"),
        ("Europe/Istanbul", "Istanbul"),
        ("Asia/Kolkata", "Mumbai"),
    )

    # 現在時刻表示の更新間隔（選択状態には触れない）
    tick_interval_sec: int = 60

    # 日付バーに並べる日数
    date_strip_days: int = 14

    slots: SlotConfig = SlotConfig()
    daytime: DaytimeConfig = DaytimeConfig()


DEFAULT_CONFIG = AppConfig()
