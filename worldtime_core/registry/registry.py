# worldtime_core/registry/registry.py
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from dateutil import tz

from worldtime_core.alignment.aligner import SlotAligner
from worldtime_core.config import AppConfig, DEFAULT_CONFIG
from worldtime_core.domain.models import Location, SelectionState, TimeSlot, TimeZoneDescriptor

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=tz.UTC)


class LocationRegistry:
    """
    ロケーションの順序付きコレクション。
    - 長さは常に1以上
    - index 0 は常にホーム（予約ID）。ID付け直しは _relabel() に一本化
    """

    def __init__(
        self,
        aligner: SlotAligner,
        descriptors: Iterable[TimeZoneDescriptor],
        cfg: AppConfig = DEFAULT_CONFIG,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.aligner = aligner
        self.cfg = cfg
        self.clock = clock

        now = clock()
        items: List[Location] = []
        seen = set()
        for d in descriptors:
            if d.key in seen:
                continue
            seen.add(d.key)
            items.append(Location(id=d.natural_id, timezone=d, last_refreshed=now))
        if not items:
            raise ValueError("LocationRegistry には最低1件のロケーションが必要です")
        self._items: List[Location] = self._relabel(items)

    # --- 読み取り ---

    @property
    def locations(self) -> Tuple[Location, ...]:
        return tuple(self._items)

    @property
    def home(self) -> Location:
        return self._items[0]

    @property
    def home_zone_id(self) -> str:
        return self._items[0].zone_id

    def __len__(self) -> int:
        return len(self._items)

    def index_of(self, location_id: str) -> int:
        for i, loc in enumerate(self._items):
            if loc.id == location_id:
                return i
        return -1

    def contains(self, descriptor: TimeZoneDescriptor) -> bool:
        return any(loc.timezone.key == descriptor.key for loc in self._items)

    # --- 構造変更 ---

    def _relabel(self, items: List[Location]) -> List[Location]:
        out = []
        for i, loc in enumerate(items):
            want = self.cfg.home_location_id if i == 0 else loc.timezone.natural_id
            out.append(loc if loc.id == want else replace(loc, id=want))
        return out

    def add_location(self, descriptor: TimeZoneDescriptor, state: SelectionState) -> Optional[Location]:
        if self.contains(descriptor):
            logger.debug("既に登録済みのため追加しません: %s", descriptor.natural_id)
            return None
        loc = Location(
            id=descriptor.natural_id,
            timezone=descriptor,
            last_refreshed=self.clock(),
            slots=self._slots_for(descriptor.zone_id, state, is_home=False),
        )
        self._items = self._relabel(self._items + [loc])
        return self._items[-1]

    def remove_location(self, location_id: str) -> bool:
        if len(self._items) <= 1:
            return False
        idx = self.index_of(location_id)
        if idx == -1:
            return False
        items = self._items[:idx] + self._items[idx + 1:]
        self._items = self._relabel(items)
        return True

    def reorder(self, new_order: Sequence[str]) -> bool:
        """new_order: 現在のIDの並べ替え（順列でなければ ValueError）"""
        current = [loc.id for loc in self._items]
        if sorted(new_order) != sorted(current):
            raise ValueError(f"並べ替え指定が現在のロケーションの順列ではありません: {list(new_order)}")
        if list(new_order) == current:
            return False
        by_id = {loc.id: loc for loc in self._items}
        self._items = self._relabel([by_id[i] for i in new_order])
        return True

    def move(self, old_index: int, new_index: int) -> bool:
        """ドラッグ＆ドロップ相当：old_index の要素を new_index へ"""
        ids = [loc.id for loc in self._items]
        if not (0 <= old_index < len(ids)) or not (0 <= new_index < len(ids)):
            raise IndexError(f"範囲外の位置です: {old_index} -> {new_index}")
        moved = ids.pop(old_index)
        ids.insert(new_index, moved)
        return self.reorder(ids)

    # --- スロット再生成 ---

    def _slots_for(self, zone_id: str, state: SelectionState, is_home: bool) -> Tuple[TimeSlot, ...]:
        if is_home:
            return self.aligner.align(
                state.anchor_date, self.home_zone_id, zone_id, state.selected_column_index
            )
        slots = self.aligner.align(state.anchor_date, self.home_zone_id, zone_id)
        # ホーム以外は刻みが異なり得るので instant 一致で選択を付ける
        return tuple(
            replace(s, is_selected=True) if s.utc_instant == state.selected_utc_instant else s
            for s in slots
        )

    def compute_all(self, state: SelectionState) -> List[Tuple[TimeSlot, ...]]:
        return [self._slots_for(loc.zone_id, state, is_home=(i == 0)) for i, loc in enumerate(self._items)]

    def refresh_all(self, state: SelectionState) -> bool:
        """全ロケーションのスロットを差し替える。値が変わらなければ何もしない（戻り値 False）"""
        fresh = self.compute_all(state)
        changed = False
        items = []
        for loc, slots in zip(self._items, fresh):
            if loc.slots != slots:
                changed = True
                loc = replace(loc, slots=slots)
            items.append(loc)
        if changed:
            self._items = items
        return changed

    def touch_all(self, now: Optional[datetime] = None) -> None:
        """現在時刻表示のみ更新（スロット・選択には触れない）"""
        now = now or self.clock()
        self._items = [replace(loc, last_refreshed=now) for loc in self._items]
