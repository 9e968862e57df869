# worldtime_core/sync/synchronizer.py
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from dateutil import tz

from worldtime_core.alignment.aligner import SlotAligner
from worldtime_core.config import AppConfig, DEFAULT_CONFIG
from worldtime_core.domain.dates import generate_date_range, local_date
from worldtime_core.domain.models import Location, SelectionState, TimeZoneDescriptor
from worldtime_core.io_layer.cities import CityCatalog, descriptor_for
from worldtime_core.io_layer.share_link import ShareState, encode_location
from worldtime_core.registry.registry import LocationRegistry
from worldtime_core.resolution.offsets import TimezoneOffsetResolver, as_utc

logger = logging.getLogger(__name__)

Listener = Callable[["SelectionSynchronizer"], None]
DayLike = Union[date, datetime]


def _utc_now() -> datetime:
    return datetime.now(tz=tz.UTC)


class SelectionSynchronizer:
    """
    (anchor_date, selected_utc_instant, selected_column_index) の唯一の書き手。
    各イベントは新しい状態を計算し終えてから代入し、最後に必ず refresh_all する。
    """

    def __init__(
        self,
        registry: LocationRegistry,
        aligner: SlotAligner,
        state: SelectionState,
        cfg: AppConfig = DEFAULT_CONFIG,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.registry = registry
        self.aligner = aligner
        self.resolver = aligner.resolver
        self.cfg = cfg
        self.clock = clock
        self._state = state
        self._listeners: List[Listener] = []
        self.registry.refresh_all(state)

    # --- 生成 ---

    @classmethod
    def create(
        cls,
        home: TimeZoneDescriptor,
        others: Iterable[TimeZoneDescriptor] = (),
        day: Optional[DayLike] = None,
        resolver: Optional[TimezoneOffsetResolver] = None,
        cfg: AppConfig = DEFAULT_CONFIG,
        clock: Callable[[], datetime] = _utc_now,
    ) -> "SelectionSynchronizer":
        resolver = resolver or TimezoneOffsetResolver(cfg)
        aligner = SlotAligner(resolver, cfg)
        registry = LocationRegistry(aligner, [home, *others], cfg=cfg, clock=clock)
        zone = resolver.safe_zone(registry.home_zone_id)
        d = local_date(day if day is not None else clock(), zone)
        anchor = aligner.home_midnight(d, registry.home_zone_id)
        # 初期選択：ホーム行の先頭スロット
        state = SelectionState(anchor_date=anchor, selected_utc_instant=anchor, selected_column_index=0)
        return cls(registry, aligner, state, cfg=cfg, clock=clock)

    @classmethod
    def with_defaults(
        cls,
        catalog: CityCatalog,
        home: Optional[Tuple[str, str]] = None,
        day: Optional[DayLike] = None,
        resolver: Optional[TimezoneOffsetResolver] = None,
        cfg: AppConfig = DEFAULT_CONFIG,
        clock: Callable[[], datetime] = _utc_now,
    ) -> "SelectionSynchronizer":
        resolver = resolver or TimezoneOffsetResolver(cfg)
        now = clock()
        home_zone, home_city = home or cfg.default_home
        home_desc = descriptor_for(home_zone, home_city, catalog, resolver, now)
        # ホームと同じゾーンの既定都市は並べない
        others = [
            descriptor_for(z, c, catalog, resolver, now)
            for z, c in cfg.default_cities
            if z != home_zone
        ]
        return cls.create(home_desc, others, day=day, resolver=resolver, cfg=cfg, clock=clock)

    @classmethod
    def restore(
        cls,
        share: ShareState,
        catalog: CityCatalog,
        resolver: Optional[TimezoneOffsetResolver] = None,
        cfg: AppConfig = DEFAULT_CONFIG,
        clock: Callable[[], datetime] = _utc_now,
    ) -> "SelectionSynchronizer":
        """共有リンクの状態から復元する"""
        resolver = resolver or TimezoneOffsetResolver(cfg)
        now = clock()
        descs = [descriptor_for(z, c, catalog, resolver, now) for z, c in share.entries()]
        sync = cls.create(descs[0], descs[1:], day=share.anchor_date, resolver=resolver, cfg=cfg, clock=clock)
        sync._select_instant(share.selected_utc_instant)
        return sync

    # --- 読み取りモデル ---

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def locations(self) -> Tuple[Location, ...]:
        return self.registry.locations

    @property
    def anchor_date(self) -> datetime:
        return self._state.anchor_date

    @property
    def selected_utc_instant(self) -> datetime:
        return self._state.selected_utc_instant

    @property
    def selected_column_index(self) -> int:
        return self._state.selected_column_index

    @property
    def home_zone_id(self) -> str:
        return self.registry.home_zone_id

    def anchor_day(self) -> date:
        return self.resolver.local_date(self._state.anchor_date, self.home_zone_id)

    def share_state(self) -> ShareState:
        return ShareState(
            locations=tuple(encode_location(loc.zone_id, loc.timezone.city) for loc in self.locations),
            selected_utc_instant=self._state.selected_utc_instant,
            anchor_date=self._state.anchor_date,
            home_zone_id=self.home_zone_id,
        )

    # --- 通知 ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for fn in list(self._listeners):
            fn(self)

    def _commit(self, state: SelectionState, structure_changed: bool = False) -> bool:
        state_changed = state != self._state
        self._state = state
        slots_changed = self.registry.refresh_all(state)
        changed = state_changed or slots_changed or structure_changed
        if changed:
            self._notify()
        return changed

    # --- イベント ---

    def pick_date(self, day: DayLike) -> bool:
        home = self.home_zone_id
        d = local_date(day, self.resolver.safe_zone(home))
        anchor = self.aligner.home_midnight(d, home)

        # 選択中スロットのホーム上の時:分（と翌日側かどうか）を新しい日付で表し直す
        sel_local = self.resolver.to_local(self._state.selected_utc_instant, home)
        day_shift = (sel_local.date() - self.anchor_day()).days
        wall = datetime.combine(d + timedelta(days=day_shift), time(sel_local.hour, sel_local.minute))
        selected = self.resolver.to_utc(wall, home)

        return self._commit(SelectionState(
            anchor_date=anchor,
            selected_utc_instant=selected,
            selected_column_index=self._state.selected_column_index,
        ))

    def click_slot(self, col_idx: int, utc_instant: datetime) -> bool:
        home = self.home_zone_id
        anchor = self._state.anchor_date
        base, grid = self.aligner.home_grid(anchor, home)
        next_midnight = self.aligner.home_midnight(self.anchor_day() + timedelta(days=1), home)
        # ホームの1日に収まるスロット数（DSTの日は23/25時間）
        day_slots = grid.slots_between(base, next_midnight)

        if col_idx >= day_slots:
            # 翌日側のスロット：アンカーを1日進めて同じ位置に付け替える
            anchor = next_midnight
            col_idx -= day_slots

        return self._commit(SelectionState(
            anchor_date=anchor,
            selected_utc_instant=as_utc(utc_instant),
            selected_column_index=col_idx,
        ))

    def add_location(self, descriptor: TimeZoneDescriptor) -> bool:
        added = self.registry.add_location(descriptor, self._state)
        if added is None:
            return False
        self._commit(self._state, structure_changed=True)
        return True

    def remove_location(self, location_id: str) -> bool:
        prev_home = self.home_zone_id
        if not self.registry.remove_location(location_id):
            return False
        self._commit(self._follow_home(prev_home), structure_changed=True)
        return True

    def reorder(self, new_order: Sequence[str]) -> bool:
        prev_home = self.home_zone_id
        if not self.registry.reorder(new_order):
            return False
        self._commit(self._follow_home(prev_home), structure_changed=True)
        return True

    def move_location(self, old_index: int, new_index: int) -> bool:
        ids = [loc.id for loc in self.locations]
        moved = ids.pop(old_index)
        ids.insert(new_index, moved)
        return self.reorder(ids)

    def tick(self, now: Optional[datetime] = None) -> None:
        # 表示用の現在時刻だけ更新。アンカー/選択には触れない
        self.registry.touch_all(now or self.clock())
        self._notify()

    def next_tick_at(self) -> datetime:
        last = min(loc.last_refreshed for loc in self.locations)
        return last + timedelta(seconds=self.cfg.tick_interval_sec)

    def tick_if_due(self, now: Optional[datetime] = None) -> bool:
        """前回の更新から tick_interval_sec 経っていれば tick する"""
        now = now or self.clock()
        if now < self.next_tick_at():
            return False
        self.tick(now)
        return True

    def date_strip(self) -> List[date]:
        """アンカー日（ホームの日付）から date_strip_days 日分"""
        return generate_date_range(self.anchor_day(), self.cfg.date_strip_days)

    # --- 内部 ---

    def _follow_home(self, prev_home: str) -> SelectionState:
        """index 0 のゾーンが prev_home から変わっていれば再スナップした状態を返す"""
        if self.home_zone_id == prev_home:
            return self._state
        return self._resnap(self._state)

    def _resnap(self, prev: SelectionState) -> SelectionState:
        """
        ホームゾーン変更時の列番号の復旧
        (a) 以前の選択時刻と60秒以内のスロットがあればその番号
        (b) 無ければ新ホームの現在時刻の「時」に合うスロット（0..25 に丸める）
        """
        home = self.home_zone_id
        day = self.resolver.local_date(prev.selected_utc_instant, home)
        anchor = self.aligner.home_midnight(day, home)
        base, grid = self.aligner.home_grid(anchor, home)

        idx = grid.index_of(base, prev.selected_utc_instant, self.cfg.slots.match_tolerance_sec)
        if idx >= 0:
            return SelectionState(anchor, prev.selected_utc_instant, idx)

        now_hour = self.resolver.to_local(self.clock(), home).hour
        idx = now_hour
        for i, instant in enumerate(grid.instants(base)):
            if self.resolver.to_local(instant, home).hour == now_hour:
                idx = i
                break
        idx = min(max(idx, 0), self.cfg.slots.max_resnap_index)
        logger.debug("ホーム変更後に選択スロットが見つからないため現在時刻へ: index=%d", idx)
        return SelectionState(anchor, grid.slot_to_instant(base, idx), idx)

    def _select_instant(self, instant: datetime) -> bool:
        """instant をホーム行の該当スロットとして選択する（共有リンク復元用）"""
        home = self.home_zone_id
        instant = as_utc(instant)
        base, grid = self.aligner.home_grid(self._state.anchor_date, home)
        idx = grid.index_of(base, instant, self.cfg.slots.match_tolerance_sec)
        if idx < 0:
            # グリッド外の時刻は最寄りの手前のスロットに寄せる（範囲外は両端）
            idx = min(max(grid.slots_between(base, instant), 0), grid.steps - 1)
            snapped = grid.slot_to_instant(base, idx)
            logger.debug("選択時刻 %s をスロット %d (%s) に補正", instant.isoformat(), idx, snapped.isoformat())
            instant = snapped
        return self._commit(SelectionState(self._state.anchor_date, instant, idx))
