"""
Tests for SelectionSynchronizer: date navigation, slot clicks, home-zone re-snap.
"""

from datetime import date, timedelta

import pytest

from conftest import make_desc, utc
from worldtime_core.sync.synchronizer import SelectionSynchronizer


@pytest.fixture
def sync(resolver, cfg, clock, new_york, london, tokyo):
    return SelectionSynchronizer.create(
        new_york, [london, tokyo], day=date(2024, 1, 15), resolver=resolver, cfg=cfg, clock=clock,
    )


def selected_indexes(location):
    return [i for i, s in enumerate(location.slots) if s.is_selected]


class TestCreate:
    def test_initial_state(self, sync):
        assert sync.anchor_date == utc(2024, 1, 15, 5)
        assert sync.selected_utc_instant == sync.anchor_date
        assert sync.selected_column_index == 0
        assert sync.home_zone_id == "America/New_York"
        assert sync.locations[0].id == "local"
        assert all(len(loc.slots) == 26 for loc in sync.locations)

    def test_defaults_to_clock_date(self, resolver, cfg, clock, new_york):
        s = SelectionSynchronizer.create(new_york, resolver=resolver, cfg=cfg, clock=clock)
        assert s.anchor_date == utc(2024, 1, 15, 5)

    def test_with_defaults_skips_home_zone_duplicates(self, catalog, resolver, cfg, clock):
        s = SelectionSynchronizer.with_defaults(catalog, resolver=resolver, cfg=cfg, clock=clock)
        zones = [loc.zone_id for loc in s.locations]
        assert zones[0] == "America/New_York"
        assert zones.count("America/New_York") == 1
        assert "Asia/Kolkata" in zones
        assert s.locations[0].timezone.flag == "\U0001F1FA\U0001F1F8"


class TestClickSlot:
    def test_click_within_day(self, sync):
        target = sync.locations[0].slots[9]
        assert sync.click_slot(9, target.utc_instant) is True
        assert sync.selected_column_index == 9
        assert sync.selected_utc_instant == utc(2024, 1, 15, 14)
        assert sync.anchor_date == utc(2024, 1, 15, 5)
        assert selected_indexes(sync.locations[0]) == [9]
        assert selected_indexes(sync.locations[2]) == [9]

    def test_click_overflow_advances_anchor(self, sync):
        overflow = sync.locations[0].slots[25].utc_instant
        sync.click_slot(25, overflow)
        assert sync.anchor_date == utc(2024, 1, 16, 5)
        assert sync.selected_column_index == 1
        assert sync.selected_utc_instant == overflow
        assert selected_indexes(sync.locations[0]) == [1]
        assert sync.locations[0].slots[1].utc_instant == overflow

    def test_click_overflow_on_short_dst_day(self, resolver, cfg, clock, new_york):
        s = SelectionSynchronizer.create(new_york, day=date(2024, 3, 10), resolver=resolver, cfg=cfg, clock=clock)
        slot = s.locations[0].slots[23]
        assert slot.local_hour == 0
        s.click_slot(23, slot.utc_instant)
        assert s.anchor_date == utc(2024, 3, 11, 4)
        assert s.selected_column_index == 0


class TestPickDate:
    def test_keeps_selected_wall_clock(self, sync):
        sync.click_slot(9, sync.locations[0].slots[9].utc_instant)
        sync.pick_date(date(2024, 7, 4))
        assert sync.anchor_date == utc(2024, 7, 4, 4)
        assert sync.selected_utc_instant == utc(2024, 7, 4, 13)
        assert sync.selected_column_index == 9
        assert sync.locations[0].slots[9].local_hour == 9

    def test_same_date_does_not_notify(self, sync):
        calls = []
        sync.subscribe(lambda s: calls.append(s))
        assert sync.pick_date(date(2024, 1, 15)) is False
        assert calls == []
        assert sync.pick_date(date(2024, 1, 16)) is True
        assert len(calls) == 1

    def test_accepts_aware_datetime(self, sync):
        # 2024-01-16 03:00Z is still Jan 15 in New York
        sync.pick_date(utc(2024, 1, 16, 3))
        assert sync.anchor_date == utc(2024, 1, 15, 5)


class TestStructure:
    def test_add_has_no_selection_effect(self, sync, mumbai):
        sync.click_slot(9, sync.locations[0].slots[9].utc_instant)
        before = sync.state
        assert sync.add_location(mumbai) is True
        assert sync.state == before
        added = sync.locations[-1]
        assert len(added.slots) == 52
        assert added.slots[0].utc_instant == sync.anchor_date
        assert selected_indexes(added) == [18]

    def test_duplicate_add_is_noop(self, sync):
        assert sync.add_location(make_desc("Asia/Tokyo", "Tokyo")) is False
        assert len(sync.locations) == 3

    def test_remove_only_location_is_noop(self, resolver, cfg, clock, new_york):
        s = SelectionSynchronizer.create(new_york, day=date(2024, 1, 15), resolver=resolver, cfg=cfg, clock=clock)
        assert s.remove_location("local") is False
        assert len(s.locations) == 1

    def test_reorder_to_new_home_recomputes_all_rows(self, sync):
        sync.click_slot(9, sync.locations[0].slots[9].utc_instant)  # 14:00Z
        assert sync.move_location(2, 0) is True

        assert sync.locations[0].id == "local"
        assert sync.home_zone_id == "Asia/Tokyo"
        # Tokyo midnight of Jan 15 (selected instant is 23:00 JST)
        assert sync.anchor_date == utc(2024, 1, 14, 15)
        assert sync.selected_column_index == 23
        assert sync.selected_utc_instant == utc(2024, 1, 15, 14)
        assert {loc.slots[0].utc_instant for loc in sync.locations} == {utc(2024, 1, 14, 15)}
        assert selected_indexes(sync.locations[0]) == [23]
        assert selected_indexes(sync.locations[1]) == [23]

    def test_home_change_falls_back_to_current_hour(self, resolver, cfg, clock, mumbai, new_york):
        s = SelectionSynchronizer.create(mumbai, [new_york], day=date(2024, 1, 15), resolver=resolver, cfg=cfg, clock=clock)
        assert s.anchor_date == utc(2024, 1, 14, 18, 30)
        s.move_location(1, 0)
        # 18:30Z is not on New York's hourly grid; clock says 10:00 in New York
        assert s.home_zone_id == "America/New_York"
        assert s.anchor_date == utc(2024, 1, 14, 5)
        assert s.selected_column_index == 10
        assert s.selected_utc_instant == utc(2024, 1, 14, 15)

    def test_removing_home_resnaps(self, sync):
        sync.click_slot(9, sync.locations[0].slots[9].utc_instant)  # 14:00Z
        sync.remove_location("local")
        assert sync.home_zone_id == "Europe/London"
        assert sync.anchor_date == utc(2024, 1, 15)
        assert sync.selected_column_index == 14
        assert [loc.id for loc in sync.locations] == ["local", "Asia/Tokyo:Tokyo"]

    def test_reorder_keeping_home_leaves_selection(self, sync):
        sync.click_slot(9, sync.locations[0].slots[9].utc_instant)
        before = sync.state
        assert sync.move_location(2, 1) is True
        assert sync.state == before
        assert [loc.id for loc in sync.locations] == ["local", "Asia/Tokyo:Tokyo", "Europe/London:London"]

    def test_removing_other_location_leaves_selection(self, sync):
        sync.click_slot(9, sync.locations[0].slots[9].utc_instant)
        before = sync.state
        assert sync.remove_location("Europe/London:London") is True
        assert sync.state == before

    def test_unknown_zone_is_absorbed(self, sync):
        assert sync.add_location(make_desc("Nowhere/Atlantis", "Atlantis")) is True
        assert sync.locations[-1].slots[0].utc_instant == sync.anchor_date


class TestTick:
    def test_tick_leaves_selection_alone(self, sync):
        sync.click_slot(9, sync.locations[0].slots[9].utc_instant)
        before = sync.state
        slots = [loc.slots for loc in sync.locations]
        later = utc(2024, 1, 15, 15) + timedelta(minutes=1)
        sync.tick(later)
        assert sync.state == before
        assert [loc.slots for loc in sync.locations] == slots
        assert all(loc.last_refreshed == later for loc in sync.locations)

    def test_unsubscribe(self, sync):
        calls = []
        unsubscribe = sync.subscribe(lambda s: calls.append(1))
        sync.tick()
        unsubscribe()
        sync.tick()
        assert calls == [1]

    def test_tick_if_due_waits_for_interval(self, sync):
        assert sync.next_tick_at() == utc(2024, 1, 15, 15, 1)
        assert sync.tick_if_due(utc(2024, 1, 15, 15, 0, 30)) is False
        assert sync.locations[0].last_refreshed == utc(2024, 1, 15, 15)
        assert sync.tick_if_due(utc(2024, 1, 15, 15, 1)) is True
        assert sync.next_tick_at() == utc(2024, 1, 15, 15, 2)


class TestDateStrip:
    def test_strip_starts_at_anchor_day(self, sync, cfg):
        days = sync.date_strip()
        assert len(days) == cfg.date_strip_days
        assert days[0] == date(2024, 1, 15)
        assert days[-1] == date(2024, 1, 28)

    def test_strip_follows_home_date(self, sync):
        sync.click_slot(12, sync.locations[0].slots[12].utc_instant)  # 17:00Z, 02:00 JST next day
        sync.move_location(2, 0)
        assert sync.home_zone_id == "Asia/Tokyo"
        assert sync.date_strip()[0] == sync.anchor_day() == date(2024, 1, 16)
