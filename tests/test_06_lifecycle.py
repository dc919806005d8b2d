"""Lifecycle labels derived from signals."""

import sys
from pathlib import Path

import pytest

ORBIT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ORBIT_ROOT))

from orbit.lifecycle import ALLOWED_TRANSITIONS, ItemState, can_transition, derive_state
from orbit.scoring import compute_relevance
from tests.conftest import DAY, HOUR, NOW, make_item


class TestDeriveState:

    def test_new_within_novelty_window(self, ctx):
        assert derive_state(make_item(created_at=NOW - 2 * HOUR), ctx) is ItemState.NEW

    def test_active_after_novelty_window(self, ctx):
        item = make_item(created_at=NOW - 3 * DAY, last_seen_at=NOW - HOUR, seen_count=1)
        assert derive_state(item, ctx) is ItemState.ACTIVE

    def test_quieted_while_quiet(self, ctx):
        item = make_item(created_at=NOW - 3 * DAY, quiet_until=NOW + HOUR)
        assert derive_state(item, ctx) is ItemState.QUIETED

    def test_quiet_beats_new(self, ctx):
        assert derive_state(make_item(quiet_until=NOW + HOUR), ctx) is ItemState.QUIETED

    def test_quiet_lapses_back_to_active(self, ctx):
        item = make_item(created_at=NOW - 3 * DAY, last_seen_at=NOW - HOUR, seen_count=1,
                         quiet_until=NOW - 1)
        assert derive_state(item, ctx) is ItemState.ACTIVE

    def test_decaying_when_ignored(self, ctx):
        item = make_item(created_at=NOW - 5 * DAY, last_seen_at=NOW - DAY, seen_count=2,
                         ignored_streak=4)
        assert derive_state(item, ctx) is ItemState.DECAYING

    def test_decaying_when_never_seen(self, ctx):
        assert derive_state(make_item(created_at=NOW - 20 * DAY), ctx) is ItemState.DECAYING

    def test_pin_prevents_decaying(self, ctx):
        item = make_item(created_at=NOW - 20 * DAY, is_pinned=True)
        assert derive_state(item, ctx) is ItemState.ACTIVE

    def test_expired_pin_does_not_protect(self, ctx):
        item = make_item(created_at=NOW - 20 * DAY, is_pinned=True, pin_until=NOW - HOUR)
        assert derive_state(item, ctx) is ItemState.DECAYING

    def test_archived_when_removed(self, ctx):
        assert derive_state(make_item(), ctx, removed=True) is ItemState.ARCHIVED

    def test_does_not_change_scoring(self, ctx):
        item = make_item(created_at=NOW - 20 * DAY)
        before = compute_relevance(item, ctx)
        derive_state(item, ctx)
        assert compute_relevance(item, ctx) == before


class TestTransitions:

    @pytest.mark.parametrize("src,dst", [
        (ItemState.NEW, ItemState.ACTIVE),
        (ItemState.ACTIVE, ItemState.QUIETED),
        (ItemState.QUIETED, ItemState.ACTIVE),
        (ItemState.QUIETED, ItemState.DECAYING),
        (ItemState.DECAYING, ItemState.ARCHIVED),
    ])
    def test_allowed(self, src, dst):
        assert can_transition(src, dst)

    def test_archived_is_terminal(self):
        assert ALLOWED_TRANSITIONS[ItemState.ARCHIVED] == set()
        for state in ItemState:
            if state is not ItemState.ARCHIVED:
                assert not can_transition(ItemState.ARCHIVED, state)

    def test_nothing_returns_to_new(self):
        for state in ItemState:
            if state is not ItemState.NEW:
                assert not can_transition(state, ItemState.NEW)
