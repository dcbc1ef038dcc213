"""
Unit tests for discordterm/state.py

Tests the selection and unread message tracker:
- Selection get/set and deselection
- Lazy creation of unread counters
- Guild totals
- Concurrent updates under the lock
"""
import threading

import pytest

from discordterm.state import State


class TestSelection:
    """Test active guild/channel selection"""

    def test_initially_nothing_selected(self, state):
        assert state.active_guild() is None
        assert state.active_channel() is None

    def test_set_and_clear(self, state):
        state.set_guild('100')
        state.set_channel('101')
        assert state.active_guild() == '100'
        assert state.active_channel() == '101'

        state.set_channel(None)
        assert state.active_channel() is None
        assert state.active_guild() == '100'


class TestUnread:
    """Test unread counters"""

    def test_unknown_keys_read_zero(self, state):
        assert state.channel_unread('1', '2') == 0
        assert state.guild_unread('1') == 0

    def test_mark_unread_creates_levels(self, state):
        state.mark_unread('1', '2')
        assert state.unread == {'1': {'2': 1}}

    def test_mark_unread_with_count(self, state):
        state.mark_unread('1', '2', 3)
        state.mark_unread('1', '2')
        assert state.channel_unread('1', '2') == 4

    def test_guild_total_sums_channels(self, state):
        state.mark_unread('1', '2', 2)
        state.mark_unread('1', '3', 5)
        state.mark_unread('9', '2', 7)
        assert state.guild_unread('1') == 7

    def test_mark_read_resets_to_zero(self, state):
        state.mark_unread('1', '2', 4)
        state.mark_read('1', '2')
        assert state.channel_unread('1', '2') == 0
        assert state.guild_unread('1') == 0

    def test_mark_read_creates_levels(self, state):
        state.mark_read('1', '2')
        assert state.unread == {'1': {'2': 0}}

    @pytest.mark.parametrize('count', [1, 2, 5])
    def test_repeated_marks_accumulate(self, state, count):
        for _ in range(count):
            state.mark_unread('g', 'c')
        assert state.channel_unread('g', 'c') == count


def test_concurrent_updates_are_not_lost():
    """Unread increments from many threads add up exactly"""
    state = State()

    def worker():
        for _ in range(1000):
            state.mark_unread('g', 'c')

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert state.channel_unread('g', 'c') == 8000
