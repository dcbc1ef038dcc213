#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Selection and unread message state shared by the console and the gateway."""
import logging
import threading


class State:
    """Active guild/channel selection and per-channel unread counters.

    Every read and write goes through a single lock. The console input loop
    and the gateway event handlers both touch this object, and nothing here
    performs I/O while holding the lock.

    Attributes
    ----------
    unread : `dict` of (`str`, `dict` of (`str`, `int`))
        guild id -> channel id -> number of unread messages.
    """
    logger = logging.getLogger(__name__)

    def __init__(self):
        self._lock = threading.Lock()
        self._guild = None
        self._channel = None
        self.unread = {}

    def active_guild(self):
        with self._lock:
            return self._guild

    def active_channel(self):
        with self._lock:
            return self._channel

    def set_guild(self, guild_id):
        """Select a guild. `None` deselects it."""
        with self._lock:
            self._guild = guild_id
        self.logger.debug('active guild: %s', guild_id)

    def set_channel(self, channel_id):
        """Select a channel. `None` deselects it."""
        with self._lock:
            self._channel = channel_id
        self.logger.debug('active channel: %s', channel_id)

    def mark_unread(self, guild_id, channel_id, count=1):
        """Add `count` unread messages to a channel."""
        with self._lock:
            channels = self.unread.setdefault(guild_id, {})
            channels[channel_id] = channels.get(channel_id, 0) + count

    def mark_read(self, guild_id, channel_id):
        """Reset the unread counter of a channel to zero."""
        with self._lock:
            self.unread.setdefault(guild_id, {})[channel_id] = 0

    def channel_unread(self, guild_id, channel_id):
        """Number of unread messages in a channel, 0 if never marked."""
        with self._lock:
            return self.unread.get(guild_id, {}).get(channel_id, 0)

    def guild_unread(self, guild_id):
        """Total number of unread messages over a guild's channels."""
        with self._lock:
            return sum(self.unread.get(guild_id, {}).values())
