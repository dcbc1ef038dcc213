#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Thin adapter over a discord.py client.

The rest of the package talks to Discord only through `Session`, using
string identifiers. Everything network related (gateway, REST, rate limits,
reconnects) is left to discord.py.
"""
import asyncio
import collections
import logging
import os

import discord

from .error import LoginError, ValidationError


STATUSES = {
    'online': discord.Status.online,
    'idle': discord.Status.idle,
    'away': discord.Status.idle,
    'dnd': discord.Status.dnd,
    'invisible': discord.Status.invisible,
    'offline': discord.Status.offline,
}


def snowflake(value):
    """Convert a string identifier into a Discord snowflake."""
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid id: {value}') from None


def default_intents():
    intents = discord.Intents.default()
    intents.members = True
    intents.presences = True
    intents.message_content = True
    return intents


class Gateway(discord.Client):
    """discord.py client forwarding gateway events to a `Session`."""

    def __init__(self, session, **kwargs):
        super().__init__(**kwargs)
        self.session = session

    async def on_ready(self):
        await self.session.trigger('ready', self.user)

    async def on_message(self, message):
        await self.session.trigger('message', message)


class Session:
    """Discord session adapter.

    Attributes
    ----------
    client : `discordterm.session.Gateway`
        Underlying discord.py client.
    handlers : `collections.defaultdict` of (`str`, `list` of `function`)
        Event handlers.
    """
    logger = logging.getLogger(__name__)

    def __init__(self, intents=None, client=None):
        self.handlers = collections.defaultdict(list)
        self.client = client or Gateway(self, intents=intents or default_intents())
        self._status = discord.Status.online
        self._activity = None

    # --- events ---

    def on(self, event, *handlers):
        """Add event handlers.

        Parameters
        ----------
        event : `str`
            Event name ('ready' or 'message').
        handlers : `list` of `function`
            Event handlers.
        """
        ev_handlers = self.handlers[event]
        for handler in handlers:
            if handler not in ev_handlers:
                ev_handlers.append(handler)
                self.logger.info('on: %s %s', event, handler)
            else:
                self.logger.warning('on: handler exists: %s %s', event, handler)
        return self

    def off(self, event, *handlers):
        ev_handlers = self.handlers[event]
        for handler in handlers:
            try:
                ev_handlers.remove(handler)
                self.logger.info('off: %s %s', event, handler)
            except ValueError:
                self.logger.warning('off: handler not found: %s %s', event, handler)
        return self

    async def trigger(self, event, data):
        """Call the handlers of an event.

        A failing handler is logged and does not stop the gateway.
        """
        self.logger.debug('trigger: %s %s', event, data)
        for handler in list(self.handlers[event]):
            try:
                if asyncio.iscoroutinefunction(handler):
                    await handler(data)
                else:
                    handler(data)
            except asyncio.CancelledError:
                raise
            except Exception as ex:  # pylint: disable=broad-except
                self.logger.error('trigger %s: %r', event, ex, exc_info=True)

    # --- connection ---

    async def login(self, token):
        """Log in with a user or bot token.

        Raises
        ------
        `discordterm.error.LoginError`
        """
        if token.startswith('Bot '):
            token = token[4:]
        try:
            await self.client.login(token.strip())
        except (discord.LoginFailure, discord.HTTPException) as ex:
            raise LoginError('login failed: %s' % ex) from ex
        self.logger.info('logged in')

    async def connect(self):
        """Open the gateway connection and process events until closed."""
        try:
            await self.client.connect(reconnect=True)
        except (discord.GatewayNotFound, discord.ConnectionClosed,
                discord.PrivilegedIntentsRequired) as ex:
            raise LoginError('connection failed: %s' % ex) from ex

    async def wait_until_ready(self):
        await self.client.wait_until_ready()

    async def close(self):
        if not self.client.is_closed():
            self.logger.info('closing session')
            await self.client.close()

    @property
    def current_user(self):
        return self.client.user

    # --- guilds and channels ---

    def guilds(self):
        return list(self.client.guilds)

    async def guild(self, guild_id):
        """Cached guild, fetched over REST when not in the cache."""
        guild = self.client.get_guild(snowflake(guild_id))
        if guild is None:
            guild = await self.client.fetch_guild(snowflake(guild_id))
        return guild

    async def guild_channels(self, guild_id):
        """Text channels of a guild, fetched live, in display order."""
        guild = await self.guild(guild_id)
        channels = await guild.fetch_channels()
        return sorted(
            (c for c in channels if isinstance(c, discord.TextChannel)),
            key=lambda c: (c.position, c.id)
        )

    async def channel(self, channel_id):
        channel = self.client.get_channel(snowflake(channel_id))
        if channel is None:
            channel = await self.client.fetch_channel(snowflake(channel_id))
        return channel

    # --- messages ---

    async def messages(self, channel_id, limit):
        """Latest messages of a channel, newest first."""
        channel = await self.channel(channel_id)
        return [m async for m in channel.history(limit=limit)]

    async def send_message(self, channel_id, content):
        channel = await self.channel(channel_id)
        return await channel.send(content)

    async def send_file(self, channel_id, path):
        channel = await self.channel(channel_id)
        return await channel.send(
            file=discord.File(path, filename=os.path.basename(path))
        )

    async def delete_message(self, channel_id, message_id):
        channel = await self.channel(channel_id)
        await channel.get_partial_message(snowflake(message_id)).delete()

    async def edit_message(self, channel_id, message_id, content):
        channel = await self.channel(channel_id)
        return await channel.get_partial_message(
            snowflake(message_id)
        ).edit(content=content)

    # --- members and roles ---

    async def member(self, guild_id, user_id):
        """Guild member from the cache, or fetched when not cached.

        `user_id` may be '@me' for the logged in user.
        """
        guild = await self.guild(guild_id)
        if user_id == '@me':
            user_id = self.client.user.id
        member = guild.get_member(snowflake(user_id))
        if member is None:
            member = await guild.fetch_member(snowflake(user_id))
        return member

    async def members(self, guild_id, after=None, limit=1000):
        guild = await self.guild(guild_id)
        after = discord.Object(id=snowflake(after)) if after else None
        return [m async for m in guild.fetch_members(limit=limit, after=after)]

    async def presences(self, guild_id):
        """Members of a guild that are not offline."""
        guild = await self.guild(guild_id)
        return [m for m in guild.members if m.status != discord.Status.offline]

    async def roles(self, guild_id):
        """Roles of a guild, highest first."""
        guild = await self.guild(guild_id)
        return sorted(guild.roles, key=lambda r: r.position, reverse=True)

    async def add_role(self, guild_id, user_id, role_id):
        member = await self.member(guild_id, user_id)
        await member.add_roles(discord.Object(id=snowflake(role_id)))

    async def remove_role(self, guild_id, user_id, role_id):
        member = await self.member(guild_id, user_id)
        await member.remove_roles(discord.Object(id=snowflake(role_id)))

    async def set_nickname(self, guild_id, user_id, nickname):
        member = await self.member(guild_id, user_id)
        await member.edit(nick=nickname or None)

    # --- profile ---

    async def set_username(self, username):
        await self.client.user.edit(username=username)

    async def set_status(self, status):
        """Change the online status.

        Raises
        ------
        `KeyError`
            If `status` is not one of `STATUSES`.
        """
        self._status = STATUSES[status]
        await self.client.change_presence(
            status=self._status, activity=self._activity
        )

    async def set_playing(self, name):
        """Set the playing activity, or clear it when `name` is empty."""
        self._activity = discord.Game(name=name) if name else None
        await self.client.change_presence(
            status=self._status, activity=self._activity
        )
