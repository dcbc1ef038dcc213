"""
Shared fixtures for integration tests.

Integration tests validate multi-component workflows with minimal mocking.
Uses real Session, TermClient, Renderer and Shell instances; only the
discord.py client underneath the Session is mocked.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import discord
import pytest

from discordterm import Config, Session, State, TermClient
from common.shell import Shell


def text_channel(id, name, guild, position=0, history=()):
    """discord.TextChannel stand-in with a fixed message history"""
    channel = Mock(spec=discord.TextChannel)
    channel.id = id
    channel.name = name
    channel.guild = guild
    channel.position = position
    channel.topic = None
    channel.send = AsyncMock()
    channel.history_items = list(history)

    def history_(limit):
        async def iterate():
            for message in channel.history_items[:limit]:
                yield message
        return iterate()

    channel.history = history_
    return channel


def discord_guild(id, name):
    guild = Mock()
    guild.id = id
    guild.name = name
    guild.channels = []
    guild.get_member = Mock(return_value=None)
    guild.fetch_member = AsyncMock(side_effect=discord.DiscordException('unknown member'))
    guild.fetch_channels = AsyncMock(side_effect=lambda: list(guild.channels))
    return guild


@pytest.fixture
def discord_guilds():
    """Two guilds; the first has channels 'general' and 'random'"""
    alpha = discord_guild(100, 'Alpha')
    beta = discord_guild(200, 'Beta')
    alpha.channels = [
        text_channel(101, 'general', alpha, 0),
        text_channel(102, 'random', alpha, 1),
    ]
    beta.channels = [text_channel(201, 'lobby', beta, 0)]
    return [alpha, beta]


@pytest.fixture
def discord_client(discord_guilds):
    """Mocked discord.py client serving the guild fixtures"""
    guilds = {g.id: g for g in discord_guilds}
    channels = {c.id: c for g in discord_guilds for c in g.channels}

    client = Mock()
    client.guilds = discord_guilds
    client.user = SimpleNamespace(id=1, name='me')
    client.get_guild = Mock(side_effect=guilds.get)
    client.get_channel = Mock(side_effect=channels.get)
    client.login = AsyncMock()
    client.connect = AsyncMock()
    client.wait_until_ready = AsyncMock()
    client.change_presence = AsyncMock()
    client.is_closed = Mock(return_value=False)
    client.close = AsyncMock()
    return client


@pytest.fixture
def integration_session(discord_client):
    return Session(client=discord_client)


@pytest.fixture
def integration_client(integration_session, term, out):
    return TermClient(integration_session, Config(color_text=False), State(),
                      term, out)


@pytest.fixture
def integration_shell(integration_client):
    return Shell(integration_client)


@pytest.fixture
def message_factory(factory):
    """Build a message posted in one of the fixture channels"""
    def make(id, content, channel, author=None):
        return factory.message(
            id, content, author=author, channel=channel, guild=channel.guild
        )
    return make


@pytest.fixture
def run_lines(integration_shell):
    """
    Feed lines to the shell's input loop and run it to the end of input.

    Returns:
        Coroutine function: run_lines(*lines)
    """
    async def run(*lines):
        pending = [line + '\n' for line in lines]

        async def readline():
            return pending.pop(0) if pending else ''

        integration_shell.readline = readline
        await integration_shell.run()

    return run
