"""
Shared pytest fixtures for the discordterm test suite.

This file contains fixtures that are available to all test files.
Discord objects are stood in for by SimpleNamespace instances carrying
only the attributes the client reads.
"""
import io
import json
from types import SimpleNamespace
from unittest.mock import Mock, AsyncMock

import pytest
from blessed import Terminal

from discordterm import Config, State, TermClient
from common.shell import Shell


@pytest.fixture
def config():
    """
    Default display options.

    Returns:
        Config: Fresh options object, safe to mutate
    """
    return Config()


@pytest.fixture
def plain_config():
    """Display options without any colour."""
    return Config(color_text=False)


@pytest.fixture
def state():
    return State()


@pytest.fixture
def term():
    """
    Terminal that never emits escape sequences.

    Returns:
        Terminal: blessed terminal with styling disabled, so colour
                  methods return the text unchanged
    """
    return Terminal(force_styling=None)


@pytest.fixture
def out():
    """Captured console output."""
    return io.StringIO()


# Discord object factories


def make_guild(id, name, **kwargs):
    return SimpleNamespace(id=id, name=name, **kwargs)


def make_channel(id, name, guild=None, topic=None, position=0):
    return SimpleNamespace(id=id, name=name, guild=guild, topic=topic,
                           position=position)


def make_user(id, name, nick=None, display_name=None, **kwargs):
    return SimpleNamespace(
        id=id, name=name, nick=nick,
        display_name=display_name or nick or name, **kwargs
    )


def make_attachment(filename, url, content_type=None):
    return SimpleNamespace(filename=filename, url=url, content_type=content_type)


def make_embed(title=None, description=None, fields=(), image=None,
               thumbnail=None):
    return SimpleNamespace(
        title=title,
        description=description,
        fields=[SimpleNamespace(name=n, value=v) for n, v in fields],
        image=SimpleNamespace(url=image),
        thumbnail=SimpleNamespace(url=thumbnail),
    )


def make_message(id, content='', author=None, channel=None, guild=None,
                 attachments=(), embeds=(), mentions=(), role_mentions=(),
                 channel_mentions=()):
    return SimpleNamespace(
        id=id,
        content=content,
        author=author or make_user(7, 'alice'),
        channel=channel,
        guild=guild,
        attachments=list(attachments),
        embeds=list(embeds),
        mentions=list(mentions),
        role_mentions=list(role_mentions),
        channel_mentions=list(channel_mentions),
    )


@pytest.fixture
def factory():
    """
    Discord object factories.

    Returns:
        SimpleNamespace: guild, channel, user, attachment, embed
                         and message constructors
    """
    return SimpleNamespace(
        guild=make_guild,
        channel=make_channel,
        user=make_user,
        attachment=make_attachment,
        embed=make_embed,
        message=make_message,
    )


@pytest.fixture
def guilds():
    """Two guilds with two and one text channels."""
    first = make_guild(100, 'Alpha')
    second = make_guild(200, 'Beta')
    return [first, second]


@pytest.fixture
def channels(guilds):
    """Text channels by guild id."""
    return {
        '100': [
            make_channel(101, 'general', guilds[0], topic='chatter'),
            make_channel(102, 'go_discordgo', guilds[0], position=1),
        ],
        '200': [
            make_channel(201, 'lobby', guilds[1]),
        ],
    }


@pytest.fixture
def mock_session(guilds, channels):
    """
    Mock Session adapter.

    Returns:
        Mock: Session with the guilds and channels fixtures behind it
              and every network operation mocked
    """
    session = Mock()
    by_id = {str(g.id): g for g in guilds}

    session.guilds = Mock(return_value=list(guilds))
    session.guild = AsyncMock(side_effect=lambda gid: by_id[gid])
    session.guild_channels = AsyncMock(
        side_effect=lambda gid: list(channels.get(gid, []))
    )
    session.channel = AsyncMock(side_effect=lambda cid: next(
        c for chans in channels.values() for c in chans if str(c.id) == cid
    ))
    session.messages = AsyncMock(return_value=[])
    session.send_message = AsyncMock()
    session.send_file = AsyncMock()
    session.delete_message = AsyncMock()
    session.edit_message = AsyncMock()
    session.member = AsyncMock(return_value=make_user(7, 'alice'))
    session.members = AsyncMock(return_value=[])
    session.presences = AsyncMock(return_value=[])
    session.roles = AsyncMock(return_value=[])
    session.add_role = AsyncMock()
    session.remove_role = AsyncMock()
    session.set_nickname = AsyncMock()
    session.set_username = AsyncMock()
    session.set_status = AsyncMock()
    session.set_playing = AsyncMock()
    session.login = AsyncMock()
    session.connect = AsyncMock()
    session.wait_until_ready = AsyncMock()
    session.close = AsyncMock()
    session.current_user = make_user(1, 'me')
    return session


@pytest.fixture
def term_client(mock_session, plain_config, state, term, out):
    """TermClient over the mock session, writing plain text to `out`."""
    return TermClient(mock_session, plain_config, state, term, out)


def scripted_readline(lines):
    """
    Line source returning the given lines, then end of input.

    Args:
        lines: Lines without trailing newlines

    Returns:
        Coroutine function usable as Shell(readline=...)
    """
    pending = [line + '\n' for line in lines]

    async def readline():
        if pending:
            return pending.pop(0)
        return ''

    return readline


@pytest.fixture
def make_shell(term_client):
    """
    Build a Shell reading from a script of lines.

    Returns:
        function: make_shell(*lines) -> Shell
    """
    def make(*lines):
        return Shell(term_client, readline=scripted_readline(lines))
    return make


@pytest.fixture
def shell(make_shell):
    return make_shell()


@pytest.fixture
def temp_config_file(tmp_path):
    """
    Create temporary JSON config file for testing.

    Returns:
        Path: Path to temporary config.json file
    """
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        'token': 'file-token',
        'image_width': 60,
        'show_images': True,
        'color_text': False,
    }, indent=2))
    return config_file


# Pytest configuration helpers


def pytest_configure(config):
    """
    Pytest configuration hook.

    Registers custom markers.
    """
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "asyncio: Async tests")
