#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging

from blessed import Terminal

from .config import Config
from .render import Renderer
from .state import State


class TermClient:
    """Terminal chat client.

    Owns the display options, the selection/unread state and the renderer,
    and bridges incoming gateway messages to them.

    Attributes
    ----------
    session : `discordterm.session.Session`
    config : `discordterm.config.Config`
    state : `discordterm.state.State`
    renderer : `discordterm.render.Renderer`
    term : `blessed.Terminal`
    """
    logger = logging.getLogger(__name__)

    def __init__(self, session, config=None, state=None,
                 term=None, out=None):
        self.session = session
        self.config = config or Config()
        self.state = state or State()
        self.term = term or Terminal()
        self.renderer = Renderer(session, self.config, self.term, out)
        self.session.on('message', self.handle_message)

    @property
    def out(self):
        return self.renderer.out

    async def handle_message(self, message):
        """Render a new message or count it as unread.

        Messages outside of any guild (direct messages) are ignored.
        """
        channel = message.channel
        guild = getattr(channel, 'guild', None)
        if guild is None:
            self.logger.debug('ignoring message %s outside of a guild', message.id)
            return
        channel_id = str(channel.id)
        if channel_id == self.state.active_channel():
            await self.renderer.render_message(message)
        else:
            self.state.mark_unread(str(guild.id), channel_id, 1)
