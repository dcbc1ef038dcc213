#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Console rendering of Discord messages, attachments and embeds."""
import logging
import os
import sys

import discord
import requests
from blessed import Terminal

from .config import Config
from .error import ImageError
from .image import decode, rasterize
from .util import get_bytes, pad


IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.gif', '.webp', '.bmp'}


def is_image(attachment):
    content_type = getattr(attachment, 'content_type', None) or ''
    if content_type.startswith('image/'):
        return True
    ext = os.path.splitext(attachment.filename)[1].lower()
    return ext in IMAGE_EXTENSIONS


def first_line(text):
    return (text or '').split('\n')[0]


def embed_image_urls(embed):
    """URLs of the image and thumbnail of an embed, when present."""
    urls = []
    for proxy in (embed.image, embed.thumbnail):
        url = getattr(proxy, 'url', None)
        if url:
            urls.append(url)
    return urls


def frame_width(embed, config):
    """Width of the ASCII frame drawn around an embed.

    The frame is as wide as the longest of the title, the first line of the
    description, the field names and first value lines, and the images: the
    configured image width when images are inlined, else the URL lengths.
    """
    width = max(len(embed.title or ''), len(first_line(embed.description)))
    for field in embed.fields:
        width = max(width, len(field.name), len(first_line(field.value)))
    urls = embed_image_urls(embed)
    if config.show_images:
        if urls:
            width = max(width, config.image_width)
    else:
        for url in urls:
            width = max(width, len(url))
    return width


def replace_mentions(message):
    """Message content with mention placeholders replaced by names.

    Examples
    --------
    >>> from types import SimpleNamespace as NS
    >>> user = NS(id=42, display_name='alice')
    >>> replace_mentions(NS(content='hi <@42> and <@!42>', mentions=[user]))
    'hi @alice and @alice'
    """
    content = message.content
    for user in getattr(message, 'mentions', ()):
        name = '@' + user.display_name
        content = content.replace('<@%s>' % user.id, name)
        content = content.replace('<@!%s>' % user.id, name)
    for role in getattr(message, 'role_mentions', ()):
        content = content.replace('<@&%s>' % role.id, '@' + role.name)
    for channel in getattr(message, 'channel_mentions', ()):
        content = content.replace('<#%s>' % channel.id, '#' + channel.name)
    return content


class Renderer:
    """Writes messages to the console.

    Attributes
    ----------
    session : `discordterm.session.Session`
        Used to resolve guild nicknames.
    config : `discordterm.config.Config`
        Default display options.
    term : `blessed.Terminal`
    out : file-like
        Output stream.
    """
    logger = logging.getLogger(__name__)

    NAME_COLUMN = 30

    def __init__(self, session, config=None, term=None, out=None):
        self.session = session
        self.config = config or Config()
        self.term = term or Terminal()
        self.out = out or sys.stdout

    def write(self, *lines):
        for line in lines:
            print(line, file=self.out)
        self.out.flush()

    def style(self, config, color, text):
        """Colour `text` when coloured text is enabled."""
        text = str(text)
        if not config.color_text:
            return text
        return getattr(self.term, color)(text)

    async def display_name(self, message, config=None):
        """Guild nickname of the author, falling back to the username."""
        config = config or self.config
        author = message.author
        if not config.show_nicknames:
            return author.name
        guild = getattr(message, 'guild', None)
        if guild is None:
            return author.name
        try:
            member = await self.session.member(str(guild.id), str(author.id))
        except discord.DiscordException as ex:
            self.logger.debug('nickname lookup failed for %s: %r', author.id, ex)
            return author.name
        return getattr(member, 'nick', None) or author.name

    async def render_message(self, message, config=None):
        """Write a message with its attachments and embeds.

        Parameters
        ----------
        message : `discord.Message`
        config : `discordterm.config.Config`, optional
            Options overriding the renderer defaults for this call.
        """
        config = config or self.config
        name = await self.display_name(message, config)
        self.write('%s %s%s\t%s' % (
            self.style(config, 'cyan', name),
            pad(name, self.NAME_COLUMN),
            self.style(config, 'blue', message.id),
            self.style(config, 'blue', message.author.id)
        ))
        if message.content:
            self.write(replace_mentions(message))

        await self.render_attachments(message.attachments, config)
        await self.render_embeds(message.embeds, config)

        # Separate messages with a new line
        self.write('')

    async def render_attachments(self, attachments, config=None):
        config = config or self.config
        for attachment in attachments:
            if not attachment.url or not attachment.filename:
                continue
            self.write('%s \t%s' % (
                self.style(config, 'green', attachment.filename),
                self.style(config, 'green', attachment.url)
            ))
            if config.show_images and is_image(attachment):
                await self.inline_image(attachment.url, config)

    async def render_embeds(self, embeds, config=None):
        config = config or self.config
        for embed in embeds:
            width = frame_width(embed, config)

            self.write('| %s |' % ('=' * width))
            if embed.title:
                self.write(self.style(config, 'red', embed.title))
            if embed.description:
                self.write(embed.description)

            for url in embed_image_urls(embed):
                if config.show_images:
                    await self.inline_image(url, config)
                else:
                    self.write(self.style(config, 'green', url))

            for field in embed.fields:
                self.write('|- %s %s' % (field.name, '-' * (width - len(field.name) - 2)))
                self.write(field.value)

            self.write('| %s |' % ('_' * width))

    async def rasterize_url(self, url, config=None):
        """Fetch an image and rasterize it with the given options.

        Returns
        -------
        `list` of `str`

        Raises
        ------
        `requests.RequestException`
        `discordterm.error.ImageError`
        """
        config = config or self.config
        data = await get_bytes(url)
        image = decode(data)
        return rasterize(
            image,
            config.image_width,
            config.image_height,
            color=config.color_images,
            term=self.term
        )

    async def render_image_url(self, url, config=None):
        lines = await self.rasterize_url(url, config)
        self.write(*lines)

    async def inline_image(self, url, config=None):
        """Render an image inside a message, logging failures."""
        try:
            await self.render_image_url(url, config)
        except (requests.RequestException, ImageError) as ex:
            self.logger.warning('image %s: %s', url, ex)
