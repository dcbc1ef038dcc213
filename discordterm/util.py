#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import asyncio
import logging
import requests


logger = logging.getLogger(__name__)

HTTP_TIMEOUT = 15


class Args(list):
    """Whitespace separated command arguments.

    Examples
    --------
    >>> args = Args('hello  big world'.split())
    >>> args.get(1)
    'big'
    >>> args.get(5)
    ''
    >>> args.after(1)
    'big world'
    """

    def get(self, n):
        """Return argument `n` or an empty string."""
        if 0 <= n < len(self):
            return self[n]
        return ''

    def after(self, n):
        """Join the arguments from index `n` to the end."""
        if 0 <= n < len(self):
            return ' '.join(self[n:])
        return ''


def parse_command(line):
    """Split a command line into its verb and arguments.

    Parameters
    ----------
    line : `str`
        Command line without the leading marker.

    Returns
    -------
    (`str`, `discordterm.util.Args`)

    Examples
    --------
    >>> parse_command('cr general chat')
    ('cr', ['general', 'chat'])
    >>> parse_command('')
    ('', [])
    """
    parts = line.split()
    if not parts:
        return '', Args()
    return parts[0], Args(parts[1:])


def is_on(text):
    return text.lower() == 'on'


def is_off(text):
    return text.lower() == 'off'


def format_on_off(value):
    return 'on' if value else 'off'


STATUS_COLORS = {
    'online': 'green',
    'dnd': 'red',
    'idle': 'yellow',
    'away': 'yellow',
}


def color_status(term, status):
    """Colour a presence status string.

    Parameters
    ----------
    term : `blessed.Terminal`
    status : `str`

    Returns
    -------
    `str`
    """
    status = str(status)
    color = STATUS_COLORS.get(status)
    if color is None:
        return status
    return getattr(term, color)(status)


def pad(text, width):
    """Spaces needed to pad `text` to `width` columns."""
    return ' ' * max(0, width - len(text))


async def get_bytes(url, timeout=HTTP_TIMEOUT):
    """Asynchronous HTTP GET request returning the response body.

    Parameters
    ----------
    url: `str`

    Returns
    -------
    `bytes`

    Raises
    ------
    `requests.RequestException`
    """
    def fetch():
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        return response.content

    # Run blocking requests.get in executor to avoid blocking event loop
    loop = asyncio.get_running_loop()
    logger.debug('get %s', url)
    return await loop.run_in_executor(None, fetch)
