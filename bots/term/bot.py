#!/usr/bin/env python3
"""Entry point of the discordterm console client.

Loads the configuration, logs in, waits for the gateway to become ready
and then runs the command shell until /exit, end of input or a lost
connection.
"""
import asyncio
import getpass
import logging
import sys

from discordterm import Session, TermClient
from discordterm.error import LoginError

from common import get_config, Shell


logger = logging.getLogger(__name__)


async def wait_until_ready(session, connect_task):
    """Wait for the ready event, or for the connection to fail first"""
    ready_task = asyncio.create_task(session.wait_until_ready())
    done, pending = await asyncio.wait(
        [connect_task, ready_task],
        return_when=asyncio.FIRST_COMPLETED
    )
    if ready_task in done:
        return

    ready_task.cancel()
    try:
        await ready_task
    except asyncio.CancelledError:
        pass

    # Re-raises the connection error, if any
    connect_task.result()
    raise LoginError('connection closed before the session was ready')


async def run_term_client(conf, kwargs, session=None, readline=None):
    """Run the client until the shell or the connection stops

    Args:
        conf: Configuration dictionary from get_config
        kwargs: 'token' and 'config' from get_config
        session: Session to use (default: a new one)
        readline: Line source for the shell (default: stdin)

    Raises:
        LoginError: When logging in or connecting fails
    """
    token = kwargs.get('token')
    if not token:
        token = getpass.getpass('Token: ')

    session = session or Session()
    client = TermClient(session, kwargs['config'])
    shell = Shell(client, readline=readline)

    connect_task = None
    try:
        await session.login(token)
        connect_task = asyncio.create_task(session.connect())
        await wait_until_ready(session, connect_task)

        shell.write(shell.WELCOME)
        shell.write(shell.HELP_TEXT)
        shell.write(f'Connected as {session.current_user}')

        shell_task = asyncio.create_task(shell.run())
        done, pending = await asyncio.wait(
            [shell_task, connect_task],
            return_when=asyncio.FIRST_COMPLETED
        )

        # Cancel remaining tasks
        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        for task in done:
            task.result()

    finally:
        session.off('message', client.handle_message)
        if connect_task is not None and not connect_task.done():
            connect_task.cancel()
        await session.close()


def main(argv=None):
    """Main entry point for the terminal client.

    Returns:
        int: Exit code (0 for success, 1 for error)
    """
    conf, kwargs = get_config(argv)
    try:
        asyncio.run(run_term_client(conf, kwargs))
        return 0
    except KeyboardInterrupt:
        return 0
    except LoginError as ex:
        logger.critical('%s', ex)
        return 1
    except Exception as ex:
        logger.critical('fatal error: %r', ex, exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
