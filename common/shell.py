#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""The command shell of the discordterm console client"""
import asyncio
import logging
import os
import re
import sys

from discordterm.error import CommandError, PreconditionError, ValidationError
from discordterm.session import STATUSES
from discordterm.util import (
    Args, parse_command, is_on, is_off, format_on_off, color_status, pad
)


class Shell:
    '''Line-oriented command shell for the terminal client.'''
    logger = logging.getLogger(__name__)

    PREFIX = '/'

    WELCOME = """
================================================================
            discordterm
================================================================
"""

    HELP_TEXT = """====| Commands: |==============================================
/say [text]  say something in the currently active channel
             lines without a leading / are sent as well
/gl          lists all the available guilds
/cl          lists all the available channels in the selected guild
/leave       leave the current channel to stop listening for messages

/g [n]       selects a guild by index. Without an index, prints
             information about the current guild
/gr [text]   selects a guild by name with the given regular expression
/c [n]       selects a channel by index. Without an index, prints
             information about the current channel
/cr [text]   selects a channel by name with a regular expression
             example: "/cr go_discordgo"

/m [n]       retrieves n messages from the active channel's history,
             10 if no argument is given
/p [line 1]  send a multi-line paragraph to the current channel
             type /send to send the message or /cancel to drop it
/upload [path]          upload the file at 'path' to the current channel
/delete [messageid]     delete a message in the active channel
/edit [messageid] [txt] edit a message in the active channel

/img-auto [on|off]      automatically print message images
/img-color [on|off]     print images with color or in grayscale
/text-color [on|off]    enable / disable colored text
/show-nicknames [on|off] show nicknames in place of usernames
/img-width [width]      default width of ascii images, at least 1
/img-height [height]    default height of ascii images, 0 keeps the ratio
/img [messageid] [width] display the images of the newest of the past 100
                         messages whose id contains messageid
/avatar [userid] [width] display the avatar of the given user

/members [lastid]       up to 1000 members of the current guild;
                        pass the last id to retrieve more
/presences              presences in the current guild
/member-info [userid]   nickname and roles of a member
/roles [guildid]        roles in the given or current guild
/member-add-role [userid] [roleid]     add a role to a member
/member-remove-role [userid] [roleid]  remove a role from a member
/member-nick [userid] [nickname]       set a member's nickname
/nick [nickname]                       set your own nickname

/username [username]    set a new username for your account
/status [online|idle|dnd|invisible|offline]  update your online status
/playing [text]         set your playing status
/playing-off            clear your playing status

/ls [n]      lists guilds outside of a guild, channels inside a guild,
             or the last n (25) messages inside a channel
/cd [i|..]   selects the guild or channel with index i; '..' leaves
             the channel, or the guild when no channel is selected

/help        prints this help menu
/exit        closes this program
================================================================
"""

    def __init__(self, client, readline=None, out=None):
        ''' Initialize the shell

        Args:
            client: discordterm.TermClient instance to control
            readline: coroutine function returning the next input line,
                      or an empty string at end of input (default: stdin)
            out: output stream (default: the client's output stream)
        '''
        self.client = client
        self.session = client.session
        self.state = client.state
        self.config = client.config
        self.renderer = client.renderer
        self.term = client.term
        self.out = out or client.out
        self.readline = readline or self.read_stdin
        self.running = False

    @staticmethod
    async def read_stdin():
        ''' Read a line from stdin without blocking the event loop '''
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, sys.stdin.readline)

    def write(self, string):
        print(string, file=self.out)
        self.out.flush()

    def style(self, color, text):
        text = str(text)
        if not self.config.color_text:
            return text
        return getattr(self.term, color)(text)

    async def run(self):
        ''' Read and execute lines until /exit or end of input '''
        self.running = True
        self.logger.info('shell started')
        while self.running:
            line = await self.readline()

            # Check for EOF
            if not line:
                self.logger.info('end of input')
                break

            try:
                result = await self.handle_line(line)
                if result:
                    self.write(result)

            except asyncio.CancelledError:
                raise

            except Exception as ex:
                self.write(f'Error: {ex}')
                self.logger.debug('command error: %r', ex, exc_info=True)

        self.running = False

    async def handle_line(self, line):
        """Execute one line of input

        Args:
            line: A command starting with '/', or a message to send

        Returns:
            String response or None
        """
        line = line.strip()
        if not line:
            return None
        if line.startswith(self.PREFIX):
            return await self.handle_command(line[len(self.PREFIX):])
        return await self.send(line)

    async def handle_command(self, cmd):
        """Handle a command

        Args:
            cmd: The command string without the leading '/'

        Returns:
            String response or None

        Raises:
            CommandError: On missing selection or invalid arguments
        """
        command, args = parse_command(cmd)
        if not command:
            return None

        # === Navigation ===
        if command in ('gl', 'lg', 'guild_list', 'guilds'):
            return await self.cmd_guild_list(args)

        elif command in ('cl', 'lc', 'channel_list', 'channels'):
            return await self.cmd_channel_list(args)

        elif command == 'ls':
            return await self.cmd_ls(args)

        elif command == 'cd':
            return await self.cmd_cd(args)

        elif command in ('g', 'guild'):
            return await self.cmd_guild(args)

        elif command in ('gr', 'guild_regex'):
            return await self.cmd_guild_regex(args)

        elif command in ('c', 'channel'):
            return await self.cmd_channel(args)

        elif command in ('cr', 'channel_regex'):
            return await self.cmd_channel_regex(args)

        elif command == 'leave':
            self.state.set_channel(None)
            return None

        # === Messages ===
        elif command in ('m', 'messages'):
            return await self.cmd_messages(args)

        elif command == 'say':
            return await self.send(args.after(0))

        elif command in ('p', 'paragraph'):
            return await self.cmd_paragraph(args)

        elif command == 'upload':
            return await self.cmd_upload(args)

        elif command == 'delete':
            return await self.cmd_delete(args)

        elif command == 'edit':
            return await self.cmd_edit(args)

        # === Images and display ===
        elif command == 'img':
            return await self.cmd_img(args)

        elif command == 'avatar':
            return await self.cmd_avatar(args)

        elif command == 'img-width':
            return self.cmd_image_size(args, 'image_width', 'width')

        elif command == 'img-height':
            return self.cmd_image_size(args, 'image_height', 'height')

        elif command in ('img-auto', 'image-auto'):
            return self.toggle(
                args, 'show_images',
                'Now automatically displaying images',
                'No longer automatically displaying images'
            )

        elif command in ('img-color', 'color-images'):
            return self.toggle(
                args, 'color_images',
                'Images will be rendered in color',
                'Images will be rendered in grayscale'
            )

        elif command in ('text-color', 'color-text'):
            return self.toggle(
                args, 'color_text',
                'Text will be colored',
                'Text will not be colored'
            )

        elif command in ('show-nicknames', 'show-nicks'):
            return self.toggle(
                args, 'show_nicknames',
                'Nicknames will be displayed',
                'Nicknames will not be displayed'
            )

        # === Members and roles ===
        elif command == 'members':
            return await self.cmd_members(args)

        elif command == 'presences':
            return await self.cmd_presences(args)

        elif command == 'roles':
            return await self.cmd_roles(args)

        elif command in ('member-info', 'm-info'):
            return await self.cmd_member_info(args)

        elif command == 'member-add-role':
            return await self.cmd_member_role(args, add=True)

        elif command == 'member-remove-role':
            return await self.cmd_member_role(args, add=False)

        elif command == 'member-nick':
            return await self.cmd_member_nick(args)

        elif command == 'nick':
            return await self.cmd_nick(args)

        # === Profile ===
        elif command == 'username':
            return await self.cmd_username(args)

        elif command == 'status':
            return await self.cmd_status(args)

        elif command == 'playing':
            return await self.cmd_playing(args)

        elif command == 'playing-off':
            await self.session.set_playing(None)
            return 'Playing status set to nothing'

        # === Shell ===
        elif command == 'help':
            return self.HELP_TEXT

        elif command in ('exit', 'quit'):
            self.logger.info('exiting shell')
            self.running = False
            return 'Goodbye!'

        else:
            return f"Unknown command: /{command}\nType /help for available commands"

    # === Argument helpers ===

    def require_guild(self, message='You need to select a guild first'):
        guild_id = self.state.active_guild()
        if guild_id is None:
            raise PreconditionError(message)
        return guild_id

    def require_channel(self, message='You need to be in a channel to use this command'):
        channel_id = self.state.active_channel()
        if channel_id is None:
            raise PreconditionError(message)
        return channel_id

    @staticmethod
    def parse_index(text, what):
        if not text:
            raise PreconditionError(f'Please select a {what} index')
        try:
            return int(text)
        except ValueError:
            raise ValidationError(f'Invalid {what} index: {text}') from None

    @staticmethod
    def parse_width(text, default):
        """Optional image width argument"""
        if not text:
            return default
        try:
            width = int(text)
        except ValueError:
            raise ValidationError(f'Invalid width: {text}') from None
        if width <= 0:
            raise ValidationError('Width must be a positive number')
        return width

    @staticmethod
    def compile_pattern(args):
        text = args.after(0)
        if not text:
            raise PreconditionError('Please provide a regular expression to search with')
        try:
            return re.compile(text, re.IGNORECASE)
        except re.error as ex:
            raise ValidationError(f'Invalid regular expression: {ex}') from None

    def format_entry(self, index, name, active, unread):
        """One line of a guild or channel listing"""
        if not self.config.color_text:
            line = f'{index}\t{name}'
            return f'{line} [{unread}]' if unread else line
        if active:
            return f"{self.style('magenta', index)}\t{self.style('magenta', name)}"
        if unread:
            return (f"{self.style('green', index)}\t{self.style('green', name)} "
                    f"{self.style('red', f'[{unread}]')}")
        return f'{index}\t{name}'

    # === Navigation ===

    async def cmd_guild_list(self, args):
        """List guilds with their unread message counts"""
        guilds = self.session.guilds()
        if not guilds:
            return "No guilds available"
        active = self.state.active_guild()
        lines = []
        for i, guild in enumerate(guilds):
            guild_id = str(guild.id)
            lines.append(self.format_entry(
                i, guild.name, guild_id == active,
                self.state.guild_unread(guild_id)
            ))
        return '\n'.join(lines)

    async def cmd_channel_list(self, args):
        """List the channels of the active guild"""
        guild_id = self.require_guild()
        guild = await self.session.guild(guild_id)
        channels = await self.session.guild_channels(guild_id)
        active = self.state.active_channel()
        lines = [guild.name]
        for i, channel in enumerate(channels):
            channel_id = str(channel.id)
            lines.append(self.format_entry(
                i, channel.name, channel_id == active,
                self.state.channel_unread(guild_id, channel_id)
            ))
        return '\n'.join(lines)

    async def cmd_ls(self, args):
        """List whatever is one level below the current selection"""
        if self.state.active_channel() is not None:
            return await self.cmd_messages(args, default=25)
        if self.state.active_guild() is not None:
            return await self.cmd_channel_list(args)
        return await self.cmd_guild_list(args)

    async def cmd_cd(self, args):
        """Select by index, or leave the channel/guild with '..'"""
        if args.get(0) == '..':
            if self.state.active_channel() is not None:
                self.state.set_channel(None)
            elif self.state.active_guild() is not None:
                self.state.set_guild(None)
            return None
        if self.state.active_guild() is not None:
            return await self.cmd_channel(args)
        return await self.cmd_guild(args)

    async def cmd_guild(self, args):
        """Select a guild by index"""
        if not args.get(0) and self.state.active_guild() is not None:
            return await self.guild_info(self.state.active_guild())

        n = self.parse_index(args.get(0), 'guild')
        guilds = self.session.guilds()
        if not guilds:
            raise ValidationError('No guilds available')
        if n < 0 or n >= len(guilds):
            raise ValidationError(
                f'Guild index {n} out of bounds (0-{len(guilds) - 1})'
            )
        return await self.select_guild(guilds[n])

    async def select_guild(self, guild):
        """Make a guild active and enter its first channel"""
        self.state.set_guild(str(guild.id))
        self.state.set_channel(None)
        self.logger.info('selected guild %s', guild.id)
        lines = [f'Selected guild: {guild.name}']
        try:
            lines.append(await self.select_channel_index(0))
        except CommandError as ex:
            lines.append(str(ex))
        return '\n'.join(lines)

    async def guild_info(self, guild_id):
        guild = await self.session.guild(guild_id)
        return '\n'.join([
            f'Guild: {guild.name}',
            f'ID: {guild.id}',
            f'Unread: {self.state.guild_unread(guild_id)}',
        ])

    async def cmd_guild_regex(self, args):
        """Select the first guild whose name matches a regex"""
        pattern = self.compile_pattern(args)
        for guild in self.session.guilds():
            if pattern.search(guild.name):
                return await self.select_guild(guild)
        # No match leaves the selection untouched
        return None

    async def cmd_channel(self, args):
        """Select a channel of the active guild by index"""
        self.require_guild()
        if not args.get(0) and self.state.active_channel() is not None:
            return await self.channel_info(self.state.active_channel())
        n = self.parse_index(args.get(0), 'channel')
        return await self.select_channel_index(n)

    async def select_channel_index(self, n):
        guild_id = self.require_guild()
        channels = await self.session.guild_channels(guild_id)
        if not channels:
            raise ValidationError('This guild has no text channels')
        if n < 0 or n >= len(channels):
            raise ValidationError(
                f'Channel index {n} out of bounds (0-{len(channels) - 1})'
            )
        return self.select_channel(guild_id, channels[n])

    def select_channel(self, guild_id, channel):
        """Make a channel active and mark it as read"""
        channel_id = str(channel.id)
        self.state.set_channel(channel_id)
        self.state.mark_read(guild_id, channel_id)
        self.logger.info('selected channel %s', channel_id)
        return f'Selected channel: {channel.name}'

    async def channel_info(self, channel_id):
        channel = await self.session.channel(channel_id)
        lines = [f'Channel: #{channel.name}', f'ID: {channel.id}']
        topic = getattr(channel, 'topic', None)
        if topic:
            lines.append(f'Topic: {topic}')
        return '\n'.join(lines)

    async def cmd_channel_regex(self, args):
        """Select the first channel whose name matches a regex"""
        guild_id = self.require_guild('You must be in a guild to use this command')
        pattern = self.compile_pattern(args)
        channels = await self.session.guild_channels(guild_id)
        for channel in channels:
            if pattern.search(channel.name):
                return self.select_channel(guild_id, channel)
        # No match leaves the selection untouched
        return None

    # === Messages ===

    async def cmd_messages(self, args, default=10):
        """Render the latest messages of the active channel, oldest first"""
        channel_id = self.require_channel(
            'You need to be in a channel to retrieve messages'
        )
        try:
            limit = int(args.get(0))
        except ValueError:
            limit = default

        messages = await self.session.messages(channel_id, limit)
        if not messages:
            return 'No messages to retrieve'
        for message in reversed(messages):
            await self.renderer.render_message(message)
        return None

    async def send(self, text):
        """Send a message to the active channel"""
        channel_id = self.require_channel('You are not currently in a channel')
        if not text:
            raise PreconditionError('Please enter a message to send')
        await self.session.send_message(channel_id, text)
        return None

    async def cmd_paragraph(self, args):
        """Collect lines until /send or /cancel, then send them as one message"""
        channel_id = self.require_channel()

        lines = []
        if args.after(0):
            lines.append(args.after(0))

        self.write('Enter your paragraph in multiple lines. '
                   'Type /send or /cancel to finish')
        while True:
            line = await self.readline()
            if not line:
                return 'Paragraph discarded'
            line = line.rstrip('\r\n')
            if line == '/send':
                await self.session.send_message(channel_id, '\n'.join(lines))
                return None
            if line == '/cancel':
                return 'Paragraph discarded'
            lines.append(line)

    async def cmd_upload(self, args):
        """Upload a file to the active channel"""
        channel_id = self.require_channel(
            'You need to be in a channel to upload a file'
        )
        path = args.after(0)
        if not path:
            raise PreconditionError('Please enter a file path to upload')
        if not os.path.isfile(path):
            raise ValidationError(f'No such file: {path}')
        await self.session.send_file(channel_id, path)
        return f'Uploaded {os.path.basename(path)}'

    async def cmd_delete(self, args):
        channel_id = self.require_channel()
        if not args.get(0):
            raise PreconditionError('Please provide a message ID as an argument')
        await self.session.delete_message(channel_id, args.get(0))
        # Refresh the message list after deletion
        return await self.cmd_messages(Args(), default=25)

    async def cmd_edit(self, args):
        channel_id = self.require_channel()
        if not args.get(0):
            raise PreconditionError('Please specify a message id')
        await self.session.edit_message(channel_id, args.get(0), args.after(1))
        # Refresh the message list after editing
        return await self.cmd_messages(Args(), default=25)

    # === Images and display ===

    async def cmd_img(self, args):
        """Render a recent message with its images shown"""
        channel_id = self.require_channel()
        message_id = args.get(0)
        if not message_id:
            raise PreconditionError('Please provide a message ID')
        width = self.parse_width(args.get(1), self.config.image_width)

        messages = await self.session.messages(channel_id, 100)
        for message in messages:
            if message_id in str(message.id):
                break
        else:
            raise ValidationError(
                'Message ID was not in the past 100 messages, '
                'or did not contain the given substring'
            )

        await self.renderer.render_message(message, self.config.copy(
            show_images=True, image_width=width, image_height=0
        ))
        return None

    async def cmd_avatar(self, args):
        """Print the avatar of a member, or your own"""
        guild_id = self.require_guild('You must be in a guild to use this command')
        if args.get(0):
            user = await self.session.member(guild_id, args.get(0))
        else:
            user = self.session.current_user
        width = self.parse_width(args.get(1), self.config.image_width)

        url = str(user.display_avatar.with_size(256).url)
        self.write(self.style('green', url))
        await self.renderer.render_image_url(url, self.config.copy(
            show_images=True, image_width=width, image_height=0
        ))
        return None

    def cmd_image_size(self, args, attr, label):
        try:
            n = int(args.get(0))
        except ValueError:
            raise ValidationError('Invalid number') from None
        # Height 0 keeps the aspect ratio; width must be at least one glyph
        if n < 0 or (n == 0 and attr == 'image_width'):
            raise ValidationError('Invalid number')
        setattr(self.config, attr, n)
        return f'Image {label} set to {n}'

    def toggle(self, args, attr, on_message, off_message):
        """Show or set an on/off display option

        Any value other than on/off leaves the option unchanged.
        """
        value = args.get(0)
        if not value:
            return format_on_off(getattr(self.config, attr))
        if is_on(value):
            setattr(self.config, attr, True)
            return on_message
        if is_off(value):
            setattr(self.config, attr, False)
            return off_message
        return None

    # === Members and roles ===

    async def cmd_members(self, args):
        """List up to 1000 members of the active guild"""
        guild_id = self.require_guild('You need to be in a guild to use this command')
        members = await self.session.members(guild_id, after=args.get(0) or None)
        if not members:
            return 'No users returned'
        lines = []
        for member in members:
            username = member.name
            lines.append(
                f"{self.style('cyan', member.id)}\t{self.style('red', username)}"
                f"{pad(username, 35)} {self.style('green', member.nick or '')}"
            )
        return '\n'.join(lines)

    async def cmd_presences(self, args):
        """List the online members of the active guild with their activity"""
        guild_id = self.require_guild('You need to be in a guild to use this command')
        members = await self.session.presences(guild_id)
        if not members:
            return 'No users returned'
        lines = []
        for member in members:
            username = member.name
            nick = member.nick or ''
            status = str(member.status)
            game = member.activity.name if member.activity else ''
            if self.config.color_text:
                status_text = color_status(self.term, status)
            else:
                status_text = status
            lines.append(
                f"{self.style('cyan', member.id)}\t{self.style('red', username)}"
                f"{pad(username, 35)} {self.style('green', nick)}{pad(nick, 25)} "
                f"{status_text}{pad(status, 7)} {game}"
            )
        return '\n'.join(lines)

    async def cmd_roles(self, args):
        """List the roles of a guild, highest first"""
        guild_id = args.get(0) or self.state.active_guild()
        if guild_id is None:
            raise PreconditionError(
                'Supply a guild ID or enter a guild to use this command'
            )
        roles = await self.session.roles(guild_id)
        if not roles:
            return 'No roles found'
        return '\n'.join(
            f"{self.style('cyan', role.id)}\t{self.style('green', role.name)}"
            for role in roles
        )

    async def cmd_member_info(self, args):
        """Show the nickname, discriminator and roles of a member"""
        guild_id = self.require_guild('You must be in a guild to use this command')
        member = await self.session.member(guild_id, args.get(0) or '@me')
        roles = [role for role in member.roles if role.name != '@everyone']

        info = [
            f'ID           \t{member.id}',
            f"Username:    \t{self.style('red', member.name)}",
            f"Nickname:    \t{self.style('green', member.nick or '')}",
            f"Discriminator\t{self.style('cyan', member.discriminator)}",
            f"Avatar URL:  \t{self.style('green', member.display_avatar.url)}",
        ]
        if roles:
            info.append('Roles: ')
            for role in roles:
                info.append(
                    f"    {self.style('cyan', role.id)}\t{self.style('red', role.name)}"
                )
        return '\n'.join(info)

    async def cmd_member_role(self, args, add):
        guild_id = self.require_guild('You need to be in a guild to use this command')
        user_id, role_id = args.get(0), args.get(1)
        if not user_id or not role_id:
            raise PreconditionError('Please provide a member ID and a role ID')
        if add:
            await self.session.add_role(guild_id, user_id, role_id)
            return 'Granted role to user'
        await self.session.remove_role(guild_id, user_id, role_id)
        return 'Removed role from user'

    async def cmd_member_nick(self, args):
        """Set the nickname of a member in the active guild"""
        guild_id = self.require_guild('You need to be in a guild to use this command')
        user_id = args.get(0)
        if not user_id:
            raise PreconditionError('You need to enter a userID')
        return await self.set_nickname(guild_id, user_id, args.after(1))

    async def cmd_nick(self, args):
        """Set your own nickname in the active guild"""
        guild_id = self.require_guild('You need to be in a guild to use this command')
        return await self.set_nickname(guild_id, '@me', args.after(0))

    async def set_nickname(self, guild_id, user_id, nickname):
        await self.session.set_nickname(guild_id, user_id, nickname)
        if nickname:
            return f'Nickname set to {nickname}'
        return 'Nickname cleared'

    # === Profile ===

    async def cmd_username(self, args):
        username = args.get(0)
        if not username:
            raise PreconditionError(
                'Please enter the username you wish to use as an argument'
            )
        await self.session.set_username(username)
        return f'Username changed to {username}'

    async def cmd_status(self, args):
        status = args.get(0).lower()
        if not status:
            raise PreconditionError('Please enter a status to switch to')
        if status not in STATUSES:
            raise ValidationError(
                f'Unknown status: {status} '
                '(online, idle, dnd, invisible or offline)'
            )
        await self.session.set_status(status)
        return f'Status set to {status}'

    async def cmd_playing(self, args):
        game = args.after(0)
        if not game:
            raise PreconditionError(
                'Please enter a game name, or use /playing-off to clear it'
            )
        await self.session.set_playing(game)
        return f'Playing status set to: {game}'
