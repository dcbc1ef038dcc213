#!/usr/bin/env python3
# -*- coding: utf-8 -*-
class DiscordTermError(Exception):
    ''' Base class for all exceptions in the discordterm package '''

class CommandError(DiscordTermError):
    ''' Exception raised when a console command cannot be executed '''

class PreconditionError(CommandError):
    ''' Exception raised when a command needs a selection or argument that is missing '''

class ValidationError(CommandError):
    ''' Exception raised when a command argument is malformed or out of range '''

class ImageError(DiscordTermError):
    ''' Exception raised when an image cannot be decoded '''

class LoginError(DiscordTermError):
    ''' Exception raised when the session cannot log in or connect '''
