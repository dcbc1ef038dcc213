"""
Terminal chat client for Discord

Logs in with a token, then reads commands and messages from stdin while
incoming messages are printed to the console.

Usage:
    python -m bots.term.bot TOKEN
    python -m bots.term.bot -t TOKEN --show-images --img-width 80

See /help inside the client for the list of commands.
"""
