#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import sys
import json
import logging
import argparse

from discordterm import Config


LOG_FORMAT = '[%(asctime).19s] [%(name)s] [%(levelname)s] %(message)s'
LOG_LEVELS = ('debug', 'info', 'warning', 'error', 'critical')


class RobustFileHandler(logging.FileHandler):
    """FileHandler that gracefully handles flush errors on Windows"""

    def flush(self):
        """Flush the stream, catching OSError on Windows file handles"""
        try:
            super().flush()
        except OSError as e:
            # Windows can fail to flush with "Invalid argument" when the
            # file handle is in an inconsistent state
            if e.errno != 22:  # EINVAL
                raise


def configure_logger(logger,
                     log_file=None,
                     log_format=None,
                     log_level=logging.INFO):
    """Configure a logger with a file or stream handler

    Args:
        logger: Logger instance or logger name string
        log_file: File path string or file-like object (None for stderr)
        log_format: Format string for log messages
        log_level: Logging level (e.g., logging.INFO, logging.DEBUG)

    Returns:
        Configured logger instance
    """
    # Create file handler if path string, otherwise stream handler
    if isinstance(log_file, str):
        handler = RobustFileHandler(
            log_file,
            mode='a',
            encoding='utf-8',
            errors='replace'
        )
    else:
        handler = logging.StreamHandler(log_file)  # Default to stderr if None

    formatter = logging.Formatter(log_format)

    if isinstance(logger, str):
        logger = logging.getLogger(logger)

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(log_level)

    return logger


def build_parser():
    """Command line options of the terminal client"""
    parser = argparse.ArgumentParser(
        prog='discordterm',
        description='A simple command line client for discord'
    )
    parser.add_argument(
        'args', nargs='*', metavar='TOKEN',
        help='token to log in with when -t is not given'
    )
    parser.add_argument(
        '-t', '--token',
        help="user or bot token to log in with; bot tokens may be prefixed with 'Bot '"
    )
    parser.add_argument('--config', help='JSON configuration file')
    parser.add_argument(
        '--show-nicknames', action=argparse.BooleanOptionalAction, default=None,
        help="show users' nicknames in place of usernames when possible"
    )
    parser.add_argument(
        '-i', '--show-images', action=argparse.BooleanOptionalAction, default=None,
        help='automatically print images'
    )
    parser.add_argument('--img-width', type=int, help='default width of images')
    parser.add_argument('--img-height', type=int, help='default height of images')
    parser.add_argument(
        '--color-images', action=argparse.BooleanOptionalAction, default=None,
        help='render images with color'
    )
    parser.add_argument(
        '-c', '--color-text', action=argparse.BooleanOptionalAction, default=None,
        help='color the text output'
    )
    parser.add_argument(
        '--log-level', type=str.lower, choices=LOG_LEVELS,
        help='logging level (default: warning)'
    )
    parser.add_argument('--log-file', help='write logs to this file instead of stderr')
    return parser


# command line option -> configuration key
OPTION_KEYS = {
    'show_nicknames': 'show_nicknames',
    'show_images': 'show_images',
    'img_width': 'image_width',
    'img_height': 'image_height',
    'color_images': 'color_images',
    'color_text': 'color_text',
    'log_level': 'log_level',
    'log_file': 'log_file',
}


def get_config(argv=None):
    """Load configuration from the command line and an optional JSON file

    Values from the JSON file are defaults; options given on the command
    line override them.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Tuple of (conf, kwargs) where:
            conf: Merged configuration dictionary
            kwargs: Client parameters ('token' and 'config')

    Exits:
        Exits with status 2 on invalid arguments, 1 if the config
        file cannot be read
    """
    parser = build_parser()
    opts = parser.parse_args(argv)

    conf = {}
    if opts.config:
        try:
            with open(opts.config, 'r') as fp:
                conf = json.load(fp)
        except (OSError, ValueError) as ex:
            print('cannot read config file %s: %s' % (opts.config, ex),
                  file=sys.stderr)
            sys.exit(1)

    for option, key in OPTION_KEYS.items():
        value = getattr(opts, option)
        if value is not None:
            conf[key] = value

    if opts.token:
        conf['token'] = opts.token
    elif opts.args:
        conf['token'] = opts.args[0]

    # Parse log level from string to logging constant
    log_level = getattr(logging, conf.get('log_level', 'warning').upper())

    # stdout is the chat console, so logs go to stderr or a file
    if conf.get('log_file'):
        configure_logger(logging.getLogger(), conf['log_file'],
                         LOG_FORMAT, log_level)
    else:
        logging.basicConfig(level=log_level, format=LOG_FORMAT)

    defaults = Config()
    config = Config(**{
        name: conf.get(name, getattr(defaults, name))
        for name in Config.FIELDS
    })

    return conf, {
        'token': conf.get('token'),  # None when it has to be prompted for
        'config': config
    }
