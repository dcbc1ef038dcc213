#!/usr/bin/env python3
# -*- coding: utf-8 -*-


class Config:
    """Display options of the terminal client.

    Attributes
    ----------
    color_text : `bool`
        Colour text output.
    color_images : `bool`
        Render images with terminal colours.
    show_images : `bool`
        Inline images of attachments and embeds.
    show_nicknames : `bool`
        Display guild nicknames in place of usernames.
    image_width : `int`
        Width of rasterized images in characters.
    image_height : `int`
        Height of rasterized images in lines, 0 to keep the aspect ratio.
    """

    FIELDS = (
        'color_text', 'color_images', 'show_images',
        'show_nicknames', 'image_width', 'image_height'
    )

    def __init__(self, color_text=True, color_images=False,
                 show_images=False, show_nicknames=True,
                 image_width=100, image_height=0):
        self.color_text = color_text
        self.color_images = color_images
        self.show_images = show_images
        self.show_nicknames = show_nicknames
        self.image_width = image_width
        self.image_height = image_height

    def copy(self, **overrides):
        """Return a copy with some options replaced.

        Parameters
        ----------
        overrides : `dict`
            Option values to replace.

        Returns
        -------
        `discordterm.config.Config`
        """
        unknown = set(overrides) - set(self.FIELDS)
        if unknown:
            raise TypeError('unknown config options: %s' % ', '.join(sorted(unknown)))
        values = {name: getattr(self, name) for name in self.FIELDS}
        values.update(overrides)
        return Config(**values)

    def as_dict(self):
        return {name: getattr(self, name) for name in self.FIELDS}

    def __repr__(self):
        return '<Config %s>' % ' '.join(
            '%s=%r' % (name, getattr(self, name)) for name in self.FIELDS
        )
