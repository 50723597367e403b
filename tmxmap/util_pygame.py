# -*- coding: utf-8 -*-
"""
Copyright (C) 2012-2023, Leif Theden <leif.theden@gmail.com>

This file is part of tmxmap.

tmxmap is free software: you can redistribute it and/or modify
it under the terms of the GNU Lesser General Public License as
published by the Free Software Foundation, either version 3 of the
License, or (at your option) any later version.

tmxmap is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Lesser General Public License for more details.

You should have received a copy of the GNU Lesser General Public
License along with tmxmap.  If not, see <http://www.gnu.org/licenses/>.
"""
import logging
from typing import IO, Optional

logger = logging.getLogger(__name__)

try:
    import pygame
except ImportError:
    logger.error("cannot import pygame (is it installed?)")
    raise

__all__ = ["pygame_image_loader", "smart_convert"]


def smart_convert(original: pygame.Surface, colorkey, pixelalpha: bool) -> pygame.Surface:
    """
    Return new pygame Surface with optimal pixel/data format

    Only possible once a display mode has been set.

    Parameters:
        original: surface to inspect
        colorkey: optional colorkey for the image
        pixelalpha: if true, prefer per-pixel alpha surfaces

    Returns:
        new surface

    """
    if colorkey:
        tile = original.convert()
        tile.set_colorkey(colorkey, pygame.RLEACCEL)
        return tile

    if pixelalpha:
        # count the number of pixels that are not transparent
        px = pygame.mask.from_surface(original).count()
        width, height = original.get_size()
        if px != width * height:
            return original.convert_alpha()
    return original.convert()


def pygame_image_loader(fp: IO[bytes], colorkey: Optional[str] = None, **kwargs) -> pygame.Surface:
    """
    tmxmap image loader for pygame

    The image format is detected from the file contents.

    Parameters:
        fp: open binary file of the image
        colorkey: colorkey for the image, as a Tiled hex string

    Returns:
        the decoded surface

    """
    pixelalpha = kwargs.get("pixelalpha", True)
    image = pygame.image.load(fp)

    if colorkey:
        colorkey = pygame.Color("#{0}".format(colorkey.lstrip("#")))

    if pygame.display.get_surface() is None:
        if colorkey:
            image.set_colorkey(colorkey)
        return image

    return smart_convert(image, colorkey, pixelalpha)
