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
License along with tmxmap.  If not, see <https://www.gnu.org/licenses/>.

"""
import logging
import os
from dataclasses import replace
from typing import Callable, Optional, Sequence

from .data import decode_gid, decode_layer_data
from .errors import DocumentParseError, InvalidGID, ReferenceResolutionError
from .objects import NIL_TILE, Image, Map, TileInfo, TileSet
from .parser import Source, parse_tmx, parse_tsx

__all__ = (
    "decode",
    "decode_layers",
    "decode_map",
    "load",
    "merge_tileset",
    "resolve_gid",
    "resolve_image",
    "resolve_tileset",
    "resolve_tilesets",
)

logger = logging.getLogger(__name__)

ImageLoader = Callable


def resolve_gid(tilesets: Sequence[TileSet], raw_gid: int) -> TileInfo:
    """Resolve a raw GID from layer data into a TileInfo.

    Tilesets must be in ascending ``firstgid`` order, as they are in the
    document.  They are scanned from the end, so the first one with a
    ``firstgid`` not above the GID is the owner.

    Args:
        tilesets (Sequence[TileSet]): The map's tilesets.
        raw_gid (int): GID, including flip flags.

    Returns:
        TileInfo: ``NIL_TILE`` for 0, otherwise the resolved tile.

    Raises:
        InvalidGID: if no tileset owns the GID.

    """
    if raw_gid == 0:
        return NIL_TILE

    clear_gid, flags = decode_gid(raw_gid)
    for tileset in reversed(tilesets):
        if tileset.firstgid <= clear_gid:
            return TileInfo(
                id=clear_gid - tileset.firstgid,
                tileset=tileset,
                flipped_horizontally=flags.flipped_horizontally,
                flipped_vertically=flags.flipped_vertically,
                flipped_diagonally=flags.flipped_diagonally,
            )

    raise InvalidGID(raw_gid)


def merge_tileset(reference: TileSet, body: TileSet) -> TileSet:
    """Combine a map's tileset reference with the external tileset body.

    Everything comes from ``body`` except ``firstgid`` and ``source``, which
    only exist on the reference in the map.

    """
    return replace(body, firstgid=reference.firstgid, source=reference.source)


def resolve_image(image: Image, base_dir: str, image_loader: ImageLoader, **kwargs) -> Image:
    """Return a copy of the image with its pixels loaded.

    Args:
        image (Image): Image record; ``source`` is relative to ``base_dir``.
        base_dir (str): Directory of the map.
        image_loader: Called with the open file and the colorkey.

    Raises:
        ReferenceResolutionError: if the file cannot be opened or decoded.

    """
    if not image.source:
        return image

    path = os.path.join(base_dir, image.source)
    try:
        with open(path, "rb") as fp:
            surface = image_loader(fp, image.trans, **kwargs)
    except OSError as e:
        msg = "Cannot open image {0}".format(path)
        logger.error(msg)
        raise ReferenceResolutionError(msg, path) from e
    except Exception as e:
        msg = "Cannot decode image {0}: {1}".format(path, e)
        logger.error(msg)
        raise ReferenceResolutionError(msg, path) from e
    return replace(image, surface=surface)


def _load_external_tileset(tileset: TileSet, base_dir: str) -> TileSet:
    path = os.path.join(base_dir, tileset.source)
    folder = os.path.dirname(tileset.source)
    try:
        with open(path, "rb") as fp:
            body = parse_tsx(fp, folder)
    except OSError as e:
        msg = "Error loading external tileset: {0}".format(path)
        logger.error(msg)
        raise ReferenceResolutionError(msg, path) from e
    except DocumentParseError as e:
        msg = "Error parsing external tileset {0}: {1}".format(path, e)
        logger.error(msg)
        raise ReferenceResolutionError(msg, path) from e
    return merge_tileset(tileset, body)


def resolve_tileset(
    tileset: TileSet,
    base_dir: str,
    image_loader: Optional[ImageLoader] = None,
    **kwargs,
) -> TileSet:
    """Resolve the external references of one tileset.

    The TSX document is merged first, because the image paths come from it.
    Images are only loaded when an image loader is given.

    Args:
        tileset (TileSet): Tileset as parsed from the map.
        base_dir (str): Directory of the map.
        image_loader (Optional[ImageLoader]): Image decoder, or None to skip images.

    Returns:
        TileSet: The resolved tileset.

    """
    if tileset.source:
        tileset = _load_external_tileset(tileset, base_dir)

    if image_loader is None:
        return tileset

    image = tileset.image
    if image is not None:
        image = resolve_image(image, base_dir, image_loader, **kwargs)

    tiles = [
        tile if tile.image is None
        else replace(tile, image=resolve_image(tile.image, base_dir, image_loader, **kwargs))
        for tile in tileset.tiles
    ]
    return replace(tileset, image=image, tiles=tiles)


def resolve_tilesets(
    tmx: Map,
    base_dir: str,
    image_loader: Optional[ImageLoader] = None,
    **kwargs,
) -> Map:
    """Resolve every tileset of the map, in document order"""
    tmx.tilesets = [
        resolve_tileset(tileset, base_dir, image_loader, **kwargs)
        for tileset in tmx.tilesets
    ]
    logger.debug("resolved %d tilesets from %s", len(tmx.tilesets), base_dir)
    return tmx


def decode_layers(tmx: Map) -> Map:
    """Decode every layer's data and resolve its GIDs into TileInfo.

    Tile objects (objects with a gid) are resolved as well.

    """
    tilesets = tmx.tilesets
    firstgids = [tileset.firstgid for tileset in tilesets]
    if firstgids != sorted(firstgids):
        logger.warning("tilesets are not in ascending firstgid order: %s", firstgids)

    for layer in tmx.layers:
        gids = decode_layer_data(layer)
        layer.tiles = [resolve_gid(tilesets, gid) for gid in gids]
        logger.debug("decoded layer %s, %d tiles", layer.name, len(layer.tiles))

    for obj in tmx.objects:
        if obj.gid:
            obj.tile = resolve_gid(tilesets, obj.gid)
    return tmx


def decode_map(
    tmx: Map,
    base_dir: str,
    image_loader: Optional[ImageLoader] = None,
    **kwargs,
) -> Map:
    """Resolve all tilesets, then decode all layers.

    Any error aborts the whole map.

    """
    resolve_tilesets(tmx, base_dir, image_loader, **kwargs)
    return decode_layers(tmx)


def load(filename: str, image_loader: Optional[ImageLoader] = None, **kwargs) -> Map:
    """Load a Tiled map with all external tilesets and images resolved.

    Args:
        filename (str): Path of the .tmx file.
        image_loader (Optional[ImageLoader]): Image decoder, defaults to
            ``tmxmap.util_pygame.pygame_image_loader``.
        load_images (bool): Decode tileset and tile images, default True.
        pixelalpha (bool): Forwarded to the image loader, default True.

    Returns:
        Map: The decoded map.

    """
    load_images = kwargs.pop("load_images", True)
    if not load_images:
        image_loader = None
    elif image_loader is None:
        from .util_pygame import pygame_image_loader

        image_loader = pygame_image_loader

    base_dir = os.path.dirname(os.path.abspath(filename))
    tmx = parse_tmx(filename)
    logger.debug("loading map %s", filename)
    return decode_map(tmx, base_dir, image_loader, **kwargs)


def decode(source: Source) -> Map:
    """Decode a map without touching external files.

    Layer GIDs are resolved into TileInfo, but tilesets that reference a TSX
    file are not merged and no image pixels are loaded.

    Args:
        source: Path of the .tmx file, or a binary file object.

    """
    return decode_layers(parse_tmx(source))
