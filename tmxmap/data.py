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
import gzip
import logging
import re
import struct
import zlib
from base64 import b64decode
from typing import List, Optional, Tuple

from .errors import PayloadDecodeError, UnsupportedCompression, UnsupportedEncoding
from .objects import Data, Layer, TileFlags, empty_flags

__all__ = (
    "GID_MASK",
    "GID_TRANS_FLIPX",
    "GID_TRANS_FLIPY",
    "GID_TRANS_ROT",
    "decode_gid",
    "decode_layer_data",
    "reshape_data",
    "unpack_gids",
)

logger = logging.getLogger(__name__)

# Tiled gid flags
GID_TRANS_FLIPX = 1 << 31
GID_TRANS_FLIPY = 1 << 30
GID_TRANS_ROT = 1 << 29
GID_MASK = GID_TRANS_FLIPX | GID_TRANS_FLIPY | GID_TRANS_ROT

csv_stray = re.compile(r"[^0-9,\s]")
csv_separators = re.compile(r"[\s,]+")

decompressors = {
    "gzip": gzip.decompress,
    "zlib": zlib.decompress,
}


def decode_gid(raw_gid: int) -> Tuple[int, TileFlags]:
    """Decode a GID from TMX data.

    Args:
        raw_gid (int): GID, as reported by Tiled.

    Returns:
        Tuple[int, TileFlags]: Tuple of the GID after rotation flags, and TileFlags object

    """
    if raw_gid < GID_TRANS_ROT:
        return raw_gid, empty_flags
    return (
        raw_gid & ~GID_MASK,
        TileFlags(
            raw_gid & GID_TRANS_FLIPX == GID_TRANS_FLIPX,
            raw_gid & GID_TRANS_FLIPY == GID_TRANS_FLIPY,
            raw_gid & GID_TRANS_ROT == GID_TRANS_ROT,
        ),
    )


def reshape_data(gids: List[int], width: int) -> List[List[int]]:
    """Change 1D list to 2d list

    Args:
        gids (List[int]): List of gid ints.
        width (int): Width of each row.

    Returns:
        List[List[int]]: 2D nested list object.

    """
    return [gids[i : i + width] for i in range(0, len(gids), width)]


def _unpack_plain(data: Data, size: int) -> List[int]:
    if len(data.tiles) != size:
        raise PayloadDecodeError(
            f"layer data has {len(data.tiles)} tile elements, expected {size}"
        )
    return [tile.gid for tile in data.tiles]


def _unpack_csv(text: str, size: int) -> List[int]:
    # anything but digits and separators is dropped; whitespace and newlines
    # separate values like commas and empty fields are dropped
    text = csv_stray.sub("", text)
    tokens = [token for token in csv_separators.split(text) if token]
    if len(tokens) > size:
        raise PayloadDecodeError(
            f"csv layer data has {len(tokens)} values, expected {size}"
        )
    gids = [0] * size
    for index, token in enumerate(tokens):
        if int(token) > 0xFFFFFFFF:
            raise PayloadDecodeError(f"tile GID {token} is out of range")
        gids[index] = int(token)
    return gids


def _unpack_base64(text: str, compression: Optional[str], size: int) -> List[int]:
    if compression and compression not in decompressors:
        raise UnsupportedCompression(compression)
    try:
        payload = b64decode(text.strip())
    except ValueError as e:
        raise PayloadDecodeError("cannot decode base64 layer data") from e
    if compression:
        try:
            payload = decompressors[compression](payload)
        except (OSError, EOFError, zlib.error) as e:
            raise PayloadDecodeError(
                f"cannot decompress {compression} layer data"
            ) from e

    count = len(payload) // 4
    if count > size:
        raise PayloadDecodeError(
            f"base64 layer data has {count} values, expected {size}"
        )
    gids = [0] * size
    gids[:count] = struct.unpack("<%dL" % count, payload[: count * 4])
    if count < size:
        # TODO: make short payloads an error once a strict loading mode exists
        logger.warning(
            "layer data has %d of %d tiles, the rest are left empty", count, size
        )
    return gids


def unpack_gids(data: Data, width: int, height: int) -> List[int]:
    """Return all gids from encoded/compressed layer data

    The result always has ``width * height`` entries, in row-major order.
    Flip flags are left packed in the values.

    Args:
        data (Data): Layer data as it appears in the document.
        width (int): Width of the layer, in tiles.
        height (int): Height of the layer, in tiles.

    Returns:
        List[int]: List of all the raw GIDs in the layer.

    Raises:
        UnsupportedEncoding: if the encoding is not plain, csv or base64.
        UnsupportedCompression: if base64 data uses an unknown compression.
        PayloadDecodeError: if the payload does not decode.

    """
    size = width * height
    encoding = data.encoding
    if not encoding:
        return _unpack_plain(data, size)
    elif encoding == "csv":
        return _unpack_csv(data.text, size)
    elif encoding == "base64":
        return _unpack_base64(data.text, data.compression, size)
    raise UnsupportedEncoding(encoding)


def decode_layer_data(layer: Layer) -> List[int]:
    return unpack_gids(layer.data, layer.width, layer.height)
