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
from __future__ import annotations

from collections import namedtuple
from dataclasses import dataclass, field
from itertools import chain
from typing import Any, Dict, Iterator, List, Optional, Tuple

__all__ = (
    "Data",
    "DataTile",
    "Image",
    "Layer",
    "Map",
    "NIL_TILE",
    "Object",
    "ObjectGroup",
    "Tile",
    "TileFlags",
    "TileInfo",
    "TileSet",
)

flag_names = ("flipped_horizontally", "flipped_vertically", "flipped_diagonally")

TileFlags = namedtuple("TileFlags", flag_names)
empty_flags = TileFlags(False, False, False)


@dataclass
class Image:
    source: str
    trans: Optional[str] = None
    width: int = 0
    height: int = 0
    # decoded pixels; None until the image is resolved
    surface: Any = None


@dataclass
class Tile:
    id: int
    type: Optional[str] = None
    probability: float = 1.0
    properties: Dict = field(default_factory=dict)
    image: Optional[Image] = None


@dataclass
class TileSet:
    """Represents a Tiled Tileset

    A tileset that references an external TSX file only carries ``firstgid``
    and ``source`` until it is resolved; resolution replaces everything else
    with the contents of the TSX file.

    """

    firstgid: int
    source: Optional[str] = None
    name: Optional[str] = None
    tilewidth: int = 0
    tileheight: int = 0
    spacing: int = 0
    margin: int = 0
    tilecount: int = 0
    columns: int = 0
    offset: Tuple[int, int] = (0, 0)
    properties: Dict = field(default_factory=dict)
    image: Optional[Image] = None
    tiles: List[Tile] = field(default_factory=list)

    @property
    def is_external(self) -> bool:
        return bool(self.source)

    def get_tile(self, local_id: int) -> Optional[Tile]:
        """Return the per-tile override for a local id, or None"""
        for tile in self.tiles:
            if tile.id == local_id:
                return tile
        return None


@dataclass(frozen=True)
class TileInfo:
    """A resolved GID: owning tileset, local tile id and flip flags.

    The tileset is shared with the map; a TileInfo is only meaningful
    while the map it came from is alive. Equality and hashing look at the
    tile id and flags only, so TileInfo can key a dict or live in a set.

    """

    id: int = 0
    tileset: Optional[TileSet] = field(default=None, repr=False, compare=False)
    flipped_horizontally: bool = False
    flipped_vertically: bool = False
    flipped_diagonally: bool = False
    nil: bool = False

    @property
    def flags(self) -> TileFlags:
        return TileFlags(
            self.flipped_horizontally,
            self.flipped_vertically,
            self.flipped_diagonally,
        )

    @property
    def tile(self) -> Optional[Tile]:
        """The tileset's override for this tile, if it has one"""
        if self.nil:
            return None
        return self.tileset.get_tile(self.id)

    @property
    def image(self) -> Optional[Image]:
        """Per-tile image if the tile has one, else the tileset image"""
        if self.nil:
            return None
        tile = self.tile
        if tile is not None and tile.image is not None:
            return tile.image
        return self.tileset.image


# every empty cell in every layer refers to this one instance
NIL_TILE = TileInfo(nil=True)


@dataclass
class DataTile:
    gid: int = 0


@dataclass
class Data:
    encoding: Optional[str] = None
    compression: Optional[str] = None
    text: str = ""
    tiles: List[DataTile] = field(default_factory=list)


@dataclass
class Layer:
    name: Optional[str]
    width: int
    height: int
    data: Data
    id: int = 0
    x: int = 0
    y: int = 0
    opacity: float = 1.0
    visible: bool = True
    offsetx: float = 0.0
    offsety: float = 0.0
    properties: Dict = field(default_factory=dict)
    # filled in by decoding the layer data
    tiles: List[TileInfo] = field(default_factory=list)

    def __iter__(self) -> Iterator[Tuple[int, int, TileInfo]]:
        yield from self.iter_tiles()

    def iter_tiles(self) -> Iterator[Tuple[int, int, TileInfo]]:
        """Yields X, Y, TileInfo tuples for each non-empty tile"""
        for index, tile in enumerate(self.tiles):
            if not tile.nil:
                y, x = divmod(index, self.width)
                yield x, y, tile

    def rows(self) -> List[List[TileInfo]]:
        width = self.width
        return [self.tiles[i : i + width] for i in range(0, len(self.tiles), width)]

    def get_tile(self, x: int, y: int) -> TileInfo:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"Tile coordinates ({x},{y}) are invalid")
        try:
            return self.tiles[y * self.width + x]
        except IndexError:
            raise ValueError(f"Layer {self.name} has not been decoded")


@dataclass
class Object:
    id: int = 0
    name: Optional[str] = None
    type: Optional[str] = None
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rotation: float = 0.0
    gid: int = 0
    visible: bool = True
    properties: Dict = field(default_factory=dict)
    # point lists are kept as the raw "x,y x,y ..." strings
    polygon: Optional[str] = None
    polyline: Optional[str] = None
    tile: TileInfo = NIL_TILE


@dataclass
class ObjectGroup:
    name: Optional[str] = None
    color: Optional[str] = None
    opacity: float = 1.0
    visible: bool = True
    offsetx: float = 0.0
    offsety: float = 0.0
    properties: Dict = field(default_factory=dict)
    objects: List[Object] = field(default_factory=list)

    def __iter__(self) -> Iterator[Object]:
        yield from self.objects


@dataclass
class Map:
    version: Optional[str] = None
    tiledversion: Optional[str] = None
    orientation: str = "orthogonal"
    renderorder: str = "right-down"
    width: int = 0
    height: int = 0
    tilewidth: int = 0
    tileheight: int = 0
    hexsidelength: int = 0
    staggeraxis: Optional[str] = None
    staggerindex: Optional[str] = None
    backgroundcolor: Optional[str] = None
    nextlayerid: int = 0
    nextobjectid: int = 0
    infinite: bool = False
    filename: Optional[str] = None
    properties: Dict = field(default_factory=dict)
    tilesets: List[TileSet] = field(default_factory=list)
    layers: List[Layer] = field(default_factory=list)
    objectgroups: List[ObjectGroup] = field(default_factory=list)

    def __repr__(self):
        return '<{0}: "{1}">'.format(self.__class__.__name__, self.filename)

    @property
    def objects(self) -> Iterator[Object]:
        """Return iterator of all the objects associated with this map"""
        return chain(*self.objectgroups)

    def tile_layers(self, include_invisible: bool = False) -> Iterator[Layer]:
        if include_invisible:
            return iter(self.layers)
        return (layer for layer in self.layers if layer.visible)

    def get_layer_by_name(self, name: str) -> Layer:
        """Return a layer by name"""
        for layer in self.layers:
            if layer.name == name:
                return layer
        raise ValueError(f'Layer "{name}" not found')

    def get_tileset_by_name(self, name: str) -> TileSet:
        for tileset in self.tilesets:
            if tileset.name == name:
                return tileset
        raise ValueError(f'Tileset "{name}" not found')

    def get_object_by_name(self, name: str) -> Object:
        """Find an object by name"""
        for obj in self.objects:
            if obj.name == name:
                return obj
        raise ValueError(f'Object "{name}" not found')

    def get_tile(self, x: int, y: int, layer: int) -> TileInfo:
        """Return the tile for this location"""
        if not (x >= 0 and y >= 0 and layer >= 0):
            raise ValueError(
                f"Tile coordinates must be non-negative, were ({x}, {y}), layer={layer}"
            )
        try:
            tile_layer = self.layers[layer]
        except IndexError:
            raise ValueError(f"Layer not found: {layer}")
        return tile_layer.get_tile(x, y)
