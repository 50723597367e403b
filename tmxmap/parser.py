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

Structural mapping of TMX and TSX documents into the records in
``tmxmap.objects``.  Nothing here opens a file other than the document
it is asked to parse; external tilesets and images are left as references.

"""
import logging
import os
from typing import IO, Any, Dict, Iterator, Optional, Union
from xml.etree import ElementTree

from .errors import DocumentParseError
from .objects import (
    Data,
    DataTile,
    Image,
    Layer,
    Map,
    Object,
    ObjectGroup,
    Tile,
    TileSet,
)

__all__ = (
    "convert_to_bool",
    "getdefault",
    "parse_map",
    "parse_properties",
    "parse_tileset",
    "parse_tmx",
    "parse_tsx",
)

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike, IO[bytes]]


def convert_to_bool(value: Any) -> bool:
    """Convert a few common variations of "true" and "false" to boolean

    Args:
        value (Any): Value to test.

    Raises:
        ValueError: If `value` cannot be converted to a boolean.

    Returns:
        bool: The converted boolean.

    """
    value = str(value).strip()
    if value:
        value = value.lower()[0]
        if value in ("1", "y", "t"):
            return True
        if value in ("-", "0", "n", "f"):
            return False
        raise ValueError('cannot parse "{}" as bool'.format(value))
    else:
        return False


# casting for properties type
prop_type = {
    "bool": convert_to_bool,
    "color": str,
    "file": str,
    "float": float,
    "int": int,
    "object": int,
    "string": str,
}


def getdefault(d: Dict):
    """Return dictionary key as optional type, with a default"""

    def get(key, type=None, default=None):
        try:
            value = d[key]
        except KeyError:
            return default
        if type is not None:
            return type(value)
        return value

    return get


def parse_properties(node: ElementTree.Element) -> Dict:
    """Parse a Tiled xml node and return a dict.

    Args:
        node (ElementTree.Element): Etree element to inspect.

    Returns:
        Dict: Dictionary of the properties, as set in the Tiled editor.

    """
    d = dict()
    for child in node.findall("properties"):
        for subnode in child.findall("property"):
            value = subnode.get("value")
            if value is None:
                value = subnode.text or ""
            type_name = subnode.get("type")
            if type_name in prop_type:
                value = prop_type[type_name](value)
            elif type_name is not None:
                logger.info(
                    "Type {} Not a built-in type. Defaulting to string-cast.".format(
                        type_name
                    )
                )
            d[subnode.get("name")] = value
    return d


def parse_image(node: Optional[ElementTree.Element], folder: str = "") -> Optional[Image]:
    if node is None:
        return None
    get = getdefault(node.attrib)
    source = get("source", default="")
    # images in a tsx file are relative to the tsx file, not the tmx
    if source and folder:
        source = os.path.join(folder, source)
    return Image(
        source=source,
        trans=get("trans"),
        width=get("width", int, 0),
        height=get("height", int, 0),
    )


def parse_tile(node: ElementTree.Element, folder: str = "") -> Tile:
    get = getdefault(node.attrib)
    return Tile(
        id=get("id", int, 0),
        type=get("type") or get("class"),
        probability=get("probability", float, 1.0),
        properties=parse_properties(node),
        image=parse_image(node.find("image"), folder),
    )


def parse_tileset(node: ElementTree.Element, folder: str = "") -> TileSet:
    """Parse a Tileset from ElementTree xml element.

    A ``<tileset>`` inside a map that points at a TSX file only yields the
    reference: ``firstgid`` and ``source``.

    Args:
        node (ElementTree.Element): Node to parse.
        folder (str): Directory of the TSX file, relative to the map.

    Returns:
        TileSet: The parsed tileset.

    """
    get = getdefault(node.attrib)
    firstgid = get("firstgid", int, 0)
    source = get("source")
    if source:
        return TileSet(firstgid=firstgid, source=source)

    offset = node.find("tileoffset")
    if offset is None:
        offset = (0, 0)
    else:
        offset = (int(offset.get("x", 0)), int(offset.get("y", 0)))

    return TileSet(
        firstgid=firstgid,
        name=get("name"),
        tilewidth=get("tilewidth", int, 0),
        tileheight=get("tileheight", int, 0),
        spacing=get("spacing", int, 0),
        margin=get("margin", int, 0),
        tilecount=get("tilecount", int, 0),
        columns=get("columns", int, 0),
        offset=offset,
        properties=parse_properties(node),
        image=parse_image(node.find("image"), folder),
        tiles=[parse_tile(child, folder) for child in node.findall("tile")],
    )


def parse_data(node: Optional[ElementTree.Element]) -> Data:
    if node is None:
        raise DocumentParseError("layer has no data element")
    if node.find("chunk") is not None:
        msg = "TMX map size: infinite is not supported."
        logger.error(msg)
        raise DocumentParseError(msg)
    get = getdefault(node.attrib)
    return Data(
        encoding=get("encoding") or None,
        compression=get("compression") or None,
        text=node.text or "",
        tiles=[DataTile(int(child.get("gid", 0))) for child in node.findall("tile")],
    )


def parse_layer(node: ElementTree.Element) -> Layer:
    get = getdefault(node.attrib)
    return Layer(
        id=get("id", int, 0),
        name=get("name"),
        x=get("x", int, 0),
        y=get("y", int, 0),
        width=get("width", int, 0),
        height=get("height", int, 0),
        opacity=get("opacity", float, 1.0),
        visible=get("visible", convert_to_bool, True),
        offsetx=get("offsetx", float, 0),
        offsety=get("offsety", float, 0),
        properties=parse_properties(node),
        data=parse_data(node.find("data")),
    )


def parse_object(node: ElementTree.Element) -> Object:
    get = getdefault(node.attrib)
    polygon = node.find("polygon")
    polyline = node.find("polyline")
    return Object(
        id=get("id", int, 0),
        name=get("name"),
        type=get("type") or get("class"),
        x=get("x", float, 0.0),
        y=get("y", float, 0.0),
        width=get("width", float, 0.0),
        height=get("height", float, 0.0),
        rotation=get("rotation", float, 0.0),
        gid=get("gid", int, 0),
        visible=get("visible", convert_to_bool, True),
        properties=parse_properties(node),
        polygon=None if polygon is None else polygon.get("points"),
        polyline=None if polyline is None else polyline.get("points"),
    )


def parse_objectgroup(node: ElementTree.Element) -> ObjectGroup:
    get = getdefault(node.attrib)
    return ObjectGroup(
        name=get("name"),
        color=get("color"),
        opacity=get("opacity", float, 1.0),
        visible=get("visible", convert_to_bool, True),
        offsetx=get("offsetx", float, 0.0),
        offsety=get("offsety", float, 0.0),
        properties=parse_properties(node),
        objects=[parse_object(child) for child in node.findall("object")],
    )


def iter_layer_nodes(node: ElementTree.Element, tag: str) -> Iterator[ElementTree.Element]:
    """Yield layer nodes in document order, flattening group layers"""
    for child in node:
        if child.tag == tag:
            yield child
        elif child.tag == "group":
            yield from iter_layer_nodes(child, tag)


def parse_map(node: ElementTree.Element, filename: Optional[str] = None) -> Map:
    """Parse a map from ElementTree xml node.

    Args:
        node (ElementTree.Element): ElementTree xml node to parse.
        filename (Optional[str]): Path the map was read from, if any.

    Returns:
        Map: The map, with layer data and tileset references unresolved.

    """
    get = getdefault(node.attrib)
    return Map(
        version=get("version"),
        tiledversion=get("tiledversion"),
        orientation=get("orientation", default="orthogonal"),
        renderorder=get("renderorder", default="right-down"),
        width=get("width", int, 0),
        height=get("height", int, 0),
        tilewidth=get("tilewidth", int, 0),
        tileheight=get("tileheight", int, 0),
        hexsidelength=get("hexsidelength", int, 0),
        staggeraxis=get("staggeraxis"),
        staggerindex=get("staggerindex"),
        backgroundcolor=get("backgroundcolor"),
        nextlayerid=get("nextlayerid", int, 0),
        nextobjectid=get("nextobjectid", int, 0),
        infinite=get("infinite", convert_to_bool, False),
        filename=filename,
        properties=parse_properties(node),
        tilesets=[parse_tileset(child) for child in node.findall("tileset")],
        layers=[parse_layer(child) for child in iter_layer_nodes(node, "layer")],
        objectgroups=[
            parse_objectgroup(child)
            for child in iter_layer_nodes(node, "objectgroup")
        ],
    )


def _parse_root(source: Source, tag: str) -> ElementTree.Element:
    try:
        root = ElementTree.parse(source).getroot()
    except ElementTree.ParseError as e:
        raise DocumentParseError(f"cannot parse {tag} document: {e}") from e
    if root.tag != tag:
        raise DocumentParseError(f"expected a <{tag}> document, found <{root.tag}>")
    return root


def parse_tmx(source: Source) -> Map:
    """Parse a TMX document into records, without resolving anything

    Args:
        source: Path of the map, or a binary file object.

    Raises:
        DocumentParseError: if the document is malformed.

    """
    root = _parse_root(source, "map")
    filename = None if hasattr(source, "read") else os.fspath(source)
    try:
        return parse_map(root, filename)
    except ValueError as e:
        raise DocumentParseError(f"invalid map document: {e}") from e


def parse_tsx(source: Source, folder: str = "") -> TileSet:
    """Parse a standalone TSX document

    Args:
        source: Path of the tileset, or a binary file object.
        folder (str): Directory of the TSX file, relative to the map; image
            paths are rebased onto it.

    Raises:
        DocumentParseError: if the document is malformed.

    """
    root = _parse_root(source, "tileset")
    try:
        return parse_tileset(root, folder)
    except ValueError as e:
        raise DocumentParseError(f"invalid tileset document: {e}") from e
