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

__all__ = (
    "TmxException",
    "DocumentParseError",
    "UnsupportedEncoding",
    "UnsupportedCompression",
    "PayloadDecodeError",
    "InvalidGID",
    "ReferenceResolutionError",
)


class TmxException(Exception):
    pass


class DocumentParseError(TmxException):
    """The TMX or TSX document is malformed."""


class UnsupportedEncoding(TmxException):
    def __init__(self, encoding: str) -> None:
        super().__init__(f"layer encoding {encoding} is not supported.")
        self.encoding = encoding


class UnsupportedCompression(TmxException):
    def __init__(self, compression: str) -> None:
        super().__init__(f"layer compression {compression} is not supported.")
        self.compression = compression


class PayloadDecodeError(TmxException):
    """Layer data could not be decoded with its declared encoding."""


class InvalidGID(TmxException):
    def __init__(self, gid: int) -> None:
        super().__init__(f"invalid tile GID: {gid}")
        self.gid = gid


class ReferenceResolutionError(TmxException):
    """An external tileset or image could not be opened or decoded."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path
