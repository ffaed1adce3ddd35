# -*- coding: utf-8 -*-
"""
Pack a GlyphRaster into the printer's 1bpp bitmap.

Two orientations exist, one per firmware:

ROW_MAJOR
    Rows are emitted top row first. Each row fills consecutive bytes,
    8 horizontal pixels per byte, the most significant bit being the
    leftmost pixel. The raster width must be a multiple of 8.
    len(bitmap) == width // 8 * height

COLUMN_MAJOR
    Columns are emitted left column first. Each column is read from the
    bottom row up, 8 vertical pixels per byte, the most significant bit
    being the lowest pixel of that byte's span. The raster height must be
    a multiple of 8.
    len(bitmap) == height // 8 * width

Ink is a set bit in both.
"""
import logging

from .errors import MisalignedRaster

logger = logging.getLogger(__name__)

ROW_MAJOR = 'row-major'
COLUMN_MAJOR = 'column-major'


class PackedBitmap:
    """
    Packed label bytes together with the geometry they were packed from.

    :param data: The packed bytes
    :param width: Raster width in pixels
    :param height: Raster height in pixels
    :param orientation: ROW_MAJOR or COLUMN_MAJOR
    """
    __slots__ = ('data', 'width', 'height', 'orientation')

    def __init__(self, data, width, height, orientation=ROW_MAJOR):
        self.data = bytes(data)
        self.width = width
        self.height = height
        self.orientation = orientation

    def __len__(self):
        return len(self.data)

    def __bytes__(self):
        return self.data

    def __eq__(self, other):
        if not isinstance(other, PackedBitmap):
            return NotImplemented
        return (self.data, self.width, self.height, self.orientation) == \
            (other.data, other.width, other.height, other.orientation)

    def __repr__(self):
        return '<PackedBitmap {0}x{1} {2} {3} bytes>'.format(self.width, self.height, self.orientation, len(self.data))


def _pack_bits(bits):
    """Pack an iterable of 0/1 into bytes, MSB first; len(bits) % 8 == 0"""
    packed = bytearray()
    current = 0
    pos = 0
    for bit in bits:
        current |= bit << (7 - pos)
        pos += 1
        if pos == 8:
            packed.append(current)
            current = 0
            pos = 0
    return packed


def pack_rows(raster):
    if raster.width % 8:
        raise MisalignedRaster('raster width {0} is not a multiple of 8'.format(raster.width))
    packed = bytearray()
    for r in raster.rows():
        packed += _pack_bits(r)
    return packed


def pack_columns(raster):
    if raster.height % 8:
        raise MisalignedRaster('raster height {0} is not a multiple of 8'.format(raster.height))
    rows = list(raster.rows())
    packed = bytearray()
    for x in range(raster.width):
        packed += _pack_bits(rows[y][x] for y in range(raster.height - 1, -1, -1))
    return packed


_packers = {
    ROW_MAJOR: pack_rows,
    COLUMN_MAJOR: pack_columns,
}


def pack(raster, orientation=ROW_MAJOR):
    """
    Convert a raster into the bitmap the printer expects.

    :param raster: GlyphRaster
    :param orientation: ROW_MAJOR or COLUMN_MAJOR
    :rtype: PackedBitmap
    :raises MisalignedRaster: when the raster is not byte aligned in the packed direction
    """
    if orientation not in _packers:
        raise ValueError('unknown orientation {0!r}'.format(orientation))
    data = _packers[orientation](raster)
    logger.debug("packed %dx%d %s into %d bytes", raster.width, raster.height, orientation, len(data))
    return PackedBitmap(data, raster.width, raster.height, orientation)
