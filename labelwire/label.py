# -*- coding: utf-8 -*-
"""
Value types shared by the whole pipeline: label geometry, font request and
printer address.
"""
from collections import namedtuple

from .errors import UnsupportedLabel

# The print head lays 4 dots per millimetre across the tape.
DOTS_PER_MM = 4

# Longest label the firmware buffers, in dots along the tape.
MAX_LABEL_LENGTH = 2000

MM_PER_INCH = 25.4


class LabelSpec(namedtuple('LabelSpec', ('width_class', 'dots_per_row', 'max_length'))):
    """
    Geometry of one label tape.

    Only the width classes in ``_width_map`` can be printed. The others the
    printer family knows of are listed in ``_reserved`` and refused until their
    packing geometry is confirmed on hardware.

    usage::

        label = LabelSpec.for_width('12mm')
        label.dots_per_row  # 48
    """
    __slots__ = ()

    _width_map = {
        '12mm': 12,
    }
    _reserved = ('6mm', '18mm')

    @classmethod
    def for_width(cls, width_class='12mm', dots_per_mm=DOTS_PER_MM, max_length=MAX_LABEL_LENGTH):
        """
        Build the spec of a width class.

        :param width_class: e.g. '12mm'
        :param dots_per_mm: Print head resolution
        :param max_length: Longest printable label in dots
        :raises UnsupportedLabel: for reserved or unknown width classes
        """
        if isinstance(width_class, LabelSpec):
            return width_class
        if width_class not in cls._width_map:
            raise UnsupportedLabel(width_class)
        return cls(width_class, cls._width_map[width_class] * dots_per_mm, max_length)

    @property
    def width_mm(self):
        return self._width_map[self.width_class]

    @property
    def dpi(self):
        """Print resolution in dots per inch, used to scale point sizes"""
        return int(round(self.dots_per_row / self.width_mm * MM_PER_INCH))

    @property
    def row_bytes(self):
        return self.dots_per_row // 8

    @classmethod
    def width_classes(cls):
        return sorted(cls._width_map)


class FontSpec(namedtuple('FontSpec', ('family', 'size', 'style'))):
    """
    The font a label should be set in.

    :param family: Family name (e.g. 'DejaVu Sans') or a path to a font file
    :param size: Size in points
    :param style: Style name as stored in the font, e.g. 'Regular' or 'Bold'
    """
    __slots__ = ()

    def __new__(cls, family, size=12, style='Regular'):
        return super().__new__(cls, family, size, style)

    @classmethod
    def from_dict(cls, d):
        return cls(d['family'], d.get('size', 12), d.get('style', 'Regular'))

    def __str__(self):
        return '{0} {1} {2}pt'.format(self.family, self.style, self.size)


DEFAULT_FONT = FontSpec('DejaVu Sans', 12, 'Book')


class PrinterEndpoint(namedtuple('PrinterEndpoint', ('host', 'port'))):
    """Network address of one printer. Hashable, so it keys the send locks."""
    __slots__ = ()

    def __str__(self):
        return '{0}:{1}'.format(self.host, self.port)
