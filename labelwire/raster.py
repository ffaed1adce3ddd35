# -*- coding: utf-8 -*-
"""
Text rasterization.

Text is laid out glyph by glyph with FreeType-py into a monochrome pixel
buffer exactly as tall as the label tape is wide (in dots).
"""
import logging

from .errors import EmptyText, FontUnavailable, LabelTooLong
from .label import LabelSpec

logger = logging.getLogger(__name__)

# Grey-level bitmaps count as ink above 50% coverage.
GRAY_THRESHOLD = 128

FT_PIXEL_MODE_MONO = 1


class GlyphRaster:
    """
    A monochrome pixel buffer, one byte per pixel (0 or 1), row-major.

    :param width: Number of columns
    :param height: Number of rows
    :param pixels: (optional) width*height values, non-zero meaning ink
    """
    _width = 0
    _height = 0
    _pixels = b''

    def __init__(self, width, height, pixels=None):
        if width < 0 or height < 0:
            raise ValueError('negative raster size {0}x{1}'.format(width, height))
        if pixels is None:
            pixels = bytes(width * height)
        if len(pixels) != width * height:
            raise ValueError('{0} pixels given for a {1}x{2} raster'.format(len(pixels), width, height))
        self._width = width
        self._height = height
        self._pixels = bytes(1 if p else 0 for p in pixels)

    @classmethod
    def from_rows(cls, rows):
        """
        Build a raster from a list of equally long rows.

        Each row is a sequence of truthy/falsy values, or a str where '#' is ink.
        """
        rows = [[c == '#' for c in r] if isinstance(r, str) else list(r) for r in rows]
        width = len(rows[0]) if rows else 0
        for r in rows:
            if len(r) != width:
                raise ValueError('ragged rows: {0} and {1}'.format(width, len(r)))
        pixels = bytearray()
        for r in rows:
            pixels += bytes(1 if p else 0 for p in r)
        return cls(width, len(rows), pixels)

    @property
    def width(self):
        return self._width

    @property
    def height(self):
        return self._height

    def __getitem__(self, pos):
        x, y = pos
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise IndexError('pixel {0} outside {1}x{2}'.format(pos, self._width, self._height))
        return self._pixels[y * self._width + x] == 1

    def row(self, y):
        """Pixels of row y as bytes of 0/1"""
        return self._pixels[y * self._width:(y + 1) * self._width]

    def rows(self):
        for y in range(self._height):
            yield self.row(y)

    def ink_count(self):
        return sum(self._pixels)

    def to_text(self, ink='#', blank='.'):
        """Text preview of the label, one line per row"""
        return '\n'.join(''.join(ink if p else blank for p in r) for r in self.rows())

    def __eq__(self, other):
        if not isinstance(other, GlyphRaster):
            return NotImplemented
        return (self._width, self._height, self._pixels) == (other._width, other._height, other._pixels)

    def __repr__(self):
        return '<GlyphRaster {0}x{1} ink={2}>'.format(self._width, self._height, self.ink_count())


class TtfGlyph:
    """
    Glyph data for one character of a TrueType font.

    The glyph is rendered by FreeType-py as a monochrome bitmap and kept by
    this instance until the rasterizer places it on the label.

    :param c: The character to render. len(c)==1
    :type c: str
    :param face: freetype.Face already sized for the label resolution
    :param flags: FreeType load flags
    """
    _c = ''
    _buffer = []
    _bitmap_top = 0
    _bitmap_left = 0
    _width = 0
    _rows = 0
    _pitch = 0
    _mono = True
    _advance = 0

    def __init__(self, c, face, flags):
        self._c = c
        face.load_char(c, flags)
        glyph = face.glyph
        bitmap = glyph.bitmap
        self._buffer = bitmap.buffer
        self._bitmap_top = glyph.bitmap_top       # rows from the baseline up to the top of the bitmap
        self._bitmap_left = glyph.bitmap_left     # columns from the pen to the left of the bitmap
        self._width = bitmap.width
        self._rows = bitmap.rows
        self._pitch = abs(bitmap.pitch)           # byte length of each line
        self._mono = bitmap.pixel_mode == FT_PIXEL_MODE_MONO
        self._advance = glyph.advance.x >> 6

    def offset_x(self):
        """Returns the offset to the next character"""
        return self._advance

    def ink(self):
        """
        Yield (x, y) of every inked pixel.

        x is relative to the pen position, y to the baseline (negative is above).
        """
        for r in range(self._rows):
            line = self._buffer[r * self._pitch:(r + 1) * self._pitch]
            y = r - self._bitmap_top
            for c in range(self._width):
                if self._mono:
                    on = line[c >> 3] & (0x80 >> (c & 7))
                else:
                    on = line[c] >= GRAY_THRESHOLD
                if on:
                    yield (self._bitmap_left + c, y)


def _face_from_path(path):
    import freetype
    return freetype.Face(path)


class Rasterizer:
    """
    Render a line of text into a GlyphRaster sized for a label.

    usage::

        rasterizer = Rasterizer()
        raster = rasterizer.render("HELLO", FontSpec("DejaVu Sans", 12), LabelSpec.for_width('12mm'))

    :param resolver: (optional) callable taking a FontSpec and returning a font file path.
        Without one, the system font directories are scanned.
    :param face_factory: (optional) callable opening a face from a path, freetype.Face by default
    """
    _getfontpath = None
    _face_factory = None

    def __init__(self, resolver=None, face_factory=None):
        self._face_factory = face_factory or _face_from_path
        self.set_font_path(resolver)

    def set_font_path(self, getfontpath):
        """
        Resolve the PATH of the font file.

        :param getfontpath: Specify a function that takes a FontSpec as an argument and returns str
        """
        self._getfontpath = getfontpath
        return self

    def _resolve(self, font):
        if self._getfontpath is None:
            from .fonts import SystemFontResolver
            self._getfontpath = SystemFontResolver()
        fontpath = self._getfontpath(font)
        if not fontpath:
            raise FontUnavailable(font, 'no matching font file')
        return fontpath

    def ttf_face(self, font, label):
        """
        Open the font with FreeType-py and size it for the label resolution.

        :raises FontUnavailable: when the font can not be found or opened
        """
        import freetype
        fontpath = self._resolve(font)
        try:
            face = self._face_factory(fontpath)
        except (freetype.FT_Exception, OSError) as e:
            raise FontUnavailable(font, str(e)) from e
        face.set_char_size(int(font.size * 64), 0, label.dpi, label.dpi)
        logger.debug("opened %s for %s at %d dpi", fontpath, font, label.dpi)
        return face

    def render(self, text, font, label):
        """
        Lay out text left to right on one baseline and binarize it.

        :param text: The output character string. Line breaks are ignored.
        :param font: FontSpec
        :param label: LabelSpec, or a width class name
        :rtype: GlyphRaster
        :raises EmptyText: when text has nothing but whitespace
        :raises FontUnavailable: when the font can not be resolved
        :raises LabelTooLong: when the text does not fit the longest label
        """
        import freetype

        label = LabelSpec.for_width(label)
        line = ''.join(t for t in (text or '') if t not in '\r\n')
        if not line.strip():
            raise EmptyText(text)

        face = self.ttf_face(font, label)
        flags = freetype.FT_LOAD_FLAGS['FT_LOAD_RENDER'] | freetype.FT_LOAD_FLAGS['FT_LOAD_MONOCHROME'] | freetype.FT_LOAD_TARGETS['FT_LOAD_TARGET_MONO']

        height = label.dots_per_row
        ascender = face.size.ascender >> 6
        descender = face.size.descender >> 6    # negative, below the baseline
        baseline = (height - (ascender - descender)) // 2 + ascender

        ink = []
        pen = 0
        previous = None
        for t in line:
            if previous is not None and face.has_kerning:
                pen += face.get_kerning(previous, t).x >> 6
            try:
                g = TtfGlyph(t, face, flags)
            except freetype.FT_Exception as e:
                raise FontUnavailable(font, "cannot load {0!r}: {1}".format(t, e)) from e
            for x, y in g.ink():
                y += baseline
                if 0 <= y < height:
                    ink.append((pen + x, y))
            pen += g.offset_x()
            previous = t

        shift = 0
        if ink:
            shift = max(0, -min(x for x, _ in ink))
        extent = max((x + shift + 1 for x, _ in ink), default=0)
        width = max(8, (extent + 7) // 8 * 8)
        if width > label.max_length:
            raise LabelTooLong(width, label.max_length)

        pixels = bytearray(width * height)
        for x, y in ink:
            pixels[y * width + x + shift] = 1
        raster = GlyphRaster(width, height, pixels)
        logger.debug("rendered %r as %r", line, raster)
        return raster


def render(text, font, label, resolver=None):
    """Render text with a one-off Rasterizer"""
    return Rasterizer(resolver).render(text, font, label)
