# -*- coding: utf-8 -*-
"""
labelwire: print text labels on a networked label printer

Text is rendered with a TrueType font into a monochrome raster exactly as
tall as the label tape is wide, packed into the printer's 1bpp bitmap and
sent to the printer at a known address, which answers whether it printed.

usage::

    from labelwire import FontSpec, PrinterEndpoint, print_label

    result = print_label("HELLO", FontSpec("DejaVu Sans", 12), '12mm',
                         PrinterEndpoint("192.168.54.148", 9100))
    result.raise_for_status()
"""
from .config import JsonParser, PrinterConfig, load_config
from .errors import (ConfigError, DeviceError, EmptyText, EncodingError, FontUnavailable, InputError,
                     LabelError, LabelTooLong, MisalignedRaster, TransportError, UnsupportedLabel)
from .fonts import SystemFontResolver
from .job import PrintJob, print_label
from .label import DEFAULT_FONT, FontSpec, LabelSpec, PrinterEndpoint
from .packer import COLUMN_MAJOR, ROW_MAJOR, PackedBitmap, pack
from .raster import GlyphRaster, Rasterizer, render
from .results import Acknowledged, InvalidJob, Rejected, SessionResult, TransportFailure
from .session import PrinterSession
from .upload import HttpUploadSession

__version__ = '0.1.0'
