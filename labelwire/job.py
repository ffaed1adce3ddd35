# -*- coding: utf-8 -*-
"""
One label, start to finish: render, pack, send.
"""
import logging
import time

from .errors import EncodingError, InputError
from .label import DEFAULT_FONT, LabelSpec
from .packer import pack
from .raster import Rasterizer
from .results import InvalidJob
from .session import PrinterSession

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
DEFAULT_BACKOFF = 0.5


class PrintJob:
    """
    Print text on one label.

    Building the label (rendering and packing) happens before any connection
    is opened; a bad input comes back as InvalidJob and nothing is sent.
    Transport failures are retried only when asked for, only ``retries``
    times, and only when no byte reached the printer.

    usage::

        job = PrintJob(PrinterEndpoint("192.168.54.148", 9100))
        result = job.print("HELLO", FontSpec("DejaVu Sans", 12))
        result.raise_for_status()

    :param endpoint: PrinterEndpoint
    :param label: (optional) LabelSpec or width class name, '12mm' by default
    :param session: (optional) PrinterSession or HttpUploadSession
    :param rasterizer: (optional) Rasterizer
    :param retries: Extra attempts after a transport failure (0-3)
    :param backoff: Seconds before the first retry, doubled for each following one
    """
    def __init__(self, endpoint, label='12mm', session=None, rasterizer=None, retries=0, backoff=DEFAULT_BACKOFF):
        if not 0 <= retries <= MAX_RETRIES:
            raise ValueError('retries must be between 0 and {0}'.format(MAX_RETRIES))
        self.endpoint = endpoint
        self.label = label
        self.session = session or PrinterSession()
        self.rasterizer = rasterizer or Rasterizer()
        self.retries = retries
        self.backoff = backoff

    def build(self, text, font):
        """
        Render and pack the label in the orientation the session expects.

        :rtype: PackedBitmap
        """
        label = LabelSpec.for_width(self.label)
        raster = self.rasterizer.render(text, font, label)
        return pack(raster, self.session.orientation)

    def print(self, text, font=DEFAULT_FONT, timeout=None):
        """
        Print text and report what happened.

        :param text: The line to print
        :param font: FontSpec
        :param timeout: (optional) deadline in seconds for each attempt
        :rtype: SessionResult
        """
        try:
            label = LabelSpec.for_width(self.label)
            bitmap = self.build(text, font)
            self.session.check(bitmap, label)
        except (InputError, EncodingError) as e:
            logger.info("not printing %r: %s", text, e)
            return InvalidJob(e)

        attempt = 0
        while True:
            attempt += 1
            result = self.session.send(self.endpoint, bitmap, label, timeout)
            result.attempts = attempt
            if result.ok or not getattr(result, 'retryable', False) or attempt > self.retries:
                break
            delay = self.backoff * 2 ** (attempt - 1)
            logger.warning("attempt %d of %d to %s failed (%s), retrying in %.1fs",
                           attempt, self.retries + 1, self.endpoint, result.reason, delay)
            time.sleep(delay)

        logger.info("label %r on %s: %r after %d attempt(s)", text, self.endpoint, result, attempt)
        return result


def print_label(text, font, label_width, endpoint, **options):
    """
    Print one label without keeping a PrintJob around.

    :param options: forwarded to PrintJob (session, rasterizer, retries, backoff)
    """
    timeout = options.pop('timeout', None)
    return PrintJob(endpoint, label_width, **options).print(text, font, timeout)
