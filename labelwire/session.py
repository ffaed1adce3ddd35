# -*- coding: utf-8 -*-
"""
Framed TCP transport to the label printer.

A request frame is::

    STX | command | length (4 bytes, big endian) | payload | CRC-32 (4 bytes, big endian) | ETX

The CRC-32 covers command, length and payload so the firmware can tell a
truncated transfer from a complete one. The printer answers every request
with a fixed 4 byte frame::

    STX | status | detail | ETX

status 0 means the label was accepted and printed.

usage::

    session = PrinterSession(timeout=5.0)
    result = session.send(PrinterEndpoint("192.168.54.148", 9100), bitmap, LabelSpec.for_width('12mm'))
    if not result.ok:
        print(result)
"""
import logging
import socket
import struct
import threading
import time
import weakref
import zlib

from .errors import MisalignedRaster
from .label import LabelSpec
from .packer import ROW_MAJOR
from .results import Acknowledged, Rejected, TransportFailure

logger = logging.getLogger(__name__)

STX = 0x02
ETX = 0x03

CMD_PRINT_RASTER = 0x52
CMD_STATUS = 0x53

HEADER = struct.Struct('>BBI')
TRAILER = struct.Struct('>IB')
RESPONSE_SIZE = 4

STATUS_OK = 0x00
STATUS_MAP = {
    0x01: 'label jam',
    0x02: 'label width mismatch',
    0x03: 'printer busy',
    0x04: 'checksum mismatch',
    0x05: 'out of labels',
}

DEFAULT_PORT = 9100
DEFAULT_TIMEOUT = 5.0


def build_frame(command, payload=b''):
    """
    Frame a command and its payload for the wire.

    :param command: Command byte, e.g. CMD_PRINT_RASTER
    :param payload: bytes
    :rtype: bytes
    """
    payload = bytes(payload)
    header = HEADER.pack(STX, command, len(payload))
    crc = zlib.crc32(header[1:] + payload) & 0xffffffff
    return header + payload + TRAILER.pack(crc, ETX)


def parse_frame(frame):
    """
    Split a request frame back into (command, payload).

    :raises ValueError: when delimiters, length or checksum do not match
    """
    frame = bytes(frame)
    if len(frame) < HEADER.size + TRAILER.size:
        raise ValueError('frame too short: {0} bytes'.format(len(frame)))
    stx, command, length = HEADER.unpack_from(frame)
    if stx != STX:
        raise ValueError('bad start byte 0x{0:02x}'.format(stx))
    if len(frame) != HEADER.size + length + TRAILER.size:
        raise ValueError('length field says {0} bytes, frame carries {1}'.format(
            length, len(frame) - HEADER.size - TRAILER.size))
    payload = frame[HEADER.size:HEADER.size + length]
    crc, etx = TRAILER.unpack_from(frame, HEADER.size + length)
    if etx != ETX:
        raise ValueError('bad end byte 0x{0:02x}'.format(etx))
    if crc != zlib.crc32(frame[1:HEADER.size + length]) & 0xffffffff:
        raise ValueError('checksum mismatch')
    return command, payload


def build_response(status, detail=0):
    return bytes((STX, status, detail, ETX))


def parse_response(data, written=0):
    """
    Map a response frame to a SessionResult.

    :param data: The RESPONSE_SIZE bytes read from the printer
    :param written: Bytes written before the response, kept on failures
    """
    if len(data) != RESPONSE_SIZE or data[0] != STX or data[3] != ETX:
        return TransportFailure('malformed response {0}'.format(bytes(data).hex()), written)
    status, detail = data[1], data[2]
    if status == STATUS_OK:
        return Acknowledged()
    reason = STATUS_MAP.get(status, 'unknown status 0x{0:02x}'.format(status))
    return Rejected(reason, status, detail)


class Deadline:
    """
    One time budget shared by lock wait, connect, write and response wait.

    :param timeout: Seconds, or None to wait forever
    """
    def __init__(self, timeout):
        self._end = None if timeout is None else time.monotonic() + timeout

    def remaining(self):
        """
        Seconds left, None when unbounded.

        :raises socket.timeout: once the deadline has passed
        """
        if self._end is None:
            return None
        left = self._end - time.monotonic()
        if left <= 0:
            raise socket.timeout('deadline expired')
        return left


# Locks live only while some send holds a reference, so unused endpoints drop out.
_locks = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def endpoint_lock(endpoint):
    """The lock serializing physical sends to one printer"""
    with _locks_guard:
        lock = _locks.get(endpoint)
        if lock is None:
            lock = _locks[endpoint] = threading.Lock()
        return lock


def acquire(lock, deadline):
    """Take lock within the deadline; False when it expired first"""
    try:
        remaining = deadline.remaining()
    except socket.timeout:
        return False
    return lock.acquire(timeout=-1 if remaining is None else remaining)


class PrinterSession:
    """
    One request/response exchange per call over a fresh TCP connection.

    The connection is opened right before the frame is written and closed as
    soon as the response arrived or the deadline ran out. Exactly one attempt
    is made; retrying is up to the caller.

    :param timeout: Default deadline in seconds for a whole exchange
    """
    orientation = ROW_MAJOR
    timeout = DEFAULT_TIMEOUT

    def __init__(self, timeout=DEFAULT_TIMEOUT):
        self.timeout = timeout

    def check(self, bitmap, label):
        """
        Refuse bitmaps this firmware would print garbled.

        :raises MisalignedRaster: on a wrong orientation, height or length
        """
        if bitmap.orientation != self.orientation:
            raise MisalignedRaster('{0} bitmap given, printer takes {1}'.format(bitmap.orientation, self.orientation))
        if bitmap.height != label.dots_per_row:
            raise MisalignedRaster('bitmap is {0} dots high, {1} label needs {2}'.format(
                bitmap.height, label.width_class, label.dots_per_row))
        if len(bitmap) != bitmap.width // 8 * bitmap.height:
            raise MisalignedRaster('{0} bytes do not match a {1}x{2} bitmap'.format(len(bitmap), bitmap.width, bitmap.height))

    def send(self, endpoint, bitmap, label, timeout=None):
        """
        Print a packed bitmap.

        :param endpoint: PrinterEndpoint
        :param bitmap: Row-major PackedBitmap
        :param label: LabelSpec, or a width class name
        :param timeout: (optional) deadline in seconds overriding the session default
        :rtype: SessionResult
        """
        label = LabelSpec.for_width(label)
        self.check(bitmap, label)
        logger.debug("sending %r to %s", bitmap, endpoint)
        return self.exchange(endpoint, build_frame(CMD_PRINT_RASTER, bitmap.data), timeout)

    def query_status(self, endpoint, timeout=None):
        """Ask the printer for its status without printing anything"""
        return self.exchange(endpoint, build_frame(CMD_STATUS), timeout)

    def exchange(self, endpoint, frame, timeout=None):
        """
        Write one frame and read one response while holding the printer lock.

        :rtype: SessionResult
        """
        deadline = Deadline(self.timeout if timeout is None else timeout)
        lock = endpoint_lock(endpoint)
        if not acquire(lock, deadline):
            logger.warning("gave up waiting for %s, another label is printing", endpoint)
            return TransportFailure('timeout')
        try:
            result = self._exchange(endpoint, frame, deadline)
        finally:
            lock.release()
        if result.ok:
            logger.info("%s acknowledged %d bytes", endpoint, len(frame))
        else:
            logger.warning("%s: %r", endpoint, result)
        return result

    def _exchange(self, endpoint, frame, deadline):
        written = 0
        try:
            with socket.create_connection((endpoint.host, endpoint.port), timeout=deadline.remaining()) as sock:
                view = memoryview(frame)
                while written < len(frame):
                    sock.settimeout(deadline.remaining())
                    written += sock.send(view[written:])
                response = b''
                while len(response) < RESPONSE_SIZE:
                    sock.settimeout(deadline.remaining())
                    chunk = sock.recv(RESPONSE_SIZE - len(response))
                    if not chunk:
                        return TransportFailure('connection closed before response', written)
                    response += chunk
        except socket.timeout:
            return TransportFailure('timeout', written)
        except OSError as e:
            return TransportFailure(e.strerror or str(e) or type(e).__name__, written)
        return parse_response(response, written)
