"""Shared fixtures: a fake FreeType face and a printer emulator on localhost."""

import glob
import socket
import threading
from types import SimpleNamespace

import pytest

from labelwire.label import PrinterEndpoint
from labelwire.raster import Rasterizer
from labelwire.session import HEADER, TRAILER, build_response


class FakeFace:
    """
    Stands in for freetype.Face.

    Every character except space is a solid 6x10 block, one column right of
    the pen, sitting on the baseline, with an advance of 8. Space is blank
    with an advance of 5. Ascender 14, descender -4.
    """

    has_kerning = False
    block_width = 6
    block_rows = 10
    bitmap_left = 1
    advance = 8
    space_advance = 5
    pixel_mode = 1

    def __init__(self, path):
        self.path = path
        self.size = SimpleNamespace(ascender=14 << 6, descender=-4 << 6)
        self.char_size = None
        self.glyph = None
        self.loaded = []

    def set_char_size(self, width=0, height=0, hres=72, vres=72):
        self.char_size = (width, height, hres, vres)

    def row_bytes(self):
        return [0xFC]

    def load_char(self, c, flags):
        self.loaded.append(c)
        if c == ' ':
            bitmap = SimpleNamespace(buffer=[], width=0, rows=0, pitch=0, pixel_mode=self.pixel_mode)
            self.glyph = SimpleNamespace(bitmap=bitmap, bitmap_left=0, bitmap_top=0,
                                         advance=SimpleNamespace(x=self.space_advance << 6))
            return
        row = self.row_bytes()
        bitmap = SimpleNamespace(buffer=row * self.block_rows, width=self.block_width, rows=self.block_rows,
                                 pitch=len(row), pixel_mode=self.pixel_mode)
        self.glyph = SimpleNamespace(bitmap=bitmap, bitmap_left=self.bitmap_left, bitmap_top=self.block_rows,
                                     advance=SimpleNamespace(x=self.advance << 6))


@pytest.fixture
def fake_rasterizer():
    """Rasterizer resolving every font to 'fake.ttf' and opening it as a FakeFace"""
    return Rasterizer(resolver=lambda font: 'fake.ttf', face_factory=FakeFace)


def find_real_font():
    for pattern in ('/usr/share/fonts/**/DejaVuSans.ttf', '/usr/share/fonts/**/*.ttf',
                    '/System/Library/Fonts/**/*.ttf', 'C:\\Windows\\Fonts\\arial.ttf'):
        found = sorted(glob.glob(pattern, recursive=True))
        if found:
            return found[0]
    return None


@pytest.fixture
def real_font():
    path = find_real_font()
    if path is None:
        pytest.skip("no TrueType font installed")
    return path


class FakePrinter:
    """
    Accepts one connection at a time, reads one request frame and answers.

    :param response: Bytes to answer with, None to stay silent until the client hangs up
    """

    def __init__(self, response=None):
        self.response = response
        self.frames = []
        self.connections = 0
        self.closed_by_client = threading.Event()
        self._stop = threading.Event()
        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.bind(('127.0.0.1', 0))
        self._server.listen(5)
        self._server.settimeout(0.1)
        self.endpoint = PrinterEndpoint('127.0.0.1', self._server.getsockname()[1])
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self):
        self._thread.start()
        return self

    def close(self):
        self._stop.set()
        self._thread.join(timeout=2)
        self._server.close()

    def _read_exact(self, conn, size):
        data = b''
        while len(data) < size:
            chunk = conn.recv(size - len(data))
            if not chunk:
                break
            data += chunk
        return data

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._server.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            with conn:
                conn.settimeout(5)
                self.connections += 1
                header = self._read_exact(conn, HEADER.size)
                if len(header) < HEADER.size:
                    continue
                _, _, length = HEADER.unpack(header)
                self.frames.append(header + self._read_exact(conn, length + TRAILER.size))
                if self.response is not None:
                    conn.sendall(self.response)
                    continue
                try:
                    if conn.recv(1) == b'':
                        self.closed_by_client.set()
                except OSError:
                    self.closed_by_client.set()


@pytest.fixture
def fake_printer():
    """Factory starting FakePrinters that are shut down after the test"""
    printers = []

    def start(response=build_response(0)):
        printer = FakePrinter(response).start()
        printers.append(printer)
        return printer

    yield start
    for printer in printers:
        printer.close()


@pytest.fixture
def closed_port():
    """A localhost port nobody listens on"""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(('127.0.0.1', 0))
    port = s.getsockname()[1]
    s.close()
    return PrinterEndpoint('127.0.0.1', port)


@pytest.fixture
def tracked_sockets(monkeypatch):
    """Record every socket the session opens"""
    import labelwire.session

    opened = []
    real_create_connection = socket.create_connection

    def create_connection(*args, **kwargs):
        sock = real_create_connection(*args, **kwargs)
        opened.append(sock)
        return sock

    monkeypatch.setattr(labelwire.session.socket, 'create_connection', create_connection)
    return opened
