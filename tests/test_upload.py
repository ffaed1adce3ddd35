"""Tests for the HTTP upload transport."""

import base64
import socket
import time
from unittest.mock import Mock

import pytest
import requests

from labelwire.errors import MisalignedRaster
from labelwire.label import LabelSpec, PrinterEndpoint
from labelwire.packer import COLUMN_MAJOR, ROW_MAJOR, pack
from labelwire.raster import GlyphRaster
from labelwire.results import Acknowledged, Rejected, TransportFailure
from labelwire.upload import HttpUploadSession

LABEL = LabelSpec.for_width('12mm')
ENDPOINT = PrinterEndpoint('192.168.54.148', 80)


@pytest.fixture
def bitmap():
    """40 columns of 48 dots: 240 bytes, three 96 byte chunks"""
    rows = [("#." * 20) if y % 2 else ("." * 40) for y in range(48)]
    return pack(GlyphRaster.from_rows(rows), COLUMN_MAJOR)


@pytest.fixture
def client():
    """Mock requests.Session answering 200 to everything."""
    client = Mock()
    client.post.return_value = Mock(ok=True, status_code=200)
    client.get.return_value = Mock(ok=True, status_code=200)
    return client


def test_upload_in_chunks_then_print(client, bitmap):
    """Test chunks carry their byte offset and base64 data, then print is triggered."""
    result = HttpUploadSession(client=client).send(ENDPOINT, bitmap, LABEL)

    assert result == Acknowledged()
    assert client.post.call_count == 3
    indexes = []
    uploaded = b''
    for call in client.post.call_args_list:
        args, kwargs = call
        assert args[0] == 'http://192.168.54.148/uploadjson'
        indexes.append(kwargs['json']['index'])
        uploaded += base64.b64decode(kwargs['json']['data'])
    assert indexes == [0, 96, 192]
    assert uploaded == bitmap.data

    args, kwargs = client.get.call_args
    assert args[0] == 'http://192.168.54.148/print'
    assert kwargs['params'] == {'length': 40}


def test_port_in_url(client, bitmap):
    HttpUploadSession(client=client).send(PrinterEndpoint('10.0.0.5', 8080), bitmap, LABEL)

    args, _ = client.get.call_args
    assert args[0] == 'http://10.0.0.5:8080/print'


def test_upload_refused(client, bitmap):
    """Test an HTTP error stops the upload before printing."""
    client.post.side_effect = [Mock(ok=True, status_code=200), Mock(ok=False, status_code=500)]

    result = HttpUploadSession(client=client).send(ENDPOINT, bitmap, LABEL)

    assert isinstance(result, Rejected)
    assert 'index 96' in result.reason
    client.get.assert_not_called()


def test_print_refused(client, bitmap):
    client.get.return_value = Mock(ok=False, status_code=503)

    result = HttpUploadSession(client=client).send(ENDPOINT, bitmap, LABEL)

    assert isinstance(result, Rejected)
    assert '503' in result.reason


def test_unreachable(client, bitmap):
    """Test a connection error before any upload is retryable."""
    client.post.side_effect = requests.ConnectionError("no route to host")

    result = HttpUploadSession(client=client).send(ENDPOINT, bitmap, LABEL)

    assert isinstance(result, TransportFailure)
    assert result.retryable


def test_timeout_mid_upload(client, bitmap):
    """Test a timeout after some chunks is not retryable."""
    client.post.side_effect = [Mock(ok=True, status_code=200), requests.Timeout()]

    result = HttpUploadSession(client=client).send(ENDPOINT, bitmap, LABEL)

    assert result == TransportFailure('timeout', 96)
    assert result.written == 96
    assert not result.retryable


def test_socket_timeout_mid_upload(client, bitmap):
    """Test a bare socket timeout escaping the client is reported like a requests timeout."""
    client.post.side_effect = [Mock(ok=True, status_code=200), socket.timeout("timed out")]

    result = HttpUploadSession(client=client).send(ENDPOINT, bitmap, LABEL)

    assert result == TransportFailure('timeout', 96)
    client.get.assert_not_called()


def test_deadline_expires_between_chunks(client, bitmap):
    """Test the shared deadline running out before the next chunk stops the upload."""
    def slow_post(*args, **kwargs):
        time.sleep(0.1)
        return Mock(ok=True, status_code=200)

    client.post.side_effect = slow_post

    result = HttpUploadSession(timeout=0.05, client=client).send(ENDPOINT, bitmap, LABEL)

    assert result == TransportFailure('timeout', 96)
    assert client.post.call_count == 1
    client.get.assert_not_called()


def test_row_major_refused(client):
    bitmap = pack(GlyphRaster(8, 48), ROW_MAJOR)

    with pytest.raises(MisalignedRaster):
        HttpUploadSession(client=client).send(ENDPOINT, bitmap, LABEL)
    client.post.assert_not_called()
