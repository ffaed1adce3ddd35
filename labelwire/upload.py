# -*- coding: utf-8 -*-
"""
HTTP upload transport for printers running the web firmware.

The firmware keeps a column-major bitmap in RAM. The bitmap is uploaded in
small base64 chunks, each tagged with its byte offset, and printed by a
separate request naming how many columns to feed::

    POST /uploadjson   {"index": 0,  "data": "<base64>"}
    POST /uploadjson   {"index": 96, "data": "<base64>"}
    ...
    GET  /print?length=<columns>
"""
import base64
import logging
import socket

import requests

from .errors import MisalignedRaster
from .label import LabelSpec
from .packer import COLUMN_MAJOR
from .results import Acknowledged, Rejected, TransportFailure
from .session import DEFAULT_TIMEOUT, Deadline, acquire, endpoint_lock

logger = logging.getLogger(__name__)

CHUNK_SIZE = 96
DEFAULT_HTTP_PORT = 80


class HttpUploadSession:
    """
    Upload and print one bitmap over HTTP.

    :param timeout: Default deadline in seconds for the whole upload and print
    :param chunk_size: Bytes per upload request
    :param client: (optional) requests.Session to reuse
    """
    orientation = COLUMN_MAJOR
    timeout = DEFAULT_TIMEOUT
    chunk_size = CHUNK_SIZE

    def __init__(self, timeout=DEFAULT_TIMEOUT, chunk_size=CHUNK_SIZE, client=None):
        self.timeout = timeout
        self.chunk_size = chunk_size
        self._client = client

    def base_url(self, endpoint):
        if endpoint.port == DEFAULT_HTTP_PORT:
            return 'http://{0}'.format(endpoint.host)
        return 'http://{0}:{1}'.format(endpoint.host, endpoint.port)

    def check(self, bitmap, label):
        if bitmap.orientation != self.orientation:
            raise MisalignedRaster('{0} bitmap given, printer takes {1}'.format(bitmap.orientation, self.orientation))
        if bitmap.height != label.dots_per_row:
            raise MisalignedRaster('bitmap is {0} dots high, {1} label needs {2}'.format(
                bitmap.height, label.width_class, label.dots_per_row))

    def send(self, endpoint, bitmap, label, timeout=None):
        """
        Upload the bitmap chunk by chunk, then trigger the print.

        :param endpoint: PrinterEndpoint of the web firmware
        :param bitmap: Column-major PackedBitmap
        :param label: LabelSpec, or a width class name
        :param timeout: (optional) deadline in seconds overriding the session default
        :rtype: SessionResult
        """
        label = LabelSpec.for_width(label)
        self.check(bitmap, label)
        deadline = Deadline(self.timeout if timeout is None else timeout)
        lock = endpoint_lock(endpoint)
        if not acquire(lock, deadline):
            logger.warning("gave up waiting for %s, another label is printing", endpoint)
            return TransportFailure('timeout')
        try:
            if self._client is not None:
                return self._upload(self._client, endpoint, bitmap, deadline)
            with requests.Session() as client:
                return self._upload(client, endpoint, bitmap, deadline)
        finally:
            lock.release()

    def _upload(self, client, endpoint, bitmap, deadline):
        url = self.base_url(endpoint)
        written = 0
        try:
            for index in range(0, len(bitmap.data), self.chunk_size):
                chunk = bitmap.data[index:index + self.chunk_size]
                body = {
                    "index": index,
                    "data": base64.b64encode(chunk).decode('ascii'),
                }
                response = client.post(url + '/uploadjson', json=body, timeout=deadline.remaining())
                if not response.ok:
                    logger.warning("upload to %s refused at index %d: HTTP %d", endpoint, index, response.status_code)
                    return Rejected('upload refused at index {0}: HTTP {1}'.format(index, response.status_code))
                written += len(chunk)
            logger.debug("uploaded %d bytes in %d blocks", written, -(-written // self.chunk_size))

            response = client.get(url + '/print', params={'length': bitmap.width}, timeout=deadline.remaining())
            if not response.ok:
                logger.warning("%s refused to print: HTTP %d", endpoint, response.status_code)
                return Rejected('print refused: HTTP {0}'.format(response.status_code))
        except (requests.Timeout, socket.timeout, TimeoutError):
            logger.warning("%s timed out after %d bytes", endpoint, written)
            return TransportFailure('timeout', written)
        except requests.RequestException as e:
            logger.warning("%s unreachable: %s", endpoint, e)
            return TransportFailure(str(e), written)
        logger.info("%s printed %d columns", endpoint, bitmap.width)
        return Acknowledged()
