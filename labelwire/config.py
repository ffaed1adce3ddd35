# -*- coding: utf-8 -*-
"""
Printer settings and label jobs described in JSON.

A job carries everything needed to print one label::

    {
        "host": "192.168.54.148", "port": 9100, "transport": "tcp",
        "label": "12mm", "timeout": 5.0, "retries": 1,
        "font": {"family": "DejaVu Sans", "size": 12, "style": "Book"},
        "text": "HELLO"
    }

Only "host" is required. Without "text" the same document is a plain
printer configuration.

usage::

    parser = JsonParser()
    parser.parse(json_str)
    result = parser.post()
"""
import json
import logging
import os

from .errors import ConfigError, UnsupportedLabel
from .label import DEFAULT_FONT, FontSpec, LabelSpec, PrinterEndpoint
from .session import DEFAULT_PORT, DEFAULT_TIMEOUT, PrinterSession

logger = logging.getLogger(__name__)

TRANSPORTS = ('tcp', 'http')


class PrinterConfig:
    """
    Where the printer is and how to talk to it.

    :param host: Printer address
    :param port: (optional) TCP port, 9100 for tcp and 80 for http by default
    :param transport: 'tcp' for the framed protocol, 'http' for the upload firmware
    :param label: Width class of the loaded tape
    :param timeout: Deadline in seconds of one attempt
    :param retries: Extra attempts after a transport failure
    :param backoff: Seconds before the first retry
    :param font: FontSpec used when a job names none
    """
    def __init__(self, host, port=None, transport='tcp', label='12mm', timeout=DEFAULT_TIMEOUT,
                 retries=0, backoff=0.5, font=DEFAULT_FONT):
        if transport not in TRANSPORTS:
            raise ConfigError('unknown transport {0!r}, expected one of {1}'.format(transport, ', '.join(TRANSPORTS)))
        if port is None:
            from .upload import DEFAULT_HTTP_PORT
            port = DEFAULT_PORT if transport == 'tcp' else DEFAULT_HTTP_PORT
        try:
            self.label = LabelSpec.for_width(label)
        except UnsupportedLabel as e:
            raise ConfigError(str(e)) from e
        self.endpoint = PrinterEndpoint(host, int(port))
        self.transport = transport
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff
        self.font = font

    @classmethod
    def from_dict(cls, d):
        if not isinstance(d, dict):
            raise ConfigError('printer configuration must be an object, got {0}'.format(type(d).__name__))
        if not d.get('host'):
            raise ConfigError('printer configuration needs a "host"')
        font = d.get('font')
        try:
            font = FontSpec.from_dict(font) if font else DEFAULT_FONT
        except KeyError as e:
            raise ConfigError('font needs a {0}'.format(e)) from e
        return cls(
            d['host'],
            d.get('port'),
            d.get('transport', 'tcp'),
            d.get('label', '12mm'),
            d.get('timeout', DEFAULT_TIMEOUT),
            d.get('retries', 0),
            d.get('backoff', 0.5),
            font,
        )

    def session(self):
        """The transport session matching this configuration"""
        if self.transport == 'http':
            from .upload import HttpUploadSession
            return HttpUploadSession(self.timeout)
        return PrinterSession(self.timeout)

    def job(self, **options):
        """A PrintJob bound to this printer"""
        from .job import PrintJob
        options.setdefault('session', self.session())
        options.setdefault('retries', self.retries)
        options.setdefault('backoff', self.backoff)
        return PrintJob(self.endpoint, self.label, **options)

    def __repr__(self):
        return '<PrinterConfig {0} {1} {2}>'.format(self.transport, self.endpoint, self.label.width_class)


def _read_json(source):
    if isinstance(source, dict):
        return source
    if isinstance(source, (bytes, bytearray)):
        source = source.decode('utf-8')
    if isinstance(source, str) and source.lstrip().startswith('{'):
        text = source
    elif isinstance(source, (str, os.PathLike)):
        try:
            with open(source, encoding='utf-8') as f:
                text = f.read()
        except OSError as e:
            raise ConfigError('cannot read {0}: {1}'.format(source, e)) from e
    else:
        raise ConfigError('unsupported configuration source {0!r}'.format(source))
    try:
        return json.loads(text)
    except ValueError as e:
        raise ConfigError('invalid JSON: {0}'.format(e)) from e


def load_config(source):
    """
    Read a PrinterConfig.

    :param source: JSON text, a dict already decoded, or a path to a JSON file
    :rtype: PrinterConfig
    """
    return PrinterConfig.from_dict(_read_json(source))


class JsonParser:
    """
    Print a label described by a JSON job.

    :param rasterizer: (optional) Rasterizer shared with the PrintJob
    """
    _config = None
    _text = None
    _rasterizer = None

    def __init__(self, rasterizer=None):
        self._rasterizer = rasterizer

    @property
    def config(self):
        return self._config

    @property
    def text(self):
        return self._text

    def parse(self, json_str):
        """
        Read the job.

        :param json_str: JSON text, a dict already decoded, or a path to a JSON file
        """
        d = _read_json(json_str)
        self._config = PrinterConfig.from_dict(d)
        self._text = d.get('text')
        logger.debug("parsed job %r for %r", self._text, self._config)
        return self

    def post(self, session=None):
        """
        Print the parsed job.

        :param session: (optional) transport overriding the configured one
        :rtype: SessionResult
        """
        if self._config is None:
            raise ConfigError('parse() a job before post()')
        if self._text is None:
            raise ConfigError('job has no "text" to print')
        options = {}
        if session is not None:
            options['session'] = session
        if self._rasterizer is not None:
            options['rasterizer'] = self._rasterizer
        job = self._config.job(**options)
        return job.print(self._text, self._config.font)
