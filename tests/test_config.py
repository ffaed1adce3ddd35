"""Tests for JSON configuration and jobs."""

import json
from unittest.mock import Mock

import pytest

from labelwire.config import JsonParser, PrinterConfig, load_config
from labelwire.errors import ConfigError
from labelwire.label import DEFAULT_FONT, FontSpec, PrinterEndpoint
from labelwire.packer import COLUMN_MAJOR, ROW_MAJOR
from labelwire.results import Acknowledged
from labelwire.session import PrinterSession
from labelwire.upload import HttpUploadSession


def test_defaults():
    """Test only the host is required."""
    config = load_config('{"host": "192.168.54.148"}')

    assert config.endpoint == PrinterEndpoint('192.168.54.148', 9100)
    assert config.transport == 'tcp'
    assert config.label.dots_per_row == 48
    assert config.retries == 0
    assert config.font == DEFAULT_FONT
    assert isinstance(config.session(), PrinterSession)


def test_http_transport_defaults_to_port_80():
    config = load_config({"host": "192.168.54.148", "transport": "http", "timeout": 2})

    assert config.endpoint.port == 80
    session = config.session()
    assert isinstance(session, HttpUploadSession)
    assert session.orientation == COLUMN_MAJOR
    assert session.timeout == 2


def test_load_from_file(tmp_path):
    path = tmp_path / "printer.json"
    path.write_text(json.dumps({
        "host": "10.0.0.7",
        "port": 9200,
        "retries": 1,
        "font": {"family": "DejaVu Sans", "size": 14, "style": "Bold"},
    }))

    config = load_config(path)

    assert config.endpoint == PrinterEndpoint('10.0.0.7', 9200)
    assert config.retries == 1
    assert config.font == FontSpec('DejaVu Sans', 14, 'Bold')


@pytest.mark.parametrize("source", [
    '{"port": 9100}',
    '{"host": "x", "transport": "udp"}',
    '{"host": "x", "label": "18mm"}',
    '{"host": "x", "font": {"size": 12}}',
    '{"host": ',
    '[]',
])
def test_invalid_config(source):
    with pytest.raises(ConfigError):
        load_config(source)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.json")


def test_job_uses_config(fake_rasterizer):
    config = PrinterConfig('10.0.0.7', retries=2, backoff=0)

    job = config.job(rasterizer=fake_rasterizer)

    assert job.endpoint == config.endpoint
    assert job.retries == 2
    assert job.session.orientation == ROW_MAJOR


def test_json_job_posted(fake_rasterizer):
    """Test a JSON job is rendered and sent to its printer."""
    session = Mock(spec=PrinterSession)
    session.orientation = ROW_MAJOR
    session.send.return_value = Acknowledged()
    parser = JsonParser(rasterizer=fake_rasterizer)

    parser.parse('{"host": "10.0.0.7", "text": "HELLO", "font": {"family": "Fake", "size": 12}}')
    result = parser.post(session)

    assert result.ok
    assert parser.text == "HELLO"
    endpoint, bitmap, label, _ = session.send.call_args[0]
    assert endpoint == PrinterEndpoint('10.0.0.7', 9100)
    assert len(bitmap) == 240


def test_post_without_text():
    parser = JsonParser().parse({"host": "10.0.0.7"})

    with pytest.raises(ConfigError):
        parser.post()


def test_post_before_parse():
    with pytest.raises(ConfigError):
        JsonParser().post()
