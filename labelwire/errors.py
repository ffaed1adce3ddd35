# -*- coding: utf-8 -*-
"""
Exceptions raised while building and sending a label.

The hierarchy follows how the caller is expected to react::

    LabelError
    ├── InputError        caller-correctable, never retried
    │   ├── EmptyText
    │   ├── FontUnavailable
    │   ├── UnsupportedLabel
    │   └── LabelTooLong
    ├── EncodingError     internal invariant broken, fatal to the job
    │   └── MisalignedRaster
    ├── DeviceError       the printer answered and refused the label
    ├── TransportError    the printer could not be reached or went silent
    └── ConfigError
"""


class LabelError(Exception):
    """Base class for every error raised by labelwire."""


class InputError(LabelError):
    pass


class EmptyText(InputError):
    def __init__(self, text=''):
        super().__init__('nothing to print: {0!r}'.format(text))
        self.text = text


class FontUnavailable(InputError):
    def __init__(self, font, reason=None):
        msg = 'font not available: {0}'.format(font)
        if reason:
            msg = '{0} ({1})'.format(msg, reason)
        super().__init__(msg)
        self.font = font
        self.reason = reason


class UnsupportedLabel(InputError):
    def __init__(self, width_class):
        super().__init__('unsupported label width class: {0!r}'.format(width_class))
        self.width_class = width_class


class LabelTooLong(InputError):
    def __init__(self, width, max_length):
        super().__init__('label needs {0} dots, printer takes at most {1}'.format(width, max_length))
        self.width = width
        self.max_length = max_length


class EncodingError(LabelError):
    pass


class MisalignedRaster(EncodingError):
    pass


class DeviceError(LabelError):
    """
    The printer replied with a non-zero status.

    :param reason: Human readable status text
    :param status: Raw status code, or None when the transport has no status byte
    """
    def __init__(self, reason, status=None):
        super().__init__(reason)
        self.reason = reason
        self.status = status


class TransportError(LabelError):
    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class ConfigError(LabelError):
    pass
