# -*- coding: utf-8 -*-
"""
Outcome of one print attempt.

Transports and PrintJob return these instead of raising, so a caller can
tell "the printer said no" from "the printer was never reached" without
catching anything. raise_for_status() turns a failure back into an exception.
"""
from .errors import DeviceError, TransportError


class SessionResult:
    ok = False
    attempts = 1

    def raise_for_status(self):
        pass

    def __eq__(self, other):
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self):
        return hash((type(self), self._key()))

    def _key(self):
        return ()


class Acknowledged(SessionResult):
    ok = True

    def __repr__(self):
        return '<Acknowledged>'


class Rejected(SessionResult):
    """
    The printer answered with a non-zero status.

    :param reason: Status text
    :param status: Raw status code (None for transports without one)
    :param detail: Extra byte sent along with the status
    """
    def __init__(self, reason, status=None, detail=0):
        self.reason = reason
        self.status = status
        self.detail = detail

    def _key(self):
        return (self.reason, self.status)

    def raise_for_status(self):
        raise DeviceError(self.reason, self.status)

    def __repr__(self):
        return '<Rejected {0!r} status={1}>'.format(self.reason, self.status)


class TransportFailure(SessionResult):
    """
    The exchange did not complete.

    :param reason: 'timeout', or what went wrong with the connection
    :param written: Number of payload bytes that reached the socket before the failure
    """
    def __init__(self, reason, written=0):
        self.reason = reason
        self.written = written

    @property
    def retryable(self):
        """Nothing reached the printer, so another attempt cannot print twice"""
        return self.written == 0

    def _key(self):
        return (self.reason, self.written)

    def raise_for_status(self):
        raise TransportError(self.reason)

    def __repr__(self):
        return '<TransportFailure {0!r} written={1}>'.format(self.reason, self.written)


class InvalidJob(SessionResult):
    """
    The label could not be built, so nothing was sent.

    :param error: The InputError or EncodingError raised while building it
    """
    def __init__(self, error):
        self.error = error

    def _key(self):
        return (type(self.error), str(self.error))

    def raise_for_status(self):
        raise self.error

    def __repr__(self):
        return '<InvalidJob {0}: {1}>'.format(type(self.error).__name__, self.error)
