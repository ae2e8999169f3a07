#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exceptions for this package.

"""


class FitIOError(Exception):
    """Base exception."""
    _default_message = ''

    def __init__(self, message=None):
        super().__init__(message if message else self._default_message)


class RequiredColumnError(FitIOError):
    def __init__(self, column, cls=None):
        if cls is None:
            message = '{!r} column not found'.format(column)
        else:
            message = '{!r} column should be of type {!s}'.format(column, cls)
        super().__init__(message)


# Container diagnostics
# ---------------------
class InvalidFileError(FitIOError):
    """The container header is not what a FIT file should look like."""
    _default_message = "this doesn't look like a fit file!"


class FileTooSmallError(InvalidFileError):
    _default_message = 'file too small to be a fit file'


class HeaderSizeError(InvalidFileError):
    def __init__(self, header_length):
        self.header_length = header_length
        super().__init__('incorrect header size (%d)' % header_length)


class MagicMarkerError(InvalidFileError):
    _default_message = "missing '.FIT' in header"


class CRCError(FitIOError):
    def __init__(self, expected, computed):
        self.expected, self.computed = expected, computed
        super().__init__('{} mismatch: read 0x{:04x}, computed 0x{:04x}'.format(
            self._what, expected, computed))


class HeaderCRCError(CRCError):
    _what = 'header CRC'


class FileCRCError(CRCError):
    _what = 'file CRC'


# Record diagnostics
# ------------------
class FITMessageHeaderError(FitIOError):
    pass


class TruncatedRecordError(FitIOError):
    def __init__(self, offset, expected, got):
        self.offset = offset      # where the short read started
        self.expected, self.got = expected, got
        super().__init__('expected {} bytes, got {} @ {}'.format(
            expected, got, offset))
