#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Implement the Flexible and Interoperable data Transfer (FIT) protocol.

Everything here works on a fully resident buffer: a record is decoded from
an offset and the offset of the following record is handed back. The state
that outlives a single record (local message definitions, developer field
descriptions, the last full timestamp) lives in two tables owned by the
caller, one pair per parse.

TODO:
-----
    + field components
    + accumulators

"""
from datetime import datetime, timedelta
import logging
import struct

import pytz

from fitio.fit._profile import (
    BASE_TYPE_BYTE, BASE_TYPES, BASE_TYPES_BY_NAME,
    MESSAGE_TYPES, TYPES_INFO, GLOBAL_MESG_NUMS)
from fitio._util.exceptions import FITMessageHeaderError, TruncatedRecordError
from fitio._util.misc import semicircles_to_degrees


logger = logging.getLogger(__name__)

EMPTY_DICT = {}    # single instance to save some memory

FIT_EPOCH = datetime(year=1989, month=12, day=31, tzinfo=pytz.utc)

TIMESTAMP_FIELD_NUM = 253

CRC_TABLE = (
    0x0000, 0xCC01, 0xD801, 0x1400, 0xF001, 0x3C00, 0x2800, 0xE401,
    0xA001, 0x6C00, 0x7800, 0xB401, 0x5000, 0x9C01, 0x8801, 0x4400)


class FitStream:
    """A read cursor over an in-memory *.fit buffer.

    Attributes
    ----------
    blob : bytes
        The whole file.
    offset : int
        Position of the next byte to be read.
    """
    __slots__ = ('blob', 'offset')

    def __init__(self, blob, offset=0):
        self.blob = blob
        self.offset = offset

    def read(self, size):
        """Read `size` bytes, advancing the cursor."""
        start = self.offset
        chunk = self.blob[start:start + size]
        if len(chunk) != size:
            raise TruncatedRecordError(start, size, len(chunk))
        self.offset = start + size
        return chunk

    def unpack(self, fmt):
        unpacker = struct.Struct(fmt)
        return unpacker.unpack(self.read(unpacker.size))


class LocalMessages(dict):
    """Definition messages by local message type.

    Also remembers the last full timestamp read, from which compressed
    timestamp headers are expanded.
    """
    __slots__ = ('last_timestamp',)

    def __init__(self):
        super().__init__()
        self.last_timestamp = None


class DeveloperFields(dict):
    """``field_description`` messages by (developer_data_index,
    field_definition_number), plus ``developer_data_id`` messages by
    developer_data_index in `applications`."""
    __slots__ = ('applications',)

    def __init__(self):
        super().__init__()
        self.applications = {}

    def register(self, name, message):
        index = message.get('developer_data_index')
        if index is None:
            return
        if name == 'developer_data_id':
            self.applications[index] = message
        elif name == 'field_description':
            number = message.get('field_definition_number')
            if number is not None:
                self[index, number] = message


class FitMessageHeader:
    """From the FIT SDK release 20.03.00

    The record header is a one byte bit field. There are actually two types of
    record header: normal header and compressed timestamp header. The header
    type is indicated in the most significant bit (msb) of the record header.
    """
    __slots__ = ('_message_cls', 'local_message_type', 'time_offset',
                 'is_developer_data')

    def message_cls(self, stream, local_messages, developer_fields):
        return self._message_cls(self, stream, local_messages,
                                 developer_fields)


class NormalHeader(FitMessageHeader):
    """From the FIT SDK release 20.03.00

    Normal Header Bit Field Description
    -----------------------------------

    =====  =============  ========================
    Bit        Value      Description
    =====  =============  ========================
      7          0        Normal header
      6        0 or 1     Message type:
                            1: definition message
                            0: data message
      5        0 or 1     Developer data flag
      4          0        Reserved
     0-3        0-15      Local message type
    =====  =============  ========================
    """
    __slots__ = tuple()

    def __init__(self, header_byte):
        self._message_cls = (
            DefinitionMessage if bool(header_byte & 0x40) else DataMessage)
        self.is_developer_data = bool(header_byte & 0x20)
        self.local_message_type = header_byte & 0xF    # bits 0-3
        self.time_offset = None


class CompressedTimestampHeader(FitMessageHeader):
    """From the FIT SDK release 20.03.00

    =====  =============  ========================
    Bit        Value      Description
    =====  =============  ========================
      7          1        Compressed timestamp
     5-6        0-3       Local message type
     0-4        0-31      Time offset (seconds)
    =====  =============  ========================

    NOTE: this type of record header is used for a *data message only*.
    """
    __slots__ = tuple()

    def __init__(self, header_byte):
        self._message_cls = DataMessage
        self.is_developer_data = False
        self.local_message_type = (header_byte >> 5) & 0x3   # bits 5-6
        self.time_offset = header_byte & 0x1F                # bits 0-4


class DefinitionMessage:
    """From the FIT SDK release 20.03.00

    Definition Message Contents
    ---------------------------

    ======  =======================  =============  ===========================
    Byte    Description                 Length      Value
    ======  =======================  =============  ===========================
      0     Reserved                       1         0
      1     Architecture                   1         0: little endian
                                                     1: big endian
     2-3    Global message number          2         Unique to each message
      4     Fields                         1         Number of fields
      5     Field definition(s)            3         Per field
     ...    Developer fields               1         Only with the developer
            (+ definitions)               3/field    data flag set
    ======  =======================  =============  ===========================

    """
    __slots__ = ('header', 'global_mesg_num', 'name', 'type', 'endian',
                 'field_defs', 'dev_field_defs')

    def __init__(self, header, stream, local_messages, developer_fields):
        self.header = header

        __, big_endian = stream.unpack('<2B')   # ignore reserved
        self.endian = '>' if big_endian else '<'

        self.global_mesg_num, field_count = stream.unpack(self.endian + 'HB')
        self.name = GLOBAL_MESG_NUMS.get(
            self.global_mesg_num, 'unknown_%d' % self.global_mesg_num)
        self.type = MESSAGE_TYPES.get(self.name, EMPTY_DICT)

        self.field_defs = [FieldDefinition(stream, self.type, self.endian)
                           for _ in range(field_count)]

        self.dev_field_defs = []
        if header.is_developer_data:
            dev_count, = stream.unpack('<B')
            self.dev_field_defs = [
                DevFieldDefinition(stream, developer_fields, self.endian)
                for _ in range(dev_count)]

        # Redefinition is allowed: the latest one wins.
        local_messages[header.local_message_type] = self

        logger.debug('local message %d defined as %s (%d fields)',
                     header.local_message_type, self.name, field_count)


class DataMessage:
    """The useful part of a *.fit file.

    The header identifies an associated definition message. We pull the
    field definitions from that message and use them to parse data from
    the stream.
    """
    __slots__ = ('header', 'name', 'fields', 'raw_timestamp')

    def __init__(self, header, stream, local_messages, developer_fields):
        self.header = header

        def_message = local_messages.get(header.local_message_type)
        if def_message is None:
            raise FITMessageHeaderError(
                'invalid local message type (%d) @ %d' %
                (header.local_message_type, stream.offset - 1))

        self.name = def_message.name
        self.raw_timestamp = None
        self.fields = {}

        for field_def in def_message.field_defs:
            value = field_def.read(stream)
            if value is None:   # invalid
                continue
            if field_def.def_num == TIMESTAMP_FIELD_NUM:
                # timestamps are a single uint32; anything else is kept raw
                if not isinstance(value, int) or value > 0xFFFFFFFF:
                    self.fields['field_%d' % TIMESTAMP_FIELD_NUM] = value
                    continue
                self.raw_timestamp = value
            self.fields[field_def.name] = decode_value(field_def.data, value)

        for dev_field_def in def_message.dev_field_defs:
            value = dev_field_def.read(stream)
            if value is None or dev_field_def.name is None:
                continue
            self.fields[dev_field_def.name] = decode_value(
                dev_field_def.data, value)

        if self.raw_timestamp is not None:
            local_messages.last_timestamp = self.raw_timestamp
        elif header.time_offset is not None:
            self._expand_compressed_timestamp(local_messages)

    def _expand_compressed_timestamp(self, local_messages):
        """From the FIT SDK release 20.03.00

        The time offset is the least significant 5 bits of a timestamp that
        rolls over every 32 seconds, relative to the last full timestamp.
        """
        last = local_messages.last_timestamp
        if last is None:
            return
        offset = self.header.time_offset
        timestamp = (last & ~0x1F) + offset
        if offset < (last & 0x1F):
            timestamp += 0x20
        local_messages.last_timestamp = self.raw_timestamp = timestamp
        self.fields['timestamp'] = to_datetime(timestamp)


class FieldDefinition:
    """From the FIT SDK release 20.03.00

    Field Definition Contents
    -------------------------

    ======  =================  ===============================================
     Byte    Name               Description
    ======  =================  ===============================================
      0     Field definition   Defined in the global FIT profile for the
            number             specified FIT message.
      1     Size               Size (in bytes) of the specified FIT message's
                               field.
      2     Base type          Base type of the specified FIT message's field.
    ======  =================  ===============================================

    """
    __slots__ = ('def_num', 'size', 'base_type', 'data', 'name', 'endian')

    def __init__(self, stream, message_type, endian):
        # NOTE: reading single bytes, so no need to apply endianness here.
        self.def_num, self.size, base_type_num = stream.unpack('<3B')
        self.base_type = BASE_TYPES.get(base_type_num, BASE_TYPE_BYTE)
        if self.size % self.base_type.size:
            self.base_type = BASE_TYPE_BYTE
        self.data = message_type.get(self.def_num, EMPTY_DICT)
        self.name = self.data.get('field_name', 'field_%d' % self.def_num)
        self.endian = endian

    @property
    def n_values(self):
        return self.size // self.base_type.size

    @property
    def fmt(self):
        """Format for struct.unpacking."""
        if self.base_type.fmt == 's':
            return '{}s'.format(self.size)
        return '{0.endian}{0.n_values}{0.base_type.fmt}'.format(self)

    def read(self, stream):
        """Read this field from the stream and scrub invalid values.

        Arrays come back as lists, None when every element is invalid.
        """
        values = struct.unpack(self.fmt, stream.read(self.size))
        parse = self.base_type.parse

        if len(values) == 1:
            return parse(values[0])

        if self.base_type is BASE_TYPE_BYTE:
            # a byte array is one value, only invalid as a whole
            return list(values) if any(v != 0xFF for v in values) else None

        parsed = [parse(v) for v in values]
        if all(v is None for v in parsed):
            return None
        return parsed


class DevFieldDefinition(FieldDefinition):
    """A developer field: same three bytes as a regular field definition but
    the last one is a developer data index, and meaning comes from an earlier
    ``field_description`` message."""
    __slots__ = ('dev_data_index',)

    def __init__(self, stream, developer_fields, endian):
        self.def_num, self.size, self.dev_data_index = stream.unpack('<3B')
        self.endian = endian

        description = developer_fields.get(
            (self.dev_data_index, self.def_num))
        if description is None:
            # Unknown to us: the bytes still need consuming.
            self.data, self.name = EMPTY_DICT, None
            self.base_type = BASE_TYPE_BYTE
            return

        self.data = description
        self.name = description.get(
            'field_name',
            'developer_%d_%d' % (self.dev_data_index, self.def_num))
        self.base_type = lookup_base_type(description.get('fit_base_type_id'))
        if self.size % self.base_type.size:
            self.base_type = BASE_TYPE_BYTE


def lookup_base_type(key):
    """By name (as decoded through the profile) or by raw identifier."""
    if isinstance(key, str):
        return BASE_TYPES_BY_NAME.get(key, BASE_TYPE_BYTE)
    return BASE_TYPES.get(key, BASE_TYPE_BYTE)


def to_datetime(seconds):
    """FIT timestamps count seconds since UTC 00:00 Dec 31 1989.

    Values beyond what `datetime` can hold are left as they are.
    """
    try:
        return FIT_EPOCH + timedelta(seconds=seconds)
    except OverflowError:
        return seconds


def apply_scale_offset(field_data, field_value):
    """From the FIT SDK release 20.03.00

    A scale or offset may be specified in the FIT profile for binary fields
    (sint/uint etc.) only. When specified, the binary quantity is divided by
    the scale factor and then the offset is subtracted, yielding a floating
    point quantity.
    """
    scale = field_data.get('scale') or 1
    offset = field_data.get('offset') or 0
    if scale == 1 and offset == 0:
        return field_value
    return field_value / scale - offset


def decode_value(field_data, value):
    """Turn a scrubbed raw value into what callers want to see: enum names,
    datetimes, degrees, or scaled quantities."""
    if isinstance(value, str):
        return value

    if isinstance(value, list):
        return [None if v is None else decode_value(field_data, v)
                for v in value]

    field_type = field_data.get('field_type')

    if field_type in TYPES_INFO:
        return TYPES_INFO[field_type].get(value, value)

    if field_type == 'date_time':
        return to_datetime(value)

    if field_data.get('units') == 'semicircles':
        return semicircles_to_degrees(value)

    return apply_scale_offset(field_data, value)


def read_fit_message(stream, local_messages, developer_fields):
    """Parse a message (header + contents)."""
    header_byte, = stream.unpack('<B')
    # A value of 0 in bit 7 indicates that this is a normal header.
    header_cls = (CompressedTimestampHeader if (header_byte & 0x80) else
                  NormalHeader)
    header = header_cls(header_byte)

    return header.message_cls(stream, local_messages, developer_fields)


def read_record(blob, local_messages, developer_fields, offset,
                options=None, start_date=None, paused_time=0):
    """Decode exactly one record of a *.fit buffer.

    Parameters
    ----------
    blob : bytes
        The whole file.
    local_messages : LocalMessages
        Definitions seen so far; updated in place by definition records.
    developer_fields : DeveloperFields
        Developer field descriptions seen so far; updated in place by
        ``developer_data_id`` and ``field_description`` messages.
    offset : int
        Where the record header byte sits.
    options : ParserOptions, optional
        Only ``elapsed_record_field`` is looked at.
    start_date : datetime, optional
        Timestamp of the first ``record`` message, once known.
    paused_time : float
        Seconds the timer has been stopped for so far.

    Returns
    -------
    (next_offset, kind, message)
        `kind` is '' for definition records, in which case `message` is an
        empty dict.

    Raises
    ------
    FITMessageHeaderError
        A data record refers to a local message type never defined.
    TruncatedRecordError
        The record runs off the end of `blob`.
    """
    stream = FitStream(blob, offset)
    fit_message = read_fit_message(stream, local_messages, developer_fields)

    if isinstance(fit_message, DefinitionMessage):
        return stream.offset, '', {}

    kind, message = fit_message.name, fit_message.fields
    developer_fields.register(kind, message)

    elapsed_record_field = getattr(options, 'elapsed_record_field', False)
    if (kind == 'record' and elapsed_record_field and
            start_date is not None and 'timestamp' in message):
        elapsed = (message['timestamp'] - start_date).total_seconds()
        message['elapsed_time'] = elapsed
        message['timer_time'] = elapsed - paused_time

    return stream.offset, kind, message


def compute_crc(blob, start=0, end=None):
    """The 16-bit CRC the FIT SDK uses (CRC-16/ARC, a nibble at a time)."""
    if end is None:
        end = len(blob)

    crc = 0
    for byte in memoryview(blob)[start:end]:
        tmp = CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRC_TABLE[byte & 0xF]

        tmp = CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRC_TABLE[(byte >> 4) & 0xF]

    return crc
