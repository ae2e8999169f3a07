#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Put together small *.fit files byte by byte for the tests.

"""
from datetime import timedelta
import struct

from fitio.fit._protocol import FIT_EPOCH, compute_crc


T0 = 1000000000   # a FIT timestamp; its low 5 bits are zero

# base types
ENUM, UINT8, UINT16, UINT32, STRING = 0x00, 0x02, 0x84, 0x86, 0x07

# local message types
FILE_ID, RECORD, EVENT, LAP, SESSION, DEVICE_INFO = range(6)

DEFINITIONS = {   # local type: (global number, [(field number, size, base type)])
    FILE_ID: (0, [(0, 1, ENUM), (1, 2, UINT16), (4, 4, UINT32)]),
    RECORD: (20, [(253, 4, UINT32), (3, 1, UINT8), (5, 4, UINT32)]),
    EVENT: (21, [(253, 4, UINT32), (0, 1, ENUM), (1, 1, ENUM)]),
    LAP: (19, [(253, 4, UINT32), (7, 4, UINT32)]),
    SESSION: (18, [(253, 4, UINT32), (5, 1, ENUM)]),
    DEVICE_INFO: (23, [(253, 4, UINT32), (2, 2, UINT16)]),
}


def fit_time(raw):
    return FIT_EPOCH + timedelta(seconds=raw)


def definition(local_type, global_num, fields, *,
               big_endian=False, dev_fields=None):
    header = 0x40 | (local_type & 0xF) | (0x20 if dev_fields else 0)
    endian = '>' if big_endian else '<'
    out = struct.pack('<3B', header, 0, 1 if big_endian else 0)
    out += struct.pack(endian + 'HB', global_num, len(fields))
    out += b''.join(struct.pack('<3B', *field) for field in fields)
    if dev_fields:
        out += struct.pack('<B', len(dev_fields))
        out += b''.join(struct.pack('<3B', *field) for field in dev_fields)
    return out


def data(local_type, fmt, *values, big_endian=False):
    endian = '>' if big_endian else '<'
    return struct.pack('<B', local_type & 0xF) + struct.pack(endian + fmt, *values)


def compressed(local_type, time_offset, fmt, *values):
    header = 0x80 | ((local_type & 0x3) << 5) | (time_offset & 0x1F)
    return struct.pack('<B', header) + struct.pack('<' + fmt, *values)


def define(*local_types):
    return b''.join(definition(local_type, *DEFINITIONS[local_type])
                    for local_type in local_types)


def file_id(created=T0):
    return data(FILE_ID, 'BHI', 4, 1, created)


def record(timestamp, heart_rate=150, distance=0):
    return data(RECORD, 'IBI', timestamp, heart_rate, distance)


def event(timestamp, event_num, event_type_num):
    return data(EVENT, 'IBB', timestamp, event_num, event_type_num)


def lap(timestamp, elapsed_ms):
    return data(LAP, 'II', timestamp, elapsed_ms)


def session(timestamp, sport=2):
    return data(SESSION, 'IB', timestamp, sport)


def device_info(timestamp, manufacturer=1):
    return data(DEVICE_INFO, 'IH', timestamp, manufacturer)


def fit_file(*records, header_size=14, magic=b'.FIT',
             header_crc=True, file_crc=True):
    """Wrap records into a complete file.

    Header sizes other than 12 and 14 get zero padding so the records still
    start right after the header.
    """
    body = b''.join(records)
    header = struct.pack('<2BHI4s', header_size, 0x10, 2093, len(body), magic)
    if header_size == 14:
        crc = compute_crc(header)
        header += struct.pack('<H', crc if header_crc else crc ^ 0xFFFF)
    elif header_size > 12:
        header += bytes(header_size - 12)

    crc = compute_crc(header + body, 0 if header_size == 12 else header_size)
    if not file_crc:
        crc ^= 0xFFFF
    return header + body + struct.pack('<H', crc)


def activity_file(**kwargs):
    """A session of two laps, records only before the first, plus a
    device_info message."""
    return fit_file(
        define(FILE_ID, RECORD, EVENT, LAP, SESSION, DEVICE_INFO),
        file_id(),
        device_info(T0),
        event(T0, 0, 0),            # timer start
        record(T0, 120, 0),
        record(T0 + 1, 125, 350),
        lap(T0 + 1, 1000),
        lap(T0 + 2, 1000),
        event(T0 + 2, 0, 4),        # timer stop_all
        session(T0 + 2),
        **kwargs)
