#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import io

import pytest

from fitio import fit
from fitio.fit._reading import ActivityAssembler, AssemblyPolicy
from fitio._util.exceptions import (
    FileTooSmallError, FITMessageHeaderError, HeaderSizeError,
    MagicMarkerError, TruncatedRecordError)

from fitio.fit.test._builder import (
    EVENT, RECORD, T0, UINT16, UINT32,
    activity_file, data, define, definition, event, fit_file, fit_time,
    record)


FLAT_KEYS = ('sessions', 'laps', 'records', 'events', 'device_infos',
             'developer_data_ids', 'field_descriptions', 'hrv',
             'dive_gases', 'course_points')


# setup
blob = activity_file()
flat = fit.parse(blob)
nested = fit.parse(blob, mode='cascade')
both = fit.parse(blob, mode='both')


def test_flat_layout():
    assert set(flat) == set(FLAT_KEYS) | {'file_id'}
    assert flat.errors == []

    assert len(flat['device_infos']) == 1
    assert flat['device_infos'][0]['manufacturer'] == 'garmin'
    assert len(flat['records']) == 2
    assert len(flat['laps']) == 2
    assert len(flat['sessions']) == 1
    assert len(flat['events']) == 2
    assert flat['sessions'][0]['sport'] == 'cycling'
    assert flat['file_id'] == {'type': 'activity', 'manufacturer': 'garmin',
                               'time_created': fit_time(T0)}

    # no nesting
    assert 'activity' not in flat
    assert 'records' not in flat['laps'][0]
    assert 'laps' not in flat['sessions'][0]


def test_cascade_layout():
    assert set(nested) == {'file_id', 'activity'}

    activity = nested['activity']
    assert len(activity['sessions']) == 1
    laps = activity['sessions'][0]['laps']
    assert len(laps) == 2
    assert [r['heart_rate'] for r in laps[0]['records']] == [120, 125]
    assert laps[1]['records'] == []
    assert len(activity['events']) == 2
    assert activity['hrv'] == []


def test_both_layout_matches():
    for key in FLAT_KEYS:
        assert both[key] == flat[key], key
    assert both['activity']['sessions'] == nested['activity']['sessions']
    assert both['activity']['events'] == flat['events']


def test_first_record_is_time_origin():
    first, second = flat['records']
    assert first['elapsed_time'] == 0
    assert first['timer_time'] == 0
    assert first['timestamp'] == fit_time(T0)
    assert 'elapsed_time' not in second
    assert second['distance'] == pytest.approx(3.5)


def test_elapsed_record_field():
    result = fit.parse(fit_file(
        define(RECORD, EVENT),
        record(T0),
        event(T0 + 10, 0, 4),     # stop_all
        event(T0 + 40, 0, 0),     # start
        record(T0 + 60)), elapsed_record_field=True)

    first, second = result['records']
    assert (first['elapsed_time'], first['timer_time']) == (0, 0)
    assert second['elapsed_time'] == 60
    assert second['timer_time'] == 30


def test_paused_time():
    assembler = ActivityAssembler(AssemblyPolicy.FLAT)

    def timer(seconds, event_type):
        assembler.add('event', {'event': 'timer', 'event_type': event_type,
                                'timestamp': fit_time(T0 + seconds)})

    timer(0, 'start')          # nothing stopped yet
    timer(10, 'stop_all')
    timer(40, 'start')
    assert assembler.paused_time == 30

    assembler.add('event', {'event': 'lap', 'event_type': 'start',
                            'timestamp': fit_time(T0 + 50)})
    timer(100, 'stop_all')
    timer(125, 'start')
    assert assembler.paused_time == 55

    timer(200, 'stop_all')     # never restarted
    assert assembler.paused_time == 55
    assert len(assembler.build()['events']) == 7


def test_other_kinds_last_one_wins():
    assembler = ActivityAssembler(AssemblyPolicy.FLAT)
    assembler.add('sport', {'name': 'first'})
    assembler.add('', {'ignored': True})
    assembler.add('sport', {'name': 'second'})

    result = assembler.build()
    assert result['sport'] == {'name': 'second'}
    assert '' not in result


def test_activity_message_is_extended_when_nesting():
    assembler = ActivityAssembler(AssemblyPolicy.NEST)
    assembler.add('activity', {'num_sessions': 1})
    assembler.add('session', {'sport': 'running'})

    result = assembler.build()
    assert result['activity']['num_sessions'] == 1
    assert result['activity']['sessions'] == [{'sport': 'running', 'laps': []}]
    assert 'sessions' not in result


def test_header_size_12():
    result = fit.parse(activity_file(header_size=12))
    assert result.errors == []
    assert result == flat


def test_crc_mismatches_are_not_reported():
    corrupt = activity_file(header_crc=False, file_crc=False)

    result = fit.parse(corrupt)
    assert result.errors == []
    assert result.error is None
    assert result == flat

    assert fit.parse(corrupt, force=False) == flat


def test_too_small():
    result = fit.parse(b'\x0e\x10')
    assert [type(e) for e in result.errors] == [
        FileTooSmallError, MagicMarkerError]
    assert result['records'] == []

    result = fit.parse(b'')
    assert [type(e) for e in result.errors] == [
        FileTooSmallError, HeaderSizeError, MagicMarkerError]

    with pytest.raises(FileTooSmallError):
        fit.parse(b'\x0e\x10', force=False)


def test_bad_header_size():
    odd = activity_file(header_size=16)

    result = fit.parse(odd)
    assert len(result.errors) == 1
    assert isinstance(result.errors[0], HeaderSizeError)
    assert result.errors[0].header_length == 16
    assert len(result['records']) == 2

    with pytest.raises(HeaderSizeError):
        fit.parse(odd, force=False)


def test_missing_magic_marker():
    result = fit.parse(activity_file(magic=b'.FXT'))
    assert [type(e) for e in result.errors] == [MagicMarkerError]
    assert len(result['laps']) == 2

    with pytest.raises(MagicMarkerError):
        fit.parse(activity_file(magic=b'.FXT'), force=False)


def test_callback():
    calls = []
    result = fit.parse(blob, lambda *args: calls.append(args), mode='both')
    assert calls == [(None, result)]

    calls = []
    result = fit.parse(b'', lambda *args: calls.append(args), force=False)
    assert result == {}
    assert calls == [("file too small to be a fit file", {})]

    calls = []
    result = fit.parse(activity_file(magic=b'.FXT'),
                       lambda *args: calls.append(args))
    assert calls == [("missing '.FIT' in header", result)]
    assert len(result['records']) == 2


def test_undefined_local_message_stops_decoding():
    broken = fit_file(
        define(RECORD),
        record(T0),
        data(7, 'B', 1),    # local type 7 was never defined
        record(T0 + 1))

    result = fit.parse(broken)
    assert len(result['records']) == 1
    assert isinstance(result.errors[-1], FITMessageHeaderError)

    with pytest.raises(FITMessageHeaderError):
        fit.parse(broken, force=False)


def test_truncated_record_stops_decoding():
    result = fit.parse(fit_file(define(RECORD), record(T0), record(T0 + 1)[:-5]))
    assert len(result['records']) == 1
    assert isinstance(result.errors[-1], TruncatedRecordError)


def test_sources():
    assert fit.parse(io.BytesIO(blob)) == flat
    assert fit.parse(bytearray(blob)) == flat


def test_parsers_do_not_share_state():
    parser = fit.FitParser(mode='cascade')
    first = parser.parse(blob)
    second = parser.parse(blob)
    assert first == second == nested
    assert first['activity'] is not second['activity']


def test_big_endian_file():
    result = fit.parse(fit_file(
        definition(0, 20, [(253, 4, UINT32), (7, 2, UINT16)], big_endian=True),
        data(0, 'IH', T0, 250, big_endian=True),
        definition(1, 19, [(253, 4, UINT32)], big_endian=True),
        data(1, 'I', T0 + 1, big_endian=True)))
    assert result['records'][0]['power'] == 250
    assert result['laps'][0]['timestamp'] == fit_time(T0 + 1)


def test_options():
    with pytest.raises(ValueError):
        fit.FitParser(mode='tree')

    options = fit.ParserOptions(mode='both', force=0)
    assert options.policy is AssemblyPolicy.BOTH
    assert options.mode == 'both'
    assert options.force is False
    assert fit.ParserOptions(force=None).force is True
    assert options.speed_unit == 'm/s'


def test_array_timestamp_is_kept_raw():
    timer_event = definition(EVENT, 21, [(253, 8, UINT32), (0, 1, 0),
                                         (1, 1, 0)])
    result = fit.parse(fit_file(
        timer_event,
        data(EVENT, 'IIBB', T0, T0 + 1, 0, 4),        # stop_all
        data(EVENT, 'IIBB', T0 + 30, T0 + 31, 0, 0),  # start
        define(RECORD),
        record(T0 + 60)), elapsed_record_field=True)

    assert result.errors == []
    stop, start = result['events']
    assert stop['field_253'] == [T0, T0 + 1]
    assert 'timestamp' not in stop
    assert (stop['event'], start['event_type']) == ('timer', 'start')
    assert result['records'][0]['timestamp'] == fit_time(T0 + 60)


def test_one_byte_records_each_decoded_once():
    empty = definition(RECORD, 20, [])
    count = 50
    blob = fit_file(empty, *[data(RECORD, '')] * count)

    header_length, crc_start = 14, len(blob) - 2
    assert crc_start - header_length - len(empty) == count

    result = fit.parse(blob)
    assert result.errors == []
    assert len(result['records']) == count
    assert len({id(r) for r in result['records']}) == count
