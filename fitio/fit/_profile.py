#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
A compact FIT profile: base types plus the messages and enumerations this
package knows how to name.

The layout is the one the FIT SDK's "Profile.xlsx" uses: messages are keyed
by name and map field definition numbers to field data (name, type, scale,
offset and units); types map raw values to names. Anything not listed here
still decodes, just without friendly names.

"""
from math import isnan
import struct


class BaseType:
    __slots__ = ('name', 'identifier', 'fmt', 'parse')

    def __init__(self, **kwargs):
        for name, value in kwargs.items():
            setattr(self, name, value)

    @property
    def size(self):
        return struct.calcsize('<' + self.fmt)

    @property
    def type_num(self):
        return self.identifier & 0x1F


def _parse_string(raw):
    text = raw.split(b'\x00')[0].decode('utf-8', 'replace')
    return text or None


BASE_TYPE_BYTE = BaseType(name='byte', identifier=0x0D, fmt='B', parse=lambda x: None if x == 0xFF else x)

# Decide how invalid values are to be handled with the `parse` attribute.
BASE_TYPES = {
    0x00: BaseType(name='enum',    identifier=0x00, fmt='B', parse=lambda x: None if x == 0xFF else x),
    0x01: BaseType(name='sint8',   identifier=0x01, fmt='b', parse=lambda x: None if x == 0x7F else x),
    0x02: BaseType(name='uint8',   identifier=0x02, fmt='B', parse=lambda x: None if x == 0xFF else x),
    0x83: BaseType(name='sint16',  identifier=0x83, fmt='h', parse=lambda x: None if x == 0x7FFF else x),
    0x84: BaseType(name='uint16',  identifier=0x84, fmt='H', parse=lambda x: None if x == 0xFFFF else x),
    0x85: BaseType(name='sint32',  identifier=0x85, fmt='i', parse=lambda x: None if x == 0x7FFFFFFF else x),
    0x86: BaseType(name='uint32',  identifier=0x86, fmt='I', parse=lambda x: None if x == 0xFFFFFFFF else x),
    0x07: BaseType(name='string',  identifier=0x07, fmt='s', parse=_parse_string),
    0x88: BaseType(name='float32', identifier=0x88, fmt='f', parse=lambda x: None if isnan(x) else x),
    0x89: BaseType(name='float64', identifier=0x89, fmt='d', parse=lambda x: None if isnan(x) else x),
    0x0A: BaseType(name='uint8z',  identifier=0x0A, fmt='B', parse=lambda x: None if x == 0x0 else x),
    0x8B: BaseType(name='uint16z', identifier=0x8B, fmt='H', parse=lambda x: None if x == 0x0 else x),
    0x8C: BaseType(name='uint32z', identifier=0x8C, fmt='I', parse=lambda x: None if x == 0x0 else x),
    0x0D: BASE_TYPE_BYTE,
    0x8E: BaseType(name='sint64',  identifier=0x8E, fmt='q', parse=lambda x: None if x == 0x7FFFFFFFFFFFFFFF else x),
    0x8F: BaseType(name='uint64',  identifier=0x8F, fmt='Q', parse=lambda x: None if x == 0xFFFFFFFFFFFFFFFF else x),
    0x90: BaseType(name='uint64z', identifier=0x90, fmt='Q', parse=lambda x: None if x == 0x0 else x)}

BASE_TYPES_BY_NAME = {bt.name: bt for bt in BASE_TYPES.values()}


# Messages
# --------
TIMESTAMP = {'field_name': 'timestamp', 'field_type': 'date_time', 'units': 's'}
MESSAGE_INDEX = {'field_name': 'message_index', 'field_type': 'uint16'}

MESSAGE_TYPES = {
    'file_id': {
        0: {'field_name': 'type', 'field_type': 'file'},
        1: {'field_name': 'manufacturer', 'field_type': 'manufacturer'},
        2: {'field_name': 'product', 'field_type': 'uint16'},
        3: {'field_name': 'serial_number', 'field_type': 'uint32z'},
        4: {'field_name': 'time_created', 'field_type': 'date_time'},
        5: {'field_name': 'number', 'field_type': 'uint16'},
        8: {'field_name': 'product_name', 'field_type': 'string'}},
    'file_creator': {
        0: {'field_name': 'software_version', 'field_type': 'uint16'},
        1: {'field_name': 'hardware_version', 'field_type': 'uint8'}},
    'sport': {
        0: {'field_name': 'sport', 'field_type': 'sport'},
        1: {'field_name': 'sub_sport', 'field_type': 'sub_sport'},
        3: {'field_name': 'name', 'field_type': 'string'}},
    'session': {
        254: MESSAGE_INDEX,
        253: TIMESTAMP,
        0: {'field_name': 'event', 'field_type': 'event'},
        1: {'field_name': 'event_type', 'field_type': 'event_type'},
        2: {'field_name': 'start_time', 'field_type': 'date_time'},
        3: {'field_name': 'start_position_lat', 'field_type': 'sint32', 'units': 'semicircles'},
        4: {'field_name': 'start_position_long', 'field_type': 'sint32', 'units': 'semicircles'},
        5: {'field_name': 'sport', 'field_type': 'sport'},
        6: {'field_name': 'sub_sport', 'field_type': 'sub_sport'},
        7: {'field_name': 'total_elapsed_time', 'field_type': 'uint32', 'scale': 1000, 'units': 's'},
        8: {'field_name': 'total_timer_time', 'field_type': 'uint32', 'scale': 1000, 'units': 's'},
        9: {'field_name': 'total_distance', 'field_type': 'uint32', 'scale': 100, 'units': 'm'},
        10: {'field_name': 'total_cycles', 'field_type': 'uint32', 'units': 'cycles'},
        11: {'field_name': 'total_calories', 'field_type': 'uint16', 'units': 'kcal'},
        13: {'field_name': 'total_fat_calories', 'field_type': 'uint16', 'units': 'kcal'},
        14: {'field_name': 'avg_speed', 'field_type': 'uint16', 'scale': 1000, 'units': 'm/s'},
        15: {'field_name': 'max_speed', 'field_type': 'uint16', 'scale': 1000, 'units': 'm/s'},
        16: {'field_name': 'avg_heart_rate', 'field_type': 'uint8', 'units': 'bpm'},
        17: {'field_name': 'max_heart_rate', 'field_type': 'uint8', 'units': 'bpm'},
        18: {'field_name': 'avg_cadence', 'field_type': 'uint8', 'units': 'rpm'},
        19: {'field_name': 'max_cadence', 'field_type': 'uint8', 'units': 'rpm'},
        20: {'field_name': 'avg_power', 'field_type': 'uint16', 'units': 'watts'},
        21: {'field_name': 'max_power', 'field_type': 'uint16', 'units': 'watts'},
        22: {'field_name': 'total_ascent', 'field_type': 'uint16', 'units': 'm'},
        23: {'field_name': 'total_descent', 'field_type': 'uint16', 'units': 'm'},
        25: {'field_name': 'first_lap_index', 'field_type': 'uint16'},
        26: {'field_name': 'num_laps', 'field_type': 'uint16'},
        28: {'field_name': 'trigger', 'field_type': 'session_trigger'},
        57: {'field_name': 'avg_temperature', 'field_type': 'sint8', 'units': 'C'},
        58: {'field_name': 'max_temperature', 'field_type': 'sint8', 'units': 'C'}},
    'lap': {
        254: MESSAGE_INDEX,
        253: TIMESTAMP,
        0: {'field_name': 'event', 'field_type': 'event'},
        1: {'field_name': 'event_type', 'field_type': 'event_type'},
        2: {'field_name': 'start_time', 'field_type': 'date_time'},
        3: {'field_name': 'start_position_lat', 'field_type': 'sint32', 'units': 'semicircles'},
        4: {'field_name': 'start_position_long', 'field_type': 'sint32', 'units': 'semicircles'},
        5: {'field_name': 'end_position_lat', 'field_type': 'sint32', 'units': 'semicircles'},
        6: {'field_name': 'end_position_long', 'field_type': 'sint32', 'units': 'semicircles'},
        7: {'field_name': 'total_elapsed_time', 'field_type': 'uint32', 'scale': 1000, 'units': 's'},
        8: {'field_name': 'total_timer_time', 'field_type': 'uint32', 'scale': 1000, 'units': 's'},
        9: {'field_name': 'total_distance', 'field_type': 'uint32', 'scale': 100, 'units': 'm'},
        10: {'field_name': 'total_cycles', 'field_type': 'uint32', 'units': 'cycles'},
        11: {'field_name': 'total_calories', 'field_type': 'uint16', 'units': 'kcal'},
        13: {'field_name': 'avg_speed', 'field_type': 'uint16', 'scale': 1000, 'units': 'm/s'},
        14: {'field_name': 'max_speed', 'field_type': 'uint16', 'scale': 1000, 'units': 'm/s'},
        15: {'field_name': 'avg_heart_rate', 'field_type': 'uint8', 'units': 'bpm'},
        16: {'field_name': 'max_heart_rate', 'field_type': 'uint8', 'units': 'bpm'},
        17: {'field_name': 'avg_cadence', 'field_type': 'uint8', 'units': 'rpm'},
        18: {'field_name': 'max_cadence', 'field_type': 'uint8', 'units': 'rpm'},
        19: {'field_name': 'avg_power', 'field_type': 'uint16', 'units': 'watts'},
        20: {'field_name': 'max_power', 'field_type': 'uint16', 'units': 'watts'},
        21: {'field_name': 'total_ascent', 'field_type': 'uint16', 'units': 'm'},
        22: {'field_name': 'total_descent', 'field_type': 'uint16', 'units': 'm'},
        23: {'field_name': 'intensity', 'field_type': 'intensity'},
        24: {'field_name': 'lap_trigger', 'field_type': 'lap_trigger'},
        25: {'field_name': 'sport', 'field_type': 'sport'},
        50: {'field_name': 'avg_temperature', 'field_type': 'sint8', 'units': 'C'},
        51: {'field_name': 'max_temperature', 'field_type': 'sint8', 'units': 'C'}},
    'record': {
        253: TIMESTAMP,
        0: {'field_name': 'position_lat', 'field_type': 'sint32', 'units': 'semicircles'},
        1: {'field_name': 'position_long', 'field_type': 'sint32', 'units': 'semicircles'},
        2: {'field_name': 'altitude', 'field_type': 'uint16', 'scale': 5, 'offset': 500, 'units': 'm'},
        3: {'field_name': 'heart_rate', 'field_type': 'uint8', 'units': 'bpm'},
        4: {'field_name': 'cadence', 'field_type': 'uint8', 'units': 'rpm'},
        5: {'field_name': 'distance', 'field_type': 'uint32', 'scale': 100, 'units': 'm'},
        6: {'field_name': 'speed', 'field_type': 'uint16', 'scale': 1000, 'units': 'm/s'},
        7: {'field_name': 'power', 'field_type': 'uint16', 'units': 'watts'},
        13: {'field_name': 'temperature', 'field_type': 'sint8', 'units': 'C'},
        53: {'field_name': 'fractional_cadence', 'field_type': 'uint8', 'scale': 128, 'units': 'rpm'},
        73: {'field_name': 'enhanced_speed', 'field_type': 'uint32', 'scale': 1000, 'units': 'm/s'},
        78: {'field_name': 'enhanced_altitude', 'field_type': 'uint32', 'scale': 5, 'offset': 500, 'units': 'm'}},
    'event': {
        253: TIMESTAMP,
        0: {'field_name': 'event', 'field_type': 'event'},
        1: {'field_name': 'event_type', 'field_type': 'event_type'},
        2: {'field_name': 'data16', 'field_type': 'uint16'},
        3: {'field_name': 'data', 'field_type': 'uint32'},
        4: {'field_name': 'event_group', 'field_type': 'uint8'}},
    'device_info': {
        253: TIMESTAMP,
        0: {'field_name': 'device_index', 'field_type': 'uint8'},
        1: {'field_name': 'device_type', 'field_type': 'uint8'},
        2: {'field_name': 'manufacturer', 'field_type': 'manufacturer'},
        3: {'field_name': 'serial_number', 'field_type': 'uint32z'},
        4: {'field_name': 'product', 'field_type': 'uint16'},
        5: {'field_name': 'software_version', 'field_type': 'uint16', 'scale': 100},
        6: {'field_name': 'hardware_version', 'field_type': 'uint8'},
        7: {'field_name': 'cum_operating_time', 'field_type': 'uint32', 'units': 's'},
        10: {'field_name': 'battery_voltage', 'field_type': 'uint16', 'scale': 256, 'units': 'V'},
        11: {'field_name': 'battery_status', 'field_type': 'battery_status'},
        27: {'field_name': 'product_name', 'field_type': 'string'}},
    'activity': {
        253: TIMESTAMP,
        0: {'field_name': 'total_timer_time', 'field_type': 'uint32', 'scale': 1000, 'units': 's'},
        1: {'field_name': 'num_sessions', 'field_type': 'uint16'},
        2: {'field_name': 'type', 'field_type': 'activity'},
        3: {'field_name': 'event', 'field_type': 'event'},
        4: {'field_name': 'event_type', 'field_type': 'event_type'},
        5: {'field_name': 'local_timestamp', 'field_type': 'date_time'},
        6: {'field_name': 'event_group', 'field_type': 'uint8'}},
    'course_point': {
        254: MESSAGE_INDEX,
        1: {'field_name': 'timestamp', 'field_type': 'date_time', 'units': 's'},
        2: {'field_name': 'position_lat', 'field_type': 'sint32', 'units': 'semicircles'},
        3: {'field_name': 'position_long', 'field_type': 'sint32', 'units': 'semicircles'},
        4: {'field_name': 'distance', 'field_type': 'uint32', 'scale': 100, 'units': 'm'},
        5: {'field_name': 'type', 'field_type': 'course_point'},
        6: {'field_name': 'name', 'field_type': 'string'}},
    'hrv': {
        0: {'field_name': 'time', 'field_type': 'uint16', 'scale': 1000, 'units': 's'}},
    'dive_gas': {
        254: MESSAGE_INDEX,
        0: {'field_name': 'helium_content', 'field_type': 'uint8', 'units': 'percent'},
        1: {'field_name': 'oxygen_content', 'field_type': 'uint8', 'units': 'percent'},
        2: {'field_name': 'status', 'field_type': 'dive_gas_status'}},
    'field_description': {
        0: {'field_name': 'developer_data_index', 'field_type': 'uint8'},
        1: {'field_name': 'field_definition_number', 'field_type': 'uint8'},
        2: {'field_name': 'fit_base_type_id', 'field_type': 'fit_base_type'},
        3: {'field_name': 'field_name', 'field_type': 'string'},
        4: {'field_name': 'array', 'field_type': 'uint8'},
        5: {'field_name': 'components', 'field_type': 'string'},
        6: {'field_name': 'scale', 'field_type': 'uint8'},
        7: {'field_name': 'offset', 'field_type': 'sint8'},
        8: {'field_name': 'units', 'field_type': 'string'},
        9: {'field_name': 'bits', 'field_type': 'string'},
        10: {'field_name': 'accumulate', 'field_type': 'string'},
        13: {'field_name': 'fit_base_unit_id', 'field_type': 'uint16'},
        14: {'field_name': 'native_mesg_num', 'field_type': 'uint16'},
        15: {'field_name': 'native_field_num', 'field_type': 'uint8'}},
    'developer_data_id': {
        0: {'field_name': 'developer_id', 'field_type': 'byte'},
        1: {'field_name': 'application_id', 'field_type': 'byte'},
        2: {'field_name': 'manufacturer_id', 'field_type': 'manufacturer'},
        3: {'field_name': 'developer_data_index', 'field_type': 'uint8'},
        4: {'field_name': 'application_version', 'field_type': 'uint32'}},
}

GLOBAL_MESG_NUMS = {
    0: 'file_id',
    12: 'sport',
    18: 'session',
    19: 'lap',
    20: 'record',
    21: 'event',
    23: 'device_info',
    32: 'course_point',
    34: 'activity',
    49: 'file_creator',
    78: 'hrv',
    206: 'field_description',
    207: 'developer_data_id',
    259: 'dive_gas',
}


# Types
# -----
TYPES_INFO = {
    'file': {
        1: 'device', 2: 'settings', 3: 'sport', 4: 'activity', 5: 'workout',
        6: 'course', 7: 'schedules', 9: 'weight', 10: 'totals', 11: 'goals',
        14: 'blood_pressure', 15: 'monitoring_a', 20: 'activity_summary',
        28: 'monitoring_daily', 32: 'monitoring_b', 34: 'segment',
        35: 'segment_list'},
    'manufacturer': {
        1: 'garmin', 13: 'dynastream_oem', 15: 'dynastream', 23: 'suunto',
        32: 'wahoo_fitness', 255: 'development'},
    'sport': {
        0: 'generic', 1: 'running', 2: 'cycling', 3: 'transition',
        4: 'fitness_equipment', 5: 'swimming', 6: 'basketball', 7: 'soccer',
        8: 'tennis', 9: 'american_football', 10: 'training', 11: 'walking',
        12: 'cross_country_skiing', 13: 'alpine_skiing', 14: 'snowboarding',
        15: 'rowing', 16: 'mountaineering', 17: 'hiking', 18: 'multisport',
        19: 'paddling', 53: 'diving', 254: 'all'},
    'sub_sport': {
        0: 'generic', 1: 'treadmill', 2: 'street', 3: 'trail', 4: 'track',
        5: 'spin', 6: 'indoor_cycling', 7: 'road', 8: 'mountain',
        9: 'downhill', 10: 'recumbent', 11: 'cyclocross', 12: 'hand_cycling',
        13: 'track_cycling', 14: 'indoor_rowing', 15: 'elliptical',
        16: 'stair_climbing', 17: 'lap_swimming', 18: 'open_water',
        254: 'all'},
    'event': {
        0: 'timer', 3: 'workout', 4: 'workout_step', 5: 'power_down',
        6: 'power_up', 7: 'off_course', 8: 'session', 9: 'lap',
        10: 'course_point', 11: 'battery', 12: 'virtual_partner_pace',
        13: 'hr_high_alert', 14: 'hr_low_alert', 15: 'speed_high_alert',
        16: 'speed_low_alert', 17: 'cad_high_alert', 18: 'cad_low_alert',
        19: 'power_high_alert', 20: 'power_low_alert', 21: 'recovery_hr',
        22: 'battery_low', 23: 'time_duration_alert',
        24: 'distance_duration_alert', 25: 'calorie_duration_alert',
        26: 'activity', 27: 'fitness_equipment', 28: 'length',
        32: 'user_marker', 33: 'sport_point', 36: 'calibration',
        42: 'front_gear_change', 43: 'rear_gear_change',
        44: 'rider_position_change', 45: 'elev_high_alert',
        46: 'elev_low_alert', 47: 'comm_timeout'},
    'event_type': {
        0: 'start', 1: 'stop', 2: 'consecutive_depreciated', 3: 'marker',
        4: 'stop_all', 5: 'begin_depreciated', 6: 'end_depreciated',
        7: 'end_all_depreciated', 8: 'stop_disable', 9: 'stop_disable_all'},
    'activity': {
        0: 'manual', 1: 'auto_multi_sport'},
    'lap_trigger': {
        0: 'manual', 1: 'time', 2: 'distance', 3: 'position_start',
        4: 'position_lap', 5: 'position_waypoint', 6: 'position_marked',
        7: 'session_end', 8: 'fitness_equipment'},
    'session_trigger': {
        0: 'activity_end', 1: 'manual', 2: 'auto_multi_sport',
        3: 'fitness_equipment'},
    'intensity': {
        0: 'active', 1: 'rest', 2: 'warmup', 3: 'cooldown'},
    'battery_status': {
        1: 'new', 2: 'good', 3: 'ok', 4: 'low', 5: 'critical', 6: 'charging',
        7: 'unknown'},
    'course_point': {
        0: 'generic', 1: 'summit', 2: 'valley', 3: 'water', 4: 'food',
        5: 'danger', 6: 'left', 7: 'right', 8: 'straight', 9: 'first_aid',
        10: 'fourth_category', 11: 'third_category', 12: 'second_category',
        13: 'first_category', 14: 'hors_category', 15: 'sprint',
        16: 'left_fork', 17: 'right_fork', 18: 'middle_fork',
        19: 'slight_left', 20: 'sharp_left', 21: 'slight_right',
        22: 'sharp_right', 23: 'u_turn', 24: 'segment_start',
        25: 'segment_end'},
    'dive_gas_status': {
        0: 'disabled', 1: 'enabled', 2: 'backup_only'},
    'fit_base_type': {
        bt.identifier: bt.name for bt in BASE_TYPES.values()},
}
