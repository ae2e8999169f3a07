#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Translate the `_protocol` module functionality to be consistent with
this package's API.

A parse runs in three steps: the container is checked once, records are
decoded one after the other between the header and the trailing CRC, and
the decoded messages are assembled into flat lists, a nested
session/lap/record hierarchy, or both.

"""
from enum import Enum
import logging

from fitio.fit._protocol import (
    DeveloperFields, LocalMessages, compute_crc, read_record)
from fitio._types import ActivityData
from fitio._util.exceptions import (
    FileCRCError, FileTooSmallError, FITMessageHeaderError, FitIOError,
    HeaderCRCError, HeaderSizeError, MagicMarkerError, TruncatedRecordError)
from fitio._util.reader import get_buffer


logger = logging.getLogger(__name__)

MIN_FILE_SIZE = 12
HEADER_SIZES = (12, 14)
MAGIC_MARKER = b'.FIT'


class AssemblyPolicy(Enum):
    """How decoded messages are laid out in the result.

    The values are the ``mode`` option strings.
    """
    FLAT = 'list'
    NEST = 'cascade'
    BOTH = 'both'

    @property
    def nests(self):
        return self is not AssemblyPolicy.FLAT

    @property
    def flattens(self):
        return self is not AssemblyPolicy.NEST


class ParserOptions:
    """Parser configuration.

    Attributes
    ----------
    force : bool
        Lenient mode: report container diagnostics but keep decoding.
    speed_unit, length_unit, temperature_unit : str
        Accepted for compatibility; values are always produced in the
        profile's base units (m/s, m and degrees C).
    elapsed_record_field : bool
        Add ``elapsed_time`` and ``timer_time`` (seconds) to every
        ``record`` message.
    policy : AssemblyPolicy
        Derived from the ``mode`` option.
    """
    __slots__ = ('force', 'speed_unit', 'length_unit', 'temperature_unit',
                 'elapsed_record_field', 'policy')

    def __init__(self, *, force=True, speed_unit='m/s', length_unit='m',
                 temperature_unit='celsius', elapsed_record_field=False,
                 mode='list'):
        self.force = True if force is None else bool(force)
        self.speed_unit = speed_unit
        self.length_unit = length_unit
        self.temperature_unit = temperature_unit
        self.elapsed_record_field = bool(elapsed_record_field)
        try:
            self.policy = AssemblyPolicy(mode)
        except ValueError:
            raise ValueError(
                'mode should be one of %s, not %r' %
                (', '.join(p.value for p in AssemblyPolicy), mode)) from None

    @property
    def mode(self):
        return self.policy.value


class FitResult(dict):
    """Decoded messages by key, plus the diagnostics met on the way."""
    __slots__ = ('errors',)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.errors = []

    @property
    def error(self):
        """All diagnostics as one message, or None."""
        if not self.errors:
            return None
        return '; '.join(str(error) for error in self.errors)


class ActivityAssembler:
    """Route decoded messages into lists, nesting records into laps and laps
    into sessions as they arrive when the policy asks for it.

    One instance per parse.
    """

    # result key -> attribute
    FLAT_KEYS = (
        ('sessions', 'sessions'),
        ('laps', 'laps'),
        ('records', 'records'),
        ('events', 'events'),
        ('device_infos', 'devices'),
        ('developer_data_ids', 'applications'),
        ('field_descriptions', 'field_descriptions'),
        ('hrv', 'hrv'),
        ('dive_gases', 'dive_gases'),
        ('course_points', 'course_points'),
    )

    def __init__(self, policy):
        self.policy = policy
        self.result = FitResult()

        self.sessions, self.laps, self.records = [], [], []
        self.events, self.hrv = [], []
        self.devices, self.applications, self.field_descriptions = [], [], []
        self.dive_gases, self.course_points = [], []

        # Nested copies of laps and sessions; the pending ones are still
        # waiting for their parent boundary message.
        self.nested_sessions = []
        self.pending_laps, self.pending_records = [], []

        self.start_date = None
        self.last_stop_timestamp = None
        self.paused_time = 0

        self._handlers = {
            'lap': self._on_lap,
            'session': self._on_session,
            'event': self._on_event,
            'record': self._on_record,
            'hrv': self.hrv.append,
            'field_description': self.field_descriptions.append,
            'device_info': self.devices.append,
            'developer_data_id': self.applications.append,
            'dive_gas': self.dive_gases.append,
            'course_point': self.course_points.append,
        }

    def add(self, kind, message):
        if not kind:   # definition record
            return
        handler = self._handlers.get(kind)
        if handler is not None:
            handler(message)
        else:
            self.result[kind] = message   # last one wins

    def _on_lap(self, message):
        if self.policy.nests:
            self.pending_laps.append(dict(message, records=self.pending_records))
            self.pending_records = []
        self.laps.append(message)

    def _on_session(self, message):
        if self.policy.nests:
            self.nested_sessions.append(dict(message, laps=self.pending_laps))
            self.pending_laps = []
        self.sessions.append(message)

    def _on_event(self, message):
        if message.get('event') == 'timer':
            event_type = message.get('event_type')
            timestamp = message.get('timestamp')
            if event_type == 'stop_all':
                self.last_stop_timestamp = timestamp
            elif (event_type == 'start' and timestamp is not None and
                    self.last_stop_timestamp is not None):
                self.paused_time += (
                    timestamp - self.last_stop_timestamp).total_seconds()
        self.events.append(message)

    def _on_record(self, message):
        if not self.records:
            # the first record is the time origin
            self.start_date = message.get('timestamp')
            message['elapsed_time'] = 0
            message['timer_time'] = 0
        self.records.append(message)
        if self.policy.nests:
            self.pending_records.append(message)

    def build(self):
        result = self.result

        if self.policy.nests:
            activity = result.get('activity')
            if not isinstance(activity, dict):
                activity = {}
            activity['sessions'] = self.nested_sessions
            activity['events'] = self.events
            activity['hrv'] = self.hrv
            result['activity'] = activity

        if self.policy.flattens:
            for key, attr in self.FLAT_KEYS:
                result[key] = getattr(self, attr)

        return result


def byte_at(blob, index):
    """Out of range bytes read as zero."""
    return blob[index] if 0 <= index < len(blob) else 0


def check_container(blob, *, force=True):
    """Check the file header and both CRCs.

    Parameters
    ----------
    blob : bytes
        The whole file.
    force : bool, optional
        If False, raise the first structural problem found.

    Returns
    -------
    (header_length, crc_start, errors)
        `crc_start` is where the trailing file CRC sits, i.e. the end of the
        data records. `errors` holds the structural diagnostics.

    Raises
    ------
    InvalidFileError
        Only if `force` is False.

    Notes
    -----
    CRC mismatches are computed and logged at DEBUG level but never
    reported or acted upon.
    """
    errors = []

    def report(error):
        logger.warning('%s', error)
        if not force:
            raise error
        errors.append(error)

    if len(blob) < MIN_FILE_SIZE:
        report(FileTooSmallError())

    header_length = byte_at(blob, 0)
    if header_length not in HEADER_SIZES:
        report(HeaderSizeError(header_length))

    if blob[8:12] != MAGIC_MARKER:
        report(MagicMarkerError())

    if header_length == 14:
        header_crc = byte_at(blob, 12) | byte_at(blob, 13) << 8
        computed = compute_crc(blob, 0, 12)
        if header_crc != computed:
            logger.debug('%s', HeaderCRCError(header_crc, computed))

    # Larger fields are explicitly little endian from SDK.
    data_length = sum(byte_at(blob, 4 + i) << (8 * i) for i in range(4))
    crc_start = header_length + data_length

    file_crc = byte_at(blob, crc_start) | byte_at(blob, crc_start + 1) << 8
    computed = compute_crc(
        blob, 0 if header_length == 12 else header_length, crc_start)
    if file_crc != computed:
        logger.debug('%s', FileCRCError(file_crc, computed))

    return header_length, crc_start, errors


class FitParser:
    """Decode *.fit files into sessions, laps, records and friends.

    Keyword arguments are those of `ParserOptions`, with ``mode`` one of:

        + 'list': flat lists (``sessions``, ``laps``, ``records``,
          ``events``, ``device_infos``, ``developer_data_ids``,
          ``field_descriptions``, ``hrv``, ``dive_gases``,
          ``course_points``);
        + 'cascade': a single ``activity`` whose ``sessions`` hold their
          ``laps`` which hold their ``records``, plus ``events`` and ``hrv``;
        + 'both': all of the above.

    Any other message kind ends up under its own name, the last one read
    winning.

    Instances keep no state between parses and can be shared.
    """

    def __init__(self, **options):
        self.options = ParserOptions(**options)

    def parse(self, content, callback=None):
        """Parse a whole *.fit file.

        Parameters
        ----------
        content : str, os.PathLike, binary file object or bytes-like
            See `fitio._util.reader.get_buffer`.
        callback : callable, optional
            Called once as ``callback(error, result)``, `error` being None or
            a description of what went wrong. Failures are then delivered
            to it instead of being raised.

        Returns
        -------
        FitResult

        Raises
        ------
        InvalidFileError, FITMessageHeaderError, TruncatedRecordError
            Only with ``force=False`` and no `callback`.
        """
        blob = get_buffer(content)

        try:
            result = self._parse(blob)
        except FitIOError as error:
            if callback is None:
                raise
            result = FitResult()
            callback(str(error), result)
            return result

        if callback is not None:
            callback(result.error, result)
        return result

    def _parse(self, blob):
        options = self.options
        header_length, crc_start, errors = check_container(
            blob, force=options.force)

        local_messages, developer_fields = LocalMessages(), DeveloperFields()
        assembler = ActivityAssembler(options.policy)

        offset, count = header_length, 0
        while offset < crc_start:
            try:
                offset, kind, message = read_record(
                    blob, local_messages, developer_fields, offset, options,
                    assembler.start_date, assembler.paused_time)
            except (FITMessageHeaderError, TruncatedRecordError) as error:
                if not options.force:
                    raise
                logger.warning('decoding stopped: %s', error)
                errors.append(error)
                break
            assembler.add(kind, message)
            count += 1

        logger.debug('decoded %d records (%d bytes), paused for %ss',
                     count, offset - header_length, assembler.paused_time)

        result = assembler.build()
        result.errors = errors
        return result


def read_and_format(content, *, tz_str=None, **options):
    """Read a *.fit file straight into `ActivityData`, one row per record."""
    options['mode'] = 'list'
    result = FitParser(**options).parse(content)
    return ActivityData.from_fit(result, tz_str=tz_str)
