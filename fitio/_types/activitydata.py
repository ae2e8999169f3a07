#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import numpy as np
import pandas as pd
from pandas import DataFrame, Series, Timedelta
import pytz

from fitio._util import exceptions
from fitio._util.misc import make_lap_column


class DataFrameSubclass(DataFrame):
    _metadata = []

    @property
    def _constructor(self):
        return self.__class__

    def __finalize__(self, other, method=None, **kwargs):
        """Propagate metadata from other to self."""
        for name in self._metadata:
            object.__setattr__(self, name, getattr(other, name, None))
        return self


class ActivityData(DataFrameSubclass):
    """The ``record`` messages of a parsed *.fit file as a table.

    Rows are indexed by time since the first record, and a ``lap`` column
    numbers laps from 1. The `start` attribute holds the (localised)
    timestamp of the first record.
    """
    _metadata = ['start']

    @classmethod
    def from_fit(cls, result, *, tz_str=None):
        """Build from the flat lists of a `fitio.fit.FitResult`."""
        records = result.get('records') or []
        data = cls.from_records(records)
        data.start = None
        if not records:
            return data

        seconds = np.array([_epoch_seconds(r.get('timestamp'))
                            for r in records])
        lap_ends = np.sort([_epoch_seconds(lap['timestamp'])
                            for lap in result.get('laps') or []
                            if 'timestamp' in lap])
        # a lap message closes the laps of the records before it
        new_lap_i = np.searchsorted(seconds, lap_ends, side='right')
        data['lap'] = make_lap_column(len(data), new_lap_i)

        if 'timestamp' in data:
            data.pop('timestamp')
        timed = np.flatnonzero(~np.isnan(seconds))
        if timed.size:
            timezone = pytz.timezone(tz_str) if tz_str is not None else pytz.utc
            # offsets count from the first record that has a timestamp
            first = int(timed[0])
            start = records[first]['timestamp']
            data._finish_up(start=start.astimezone(timezone),
                            timeoffsets=seconds - seconds[first])
        else:
            data._finish_up()

        return data

    @property
    def time(self):   # makes accessing the index more readable
        if isinstance(self.index, pd.TimedeltaIndex):
            return self.index
        else:
            # because recursion problems with super().__getattr__()
            raise AttributeError('index is not TimedeltaIndex')

    def recording_time(self, samplingfreq=1):
        """Time spent recording, i.e. gaps between samples left out."""
        dummy = Series(1, index=self.time)   # important: is filled!
        resampled = dummy.resample('%ds' % samplingfreq).mean()
        recording = np.logical_not(
            np.isnan(resampled.values))[1:]   # shorten for indexing diffs
        timediffs = np.diff(resampled.index.total_seconds())
        time_sec = timediffs[recording].sum()
        return Timedelta(seconds=time_sec)

    def rollmean(self, column, seconds, *, samplingfreq=1):
        """Rolling mean by time."""
        return self._get_resampled(
            column, samplingfreq).rolling(seconds).mean()

    # Private methods
    # ---------------
    def _finish_up(self, *, start=None, timeoffsets=None):
        """A pseudo-init method, used internally."""
        self.start = start
        if timeoffsets is not None:
            self.index = pd.to_timedelta(timeoffsets, unit='s').rename('time')

        # No point hanging on to completely empty columns!
        self.dropna(axis=1, how='all', inplace=True)

    def _get_resampled(self, column, samplingfreq=1):
        rule = '%ds' % samplingfreq
        return self._try_get(column).resample(rule).mean()  # missing --> NaNs

    def _try_get(self, key):
        """Try and get a required column from the data."""
        try:
            return self[key]
        except KeyError as e:
            raise exceptions.RequiredColumnError(key) from e


def _epoch_seconds(timestamp):
    return np.nan if timestamp is None else timestamp.timestamp()
