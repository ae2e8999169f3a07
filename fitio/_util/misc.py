#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
General utilities to be used internally.

"""
import numpy as np


def make_lap_column(length, new_lap_i):
    """Lap numbers (from 1) for `length` samples, given the indices at which
    a new lap starts."""
    laps = np.zeros(length)
    new_lap_i = np.asarray(new_lap_i, dtype=np.int64)
    np.add.at(laps, new_lap_i[new_lap_i < length], 1)
    return laps.cumsum().astype(np.int64) + 1


def semicircles_to_degrees(semicircles):
    """Positional data conversion for *.fit files

    https://github.com/kuperov/fit/blob/master/R/fit.R
    """
    return (semicircles * 180 / 2**31 + 180) % 360 - 180
