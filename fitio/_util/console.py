#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
A bonus module for prettifying console output.

"""
import sys


TEXT_DECORATIONS = {
    'header': '\033[95m',
    'blue': '\033[94m',
    'green': '\033[92m',
    'warning': '\033[93m',
    'fail': '\033[91m',
    'bold': '\033[1m',
    'underline': '\033[4m',
    'end': '\033[0m',
}


def decorate(text, *decorations):
    """Return a text string with ANSI escape codes pre- and appended.

    Parameters
    ----------
    text : str
        Text to be decorated.
    *decorations : str
        Keys of `TEXT_DECORATIONS`.
    """
    decors = ''.join(TEXT_DECORATIONS[d] for d in decorations)
    end = TEXT_DECORATIONS['end']
    return decors + text + end


def printd(text, *decorations, file=None, **kwargs):
    """Print decorated, to stderr by default; plain if not a terminal."""
    file = sys.stderr if file is None else file
    isatty = getattr(file, 'isatty', None)
    if isatty is not None and isatty():
        text = decorate(text, *decorations)
    print(text, file=file, **kwargs)
