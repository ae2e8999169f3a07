#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from os import PathLike


def get_buffer(content):
    """Get the whole of a FIT file into memory.

    Parameters
    ----------
    content : str, os.PathLike, binary file object or bytes-like
        Path to the file to be read, an open binary stream, or the raw
        bytes themselves.

    Returns
    -------
    bytes

    Raises
    ------
    TypeError
        If `content` is none of the above.
    """
    if isinstance(content, bytes):
        return content

    if isinstance(content, (bytearray, memoryview)):
        return bytes(content)

    if isinstance(content, (str, PathLike)):
        with open(content, 'rb') as reader:
            return reader.read()

    read = getattr(content, 'read', None)
    if callable(read):
        data = read()
        if isinstance(data, str):
            raise TypeError('stream must be opened in binary mode')
        return bytes(data)

    raise TypeError('cannot read FIT data from %s' % type(content).__name__)
