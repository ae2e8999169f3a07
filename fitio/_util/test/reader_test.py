#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import io

import pytest

from fitio._util.reader import get_buffer


CONTENT = b'\x0e\x10\x2d\x08\x00\x00\x00\x00.FIT'


def test_bytes_like():
    assert get_buffer(CONTENT) is CONTENT
    assert get_buffer(bytearray(CONTENT)) == CONTENT
    assert get_buffer(memoryview(CONTENT)) == CONTENT


def test_paths(tmp_path):
    path = tmp_path / 'activity.fit'
    path.write_bytes(CONTENT)
    assert get_buffer(path) == CONTENT
    assert get_buffer(str(path)) == CONTENT


def test_streams():
    assert get_buffer(io.BytesIO(CONTENT)) == CONTENT

    with pytest.raises(TypeError):
        get_buffer(io.StringIO('.FIT'))


def test_unsupported():
    with pytest.raises(TypeError):
        get_buffer(42)
