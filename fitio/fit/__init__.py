"""
Decode the Flexible and Interoperable data Transfer (FIT) protocol [1]_.

A FIT file is a short header, a stream of records and a trailing CRC. Some
records are definitions that give the binary layout of the data records
that follow them; the data records decode to messages such as sessions,
laps and per-second samples ("record" messages).

The reading internals---i.e. the protocol implementation---are in the
`_protocol` module, which leans on the field names and enumerations in
`_profile`. `_reading` checks the container and turns the stream of
decoded messages into the structure returned by `FitParser.parse`.


.. [1] https://www.thisisant.com/resources/fit

"""
from fitio.fit._reading import read_and_format as read
from fitio.fit._reading import (
    AssemblyPolicy, FitParser, FitResult, ParserOptions, check_container)
from fitio.fit._protocol import compute_crc, read_record


def parse(content, callback=None, **options):
    """Shortcut for ``FitParser(**options).parse(content, callback)``."""
    return FitParser(**options).parse(content, callback)
