#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
parse is installed as an executable console_script with this package.

"""
from argparse import ArgumentParser
from datetime import datetime
import json
import logging
import sys

from fitio._types import ActivityData
from fitio._util.console import printd
from fitio._util.exceptions import FitIOError
from fitio.fit import FitParser


MODES = ('list', 'cascade', 'both')


def json_default(obj):
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError('%s is not JSON serializable' % type(obj).__name__)


def parse(argv=None):

    # Argument handling
    parser = ArgumentParser(description='decode a FIT activity file')

    parser.add_argument('input',
                        type=str,
                        help='raw file to read')
    parser.add_argument('--output',
                        type=str,
                        metavar='filename',
                        default=None,
                        help='optional; file to write to')
    parser.add_argument('--mode',
                        type=str,
                        default='list',
                        help='optional; layout of the decoded messages',
                        choices=MODES)
    parser.add_argument('--strict',
                        action='store_true',
                        help='stop on the first header problem')
    parser.add_argument('--elapsed',
                        action='store_true',
                        help='add elapsed_time and timer_time to records')
    parser.add_argument('--csv',
                        action='store_true',
                        help='write records as CSV instead of JSON')
    parser.add_argument('--verbose', '-v',
                        action='store_true',
                        help='log decoding details')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.ERROR,
        format='%(levelname)s %(name)s: %(message)s')

    # Script begins
    fit_parser = FitParser(force=not args.strict,
                           elapsed_record_field=args.elapsed,
                           mode='list' if args.csv else args.mode)
    try:
        result = fit_parser.parse(args.input)
    except FitIOError as e:
        printd('error: %s' % e, 'fail', 'bold')
        return 1

    for error in result.errors:
        printd('warning: %s' % error, 'warning')

    if args.csv:
        data = ActivityData.from_fit(result)
        text = data.to_csv(na_rep='NA', index_label='time')
    else:
        text = json.dumps(result, indent=2, default=json_default)

    if args.output is None:
        print(text)
    else:
        with open(args.output, 'w', encoding='utf-8') as out:
            out.write(text)

    return 0


def main():
    sys.exit(parse())


if __name__ == '__main__':
    main()
