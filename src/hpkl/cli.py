#!/usr/bin/env python3

# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import argparse
from importlib.metadata import version
import logging
import sys
import traceback

from .commands.resolve import ResolveCmd
from .commands.download import DownloadCmd

logger = logging.getLogger(__name__)


def setup_parser():
    parser = argparse.ArgumentParser(
        prog="hpkl",
        description="Dependency resolver and package downloader for Pkl projects.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s {}".format(version("hpkl"))
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="be more verbose")
    parser.add_argument(
        "--json",
        help="make output machine readable",
        action="store_true",
    )
    subparser = parser.add_subparsers(help="sub command help", dest="cmd", required=True)
    ResolveCmd.setup_parser(
        subparser.add_parser("resolve", help="resolve dependencies and write the lock-file")
    )
    DownloadCmd.setup_parser(
        subparser.add_parser("download", help="download dependencies into the package cache")
    )

    return parser


def main(argv=None):
    parser = setup_parser()
    args = parser.parse_args(argv)

    if args.verbose == 0:
        level = logging.WARNING
    elif args.verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(level=level)

    try:
        if args.cmd == "resolve":
            ResolveCmd.run(args)
        elif args.cmd == "download":
            DownloadCmd.run(args)
    except Exception as e:
        logger.error(e)
        if not args.json:
            print(f"hpkl: error: {e}", file=sys.stderr)
            if args.verbose >= 1:
                print(traceback.format_exc(), file=sys.stderr, end="")
        sys.exit(-1)


if __name__ == "__main__":
    main()
