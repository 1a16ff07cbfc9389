# deltalocate/cli.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from . import config
from .delta_header import load_decoder
from .errors import DeltaLocateError
from .manifest import write_manifest
from .report import header_report_for_file, write_sidecar_reports
from .resolve import locate_patches


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format="<level>{message}</level>")


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def _cmd_locate(args: argparse.Namespace) -> int:
    resolved = locate_patches(
        args.directory,
        load_decoder(args.decoder),
        max_concurrency=args.concurrency,
    )
    output = args.output or (args.directory / config.MANIFEST_FILENAME)
    write_manifest(resolved, output)
    return 0


def _cmd_info(args: argparse.Namespace) -> int:
    sys.stdout.write(header_report_for_file(args.file, load_decoder(args.decoder)))
    return 0


def _cmd_dump(args: argparse.Namespace) -> int:
    write_sidecar_reports(args.directory, load_decoder(args.decoder))
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="deltalocate",
        description=(
            "Uses the data in Windows update delta compression headers to find "
            "the original PE files on the Microsoft symbol server."
        ),
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Log every probe and retry")
    ap.add_argument(
        "--decoder",
        default=config.DELTA_DECODER,
        help="Delta decoder as 'package.module:callable' (default: %(default)s)",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("locate", help="Search the symbol server for every delta under DIR")
    p.add_argument("directory", type=Path)
    p.add_argument("--concurrency", type=_positive_int, default=config.MAX_CONCURRENT_REQUESTS,
                   help="Maximum HEAD requests in flight")
    p.add_argument("--output", type=Path, default=None,
                   help=f"aria2 input file (default: DIR/{config.MANIFEST_FILENAME})")
    p.set_defaults(func=_cmd_locate)

    p = sub.add_parser("info", help="Print the header of one delta file")
    p.add_argument("file", type=Path)
    p.set_defaults(func=_cmd_info)

    p = sub.add_parser("dump", help=f"Write a {config.REPORT_SUFFIX} report next to every delta file")
    p.add_argument("directory", type=Path)
    p.set_defaults(func=_cmd_dump)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "concurrency", 1) < 1:
        # env default bypasses the argparse type check
        parser.error(f"MAX_CONCURRENT_REQUESTS must be at least 1, got {args.concurrency}")
    _configure_logging(args.verbose)
    try:
        return args.func(args)
    except (FileNotFoundError, FileExistsError, DeltaLocateError) as e:
        logger.error("{}", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
