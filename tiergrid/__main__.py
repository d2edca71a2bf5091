"""
Entry point for tiergrid.

This module provides the command-line interface for converting and
inspecting Praat TextGrid files.

Usage:
    python -m tiergrid [--config FILE] [--verbose] <command> [options]

Commands:
    convert     Re-write a TextGrid, normalized, in short or long form
    csv         Export a TextGrid as a table, one row per pivot interval
    info        Print the tiers of a TextGrid

Examples:
    # Convert to the long, human readable form
    python -m tiergrid convert speech.TextGrid speech_long.TextGrid --long

    # One row per word, with the phone and pitch tiers as columns
    python -m tiergrid csv speech.TextGrid speech.csv --pivot words --tiers words phones pitch

    # List the tiers
    python -m tiergrid info speech.TextGrid

    # Use a custom config file
    python -m tiergrid --config myconfig.yaml convert in.TextGrid out.TextGrid
"""

import sys
import argparse
import logging

from . import config as config_module
from .annotation import TextgridError, read_textgrid, write_csv, write_textgrid

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace with:
            - command: 'convert', 'csv' or 'info'
            - input: Path to the TextGrid file to read
            - output: Path to write (convert and csv)
            - config: Path to custom config file (optional)
            - verbose: Log debug messages
    """
    parser = argparse.ArgumentParser(
        prog="tiergrid",
        description="tiergrid - Praat TextGrid conversion tool"
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to custom config file (YAML or JSON)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log debug messages"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Normalize and re-write a TextGrid")
    convert.add_argument("input", help="TextGrid file to read")
    convert.add_argument("output", help="TextGrid file to write")
    form = convert.add_mutually_exclusive_group()
    form.add_argument(
        "--short",
        dest="use_short_form",
        action="store_const",
        const=True,
        help="Write the short (compact) form"
    )
    form.add_argument(
        "--long",
        dest="use_short_form",
        action="store_const",
        const=False,
        help="Write the long (human readable) form"
    )
    convert.add_argument(
        "--min-interval-length",
        type=float,
        help="Fold intervals shorter than this many seconds into their neighbour"
    )
    convert.add_argument(
        "--keep-short-intervals",
        action="store_true",
        help="Do not remove ultra-short intervals"
    )
    convert.add_argument(
        "--raw",
        action="store_true",
        default=None,
        help="Keep blank-label entries from the input"
    )

    csv = subparsers.add_parser("csv", help="Export a TextGrid as CSV")
    csv.add_argument("input", help="TextGrid file to read")
    csv.add_argument("output", help="CSV file to write")
    csv.add_argument(
        "--pivot", "-p",
        required=True,
        help="Interval tier whose entries become the rows"
    )
    csv.add_argument(
        "--tiers", "-t",
        nargs="+",
        help="Tiers to include as columns (default: all)"
    )
    csv.add_argument(
        "--no-header",
        dest="include_header",
        action="store_false",
        default=None,
        help="Do not write the column header row"
    )

    info = subparsers.add_parser("info", help="List the tiers of a TextGrid")
    info.add_argument("input", help="TextGrid file to read")

    return parser.parse_args(argv)


def _convert(args, settings: dict) -> int:
    io_settings = settings['io']
    read_raw = io_settings['read_raw'] if args.raw is None else args.raw
    use_short_form = io_settings['use_short_form'] if args.use_short_form is None else args.use_short_form

    min_interval_length = io_settings['min_interval_length']
    if args.min_interval_length is not None:
        min_interval_length = args.min_interval_length
    if args.keep_short_intervals:
        min_interval_length = None

    tg = read_textgrid(args.input, read_raw=read_raw)
    write_textgrid(
        tg, args.output,
        use_short_form=use_short_form,
        min_interval_length=min_interval_length,
        encoding=io_settings['encoding'],
    )
    logger.info("Converted %s -> %s", args.input, args.output)
    return 0


def _export_csv(args, settings: dict) -> int:
    include_header = settings['csv']['include_header']
    if args.include_header is not None:
        include_header = args.include_header

    tg = read_textgrid(args.input, read_raw=settings['io']['read_raw'])
    write_csv(
        tg, args.output, args.pivot,
        tier_names=args.tiers,
        include_header=include_header,
        encoding=settings['io']['encoding'],
    )
    logger.info("Exported %s -> %s", args.input, args.output)
    return 0


def _info(args, settings: dict) -> int:
    tg = read_textgrid(args.input, read_raw=settings['io']['read_raw'])

    print(f"{args.input}: {tg.min_timestamp} - {tg.max_timestamp} s, {tg.num_tiers} tiers")
    for tier in tg.tiers:
        print(f"  {tier.name}\t{tier.tier_type}\t{len(tier.entries)} entries")
    return 0


COMMANDS = {
    'convert': _convert,
    'csv': _export_csv,
    'info': _info,
}


def main(argv=None) -> int:
    """
    Main entry point for the tiergrid command.

    Loads the config file, sets up logging and runs the requested
    command. Errors in the TextGrid data are reported on stderr.

    Returns:
        Exit code (0 for success, 1 for a TextGrid or file error)
    """
    args = parse_args(argv)

    # Load custom config if specified
    if args.config:
        config_module.reload_config(args.config)
    settings = config_module.config

    level = logging.DEBUG if args.verbose else settings['logging']['level']
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return COMMANDS[args.command](args, settings)
    except (TextgridError, OSError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
