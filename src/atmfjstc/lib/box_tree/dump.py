"""
Command-line tool that dumps the box tree of one or more files (MP4, HEIF, JUMBF etc.)

Usage::

    box-tree-dump [-v] [--load-mdat] [--strict] [--max-depth N] FILE [FILE ...]

Each file is parsed and dumped independently. If a file is missing or cannot be parsed, an error is shown and the tool
moves on to the next file; the exit status is 1 if any file failed.
"""

import logging
import sys

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Optional, Sequence

from termcolor import cprint

from atmfjstc.lib.box_tree.boxes import default_registry
from atmfjstc.lib.box_tree.boxes.isobmff import MEDIA_DATA_BOX_TYPE
from atmfjstc.lib.box_tree.errors import BoxTreeError, format_exception_head
from atmfjstc.lib.box_tree.parser import BoxTreeParser, ParserOptions, DEFAULT_MAX_DEPTH, MAX_SUPPORTED_DEPTH
from atmfjstc.lib.box_tree.render import render_box_tree


_LOG = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    arg_parser = _build_arg_parser()
    args = arg_parser.parse_args(argv)

    if not (1 <= args.max_depth <= MAX_SUPPORTED_DEPTH):
        arg_parser.error(f"--max-depth must be between 1 and {MAX_SUPPORTED_DEPTH}")

    _init_logging(logging.DEBUG if args.verbose else logging.WARNING)

    parser = BoxTreeParser(default_registry(), _options_from_args(args))

    n_failed = 0

    for raw_path in args.files:
        if not _dump_file(parser, Path(raw_path)):
            n_failed += 1

    return 1 if n_failed > 0 else 0


def _build_arg_parser() -> ArgumentParser:
    arg_parser = ArgumentParser(
        prog='box-tree-dump',
        description="Dumps the box structure of ISO base media format (MP4, HEIF etc.) and JUMBF files",
    )

    arg_parser.add_argument('files', metavar='FILE', nargs='+', help="Files to dump")
    arg_parser.add_argument(
        '--load-mdat', action='store_true',
        help="Read the contents of media data ('mdat') boxes instead of skipping them"
    )
    arg_parser.add_argument(
        '--strict', action='store_true',
        help="Treat a box that fails to decode as an error for the whole file"
    )
    arg_parser.add_argument(
        '--max-depth', type=int, default=DEFAULT_MAX_DEPTH,
        help=f"Maximum nesting depth of container boxes, up to {MAX_SUPPORTED_DEPTH} (default: {DEFAULT_MAX_DEPTH})"
    )
    arg_parser.add_argument('-v', '--verbose', action='store_true', help="Show debug messages")

    return arg_parser


def _options_from_args(args: Namespace) -> ParserOptions:
    return ParserOptions(
        skip_data_types=frozenset() if args.load_mdat else frozenset([MEDIA_DATA_BOX_TYPE]),
        max_depth=args.max_depth,
        strict_leaf_decoding=args.strict,
    )


def _dump_file(parser: BoxTreeParser, path: Path) -> bool:
    if not path.is_file():
        _print_error(f"Input file does not exist: '{path}'")
        return False

    _LOG.debug("Parsing %s", path)

    try:
        tree = parser.parse_file(path)
    except (BoxTreeError, OSError) as e:
        _print_error(f"Failed to parse '{path}': {format_exception_head(e)}")
        return False

    print(render_box_tree(tree))
    print()

    return True


def _init_logging(level: int):
    logging.basicConfig(
        level=level,
        style='{',
        format='[{asctime}] {levelname}: {message}',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def _print_error(message: str):
    cprint(message, 'red', attrs=['bold'], file=sys.stderr)


if __name__ == '__main__':
    sys.exit(main())
