"""
Command line documentation browser

``cdt-doc`` (or ``python -m cdt_tools``) lists the functions of the toolbox
or prints the documentation of one of them::

    cdt-doc                 # list all functions with a one-line summary
    cdt-doc air_pressure    # full documentation of air_pressure
    cdt-doc --module stats  # list the functions of one subpackage
"""

import argparse
import importlib
import inspect
import logging
import pydoc
import sys
from typing import List, Optional

logger = logging.getLogger(__name__)

SUBPACKAGES = ('atmosphere', 'geo', 'stats', 'timeseries', 'gridding', 'netcdf', 'utils')


def summary_line(obj) -> str:
    """First line of an object's docstring, or an empty string."""
    doc = inspect.getdoc(obj) or ''
    return doc.strip().splitlines()[0] if doc.strip() else ''


def list_functions(module_names=SUBPACKAGES) -> List[str]:
    """Lines describing the public names of each subpackage."""
    lines = []
    for name in module_names:
        module = importlib.import_module(f'cdt_tools.{name}')
        lines.append(f"{name}: {summary_line(module)}")
        for public in getattr(module, '__all__', []):
            lines.append(f"  {public:<20s} {summary_line(getattr(module, public))}")
        lines.append('')
    return lines


def find_symbol(name: str):
    """Look up a public name in the top-level package or any subpackage."""
    import cdt_tools

    if hasattr(cdt_tools, name):
        return getattr(cdt_tools, name)
    for sub in SUBPACKAGES:
        module = importlib.import_module(f'cdt_tools.{sub}')
        if hasattr(module, name):
            logger.debug("Found %s in cdt_tools.%s", name, sub)
            return getattr(module, name)
    raise LookupError(name)


def setup_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog='cdt-doc',
        description="Show documentation for Climate Data Tools functions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cdt-doc
  cdt-doc mann_kendall
  cdt-doc --module geo
        """
    )
    parser.add_argument(
        'name',
        nargs='?',
        help="Function or class to document. If omitted, list everything."
    )
    parser.add_argument(
        '--module',
        choices=SUBPACKAGES,
        help="Only list the functions of this subpackage"
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='WARNING',
        help="Logging level (default: WARNING)"
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help="Shortcut for --log-level DEBUG"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of ``cdt-doc``; returns the process exit code."""
    parser = setup_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    if args.name is None:
        modules = (args.module,) if args.module else SUBPACKAGES
        print('\n'.join(list_functions(modules)).rstrip())
        return 0

    try:
        obj = find_symbol(args.name)
    except LookupError:
        print(f"cdt-doc: no function named {args.name!r}", file=sys.stderr)
        return 1

    print(pydoc.render_doc(obj, title='%s', renderer=pydoc.plaintext))
    return 0


if __name__ == '__main__':
    sys.exit(main())
