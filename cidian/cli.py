"""
Command line interface for cidian.

Usage:
    python -m cidian.cli 中文              # look up characters, pinyin and English
    python -m cidian.cli -p nihao          # pinyin only
    python -m cidian.cli -j "dian xia"     # JSON output
    python -m cidian.cli init-db           # build the database from CC-CEDICT
"""

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional

from cidian import __version__
from cidian.db.connection import get_db_path, get_session
from cidian.dictionary import Lexicon
from cidian.output import format_lookup_text, lookup
from cidian.settings import CEDICT_URL, DB_PATH, DEBUG, MAX_QUERY_LENGTH

logger = logging.getLogger(__name__)

SECTION_FLAGS = {
    "pinyin": "Pinyin",
    "characters": "Simplified",
    "english": "English",
}


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr when verbose or CIDIAN_DEBUG is set."""
    if verbose or DEBUG:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


def init_db_command(args) -> int:
    """Build the cidian database from a CC-CEDICT file."""
    from cidian.dict_load import load_cedict, resolve_cedict_path

    try:
        cedict_path = resolve_cedict_path(args.cedict)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(f"Download from: {CEDICT_URL}", file=sys.stderr)
        print("Or specify path with --cedict", file=sys.stderr)
        return 1

    db_path = Path(args.output) if args.output else DB_PATH

    # Confirm overwrite
    if db_path.exists() and not args.force:
        print(f"Database already exists: {db_path}")
        response = input("Overwrite? [y/N]: ").strip().lower()
        if response != 'y':
            print("Aborted.")
            return 1

    print("Initializing database...")
    print(f"  CC-CEDICT: {cedict_path}")
    print(f"  Output:    {db_path}")
    print()

    t0 = time.perf_counter()

    def progress(count):
        if count % 50000 == 0:
            print(f"  {count:,} entries loaded...")

    try:
        total = load_cedict(
            cedict_path=cedict_path,
            db_path=db_path,
            progress_callback=progress,
        )
    except Exception as e:
        logger.exception("Loading failed")
        print(f"Error initializing database: {e}", file=sys.stderr)
        return 1

    elapsed = time.perf_counter() - t0
    db_size = os.path.getsize(db_path) / 1024 / 1024

    print()
    print("Database initialized successfully!")
    print(f"   Entries: {total:,}")
    print(f"   Time: {elapsed:.1f}s")
    print(f"   Size: {db_size:.1f}MB")
    print()
    print("Set CIDIAN_DB_PATH to use a database outside the package:")
    print(f'  export CIDIAN_DB_PATH="{db_path.absolute()}"')
    return 0


def main_init_db(args: list) -> int:
    """CLI entry point for init-db subcommand."""
    parser = argparse.ArgumentParser(
        description='Initialize the cidian database from CC-CEDICT',
        prog='cidian init-db',
    )

    parser.add_argument(
        '--cedict', '-c',
        type=str,
        metavar='PATH',
        help='Path to the CC-CEDICT file, plain or gzipped (default: data/cedict_ts.u8)',
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        metavar='PATH',
        help='Output database path (default: data/cidian.db)',
    )

    parser.add_argument(
        '--force', '-f',
        action='store_true',
        help='Overwrite existing database without prompting',
    )

    parsed = parser.parse_args(args)
    return init_db_command(parsed)


def load_lexicon(parsed) -> Optional[Lexicon]:
    """Load the lexicon from --source or the database; None on failure."""
    if parsed.source:
        try:
            return Lexicon.from_file(parsed.source)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return None

    db_path = parsed.database or get_db_path()
    if not db_path:
        print("Error: dictionary database not found.", file=sys.stderr)
        print("Run 'cidian init-db' or pass --source PATH to a CC-CEDICT file.", file=sys.stderr)
        return None

    try:
        session = get_session(db_path)
    except Exception as e:
        print(f'Error connecting to database: {e}', file=sys.stderr)
        return None

    try:
        return Lexicon.from_session(session)
    finally:
        session.close()


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    args_list = args if args is not None else sys.argv[1:]

    if args_list and args_list[0] == 'init-db':
        return main_init_db(args_list[1:])

    parser = argparse.ArgumentParser(
        description='Chinese-English dictionary lookup by characters, pinyin or English',
        prog='cidian',
        epilog='Subcommands:\n  cidian init-db    Build the dictionary database from CC-CEDICT',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        'text',
        nargs='*',
        help='Chinese characters, toneless pinyin or English to look up',
    )

    parser.add_argument(
        '-p', '--pinyin',
        action='store_true',
        help='Only show pinyin matches',
    )

    parser.add_argument(
        '-c', '--characters',
        action='store_true',
        help='Only show character matches',
    )

    parser.add_argument(
        '-e', '--english',
        action='store_true',
        help='Only show English gloss matches',
    )

    parser.add_argument(
        '-j', '--json',
        action='store_true',
        help='Output results as JSON',
    )

    parser.add_argument(
        '-b', '--brief',
        action='store_true',
        help='Only print group headers',
    )

    parser.add_argument(
        '-d', '--database',
        type=str,
        default=None,
        metavar='PATH',
        help='Path to SQLite database file',
    )

    parser.add_argument(
        '-s', '--source',
        type=str,
        default=None,
        metavar='PATH',
        help='Read a CC-CEDICT file directly instead of the database',
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log loading and search details to stderr',
    )

    parser.add_argument(
        '-v', '--version',
        action='store_true',
        help='Show version information',
    )

    parsed = parser.parse_args(args)

    if parsed.version:
        print(f'cidian {__version__}')
        return 0

    text = ' '.join(parsed.text) if parsed.text else ''
    if not text:
        parser.print_help()
        return 1

    if len(text) > MAX_QUERY_LENGTH:
        print(f"Error: query longer than {MAX_QUERY_LENGTH} characters", file=sys.stderr)
        return 1

    configure_logging(parsed.verbose)

    lexicon = load_lexicon(parsed)
    if lexicon is None:
        return 1

    try:
        result = lookup(lexicon, text)

        wanted = {name for flag, name in SECTION_FLAGS.items() if getattr(parsed, flag)}
        if wanted:
            result.sections = [s for s in result.sections if s.name in wanted]

        if parsed.json:
            print(result.model_dump_json(indent=2))
        else:
            print(format_lookup_text(result, with_entries=not parsed.brief))
        return 0

    except Exception as e:
        logger.exception("Lookup failed")
        print(f'Error processing text: {e}', file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
