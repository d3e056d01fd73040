"""
Dictionary loading module for Cidian.

Parses CC-CEDICT text and stores it in the SQLite database.

Line format:
    傳統 传统 [chuan2 tong3] /tradition/traditional/convention/

Comment lines (starting with '#') and blank lines are ignored.
"""

import gzip
import logging
import re
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Union

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from cidian.characters import split_into_characters, split_pinyin
from cidian.db.connection import create_schema, get_engine, get_session
from cidian.db.models import Entry as EntryRow, Gloss
from cidian.dictionary import Entry
from cidian.settings import CEDICT_PATH, DB_PATH, LOAD_BATCH_SIZE

logger = logging.getLogger(__name__)


# ============================================================================
# Parsing
# ============================================================================

CEDICT_LINE_REGEX = re.compile(
    r"^(?P<trad>\S+)\s(?P<simp>\S+)\s\[(?P<pinyin>[^\]]+)\]\s/(?P<english>.+)/$"
)


def parse_cedict_line(line: str) -> Optional[Entry]:
    """
    Parse a single CC-CEDICT line.

    Args:
        line: Dictionary line, with or without trailing newline.

    Returns:
        Entry, or None if the line is not a dictionary line.
    """
    match = CEDICT_LINE_REGEX.match(line.rstrip("\r\n"))
    if not match:
        return None

    return Entry(
        traditional=split_into_characters(match.group("trad")),
        simplified=split_into_characters(match.group("simp")),
        pinyin=split_pinyin(match.group("pinyin")),
        english=match.group("english").split("/"),
    )


def parse_cedict_lines(lines: Iterable[str]) -> Iterator[Entry]:
    """
    Parse CC-CEDICT lines, skipping comments and malformed lines.

    Yields:
        Entries in file order.
    """
    for line_no, line in enumerate(lines, 1):
        entry = parse_cedict_line(line)
        if entry is not None:
            yield entry
            continue

        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            logger.warning("Skipping malformed line %d: %.60s", line_no, stripped)


def is_gzip_file(path: Union[str, Path]) -> bool:
    """Check the gzip magic bytes."""
    with open(path, "rb") as f:
        return f.read(2) == b"\x1f\x8b"


def open_cedict(path: Union[str, Path]):
    """Open a CC-CEDICT file as text, decompressing gzip transparently."""
    path = Path(path)
    if path.suffix == ".gz" or is_gzip_file(path):
        return gzip.open(path, "rt", encoding="utf-8")
    return open(path, "r", encoding="utf-8")


def resolve_cedict_path(path: Union[str, Path, None] = None) -> Path:
    """
    Find the CC-CEDICT file, also trying a '.gz' sibling.

    Raises:
        FileNotFoundError: If neither the file nor its gzipped form exists.
    """
    path = Path(path or CEDICT_PATH)
    if path.exists():
        return path

    gz_path = path.with_name(path.name + ".gz")
    if gz_path.exists():
        return gz_path

    raise FileNotFoundError(f"CC-CEDICT not found at: {path}")


def read_cedict(path: Union[str, Path, None] = None) -> List[Entry]:
    """Parse a whole CC-CEDICT file into entries."""
    path = resolve_cedict_path(path)
    with open_cedict(path) as f:
        entries = list(parse_cedict_lines(f))
    logger.info("Parsed %d entries from %s", len(entries), path)
    return entries


# ============================================================================
# Database Loading
# ============================================================================

def _entry_row(entry: Entry) -> EntryRow:
    row = EntryRow(
        traditional=entry.traditional_text,
        simplified=entry.simplified_text,
        pinyin=entry.pinyin_text,
    )
    row.glosses = [Gloss(text=text, ord=i) for i, text in enumerate(entry.english)]
    return row


def store_entries(
    session: Session,
    entries: Iterable[Entry],
    batch_size: int = LOAD_BATCH_SIZE,
    progress_callback: Optional[Callable[[int], None]] = None,
) -> int:
    """
    Replace the database contents with the given entries.

    Everything happens in one transaction: if reading or inserting fails
    partway, the previous contents are kept.

    Args:
        session: Open database session.
        entries: Entries in dictionary order.
        batch_size: Entries per flush.
        progress_callback: Called with the running count after each batch.

    Returns:
        Number of entries stored.
    """
    count = 0
    try:
        session.execute(delete(Gloss))
        session.execute(delete(EntryRow))

        batch: List[EntryRow] = []
        for entry in entries:
            batch.append(_entry_row(entry))
            count += 1
            if len(batch) >= batch_size:
                session.add_all(batch)
                session.flush()
                batch = []
                if progress_callback:
                    progress_callback(count)

        if batch:
            session.add_all(batch)
        session.commit()
    except Exception:
        session.rollback()
        logger.error("Loading stopped after %d entries, changes rolled back", count)
        raise

    if progress_callback:
        progress_callback(count)

    logger.info("Stored %d entries", count)
    return count


def load_cedict(
    cedict_path: Union[str, Path, None] = None,
    db_path: Union[str, Path, None] = None,
    batch_size: int = LOAD_BATCH_SIZE,
    progress_callback: Optional[Callable[[int], None]] = None,
) -> int:
    """
    Load a CC-CEDICT file into a database file.

    Args:
        cedict_path: Dictionary file (plain or gzipped). Defaults to
            settings.CEDICT_PATH.
        db_path: Output SQLite file; created if missing. Defaults to
            settings.DB_PATH.
        batch_size: Entries per commit.
        progress_callback: Called with the running count after each batch.

    Returns:
        Number of entries loaded.

    Raises:
        FileNotFoundError: If the dictionary file does not exist.
    """
    path = resolve_cedict_path(cedict_path)
    db_path = Path(db_path or DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(db_path)
    create_schema(engine)

    session = get_session(engine=engine)
    try:
        with open_cedict(path) as f:
            return store_entries(
                session,
                parse_cedict_lines(f),
                batch_size=batch_size,
                progress_callback=progress_callback,
            )
    finally:
        session.close()


def read_entries(session: Session) -> List[Entry]:
    """
    Read all entries back from the database, in load order.

    Returns:
        Entries with headwords split into graphemes.
    """
    rows = session.execute(
        select(EntryRow).options(selectinload(EntryRow.glosses)).order_by(EntryRow.id)
    ).scalars().all()

    entries = [
        Entry(
            traditional=split_into_characters(row.traditional),
            simplified=split_into_characters(row.simplified),
            pinyin=row.pinyin.split(" ") if row.pinyin else [],
            english=[gloss.text for gloss in row.glosses],
        )
        for row in rows
    ]
    logger.info("Read %d entries from database", len(entries))
    return entries
