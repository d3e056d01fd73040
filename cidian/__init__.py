"""
Cidian: Chinese-English dictionary lookup over CC-CEDICT.

Text is looked up three ways: segmented into dictionary headwords,
segmented into toneless pinyin readings, and matched against English
glosses.
"""

import time
from typing import Optional, Tuple

__version__ = "0.1.0"


def load(db_path: Optional[str] = None, source: Optional[str] = None):
    """
    Load the dictionary.

    Args:
        db_path: SQLite database built with 'cidian init-db'. Defaults to
            settings.DB_PATH.
        source: Read this CC-CEDICT file instead of the database.

    Returns:
        Lexicon instance.
    """
    from cidian.dictionary import Lexicon

    if source is not None:
        return Lexicon.from_file(source)

    from cidian.db.connection import get_session
    session = get_session(db_path)
    try:
        return Lexicon.from_session(session)
    finally:
        session.close()


def warm_up(lexicon, verbose: bool = False) -> Tuple[float, dict]:
    """
    Build both segmentation engines ahead of the first query.

    Args:
        lexicon: Loaded Lexicon.
        verbose: If True, print timing information.

    Returns:
        Tuple of (total_time_seconds, timing_details_dict)

    Example:
        >>> import cidian
        >>> lexicon = cidian.load()
        >>> elapsed, details = cidian.warm_up(lexicon, verbose=True)
        Warming up cidian engines...
          Characters:      85.1ms
          Pinyin:          40.3ms
        Total warm-up:    125.4ms
    """
    timings = {}
    total_start = time.perf_counter()

    if verbose:
        print("Warming up cidian engines...")

    t0 = time.perf_counter()
    lexicon.character_engine
    timings['characters'] = (time.perf_counter() - t0) * 1000
    if verbose:
        print(f"  Characters:     {timings['characters']:>7.1f}ms")

    t0 = time.perf_counter()
    lexicon.pinyin_engine
    timings['pinyin'] = (time.perf_counter() - t0) * 1000
    if verbose:
        print(f"  Pinyin:         {timings['pinyin']:>7.1f}ms")

    total_time = time.perf_counter() - total_start
    timings['total'] = total_time * 1000

    if verbose:
        print(f"Total warm-up:    {timings['total']:>7.1f}ms")

    return total_time, timings


def lookup(text: str, lexicon=None):
    """
    Look text up as characters, pinyin and English.

    Args:
        text: Query text.
        lexicon: Loaded Lexicon. If None, loads the default database.

    Returns:
        cidian.models.LookupResult
    """
    from cidian.output import lookup as _lookup

    if lexicon is None:
        lexicon = load()
    return _lookup(lexicon, text)
