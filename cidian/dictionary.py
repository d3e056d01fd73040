"""
Lexicon for Cidian.

Holds the parsed dictionary entries and the groupings searched by the
segmentation engine:

1. characters - simplified and traditional headwords (grapheme keys)
2. pinyins - concatenated numbered pinyin ("zhong1wen2"), searched when
   the query carries tone digits
3. pinyins_no_tones - the same without tone digits ("zhongwen"), searched
   for toneless pinyin

English lookup is a plain substring scan over glosses.
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from cidian.characters import join_characters, remove_tone_number, toned_syllables
from cidian.keys import GRAPHEME_KEYS, SYLLABLE_KEYS
from cidian.segment import Forest, SegmentationEngine

logger = logging.getLogger(__name__)


# ============================================================================
# Entry Data Classes
# ============================================================================

@dataclass(eq=False)
class Entry:
    """One dictionary line. Compared by identity."""
    traditional: Tuple[str, ...]
    simplified: Tuple[str, ...]
    pinyin: List[str]
    english: List[str]

    @property
    def traditional_text(self) -> str:
        return join_characters(self.traditional)

    @property
    def simplified_text(self) -> str:
        return join_characters(self.simplified)

    @property
    def pinyin_text(self) -> str:
        return " ".join(self.pinyin)

    def __repr__(self) -> str:
        return f"Entry({self.simplified_text} [{self.pinyin_text}])"


@dataclass(eq=False)
class CharEntry:
    """All entries written with the same characters."""
    characters: Tuple[str, ...]
    entries: List[Entry] = field(default_factory=list)

    @staticmethod
    def add_to(groups: Dict[str, 'CharEntry'], characters: Tuple[str, ...], entry: Entry) -> 'CharEntry':
        """Add an entry under its headword, once per group."""
        text = join_characters(characters)
        group = groups.get(text)
        if group is None:
            group = CharEntry(characters=characters)
            groups[text] = group
        if entry not in group.entries:
            group.entries.append(entry)
        return group


@dataclass(eq=False)
class PinyinEntry:
    """All entries sharing the same concatenated reading."""
    pinyin: str
    entries: List[Entry] = field(default_factory=list)

    @staticmethod
    def add_to(groups: Dict[str, 'PinyinEntry'], pinyin: str, entry: Entry) -> 'PinyinEntry':
        group = groups.get(pinyin)
        if group is None:
            group = PinyinEntry(pinyin=pinyin)
            groups[pinyin] = group
        group.entries.append(entry)
        return group


def reading_key(entry: Entry, tones: bool = True) -> str:
    """
    Concatenate the real syllables of an entry into a lookup key.

    Syllables without a tone digit (punctuation, latin letters) are left
    out. With tones=False the tone digits are removed as well.
    """
    syllables = toned_syllables(entry.pinyin)
    if not tones:
        syllables = [remove_tone_number(s) for s in syllables]
    return "".join(syllables)


# ============================================================================
# Lexicon
# ============================================================================

class Lexicon:
    """
    In-memory dictionary with character, pinyin and English lookup.

    The entry list and groupings are built once and treated as read-only;
    each lookup kind has one segmentation engine whose cache lives as long
    as the lexicon.
    """

    def __init__(self, entries: Iterable[Entry], use_index: bool = True):
        self.entries: List[Entry] = list(entries)
        self.use_index = use_index

        self.characters: Dict[str, CharEntry] = {}
        self.pinyins: Dict[str, PinyinEntry] = {}
        self.pinyins_no_tones: Dict[str, PinyinEntry] = {}

        for entry in self.entries:
            CharEntry.add_to(self.characters, entry.simplified, entry)
            CharEntry.add_to(self.characters, entry.traditional, entry)
            PinyinEntry.add_to(self.pinyins, reading_key(entry), entry)
            PinyinEntry.add_to(self.pinyins_no_tones, reading_key(entry, tones=False), entry)

        self._character_engine: Optional[SegmentationEngine] = None
        self._pinyin_engine: Optional[SegmentationEngine] = None
        self._toned_pinyin_engine: Optional[SegmentationEngine] = None
        self._engine_lock = threading.Lock()

        logger.info(
            "Lexicon ready: %d entries, %d headwords, %d readings",
            len(self.entries), len(self.characters), len(self.pinyins_no_tones),
        )

    def __len__(self) -> int:
        return len(self.entries)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_lines(cls, lines: Iterable[str], **kwargs) -> 'Lexicon':
        """Build a lexicon from CC-CEDICT formatted lines."""
        from cidian.dict_load import parse_cedict_lines
        return cls(parse_cedict_lines(lines), **kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs) -> 'Lexicon':
        """Build a lexicon from a CC-CEDICT file (plain or gzipped)."""
        from cidian.dict_load import read_cedict
        return cls(read_cedict(path), **kwargs)

    @classmethod
    def from_session(cls, session, **kwargs) -> 'Lexicon':
        """Build a lexicon from the dictionary database."""
        from cidian.dict_load import read_entries
        return cls(read_entries(session), **kwargs)

    # ------------------------------------------------------------------
    # Engines
    # ------------------------------------------------------------------

    def _engine(self, attr: str, groups: dict, key_func, key_type) -> SegmentationEngine:
        with self._engine_lock:
            engine = getattr(self, attr)
            if engine is None:
                engine = SegmentationEngine(
                    groups.values(), key_func, key_type, use_index=self.use_index,
                )
                setattr(self, attr, engine)
            return engine

    @property
    def character_engine(self) -> SegmentationEngine:
        return self._engine(
            "_character_engine", self.characters, lambda group: group.characters, GRAPHEME_KEYS,
        )

    @property
    def pinyin_engine(self) -> SegmentationEngine:
        """Engine over toneless readings ('nihao')."""
        return self._engine(
            "_pinyin_engine", self.pinyins_no_tones, lambda group: group.pinyin, SYLLABLE_KEYS,
        )

    @property
    def toned_pinyin_engine(self) -> SegmentationEngine:
        """Engine over numbered readings ('ni3hao3')."""
        return self._engine(
            "_toned_pinyin_engine", self.pinyins, lambda group: group.pinyin, SYLLABLE_KEYS,
        )

    def pinyin_engine_for(self, text: str) -> SegmentationEngine:
        """Numbered readings if the query carries a tone digit, else toneless."""
        if any(char.isdigit() for char in text):
            return self.toned_pinyin_engine
        return self.pinyin_engine

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def search_characters(self, text: str) -> Forest:
        """Segment Chinese text into dictionary headwords."""
        return self.character_engine.search_text(text)

    def search_pinyin(self, text: str) -> Forest:
        """
        Segment pinyin into dictionary readings.

        Toneless input ('nihao') matches any tone. Input with tone digits
        ('ni3hao3') matches numbered readings exactly.
        """
        return self.pinyin_engine_for(text).search_text(text)

    def search_english(self, text: str) -> List[Entry]:
        """Entries with a gloss containing text, ignoring case."""
        needle = text.lower()
        return [
            entry for entry in self.entries
            if any(needle in gloss.lower() for gloss in entry.english)
        ]
