"""
Key types for segmentation search.

A key type bundles the sequence operations the segmentation engine needs:
length, prefix test, prefix/suffix slicing, equality and hashing, plus the
conversion from raw user text into a query sequence. Two key types are
provided:

1. GraphemeKeys - tuples of graphemes, for Chinese script text
2. SyllableKeys - concatenated pinyin strings, with or without tone digits
"""

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

from cidian.characters import split_into_characters, normalize_pinyin


class KeyType(ABC):
    """
    Base class for key sequence types.

    Implementations must be consistent with how corpus keys are built:
    a query produced by normalize_query() has to compare equal to a corpus
    key wherever the two spell the same thing.

    The operations must also agree with each other: starts_with(seq, key)
    holds exactly when equals(prefix(seq, length(key)), key), and equal
    sequences have equal hash() values. The engine keys its cache and its
    prefix index on equals() and hash().
    """

    name = "key"

    def length(self, seq: Sequence) -> int:
        """Number of elements in the sequence."""
        return len(seq)

    def starts_with(self, seq: Sequence, key: Sequence) -> bool:
        """Check if key is a prefix of seq."""
        if len(key) > len(seq):
            return False
        return seq[:len(key)] == key

    def prefix(self, seq: Sequence, n: int) -> Sequence:
        """First n elements of the sequence."""
        return seq[:n]

    def suffix(self, seq: Sequence, index: int) -> Sequence:
        """Elements of the sequence from index to the end."""
        return seq[index:]

    def equals(self, a: Sequence, b: Sequence) -> bool:
        return a == b

    def hash(self, seq: Sequence) -> int:
        return hash(seq)

    @abstractmethod
    def normalize_query(self, text: str) -> Sequence:
        """Convert raw user input into a query sequence."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class GraphemeKeys(KeyType):
    """Keys are tuples of user-perceived characters."""

    name = "grapheme"

    def normalize_query(self, text: str) -> Tuple[str, ...]:
        return split_into_characters(text)


class SyllableKeys(KeyType):
    """
    Keys are concatenated pinyin strings, either toneless ('zhongwen') or
    numbered ('zhong1wen2').

    Queries are lower-cased and ü is spelled u:, mirroring how the
    dictionary writes its readings.
    """

    name = "syllable"

    def starts_with(self, seq: str, key: str) -> bool:
        return seq.startswith(key)

    def normalize_query(self, text: str) -> str:
        return normalize_pinyin(text)


GRAPHEME_KEYS = GraphemeKeys()
SYLLABLE_KEYS = SyllableKeys()
