"""
Segmentation search for Cidian.

Finds every way to write a query as a concatenation of corpus keys. The
result is a forest: each node consumes one matching key at the current
position and links to the forest for the rest of the query.

The engine is generic over the key type (see cidian.keys), so the same
implementation serves character lookup (grapheme tuples) and pinyin
lookup (syllable strings).

Matching rules:
- Keys of length zero never match.
- At every level nodes are ordered longest key first; equal lengths keep
  corpus order.
- A suffix where no key matches loses its first element and the search
  continues with the rest. Dropped elements do not appear in the forest;
  use search_with_skip() to find out how many were dropped.
- Forests of matched suffixes are cached per engine and reused verbatim.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import (
    Any, Callable, Dict, Generic, Iterable, Iterator, List,
    Optional, Sequence, Tuple, TypeVar,
)

from cidian.keys import KeyType

logger = logging.getLogger(__name__)

T = TypeVar('T')


# ============================================================================
# Forest Types
# ============================================================================

@dataclass(eq=False)
class MatchNode(Generic[T]):
    """
    One corpus item matched at the current position.

    Nodes compare by identity so callers can key side tables on them.
    sort_index belongs to callers ranking nodes; the engine never reads
    or writes it after construction.
    """
    key: Any
    item: T
    following: List['MatchNode[T]'] = field(default_factory=list)
    sort_index: int = 0

    def __repr__(self) -> str:
        return f"MatchNode(key={self.key!r}, item={self.item!r}, following={len(self.following)})"


Forest = List[MatchNode]

# (item, key) pairs found at one position
Matches = List[Tuple[Any, Any]]


def iter_chains(forest: Forest) -> Iterator[List[MatchNode]]:
    """
    Yield every root-to-leaf chain of nodes in a forest.

    Args:
        forest: Forest returned by SegmentationEngine.search().

    Yields:
        Lists of nodes, in forest order.
    """
    path: List[MatchNode] = []
    stack = [iter(forest)]

    while stack:
        node = next(stack[-1], None)
        if node is None:
            stack.pop()
            if path:
                path.pop()
            continue
        if not node.following:
            yield path + [node]
            continue
        path.append(node)
        stack.append(iter(node.following))


def forest_structure(forest: Forest) -> List[Tuple[Any, Any, list]]:
    """Nested (key, item, following) tuples, handy for comparisons."""
    # Shared subforests are built once, keyed by list identity
    built: Dict[int, list] = {}
    stack = [forest]

    while stack:
        current = stack[-1]
        if id(current) in built:
            stack.pop()
            continue
        waiting = [node.following for node in current if id(node.following) not in built]
        if waiting:
            stack.extend(waiting)
            continue
        built[id(current)] = [
            (node.key, node.item, built[id(node.following)])
            for node in current
        ]
        stack.pop()

    return built[id(forest)]


class KeyRef:
    """
    Dictionary key that hashes and compares through a KeyType.

    The engine cache and the prefix index are keyed on these, so two
    sequences are the same key exactly when the key type says so.
    """

    __slots__ = ("seq", "key_type", "_hash")

    def __init__(self, seq: Sequence, key_type: KeyType):
        self.seq = seq
        self.key_type = key_type
        self._hash = key_type.hash(seq)

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other) -> bool:
        if not isinstance(other, KeyRef):
            return NotImplemented
        return self.key_type.equals(self.seq, other.seq)

    def __repr__(self) -> str:
        return f"KeyRef({self.seq!r})"


# ============================================================================
# Prefix Index
# ============================================================================

class PrefixIndex:
    """
    Corpus items grouped by key, plus the distinct key lengths.

    All keys matching at one position with the same length are equal to
    the same prefix, so probing lengths longest first returns matches in
    the same order as a stable longest-first sort of a full corpus scan.
    """

    def __init__(self, corpus: Iterable[T], key_func: Callable[[T], Sequence],
                 key_type: KeyType):
        self.key_type = key_type
        self._by_key: Dict[KeyRef, Matches] = {}
        lengths = set()

        for item in corpus:
            key = key_func(item)
            n = key_type.length(key)
            if n == 0:
                continue
            self._by_key.setdefault(KeyRef(key, key_type), []).append((item, key))
            lengths.add(n)

        self.lengths: List[int] = sorted(lengths, reverse=True)

    def __len__(self) -> int:
        return len(self._by_key)

    def matches(self, seq: Sequence) -> Matches:
        """Return (item, key) pairs whose key is a prefix of seq."""
        size = self.key_type.length(seq)
        found: Matches = []
        for n in self.lengths:
            if n > size:
                continue
            head = KeyRef(self.key_type.prefix(seq, n), self.key_type)
            found.extend(self._by_key.get(head, ()))
        return found


# ============================================================================
# Segmentation Engine
# ============================================================================

class SegmentationEngine(Generic[T]):
    """
    Memoized segmentation of queries into corpus keys.

    Args:
        corpus: Items to match; materialized once and never re-read.
        key_func: Returns the key of an item.
        key_type: Sequence operations for keys and queries.
        use_index: Find matches through a PrefixIndex instead of scanning
            the whole corpus for every suffix. Results are identical.

    Example:
        >>> engine = SegmentationEngine(["a", "b", "ab"], lambda s: tuple(s), GRAPHEME_KEYS)
        >>> [n.key for n in engine.search(("a", "b"))]
        [('a', 'b'), ('a',)]
    """

    def __init__(self, corpus: Iterable[T], key_func: Callable[[T], Sequence],
                 key_type: KeyType, use_index: bool = True):
        self.corpus: Tuple[T, ...] = tuple(corpus)
        self.key_func = key_func
        self.key_type = key_type
        self.use_index = use_index
        self._index: Optional[PrefixIndex] = (
            PrefixIndex(self.corpus, key_func, key_type) if use_index else None
        )
        self._cache: Dict[KeyRef, Forest] = {}
        self._lock = threading.Lock()

    @property
    def cache_size(self) -> int:
        """Number of suffixes with a cached forest."""
        return len(self._cache)

    def is_cached(self, seq: Sequence) -> bool:
        return KeyRef(seq, self.key_type) in self._cache

    def search(self, query: Sequence) -> Forest:
        """
        Find all segmentations of a query.

        Args:
            query: Sequence of the engine's key type.

        Returns:
            Forest for the query, after dropping any unmatched leading
            elements. Empty when nothing matches anywhere.
        """
        with self._lock:
            forest = self._solve(query)
        logger.debug(
            "%s search over %d elements: %d roots, %d cached suffixes",
            self.key_type.name, self.key_type.length(query), len(forest), len(self._cache),
        )
        return forest

    def search_text(self, text: str) -> Forest:
        """Normalize raw text with the key type, then search."""
        return self.search(self.key_type.normalize_query(text))

    def search_with_skip(self, query: Sequence) -> Tuple[int, Forest]:
        """
        Search and report how many leading elements were dropped.

        Returns:
            (skipped, forest). skipped equals the query length when no
            suffix matched at all.
        """
        with self._lock:
            forest = self._solve(query)
            key_type = self.key_type
            size = key_type.length(query)
            skipped = 0
            while skipped < size and KeyRef(key_type.suffix(query, skipped), key_type) not in self._cache:
                skipped += 1
        return skipped, forest

    def _find_matches(self, seq: Sequence) -> Matches:
        if self._index is not None:
            return self._index.matches(seq)

        key_type = self.key_type
        found: Matches = []
        for item in self.corpus:
            key = self.key_func(item)
            if key_type.length(key) > 0 and key_type.starts_with(seq, key):
                found.append((item, key))
        # list.sort is stable, also with reverse=True
        found.sort(key=lambda match: key_type.length(match[1]), reverse=True)
        return found

    def _solve(self, query: Sequence) -> Forest:
        """
        Resolve the forest for every suffix the query depends on.

        Suffixes are addressed by start offset. A work stack replaces
        recursion: an offset stays on the stack until every offset it
        continues into has been resolved.
        """
        key_type = self.key_type
        size = key_type.length(query)
        resolved: Dict[int, Forest] = {size: []}
        pending: Dict[int, Tuple[KeyRef, Matches]] = {}
        stack = [0]

        while stack:
            start = stack[-1]
            if start in resolved:
                stack.pop()
                continue

            if start not in pending:
                suffix = KeyRef(key_type.suffix(query, start), key_type)
                cached = self._cache.get(suffix)
                if cached is not None:
                    resolved[start] = cached
                    stack.pop()
                    continue
                pending[start] = (suffix, self._find_matches(suffix.seq))

            suffix, matches = pending[start]

            if not matches:
                # Drop the first element and continue with the rest
                if start + 1 in resolved:
                    resolved[start] = resolved[start + 1]
                    stack.pop()
                else:
                    stack.append(start + 1)
                continue

            waiting = [
                start + key_type.length(key) for _, key in matches
                if start + key_type.length(key) not in resolved
            ]
            if waiting:
                stack.extend(waiting)
                continue

            forest = [
                MatchNode(key=key, item=item, following=resolved[start + key_type.length(key)])
                for item, key in matches
            ]
            self._cache[suffix] = forest
            resolved[start] = forest
            del pending[start]
            stack.pop()

        return resolved[0]
