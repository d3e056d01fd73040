"""
Tests for segment.py - memoized segmentation search.

Corpus items are (name, key) pairs over single latin letters standing in
for Chinese graphemes.
"""

import threading

import pytest

from cidian.keys import GRAPHEME_KEYS, SYLLABLE_KEYS, GraphemeKeys
from cidian.segment import (
    MatchNode, PrefixIndex, SegmentationEngine,
    forest_structure, iter_chains,
)


def make_engine(pairs, use_index=True):
    """Engine over (name, key-string) pairs with grapheme keys."""
    corpus = [(name, tuple(key)) for name, key in pairs]
    return SegmentationEngine(corpus, lambda item: item[1], GRAPHEME_KEYS, use_index=use_index)


def shape(forest):
    """Forest as nested (key, name, following) tuples."""
    return [
        ("".join(node.key), node.item[0], shape(node.following))
        for node in forest
    ]


def q(text):
    return tuple(text)


@pytest.fixture(params=[True, False], ids=["indexed", "scan"])
def use_index(request):
    return request.param


# =============================================================================
# Concrete scenarios
# =============================================================================


class TestScenarios:
    """The reference scenarios, run with and without the prefix index."""

    def test_two_single_keys(self, use_index):
        """Two one-letter keys chain into a single path."""
        engine = make_engine([("X", "a"), ("Y", "b")], use_index)
        assert shape(engine.search(q("ab"))) == [
            ("a", "X", [("b", "Y", [])]),
        ]

    def test_longer_key_first(self, use_index):
        """A two-letter key is listed before the split into letters."""
        engine = make_engine([("X", "a"), ("Y", "b"), ("Z", "ab")], use_index)
        assert shape(engine.search(q("ab"))) == [
            ("ab", "Z", []),
            ("a", "X", [("b", "Y", [])]),
        ]

    def test_leading_unmatched_character_dropped(self, use_index):
        """An unknown first letter is dropped silently."""
        engine = make_engine([("X", "a")], use_index)
        assert shape(engine.search(q("za"))) == [("a", "X", [])]
        assert shape(engine.search(q("za"))) == shape(engine.search(q("a")))

    def test_empty_corpus(self, use_index):
        """Nothing matches an empty corpus."""
        engine = make_engine([], use_index)
        assert engine.search(q("anything")) == []

    def test_overlapping_keys_keep_all_decompositions(self, use_index):
        """Every split of "aaa" into "a" and "aa" is kept."""
        engine = make_engine([("X", "a"), ("W", "aa")], use_index)
        assert shape(engine.search(q("aaa"))) == [
            ("aa", "W", [("a", "X", [])]),
            ("a", "X", [
                ("aa", "W", []),
                ("a", "X", [("a", "X", [])]),
            ]),
        ]


# =============================================================================
# Properties
# =============================================================================


class TestTerminal:
    """Tests for the empty query and fully unmatched queries."""

    def test_empty_query(self, use_index):
        """The empty query gives the empty forest."""
        engine = make_engine([("X", "a")], use_index)
        assert engine.search(()) == []

    def test_all_unmatched(self, use_index):
        """A query with no matches settles into the empty forest uncached."""
        engine = make_engine([("X", "a")], use_index)
        assert engine.search(q("zzz")) == []
        assert engine.cache_size == 0

    def test_zero_length_key_never_matches(self, use_index):
        """Empty keys are ignored."""
        engine = make_engine([("E", ""), ("X", "a")], use_index)
        assert shape(engine.search(q("a"))) == [("a", "X", [])]


class TestCompleteness:
    """Every chain spells out the query."""

    PAIRS = [("A", "a"), ("B", "b"), ("AB", "ab"), ("BA", "ba"),
             ("ABC", "abc"), ("C", "c"), ("CAB", "cab")]

    @pytest.mark.parametrize("text", ["abcab", "cabab", "abc", "bacab"])
    def test_chains_concatenate_to_query(self, use_index, text):
        """Each chain spells the query exactly."""
        engine = make_engine(self.PAIRS, use_index)
        chains = list(iter_chains(engine.search(q(text))))
        assert chains
        for chain in chains:
            assert "".join("".join(node.key) for node in chain) == text

    def test_chains_cover_suffix_after_skip(self, use_index):
        """Chains spell the query minus the dropped prefix."""
        engine = make_engine(self.PAIRS, use_index)
        for chain in iter_chains(engine.search(q("zzabc"))):
            assert "".join("".join(node.key) for node in chain) == "abc"

    def test_chain_count(self, use_index):
        """All compositions of the query are present."""
        engine = make_engine([("X", "a"), ("W", "aa")], use_index)
        # Compositions of 4 into parts of 1 and 2
        assert len(list(iter_chains(engine.search(q("aaaa"))))) == 5


class TestOrdering:
    """Tests for node order at each level."""

    def test_non_increasing_key_length(self, use_index):
        """Every level is sorted longest key first."""
        engine = make_engine(TestCompleteness.PAIRS, use_index)

        def check(forest):
            lengths = [len(node.key) for node in forest]
            assert lengths == sorted(lengths, reverse=True)
            for node in forest:
                check(node.following)

        check(engine.search(q("abcabcab")))

    def test_equal_keys_keep_corpus_order(self, use_index):
        """Equal length keys keep corpus order."""
        engine = make_engine([("P", "ab"), ("Q", "a"), ("R", "ab"), ("S", "b")], use_index)
        assert [node.item[0] for node in engine.search(q("ab"))] == ["P", "R", "Q"]

    def test_index_and_scan_agree(self):
        """The prefix index reproduces the linear scan."""
        pairs = TestCompleteness.PAIRS + [("AA", "aa"), ("A2", "a")]
        indexed = make_engine(pairs, use_index=True)
        scanned = make_engine(pairs, use_index=False)
        for text in ["abcab", "aabca", "xxcab", "bbbb", "cabcabz"]:
            assert shape(indexed.search(q(text))) == shape(scanned.search(q(text)))


class TestSkipping:
    """Tests for dropping unmatched leading elements."""

    def test_same_forest_as_first_matching_suffix(self, use_index):
        """Skipping returns the cached forest of the first matching suffix."""
        engine = make_engine([("X", "a"), ("Y", "b")], use_index)
        assert engine.search(q("zzab")) is engine.search(q("ab"))

    def test_search_with_skip_counts_dropped(self, use_index):
        """search_with_skip reports dropped leading elements."""
        engine = make_engine([("X", "a")], use_index)
        skipped, forest = engine.search_with_skip(q("zza"))
        assert skipped == 2
        assert shape(forest) == [("a", "X", [])]

    def test_search_with_skip_nothing_dropped(self, use_index):
        """Nothing is reported when the first element matches."""
        engine = make_engine([("X", "a")], use_index)
        assert engine.search_with_skip(q("aa"))[0] == 0

    def test_search_with_skip_all_dropped(self, use_index):
        """A fully unmatched query reports its whole length."""
        engine = make_engine([("X", "a")], use_index)
        assert engine.search_with_skip(q("xyz")) == (3, [])

    def test_unmatched_inner_element_ends_chain(self, use_index):
        """An unknown element inside the query is skipped too."""
        engine = make_engine([("X", "a"), ("Y", "b")], use_index)
        assert shape(engine.search(q("azb"))) == [
            ("a", "X", [("b", "Y", [])]),
        ]


class TestCache:
    """Tests for memoization."""

    def test_repeated_search_returns_same_forest(self, use_index):
        """Repeated searches return the cached forest object."""
        engine = make_engine([("X", "a"), ("W", "aa")], use_index)
        assert engine.search(q("aaa")) is engine.search(q("aaa"))

    def test_subforest_shared_with_direct_search(self, use_index):
        """Continuations are the forests of their suffixes."""
        engine = make_engine([("X", "a"), ("W", "aa")], use_index)
        forest = engine.search(q("aaa"))
        assert forest[0].following is engine.search(q("a"))
        assert forest[1].following is engine.search(q("aa"))

    def test_fresh_engine_gives_same_structure(self, use_index):
        """A warm cache does not change results."""
        warm = make_engine([("X", "a"), ("W", "aa")], use_index)
        warm.search(q("aaaa"))
        cold = make_engine([("X", "a"), ("W", "aa")], use_index)
        assert shape(warm.search(q("aa"))) == shape(cold.search(q("aa")))

    def test_only_matched_suffixes_cached(self, use_index):
        """Suffixes reached only by skipping are not cached."""
        engine = make_engine([("X", "a")], use_index)
        engine.search(q("za"))
        assert engine.is_cached(q("a"))
        assert not engine.is_cached(q("za"))
        assert engine.cache_size == 1

    def test_sort_index_untouched(self, use_index):
        """The engine leaves sort_index at its default."""
        engine = make_engine([("X", "a"), ("W", "aa")], use_index)
        for chain in iter_chains(engine.search(q("aaaa"))):
            assert all(node.sort_index == 0 for node in chain)


class TestLongQueries:
    """The search does not recurse per element."""

    def test_long_query(self):
        """A 3000 element query resolves without deep recursion."""
        engine = make_engine([("X", "a")])
        forest = engine.search(("a",) * 3000)

        depth = 0
        while forest:
            assert len(forest) == 1
            forest = forest[0].following
            depth += 1
        assert depth == 3000

    def test_iter_chains_long_query(self):
        """iter_chains walks a 1500 node chain without deep recursion."""
        engine = make_engine([("X", "a")])
        chains = list(iter_chains(engine.search(("a",) * 1500)))
        assert len(chains) == 1
        assert len(chains[0]) == 1500

    def test_forest_structure_long_query(self):
        """forest_structure nests 1500 levels without deep recursion."""
        engine = make_engine([("X", "a")])
        level = forest_structure(engine.search(("a",) * 1500))

        depth = 0
        while level:
            level = level[0][2]
            depth += 1
        assert depth == 1500


class CaseFoldKeys(GraphemeKeys):
    """Grapheme keys that ignore letter case."""

    def starts_with(self, seq, key):
        return len(key) <= len(seq) and self.equals(seq[:len(key)], key)

    def equals(self, a, b):
        return tuple(s.casefold() for s in a) == tuple(s.casefold() for s in b)

    def hash(self, seq):
        return hash(tuple(s.casefold() for s in seq))


class TestCustomKeyType:
    """The engine compares keys through the key type, not natively."""

    def make(self, pairs, use_index):
        corpus = [(name, tuple(key)) for name, key in pairs]
        return SegmentationEngine(corpus, lambda item: item[1], CaseFoldKeys(), use_index=use_index)

    def test_match_ignores_case(self, use_index):
        """A lower-case query finds an upper-case key."""
        engine = self.make([("X", "A")], use_index)
        forest = engine.search(q("a"))
        assert len(forest) == 1
        assert forest[0].key == ("A",)

    def test_cache_uses_key_type_equality(self, use_index):
        """Queries differing only in case share one cache entry."""
        engine = self.make([("X", "A")], use_index)
        forest = engine.search(q("a"))
        assert engine.is_cached(q("A"))
        assert engine.search(q("A")) is forest
        assert engine.cache_size == 1

    def test_index_and_scan_agree(self):
        """The prefix index and the scan agree under a custom equality."""
        pairs = [("X", "Ab"), ("Y", "a"), ("Z", "B"), ("W", "ab")]
        indexed = self.make(pairs, use_index=True)
        scanned = self.make(pairs, use_index=False)
        for text in ["aBab", "ABAB", "zab"]:
            assert shape(indexed.search(q(text))) == shape(scanned.search(q(text)))
        assert [node.item[0] for node in indexed.search(q("ab"))] == ["X", "W", "Y"]


class TestSyllableKeys:
    """The same engine over plain strings."""

    CORPUS = ["dian", "dianxia", "xia", "xi", "an", "xian"]

    def make(self, use_index):
        return SegmentationEngine(self.CORPUS, lambda s: s, SYLLABLE_KEYS, use_index=use_index)

    def test_string_segmentation(self, use_index):
        """Pinyin strings split like grapheme tuples."""
        forest = self.make(use_index).search("dianxia")
        assert [node.key for node in forest] == ["dianxia", "dian"]
        assert [node.key for node in forest[1].following] == ["xia", "xi"]

    def test_search_text_normalizes(self, use_index):
        """search_text lower-cases the query first."""
        forest = self.make(use_index).search_text("XiAn")
        assert [node.key for node in forest] == ["xian", "xia", "xi"]
        assert [node.key for node in forest[2].following] == ["an"]
        assert forest[1].following == []


class TestHelpers:
    """Tests for forest helpers and the prefix index."""

    def test_forest_structure(self):
        """forest_structure gives nested tuples."""
        engine = make_engine([("X", "a")])
        assert forest_structure(engine.search(q("a"))) == [(("a",), ("X", ("a",)), [])]

    def test_iter_chains_empty(self):
        """The empty forest has no chains."""
        assert list(iter_chains([])) == []

    def test_match_node_identity(self):
        """Nodes compare and hash by identity."""
        a = MatchNode(key=("a",), item="X")
        b = MatchNode(key=("a",), item="X")
        assert a != b
        assert len({a, b}) == 2

    def test_prefix_index_lengths(self):
        """The index keeps distinct non-zero lengths, longest first."""
        corpus = [("a",), ("a", "b"), (), ("c", "a", "b")]
        index = PrefixIndex(corpus, lambda k: k, GRAPHEME_KEYS)
        assert index.lengths == [3, 2, 1]
        assert len(index) == 3
        assert [key for _, key in index.matches(q("abc"))] == [("a", "b"), ("a",)]

    def test_concurrent_searches(self):
        """Parallel searches share one cached forest."""
        engine = make_engine([("X", "a"), ("W", "aa")])
        results = []

        def worker():
            results.append(engine.search(q("aaaaaa")))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(r is results[0] for r in results)
