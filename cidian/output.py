"""
Output formatting for Cidian.

Turns segmentation forests into ranked, de-duplicated entry groups:

1. Every node is ranked by the deepest chain position it was reached at.
2. Each entry group (the entries behind one dictionary key) is listed
   once, using the first node that reached it.
3. Groups are ordered by rank, so words starting the query come first.

The ranking lives in a side table; cached forests are shared between
queries and are never modified here.
"""

from typing import Callable, Dict, List, Tuple

from cidian.characters import remove_tone_number
from cidian.dictionary import Entry, Lexicon
from cidian.models import EntryResult, GroupResult, LookupResult, SectionResult
from cidian.romanize import add_tone_accent, pinyin_with_marks
from cidian.segment import Forest, MatchNode, SegmentationEngine


# ============================================================================
# Forest Walking
# ============================================================================

def rank_nodes(forest: Forest) -> Dict[MatchNode, int]:
    """
    Map every reachable node to the deepest position it occurs at.

    Nodes are visited once in topological order, so shared subforests
    cost no more than their size.

    Args:
        forest: Forest from a segmentation search.

    Returns:
        Node -> depth (0 for the roots).
    """
    # Depth-first post-order, without recursion
    order: List[MatchNode] = []
    seen = set()
    stack: List[Tuple[MatchNode, bool]] = [(node, False) for node in reversed(forest)]

    while stack:
        node, expanded = stack.pop()
        if expanded:
            order.append(node)
            continue
        if node in seen:
            continue
        seen.add(node)
        stack.append((node, True))
        stack.extend((child, False) for child in reversed(node.following) if child not in seen)

    # Reversed post-order puts every node after all of its parents
    ranks: Dict[MatchNode, int] = {node: 0 for node in forest}
    for node in reversed(order):
        depth = ranks[node] + 1
        for child in node.following:
            if ranks.get(child, -1) < depth:
                ranks[child] = depth
    return ranks


def collect_groups(
    forest: Forest,
    entries_of: Callable[[object], List[Entry]],
) -> List[List[Entry]]:
    """
    List the distinct entry groups of a forest, best ranked first.

    Args:
        forest: Forest from a segmentation search.
        entries_of: Returns the entry list behind a corpus item.

    Returns:
        Entry lists, ordered by the rank of the first node reaching them.
        Ties keep depth-first walk order.
    """
    ranks = rank_nodes(forest)
    first_seen: Dict[int, Tuple[List[Entry], MatchNode]] = {}
    visited = set()
    stack = [iter(forest)]

    while stack:
        node = next(stack[-1], None)
        if node is None:
            stack.pop()
            continue
        if id(node) in visited:
            continue
        visited.add(id(node))
        group = entries_of(node.item)
        if id(group) not in first_seen:
            first_seen[id(group)] = (group, node)
        stack.append(iter(node.following))

    ordered = sorted(first_seen.values(), key=lambda pair: ranks[pair[1]])
    return [group for group, _ in ordered]


# ============================================================================
# Headers
# ============================================================================

def entry_line(entry: Entry) -> str:
    """'中文 zhōng wén: Chinese language' style summary of one entry."""
    marks = " ".join(pinyin_with_marks(entry.pinyin))
    return f"{entry.simplified_text} {marks}: {', '.join(entry.english)}"


def group_header(entries: List[Entry]) -> str:
    """
    Summarize what a group of entries has in common.

    The headword is shown if all entries share it. The reading gets tone
    marks if all entries share it, otherwise tone digits are dropped.
    Glosses are shown for a single one-gloss entry, or when all entries
    have the same glosses.
    """
    ordered = sort_group(entries)
    first = ordered[0]
    same_char = all(e.simplified == first.simplified for e in ordered)
    same_pinyin = all(e.pinyin == first.pinyin for e in ordered)
    same_english = all(e.english == first.english for e in ordered)

    parts = []
    if same_char:
        parts.append(first.simplified_text + " ")
    parts.append(" ".join(
        add_tone_accent(p) if same_pinyin else remove_tone_number(p)
        for p in first.pinyin
    ))
    if len(ordered) == 1 and len(first.english) == 1:
        parts.append(": " + first.english[0])
    elif same_english:
        parts.append(": " + ", ".join(first.english))
    return "".join(parts)


def sort_group(entries: List[Entry]) -> List[Entry]:
    """Entries of a group ordered by their joined numbered pinyin."""
    return sorted(entries, key=lambda e: "".join(e.pinyin))


# ============================================================================
# Lookup
# ============================================================================

def group_result(entries: List[Entry]) -> GroupResult:
    return GroupResult(
        header=group_header(entries),
        entries=[EntryResult.from_entry(e) for e in sort_group(entries)],
    )


def forest_section(name: str, engine: SegmentationEngine, text: str) -> SectionResult:
    """Search one engine and turn its forest into a result section."""
    skipped, forest = engine.search_with_skip(engine.key_type.normalize_query(text))
    groups = collect_groups(forest, lambda group: group.entries)
    return SectionResult(
        name=name,
        skipped=skipped,
        groups=[group_result(g) for g in groups],
    )


def lookup(lexicon: Lexicon, text: str) -> LookupResult:
    """
    Look text up as pinyin, as Chinese characters and as English.

    Args:
        lexicon: Loaded dictionary.
        text: User query.

    Returns:
        LookupResult with 'Pinyin', 'Simplified' and 'English' sections.
    """
    english = SectionResult(
        name="English",
        groups=[
            GroupResult(header=entry_line(e), entries=[EntryResult.from_entry(e)])
            for e in lexicon.search_english(text)
        ],
    )
    return LookupResult(
        query=text,
        sections=[
            forest_section("Pinyin", lexicon.pinyin_engine_for(text), text),
            forest_section("Simplified", lexicon.character_engine, text),
            english,
        ],
    )


def format_lookup_text(result: LookupResult, with_entries: bool = True) -> str:
    """
    Render a lookup result as plain text.

    Args:
        result: Output of lookup().
        with_entries: Also list every entry under its group header.

    Returns:
        Text, or a 'no results' line when every section is empty.
    """
    sections = result.non_empty()
    if not sections:
        return f"No results for: {result.query}"

    lines = []
    for section in sections:
        if lines:
            lines.append("")
        title = f"== {section.name} =="
        if section.skipped:
            title += f" (ignored first {section.skipped})"
        lines.append(title)
        for group in section.groups:
            lines.append(f"* {group.header}")
            if with_entries and len(group.entries) > 1:
                for entry in group.entries:
                    lines.append(f"    {entry.header}")
    return "\n".join(lines)
