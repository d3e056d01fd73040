"""
Pinyin rendering for Cidian.

Converts numbered pinyin syllables (as written in CC-CEDICT, e.g.
'zhong1', 'lu:4') into pinyin with tone marks ('zhōng', 'lǜ').
"""

from typing import Iterable, List

from cidian.characters import (
    get_tone_number, remove_tone_number,
    UMLAUT_U, UMLAUT_U_ASCII,
)

# ============================================================================
# Tone Vowel Table
# ============================================================================

# Each vowel followed by its four tone-marked forms
TONE_VOWELS = "aāáǎàeēéěèiīíǐìoōóǒòuūúǔùüǖǘǚǜ"


def accent_vowel_index(syllable: str) -> int:
    """
    Find the vowel that carries the tone mark.

    Rules, in order: a, e, o, ü, the i of 'ui', u, i.

    Args:
        syllable: Syllable without tone digit.

    Returns:
        Index of the vowel, or -1 if the syllable has none.
    """
    if not syllable:
        return -1
    syllable = syllable.lower()

    for vowel in ("a", "e", "o", UMLAUT_U):
        index = syllable.find(vowel)
        if index >= 0:
            return index

    index = syllable.find("ui")
    if index >= 0:
        return index + 1

    for vowel in ("u", "i"):
        index = syllable.find(vowel)
        if index >= 0:
            return index
    return -1


def add_tone_to_vowel(vowel: str, tone: int) -> str:
    """
    Put a tone mark on a single vowel.

    Tones outside 1-4 (including the neutral tone 5) leave the vowel bare.
    Characters that are not vowels are returned unchanged.
    """
    if tone < 0 or tone > 4:
        tone = 0
    index = TONE_VOWELS.find(vowel.lower())
    if index < 0:
        return vowel
    marked = TONE_VOWELS[index // 5 * 5 + tone]
    return marked.upper() if vowel.isupper() else marked


def add_tone_accent(syllable: str, tone: int = None) -> str:
    """
    Render a numbered syllable with its tone mark.

    Args:
        syllable: Numbered syllable such as 'hao3' or 'nu:3'.
        tone: Tone to apply. Defaults to the syllable's own tone digit.

    Returns:
        Tone-marked syllable. Syllables without a vowel (e.g. 'r5',
        punctuation) are returned as given.

    Example:
        >>> add_tone_accent("hao3")
        'hǎo'
        >>> add_tone_accent("nu:3")
        'nǚ'
    """
    syllable = syllable.replace(UMLAUT_U_ASCII, UMLAUT_U)
    if tone is None:
        tone = get_tone_number(syllable)

    bare = remove_tone_number(syllable)
    index = accent_vowel_index(bare)
    if index < 0:
        return syllable

    return bare[:index] + add_tone_to_vowel(bare[index], tone) + bare[index + 1:]


def pinyin_with_marks(syllables: Iterable[str]) -> List[str]:
    """Render every syllable of a reading with tone marks."""
    return [add_tone_accent(s) for s in syllables]
