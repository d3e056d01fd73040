"""
Character handling for Cidian.

Provides grapheme splitting for Chinese script text and the small set of
helpers used to normalize numbered pinyin syllables (tone digits, the
``u:`` spelling of ``ü``).
"""

import unicodedata
from typing import List, Tuple

# ============================================================================
# Grapheme Splitting
# ============================================================================

# Zero width joiner glues the next character onto the current grapheme
ZERO_WIDTH_JOINER = "\u200d"

# Categories that never start a new grapheme
COMBINING_CATEGORIES = {"Mn", "Mc", "Me"}

# Emoji skin tone modifiers (category Sk, but attach to the previous char)
EMOJI_MODIFIERS = range(0x1F3FB, 0x1F400)


def is_combining(char: str) -> bool:
    """Check if a character extends the preceding grapheme."""
    if unicodedata.category(char) in COMBINING_CATEGORIES:
        return True
    return ord(char) in EMOJI_MODIFIERS


def split_into_characters(text: str) -> Tuple[str, ...]:
    """
    Split text into user-perceived characters (graphemes).

    A base character absorbs every combining mark, variation selector and
    skin tone modifier that follows it. A zero width joiner links the
    following character into the same grapheme.

    Args:
        text: Text to split.

    Returns:
        Tuple of graphemes; empty for empty text.

    Example:
        >>> split_into_characters("中文")
        ('中', '文')
    """
    graphemes: List[str] = []
    joining = False

    for char in text:
        if graphemes and (joining or is_combining(char) or char == ZERO_WIDTH_JOINER):
            graphemes[-1] += char
        else:
            graphemes.append(char)
        joining = char == ZERO_WIDTH_JOINER

    return tuple(graphemes)


def join_characters(graphemes) -> str:
    """Join a grapheme sequence back into a string."""
    return "".join(graphemes)


# ============================================================================
# Pinyin Syllables
# ============================================================================

# Numbered pinyin writes ü as "u:" (CC-CEDICT convention)
UMLAUT_U = "ü"
UMLAUT_U_ASCII = "u:"


def ends_in_number(syllable: str) -> bool:
    """Check if a syllable carries a trailing tone digit."""
    if len(syllable) < 1:
        return False
    return syllable[-1] in "0123456789"


def remove_tone_number(syllable: str) -> str:
    """
    Strip a trailing tone digit from a syllable.

    Args:
        syllable: Numbered pinyin syllable (e.g. 'zhong1').

    Returns:
        Syllable without its tone digit (e.g. 'zhong'). Empty or
        untoned input is returned unchanged.
    """
    if not syllable:
        return syllable
    if ends_in_number(syllable):
        return syllable[:-1]
    return syllable


def get_tone_number(syllable: str) -> int:
    """Return the tone (1-5) of a numbered syllable, or 0 if it has none."""
    if not syllable:
        return 0
    last = syllable[-1]
    if "1" <= last <= "5":
        return int(last)
    return 0


def normalize_pinyin(text: str) -> str:
    """
    Normalize romanized input the way dictionary pinyin keys are built.

    Lower-cases the text and spells ``ü`` as ``u:``.
    """
    return text.lower().replace(UMLAUT_U, UMLAUT_U_ASCII)


def split_pinyin(text: str) -> List[str]:
    """Split a bracketed CEDICT reading into lower-cased syllables."""
    return text.lower().split(" ")


def toned_syllables(syllables: List[str]) -> List[str]:
    """Keep only real syllables (those ending in a tone digit)."""
    return [s for s in syllables if ends_in_number(s)]
