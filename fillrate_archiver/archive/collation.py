"""
Icelandic collation key for sorting screen names in the CSV archive.

Screen names are Icelandic place names ("Höfðabakki", "Þönglabakki",
"Æsustaðir"), and plain code-point order puts every accented letter after
``z``. The CSV is sorted the way an Icelandic locale collator sorts:

    a á b c d ð e é f g h i í j k l m n o ó p q r s t u ú v w x y ý z þ æ ö å

Letters outside the Icelandic alphabet follow the Icelandic tailoring:
``ä`` is a variant of ``æ``, ``ø`` a variant of ``ö``, ``đ`` a variant of
``d``, and ``å`` is a letter of its own after ``ö``. Any other accented letter
(``ç``, ``ü``, ``ñ``...) is a variant of its base letter.

Comparison is in three levels:
  1. primary   — character class (whitespace and punctuation < digits <
                 letters), then position within the class;
  2. secondary — variant letters after the letter they belong to;
  3. tertiary  — case, lowercase first.

Whitespace and ASCII punctuation use the Unicode default collation order
(space before ``_`` before ``-`` before ``,`` ...), not code-point order.

Use as ``sorted(names, key=icelandic_sort_key)``.
"""

from __future__ import annotations

import unicodedata

ICELANDIC_ALPHABET = "aábcdðeéfghiíjklmnoópqrstuúvwxyýzþæö"

# å is not part of the alphabet but has its own place after ö
_LETTER_RANK = {ch: idx for idx, ch in enumerate(ICELANDIC_ALPHABET + "å")}

_VARIANT_OF = {"ä": "æ", "ø": "ö", "đ": "d"}

_PUNCTUATION_ORDER = " _-,;:!?.'\"()[]{}@*/\\&#%`^+<=>|~$"
_PUNCTUATION_RANK = {ch: idx for idx, ch in enumerate(_PUNCTUATION_ORDER)}

_CLASS_OTHER = 0
_CLASS_DIGIT = 1
_CLASS_LETTER = 2


def _base_letter(lower: str) -> str:
    """The alphabet letter ``lower`` collates with, or ``""`` if none."""
    if lower in _LETTER_RANK:
        return lower
    if lower in _VARIANT_OF:
        return _VARIANT_OF[lower]
    base = unicodedata.normalize("NFD", lower)[0]
    return base if base in _LETTER_RANK else ""


def _primary(ch: str) -> tuple[int, int, str]:
    lower = ch.lower()
    base = _base_letter(lower)
    if base:
        return (_CLASS_LETTER, _LETTER_RANK[base], "")
    if ch.isdigit():
        return (_CLASS_DIGIT, unicodedata.digit(ch, 0), "")
    if ch.isalpha():
        # Letters from other scripts sort after the Icelandic alphabet
        return (_CLASS_LETTER, len(_LETTER_RANK), lower)
    if ch in _PUNCTUATION_RANK:
        return (_CLASS_OTHER, _PUNCTUATION_RANK[ch], "")
    if ch.isspace():
        return (_CLASS_OTHER, _PUNCTUATION_RANK[" "], "")
    return (_CLASS_OTHER, len(_PUNCTUATION_ORDER) + ord(ch), "")


def _secondary(ch: str) -> str:
    lower = ch.lower()
    if lower in _LETTER_RANK or not _base_letter(lower):
        return ""
    return lower


def icelandic_sort_key(text: str) -> tuple:
    """Sort key ordering ``text`` by Icelandic alphabetical rules."""
    text = unicodedata.normalize("NFC", text)
    primary = tuple(_primary(ch) for ch in text)
    secondary = tuple(_secondary(ch) for ch in text)
    tertiary = tuple(ch.isupper() for ch in text)
    return (primary, secondary, tertiary, text)
