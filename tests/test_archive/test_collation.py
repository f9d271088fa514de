"""Tests for fillrate_archiver.archive.collation — Icelandic sort order."""

from __future__ import annotations

import unicodedata

import pytest

from fillrate_archiver.archive.collation import ICELANDIC_ALPHABET, icelandic_sort_key


def _sorted(names):
    return sorted(names, key=icelandic_sort_key)


class TestIcelandicSortKey:
    def test_alphabet_is_its_own_order(self):
        letters = list(ICELANDIC_ALPHABET)
        assert _sorted(reversed(letters)) == letters

    def test_accented_vowel_follows_plain_vowel(self):
        # á is its own letter after a, so "Ás" sorts after every "A..." word
        assert _sorted(["Ás", "Az", "Ab"]) == ["Ab", "Az", "Ás"]

    def test_eth_between_d_and_e(self):
        assert _sorted(["Ea", "Ða", "Da"]) == ["Da", "Ða", "Ea"]

    def test_roster_names(self):
        names = [
            "Höfðabakki #1",
            "Hafnartorg #1 Inngangur",
            "Hæðasmári Standur - Portrait",
            "Hagasmári",
            "Hæðasmári #1",
        ]
        assert _sorted(names) == [
            "Hafnartorg #1 Inngangur",
            "Hagasmári",
            "Hæðasmári #1",
            "Hæðasmári Standur - Portrait",
            "Höfðabakki #1",
        ]

    def test_case_insensitive_primary(self):
        assert _sorted(["beta", "Alpha", "alpha2"]) == ["Alpha", "alpha2", "beta"]

    def test_lowercase_first_on_tie(self):
        assert _sorted(["A", "a"]) == ["a", "A"]

    def test_prefix_sorts_first(self):
        assert _sorted(["Kaplakriki #1", "Kaplakriki"]) == ["Kaplakriki", "Kaplakriki #1"]

    def test_digits_before_letters_and_numeric_order(self):
        assert _sorted(["Selfoss #2", "Selfoss #1", "Selfoss A"]) == [
            "Selfoss #1",
            "Selfoss #2",
            "Selfoss A",
        ]

    @pytest.mark.parametrize("foreign, base", [("ü", "u"), ("Ç", "C"), ("ñ", "n"), ("Đ", "D")])
    def test_foreign_accent_sorts_with_base_letter(self, foreign, base):
        key_foreign = icelandic_sort_key(foreign + "b")
        key_plain = icelandic_sort_key(base + "b")
        assert key_foreign[0] == key_plain[0]
        assert key_foreign > key_plain

    @pytest.mark.parametrize("variant, letter", [("Ä", "Æ"), ("ø", "ö")])
    def test_nordic_variants_sort_with_icelandic_letter(self, variant, letter):
        key_variant = icelandic_sort_key(variant + "b")
        key_letter = icelandic_sort_key(letter + "b")
        assert key_variant[0] == key_letter[0]
        assert key_variant > key_letter

    def test_nordic_letters_after_z(self):
        names = ["Ås", "Öxi", "Øst", "Äpple", "Ægir", "Þór", "Zeta"]
        assert _sorted(names) == ["Zeta", "Þór", "Ægir", "Äpple", "Øst", "Öxi", "Ås"]

    def test_a_ring_is_not_a(self):
        assert _sorted(["Åa", "Az", "Öz"]) == ["Az", "Öz", "Åa"]

    def test_punctuation_uses_collation_order(self):
        assert _sorted(["Selfoss-A", "Selfoss_A", "Selfoss A"]) == [
            "Selfoss A",
            "Selfoss_A",
            "Selfoss-A",
        ]

    def test_punctuation_before_digits(self):
        assert _sorted(["Grandi 2", "Grandi #2", "Grandi (2)"]) == [
            "Grandi (2)",
            "Grandi #2",
            "Grandi 2",
        ]

    def test_nfd_input_matches_nfc(self):
        for name in ("Miðbær", "Ás", "Höfðabakki"):
            decomposed = unicodedata.normalize("NFD", name)
            assert icelandic_sort_key(decomposed)[:3] == icelandic_sort_key(name)[:3]
