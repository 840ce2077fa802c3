"""
Tests — VIN / barcode grammar

Pure validator functions: no network, no state.
"""

from __future__ import annotations

import pytest

from fueltrakr.common.schemas import CandidateKind
from fueltrakr.common.utils import (
    classify_manual,
    is_valid_barcode,
    is_valid_vin,
    matches_kind,
    normalize_vin,
)


class TestIsValidVin:
    def test_known_good_vin(self) -> None:
        assert is_valid_vin("1HGBH41JXMN109186") is True

    def test_lowercase_is_upper_cased_first(self) -> None:
        assert is_valid_vin("1hgbh41jxmn109186") is True

    @pytest.mark.parametrize("letter", ["I", "O", "Q"])
    def test_forbidden_letters(self, letter: str) -> None:
        assert is_valid_vin(f"1HGBH41JXMN1091{letter}6") is False

    def test_contains_letter_o(self) -> None:
        assert is_valid_vin("1HGBH41JXMN1091O6") is False

    @pytest.mark.parametrize("value", ["SHORT123", "", "1HGBH41JXMN1091860", "1HGBH41JXMN10918"])
    def test_wrong_length(self, value: str) -> None:
        assert is_valid_vin(value) is False

    def test_whole_allowed_alphabet(self) -> None:
        alphabet = "ABCDEFGHJKLMNPRSTUVWXYZ0123456789"
        assert is_valid_vin(alphabet[:17]) is True
        assert is_valid_vin(alphabet[16:33]) is True

    def test_punctuation_rejected(self) -> None:
        assert is_valid_vin("1HGBH41JX-N109186") is False

    def test_non_string_is_simply_invalid(self) -> None:
        assert is_valid_vin(None) is False
        assert is_valid_vin(12345678901234567) is False


class TestIsValidBarcode:
    @pytest.mark.parametrize("value", ["12345678", "1234567890123", "12345678901234"])
    def test_eight_to_fourteen_digits(self, value: str) -> None:
        assert is_valid_barcode(value) is True

    @pytest.mark.parametrize("value", ["1234567", "123456789012345", "12345A78", ""])
    def test_rejected(self, value: str) -> None:
        assert is_valid_barcode(value) is False


class TestMatchesKind:
    def test_dispatch_by_kind(self) -> None:
        assert matches_kind(CandidateKind.VIN, "1HGBH41JXMN109186") is True
        assert matches_kind(CandidateKind.BARCODE, "1HGBH41JXMN109186") is False
        assert matches_kind(CandidateKind.BARCODE, "1234567890123") is True
        assert matches_kind(CandidateKind.VIN, "1234567890123") is False


def test_normalize_vin() -> None:
    assert normalize_vin("  1hgbh41jxmn109186 ") == "1HGBH41JXMN109186"


class TestClassifyManual:
    def test_vin_is_trimmed_and_upper_cased(self) -> None:
        candidate = classify_manual("  1hgbh41jxmn109186\n")
        assert candidate is not None
        assert candidate.kind == CandidateKind.VIN
        assert candidate.payload == "1HGBH41JXMN109186"

    def test_digits_are_a_barcode(self) -> None:
        candidate = classify_manual(" 12345678 ")
        assert candidate is not None
        assert (candidate.kind, candidate.payload) == (CandidateKind.BARCODE, "12345678")

    @pytest.mark.parametrize("text", ["", "   ", "1234567", "1HGBH41JXMN1091O6", "ABC-123"])
    def test_unrecognised_input_is_none(self, text: str) -> None:
        assert classify_manual(text) is None
