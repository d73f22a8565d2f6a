"""
Unit tests for feedback computation and code validation.
"""

import itertools

import pytest
from feedback import ABSENT, CORRECT, PRESENT, evaluate, is_solved, validate_code
from config import CODE_LENGTH


class TestEvaluate:
    """Tests for the evaluate function."""

    def test_exact_match(self):
        """All digits in place are all correct."""
        assert evaluate("4271", "4271") == [CORRECT] * 4

    def test_no_overlap(self):
        """Disjoint digits are all absent."""
        assert evaluate("1234", "5678") == [ABSENT] * 4

    def test_all_present_wrong_positions(self):
        """Same digits, reversed order."""
        assert evaluate("1234", "4321") == [PRESENT] * 4

    def test_mixed(self):
        """Correct, present and absent in one guess."""
        assert evaluate("1234", "1325") == [CORRECT, PRESENT, PRESENT, ABSENT]

    def test_repeated_guess_digit_consumed_by_correct(self):
        """Exact matches use up the secret's copies of a digit."""
        assert evaluate("1123", "1111") == [CORRECT, CORRECT, ABSENT, ABSENT]

    def test_repeated_guess_digit_single_in_secret(self):
        """A digit appearing once in the secret is credited once."""
        assert evaluate("1234", "5111") == [ABSENT, PRESENT, ABSENT, ABSENT]

    def test_repeated_secret_digit(self):
        """Two copies in the secret can be matched by two guess positions."""
        assert evaluate("1100", "0011") == [PRESENT] * 4

    def test_present_left_to_right(self):
        """Leftover copies go to the leftmost unmatched guess positions."""
        assert evaluate("1555", "2211") == [ABSENT, ABSENT, PRESENT, ABSENT]

    def test_leading_zeros(self):
        """Codes starting with zero are compared like any other."""
        assert evaluate("0123", "0123") == [CORRECT] * 4

    def test_accepts_sequences(self):
        """Any indexable sequence of symbols works."""
        assert evaluate(['1', '2', '3', '4'], ['1', '2', '4', '3']) == [CORRECT, CORRECT, PRESENT, PRESENT]

    def test_status_count_always_four(self):
        """Every position gets exactly one status."""
        samples = ["0000", "1123", "1234", "9876", "5555", "0101"]
        for secret, guess in itertools.product(samples, repeat=2):
            statuses = evaluate(secret, guess)
            assert len(statuses) == CODE_LENGTH
            assert statuses.count(CORRECT) + statuses.count(PRESENT) + statuses.count(ABSENT) == CODE_LENGTH

    def test_present_bounded_by_unmatched_secret_digits(self):
        """Present never exceeds the secret digits left after exact matches."""
        samples = ["0000", "1123", "1234", "2211", "5555", "0101", "1100"]
        for secret, guess in itertools.product(samples, repeat=2):
            statuses = evaluate(secret, guess)
            for digit in set(guess):
                in_secret = sum(
                    1 for i in range(CODE_LENGTH) if secret[i] == digit and guess[i] != digit
                )
                present = sum(
                    1 for i in range(CODE_LENGTH) if guess[i] == digit and statuses[i] == PRESENT
                )
                assert present <= in_secret


class TestIsSolved:
    """Tests for the is_solved function."""

    def test_all_correct(self):
        assert is_solved([CORRECT] * 4) is True

    def test_one_present(self):
        assert is_solved([CORRECT, CORRECT, PRESENT, CORRECT]) is False

    def test_wrong_length(self):
        assert is_solved([CORRECT] * 3) is False


class TestValidateCode:
    """Tests for the validate_code function."""

    def test_valid_codes(self):
        """Any four digits are valid, including leading zeros."""
        assert validate_code("1234") is True
        assert validate_code("0000") is True
        assert validate_code("0999") is True
        assert validate_code("9999") is True

    def test_invalid_length(self):
        assert validate_code("123") is False
        assert validate_code("12345") is False
        assert validate_code("") is False

    def test_invalid_non_numeric(self):
        assert validate_code("abcd") is False
        assert validate_code("12ab") is False
        assert validate_code("12.4") is False
        assert validate_code("-123") is False

    def test_invalid_with_spaces(self):
        assert validate_code(" 123") is False
        assert validate_code("12 4") is False

    @pytest.mark.parametrize("value", [None, 1234, ["1", "2", "3", "4"], {"code": "1234"}])
    def test_invalid_types(self, value):
        """Only strings are accepted."""
        assert validate_code(value) is False
