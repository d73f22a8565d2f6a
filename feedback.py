"""
Per-position feedback for bulls-and-cows guesses.

Pure functions only: no lobby state, no I/O.
"""

from collections import Counter
from typing import Any, List, Sequence

from config import CODE_ALPHABET, CODE_LENGTH

CORRECT = 'correct'
PRESENT = 'present'
ABSENT = 'absent'


def evaluate(secret: Sequence[str], guess: Sequence[str]) -> List[str]:
    """
    Compare a guess against a secret, one status per position.

    Exact matches are marked first; the remaining secret symbols are then
    consumed left to right by the unmatched guess positions, so repeated
    digits are never credited more often than they occur in the secret.

    Example:
        >>> evaluate('1123', '1111')
        ['correct', 'correct', 'absent', 'absent']
    """
    statuses = [ABSENT] * CODE_LENGTH
    remaining: Counter = Counter()

    for i in range(CODE_LENGTH):
        if guess[i] == secret[i]:
            statuses[i] = CORRECT
        else:
            remaining[secret[i]] += 1

    for i in range(CODE_LENGTH):
        if statuses[i] == CORRECT:
            continue
        if remaining[guess[i]] > 0:
            statuses[i] = PRESENT
            remaining[guess[i]] -= 1

    return statuses


def is_solved(statuses: Sequence[str]) -> bool:
    """True when every position is correct."""
    return len(statuses) == CODE_LENGTH and all(s == CORRECT for s in statuses)


def validate_code(value: Any) -> bool:
    """Validate that a value is a code of CODE_LENGTH symbols from CODE_ALPHABET."""
    if not isinstance(value, str) or len(value) != CODE_LENGTH:
        return False
    return all(ch in CODE_ALPHABET for ch in value)
