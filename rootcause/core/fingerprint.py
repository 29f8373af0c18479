"""Root-cause fingerprinting.

This module provides the algorithm that turns an error message and the
functions implicated in it into a stable identity. Two incidents with the
same fingerprint are treated as the same underlying defect, and the
fingerprint is the key of the solved-issue ledger, so the output must stay
byte-for-byte stable across releases.
"""

import hashlib
import re
from collections.abc import Sequence

_DIGITS = re.compile(r"[0-9]+")
_QUOTES = re.compile(r"['\"]")
# Whitespace as fingerprints define it: space separators, line terminators
# and the BOM. Unlike \s it excludes \x1c-\x1f and \x85. Ledger keys depend
# on this exact set.
WHITESPACE_CHARS = (
    "\t\n\v\f\r \u00a0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006"
    "\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
)
_WHITESPACE = re.compile(f"[{WHITESPACE_CHARS}]+")

NUMBER_PLACEHOLDER = "N"
SEPARATOR = "|"
TOP_FUNCTIONS = 5


class RootCauseHasher:
    """Produces stable root-cause fingerprints.

    Pure function over strings. All methods are static as the class
    carries no state.
    """

    @staticmethod
    def fingerprint(message: str, functions: Sequence[str]) -> str:
        """Create a SHA-256 hex digest identifying this root cause.

        Same bug, different occurrence → same fingerprint. Only the
        normalized message and the first five functions (order ignored)
        contribute.
        """
        normalized = RootCauseHasher.normalize_message(message)
        joined = SEPARATOR.join(RootCauseHasher.select_functions(functions))
        hash_input = f"{normalized}{SEPARATOR}{joined}"
        return hashlib.sha256(hash_input.encode("utf-8")).hexdigest()

    @staticmethod
    def normalize_message(message: str) -> str:
        """Collapse the noisy parts of an error message.

        Examples:
        'Row 12 failed after 30 retries'  → 'row N failed after N retries'
        'Key "user_42"   missing'         → 'key user_N missing'
        """
        message = message.lower()
        # Placeholder is applied after lowercasing and stays uppercase
        message = _DIGITS.sub(NUMBER_PLACEHOLDER, message)
        message = _QUOTES.sub("", message)
        message = _WHITESPACE.sub(" ", message)
        return message.strip(WHITESPACE_CHARS)

    @staticmethod
    def select_functions(functions: Sequence[str]) -> list[str]:
        """Take the first five functions and sort them."""
        return sorted(functions[:TOP_FUNCTIONS])
