"""Approximate matching of address tokens against dictionary keys.

Optional stage of the normalizer: a misspelled city or street-type word
("масква", "улитса") is snapped to the closest dictionary key before the
exact rewrites run. Disabled unless a matcher is passed to the normalizer.
"""

from difflib import SequenceMatcher
from typing import Iterable


class FuzzyMatcher:
    """Finds the closest single-word dictionary key for a token.

    Similarity is ``difflib.SequenceMatcher.ratio()``. The best key with a
    ratio at or above ``threshold`` wins; on equal ratios the key that comes
    first in ``keys`` wins, so results never depend on set ordering.
    """

    def __init__(self, keys: Iterable[str], threshold: float = 0.8, min_length: int = 4):
        if not 0.0 < threshold <= 1.0:
            raise ValueError(f"threshold must be in (0, 1], got {threshold}")

        self.threshold = threshold
        self.min_length = min_length
        # Multi-word and short keys are never fuzzy targets
        self.keys: tuple[str, ...] = tuple(
            dict.fromkeys(
                k.lower() for k in keys
                if " " not in k and len(k) >= min_length
            )
        )
        self._key_set = frozenset(self.keys)

    def best_match(self, token: str) -> tuple[str, float] | None:
        """Return ``(key, ratio)`` for the closest key, or None.

        Exact keys and tokens shorter than ``min_length`` are returned as
        no-match so the exact rewrite stage handles them.
        """
        token = token.lower()
        if len(token) < self.min_length or token in self._key_set:
            return None

        best: tuple[str, float] | None = None
        for key in self.keys:
            ratio = SequenceMatcher(None, token, key).ratio()
            if ratio >= self.threshold and (best is None or ratio > best[1]):
                best = (key, ratio)
        return best

    def correct(self, token: str) -> str:
        """Return the matched key, or the token unchanged."""
        match = self.best_match(token)
        return match[0] if match else token
