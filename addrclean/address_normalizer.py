"""Address normalization.

Turns one raw address string into its canonical form by running a fixed,
ordered sequence of text rewrites driven by the dictionary store. The
normalizer is a pure function of its input and the store: no I/O, no
randomness, no state shared between calls.
"""

import re
from functools import cache

from addrclean.address_dictionary import DictionaryStore
from addrclean.address_models import DictionaryEntry
from addrclean.fuzzy_matcher import FuzzyMatcher


# Word characters for boundary purposes: letters of any script, digits,
# underscore and hyphen (hyphenated names are one token).
_NOT_AFTER_WORD = r"(?<![\w-])"
_NOT_BEFORE_WORD = r"(?![\w-])"

# City marker that may directly precede a city name ("г. москва")
_CITY_PREFIX = rf"(?:{_NOT_AFTER_WORD}(?:город|г){_NOT_BEFORE_WORD}\.?\s*)?"

CITY_MARKER = "г."
HOUSE_MARKER = "д."
BUILDING_MARKER = "стр."

# Lowercase abbreviations that are never capitalized
_FIXED_MARKERS = frozenset({
    "г", "город", "обл", "р-н", "пос",
    "ул", "пр", "пер",
    "д", "стр", "к", "корп", "корпус", "кв", "квартира", "оф", "офис", "пом", "лит",
})

# Words after which a trailing number is not a house number
_NON_HOUSE_WORDS = frozenset({"д", "дом", "стр", "строение", "кв", "квартира", "корп", "корпус", "к", "оф", "офис"})

# House / building designator: digits, optional "/N" or "-N", optional letter
# (with trailing digits, as in "12к1") that does not start another word
_HOUSE_TOKEN = r"(\d+(?:[/-]\d+)*(?:[^\W\d_]\d*(?![^\W\d_]))?)"

# Latin letters that look like Cyrillic ones in house numbers ("52a" -> "52а")
_LATIN_TO_CYRILLIC = str.maketrans("aeopcxkmtbhy", "аеорсхкмтвну")


def _key_pattern(key: str) -> str:
    """Whole-word pattern for a (possibly multi-word) dictionary key."""
    words = [re.escape(w) for w in key.split()]
    return _NOT_AFTER_WORD + r"\s+".join(words) + _NOT_BEFORE_WORD


def _canonical_token(token: str) -> str:
    """Upper-case a house/building token, mapping Latin look-alikes to Cyrillic."""
    return token.lower().translate(_LATIN_TO_CYRILLIC).upper()


class AddressNormalizer:
    """Normalizes raw address strings into canonical form.

    Pipeline (each step works on the previous step's output):

    1. lowercase and trim
    2. optional fuzzy snapping of misspelled words to dictionary keys
    3. city synonyms, in dictionary order, then a bare "г" before a word -> "г."
    4. street-type synonyms, in dictionary order
    5. house markers -> ", д. N"
    6. building markers -> ", стр. N"
    7. bare house numbers ("ленина 5", "ул. ленина, 5") -> ", д. N"
    8. implicit street type before the house marker
    9. whitespace and separator tidy
    10. capitalization of plain words
    """

    _HOUSE_PATTERN = re.compile(
        rf"[\s,]*{_NOT_AFTER_WORD}(?:дом|д){_NOT_BEFORE_WORD}\.?\s*{_HOUSE_TOKEN}",
        re.IGNORECASE,
    )
    _BUILDING_PATTERN = re.compile(
        rf"[\s,]*{_NOT_AFTER_WORD}(?:строение|стр){_NOT_BEFORE_WORD}\.?\s*{_HOUSE_TOKEN}",
        re.IGNORECASE,
    )
    # "<word> <number>" closing a comma-separated segment
    _BARE_NUMBER_PATTERN = re.compile(
        rf"{_NOT_AFTER_WORD}([^\W\d_][\w-]*)\s+(\d+[a-zа-яё]?(?:/\d+)?)(?=\s*(?:,|$))",
        re.IGNORECASE,
    )
    # ", <number>" forming a segment of its own; group 1 is the preceding segment
    _SEGMENT_NUMBER_PATTERN = re.compile(
        r"([^,]*),\s*(\d+[a-zа-яё]?(?:/\d+)?)(?=\s*(?:,|$))",
        re.IGNORECASE,
    )
    # Bare "г" only counts as a city marker right before a word ("г тверь")
    _CITY_MARKER_PATTERN = re.compile(
        rf"{_NOT_AFTER_WORD}г(?=\s+[^\W\d_])",
        re.IGNORECASE,
    )
    _PLAIN_WORDS_PATTERN = re.compile(r"[^\W\d_]+(?:[\s-]+[^\W\d_]+)*")
    _WORD_PATTERN = re.compile(rf"{_NOT_AFTER_WORD}[^\W\d_][\w-]*")
    _ABBREVIATION_PATTERN = re.compile(r"([^\W\d_]+)\.")

    def __init__(
        self,
        store: DictionaryStore | None = None,
        fuzzy_matcher: FuzzyMatcher | None = None,
    ):
        """Compile the rewrite rules for a dictionary store.

        Args:
            store: Dictionary store; the built-in seed store when omitted.
            fuzzy_matcher: Optional approximate matcher run before the
                exact city/street rewrites.
        """
        self.store = store or DictionaryStore.default()
        self.fuzzy_matcher = fuzzy_matcher

        self._city_rules = [
            (re.compile(_CITY_PREFIX + _key_pattern(e.key) + r"\.?", re.IGNORECASE), e)
            for e in self.store.cities
        ]
        self._street_rules = [
            (re.compile(_key_pattern(e.key) + r"\.?", re.IGNORECASE), e)
            for e in self.store.street_types
        ]

        self.street_markers = self.store.street_markers
        self._default_street_marker = self.street_markers[0] if self.street_markers else None

        markers = set(_FIXED_MARKERS)
        for entry in (*self.store.cities, *self.store.street_types):
            markers.update(w.lower() for w in self._ABBREVIATION_PATTERN.findall(entry.canonical))
        self._markers = frozenset(markers)

        self._known_keys = frozenset(
            e.key for e in (*self.store.cities, *self.store.street_types)
        )

    @classmethod
    def with_fuzzy_matching(
        cls,
        store: DictionaryStore | None = None,
        threshold: float = 0.8,
    ) -> "AddressNormalizer":
        """Build a normalizer whose fuzzy stage targets the store's keys."""
        store = store or DictionaryStore.default()
        keys = [e.key for e in (*store.cities, *store.street_types)]
        return cls(store, FuzzyMatcher(keys, threshold=threshold))

    def normalize(self, raw: str) -> str:
        """Return the canonical form of a raw address string.

        Args:
            raw: Raw address text, any length (empty is allowed).

        Returns:
            Canonical address string ("" for empty input).
        """
        if not raw:
            return ""

        text = raw.lower().strip()
        if self.fuzzy_matcher is not None:
            text = self._apply_fuzzy(text)
        text = self._apply_entries(text, self._city_rules)
        text = self._CITY_MARKER_PATTERN.sub(CITY_MARKER, text)
        text = self._apply_entries(text, self._street_rules)
        # Trailing space keeps a directly following designator ("5стр.2") a separate word
        text = self._HOUSE_PATTERN.sub(
            lambda m: f", {HOUSE_MARKER} {_canonical_token(m.group(1))} ", text
        )
        text = self._BUILDING_PATTERN.sub(
            lambda m: f", {BUILDING_MARKER} {_canonical_token(m.group(1))} ", text
        )
        text = self._BARE_NUMBER_PATTERN.sub(self._bare_number, text)
        text = self._SEGMENT_NUMBER_PATTERN.sub(self._segment_number, text)
        text = self._insert_street_type(text)
        text = self._tidy(text)
        return self._capitalize(text)

    @staticmethod
    def _apply_entries(
        text: str,
        rules: list[tuple[re.Pattern, DictionaryEntry]],
    ) -> str:
        # Entries are applied independently: a later entry may rewrite text
        # inserted by an earlier one.
        for pattern, entry in rules:
            text = pattern.sub(lambda _m, c=entry.canonical: c, text)
        return text

    def _apply_fuzzy(self, text: str) -> str:
        def repl(m: re.Match) -> str:
            word = m.group(0)
            if word in self._known_keys or word in self._markers:
                return word
            return self.fuzzy_matcher.correct(word)

        return self._WORD_PATTERN.sub(repl, text)

    @staticmethod
    def _bare_number(m: re.Match) -> str:
        word, number = m.group(1), m.group(2)
        if word.lower() in _NON_HOUSE_WORDS:
            return m.group(0)
        return f"{word}, {HOUSE_MARKER} {_canonical_token(number)}"

    def _segment_number(self, m: re.Match) -> str:
        segment, number = m.group(1), m.group(2)
        if not any(marker in segment for marker in self.street_markers):
            return m.group(0)
        return f"{segment}, {HOUSE_MARKER} {_canonical_token(number)}"

    def _insert_street_type(self, text: str) -> str:
        """Prefix the street name segment with the default street type.

        Only applies when the address has a house marker but no street-type
        marker, and the segment right before the house marker is plain words.
        """
        if self._default_street_marker is None:
            return text
        if any(marker in text for marker in self.street_markers):
            return text

        idx = text.find(f", {HOUSE_MARKER}")
        if idx < 0:
            return text

        head = text[:idx]
        cut = head.rfind(",") + 1
        segment = head[cut:].strip()
        if not segment or not self._PLAIN_WORDS_PATTERN.fullmatch(segment):
            return text

        return f"{head[:cut]} {self._default_street_marker} {segment}{text[idx:]}"

    @staticmethod
    def _tidy(text: str) -> str:
        text = re.sub(r"\s+", " ", text)
        text = re.sub(r"\s*,[\s,]*", ", ", text)
        text = re.sub(r"\.(?=[^\W\d_])", ". ", text)
        return text.strip(" ,")

    def _capitalize(self, text: str) -> str:
        def repl(m: re.Match) -> str:
            word = m.group(0)
            if word != word.lower() or word in self._markers:
                return word
            return word[0].upper() + word[1:]

        return self._WORD_PATTERN.sub(repl, text)


@cache
def default_normalizer() -> AddressNormalizer:
    """Shared normalizer over the built-in dictionaries."""
    return AddressNormalizer(DictionaryStore.default())


def normalize(raw: str) -> str:
    """Normalize with the built-in dictionaries."""
    return default_normalizer().normalize(raw)
