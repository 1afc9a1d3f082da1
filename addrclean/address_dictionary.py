"""Synonym dictionaries for address normalization.

Both dictionaries are ORDERED sequences of (key, canonical) rewrites rather
than lookup maps: the normalizer applies them one after another, so a later
entry sees the text produced by earlier ones.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from addrclean.address_models import DictionaryEntry


logger = logging.getLogger(__name__)


def _entries(pairs: Iterable[tuple[str, str]]) -> tuple[DictionaryEntry, ...]:
    return tuple(DictionaryEntry(key=k, canonical=c) for k, c in pairs)


# City name variants -> canonical city label.
# The bare city marker comes last so that "город москва" is consumed by the
# "москва" entry first. A bare "г" is handled by the normalizer, which only
# treats it as a marker right before a word.
CITY_SYNONYMS: tuple[DictionaryEntry, ...] = _entries([
    ("санкт-петербург", "г. Санкт-Петербург"),
    ("спб", "г. Санкт-Петербург"),
    ("питер", "г. Санкт-Петербург"),
    ("петербург", "г. Санкт-Петербург"),
    ("москва", "г. Москва"),
    ("мск", "г. Москва"),
    ("екатеринбург", "г. Екатеринбург"),
    ("екб", "г. Екатеринбург"),
    ("казань", "г. Казань"),
    ("новосибирск", "г. Новосибирск"),
    ("нск", "г. Новосибирск"),
    ("нижний новгород", "г. Нижний Новгород"),
    ("самара", "г. Самара"),
    ("омск", "г. Омск"),
    ("челябинск", "г. Челябинск"),
    ("ростов-на-дону", "г. Ростов-на-Дону"),
    ("уфа", "г. Уфа"),
    ("красноярск", "г. Красноярск"),
    ("пермь", "г. Пермь"),
    ("воронеж", "г. Воронеж"),
    ("волгоград", "г. Волгоград"),
    ("город", "г."),
])

# Street type variants -> canonical abbreviation.
STREET_TYPE_SYNONYMS: tuple[DictionaryEntry, ...] = _entries([
    ("улица", "ул."),
    ("ул", "ул."),
    ("проспект", "пр."),
    ("пр-кт", "пр."),
    ("пр-т", "пр."),
    ("пр", "пр."),
    ("переулок", "пер."),
    ("пер", "пер."),
])


@dataclass(slots=True, frozen=True)
class DictionaryStore:
    """Read-only container for the city and street-type rewrite lists.

    Attributes:
        cities: Ordered city synonym rewrites.
        street_types: Ordered street-type synonym rewrites.
    """

    cities: tuple[DictionaryEntry, ...] = CITY_SYNONYMS
    street_types: tuple[DictionaryEntry, ...] = STREET_TYPE_SYNONYMS

    @classmethod
    def default(cls) -> "DictionaryStore":
        """Return the built-in seed dictionaries."""
        return cls()

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "DictionaryStore":
        """Build a store from ``{"cities": [[key, canonical], ...], "street_types": [...]}``.

        Missing sections fall back to the seed content.

        Raises:
            ValueError: if a section or an entry is malformed.
        """
        if not isinstance(data, dict):
            raise ValueError("dictionary data must be an object")

        return cls(
            cities=_parse_section(data, "cities", CITY_SYNONYMS),
            street_types=_parse_section(data, "street_types", STREET_TYPE_SYNONYMS),
        )

    @classmethod
    def from_json_file(cls, path: str | Path) -> "DictionaryStore":
        """Load a store from a JSON file (see ``from_mapping`` for the shape)."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid dictionary file {path}: {e}") from e

        store = cls.from_mapping(data)
        logger.info(
            f"Loaded dictionary from {path}: "
            f"{len(store.cities)} city entries, {len(store.street_types)} street type entries"
        )
        return store

    @property
    def street_markers(self) -> tuple[str, ...]:
        """Distinct canonical street-type values, in dictionary order."""
        return tuple(dict.fromkeys(e.canonical for e in self.street_types))

    def to_dict(self) -> dict[str, list[dict[str, str]]]:
        return {
            "cities": [{"key": e.key, "canonical": e.canonical} for e in self.cities],
            "street_types": [
                {"key": e.key, "canonical": e.canonical} for e in self.street_types
            ],
        }


def _parse_section(
    data: dict[str, Any],
    name: str,
    default: tuple[DictionaryEntry, ...],
) -> tuple[DictionaryEntry, ...]:
    if name not in data:
        return default

    raw = data[name]
    if not isinstance(raw, list):
        raise ValueError(f"dictionary section {name!r} must be a list")

    entries = []
    for i, item in enumerate(raw):
        if isinstance(item, dict):
            key, canonical = item.get("key"), item.get("canonical")
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            key, canonical = item
        else:
            raise ValueError(f"{name}[{i}]: expected [key, canonical], got {item!r}")

        if not isinstance(key, str) or not isinstance(canonical, str) or not key.strip():
            raise ValueError(f"{name}[{i}]: key and canonical must be non-empty strings")

        entries.append(DictionaryEntry(key=key.strip().lower(), canonical=canonical))

    return tuple(entries)
