"""Configuration with sensible defaults (built-in dictionaries, fuzzy matching off)."""

from dataclasses import dataclass, field
from os import getenv


def _parse_bool(value: str, default: bool = True) -> bool:
    """Parse boolean from environment variable."""
    if not value:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_float(value: str, default: float) -> float:
    """Parse float from environment variable."""
    try:
        return float(value) if value else default
    except ValueError:
        return default


def _parse_int(value: str, default: int) -> int:
    """Parse int from environment variable."""
    try:
        return int(value) if value else default
    except ValueError:
        return default


@dataclass(slots=True, frozen=True)
class Config:
    # ==================== Logging ====================
    log_level: str = field(default_factory=lambda: getenv("LOG_LEVEL", "INFO").upper())

    # ==================== Dictionaries (empty = built-in seed) ====================
    dictionary_path: str = field(default_factory=lambda: getenv("DICTIONARY_PATH", ""))

    # ==================== Validation ====================
    min_address_length: int = field(
        default_factory=lambda: _parse_int(getenv("MIN_ADDRESS_LENGTH", ""), 10)
    )

    # ==================== Fuzzy matching (off by default) ====================
    fuzzy_matching_enabled: bool = field(
        default_factory=lambda: _parse_bool(getenv("FUZZY_MATCHING_ENABLED", ""), False)
    )
    # Minimum difflib ratio for a token to snap to a dictionary key
    fuzzy_threshold: float = field(
        default_factory=lambda: _parse_float(getenv("FUZZY_THRESHOLD", ""), 0.8)
    )

    # ==================== Batch processing ====================
    batch_concurrency: int = field(
        default_factory=lambda: _parse_int(getenv("BATCH_CONCURRENCY", ""), 10)
    )
    max_batch_size: int = field(
        default_factory=lambda: _parse_int(getenv("MAX_BATCH_SIZE", ""), 10000)
    )
    # Upload column holding the address (empty = auto-detect)
    address_column: str = field(default_factory=lambda: getenv("ADDRESS_COLUMN", ""))

    def has_custom_dictionary(self) -> bool:
        """Check if a dictionary override file is configured."""
        return bool(self.dictionary_path)
