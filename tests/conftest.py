"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from addrclean.address_dictionary import DictionaryStore
from addrclean.address_normalizer import AddressNormalizer
from addrclean.address_validator import AddressValidator
from addrclean.batch_processor import BatchProcessor


@pytest.fixture
def store():
    """Built-in seed dictionaries."""
    return DictionaryStore.default()


@pytest.fixture
def normalizer(store):
    return AddressNormalizer(store)


@pytest.fixture
def validator(store):
    return AddressValidator(store.street_markers)


@pytest.fixture
def processor(normalizer, validator):
    return BatchProcessor(normalizer, validator)


@pytest.fixture
def sample_addresses():
    """Mixed batch: valid, warnings, errors and empty cells."""
    return [
        "г. Москва, ул. Тверская д. 10",
        "СПб, Невский пр-т",
        "",
        "Екатеринбург, Ленина 52a",
        None,
        "Казань центр",
        "ул. Мира",
    ]
