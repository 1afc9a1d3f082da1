"""Structural validation of canonical addresses.

The validator runs a fixed, ordered chain of substring checks against the
normalizer's output. The first failing rule decides the outcome; later
rules are not evaluated.
"""

import logging
from dataclasses import dataclass
from functools import cache
from typing import Callable, Sequence

from addrclean.address_dictionary import DictionaryStore
from addrclean.address_models import Severity, ValidationOutcome
from addrclean.address_normalizer import CITY_MARKER, HOUSE_MARKER


logger = logging.getLogger(__name__)

MIN_ADDRESS_LENGTH = 10
CITY_WORD = "город"


@dataclass(slots=True, frozen=True)
class ValidationRule:
    """One link of the rule chain.

    ``check`` returns True when the canonical address passes the rule.
    """

    name: str
    message: str
    severity: Severity
    check: Callable[[str], bool]


class AddressValidator:
    """Classifies canonical addresses as valid or carrying one defect."""

    def __init__(
        self,
        street_markers: Sequence[str] | None = None,
        min_length: int = MIN_ADDRESS_LENGTH,
    ):
        """Build the rule chain.

        Args:
            street_markers: Canonical street-type markers; defaults to the
                seed dictionary's (ул., пр., пер.).
            min_length: Minimum length of a plausible address.
        """
        if street_markers is None:
            street_markers = DictionaryStore.default().street_markers
        self.street_markers = tuple(street_markers)
        self.min_length = min_length

        self.rules: tuple[ValidationRule, ...] = (
            ValidationRule(
                name="length",
                message="address too short",
                severity=Severity.HIGH,
                check=lambda s: len(s) >= self.min_length,
            ),
            ValidationRule(
                name="city",
                message="city missing",
                severity=Severity.HIGH,
                check=lambda s: CITY_MARKER in s or CITY_WORD in s.lower(),
            ),
            ValidationRule(
                name="street_type",
                message="street type missing",
                severity=Severity.MEDIUM,
                check=lambda s: any(m in s for m in self.street_markers),
            ),
            ValidationRule(
                name="house_number",
                message="house number missing",
                severity=Severity.MEDIUM,
                check=lambda s: HOUSE_MARKER in s,
            ),
        )

    def validate(self, canonical: str) -> ValidationOutcome:
        """Run the rule chain on a canonical address.

        Args:
            canonical: Output of the normalizer.

        Returns:
            Outcome of the first failing rule, or a valid outcome.
        """
        for rule in self.rules:
            if not rule.check(canonical):
                logger.debug(f"Rule {rule.name} failed for {canonical!r}")
                return ValidationOutcome(
                    valid=False,
                    message=rule.message,
                    severity=rule.severity,
                    rule=rule.name,
                )
        return ValidationOutcome(valid=True)


@cache
def default_validator() -> AddressValidator:
    return AddressValidator()


def validate(canonical: str) -> ValidationOutcome:
    """Validate with the default rule chain."""
    return default_validator().validate(canonical)
