"""Human-readable reference generators.

References are audit identifiers such as ``PAY-2024-7QX2M9KD``. Uniqueness of
payment, expense, salary, asset and transfer references is enforced by the
database; a collision surfaces as a ConflictError.
"""

import random
import string
from typing import Optional

ALPHABET = string.ascii_uppercase + string.digits


class ReferenceGenerator:
    """Builds prefixed references with a random alphanumeric suffix."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.SystemRandom()

    def _suffix(self, length: int) -> str:
        return "".join(self._rng.choice(ALPHABET) for _ in range(length))

    def journal_entry(self, year: int) -> str:
        return f"JE-{year}-{self._suffix(6)}"

    def payment(self, year: int) -> str:
        return f"PAY-{year}-{self._suffix(8)}"

    def receipt(self, year: int) -> str:
        return f"RCP-{year}-{self._suffix(8)}"

    def expense(self, year: int) -> str:
        return f"EXP-{year}-{self._suffix(8)}"

    def salary(self, year: int, month: int) -> str:
        return f"SAL-{year}-{month:02d}-{self._suffix(6)}"

    def asset(self, year: int) -> str:
        return f"AST-{year}-{self._suffix(6)}"

    def transfer(self, year: int) -> str:
        return f"TRF-{year}-{self._suffix(8)}"


def depreciation_reference(year: int, month: int, asset_code: str) -> str:
    """Deterministic reference for one asset's monthly depreciation."""
    return f"DEP-{year}-{month:02d}-{asset_code}"
