"""Severity definitions for detector findings."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Enumerate the supported severity levels for findings."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    GAS = "GAS"
    NC = "NC"

    @property
    def rank(self) -> int:
        """Return an integer ranking used for sorting and threshold filters."""

        ordering = {
            Severity.CRITICAL: 5,
            Severity.HIGH: 4,
            Severity.MEDIUM: 3,
            Severity.LOW: 2,
            Severity.GAS: 1,
            Severity.NC: 0,
        }
        return ordering[self]

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        """Accept a severity name in any case."""

        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown severity '{value}' (expected one of: {choices})") from None

    def at_least(self, other: "Severity") -> bool:
        return self.rank >= other.rank
