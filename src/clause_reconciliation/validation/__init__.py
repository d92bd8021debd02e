"""Preference validation for the reconciliation engine."""

from .exceptions import InvalidPreference, ViolationType
from .preference_validator import PreferenceValidator

__all__ = [
    "InvalidPreference",
    "ViolationType",
    "PreferenceValidator",
]
