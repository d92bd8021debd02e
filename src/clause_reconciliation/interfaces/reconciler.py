"""Reconciliation interface for the clause preference engine."""

from abc import ABC, abstractmethod

from ..models.outcome import ReconciliationOutcome
from ..models.preference import NormalizedPreference


class IReconciler(ABC):
    """
    Abstract interface for single clause group reconciliation.

    Implementations are pure: the outcome depends only on the two
    validated preferences and the configured tie-break policy.
    """

    @abstractmethod
    def reconcile(
        self,
        preference_a: NormalizedPreference,
        preference_b: NormalizedPreference,
    ) -> ReconciliationOutcome:
        """
        Derive the outcome for one clause group.

        Args:
            preference_a: Party A's validated preference.
            preference_b: Party B's validated preference.

        Returns:
            ReconciliationOutcome for the clause group.
        """
        pass

    @property
    @abstractmethod
    def tie_break_name(self) -> str:
        """Name of the final tie-break strategy in use."""
        pass
