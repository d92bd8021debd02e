"""Preference validator interface for the reconciliation engine."""

from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from ..models.catalog import ClauseGroup
from ..models.preference import NormalizedPreference, PartyPreference


class IPreferenceValidator(ABC):
    """
    Abstract interface for preference validation.

    Implementations check a party's submission against the clause catalog
    before reconciliation runs, and normalize it for the algorithm.
    """

    @abstractmethod
    def validate(
        self,
        group: ClauseGroup,
        preference: Union[PartyPreference, NormalizedPreference],
    ) -> NormalizedPreference:
        """
        Validate a preference against its clause group.

        Args:
            group: The catalog clause group.
            preference: Submitted or already-normalized preference.

        Returns:
            NormalizedPreference with an explicit variant-to-rank mapping.

        Raises:
            InvalidPreference: If the submission violates the catalog.
        """
        pass

    @abstractmethod
    def parse_submission(
        self,
        clause_group_id: str,
        party_id: str,
        payload: Any,
        version: Optional[int] = None,
    ) -> PartyPreference:
        """
        Convert a raw submission record into a PartyPreference.

        Raises:
            InvalidPreference: If the record has the wrong shape.
        """
        pass
