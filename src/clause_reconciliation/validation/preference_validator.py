"""Preference validation against the clause catalog.

Converts whatever the preference-capture UI submitted into an
invariant-checked NormalizedPreference before it reaches the
reconciliation algorithm.
"""

import logging
from collections import Counter
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

from ..interfaces.validator import IPreferenceValidator
from ..models.catalog import ClauseGroup
from ..models.preference import NormalizedPreference, PartyPreference
from .exceptions import InvalidPreference, ViolationType


logger = logging.getLogger(__name__)


class PreferenceValidator(IPreferenceValidator):
    """
    Validator for party preferences.

    Checks, in order: clause group match, id types, unknown variant ids,
    duplicate ids, the ranking/rejection partition, and dense ranks.
    The first failing check raises InvalidPreference.
    """

    def validate(
        self,
        group: ClauseGroup,
        preference: Union[PartyPreference, NormalizedPreference],
    ) -> NormalizedPreference:
        """
        Validate a preference and normalize its ranking.

        Already-normalized preferences are re-checked and returned
        unchanged, so validation is idempotent.

        Args:
            group: The catalog clause group.
            preference: Submitted or already-normalized preference.

        Returns:
            NormalizedPreference with an explicit variant-to-rank mapping.

        Raises:
            InvalidPreference: If the submission violates the catalog.
        """
        if isinstance(preference, NormalizedPreference):
            ranking = self._ranking_from_ranks(
                preference.ranks,
                clause_group_id=preference.clause_group_id,
                party_id=preference.party_id,
            )
        else:
            ranking = tuple(preference.ranking)

        self._check_group(group, preference.clause_group_id, preference.party_id)
        self._check_id_types(
            group.id, preference.party_id, list(ranking) + list(preference.rejected)
        )
        self._check_known(group, preference.party_id, ranking, preference.rejected)
        self._check_duplicates(group.id, preference.party_id, ranking, preference.rejected)
        self._check_partition(group, preference.party_id, ranking, preference.rejected)

        normalized = NormalizedPreference(
            clause_group_id=preference.clause_group_id,
            party_id=preference.party_id,
            rejected=frozenset(preference.rejected),
            ranks={variant_id: i + 1 for i, variant_id in enumerate(ranking)},
            version=preference.version,
            submitted_at=preference.submitted_at,
        )
        logger.debug(
            "Validated preference of party %s for group %s (v%d): %d ranked, %d rejected",
            normalized.party_id,
            normalized.clause_group_id,
            normalized.version,
            len(normalized.ranks),
            len(normalized.rejected),
        )
        return normalized

    # =========================================================================
    # Boundary parsing
    # =========================================================================

    def parse_submission(
        self,
        clause_group_id: str,
        party_id: str,
        payload: Any,
        version: Optional[int] = None,
    ) -> PartyPreference:
        """
        Convert a raw submission record into a PartyPreference.

        Accepted shapes::

            {"rejected": [...], "ranking": ["X", "Y"]}
            {"rejected": [...], "ranks": {"X": 1, "Y": 2}}

        ``rejected`` defaults to empty. A ``version`` key in the payload is
        honoured unless ``version`` is passed explicitly.

        Raises:
            InvalidPreference: If the record has the wrong shape.
        """
        def malformed(message: str) -> InvalidPreference:
            return InvalidPreference(
                message=message,
                violation=ViolationType.MALFORMED,
                clause_group_id=clause_group_id,
                party_id=party_id,
            )

        if not isinstance(payload, Mapping):
            raise malformed("Submission must be an object")

        rejected = payload.get("rejected", [])
        if isinstance(rejected, (str, bytes)) or not isinstance(rejected, (list, tuple, set, frozenset)):
            raise malformed("'rejected' must be a list of variant ids")

        has_ranking = "ranking" in payload
        has_ranks = "ranks" in payload
        if has_ranking and has_ranks:
            raise malformed("Submit either 'ranking' or 'ranks', not both")

        if has_ranks:
            ranks = payload["ranks"]
            if not isinstance(ranks, Mapping):
                raise malformed("'ranks' must map variant ids to rank positions")
            ranking: Sequence[Any] = self._ranking_from_ranks(
                ranks, clause_group_id=clause_group_id, party_id=party_id
            )
        else:
            ranking = payload.get("ranking", [])
            if isinstance(ranking, (str, bytes)) or not isinstance(ranking, (list, tuple)):
                raise malformed("'ranking' must be an ordered list of variant ids")

        self._check_id_types(clause_group_id, party_id, list(ranking) + list(rejected))

        if version is None:
            version = payload.get("version", 1)
        if isinstance(version, bool) or not isinstance(version, int) or version < 1:
            raise malformed("'version' must be a positive integer")

        return PartyPreference(
            clause_group_id=clause_group_id,
            party_id=party_id,
            rejected=frozenset(rejected),
            ranking=tuple(ranking),
            version=version,
        )

    def validate_submission(
        self,
        group: ClauseGroup,
        party_id: str,
        payload: Any,
    ) -> NormalizedPreference:
        """Parse a raw submission for ``group`` and validate it."""
        preference = self.parse_submission(group.id, party_id, payload)
        return self.validate(group, preference)

    # =========================================================================
    # Checks
    # =========================================================================

    def _check_group(self, group: ClauseGroup, clause_group_id: str, party_id: str) -> None:
        if clause_group_id != group.id:
            raise InvalidPreference(
                message=f"Preference for '{clause_group_id}' submitted against group '{group.id}'",
                violation=ViolationType.GROUP_MISMATCH,
                clause_group_id=clause_group_id,
                party_id=party_id,
                details={"expected_group_id": group.id},
            )

    def _check_id_types(self, clause_group_id: str, party_id: str, ids: Iterable[Any]) -> None:
        bad = [repr(i) for i in ids if not isinstance(i, str) or not i]
        if bad:
            raise InvalidPreference(
                message="Variant ids must be non-empty strings",
                violation=ViolationType.MALFORMED,
                clause_group_id=clause_group_id,
                party_id=party_id,
                variant_ids=bad,
            )

    def _check_known(
        self,
        group: ClauseGroup,
        party_id: str,
        ranking: Sequence[str],
        rejected: Iterable[str],
    ) -> None:
        unknown = (set(ranking) | set(rejected)) - group.variant_ids
        if unknown:
            raise InvalidPreference(
                message=f"Unknown variant ids for clause group '{group.id}'",
                violation=ViolationType.UNKNOWN_VARIANT,
                clause_group_id=group.id,
                party_id=party_id,
                variant_ids=list(unknown),
            )

    def _check_duplicates(
        self,
        clause_group_id: str,
        party_id: str,
        ranking: Sequence[str],
        rejected: Iterable[str],
    ) -> None:
        counts = Counter(ranking)
        repeated = [variant_id for variant_id, n in counts.items() if n > 1]
        if repeated:
            raise InvalidPreference(
                message="Variant ranked more than once",
                violation=ViolationType.DUPLICATE_VARIANT,
                clause_group_id=clause_group_id,
                party_id=party_id,
                variant_ids=repeated,
            )

        both = set(ranking) & set(rejected)
        if both:
            raise InvalidPreference(
                message="Variant both ranked and rejected",
                violation=ViolationType.DUPLICATE_VARIANT,
                clause_group_id=clause_group_id,
                party_id=party_id,
                variant_ids=list(both),
            )

    def _check_partition(
        self,
        group: ClauseGroup,
        party_id: str,
        ranking: Sequence[str],
        rejected: Iterable[str],
    ) -> None:
        missing = group.variant_ids - set(ranking) - set(rejected)
        if missing:
            raise InvalidPreference(
                message="Every variant must be either ranked or rejected",
                violation=ViolationType.PARTITION_MISMATCH,
                clause_group_id=group.id,
                party_id=party_id,
                variant_ids=list(missing),
            )

    def _ranking_from_ranks(
        self,
        ranks: Mapping[Any, Any],
        clause_group_id: str,
        party_id: str,
    ) -> tuple:
        """Turn a ``variant id -> rank`` mapping into an ordered ranking."""
        positions: Dict[Any, int] = {}
        for variant_id, rank in ranks.items():
            if isinstance(rank, bool) or not isinstance(rank, int):
                raise InvalidPreference(
                    message=f"Rank for '{variant_id}' must be an integer",
                    violation=ViolationType.MALFORMED,
                    clause_group_id=clause_group_id,
                    party_id=party_id,
                )
            positions[variant_id] = rank

        expected = list(range(1, len(positions) + 1))
        if sorted(positions.values()) != expected:
            raise InvalidPreference(
                message=f"Rank positions must be exactly 1..{len(positions)}",
                violation=ViolationType.RANK_GAP,
                clause_group_id=clause_group_id,
                party_id=party_id,
                details={"ranks": sorted(positions.values())},
            )
        return tuple(sorted(positions, key=positions.__getitem__))
