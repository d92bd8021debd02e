"""Per-party audit report of a reconciled template.

Each party gets a private summary: for every clause group, what was
selected and whether that was the party's own first choice, a compromise,
or left unresolved.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from ..models.catalog import ClauseGroup, Template
from ..models.enums import PartyClauseStatus, SelectionMethod
from ..models.outcome import ReconciliationOutcome, TemplateResult
from ..models.preference import NormalizedPreference, PartyPreference


FALLBACK_GUIDANCE = (
    "Consider hybrid approach with different terms for different information types"
)

UNRESOLVED_LABEL = "unresolved"


@dataclass
class PartyReportEntry:
    """One clause group as seen by one party."""
    clause_group_id: str
    clause_label: str
    outcome_label: str
    status: PartyClauseStatus
    ranking: List[str] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)
    reasoning: str = ""
    fallback_guidance: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clause_group_id": self.clause_group_id,
            "clause_label": self.clause_label,
            "outcome_label": self.outcome_label,
            "status": self.status.value,
            "ranking": list(self.ranking),
            "rejected": list(self.rejected),
            "reasoning": self.reasoning,
            "fallback_guidance": self.fallback_guidance,
        }


@dataclass
class PartyReport:
    """Private summary of clause resolutions for one party."""
    template_id: str
    template_name: str
    party_id: str
    counterparty_id: str
    template_status: str
    entries: List[PartyReportEntry] = field(default_factory=list)
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def count(self, status: PartyClauseStatus) -> int:
        return sum(1 for e in self.entries if e.status == status)

    @property
    def summary(self) -> Dict[str, int]:
        return {status.value: self.count(status) for status in PartyClauseStatus}

    @property
    def guidance(self) -> List[PartyReportEntry]:
        """Entries carrying fallback guidance."""
        return [e for e in self.entries if e.fallback_guidance]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template_id": self.template_id,
            "template_name": self.template_name,
            "party_id": self.party_id,
            "counterparty_id": self.counterparty_id,
            "template_status": self.template_status,
            "generated_at": self.generated_at,
            "summary": self.summary,
            "entries": [e.to_dict() for e in self.entries],
        }


class PartyReportBuilder:
    """Builds PartyReport instances from a TemplateResult."""

    def __init__(self, fallback_guidance: str = FALLBACK_GUIDANCE):
        self.fallback_guidance = fallback_guidance

    def build(
        self,
        template: Template,
        result: TemplateResult,
        party_id: str,
        preferences: Iterable[Union[PartyPreference, NormalizedPreference]] = (),
    ) -> PartyReport:
        """
        Build the report for one party.

        Args:
            template: The catalog template that was reconciled.
            result: The reconciliation result.
            party_id: Party the report is for; must be A or B of the result.
            preferences: The party's submissions. Without them the status
                is derived from the outcome's candidate scores.

        Raises:
            ValueError: If the party is not part of the result.
        """
        if party_id == result.party_a_id:
            counterparty_id = result.party_b_id
        elif party_id == result.party_b_id:
            counterparty_id = result.party_a_id
        else:
            raise ValueError(f"'{party_id}' is not a party of template result '{result.template_id}'")

        own = self._latest_by_group(party_id, preferences)

        entries = []
        for group in template.clause_groups:
            outcome = result.outcome_for(group.id)
            if outcome is None:
                continue
            entries.append(self._entry(group, outcome, own.get(group.id), party_id == result.party_a_id))

        return PartyReport(
            template_id=template.id,
            template_name=template.name,
            party_id=party_id,
            counterparty_id=counterparty_id,
            template_status=result.status.value,
            entries=entries,
        )

    def _entry(
        self,
        group: ClauseGroup,
        outcome: ReconciliationOutcome,
        preference: Optional[Union[PartyPreference, NormalizedPreference]],
        is_party_a: bool,
    ) -> PartyReportEntry:
        ranking = list(preference.ranking) if preference else []
        rejected = sorted(preference.rejected) if preference else []

        if outcome.is_red_light:
            return PartyReportEntry(
                clause_group_id=group.id,
                clause_label=group.label,
                outcome_label=UNRESOLVED_LABEL,
                status=PartyClauseStatus.UNRESOLVED,
                ranking=[group.label_of(v) for v in ranking],
                rejected=[group.label_of(v) for v in rejected],
                reasoning=outcome.reasoning,
                fallback_guidance=self.fallback_guidance,
            )

        return PartyReportEntry(
            clause_group_id=group.id,
            clause_label=group.label,
            outcome_label=group.label_of(outcome.variant_id),
            status=self._status(outcome, ranking, is_party_a),
            ranking=[group.label_of(v) for v in ranking],
            rejected=[group.label_of(v) for v in rejected],
            reasoning=outcome.reasoning,
        )

    def _status(
        self,
        outcome: ReconciliationOutcome,
        ranking: List[str],
        is_party_a: bool,
    ) -> PartyClauseStatus:
        """
        PREFERRED when the selected variant is the party's own #1.

        Without the party's ranking, the #1 is read from the outcome:
        a unanimous selection, or the candidate the party ranked 1.
        """
        if ranking:
            own_top = ranking[0]
        elif outcome.method == SelectionMethod.UNANIMOUS_TOP_CHOICE:
            own_top = outcome.variant_id
        else:
            own_top = None
            for candidate in outcome.candidate_scores:
                rank = candidate.rank_a if is_party_a else candidate.rank_b
                if rank == 1:
                    own_top = candidate.variant_id

        if own_top == outcome.variant_id:
            return PartyClauseStatus.PREFERRED
        return PartyClauseStatus.COMPROMISE

    def _latest_by_group(
        self,
        party_id: str,
        preferences: Iterable[Union[PartyPreference, NormalizedPreference]],
    ) -> Dict[str, Union[PartyPreference, NormalizedPreference]]:
        latest: Dict[str, Union[PartyPreference, NormalizedPreference]] = {}
        for pref in preferences:
            if pref.party_id != party_id:
                continue
            current = latest.get(pref.clause_group_id)
            if current is None or pref.version >= current.version:
                latest[pref.clause_group_id] = pref
        return latest
