"""Live negotiation session for one template and one pair of parties.

Each clause group moves PENDING -> PARTIALLY_SUBMITTED -> BOTH_SUBMITTED
as the parties submit. Submissions are validated immediately, and the
group's outcome is recomputed every time the group is (re)entered into
BOTH_SUBMITTED.
"""

import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..interfaces.audit import IAuditLogger
from ..interfaces.reconciler import IReconciler
from ..interfaces.validator import IPreferenceValidator
from ..models.catalog import ClauseGroup, Template
from ..models.enums import GroupState
from ..models.outcome import ReconciliationOutcome, TemplateResult
from ..models.preference import NormalizedPreference, PartyPreference
from ..reconciliation.engine import ReconciliationEngine
from ..validation.exceptions import InvalidPreference, ViolationType
from ..validation.preference_validator import PreferenceValidator
from .batch_orchestrator import missing_preference_outcome


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupStatus:
    """Snapshot of one clause group inside a session."""
    clause_group_id: str
    state: GroupState
    versions: Dict[str, int] = field(default_factory=dict)
    outcome: Optional[ReconciliationOutcome] = None

    @property
    def submitted_parties(self) -> Tuple[str, ...]:
        return tuple(self.versions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clause_group_id": self.clause_group_id,
            "state": self.state.value,
            "versions": dict(self.versions),
            "outcome": self.outcome.to_dict() if self.outcome else None,
        }


class NegotiationSession:
    """
    Tracks submissions for every clause group of a template.

    The submission table is the only mutable state and is guarded by a
    lock, so parties may submit from different threads.
    """

    def __init__(
        self,
        template: Template,
        party_a_id: str,
        party_b_id: str,
        engine: Optional[IReconciler] = None,
        validator: Optional[IPreferenceValidator] = None,
        audit_logger: Optional[IAuditLogger] = None,
    ):
        if party_a_id == party_b_id:
            raise ValueError("Party A and party B must be different parties")

        self.template = template
        self.party_a_id = party_a_id
        self.party_b_id = party_b_id
        self._engine = engine or ReconciliationEngine()
        self._validator = validator or PreferenceValidator()
        self._audit_logger = audit_logger

        self._lock = threading.Lock()
        self._preferences: Dict[Tuple[str, str], NormalizedPreference] = {}
        self._outcomes: Dict[str, ReconciliationOutcome] = {}

    @property
    def parties(self) -> Tuple[str, str]:
        return (self.party_a_id, self.party_b_id)

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(self, preference: PartyPreference) -> GroupStatus:
        """
        Submit or resubmit a party's preference for one clause group.

        The stored version is assigned by the session: 1 for a first
        submission, previous version + 1 for a resubmission.

        Returns:
            The group's status after the submission.

        Raises:
            InvalidPreference: If the group or party is unknown or the
                preference fails validation. The previous submission, if
                any, stays in effect.
        """
        group = self._require_group(preference.clause_group_id, preference.party_id)
        self._require_party(preference.clause_group_id, preference.party_id)

        try:
            normalized = self._validator.validate(group, preference)
        except InvalidPreference as e:
            logger.info(f"Rejected submission: {e}")
            self._audit("log_preference_rejected",
                        template_id=self.template.id,
                        clause_group_id=group.id,
                        party_id=preference.party_id,
                        violation=e.violation.value,
                        message=e.message,
                        variant_ids=list(e.variant_ids))
            raise

        with self._lock:
            previous = self._preferences.get(normalized.key)
            version = previous.version + 1 if previous else 1
            normalized = dataclasses.replace(normalized, version=version)
            self._preferences[normalized.key] = normalized
            self._recompute(group)
            status = self._status(group.id)

        logger.debug(
            f"Party {normalized.party_id} submitted v{version} for group {group.id}: "
            f"{status.state.value}"
        )
        self._audit("log_preference_submitted",
                    template_id=self.template.id,
                    clause_group_id=group.id,
                    party_id=normalized.party_id,
                    version=version,
                    ranked_count=len(normalized.ranks),
                    rejected_count=len(normalized.rejected))
        if status.outcome is not None:
            self._audit("log_group_reconciled", self.template.id, status.outcome,
                        tie_break_strategy=self._engine.tie_break_name)
        return status

    def submit_payload(self, clause_group_id: str, party_id: str, payload: Any) -> GroupStatus:
        """Parse a raw submission record and submit it."""
        self._require_group(clause_group_id, party_id)
        preference = self._validator.parse_submission(clause_group_id, party_id, payload)
        return self.submit(preference)

    def _recompute(self, group: ClauseGroup) -> None:
        """Recompute a group's outcome; caller holds the lock."""
        pref_a = self._preferences.get((group.id, self.party_a_id))
        pref_b = self._preferences.get((group.id, self.party_b_id))
        if pref_a is not None and pref_b is not None:
            self._outcomes[group.id] = self._engine.reconcile(pref_a, pref_b)
        else:
            self._outcomes.pop(group.id, None)

    # =========================================================================
    # Queries
    # =========================================================================

    def state_of(self, clause_group_id: str) -> GroupState:
        return self.status_of(clause_group_id).state

    def outcome_of(self, clause_group_id: str) -> Optional[ReconciliationOutcome]:
        """Current outcome, None until both parties have submitted."""
        return self.status_of(clause_group_id).outcome

    def status_of(self, clause_group_id: str) -> GroupStatus:
        """
        Raises:
            KeyError: If the clause group is not part of the template.
        """
        if self.template.get_group(clause_group_id) is None:
            raise KeyError(clause_group_id)
        with self._lock:
            return self._status(clause_group_id)

    def preference_of(self, clause_group_id: str, party_id: str) -> Optional[NormalizedPreference]:
        with self._lock:
            return self._preferences.get((clause_group_id, party_id))

    def _status(self, clause_group_id: str) -> GroupStatus:
        versions = {
            party: self._preferences[(clause_group_id, party)].version
            for party in self.parties
            if (clause_group_id, party) in self._preferences
        }
        if len(versions) == 2:
            state = GroupState.BOTH_SUBMITTED
        elif versions:
            state = GroupState.PARTIALLY_SUBMITTED
        else:
            state = GroupState.PENDING
        return GroupStatus(
            clause_group_id=clause_group_id,
            state=state,
            versions=versions,
            outcome=self._outcomes.get(clause_group_id),
        )

    def result(self) -> TemplateResult:
        """
        Current TemplateResult; groups not yet answered by both parties
        are MISSING_PREFERENCE red lights.
        """
        outcomes = []
        with self._lock:
            for group in self.template.clause_groups:
                outcome = self._outcomes.get(group.id)
                if outcome is None:
                    absent = [
                        party for party in self.parties
                        if (group.id, party) not in self._preferences
                    ]
                    outcome = missing_preference_outcome(group.id, absent)
                outcomes.append(outcome)

        return TemplateResult(
            template_id=self.template.id,
            party_a_id=self.party_a_id,
            party_b_id=self.party_b_id,
            outcomes=tuple(outcomes),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_group(self, clause_group_id: str, party_id: str) -> ClauseGroup:
        group = self.template.get_group(clause_group_id)
        if group is None:
            raise InvalidPreference(
                message=f"Template '{self.template.id}' has no clause group '{clause_group_id}'",
                violation=ViolationType.GROUP_MISMATCH,
                clause_group_id=clause_group_id,
                party_id=party_id,
            )
        return group

    def _require_party(self, clause_group_id: str, party_id: str) -> None:
        if party_id not in self.parties:
            raise InvalidPreference(
                message=f"'{party_id}' is not a party of this negotiation",
                violation=ViolationType.MALFORMED,
                clause_group_id=clause_group_id,
                party_id=party_id,
            )

    def _audit(self, method: str, *args, **kwargs) -> None:
        if self._audit_logger is None:
            return
        try:
            getattr(self._audit_logger, method)(*args, **kwargs)
        except Exception as e:
            logger.warning(f"Audit call {method} failed: {e}")
