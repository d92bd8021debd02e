"""Batch reconciliation of a whole contract template.

Wires the validator and the reconciliation engine together: collects the
preferences of both parties per clause group, reconciles every group
(optionally in parallel), and aggregates the outcomes into a
TemplateResult in catalog order.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..audit.audit_logger import AuditLogger
from ..audit.database import DatabaseManager
from ..interfaces.audit import IAuditLogger
from ..interfaces.reconciler import IReconciler
from ..interfaces.validator import IPreferenceValidator
from ..models.catalog import ClauseGroup, Template
from ..models.enums import RedLightReason
from ..models.outcome import ReconciliationOutcome, TemplateResult
from ..models.preference import NormalizedPreference, PartyPreference
from ..performance import PerformanceMonitor
from ..reconciliation.engine import ReconciliationEngine
from ..validation.exceptions import InvalidPreference
from ..validation.preference_validator import PreferenceValidator


logger = logging.getLogger(__name__)

AnyPreference = Union[PartyPreference, NormalizedPreference]


def missing_preference_outcome(
    clause_group_id: str,
    absent_parties: Sequence[str],
) -> ReconciliationOutcome:
    """Red light for a group that one or both parties never answered."""
    return ReconciliationOutcome.red_light(
        clause_group_id,
        RedLightReason.MISSING_PREFERENCE,
        reasoning=f"No preference submitted by {' and '.join(absent_parties)}",
    )


@dataclass
class OrchestratorConfig:
    """Configuration for the batch orchestrator."""

    # Parallel fan-out over clause groups; 1 runs sequentially.
    max_workers: int = 1

    enable_audit_logging: bool = False
    enable_version_history: bool = True
    database_url: Optional[str] = None

    slow_operation_threshold: float = 5.0


@dataclass
class OrchestratorStats:
    """Statistics about orchestrator runs."""

    total_runs: int = 0
    resolved_runs: int = 0
    blocked_runs: int = 0
    groups_processed: int = 0
    red_lights: int = 0
    invalid_preferences: int = 0
    ignored_preferences: int = 0
    total_processing_time: float = 0.0
    average_processing_time: float = 0.0


@dataclass
class _GroupRun:
    outcome: ReconciliationOutcome
    rejections: Tuple[InvalidPreference, ...] = ()


class BatchOrchestrator:
    """
    Reconciles every clause group of a template for one pair of parties.

    Per-group problems never abort the run: a missing preference becomes a
    MISSING_PREFERENCE red light and an invalid one an INVALID_PREFERENCE
    red light, while the remaining groups are reconciled normally.
    """

    def __init__(
        self,
        config: Optional[OrchestratorConfig] = None,
        engine: Optional[IReconciler] = None,
        validator: Optional[IPreferenceValidator] = None,
        audit_logger: Optional[IAuditLogger] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Orchestrator configuration.
            engine: Reconciler to use (default tie-break if not provided).
            validator: Preference validator (created if not provided).
            audit_logger: Optional audit logger; created from the config
                when audit logging is enabled and none is given.
        """
        self.config = config or OrchestratorConfig()
        if self.config.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self.stats = OrchestratorStats()
        self._stats_lock = threading.Lock()
        self.performance_monitor = PerformanceMonitor(
            slow_operation_threshold=self.config.slow_operation_threshold
        )

        self._engine = engine or ReconciliationEngine()
        self._validator = validator or PreferenceValidator()

        self._audit_logger = audit_logger
        if self._audit_logger is None and self.config.enable_audit_logging:
            db_manager = DatabaseManager(database_url=self.config.database_url)
            try:
                db_manager.init_database()
            except Exception as e:
                logger.warning(f"Failed to initialize audit database: {e}")
            self._audit_logger = AuditLogger(db_manager=db_manager)

    @property
    def engine(self) -> IReconciler:
        return self._engine

    @property
    def audit_logger(self) -> Optional[IAuditLogger]:
        return self._audit_logger

    # =========================================================================
    # Template reconciliation
    # =========================================================================

    def reconcile_template(
        self,
        template: Template,
        party_a_id: str,
        party_b_id: str,
        preferences: Iterable[AnyPreference],
        parse_failures: Optional[Mapping[Tuple[str, str], InvalidPreference]] = None,
    ) -> TemplateResult:
        """
        Reconcile all clause groups of a template.

        Args:
            template: The catalog template.
            party_a_id: Id of party A.
            party_b_id: Id of party B.
            preferences: Submitted preferences of both parties, any order.
                When a party submitted several versions for a group, the
                highest version is used.
            parse_failures: Submissions that could not even be parsed,
                keyed by (clause group id, party id). They make that
                party's input for the group invalid.

        Returns:
            TemplateResult with one outcome per clause group in catalog order.

        Raises:
            ValueError: If both party ids are equal.
        """
        if party_a_id == party_b_id:
            raise ValueError("Party A and party B must be different parties")

        metric = self.performance_monitor.start_operation(
            "reconcile_template", template_id=template.id
        )
        start_time = time.perf_counter()

        table, ignored = self._index_preferences(template, (party_a_id, party_b_id), preferences)
        failures = dict(parse_failures or {})

        groups = template.clause_groups

        def run(group: ClauseGroup) -> _GroupRun:
            return self._run_group(
                group,
                table.get((group.id, party_a_id)),
                table.get((group.id, party_b_id)),
                party_a_id,
                party_b_id,
                failure_a=failures.get((group.id, party_a_id)),
                failure_b=failures.get((group.id, party_b_id)),
            )

        if self.config.max_workers > 1 and len(groups) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as ex:
                futures = [ex.submit(run, group) for group in groups]
                runs = [f.result() for f in futures]
        else:
            runs = [run(group) for group in groups]

        result = TemplateResult(
            template_id=template.id,
            party_a_id=party_a_id,
            party_b_id=party_b_id,
            outcomes=tuple(r.outcome for r in runs),
        )

        duration = time.perf_counter() - start_time
        self.performance_monitor.end_operation(metric)
        self._update_stats(result, runs, ignored, duration)
        self._record_run(result, runs, duration)

        logger.info(
            f"Reconciled template '{template.id}' for {party_a_id}/{party_b_id}: "
            f"{result.status.value}, {result.resolved_count}/{len(result.outcomes)} "
            f"groups resolved in {duration:.3f}s"
        )
        return result

    def reconcile_group(
        self,
        group: ClauseGroup,
        preference_a: Optional[AnyPreference],
        preference_b: Optional[AnyPreference],
        party_a_id: str = "party A",
        party_b_id: str = "party B",
    ) -> ReconciliationOutcome:
        """
        Reconcile a single clause group.

        Either preference may be None, yielding a MISSING_PREFERENCE red
        light; an invalid preference yields INVALID_PREFERENCE.
        """
        return self._run_group(group, preference_a, preference_b, party_a_id, party_b_id).outcome

    def reconcile_submissions(
        self,
        template: Template,
        party_a_id: str,
        party_b_id: str,
        submissions: Iterable[Any],
    ) -> TemplateResult:
        """
        Reconcile raw submission records.

        Each record carries ``clause_group_id`` and ``party_id`` next to the
        fields accepted by ``PreferenceValidator.parse_submission``. Records
        that cannot be parsed turn their group into an INVALID_PREFERENCE
        red light; records that cannot even be attributed to a group and
        party are logged and ignored.
        """
        preferences: List[PartyPreference] = []
        failures: Dict[Tuple[str, str], InvalidPreference] = {}

        for record in submissions:
            group_id = record.get("clause_group_id") if isinstance(record, Mapping) else None
            party_id = record.get("party_id") if isinstance(record, Mapping) else None
            if not isinstance(group_id, str) or not isinstance(party_id, str):
                logger.warning("Ignoring submission without clause_group_id/party_id")
                continue
            try:
                preferences.append(self._validator.parse_submission(group_id, party_id, record))
            except InvalidPreference as e:
                failures[(group_id, party_id)] = e

        return self.reconcile_template(
            template, party_a_id, party_b_id, preferences, parse_failures=failures
        )

    def _run_group(
        self,
        group: ClauseGroup,
        preference_a: Optional[AnyPreference],
        preference_b: Optional[AnyPreference],
        party_a_id: str,
        party_b_id: str,
        failure_a: Optional[InvalidPreference] = None,
        failure_b: Optional[InvalidPreference] = None,
    ) -> _GroupRun:
        inputs = ((party_a_id, preference_a, failure_a), (party_b_id, preference_b, failure_b))

        absent = [party for party, pref, failure in inputs if pref is None and failure is None]
        if absent:
            logger.debug(f"Group {group.id}: missing preference from {absent}")
            return _GroupRun(missing_preference_outcome(group.id, absent))

        normalized: List[NormalizedPreference] = []
        rejections: List[InvalidPreference] = []
        for _, pref, failure in inputs:
            if failure is not None:
                rejections.append(failure)
                continue
            try:
                normalized.append(self._validator.validate(group, pref))
            except InvalidPreference as e:
                rejections.append(e)

        if rejections:
            logger.warning(f"Group {group.id}: invalid preference isolated: {rejections[0]}")
            outcome = ReconciliationOutcome.red_light(
                group.id,
                RedLightReason.INVALID_PREFERENCE,
                reasoning="; ".join(str(e) for e in rejections),
            )
            return _GroupRun(outcome, tuple(rejections))

        return _GroupRun(self._engine.reconcile(normalized[0], normalized[1]))

    def _index_preferences(
        self,
        template: Template,
        party_ids: Tuple[str, str],
        preferences: Iterable[AnyPreference],
    ) -> Tuple[Dict[Tuple[str, str], AnyPreference], int]:
        """Keep the highest version per (clause group, party); later input wins ties."""
        known_groups = set(template.group_ids)
        table: Dict[Tuple[str, str], AnyPreference] = {}
        ignored = 0

        for pref in preferences:
            if pref.clause_group_id not in known_groups:
                logger.warning(
                    f"Ignoring preference for unknown clause group '{pref.clause_group_id}' "
                    f"in template '{template.id}'"
                )
                ignored += 1
                continue
            if pref.party_id not in party_ids:
                logger.warning(
                    f"Ignoring preference from '{pref.party_id}', not a party of this reconciliation"
                )
                ignored += 1
                continue

            current = table.get(pref.key)
            if current is None or pref.version >= current.version:
                table[pref.key] = pref

        return table, ignored

    # =========================================================================
    # Bookkeeping
    # =========================================================================

    def _update_stats(
        self,
        result: TemplateResult,
        runs: Sequence[_GroupRun],
        ignored: int,
        duration: float,
    ) -> None:
        with self._stats_lock:
            self.stats.total_runs += 1
            if result.red_light_groups():
                self.stats.blocked_runs += 1
            else:
                self.stats.resolved_runs += 1
            self.stats.groups_processed += len(runs)
            self.stats.red_lights += len(result.red_light_groups())
            self.stats.invalid_preferences += sum(len(r.rejections) for r in runs)
            self.stats.ignored_preferences += ignored
            self.stats.total_processing_time += duration
            self.stats.average_processing_time = (
                self.stats.total_processing_time / self.stats.total_runs
            )

    def _record_run(
        self,
        result: TemplateResult,
        runs: Sequence[_GroupRun],
        duration: float,
    ) -> None:
        """Write audit events and the result snapshot; failures are only logged."""
        if self._audit_logger is None:
            return

        try:
            for run in runs:
                for rejection in run.rejections:
                    self._audit_logger.log_preference_rejected(
                        template_id=result.template_id,
                        clause_group_id=rejection.clause_group_id,
                        party_id=rejection.party_id,
                        violation=rejection.violation.value,
                        message=rejection.message,
                        variant_ids=list(rejection.variant_ids),
                    )
                self._audit_logger.log_group_reconciled(
                    result.template_id,
                    run.outcome,
                    tie_break_strategy=self._engine.tie_break_name,
                )

            version = None
            if self.config.enable_version_history:
                version = self._audit_logger.save_result(result)
            self._audit_logger.log_template_reconciled(result, version=version, duration=duration)
        except Exception as e:
            logger.warning(f"Failed to record audit trail for '{result.template_id}': {e}")

    def get_stats(self) -> OrchestratorStats:
        return self.stats

    def get_performance_stats(self):
        """Per-operation timing statistics."""
        return self.performance_monitor.get_all_stats()

    def close(self) -> None:
        """Release the audit logger's resources, if any."""
        if self._audit_logger is not None and hasattr(self._audit_logger, "close"):
            self._audit_logger.close()
