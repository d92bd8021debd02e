"""Unit tests for the Reconciliation Engine."""

import itertools

import pytest

from clause_reconciliation.models import (
    NormalizedPreference,
    OutcomeKind,
    RedLightReason,
    SelectionMethod,
)
from clause_reconciliation.reconciliation import (
    PartyAPriorityStrategy,
    ReconciliationEngine,
    compute_score,
)


def norm(ranking, rejected=(), party_id="A", group_id="g1"):
    return NormalizedPreference(
        clause_group_id=group_id,
        party_id=party_id,
        rejected=frozenset(rejected),
        ranks={v: i + 1 for i, v in enumerate(ranking)},
    )


class TestScenarios:
    """The reference scenarios of the reconciliation rules."""

    def test_scenario_a_full_tie_uses_named_strategy(self):
        """X and Y tie on score, disagreement and sum; lowest-id picks X."""
        a = norm(["X", "Y", "Z"], party_id="A")
        b = norm(["Y", "X", "Z"], party_id="B")

        outcome = ReconciliationEngine().reconcile(a, b)

        assert outcome.kind == OutcomeKind.SCORED_SELECTION
        assert outcome.method == SelectionMethod.SCORED
        assert outcome.variant_id == "X"
        assert outcome.score == 4
        assert outcome.tie_break == "lowest-id"
        scores = {c.variant_id: c.score for c in outcome.candidate_scores}
        assert scores == {"X": 4, "Y": 4, "Z": 6}
        assert outcome.alternatives == ("Y", "Z")

    def test_scenario_b_no_shared_variant(self):
        a = norm(["X", "Y"], rejected={"Z"}, party_id="A")
        b = norm(["Z"], rejected={"X", "Y"}, party_id="B")

        outcome = ReconciliationEngine().reconcile(a, b)

        assert outcome.kind == OutcomeKind.RED_LIGHT
        assert outcome.reason == RedLightReason.NO_SHARED_VARIANT
        assert outcome.variant_id is None
        assert outcome.is_red_light

    def test_scenario_c_unanimous_top_choice(self):
        """Both rank X first: auto-selected without scoring."""
        a = norm(["X", "Y", "Z"], party_id="A")
        b = norm(["X", "Z", "Y"], party_id="B")

        outcome = ReconciliationEngine().reconcile(a, b)

        assert outcome.kind == OutcomeKind.AUTO_SELECTED
        assert outcome.method == SelectionMethod.UNANIMOUS_TOP_CHOICE
        assert outcome.variant_id == "X"
        assert outcome.score is None
        assert outcome.candidate_scores == ()
        assert outcome.alternatives == ("Y", "Z")


class TestSelectionRules:
    """Tests for the individual selection steps."""

    def test_unanimous_beats_lower_score(self):
        """A shared #1 wins even when another variant would score lower."""
        a = norm(["X", "Y"], rejected={"Z"}, party_id="A")
        b = norm(["X", "Y"], rejected={"Z"}, party_id="B")

        outcome = ReconciliationEngine().reconcile(a, b)

        assert outcome.method == SelectionMethod.UNANIMOUS_TOP_CHOICE
        assert outcome.variant_id == "X"

    def test_single_survivor(self):
        a = norm(["X", "Y"], rejected={"Z"}, party_id="A")
        b = norm(["Z", "Y"], rejected={"X"}, party_id="B")

        outcome = ReconciliationEngine().reconcile(a, b)

        assert outcome.kind == OutcomeKind.AUTO_SELECTED
        assert outcome.method == SelectionMethod.SINGLE_SURVIVOR
        assert outcome.variant_id == "Y"
        assert outcome.score is None
        assert [(c.variant_id, c.rank_a, c.rank_b) for c in outcome.candidate_scores] == [("Y", 2, 2)]

    def test_lowest_score_wins(self):
        """S penalises disagreement: Y (2,2)=4 beats X (1,4)=8."""
        a = norm(["X", "Y", "Z", "W"], party_id="A")
        b = norm(["Z", "Y", "W", "X"], party_id="B")

        outcome = ReconciliationEngine().reconcile(a, b)

        assert outcome.variant_id == "Y"
        assert outcome.score == 4
        assert outcome.tie_break is None

    def test_smaller_disagreement_breaks_score_tie(self):
        """Equal S: the candidate with the smaller rank gap wins."""
        a = norm(["P", "Q", "R", "S"], party_id="A")
        b = norm(["S", "R", "P", "Q"], party_id="B")
        # P (1,3) S=6 gap 2; Q (2,4) S=8; R (3,2) S=6 gap 1; S (4,1) S=8

        outcome = ReconciliationEngine().reconcile(a, b)

        assert outcome.variant_id == "R"
        assert outcome.score == 6
        assert outcome.tie_break is None

    def test_empty_ranking_yields_red_light(self):
        a = norm([], rejected={"X", "Y", "Z"}, party_id="A")
        b = norm(["X", "Y", "Z"], party_id="B")

        outcome = ReconciliationEngine().reconcile(a, b)

        assert outcome.reason == RedLightReason.NO_SHARED_VARIANT

    def test_different_groups_is_an_error(self):
        a = norm(["X"], party_id="A", group_id="g1")
        b = norm(["X"], party_id="B", group_id="g2")

        with pytest.raises(ValueError):
            ReconciliationEngine().reconcile(a, b)

    def test_party_a_priority_strategy(self):
        engine = ReconciliationEngine(tie_break="party-a-priority")
        a = norm(["Y", "X", "Z"], party_id="A")
        b = norm(["X", "Y", "Z"], party_id="B")

        outcome = engine.reconcile(a, b)

        assert outcome.variant_id == "Y"
        assert outcome.tie_break == "party-a-priority"
        assert engine.tie_break_name == "party-a-priority"

    def test_strategy_instance_accepted(self):
        engine = ReconciliationEngine(tie_break=PartyAPriorityStrategy())

        assert engine.tie_break_name == "party-a-priority"

    def test_unknown_strategy_name(self):
        with pytest.raises(ValueError):
            ReconciliationEngine(tie_break="coin-flip")

    def test_reasoning_mentions_parties(self):
        a = norm(["X", "Y", "Z"], party_id="alice")
        b = norm(["Y", "X", "Z"], party_id="bob")

        outcome = ReconciliationEngine().reconcile(a, b)

        assert "alice" in outcome.reasoning
        assert "bob" in outcome.reasoning


class TestProperties:
    """Properties over every ranking pair of a three-variant group."""

    VARIANTS = ("X", "Y", "Z")

    def _all_preferences(self, party_id):
        for size in range(len(self.VARIANTS) + 1):
            for ranked in itertools.permutations(self.VARIANTS, size):
                rejected = set(self.VARIANTS) - set(ranked)
                yield norm(list(ranked), rejected=rejected, party_id=party_id)

    def test_deterministic_and_consistent(self):
        """Same input, same output; outcome shape matches the shared set."""
        engine = ReconciliationEngine()
        for a in self._all_preferences("A"):
            for b in self._all_preferences("B"):
                outcome = engine.reconcile(a, b)
                assert outcome == engine.reconcile(a, b)

                shared = set(a.ranks) & set(b.ranks)
                if not shared:
                    assert outcome.kind == OutcomeKind.RED_LIGHT
                    continue

                assert outcome.variant_id in shared
                if a.top_choice is not None and a.top_choice == b.top_choice:
                    assert outcome.variant_id == a.top_choice
                    assert outcome.kind == OutcomeKind.AUTO_SELECTED
                elif len(shared) == 1:
                    assert outcome.method == SelectionMethod.SINGLE_SURVIVOR
                else:
                    best = min(compute_score(a.ranks[v], b.ranks[v]) for v in shared)
                    assert outcome.score == best

    def test_compute_score(self):
        assert compute_score(1, 2) == 4
        assert compute_score(3, 3) == 6
        assert compute_score(1, 4) == 8
