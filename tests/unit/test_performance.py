"""Unit tests for operation timing."""

import logging

import pytest

from clause_reconciliation.performance import PerformanceMonitor, timed_operation


class TestPerformanceMonitor:
    """Tests for PerformanceMonitor."""

    def test_stats(self):
        monitor = PerformanceMonitor()
        for success in (True, False):
            metric = monitor.start_operation("reconcile_template", template_id="nda")
            monitor.end_operation(metric, success=success)

        stats = monitor.get_operation_stats("reconcile_template")

        assert stats["count"] == 2
        assert stats["success_rate"] == 0.5
        assert stats["min"] <= stats["average"] <= stats["max"]

    def test_unknown_operation(self):
        assert PerformanceMonitor().get_operation_stats("nothing") == {}

    def test_slow_operation_logged(self, caplog):
        monitor = PerformanceMonitor(slow_operation_threshold=-1.0)

        with caplog.at_level(logging.WARNING, logger="clause_reconciliation.performance"):
            monitor.end_operation(monitor.start_operation("export"))

        assert "took" in caplog.text

    def test_reset(self):
        monitor = PerformanceMonitor()
        monitor.end_operation(monitor.start_operation("export"))

        monitor.reset()

        assert monitor.get_all_stats() == {}


class TestTimedOperation:
    """Tests for the timed_operation decorator."""

    def test_returns_result(self):
        @timed_operation("double")
        def double(x):
            return x * 2

        assert double(4) == 8
        assert double.__name__ == "double"

    def test_reraises(self, caplog):
        @timed_operation("explode")
        def explode():
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="clause_reconciliation.performance"):
            with pytest.raises(RuntimeError):
                explode()

        assert "explode failed" in caplog.text
