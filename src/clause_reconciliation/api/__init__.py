"""HTTP API for the reconciliation engine."""
