"""Minimal FastAPI application for the reconciliation engine.

Exposes submission validation and template reconciliation over HTTP.
The catalog and submissions travel in the request body; nothing is
stored unless audit logging is enabled through the environment.

Usage (after installing fastapi and uvicorn):

    uvicorn clause_reconciliation.api.app:app --reload
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Body, FastAPI, HTTPException
from fastapi.responses import JSONResponse

from ..config.config_manager import ConfigurationManager
from ..config.models import ConfigurationError
from ..reconciliation.tie_break import DEFAULT_TIE_BREAK, TIE_BREAK_STRATEGIES
from ..validation.exceptions import InvalidPreference
from ..validation.preference_validator import PreferenceValidator


logger = logging.getLogger(__name__)

app = FastAPI(title="Clause Preference Reconciliation API", version="0.1.0")


def _config_manager() -> ConfigurationManager:
    """Fresh configuration manager with environment overrides applied."""
    manager = ConfigurationManager()
    try:
        manager.apply_environment_overrides()
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=_configuration_detail(exc)) from exc
    return manager


def _configuration_detail(exc: ConfigurationError) -> Dict[str, Any]:
    detail: Dict[str, Any] = {"message": exc.message}
    if exc.validation_result is not None:
        detail["errors"] = exc.validation_result.errors
        detail["warnings"] = exc.validation_result.warnings
    return detail


def _require_str(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise HTTPException(status_code=400, detail=f"'{key}' must be a non-empty string")
    return value


@app.get("/api/tie-break-strategies")
async def list_tie_break_strategies() -> JSONResponse:
    """List the named tie-break strategies."""
    return JSONResponse(
        status_code=200,
        content={"strategies": sorted(TIE_BREAK_STRATEGIES), "default": DEFAULT_TIE_BREAK},
    )


@app.post("/api/validate")
async def validate_submission(payload: Dict[str, Any] = Body(...)) -> JSONResponse:
    """Validate one party's submission against a clause group.

    Body: ``{"clause_group": {...}, "party_id": "...", "submission": {...}}``.
    Returns the normalized preference, or 422 with the violation.
    """
    party_id = _require_str(payload, "party_id")
    group_data = payload.get("clause_group")
    if not isinstance(group_data, dict):
        raise HTTPException(status_code=400, detail="'clause_group' must be an object")

    try:
        group = ConfigurationManager().parse_clause_group(group_data)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=_configuration_detail(exc)) from exc

    try:
        normalized = PreferenceValidator().validate_submission(
            group, party_id, payload.get("submission")
        )
    except InvalidPreference as exc:
        return JSONResponse(status_code=422, content={"valid": False, "error": exc.to_dict()})

    return JSONResponse(status_code=200, content={"valid": True, "preference": normalized.to_dict()})


@app.post("/api/reconcile")
async def reconcile(payload: Dict[str, Any] = Body(...)) -> JSONResponse:
    """Reconcile every clause group of a template.

    Body::

        {
          "template": {...},
          "party_a_id": "...",
          "party_b_id": "...",
          "submissions": [{"clause_group_id", "party_id", "rejected", "ranking" | "ranks"}],
          "tie_break": "lowest-id",   (optional)
          "seed": "..."               (optional)
        }
    """
    party_a_id = _require_str(payload, "party_a_id")
    party_b_id = _require_str(payload, "party_b_id")
    if party_a_id == party_b_id:
        raise HTTPException(status_code=400, detail="party_a_id and party_b_id must differ")

    submissions = payload.get("submissions", [])
    if not isinstance(submissions, list):
        raise HTTPException(status_code=400, detail="'submissions' must be a list")

    template_data = payload.get("template")
    if not isinstance(template_data, dict):
        raise HTTPException(status_code=400, detail="'template' must be an object")

    manager = _config_manager()
    try:
        template = manager.parse_template(template_data)
        overrides: Dict[str, Any] = {}
        if payload.get("tie_break") is not None:
            overrides["tie_break_strategy"] = payload["tie_break"]
        if payload.get("seed") is not None:
            overrides["tie_break_seed"] = payload["seed"]
        if overrides:
            manager.load_settings(overrides)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=_configuration_detail(exc)) from exc

    orchestrator = manager.build_orchestrator()
    try:
        result = orchestrator.reconcile_submissions(template, party_a_id, party_b_id, submissions)
    finally:
        orchestrator.close()

    return JSONResponse(status_code=200, content=result.to_dict())
