"""Configuration Manager for the reconciliation engine.

Loads and validates the clause catalog and the engine settings from JSON
files, dictionaries or the environment.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..models.catalog import ClauseGroup, Template, Variant
from ..models.enums import RiskLevel, VariantStatus
from ..performance import timed_operation
from ..reconciliation.engine import ReconciliationEngine
from ..reconciliation.tie_break import TIE_BREAK_STRATEGIES
from .models import (
    CatalogConfiguration,
    ConfigurationError,
    ConfigurationType,
    EngineSettings,
    ValidationResult,
)


logger = logging.getLogger(__name__)

CATALOG_FILE = "catalog.json"
ENGINE_FILE = "engine.json"

ENV_TIE_BREAK = "CLAUSE_RECON_TIE_BREAK"
ENV_SEED = "CLAUSE_RECON_SEED"
ENV_MAX_WORKERS = "CLAUSE_RECON_MAX_WORKERS"
ENV_DATABASE_URL = "CLAUSE_RECON_DATABASE_URL"

Source = Union[str, Path, Dict[str, Any], List[Dict[str, Any]]]


class ConfigurationManager:
    """
    Manager for catalog and engine configuration.

    Every problem in a source is collected into a ValidationResult before
    anything is applied; a source with errors raises ConfigurationError and
    leaves the current configuration untouched.
    """

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_dir: Optional directory path for configuration files.
        """
        self._config_dir = Path(config_dir) if config_dir else None
        self._catalog = CatalogConfiguration()
        self._settings = EngineSettings()
        self._is_loaded = False

    @property
    def catalog(self) -> CatalogConfiguration:
        return self._catalog

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def is_loaded(self) -> bool:
        """Check if a catalog has been loaded."""
        return self._is_loaded

    # =========================================================================
    # Catalog
    # =========================================================================

    @timed_operation("load_catalog")
    def load_catalog(self, source: Source) -> ValidationResult:
        """
        Load and validate the clause catalog.

        Supports a JSON file path, a ``{"templates": [...]}`` dictionary, a
        single template dictionary, or a list of template dictionaries.
        Inactive variants are dropped with a warning.

        Raises:
            ConfigurationError: If any template fails validation.
        """
        raw_data = self._parse_source(source)

        if isinstance(raw_data, dict):
            templates_data = raw_data["templates"] if "templates" in raw_data else [raw_data]
        else:
            templates_data = raw_data

        result = ValidationResult(is_valid=True)
        if not isinstance(templates_data, list):
            result.add_error("'templates' must be a list")
            raise ConfigurationError("Catalog validation failed", validation_result=result)

        templates: List[Template] = []
        for i, template_dict in enumerate(templates_data):
            template_result, template = self._validate_template(template_dict, index=i)
            result = result.merge(template_result)
            if template:
                templates.append(template)

        ids = [t.id for t in templates]
        duplicates = {i for i in ids if ids.count(i) > 1}
        if duplicates:
            result.add_error(f"Duplicate template IDs found: {sorted(duplicates)}")

        if not result.is_valid:
            raise ConfigurationError("Catalog validation failed", validation_result=result)

        for warning in result.warnings:
            logger.warning(warning)

        version = raw_data.get("version", 1) if isinstance(raw_data, dict) else 1
        self._catalog = CatalogConfiguration(templates=templates, version=version)
        self._is_loaded = True
        logger.info(f"Loaded catalog with {len(templates)} template(s)")

        return result

    def parse_template(self, data: Dict[str, Any]) -> Template:
        """
        Validate one template dictionary without touching the loaded catalog.

        Raises:
            ConfigurationError: If the template is invalid.
        """
        result, template = self._validate_template(data)
        if not result.is_valid or template is None:
            raise ConfigurationError("Template validation failed", validation_result=result)
        for warning in result.warnings:
            logger.warning(warning)
        return template

    def parse_clause_group(self, data: Dict[str, Any]) -> ClauseGroup:
        """
        Validate one clause group dictionary.

        Raises:
            ConfigurationError: If the clause group is invalid.
        """
        result, group = self._validate_clause_group(data, "Clause group")
        if not result.is_valid or group is None:
            raise ConfigurationError("Clause group validation failed", validation_result=result)
        for warning in result.warnings:
            logger.warning(warning)
        return group

    def _validate_template(
        self,
        data: Any,
        index: int = 0,
    ) -> Tuple[ValidationResult, Optional[Template]]:
        result = ValidationResult(is_valid=True)
        prefix = f"Template [{index}]"

        if not isinstance(data, dict):
            result.add_error(f"{prefix}: must be an object")
            return result, None

        for field_name in ("id", "name", "clause_groups"):
            if field_name not in data:
                result.add_error(f"{prefix}: Missing required field '{field_name}'")
        if not result.is_valid:
            return result, None

        if not isinstance(data["id"], str) or not data["id"].strip():
            result.add_error(f"{prefix}: 'id' must be a non-empty string")
            return result, None
        prefix = f"Template '{data['id']}'"

        if not isinstance(data["name"], str) or not data["name"].strip():
            result.add_error(f"{prefix}: 'name' must be a non-empty string")
        if not isinstance(data["clause_groups"], list) or not data["clause_groups"]:
            result.add_error(f"{prefix}: 'clause_groups' must be a non-empty list")
        if not result.is_valid:
            return result, None

        groups: List[ClauseGroup] = []
        for i, group_dict in enumerate(data["clause_groups"]):
            group_result, group = self._validate_clause_group(group_dict, f"{prefix} group [{i}]")
            result = result.merge(group_result)
            if group:
                groups.append(group)

        group_ids = [g.id for g in groups]
        duplicates = {g for g in group_ids if group_ids.count(g) > 1}
        if duplicates:
            result.add_error(f"{prefix}: Duplicate clause group IDs: {sorted(duplicates)}")

        if not result.is_valid:
            return result, None

        return result, Template(
            id=data["id"].strip(),
            name=data["name"].strip(),
            clause_groups=groups,
        )

    def _validate_clause_group(
        self,
        data: Any,
        prefix: str,
    ) -> Tuple[ValidationResult, Optional[ClauseGroup]]:
        result = ValidationResult(is_valid=True)

        if not isinstance(data, dict):
            result.add_error(f"{prefix}: must be an object")
            return result, None

        for field_name in ("id", "label", "variants"):
            if field_name not in data:
                result.add_error(f"{prefix}: Missing required field '{field_name}'")
        if not result.is_valid:
            return result, None

        if not isinstance(data["id"], str) or not data["id"].strip():
            result.add_error(f"{prefix}: 'id' must be a non-empty string")
            return result, None
        prefix = f"Clause group '{data['id']}'"

        if not isinstance(data["label"], str) or not data["label"].strip():
            result.add_error(f"{prefix}: 'label' must be a non-empty string")
        if not isinstance(data["variants"], list):
            result.add_error(f"{prefix}: 'variants' must be a list")
            return result, None
        if "required" in data and not isinstance(data["required"], bool):
            result.add_error(f"{prefix}: 'required' must be a boolean")
        for optional in ("category", "description"):
            value = data.get(optional)
            if value is not None and not isinstance(value, str):
                result.add_error(f"{prefix}: '{optional}' must be a string")

        variants: List[Variant] = []
        for i, variant_dict in enumerate(data["variants"]):
            variant_result, variant = self._validate_variant(variant_dict, f"{prefix} variant [{i}]")
            result = result.merge(variant_result)
            if variant:
                variants.append(variant)

        variant_ids = [v.id for v in variants]
        duplicates = {v for v in variant_ids if variant_ids.count(v) > 1}
        if duplicates:
            result.add_error(f"{prefix}: Duplicate variant IDs: {sorted(duplicates)}")
        if result.is_valid and not variants:
            result.add_error(f"{prefix}: no active variants")

        if not result.is_valid:
            return result, None

        return result, ClauseGroup(
            id=data["id"].strip(),
            label=data["label"].strip(),
            variants=variants,
            category=data.get("category") or "general",
            required=data.get("required", True),
            description=data.get("description"),
        )

    def _validate_variant(
        self,
        data: Any,
        prefix: str,
    ) -> Tuple[ValidationResult, Optional[Variant]]:
        """Validate a variant; inactive variants yield a warning and no Variant."""
        result = ValidationResult(is_valid=True)

        if not isinstance(data, dict):
            result.add_error(f"{prefix}: must be an object")
            return result, None

        for field_name in ("id", "label"):
            value = data.get(field_name)
            if not isinstance(value, str) or not value.strip():
                result.add_error(f"{prefix}: '{field_name}' must be a non-empty string")
        if not result.is_valid:
            return result, None

        valid_risks = [r.value for r in RiskLevel]
        risk = data.get("risk_level", RiskLevel.MEDIUM.value)
        if risk not in valid_risks:
            result.add_error(f"{prefix}: 'risk_level' must be one of {valid_risks}")

        valid_statuses = [s.value for s in VariantStatus]
        status = data.get("status", VariantStatus.ACTIVE.value)
        if status not in valid_statuses:
            result.add_error(f"{prefix}: 'status' must be one of {valid_statuses}")

        legal_text = data.get("legal_text", "")
        if legal_text is not None and not isinstance(legal_text, str):
            result.add_error(f"{prefix}: 'legal_text' must be a string")

        if not result.is_valid:
            return result, None

        if status == VariantStatus.INACTIVE.value:
            result.add_warning(f"{prefix}: variant '{data['id']}' is inactive and was skipped")
            return result, None

        return result, Variant(
            id=data["id"].strip(),
            label=data["label"].strip(),
            legal_text=legal_text or "",
            risk_level=RiskLevel(risk),
        )

    def get_template(self, template_id: str) -> Optional[Template]:
        """Get a loaded template by ID."""
        return self._catalog.get_template(template_id)

    def list_templates(self) -> List[Template]:
        return list(self._catalog.templates)

    # =========================================================================
    # Engine settings
    # =========================================================================

    def load_settings(self, source: Union[str, Path, Dict[str, Any]]) -> ValidationResult:
        """
        Load and validate engine settings.

        Unknown keys produce warnings; invalid values produce errors.

        Raises:
            ConfigurationError: If validation fails.
        """
        raw_data = self._parse_source(source)
        result = ValidationResult(is_valid=True)

        if not isinstance(raw_data, dict):
            result.add_error("Engine settings must be an object")
            raise ConfigurationError("Engine settings validation failed", validation_result=result)

        known = set(EngineSettings().to_dict())
        for key in sorted(set(raw_data) - known):
            result.add_warning(f"Unknown engine setting '{key}' ignored")

        merged = self._settings.to_dict()
        merged.update({k: v for k, v in raw_data.items() if k in known})
        result = result.merge(self._validate_settings(merged))

        if not result.is_valid:
            raise ConfigurationError("Engine settings validation failed", validation_result=result)

        for warning in result.warnings:
            logger.warning(warning)

        self._settings = EngineSettings(**merged)
        return result

    def _validate_settings(self, data: Mapping[str, Any]) -> ValidationResult:
        result = ValidationResult(is_valid=True)

        strategy = data["tie_break_strategy"]
        if not isinstance(strategy, str) or strategy not in TIE_BREAK_STRATEGIES:
            result.add_error(
                f"'tie_break_strategy' must be one of {sorted(TIE_BREAK_STRATEGIES)}"
            )

        seed = data["tie_break_seed"]
        if seed is not None and not isinstance(seed, str):
            result.add_error("'tie_break_seed' must be a string")

        workers = data["max_workers"]
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            result.add_error("'max_workers' must be a positive integer")

        if not isinstance(data["enable_audit_logging"], bool):
            result.add_error("'enable_audit_logging' must be a boolean")

        if data["database_url"] is not None and not isinstance(data["database_url"], str):
            result.add_error("'database_url' must be a string")

        if not isinstance(data["output_dir"], str) or not data["output_dir"].strip():
            result.add_error("'output_dir' must be a non-empty string")

        return result

    def apply_environment_overrides(
        self,
        environ: Optional[Mapping[str, str]] = None,
    ) -> ValidationResult:
        """
        Override engine settings from ``CLAUSE_RECON_*`` environment variables.

        Raises:
            ConfigurationError: If an override is invalid.
        """
        environ = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        result = ValidationResult(is_valid=True)

        if ENV_TIE_BREAK in environ:
            overrides["tie_break_strategy"] = environ[ENV_TIE_BREAK]
        if ENV_SEED in environ:
            overrides["tie_break_seed"] = environ[ENV_SEED]
        if ENV_DATABASE_URL in environ:
            overrides["database_url"] = environ[ENV_DATABASE_URL]
        if ENV_MAX_WORKERS in environ:
            try:
                overrides["max_workers"] = int(environ[ENV_MAX_WORKERS])
            except ValueError:
                result.add_error(f"{ENV_MAX_WORKERS} must be an integer")

        if not result.is_valid:
            raise ConfigurationError("Environment override failed", validation_result=result)
        if not overrides:
            return result

        logger.info(f"Applying environment overrides: {sorted(overrides)}")
        return self.load_settings(overrides)

    def build_engine(self) -> ReconciliationEngine:
        """Build a ReconciliationEngine from the current settings."""
        return ReconciliationEngine(
            tie_break=self._settings.tie_break_strategy,
            seed=self._settings.tie_break_seed,
        )

    def build_orchestrator(self, audit_logger=None):
        """Build a BatchOrchestrator from the current settings."""
        from ..orchestration.batch_orchestrator import BatchOrchestrator, OrchestratorConfig

        config = OrchestratorConfig(
            max_workers=self._settings.max_workers,
            enable_audit_logging=self._settings.enable_audit_logging,
            database_url=self._settings.database_url,
        )
        return BatchOrchestrator(
            config=config,
            engine=self.build_engine(),
            audit_logger=audit_logger,
        )

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _parse_source(self, source: Source) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        """Parse configuration source to raw data."""
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {path}")

            try:
                with open(path, "r", encoding="utf-8") as f:
                    return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

        return source

    def load_from_directory(self, config_dir: Union[str, Path]) -> ValidationResult:
        """
        Load all configuration files from a directory.

        Expects files named ``catalog.json`` and ``engine.json``; either may
        be absent. Problems are reported in the returned result instead of
        being raised.
        """
        config_dir = Path(config_dir)
        result = ValidationResult(is_valid=True)

        loaders = (
            (ConfigurationType.CATALOG, config_dir / CATALOG_FILE, self.load_catalog),
            (ConfigurationType.ENGINE, config_dir / ENGINE_FILE, self.load_settings),
        )
        for config_type, path, load in loaders:
            if not path.exists():
                continue
            try:
                result = result.merge(load(path))
            except ConfigurationError as e:
                result.add_error(f"{config_type.value.capitalize()} loading failed: {e.message}")
                if e.validation_result:
                    result = result.merge(e.validation_result)

        self._config_dir = config_dir
        return result

    def save_to_directory(self, config_dir: Optional[Union[str, Path]] = None) -> None:
        """
        Save the current catalog and settings to a directory.

        Raises:
            ConfigurationError: If no directory is known.
        """
        config_dir = Path(config_dir) if config_dir else self._config_dir
        if not config_dir:
            raise ConfigurationError("No configuration directory specified")

        config_dir.mkdir(parents=True, exist_ok=True)

        if self._catalog.templates:
            catalog_data = {
                "version": self._catalog.version,
                "templates": [t.to_dict() for t in self._catalog.templates],
            }
            with open(config_dir / CATALOG_FILE, "w", encoding="utf-8") as f:
                json.dump(catalog_data, f, indent=2, ensure_ascii=False)

        with open(config_dir / ENGINE_FILE, "w", encoding="utf-8") as f:
            json.dump(self._settings.to_dict(), f, indent=2, ensure_ascii=False)

    def reset(self) -> None:
        """Reset configuration to empty state."""
        self._catalog = CatalogConfiguration()
        self._settings = EngineSettings()
        self._is_loaded = False

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as a dictionary."""
        return {
            "version": self._catalog.version,
            "templates": [t.to_dict() for t in self._catalog.templates],
            "engine": self._settings.to_dict(),
        }
